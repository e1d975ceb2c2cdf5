"""
Waybar custom-module output.

Each emission is one JSON object on its own line:
    {"text": ..., "alt": ..., "class": ..., "tooltip": ..., "percentage": ...}
An empty object hides the module.
"""
import json
import sys
from dataclasses import dataclass
from html import escape
from typing import List, Optional, TextIO, Union

from lyrics import LyricSet
from system_utils.sources.base import PlaybackState


# Alt / class names referenced by format-icons in the waybar config
PLAYING = "playing"
PAUSED = "paused"
LYRIC = "lyric"
MUSIC = "music"
INFO = "info"

MUSIC_GLYPH = "󰝚"
TOOLTIP_HEADER = f"<b><big>{MUSIC_GLYPH} </big></b>"

# Tooltip window around the active line
LINES_BEFORE = 2
LINES_AFTER = 5

DEFAULT_TOOLTIP_COLOR = "#cccccc"
DEFAULT_MAX_LENGTH = 100
DEFAULT_TOOLTIP_LINES = 8


def truncate(text: str, limit: int) -> str:
    """Cut `text` to `limit` characters, ending with "..." when shortened."""
    if limit <= 0 or len(text) <= limit:
        return text
    if limit > 3:
        return text[:limit - 3] + "..."
    return text[:limit]


@dataclass(frozen=True)
class WaybarPayload:
    text: str = ""
    alt: str = ""
    class_: Union[str, List[str]] = ""
    tooltip: str = ""
    percentage: int = 0
    empty: bool = False

    def to_dict(self) -> dict:
        if self.empty:
            return {}
        return {
            "text": self.text,
            "alt": self.alt,
            "class": list(self.class_) if isinstance(self.class_, (list, tuple)) else self.class_,
            "tooltip": self.tooltip,
            "percentage": self.percentage,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))


EMPTY_PAYLOAD = WaybarPayload(empty=True)


class StdoutSink:
    """Writes one payload per line and flushes immediately."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout

    def emit(self, payload: WaybarPayload) -> None:
        self.stream.write(payload.to_json() + "\n")
        self.stream.flush()


class PayloadBuilder:
    """
    Formats playback and lyric state into waybar payloads.

    Args:
        max_length: truncate the bar text to this many characters
        tooltip_lines: lines listed before the first lyric starts
        tooltip_color: pango color of the non-active tooltip lines
    """

    def __init__(self, max_length: int = DEFAULT_MAX_LENGTH,
                 tooltip_lines: int = DEFAULT_TOOLTIP_LINES,
                 tooltip_color: str = DEFAULT_TOOLTIP_COLOR):
        self.max_length = max_length
        self.tooltip_lines = tooltip_lines
        self.tooltip_color = tooltip_color

    def info(self, playback: PlaybackState) -> WaybarPayload:
        """Track info ("Artist - Title") with the playback status as alt."""
        status = playback.status.value.lower()
        return WaybarPayload(
            text=self._text(playback.info),
            alt=status,
            class_=[INFO, status],
            tooltip="",
            percentage=playback.percentage,
        )

    def pre_first(self, lines: LyricSet, playback: PlaybackState) -> WaybarPayload:
        """Before the first line: track info, tooltip lists the opening lines."""
        return WaybarPayload(
            text=self._text(playback.info),
            alt=MUSIC,
            class_=[PLAYING, MUSIC],
            tooltip=self._tooltip(lines, 0, min(self.tooltip_lines, len(lines)), active=None),
            percentage=playback.percentage,
        )

    def line(self, lines: LyricSet, idx: int, playback: PlaybackState) -> WaybarPayload:
        """Active line `idx`; empty lines (instrumental gaps) show the track info."""
        start = max(idx - LINES_BEFORE, 0)
        end = min(idx + LINES_AFTER + 1, len(lines))
        tooltip = self._tooltip(lines, start, end, active=idx)

        text = lines[idx].text
        if not text:
            return WaybarPayload(
                text=self._text(playback.info),
                alt=MUSIC,
                class_=[PLAYING, MUSIC],
                tooltip=tooltip,
                percentage=playback.percentage,
            )
        return WaybarPayload(
            text=self._text(text),
            alt=LYRIC,
            class_=[PLAYING, LYRIC],
            tooltip=tooltip,
            percentage=playback.percentage,
        )

    def _text(self, text: str) -> str:
        """Bar text: truncated, then markup-escaped (waybar renders it as pango markup)."""
        return escape(truncate(text, self.max_length))

    def _tooltip(self, lines: LyricSet, start: int, end: int, active: Optional[int]) -> str:
        rows = [TOOLTIP_HEADER]
        for i in range(start, end):
            text = escape(lines[i].text) if lines[i].text else f"{MUSIC_GLYPH} "
            if i == active:
                rows.append(f"<b>{text}</b>")
            else:
                rows.append(f"<span foreground=\"{self.tooltip_color}\">{text}</span>")
        return "\n".join(rows)
