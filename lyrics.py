"""
Synced lyrics (LRC) parsing.

Turns the raw transcript returned by a provider into an ordered tuple of
LyricLine. Lines are expected in playback order and are never re-sorted.
"""
from dataclasses import dataclass
from typing import Tuple

from errors import LyricsParseError, NoLinesFoundError
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LyricLine:
    """One transcript line: becomes active at `timestamp` seconds."""
    timestamp: float
    text: str


LyricSet = Tuple[LyricLine, ...]


def parse_timestamp(ts: str) -> float:
    """
    Convert an LRC timestamp into seconds.

    The rightmost colon-separated group is seconds (fraction allowed), every
    group to its left is worth 60 times the next one: "02:03" -> 123.0,
    "01:02:03.4" -> 3723.4.

    Raises:
        LyricsParseError: if any group is not a number
    """
    parts = ts.split(":")
    seconds = 0.0
    for distance, part in enumerate(reversed(parts)):
        try:
            value = float(part.strip())
        except ValueError:
            raise LyricsParseError(f"invalid timestamp part: {part!r}") from None
        seconds += value * 60 ** distance
    return round(seconds, 3)


def parse_lyrics(raw: str) -> LyricSet:
    """
    Parse `[timestamp]text` lines.

    Lines without a closing bracket or with an unreadable timestamp (metadata
    tags such as `[ar:Artist]` included) are dropped.

    Raises:
        NoLinesFoundError: if no timed line survived
    """
    lines = []
    for line in (raw or "").splitlines():
        if not line.strip():
            continue

        stamp, sep, text = line.partition("]")
        if not sep:
            continue

        try:
            timestamp = parse_timestamp(stamp.strip().lstrip("["))
        except LyricsParseError:
            continue

        lines.append(LyricLine(timestamp=timestamp, text=text.strip()))

    if not lines:
        raise NoLinesFoundError("failed to find synced lyrics lines")

    logger.debug(f"Parsed {len(lines)} lyric lines")
    return tuple(lines)


def find_line_index(lines: LyricSet, position: float) -> int:
    """
    Index of the line active at `position`, or -1 before the first line.

    A line becomes active once the position has moved past its timestamp.
    """
    idx = -1
    for i, line in enumerate(lines):
        if position <= line.timestamp:
            break
        idx = i
    return idx
