"""
Base class for playback sources.

A playback source answers four questions about one media player (position,
metadata, status, change notifications) and can toggle play/pause. The sync
engine only talks to this interface, so a new backend is a new subclass:

1. Create a new file in system_utils/sources/
2. Subclass PlaybackSource
3. Implement get_config(), capabilities() and the abstract query methods
4. Register it in system_utils/sources/__init__.py
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from typing import Any, AsyncIterator, Dict, List, Optional
import platform

from errors import MetadataError
from ..helpers import _normalize_track_id


class SourceCapability(Flag):
    """
    Capabilities a source can declare.

    Use bitwise OR to combine: METADATA | PLAYBACK_CONTROL
    Check with bitwise AND: if source.capabilities() & SourceCapability.NOTIFICATIONS
    """
    NONE = 0
    METADATA = auto()           # Can fetch track metadata
    POSITION = auto()           # Reports the playback position
    PLAYBACK_CONTROL = auto()   # Can play/pause
    NOTIFICATIONS = auto()      # Pushes change notifications


@dataclass
class SourceConfig:
    """Static configuration for a playback source."""
    name: str                              # Internal ID (e.g., "linux")
    display_name: str                      # Human-readable name (e.g., "Linux (MPRIS)")
    platforms: List[str] = field(default_factory=lambda: ["Linux"])


class PlaybackStatus(Enum):
    PLAYING = "Playing"
    PAUSED = "Paused"
    STOPPED = "Stopped"

    @classmethod
    def parse(cls, value: str) -> "PlaybackStatus":
        """Map an MPRIS PlaybackStatus string, case-insensitively."""
        for status in cls:
            if status.value.lower() == (value or "").strip().lower():
                return status
        raise MetadataError(f"unknown playback status: {value!r}")


def derive_track_identity(track_id: str, artist: str = "", title: str = "") -> str:
    """
    Cache key for a track.

    Uses the last path segment of `mpris:trackid`. Players that do not expose
    a real track id ("/org/mpris/MediaPlayer2/TrackList/NoTrack") fall back to
    a normalized artist/title key.
    """
    base = (track_id or "").strip().rstrip("/").rsplit("/", 1)[-1]
    if not base or base == "NoTrack":
        return _normalize_track_id(artist, title)
    return base.replace("/", "-")


@dataclass(frozen=True)
class PlaybackState:
    """Typed snapshot of the player, rebuilt on every wake."""
    track_id: str
    artist: str
    title: str
    album: str
    duration: float           # seconds, 0 when unknown
    position: float           # seconds
    status: PlaybackStatus

    @classmethod
    def from_metadata(cls, metadata: Dict[str, Any], status: PlaybackStatus,
                      position: float) -> "PlaybackState":
        """
        Validate raw player metadata once, at the boundary.

        Expected keys: track_id, artist, title, album, length (microseconds).
        Artist may be a list of names, only the first one is used.

        Raises:
            MetadataError: on missing or mistyped required fields
        """
        if not isinstance(metadata, dict):
            raise MetadataError(f"metadata must be a mapping, got {type(metadata).__name__}")

        artist = metadata.get("artist")
        if isinstance(artist, (list, tuple)):
            artist = artist[0] if artist else ""
        title = metadata.get("title")
        album = metadata.get("album") or ""

        if not isinstance(artist, str) or not artist.strip():
            raise MetadataError("missing artist")
        if not isinstance(title, str) or not title.strip():
            raise MetadataError("missing title")
        if not isinstance(album, str):
            raise MetadataError(f"album must be a string, got {type(album).__name__}")

        track_id = metadata.get("track_id") or ""
        if not isinstance(track_id, str):
            raise MetadataError(f"track id must be a string, got {type(track_id).__name__}")

        length = metadata.get("length") or 0
        try:
            duration = max(int(length), 0) / 1_000_000
        except (TypeError, ValueError):
            raise MetadataError(f"invalid track length: {length!r}") from None

        return cls(
            track_id=derive_track_identity(track_id, artist, title),
            artist=artist.strip(),
            title=title.strip(),
            album=album.strip(),
            duration=duration,
            position=max(float(position), 0.0),
            status=status,
        )

    @property
    def percentage(self) -> int:
        """Playback progress, 0-100."""
        if self.duration <= 0:
            return 0
        return max(0, min(100, int(100 * self.position / self.duration)))

    @property
    def info(self) -> str:
        return f"{self.artist} - {self.title}"


class PlaybackSource(ABC):
    """
    Abstract base class for playback sources.

    Required methods:
        get_config() - Return static SourceConfig
        capabilities() - Return SourceCapability flags
        get_position() - Playback position in seconds
        get_metadata() - Raw track metadata
        get_status() - PlaybackStatus

    Optional methods:
        subscribe() - Async iterator yielding once per change notification
        play_pause() - Toggle playback

    Every query raises PlayerUnavailableError when the player cannot be reached.
    """

    def __init__(self):
        self._config = self.get_config()

    @classmethod
    @abstractmethod
    def get_config(cls) -> SourceConfig:
        pass

    @classmethod
    @abstractmethod
    def capabilities(cls) -> SourceCapability:
        pass

    @property
    def name(self) -> str:
        """Source name (convenience property)."""
        return self._config.name

    def is_available(self) -> bool:
        """
        Check if this source can run here.

        Default implementation checks if current platform is in config.platforms.
        """
        return platform.system() in self._config.platforms

    @abstractmethod
    async def get_position(self) -> float:
        """Seconds into the current track."""
        pass

    @abstractmethod
    async def get_metadata(self) -> Dict[str, Any]:
        """
        Raw metadata of the current track.

        Keys: track_id, artist, title, album, length (microseconds).
        Values are passed through untouched; PlaybackState.from_metadata validates them.
        """
        pass

    @abstractmethod
    async def get_status(self) -> PlaybackStatus:
        pass

    async def subscribe(self) -> AsyncIterator[None]:
        """
        Yield once per change notification.

        Notifications carry no payload: the engine always re-queries the player.
        Sources without NOTIFICATIONS never yield.
        """
        return
        yield  # pragma: no cover

    async def play_pause(self) -> None:
        """Toggle play/pause. Raises PlayerUnavailableError on failure."""
        raise NotImplementedError(f"{self.name} does not support playback control")

    async def get_playback_state(self) -> PlaybackState:
        """Query position, status and metadata and build a PlaybackState."""
        position = await self.get_position()
        status = await self.get_status()
        metadata = await self.get_metadata()
        return PlaybackState.from_metadata(metadata, status, position)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name='{self.name}'>"
