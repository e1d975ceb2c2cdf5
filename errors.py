"""Exceptions shared by the player sources, lyrics providers, cache and sync engine."""


class SyncLyricsError(Exception):
    """Base exception for synclyrics-bar."""
    pass


class ConnectivityError(SyncLyricsError):
    """The media player or the lyrics service could not be reached."""
    pass


class PlayerUnavailableError(ConnectivityError):
    """No MPRIS player answered (closed, not started, or playerctl missing)."""
    pass


class ProviderConnectionError(ConnectivityError):
    """Network failure or unexpected HTTP status from a lyrics provider."""
    pass


class LyricsNotFoundError(SyncLyricsError):
    """The provider explicitly reported that it has no lyrics for the track."""
    pass


class LyricsParseError(SyncLyricsError, ValueError):
    """Malformed timestamp or provider payload."""
    pass


class NoLinesFoundError(LyricsParseError):
    """A transcript parsed without producing a single timed line."""
    pass


class CacheIOError(SyncLyricsError):
    """Reading or writing a cache record failed."""
    pass


class MetadataError(SyncLyricsError):
    """Player metadata is missing a required field or has the wrong type."""
    pass


class AlreadyRunningError(SyncLyricsError):
    """Another instance holds the advisory lock."""
    pass
