"""
Lyric synchronization engine.

One wake = one `tick()`: query the player, load lyrics when the track
changes, and emit the payload for the line active right now. `run()` drives
the ticks from three triggers, whichever comes first:

    - the heartbeat timer (fallback polling)
    - a change notification from the playback source
    - the deadline of the next lyric line

The engine state is an immutable EngineState threaded through the ticks, so
`tick()` can be exercised directly in tests without a running loop.
"""
import asyncio
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

from errors import (
    ConnectivityError,
    LyricsNotFoundError,
    LyricsParseError,
    MetadataError,
    PlayerUnavailableError,
)
from lyrics import LyricSet, find_line_index, parse_lyrics
from lyrics_cache import CacheLookup, LyricsCache
from logging_config import get_logger
from providers.base import LyricsProvider
from system_utils.sources.base import (
    PlaybackSource,
    PlaybackState,
    PlaybackStatus,
    SourceCapability,
)
from waybar import EMPTY_PAYLOAD, PayloadBuilder, WaybarPayload

logger = get_logger(__name__)

# line_index value while the position has not reached the first line
PRE_FIRST = -1
# Shortest delay scheduled until the next line (seconds)
MIN_DEADLINE = 0.01
DEFAULT_HEARTBEAT = 0.5
# Lyrics lookups that failed on the network: first retry on the next wake,
# then 5s, 10s, 20s, 40s, capped at 60s
RETRY_BASE = 5.0
RETRY_MAX = 60.0


@dataclass(frozen=True)
class EngineState:
    """
    Everything the engine remembers between two wakes.

    line_index is None until something was emitted for the current track and
    status, PRE_FIRST before the first line, otherwise the active line.
    The *_shown / *_failed flags debounce payloads that must appear only once
    per transition. lyrics_retry_at (engine clock) is set while a lookup that
    failed on the network waits for its next attempt.
    """
    track_id: Optional[str] = None
    status: Optional[PlaybackStatus] = None
    line_index: Optional[int] = None
    lyrics: Optional[LyricSet] = None
    lyrics_unavailable: bool = False
    status_shown: bool = False
    player_available: bool = True
    metadata_failed: bool = False
    lyrics_failures: int = 0
    lyrics_retry_at: Optional[float] = None


class SyncEngine:
    """
    Args:
        source: playback source queried on every wake
        provider: lyrics provider, called on a cache miss
        cache: positive and negative lyric records per track
        sink: object with an `emit(payload)` method (StdoutSink in production)
        builder: payload formatter
        heartbeat_interval: fallback polling interval in seconds
        offset: seconds added to the player position before picking a line
        clock: monotonic clock used for lyrics retry backoff
    """

    def __init__(self, source: PlaybackSource, provider: LyricsProvider, cache: LyricsCache,
                 sink, builder: Optional[PayloadBuilder] = None,
                 heartbeat_interval: float = DEFAULT_HEARTBEAT, offset: float = 0.0,
                 clock: Callable[[], float] = time.monotonic):
        self.source = source
        self.provider = provider
        self.cache = cache
        self.sink = sink
        self.builder = builder or PayloadBuilder()
        self.heartbeat_interval = heartbeat_interval
        self.offset = offset
        self.clock = clock

        # Loop time right after the last position query, anchors the next-line deadline
        self._sampled_at = 0.0
        self._wake = asyncio.Event()
        self._stopping = False

    # ==========================================
    # Single wake
    # ==========================================

    async def tick(self, state: EngineState) -> Tuple[EngineState, Optional[float]]:
        """
        Run one wake against the player.

        Returns:
            (new state, seconds until the next line starts or None)
        """
        try:
            position = await self.source.get_position()
            self._sampled_at = asyncio.get_running_loop().time()
            status = await self.source.get_status()
            metadata = await self.source.get_metadata()
            playback = PlaybackState.from_metadata(metadata, status, position)
        except PlayerUnavailableError as e:
            return self._player_lost(state, e), None
        except MetadataError as e:
            if not state.metadata_failed:
                logger.warning(f"Unusable player metadata: {e}")
            if not self._showing_empty(state):
                self._emit(EMPTY_PAYLOAD)
            return replace(state, player_available=True, metadata_failed=True,
                           status=None, line_index=None, status_shown=False), None

        if not state.player_available:
            logger.info(f"Player is back: {playback.info}")
        state = replace(state, player_available=True, metadata_failed=False)

        track_changed = playback.track_id != state.track_id
        if track_changed:
            logger.info(f"Track changed: {playback.info} ({playback.track_id})")
            state = await self._fetch_lyrics(EngineState(track_id=playback.track_id), playback)

        if playback.status != state.status:
            logger.debug(f"Status changed: {state.status} -> {playback.status}")
            state = replace(state, status=playback.status, line_index=None,
                            lyrics_unavailable=False, status_shown=False)

        if playback.status == PlaybackStatus.STOPPED:
            if not state.status_shown:
                self._emit(EMPTY_PAYLOAD)
            return replace(state, status_shown=True), None

        if playback.status == PlaybackStatus.PAUSED:
            if not state.status_shown:
                self._emit(self.builder.info(playback))
            return replace(state, status_shown=True), None

        if (not track_changed and not state.lyrics and state.lyrics_retry_at is not None
                and self.clock() >= state.lyrics_retry_at):
            state = await self._fetch_lyrics(state, playback)

        if not state.lyrics:
            if not state.lyrics_unavailable:
                self._emit(self.builder.info(playback))
            return replace(state, lyrics_unavailable=True), None

        return self._sync_line(state, playback)

    def _sync_line(self, state: EngineState, playback: PlaybackState) -> Tuple[EngineState, Optional[float]]:
        lyrics = state.lyrics
        position = playback.position + self.offset
        idx = find_line_index(lyrics, position)

        if idx != state.line_index:
            if idx == PRE_FIRST:
                self._emit(self.builder.pre_first(lyrics, playback))
            else:
                self._emit(self.builder.line(lyrics, idx, playback))
            state = replace(state, line_index=idx)

        if idx + 1 < len(lyrics):
            return state, max(lyrics[idx + 1].timestamp - position, MIN_DEADLINE)
        return state, None

    @staticmethod
    def _showing_empty(state: EngineState) -> bool:
        """True when the last payload of this state was already `{}`."""
        return (not state.player_available
                or state.metadata_failed
                or (state.status == PlaybackStatus.STOPPED and state.status_shown))

    def _player_lost(self, state: EngineState, error: Exception) -> EngineState:
        if state.player_available:
            logger.info(f"No player: {error}")
        if not self._showing_empty(state):
            self._emit(EMPTY_PAYLOAD)
        return replace(state, player_available=False, metadata_failed=False,
                       status=None, line_index=None, status_shown=False)

    @staticmethod
    def retry_backoff(failures: int) -> float:
        """Seconds before lookup attempt `failures + 1`."""
        if failures <= 1:
            return 0.0
        return min(RETRY_BASE * (2 ** (failures - 2)), RETRY_MAX)

    async def _fetch_lyrics(self, state: EngineState, playback: PlaybackState) -> EngineState:
        """Load lyrics into `state`, scheduling a retry when the lookup failed on the network."""
        try:
            lyrics = await self._load_lyrics(playback)
        except ConnectivityError as e:
            failures = state.lyrics_failures + 1
            backoff = self.retry_backoff(failures)
            logger.warning(f"Lyrics lookup failed for {playback.info}: {e} "
                           f"(attempt {failures}, retrying in {backoff:.0f}s)")
            return replace(state, lyrics=None, lyrics_failures=failures,
                           lyrics_retry_at=self.clock() + backoff)
        return replace(state, lyrics=lyrics, lyrics_failures=0, lyrics_retry_at=None)

    async def _load_lyrics(self, playback: PlaybackState) -> Optional[LyricSet]:
        """
        Cache first, provider on a miss.

        Only a "not found" answer is cached negatively. Parse failures leave
        the track without lyrics until the next track change.

        Raises:
            ConnectivityError: the provider could not be reached
        """
        identity = playback.track_id
        cached = self.cache.get(identity)
        if cached is CacheLookup.NOT_FOUND:
            return None
        if cached is not CacheLookup.MISS:
            return cached

        try:
            raw = await asyncio.to_thread(
                self.provider.fetch_by_query,
                playback.title,
                playback.artist,
                playback.album or None,
                playback.duration or None,
            )
            lines = parse_lyrics(raw)
        except LyricsNotFoundError as e:
            logger.info(f"No lyrics for {playback.info}: {e}")
            self.cache.put_not_found(identity)
            return None
        except LyricsParseError as e:
            logger.warning(f"Unusable lyrics for {playback.info}: {e}")
            return None

        self.cache.put(identity, lines)
        return lines

    def _emit(self, payload: WaybarPayload) -> None:
        self.sink.emit(payload)

    # ==========================================
    # Loop
    # ==========================================

    def stop(self) -> None:
        """Ask `run()` to return after the current wake."""
        self._stopping = True
        self._wake.set()

    def notify(self) -> None:
        """Wake the loop now (change notification)."""
        self._wake.set()

    async def _follow_source(self) -> None:
        try:
            async for _ in self.source.subscribe():
                self.notify()
        except Exception as e:
            logger.warning(f"Change notifications stopped: {e}")

    async def run(self, state: Optional[EngineState] = None) -> EngineState:
        """
        Tick until `stop()` is called or stdout goes away.

        Returns:
            the last engine state
        """
        loop = asyncio.get_running_loop()
        state = state or EngineState()
        self._stopping = False

        follower = None
        if self.source.capabilities() & SourceCapability.NOTIFICATIONS:
            follower = asyncio.create_task(self._follow_source())

        heartbeat_at = loop.time()
        deadline: Optional[float] = None
        failing = False

        try:
            while not self._stopping:
                due = heartbeat_at if deadline is None else min(heartbeat_at, deadline)
                if not self._wake.is_set() and loop.time() < due:
                    try:
                        await asyncio.wait_for(self._wake.wait(), timeout=due - loop.time())
                    except asyncio.TimeoutError:
                        pass
                    if self._stopping:
                        break
                    if not self._wake.is_set() and loop.time() < due:
                        # Timer fired early, nothing is due yet
                        continue
                self._wake.clear()

                try:
                    state, delay = await self.tick(state)
                    failing = False
                except BrokenPipeError:
                    logger.info("Output closed, stopping")
                    break
                except Exception as e:
                    logger.error(f"Unexpected error during sync: {e}", exc_info=True)
                    if not failing:
                        self._emit(EMPTY_PAYLOAD)
                    failing = True
                    state, delay = EngineState(), None

                heartbeat_at = loop.time() + self.heartbeat_interval
                deadline = self._sampled_at + delay if delay is not None else None
        finally:
            if follower is not None:
                follower.cancel()
                try:
                    await follower
                except asyncio.CancelledError:
                    pass

        logger.debug("Sync engine stopped")
        return state
