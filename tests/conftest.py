"""Pytest configuration and shared fixtures"""
import platform
from typing import Any, Dict, List

import pytest

from errors import PlayerUnavailableError
from lyrics_cache import LyricsCache
from sync_engine import SyncEngine
from system_utils.sources.base import (
    PlaybackSource,
    PlaybackStatus,
    SourceCapability,
    SourceConfig,
)
from waybar import PayloadBuilder

SAMPLE_LRC = "[00:01.00]first line\n[00:03.00]second line\n[00:05.00]third line\n"


def make_metadata(track: str = "1", **overrides) -> Dict[str, Any]:
    metadata = {
        "track_id": f"/org/mpris/MediaPlayer2/track/{track}",
        "artist": "Artist",
        "title": "Song",
        "album": "Album",
        "length": 200_000_000,
    }
    metadata.update(overrides)
    return metadata


class FakeSource(PlaybackSource):
    """Scriptable player: tests set position/status/metadata or an error."""

    def __init__(self):
        super().__init__()
        self.position = 0.0
        self.status = PlaybackStatus.PLAYING
        self.metadata = make_metadata()
        self.error = None
        self.toggles = 0

    @classmethod
    def get_config(cls) -> SourceConfig:
        return SourceConfig(name="fake", display_name="Fake", platforms=[platform.system()])

    @classmethod
    def capabilities(cls) -> SourceCapability:
        return SourceCapability.METADATA | SourceCapability.POSITION

    def _check(self):
        if self.error is not None:
            raise self.error

    async def get_position(self) -> float:
        self._check()
        return self.position

    async def get_status(self) -> PlaybackStatus:
        self._check()
        return self.status

    async def get_metadata(self) -> Dict[str, Any]:
        self._check()
        return dict(self.metadata)

    async def play_pause(self) -> None:
        self._check()
        self.toggles += 1


class FakeProvider:
    """Records fetch_by_query calls; returns `result` or raises `error`."""

    def __init__(self, result: str = SAMPLE_LRC):
        self.result = result
        self.error = None
        self.calls: List[tuple] = []
        self.closed = False

    def fetch_by_query(self, track, artist, album=None, duration=None):
        self.calls.append((track, artist, album, duration))
        if self.error is not None:
            raise self.error
        return self.result

    def close(self):
        self.closed = True


class RecordingSink:
    def __init__(self):
        self.payloads = []

    def emit(self, payload):
        self.payloads.append(payload)

    @property
    def dicts(self):
        return [p.to_dict() for p in self.payloads]


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def cache(tmp_path):
    return LyricsCache(tmp_path / "cache")


@pytest.fixture
def engine(source, provider, cache, sink):
    return SyncEngine(
        source=source,
        provider=provider,
        cache=cache,
        sink=sink,
        builder=PayloadBuilder(max_length=100, tooltip_lines=8, tooltip_color="#cccccc"),
        heartbeat_interval=0.5,
    )


@pytest.fixture
def unavailable():
    return PlayerUnavailableError("No players found")
