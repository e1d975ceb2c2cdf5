"""LRCLIB Provider for synchronized lyrics"""

from typing import Optional, Dict, Any

import requests

from config import get_provider_config, USER_AGENT
from errors import LyricsNotFoundError, LyricsParseError, ProviderConnectionError
from logging_config import get_logger
from .base import LyricsProvider

logger = get_logger(__name__)


class LRCLIBProvider(LyricsProvider):
    # Define constants for the API
    BASE_URL = "https://lrclib.net/api"

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        """Initialize LRCLIB provider with config settings"""
        super().__init__(provider_name="lrclib", timeout=timeout)

        config = get_provider_config("lrclib")
        self.BASE_URL = (base_url or config.get("base_url") or self.BASE_URL).rstrip("/")
        self.session.headers.update({"Lrclib-Client": USER_AGENT})

    @staticmethod
    def build_params(track: str, artist: str, album: Optional[str] = None,
                     duration: Optional[float] = None) -> Dict[str, Any]:
        """Query string for /api/get. Album and duration are only sent when known."""
        params: Dict[str, Any] = {
            "track_name": track.strip(),
            "artist_name": artist.strip(),
        }
        if album and album.strip():
            params["album_name"] = album.strip()
        if duration and duration > 0:
            params["duration"] = int(round(duration))
        return params

    def fetch_by_query(self, track: str, artist: str,
                       album: Optional[str] = None, duration: Optional[float] = None) -> str:
        """
        Get synced lyrics using the LRCLIB /api/get endpoint (exact signature match).

        Returns:
            str: the `syncedLyrics` field, empty when the match only has plain lyrics
        """
        params = self.build_params(track, artist, album, duration)
        logger.info(f"LRCLib - Fetching lyrics with params: {params}")

        try:
            resp = self.session.get(f"{self.BASE_URL}/get", params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderConnectionError(f"LRCLib request failed: {e}") from e

        if resp.status_code == 404:
            logger.info(f"LRCLib - 404 Not Found for: {artist} - {track}")
            raise LyricsNotFoundError(f"LRCLib has no lyrics for {artist} - {track}")
        if resp.status_code != 200:
            raise ProviderConnectionError(f"LRCLib returned unexpected HTTP status {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise LyricsParseError(f"LRCLib returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise LyricsParseError(f"LRCLib returned unexpected payload type {type(data).__name__}")

        synced = data.get("syncedLyrics") or ""
        if not synced:
            state = "instrumental" if data.get("instrumental") else "plain lyrics only"
            logger.info(f"LRCLib - No synced lyrics for: {artist} - {track} ({state})")
        return synced
