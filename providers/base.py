"""
Base Provider Class
All lyrics providers must inherit from this base class.
"""

from abc import ABC, abstractmethod
from typing import Optional

import requests

from config import get_provider_config, USER_AGENT
from logging_config import get_logger

logger = get_logger(__name__)


class LyricsProvider(ABC):
    """Base class for all lyrics providers."""

    def __init__(self, provider_name: str, timeout: Optional[float] = None):
        """
        Initialize the provider using configuration from config.py

        Args:
            provider_name (str): Name of the provider (must match config key)
            timeout (float, optional): Request timeout override in seconds
        """
        config = get_provider_config(provider_name.lower())

        self.name = provider_name
        self.timeout = timeout if timeout is not None else config.get('timeout', 10)

        # Initialize session
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

        logger.debug(f"Initialized {self.name} provider (timeout: {self.timeout}s)")

    @abstractmethod
    def fetch_by_query(self, track: str, artist: str,
                       album: Optional[str] = None, duration: Optional[float] = None) -> str:
        """
        Get the raw synchronized transcript for a song.

        Args:
            track (str): Song title
            artist (str): Artist name
            album (str, optional): Album name for better matching
            duration (float, optional): Track duration in seconds

        Returns:
            str: Raw `[mm:ss.xx]text` transcript (may be empty if the match has no synced lyrics)

        Raises:
            LyricsNotFoundError: the service reports no match
            ProviderConnectionError: network failure or unexpected status
            LyricsParseError: the response body could not be decoded
        """
        pass

    def close(self) -> None:
        self.session.close()

    def __str__(self) -> str:
        """String representation of the provider"""
        return f"{self.name} Provider"

    def __repr__(self) -> str:
        """Detailed representation of the provider"""
        return f"<{self.__class__.__name__} name='{self.name}' timeout={self.timeout}>"
