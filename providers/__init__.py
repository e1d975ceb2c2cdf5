"""
Lyrics Providers Package
This package contains providers for fetching synchronized lyrics.
"""
from .base import LyricsProvider
from .lrclib import LRCLIBProvider

__all__ = [
    'LyricsProvider',
    'LRCLIBProvider'
]
