"""
Playback source registry.

Usage:
    from system_utils.sources import get_source

    source = get_source("linux", player="spotify")
"""
from typing import Dict, Optional, Type

from logging_config import get_logger
from .base import (
    PlaybackSource,
    PlaybackState,
    PlaybackStatus,
    SourceCapability,
    SourceConfig,
    derive_track_identity,
)
from .linux import LinuxSource

logger = get_logger(__name__)

# When adding a new source, add it here.
_registry: Dict[str, Type[PlaybackSource]] = {
    LinuxSource.get_config().name: LinuxSource,
}


def get_source(name: str, **kwargs) -> Optional[PlaybackSource]:
    """
    Create a source instance by name.

    Args:
        name: Source name (e.g., "linux")
        **kwargs: Passed to the source constructor

    Returns:
        Source instance, or None if the name is unknown
    """
    cls = _registry.get(name)
    if cls is None:
        logger.error(f"Unknown playback source: {name}")
        return None

    source = cls(**kwargs)
    if not source.is_available():
        # Still usable: every query fails softly until the dependency appears
        logger.warning(f"Playback source {name} is not available on this system")
    return source


__all__ = [
    'PlaybackSource',
    'PlaybackState',
    'PlaybackStatus',
    'SourceCapability',
    'SourceConfig',
    'LinuxSource',
    'derive_track_identity',
    'get_source',
]
