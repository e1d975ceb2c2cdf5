"""
System Utils Package

    helpers.py    - Track id normalization, instance lock, waybar signalling
    sources/      - Playback sources (MPRIS via playerctl)
"""

from .helpers import (
    _normalize_track_id,
    InstanceLock,
    signal_waybar,
    WAYBAR_SIGNAL,
)

__all__ = [
    '_normalize_track_id',
    'InstanceLock',
    'signal_waybar',
    'WAYBAR_SIGNAL',
]
