"""
Helper functions for system_utils package.
Process-level utilities with minimal dependencies.
"""
from __future__ import annotations
import fcntl
import os
import signal
import subprocess
from pathlib import Path
from typing import IO, Optional, Union

from errors import AlreadyRunningError
from logging_config import get_logger

logger = get_logger(__name__)

# waybar listens for SIGRTMIN+N on custom modules declaring "signal": N
WAYBAR_SIGNAL = 4


def _normalize_track_id(artist: str, title: str) -> str:
    """
    Generates a consistent, source-agnostic track ID.
    Used when the player does not expose a usable mpris:trackid.
    """
    if not artist:
        artist = ""
    if not title:
        title = ""

    # Simple alphanumeric normalization
    norm_artist = "".join(c for c in artist.lower() if c.isalnum())
    norm_title = "".join(c for c in title.lower() if c.isalnum())
    return f"{norm_artist}_{norm_title}"


class InstanceLock:
    """
    Non-blocking advisory lock shared by every instance.

    Usage:
        with InstanceLock(LOCK_FILE):
            ...

    Raises AlreadyRunningError on enter if another process holds the lock.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._file: Optional[IO] = None

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        lock_file = open(self.path, "a+")
        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            lock_file.close()
            raise AlreadyRunningError(f"lock {self.path} is held by another instance") from None
        except OSError:
            lock_file.close()
            raise
        self._file = lock_file
        logger.debug(f"Acquired instance lock {self.path}")

    def release(self) -> None:
        if self._file is None:
            return
        try:
            fcntl.flock(self._file.fileno(), fcntl.LOCK_UN)
        finally:
            self._file.close()
            self._file = None
        logger.debug(f"Released instance lock {self.path}")

    @property
    def locked(self) -> bool:
        return self._file is not None

    def __enter__(self) -> "InstanceLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def signal_waybar(offset: int = WAYBAR_SIGNAL, process_name: str = "^waybar$") -> bool:
    """
    Ask running waybar instances to refresh the module (SIGRTMIN+offset).

    Returns:
        True if at least one process was signalled
    """
    try:
        result = subprocess.run(
            ["pgrep", process_name],
            capture_output=True,
            text=True,
            timeout=2
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"pgrep failed: {e}")
        return False

    signalled = False
    for pid_str in result.stdout.split():
        try:
            os.kill(int(pid_str), signal.SIGRTMIN + offset)
            signalled = True
        except ValueError:
            logger.debug(f"Invalid PID from pgrep: {pid_str!r}")
        except OSError as e:
            logger.debug(f"Failed to signal PID {pid_str}: {e}")

    if not signalled:
        logger.debug(f"No processes matching {process_name!r} to signal")
    return signalled
