"""
On-disk lyrics cache keyed by track identity.

Two records per track:
    <identity>.csv       one "<milliseconds>,<text>" line per lyric line
    <identity>.notfound  empty marker for a confirmed "no lyrics" answer

Records never expire; `invalidate()` removes them.
"""
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Union

from errors import CacheIOError
from lyrics import LyricLine, LyricSet
from logging_config import get_logger

logger = get_logger(__name__)

LYRICS_SUFFIX = ".csv"
NOT_FOUND_SUFFIX = ".notfound"


class CacheLookup(Enum):
    MISS = "miss"
    NOT_FOUND = "not_found"


def sanitize_identity(identity: str) -> str:
    """Make a track identity safe to use as a file name."""
    safe = (identity or "").strip().replace("/", "-").replace("\\", "-")
    if safe in ("", ".", ".."):
        return "unknown"
    return safe


class LyricsCache:
    def __init__(self, cache_dir: Union[str, Path]):
        self.cache_dir = Path(cache_dir)

    def _lyrics_path(self, identity: str) -> Path:
        return self.cache_dir / f"{sanitize_identity(identity)}{LYRICS_SUFFIX}"

    def _marker_path(self, identity: str) -> Path:
        return self.cache_dir / f"{sanitize_identity(identity)}{NOT_FOUND_SUFFIX}"

    def get(self, identity: str) -> Union[LyricSet, CacheLookup]:
        """
        Look up a track.

        Returns:
            CacheLookup.NOT_FOUND if the track is negatively cached,
            the cached lines if a usable record exists,
            CacheLookup.MISS otherwise (missing, unreadable or empty record).
        """
        if self._marker_path(identity).exists():
            logger.debug(f"Negative cache hit for {identity}")
            return CacheLookup.NOT_FOUND

        path = self._lyrics_path(identity)
        if not path.exists():
            return CacheLookup.MISS

        try:
            lines = self._read(path)
        except CacheIOError as e:
            logger.warning(f"Ignoring cached lyrics for {identity}: {e}")
            return CacheLookup.MISS

        if not lines:
            logger.info(f"Cached lyrics for {identity} are empty")
            return CacheLookup.MISS

        logger.debug(f"Loaded {len(lines)} cached lines for {identity}")
        return lines

    def put(self, identity: str, lines: LyricSet) -> bool:
        """Store lyrics for a track. Failures are logged, never raised."""
        path = self._lyrics_path(identity)
        temp_path = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

            # Atomic write: temp file in the same directory, then replace
            fd, temp_path = tempfile.mkstemp(dir=self.cache_dir, suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                for line in lines:
                    f.write(f"{round(line.timestamp * 1000)},{line.text}\n")
            os.replace(temp_path, path)
            temp_path = None
        except OSError as e:
            logger.error(f"Failed to cache lyrics for {identity}: {e}")
            return False
        finally:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass

        logger.info(f"Cached {len(lines)} lyric lines for {identity}")
        return True

    def put_not_found(self, identity: str) -> bool:
        """Record that the provider has no lyrics for this track."""
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._marker_path(identity).touch()
        except OSError as e:
            logger.error(f"Failed to write not-found marker for {identity}: {e}")
            return False

        logger.info(f"Marked {identity} as having no lyrics")
        return True

    def invalidate(self, identity: str) -> bool:
        """
        Remove both records for a track.

        Returns:
            True if something was deleted
        """
        removed = False
        for path in (self._lyrics_path(identity), self._marker_path(identity)):
            try:
                path.unlink()
                removed = True
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.error(f"Failed to delete {path}: {e}")

        if removed:
            logger.info(f"Cleared cached lyrics for {identity}")
        return removed

    @staticmethod
    def _read(path: Path) -> LyricSet:
        lines = []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                for raw in f:
                    stamp, sep, text = raw.rstrip("\n").partition(",")
                    if not sep:
                        continue  # Skip invalid lines
                    try:
                        millis = int(stamp)
                    except ValueError:
                        raise CacheIOError(f"invalid timestamp {stamp!r} in {path.name}") from None
                    lines.append(LyricLine(timestamp=millis / 1000, text=text))
        except (OSError, UnicodeDecodeError) as e:
            raise CacheIOError(f"cannot read {path}: {e}") from e
        return tuple(lines)
