"""
Linux MPRIS playback source via playerctl.

This source follows any MPRIS-compatible media player on Linux, including
Spotify, VLC, Firefox, mpv (with mpv-mpris) and many others.

Requirements:
- Linux operating system
- playerctl installed: sudo apt install playerctl

Features:
- Position, status and metadata queries
- Play/pause toggle
- Change notifications through `playerctl --follow`
"""
import asyncio
import subprocess
from typing import Any, AsyncIterator, Dict, List, Optional

from errors import PlayerUnavailableError
from logging_config import get_logger
from .base import PlaybackSource, PlaybackStatus, SourceCapability, SourceConfig

logger = get_logger(__name__)

# One field per line: track id, artist, title, album, length (microseconds)
METADATA_FORMAT = "{{mpris:trackid}}\n{{xesam:artist}}\n{{xesam:title}}\n{{xesam:album}}\n{{mpris:length}}"
# Printed by the follower on every status or metadata change
FOLLOW_FORMAT = "{{status}} {{mpris:trackid}}"
FOLLOW_RESTART_DELAY = 2.0


class LinuxSource(PlaybackSource):
    """
    Linux MPRIS integration via playerctl.

    Args:
        player: MPRIS player name passed to `playerctl --player`
                (None or "" lets playerctl pick the active player)
        timeout: seconds before a playerctl call is abandoned
    """

    def __init__(self, player: Optional[str] = None, timeout: float = 2.0):
        super().__init__()
        self.player = player or None
        self.timeout = timeout
        self._playerctl_available: Optional[bool] = None

    @classmethod
    def get_config(cls) -> SourceConfig:
        return SourceConfig(
            name="linux",
            display_name="Linux (MPRIS)",
            platforms=["Linux"],
        )

    @classmethod
    def capabilities(cls) -> SourceCapability:
        return (
            SourceCapability.METADATA |
            SourceCapability.POSITION |
            SourceCapability.PLAYBACK_CONTROL |
            SourceCapability.NOTIFICATIONS
        )

    def is_available(self) -> bool:
        """
        Check if we're on Linux and playerctl is installed.

        Caches the result to avoid repeated subprocess calls.
        """
        if not super().is_available():
            return False

        if self._playerctl_available is None:
            try:
                result = subprocess.run(
                    ["playerctl", "--version"],
                    capture_output=True,
                    timeout=self.timeout
                )
                self._playerctl_available = result.returncode == 0
                if self._playerctl_available:
                    logger.debug(f"playerctl found: {result.stdout.decode().strip()}")
                else:
                    logger.warning("playerctl not available (command failed)")
            except FileNotFoundError:
                self._playerctl_available = False
                logger.warning("playerctl not installed. Install with: sudo apt install playerctl")
            except subprocess.TimeoutExpired:
                self._playerctl_available = False
                logger.warning("playerctl check timed out")

        return self._playerctl_available

    def _command(self, *args: str) -> List[str]:
        command = ["playerctl"]
        if self.player:
            command.append(f"--player={self.player}")
        command.extend(args)
        return command

    def _run_playerctl(self, *args: str) -> str:
        """
        Blocking playerctl call (run in executor).

        Raises:
            PlayerUnavailableError: playerctl missing, timed out, or no player answered
        """
        try:
            result = subprocess.run(
                self._command(*args),
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except FileNotFoundError:
            self._playerctl_available = False
            raise PlayerUnavailableError("playerctl is not installed") from None
        except subprocess.TimeoutExpired:
            raise PlayerUnavailableError(f"playerctl {args[0]} timed out") from None

        if result.returncode != 0:
            message = result.stderr.strip() or f"exit status {result.returncode}"
            raise PlayerUnavailableError(f"playerctl {args[0]} failed: {message}")
        return result.stdout

    async def _call(self, *args: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self._run_playerctl(*args))

    async def get_position(self) -> float:
        output = (await self._call("position")).strip()
        try:
            return float(output)
        except ValueError:
            raise PlayerUnavailableError(f"unexpected position output: {output!r}") from None

    async def get_status(self) -> PlaybackStatus:
        return PlaybackStatus.parse(await self._call("status"))

    async def get_metadata(self) -> Dict[str, Any]:
        output = await self._call("metadata", "--format", METADATA_FORMAT)
        fields = output.rstrip("\n").split("\n")
        fields += [""] * (5 - len(fields))
        track_id, artist, title, album, length = fields[:5]

        metadata: Dict[str, Any] = {
            "track_id": track_id,
            "artist": artist,
            "title": title,
            "album": album,
            "length": 0,
        }
        if length.strip():
            try:
                metadata["length"] = int(length)
            except ValueError:
                # Left for PlaybackState.from_metadata to reject
                metadata["length"] = length
        return metadata

    async def play_pause(self) -> None:
        await self._call("play-pause")

    async def subscribe(self) -> AsyncIterator[None]:
        """
        Follow status and metadata changes.

        Each line printed by `playerctl --follow` becomes one notification.
        The follower is restarted if it exits (player closed, bus restarted).
        """
        while True:
            try:
                process = await asyncio.create_subprocess_exec(
                    *self._command("--follow", "metadata", "--format", FOLLOW_FORMAT),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            except FileNotFoundError:
                logger.warning("playerctl not installed, change notifications disabled")
                return

            try:
                async for line in process.stdout:
                    logger.debug(f"Player update: {line.decode(errors='replace').strip()}")
                    yield
            finally:
                if process.returncode is None:
                    try:
                        process.kill()
                    except ProcessLookupError:
                        pass
                    await process.wait()

            logger.debug(f"playerctl follower exited, restarting in {FOLLOW_RESTART_DELAY}s")
            await asyncio.sleep(FOLLOW_RESTART_DELAY)
