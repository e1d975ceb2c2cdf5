"""
synclyrics-bar entry point.

Runs the lyric sync loop for a waybar custom module, or one of the one-shot
commands (--init, --toggle, --clear-cache).
"""
import argparse
import asyncio
import signal
import sys
from typing import NoReturn, Optional, Sequence

from config import CACHE_DIR, DEBUG, LOCK_FILE, LYRICS, PLAYER, VERSION
from errors import AlreadyRunningError, MetadataError, PlayerUnavailableError
from logging_config import setup_logging, get_logger
from lyrics_cache import LyricsCache
from providers import LRCLIBProvider
from sync_engine import SyncEngine
from system_utils import InstanceLock, signal_waybar, WAYBAR_SIGNAL
from system_utils.sources import PlaybackSource, get_source
from waybar import PayloadBuilder, StdoutSink, LYRIC, MUSIC, PAUSED, PLAYING

logger = get_logger(__name__)

MIN_TOOLTIP_LINES = 4

WAYBAR_SNIPPET = f"""\
"custom/lyrics": {{
    "signal": {WAYBAR_SIGNAL},
    "return-type": "json",
    "format": "{{icon}} {{0}}",
    "format-icons": {{
        "{PLAYING}": "",
        "{PAUSED}": "",
        "{LYRIC}": "",
        "{MUSIC}": "󰝚",
    }},
    "exec-if": "which synclyrics-bar",
    "exec": "synclyrics-bar --max-length 100",
    "on-click": "synclyrics-bar --toggle",
}},"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="synclyrics-bar",
        description="Synced lyrics of the current MPRIS player for waybar",
    )
    commands = parser.add_mutually_exclusive_group()
    commands.add_argument('--init', action='store_true',
                          help='Print the waybar module config and exit')
    commands.add_argument('--toggle', action='store_true',
                          help='Play if paused, pause if playing')
    commands.add_argument('--clear-cache', action='store_true',
                          help='Forget the cached lyrics of the current track')
    parser.add_argument('--version', action='version', version=f"%(prog)s {VERSION}")

    parser.add_argument('--max-length', type=int, default=LYRICS["max_length"],
                        help='Truncate the lyric line to this many characters')
    parser.add_argument('--tooltip-lines', type=int, default=LYRICS["tooltip_lines"],
                        help=f'Lines listed in the tooltip before the first lyric (min {MIN_TOOLTIP_LINES})')
    parser.add_argument('--tooltip-color', default=LYRICS["tooltip_color"],
                        help='Color of the inactive tooltip lines')
    parser.add_argument('--player', default=PLAYER["name"] or None,
                        help='MPRIS player to follow (default: playerctl picks one)')
    parser.add_argument('--interval', type=float, default=LYRICS["heartbeat_interval"],
                        help='Fallback polling interval in seconds')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log debug output to stderr')
    return parser


async def toggle(source: PlaybackSource) -> int:
    """Toggle playback and ask waybar to refresh the module."""
    try:
        await source.play_pause()
    except PlayerUnavailableError as e:
        logger.error(f"Cannot toggle playback: {e}")
        return 1
    signal_waybar()
    return 0


async def clear_cache(source: PlaybackSource, cache: LyricsCache) -> int:
    """Drop both cache records of the track that is playing now."""
    try:
        playback = await source.get_playback_state()
    except (PlayerUnavailableError, MetadataError) as e:
        logger.error(f"Cannot identify the current track: {e}")
        return 1

    if cache.invalidate(playback.track_id):
        print(f"Cleared cached lyrics for {playback.info}")
    else:
        print(f"No cached lyrics for {playback.info}")
    return 0


async def follow(engine: SyncEngine) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, engine.stop)

    try:
        await engine.run()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        engine.provider.close()


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.init:
        print("Put the following object in your waybar config.")
        print(WAYBAR_SNIPPET)
        return 0

    if args.tooltip_lines < MIN_TOOLTIP_LINES:
        print(f"--tooltip-lines must be at least {MIN_TOOLTIP_LINES}", file=sys.stderr)
        return 1
    if args.interval <= 0:
        print("--interval must be positive", file=sys.stderr)
        return 1

    setup_logging(
        console_level="DEBUG" if args.verbose else DEBUG.get("log_level", "WARNING"),
        file_level=DEBUG.get("file_log_level", "INFO"),
        console=args.verbose or DEBUG.get("log_to_console", True),
        log_file=DEBUG.get("log_file") or None,
        max_bytes=DEBUG["log_rotation"]["max_bytes"],
        backup_count=DEBUG["log_rotation"]["backup_count"],
        log_providers=DEBUG.get("log_providers", True)
    )

    source = get_source("linux", player=args.player, timeout=PLAYER["timeout"])

    if args.toggle:
        return asyncio.run(toggle(source))
    if args.clear_cache:
        return asyncio.run(clear_cache(source, LyricsCache(CACHE_DIR)))

    try:
        with InstanceLock(LOCK_FILE):
            engine = SyncEngine(
                source=source,
                provider=LRCLIBProvider(),
                cache=LyricsCache(CACHE_DIR),
                sink=StdoutSink(),
                builder=PayloadBuilder(
                    max_length=args.max_length,
                    tooltip_lines=args.tooltip_lines,
                    tooltip_color=args.tooltip_color,
                ),
                heartbeat_interval=args.interval,
                offset=LYRICS["offset"],
            )
            logger.info(f"Starting synclyrics-bar {VERSION} (player: {args.player or 'auto'})")
            asyncio.run(follow(engine))
    except AlreadyRunningError:
        # waybar restarts the module on reload, the running instance keeps serving
        logger.debug("Another instance is already running, exiting")
        return 0
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt caught in main...")
    return 0


def main() -> NoReturn:
    sys.exit(run())


if __name__ == "__main__":
    main()
