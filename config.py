"""
synclyrics-bar Configuration Loader
Loads values from settings.json via the settings manager.
"""
import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv

from settings import settings, CONFIG_DIR

# ==========================================
# Version
# ==========================================
VERSION = "0.8.0"
USER_AGENT = f"synclyrics-bar v{VERSION} (https://github.com/synclyrics-bar/synclyrics-bar)"

ENV_PREFIX = "SYNCLYRICS_BAR_"

# Only load .env if it exists
env_file = CONFIG_DIR / '.env'
if env_file.exists():
    load_dotenv(env_file)


# Helper to prefer Env Var > Settings JSON > Default
def conf(key, default=None):
    # 1. Check Env Var (e.g. SYNCLYRICS_BAR_LYRICS_MAX_LENGTH)
    env_val = os.getenv(ENV_PREFIX + key.upper().replace('.', '_'))
    if env_val is not None:
        definition = settings.definition(key)
        return definition.validate_and_convert(env_val) if definition else env_val

    # 2. Check Settings JSON (already holds schema defaults)
    json_val = settings.get(key)
    if json_val is not None:
        return json_val

    # 3. Default
    return default


# ==========================================
# Path Configuration
# ==========================================
CACHE_HOME = Path(os.getenv("XDG_CACHE_HOME", str(Path.home() / ".cache")))
CACHE_DIR = Path(conf("storage.cache_dir") or CACHE_HOME / "synclyrics-bar").expanduser()
LOCK_FILE = Path(tempfile.gettempdir()) / "synclyrics-bar.lock"

# ==========================================
# EXPORTED CONFIG DICTS
# ==========================================

DEBUG = {
    "log_file": conf("debug.log_file", ""),
    "log_level": conf("debug.log_level", "WARNING"),
    "file_log_level": conf("debug.file_log_level", "INFO"),
    "log_providers": conf("debug.log_providers", True),
    "log_to_console": conf("debug.log_to_console", True),
    "log_rotation": {
        "max_bytes": conf("debug.log_rotation.max_bytes", 1048576),
        "backup_count": conf("debug.log_rotation.backup_count", 5)
    }
}

LYRICS = {
    "max_length": conf("lyrics.max_length", 100),
    "tooltip_lines": conf("lyrics.tooltip_lines", 8),
    "tooltip_color": conf("lyrics.tooltip_color", "#cccccc"),
    "heartbeat_interval": conf("lyrics.heartbeat_interval", 0.5),
    "offset": conf("lyrics.offset", 0.0),
}

PLAYER = {
    "name": conf("player.name", ""),
    "timeout": conf("player.timeout", 2.0),
}

PROVIDERS = {
    "lrclib": {
        "base_url": conf("providers.lrclib.base_url", "https://lrclib.net/api"),
        "timeout": conf("providers.lrclib.timeout", 10),
    },
}


# Helper functions
def get_provider_config(name: str) -> dict:
    return PROVIDERS.get(name, {})
