"""
synclyrics-bar Settings Manager
Handles typed configuration loaded from settings.json
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from benedict import benedict

from logging_config import get_logger

logger = get_logger(__name__)

# Allow overriding the settings file location via environment variable
CONFIG_HOME = Path(os.getenv("XDG_CONFIG_HOME", str(Path.home() / ".config")))
CONFIG_DIR = CONFIG_HOME / "synclyrics-bar"
SETTINGS_FILE = Path(os.getenv("SYNCLYRICS_BAR_SETTINGS_FILE", str(CONFIG_DIR / "settings.json")))


@dataclass
class Setting:
    """Represents a single configurable setting"""
    name: str
    type: type
    default: Any
    description: Optional[str] = None
    min_val: Optional[float] = None
    max_val: Optional[float] = None

    def validate_and_convert(self, value: Any) -> Any:
        if value is None:
            return self.default
        try:
            if self.type == bool and isinstance(value, str):
                return value.lower() in ('true', '1', 'yes', 'on')

            converted = self.type(value)
            if self.min_val is not None and converted < self.min_val:
                logger.warning(f"Setting '{self.name}' below minimum ({converted} < {self.min_val}), using default")
                return self.default
            if self.max_val is not None and converted > self.max_val:
                logger.warning(f"Setting '{self.name}' above maximum ({converted} > {self.max_val}), using default")
                return self.default
            return converted
        except (ValueError, TypeError):
            return self.default


class SettingsManager:
    def __init__(self, settings_file: Path = SETTINGS_FILE):
        self.settings_file = Path(settings_file)
        self._settings: Dict[str, Any] = {}

        # Define all available settings
        self._definitions = {
            # Debug
            "debug.log_file": Setting("Log File", str, "", "Log file path (empty = no file logging)"),
            "debug.log_level": Setting("Log Level", str, "WARNING", "Console logging verbosity"),
            "debug.file_log_level": Setting("File Log Level", str, "INFO", "File logging verbosity"),
            "debug.log_providers": Setting("Log Providers", bool, True, "Log provider requests"),
            "debug.log_to_console": Setting("Log to Console", bool, True, "Print logs to stderr"),
            "debug.log_rotation.max_bytes": Setting("Max Log Size", int, 1048576, "Max log file size (bytes)", min_val=1024),
            "debug.log_rotation.backup_count": Setting("Log Backups", int, 5, "Number of backups to keep", min_val=0),

            # Lyrics
            "lyrics.max_length": Setting("Max Length", int, 100, "Truncate the bar text to this many characters", min_val=4),
            "lyrics.tooltip_lines": Setting("Tooltip Lines", int, 8, "Lines shown in the tooltip before the first lyric", min_val=4),
            "lyrics.tooltip_color": Setting("Tooltip Color", str, "#cccccc", "Color of the non-active tooltip lines"),
            "lyrics.heartbeat_interval": Setting("Heartbeat", float, 0.5, "Fallback polling interval (s)", min_val=0.05, max_val=60.0),
            "lyrics.offset": Setting("Offset", float, 0.0, "Sync offset added to the player position (s)", min_val=-5.0, max_val=5.0),

            # Player
            "player.name": Setting("Player", str, "", "MPRIS player to follow (empty = playerctl default)"),
            "player.timeout": Setting("Timeout", float, 2.0, "playerctl call timeout (s)", min_val=0.1),

            # Providers
            "providers.lrclib.timeout": Setting("Timeout", int, 10, "Request timeout (s)", min_val=1),
            "providers.lrclib.base_url": Setting("Base URL", str, "https://lrclib.net/api", "LRCLIB API root"),

            # Storage
            "storage.cache_dir": Setting("Cache Dir", str, "", "Lyrics cache directory (empty = XDG cache)"),
        }

        self.load_settings()

    def load_settings(self) -> None:
        """Load settings from JSON, fall back to defaults"""
        self._settings = {}

        # 1. Load defaults first
        for key, definition in self._definitions.items():
            self._settings[key] = definition.default

        # 2. Load from JSON if exists (nested objects, addressed by dotted key paths)
        if not self.settings_file.exists():
            return

        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                saved = benedict(json.load(f), keypath_separator=".")
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to load {self.settings_file}: {e} - using defaults")
            return

        for key, definition in self._definitions.items():
            if key in saved:
                self._settings[key] = definition.validate_and_convert(saved[key])

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value.
        Priority:
        1. Loaded value (from JSON or Schema Default)
        2. Provided 'default' argument (if key unknown)
        """
        if key in self._settings:
            return self._settings[key]
        return default

    def definition(self, key: str) -> Optional[Setting]:
        return self._definitions.get(key)


settings = SettingsManager()
