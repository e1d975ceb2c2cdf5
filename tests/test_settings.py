"""Tests for settings.json loading and env overrides"""
import json

import config
from settings import Setting, SettingsManager


def write_settings(tmp_path, data):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_defaults_without_file(tmp_path):
    manager = SettingsManager(tmp_path / "missing.json")
    assert manager.get("lyrics.max_length") == 100
    assert manager.get("player.name") == ""
    assert manager.get("unknown.key", "fallback") == "fallback"


def test_nested_values_are_read_by_key_path(tmp_path):
    path = write_settings(tmp_path, {
        "lyrics": {"max_length": "42", "tooltip_color": "#ffffff"},
        "player": {"name": "spotify"},
        "debug": {"log_rotation": {"backup_count": 2}},
    })
    manager = SettingsManager(path)
    assert manager.get("lyrics.max_length") == 42
    assert manager.get("lyrics.tooltip_color") == "#ffffff"
    assert manager.get("player.name") == "spotify"
    assert manager.get("debug.log_rotation.backup_count") == 2


def test_out_of_range_values_fall_back(tmp_path):
    path = write_settings(tmp_path, {"lyrics": {"tooltip_lines": 2, "heartbeat_interval": "soon"}})
    manager = SettingsManager(path)
    assert manager.get("lyrics.tooltip_lines") == 8
    assert manager.get("lyrics.heartbeat_interval") == 0.5


def test_broken_file_uses_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    manager = SettingsManager(path)
    assert manager.get("lyrics.offset") == 0.0


def test_bool_conversion():
    setting = Setting("Flag", bool, True)
    assert setting.validate_and_convert("off") is False
    assert setting.validate_and_convert("yes") is True
    assert setting.validate_and_convert(None) is True


def test_env_overrides_settings(monkeypatch):
    monkeypatch.setenv("SYNCLYRICS_BAR_LYRICS_MAX_LENGTH", "33")
    monkeypatch.setenv("SYNCLYRICS_BAR_PLAYER_NAME", "mpv")
    assert config.conf("lyrics.max_length") == 33
    assert config.conf("player.name") == "mpv"


def test_conf_default_for_unknown_key():
    assert config.conf("does.not.exist", "x") == "x"
