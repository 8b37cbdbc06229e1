"""
Tests for config helpers and the JSON settings store.
"""
import json
import re
from datetime import datetime, timezone

import pytest

from ambient_glow import config
from ambient_glow.errors import ConfigError
from ambient_glow.services import Coordinates, SettingsService


class TestConfigHelpers:

    @pytest.mark.parametrize("value, expected", [
        (3600, 3600),
        ("3600", 3600),
        ("1h", 3600),
        ("90m", 5400),
        ("1h30m", 5400),
        ("45s", 45),
        ("1h0m30s", 3630),
    ])
    def test_parse_transition_speed(self, value, expected):
        assert config.parse_transition_speed(value) == expected

    @pytest.mark.parametrize("value", ["", "soon", "1x", "h1", True])
    def test_parse_transition_speed_rejects_garbage(self, value):
        with pytest.raises(ValueError):
            config.parse_transition_speed(value)

    def test_sleep_interval(self):
        assert config.calculate_sleep_interval(3600) == 1.0
        assert config.calculate_sleep_interval(51) == pytest.approx(0.18)

    def test_format_fade_time(self):
        text = config.format_fade_time(datetime(2026, 6, 1, 17, 30, 5, tzinfo=timezone.utc))
        assert re.fullmatch(r"\d{2}:\d{2}:05 on \d{1,2}/\d{1,2}/2026", text)


class TestSettingsService:

    def test_defaults_fill_missing_keys(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"latitude": 48.1, "longitude": 11.6}))
        settings = SettingsService(str(path))

        assert settings.coordinates == Coordinates(48.1, 11.6)
        assert settings.get_setting("transition_seconds") == 3600
        assert settings.get_setting("ping_host") == ""
        assert settings.get_setting("backend") == "mock"

    def test_missing_file_is_created_with_defaults(self, tmp_path):
        path = tmp_path / "etc" / "ambient-glow.json"
        settings = SettingsService(str(path))
        assert path.exists()
        assert json.loads(path.read_text())["transition_seconds"] == 3600
        assert settings.coordinates == Coordinates(52.0, 4.9)

    def test_unknown_keys_are_ignored(self, write_config):
        settings = SettingsService(write_config(colour="red"))
        assert "colour" not in settings.get_settings()

    def test_duration_string(self, write_config):
        assert SettingsService(write_config(transition_seconds="1h30m")).get_setting("transition_seconds") == 5400

    @pytest.mark.parametrize("overrides", [
        {"transition_seconds": 0},
        {"transition_seconds": -60},
        {"transition_seconds": "later"},
        {"backend": "piglow9000"},
        {"latitude": 123.0},
        {"longitude": "east"},
        {"ping_interval": 0},
    ])
    def test_invalid_settings_raise(self, write_config, overrides):
        with pytest.raises(ConfigError):
            SettingsService(write_config(**overrides))

    def test_broken_json_raises(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text("{latitude: ")
        with pytest.raises(ConfigError):
            SettingsService(str(path))

    def test_reload_only_touches_coordinates(self, write_config):
        path = write_config(transition_seconds=3600, ping_host="10.0.0.1")
        settings = SettingsService(path)

        with open(path, "w") as f:
            json.dump({"latitude": -33.9, "longitude": 151.2, "transition_seconds": 60,
                       "ping_host": "10.0.0.2"}, f)
        coordinates = settings.reload_coordinates()

        assert coordinates == Coordinates(-33.9, 151.2)
        assert settings.coordinates is coordinates
        assert settings.get_setting("transition_seconds") == 3600
        assert settings.get_setting("ping_host") == "10.0.0.1"

    def test_failed_reload_keeps_previous_coordinates(self, write_config):
        path = write_config()
        settings = SettingsService(path)
        with open(path, "w") as f:
            json.dump({"latitude": 200.0, "longitude": 4.9}, f)

        with pytest.raises(ConfigError):
            settings.reload_coordinates()
        assert settings.coordinates == Coordinates(52.0, 4.9)
