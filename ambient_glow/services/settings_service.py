# ambient_glow/services/settings_service.py
"""
Settings management service with JSON store
Only latitude/longitude are reloadable at runtime
"""
import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Any, NamedTuple

from ambient_glow import config
from ambient_glow.errors import ConfigError
from ambient_glow.json_manager import load_json_secure, save_json_secure

logger = logging.getLogger(__name__)


class Coordinates(NamedTuple):
    latitude: float
    longitude: float


class SettingsService:
    """
    Loads the daemon configuration and owns the current coordinates
    Coordinates are swapped as one immutable object so readers never see a half-updated pair
    """

    DEFAULTS = {
        "latitude": 52.0,
        "longitude": 4.9,
        "ping_host": "",
        "transition_seconds": 3600,
        "backend": "mock",
        "chip_path": config.CHIP_PATH,
        "light_pin": config.LIGHT_PIN,
        "pwm_chip": config.PWM_CHIP,
        "pwm_channel": config.PWM_CHANNEL,
        "ping_interval": config.PING_INTERVAL,
        "ping_timeout": config.PING_TIMEOUT,
        "max_driver_failures": config.MAX_DRIVER_FAILURES,
        "api_enabled": False,
        "api_host": "0.0.0.0",
        "api_port": 5000,
    }

    BACKENDS = ("mock", "gpiod", "pwm")

    def __init__(self, settings_file: str = config.DEFAULT_CONFIG_FILE):
        self.settings_file = str(Path(settings_file).resolve())
        self._lock = threading.Lock()
        self._settings = self._load_store()
        self._coordinates = self._parse_coordinates(self._settings)

    # ========== STORE OPERATIONS ==========

    def _load_store(self) -> Dict[str, Any]:
        """Load JSON config, creating it with defaults when missing"""
        try:
            data = load_json_secure(self.settings_file)
        except FileNotFoundError:
            logger.warning(f"⚠️  Config {self.settings_file} not found, writing defaults")
            data = self.DEFAULTS.copy()
            self._save_store(data)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to parse config {self.settings_file}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config {self.settings_file} must contain a JSON object")

        # Merge with defaults (ensure all keys exist)
        settings = self.DEFAULTS.copy()
        for key, value in data.items():
            if key in self.DEFAULTS:
                settings[key] = value
            else:
                logger.debug(f"Ignoring unknown config key: {key}")

        self._validate(settings)
        return settings

    def _save_store(self, data: Dict[str, Any]) -> None:
        try:
            os.makedirs(os.path.dirname(self.settings_file), exist_ok=True)
            save_json_secure(self.settings_file, data)
            logger.debug(f"✅ Saved settings to {self.settings_file}")
        except OSError as e:
            logger.error(f"❌ Failed to save settings to {self.settings_file}: {e}")

    def _validate(self, settings: Dict[str, Any]) -> None:
        try:
            settings["transition_seconds"] = config.parse_transition_speed(settings["transition_seconds"])
        except ValueError as e:
            raise ConfigError(str(e)) from e
        if settings["transition_seconds"] <= 0:
            raise ConfigError("Need to have a transition period that is greater then zero!")

        if settings["backend"] not in self.BACKENDS:
            raise ConfigError(f"Unknown backend {settings['backend']!r}, expected one of {self.BACKENDS}")

        for key in ("ping_interval", "ping_timeout"):
            if float(settings[key]) <= 0:
                raise ConfigError(f"{key} must be greater than zero")

        settings["ping_host"] = str(settings["ping_host"] or "").strip()
        self._parse_coordinates(settings)

    @staticmethod
    def _parse_coordinates(settings: Dict[str, Any]) -> Coordinates:
        try:
            latitude = float(settings["latitude"])
            longitude = float(settings["longitude"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid coordinates: {e}") from e
        if not -90.0 <= latitude <= 90.0:
            raise ConfigError(f"Latitude out of range: {latitude}")
        if not -180.0 <= longitude <= 180.0:
            raise ConfigError(f"Longitude out of range: {longitude}")
        return Coordinates(latitude, longitude)

    # ========== SETTINGS API ==========

    def get_settings(self) -> Dict[str, Any]:
        """Get all settings"""
        with self._lock:
            return self._settings.copy()

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get specific setting"""
        with self._lock:
            return self._settings.get(key, default)

    @property
    def coordinates(self) -> Coordinates:
        return self._coordinates

    def reload_coordinates(self) -> Coordinates:
        """
        Re-read the config file and swap in the new latitude/longitude
        All other keys keep their startup values
        """
        settings = self._load_store()
        coordinates = self._parse_coordinates(settings)
        with self._lock:
            self._settings["latitude"] = coordinates.latitude
            self._settings["longitude"] = coordinates.longitude
            self._coordinates = coordinates
        logger.info(f"Latitude: {coordinates.latitude:f}, Longitude: {coordinates.longitude:f}")
        return coordinates
