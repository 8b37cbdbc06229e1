# ambient_glow/devices/base.py
"""
Base abstract class for brightness backends

SEMANTICS:
- set_brightness(level: int) - Applies LED brightness (0-255), clamped
- get_brightness() -> int - Returns the last level we SET (not a measurement)
- cleanup() - Switch the light off and release hardware
"""
from ambient_glow.config import MAX_POWER, MIN_POWER


def clamp_level(level) -> int:
    """Clamp to the 0-255 brightness range"""
    return max(MIN_POWER, min(MAX_POWER, int(level)))


class BaseBackend:
    """Abstract base class for brightness backends"""

    name = "base"

    def __init__(self):
        self._level = 0

    def set_brightness(self, level: int) -> None:
        """Set brightness 0-255 (0 = off, 255 = full brightness)"""
        self._level = clamp_level(level)

    def get_brightness(self) -> int:
        return self._level

    def cleanup(self) -> None:
        """Cleanup resources"""
        pass
