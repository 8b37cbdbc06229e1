# ambient_glow/devices/manager.py
"""
Device manager - unified interface for brightness control
"""
import atexit
import logging
from .base import BaseBackend
from .mock import MockBackend
from .hardware import GPIOdBackend, PWMBackend
from ambient_glow.errors import DriverError

logger = logging.getLogger(__name__)


class DeviceManager:
    """Unified interface for the light fixture"""

    def __init__(self, backend: str = "mock", light_pin: int = 269,
                 chip_path: str = "/dev/gpiochip0", pwm_chip: int = 0,
                 pwm_channel: int = 3, fallback_to_mock: bool = False):
        """
        Initialize device manager

        Args:
            backend: "mock", "gpiod" (software PWM) or "pwm" (sysfs hardware PWM)
            light_pin: GPIO line for the light (gpiod)
            chip_path: GPIO chip device (gpiod)
            pwm_chip: pwmchip number (pwm)
            pwm_channel: PWM channel number (pwm)
            fallback_to_mock: Use MockBackend when hardware init fails instead of raising
        """
        self._backend = self._create_backend(
            backend=backend,
            light_pin=light_pin,
            chip_path=chip_path,
            pwm_chip=pwm_chip,
            pwm_channel=pwm_channel,
            fallback_to_mock=fallback_to_mock
        )
        self._cleaned_up = False

        # Register cleanup on exit
        atexit.register(self.cleanup)

    @staticmethod
    def _create_backend(backend: str, light_pin: int, chip_path: str,
                        pwm_chip: int, pwm_channel: int,
                        fallback_to_mock: bool) -> BaseBackend:
        """Factory method for backend selection"""

        if backend == "mock":
            logger.info("[DeviceManager] Using MockBackend")
            return MockBackend()

        try:
            if backend == "gpiod":
                logger.info(f"[DeviceManager] Using GPIOdBackend on line {light_pin}")
                return GPIOdBackend(light_pin=light_pin, chip_path=chip_path)
            if backend == "pwm":
                logger.info(f"[DeviceManager] Using PWMBackend on pwmchip{pwm_chip}/pwm{pwm_channel}")
                return PWMBackend(chip_num=pwm_chip, channel_num=pwm_channel)
            raise DriverError(f"Unknown backend: {backend}")
        except DriverError as e:
            if not fallback_to_mock:
                raise
            logger.error(f"[DeviceManager] Failed to initialize hardware: {e}")
            logger.warning("[DeviceManager] Falling back to MockBackend")
            return MockBackend()

    @property
    def backend(self) -> BaseBackend:
        return self._backend

    def set_brightness(self, level: int) -> None:
        """Apply brightness 0-255, raising DriverError on I/O failure"""
        try:
            self._backend.set_brightness(level)
        except OSError as e:
            raise DriverError(f"Could not set brightness: {e}") from e

    def get_brightness(self) -> int:
        return self._backend.get_brightness()

    def cleanup(self) -> None:
        """Switch the light off and release resources (shutdown and atexit both call this)"""
        if self._cleaned_up:
            return
        self._cleaned_up = True
        self._backend.cleanup()
