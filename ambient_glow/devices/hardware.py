# ambient_glow/devices/hardware.py
"""
Hardware backends for Orange Pi / Raspberry Pi
- GPIOdBackend: software PWM on a single gpiod output line
- PWMBackend: kernel hardware PWM through /sys/class/pwm
"""
import os
import time
import logging
import threading
from typing import Optional

from ambient_glow.config import MAX_POWER, PWM_FREQUENCY
from ambient_glow.errors import DriverError
from .base import BaseBackend

logger = logging.getLogger(__name__)

# PWM configuration
PWM_PERIOD = 1.0 / PWM_FREQUENCY  # 0.01 seconds
PWM_PERIOD_NS = int(1_000_000_000 / PWM_FREQUENCY)


class GPIOdBackend(BaseBackend):
    """Software PWM dimming on one GPIO line with the gpiod library"""

    name = "gpiod"

    def __init__(self, light_pin: int, chip_path: str = "/dev/gpiochip0"):
        super().__init__()

        try:
            import gpiod
            from gpiod.line import Direction, Value
        except ImportError as e:
            raise DriverError("gpiod library not installed!") from e

        self.gpiod = gpiod
        self.Value = Value
        self.light_pin = light_pin

        try:
            self._chip = gpiod.Chip(chip_path)
            self._gpio_request = self._chip.request_lines(
                consumer="ambient_glow",
                config={
                    light_pin: gpiod.LineSettings(
                        direction=Direction.OUTPUT,
                        output_value=Value.INACTIVE
                    )
                }
            )
        except OSError as e:
            raise DriverError(f"Could not request GPIO line {light_pin} on {chip_path}: {e}") from e

        # 0.0 to 1.0, read by the PWM thread every period
        self._duty = 0.0
        self._pwm_error: Optional[Exception] = None
        self._released = False
        self._pwm_running = True
        self._pwm_thread = threading.Thread(target=self._pwm_loop, daemon=True)
        self._pwm_thread.start()

    def _write_gpio(self, state: bool):
        value = self.Value.ACTIVE if state else self.Value.INACTIVE
        self._gpio_request.set_value(self.light_pin, value)

    def _pwm_loop(self):
        """Software PWM control for light dimming"""
        try:
            while self._pwm_running:
                duty = self._duty
                if duty >= 1.0:
                    self._write_gpio(True)
                    time.sleep(PWM_PERIOD)
                elif duty <= 0.0:
                    self._write_gpio(False)
                    time.sleep(PWM_PERIOD)
                else:
                    self._write_gpio(True)
                    time.sleep(PWM_PERIOD * duty)
                    self._write_gpio(False)
                    time.sleep(PWM_PERIOD * (1.0 - duty))
        except OSError as e:
            logger.error(f"❌ PWM thread stopped: {e}")
            self._pwm_error = e
            self._pwm_running = False

    def set_brightness(self, level: int) -> None:
        if self._pwm_error is not None:
            raise DriverError(f"GPIO line {self.light_pin} failed: {self._pwm_error}")
        super().set_brightness(level)
        self._duty = self._level / MAX_POWER

    def cleanup(self) -> None:
        """Release GPIO resources, safe to call more than once"""
        if self._released:
            return
        self._released = True
        self._pwm_running = False
        self._pwm_thread.join(timeout=0.5)
        try:
            self._write_gpio(False)
            self._gpio_request.release()
            self._chip.close()
        except OSError as e:
            logger.warning(f"Cleanup error: {e}")


class PWMBackend(BaseBackend):
    """Hardware PWM via sysfs (export channel, set period, enable, write duty_cycle)"""

    name = "pwm"

    def __init__(self, chip_num: int = 0, channel_num: int = 3, base_path: str = "/sys/class/pwm"):
        super().__init__()
        self.chip_path = f"{base_path}/pwmchip{chip_num}"
        self.channel_num = channel_num
        self.channel_path = f"{self.chip_path}/pwm{channel_num}"
        try:
            self._setup_pwm()
        except OSError as e:
            raise DriverError(f"Could not set up PWM channel {self.channel_path}: {e}") from e

    def _write(self, name: str, value) -> None:
        with open(f"{self.channel_path}/{name}", "w") as f:
            f.write(str(value))

    def _setup_pwm(self):
        if not os.path.exists(self.channel_path):
            logger.info(f"PWM Channel {self.channel_num} missing. Creating it...")
            with open(f"{self.chip_path}/export", "w") as f:
                f.write(str(self.channel_num))
            # Wait for OS to create the folder
            time.sleep(0.5)

        try:
            self._write("enable", 0)
        except OSError:
            pass
        self._write("duty_cycle", 0)
        self._write("period", PWM_PERIOD_NS)
        self._write("enable", 1)
        logger.info(f"PWM Configured: Period={PWM_PERIOD_NS}ns")

    def set_brightness(self, level: int) -> None:
        super().set_brightness(level)
        duty_ns = int(PWM_PERIOD_NS * self._level / MAX_POWER)
        try:
            self._write("duty_cycle", duty_ns)
        except OSError as e:
            raise DriverError(f"Could not write duty cycle: {e}") from e

    def cleanup(self) -> None:
        try:
            self._write("duty_cycle", 0)
            self._write("enable", 0)
        except OSError as e:
            logger.warning(f"Cleanup error: {e}")
