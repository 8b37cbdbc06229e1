# config.py

import re
from datetime import datetime

VERSION = "0.3.0"

MAX_POWER = 255
MIN_POWER = 0

DEFAULT_CONFIG_FILE = "/etc/ambient-glow.json"

# Light output (Orange Pi / Raspberry Pi)
CHIP_PATH = "/dev/gpiochip0"
LIGHT_PIN = 269
PWM_CHIP = 0
PWM_CHANNEL = 3
PWM_FREQUENCY = 100  # 100 Hz

# Quick fade used by pause/resume (~9 seconds for a full ramp)
QUICK_FADE_SETTLE_DELAY = 1.0
QUICK_FADE_STEP_DELAY = 0.035

# Liveness check
PING_INTERVAL = 60.0  # Check every minute for host
PING_TIMEOUT = 1.0

MAX_DRIVER_FAILURES = 10

_DURATION_PART = re.compile(r"(\d+)([hms])")
_DURATION_UNITS = {"h": 3600, "m": 60, "s": 1}


def calculate_sleep_interval(transition_seconds):
    """
    Tick interval for the main loop
    Keeps CPU usage low while a full 0-255 ramp still gets ~1 tick per step
    """
    return min(1.0, transition_seconds / MAX_POWER * 0.9)


def parse_transition_speed(value):
    """
    Convert transition speed to seconds
    Accepts int/float seconds, numeric strings or durations like "1h30m", "90m", "45s"
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid transition speed: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)

    text = str(value).strip().lower()
    if not text:
        raise ValueError("Transition speed is empty")
    if text.lstrip("-").isdigit():
        return int(text)

    parts = _DURATION_PART.findall(text)
    if not parts or "".join(n + u for n, u in parts) != text:
        raise ValueError(f"Invalid transition speed: {value!r}")
    return sum(int(n) * _DURATION_UNITS[u] for n, u in parts)


def format_fade_time(moment: datetime) -> str:
    """Format as HH:MM:SS on M/D/YYYY in local time"""
    local = moment.astimezone()
    return f"{local.hour:02d}:{local.minute:02d}:{local.second:02d} on {local.month}/{local.day}/{local.year}"
