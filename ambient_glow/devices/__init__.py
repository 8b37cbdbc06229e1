# ambient_glow/devices/__init__.py
from .manager import DeviceManager
from .base import BaseBackend, clamp_level
from .mock import MockBackend
from .hardware import GPIOdBackend, PWMBackend

__all__ = ["DeviceManager", "BaseBackend", "MockBackend", "GPIOdBackend", "PWMBackend", "clamp_level"]
