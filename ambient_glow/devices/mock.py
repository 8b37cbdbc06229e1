# ambient_glow/devices/mock.py
"""
Mock backend for testing and development
"""
import logging
from typing import List
from .base import BaseBackend

logger = logging.getLogger(__name__)


class MockBackend(BaseBackend):
    """Mock backend - works everywhere without GPIO, keeps every applied level"""

    name = "mock"

    def __init__(self):
        super().__init__()
        self.history: List[int] = []

    def set_brightness(self, level: int) -> None:
        super().set_brightness(level)
        self.history.append(self._level)
        logger.debug(f"[Mock] brightness={self._level}")

    def cleanup(self) -> None:
        self._level = 0
