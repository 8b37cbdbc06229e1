# ambient_glow/services/pause_service.py
"""
Pause controller - suspends the solar fades while the monitored host is down
pause(): flag set and brightness held at once, then quick fade to 0
resume(): hold released and flag cleared at once, then quick fade to 255
Quick fades do not depend on the transition period (~9 seconds for a full ramp)
"""
import logging
import threading

from ambient_glow.config import MAX_POWER, MIN_POWER, QUICK_FADE_SETTLE_DELAY, QUICK_FADE_STEP_DELAY

logger = logging.getLogger(__name__)


class PauseController:
    """Owns the paused flag and runs the quick fades through the brightness service"""

    def __init__(self, brightness_service,
                 settle_delay: float = QUICK_FADE_SETTLE_DELAY,
                 step_delay: float = QUICK_FADE_STEP_DELAY):
        self.brightness_service = brightness_service
        self.settle_delay = settle_delay
        self.step_delay = step_delay

        self._paused = threading.Event()
        # Keeps pause/resume from the monitor and the API in order
        self._transition_lock = threading.Lock()

    @property
    def is_paused(self) -> bool:
        return self._paused.is_set()

    def pause(self) -> bool:
        """Suspend the scheduler and fade out, blocks until the fade is done"""
        with self._transition_lock:
            if self._paused.is_set():
                logger.debug("Already paused")
                return False
            # Hold before the flag is set
            self.brightness_service.hold()
            self._paused.set()
            logger.info(f"⏸️  Pausing, fading out from {self.brightness_service.current_level}")
            self.brightness_service.ramp_to(MIN_POWER, self.step_delay, self.settle_delay)
            return True

    def resume(self) -> bool:
        """Resume the scheduler and fade back in, blocks until the fade is done"""
        with self._transition_lock:
            if not self._paused.is_set():
                logger.debug("Not paused, nothing to resume")
                return False
            self.brightness_service.release()
            self._paused.clear()
            logger.info(f"▶️  Resuming, fading in from {self.brightness_service.current_level}")
            self.brightness_service.ramp_to(MAX_POWER, self.step_delay, self.settle_delay)
            return True
