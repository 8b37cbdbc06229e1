# ambient_glow/services/brightness_service.py
"""
Brightness service - the only place that talks to the light driver
Main loop, pause/resume and API submit commands to one worker thread:
- SetLevel(level): apply a level now (consecutive queued SetLevels collapse to the last one)
- RampTo(level, step_delay, settle_delay): step 1 unit at a time until level is reached
While held, SetLevels are dropped (on submit and again when dequeued); ramps still run
"""
import time
import logging
import threading
from dataclasses import dataclass, field
from queue import Queue, Empty
from typing import Callable, Optional

from ambient_glow.devices import clamp_level
from ambient_glow.errors import DriverError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetLevel:
    level: int


@dataclass
class RampTo:
    level: int
    step_delay: float
    settle_delay: float = 0.0
    done: threading.Event = field(default_factory=threading.Event)


class BrightnessService:
    """Serializes every brightness change through a single worker"""

    def __init__(self, device_manager, max_failures: int = 10,
                 on_fatal: Optional[Callable[[], None]] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            device_manager: DeviceManager (or anything with set_brightness)
            max_failures: consecutive driver failures before on_fatal is called
            on_fatal: called once when the driver is considered lost
            sleep: sleep function used by ramps
        """
        self.device_manager = device_manager
        self.max_failures = max_failures
        self.on_fatal = on_fatal
        self._sleep = sleep

        self._queue: Queue = Queue()
        self._level = 0
        self._failures = 0
        self._fatal = False
        self._held = False

        self._lock = threading.Lock()
        self._running = False
        self._worker_thread: Optional[threading.Thread] = None

    @property
    def current_level(self) -> int:
        """Last level successfully applied to the driver"""
        return self._level

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_held(self) -> bool:
        return self._held

    def hold(self) -> None:
        """Stop accepting SetLevel, queued ones are discarded too"""
        with self._lock:
            self._held = True

    def release(self) -> None:
        """Accept SetLevel again"""
        with self._lock:
            self._held = False

    # ========== LIFECYCLE ==========

    def initialize(self, level: int = 0) -> None:
        """Apply the start level synchronously, DriverError propagates (startup is fatal)"""
        level = clamp_level(level)
        self.device_manager.set_brightness(level)
        self._level = level

    def start(self):
        """Start the worker thread"""
        with self._lock:
            if self._running:
                logger.warning("⚠️  Brightness service already running")
                return
            self._running = True
        self._worker_thread = threading.Thread(target=self._worker_loop, daemon=True)
        self._worker_thread.start()
        logger.debug("Brightness worker started")

    def stop(self, timeout: float = 15.0):
        """
        Stop the worker once the current command is finished
        A ramp in progress runs to completion
        """
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._queue.put(None)
        if self._worker_thread:
            self._worker_thread.join(timeout=timeout)
        logger.debug("Brightness worker stopped")

    # ========== COMMANDS ==========

    def _submit(self, command) -> bool:
        with self._lock:
            if not self._running:
                logger.debug(f"Brightness worker not running, dropping {command}")
                return False
            if self._held and isinstance(command, SetLevel):
                logger.debug(f"Brightness held, dropping {command}")
                return False
            self._queue.put(command)
            return True

    def set_level(self, level: int) -> None:
        """Queue a level change (0-255, clamped)"""
        self._submit(SetLevel(clamp_level(level)))

    def ramp_to(self, level: int, step_delay: float, settle_delay: float = 0.0,
                wait: bool = True) -> threading.Event:
        """
        Queue a quick fade to level, 1 unit per step_delay after settle_delay
        With wait=True blocks until the ramp has finished
        """
        command = RampTo(clamp_level(level), step_delay, settle_delay)
        if not self._submit(command):
            command.done.set()
        if wait:
            command.done.wait()
        return command.done

    # ========== WORKER ==========

    def _worker_loop(self):
        pending = None
        while True:
            command = pending if pending is not None else self._queue.get()
            pending = None
            if command is None:
                break

            if isinstance(command, SetLevel):
                # Last write wins among consecutive SetLevels
                while True:
                    try:
                        following = self._queue.get_nowait()
                    except Empty:
                        break
                    if isinstance(following, SetLevel):
                        command = following
                    else:
                        pending = following
                        break
                with self._lock:
                    held = self._held
                if held:
                    logger.debug(f"Brightness held, dropping {command}")
                    continue
                self._apply(command.level)
            elif isinstance(command, RampTo):
                try:
                    self._run_ramp(command)
                finally:
                    command.done.set()

        self._drain()

    def _drain(self):
        """Release anyone still waiting on a queued ramp"""
        while True:
            try:
                command = self._queue.get_nowait()
            except Empty:
                return
            if isinstance(command, RampTo):
                command.done.set()

    def _run_ramp(self, command: RampTo):
        if command.settle_delay > 0:
            self._sleep(command.settle_delay)

        level = self._level
        step = 1 if command.level > level else -1
        while level != command.level and not self._fatal:
            level += step
            self._apply(level)
            if level != command.level and command.step_delay > 0:
                self._sleep(command.step_delay)

    def _apply(self, level: int) -> bool:
        try:
            self.device_manager.set_brightness(level)
        except DriverError as e:
            self._failures += 1
            logger.error(f"❌ Could not set brightness to {level} ({self._failures}/{self.max_failures}): {e}")
            if self._failures >= self.max_failures and not self._fatal:
                self._fatal = True
                logger.critical("Light driver keeps failing, giving up")
                if self.on_fatal:
                    self.on_fatal()
            return False

        self._failures = 0
        self._level = level
        return True
