# ambient_glow/services/transition_service.py
"""
Transition scheduler - fades the light in around sunset and out around sunrise

Each ramp spans transition_seconds and is centered on its solar event:
    fade_in_time  = sunset  - transition/2
    fade_out_time = sunrise - transition/2
Brightness only depends on the wall-clock time elapsed since the fade time,
so skipped ticks (pause, slow host) catch up on the next one.
"""
import math
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from ambient_glow.config import MAX_POWER, MIN_POWER, calculate_sleep_interval, format_fade_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionConfig:
    transition_seconds: int

    def __post_init__(self):
        if self.transition_seconds <= 0:
            raise ValueError("Need to have a transition period that is greater then zero!")

    @property
    def transition(self) -> timedelta:
        return timedelta(seconds=self.transition_seconds)

    @property
    def half_transition(self) -> timedelta:
        return self.transition / 2

    @property
    def sleep_interval(self) -> float:
        return calculate_sleep_interval(self.transition_seconds)


@dataclass
class FadeSchedule:
    fade_in_time: datetime
    fade_out_time: datetime


def fade_in_power(elapsed: float, transition_seconds: int) -> int:
    """Brightness `elapsed` seconds into a fade-in: ceil(255 * e / T), clamped"""
    power = math.ceil(MAX_POWER * elapsed / transition_seconds)
    return max(MIN_POWER, min(MAX_POWER, power))


def fade_out_power(elapsed: float, transition_seconds: int) -> int:
    """Brightness `elapsed` seconds into a fade-out: 255 - floor(255 * e / T), clamped"""
    power = MAX_POWER - math.floor(MAX_POWER * elapsed / transition_seconds)
    return max(MIN_POWER, min(MAX_POWER, power))


class TransitionScheduler:
    """Computes and applies solar-driven brightness once per tick"""

    def __init__(self, transition: TransitionConfig, settings_service, solar_clock, brightness):
        """
        Args:
            transition: TransitionConfig
            settings_service: provides .coordinates (read at every recomputation)
            solar_clock: next_sunrise / next_sunset / previous_sunset
            brightness: anything with set_level(level)
        """
        self.transition = transition
        self.settings_service = settings_service
        self.solar_clock = solar_clock
        self.brightness = brightness
        self.schedule: FadeSchedule = None

    def initialize(self, now: datetime) -> FadeSchedule:
        """
        Build the schedule from the current solar cycle
        Using the sunset preceding the next sunrise keeps a start in the middle of the night correct
        """
        lat, lon = self.settings_service.coordinates
        sunrise = self.solar_clock.next_sunrise(now, lat, lon)
        sunset = self.solar_clock.previous_sunset(sunrise, lat, lon)

        self.schedule = FadeSchedule(
            fade_in_time=sunset - self.transition.half_transition,
            fade_out_time=sunrise - self.transition.half_transition,
        )
        self._log_fade_in()
        self._log_fade_out()
        self._check_overlap()
        return self.schedule

    def tick(self, now: datetime) -> None:
        """One scheduler step: both windows are checked every tick"""
        schedule = self.schedule

        # FadeIn
        elapsed = (now - schedule.fade_in_time).total_seconds()
        if elapsed > 0:
            power = fade_in_power(elapsed, self.transition.transition_seconds)
            self.brightness.set_level(power)

            # Fade in complete, project the next one
            if power >= MAX_POWER:
                lat, lon = self.settings_service.coordinates
                sunset = self.solar_clock.next_sunset(now, lat, lon)
                schedule.fade_in_time = sunset - self.transition.half_transition
                self._log_fade_in()
                self._check_overlap()

        # FadeOut
        elapsed = (now - schedule.fade_out_time).total_seconds()
        if elapsed > 0:
            power = fade_out_power(elapsed, self.transition.transition_seconds)
            self.brightness.set_level(power)

            if power <= MIN_POWER:
                lat, lon = self.settings_service.coordinates
                sunrise = self.solar_clock.next_sunrise(now, lat, lon)
                schedule.fade_out_time = sunrise - self.transition.half_transition
                self._log_fade_out()
                self._check_overlap()

    def _log_fade_in(self):
        logger.info(f"The next fadeIn  is {format_fade_time(self.schedule.fade_in_time)}")

    def _log_fade_out(self):
        logger.info(f"The next fadeOut is {format_fade_time(self.schedule.fade_out_time)}")

    def _check_overlap(self):
        # Both ramps are still applied, the later write on a tick wins
        gap = abs(self.schedule.fade_in_time - self.schedule.fade_out_time)
        if gap < self.transition.transition:
            logger.warning(
                f"⚠️  Fade windows overlap ({gap.total_seconds():.0f}s apart, "
                f"transition {self.transition.transition_seconds}s)"
            )
