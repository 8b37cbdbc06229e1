"""
Tests for the transition scheduler: fade math, the strict window boundary,
schedule re-projection and coordinate reloads during a ramp.
"""
import json
import math
from datetime import datetime, timedelta, timezone

import pytest

from ambient_glow.services.transition_service import (
    TransitionConfig, TransitionScheduler, fade_in_power, fade_out_power,
)
from ambient_glow.services import SettingsService
from ambient_glow.solar import SolarClock


T = 3600


@pytest.fixture
def scheduler(settings_service, solar_clock, recording_brightness, noon):
    scheduler = TransitionScheduler(TransitionConfig(T), settings_service, solar_clock, recording_brightness)
    scheduler.initialize(noon)
    return scheduler


class TestFadeMath:

    @pytest.mark.parametrize("transition_seconds", [1, 7, 255, 3600, 5400])
    def test_fade_in_matches_formula_and_never_decreases(self, transition_seconds):
        previous = 0
        for i in range(0, 101):
            elapsed = transition_seconds * i / 100
            power = fade_in_power(elapsed, transition_seconds)
            assert power == max(0, min(255, math.ceil(255 * elapsed / transition_seconds)))
            assert power >= previous
            previous = power

    @pytest.mark.parametrize("transition_seconds", [1, 7, 255, 3600, 5400])
    def test_fade_out_matches_formula_and_never_increases(self, transition_seconds):
        previous = 255
        for i in range(0, 101):
            elapsed = transition_seconds * i / 100
            power = fade_out_power(elapsed, transition_seconds)
            assert power == max(0, min(255, 255 - math.floor(255 * elapsed / transition_seconds)))
            assert power <= previous
            previous = power

    def test_endpoints(self):
        assert fade_in_power(T, T) == 255
        assert fade_out_power(T, T) == 0
        assert fade_in_power(T * 3, T) == 255
        assert fade_out_power(T * 3, T) == 0

    def test_same_inputs_same_output(self):
        assert fade_in_power(1234.5, T) == fade_in_power(1234.5, T)
        assert fade_out_power(1234.5, T) == fade_out_power(1234.5, T)


class TestTransitionConfig:

    def test_rejects_non_positive_period(self):
        with pytest.raises(ValueError):
            TransitionConfig(0)
        with pytest.raises(ValueError):
            TransitionConfig(-10)

    def test_sleep_interval_is_capped_at_one_second(self):
        assert TransitionConfig(3600).sleep_interval == 1.0
        assert TransitionConfig(10).sleep_interval == pytest.approx(10 / 255 * 0.9)


class TestSchedule:

    def test_initial_schedule_centered_on_solar_events(self, scheduler):
        # Next sunrise 06-02 06:00, sunset before it 06-01 18:00
        assert scheduler.schedule.fade_in_time == datetime(2026, 6, 1, 17, 30, tzinfo=timezone.utc)
        assert scheduler.schedule.fade_out_time == datetime(2026, 6, 2, 5, 30, tzinfo=timezone.utc)

    def test_no_output_outside_windows(self, scheduler, recording_brightness, noon):
        scheduler.tick(noon)
        assert recording_brightness.levels == []

    def test_window_opens_strictly_after_fade_time(self, scheduler, recording_brightness):
        fade_in = scheduler.schedule.fade_in_time
        scheduler.tick(fade_in)
        assert recording_brightness.levels == []

        scheduler.tick(fade_in + timedelta(seconds=1))
        assert recording_brightness.levels == [1]

    def test_fade_in_midpoint(self, scheduler, recording_brightness):
        scheduler.tick(datetime(2026, 6, 1, 18, 0, tzinfo=timezone.utc))
        assert recording_brightness.levels == [128]

    def test_completed_fade_in_recomputes_once(self, scheduler, recording_brightness, solar_clock):
        done = datetime(2026, 6, 1, 18, 30, tzinfo=timezone.utc)
        scheduler.tick(done)
        scheduler.tick(done)
        scheduler.tick(done + timedelta(seconds=5))

        assert recording_brightness.levels == [255]
        assert solar_clock.count("next_sunset") == 1
        assert scheduler.schedule.fade_in_time == datetime(2026, 6, 2, 17, 30, tzinfo=timezone.utc)

    def test_completed_fade_out_recomputes_once(self, scheduler, recording_brightness, solar_clock):
        scheduler.tick(datetime(2026, 6, 1, 18, 30, tzinfo=timezone.utc))
        recording_brightness.levels.clear()

        scheduler.tick(datetime(2026, 6, 2, 6, 0, tzinfo=timezone.utc))
        assert recording_brightness.levels == [128]

        done = datetime(2026, 6, 2, 6, 30, tzinfo=timezone.utc)
        scheduler.tick(done)
        scheduler.tick(done)

        assert recording_brightness.levels == [128, 0]
        assert solar_clock.count("next_sunrise") == 2  # initialize + one recomputation
        assert scheduler.schedule.fade_out_time == datetime(2026, 6, 3, 5, 30, tzinfo=timezone.utc)

    def test_start_at_night_jumps_to_full_brightness(self, settings_service, solar_clock, recording_brightness):
        night = datetime(2026, 6, 1, 23, 0, tzinfo=timezone.utc)
        scheduler = TransitionScheduler(TransitionConfig(T), settings_service, solar_clock, recording_brightness)
        scheduler.initialize(night)

        scheduler.tick(night)
        assert recording_brightness.levels == [255]
        assert scheduler.schedule.fade_in_time > night

    def test_missed_ticks_catch_up(self, scheduler, recording_brightness):
        # Nothing ran for the whole night: both ramps finish on the next tick
        morning = datetime(2026, 6, 2, 9, 0, tzinfo=timezone.utc)
        scheduler.tick(morning)
        assert recording_brightness.levels == [255, 0]
        assert scheduler.schedule.fade_in_time > morning
        assert scheduler.schedule.fade_out_time > morning

    def test_overlapping_windows_are_logged(self, settings_service, solar_clock, recording_brightness, noon,
                                            caplog):
        # 13h ramps around a 12h night overlap
        scheduler = TransitionScheduler(TransitionConfig(13 * 3600), settings_service,
                                        solar_clock, recording_brightness)
        with caplog.at_level("WARNING"):
            scheduler.initialize(noon)
        assert "overlap" in caplog.text


class TestCoordinateReload:

    def test_reload_mid_ramp_keeps_schedule_and_applies_on_next_recompute(self, write_config, solar_clock,
                                                                         recording_brightness, noon):
        path = write_config(latitude=52.0, longitude=4.9)
        settings = SettingsService(path)
        scheduler = TransitionScheduler(TransitionConfig(T), settings, solar_clock, recording_brightness)
        schedule = scheduler.initialize(noon)
        fade_in, fade_out = schedule.fade_in_time, schedule.fade_out_time

        scheduler.tick(datetime(2026, 6, 1, 18, 0, tzinfo=timezone.utc))

        with open(path) as f:
            data = json.load(f)
        data.update(latitude=40.4, longitude=-3.7)
        with open(path, "w") as f:
            json.dump(data, f)
        settings.reload_coordinates()

        assert scheduler.schedule.fade_in_time == fade_in
        assert scheduler.schedule.fade_out_time == fade_out

        scheduler.tick(datetime(2026, 6, 1, 18, 30, tzinfo=timezone.utc))
        name, _, lat, lon = solar_clock.calls[-1]
        assert name == "next_sunset"
        assert (lat, lon) == (40.4, -3.7)


class TestWithAstral:

    def test_nothing_applied_at_exact_fade_in_time(self, settings_service, recording_brightness, noon):
        solar = SolarClock()
        scheduler = TransitionScheduler(TransitionConfig(T), settings_service, solar, recording_brightness)
        schedule = scheduler.initialize(noon)

        sunset = solar.next_sunset(noon, 52.0, 4.9)
        assert schedule.fade_in_time == sunset - timedelta(seconds=1800)

        scheduler.tick(schedule.fade_in_time)
        assert recording_brightness.levels == []
