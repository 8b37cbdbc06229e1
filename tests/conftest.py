"""
Shared fixtures for the ambient_glow test suite.

Nothing here touches hardware or the network: the solar clock, the probe
and the brightness sink are small fakes.
"""
import json
import time
from datetime import datetime, timedelta, timezone

import pytest

from ambient_glow.services import SettingsService


def wait_for(predicate, timeout=3.0, interval=0.005):
    """Poll until predicate() is true, fail the test on timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    raise AssertionError("condition not met within timeout")


class FakeSolarClock:
    """Sunrise at 06:00 UTC and sunset at 18:00 UTC every day; records every call."""

    def __init__(self, sunrise_hour=6, sunset_hour=18):
        self.sunrise_hour = sunrise_hour
        self.sunset_hour = sunset_hour
        self.calls = []

    @staticmethod
    def _at(t, hour):
        return t.replace(hour=hour, minute=0, second=0, microsecond=0)

    def _next(self, t, hour):
        candidate = self._at(t, hour)
        if candidate <= t:
            candidate += timedelta(days=1)
        return candidate

    def _previous(self, t, hour):
        candidate = self._at(t, hour)
        if candidate >= t:
            candidate -= timedelta(days=1)
        return candidate

    def next_sunrise(self, t, lat, lon):
        self.calls.append(("next_sunrise", t, lat, lon))
        return self._next(t, self.sunrise_hour)

    def next_sunset(self, t, lat, lon):
        self.calls.append(("next_sunset", t, lat, lon))
        return self._next(t, self.sunset_hour)

    def previous_sunset(self, t, lat, lon):
        self.calls.append(("previous_sunset", t, lat, lon))
        return self._previous(t, self.sunset_hour)

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


class RecordingBrightness:
    """Stands in for BrightnessService in scheduler tests."""

    def __init__(self):
        self.levels = []

    def set_level(self, level):
        self.levels.append(level)


class ScriptedProbe:
    """Probe returning scripted round outcomes."""

    def __init__(self, outcomes=(), address="192.0.2.1"):
        self.outcomes = list(outcomes)
        self.address = address
        self.sent = 0
        self.setup_calls = 0

    def setup(self):
        self.setup_calls += 1

    def resolve(self, host_spec):
        return self.address

    def send(self, address, timeout):
        self.sent += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def solar_clock():
    return FakeSolarClock()


@pytest.fixture
def recording_brightness():
    return RecordingBrightness()


@pytest.fixture
def noon():
    return datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def write_config(tmp_path):
    """Write a JSON config file and return its path."""
    path = tmp_path / "ambient-glow.json"

    def _write(**overrides):
        data = {"latitude": 52.0, "longitude": 4.9, "ping_host": "", "transition_seconds": 3600}
        data.update(overrides)
        path.write_text(json.dumps(data))
        return str(path)

    return _write


@pytest.fixture
def settings_service(write_config):
    return SettingsService(write_config())
