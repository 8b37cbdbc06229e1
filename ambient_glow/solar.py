# ambient_glow/solar.py
"""
Sunrise/sunset lookups built on astral
All instants are timezone-aware UTC datetimes
"""
from datetime import datetime, timedelta, timezone

from astral import LocationInfo
from astral.sun import sunrise, sunset

# Polar day/night can hide an event for months
SEARCH_DAYS = 370


def _observer(latitude: float, longitude: float):
    return LocationInfo(name="ambient", region="", timezone="UTC",
                        latitude=latitude, longitude=longitude).observer


def _event(func, observer, day):
    try:
        return func(observer, date=day, tzinfo=timezone.utc)
    except ValueError:
        # Sun never rises/sets on this day
        return None


def _search(func, t: datetime, latitude: float, longitude: float, forward: bool) -> datetime:
    observer = _observer(latitude, longitude)
    step = 1 if forward else -1
    day = t.astimezone(timezone.utc).date() - timedelta(days=step)

    for _ in range(SEARCH_DAYS):
        # Check neighbouring days too, a UTC date can hold the local event of the day before/after
        candidates = [_event(func, observer, day + timedelta(days=offset)) for offset in (-1, 0, 1)]
        if forward:
            found = [c for c in candidates if c is not None and c > t]
            if found:
                return min(found)
        else:
            found = [c for c in candidates if c is not None and c < t]
            if found:
                return max(found)
        day += timedelta(days=step)

    raise ValueError(f"No {func.__name__} found within {SEARCH_DAYS} days of {t.isoformat()} at ({latitude}, {longitude})")


class SolarClock:
    """Pure solar-event calculator (next/previous sunrise and sunset)"""

    def next_sunrise(self, t: datetime, latitude: float, longitude: float) -> datetime:
        return _search(sunrise, t, latitude, longitude, forward=True)

    def next_sunset(self, t: datetime, latitude: float, longitude: float) -> datetime:
        return _search(sunset, t, latitude, longitude, forward=True)

    def previous_sunset(self, t: datetime, latitude: float, longitude: float) -> datetime:
        return _search(sunset, t, latitude, longitude, forward=False)
