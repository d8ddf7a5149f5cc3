"""Domain time windows — pure functions, zero external dependencies.

Only stdlib and domain.models imports allowed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from domain.models import TimeUnit, TimeWindow

MILLIS_PER_UNIT = {
    TimeUnit.MINUTES: 60 * 1000,
    TimeUnit.HOURS: 60 * 60 * 1000,
    TimeUnit.DAYS: 24 * 60 * 60 * 1000,
}

# Unrecognised units are read as hours; pending product confirmation.
DEFAULT_TIME_UNIT = TimeUnit.HOURS


def duration_millis(value, unit):
    """Convert a (value, unit) pair to milliseconds."""
    try:
        unit = TimeUnit(unit)
    except ValueError:
        unit = DEFAULT_TIME_UNIT
    return int(value) * MILLIS_PER_UNIT[unit]


def window_millis(time_window: TimeWindow) -> int:
    return duration_millis(time_window.value, time_window.unit)


def as_utc(moment: datetime) -> datetime:
    """Read a timestamp without tzinfo as UTC; aware timestamps pass through."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def time_bounds(moment: datetime, millis: int) -> tuple[datetime, datetime]:
    """Return the inclusive range ``[moment - millis, moment + millis]``."""
    delta = timedelta(milliseconds=millis)
    return moment - delta, moment + delta


def delta_millis(first: datetime, second: datetime) -> int:
    """Absolute distance between two timestamps, in whole milliseconds."""
    return abs(as_utc(first) - as_utc(second)) // timedelta(milliseconds=1)
