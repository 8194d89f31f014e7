"""Time-of-day parsing and local-time helpers.

Aware datetimes are converted into the user's IANA timezone before any
time-of-day or day-of-week check. Naive datetimes are taken to be local
already.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from functools import lru_cache
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from slotwise.logger import get_logger

logger = get_logger()

MINUTES_PER_HOUR = 60
HOURS_PER_DAY = 24
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class Interval(Protocol):
    """Anything with a start and an end instant."""

    @property
    def start(self) -> datetime: ...

    @property
    def end(self) -> datetime: ...


def parse_time(time_str: str) -> tuple[int, int]:
    """Parse an "HH:mm" string into (hours, minutes).

    Never raises: any component that cannot be parsed becomes 0.
    """
    parts = (time_str or "").split(":")

    def _component(index: int) -> int:
        if index >= len(parts):
            return 0
        try:
            return int(parts[index].strip())
        except ValueError:
            return 0

    return (_component(0), _component(1))


def time_to_minutes(time_str: str) -> int:
    """Convert an "HH:mm" string to minutes since midnight."""
    hours, minutes = parse_time(time_str)
    return hours * MINUTES_PER_HOUR + minutes


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as "HH:mm"."""
    return f"{minutes // MINUTES_PER_HOUR:02d}:{minutes % MINUTES_PER_HOUR:02d}"


@lru_cache(maxsize=64)
def get_zone(timezone: str) -> tzinfo:
    """Resolve an IANA timezone name, falling back to UTC when unknown."""
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{timezone}', falling back to UTC")
        return ZoneInfo("UTC")


def to_local(dt: datetime, timezone: str) -> datetime:
    """Express an instant as wall-clock time in the given timezone."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(get_zone(timezone))


def local_minutes(dt: datetime, timezone: str) -> int:
    """Minutes since local midnight."""
    local = to_local(dt, timezone)
    return local.hour * MINUTES_PER_HOUR + local.minute


def local_hour(dt: datetime, timezone: str) -> int:
    return to_local(dt, timezone).hour


def local_date(dt: datetime, timezone: str) -> date:
    return to_local(dt, timezone).date()


def day_of_week(dt: datetime, timezone: str = "UTC") -> int:
    """Local day of week with 0=Sunday through 6=Saturday."""
    return (to_local(dt, timezone).weekday() + 1) % 7


def weekday_index(day: date) -> int:
    """Day of week of a calendar date with 0=Sunday through 6=Saturday."""
    return (day.weekday() + 1) % 7


def combine_local(day: date, time_str: str, timezone: str, *, aware: bool = True) -> datetime:
    """Build the instant for "HH:mm" on a calendar date in the given timezone.

    With aware=False the result is a naive local datetime, matching callers
    that work with naive datetimes throughout.
    """
    hours, minutes = parse_time(time_str)
    # "24:00" and other overflow values roll into the next day
    naive = datetime.combine(day, time()) + timedelta(hours=hours, minutes=minutes)
    if not aware:
        return naive
    return naive.replace(tzinfo=get_zone(timezone))


def slots_overlap(first: Interval, second: Interval) -> bool:
    """Half-open interval overlap: touching endpoints do not overlap."""
    return first.start < second.end and second.start < first.end


def date_range(start: date, end: date) -> list[date]:
    """All calendar dates from start to end inclusive."""
    days: list[date] = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days
