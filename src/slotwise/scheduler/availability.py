"""Build availability windows from calendar busy periods and working hours."""

from datetime import date, timedelta

from slotwise.logger import get_logger
from slotwise.preferences import TimeRange, UserSchedulingPreferences

from .core import AvailabilityWindow, TimeSlot
from .timeutils import Interval, combine_local, date_range, weekday_index

logger = get_logger()

DEFAULT_INTERVAL_MINUTES = 30


def merge_busy_periods(periods: list[Interval]) -> list[TimeSlot]:
    """Sort busy periods and merge the ones that overlap or touch."""
    if not periods:
        return []

    ordered = sorted(periods, key=lambda p: p.start)
    merged = [TimeSlot(ordered[0].start, ordered[0].end, available=False)]

    for period in ordered[1:]:
        current = merged[-1]
        if period.start <= current.end:
            current.end = max(current.end, period.end)
        else:
            merged.append(TimeSlot(period.start, period.end, available=False))

    return merged


def calculate_availability(
    day: date,
    busy_periods: list[Interval],
    working_hours: TimeRange,
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
    timezone: str = "UTC",
) -> AvailabilityWindow:
    """Compute one day's free and busy slots inside working hours.

    Working hours are cut into a grid of interval_minutes cells; a cell
    touched by any busy period is unavailable. Consecutive free cells merge
    into free blocks, and busy periods are clipped to working hours.
    """
    day_start = combine_local(day, working_hours.start, timezone)
    day_end = combine_local(day, working_hours.end, timezone)
    if day_end <= day_start:
        return AvailabilityWindow.from_slots(day, [])

    busy = merge_busy_periods(busy_periods)
    step = timedelta(minutes=interval_minutes)

    free_blocks: list[TimeSlot] = []
    cell_start = day_start
    while cell_start + step <= day_end:
        cell = TimeSlot(cell_start, cell_start + step)
        if not any(cell.start < b.end and b.start < cell.end for b in busy):
            if free_blocks and free_blocks[-1].end == cell.start:
                free_blocks[-1].end = cell.end
            else:
                free_blocks.append(cell)
        cell_start += step

    busy_slots: list[TimeSlot] = []
    for period in busy:
        start = max(period.start, day_start)
        end = min(period.end, day_end)
        if start < end:
            busy_slots.append(TimeSlot(start, end, available=False))

    window = AvailabilityWindow.from_slots(day, free_blocks + busy_slots)
    logger.debug(
        f"  {day.isoformat()}: {len(free_blocks)} free block(s), "
        f"{window.total_free_minutes:.0f} min free"
    )
    return window


def build_availability(
    start: date,
    end: date,
    busy_periods: list[Interval],
    preferences: UserSchedulingPreferences,
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
) -> list[AvailabilityWindow]:
    """Availability for every working day from start to end inclusive."""
    return [
        calculate_availability(
            day,
            busy_periods,
            preferences.working_hours,
            interval_minutes,
            preferences.timezone,
        )
        for day in date_range(start, end)
        if weekday_index(day) in preferences.working_days
    ]
