"""Pytest configuration and helpers for slotwise tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, timedelta, timezone
from typing import Any

import pytest

from slotwise.logger import reset_logger
from slotwise.models import Priority, Task
from slotwise.scheduler.core import AvailabilityWindow, TimeSlot

# A Monday; all helpers default to it
MONDAY = date(2025, 1, 6)
UTC = timezone.utc


def at(time_str: str, day: date = MONDAY) -> datetime:
    """Aware UTC datetime for "HH:mm" on a day."""
    hours, minutes = (int(part) for part in time_str.split(":"))
    return datetime(day.year, day.month, day.day, tzinfo=UTC) + timedelta(
        hours=hours, minutes=minutes
    )


def slot(start: str, end: str, day: date = MONDAY, *, available: bool = True) -> TimeSlot:
    """TimeSlot between two "HH:mm" times on a day."""
    return TimeSlot(at(start, day), at(end, day), available)


def make_window(*ranges: tuple[str, str], day: date = MONDAY) -> AvailabilityWindow:
    """Availability window whose free blocks are the given ranges."""
    return AvailabilityWindow.from_slots(day, [slot(s, e, day) for s, e in ranges])


def make_task(**overrides: Any) -> Task:
    """Task with sensible defaults; any field can be overridden."""
    fields: dict[str, Any] = {
        "id": "task-1",
        "content": "Untitled task",
        "priority": Priority.MEDIUM,
        "user_id": "user-1",
    }
    fields.update(overrides)
    return Task(**fields)


@pytest.fixture(autouse=True)
def clean_logger() -> Iterator[None]:
    """Leave the logger unconfigured between tests."""
    yield
    reset_logger()
