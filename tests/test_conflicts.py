"""Tests for conflict detection and priority displacement."""

import itertools

from slotwise.models import CalendarEvent, Priority
from slotwise.preferences import TimeRange
from slotwise.scheduler.conflicts import (
    can_displace_by_priority,
    can_displace_existing,
    check_conflicts,
    compare_priorities,
    find_best_slot,
    find_conflicts,
    is_within_working_hours,
)
from slotwise.scheduler.core import ConflictType, Severity
from tests.conftest import at, make_task, slot


def event(
    event_id: str,
    start: str,
    end: str,
    *,
    title: str = "Busy",
    managed_task_id: str | None = None,
    managed_priority: Priority | None = None,
    status: str = "confirmed",
    buffer_type: str | None = None,
) -> CalendarEvent:
    return CalendarEvent(
        id=event_id,
        start=at(start),
        end=at(end),
        title=title,
        status=status,
        managed_task_id=managed_task_id,
        managed_priority=managed_priority,
        buffer_type=buffer_type,
    )


class TestPriorityComparison:
    """Test priority ordering and the displacement rule."""

    def test_compare(self) -> None:
        assert compare_priorities(Priority.HIGH, Priority.LOW) > 0
        assert compare_priorities(Priority.LOW, Priority.MEDIUM) < 0
        assert compare_priorities(Priority.MEDIUM, Priority.MEDIUM) == 0

    def test_equal_priority_never_displaces(self) -> None:
        for priority in Priority:
            assert not can_displace_by_priority(priority, priority)

    def test_displacement_is_monotonic(self) -> None:
        """If a can displace b, b can never displace a."""
        for a, b in itertools.product(Priority, repeat=2):
            if can_displace_by_priority(a, b):
                assert not can_displace_by_priority(b, a)


class TestFindConflicts:
    """Test overlap detection against calendar events."""

    def test_overlapping_events(self) -> None:
        events = [
            event("e1", "09:30", "10:30"),
            event("e2", "10:00", "11:00"),
            event("e3", "11:00", "12:00"),
        ]
        found = find_conflicts(slot("10:00", "11:00"), events)
        assert [e.id for e in found] == ["e1", "e2"]

    def test_cancelled_events_are_ignored(self) -> None:
        events = [event("e1", "10:00", "11:00", status="cancelled")]
        assert find_conflicts(slot("10:00", "11:00"), events) == []

    def test_buffer_events_are_transparent(self) -> None:
        events = [
            event("b1", "09:45", "10:00", managed_task_id="old", buffer_type="before"),
            event("e1", "10:00", "11:00", managed_task_id="old", managed_priority=Priority.LOW),
            event("b2", "11:00", "11:15", managed_task_id="old", buffer_type="after"),
        ]
        found = find_conflicts(slot("09:45", "11:15"), events)
        assert [e.id for e in found] == ["e1"]

        result = check_conflicts(make_task(priority=Priority.HIGH), slot("09:45", "11:15"), events)
        assert result.can_displace


class TestCheckConflicts:
    """Test conflict classification."""

    def test_no_conflicts(self) -> None:
        result = check_conflicts(make_task(), slot("09:00", "10:00"), [])
        assert not result.has_conflicts
        assert not result.can_displace

    def test_lower_priority_managed_event_is_displaceable(self) -> None:
        events = [
            event(
                "e1",
                "09:00",
                "10:00",
                title="Old task",
                managed_task_id="old",
                managed_priority=Priority.LOW,
            )
        ]
        result = check_conflicts(make_task(priority=Priority.HIGH), slot("09:00", "10:00"), events)

        assert result.has_conflicts
        assert result.can_displace
        assert result.conflicts[0].type == ConflictType.OVERLAP
        assert result.conflicts[0].severity == Severity.ERROR
        assert result.conflicts[0].conflicting_event_id == "e1"
        assert result.conflicts[0].description == 'Overlaps with "Old task" (low priority task)'
        assert result.displacements[0].task_id == "old"
        assert result.displacements[0].recommended

    def test_unmanaged_event_blocks_displacement(self) -> None:
        events = [
            event("e1", "09:00", "09:30", managed_task_id="old", managed_priority=Priority.LOW),
            event("e2", "09:30", "10:00", title="Dentist"),
        ]
        result = check_conflicts(make_task(priority=Priority.HIGH), slot("09:00", "10:00"), events)
        assert result.has_conflicts
        assert not result.can_displace
        assert len(result.displacements) == 1

    def test_equal_priority_is_not_displaceable(self) -> None:
        events = [
            event("e1", "09:00", "10:00", managed_task_id="old", managed_priority=Priority.HIGH)
        ]
        result = check_conflicts(make_task(priority=Priority.HIGH), slot("09:00", "10:00"), events)
        assert not result.can_displace
        assert result.displacements == []


def test_can_displace_existing_defaults_to_medium() -> None:
    events = [
        event("e1", "09:00", "10:00", managed_task_id="unknown"),
        event("e2", "10:00", "11:00", managed_task_id="high", managed_priority=Priority.HIGH),
        event("e3", "11:00", "12:00"),
    ]
    displacements = can_displace_existing(make_task(priority=Priority.HIGH), events)
    assert [d.task_id for d in displacements] == ["unknown"]
    assert displacements[0].priority == Priority.MEDIUM
    assert can_displace_existing(make_task(priority=Priority.MEDIUM), events) == []


class TestFindBestSlot:
    """Test choosing a bookable slot."""

    def test_first_free_slot_wins(self) -> None:
        events = [event("e1", "09:00", "10:00")]
        candidates = [slot("09:00", "10:00"), slot("10:00", "11:00"), slot("11:00", "12:00")]
        best = find_best_slot(make_task(), candidates, events)
        assert best is not None
        assert best.slot == candidates[1]
        assert not best.result.has_conflicts

    def test_falls_back_to_displaceable_slot(self) -> None:
        events = [
            event("e1", "09:00", "10:00", title="Meeting"),
            event("e2", "10:00", "11:00", managed_task_id="old", managed_priority=Priority.LOW),
        ]
        candidates = [slot("09:00", "10:00"), slot("10:00", "11:00")]
        best = find_best_slot(make_task(priority=Priority.MEDIUM), candidates, events)
        assert best is not None
        assert best.slot == candidates[1]
        assert best.result.can_displace

    def test_nothing_bookable(self) -> None:
        events = [event("e1", "09:00", "11:00")]
        candidates = [slot("09:00", "10:00"), slot("10:00", "11:00")]
        assert find_best_slot(make_task(priority=Priority.HIGH), candidates, events) is None


def test_working_hours() -> None:
    hours = TimeRange(start="09:00", end="17:00")
    assert is_within_working_hours(slot("09:00", "17:00"), hours)
    assert not is_within_working_hours(slot("08:30", "09:30"), hours)
    assert not is_within_working_hours(slot("16:30", "17:30"), hours)
    assert is_within_working_hours(slot("14:00", "15:00"), hours, "America/New_York")
