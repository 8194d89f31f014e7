"""Tests for batch scheduling."""

from datetime import date, datetime

from slotwise.models import Priority, TaskType
from slotwise.preferences import UserSchedulingPreferences
from slotwise.scheduler.batch import (
    NO_SLOTS_REASON,
    BatchScheduleOptions,
    check_availability_sufficiency,
    estimate_batch_duration,
    mark_slot_as_used,
    schedule_batch,
    sort_tasks_by_priority,
    validate_batch_options,
)
from slotwise.scheduler.core import ValidationResult
from slotwise.scheduler.timeutils import slots_overlap
from tests.conftest import UTC, make_task, make_window, slot


def options(tasks, windows, **kwargs) -> BatchScheduleOptions:
    return BatchScheduleOptions(
        tasks=tasks,
        availability=windows,
        preferences=kwargs.pop("preferences", UserSchedulingPreferences()),
        user_id=kwargs.pop("user_id", "user-1"),
        **kwargs,
    )


class TestScheduleBatch:
    """Test allocation across several tasks."""

    def test_high_priority_gets_the_only_slot(self) -> None:
        low = make_task(id="A", content="Low task", priority=Priority.LOW, time_estimate=60)
        high = make_task(id="B", content="High task", priority=Priority.HIGH, time_estimate=60)
        window = make_window(("09:00", "10:00"))

        result = schedule_batch(options([low, high], [window]))

        assert [item.task.id for item in result.scheduled] == ["B"]
        assert [item.task.id for item in result.unschedulable] == ["A"]
        assert result.unschedulable[0].reason == NO_SLOTS_REASON
        assert result.summary.total_tasks == 2
        assert result.summary.scheduled_count == 1
        assert result.summary.unschedulable_count == 1
        assert result.summary.conflict_count == 0
        assert result.summary.total_time_scheduled == 60

    def test_input_order_when_priority_ignored(self) -> None:
        low = make_task(id="A", content="Low task", priority=Priority.LOW, time_estimate=60)
        high = make_task(id="B", content="High task", priority=Priority.HIGH, time_estimate=60)
        window = make_window(("09:00", "10:00"))

        result = schedule_batch(options([low, high], [window], respect_priority=False))

        assert [item.task.id for item in result.scheduled] == ["A"]
        assert [item.task.id for item in result.unschedulable] == ["B"]

    def test_scheduled_slots_never_overlap(self) -> None:
        tasks = [
            make_task(id=f"t{i}", content=f"Item {i}", time_estimate=45) for i in range(4)
        ]
        window = make_window(("09:00", "12:00"), ("13:00", "15:00"))

        result = schedule_batch(options(tasks, [window]))

        assert result.summary.scheduled_count == 4
        slots = [item.slot for item in result.scheduled]
        for i, first in enumerate(slots):
            for second in slots[i + 1 :]:
                assert not slots_overlap(first, second)

    def test_buffers_are_reserved(self) -> None:
        """A 30 minute call with 15 minute buffers uses the whole hour."""
        first = make_task(id="c1", content="Client call", task_type=TaskType.CALL)
        second = make_task(id="c2", content="Vendor call", task_type=TaskType.CALL)
        window = make_window(("14:00", "15:00"))

        result = schedule_batch(options([first, second], [window]))

        assert [item.task.id for item in result.scheduled] == ["c1"]
        assert result.scheduled[0].slot == slot("14:15", "14:45")
        assert [item.task.id for item in result.unschedulable] == ["c2"]

    def test_input_is_not_mutated(self) -> None:
        window = make_window(("09:00", "10:00"))
        schedule_batch(options([make_task(time_estimate=60)], [window]))
        assert window.total_free_minutes == 60
        assert all(s.available for s in window.slots)


class TestMarkSlotAsUsed:
    """Test consuming time from availability."""

    def test_splits_free_block(self) -> None:
        window = make_window(("09:00", "12:00"))

        [updated] = mark_slot_as_used([window], slot("10:00", "11:00"))

        assert [(s.start, s.end, s.available) for s in updated.slots] == [
            (slot("09:00", "10:00").start, slot("09:00", "10:00").end, True),
            (slot("10:00", "11:00").start, slot("10:00", "11:00").end, False),
            (slot("11:00", "12:00").start, slot("11:00", "12:00").end, True),
        ]
        assert updated.total_free_minutes == 120
        assert updated.total_busy_minutes == 60

    def test_partial_overlap_only_consumes_overlap(self) -> None:
        window = make_window(("09:00", "10:00"), ("11:00", "12:00"))

        [updated] = mark_slot_as_used([window], slot("09:30", "11:30"))

        assert [s.available for s in updated.slots] == [True, False, False, True]
        assert updated.total_free_minutes == 60
        assert updated.total_busy_minutes == 60

    def test_untouched_window_is_copied(self) -> None:
        monday = make_window(("09:00", "10:00"))
        tuesday = make_window(("09:00", "10:00"), day=date(2025, 1, 7))

        updated = mark_slot_as_used([monday, tuesday], slot("09:00", "10:00"))

        assert updated[1] == tuesday
        assert updated[1] is not tuesday
        assert monday.total_free_minutes == 60


def test_sort_tasks_by_priority() -> None:
    tasks = [
        make_task(id="low", priority=Priority.LOW),
        make_task(id="high-undated", priority=Priority.HIGH),
        make_task(id="high-later", priority=Priority.HIGH, due_date=date(2025, 1, 10)),
        make_task(id="high-sooner", priority=Priority.HIGH, due_date=date(2025, 1, 8)),
        make_task(id="medium-new", created_at=datetime(2025, 1, 3, tzinfo=UTC)),
        make_task(id="medium-none"),
        make_task(id="medium-old", created_at=datetime(2025, 1, 1, tzinfo=UTC)),
    ]

    ordered = [t.id for t in sort_tasks_by_priority(tasks)]

    assert ordered == [
        "high-sooner",
        "high-later",
        "high-undated",
        "medium-old",
        "medium-new",
        "medium-none",
        "low",
    ]


class TestValidation:
    """Test batch pre-flight validation."""

    def test_valid(self) -> None:
        result = validate_batch_options(options([make_task()], [make_window(("09:00", "10:00"))]))
        assert result.valid
        assert result.errors == []

    def test_result_errors_default_empty(self) -> None:
        first, second = ValidationResult(valid=True), ValidationResult(valid=True)
        first.errors.append("x")
        assert second.errors == []

    def test_missing_everything(self) -> None:
        result = validate_batch_options(options([], [], preferences=None, user_id=""))
        assert not result.valid
        assert result.errors == [
            "No tasks provided for scheduling",
            "No availability windows provided",
            "User preferences are required",
            "User ID is required",
        ]

    def test_task_without_id(self) -> None:
        task = make_task(id="", content="A task whose content is rather long indeed")
        result = validate_batch_options(options([task], [make_window(("09:00", "10:00"))]))
        assert result.errors == ["Task missing ID: A task whose content is rather..."]


class TestSufficiency:
    """Test duration estimates against free time."""

    def test_estimate_includes_buffers(self) -> None:
        tasks = [
            make_task(task_type=TaskType.CALL),
            make_task(task_type=TaskType.DEEP_WORK, time_estimate=30),
        ]
        assert estimate_batch_duration(tasks, []) == 100

    def test_insufficient(self) -> None:
        tasks = [
            make_task(task_type=TaskType.CALL),
            make_task(task_type=TaskType.DEEP_WORK, time_estimate=30),
        ]
        result = check_availability_sufficiency(tasks, [make_window(("09:00", "10:00"))], [])
        assert not result.sufficient
        assert result.required_minutes == 100
        assert result.available_minutes == 60

    def test_sufficient(self) -> None:
        tasks = [make_task(time_estimate=30)]
        result = check_availability_sufficiency(tasks, [make_window(("09:00", "10:00"))], [])
        assert result.sufficient
