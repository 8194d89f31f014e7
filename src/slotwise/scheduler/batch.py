"""Batch scheduling: place several tasks against one shrinking availability model."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta

from slotwise.logger import get_logger
from slotwise.models import Task
from slotwise.preferences import ProtectedSlot, SchedulingRule, UserSchedulingPreferences

from .config import EngineConfig
from .conflicts import PRIORITY_WEIGHT
from .core import (
    AvailabilityWindow,
    BatchConflict,
    BatchScheduledTask,
    BatchScheduleResult,
    BatchSummary,
    TimeSlot,
    UnschedulableTask,
    ValidationResult,
    minutes_between,
)
from .engine import SchedulingContext, SchedulingEngine
from .rules import effective_rule, total_duration_with_buffers
from .timeutils import slots_overlap

logger = get_logger()

NO_SLOTS_REASON = "No available time slots that fit the task requirements"


@dataclass
class BatchScheduleOptions:
    """Everything a batch run needs."""

    tasks: list[Task]
    availability: list[AvailabilityWindow]
    preferences: UserSchedulingPreferences | None
    user_id: str
    rules: list[SchedulingRule] = field(default_factory=list)
    protected_slots: list[ProtectedSlot] = field(default_factory=list)
    respect_priority: bool = True
    now: datetime | None = None


@dataclass
class SufficiencyResult:
    """Whether the free time covers the estimated need."""

    sufficient: bool
    required_minutes: int
    available_minutes: float


def _priority_sort_key(task: Task) -> tuple[int, bool, date, bool, float]:
    created = task.created_at.timestamp() if task.created_at else 0.0
    return (
        -PRIORITY_WEIGHT[task.priority],
        task.due_date is None,
        task.due_date or date.max,
        task.created_at is None,
        created,
    )


def sort_tasks_by_priority(tasks: list[Task]) -> list[Task]:
    """High priority first, then earliest due date (undated last), then oldest."""
    return sorted(tasks, key=_priority_sort_key)


def mark_slot_as_used(
    availability: list[AvailabilityWindow], used: TimeSlot
) -> list[AvailabilityWindow]:
    """Return a copy of availability with the used range taken out of the free blocks.

    A free block that overlaps the range keeps its parts before and after it
    as free blocks; the overlapped part becomes busy.
    """
    updated: list[AvailabilityWindow] = []

    for window in availability:
        slots: list[TimeSlot] = []
        consumed = 0.0

        for slot in window.slots:
            if not slot.available or not slots_overlap(slot, used):
                slots.append(replace(slot))
                continue

            busy_start = max(slot.start, used.start)
            busy_end = min(slot.end, used.end)
            if slot.start < busy_start:
                slots.append(TimeSlot(slot.start, busy_start, available=True))
            slots.append(TimeSlot(busy_start, busy_end, available=False))
            if busy_end < slot.end:
                slots.append(TimeSlot(busy_end, slot.end, available=True))
            consumed += minutes_between(busy_start, busy_end)

        updated.append(
            AvailabilityWindow(
                date=window.date,
                slots=slots,
                total_free_minutes=max(0.0, window.total_free_minutes - consumed),
                total_busy_minutes=window.total_busy_minutes + consumed,
            )
        )

    return updated


def schedule_batch(
    options: BatchScheduleOptions, config: EngineConfig | None = None
) -> BatchScheduleResult:
    """Schedule tasks one at a time, each against what the earlier ones left free.

    Tasks that collide with earlier assignments are reported as conflicts;
    they never displace other tasks from the same batch.
    """
    config = config or EngineConfig()
    preferences = options.preferences or UserSchedulingPreferences()
    ordered = (
        sort_tasks_by_priority(options.tasks) if options.respect_priority else list(options.tasks)
    )

    scheduled: list[BatchScheduledTask] = []
    conflicts: list[BatchConflict] = []
    unschedulable: list[UnschedulableTask] = []

    current = options.availability
    assigned: dict[str, TimeSlot] = {}

    for task in ordered:
        context = SchedulingContext(
            task=task,
            availability=current,
            user_id=options.user_id,
            rules=options.rules,
            protected_slots=options.protected_slots,
            preferences=preferences,
            now=options.now,
        )
        engine = SchedulingEngine(context, config)
        suggestions = engine.find_best_slots(config.batch_suggestion_count)

        if not suggestions:
            unschedulable.append(UnschedulableTask(task, NO_SLOTS_REASON))
            logger.changes(f"Unschedulable: {task.id}")
            continue

        chosen = None
        colliding: list[str] = []
        for suggestion in suggestions:
            hits = [
                task_id
                for task_id, slot in assigned.items()
                if slots_overlap(suggestion.slot, slot)
            ]
            if not hits:
                chosen = suggestion
                break
            colliding.extend(t for t in hits if t not in colliding)

        if chosen is None:
            conflicts.append(
                BatchConflict(
                    task=task,
                    conflicts_with=colliding,
                    suggestion=(
                        f"Consider rescheduling after {', '.join(colliding)} "
                        "or extending working hours"
                    ),
                )
            )
            logger.changes(f"Conflict: {task.id} collides with {', '.join(colliding)}")
            continue

        scheduled.append(BatchScheduledTask(task, chosen.slot, chosen.score, chosen.reasoning))
        assigned[task.id] = chosen.slot

        rule = engine.effective_rule
        buffered = TimeSlot(
            chosen.slot.start - timedelta(minutes=rule.buffer_before),
            chosen.slot.end + timedelta(minutes=rule.buffer_after),
        )
        current = mark_slot_as_used(current, buffered)
        logger.changes(
            f"Scheduled {task.id}: {chosen.slot.start.isoformat()} - "
            f"{chosen.slot.end.isoformat()} (score {chosen.score})"
        )

    total_minutes = sum(item.slot.duration_minutes for item in scheduled)
    return BatchScheduleResult(
        scheduled=scheduled,
        conflicts=conflicts,
        unschedulable=unschedulable,
        summary=BatchSummary(
            total_tasks=len(options.tasks),
            scheduled_count=len(scheduled),
            conflict_count=len(conflicts),
            unschedulable_count=len(unschedulable),
            total_time_scheduled=total_minutes,
        ),
    )


def validate_batch_options(options: BatchScheduleOptions) -> ValidationResult:
    """Check a batch request has what allocation needs."""
    errors: list[str] = []

    if not options.tasks:
        errors.append("No tasks provided for scheduling")
    if not options.availability:
        errors.append("No availability windows provided")
    if options.preferences is None:
        errors.append("User preferences are required")
    if not options.user_id:
        errors.append("User ID is required")

    for task in options.tasks or []:
        if not task.id:
            errors.append(f"Task missing ID: {(task.content or '')[:30]}...")
        if not task.priority:
            errors.append(f"Task {task.id} missing priority")

    return ValidationResult(valid=not errors, errors=errors)


def estimate_batch_duration(tasks: list[Task], rules: list[SchedulingRule]) -> int:
    """Total minutes the tasks need, buffers included."""
    return sum(
        total_duration_with_buffers(task, effective_rule(task, rules)) for task in tasks
    )


def check_availability_sufficiency(
    tasks: list[Task], availability: list[AvailabilityWindow], rules: list[SchedulingRule]
) -> SufficiencyResult:
    """Compare the estimated need against the free minutes across all windows."""
    required = estimate_batch_duration(tasks, rules)
    available = sum(window.total_free_minutes for window in availability)
    return SufficiencyResult(
        sufficient=available >= required,
        required_minutes=required,
        available_minutes=available,
    )
