"""Conflict detection and priority-based displacement."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from slotwise.logger import get_logger
from slotwise.models import CalendarEvent, Priority, Task
from slotwise.preferences import TimeRange

from .core import Conflict, ConflictType, Displacement, Severity, TimeSlot
from .timeutils import local_minutes, slots_overlap, time_to_minutes

logger = get_logger()

# Higher number = higher priority
PRIORITY_WEIGHT: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}

__all__ = [
    "PRIORITY_WEIGHT",
    "BestSlot",
    "ConflictCheckResult",
    "can_displace_by_priority",
    "can_displace_existing",
    "check_conflicts",
    "compare_priorities",
    "displacement_reason",
    "find_best_slot",
    "find_conflicts",
    "is_within_working_hours",
    "slots_overlap",
]


@dataclass
class ConflictCheckResult:
    """Overlaps found for a proposed slot and which of them can be bumped."""

    has_conflicts: bool
    conflicts: list[Conflict] = field(default_factory=list)
    can_displace: bool = False
    displacements: list[Displacement] = field(default_factory=list)


@dataclass
class BestSlot:
    slot: TimeSlot
    result: ConflictCheckResult


def compare_priorities(a: Priority, b: Priority) -> int:
    """Positive if a outranks b, negative if b outranks a, 0 if equal."""
    return PRIORITY_WEIGHT[a] - PRIORITY_WEIGHT[b]


def can_displace_by_priority(new_priority: Priority, existing_priority: Priority) -> bool:
    """Only a strictly higher priority may displace; equal never does."""
    return compare_priorities(new_priority, existing_priority) > 0


def displacement_reason(new_priority: Priority, existing_priority: Priority) -> str:
    return (
        f"Higher priority task ({new_priority.value}) displacing "
        f"{existing_priority.value} priority task"
    )


def find_conflicts(slot: TimeSlot, events: Iterable[CalendarEvent]) -> list[CalendarEvent]:
    """Events that overlap the slot.

    Cancelled events and slotwise's own prep and wind-down buffers are
    skipped; buffers are transparent and never block a booking.
    """
    return [
        e
        for e in events
        if e.status != "cancelled" and e.buffer_type is None and slots_overlap(slot, e)
    ]


def _event_conflict(event: CalendarEvent) -> Conflict:
    description = f'Overlaps with "{event.title}"'
    if event.is_managed and event.managed_priority:
        description += f" ({event.managed_priority.value} priority task)"
    return Conflict(
        type=ConflictType.OVERLAP,
        description=description,
        severity=Severity.ERROR,
        conflicting_event_id=event.id,
    )


def check_conflicts(
    task: Task, slot: TimeSlot, events: Iterable[CalendarEvent]
) -> ConflictCheckResult:
    """Classify overlapping events and decide whether the task can bump them all.

    A managed event with a known, lower priority becomes a displacement.
    Unmanaged events and managed events of equal or higher priority can
    never be displaced.
    """
    overlapping = find_conflicts(slot, events)
    if not overlapping:
        return ConflictCheckResult(has_conflicts=False)

    conflicts: list[Conflict] = []
    displacements: list[Displacement] = []
    can_displace_all = True

    for event in overlapping:
        conflicts.append(_event_conflict(event))

        existing_priority = event.managed_priority
        if (
            event.is_managed
            and existing_priority is not None
            and can_displace_by_priority(task.priority, existing_priority)
        ):
            displacements.append(
                Displacement(
                    task_id=event.managed_task_id or "",
                    task_content=event.title,
                    priority=existing_priority,
                    new_priority=task.priority,
                    recommended=True,
                    reason=displacement_reason(task.priority, existing_priority),
                )
            )
        else:
            can_displace_all = False

    return ConflictCheckResult(
        has_conflicts=True,
        conflicts=conflicts,
        can_displace=can_displace_all and bool(displacements),
        displacements=displacements,
    )


def can_displace_existing(task: Task, events: Iterable[CalendarEvent]) -> list[Displacement]:
    """Managed events the task outranks; an unknown priority counts as medium."""
    displacements: list[Displacement] = []
    for event in events:
        if not event.is_managed:
            continue
        existing_priority = event.managed_priority or Priority.MEDIUM
        if can_displace_by_priority(task.priority, existing_priority):
            displacements.append(
                Displacement(
                    task_id=event.managed_task_id or "",
                    task_content=event.title,
                    priority=existing_priority,
                    new_priority=task.priority,
                    recommended=True,
                    reason=displacement_reason(task.priority, existing_priority),
                )
            )
    return displacements


def find_best_slot(
    task: Task, slots: list[TimeSlot], events: list[CalendarEvent]
) -> BestSlot | None:
    """Pick the first conflict-free slot, else the first fully displaceable one.

    Args:
        task: Task to place
        slots: Candidate slots in preference order
        events: Existing calendar events

    Returns:
        The chosen slot with its conflict check, or None if every slot has
        a conflict that cannot be displaced
    """
    results = [(slot, check_conflicts(task, slot, events)) for slot in slots]

    for slot, result in results:
        if not result.has_conflicts:
            return BestSlot(slot, result)

    for slot, result in results:
        if result.can_displace:
            logger.checks(
                f"  {task.id}: no free slot, displacing {len(result.displacements)} booking(s)"
            )
            return BestSlot(slot, result)

    return None


def is_within_working_hours(
    slot: TimeSlot, working_hours: TimeRange, timezone: str = "UTC"
) -> bool:
    """True if the slot starts and ends inside the local working hours."""
    start = local_minutes(slot.start, timezone)
    end = start + int(slot.duration_minutes)
    return time_to_minutes(working_hours.start) <= start and end <= time_to_minutes(
        working_hours.end
    )
