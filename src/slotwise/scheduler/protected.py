"""Protected time handling.

Protected slots are recurring weekly windows (lunch, a block kept free for
ad-hoc calls) that the scheduler avoids. Urgent high-priority tasks may use
a protected window when that window allows it.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from slotwise.logger import get_logger
from slotwise.models import Priority, Task
from slotwise.preferences import ProtectedRecurrence, ProtectedSlot

from .core import Conflict, ConflictType, Severity, TimeSlot
from .timeutils import combine_local, date_range, get_zone, local_date, weekday_index

logger = get_logger()

URGENT_WINDOW = timedelta(hours=24)
END_OF_DAY = "23:59"


@dataclass
class ProtectedCheckResult:
    """Whether a slot falls in protected time, and which protection matched."""

    protected: bool
    can_override: bool
    matched_slot: ProtectedSlot | None = None
    reason: str | None = None


@dataclass
class ProtectedTimeInstance:
    """A protected slot expanded onto a concrete date."""

    date: date
    start: datetime
    end: datetime
    name: str
    slot_id: str
    allow_override_for_urgent: bool


DEFAULT_ADHOC_SLOT = ProtectedSlot(
    id="default-adhoc",
    name="Ad-hoc calls",
    recurrence=ProtectedRecurrence(
        days_of_week=[1, 2, 3, 4, 5], start_time="15:00", end_time="16:00"
    ),
    allow_override_for_urgent=True,
)

DEFAULT_LUNCH_SLOT = ProtectedSlot(
    id="default-lunch",
    name="Lunch",
    recurrence=ProtectedRecurrence(
        days_of_week=[1, 2, 3, 4, 5], start_time="12:00", end_time="13:00"
    ),
    allow_override_for_urgent=False,
)


def default_protected_slots(user_id: str = "") -> list[ProtectedSlot]:
    """Protected slots used when a user has configured none."""
    return [
        DEFAULT_ADHOC_SLOT.model_copy(update={"user_id": user_id}),
        DEFAULT_LUNCH_SLOT.model_copy(update={"user_id": user_id}),
    ]


def _window_for(
    day: date, protected_slot: ProtectedSlot, timezone: str, aware: bool
) -> tuple[datetime, datetime]:
    recurrence = protected_slot.recurrence
    start = combine_local(day, recurrence.start_time, timezone, aware=aware)
    end = combine_local(day, recurrence.end_time, timezone, aware=aware)
    return (start, end)


def is_protected(
    slot: TimeSlot, protected_slots: list[ProtectedSlot], timezone: str = "UTC"
) -> ProtectedCheckResult:
    """Check whether a slot overlaps protected time.

    The first enabled protected slot that overlaps wins; later matches are
    not considered.
    """
    aware = slot.start.tzinfo is not None
    slot_day = local_date(slot.start, timezone)
    dow = weekday_index(slot_day)

    for protected_slot in protected_slots:
        if not protected_slot.enabled:
            continue
        if dow not in protected_slot.recurrence.days_of_week:
            continue

        protected_start, protected_end = _window_for(slot_day, protected_slot, timezone, aware)
        if slot.start < protected_end and slot.end > protected_start:
            recurrence = protected_slot.recurrence
            return ProtectedCheckResult(
                protected=True,
                can_override=protected_slot.allow_override_for_urgent,
                matched_slot=protected_slot,
                reason=(
                    f'Overlaps with "{protected_slot.name}" '
                    f"({recurrence.start_time}-{recurrence.end_time})"
                ),
            )

    return ProtectedCheckResult(protected=False, can_override=True)


def expand_protected_times(
    start_date: date,
    end_date: date,
    protected_slots: list[ProtectedSlot],
    timezone: str = "UTC",
) -> list[ProtectedTimeInstance]:
    """Expand protected slots into concrete instances for every day in range."""
    instances: list[ProtectedTimeInstance] = []

    for day in date_range(start_date, end_date):
        dow = weekday_index(day)
        for protected_slot in protected_slots:
            if not protected_slot.enabled:
                continue
            if dow not in protected_slot.recurrence.days_of_week:
                continue

            start, end = _window_for(day, protected_slot, timezone, aware=True)
            instances.append(
                ProtectedTimeInstance(
                    date=day,
                    start=start,
                    end=end,
                    name=protected_slot.name,
                    slot_id=protected_slot.id,
                    allow_override_for_urgent=protected_slot.allow_override_for_urgent,
                )
            )

    return instances


def can_override(task: Task, protected_slot: ProtectedSlot) -> bool:
    """Check if a task may be scheduled into a protected slot.

    Only high-priority tasks may override, and only slots that allow it.
    """
    if task.priority != Priority.HIGH:
        return False
    return protected_slot.allow_override_for_urgent


def due_instant(task: Task, timezone: str = "UTC") -> datetime | None:
    """The moment a task is due: due_time on due_date, or end of that day."""
    if task.due_date is None:
        return None
    return combine_local(task.due_date, task.due_time or END_OF_DAY, timezone)


def is_due_within(task: Task, window: timedelta, now: datetime, timezone: str = "UTC") -> bool:
    """True if the task falls due after now and no later than now + window."""
    due = due_instant(task, timezone)
    if due is None:
        return False
    if now.tzinfo is None:
        now = now.replace(tzinfo=get_zone(timezone))
    remaining = due - now
    return timedelta(0) < remaining <= window


def is_urgent(task: Task, now: datetime | None = None, timezone: str = "UTC") -> bool:
    """A task is urgent if it is high priority or due within the next 24 hours."""
    if task.priority == Priority.HIGH:
        return True
    now = now or datetime.now(get_zone(timezone))
    return is_due_within(task, URGENT_WINDOW, now, timezone)


def filter_protected_slots(
    slots: list[TimeSlot],
    protected_slots: list[ProtectedSlot],
    task: Task | None,
    timezone: str = "UTC",
) -> list[TimeSlot]:
    """Drop slots in protected time unless the task may override that protection."""
    kept: list[TimeSlot] = []
    for slot in slots:
        result = is_protected(slot, protected_slots, timezone)
        if not result.protected:
            kept.append(slot)
        elif task is not None and result.matched_slot and can_override(task, result.matched_slot):
            kept.append(slot)
        else:
            logger.debug(f"      dropping {slot.start.isoformat()}: {result.reason}")
    return kept


def protected_conflicts(
    slot: TimeSlot,
    protected_slots: list[ProtectedSlot],
    task: Task | None,
    timezone: str = "UTC",
) -> list[Conflict]:
    """Describe any protected-time conflict for a slot."""
    result = is_protected(slot, protected_slots, timezone)
    if not result.protected or result.matched_slot is None:
        return []

    matched = result.matched_slot
    overridable = task is not None and can_override(task, matched)

    if overridable:
        resolution = "High priority task can override this protected time"
    elif matched.allow_override_for_urgent:
        resolution = "Only high-priority urgent tasks can override this time"
    else:
        resolution = "This protected time cannot be overridden"

    return [
        Conflict(
            type=ConflictType.PROTECTED_SLOT,
            description=result.reason or f"Overlaps with protected time: {matched.name}",
            severity=Severity.WARNING if overridable else Severity.ERROR,
            resolution=resolution,
        )
    ]
