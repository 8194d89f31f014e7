"""Core dataclasses for the scheduling system."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from slotwise.models import Priority, Task


def minutes_between(start: datetime, end: datetime) -> float:
    """Length of the interval [start, end) in minutes."""
    return (end - start).total_seconds() / 60


@dataclass
class TimeSlot:
    """A half-open interval [start, end), optionally tagged free or busy."""

    start: datetime
    end: datetime
    available: bool = True

    @property
    def duration_minutes(self) -> float:
        return minutes_between(self.start, self.end)

    def contains(self, other: "TimeSlot") -> bool:
        """True if other lies entirely inside this slot."""
        return self.start <= other.start and self.end >= other.end


@dataclass
class AvailabilityWindow:
    """Free/busy breakdown of one calendar day.

    Slots are chronological and non-overlapping; the totals equal the sums
    of the free and busy slot durations.
    """

    date: date
    slots: list[TimeSlot]
    total_free_minutes: float
    total_busy_minutes: float

    @classmethod
    def from_slots(cls, day: date, slots: list[TimeSlot]) -> "AvailabilityWindow":
        """Build a window, sorting the slots and computing the totals."""
        ordered = sorted(slots, key=lambda s: s.start)
        free = sum(s.duration_minutes for s in ordered if s.available)
        busy = sum(s.duration_minutes for s in ordered if not s.available)
        return cls(date=day, slots=ordered, total_free_minutes=free, total_busy_minutes=busy)

    def free_slots(self) -> list[TimeSlot]:
        return [s for s in self.slots if s.available]

    def containing_free_slot(self, slot: TimeSlot) -> TimeSlot | None:
        """Find the free block that fully contains slot, if any."""
        for candidate in self.slots:
            if candidate.available and candidate.contains(slot):
                return candidate
        return None


@dataclass
class ScoringFactor:
    """One weighted contribution to a slot's score."""

    name: str
    weight: float
    value: int  # 0-100
    description: str


@dataclass
class ScoringResult:
    """Total score, factor breakdown and reasoning for one slot."""

    total_score: int
    factors: list[ScoringFactor]
    reasoning: str


class ConflictType(str, Enum):
    """Kinds of problems a suggested slot can have."""

    OVERLAP = "overlap"
    BUFFER = "buffer"
    RULE_VIOLATION = "rule_violation"
    PROTECTED_SLOT = "protected_slot"
    OUTSIDE_HOURS = "outside_hours"


class Severity(str, Enum):
    """How serious a conflict is."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Conflict:
    """A problem detected for a candidate slot."""

    type: ConflictType
    description: str
    severity: Severity
    resolution: str | None = None
    conflicting_event_id: str | None = None


@dataclass
class Displacement:
    """An existing booking that a new task could bump."""

    task_id: str
    task_content: str
    priority: Priority  # priority of the existing booking
    new_priority: Priority  # priority of the task being scheduled
    recommended: bool
    reason: str


@dataclass
class SchedulingSuggestion:
    """A ranked candidate slot for a task."""

    slot: TimeSlot
    score: int
    reasoning: str
    factors: list[ScoringFactor]
    conflicts: list[Conflict] = field(default_factory=list)
    displacements: list[Displacement] = field(default_factory=list)


@dataclass
class EffectiveRule:
    """Fully resolved scheduling rule for one task.

    Built from the default table, the user's rule and task-level overrides.
    """

    id: str
    user_id: str
    task_type: str
    enabled: bool
    preferred_start: str  # "HH:mm"
    preferred_end: str  # "HH:mm"
    preferred_days: list[int]
    default_duration: int
    buffer_before: int
    buffer_after: int
    calendar_id: str | None
    created_at: str
    updated_at: str


@dataclass
class BatchScheduledTask:
    """A task assigned a slot during batch allocation."""

    task: Task
    slot: TimeSlot
    score: int
    reasoning: str


@dataclass
class BatchConflict:
    """A task whose best slots all collide with earlier batch assignments."""

    task: Task
    conflicts_with: list[str]
    suggestion: str


@dataclass
class UnschedulableTask:
    """A task for which no slot could be found at all."""

    task: Task
    reason: str


@dataclass
class BatchSummary:
    """Counts and totals for a batch run."""

    total_tasks: int
    scheduled_count: int
    conflict_count: int
    unschedulable_count: int
    total_time_scheduled: float  # minutes


@dataclass
class BatchScheduleResult:
    """Complete result of a batch scheduling run."""

    scheduled: list[BatchScheduledTask]
    conflicts: list[BatchConflict]
    unschedulable: list[UnschedulableTask]
    summary: BatchSummary


@dataclass
class ValidationResult:
    """Outcome of a pre-flight check."""

    valid: bool
    errors: list[str] = field(default_factory=list)
