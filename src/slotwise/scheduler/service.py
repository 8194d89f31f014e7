"""High-level scheduling service."""

from datetime import datetime
from typing import Any

from slotwise.exceptions import ValidationError
from slotwise.logger import get_logger
from slotwise.models import CalendarEvent, ScheduledTask, Task
from slotwise.preferences import ProtectedSlot, SchedulingRule, UserSchedulingPreferences

from .batch import (
    BatchScheduleOptions,
    SufficiencyResult,
    check_availability_sufficiency,
    schedule_batch,
    validate_batch_options,
)
from .config import EngineConfig
from .conflicts import BestSlot, ConflictCheckResult, check_conflicts, find_best_slot
from .core import (
    AvailabilityWindow,
    BatchScheduleResult,
    Displacement,
    SchedulingSuggestion,
    ScoringResult,
    TimeSlot,
)
from .engine import SchedulingContext, SchedulingEngine
from .events import build_events
from .protected import default_protected_slots
from .rules import effective_rule

logger = get_logger()


class SchedulingService:
    """Entry point tying the engine, batch allocator and event builder together.

    Holds one user's configuration; every call takes the tasks and
    availability snapshot it should work on.
    """

    def __init__(  # noqa: PLR0913 - needs multiple optional config params
        self,
        preferences: UserSchedulingPreferences | None = None,
        rules: list[SchedulingRule] | None = None,
        protected_slots: list[ProtectedSlot] | None = None,
        config: EngineConfig | None = None,
        user_id: str = "",
        now: datetime | None = None,
    ):
        """Initialize scheduling service.

        Args:
            preferences: User scheduling preferences (defaults when omitted)
            rules: User scheduling rules per task type
            protected_slots: Protected time; None means use the built-in
                defaults, an empty list means no protected time at all
            config: Engine configuration
            user_id: Owning user
            now: Reference time for urgency checks (defaults to the current time)
        """
        self.preferences = preferences or UserSchedulingPreferences()
        self.rules = rules or []
        if protected_slots is None:
            protected_slots = default_protected_slots(user_id)
        self.protected_slots = protected_slots
        self.config = config or EngineConfig()
        self.user_id = user_id
        self.now = now

    def _engine(
        self,
        task: Task,
        availability: list[AvailabilityWindow],
        existing: list[ScheduledTask] | None = None,
    ) -> SchedulingEngine:
        context = SchedulingContext(
            task=task,
            availability=availability,
            user_id=self.user_id,
            existing_scheduled_tasks=existing or [],
            rules=self.rules,
            protected_slots=self.protected_slots,
            preferences=self.preferences,
            now=self.now,
        )
        return SchedulingEngine(context, self.config)

    def suggest(
        self,
        task: Task,
        availability: list[AvailabilityWindow],
        existing: list[ScheduledTask] | None = None,
        count: int | None = None,
    ) -> list[SchedulingSuggestion]:
        """Ranked slot suggestions for one task."""
        return self._engine(task, availability, existing).find_best_slots(count)

    def preview(
        self, task: Task, slot: TimeSlot, availability: list[AvailabilityWindow]
    ) -> ScoringResult:
        """Score a slot the user picked by hand."""
        return self._engine(task, availability).score_slot(slot)

    def check_displacements(
        self, task: Task, slot: TimeSlot, existing: list[ScheduledTask]
    ) -> list[Displacement]:
        """Existing bookings a slot would bump."""
        return self._engine(task, [], existing).check_displacements(slot)

    def check_calendar_conflicts(
        self, task: Task, slot: TimeSlot, events: list[CalendarEvent]
    ) -> ConflictCheckResult:
        """Overlaps between a slot and calendar events, with displaceable ones marked."""
        return check_conflicts(task, slot, events)

    def book(
        self,
        task: Task,
        availability: list[AvailabilityWindow],
        events: list[CalendarEvent],
    ) -> BestSlot | None:
        """Choose a slot to book against the live calendar.

        Suggestions are checked against the events in rank order: the first
        free one wins, otherwise the first whose events can all be displaced.
        """
        suggestions = self.suggest(task, availability)
        best = find_best_slot(task, [s.slot for s in suggestions], events)
        if best is None:
            logger.changes(f"No bookable slot for {task.id}")
        else:
            logger.changes(f"Booking {task.id} at {best.slot.start.isoformat()}")
        return best

    def schedule_batch(
        self,
        tasks: list[Task],
        availability: list[AvailabilityWindow],
        respect_priority: bool = True,
    ) -> BatchScheduleResult:
        """Schedule several tasks at once.

        Raises:
            ValidationError: If the request fails pre-flight validation
        """
        options = BatchScheduleOptions(
            tasks=tasks,
            availability=availability,
            preferences=self.preferences,
            user_id=self.user_id,
            rules=self.rules,
            protected_slots=self.protected_slots,
            respect_priority=respect_priority,
            now=self.now,
        )
        validation = validate_batch_options(options)
        if not validation.valid:
            raise ValidationError(validation.errors)

        sufficiency = self.check_sufficiency(tasks, availability)
        if not sufficiency.sufficient:
            logger.warning(
                f"Requested {sufficiency.required_minutes} min but only "
                f"{sufficiency.available_minutes:.0f} min free; some tasks will not fit"
            )

        return schedule_batch(options, self.config)

    def check_sufficiency(
        self, tasks: list[Task], availability: list[AvailabilityWindow]
    ) -> SufficiencyResult:
        return check_availability_sufficiency(tasks, availability, self.rules)

    def build_events(self, task: Task, slot: TimeSlot) -> list[dict[str, Any]]:
        """Event payloads for a task booked into a slot, buffers included."""
        rule = effective_rule(task, self.rules, infer_type=self.config.infer_task_types)
        return build_events(
            task,
            slot,
            buffer_before=rule.buffer_before,
            buffer_after=rule.buffer_after,
            timezone=self.preferences.timezone,
        )
