"""Single-task scheduling engine.

Finds, scores and ranks candidate slots for one task:

    generate candidates -> filter by rules -> filter protected time
        -> score -> annotate conflicts -> rank

Any stage that leaves no candidates ends the search with an empty list.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from slotwise.logger import changes_enabled, debug_enabled, get_logger
from slotwise.models import Priority, ScheduledTask, Task
from slotwise.preferences import ProtectedSlot, SchedulingRule, UserSchedulingPreferences

from .config import EngineConfig
from .conflicts import can_displace_by_priority, is_within_working_hours
from .core import (
    AvailabilityWindow,
    Conflict,
    ConflictType,
    Displacement,
    EffectiveRule,
    SchedulingSuggestion,
    ScoringResult,
    Severity,
    TimeSlot,
)
from .protected import can_override, is_protected, is_urgent, protected_conflicts
from .rules import effective_rule, known_task_type, satisfies_rule
from .scoring import ScoringContext, score_slot
from .timeutils import slots_overlap

logger = get_logger()

BUFFER_FACTOR = "bufferAvailability"


@dataclass
class SchedulingContext:
    """Inputs for one scheduling request."""

    task: Task
    availability: list[AvailabilityWindow]
    user_id: str = ""
    existing_scheduled_tasks: list[ScheduledTask] = field(default_factory=list)
    rules: list[SchedulingRule] = field(default_factory=list)
    protected_slots: list[ProtectedSlot] = field(default_factory=list)
    preferences: UserSchedulingPreferences = field(default_factory=UserSchedulingPreferences)
    now: datetime | None = None


@dataclass
class _Candidate:
    slot: TimeSlot
    result: ScoringResult
    conflicts: list[Conflict] = field(default_factory=list)
    displacements: list[Displacement] = field(default_factory=list)


class SchedulingEngine:
    """Ranks candidate slots for a single task.

    The engine holds no state beyond its context; calling find_best_slots
    twice gives the same answer.
    """

    def __init__(self, context: SchedulingContext, config: EngineConfig | None = None):
        """Initialize the engine.

        Args:
            context: Task, availability and configuration for this request
            config: Engine configuration (defaults used when omitted)
        """
        self.context = context
        self.config = config or EngineConfig()
        self.timezone = context.preferences.timezone
        infer = self.config.infer_task_types
        self._rule = effective_rule(context.task, context.rules, infer_type=infer)
        self._scoring_type = known_task_type(context.task, infer_type=infer)

    @property
    def effective_rule(self) -> EffectiveRule:
        """The resolved rule used for this task."""
        return self._rule

    @property
    def task_duration(self) -> int:
        return self.context.task.time_estimate or self._rule.default_duration

    def find_best_slots(self, count: int | None = None) -> list[SchedulingSuggestion]:
        """Find the best slots for the task.

        Args:
            count: Number of suggestions to return (config default when None)

        Returns:
            Suggestions sorted by score, best first
        """
        if count is None:
            count = self.config.default_suggestion_count
        task = self.context.task

        candidates = self._generate_candidates()
        logger.checks(f"Task {task.id}: {len(candidates)} candidate slot(s)")
        if not candidates:
            return []

        candidates = self._filter_by_rules(candidates)
        logger.checks(f"  {len(candidates)} after rule filter")
        if not candidates:
            return []

        candidates = self._filter_protected(candidates)
        logger.checks(f"  {len(candidates)} after protected-time filter")
        if not candidates:
            return []

        scored = [_Candidate(slot, self.score_slot(slot)) for slot in candidates]
        for candidate in scored:
            self._annotate(candidate)

        # Stable: equal scores keep chronological order
        scored.sort(key=lambda c: -c.result.total_score)

        suggestions = [
            SchedulingSuggestion(
                slot=c.slot,
                score=c.result.total_score,
                reasoning=c.result.reasoning,
                factors=c.result.factors,
                conflicts=c.conflicts,
                displacements=c.displacements,
            )
            for c in scored[:count]
        ]

        if changes_enabled() and suggestions:
            best = suggestions[0]
            logger.changes(
                f"Task {task.id}: best slot {best.slot.start.isoformat()} "
                f"(score {best.score})"
            )
        return suggestions

    def _generate_candidates(self) -> list[TimeSlot]:
        """Slide a fixed-step cursor through every free block large enough for the task."""
        rule = self._rule
        duration = timedelta(minutes=self.task_duration)
        before = timedelta(minutes=rule.buffer_before)
        after = timedelta(minutes=rule.buffer_after)
        step = timedelta(minutes=self.config.slot_interval_minutes)
        span_minutes = self.task_duration + rule.buffer_before + rule.buffer_after

        candidates: list[TimeSlot] = []
        for window in self.context.availability:
            for block in window.free_slots():
                if block.duration_minutes < span_minutes:
                    continue

                current = block.start + before
                while current + duration + after <= block.end:
                    candidates.append(TimeSlot(current, current + duration))
                    current += step

        return candidates

    def _filter_by_rules(self, slots: list[TimeSlot]) -> list[TimeSlot]:
        threshold = self.config.rule_match_threshold
        return [
            slot
            for slot in slots
            if satisfies_rule(slot, self._rule, self.timezone).partial_score >= threshold
        ]

    def _filter_protected(self, slots: list[TimeSlot]) -> list[TimeSlot]:
        task = self.context.task
        protected_slots = self.context.protected_slots
        urgent = is_urgent(task, self.context.now, self.timezone)

        kept: list[TimeSlot] = []
        for slot in slots:
            result = is_protected(slot, protected_slots, self.timezone)
            if not result.protected:
                kept.append(slot)
            elif urgent and result.matched_slot and can_override(task, result.matched_slot):
                kept.append(slot)
            elif debug_enabled():
                logger.debug(f"    drop {slot.start.isoformat()}: {result.reason}")
        return kept

    def _containing_window(self, slot: TimeSlot) -> AvailabilityWindow | None:
        availability = self.context.availability
        for window in availability:
            if any(block.contains(slot) for block in window.slots):
                return window
        return availability[0] if availability else None

    def _annotate(self, candidate: _Candidate) -> None:
        """Attach protected-time, rule, hours and buffer conflicts plus displacements."""
        slot = candidate.slot
        task = self.context.task
        preferences = self.context.preferences

        candidate.conflicts.extend(
            protected_conflicts(slot, self.context.protected_slots, task, self.timezone)
        )

        rule_result = satisfies_rule(slot, self._rule, self.timezone)
        if not rule_result.satisfies:
            candidate.conflicts.append(
                Conflict(
                    type=ConflictType.RULE_VIOLATION,
                    description="; ".join(rule_result.violations),
                    severity=Severity.INFO,
                    resolution="Slot is outside preferred parameters but still usable",
                )
            )

        if not is_within_working_hours(slot, preferences.working_hours, self.timezone):
            candidate.conflicts.append(
                Conflict(
                    type=ConflictType.OUTSIDE_HOURS,
                    description=(
                        f"Slot falls outside working hours "
                        f"({preferences.working_hours.start}-{preferences.working_hours.end})"
                    ),
                    severity=Severity.WARNING,
                )
            )

        buffer_factor = next(
            (f for f in candidate.result.factors if f.name == BUFFER_FACTOR), None
        )
        if buffer_factor is not None and buffer_factor.value < 100:  # noqa: PLR2004
            candidate.conflicts.append(
                Conflict(
                    type=ConflictType.BUFFER,
                    description=buffer_factor.description,
                    severity=Severity.INFO,
                    resolution="Consider a slot with more free time around it",
                )
            )

        candidate.displacements.extend(self.check_displacements(slot))

    def score_slot(self, slot: TimeSlot) -> ScoringResult:
        """Score an arbitrary slot against this context."""
        task = self.context.task
        context = ScoringContext(
            priority=task.priority,
            task_type=self._scoring_type.value if self._scoring_type else None,
            rule=self._rule,
            availability=self._containing_window(slot),
            due_date=task.due_date,
            preferred_time_of_day=task.preferred_time_of_day(),
            timezone=self.timezone,
            weights=self.config.weights,
        )
        result = score_slot(slot, context)
        if debug_enabled():
            logger.debug(f"    {slot.start.isoformat()}: {result.total_score}")
        return result

    def check_displacements(self, slot: TimeSlot) -> list[Displacement]:
        """Existing bookings the slot overlaps, and whether bumping them is advised.

        A booking without a known priority is treated as medium.
        """
        task = self.context.task
        displacements: list[Displacement] = []

        for scheduled in self.context.existing_scheduled_tasks:
            if not slots_overlap(slot, scheduled):
                continue

            existing = scheduled.priority or Priority.MEDIUM
            recommended = can_displace_by_priority(task.priority, existing)
            if recommended:
                reason = (
                    f"Current task ({task.priority.value} priority) has higher priority "
                    f"than existing task ({existing.value} priority)"
                )
            else:
                reason = (
                    f"Existing task ({existing.value} priority) has equal or higher "
                    f"priority than current task ({task.priority.value} priority)"
                )

            displacements.append(
                Displacement(
                    task_id=scheduled.task_id,
                    task_content=scheduled.task_content or f"Task {scheduled.task_id}",
                    priority=existing,
                    new_priority=task.priority,
                    recommended=recommended,
                    reason=reason,
                )
            )

        return displacements
