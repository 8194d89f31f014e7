"""Scoring factors for candidate slots.

Each factor rates a slot from 0 to 100 on one concern and carries a weight;
the total score is the weighted average of all factors.
"""

from dataclasses import dataclass, field
from datetime import date

from slotwise.models import Priority, TimeOfDay

from .config import ScoringWeights
from .core import AvailabilityWindow, EffectiveRule, ScoringFactor, ScoringResult, TimeSlot
from .timeutils import day_of_week, local_date, local_hour, local_minutes, time_to_minutes

DEFAULT_WEIGHTS = ScoringWeights()

# Hour boundaries (local time)
NOON = 12
EVENING_START = 17
PRIME_START = 9
PRIME_END = 12
GOOD_START = 8
GOOD_END = 14

# Value thresholds for reasoning text
POSITIVE_THRESHOLD = 70
NEGATIVE_THRESHOLD = 50

ADJACENT_TIMES: dict[TimeOfDay, tuple[TimeOfDay, ...]] = {
    TimeOfDay.MORNING: (TimeOfDay.AFTERNOON,),
    TimeOfDay.AFTERNOON: (TimeOfDay.MORNING, TimeOfDay.EVENING),
    TimeOfDay.EVENING: (TimeOfDay.AFTERNOON,),
}

PRIORITY_NEUTRAL_SCORE = {Priority.HIGH: 60, Priority.MEDIUM: 50, Priority.LOW: 40}
PRIORITY_MULTIPLIER = {Priority.HIGH: 1.2, Priority.MEDIUM: 1.0, Priority.LOW: 0.8}


@dataclass
class ScoringContext:
    """Everything needed to score a slot for one task."""

    priority: Priority
    task_type: str | None
    rule: EffectiveRule | None
    availability: AvailabilityWindow | None
    due_date: date | None = None
    preferred_time_of_day: TimeOfDay | None = None
    timezone: str = "UTC"
    weights: ScoringWeights = field(default_factory=ScoringWeights)


def time_of_day_category(hour: int) -> TimeOfDay:
    if hour < NOON:
        return TimeOfDay.MORNING
    if hour < EVENING_START:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.EVENING


def _within_range(slot: TimeSlot, start: str, end: str, timezone: str) -> bool:
    slot_start = local_minutes(slot.start, timezone)
    slot_end = slot_start + int(slot.duration_minutes)
    return slot_start >= time_to_minutes(start) and slot_end <= time_to_minutes(end)


def score_task_type_preference(
    slot: TimeSlot,
    task_type: str | None,
    rule: EffectiveRule | None,
    weight: float = DEFAULT_WEIGHTS.task_type_preference,
    timezone: str = "UTC",
) -> ScoringFactor:
    """Rate how well the slot fits the preferred hours and days of the task type."""
    name = "taskTypePreference"

    if not task_type:
        return ScoringFactor(name, weight, 50, "No task type specified")
    if rule is None:
        return ScoringFactor(name, weight, 50, f"No specific rule for {task_type}")

    in_range = _within_range(slot, rule.preferred_start, rule.preferred_end, timezone)
    slot_day = day_of_week(slot.start, timezone)
    preferred_day = not rule.preferred_days or slot_day in rule.preferred_days

    if in_range and preferred_day:
        return ScoringFactor(
            name,
            weight,
            100,
            f"Perfect match: {task_type} scheduled in preferred time "
            f"({rule.preferred_start}-{rule.preferred_end})",
        )
    if in_range:
        return ScoringFactor(name, weight, 80, f"Good time for {task_type}, but not preferred day")
    if preferred_day:
        return ScoringFactor(
            name, weight, 60, f"Preferred day for {task_type}, but outside optimal hours"
        )
    return ScoringFactor(name, weight, 30, f"Outside preferred time and day for {task_type}")


def score_due_date_proximity(
    slot: TimeSlot,
    due_date: date | None,
    priority: Priority,
    weight: float = DEFAULT_WEIGHTS.due_date_proximity,
    timezone: str = "UTC",
) -> ScoringFactor:
    """Rate a slot by how close it sits to the task's due date."""
    name = "dueDateProximity"

    if due_date is None:
        return ScoringFactor(
            name, weight, PRIORITY_NEUTRAL_SCORE[priority], "No due date - scored by priority only"
        )

    days_diff = (due_date - local_date(slot.start, timezone)).days

    if days_diff < 0:
        return ScoringFactor(name, weight, 10, "Slot is after due date - not recommended")
    if days_diff == 0:
        return ScoringFactor(name, weight, 95, "Slot is on due date - urgent")

    if days_diff <= 1:
        base_score = 90
    elif days_diff <= 3:  # noqa: PLR2004
        base_score = 80
    elif days_diff <= 7:  # noqa: PLR2004
        base_score = 60
    else:
        base_score = 40

    value = min(100, round(base_score * PRIORITY_MULTIPLIER[priority]))
    return ScoringFactor(
        name, weight, value, f"{days_diff} day(s) before due date ({priority.value} priority)"
    )


def score_buffer_availability(
    slot: TimeSlot,
    buffer_before: int,
    buffer_after: int,
    availability: AvailabilityWindow | None,
    weight: float = DEFAULT_WEIGHTS.buffer_availability,
) -> ScoringFactor:
    """Rate how much of the required buffer time is free around the slot."""
    name = "bufferAvailability"

    if buffer_before == 0 and buffer_after == 0:
        return ScoringFactor(name, weight, 100, "No buffer required")

    block = availability.containing_free_slot(slot) if availability else None
    if block is None:
        return ScoringFactor(name, weight, 0, "Slot not in available period")

    available_before = (slot.start - block.start).total_seconds() / 60
    available_after = (block.end - slot.end).total_seconds() / 60

    before_pct = min(100.0, available_before / buffer_before * 100) if buffer_before > 0 else 100.0
    after_pct = min(100.0, available_after / buffer_after * 100) if buffer_after > 0 else 100.0
    value = round((before_pct + after_pct) / 2)

    if value == 100:  # noqa: PLR2004
        description = (
            f"Full buffer available: {buffer_before}min before, {buffer_after}min after"
        )
    elif value >= NEGATIVE_THRESHOLD:
        description = (
            f"Partial buffer: {round(available_before)}/{buffer_before}min before, "
            f"{round(available_after)}/{buffer_after}min after"
        )
    else:
        description = "Insufficient buffer time available"

    return ScoringFactor(name, weight, value, description)


def score_contiguous_time(
    slot: TimeSlot,
    availability: AvailabilityWindow | None,
    task_duration: int,
    weight: float = DEFAULT_WEIGHTS.contiguous_time,
) -> ScoringFactor:
    """Rate the slot by the size of the free block around it."""
    name = "contiguousTime"

    block = availability.containing_free_slot(slot) if availability else None
    if block is None:
        return ScoringFactor(name, weight, 0, "Slot not in available period")

    block_minutes = block.duration_minutes
    ratio = block_minutes / task_duration if task_duration > 0 else 0.0

    if ratio >= 3:  # noqa: PLR2004
        return ScoringFactor(
            name,
            weight,
            100,
            f"Large contiguous block ({round(block_minutes)} min) - plenty of flexibility",
        )
    if ratio >= 2:  # noqa: PLR2004
        return ScoringFactor(
            name,
            weight,
            85,
            f"Good contiguous block ({round(block_minutes)} min) - some flexibility",
        )
    if ratio >= 1.5:  # noqa: PLR2004
        return ScoringFactor(
            name, weight, 70, f"Moderate contiguous block ({round(block_minutes)} min)"
        )
    if ratio >= 1:
        return ScoringFactor(
            name,
            weight,
            50,
            f"Tight fit - block is {round(block_minutes)} min for {task_duration} min task",
        )
    return ScoringFactor(name, weight, 0, "Block too small for task")


def score_priority_alignment(
    slot: TimeSlot,
    priority: Priority,
    weight: float = DEFAULT_WEIGHTS.priority_alignment,
    timezone: str = "UTC",
) -> ScoringFactor:
    """Keep prime morning hours for high-priority work."""
    name = "priorityAlignment"
    hour = local_hour(slot.start, timezone)
    prime_time = PRIME_START <= hour < PRIME_END
    good_time = GOOD_START <= hour < GOOD_END

    if priority == Priority.HIGH:
        if prime_time:
            return ScoringFactor(
                name, weight, 100, "High priority task in prime morning hours (9am-12pm)"
            )
        if good_time:
            return ScoringFactor(name, weight, 70, "High priority task in good hours")
        return ScoringFactor(name, weight, 40, "High priority task outside optimal hours")

    if priority == Priority.MEDIUM:
        return ScoringFactor(name, weight, 70, "Medium priority task - time flexible")

    # Low priority leaves prime hours to higher-priority work
    if prime_time:
        return ScoringFactor(
            name, weight, 50, "Low priority task - consider saving prime hours for high-pri"
        )
    return ScoringFactor(name, weight, 80, "Low priority task in appropriate time slot")


def score_time_of_day(
    slot: TimeSlot,
    preferred_time: TimeOfDay | None,
    weight: float = DEFAULT_WEIGHTS.time_of_day,
    timezone: str = "UTC",
) -> ScoringFactor:
    """Match the slot against a morning/afternoon/evening preference."""
    name = "timeOfDay"

    if preferred_time is None:
        return ScoringFactor(name, weight, 70, "No time preference specified")

    category = time_of_day_category(local_hour(slot.start, timezone))

    if category == preferred_time:
        return ScoringFactor(name, weight, 100, f"Matches preferred time: {preferred_time.value}")
    if category in ADJACENT_TIMES[preferred_time]:
        return ScoringFactor(
            name,
            weight,
            60,
            f"Close to preferred time ({preferred_time.value}), actual: {category.value}",
        )
    return ScoringFactor(
        name,
        weight,
        30,
        f"Far from preferred time ({preferred_time.value}), actual: {category.value}",
    )


def calculate_total_score(factors: list[ScoringFactor]) -> int:
    """Weighted average of factor values, rounded; 0 when there is no weight."""
    if not factors:
        return 0

    total_weight = sum(f.weight for f in factors)
    if total_weight == 0:
        return 0

    weighted_sum = sum(f.value * f.weight for f in factors)
    return round(weighted_sum / total_weight)


def generate_reasoning(factors: list[ScoringFactor]) -> str:
    """Summarize the strongest factors and the main caveat in one sentence."""
    ranked = sorted(factors, key=lambda f: f.value * f.weight, reverse=True)
    positive = [f for f in ranked if f.value >= POSITIVE_THRESHOLD]
    negative = [f for f in ranked if f.value < NEGATIVE_THRESHOLD]

    parts: list[str] = []
    if positive:
        parts.append("; ".join(f.description for f in positive[:2]))
    if negative:
        parts.append(f"Note: {negative[0].description}")

    return ". ".join(parts) or "Standard slot selection"


def score_slot(slot: TimeSlot, context: ScoringContext) -> ScoringResult:
    """Score a slot with all six factors."""
    weights = context.weights
    rule = context.rule
    tz = context.timezone

    duration = rule.default_duration if rule else int(slot.duration_minutes)
    buffer_before = rule.buffer_before if rule else 0
    buffer_after = rule.buffer_after if rule else 0

    factors = [
        score_task_type_preference(
            slot, context.task_type, rule, weights.task_type_preference, tz
        ),
        score_due_date_proximity(
            slot, context.due_date, context.priority, weights.due_date_proximity, tz
        ),
        score_buffer_availability(
            slot, buffer_before, buffer_after, context.availability, weights.buffer_availability
        ),
        score_contiguous_time(slot, context.availability, duration, weights.contiguous_time),
        score_priority_alignment(slot, context.priority, weights.priority_alignment, tz),
        score_time_of_day(slot, context.preferred_time_of_day, weights.time_of_day, tz),
    ]

    return ScoringResult(
        total_score=calculate_total_score(factors),
        factors=factors,
        reasoning=generate_reasoning(factors),
    )
