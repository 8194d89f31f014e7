"""Per-task-type scheduling rules and rule application."""

from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone

from slotwise.logger import get_logger
from slotwise.models import Task, TaskType
from slotwise.preferences import SchedulingRule

from .core import EffectiveRule, TimeSlot
from .timeutils import (
    DAY_NAMES,
    day_of_week,
    format_minutes,
    local_minutes,
    time_to_minutes,
)

logger = get_logger()

WEEKDAYS = [1, 2, 3, 4, 5]


@dataclass(frozen=True)
class DefaultRule:
    """Built-in scheduling defaults for a task type."""

    preferred_start: str
    preferred_end: str
    default_duration: int
    buffer_before: int
    buffer_after: int
    preferred_days: list[int] = field(default_factory=lambda: list(WEEKDAYS))


DEFAULT_TASK_TYPE_RULES: dict[TaskType, DefaultRule] = {
    TaskType.DEEP_WORK: DefaultRule("09:00", "12:00", 120, 0, 10),
    TaskType.CODING: DefaultRule("09:00", "12:00", 120, 0, 10),
    TaskType.CALL: DefaultRule("14:00", "17:00", 30, 15, 15),
    TaskType.MEETING: DefaultRule("10:00", "16:00", 60, 10, 5),
    TaskType.PERSONAL: DefaultRule("08:00", "20:00", 60, 0, 0, [0, 1, 2, 3, 4, 5, 6]),
    TaskType.ADMIN: DefaultRule("14:00", "17:00", 30, 0, 0),
    TaskType.HEALTH: DefaultRule("07:00", "09:00", 60, 0, 15, [1, 2, 3, 4, 5, 6]),
    TaskType.OTHER: DefaultRule("09:00", "17:00", 60, 0, 0),
}

# Checked in order; the first type whose keywords appear in the content wins
TASK_TYPE_KEYWORDS: list[tuple[TaskType, tuple[str, ...]]] = [
    (TaskType.CALL, ("call", "phone", "zoom", "teams call")),
    (TaskType.MEETING, ("meeting", "sync", "standup", "1:1", "one-on-one")),
    (TaskType.CODING, ("code", "coding", "develop", "implement", "fix bug", "debug")),
    (TaskType.DEEP_WORK, ("write", "design", "research", "plan", "strategy")),
    (TaskType.ADMIN, ("email", "inbox", "expense", "report", "paperwork")),
    (TaskType.HEALTH, ("exercise", "gym", "workout", "doctor", "dentist")),
    (TaskType.PERSONAL, ("personal", "family", "errand", "shopping")),
]


@dataclass
class RuleSatisfactionResult:
    """How well a slot satisfies a rule."""

    satisfies: bool
    violations: list[str]
    partial_score: int  # 0-100


def get_default_rule(task_type: TaskType | None) -> DefaultRule:
    """Get the built-in rule for a task type (falls back to 'other')."""
    if task_type is None:
        return DEFAULT_TASK_TYPE_RULES[TaskType.OTHER]
    return DEFAULT_TASK_TYPE_RULES.get(task_type, DEFAULT_TASK_TYPE_RULES[TaskType.OTHER])


def infer_task_type(task: Task) -> TaskType:
    """Guess a task's type from keywords in its content."""
    content = task.content.lower()
    for task_type, keywords in TASK_TYPE_KEYWORDS:
        if any(keyword in content for keyword in keywords):
            return task_type
    return TaskType.OTHER


def known_task_type(task: Task, *, infer_type: bool = False) -> TaskType | None:
    """The task's explicit type, or one inferred from a keyword match.

    None when the task is untyped and no keyword matched.
    """
    if task.task_type is not None or not infer_type:
        return task.task_type
    inferred = infer_task_type(task)
    return None if inferred == TaskType.OTHER else inferred


def find_user_rule(task_type: TaskType, user_rules: list[SchedulingRule]) -> SchedulingRule | None:
    """First enabled user rule for the task type."""
    for rule in user_rules:
        if rule.task_type == task_type and rule.enabled:
            return rule
    return None


def effective_rule(
    task: Task, user_rules: list[SchedulingRule], *, infer_type: bool = False
) -> EffectiveRule:
    """Resolve the rule that applies to a task.

    Precedence, field by field: task-level values, then the user's enabled
    rule for the task type, then the built-in default.

    Args:
        task: Task being scheduled
        user_rules: The user's configured rules
        infer_type: Infer the type from content when the task has none;
            otherwise an untyped task uses the 'other' defaults

    Returns:
        Fully populated rule
    """
    if task.task_type is not None:
        task_type = task.task_type
    elif infer_type:
        task_type = infer_task_type(task)
    else:
        task_type = TaskType.OTHER

    default = get_default_rule(task_type)
    user_rule = find_user_rule(task_type, user_rules)
    now = datetime.now(dt_timezone.utc).isoformat()

    preferred_start = default.preferred_start
    preferred_end = default.preferred_end
    preferred_days = list(default.preferred_days)
    duration = default.default_duration
    buffer_before = default.buffer_before
    buffer_after = default.buffer_after

    if user_rule is not None:
        if user_rule.preferred_time_range is not None:
            preferred_start = user_rule.preferred_time_range.start
            preferred_end = user_rule.preferred_time_range.end
        if user_rule.preferred_days is not None:
            preferred_days = list(user_rule.preferred_days)
        if user_rule.default_duration is not None:
            duration = user_rule.default_duration
        if user_rule.buffer_before is not None:
            buffer_before = user_rule.buffer_before
        if user_rule.buffer_after is not None:
            buffer_after = user_rule.buffer_after

    # Task-level overrides take precedence
    if task.time_estimate:
        duration = task.time_estimate
    if task.buffer_before is not None:
        buffer_before = task.buffer_before
    if task.buffer_after is not None:
        buffer_after = task.buffer_after

    return EffectiveRule(
        id=user_rule.id if user_rule and user_rule.id else f"default-{task_type.value}",
        user_id=user_rule.user_id if user_rule and user_rule.user_id else task.user_id,
        task_type=task_type.value,
        enabled=True,
        preferred_start=preferred_start,
        preferred_end=preferred_end,
        preferred_days=preferred_days,
        default_duration=duration,
        buffer_before=buffer_before,
        buffer_after=buffer_after,
        calendar_id=user_rule.calendar_id if user_rule else None,
        created_at=(user_rule.created_at if user_rule and user_rule.created_at else now),
        updated_at=(user_rule.updated_at if user_rule and user_rule.updated_at else now),
    )


def satisfies_rule(
    slot: TimeSlot, rule: EffectiveRule, timezone: str = "UTC"
) -> RuleSatisfactionResult:
    """Check a slot against a rule's day, time-range and duration requirements.

    Returns:
        Result with the list of violations and the share of checks passed
    """
    violations: list[str] = []
    total_checks = 3
    passed_checks = 0

    # Day of week
    slot_day = day_of_week(slot.start, timezone)
    if rule.preferred_days and slot_day not in rule.preferred_days:
        violations.append(f"{DAY_NAMES[slot_day]} is not a preferred day for this task type")
    else:
        passed_checks += 1

    # Time range
    slot_start = local_minutes(slot.start, timezone)
    slot_end = slot_start + int(slot.duration_minutes)
    range_start = time_to_minutes(rule.preferred_start)
    range_end = time_to_minutes(rule.preferred_end)
    if slot_start < range_start or slot_end > range_end:
        violations.append(
            f"Slot ({format_minutes(slot_start)}-{format_minutes(slot_end)}) is outside "
            f"preferred time range ({rule.preferred_start}-{rule.preferred_end})"
        )
    else:
        passed_checks += 1

    # Duration
    duration = slot.duration_minutes
    if duration < rule.default_duration:
        violations.append(
            f"Slot duration ({round(duration)} min) is less than required "
            f"({rule.default_duration} min)"
        )
    else:
        passed_checks += 1

    return RuleSatisfactionResult(
        satisfies=not violations,
        violations=violations,
        partial_score=round(passed_checks / total_checks * 100),
    )


def filter_slots_by_rules(
    slots: list[TimeSlot], rule: EffectiveRule, *, strict: bool = False, timezone: str = "UTC"
) -> list[TimeSlot]:
    """Keep slots that satisfy the rule.

    Strict mode requires every check to pass; otherwise at least half.
    """
    kept: list[TimeSlot] = []
    for slot in slots:
        result = satisfies_rule(slot, rule, timezone)
        keep = result.satisfies if strict else result.partial_score >= 50  # noqa: PLR2004
        if keep:
            kept.append(slot)
    return kept


def sort_slots_by_rule_match(
    slots: list[TimeSlot], rule: EffectiveRule, timezone: str = "UTC"
) -> list[TimeSlot]:
    """Best-matching slots first; ties keep their original order."""
    return sorted(slots, key=lambda s: -satisfies_rule(s, rule, timezone).partial_score)


def total_duration_with_buffers(task: Task, rule: EffectiveRule) -> int:
    """Minutes a task occupies including its buffers."""
    duration = task.time_estimate or rule.default_duration
    buffer_before = task.buffer_before if task.buffer_before is not None else rule.buffer_before
    buffer_after = task.buffer_after if task.buffer_after is not None else rule.buffer_after
    return duration + buffer_before + buffer_after
