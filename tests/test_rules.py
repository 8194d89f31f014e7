"""Tests for task-type rules and rule application."""

from datetime import date

import pytest

from slotwise.models import TaskType
from slotwise.preferences import SchedulingRule, TimeRange
from slotwise.scheduler.rules import (
    DEFAULT_TASK_TYPE_RULES,
    effective_rule,
    filter_slots_by_rules,
    get_default_rule,
    infer_task_type,
    satisfies_rule,
    sort_slots_by_rule_match,
    total_duration_with_buffers,
)
from tests.conftest import make_task, slot

SATURDAY = date(2025, 1, 11)


class TestInferTaskType:
    """Test keyword-based task type inference."""

    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("Fix bug in parser", TaskType.CODING),
            ("Zoom call about design", TaskType.CALL),
            ("Weekly team standup", TaskType.MEETING),
            ("Write report", TaskType.DEEP_WORK),
            ("Clear inbox", TaskType.ADMIN),
            ("Dentist appointment", TaskType.HEALTH),
            ("Buy groceries", TaskType.OTHER),
        ],
    )
    def test_inference(self, content: str, expected: TaskType) -> None:
        assert infer_task_type(make_task(content=content)) == expected

    def test_inference_is_case_insensitive(self) -> None:
        assert infer_task_type(make_task(content="GYM session")) == TaskType.HEALTH


class TestDefaultRules:
    """Test the built-in rule table."""

    def test_every_task_type_has_a_default(self) -> None:
        for task_type in TaskType:
            assert task_type in DEFAULT_TASK_TYPE_RULES

    def test_missing_type_falls_back_to_other(self) -> None:
        assert get_default_rule(None) == DEFAULT_TASK_TYPE_RULES[TaskType.OTHER]

    def test_deep_work_defaults(self) -> None:
        rule = get_default_rule(TaskType.DEEP_WORK)
        assert (rule.preferred_start, rule.preferred_end) == ("09:00", "12:00")
        assert rule.default_duration == 120
        assert rule.preferred_days == [1, 2, 3, 4, 5]


class TestEffectiveRule:
    """Test resolution of defaults, user rules and task overrides."""

    def test_defaults_only(self) -> None:
        rule = effective_rule(make_task(task_type=TaskType.CALL), [])
        assert rule.task_type == "call"
        assert rule.id == "default-call"
        assert rule.default_duration == 30
        assert (rule.buffer_before, rule.buffer_after) == (15, 15)
        assert rule.enabled

    def test_untyped_task_uses_other_without_inference(self) -> None:
        task = make_task(content="Zoom call")
        assert effective_rule(task, []).task_type == "other"
        assert effective_rule(task, [], infer_type=True).task_type == "call"

    def test_user_rule_overrides_defaults(self) -> None:
        user_rule = SchedulingRule(
            id="r1",
            task_type=TaskType.DEEP_WORK,
            preferred_time_range=TimeRange(start="08:00", end="10:00"),
            default_duration=90,
        )
        rule = effective_rule(make_task(task_type=TaskType.DEEP_WORK), [user_rule])
        assert rule.id == "r1"
        assert (rule.preferred_start, rule.preferred_end) == ("08:00", "10:00")
        assert rule.default_duration == 90
        # Unset fields still come from the default
        assert rule.buffer_after == 10

    def test_disabled_user_rule_is_ignored(self) -> None:
        user_rule = SchedulingRule(task_type=TaskType.DEEP_WORK, enabled=False, default_duration=5)
        rule = effective_rule(make_task(task_type=TaskType.DEEP_WORK), [user_rule])
        assert rule.default_duration == 120

    def test_task_values_take_precedence(self) -> None:
        user_rule = SchedulingRule(task_type=TaskType.DEEP_WORK, default_duration=90)
        task = make_task(task_type=TaskType.DEEP_WORK, time_estimate=45, buffer_before=5)
        rule = effective_rule(task, [user_rule])
        assert rule.default_duration == 45
        assert rule.buffer_before == 5
        assert rule.buffer_after == 10

    def test_zero_task_buffer_overrides_default(self) -> None:
        task = make_task(task_type=TaskType.CALL, buffer_after=0)
        assert effective_rule(task, []).buffer_after == 0


class TestSatisfiesRule:
    """Test the three rule checks and the partial score."""

    def test_all_checks_pass(self) -> None:
        rule = effective_rule(make_task(task_type=TaskType.DEEP_WORK), [])
        result = satisfies_rule(slot("09:00", "11:00"), rule)
        assert result.satisfies
        assert result.violations == []
        assert result.partial_score == 100

    def test_short_slot_fails_duration_only(self) -> None:
        rule = effective_rule(make_task(task_type=TaskType.DEEP_WORK), [])
        result = satisfies_rule(slot("09:00", "10:00"), rule)
        assert not result.satisfies
        assert result.partial_score == 67
        assert len(result.violations) == 1
        assert "less than required" in result.violations[0]

    def test_everything_fails(self) -> None:
        rule = effective_rule(make_task(task_type=TaskType.DEEP_WORK), [])
        result = satisfies_rule(slot("13:00", "14:00", SATURDAY), rule)
        assert result.partial_score == 0
        assert len(result.violations) == 3
        assert "Saturday is not a preferred day" in result.violations[0]

    def test_time_range_uses_local_time(self) -> None:
        """09:00-11:00 New York is 14:00-16:00 UTC."""
        rule = effective_rule(make_task(task_type=TaskType.DEEP_WORK), [])
        result = satisfies_rule(slot("14:00", "16:00"), rule, "America/New_York")
        assert result.satisfies


class TestSlotFiltering:
    """Test filtering and sorting by rule match."""

    def test_non_strict_keeps_half_matches(self) -> None:
        rule = effective_rule(make_task(task_type=TaskType.DEEP_WORK), [])
        slots = [
            slot("09:00", "11:00"),
            slot("09:00", "10:00"),
            slot("13:00", "14:00", SATURDAY),
        ]
        assert filter_slots_by_rules(slots, rule) == slots[:2]
        assert filter_slots_by_rules(slots, rule, strict=True) == slots[:1]

    def test_sort_is_stable_for_ties(self) -> None:
        rule = effective_rule(make_task(task_type=TaskType.DEEP_WORK), [])
        short_a = slot("09:00", "10:00")
        full = slot("09:00", "11:00")
        short_b = slot("10:00", "11:00")
        assert sort_slots_by_rule_match([short_a, full, short_b], rule) == [
            full,
            short_a,
            short_b,
        ]


def test_total_duration_with_buffers() -> None:
    task = make_task(task_type=TaskType.CALL)
    assert total_duration_with_buffers(task, effective_rule(task, [])) == 60

    estimated = make_task(task_type=TaskType.CALL, time_estimate=45, buffer_before=0)
    assert total_duration_with_buffers(estimated, effective_rule(estimated, [])) == 60
