"""User scheduling configuration: rules, protected slots and preferences.

This module handles validating the per-user configuration records the
scheduler reads:
- Scheduling rules per task type (preferred hours/days, durations, buffers)
- Protected slots (recurring do-not-schedule windows such as lunch)
- General preferences (working hours, working days, timezone)
"""

import re

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import TaskType

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def is_valid_time_string(value: str) -> bool:
    """Check that a string is a 24-hour "HH:mm" time."""
    return bool(TIME_PATTERN.match(value))


def _check_time(value: str) -> str:
    if not is_valid_time_string(value):
        raise ValueError(f"invalid time '{value}', expected HH:mm")
    return value


def _check_days(days: list[int]) -> list[int]:
    for day in days:
        if day < 0 or day > 6:  # noqa: PLR2004 - 0=Sunday..6=Saturday
            raise ValueError(f"invalid day of week {day}, expected 0 (Sunday) to 6 (Saturday)")
    return days


class TimeRange(BaseModel):
    """A daily time-of-day range in "HH:mm" format."""

    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)


class SchedulingRule(BaseModel):
    """A user's scheduling policy for one task type.

    Fields left as None defer to the built-in default for the task type.
    """

    task_type: TaskType
    id: str = ""
    user_id: str = ""
    enabled: bool = True
    preferred_time_range: TimeRange | None = None
    preferred_days: list[int] | None = None
    default_duration: int | None = Field(default=None, gt=0)
    buffer_before: int | None = Field(default=None, ge=0)
    buffer_after: int | None = Field(default=None, ge=0)
    calendar_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("preferred_days")
    @classmethod
    def validate_days(cls, value: list[int] | None) -> list[int] | None:
        return _check_days(value) if value is not None else None


class ProtectedRecurrence(BaseModel):
    """Weekly recurrence of a protected slot."""

    days_of_week: list[int]
    start_time: str
    end_time: str

    @field_validator("days_of_week")
    @classmethod
    def validate_days(cls, value: list[int]) -> list[int]:
        return _check_days(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "ProtectedRecurrence":
        """Ensure end time is after start time."""
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ProtectedSlot(BaseModel):
    """A named recurring window the scheduler should keep free."""

    id: str
    name: str
    recurrence: ProtectedRecurrence
    user_id: str = ""
    enabled: bool = True
    allow_override_for_urgent: bool = False
    created_at: str | None = None


class UserSchedulingPreferences(BaseModel):
    """General scheduling preferences for a user."""

    default_calendar_id: str = "primary"
    working_hours: TimeRange = TimeRange(start="09:00", end="17:00")
    working_days: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    timezone: str = "UTC"
    auto_schedule_enabled: bool = False
    prefer_contiguous_blocks: bool = True

    @field_validator("working_days")
    @classmethod
    def validate_days(cls, value: list[int]) -> list[int]:
        return _check_days(value)
