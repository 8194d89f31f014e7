"""Pydantic schemas for scheduling request YAML."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .models import Priority, TaskType


class TaskSchema(BaseModel):
    """A task as written in a request file."""

    id: str
    content: str
    priority: Priority = Priority.MEDIUM
    task_type: TaskType | None = None
    due_date: date | None = None
    due_time: str | None = None
    time_estimate: int | None = Field(default=None, gt=0)
    buffer_before: int | None = Field(default=None, ge=0)
    buffer_after: int | None = Field(default=None, ge=0)
    scheduled_time: str | None = None
    project: str | None = None
    category: str | None = None
    created_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        """Allow bare numeric ids in YAML."""
        return str(v)


class IntervalSchema(BaseModel):
    """A start/end pair."""

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def validate_order(self) -> IntervalSchema:
        if (self.start.tzinfo is None) != (self.end.tzinfo is None):
            raise ValueError("start and end must both carry a UTC offset or neither")
        if self.end <= self.start:
            raise ValueError(f"end ({self.end}) must be after start ({self.start})")
        return self


class SlotSchema(IntervalSchema):
    available: bool = True


class WindowSchema(BaseModel):
    """One day of precomputed availability."""

    model_config = ConfigDict(populate_by_name=True)

    day: date = Field(alias="date")
    slots: list[SlotSchema] = Field(default_factory=list)


class DateRangeSchema(BaseModel):
    start: date
    end: date

    @model_validator(mode="after")
    def validate_order(self) -> DateRangeSchema:
        if self.end < self.start:
            raise ValueError(f"end ({self.end}) must not be before start ({self.start})")
        return self


class ExistingBookingSchema(IntervalSchema):
    """A booking slotwise already made."""

    task_id: str
    priority: Priority | None = None
    content: str | None = None
    calendar_event_id: str = ""
    calendar_id: str = ""


class EventSchema(IntervalSchema):
    """A calendar event, possibly one slotwise created."""

    id: str
    title: str = "Untitled Event"
    calendar_id: str = ""
    status: str = "confirmed"
    managed_task_id: str | None = None
    managed_priority: Priority | None = None
    buffer_type: str | None = None


class RequestSchema(BaseModel):
    """Schema for a whole request file.

    Availability is given either directly or as busy periods plus a date
    range, from which it is computed using the working hours.
    """

    user_id: str = ""
    tasks: list[TaskSchema] = Field(default_factory=list)
    availability: list[WindowSchema] | None = None
    busy: list[IntervalSchema] = Field(default_factory=list)
    date_range: DateRangeSchema | None = None
    existing: list[ExistingBookingSchema] = Field(default_factory=list)
    events: list[EventSchema] = Field(default_factory=list)
    respect_priority: bool = True

    @model_validator(mode="after")
    def validate_availability_source(self) -> RequestSchema:
        if self.availability is None and self.date_range is None:
            raise ValueError("Request needs either 'availability' or 'date_range'")
        if self.availability is not None and self.date_range is not None:
            raise ValueError("Give either 'availability' or 'date_range', not both")
        return self
