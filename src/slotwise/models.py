"""Data models for slotwise."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any


class Priority(str, Enum):
    """Task priority levels."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskType(str, Enum):
    """Kinds of work that carry their own scheduling defaults."""

    DEEP_WORK = "deep_work"
    CODING = "coding"
    CALL = "call"
    MEETING = "meeting"
    PERSONAL = "personal"
    ADMIN = "admin"
    HEALTH = "health"
    OTHER = "other"


class TimeOfDay(str, Enum):
    """Coarse time-of-day categories used for preferences."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


@dataclass
class Task:
    """A task to be placed on the calendar.

    The scheduler never mutates a Task; it only produces decisions about it.
    """

    id: str
    content: str
    priority: Priority
    user_id: str = ""
    task_type: TaskType | None = None
    due_date: date | None = None
    due_time: str | None = None  # "HH:mm"
    time_estimate: int | None = None  # minutes
    buffer_before: int | None = None  # minutes
    buffer_after: int | None = None  # minutes
    scheduled_time: str | None = None  # "morning" | "afternoon" | "evening" | free text
    project: str | None = None
    category: str | None = None
    completed: bool = False
    archived: bool = False
    created_at: datetime | None = None

    def preferred_time_of_day(self) -> TimeOfDay | None:
        """Return the time-of-day preference carried in scheduled_time, if any."""
        if not self.scheduled_time:
            return None
        try:
            return TimeOfDay(self.scheduled_time.strip().lower())
        except ValueError:
            return None


@dataclass
class ScheduledTask:
    """An existing booking on the calendar.

    Only the time range and id are required; priority and content are
    optional extra information the caller may have.
    """

    task_id: str
    scheduled_start: datetime
    scheduled_end: datetime
    calendar_event_id: str = ""
    calendar_id: str = ""
    sync_status: str = "synced"  # "pending" | "synced" | "error" | "orphaned"
    priority: Priority | None = None
    task_content: str | None = None

    @property
    def start(self) -> datetime:
        return self.scheduled_start

    @property
    def end(self) -> datetime:
        return self.scheduled_end


@dataclass
class CalendarEvent:
    """An event already present on one of the user's calendars."""

    id: str
    start: datetime
    end: datetime
    title: str = "Untitled Event"
    calendar_id: str = ""
    status: str = "confirmed"  # "confirmed" | "tentative" | "cancelled"
    all_day: bool = False
    managed_task_id: str | None = None
    managed_priority: Priority | None = None
    buffer_type: str | None = None  # "before" | "after"

    @property
    def is_managed(self) -> bool:
        """True if this event was created by slotwise for one of its tasks."""
        return bool(self.managed_task_id)

    @classmethod
    def from_payload(
        cls, payload: dict[str, Any], start: datetime, end: datetime, calendar_id: str = ""
    ) -> CalendarEvent:
        """Build an event from a calendar payload, reading slotwise metadata back.

        Start and end are passed in already parsed; payload timestamps are
        transport-specific.
        """
        # Imported here to keep models free of scheduler imports at load time
        from .scheduler.events import get_managed_metadata

        metadata = get_managed_metadata(payload)
        priority: Priority | None = None
        if metadata and metadata.get("priority"):
            try:
                priority = Priority(metadata["priority"])
            except ValueError:
                priority = None

        return cls(
            id=str(payload.get("id", "")),
            start=start,
            end=end,
            title=str(payload.get("summary") or "Untitled Event"),
            calendar_id=calendar_id,
            status=str(payload.get("status", "confirmed")),
            managed_task_id=metadata["task_id"] if metadata else None,
            managed_priority=priority,
            buffer_type=metadata.get("buffer_type") if metadata else None,
        )
