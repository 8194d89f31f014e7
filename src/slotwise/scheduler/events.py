"""Calendar event payloads for scheduled tasks and their buffers.

Payloads are plain dictionaries shaped like calendar API events. slotwise
tags its own events with private metadata so they can be recognized (and
displaced) later.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Literal

from slotwise.models import Priority, Task

from .core import TimeSlot

BufferType = Literal["before", "after"]

TASK_ID_KEY = "slotwiseTaskId"
PRIORITY_KEY = "slotwisePriority"
BUFFER_TYPE_KEY = "slotwiseBufferType"
VERSION_KEY = "slotwiseVersion"
EVENT_VERSION = "1"

BUFFER_COLOR = "8"  # gray

PRIORITY_COLORS: dict[Priority, str] = {
    Priority.HIGH: "11",  # red
    Priority.MEDIUM: "5",  # yellow
    Priority.LOW: "9",  # blue
}

PRIORITY_REMINDERS: dict[Priority, list[int]] = {
    Priority.HIGH: [30, 10],
    Priority.MEDIUM: [15],
    Priority.LOW: [5],
}


@dataclass
class BufferSlots:
    before: TimeSlot | None = None
    after: TimeSlot | None = None


def _event_time(dt: datetime, timezone: str) -> dict[str, str]:
    return {"dateTime": dt.isoformat(), "timeZone": timezone}


def _private(event: dict[str, Any]) -> dict[str, str]:
    return (event.get("extendedProperties") or {}).get("private") or {}


def event_summary(task: Task) -> str:
    prefix = f"[{task.task_type.value}] " if task.task_type else ""
    return f"{prefix}{task.content}"


def event_description(task: Task) -> str:
    lines = [task.content, "", "--- slotwise task ---", f"Priority: {task.priority.value}"]

    if task.project:
        lines.append(f"Project: {task.project}")
    if task.category:
        lines.append(f"Category: {task.category}")
    if task.time_estimate:
        lines.append(f"Estimated time: {task.time_estimate} minutes")
    if task.due_date:
        due = task.due_date.isoformat()
        if task.due_time:
            due += f" at {task.due_time}"
        lines.append(f"Due: {due}")

    lines.extend(
        ["", "This event was created by slotwise.", "Do not modify the extended properties."]
    )
    return "\n".join(lines)


def build_task_event(task: Task, slot: TimeSlot, timezone: str = "UTC") -> dict[str, Any]:
    """Build the calendar event payload for a scheduled task."""
    return {
        "summary": event_summary(task),
        "description": event_description(task),
        "start": _event_time(slot.start, timezone),
        "end": _event_time(slot.end, timezone),
        "colorId": PRIORITY_COLORS[task.priority],
        "status": "confirmed",
        "extendedProperties": {
            "private": {
                TASK_ID_KEY: task.id,
                PRIORITY_KEY: task.priority.value,
                VERSION_KEY: EVENT_VERSION,
            }
        },
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "popup", "minutes": m} for m in PRIORITY_REMINDERS[task.priority]
            ],
        },
    }


def build_buffer_event(
    task: Task,
    buffer_type: BufferType,
    duration: int,
    reference: datetime,
    timezone: str = "UTC",
) -> dict[str, Any]:
    """Build a prep (before) or wind-down (after) event around a task.

    Args:
        task: Task the buffer belongs to
        buffer_type: "before" ends at reference, "after" starts at it
        duration: Buffer length in minutes
        reference: Task start for "before", task end for "after"
        timezone: IANA timezone for the payload
    """
    length = timedelta(minutes=duration)
    if buffer_type == "before":
        start, end = reference - length, reference
        summary = f"Prep: {task.content}"
        description = (
            f"Preparation time for: {task.content}\n\n"
            "Use this time to get ready for your task."
        )
    else:
        start, end = reference, reference + length
        summary = f"Wind-down: {task.content}"
        description = (
            f"Wind-down time after: {task.content}\n\n"
            "Use this time to wrap up and transition."
        )

    return {
        "summary": summary,
        "description": description,
        "start": _event_time(start, timezone),
        "end": _event_time(end, timezone),
        "colorId": BUFFER_COLOR,
        "status": "confirmed",
        # Buffers do not show as busy
        "transparency": "transparent",
        "extendedProperties": {
            "private": {
                TASK_ID_KEY: task.id,
                BUFFER_TYPE_KEY: buffer_type,
                VERSION_KEY: EVENT_VERSION,
            }
        },
        "reminders": {"useDefault": False, "overrides": []},
    }


def calculate_buffer_slots(
    task_slot: TimeSlot, buffer_before: int | None = None, buffer_after: int | None = None
) -> BufferSlots:
    """Slots immediately before and after a task for its non-zero buffers."""
    slots = BufferSlots()
    if buffer_before and buffer_before > 0:
        slots.before = TimeSlot(
            task_slot.start - timedelta(minutes=buffer_before), task_slot.start, available=False
        )
    if buffer_after and buffer_after > 0:
        slots.after = TimeSlot(
            task_slot.end, task_slot.end + timedelta(minutes=buffer_after), available=False
        )
    return slots


def update_event_times(
    event: dict[str, Any], new_slot: TimeSlot, timezone: str = "UTC"
) -> dict[str, Any]:
    """Copy of the event moved to a new slot."""
    return {
        **event,
        "start": _event_time(new_slot.start, timezone),
        "end": _event_time(new_slot.end, timezone),
    }


def is_managed_event(event: dict[str, Any]) -> bool:
    return bool(_private(event).get(TASK_ID_KEY))


def is_buffer_event(event: dict[str, Any]) -> bool:
    return bool(_private(event).get(BUFFER_TYPE_KEY))


def get_managed_metadata(event: dict[str, Any]) -> dict[str, str | None] | None:
    """Read slotwise metadata from an event, or None for foreign events."""
    private = _private(event)
    task_id = private.get(TASK_ID_KEY)
    if not task_id:
        return None
    return {
        "task_id": task_id,
        "priority": private.get(PRIORITY_KEY),
        "buffer_type": private.get(BUFFER_TYPE_KEY),
        "version": private.get(VERSION_KEY),
    }


def build_events(
    task: Task,
    slot: TimeSlot,
    buffer_before: int = 0,
    buffer_after: int = 0,
    timezone: str = "UTC",
) -> list[dict[str, Any]]:
    """Task event plus its buffer events, in chronological order."""
    events: list[dict[str, Any]] = []
    if buffer_before > 0:
        events.append(build_buffer_event(task, "before", buffer_before, slot.start, timezone))
    events.append(build_task_event(task, slot, timezone))
    if buffer_after > 0:
        events.append(build_buffer_event(task, "after", buffer_after, slot.end, timezone))
    return events
