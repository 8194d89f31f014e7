"""Scheduling request loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from . import context
from .exceptions import ParseError
from .logger import get_logger
from .models import CalendarEvent, ScheduledTask, Task
from .scheduler.availability import build_availability
from .scheduler.core import AvailabilityWindow, TimeSlot
from .scheduler.timeutils import get_zone
from .schemas import RequestSchema, TaskSchema
from .unified_config import DEFAULT_CONFIG_NAME, UnifiedConfig, load_unified_config

logger = get_logger()


@dataclass
class ScheduleRequest:
    """A parsed request: tasks plus the calendar snapshot to place them in."""

    user_id: str
    tasks: list[Task]
    availability: list[AvailabilityWindow]
    existing: list[ScheduledTask] = field(default_factory=list)
    events: list[CalendarEvent] = field(default_factory=list)
    respect_priority: bool = True


def discover_config(request_path: Path, config_path: Path | None = None) -> UnifiedConfig:
    """Find and load the config for a request.

    Search order:
    1. Explicit config_path argument
    2. Global context (set via CLI --config)
    3. Request file directory / slotwise_config.yaml
    4. Current directory / slotwise_config.yaml

    Falls back to built-in defaults when none is found.
    """
    candidates = [
        config_path,
        context.get_config_path(),
        request_path.parent / DEFAULT_CONFIG_NAME,
        Path(DEFAULT_CONFIG_NAME),
    ]
    for candidate in candidates:
        if candidate and candidate.exists():
            logger.checks(f"Using config {candidate}")
            return load_unified_config(candidate)

    logger.checks("No config file found, using defaults")
    return UnifiedConfig()


def _localize(dt: datetime, timezone: str) -> datetime:
    """Attach the user's timezone to naive datetimes."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=get_zone(timezone))
    return dt


def _task(schema: TaskSchema, user_id: str, timezone: str) -> Task:
    return Task(
        id=schema.id,
        content=schema.content,
        priority=schema.priority,
        user_id=user_id,
        task_type=schema.task_type,
        due_date=schema.due_date,
        due_time=schema.due_time,
        time_estimate=schema.time_estimate,
        buffer_before=schema.buffer_before,
        buffer_after=schema.buffer_after,
        scheduled_time=schema.scheduled_time,
        project=schema.project,
        category=schema.category,
        created_at=_localize(schema.created_at, timezone) if schema.created_at else None,
    )


def parse_request(data: dict[str, Any], config: UnifiedConfig) -> ScheduleRequest:
    """Convert raw request data into domain objects."""
    try:
        schema = RequestSchema.model_validate(data)
    except PydanticValidationError as e:
        raise ParseError(f"Invalid request: {e}") from e

    tz = config.preferences.timezone
    user_id = schema.user_id or config.user_id

    if schema.availability is not None:
        availability = [
            AvailabilityWindow.from_slots(
                window.day,
                [
                    TimeSlot(_localize(s.start, tz), _localize(s.end, tz), s.available)
                    for s in window.slots
                ],
            )
            for window in schema.availability
        ]
    else:
        assert schema.date_range is not None
        busy = [TimeSlot(_localize(b.start, tz), _localize(b.end, tz), False) for b in schema.busy]
        availability = build_availability(
            schema.date_range.start,
            schema.date_range.end,
            busy,
            config.preferences,
            config.scheduler.availability_interval_minutes,
        )

    existing = [
        ScheduledTask(
            task_id=b.task_id,
            scheduled_start=_localize(b.start, tz),
            scheduled_end=_localize(b.end, tz),
            calendar_event_id=b.calendar_event_id,
            calendar_id=b.calendar_id,
            priority=b.priority,
            task_content=b.content,
        )
        for b in schema.existing
    ]

    events = [
        CalendarEvent(
            id=e.id,
            start=_localize(e.start, tz),
            end=_localize(e.end, tz),
            title=e.title,
            calendar_id=e.calendar_id,
            status=e.status,
            managed_task_id=e.managed_task_id,
            managed_priority=e.managed_priority,
            buffer_type=e.buffer_type,
        )
        for e in schema.events
    ]

    return ScheduleRequest(
        user_id=user_id,
        tasks=[_task(t, user_id, tz) for t in schema.tasks],
        availability=availability,
        existing=existing,
        events=events,
        respect_priority=schema.respect_priority,
    )


def load_request(path: Path | str, config: UnifiedConfig | None = None) -> ScheduleRequest:
    """Load a scheduling request from a YAML file.

    Args:
        path: Path to the request file
        config: Explicit config (discovered next to the request when omitted)

    Returns:
        The parsed request

    Raises:
        ParseError: If the file is missing, not YAML, or malformed
    """
    path = Path(path)
    if not path.exists():
        raise ParseError(f"File not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("YAML must contain a dictionary at the root level")

    if config is None:
        config = discover_config(path)

    request = parse_request(data, config)
    logger.checks(
        f"Loaded {len(request.tasks)} task(s) and {len(request.availability)} day(s) "
        f"of availability from {path}"
    )
    return request
