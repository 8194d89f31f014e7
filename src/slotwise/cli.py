"""Command-line interface for slotwise."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError as PydanticValidationError

from . import context
from .exceptions import SlotwiseError, ValidationError
from .loader import ScheduleRequest, discover_config, load_request
from .logger import setup_logger
from .models import Task
from .scheduler import (
    BatchScheduleResult,
    BestSlot,
    ConflictCheckResult,
    SchedulingService,
    SchedulingSuggestion,
)
from .unified_config import UnifiedConfig

app = typer.Typer(
    name="slotwise",
    help="Find, score and book calendar time for tasks",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to unified config file (default: slotwise_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for slotwise commands."""
    setup_logger(verbose)
    context.set_config_path(config)


def _parse_now(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        typer.echo(f"Error: Invalid --now value '{value}'. Use ISO 8601", err=True)
        raise typer.Exit(1) from None


def _load(file: Path, now: datetime | None) -> tuple[ScheduleRequest, SchedulingService]:
    """Load config and request, exiting with a message on bad input."""
    try:
        config: UnifiedConfig = discover_config(file)
        request = load_request(file, config)
    except (SlotwiseError, FileNotFoundError, ValueError, PydanticValidationError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    service = SchedulingService(
        preferences=config.preferences,
        rules=config.rules,
        protected_slots=config.protected_slots,
        config=config.scheduler,
        user_id=request.user_id,
        now=now,
    )
    return request, service


def _format_slot(suggestion: SchedulingSuggestion) -> str:
    return f"{suggestion.slot.start.isoformat()} -> {suggestion.slot.end.isoformat()}"


def _display_suggestions(
    task_id: str,
    content: str,
    suggestions: list[SchedulingSuggestion],
    calendar: list[ConflictCheckResult] | None = None,
) -> None:
    typer.echo(f"{content} ({task_id})")
    if not suggestions:
        typer.echo("  No suitable slots found")
        typer.echo("")
        return

    for rank, suggestion in enumerate(suggestions, start=1):
        typer.echo(f"  {rank}. {_format_slot(suggestion)}  score {suggestion.score}")
        typer.echo(f"     {suggestion.reasoning}")
        for conflict in suggestion.conflicts:
            typer.echo(f"     [{conflict.severity.value}] {conflict.description}")
        for displacement in suggestion.displacements:
            marker = "recommended" if displacement.recommended else "not recommended"
            typer.echo(
                f"     would displace {displacement.task_id} ({marker}): {displacement.reason}"
            )
        if calendar is not None:
            _display_calendar_check(calendar[rank - 1])
    typer.echo("")


def _display_calendar_check(check: ConflictCheckResult) -> None:
    for conflict in check.conflicts:
        typer.echo(
            f"     [{conflict.severity.value}] {conflict.description} "
            f"(event {conflict.conflicting_event_id})"
        )
    if check.can_displace:
        typer.echo("     all overlapping events can be displaced")


def _display_booking(task: Task, best: BestSlot | None) -> None:
    typer.echo(f"{task.content} ({task.id})")
    if best is None:
        typer.echo("  No bookable slot: every suggestion overlaps events that cannot be moved")
        typer.echo("")
        return

    typer.echo(f"  Book {best.slot.start.isoformat()} -> {best.slot.end.isoformat()}")
    _display_calendar_check(best.result)
    for displacement in best.result.displacements:
        typer.echo(f"     displaces {displacement.task_id}: {displacement.reason}")
    typer.echo("")


def _display_batch_results(result: BatchScheduleResult) -> None:
    typer.echo("Batch Results")
    typer.echo("=" * 80)
    typer.echo("")

    for item in result.scheduled:
        typer.echo(f"{item.task.content} ({item.task.id})")
        typer.echo(f"  {item.slot.start.isoformat()} -> {item.slot.end.isoformat()}")
        typer.echo(f"  Score: {item.score}")
        typer.echo(f"  {item.reasoning}")
        typer.echo("")

    for conflict in result.conflicts:
        typer.echo(f"CONFLICT {conflict.task.content} ({conflict.task.id})")
        typer.echo(f"  {conflict.suggestion}")
        typer.echo("")

    for item in result.unschedulable:
        typer.echo(f"UNSCHEDULABLE {item.task.content} ({item.task.id})")
        typer.echo(f"  {item.reason}")
        typer.echo("")

    summary = result.summary
    typer.echo(
        f"{summary.scheduled_count}/{summary.total_tasks} scheduled, "
        f"{summary.conflict_count} conflict(s), "
        f"{summary.unschedulable_count} unschedulable, "
        f"{summary.total_time_scheduled:.0f} min booked"
    )


@app.command()
def suggest(
    file: Annotated[Path, typer.Argument(help="Path to the request YAML file")] = Path(
        "request.yaml"
    ),
    *,
    task_id: Annotated[
        str | None, typer.Option("--task", "-t", help="Only suggest slots for this task")
    ] = None,
    count: Annotated[
        int | None, typer.Option("--count", "-n", min=1, help="Number of suggestions per task")
    ] = None,
    events: Annotated[
        bool,
        typer.Option("--events", help="Print event payloads for each top suggestion as JSON"),
    ] = False,
    book: Annotated[
        bool,
        typer.Option(
            "--book", help="Pick one slot per task against the request's calendar events"
        ),
    ] = False,
    now: Annotated[
        str | None,
        typer.Option("--now", help="Reference time for urgency checks (ISO 8601)"),
    ] = None,
) -> None:
    """Suggest ranked slots for each task in a request."""
    request, service = _load(file, _parse_now(now))

    tasks = request.tasks
    if task_id is not None:
        tasks = [t for t in tasks if t.id == task_id]
        if not tasks:
            typer.echo(f"Error: Task '{task_id}' not found in {file}", err=True)
            raise typer.Exit(1)

    payloads: list[dict[str, Any]] = []
    for task in tasks:
        if book:
            best = service.book(task, request.availability, request.events)
            if not events:
                _display_booking(task, best)
            elif best is not None:
                payloads.extend(service.build_events(task, best.slot))
            continue

        suggestions = service.suggest(task, request.availability, request.existing, count)
        if events:
            if suggestions:
                payloads.extend(service.build_events(task, suggestions[0].slot))
            continue

        calendar = None
        if request.events:
            calendar = [
                service.check_calendar_conflicts(task, s.slot, request.events)
                for s in suggestions
            ]
        _display_suggestions(task.id, task.content, suggestions, calendar)

    if events:
        typer.echo(json.dumps(payloads, indent=2))


@app.command()
def batch(
    file: Annotated[Path, typer.Argument(help="Path to the request YAML file")] = Path(
        "request.yaml"
    ),
    *,
    ignore_priority: Annotated[
        bool,
        typer.Option("--ignore-priority", help="Schedule in file order instead of by priority"),
    ] = False,
    events: Annotated[
        bool,
        typer.Option("--events", help="Print event payloads for scheduled tasks as JSON"),
    ] = False,
    now: Annotated[
        str | None,
        typer.Option("--now", help="Reference time for urgency checks (ISO 8601)"),
    ] = None,
) -> None:
    """Schedule all tasks in a request together, highest priority first."""
    request, service = _load(file, _parse_now(now))
    respect_priority = request.respect_priority and not ignore_priority

    try:
        result = service.schedule_batch(request.tasks, request.availability, respect_priority)
    except ValidationError as e:
        typer.echo("Error: Invalid batch request", err=True)
        for error in e.errors:
            typer.echo(f"  - {error}", err=True)
        raise typer.Exit(1) from e

    if events:
        payloads: list[dict[str, Any]] = []
        for item in result.scheduled:
            payloads.extend(service.build_events(item.task, item.slot))
        typer.echo(json.dumps(payloads, indent=2))
    else:
        _display_batch_results(result)


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
