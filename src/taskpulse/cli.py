"""taskpulse CLI - deadline, recurring and idea task tracker."""

import json
import logging
import sys
import uuid
from dataclasses import replace
from datetime import datetime

import click

from .adapters.json_store import JsonTaskStore, TaskNotFoundError, TaskStoreError
from .config import TYPES, WINDOWS, Config, load_config, parse_weekday
from .core.aggregate import (
    SortMode,
    TypeFilter,
    Window,
    aggregate,
    day_badge_counts,
    sort_and_filter_all,
    task_counts,
    timeline,
    week_badge_counts,
)
from .core.calendar import day_floor, end_of_day, make_interval, parse_day, start_of_day, within
from .core.errors import DoneLockedError, InvalidRangeError
from .core.models import Subtask, Task, TaskStatus, TaskType
from .core.relevance import tasks_for_day, todays_tasks, week_overview
from .core.status import change_status, subtask_board, toggle_subtask
from .report import (
    format_aggregate,
    format_badge,
    format_board,
    format_task_counts,
    format_task_line,
    format_timeline,
    format_week,
    serialize_aggregate,
    serialize_task,
    serialize_task_counts,
    weekday_name,
)

STATUS_CHOICES = {
    "todo": TaskStatus.TODO,
    "in-progress": TaskStatus.IN_PROGRESS,
    "done": TaskStatus.DONE,
}


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _open_store(config: Config) -> JsonTaskStore:
    return JsonTaskStore(config.store_path)


def _load_tasks(config: Config) -> list[Task]:
    try:
        return _open_store(config).load_all()
    except TaskStoreError as e:
        _fail(str(e))


def _get_task(store: JsonTaskStore, task_id: str) -> Task:
    try:
        return store.get(task_id)
    except TaskNotFoundError:
        _fail(f"No task with id {task_id}")


def _parse_instant(text: str, end: bool = False) -> datetime:
    """A full ISO timestamp, or a bare day widened to its start or end."""
    try:
        day = parse_day(text)
    except ValueError:
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            raise click.BadParameter(f"not a date or timestamp: {text}") from None
    return end_of_day(day) if end else start_of_day(day)


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@click.group()
@click.version_option(package_name="taskpulse")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--now", "now_str", default=None, help="Reference time (ISO), defaults to the current time")
@click.pass_context
def main(ctx, debug: bool, now_str: str | None):
    """taskpulse - Task tracker CLI."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )
    ctx.ensure_object(dict)
    # Read the clock once so a whole command sees the same instant
    try:
        ctx.obj["now"] = datetime.fromisoformat(now_str) if now_str else datetime.now()
    except ValueError:
        raise click.BadParameter(f"not an ISO timestamp: {now_str}", param_hint="--now") from None


@main.command()
@click.option("--window", "-w", type=click.Choice(WINDOWS), default=None, help="Time window")
@click.option("--type", "-t", "task_type", type=click.Choice(TYPES), default=None, help="Task type filter")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def stats(ctx, window: str | None, task_type: str | None, as_json: bool):
    """Count tasks, and subtasks in a time window, by status."""
    config = load_config()
    now = ctx.obj["now"]
    window = window or config.default_window
    task_type = task_type or config.default_type

    tasks = _load_tasks(config)
    result = aggregate(tasks, Window(window), TypeFilter(task_type), now, week_starts_on=config.week_starts_on)
    counts = task_counts(tasks, TypeFilter(task_type), now)
    if as_json:
        data = serialize_aggregate(result)
        data["tasks"] = serialize_task_counts(counts)
        _echo_json(data)
    else:
        click.echo(format_task_counts(counts))
        click.echo()
        click.echo(format_aggregate(result, window))


@main.command("list")
@click.option("--type", "-t", "task_type", type=click.Choice(TYPES), default=None, help="Task type filter")
@click.option(
    "--sort",
    "sort_mode",
    type=click.Choice([m.value for m in SortMode]),
    default=SortMode.NEWEST.value,
    help="Ordering of open tasks",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_tasks(ctx, task_type: str | None, sort_mode: str, as_json: bool):
    """List tasks, open ones first."""
    config = load_config()
    now = ctx.obj["now"]
    ordered = sort_and_filter_all(
        _load_tasks(config),
        TypeFilter(task_type or config.default_type),
        SortMode(sort_mode),
    )

    if as_json:
        _echo_json([serialize_task(t, now, config) for t in ordered])
        return
    if not ordered:
        click.echo("No tasks.")
        return
    for task in ordered:
        click.echo(format_task_line(task, now, config))


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def today(ctx, as_json: bool):
    """Show tasks with work due today."""
    config = load_config()
    now = ctx.obj["now"]
    tasks = _load_tasks(config)
    active = todays_tasks(tasks, now)
    badge = day_badge_counts(tasks, now)

    if as_json:
        _echo_json(
            {
                "completed": badge.completed,
                "total": badge.total,
                "tasks": [serialize_task(t, now, config) for t in active],
            }
        )
        return

    click.echo(format_badge("Today", badge))
    if not active:
        click.echo("Nothing left for today.")
        return
    for task in active:
        click.echo(format_task_line(task, now, config))


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def badge(ctx, as_json: bool):
    """Completed vs total subtasks this week."""
    config = load_config()
    now = ctx.obj["now"]
    counts = week_badge_counts(_load_tasks(config), now, week_starts_on=config.week_starts_on)
    if as_json:
        _echo_json({"completed": counts.completed, "total": counts.total})
    else:
        click.echo(format_badge("This week", counts))


@main.command()
@click.argument("target")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def day(ctx, target: str, as_json: bool):
    """Show tasks scheduled on TARGET (YYYY-MM-DD or DD-MM-YYYY)."""
    config = load_config()
    now = ctx.obj["now"]
    try:
        target_day = parse_day(target)
    except ValueError as e:
        _fail(str(e))

    found = tasks_for_day(_load_tasks(config), target_day)
    if as_json:
        _echo_json([serialize_task(t, now, config) for t in found])
        return
    click.echo(f"### {target_day.strftime('%A, %B %d %Y')}")
    if not found:
        click.echo("No tasks.")
    for task in found:
        click.echo(format_task_line(task, now, config))


@main.command()
@click.argument("target", required=False)
@click.pass_context
def week(ctx, target: str | None):
    """Show the week strip around TARGET (defaults to today)."""
    config = load_config()
    now = ctx.obj["now"]
    try:
        reference = parse_day(target) if target else day_floor(now)
    except ValueError as e:
        _fail(str(e))

    markers = week_overview(_load_tasks(config), reference, day_floor(now), config.week_starts_on)
    click.echo(f"Week starting {weekday_name(markers[0].weekday)} {markers[0].day.isoformat()}")
    click.echo(format_week(markers))


@main.command()
@click.argument("task_id")
@click.pass_context
def show(ctx, task_id: str):
    """Show a task's subtasks as a board."""
    config = load_config()
    task = _get_task(_open_store(config), task_id)
    click.echo(format_board(task, subtask_board(task, ctx.obj["now"])))


@main.command("timeline")
@click.argument("task_id")
def show_timeline(task_id: str):
    """Day-by-day plan of a deadline task."""
    config = load_config()
    task = _get_task(_open_store(config), task_id)
    click.echo(format_timeline(task, timeline(task)))


@main.command()
@click.argument("task_id")
@click.argument("subtask_id")
def toggle(task_id: str, subtask_id: str):
    """Toggle a subtask's completion."""
    config = load_config()
    store = _open_store(config)
    task = _get_task(store, task_id)
    if task.find_subtask(subtask_id) is None:
        _fail(f"Task {task_id} has no subtask {subtask_id}")

    updated = toggle_subtask(task, subtask_id)
    store.put(updated)
    subtask = updated.find_subtask(subtask_id)
    mark = "x" if subtask.completed else " "
    click.echo(f"[{mark}] {subtask.title} (task: {updated.status.value})")


@main.command()
@click.argument("task_id")
@click.argument("subtask_id")
def start(task_id: str, subtask_id: str):
    """Mark a subtask as manually started (or clear the mark)."""
    config = load_config()
    store = _open_store(config)
    task = _get_task(store, task_id)
    subtask = task.find_subtask(subtask_id)
    if subtask is None:
        _fail(f"Task {task_id} has no subtask {subtask_id}")

    flipped = replace(subtask, is_manually_started=not subtask.is_manually_started)
    store.put(replace(task, subtasks=[flipped if st.id == subtask_id else st for st in task.subtasks]))
    state = "started" if flipped.is_manually_started else "not started"
    click.echo(f"{flipped.title}: {state}")


@main.command()
@click.argument("task_id")
@click.argument("status", type=click.Choice(list(STATUS_CHOICES)))
def status(task_id: str, status: str):
    """Change a task's status. Done requires every subtask completed."""
    config = load_config()
    store = _open_store(config)
    task = _get_task(store, task_id)
    try:
        updated = change_status(task, STATUS_CHOICES[status])
    except DoneLockedError as e:
        _fail(str(e))
    store.put(updated)
    click.echo(f"{updated.title}: {updated.status.value}")


@main.command("add-task")
@click.argument("title")
@click.option(
    "--type", "-t", "task_type",
    type=click.Choice([t.value for t in TaskType]),
    default=TaskType.DEADLINE.value,
)
@click.option("--start", "start_str", default=None, help="Start (date or ISO timestamp)")
@click.option("--end", "end_str", default=None, help="End (date or ISO timestamp)")
@click.option("--days", default=None, help="Recurring weekdays, e.g. mon,wed,fri")
@click.option("--description", "-d", default="", help="Description")
@click.pass_context
def add_task(ctx, title: str, task_type: str, start_str, end_str, days, description: str):
    """Create a task."""
    config = load_config()
    kind = TaskType(task_type)
    task = Task(
        id=uuid.uuid4().hex,
        title=title,
        task_type=kind,
        created_at=ctx.obj["now"],
        description=description,
    )

    if kind == TaskType.DEADLINE:
        if not start_str or not end_str:
            raise click.UsageError("Deadline tasks need --start and --end")
        start_at = _parse_instant(start_str)
        end_at = _parse_instant(end_str, end=True)
        if end_at <= start_at:
            raise click.UsageError("--end must be after --start")
        task = replace(task, start_date=start_at, end_date=end_at)
    elif kind == TaskType.RECURRING:
        if not days:
            raise click.UsageError("Recurring tasks need --days")
        try:
            weekdays = frozenset(parse_weekday(d) for d in days.split(",") if d.strip())
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--days") from None
        if not weekdays:
            raise click.UsageError("Recurring tasks need at least one weekday")
        task = replace(task, recurring_days=weekdays)

    _open_store(config).put(task)
    click.echo(task.id)


@main.command("add-subtask")
@click.argument("task_id")
@click.argument("title")
@click.option("--start", "start_str", default=None, help="Start (date or ISO timestamp)")
@click.option("--end", "end_str", default=None, help="End (date or ISO timestamp)")
@click.option("--description", "-d", default="", help="Description")
def add_subtask(task_id: str, title: str, start_str, end_str, description: str):
    """Add a subtask to a task."""
    config = load_config()
    store = _open_store(config)
    task = _get_task(store, task_id)
    subtask = Subtask(id=uuid.uuid4().hex, title=title, description=description)

    if start_str or end_str:
        if not task.is_deadline:
            raise click.UsageError("Only deadline subtasks take dates")
        if not (start_str and end_str):
            raise click.UsageError("Give both --start and --end")
        try:
            span = make_interval(_parse_instant(start_str), _parse_instant(end_str, end=True))
        except InvalidRangeError as e:
            raise click.UsageError(str(e)) from None
        if task.start_date and task.end_date:
            parent = make_interval(task.start_date, task.end_date)
            if not (within(span.start, parent) and within(span.end, parent)):
                raise click.UsageError("Subtask dates must fall within the task's dates")
        subtask = replace(subtask, start_date=span.start, end_date=span.end)

    # Adding open work to a Done task reopens it
    status = TaskStatus.IN_PROGRESS if task.is_done else task.status
    store.put(replace(task, subtasks=[*task.subtasks, subtask], status=status))
    click.echo(subtask.id)
