"""Text and JSON rendering of engine results.

Pure functions - no I/O.
"""

from datetime import datetime

from .config import WEEKDAY_NAMES, Config
from .core.aggregate import AggregateResult, BucketView, TaskCounts, TimelineDay, WeekBadge
from .core.calendar import Interval
from .core.duration import remaining_label
from .core.models import Task
from .core.relevance import DayMarker
from .core.status import SubtaskBoard, subtask_progress, task_status, time_progress, urgency

BUCKET_TITLES = [
    ("upcoming", "Upcoming"),
    ("in_progress", "In progress"),
    ("done", "Done"),
    ("overdue", "Overdue"),
]

WEEKDAY_ABBREVIATIONS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def describe_schedule(task: Task, config: Config) -> str:
    """Short when-is-it text: date range, weekdays, or created day."""
    if task.is_recurring:
        # Week order starting from the configured first day
        days = sorted(task.recurring_days, key=lambda d: (d - config.week_starts_on) % 7)
        return "every " + ", ".join(WEEKDAY_ABBREVIATIONS[d] for d in days)
    if task.is_idea:
        return f"idea from {task.created_at.date().isoformat()}"
    if task.start_date and task.end_date:
        return f"{task.start_date:%Y-%m-%d %H:%M} -> {task.end_date:%Y-%m-%d %H:%M}"
    return "no dates"


def format_task_line(task: Task, now: datetime, config: Config) -> str:
    """
    Format a single task for a list view.

    Deadline tasks show their countdown and time bar; others only the
    checklist progress.
    """
    done = sum(1 for st in task.subtasks if st.completed)
    checklist = f"{done}/{len(task.subtasks)}"
    state = task_status(task, now).value.replace("_", " ")

    line = f"- [{task.id}] {task.title} ({state}, {checklist}, {describe_schedule(task, config)})"
    if task.is_deadline and task.start_date and task.end_date and task.start_date <= task.end_date:
        left = remaining_label(
            task.end_date,
            now,
            config.completed_label,
            config.overdue_label,
            completed=task.is_done,
        )
        progress = time_progress(Interval(task.start_date, task.end_date), now)
        flag = urgency(task, now, config.warning_threshold).value
        line += f" | {left} | time left {progress:.0f}% [{flag}]"
    return line


def format_bucket(title: str, bucket: BucketView) -> str:
    lines = [f"### {title} ({bucket.count})"]
    lines.extend(f"- {item.title} ({item.subtask_count})" for item in bucket.items)
    if not bucket.items:
        lines.append("None")
    return "\n".join(lines)


def format_aggregate(result: AggregateResult, window: str) -> str:
    sections = [f"Subtasks ({window}): {result.total}"]
    sections.extend(format_bucket(title, getattr(result, attr)) for attr, title in BUCKET_TITLES)
    return "\n\n".join(sections)


def format_task_counts(counts: TaskCounts) -> str:
    parts = [f"{getattr(counts, attr)} {title.lower()}" for attr, title in BUCKET_TITLES]
    if counts.draft:
        parts.append(f"{counts.draft} draft")
    return f"Tasks: {counts.total} (" + ", ".join(parts) + ")"


def format_badge(label: str, badge: WeekBadge) -> str:
    return f"{label}: {badge.completed}/{badge.total} done"


def format_week(markers: list[DayMarker]) -> str:
    lines = []
    for m in markers:
        today = " <- today" if m.is_today else ""
        dot = "*" if m.has_tasks else " "
        lines.append(f"{dot} {WEEKDAY_ABBREVIATIONS[m.weekday]} {m.day.isoformat()}{today}")
    return "\n".join(lines)


def format_board(task: Task, board: SubtaskBoard) -> str:
    columns = [
        ("Not started", board.not_started),
        ("In progress", board.in_progress),
        ("Done", board.done),
    ]
    lines = [f"{task.title} - {subtask_progress(task):.0f}% complete"]
    for title, subtasks in columns:
        lines.append("")
        lines.append(f"### {title}")
        lines.extend(f"- [{st.id}] {st.title}" for st in subtasks)
        if not subtasks:
            lines.append("None")
    return "\n".join(lines)


def format_timeline(task: Task, days: list[TimelineDay]) -> str:
    if not days:
        return f"{task.title} has no timeline."
    lines = [f"Timeline: {task.title} ({len(days)} days)"]
    for entry in days:
        titles = ", ".join(st.title for st in entry.subtasks) or "-"
        lines.append(f"  {entry.day:%a %Y-%m-%d}  {titles}")
    return "\n".join(lines)


def serialize_task(task: Task, now: datetime, config: Config) -> dict:
    data = task.to_dict()
    data["derivedStatus"] = task_status(task, now).value
    data["subtaskProgress"] = subtask_progress(task)
    if task.is_deadline and task.start_date and task.end_date and task.start_date <= task.end_date:
        data["timeProgress"] = time_progress(Interval(task.start_date, task.end_date), now)
        data["remaining"] = remaining_label(
            task.end_date, now, config.completed_label, config.overdue_label, completed=task.is_done
        )
    return data


def serialize_aggregate(result: AggregateResult) -> dict:
    data = {"total": result.total}
    for attr, _ in BUCKET_TITLES:
        bucket: BucketView = getattr(result, attr)
        data[attr] = {
            "count": bucket.count,
            "items": [
                {"taskId": i.task_id, "title": i.title, "subtaskCount": i.subtask_count}
                for i in bucket.items
            ],
        }
    return data


def serialize_task_counts(counts: TaskCounts) -> dict:
    return {
        "total": counts.total,
        "upcoming": counts.upcoming,
        "inProgress": counts.in_progress,
        "done": counts.done,
        "overdue": counts.overdue,
        "draft": counts.draft,
    }


def weekday_name(index: int) -> str:
    return WEEKDAY_NAMES[index].capitalize()
