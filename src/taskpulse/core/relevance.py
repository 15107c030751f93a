"""Day relevance rules per task variant - no I/O dependencies."""

import logging
from dataclasses import dataclass
from datetime import date, datetime

from .calendar import MONDAY, Interval, day_floor, week_window, weekday_of, within
from .errors import MissingTemporalDataError
from .models import Subtask, Task, TaskType

logger = logging.getLogger(__name__)


def require_interval(entity: Task | Subtask) -> Interval:
    """
    The entity's own [start_date, end_date] interval.

    Raises MissingTemporalDataError when either bound is missing or the
    bounds are inverted.
    """
    if entity.start_date is None or entity.end_date is None:
        raise MissingTemporalDataError(entity.id, "start_date/end_date")
    if entity.end_date < entity.start_date:
        raise MissingTemporalDataError(entity.id, "date range")
    return Interval(entity.start_date, entity.end_date)


def subtask_interval(subtask: Subtask) -> Interval | None:
    """Interval of a dated subtask, or None if it cannot be placed in time."""
    try:
        return require_interval(subtask)
    except MissingTemporalDataError as e:
        logger.debug(f"Excluding subtask from date checks: {e}")
        return None


def is_subtask_relevant_to_day(task: Task, subtask: Subtask, day: datetime | date) -> bool:
    """
    Check if a subtask is active on a day.

    Deadline subtasks are active when manually started or when the day is
    inside their own interval. Recurring subtasks inherit the parent's
    weekday schedule. Idea subtasks are never active.
    """
    match task.task_type:
        case TaskType.DEADLINE:
            if subtask.is_manually_started:
                return True
            interval = subtask_interval(subtask)
            return interval is not None and within(day, interval)
        case TaskType.RECURRING:
            return weekday_of(day) in task.recurring_days
        case _:
            return False


def is_relevant_to_day(task: Task, day: datetime | date, include_manual: bool = True) -> bool:
    """
    Check if a task is active on a day.

    Ideas are active only on their creation day. A deadline task is active
    when any subtask is; with no dated subtasks it is never active.
    Pass include_manual=False for calendar browsing, where a manually
    started subtask should not light up every day.
    """
    match task.task_type:
        case TaskType.IDEA:
            return day_floor(task.created_at) == day_floor(day)
        case TaskType.RECURRING:
            return weekday_of(day) in task.recurring_days
        case TaskType.DEADLINE:
            for st in task.subtasks:
                if st.is_manually_started and not include_manual:
                    interval = subtask_interval(st)
                    if interval is not None and within(day, interval):
                        return True
                elif is_subtask_relevant_to_day(task, st, day):
                    return True
            return False
    return False


def tasks_for_day(tasks: list[Task], day: datetime | date) -> list[Task]:
    """Tasks scheduled on a day, for calendar browsing."""
    return [t for t in tasks if is_relevant_to_day(t, day, include_manual=False)]


@dataclass
class DayMarker:
    """One day of a week strip."""

    day: date
    weekday: int
    has_tasks: bool
    is_today: bool


def week_overview(
    tasks: list[Task],
    reference: datetime | date,
    today: date,
    week_starts_on: int = MONDAY,
) -> list[DayMarker]:
    """The seven days of reference's week, each flagged if anything is scheduled."""
    return [
        DayMarker(
            day=d,
            weekday=weekday_of(d),
            has_tasks=any(is_relevant_to_day(t, d, include_manual=False) for t in tasks),
            is_today=d == today,
        )
        for d in week_window(reference, week_starts_on).days()
    ]


def todays_tasks(tasks: list[Task], now: datetime) -> list[Task]:
    """
    Open tasks with unfinished work today.

    A task qualifies when it is not Done and at least one uncompleted
    subtask is relevant today under the subtask-level rule.
    """
    return [
        t
        for t in tasks
        if not t.is_done
        and any(not st.completed and is_subtask_relevant_to_day(t, st, now) for st in t.subtasks)
    ]
