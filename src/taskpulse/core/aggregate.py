"""Aggregation of per-subtask classifications into counts and lists.

Pure functions - no I/O. Every entry point takes ``now`` explicitly so one
pass sees a single consistent clock.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from .calendar import (
    MONDAY,
    Interval,
    day_floor,
    day_window,
    make_interval,
    month_window,
    overlaps,
    week_window,
    weekday_of,
)
from .errors import MissingTemporalDataError
from .models import Subtask, Task, TaskType
from .relevance import is_subtask_relevant_to_day, require_interval, subtask_interval
from .status import DerivedStatus, subtask_status, task_status

logger = logging.getLogger(__name__)


class Window(Enum):
    """Aggregation time scope."""

    TODAY = "today"
    THIS_WEEK = "week"
    THIS_MONTH = "month"
    ALL = "all"


class TypeFilter(Enum):
    ALL = "all"
    DEADLINE = "deadline"
    RECURRING = "recurring"
    IDEA = "idea"


class SortMode(Enum):
    NEWEST = "newest"
    DURATION_ASC = "duration-asc"
    DURATION_DESC = "duration-desc"


@dataclass
class BucketItem:
    """A task and how many of its subtasks landed in a bucket."""

    task_id: str
    title: str
    subtask_count: int


@dataclass
class BucketView:
    count: int = 0
    items: list[BucketItem] = field(default_factory=list)


@dataclass
class AggregateResult:
    """Subtask counts for a window, split by derived status."""

    total: int = 0
    upcoming: BucketView = field(default_factory=BucketView)
    in_progress: BucketView = field(default_factory=BucketView)
    done: BucketView = field(default_factory=BucketView)
    overdue: BucketView = field(default_factory=BucketView)

    def bucket(self, status: DerivedStatus) -> BucketView:
        return {
            DerivedStatus.UPCOMING: self.upcoming,
            DerivedStatus.IN_PROGRESS: self.in_progress,
            DerivedStatus.COMPLETED: self.done,
            DerivedStatus.OVERDUE: self.overdue,
        }[status]


@dataclass
class WeekBadge:
    """Completed-vs-total subtask counter for a summary badge."""

    completed: int = 0
    total: int = 0


@dataclass
class TaskCounts:
    """Whole-task counts by derived status."""

    total: int = 0
    upcoming: int = 0
    in_progress: int = 0
    done: int = 0
    overdue: int = 0
    draft: int = 0


def filter_by_type(tasks: list[Task], type_filter: TypeFilter) -> list[Task]:
    if type_filter == TypeFilter.ALL:
        return list(tasks)
    wanted = TaskType(type_filter.value)
    return [t for t in tasks if t.task_type == wanted]


def window_days(window: Window, now: datetime, week_starts_on: int = MONDAY) -> list[date] | None:
    """Calendar days a window spans; None for ALL, which has no day expansion."""
    match window:
        case Window.TODAY:
            return [day_floor(now)]
        case Window.THIS_WEEK:
            return week_window(now, week_starts_on).days()
        case Window.THIS_MONTH:
            return month_window(now).days()
        case _:
            return None


def _has_inverted_dates(subtask: Subtask) -> bool:
    return (
        subtask.start_date is not None
        and subtask.end_date is not None
        and subtask.end_date < subtask.start_date
    )


def collect_subtasks(
    tasks: list[Task],
    window: Window,
    now: datetime,
    week_starts_on: int = MONDAY,
) -> list[tuple[Task, Subtask]]:
    """
    The (task, subtask) pairs that fall in a window.

    A subtask relevant on several days of the window is collected once.
    Idea tasks never contribute.
    Deadline subtasks with an end before their start are dropped in every
    window, ALL included.
    """
    candidates = [t for t in tasks if not t.is_idea]
    collected: dict[tuple[str, str], tuple[Task, Subtask]] = {}

    days = window_days(window, now, week_starts_on)
    if days is None:
        for task in candidates:
            for st in task.subtasks:
                if task.is_deadline and _has_inverted_dates(st):
                    logger.debug(f"Excluding subtask {st.id}: ends before it starts")
                    continue
                collected.setdefault((task.id, st.id), (task, st))
        return list(collected.values())

    for day in days:
        for task in candidates:
            for st in task.subtasks:
                key = (task.id, st.id)
                if key in collected:
                    continue
                if is_subtask_relevant_to_day(task, st, day):
                    collected[key] = (task, st)
    return list(collected.values())


def aggregate(
    tasks: list[Task],
    window: Window,
    type_filter: TypeFilter,
    now: datetime,
    week_starts_on: int = MONDAY,
) -> AggregateResult:
    """Bucket the window's subtasks by derived status, grouped per task."""
    pairs = collect_subtasks(filter_by_type(tasks, type_filter), window, now, week_starts_on)
    result = AggregateResult(total=len(pairs))

    # bucket -> task id -> item, keeping first-seen order
    grouped: dict[DerivedStatus, dict[str, BucketItem]] = {}
    for task, st in pairs:
        status = subtask_status(task, st, now)
        bucket = result.bucket(status)
        bucket.count += 1
        items = grouped.setdefault(status, {})
        if task.id not in items:
            items[task.id] = BucketItem(task_id=task.id, title=task.title, subtask_count=0)
            bucket.items.append(items[task.id])
        items[task.id].subtask_count += 1

    return result


def task_counts(tasks: list[Task], type_filter: TypeFilter, now: datetime) -> TaskCounts:
    """
    Count whole tasks by derived status.

    Unlike subtask aggregation this ignores windows: every task matching the
    type filter is counted once. Ideas land in draft.
    """
    filtered = filter_by_type(tasks, type_filter)
    counts = TaskCounts(total=len(filtered))
    for task in filtered:
        match task_status(task, now):
            case DerivedStatus.COMPLETED:
                counts.done += 1
            case DerivedStatus.OVERDUE:
                counts.overdue += 1
            case DerivedStatus.UPCOMING:
                counts.upcoming += 1
            case DerivedStatus.IN_PROGRESS:
                counts.in_progress += 1
            case DerivedStatus.DRAFT:
                counts.draft += 1
    return counts


def _badge_counts(tasks: list[Task], window: Interval) -> WeekBadge:
    badge = WeekBadge()
    weekdays = {weekday_of(d) for d in window.days()}

    for task in tasks:
        match task.task_type:
            case TaskType.RECURRING:
                # Ongoing obligations: only open items count, never completions
                if weekdays & task.recurring_days:
                    badge.total += sum(1 for st in task.subtasks if not st.completed)
            case TaskType.DEADLINE:
                for st in task.subtasks:
                    interval = subtask_interval(st)
                    if interval is None:
                        continue
                    span = make_interval(day_floor(interval.start), day_floor(interval.end))
                    if overlaps(span, window):
                        badge.total += 1
                        if st.completed:
                            badge.completed += 1
    return badge


def week_badge_counts(
    tasks: list[Task],
    now: datetime,
    week_reference: datetime | date | None = None,
    week_starts_on: int = MONDAY,
) -> WeekBadge:
    """Badge counts for the week of week_reference (defaults to now's week)."""
    reference = week_reference if week_reference is not None else now
    return _badge_counts(tasks, week_window(reference, week_starts_on))


def day_badge_counts(tasks: list[Task], day: datetime | date) -> WeekBadge:
    """Badge counts restricted to a single day."""
    return _badge_counts(tasks, day_window(day))


def _deadline_duration(task: Task) -> timedelta | None:
    if not task.is_deadline:
        return None
    try:
        return require_interval(task).duration()
    except MissingTemporalDataError as e:
        logger.debug(f"Not ranking by duration: {e}")
        return None


def _rank_by_duration(group: list[Task], descending: bool) -> list[Task]:
    """Reorder deadline tasks among their own slots; other tasks stay put."""
    slots = [i for i, t in enumerate(group) if _deadline_duration(t) is not None]
    ranked = sorted((group[i] for i in slots), key=_deadline_duration, reverse=descending)
    result = list(group)
    for i, task in zip(slots, ranked):
        result[i] = task
    return result


def sort_and_filter_all(
    tasks: list[Task],
    type_filter: TypeFilter = TypeFilter.ALL,
    sort_mode: SortMode = SortMode.NEWEST,
) -> list[Task]:
    """
    Filter tasks by type and order them for display.

    Done tasks always come after open ones. Within each group tasks are
    newest first, and duration modes then rank deadline tasks by length.
    """
    newest = sorted(filter_by_type(tasks, type_filter), key=lambda t: t.created_at, reverse=True)
    open_tasks = [t for t in newest if not t.is_done]
    done_tasks = [t for t in newest if t.is_done]

    if sort_mode != SortMode.NEWEST:
        descending = sort_mode == SortMode.DURATION_DESC
        open_tasks = _rank_by_duration(open_tasks, descending)
        done_tasks = _rank_by_duration(done_tasks, descending)

    return open_tasks + done_tasks


@dataclass
class TimelineDay:
    day: date
    subtasks: list[Subtask]


def timeline(task: Task) -> list[TimelineDay]:
    """Day-by-day plan of a deadline task: subtasks listed on their start day."""
    if not task.is_deadline:
        return []
    try:
        interval = require_interval(task)
    except MissingTemporalDataError as e:
        logger.debug(f"No timeline: {e}")
        return []

    return [
        TimelineDay(
            day=d,
            subtasks=[st for st in task.subtasks if st.start_date is not None and day_floor(st.start_date) == d],
        )
        for d in interval.days()
    ]
