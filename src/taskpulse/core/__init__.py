"""Functional core - pure business logic with no I/O."""

from .models import Attachment, Subtask, Task, TaskStatus, TaskType
from .errors import DoneLockedError, InvalidRangeError, MissingTemporalDataError
from .calendar import Interval, day_floor, days_between, month_window, week_window, weekday_of, within
from .relevance import is_relevant_to_day, is_subtask_relevant_to_day, tasks_for_day, todays_tasks
from .status import DerivedStatus, derived_status, is_done_locked, time_progress, toggle_subtask
from .duration import remaining_label
from .aggregate import (
    AggregateResult,
    SortMode,
    TaskCounts,
    TypeFilter,
    WeekBadge,
    Window,
    aggregate,
    sort_and_filter_all,
    task_counts,
    week_badge_counts,
)

__all__ = [
    # Models
    "Attachment",
    "Subtask",
    "Task",
    "TaskStatus",
    "TaskType",
    # Errors
    "DoneLockedError",
    "InvalidRangeError",
    "MissingTemporalDataError",
    # Calendar
    "Interval",
    "day_floor",
    "days_between",
    "month_window",
    "week_window",
    "weekday_of",
    "within",
    # Relevance
    "is_relevant_to_day",
    "is_subtask_relevant_to_day",
    "tasks_for_day",
    "todays_tasks",
    # Status
    "DerivedStatus",
    "derived_status",
    "is_done_locked",
    "time_progress",
    "toggle_subtask",
    # Duration
    "remaining_label",
    # Aggregation
    "AggregateResult",
    "SortMode",
    "TaskCounts",
    "TypeFilter",
    "WeekBadge",
    "Window",
    "aggregate",
    "sort_and_filter_all",
    "task_counts",
    "week_badge_counts",
]
