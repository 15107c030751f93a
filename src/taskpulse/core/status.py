"""Status and progress derivation - no I/O dependencies."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from .calendar import Interval, day_floor, weekday_of
from .errors import DoneLockedError
from .models import Subtask, Task, TaskStatus, TaskType


class DerivedStatus(Enum):
    """Time-derived status of a task or subtask."""

    COMPLETED = "completed"
    OVERDUE = "overdue"
    UPCOMING = "upcoming"
    IN_PROGRESS = "in_progress"
    DRAFT = "draft"  # Ideas only


class Urgency(Enum):
    """Countdown colouring hint for a dated task."""

    OK = "ok"
    WARNING = "warning"
    OVERDUE = "overdue"
    DONE = "done"


def time_progress(interval: Interval, now: datetime) -> float:
    """
    Share of the interval still remaining, as a 0-100 percentage.

    Counts down: 100 before the start, 0 at or after the end.
    """
    if now >= interval.end:
        return 0.0
    if now < interval.start:
        return 100.0
    span = (interval.end - interval.start).total_seconds()
    remaining = (interval.end - now).total_seconds()
    return min(max(100 * remaining / span, 0.0), 100.0)


def is_completed(entity: Task | Subtask) -> bool:
    if isinstance(entity, Task):
        return entity.status == TaskStatus.DONE
    return entity.completed


def derived_status(entity: Task | Subtask, now: datetime) -> DerivedStatus:
    """
    Classify a dated entity relative to now.

    Priority: completed > overdue > upcoming > in progress. A missing bound
    simply skips its rule, so undated entities land in IN_PROGRESS.
    """
    if is_completed(entity):
        return DerivedStatus.COMPLETED
    if entity.end_date is not None and now > entity.end_date:
        return DerivedStatus.OVERDUE
    if entity.start_date is not None and now < entity.start_date:
        return DerivedStatus.UPCOMING
    return DerivedStatus.IN_PROGRESS


def recurring_status(task: Task, completed: bool, now: datetime) -> DerivedStatus:
    """Recurring work is in progress on its weekdays and upcoming otherwise."""
    if completed:
        return DerivedStatus.COMPLETED
    if weekday_of(now) in task.recurring_days:
        return DerivedStatus.IN_PROGRESS
    return DerivedStatus.UPCOMING


def task_status(task: Task, now: datetime) -> DerivedStatus:
    """Derived status of a whole task, switched on its variant."""
    if task.is_done:
        return DerivedStatus.COMPLETED
    match task.task_type:
        case TaskType.IDEA:
            return DerivedStatus.DRAFT
        case TaskType.RECURRING:
            return recurring_status(task, False, now)
        case _:
            return derived_status(task, now)


def subtask_status(task: Task, subtask: Subtask, now: datetime) -> DerivedStatus:
    """Derived status of a subtask, using its parent's variant rules."""
    match task.task_type:
        case TaskType.DEADLINE:
            return derived_status(subtask, now)
        case TaskType.RECURRING:
            return recurring_status(task, subtask.completed, now)
        case _:
            return DerivedStatus.COMPLETED if subtask.completed else DerivedStatus.DRAFT


def is_done_locked(task: Task) -> bool:
    """True while some subtask is still open; a task with no subtasks is never locked."""
    return bool(task.subtasks) and not all(st.completed for st in task.subtasks)


def change_status(task: Task, status: TaskStatus) -> Task:
    """
    Return a copy of task with a new lifecycle status.

    Raises DoneLockedError when asked to mark a locked task Done.
    """
    if status == TaskStatus.DONE and is_done_locked(task):
        open_count = sum(1 for st in task.subtasks if not st.completed)
        raise DoneLockedError(f"'{task.title}' still has {open_count} open subtask(s)")
    return replace(task, status=status)


def toggle_subtask(task: Task, subtask_id: str) -> Task:
    """
    Return a copy of task with one subtask's completion flipped.

    Completing the last open subtask marks the task Done; reopening a
    subtask of a Done task moves it back to In Progress.
    """
    if task.find_subtask(subtask_id) is None:
        return task

    subtasks = [
        replace(st, completed=not st.completed) if st.id == subtask_id else st
        for st in task.subtasks
    ]
    all_done = all(st.completed for st in subtasks)

    status = task.status
    if all_done:
        status = TaskStatus.DONE
    elif task.status == TaskStatus.DONE:
        status = TaskStatus.IN_PROGRESS
    return replace(task, subtasks=subtasks, status=status)


def subtask_progress(task: Task) -> float:
    """Checklist completion percentage."""
    if not task.subtasks:
        return 100.0 if task.is_done else 0.0
    done = sum(1 for st in task.subtasks if st.completed)
    return 100 * done / len(task.subtasks)


def urgency(task: Task, now: datetime, warning_threshold: float = 20) -> Urgency:
    if task.is_done:
        return Urgency.DONE
    if task.start_date is None or task.end_date is None or task.end_date < task.start_date:
        return Urgency.OK
    progress = time_progress(Interval(task.start_date, task.end_date), now)
    if progress == 0:
        return Urgency.OVERDUE
    if progress < warning_threshold:
        return Urgency.WARNING
    return Urgency.OK


@dataclass
class SubtaskBoard:
    """A task's subtasks split into kanban columns."""

    not_started: list[Subtask] = field(default_factory=list)
    in_progress: list[Subtask] = field(default_factory=list)
    done: list[Subtask] = field(default_factory=list)


def subtask_board(task: Task, now: datetime) -> SubtaskBoard:
    """
    Partition subtasks into not started / in progress / done.

    A subtask is in progress when manually started, when it is a deadline
    subtask starting today, or when its recurring parent is scheduled today.
    """
    board = SubtaskBoard()
    today = day_floor(now)
    recurring_today = task.is_recurring and weekday_of(now) in task.recurring_days

    for st in task.subtasks:
        starts_today = task.is_deadline and st.start_date is not None and day_floor(st.start_date) == today
        if st.completed:
            board.done.append(st)
        elif st.is_manually_started or starts_today or recurring_today:
            board.in_progress.append(st)
        else:
            board.not_started.append(st)
    return board
