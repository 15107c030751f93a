"""Tests for status and progress derivation."""

from datetime import datetime, timedelta

import pytest

from taskpulse.core.calendar import Interval
from taskpulse.core.errors import DoneLockedError
from taskpulse.core.models import Subtask, Task, TaskStatus, TaskType
from taskpulse.core.status import (
    DerivedStatus,
    Urgency,
    change_status,
    derived_status,
    is_done_locked,
    subtask_board,
    subtask_progress,
    subtask_status,
    task_status,
    time_progress,
    toggle_subtask,
    urgency,
)

START = datetime(2024, 1, 1)
END = datetime(2024, 1, 11)


@pytest.fixture
def make_subtask():
    def _make(id, completed=False, start=None, end=None, manual=False):
        return Subtask(
            id=id,
            title=f"Subtask {id}",
            completed=completed,
            start_date=start,
            end_date=end,
            is_manually_started=manual,
        )
    return _make


@pytest.fixture
def make_deadline():
    def _make(id, start, end, subtasks=None, status=TaskStatus.TODO, created=None):
        return Task(
            id=id,
            title=f"Task {id}",
            task_type=TaskType.DEADLINE,
            created_at=created or datetime(2023, 12, 1),
            status=status,
            start_date=start,
            end_date=end,
            subtasks=subtasks or [],
        )
    return _make


@pytest.fixture
def make_recurring():
    def _make(id, days, subtasks=None, status=TaskStatus.TODO, created=None):
        return Task(
            id=id,
            title=f"Task {id}",
            task_type=TaskType.RECURRING,
            created_at=created or datetime(2023, 12, 1),
            status=status,
            recurring_days=frozenset(days),
            subtasks=subtasks or [],
        )
    return _make


@pytest.fixture
def make_idea():
    def _make(id, created, subtasks=None, status=TaskStatus.TODO):
        return Task(
            id=id,
            title=f"Idea {id}",
            task_type=TaskType.IDEA,
            created_at=created,
            status=status,
            subtasks=subtasks or [],
        )
    return _make


class TestTimeProgress:
    @pytest.fixture
    def interval(self):
        return Interval(START, END)

    def test_full_at_start(self, interval):
        assert time_progress(interval, START) == 100

    def test_zero_at_end(self, interval):
        assert time_progress(interval, END) == 0

    def test_half_at_midpoint(self, interval):
        assert time_progress(interval, START + (END - START) / 2) == pytest.approx(50)

    def test_full_before_start(self, interval):
        assert time_progress(interval, START - timedelta(days=3)) == 100

    def test_zero_after_end(self, interval):
        assert time_progress(interval, END + timedelta(minutes=1)) == 0

    def test_counts_down(self, interval):
        early = time_progress(interval, START + timedelta(days=2))
        late = time_progress(interval, START + timedelta(days=8))
        assert early > late

    def test_zero_length_interval(self):
        iv = Interval(START, START)
        assert time_progress(iv, START) == 0
        assert time_progress(iv, START - timedelta(seconds=1)) == 100

    def test_subtask_scenario(self, make_subtask):
        st = make_subtask("s", start=datetime(2024, 1, 3), end=datetime(2024, 1, 5))
        now = datetime(2024, 1, 4)
        assert time_progress(Interval(st.start_date, st.end_date), now) == pytest.approx(50)
        assert derived_status(st, now) == DerivedStatus.IN_PROGRESS


class TestDerivedStatus:
    def test_completed_dominates_overdue(self, make_subtask):
        st = make_subtask("s", completed=True, start=START, end=END)
        assert derived_status(st, END + timedelta(days=30)) == DerivedStatus.COMPLETED

    def test_completed_dominates_upcoming(self, make_subtask):
        st = make_subtask("s", completed=True, start=START, end=END)
        assert derived_status(st, START - timedelta(days=30)) == DerivedStatus.COMPLETED

    def test_overdue(self, make_subtask):
        st = make_subtask("s", start=START, end=END)
        assert derived_status(st, END + timedelta(seconds=1)) == DerivedStatus.OVERDUE

    def test_at_end_still_in_progress(self, make_subtask):
        st = make_subtask("s", start=START, end=END)
        assert derived_status(st, END) == DerivedStatus.IN_PROGRESS

    def test_upcoming(self, make_subtask):
        st = make_subtask("s", start=START, end=END)
        assert derived_status(st, START - timedelta(seconds=1)) == DerivedStatus.UPCOMING

    def test_undated_is_in_progress(self, make_subtask):
        assert derived_status(make_subtask("s"), END) == DerivedStatus.IN_PROGRESS

    def test_end_only_can_be_overdue(self, make_subtask):
        st = make_subtask("s", end=START)
        assert derived_status(st, END) == DerivedStatus.OVERDUE

    def test_task_done_is_completed(self, make_deadline):
        task = make_deadline("d", START, END, status=TaskStatus.DONE)
        assert derived_status(task, END + timedelta(days=1)) == DerivedStatus.COMPLETED


class TestVariantStatus:
    def test_idea_task_is_draft(self, make_idea):
        assert task_status(make_idea("i", created=START), END) == DerivedStatus.DRAFT

    def test_recurring_task_today(self, make_recurring):
        task = make_recurring("r", {4})
        assert task_status(task, datetime(2024, 1, 4, 10)) == DerivedStatus.IN_PROGRESS
        assert task_status(task, datetime(2024, 1, 5, 10)) == DerivedStatus.UPCOMING

    def test_recurring_subtask_never_overdue(self, make_recurring, make_subtask):
        st = make_subtask("s")
        task = make_recurring("r", {1}, [st])
        for offset in range(7):
            status = subtask_status(task, st, START + timedelta(days=offset))
            assert status in (DerivedStatus.IN_PROGRESS, DerivedStatus.UPCOMING)

    def test_recurring_completed_subtask(self, make_recurring, make_subtask):
        st = make_subtask("s", completed=True)
        task = make_recurring("r", {1}, [st])
        assert subtask_status(task, st, START) == DerivedStatus.COMPLETED

    def test_deadline_subtask_uses_own_dates(self, make_deadline, make_subtask):
        st = make_subtask("s", start=datetime(2024, 1, 5), end=datetime(2024, 1, 6))
        task = make_deadline("d", START, END, [st])
        assert subtask_status(task, st, datetime(2024, 1, 3)) == DerivedStatus.UPCOMING


class TestDoneLock:
    def test_no_subtasks_unlocked(self, make_deadline):
        assert is_done_locked(make_deadline("d", START, END)) is False

    def test_open_subtask_locks(self, make_deadline, make_subtask):
        task = make_deadline("d", START, END, [make_subtask("a", completed=True), make_subtask("b")])
        assert is_done_locked(task) is True

    def test_all_completed_unlocked(self, make_recurring, make_subtask):
        task = make_recurring("r", {1}, [make_subtask("a", completed=True)])
        assert is_done_locked(task) is False

    def test_change_status_refuses_locked(self, make_deadline, make_subtask):
        task = make_deadline("d", START, END, [make_subtask("b")])
        with pytest.raises(DoneLockedError):
            change_status(task, TaskStatus.DONE)

    def test_change_status_returns_copy(self, make_deadline):
        task = make_deadline("d", START, END)
        updated = change_status(task, TaskStatus.DONE)
        assert updated.status == TaskStatus.DONE
        assert task.status == TaskStatus.TODO


class TestToggleSubtask:
    def test_completing_last_marks_done(self, make_deadline, make_subtask):
        task = make_deadline("d", START, END, [make_subtask("a", completed=True), make_subtask("b")])
        updated = toggle_subtask(task, "b")
        assert updated.status == TaskStatus.DONE
        assert all(st.completed for st in updated.subtasks)

    def test_reopening_reverts_done(self, make_deadline, make_subtask):
        task = make_deadline("d", START, END, [make_subtask("a", completed=True)], status=TaskStatus.DONE)
        updated = toggle_subtask(task, "a")
        assert updated.status == TaskStatus.IN_PROGRESS
        assert updated.subtasks[0].completed is False

    def test_partial_keeps_status(self, make_deadline, make_subtask):
        task = make_deadline("d", START, END, [make_subtask("a"), make_subtask("b")])
        updated = toggle_subtask(task, "a")
        assert updated.status == TaskStatus.TODO

    def test_does_not_mutate_input(self, make_deadline, make_subtask):
        task = make_deadline("d", START, END, [make_subtask("a")])
        toggle_subtask(task, "a")
        assert task.subtasks[0].completed is False
        assert task.status == TaskStatus.TODO

    def test_unknown_subtask_returns_same(self, make_deadline, make_subtask):
        task = make_deadline("d", START, END, [make_subtask("a")])
        assert toggle_subtask(task, "nope") is task


class TestProgressAndUrgency:
    def test_subtask_progress(self, make_deadline, make_subtask):
        task = make_deadline("d", START, END, [make_subtask("a", completed=True), make_subtask("b")])
        assert subtask_progress(task) == 50

    def test_subtask_progress_empty(self, make_deadline):
        assert subtask_progress(make_deadline("d", START, END)) == 0
        assert subtask_progress(make_deadline("d", START, END, status=TaskStatus.DONE)) == 100

    def test_urgency_levels(self, make_deadline):
        task = make_deadline("d", START, END)
        assert urgency(task, START) == Urgency.OK
        assert urgency(task, END - timedelta(days=1)) == Urgency.WARNING
        assert urgency(task, END) == Urgency.OVERDUE

    def test_urgency_done(self, make_deadline):
        task = make_deadline("d", START, END, status=TaskStatus.DONE)
        assert urgency(task, END + timedelta(days=1)) == Urgency.DONE

    def test_urgency_undated(self, make_idea):
        assert urgency(make_idea("i", created=START), END) == Urgency.OK


class TestSubtaskBoard:
    def test_deadline_columns(self, make_deadline, make_subtask):
        now = datetime(2024, 1, 4, 12)
        subtasks = [
            make_subtask("done", completed=True),
            make_subtask("manual", manual=True),
            make_subtask("starts-today", start=datetime(2024, 1, 4, 9), end=datetime(2024, 1, 6)),
            make_subtask("later", start=datetime(2024, 1, 6), end=datetime(2024, 1, 7)),
        ]
        board = subtask_board(make_deadline("d", START, END, subtasks), now)
        assert [st.id for st in board.done] == ["done"]
        assert [st.id for st in board.in_progress] == ["manual", "starts-today"]
        assert [st.id for st in board.not_started] == ["later"]

    def test_recurring_scheduled_today(self, make_recurring, make_subtask):
        task = make_recurring("r", {4}, [make_subtask("a"), make_subtask("b", completed=True)])
        board = subtask_board(task, datetime(2024, 1, 4))
        assert [st.id for st in board.in_progress] == ["a"]
        assert [st.id for st in board.done] == ["b"]

    def test_recurring_other_day(self, make_recurring, make_subtask):
        task = make_recurring("r", {4}, [make_subtask("a")])
        board = subtask_board(task, datetime(2024, 1, 5))
        assert [st.id for st in board.not_started] == ["a"]
