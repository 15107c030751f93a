"""Task store interface."""

from typing import Protocol

from taskpulse.core.models import Task


class TaskStore(Protocol):
    """Interface for persisting the task collection in any key-value backend."""

    def load_all(self) -> list[Task]:
        """Load every task, newest insert first."""
        ...

    def save_all(self, tasks: list[Task]) -> None:
        """Replace the stored collection."""
        ...

    def get(self, task_id: str) -> Task:
        """Fetch one task. Raises TaskNotFoundError if absent."""
        ...

    def put(self, task: Task) -> None:
        """Insert or replace a task."""
        ...

    def delete(self, task_id: str) -> None:
        """Remove a task. Raises TaskNotFoundError if absent."""
        ...
