"""JSON file task store adapter."""

import json
import logging
import os
import tempfile
from pathlib import Path

from taskpulse.core.models import Task

logger = logging.getLogger(__name__)


class TaskStoreError(Exception):
    """Raised when the task file cannot be read or parsed."""

    pass


class TaskNotFoundError(KeyError):
    """Raised when a task id is not in the store."""

    pass


class JsonTaskStore:
    """
    Key-value task storage in a single JSON file.

    Implements TaskStore protocol. The file holds one object mapping task id
    to the task's stored form. Tasks are loaded once and every mutation
    writes the whole file back.

    A record that cannot be parsed is skipped on load and written back
    unchanged. A file that is not a JSON object at all loads as empty and is
    moved aside to '<name>.corrupt' before the first write replaces it.
    """

    def __init__(self, path: Path | str, strict: bool = False):
        self.path = Path(path).expanduser()
        self.strict = strict
        self._tasks: dict[str, Task] | None = None
        # Records that failed to parse, kept verbatim so a save never drops them
        self._unreadable: dict[str, object] = {}
        self._corrupt = False

    def _read(self) -> dict[str, Task]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text())
            if not isinstance(raw, dict):
                raise TaskStoreError(f"{self.path} does not hold a JSON object")
        except (TaskStoreError, json.JSONDecodeError, UnicodeDecodeError) as e:
            if self.strict:
                raise TaskStoreError(f"Cannot read {self.path}: {e}") from e
            logger.warning(f"Ignoring unreadable task file {self.path}: {e}")
            self._corrupt = True
            return {}

        tasks = {}
        for key, value in raw.items():
            try:
                tasks[key] = Task.from_dict(value)
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                if self.strict:
                    raise TaskStoreError(f"Cannot read task {key!r} in {self.path}: {e}") from e
                logger.warning(f"Skipping unreadable task {key!r} in {self.path}: {e}")
                self._unreadable[key] = value
        logger.info(f"Loaded {len(tasks)} tasks from {self.path}")
        return tasks

    def _backup_corrupt(self) -> None:
        backup = self.path.with_name(self.path.name + ".corrupt")
        os.replace(self.path, backup)
        logger.warning(f"Moved unreadable task file to {backup}")
        self._corrupt = False

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self._corrupt and self.path.exists():
            self._backup_corrupt()
        tasks = self._loaded()
        payload = {task_id: task.to_dict() for task_id, task in tasks.items()}
        for key, value in self._unreadable.items():
            payload.setdefault(key, value)
        # Write to a sibling temp file then swap so a crash never leaves half a file
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".tasks-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.info(f"Saved {len(payload)} tasks to {self.path}")

    def _loaded(self) -> dict[str, Task]:
        if self._tasks is None:
            self._tasks = self._read()
        return self._tasks

    def load_all(self) -> list[Task]:
        return list(self._loaded().values())

    def save_all(self, tasks: list[Task]) -> None:
        self._loaded()
        self._tasks = {t.id: t for t in tasks}
        self._write()

    def get(self, task_id: str) -> Task:
        try:
            return self._loaded()[task_id]
        except KeyError:
            raise TaskNotFoundError(task_id) from None

    def put(self, task: Task) -> None:
        tasks = self._loaded()
        if task.id in tasks:
            tasks[task.id] = task
        else:
            # New tasks go first, like prepending to the list
            self._tasks = {task.id: task, **tasks}
        self._write()

    def delete(self, task_id: str) -> None:
        tasks = self._loaded()
        if task_id not in tasks:
            raise TaskNotFoundError(task_id)
        del tasks[task_id]
        self._write()
