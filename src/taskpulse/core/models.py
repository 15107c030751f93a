"""Task data model - no I/O dependencies."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)


class TaskStatus(Enum):
    """User-facing lifecycle flag of a task."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class TaskType(Enum):
    """Task variant discriminant."""

    DEADLINE = "deadline"  # Fixed start/end, dated subtasks
    RECURRING = "recurring"  # Active on a set of weekdays
    IDEA = "idea"  # Undated draft


@dataclass
class Attachment:
    """A file attached to a subtask. Opaque to the engine."""

    name: str
    url: str
    type: str = "file"


@dataclass
class Subtask:
    """A checklist item of a task."""

    id: str
    title: str
    completed: bool = False
    description: str = ""
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_manually_started: bool = False
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def has_dates(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @classmethod
    def from_dict(cls, data: dict) -> "Subtask":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            completed=bool(data.get("completed", False)),
            description=data.get("description") or "",
            start_date=_parse_instant(data.get("startDate")),
            end_date=_parse_instant(data.get("endDate")),
            is_manually_started=bool(data.get("isManuallyStarted", False)),
            attachments=[
                Attachment(name=a.get("name", ""), url=a.get("url", ""), type=a.get("type") or "file")
                for a in data.get("attachments") or []
            ],
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
        }
        if self.description:
            data["description"] = self.description
        if self.start_date:
            data["startDate"] = self.start_date.isoformat()
        if self.end_date:
            data["endDate"] = self.end_date.isoformat()
        if self.is_manually_started:
            data["isManuallyStarted"] = True
        if self.attachments:
            data["attachments"] = [
                {"name": a.name, "url": a.url, "type": a.type} for a in self.attachments
            ]
        return data


@dataclass
class Task:
    """
    A tracked work item.

    Variants share one shape: ``task_type`` says which of the optional
    fields are meaningful. Deadline tasks use ``start_date``/``end_date``,
    recurring tasks use ``recurring_days`` (0=Sunday .. 6=Saturday), and
    idea tasks use neither.
    """

    id: str
    title: str
    task_type: TaskType
    created_at: datetime
    status: TaskStatus = TaskStatus.TODO
    description: str = ""
    start_date: datetime | None = None
    end_date: datetime | None = None
    recurring_days: frozenset[int] = frozenset()
    subtasks: list[Subtask] = field(default_factory=list)

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE

    @property
    def is_deadline(self) -> bool:
        return self.task_type == TaskType.DEADLINE

    @property
    def is_recurring(self) -> bool:
        return self.task_type == TaskType.RECURRING

    @property
    def is_idea(self) -> bool:
        return self.task_type == TaskType.IDEA

    def find_subtask(self, subtask_id: str) -> Subtask | None:
        for st in self.subtasks:
            if st.id == subtask_id:
                return st
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from its stored JSON form."""
        created = _parse_instant(data.get("createdAt"))
        if created is None:
            logger.debug(f"Task {data.get('id')} has no createdAt, using epoch")
            created = datetime.fromtimestamp(0)
        raw_type = data.get("taskType") or TaskType.DEADLINE.value
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            task_type=TaskType(raw_type),
            created_at=created,
            status=TaskStatus(data.get("status") or TaskStatus.TODO.value),
            description=data.get("description") or "",
            start_date=_parse_instant(data.get("startDate")),
            end_date=_parse_instant(data.get("endDate")),
            recurring_days=frozenset(int(d) for d in data.get("recurringDays") or []),
            subtasks=[Subtask.from_dict(st) for st in data.get("subtasks") or []],
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "taskType": self.task_type.value,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "subtasks": [st.to_dict() for st in self.subtasks],
        }
        if self.description:
            data["description"] = self.description
        if self.start_date:
            data["startDate"] = self.start_date.isoformat()
        if self.end_date:
            data["endDate"] = self.end_date.isoformat()
        if self.recurring_days:
            data["recurringDays"] = sorted(self.recurring_days)
        return data


def _parse_instant(value) -> datetime | None:
    """Parse a stored ISO timestamp. Bad values become None."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        logger.debug(f"Ignoring malformed timestamp: {value!r}")
        return None
    # Local calendar days only; drop any offset after converting to local time
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed
