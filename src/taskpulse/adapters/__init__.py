"""Adapters - I/O implementations of ports."""

from .json_store import JsonTaskStore, TaskNotFoundError, TaskStoreError

__all__ = [
    "JsonTaskStore",
    "TaskNotFoundError",
    "TaskStoreError",
]
