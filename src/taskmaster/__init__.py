"""
TaskMaster: a single-user task list manager.

The core is TaskStore (taskmaster.store), an ordered task collection persisted
as one JSON array in a key-value slot. The FastAPI app in taskmaster.main is a
thin presentation layer over it; import it from there (``taskmaster.main:app``)
so that importing the package does not build an application.
"""

from .errors import TaskStoreError, TaskValidationError
from .models import Priority, TaskFilter
from .schemas import Task, TaskDraft, TaskStats
from .storage import FileBackend, KeyValueBackend, MemoryBackend
from .store import TaskStore

__all__ = [
    "FileBackend",
    "KeyValueBackend",
    "MemoryBackend",
    "Priority",
    "Task",
    "TaskDraft",
    "TaskFilter",
    "TaskStats",
    "TaskStore",
    "TaskStoreError",
    "TaskValidationError",
]
