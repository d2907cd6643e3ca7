from __future__ import annotations

from enum import Enum

DEFAULT_STORAGE_KEY = "tasks"


# PUBLIC_INTERFACE
class Priority(str, Enum):
    """Task urgency tag."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# PUBLIC_INTERFACE
class TaskFilter(str, Enum):
    """
    Narrows which tasks a query returns.

    - all: every task
    - active: tasks with completed == False
    - completed: tasks with completed == True
    """

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
