from __future__ import annotations

from typing import Any, Dict, List, Optional


# PUBLIC_INTERFACE
class TaskStoreError(Exception):
    """Base error for the task store package."""


# PUBLIC_INTERFACE
class TaskValidationError(TaskStoreError, ValueError):
    """
    Raised when a task draft or query argument is rejected.

    Attributes:
        errors: list of error dicts shaped like pydantic's ``ValidationError.errors()``
            (keys: type, loc, msg, input), so HTTP handlers can return them as-is.
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors: List[Dict[str, Any]] = list(errors or [])
