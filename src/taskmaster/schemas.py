from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import Priority, TaskFilter


def _parse_due_date(value: Any) -> Optional[date]:
    """
    Internal helper to normalize due date input into a calendar date.
    - None or an empty string (what an untouched date input submits) means no due date.
    - A datetime keeps only its date part.
    - A string is parsed as an ISO date first, then as an ISO datetime.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return date.fromisoformat(s)
        except ValueError:
            try:
                return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
            except ValueError as e:
                raise ValueError(
                    "Invalid dueDate format. Use an ISO8601 date or datetime string (e.g., '2025-01-31')."
                ) from e

    raise ValueError("Invalid type for dueDate; expected date, datetime, or ISO8601 string.")


def _normalize_title(value: Any) -> str:
    if value is None:
        raise ValueError("title is required")
    if not isinstance(value, str):
        raise ValueError("title must be a string")
    s = value.strip()
    if not s:
        raise ValueError("title must not be empty")
    return s


def _normalize_priority(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class _CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire and in storage."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class TaskDraft(_CamelModel):
    """
    User-entered values for a task: what the add/edit form submits.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy milk",
                "description": "Two liters, semi-skimmed",
                "dueDate": "2025-02-01",
                "priority": "low",
            }
        }
    )

    title: str = Field(..., description="Short title for the task")
    description: str = Field(default="", description="Optional detailed description")
    due_date: Optional[date] = Field(default=None, description="Optional due date (ISO8601 date)")
    priority: Priority = Field(default=Priority.MEDIUM, description="Task urgency: low, medium or high")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> str:
        """
        Strip whitespace; reject empty or whitespace-only titles.
        """
        return _normalize_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, v: Optional[str]) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Any) -> Optional[date]:
        return _parse_due_date(v)

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v: Any) -> Any:
        return _normalize_priority(v)


# PUBLIC_INTERFACE
class Task(_CamelModel):
    """
    A stored task record. Instances are immutable; the store replaces them on change.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "3f0c2a9e4b7d4d0f9a61c1f0c8e2b5aa",
                "title": "Buy milk",
                "description": "",
                "dueDate": "2025-02-01",
                "priority": "low",
                "completed": False,
                "createdAt": "2025-01-25T10:15:30.123456+00:00",
            }
        },
    )

    id: str = Field(..., min_length=1, description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    description: str = Field(default="", description="Optional detailed description")
    due_date: Optional[date] = Field(default=None, description="Optional due date")
    priority: Priority = Field(default=Priority.MEDIUM, description="Task urgency")
    completed: bool = Field(default=False, description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp; never changes")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> str:
        return _normalize_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, v: Optional[str]) -> str:
        return "" if v is None else str(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Any) -> Optional[date]:
        return _parse_due_date(v)

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v: Any) -> Any:
        return _normalize_priority(v)

    def to_draft(self) -> TaskDraft:
        """Return the user-editable values of this task."""
        return TaskDraft(
            title=self.title,
            description=self.description,
            due_date=self.due_date,
            priority=self.priority,
        )


# PUBLIC_INTERFACE
class TaskStats(_CamelModel):
    """Counts over the whole collection, independent of any filter."""

    total: int = Field(..., ge=0)
    completed: int = Field(..., ge=0)
    pending: int = Field(..., ge=0)


# PUBLIC_INTERFACE
class TaskView(_CamelModel):
    """
    Presentation-ready projection of one task.
    """

    id: str
    title: str
    description: Optional[str] = None
    due_label: Optional[str] = Field(default=None, description="Due date formatted MM/DD/YYYY")
    priority: Priority
    priority_class: str = Field(..., description="CSS class for the priority badge")
    completed: bool
    css_class: str = Field(..., description="CSS classes for the task row")


# PUBLIC_INTERFACE
class TaskListView(_CamelModel):
    """
    Everything a client needs to redraw the list after an action.
    """

    items: List[TaskView] = Field(..., description="Tasks matching filter and search, newest first")
    empty: bool = Field(..., description="True when no task matches; show the empty state")
    filter: TaskFilter
    search: str = ""
    count_label: str = Field(..., description="Header counter, e.g. '(3 tasks)'")
    stats: TaskStats
