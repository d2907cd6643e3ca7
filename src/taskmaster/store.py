"""
TaskStore: the authoritative in-memory task collection.

Ordering is newest-first. Every mutation writes the whole collection back to
a single backend slot as a JSON array; reading a missing or corrupt slot
yields an empty collection.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from threading import RLock
from typing import Any, Callable, List, Mapping, Optional, Set, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import TaskStoreError, TaskValidationError
from .models import DEFAULT_STORAGE_KEY, Priority, TaskFilter
from .schemas import Task, TaskDraft, TaskStats
from .storage import KeyValueBackend

logger = logging.getLogger(__name__)

DraftInput = Union[TaskDraft, Mapping[str, Any]]
FilterInput = Union[TaskFilter, str, None]

_TASK_LIST = TypeAdapter(List[Task])
_MAX_ID_ATTEMPTS = 16

# (title, description, due in days, priority, completed)
SAMPLE_TASKS = (
    (
        "Welcome to TaskMaster!",
        "This is a sample task. You can edit or delete it.",
        1,
        Priority.HIGH,
        False,
    ),
    (
        "Plan the week",
        "Pick the three things that matter most",
        2,
        Priority.MEDIUM,
        False,
    ),
    (
        "Try the search box",
        "Search matches titles and descriptions, ignoring case",
        3,
        Priority.LOW,
        True,
    ),
)


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate_draft(draft: DraftInput) -> TaskDraft:
    try:
        if isinstance(draft, TaskDraft):
            return TaskDraft.model_validate(draft.model_dump())
        return TaskDraft.model_validate(draft)
    except PydanticValidationError as e:
        raise TaskValidationError(
            "Invalid task",
            errors=e.errors(include_url=False, include_context=False),
        ) from e


def _coerce_filter(value: FilterInput) -> TaskFilter:
    if value is None:
        return TaskFilter.ALL
    if isinstance(value, TaskFilter):
        return value
    try:
        return TaskFilter(str(value).strip().lower())
    except ValueError as e:
        allowed = ", ".join(f.value for f in TaskFilter)
        raise TaskValidationError(
            f"filter must be one of: {allowed}",
            errors=[
                {
                    "type": "enum",
                    "loc": ["filter"],
                    "msg": f"Input should be one of: {allowed}",
                    "input": value,
                }
            ],
        ) from e


def _matches(task: Task, term: str) -> bool:
    return term in task.title.lower() or term in task.description.lower()


# PUBLIC_INTERFACE
class TaskStore:
    """
    Ordered task collection persisted to one key-value slot.

    Args:
        backend: where the serialized collection lives.
        key: slot name inside the backend.
        id_factory: returns a fresh id string; defaults to uuid4 hex.
        clock: returns the creation timestamp; defaults to aware UTC now.
        autoload: read the slot on construction.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str = DEFAULT_STORAGE_KEY,
        *,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        autoload: bool = True,
    ) -> None:
        self._lock = RLock()
        self._backend = backend
        self._key = key
        self._id_factory = id_factory or _new_id
        self._clock = clock or _utcnow
        self._tasks: List[Task] = []
        if autoload:
            self.load()

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    @property
    def key(self) -> str:
        return self._key

    @property
    def tasks(self) -> List[Task]:
        """Copy of the collection, newest first."""
        with self._lock:
            return list(self._tasks)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    # ---- persistence ----

    def save(self) -> None:
        """Write the full collection to the backend slot."""
        with self._lock:
            self._write(self._tasks)

    def _write(self, tasks: List[Task]) -> None:
        payload = _TASK_LIST.dump_json(tasks, by_alias=True).decode("utf-8")
        self._backend.set(self._key, payload)

    def _commit(self, tasks: List[Task]) -> None:
        # Memory only changes after the backend accepted the write.
        self._write(tasks)
        self._tasks = tasks

    def load(self) -> List[Task]:
        """
        Replace the in-memory collection with the persisted one.

        A missing slot or data that does not parse as a task array loads as an
        empty collection. Duplicate ids keep their first occurrence.
        """
        with self._lock:
            tasks: List[Task] = []
            try:
                raw = self._backend.get(self._key)
                if raw is not None:
                    tasks = _TASK_LIST.validate_json(raw)
            except (PydanticValidationError, UnicodeDecodeError) as e:
                logger.warning("Discarding unreadable task data key=%s: %s", self._key, e)
                tasks = []

            seen = set()
            unique: List[Task] = []
            for t in tasks:
                if t.id in seen:
                    logger.warning("Dropping duplicate task id=%s on load", t.id)
                    continue
                seen.add(t.id)
                unique.append(t)

            self._tasks = unique
            logger.info("Loaded %d task(s) key=%s backend=%s", len(unique), self._key, self._backend.name)
            return list(unique)

    # ---- lookup helpers ----

    def _index_of(self, task_id: str) -> Optional[int]:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    def _replaced(self, index: int, task: Task) -> List[Task]:
        tasks = list(self._tasks)
        tasks[index] = task
        return tasks

    def _allocate_id(self, reserved: Optional[Set[str]] = None) -> str:
        existing = {t.id for t in self._tasks} | (reserved or set())
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = self._id_factory()
            if candidate and candidate not in existing:
                return candidate
        raise TaskStoreError("could not allocate a unique task id")

    def get(self, task_id: str) -> Optional[Task]:
        """Return the task with the given id, or None."""
        with self._lock:
            i = self._index_of(task_id)
            return None if i is None else self._tasks[i]

    # ---- mutations ----

    def add(self, draft: DraftInput) -> Task:
        """
        Create a task from draft values and put it first in the collection.

        Raises:
            TaskValidationError: title is empty or whitespace-only, or another
                field is invalid. The collection is left unchanged.
        """
        data = _validate_draft(draft)
        with self._lock:
            task = Task(
                id=self._allocate_id(),
                title=data.title,
                description=data.description,
                due_date=data.due_date,
                priority=data.priority,
                completed=False,
                created_at=self._clock(),
            )
            self._commit([task, *self._tasks])
        logger.debug("Added task id=%s", task.id)
        return task

    def edit(self, task_id: str) -> Optional[TaskDraft]:
        """
        Take a task out of the collection for re-entry.

        The task is removed and persisted immediately; its values come back as a
        draft to resubmit through add(), which places it first with a new id.
        Returns None, without writing, if the id is absent. Use update() to
        change a task without removing it.
        """
        with self._lock:
            i = self._index_of(task_id)
            if i is None:
                return None
            task = self._tasks[i]
            self._commit(self._tasks[:i] + self._tasks[i + 1:])
        logger.debug("Checked out task id=%s for editing", task_id)
        return task.to_draft()

    def update(self, task_id: str, draft: DraftInput) -> Optional[Task]:
        """
        Replace a task's user-editable fields in place.

        id, creation time, completion flag and position are kept.
        Returns None if the id is absent.
        """
        data = _validate_draft(draft)
        with self._lock:
            i = self._index_of(task_id)
            if i is None:
                return None
            updated = self._tasks[i].model_copy(
                update={
                    "title": data.title,
                    "description": data.description,
                    "due_date": data.due_date,
                    "priority": data.priority,
                }
            )
            self._commit(self._replaced(i, updated))
        logger.debug("Updated task id=%s", task_id)
        return updated

    def delete(self, task_id: str) -> bool:
        """Remove a task. Returns False, without writing, if the id is absent."""
        with self._lock:
            i = self._index_of(task_id)
            if i is None:
                return False
            self._commit(self._tasks[:i] + self._tasks[i + 1:])
        logger.debug("Deleted task id=%s", task_id)
        return True

    def toggle_complete(self, task_id: str) -> Optional[Task]:
        """Flip the completed flag. Returns the new task, or None if absent."""
        with self._lock:
            i = self._index_of(task_id)
            if i is None:
                return None
            current = self._tasks[i]
            toggled = current.model_copy(update={"completed": not current.completed})
            self._commit(self._replaced(i, toggled))
        logger.debug("Toggled task id=%s completed=%s", task_id, toggled.completed)
        return toggled

    def clear(self, completed_only: bool = False) -> int:
        """Remove every task (or only completed ones). Returns how many were removed."""
        with self._lock:
            remaining = [t for t in self._tasks if not t.completed] if completed_only else []
            removed = len(self._tasks) - len(remaining)
            self._commit(remaining)
        logger.debug("Cleared %d task(s) completed_only=%s", removed, completed_only)
        return removed

    def seed_samples(self, today: Optional[date] = None) -> bool:
        """
        Install the demonstration tasks if the collection is empty.

        Returns True if samples were written.
        """
        today = today or self._clock().date()
        with self._lock:
            if self._tasks:
                return False
            created_at = self._clock()
            samples: List[Task] = []
            for title, description, days, priority, completed in SAMPLE_TASKS:
                samples.append(
                    Task(
                        id=self._allocate_id(reserved={s.id for s in samples}),
                        title=title,
                        description=description,
                        due_date=today + timedelta(days=days),
                        priority=priority,
                        completed=completed,
                        created_at=created_at,
                    )
                )
            self._commit(samples)
        logger.info("Seeded %d sample task(s)", len(samples))
        return True

    # ---- reads ----

    def query(self, filter: FilterInput = TaskFilter.ALL, search_term: Optional[str] = "") -> List[Task]:
        """
        Return tasks matching a status filter and a search term, newest first.

        The search term is matched as given, case-insensitively, as a substring
        of the title or the description. An empty term matches everything.
        """
        status = _coerce_filter(filter)
        term = (search_term or "").lower()
        with self._lock:
            items = list(self._tasks)

        if status is TaskFilter.ACTIVE:
            items = [t for t in items if not t.completed]
        elif status is TaskFilter.COMPLETED:
            items = [t for t in items if t.completed]

        if term:
            items = [t for t in items if _matches(t, term)]
        return items

    def stats(self) -> TaskStats:
        with self._lock:
            total = len(self._tasks)
            completed = sum(1 for t in self._tasks if t.completed)
        return TaskStats(total=total, completed=completed, pending=total - completed)
