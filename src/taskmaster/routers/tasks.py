from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from ..models import TaskFilter
from ..schemas import Task, TaskDraft, TaskListView, TaskStats
from ..store import TaskStore
from ..views import build_list_view

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)

_NOT_FOUND = "Task not found"


def get_store(request: Request) -> TaskStore:
    """
    Dependency returning the store owned by the application instance.
    """
    return request.app.state.store


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=TaskListView,
    summary="List Tasks",
    description=(
        "List tasks newest first, narrowed by status filter and search text.\n\n"
        "Query parameters:\n"
        "- filter: all (default), active or completed\n"
        "- q: case-insensitive substring matched against title and description\n\n"
        "Returns the list view-model with whole-collection stats."
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        422: {"description": "Invalid filter"},
    },
)
def list_tasks(
    filter: TaskFilter = Query(TaskFilter.ALL, description="Status filter"),
    q: Optional[str] = Query(None, description="Search text for title/description"),
    store: TaskStore = Depends(get_store),
) -> TaskListView:
    search = q.strip() if q else ""
    items = store.query(filter, search)
    return build_list_view(items, store.stats(), filter, search)


# PUBLIC_INTERFACE
@router.get(
    "/stats",
    response_model=TaskStats,
    summary="Task Stats",
    description="Total, completed and pending counts over the whole collection.",
)
def task_stats(store: TaskStore = Depends(get_store)) -> TaskStats:
    return store.stats()


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a task and place it first in the list.",
    responses={
        201: {"description": "Task created successfully"},
        422: {"description": "Validation error (e.g. empty title)"},
    },
)
def create_task(payload: TaskDraft, store: TaskStore = Depends(get_store)) -> Task:
    """
    Create a new Task.
    """
    return store.add(payload)


# PUBLIC_INTERFACE
@router.delete(
    "/",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear Tasks",
    description="Delete every task, or only completed ones with completed_only=true.",
)
def clear_tasks(
    completed_only: bool = Query(False, description="Only remove completed tasks"),
    store: TaskStore = Depends(get_store),
) -> Response:
    removed = store.clear(completed_only=completed_only)
    logger.info("Cleared %d task(s) via API", removed)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=Task,
    summary="Get Task",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: str, store: TaskStore = Depends(get_store)) -> Task:
    task = store.get(task_id)
    if task is None:
        raise _not_found()
    return task


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=Task,
    summary="Update Task",
    description=(
        "Replace title, description, due date and priority in place. "
        "The id, creation time, completion flag and list position are kept."
    ),
    responses={
        200: {"description": "Task updated"},
        404: {"description": "Task not found"},
    },
)
def update_task(task_id: str, payload: TaskDraft, store: TaskStore = Depends(get_store)) -> Task:
    updated = store.update(task_id, payload)
    if updated is None:
        raise _not_found()
    return updated


# PUBLIC_INTERFACE
@router.post(
    "/{task_id}/edit",
    response_model=TaskDraft,
    summary="Check Out Task For Editing",
    description=(
        "Remove the task and return its values to prefill the form. "
        "Resubmitting them with POST creates a new task at the top of the list."
    ),
    responses={
        200: {"description": "Task removed; values returned"},
        404: {"description": "Task not found"},
    },
)
def edit_task(task_id: str, store: TaskStore = Depends(get_store)) -> TaskDraft:
    draft = store.edit(task_id)
    if draft is None:
        raise _not_found()
    return draft


# PUBLIC_INTERFACE
@router.post(
    "/{task_id}/toggle",
    response_model=Task,
    summary="Toggle Completion",
    responses={
        200: {"description": "Completion flag flipped"},
        404: {"description": "Task not found"},
    },
)
def toggle_task(task_id: str, store: TaskStore = Depends(get_store)) -> Task:
    toggled = store.toggle_complete(task_id)
    if toggled is None:
        raise _not_found()
    return toggled


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    description="Delete a task by ID. Deleting an unknown ID is a no-op and also returns 204.",
)
def delete_task(task_id: str, store: TaskStore = Depends(get_store)) -> Response:
    store.delete(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
