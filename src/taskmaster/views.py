"""
Pure functions mapping store state to view-models.

Nothing here reads or writes the store; callers pass the tasks and stats in.
"""
from __future__ import annotations

from typing import Iterable, List

from .models import TaskFilter
from .schemas import Task, TaskListView, TaskStats, TaskView

DUE_DATE_FORMAT = "%m/%d/%Y"


# PUBLIC_INTERFACE
def task_view(task: Task) -> TaskView:
    """Project one task into its row view-model."""
    return TaskView(
        id=task.id,
        title=task.title,
        description=task.description or None,
        due_label=task.due_date.strftime(DUE_DATE_FORMAT) if task.due_date else None,
        priority=task.priority,
        priority_class=f"priority-{task.priority.value}",
        completed=task.completed,
        css_class="task-item completed" if task.completed else "task-item",
    )


def count_label(total: int) -> str:
    return f"({total} tasks)"


# PUBLIC_INTERFACE
def build_list_view(
    tasks: Iterable[Task],
    stats: TaskStats,
    filter: TaskFilter = TaskFilter.ALL,
    search_term: str = "",
) -> TaskListView:
    """
    Build the full list view-model.

    Args:
        tasks: tasks already filtered and searched, in display order.
        stats: counts over the whole collection (the header ignores filters).
        filter: the active filter, echoed back so clients can highlight it.
        search_term: the active search text, echoed back.
    """
    items: List[TaskView] = [task_view(t) for t in tasks]
    return TaskListView(
        items=items,
        empty=not items,
        filter=filter,
        search=search_term,
        count_label=count_label(stats.total),
        stats=stats,
    )
