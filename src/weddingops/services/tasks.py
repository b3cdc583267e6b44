from __future__ import annotations

from dataclasses import replace
from datetime import date

from weddingops.domain import rules, statuses
from weddingops.domain.collections import get_collection
from weddingops.domain.models import Task
from weddingops.services.records import clean, search, validate_choice
from weddingops.services.utils import new_id
from weddingops.store.snapshot import Store

SEARCH_FIELDS = ("title", "assignee")


async def add_task(
    store: Store,
    *,
    title: str | None,
    event_id: str | None = None,
    description: str | None = None,
    assignee: str | None = None,
    due_date: date | None = None,
    status: str = statuses.TaskStatus.TODO.value,
    task_id: str | None = None,
) -> Task:
    rules.require(title, "title")
    task = Task(
        task_id=clean(task_id) or new_id(get_collection("tasks").id_prefix),
        title=title.strip(),
        event_id=clean(event_id),
        description=clean(description),
        assignee=clean(assignee),
        due_date=due_date,
        status=validate_choice(status, statuses.values(statuses.TaskStatus), "status"),
    )
    return await store.insert(task)


def split_tasks(tasks: list[Task], query: str | None = None) -> tuple[list[Task], list[Task]]:
    """Return (pending, done), each in snapshot order."""
    matched = search(tasks, SEARCH_FIELDS, query)
    done = statuses.TaskStatus.DONE.value
    return (
        [task for task in matched if task.status != done],
        [task for task in matched if task.status == done],
    )


async def toggle_task(store: Store, task_id: str) -> Task:
    task = store.get("tasks", task_id)
    if task.status == statuses.TaskStatus.DONE.value:
        status = statuses.TaskStatus.TODO.value
    else:
        status = statuses.TaskStatus.DONE.value
    return await store.update(replace(task, status=status))
