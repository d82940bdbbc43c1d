"""
services/task_service.py

Task helpers shared by the task, case and dashboard endpoints.

Overdue is derived when tasks are read: a task is overdue when its due date
is before today and it isn't done. Nothing rewrites stored statuses.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models import Task, TaskStatus
from app.db.schemas import TaskResponse
from app.utils.helpers import parse_optional_datetime


def is_task_overdue(task: Task, today: Optional[date] = None) -> bool:
    if task.status == TaskStatus.done:
        return False
    if task.status == TaskStatus.overdue:
        return True
    if task.due_date is None:
        return False
    today = today or datetime.utcnow().date()
    return task.due_date.date() < today


def task_priority(task: Task, today: Optional[date] = None) -> str:
    """One of ``overdue``, ``today``, ``tomorrow``, ``upcoming`` or ``no-date``."""
    today = today or datetime.utcnow().date()
    if is_task_overdue(task, today):
        return "overdue"
    if task.due_date is None:
        return "no-date"
    due = task.due_date.date()
    if due == today:
        return "today"
    if due == today + timedelta(days=1):
        return "tomorrow"
    return "upcoming"


def serialize_task(task: Task, today: Optional[date] = None) -> TaskResponse:
    today = today or datetime.utcnow().date()
    data = TaskResponse.model_validate(task)
    data.is_overdue = is_task_overdue(task, today)
    data.priority = task_priority(task, today)
    return data


def serialize_tasks(tasks: Iterable[Task], today: Optional[date] = None) -> List[TaskResponse]:
    today = today or datetime.utcnow().date()
    return [serialize_task(t, today) for t in tasks]


def create_tasks_from_action_items(
    db: Session,
    case_id: UUID,
    interaction_id: UUID,
    action_items: Iterable[Dict[str, Any]],
) -> List[Task]:
    """
    One pending task per AI action item. Owners become ``assigned_to``
    (defaulting to the consultant); due dates that don't parse are dropped.
    """
    tasks = []
    for item in action_items:
        task = Task(
            case_id=case_id,
            interaction_id=interaction_id,
            description=str(item.get("description") or "Task").strip(),
            due_date=parse_optional_datetime(item.get("dueDate") or item.get("due_date")),
            assigned_to=(str(item.get("owner")).strip() if item.get("owner") else None) or "consultant",
            status=TaskStatus.pending,
        )
        db.add(task)
        tasks.append(task)
    return tasks
