"""
Task endpoints
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.api.v1.endpoints.cases import get_case_or_404
from app.db.database import get_db
from app.db.models import Participant, Task, TaskStatus, User
from app.db.retry import with_retry
from app.db.schemas import TaskCreate, TaskUpdate
from app.services.task_service import serialize_task, serialize_tasks
from app.utils.exceptions import BadRequestError, ParticipantNotFoundError, TaskNotFoundError

router = APIRouter()


def _get_task_or_404(db: Session, task_id: UUID) -> Task:
    task = with_retry(lambda: db.query(Task).filter(Task.id == task_id).first(), db)
    if not task:
        raise TaskNotFoundError(str(task_id))
    return task


def _check_assignee(db: Session, participant_id: Optional[UUID]) -> None:
    if participant_id is None:
        return
    exists = db.query(Participant.id).filter(Participant.id == participant_id).first()
    if not exists:
        raise ParticipantNotFoundError(str(participant_id))


@router.get("")
def list_tasks(
    case_id: Optional[UUID] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Tasks ordered by status then due date. ``status=OVERDUE`` also matches
    pending tasks whose due date has passed.
    """
    query = db.query(Task)
    if case_id:
        query = query.filter(Task.case_id == case_id)

    if status_filter:
        try:
            wanted = TaskStatus(status_filter.upper())
        except ValueError:
            raise BadRequestError(f"Unknown task status: {status_filter}")

        start_of_today = datetime.combine(datetime.utcnow().date(), datetime.min.time())
        past_due = and_(
            Task.status == TaskStatus.pending,
            Task.due_date.isnot(None),
            Task.due_date < start_of_today,
        )
        if wanted == TaskStatus.overdue:
            query = query.filter(or_(Task.status == TaskStatus.overdue, past_due))
        elif wanted == TaskStatus.pending:
            query = query.filter(Task.status == TaskStatus.pending, ~past_due)
        else:
            query = query.filter(Task.status == wanted)

    tasks = with_retry(
        lambda: query.order_by(Task.status.asc(), Task.due_date.asc()).all(),
        db,
    )
    return {"tasks": serialize_tasks(tasks)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_case_or_404(db, payload.case_id)
    _check_assignee(db, payload.assigned_to_participant_id)

    description = payload.description
    if payload.details and payload.details.strip():
        description = f"{description}\n\nDetails:\n{payload.details}"

    task = Task(
        case_id=payload.case_id,
        description=description,
        due_date=payload.due_date,
        assigned_to_participant_id=payload.assigned_to_participant_id,
        status=TaskStatus.pending,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return {"task": serialize_task(task)}


def _apply_update(db: Session, task: Task, payload: TaskUpdate) -> Task:
    update_data = payload.model_dump(exclude_unset=True)
    if update_data.get("status") is not None:
        task.status = update_data["status"]
    if update_data.get("description"):
        task.description = update_data["description"]
    if "due_date" in update_data:
        task.due_date = update_data["due_date"]
    if "assigned_to_participant_id" in update_data:
        _check_assignee(db, update_data["assigned_to_participant_id"])
        task.assigned_to_participant_id = update_data["assigned_to_participant_id"]

    db.commit()
    db.refresh(task)
    return task


@router.patch("/{task_id}")
def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    task = _apply_update(db, _get_task_or_404(db, task_id), payload)
    return {"task": serialize_task(task)}


@router.delete("/{task_id}")
def delete_task(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    task = _get_task_or_404(db, task_id)
    db.delete(task)
    db.commit()
    return {"success": True, "message": "Task deleted successfully"}
