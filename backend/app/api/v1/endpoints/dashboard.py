"""
Dashboard statistics endpoints for webapp
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime, timedelta

from app.api.deps import get_db, get_current_user
from app.db.models import User, Case, CaseStatus, Interaction, Task, TaskStatus
from app.db.schemas import CaseStub, InteractionStub
from app.services.task_service import is_task_overdue

router = APIRouter()


@router.get("/stats")
def get_dashboard_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Case and task counts, recently updated cases and upcoming scheduled interactions
    """
    # Cases by status
    status_counts = dict(
        db.query(Case.status, func.count(Case.id)).group_by(Case.status).all()
    )
    cases = {s.value: status_counts.get(s, 0) for s in CaseStatus}
    cases["total"] = sum(cases.values())

    # Tasks: overdue is derived, so count in Python
    today = datetime.utcnow().date()
    open_tasks = db.query(Task).filter(Task.status != TaskStatus.done).all()
    overdue = sum(1 for t in open_tasks if is_task_overdue(t, today))
    done = db.query(Task).filter(Task.status == TaskStatus.done).count()
    tasks = {
        "pending": len(open_tasks) - overdue,
        "overdue": overdue,
        "done": done,
    }

    # Recent activity
    recent_cases = (
        db.query(Case)
        .order_by(Case.updated_at.desc())
        .limit(5)
        .all()
    )

    # Scheduled interactions in the next 7 days
    now = datetime.utcnow()
    upcoming = (
        db.query(Interaction)
        .filter(
            Interaction.is_scheduled == True,
            Interaction.date_time.between(now, now + timedelta(days=7)),
        )
        .order_by(Interaction.date_time.asc())
        .all()
    )

    return {
        "cases": cases,
        "tasks": tasks,
        "recent_cases": [
            {**CaseStub.model_validate(c).model_dump(), "status": c.status, "updated_at": c.updated_at}
            for c in recent_cases
        ],
        "upcoming_interactions": [
            {**InteractionStub.model_validate(i).model_dump(), "case": CaseStub.model_validate(i.case)}
            for i in upcoming
        ],
    }
