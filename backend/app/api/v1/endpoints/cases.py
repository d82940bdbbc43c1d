"""
Case management endpoints
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Optional
from uuid import UUID

from app.db.database import get_db
from app.db.models import Case, CaseStatus, Interaction, Report, Task, TaskStatus, Participant, User
from app.db.retry import with_retry
from app.db.schemas import (
    CaseCreate,
    CaseDetailResponse,
    CaseListItem,
    CaseResponse,
    CaseUpdate,
    ParticipantResponse,
    ReportResponse,
)
from app.api.deps import get_current_user
from app.core.logger import logger
from app.services.interaction_service import serialize_interactions
from app.services.task_service import serialize_tasks
from app.utils.exceptions import BadRequestError, CaseNotFoundError

router = APIRouter()


def get_case_or_404(db: Session, case_id: UUID) -> Case:
    case = with_retry(lambda: db.query(Case).filter(Case.id == case_id).first(), db)
    if not case:
        raise CaseNotFoundError(str(case_id))
    return case

# ============================================================================
# List & Create
# ============================================================================

@router.get("")
def get_cases(
    status_filter: Optional[str] = Query("ACTIVE", alias="status", description="ACTIVE, ON_HOLD, CLOSED or all"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List cases, most recently updated first, with interaction and pending task counts
    """
    query = db.query(Case)
    if status_filter and status_filter.lower() != "all":
        try:
            query = query.filter(Case.status == CaseStatus(status_filter.upper()))
        except ValueError:
            raise BadRequestError(f"Unknown case status: {status_filter}")

    cases = with_retry(lambda: query.order_by(Case.updated_at.desc()).all(), db)
    case_ids = [c.id for c in cases]

    interaction_counts = {}
    pending_counts = {}
    if case_ids:
        interaction_counts = dict(
            db.query(Interaction.case_id, func.count(Interaction.id))
            .filter(Interaction.case_id.in_(case_ids))
            .group_by(Interaction.case_id)
            .all()
        )
        pending_counts = dict(
            db.query(Task.case_id, func.count(Task.id))
            .filter(Task.case_id.in_(case_ids), Task.status == TaskStatus.pending)
            .group_by(Task.case_id)
            .all()
        )

    items = []
    for case in cases:
        item = CaseListItem.model_validate(case)
        item.interaction_count = interaction_counts.get(case.id, 0)
        item.pending_task_count = pending_counts.get(case.id, 0)
        items.append(item)

    return {"cases": items}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_case(
    payload: CaseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    case = Case(
        worker_name=payload.worker_name,
        worker_initials=payload.worker_initials,
        claim_number=payload.claim_number,
        insurer_name=payload.insurer_name,
        employer_name=payload.employer_name,
        key_contacts=payload.key_contacts.model_dump(exclude_none=True),
        current_capacity_summary=payload.current_capacity_summary,
        next_key_date=payload.next_key_date,
    )
    db.add(case)
    db.commit()
    db.refresh(case)

    logger.info("Case created: %s (%s)", case.id, case.claim_number)
    return {"case": CaseResponse.model_validate(case)}

# ============================================================================
# Detail, Update, Delete
# ============================================================================

@router.get("/{case_id}")
def get_case(
    case_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Case with its interactions, tasks, reports and participants
    """
    case = get_case_or_404(db, case_id)

    interactions = with_retry(
        lambda: db.query(Interaction)
        .filter(Interaction.case_id == case_id)
        .order_by(Interaction.date_time.desc())
        .all(),
        db,
    )
    tasks = with_retry(
        lambda: db.query(Task)
        .filter(Task.case_id == case_id)
        .order_by(Task.status.asc(), Task.due_date.asc())
        .all(),
        db,
    )
    reports = (
        db.query(Report)
        .filter(Report.case_id == case_id)
        .order_by(Report.created_at.desc())
        .all()
    )
    participants = (
        db.query(Participant)
        .filter(Participant.case_id == case_id)
        .order_by(Participant.role.asc(), Participant.name.asc())
        .all()
    )

    detail = CaseDetailResponse.model_validate(
        {
            **CaseResponse.model_validate(case).model_dump(),
            "interactions": serialize_interactions(db, interactions),
            "tasks": serialize_tasks(tasks),
            "reports": [ReportResponse.model_validate(r) for r in reports],
            "participants": [ParticipantResponse.model_validate(p) for p in participants],
        }
    )
    return {"case": detail}


@router.patch("/{case_id}")
def update_case(
    case_id: UUID,
    payload: CaseUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    case = get_case_or_404(db, case_id)

    update_data = payload.model_dump(exclude_unset=True)
    for required in ("worker_name", "insurer_name", "employer_name", "status"):
        if required in update_data and update_data[required] is None:
            update_data.pop(required)
    if "key_contacts" in update_data:
        contacts = update_data["key_contacts"] or {}
        update_data["key_contacts"] = {k: v for k, v in contacts.items() if v is not None}

    for key, value in update_data.items():
        setattr(case, key, value)

    db.commit()
    db.refresh(case)
    return {"case": CaseResponse.model_validate(case)}


@router.delete("/{case_id}")
def delete_case(
    case_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a case with its participants, interactions, tasks and reports"""
    case = get_case_or_404(db, case_id)
    db.delete(case)
    db.commit()

    logger.info("Case deleted: %s", case_id)
    return {"success": True, "message": "Case deleted successfully"}
