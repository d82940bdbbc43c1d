"""
Report endpoints
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.logger import logger
from app.db.database import get_db
from app.db.models import Report, User
from app.db.retry import with_retry
from app.db.schemas import ReportGenerateRequest, ReportResponse, ReportUpdate
from app.services.report_service import generate_report
from app.utils.exceptions import BadRequestError, ReportNotFoundError

router = APIRouter()


def _get_report_or_404(db: Session, report_id: UUID) -> Report:
    report = with_retry(lambda: db.query(Report).filter(Report.id == report_id).first(), db)
    if not report:
        raise ReportNotFoundError(str(report_id))
    return report


@router.post("", status_code=status.HTTP_201_CREATED)
def create_report(
    payload: ReportGenerateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Draft a report from the case's interactions"""
    report = generate_report(db, payload)
    return {"report": ReportResponse.model_validate(report)}


@router.get("")
def list_reports(
    case_id: Optional[UUID] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if case_id is None:
        raise BadRequestError("case_id is required")

    reports = with_retry(
        lambda: db.query(Report)
        .filter(Report.case_id == case_id)
        .order_by(Report.created_at.desc())
        .all(),
        db,
    )
    return {"reports": [ReportResponse.model_validate(r) for r in reports]}


@router.get("/{report_id}")
def get_report(
    report_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"report": ReportResponse.model_validate(_get_report_or_404(db, report_id))}


@router.patch("/{report_id}")
def update_report(
    report_id: UUID,
    payload: ReportUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Save the consultant's edits to a draft"""
    report = _get_report_or_404(db, report_id)
    if payload.content_draft is not None:
        report.content_draft = payload.content_draft
    if payload.title is not None:
        report.title = payload.title

    db.commit()
    db.refresh(report)
    return {"report": ReportResponse.model_validate(report)}


@router.delete("/{report_id}")
def delete_report(
    report_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    report = _get_report_or_404(db, report_id)
    db.delete(report)
    db.commit()

    logger.info("Report deleted: %s", report_id)
    return {"success": True, "message": "Report deleted successfully"}
