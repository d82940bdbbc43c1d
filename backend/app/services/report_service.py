"""
services/report_service.py

Drafts reports from a case's interactions with the report prompt templates.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import List

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logger import logger
from app.db.models import Case, Interaction, Report
from app.db.retry import with_retry
from app.db.schemas import ReportGenerateRequest
from app.prompts.reports import (
    REPORT_SYSTEM_PROMPT,
    CaseContext,
    InteractionData,
    ReportControls,
    build_report_prompt,
)
from app.services.interaction_service import load_participants
from app.services.llm_service import llm_service
from app.utils.exceptions import AIServiceError, BadRequestError, CaseNotFoundError
from app.utils.helpers import format_date, humanize_enum, participant_label, str_ids


def select_interactions(db: Session, payload: ReportGenerateRequest, now: datetime = None) -> List[Interaction]:
    """
    The interactions a report is drawn from: the requested ones (limited to
    the case), otherwise the most recent within the lookback window.
    """
    query = db.query(Interaction).filter(Interaction.case_id == payload.case_id)
    if payload.interaction_ids:
        query = query.filter(Interaction.id.in_(payload.interaction_ids))
        return with_retry(lambda: query.order_by(Interaction.date_time.desc()).all(), db)

    now = now or datetime.utcnow()
    since = now - timedelta(days=settings.REPORT_LOOKBACK_DAYS)
    return with_retry(
        lambda: query.filter(Interaction.date_time >= since)
        .order_by(Interaction.date_time.desc())
        .limit(settings.REPORT_MAX_INTERACTIONS)
        .all(),
        db,
    )


def build_case_context(case: Case) -> CaseContext:
    return CaseContext(
        worker_name=case.worker_name,
        claim_number=case.claim_number,
        insurer_name=case.insurer_name,
        employer_name=case.employer_name,
        key_contacts=dict(case.key_contacts or {}),
        current_capacity_summary=case.current_capacity_summary,
    )


def build_interaction_data(db: Session, interactions: List[Interaction]) -> List[InteractionData]:
    by_id = load_participants(db, [pid for i in interactions for pid in (i.participant_ids or [])])
    data = []
    for i in interactions:
        labels = [
            participant_label(by_id[pid].role, by_id[pid].name)
            for pid in str_ids(i.participant_ids)
            if pid in by_id
        ]
        data.append(
            InteractionData(
                date_time=format_date(i.date_time, "%d/%m/%Y %H:%M"),
                type=i.type.value,
                ai_summary=i.ai_summary,
                participants=labels,
            )
        )
    return data


def generate_report(db: Session, payload: ReportGenerateRequest) -> Report:
    case = with_retry(lambda: db.query(Case).filter(Case.id == payload.case_id).first(), db)
    if not case:
        raise CaseNotFoundError(str(payload.case_id))

    interactions = select_interactions(db, payload)
    controls = ReportControls(**payload.controls.model_dump())

    try:
        prompt = build_report_prompt(
            payload.report_type,
            build_case_context(case),
            build_interaction_data(db, interactions),
            controls,
            payload.extra_context,
        )
    except ValueError as e:
        raise BadRequestError(str(e))

    try:
        content = llm_service.complete(
            prompt,
            system=REPORT_SYSTEM_PROMPT,
            temperature=settings.REPORT_TEMPERATURE,
            max_tokens=settings.REPORT_MAX_TOKENS,
        )
    except Exception as e:
        logger.exception("Error generating %s report for case %s", payload.report_type.value, case.id)
        raise AIServiceError("Failed to generate report") from e

    if not content.strip():
        raise AIServiceError("Failed to generate report")

    report = Report(
        case_id=case.id,
        type=payload.report_type,
        title=f"{humanize_enum(payload.report_type)} - {format_date(datetime.utcnow())}",
        content_draft=content,
        generated_from_interactions=[str(i.id) for i in interactions],
        generation_controls=payload.controls.model_dump(),
    )
    db.add(report)
    db.commit()
    db.refresh(report)

    logger.info(
        "Report %s (%s) drafted for case %s from %s interactions",
        report.id, payload.report_type.value, case.id, len(interactions),
    )
    return report
