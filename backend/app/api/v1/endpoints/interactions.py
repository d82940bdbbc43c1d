"""
Interaction endpoints: text and audio capture, AI summaries, meeting detection
"""
import json
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.config import settings
from app.core.logger import logger
from app.db.database import get_db
from app.db.models import Interaction, InteractionType, User
from app.db.retry import with_retry
from app.db.schemas import (
    DetectMeetingsRequest,
    InteractionCreate,
    InteractionUpdate,
    RegenerateSummaryRequest,
    SummarySectionEdit,
    TaskBrief,
)
from app.services import interaction_service
from app.services.summary_sections import parse_summary, remove_section, replace_section
from app.services.summary_service import resolve_meeting_datetime, summary_service
from app.utils.exceptions import BadRequestError, InteractionNotFoundError
from app.utils.helpers import parse_optional_datetime, str_ids

router = APIRouter()


def _get_interaction_or_404(db: Session, interaction_id: UUID) -> Interaction:
    interaction = with_retry(
        lambda: db.query(Interaction).filter(Interaction.id == interaction_id).first(),
        db,
    )
    if not interaction:
        raise InteractionNotFoundError(str(interaction_id))
    return interaction


def _single(db: Session, interaction: Interaction, include_case: bool = False):
    by_id = interaction_service.load_participants(db, interaction.participant_ids or [])
    return interaction_service.serialize_interaction(interaction, by_id, include_case=include_case)

# ============================================================================
# Create
# ============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
def create_interaction(
    payload: InteractionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create an interaction from typed text: summarise it, extract action items
    and create a task for each.
    """
    interaction, tasks, summary = interaction_service.create_interaction_from_text(db, payload)
    return {
        "interaction": _single(db, interaction),
        "tasks": [TaskBrief.model_validate(t) for t in tasks],
        "summary": summary,
    }


@router.post("/transcribe", status_code=status.HTTP_201_CREATED)
def transcribe_interaction(
    audio: Optional[UploadFile] = File(None),
    case_id: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    participant_ids: Optional[str] = Form(None),
    date_time: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Upload an audio recording (multipart), transcribe it and create the interaction
    """
    if audio is None or not case_id or not type or not participant_ids:
        raise BadRequestError("Missing required fields")

    data = audio.file.read()
    if len(data) > settings.MAX_AUDIO_UPLOAD_BYTES:
        limit_mb = settings.MAX_AUDIO_UPLOAD_BYTES // (1024 * 1024)
        raise BadRequestError(f"File too large. Maximum size is {limit_mb}MB")

    try:
        parsed_case_id = UUID(case_id)
        interaction_type = InteractionType(type.upper())
        ids = json.loads(participant_ids)
    except (ValueError, json.JSONDecodeError):
        raise BadRequestError("Invalid input")
    if not isinstance(ids, list):
        raise BadRequestError("participant_ids must be a JSON array")

    interaction, tasks, summary, transcript = interaction_service.create_interaction_from_audio(
        db,
        parsed_case_id,
        interaction_type,
        str_ids(ids),
        parse_optional_datetime(date_time),
        data,
        audio.filename or "audio.m4a",
    )
    return {
        "interaction": _single(db, interaction),
        "tasks": [TaskBrief.model_validate(t) for t in tasks],
        "summary": summary,
        "transcript": transcript,
    }


@router.post("/detect-meetings")
def detect_meetings(
    payload: DetectMeetingsRequest,
    current_user: User = Depends(get_current_user)
):
    """Find the next meeting arranged in a transcript and suggest a date/time for it"""
    if not payload.transcript.strip():
        raise BadRequestError("Transcript is required and must be a string")

    meeting = summary_service.detect_meeting(payload.transcript)
    suggested = resolve_meeting_datetime(meeting) if meeting else None
    return {"meeting": meeting, "suggested_date_time": suggested}

# ============================================================================
# Read
# ============================================================================

@router.get("")
def list_interactions(
    case_id: Optional[UUID] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Interactions, newest first. Without case_id each carries its case."""
    query = db.query(Interaction)
    if case_id:
        query = query.filter(Interaction.case_id == case_id)
    interactions = with_retry(lambda: query.order_by(Interaction.date_time.desc()).all(), db)

    return {
        "interactions": interaction_service.serialize_interactions(
            db, interactions, include_case=case_id is None
        )
    }


@router.get("/{interaction_id}")
def get_interaction(
    interaction_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    interaction = _get_interaction_or_404(db, interaction_id)
    return {"interaction": _single(db, interaction, include_case=True)}

# ============================================================================
# Update & Delete
# ============================================================================

@router.patch("/{interaction_id}")
def update_interaction(
    interaction_id: UUID,
    payload: InteractionUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    interaction = _get_interaction_or_404(db, interaction_id)

    update_data = payload.model_dump(exclude_unset=True)
    if update_data.get("type") is not None:
        interaction.type = update_data["type"]
    if update_data.get("participant_ids") is not None:
        interaction.participant_ids = str_ids(update_data["participant_ids"])
    if "transcript_text" in update_data:
        interaction.transcript_text = update_data["transcript_text"]
    if update_data.get("date_time") is not None:
        interaction.date_time = update_data["date_time"]
    if "ai_summary" in update_data:
        interaction.ai_summary = update_data["ai_summary"]

    db.commit()
    db.refresh(interaction)
    return {"interaction": _single(db, interaction)}


@router.delete("/{interaction_id}")
def delete_interaction(
    interaction_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an interaction; its tasks stay on the case without a source"""
    interaction = _get_interaction_or_404(db, interaction_id)
    db.delete(interaction)
    db.commit()

    logger.info("Interaction deleted: %s", interaction_id)
    return {"success": True, "message": "Interaction deleted successfully"}


@router.post("/{interaction_id}/regenerate-summary")
def regenerate_summary(
    interaction_id: UUID,
    payload: RegenerateSummaryRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    interaction = _get_interaction_or_404(db, interaction_id)
    interaction, tasks = interaction_service.regenerate_summary(db, interaction, payload)
    return {
        "interaction": _single(db, interaction),
        "tasks": [TaskBrief.model_validate(t) for t in tasks],
    }

# ============================================================================
# Single-section summary edits
# ============================================================================

@router.put("/{interaction_id}/summary-sections")
def put_summary_section(
    interaction_id: UUID,
    payload: SummarySectionEdit,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Replace the body of one summary section, matched by heading (case-insensitive).
    A heading not in the summary is appended as a new section.
    """
    interaction = _get_interaction_or_404(db, interaction_id)
    interaction.ai_summary = replace_section(interaction.ai_summary or "", payload.heading, payload.content)
    db.commit()
    db.refresh(interaction)
    return {"interaction": _single(db, interaction)}


@router.delete("/{interaction_id}/summary-sections")
def delete_summary_section(
    interaction_id: UUID,
    heading: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    interaction = _get_interaction_or_404(db, interaction_id)
    wanted = heading.strip().lower()
    headings = [s.heading for s in parse_summary(interaction.ai_summary or "") if s.heading]
    if wanted not in (h.strip().lower() for h in headings):
        raise BadRequestError(f"Section not found: {heading}")

    interaction.ai_summary = remove_section(interaction.ai_summary or "", heading)
    db.commit()
    db.refresh(interaction)
    return {"interaction": _single(db, interaction)}
