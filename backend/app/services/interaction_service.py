"""
services/interaction_service.py

Interaction flows that involve the AI services: create from text, create
from uploaded audio, and regenerate a summary (optionally from a summary the
consultant has edited).
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.logger import logger
from app.db.models import Case, Interaction, InteractionType, Participant, Task
from app.db.retry import with_retry
from app.db.schemas import (
    InteractionCreate,
    InteractionResponse,
    ParticipantBrief,
    RegenerateSummaryRequest,
)
from app.services.s3_service import s3_service
from app.services.summary_sections import (
    build_instructions,
    classify_headings,
    detect_headings,
    extract_section,
    format_summary,
    reorder_sections,
    resolve_sections,
    strip_markdown,
    summary_blocks,
)
from app.services.summary_service import summary_service
from app.services.task_service import create_tasks_from_action_items
from app.services.transcription_service import transcription_service
from app.utils.exceptions import BadRequestError, CaseNotFoundError
from app.utils.helpers import participant_label, str_ids

MIN_EDITED_SOURCE_CHARS = 50


# ============================================================================
# Participants
# ============================================================================

def _to_uuids(ids: Iterable) -> List[UUID]:
    result = []
    for value in ids or []:
        try:
            result.append(value if isinstance(value, UUID) else UUID(str(value)))
        except ValueError:
            continue
    return result


def load_participants(db: Session, participant_ids: Iterable) -> Dict[str, Participant]:
    """Participants by id (as string). Unknown ids are skipped."""
    ids = _to_uuids(participant_ids)
    if not ids:
        return {}
    rows = with_retry(lambda: db.query(Participant).filter(Participant.id.in_(ids)).all(), db)
    return {str(p.id): p for p in rows}


def participant_labels(db: Session, participant_ids: Iterable) -> List[str]:
    """``ROLE NAME: name`` labels used in prompts."""
    by_id = load_participants(db, participant_ids)
    return [
        participant_label(by_id[pid].role, by_id[pid].name)
        for pid in str_ids(participant_ids)
        if pid in by_id
    ]


def serialize_interaction(
    interaction: Interaction,
    participants_by_id: Optional[Dict[str, Participant]] = None,
    include_case: bool = False,
) -> InteractionResponse:
    data = InteractionResponse.model_validate(interaction)
    participants_by_id = participants_by_id or {}
    data.participants = [
        ParticipantBrief.model_validate(participants_by_id[pid])
        for pid in str_ids(interaction.participant_ids)
        if pid in participants_by_id
    ]
    if not include_case:
        data.case = None
    return data


def serialize_interactions(
    db: Session,
    interactions: Sequence[Interaction],
    include_case: bool = False,
) -> List[InteractionResponse]:
    all_ids = [pid for i in interactions for pid in (i.participant_ids or [])]
    by_id = load_participants(db, all_ids)
    return [serialize_interaction(i, by_id, include_case=include_case) for i in interactions]


def _require_case(db: Session, case_id: UUID) -> Case:
    case = with_retry(lambda: db.query(Case).filter(Case.id == case_id).first(), db)
    if not case:
        raise CaseNotFoundError(str(case_id))
    return case


# ============================================================================
# Create from text
# ============================================================================

def create_interaction_from_text(db: Session, payload: InteractionCreate) -> Tuple[Interaction, List[Task], dict]:
    """Summarise the text, store the interaction and its action-item tasks."""
    _require_case(db, payload.case_id)

    flags = payload.summary_sections.model_dump() if payload.summary_sections else None
    sections = resolve_sections(flags)
    labels = {k: v for k, v in (payload.section_labels or {}).items() if v}
    custom_sections = payload.custom_sections or []

    participant_ids = str_ids(payload.participant_ids)
    participants = participant_labels(db, participant_ids)

    instructions = build_instructions(sections, custom_sections)
    summary = summary_service.summarize_interaction(
        payload.text_content, payload.type, participants, instructions
    )
    action_items = summary_service.extract_action_items(payload.text_content, participants)

    if payload.is_scheduled and payload.scheduled_date_time:
        date_time = payload.scheduled_date_time
    else:
        date_time = payload.date_time or datetime.utcnow()

    interaction = Interaction(
        case_id=payload.case_id,
        type=payload.type,
        date_time=date_time,
        participant_ids=participant_ids,
        raw_input_source="text",
        transcript_text=payload.text_content,
        ai_summary=format_summary(summary, sections, labels, custom_sections),
        ai_action_items=action_items,
        summary_sections=sections,
        custom_sections=custom_sections or None,
        section_labels=labels or None,
        is_scheduled=payload.is_scheduled,
        scheduled_date_time=payload.scheduled_date_time,
    )
    db.add(interaction)
    db.flush()

    tasks = create_tasks_from_action_items(db, payload.case_id, interaction.id, action_items)
    db.commit()
    db.refresh(interaction)
    for task in tasks:
        db.refresh(task)

    logger.info(
        "Interaction %s created for case %s with %s tasks",
        interaction.id, payload.case_id, len(tasks),
    )
    return interaction, tasks, summary


# ============================================================================
# Create from audio
# ============================================================================

def create_interaction_from_audio(
    db: Session,
    case_id: UUID,
    interaction_type: InteractionType,
    participant_ids: Sequence[str],
    date_time: Optional[datetime],
    audio: bytes,
    filename: str,
) -> Tuple[Interaction, List[Task], dict, str]:
    """Transcribe a recording, then summarise it with the default sections."""
    _require_case(db, case_id)
    participant_ids = str_ids(participant_ids)
    participants = participant_labels(db, participant_ids)

    stored_url = s3_service.upload_audio(audio, str(case_id), filename)

    transcript = transcription_service.transcribe_audio(audio, filename)
    summary = summary_service.summarize_interaction(transcript, interaction_type, participants)
    action_items = summary_service.extract_action_items(transcript, participants)

    sections = resolve_sections()
    interaction = Interaction(
        case_id=case_id,
        type=interaction_type,
        date_time=date_time or datetime.utcnow(),
        participant_ids=participant_ids,
        raw_input_source=stored_url or "audio file (not stored)",
        transcript_text=transcript,
        ai_summary=format_summary(summary, sections),
        ai_action_items=action_items,
        summary_sections=sections,
    )
    db.add(interaction)
    db.flush()

    tasks = create_tasks_from_action_items(db, case_id, interaction.id, action_items)
    db.commit()
    db.refresh(interaction)
    for task in tasks:
        db.refresh(task)

    logger.info("Audio interaction %s created for case %s (%s)", interaction.id, case_id, filename)
    return interaction, tasks, summary, transcript


# ============================================================================
# Regenerate summary
# ============================================================================

def regenerate_summary(
    db: Session,
    interaction: Interaction,
    body: RegenerateSummaryRequest,
) -> Tuple[Interaction, List[Task]]:
    """
    Re-run the summary for an interaction.

    With ``use_edited_content`` the edited markdown drives the result: its
    headings decide which sections appear (and their labels and order), its
    plain text is the source, and custom-section bodies are kept verbatim.
    Short edited text (under 50 chars) falls back to the stored transcript.
    """
    participants = participant_labels(db, interaction.participant_ids or [])

    source_text = interaction.transcript_text or ""
    from_edited = False
    detected: List[str] = []
    classification = None

    edited = body.edited_content or ""
    if body.use_edited_content and edited.strip():
        detected = detect_headings(edited)
        stripped = strip_markdown(edited)
        if stripped and len(stripped) >= MIN_EDITED_SOURCE_CHARS:
            source_text = stripped
            from_edited = True
            classification = classify_headings(detected)
        else:
            detected = []

    if not source_text.strip():
        raise BadRequestError("No transcription or content available to summarize")

    if classification is not None:
        sections = classification.sections
        custom_sections = classification.custom_sections or list(interaction.custom_sections or [])
        labels = classification.labels or dict(interaction.section_labels or {})
    else:
        sections = resolve_sections(interaction.summary_sections)
        custom_sections = list(interaction.custom_sections or [])
        labels = dict(interaction.section_labels or {})

    instructions = build_instructions(
        sections,
        custom_sections,
        extra=body.custom_instructions,
        from_edited_summary=from_edited,
        preserve_custom=from_edited and bool(classification.custom_sections),
    )
    summary = summary_service.summarize_interaction(
        source_text, interaction.type, participants, instructions
    )

    custom_bodies = {}
    if from_edited:
        for label in custom_sections:
            preserved = extract_section(edited, label)
            if preserved:
                custom_bodies[label] = preserved
            else:
                logger.info("Custom section %r not found in edited summary", label)

    blocks = summary_blocks(
        summary, sections, labels, custom_sections, strict=True, custom_bodies=custom_bodies
    )
    if from_edited and detected:
        blocks = reorder_sections(blocks, detected)

    ai_summary = "\n\n".join(blocks).strip()
    if not ai_summary:
        raise BadRequestError("No summary content generated. Please ensure at least one section is enabled.")

    action_items = summary_service.extract_action_items(source_text, participants)

    interaction.ai_summary = ai_summary
    interaction.ai_action_items = action_items
    if from_edited:
        interaction.summary_sections = sections
        interaction.custom_sections = custom_sections or None
        interaction.section_labels = labels or None

    for old_task in list(interaction.tasks):
        db.delete(old_task)
    db.flush()

    tasks = create_tasks_from_action_items(db, interaction.case_id, interaction.id, action_items)
    db.commit()
    db.refresh(interaction)
    for task in tasks:
        db.refresh(task)

    logger.info(
        "Summary regenerated for interaction %s (from_edited=%s, sections=%s, tasks=%s)",
        interaction.id, from_edited, len(blocks), len(tasks),
    )
    return interaction, tasks
