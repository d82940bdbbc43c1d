"""
Case participant endpoints (mounted under /cases/{case_id}/participants)
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.db.database import get_db
from app.db.models import Participant, User
from app.db.retry import with_retry
from app.db.schemas import ParticipantCreate, ParticipantResponse, ParticipantUpdate
from app.api.deps import get_current_user
from app.api.v1.endpoints.cases import get_case_or_404
from app.utils.exceptions import ParticipantNotFoundError
from app.utils.helpers import blank_to_none

router = APIRouter()

_OPTIONAL_TEXT = ("email", "phone", "notes")


def _get_participant_or_404(db: Session, case_id: UUID, participant_id: UUID) -> Participant:
    participant = with_retry(
        lambda: db.query(Participant)
        .filter(Participant.id == participant_id, Participant.case_id == case_id)
        .first(),
        db,
    )
    if not participant:
        raise ParticipantNotFoundError(str(participant_id))
    return participant


@router.get("/{case_id}/participants")
def list_participants(
    case_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_case_or_404(db, case_id)
    participants = with_retry(
        lambda: db.query(Participant)
        .filter(Participant.case_id == case_id)
        .order_by(Participant.role.asc(), Participant.name.asc())
        .all(),
        db,
    )
    return {"participants": [ParticipantResponse.model_validate(p) for p in participants]}


@router.post("/{case_id}/participants", status_code=status.HTTP_201_CREATED)
def create_participant(
    case_id: UUID,
    payload: ParticipantCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_case_or_404(db, case_id)
    participant = Participant(
        case_id=case_id,
        role=payload.role,
        name=payload.name,
        email=blank_to_none(payload.email),
        phone=blank_to_none(payload.phone),
        notes=blank_to_none(payload.notes),
    )
    db.add(participant)
    db.commit()
    db.refresh(participant)
    return {"participant": ParticipantResponse.model_validate(participant)}


@router.patch("/{case_id}/participants/{participant_id}")
def update_participant(
    case_id: UUID,
    participant_id: UUID,
    payload: ParticipantUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    participant = _get_participant_or_404(db, case_id, participant_id)

    for key, value in payload.model_dump(exclude_unset=True).items():
        if key in _OPTIONAL_TEXT:
            value = blank_to_none(value)
        elif value is None:
            continue
        setattr(participant, key, value)

    db.commit()
    db.refresh(participant)
    return {"participant": ParticipantResponse.model_validate(participant)}


@router.delete("/{case_id}/participants/{participant_id}")
def delete_participant(
    case_id: UUID,
    participant_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Tasks assigned to the participant are left unassigned"""
    participant = _get_participant_or_404(db, case_id, participant_id)
    db.delete(participant)
    db.commit()
    return {"success": True}
