"""
api/v1/endpoints/calendar.py

Calendar feed for the calendar page: interactions in a date range.

Endpoints:
  GET /api/calendar/events?start=&end=&case_id=
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.db.database import get_db
from app.db.models import Interaction, User
from app.db.retry import with_retry
from app.db.schemas import CalendarEvent, CaseStub
from app.services.interaction_service import load_participants
from app.utils.exceptions import BadRequestError
from app.utils.helpers import participant_label, str_ids, to_naive_utc

router = APIRouter()


@router.get("/events")
def get_calendar_events(
    start: Optional[datetime] = Query(None, description="Range start (inclusive)"),
    end: Optional[datetime] = Query(None, description="Range end (inclusive)"),
    case_id: Optional[UUID] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Interactions as calendar events, oldest first. Participants are given as
    ``ROLE: name`` labels.
    """
    start, end = to_naive_utc(start), to_naive_utc(end)
    if start and end and end < start:
        raise BadRequestError("end must not be before start")

    query = db.query(Interaction)
    if start:
        query = query.filter(Interaction.date_time >= start)
    if end:
        query = query.filter(Interaction.date_time <= end)
    if case_id:
        query = query.filter(Interaction.case_id == case_id)

    interactions = with_retry(lambda: query.order_by(Interaction.date_time.asc()).all(), db)
    by_id = load_participants(db, [pid for i in interactions for pid in (i.participant_ids or [])])

    events = [
        CalendarEvent(
            id=i.id,
            date_time=i.date_time,
            type=i.type,
            participants=[
                participant_label(by_id[pid].role, by_id[pid].name)
                for pid in str_ids(i.participant_ids)
                if pid in by_id
            ],
            is_scheduled=bool(i.is_scheduled),
            scheduled_date_time=i.scheduled_date_time,
            case=CaseStub.model_validate(i.case),
        )
        for i in interactions
    ]
    return {"events": events}
