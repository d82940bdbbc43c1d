"""
AI summaries, action items and meeting detection for interactions.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Sequence

from app.core.config import settings
from app.core.logger import logger
from app.db.models import InteractionType
from app.prompts.summaries import (
    ACTION_ITEMS_SYSTEM_PROMPT,
    MEETING_DETECTION_SYSTEM_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    build_action_items_prompt,
    build_meeting_detection_prompt,
    build_summary_prompt,
)
from app.services.llm_service import llm_service
from app.utils.exceptions import AIServiceError

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})")
DEFAULT_MEETING_TIME = time(9, 0)


def resolve_meeting_datetime(detected: Optional[Dict[str, Any]], now: Optional[datetime] = None) -> datetime:
    """
    Turn a detected meeting's loose date/time into a concrete datetime.

    An ISO ``YYYY-MM-DD`` date is used as-is; any other date text ("next
    week") falls back to a week from now, and no date means today. Times
    other than ``HH:MM`` become 09:00.
    """
    now = now or datetime.utcnow()
    detected = detected or {}

    raw_date = str(detected.get("date") or "").strip()
    day: date = now.date()
    if raw_date:
        day = (now + timedelta(days=7)).date()
        if _ISO_DATE_RE.match(raw_date):
            try:
                day = date.fromisoformat(raw_date)
            except ValueError:
                pass

    at = DEFAULT_MEETING_TIME
    match = _TIME_RE.match(str(detected.get("time") or "").strip())
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour < 24 and minute < 60:
            at = time(hour, minute)

    return datetime.combine(day, at)


class SummaryService:
    """Interaction-level calls to the LLM."""

    def __init__(self, llm=None):
        self.llm = llm or llm_service

    def summarize_interaction(
        self,
        transcript: str,
        interaction_type: str,
        participants: Sequence[str],
        instructions: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Structured summary with ``mainIssues``, ``currentCapacity``,
        ``treatmentAndMedical``, ``barriersToRTW`` and ``agreedActions`` plus
        any requested custom sections (camelCase keys).
        """
        interaction_type = str(getattr(interaction_type, "value", interaction_type))
        prompt = build_summary_prompt(transcript, interaction_type, participants, instructions)
        try:
            summary = self.llm.complete_json(
                prompt,
                system=SUMMARY_SYSTEM_PROMPT,
                temperature=settings.SUMMARY_TEMPERATURE,
                max_tokens=settings.SUMMARY_MAX_TOKENS,
            )
        except Exception as e:
            logger.exception("Error summarizing interaction")
            raise AIServiceError("Failed to summarize interaction") from e

        if not isinstance(summary, dict):
            raise AIServiceError("Invalid summary response from AI")
        return summary

    def extract_action_items(self, transcript: str, participants: Sequence[str]) -> List[Dict[str, Any]]:
        """Action items found in the content. Failures yield an empty list."""
        prompt = build_action_items_prompt(transcript, participants)
        try:
            parsed = self.llm.complete_json(
                prompt,
                system=ACTION_ITEMS_SYSTEM_PROMPT,
                temperature=settings.SUMMARY_TEMPERATURE,
                max_tokens=settings.SUMMARY_MAX_TOKENS,
            )
        except Exception:
            logger.exception("Error extracting action items (non-fatal)")
            return []

        items = parsed.get("actionItems") if isinstance(parsed, dict) else None
        if not isinstance(items, list):
            return []
        return [
            item for item in items
            if isinstance(item, dict) and str(item.get("description") or "").strip()
        ]

    def detect_meeting(self, transcript: str, today: Optional[date] = None) -> Optional[Dict[str, Any]]:
        today = today or datetime.utcnow().date()
        prompt = build_meeting_detection_prompt(transcript, today.isoformat())
        try:
            parsed = self.llm.complete_json(
                prompt,
                system=MEETING_DETECTION_SYSTEM_PROMPT,
                temperature=0.0,
                max_tokens=1024,
            )
        except Exception as e:
            logger.exception("Error detecting meetings")
            raise AIServiceError("Failed to detect meetings") from e

        meeting = parsed.get("meeting") if isinstance(parsed, dict) else None
        if not isinstance(meeting, dict) or not any(meeting.values()):
            return None

        meeting_type = str(meeting.get("type") or "").upper()
        participants = meeting.get("participants") or []
        return {
            "date": meeting.get("date") or None,
            "time": meeting.get("time") or None,
            "type": meeting_type if meeting_type in InteractionType._value2member_map_ else None,
            "description": meeting.get("description") or None,
            "participants": [str(p) for p in participants] if isinstance(participants, list) else [],
        }


summary_service = SummaryService()
