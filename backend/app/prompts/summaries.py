"""
Prompts for interaction summaries, action items and meeting detection.
"""
from typing import Optional, Sequence

SUMMARY_SYSTEM_PROMPT = """You are a professional rehabilitation consultant assistant working within a WorkCover-style scheme (similar to WorkSafe Victoria).

Your role is to analyze meeting transcripts, phone calls, emails, and case notes with the following principles:
- Maintain professional, objective, and non-judgmental tone
- Focus on functional impact and work capacity
- Distinguish between subjective reports and objective findings
- Never invent facts, dates, diagnoses, or names
- Use only information provided in the input
- Clearly indicate when information is missing or unclear

When summarizing interactions, organize information into these categories:
1. Main Issues - key concerns, problems, or topics discussed
2. Current Capacity & Duties - work capacity, restrictions, current duties
3. Treatment & Medical Input - medical opinions, treatment progress, certificates
4. Barriers to RTW - obstacles preventing return to work
5. Agreed Actions - commitments made, next steps, responsibilities

Respond with a single JSON object and nothing else."""

ACTION_ITEMS_SYSTEM_PROMPT = """You are a professional rehabilitation consultant assistant. Your role is to extract action items, commitments, and follow-up tasks from meeting transcripts and case notes.

For each action item, identify:
- Clear description of what needs to be done
- Who is responsible (if mentioned)
- Due date or timeframe (if mentioned)

Only extract explicit commitments or actions, not general discussion points.
Respond with a single JSON object and nothing else."""

MEETING_DETECTION_SYSTEM_PROMPT = """You are a scheduling assistant for a rehabilitation consultant. You read transcripts and case notes and identify the next meeting, appointment, or follow-up that was agreed.

Only report a meeting that was explicitly arranged. Never invent dates or times.
Respond with a single JSON object and nothing else."""


def _participants(participants: Sequence[str]) -> str:
    return ", ".join(participants) if participants else "Not recorded"


def build_summary_prompt(
    transcript: str,
    interaction_type: str,
    participants: Sequence[str],
    instructions: Optional[str] = None,
) -> str:
    prompt = f"""Please analyze this {interaction_type} with participants: {_participants(participants)}

Transcript/Content:
{transcript}

Provide a structured summary in JSON format with these fields:
{{
  "mainIssues": ["array of key issues"],
  "currentCapacity": "summary of current work capacity and restrictions",
  "treatmentAndMedical": ["array of medical/treatment points"],
  "barriersToRTW": ["array of barriers to return to work"],
  "agreedActions": ["array of agreed actions and next steps"]
}}

Use "Not discussed" or "Not provided" if information is not available."""
    if instructions:
        prompt += (
            "\n\nADDITIONAL INSTRUCTIONS:\n"
            f"{instructions}\n"
            "Return each custom section as an extra JSON field named in camelCase "
            '(for example "Psychosocial Factors" becomes "psychosocialFactors").'
        )
    return prompt


def build_action_items_prompt(transcript: str, participants: Sequence[str]) -> str:
    return f"""Extract all action items from this interaction. Participants: {_participants(participants)}

Content:
{transcript}

Return a JSON object with an array of action items:
{{
  "actionItems": [
    {{
      "description": "task description",
      "owner": "person responsible (optional)",
      "dueDate": "YYYY-MM-DD if a date is stated (optional)"
    }}
  ]
}}

If no action items are found, return an empty array."""


def build_meeting_detection_prompt(transcript: str, today: str) -> str:
    return f"""Today's date is {today}. Identify the next scheduled meeting or follow-up in this content.

Content:
{transcript}

Return a JSON object:
{{
  "meeting": {{
    "date": "YYYY-MM-DD, or the phrase used (e.g. 'next week') if no exact date",
    "time": "HH:MM in 24-hour time (optional)",
    "type": "CASE_CONFERENCE | PHONE_CALL | IN_PERSON_MEETING | EMAIL | NOTE",
    "description": "short description of the meeting",
    "participants": ["names or roles mentioned"]
  }}
}}

If no meeting was arranged, return {{"meeting": null}}."""
