"""
Prompt templates for generating the report types.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

REPORT_SYSTEM_PROMPT = """You are a professional rehabilitation consultant writing reports for WorkCover-style schemes (similar to WorkSafe Victoria, Australia).

Core Principles:
- Professional, objective, and non-judgmental tone
- Focus on functional impact and work capacity
- Distinguish between subjective reports ("worker reported...") and objective findings ("on assessment...")
- Use information provided only - never invent facts, dates, diagnoses, or names
- Clearly indicate when information is missing
- Maintain confidentiality and appropriate professional boundaries

Report Structure:
- Use clear headings and subheadings
- Separate worker-reported information, employer-reported information, and treating practitioner opinions
- Focus on work capacity and return to work (RTW) planning
- Include specific, measurable recommendations

Tone Guidelines:
- "neutral": Standard professional reporting
- "supportive": Emphasize worker wellbeing and gradual progression
- "assertive": Focus on clear expectations and timelines

Length Guidelines:
- "short": Brief summary, key points only (1-2 pages)
- "standard": Comprehensive but concise (2-4 pages)
- "extended": Detailed with extensive background (4+ pages)

Audience Guidelines:
- "insurer-focused": Emphasize case management, costs, RTW timeline
- "employer-focused": Emphasize workplace duties, accommodations, supervision needs
- "worker-friendly": Accessible language, emphasis on support and rehabilitation
- "mixed": Balanced for multiple stakeholders"""


@dataclass
class CaseContext:
    worker_name: str
    claim_number: str
    insurer_name: str
    employer_name: str
    key_contacts: Dict[str, str] = field(default_factory=dict)
    current_capacity_summary: Optional[str] = None


@dataclass
class InteractionData:
    date_time: str  # dd/mm/YYYY HH:MM
    type: str
    ai_summary: Optional[str] = None
    participants: List[str] = field(default_factory=list)


@dataclass
class ReportControls:
    tone: str = "neutral"
    length: str = "standard"
    audience: str = "mixed"


def _case_block(ctx: CaseContext, with_capacity: bool = True) -> str:
    lines = [
        "CASE INFORMATION:",
        f"Worker: {ctx.worker_name}",
        f"Claim Number: {ctx.claim_number}",
        f"Insurer: {ctx.insurer_name}",
        f"Employer: {ctx.employer_name}",
    ]
    if with_capacity:
        lines.append(f"Current Capacity: {ctx.current_capacity_summary or 'Not specified'}")
    return "\n".join(lines)


def _key_contacts(ctx: CaseContext) -> str:
    contacts = {k: v for k, v in (ctx.key_contacts or {}).items() if v is not None}
    return "KEY CONTACTS:\n" + json.dumps(contacts, indent=2, ensure_ascii=False)


def _interactions_summary(interactions: Sequence[InteractionData]) -> str:
    return "\n\n".join(
        f"{i.date_time} - {i.type}: {i.ai_summary or 'No summary available'}"
        for i in interactions
    )


def _requirements(controls: ReportControls) -> str:
    return (
        "REPORT REQUIREMENTS:\n"
        f"- Tone: {controls.tone}\n"
        f"- Length: {controls.length}\n"
        f"- Audience: {controls.audience}"
    )


def _with_extra_context(prompt: str, extra_context: Optional[str]) -> str:
    if extra_context and extra_context.strip():
        return f"{prompt}\n\nADDITIONAL CONTEXT:\n{extra_context.strip()}"
    return prompt


# ============================================================================
# Progress Report
# ============================================================================

def build_progress_report_prompt(
    case_context: CaseContext,
    interactions: Sequence[InteractionData],
    controls: ReportControls,
    extra_context: Optional[str] = None,
) -> str:
    prompt = f"""Generate a Progress Report for this WorkCover case.

{_case_block(case_context)}

{_key_contacts(case_context)}

RECENT INTERACTIONS (last 4-6 weeks):
{_interactions_summary(interactions)}

{_requirements(controls)}

REQUIRED SECTIONS:
1. Background and Claim Overview
2. Recent Events & Treatment Progress
3. Current Work Capacity and Restrictions
4. Return to Work Status and Duties
5. Barriers to RTW and Strategies
6. Recommendations and Next Steps

Generate the report in Markdown format with clear headings.
Use professional Australian English spelling and terminology.
Base all content on the information provided above - do not invent details."""
    return _with_extra_context(prompt, extra_context)


# ============================================================================
# RTW Plan
# ============================================================================

def build_rtw_plan_prompt(
    case_context: CaseContext,
    interactions: Sequence[InteractionData],
    controls: ReportControls,
    extra_context: Optional[str] = None,
) -> str:
    prompt = f"""Generate a Return to Work (RTW) Plan for this WorkCover case.

{_case_block(case_context)}

{_key_contacts(case_context)}

RELEVANT INTERACTIONS:
{_interactions_summary(interactions)}

{_requirements(controls)}

REQUIRED SECTIONS:
1. Pre-Injury Role and Duties
2. Current Medical Restrictions and Capacity
3. Proposed Graded Return to Work Plan
   - Timeline (e.g., Week 1-2, Week 3-4, etc.)
   - Hours per day/week
   - Specific duties at each stage
   - Restrictions and modifications
4. Monitoring and Review Process
5. Workplace Support Requirements
6. Contingencies and Risk Management

Generate the plan in Markdown format with clear headings and a table for the graded return timeline.
Base all content on the information provided - do not invent details."""
    return _with_extra_context(prompt, extra_context)


# ============================================================================
# Case Conference Minutes
# ============================================================================

def build_case_conference_prompt(
    case_context: CaseContext,
    interaction: InteractionData,
    controls: ReportControls,
    extra_context: Optional[str] = None,
) -> str:
    participants = ", ".join(interaction.participants) if interaction.participants else "Not recorded"
    prompt = f"""Generate Case Conference Minutes for this WorkCover case.

{_case_block(case_context, with_capacity=False)}

CONFERENCE DETAILS:
Date/Time: {interaction.date_time}
Type: {interaction.type}
Participants: {participants}

CONFERENCE SUMMARY:
{interaction.ai_summary or 'No summary available'}

{_requirements(controls)}

REQUIRED SECTIONS:
1. Meeting Details (date, time, participants with roles)
2. Purpose of Meeting
3. Issues Discussed
4. Decisions Made
5. Agreed Actions (with responsibilities and timeframes)
6. Next Steps and Follow-up

Generate the minutes in Markdown format with clear headings.
Format agreed actions as a table with columns: Action, Responsible Party, Due Date.
Base all content on the information provided."""
    return _with_extra_context(prompt, extra_context)


# ============================================================================
# Closure Report
# ============================================================================

def build_closure_report_prompt(
    case_context: CaseContext,
    interactions: Sequence[InteractionData],
    controls: ReportControls,
    extra_context: Optional[str] = None,
) -> str:
    prompt = f"""Generate a Case Closure Report for this WorkCover case.

{_case_block(case_context, with_capacity=False)}

{_key_contacts(case_context)}

CASE HISTORY:
{_interactions_summary(interactions)}

{_requirements(controls)}

REQUIRED SECTIONS:
1. Case Summary and Background
2. Services Provided (timeline of key interventions)
3. Outcomes Achieved
4. Final Work Capacity and Status
5. Barriers Addressed
6. Recommendations for Future
7. Reason for Closure

Generate the report in Markdown format with clear headings.
Focus on outcomes, value provided, and measurable progress.
Base all content on the information provided."""
    return _with_extra_context(prompt, extra_context)


def build_report_prompt(
    report_type: str,
    case_context: CaseContext,
    interactions: Sequence[InteractionData],
    controls: ReportControls,
    extra_context: Optional[str] = None,
) -> str:
    """Pick the template for ``report_type`` (a ReportType value)."""
    report_type = str(getattr(report_type, "value", report_type))

    if report_type == "PROGRESS_REPORT":
        return build_progress_report_prompt(case_context, interactions, controls, extra_context)
    if report_type == "RTW_PLAN":
        return build_rtw_plan_prompt(case_context, interactions, controls, extra_context)
    if report_type == "CASE_CONFERENCE":
        if not interactions:
            raise ValueError("Case conference report requires at least one interaction")
        return build_case_conference_prompt(case_context, interactions[0], controls, extra_context)
    if report_type == "CLOSURE":
        return build_closure_report_prompt(case_context, interactions, controls, extra_context)
    if report_type == "INITIAL_NEEDS_ASSESSMENT":
        prompt = build_progress_report_prompt(case_context, interactions, controls, extra_context)
        return prompt.replace("Progress Report", "Initial Needs Assessment", 1)
    raise ValueError(f"Unknown report type: {report_type}")
