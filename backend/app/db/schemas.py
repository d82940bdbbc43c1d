"""
Pydantic validation schemas
"""
from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator
from typing import Annotated, Optional, List, Dict, Any, Literal, Union
from datetime import datetime
from uuid import UUID

from app.db.models import CaseStatus, InteractionType, ParticipantRole, ReportType, TaskStatus
from app.utils.helpers import to_naive_utc


UtcDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]

# ============================================================================
# Auth Schemas
# ============================================================================

class UserLogin(BaseModel):
    """Login schema"""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserOut(BaseModel):
    id: UUID
    username: str

    class Config:
        from_attributes = True

# ============================================================================
# Case Schemas
# ============================================================================

class KeyContacts(BaseModel):
    insurer_case_manager: Optional[str] = None
    employer_contact: Optional[str] = None
    gp: Optional[str] = None
    specialist: Optional[str] = None
    physio: Optional[str] = None


class CaseCreate(BaseModel):
    worker_name: str = Field(..., min_length=1)
    worker_initials: Optional[str] = None
    claim_number: str = Field(..., min_length=1)
    insurer_name: str = Field(..., min_length=1)
    employer_name: str = Field(..., min_length=1)
    key_contacts: KeyContacts = Field(default_factory=KeyContacts)
    current_capacity_summary: Optional[str] = None
    next_key_date: Optional[UtcDatetime] = None


class CaseUpdate(BaseModel):
    worker_name: Optional[str] = Field(None, min_length=1)
    worker_initials: Optional[str] = None
    insurer_name: Optional[str] = Field(None, min_length=1)
    employer_name: Optional[str] = Field(None, min_length=1)
    key_contacts: Optional[KeyContacts] = None
    status: Optional[CaseStatus] = None
    current_capacity_summary: Optional[str] = None
    next_key_date: Optional[UtcDatetime] = None


class CaseResponse(BaseModel):
    id: UUID
    worker_name: str
    worker_initials: Optional[str] = None
    claim_number: str
    insurer_name: str
    employer_name: str
    key_contacts: Dict[str, Any] = {}
    status: CaseStatus
    current_capacity_summary: Optional[str] = None
    next_key_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CaseListItem(CaseResponse):
    interaction_count: int = 0
    pending_task_count: int = 0


class CaseStub(BaseModel):
    id: UUID
    worker_name: str
    claim_number: str

    class Config:
        from_attributes = True

# ============================================================================
# Participant Schemas
# ============================================================================

OptionalEmail = Optional[Union[EmailStr, Literal[""]]]


class ParticipantCreate(BaseModel):
    role: ParticipantRole
    name: str = Field(..., min_length=1)
    email: OptionalEmail = None
    phone: Optional[str] = None
    notes: Optional[str] = None


class ParticipantUpdate(BaseModel):
    role: Optional[ParticipantRole] = None
    name: Optional[str] = Field(None, min_length=1)
    email: OptionalEmail = None
    phone: Optional[str] = None
    notes: Optional[str] = None


class ParticipantBrief(BaseModel):
    id: UUID
    role: ParticipantRole
    name: str

    class Config:
        from_attributes = True


class ParticipantResponse(ParticipantBrief):
    case_id: UUID
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

# ============================================================================
# Task Schemas
# ============================================================================

class TaskCreate(BaseModel):
    case_id: UUID
    description: str = Field(..., min_length=1)
    due_date: Optional[UtcDatetime] = None
    assigned_to_participant_id: Optional[UUID] = None
    details: Optional[str] = None


class TaskUpdate(BaseModel):
    status: Optional[TaskStatus] = None
    description: Optional[str] = Field(None, min_length=1)
    due_date: Optional[UtcDatetime] = None
    assigned_to_participant_id: Optional[UUID] = None


class TaskBrief(BaseModel):
    id: UUID
    case_id: UUID
    interaction_id: Optional[UUID] = None
    description: str
    due_date: Optional[datetime] = None
    status: TaskStatus
    assigned_to: Optional[str] = None
    assigned_to_participant_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InteractionStub(BaseModel):
    id: UUID
    type: InteractionType
    date_time: datetime

    class Config:
        from_attributes = True


class TaskResponse(TaskBrief):
    assigned_to_participant: Optional[ParticipantBrief] = None
    case: Optional[CaseStub] = None
    interaction: Optional[InteractionStub] = None
    is_overdue: bool = False
    priority: str = "no-date"

# ============================================================================
# Interaction Schemas
# ============================================================================

class SummarySectionFlags(BaseModel):
    main_issues: Optional[bool] = None
    current_capacity: Optional[bool] = None
    treatment_and_medical: Optional[bool] = None
    barriers_to_rtw: Optional[bool] = None
    agreed_actions: Optional[bool] = None


class InteractionCreate(BaseModel):
    case_id: UUID
    type: InteractionType
    date_time: Optional[UtcDatetime] = None
    participant_ids: List[UUID]
    text_content: str = Field(..., min_length=1)
    is_scheduled: bool = False
    scheduled_date_time: Optional[UtcDatetime] = None
    summary_sections: Optional[SummarySectionFlags] = None
    custom_sections: Optional[List[str]] = None
    section_labels: Optional[Dict[str, str]] = None

    @field_validator("custom_sections")
    @classmethod
    def drop_blank_custom_sections(cls, v):
        if v is None:
            return v
        return [s.strip() for s in v if s and s.strip()]


class InteractionUpdate(BaseModel):
    type: Optional[InteractionType] = None
    participant_ids: Optional[List[UUID]] = None
    transcript_text: Optional[str] = None
    date_time: Optional[UtcDatetime] = None
    ai_summary: Optional[str] = None


class RegenerateSummaryRequest(BaseModel):
    custom_instructions: Optional[str] = None
    use_edited_content: bool = False
    edited_content: Optional[str] = None


class SummarySectionEdit(BaseModel):
    """One ``## heading`` block; a list body is rendered as bullets."""
    heading: str = Field(..., min_length=1)
    content: Union[List[str], str] = ""

    @field_validator("heading")
    @classmethod
    def strip_heading(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("heading must not be blank")
        return v.strip()


class DetectMeetingsRequest(BaseModel):
    transcript: str = Field(..., min_length=1)


class InteractionResponse(BaseModel):
    id: UUID
    case_id: UUID
    date_time: datetime
    type: InteractionType
    participant_ids: List[str] = []
    participants: List[ParticipantBrief] = []
    raw_input_source: Optional[str] = None
    transcript_text: Optional[str] = None
    ai_summary: Optional[str] = None
    ai_action_items: Optional[List[Dict[str, Any]]] = None
    summary_sections: Optional[Dict[str, bool]] = None
    custom_sections: Optional[List[str]] = None
    section_labels: Optional[Dict[str, str]] = None
    is_scheduled: bool = False
    scheduled_date_time: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    tasks: List[TaskBrief] = []
    case: Optional[CaseStub] = None

    class Config:
        from_attributes = True

# ============================================================================
# Report Schemas
# ============================================================================

class ReportControlsIn(BaseModel):
    tone: Literal["neutral", "supportive", "assertive"] = "neutral"
    length: Literal["short", "standard", "extended"] = "standard"
    audience: Literal["insurer-focused", "employer-focused", "worker-friendly", "mixed"] = "mixed"


class ReportGenerateRequest(BaseModel):
    case_id: UUID
    report_type: ReportType
    interaction_ids: Optional[List[UUID]] = None
    controls: ReportControlsIn = Field(default_factory=ReportControlsIn)
    extra_context: Optional[str] = None


class ReportUpdate(BaseModel):
    content_draft: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1)


class ReportResponse(BaseModel):
    id: UUID
    case_id: UUID
    type: ReportType
    title: str
    content_draft: str
    generated_from_interactions: List[str] = []
    generation_controls: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# ============================================================================
# Case Detail
# ============================================================================

class CaseDetailResponse(CaseResponse):
    interactions: List[InteractionResponse] = []
    tasks: List[TaskResponse] = []
    reports: List[ReportResponse] = []
    participants: List[ParticipantResponse] = []

# ============================================================================
# Calendar / Dashboard
# ============================================================================

class CalendarEvent(BaseModel):
    id: UUID
    date_time: datetime
    type: InteractionType
    participants: List[str] = []
    is_scheduled: bool = False
    scheduled_date_time: Optional[datetime] = None
    case: Optional[CaseStub] = None
