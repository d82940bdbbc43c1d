"""
SQLAlchemy ORM Models
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    String,
    Text,
    TIMESTAMP,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.db.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")

# ============================================================================
# Enums
# ============================================================================

class CaseStatus(str, enum.Enum):
    """Case status enum"""
    active = "ACTIVE"
    on_hold = "ON_HOLD"
    closed = "CLOSED"

class ParticipantRole(str, enum.Enum):
    """Role of a participant in a case"""
    insurer_cm = "INSURER_CM"
    employer = "EMPLOYER"
    gp = "GP"
    specialist = "SPECIALIST"
    physio = "PHYSIO"
    consultant = "CONSULTANT"
    other = "OTHER"

class InteractionType(str, enum.Enum):
    """Interaction types"""
    case_conference = "CASE_CONFERENCE"
    phone_call = "PHONE_CALL"
    in_person_meeting = "IN_PERSON_MEETING"
    email = "EMAIL"
    note = "NOTE"

class TaskStatus(str, enum.Enum):
    """Task status"""
    pending = "PENDING"
    done = "DONE"
    overdue = "OVERDUE"

class ReportType(str, enum.Enum):
    """Generated report types"""
    progress_report = "PROGRESS_REPORT"
    rtw_plan = "RTW_PLAN"
    case_conference = "CASE_CONFERENCE"
    initial_needs_assessment = "INITIAL_NEEDS_ASSESSMENT"
    closure = "CLOSURE"


def _enum(enum_cls, name: str) -> SQLEnum:
    # Persist the API values ("ACTIVE"), not the member names
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


# ============================================================================
# Models
# ============================================================================

class User(Base):
    """Consultant login"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(100), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Case(Base):
    """Injured worker's claim"""
    __tablename__ = "cases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    worker_name = Column(String(255), nullable=False)
    worker_initials = Column(String(20), nullable=True)
    claim_number = Column(String(100), nullable=False, index=True)
    insurer_name = Column(String(255), nullable=False)
    employer_name = Column(String(255), nullable=False)
    key_contacts = Column(JSONType, nullable=False, default=dict)
    status = Column(_enum(CaseStatus, "case_status"), nullable=False, default=CaseStatus.active, index=True)
    current_capacity_summary = Column(Text, nullable=True)
    next_key_date = Column(TIMESTAMP, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    participants = relationship("Participant", back_populates="case", cascade="all, delete-orphan")
    interactions = relationship("Interaction", back_populates="case", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="case", cascade="all, delete-orphan")
    reports = relationship("Report", back_populates="case", cascade="all, delete-orphan")


class Participant(Base):
    """Insurer, employer, treating practitioner, etc. attached to a case"""
    __tablename__ = "participants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(_enum(ParticipantRole, "participant_role"), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case", back_populates="participants")
    assigned_tasks = relationship("Task", back_populates="assigned_to_participant")


class Interaction(Base):
    """Call, meeting, email or note, with its AI summary"""
    __tablename__ = "interactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False)
    date_time = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    type = Column(_enum(InteractionType, "interaction_type"), nullable=False)
    participant_ids = Column(JSONType, nullable=False, default=list)
    raw_input_source = Column(String(1024), nullable=True)
    transcript_text = Column(Text, nullable=True)
    ai_summary = Column(Text, nullable=True)
    ai_action_items = Column(JSONType, nullable=True)
    summary_sections = Column(JSONType, nullable=True)
    custom_sections = Column(JSONType, nullable=True)
    section_labels = Column(JSONType, nullable=True)
    is_scheduled = Column(Boolean, nullable=False, default=False)
    scheduled_date_time = Column(TIMESTAMP, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case", back_populates="interactions")
    tasks = relationship("Task", back_populates="interaction")

    __table_args__ = (
        Index("idx_interactions_case_datetime", "case_id", "date_time"),
    )


class Task(Base):
    """Follow-up action for a case"""
    __tablename__ = "tasks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False)
    interaction_id = Column(Uuid, ForeignKey("interactions.id", ondelete="SET NULL"), nullable=True, index=True)
    description = Column(Text, nullable=False)
    due_date = Column(TIMESTAMP, nullable=True)
    status = Column(_enum(TaskStatus, "task_status"), nullable=False, default=TaskStatus.pending)
    assigned_to = Column(String(255), nullable=True)
    assigned_to_participant_id = Column(
        Uuid, ForeignKey("participants.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case", back_populates="tasks")
    interaction = relationship("Interaction", back_populates="tasks")
    assigned_to_participant = relationship("Participant", back_populates="assigned_tasks")

    __table_args__ = (
        Index("idx_tasks_case_status", "case_id", "status"),
    )


class Report(Base):
    """AI-drafted report, editable by the consultant"""
    __tablename__ = "reports"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(_enum(ReportType, "report_type"), nullable=False)
    title = Column(String(255), nullable=False)
    content_draft = Column(Text, nullable=False, default="")
    generated_from_interactions = Column(JSONType, nullable=False, default=list)
    generation_controls = Column(JSONType, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case", back_populates="reports")
