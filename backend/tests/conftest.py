"""Shared fixtures for the API and service tests.

The app reads its settings at import time, so the environment is prepared
before anything under ``app`` is imported. Tests run against an in-memory
SQLite database; the AI, transcription and storage services are replaced
with fakes.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["DEBUG"] = "true"
os.environ["AUDIO_S3_BUCKET_NAME"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ.setdefault("AWS_REGION", "ap-southeast-2")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app.core.security import create_access_token, get_password_hash
from app.db.database import Base, SessionLocal, engine
from app.db.models import (
    Case,
    CaseStatus,
    Interaction,
    InteractionType,
    Participant,
    ParticipantRole,
    Task,
    TaskStatus,
    User,
)
from app.main import app
from app.services.summary_service import summary_service

TEST_PASSWORD = "secret-pass"

FAKE_SUMMARY = {
    "mainIssues": ["Ongoing lower back pain"],
    "currentCapacity": "Modified duties, 4 hours per day",
    "treatmentAndMedical": ["Weekly physiotherapy"],
    "barriersToRTW": ["Fear of reinjury"],
    "agreedActions": ["GP review in two weeks"],
}

FAKE_ACTION_ITEMS = [
    {"description": "Book GP review", "owner": "consultant", "dueDate": "2030-01-15"},
]


@pytest.fixture
def db():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def user(db):
    user = User(username="consultant", password_hash=get_password_hash(TEST_PASSWORD))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_client(client, user):
    """Client carrying a valid session token."""
    token = create_access_token({"sub": str(user.id), "username": user.username})
    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest.fixture
def make_case(db):
    def _make(**overrides):
        fields = {
            "worker_name": "Alex Taylor",
            "worker_initials": "AT",
            "claim_number": "CLM-1001",
            "insurer_name": "Acme Insurance",
            "employer_name": "Widget Co",
            "key_contacts": {"gp": "Dr Smith"},
            "status": CaseStatus.active,
        }
        fields.update(overrides)
        case = Case(**fields)
        db.add(case)
        db.commit()
        db.refresh(case)
        return case

    return _make


@pytest.fixture
def case(make_case):
    return make_case()


@pytest.fixture
def make_participant(db):
    def _make(case, role=ParticipantRole.gp, name="Dr Smith", **overrides):
        participant = Participant(case_id=case.id, role=role, name=name, **overrides)
        db.add(participant)
        db.commit()
        db.refresh(participant)
        return participant

    return _make


@pytest.fixture
def participant(case, make_participant):
    return make_participant(case)


@pytest.fixture
def make_interaction(db):
    def _make(case, **overrides):
        fields = {
            "type": InteractionType.phone_call,
            "date_time": datetime.utcnow() - timedelta(days=1),
            "participant_ids": [],
            "raw_input_source": "text",
            "transcript_text": "Spoke with the worker about modified duties and pain levels.",
            "ai_summary": "## Main Issues\n- Back pain",
        }
        fields.update(overrides)
        interaction = Interaction(case_id=case.id, **fields)
        db.add(interaction)
        db.commit()
        db.refresh(interaction)
        return interaction

    return _make


@pytest.fixture
def make_task(db):
    def _make(case, **overrides):
        fields = {"description": "Follow up with employer", "status": TaskStatus.pending}
        fields.update(overrides)
        task = Task(case_id=case.id, **fields)
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    return _make


class FakeSummaryCalls:
    """Records what the interaction flows sent to the summary service."""

    def __init__(self):
        self.summary = dict(FAKE_SUMMARY)
        self.items = [dict(item) for item in FAKE_ACTION_ITEMS]
        self.summaries = []
        self.action_items = []


@pytest.fixture
def fake_ai(monkeypatch):
    calls = FakeSummaryCalls()

    def summarize(transcript, interaction_type, participants, instructions=None):
        calls.summaries.append(
            {
                "transcript": transcript,
                "type": interaction_type,
                "participants": list(participants),
                "instructions": instructions,
            }
        )
        return dict(calls.summary)

    def extract(transcript, participants):
        calls.action_items.append({"transcript": transcript, "participants": list(participants)})
        return [dict(item) for item in calls.items]

    monkeypatch.setattr(summary_service, "summarize_interaction", summarize)
    monkeypatch.setattr(summary_service, "extract_action_items", extract)
    return calls
