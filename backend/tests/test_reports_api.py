"""Tests for report drafting and the report endpoints."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from app.db.models import Report, ReportType
from app.prompts.reports import REPORT_SYSTEM_PROMPT
from app.services.llm_service import llm_service


@pytest.fixture
def fake_llm(monkeypatch):
    """Replace the Bedrock call with a canned Markdown report."""
    prompts = []

    def complete(prompt, system=None, temperature=0.3, max_tokens=4096):
        prompts.append({"prompt": prompt, "system": system})
        return "# Report\n\n## Background and Claim Overview\nDrafted."

    monkeypatch.setattr(llm_service, "complete", complete)
    return prompts


class TestGenerateReport:
    """Tests for POST /api/reports."""

    def test_progress_report(self, auth_client, case, participant, make_interaction, fake_llm):
        recent = make_interaction(case, participant_ids=[str(participant.id)])
        make_interaction(case, date_time=datetime.utcnow() - timedelta(days=90))

        response = auth_client.post(
            "/api/reports", json={"case_id": str(case.id), "report_type": "PROGRESS_REPORT"}
        )

        assert response.status_code == 201
        report = response.json()["report"]
        assert report["type"] == "PROGRESS_REPORT"
        assert report["title"].startswith("PROGRESS REPORT - ")
        assert report["content_draft"].startswith("# Report")
        assert report["generated_from_interactions"] == [str(recent.id)]
        assert report["generation_controls"] == {
            "tone": "neutral",
            "length": "standard",
            "audience": "mixed",
        }

        sent = fake_llm[0]
        assert sent["system"] == REPORT_SYSTEM_PROMPT
        assert "Generate a Progress Report" in sent["prompt"]
        assert "Worker: Alex Taylor" in sent["prompt"]
        assert '"gp": "Dr Smith"' in sent["prompt"]

    def test_controls_and_extra_context(self, auth_client, case, make_interaction, fake_llm):
        make_interaction(case)

        response = auth_client.post(
            "/api/reports",
            json={
                "case_id": str(case.id),
                "report_type": "RTW_PLAN",
                "controls": {"tone": "supportive", "length": "short", "audience": "employer-focused"},
                "extra_context": "Worker starts the new role on Monday",
            },
        )

        assert response.status_code == 201
        prompt = fake_llm[0]["prompt"]
        assert "- Tone: supportive" in prompt
        assert "- Audience: employer-focused" in prompt
        assert prompt.endswith("ADDITIONAL CONTEXT:\nWorker starts the new role on Monday")

    def test_selected_interactions(self, auth_client, case, make_interaction, fake_llm):
        """Explicit interaction ids bypass the lookback window."""
        old = make_interaction(case, date_time=datetime.utcnow() - timedelta(days=200))
        make_interaction(case)

        response = auth_client.post(
            "/api/reports",
            json={"case_id": str(case.id), "report_type": "CLOSURE", "interaction_ids": [str(old.id)]},
        )

        assert response.json()["report"]["generated_from_interactions"] == [str(old.id)]

    def test_case_conference_uses_participants(self, auth_client, case, participant, make_interaction, fake_llm):
        conference = make_interaction(case, participant_ids=[str(participant.id)])

        auth_client.post(
            "/api/reports",
            json={
                "case_id": str(case.id),
                "report_type": "CASE_CONFERENCE",
                "interaction_ids": [str(conference.id)],
            },
        )

        assert "Participants: GP: Dr Smith" in fake_llm[0]["prompt"]

    def test_case_conference_needs_an_interaction(self, auth_client, case, fake_llm):
        response = auth_client.post(
            "/api/reports", json={"case_id": str(case.id), "report_type": "CASE_CONFERENCE"}
        )

        assert response.status_code == 400
        assert "at least one interaction" in response.json()["error"]
        assert fake_llm == []

    def test_unknown_case(self, auth_client, user, fake_llm):
        response = auth_client.post(
            "/api/reports", json={"case_id": str(uuid4()), "report_type": "PROGRESS_REPORT"}
        )

        assert response.status_code == 404

    def test_invalid_tone(self, auth_client, case, fake_llm):
        response = auth_client.post(
            "/api/reports",
            json={"case_id": str(case.id), "report_type": "PROGRESS_REPORT", "controls": {"tone": "angry"}},
        )

        assert response.status_code == 400

    def test_llm_failure(self, auth_client, db, case, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("bedrock unavailable")

        monkeypatch.setattr(llm_service, "complete", boom)

        response = auth_client.post(
            "/api/reports", json={"case_id": str(case.id), "report_type": "PROGRESS_REPORT"}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate report"}
        assert db.query(Report).count() == 0

    def test_empty_draft_is_a_failure(self, auth_client, case, monkeypatch):
        monkeypatch.setattr(llm_service, "complete", lambda *args, **kwargs: "   ")

        response = auth_client.post(
            "/api/reports", json={"case_id": str(case.id), "report_type": "PROGRESS_REPORT"}
        )

        assert response.status_code == 500


class TestReportCrud:
    """Tests for listing, reading, editing and deleting reports."""

    @pytest.fixture
    def report(self, db, case):
        report = Report(
            case_id=case.id,
            type=ReportType.progress_report,
            title="PROGRESS REPORT - 01/01/2030",
            content_draft="# Draft",
            generated_from_interactions=[],
        )
        db.add(report)
        db.commit()
        db.refresh(report)
        return report

    def test_list_requires_case(self, auth_client, report):
        response = auth_client.get("/api/reports")

        assert response.status_code == 400
        assert response.json() == {"error": "case_id is required"}

    def test_list_for_case(self, auth_client, case, report):
        response = auth_client.get("/api/reports", params={"case_id": str(case.id)})

        assert [r["id"] for r in response.json()["reports"]] == [str(report.id)]

    def test_get(self, auth_client, report):
        response = auth_client.get(f"/api/reports/{report.id}")

        assert response.status_code == 200
        assert response.json()["report"]["content_draft"] == "# Draft"

    def test_edit_draft(self, auth_client, report):
        response = auth_client.patch(
            f"/api/reports/{report.id}", json={"content_draft": "# Final\nSigned off."}
        )

        assert response.status_code == 200
        body = response.json()["report"]
        assert body["content_draft"] == "# Final\nSigned off."
        assert body["title"] == "PROGRESS REPORT - 01/01/2030"

    def test_delete(self, auth_client, report):
        response = auth_client.delete(f"/api/reports/{report.id}")

        assert response.status_code == 200
        assert auth_client.get(f"/api/reports/{report.id}").status_code == 404
        assert auth_client.get(f"/api/reports/{report.id}").json() == {"error": "Report not found"}
