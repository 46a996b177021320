"""Tests for candidate onboarding, both immediate and queued."""

import base64
from unittest.mock import AsyncMock, patch

import pytest

from app.core.errors import AIFlowError
from app.core.security import Role
from app.models import CandidateProfile
from app.services.ai.flows import ExtractedProfile, ResumeSummary, TextEmbedding, VideoAnalysis
from app.services.storage import bucket

RESUME_TEXT = (
    "Jane Doe\nSenior Software Engineer at Initech\n"
    "Eight years building Python services, FastAPI APIs and PostgreSQL data models. "
    "Led a team of five engineers."
)


def encode(data: bytes) -> str:
    return base64.b64encode(data).decode()


@pytest.fixture
def mock_flows():
    """Patch every Gemini-backed flow with a canned answer."""
    with patch(
        "app.services.ai.flows.extract_profile_from_resume",
        new=AsyncMock(return_value=ExtractedProfile(
            current_title="Senior Software Engineer",
            experience="senior",
            skills=["Python", "FastAPI", "PostgreSQL"],
            professional_summary="Backend engineer with eight years of Python.",
        )),
    ) as extract, patch(
        "app.services.ai.flows.generate_resume_summary",
        new=AsyncMock(return_value=ResumeSummary(summary="Seasoned Python engineer.")),
    ) as summary, patch(
        "app.services.ai.flows.analyze_video_intro",
        new=AsyncMock(return_value=VideoAnalysis(
            communication_score=8,
            confidence_score=7,
            professionalism_score=9,
            transcript_summary="Introduces herself and her backend work.",
        )),
    ) as video, patch(
        "app.services.ai.flows.generate_text_embedding",
        new=AsyncMock(return_value=TextEmbedding(
            embedding=[0.1, 0.2, 0.3], model_used="models/text-embedding-004"
        )),
    ) as embed:
        yield {"extract": extract, "summary": summary, "video": video, "embed": embed}


def onboarding_payload(candidate_id, priority, **extra):
    payload = {
        "candidateId": candidate_id,
        "priority": priority,
        "firstName": "Janet",
        "lastName": "Doe",
        "location": "Berlin",
        "resumeFile": encode(RESUME_TEXT.encode()),
        "resumeMimeType": "text/plain",
    }
    payload.update(extra)
    return payload


class TestHighPriorityOnboarding:
    """priority=high processes inside the request."""

    def test_success_writes_enrichment(self, client, db, candidate, auth_headers, mock_flows):
        response = client.post(
            "/api/candidates/onboarding",
            json=onboarding_payload(candidate.id, "high", videoBlob=encode(b"\x1a\x45\xdf\xa3webm")),
            headers=auth_headers(candidate),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["profileComplete"] is True
        assert body["data"]["processedImmediately"] is True
        assert body["data"]["profile"]["currentTitle"] == "Senior Software Engineer"
        assert "embedding" not in body["data"]["profile"]
        assert "resumeText" not in body["data"]["profile"]

        profile = db.get(CandidateProfile, candidate.id)
        db.refresh(profile)
        assert profile.first_name == "Janet"
        assert profile.location == "Berlin"
        assert profile.profile_complete is True
        assert profile.resume_uploaded is True
        assert profile.video_intro_recorded is True
        assert profile.resume_summary == "Seasoned Python engineer."
        assert profile.embedding == [0.1, 0.2, 0.3]
        assert profile.resume_url.startswith("/files/candidates/")
        assert profile.video_intro_url.startswith("/files/videos/intro/")

    def test_failure_writes_nothing(self, client, db, candidate, auth_headers, mock_flows):
        mock_flows["embed"].side_effect = AIFlowError("generateTextEmbedding", "quota exceeded")

        response = client.post(
            "/api/candidates/onboarding",
            json=onboarding_payload(candidate.id, "high", videoBlob=encode(b"webm-bytes")),
            headers=auth_headers(candidate),
        )

        assert response.status_code == 500
        assert "Failed to complete onboarding" in response.json()["error"]

        profile = db.get(CandidateProfile, candidate.id)
        db.refresh(profile)
        assert profile.first_name == "Jane"
        assert profile.location is None
        assert profile.profile_complete is False
        assert profile.embedding is None
        assert not (bucket.root / "candidates" / candidate.id).exists()
        assert not (bucket.root / "videos" / "intro" / candidate.id).exists()

    def test_failed_extraction_stores_no_resume(self, client, candidate, auth_headers, mock_flows):
        mock_flows["extract"].side_effect = AIFlowError("extractProfileFromResume", "blocked")

        response = client.post(
            "/api/candidates/onboarding",
            json=onboarding_payload(candidate.id, "high"),
            headers=auth_headers(candidate),
        )

        assert response.status_code == 500
        assert not (bucket.root / "candidates" / candidate.id).exists()


class TestQueuedOnboarding:
    """priority=medium|low saves basic fields and queues jobs."""

    def test_medium_queues_one_job_per_step(self, client, db, candidate, auth_headers, mock_flows):
        response = client.post(
            "/api/candidates/onboarding",
            json=onboarding_payload(candidate.id, "medium", videoBlob=encode(b"webm-bytes")),
            headers=auth_headers(candidate),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["processingQueued"] is True
        assert data["profileComplete"] is False
        job_ids = [job["id"] for job in data["jobs"]]
        assert len(job_ids) == 3
        assert job_ids[0].startswith(f"onboarding-resume-{candidate.id}-")
        assert job_ids[1].startswith(f"onboarding-video-{candidate.id}-")
        assert job_ids[2].startswith(f"onboarding-profile-{candidate.id}-")
        assert all(job["status"] == "queued" for job in data["jobs"])

        # Background jobs have run by the time the test client returns
        for job_id in job_ids:
            status = client.get(f"/api/ai/processing/{job_id}", headers=auth_headers(candidate)).json()
            assert status["data"]["status"] == "completed"
            assert status["data"]["priority"] == "medium"

        profile = db.get(CandidateProfile, candidate.id)
        db.refresh(profile)
        assert profile.first_name == "Janet"
        assert profile.resume_summary == "Seasoned Python engineer."
        assert profile.video_analysis["communication_score"] == 8
        assert profile.embedding == [0.1, 0.2, 0.3]
        assert profile.profile_complete is True

    def test_low_without_uploads_queues_profile_job_only(self, client, candidate, auth_headers, mock_flows):
        response = client.post(
            "/api/candidates/onboarding",
            json={"candidateId": candidate.id, "priority": "low", "location": "Lisbon"},
            headers=auth_headers(candidate),
        )

        jobs = response.json()["data"]["jobs"]
        assert len(jobs) == 1
        assert jobs[0]["id"].startswith("onboarding-profile-")

        status = client.get(
            "/api/candidates/onboarding",
            params={"candidateId": candidate.id, "jobId": jobs[0]["id"]},
            headers=auth_headers(candidate),
        ).json()["data"]
        assert status["status"] == "completed"
        assert status["priority"] == "low"

    def test_failed_job_is_reported(self, client, db, candidate, auth_headers, mock_flows):
        mock_flows["embed"].side_effect = AIFlowError("generateTextEmbedding", "quota exceeded")

        response = client.post(
            "/api/candidates/onboarding",
            json={"candidateId": candidate.id, "priority": "medium", "location": "Lisbon"},
            headers=auth_headers(candidate),
        )
        job_id = response.json()["data"]["jobs"][0]["id"]

        status = client.get(f"/api/ai/processing/{job_id}", headers=auth_headers(candidate)).json()["data"]
        assert status["status"] == "failed"
        assert "quota exceeded" in status["error"]

        # Basic fields were saved before the job ran
        profile = db.get(CandidateProfile, candidate.id)
        db.refresh(profile)
        assert profile.location == "Lisbon"
        assert profile.profile_complete is False


class TestOnboardingValidation:
    """Request-level rejections."""

    def test_candidate_cannot_onboard_someone_else(self, client, candidate, make_user, auth_headers):
        other = make_user(Role.CANDIDATE, "bob@example.com")
        response = client.post(
            "/api/candidates/onboarding",
            json={"candidateId": other.id, "priority": "low"},
            headers=auth_headers(candidate),
        )
        assert response.status_code == 403

    def test_invalid_base64_rejected(self, client, candidate, auth_headers):
        response = client.post(
            "/api/candidates/onboarding",
            json={
                "candidateId": candidate.id,
                "resumeFile": "***not base64***",
                "resumeMimeType": "application/pdf",
            },
            headers=auth_headers(candidate),
        )
        assert response.status_code == 400
        assert "resumeFile" in response.json()["error"]

    def test_resume_requires_mime_type(self, client, candidate, auth_headers):
        response = client.post(
            "/api/candidates/onboarding",
            json={"candidateId": candidate.id, "resumeFile": encode(b"hello")},
            headers=auth_headers(candidate),
        )
        assert response.status_code == 400

    def test_short_name_is_validation_error(self, client, candidate, auth_headers):
        response = client.post(
            "/api/candidates/onboarding",
            json={"candidateId": candidate.id, "firstName": "J"},
            headers=auth_headers(candidate),
        )
        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "firstName"

    def test_recruiter_may_onboard_on_behalf(self, client, candidate, recruiter, auth_headers, mock_flows):
        response = client.post(
            "/api/candidates/onboarding",
            json={"candidateId": candidate.id, "priority": "low", "location": "Oslo"},
            headers=auth_headers(recruiter),
        )
        assert response.status_code == 200

    def test_unknown_candidate_is_404(self, client, recruiter, auth_headers):
        response = client.post(
            "/api/candidates/onboarding",
            json={"candidateId": "missing", "priority": "low"},
            headers=auth_headers(recruiter),
        )
        assert response.status_code == 404
