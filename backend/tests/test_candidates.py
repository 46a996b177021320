"""Tests for candidate profile endpoints and onboarding status."""

from unittest.mock import AsyncMock, patch

from app.core.security import Role
from app.services.ai.flows import ExtractedProfile, ResumeSummary
from app.workers.worker_pool import ai_worker_pool

RESUME = (
    "Ada Lovelace\nSoftware Engineer\nTen years designing analytical software, "
    "numerical libraries and developer tooling in Python and C."
).encode()


class TestProfile:
    def test_candidate_updates_own_profile(self, client, candidate, auth_headers):
        response = client.put(
            "/api/candidates/profile",
            json={"currentTitle": "Engineer", "skills": ["Python"], "experience": "mid_level"},
            headers=auth_headers(candidate),
        )

        assert response.status_code == 200
        profile = response.json()["data"]
        assert profile["currentTitle"] == "Engineer"
        assert profile["skills"] == ["Python"]
        assert profile["hasEmbedding"] is False
        assert "embedding" not in profile

    def test_candidate_cannot_read_other_candidate(self, client, candidate, make_user, auth_headers):
        other = make_user(Role.CANDIDATE, "bob@example.com")
        response = client.get(f"/api/candidates/{other.id}", headers=auth_headers(candidate))
        assert response.status_code == 403

    def test_recruiter_reads_candidate(self, client, candidate, recruiter, auth_headers):
        response = client.get(f"/api/candidates/{candidate.id}", headers=auth_headers(recruiter))

        assert response.status_code == 200
        assert response.json()["data"]["firstName"] == "Jane"

    def test_onboarding_status(self, client, candidate, auth_headers):
        response = client.get(
            "/api/candidates/onboarding", params={"candidateId": candidate.id}, headers=auth_headers(candidate)
        )

        data = response.json()["data"]
        assert data["profileComplete"] is False
        assert data["hasResume"] is False
        assert data["hasEmbeddings"] is False

    def test_unknown_processing_job(self, client, candidate, auth_headers):
        response = client.get(
            "/api/candidates/onboarding",
            params={"candidateId": candidate.id, "jobId": "nope"},
            headers=auth_headers(candidate),
        )
        assert response.status_code == 404


class TestResumeUpload:
    def test_upload_text_resume(self, client, candidate, auth_headers):
        with patch(
            "app.services.ai.flows.extract_profile_from_resume",
            new=AsyncMock(return_value=ExtractedProfile(
                current_title="Software Engineer", skills=["Python", "C"], professional_summary="Tooling."
            )),
        ), patch(
            "app.services.ai.flows.generate_resume_summary",
            new=AsyncMock(return_value=ResumeSummary(summary="Veteran engineer.")),
        ):
            response = client.post(
                "/api/candidates/resume",
                files={"file": ("resume.txt", RESUME, "text/plain")},
                headers=auth_headers(candidate),
            )

        assert response.status_code == 200
        profile = response.json()["data"]
        assert profile["resumeUploaded"] is True
        assert profile["resumeSummary"] == "Veteran engineer."
        assert profile["skills"] == ["Python", "C"]

        stored = client.get(profile["resumeUrl"])
        assert stored.status_code == 200
        assert stored.content == RESUME

    def test_unsupported_file_type(self, client, candidate, auth_headers):
        response = client.post(
            "/api/candidates/resume",
            files={"file": ("photo.png", b"\x89PNG", "image/png")},
            headers=auth_headers(candidate),
        )
        assert response.status_code == 400


class TestProcessingJobs:
    def test_cancel_pending_job(self, client, candidate, auth_headers):
        job = ai_worker_pool.add_job("profile-generation", {"candidate_id": candidate.id}, priority="low")

        response = client.post(f"/api/ai/processing/{job.id}/cancel", headers=auth_headers(candidate))
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"

        again = client.post(f"/api/ai/processing/{job.id}/cancel", headers=auth_headers(candidate))
        assert again.status_code == 409

    def test_unknown_job(self, client, candidate, auth_headers):
        assert client.get("/api/ai/processing/nope", headers=auth_headers(candidate)).status_code == 404
