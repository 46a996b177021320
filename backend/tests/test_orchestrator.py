"""Tests for the AI orchestrator pipeline."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.errors import AIFlowError
from app.services.ai.flows import (
    CandidateJobMatch,
    ExtractedProfile,
    ResumeSummary,
    TextEmbedding,
    VideoAnalysis,
)
from app.services.orchestrator import AIOrchestrator, profile_to_text

RESUME_BYTES = (b"Senior engineer with a decade of Python, Kubernetes and data platform work. " * 3)


@pytest.fixture
def bucket():
    fake = MagicMock()
    fake.upload.side_effect = lambda path, data, content_type=None: f"/files/{path}"
    return fake


@pytest.fixture
def orchestrator(bucket):
    return AIOrchestrator(bucket=bucket)


class TestProfileToText:
    """Tests for embedding input construction."""

    def test_joins_searchable_fields(self):
        text = profile_to_text({
            "first_name": "Ada",
            "last_name": "Lovelace",
            "current_title": "Engineer",
            "skills": ["Python", "Math"],
            "resume_summary": "Analytical engine pioneer.",
        })
        assert text == "Ada Lovelace\nEngineer\nPython Math\nAnalytical engine pioneer."

    def test_prefers_professional_summary(self):
        text = profile_to_text({"professional_summary": "A", "resume_summary": "B"})
        assert text == "A"

    def test_empty_profile(self):
        assert profile_to_text({}) == ""


class TestProcessResume:
    """Tests for AIOrchestrator.process_resume."""

    def test_uploads_and_merges_flow_outputs(self, orchestrator, bucket):
        with patch(
            "app.services.ai.flows.extract_profile_from_resume",
            new=AsyncMock(return_value=ExtractedProfile(
                current_title="Staff Engineer", skills=["Python"], professional_summary="Builds platforms."
            )),
        ), patch(
            "app.services.ai.flows.generate_resume_summary",
            new=AsyncMock(return_value=ResumeSummary(summary="Platform engineer.")),
        ):
            updates = asyncio.run(orchestrator.process_resume("c1", RESUME_BYTES, "text/plain"))

        path = bucket.upload.call_args.args[0]
        assert path.startswith("candidates/c1/resume/")
        assert path.endswith(".txt")
        assert updates["resume_url"] == f"/files/{path}"
        assert updates["resume_uploaded"] is True
        assert updates["resume_summary"] == "Platform engineer."
        assert updates["current_title"] == "Staff Engineer"
        assert updates["resume_text"].startswith("Senior engineer")
        assert "location" not in updates

    def test_unreadable_resume_fails(self, orchestrator):
        with pytest.raises(AIFlowError):
            asyncio.run(orchestrator.process_resume("c1", b"   ", "text/plain"))


class TestProcessCandidate:
    """Tests for the full pipeline."""

    def test_steps_run_in_order(self, orchestrator):
        calls = []

        async def fake_profile(text):
            calls.append("profile")
            return ExtractedProfile(professional_summary="Summary.")

        async def fake_summary(text):
            calls.append("summary")
            return ResumeSummary(summary="Short.")

        async def fake_embedding(text):
            calls.append("embedding")
            return TextEmbedding(embedding=[1.0], model_used="m")

        with patch(
            "app.services.ai.flows.extract_profile_from_resume", new=fake_profile
        ), patch(
            "app.services.ai.flows.generate_resume_summary", new=fake_summary
        ), patch(
            "app.services.ai.flows.generate_text_embedding", new=fake_embedding
        ):
            updates = asyncio.run(orchestrator.process_candidate(
                "c1",
                profile_data={"first_name": "Ada"},
                resume=RESUME_BYTES,
                resume_mime_type="text/plain",
            ))

        assert calls == ["profile", "summary", "embedding"]
        assert updates["first_name"] == "Ada"
        assert updates["embedding"] == [1.0]
        assert updates["embedding_model"] == "m"
        assert "last_processed" in updates

    def test_step_failure_aborts(self, orchestrator):
        embed = AsyncMock()
        with patch(
            "app.services.ai.flows.generate_text_embedding", new=embed
        ), patch(
            "app.services.ai.flows.analyze_video_intro",
            new=AsyncMock(side_effect=AIFlowError("analyzeVideoIntro", "blocked")),
        ):
            with pytest.raises(AIFlowError):
                asyncio.run(orchestrator.process_candidate("c1", {"first_name": "Ada"}, video=b"v"))

        embed.assert_not_called()

    def test_nothing_uploaded_when_embedding_fails(self, orchestrator, bucket):
        with patch(
            "app.services.ai.flows.extract_profile_from_resume",
            new=AsyncMock(return_value=ExtractedProfile(professional_summary="Summary.")),
        ), patch(
            "app.services.ai.flows.generate_resume_summary",
            new=AsyncMock(return_value=ResumeSummary(summary="Short.")),
        ), patch(
            "app.services.ai.flows.analyze_video_intro",
            new=AsyncMock(return_value=VideoAnalysis(
                communication_score=7, confidence_score=7, professionalism_score=7, transcript_summary="Hi."
            )),
        ), patch(
            "app.services.ai.flows.generate_text_embedding",
            new=AsyncMock(side_effect=AIFlowError("generateTextEmbedding", "quota exceeded")),
        ):
            with pytest.raises(AIFlowError):
                asyncio.run(orchestrator.process_candidate(
                    "c1",
                    {"first_name": "Ada"},
                    resume=RESUME_BYTES,
                    resume_mime_type="text/plain",
                    video=b"v",
                ))

        bucket.upload.assert_not_called()

    def test_failed_upload_removes_earlier_files(self, orchestrator, bucket):
        bucket.upload.side_effect = ["/files/first", OSError("disk full")]

        with pytest.raises(OSError):
            orchestrator.store_uploads("c1", resume=b"cv", resume_mime_type="text/plain", video=b"v")

        resume_path = bucket.upload.call_args_list[0].args[0]
        assert resume_path.startswith("candidates/c1/resume/")
        bucket.delete.assert_called_once_with(resume_path)

    def test_profile_without_content_cannot_be_embedded(self, orchestrator):
        with pytest.raises(AIFlowError):
            asyncio.run(orchestrator.generate_complete_profile("c1", {}, {}))


class TestScoreApplication:
    def test_returns_score_and_analysis(self, orchestrator):
        match = CandidateJobMatch(match_score=82, reasoning="Strong Python.", matched_skills=["Python"])
        with patch("app.services.ai.flows.match_candidate_to_job", new=AsyncMock(return_value=match)):
            result = asyncio.run(orchestrator.score_application({"skills": ["Python"]}, {"title": "Dev"}))

        assert result["ai_match_score"] == 82
        assert result["ai_analysis"]["matched_skills"] == ["Python"]
