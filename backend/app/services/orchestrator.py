"""
AI Orchestrator.

Sequences the AI flows for one candidate and folds their outputs into a single
profile update dict. Steps run one after another; if any step raises, the
whole call fails before any upload is stored, and the caller decides what
(if anything) to write to the database.
"""

import time
from datetime import datetime
from typing import Any, Optional

from app.core.errors import AIFlowError
from app.core.logging import get_logger
from app.services import storage
from app.services.ai import flows

logger = get_logger("orchestrator")

# Fields produced by the AI pipeline (as opposed to basic onboarding fields)
ENRICHMENT_FIELDS = (
    "resume_url",
    "resume_text",
    "resume_summary",
    "current_title",
    "experience",
    "skills",
    "linkedin_url",
    "expected_salary",
    "preferred_locations",
    "preferred_job_types",
    "professional_summary",
    "video_intro_url",
    "video_analysis",
    "embedding",
    "embedding_model",
)


def profile_to_text(profile: dict) -> str:
    """Flatten the searchable parts of a profile into one embedding input."""
    name = " ".join(
        part for part in (profile.get("first_name"), profile.get("last_name")) if part
    )
    parts = [
        name,
        profile.get("current_title") or "",
        profile.get("experience") or "",
        profile.get("location") or "",
        " ".join(profile.get("skills") or []),
        profile.get("professional_summary") or profile.get("resume_summary") or "",
    ]
    return "\n".join(part for part in parts if part).strip()


class AIOrchestrator:
    """Runs the resume → profile → summary → embedding pipeline."""

    def __init__(self, bucket: Optional[storage.LocalBucket] = None):
        self.bucket = bucket or storage.bucket

    async def analyze_resume(
        self,
        candidate_id: str,
        data: bytes,
        mime_type: str,
    ) -> dict[str, Any]:
        """Extract text, profile fields and a summary from a resume without storing it."""
        started = time.monotonic()
        resume_text = flows.extract_resume_text(data, mime_type)
        logger.info(f"Candidate {candidate_id}: extracted {len(resume_text)} chars of resume text")

        profile = await flows.extract_profile_from_resume(resume_text)
        summary = await flows.generate_resume_summary(resume_text)

        updates: dict[str, Any] = {
            "resume_text": resume_text,
            "resume_summary": summary.summary,
            "resume_uploaded": True,
        }
        updates.update(profile.model_dump(exclude_none=True))

        logger.info(
            f"Candidate {candidate_id}: resume processed in "
            f"{(time.monotonic() - started) * 1000:.0f}ms ({len(profile.skills)} skills)"
        )
        return updates

    async def analyze_video(
        self,
        candidate_id: str,
        data: bytes,
        mime_type: str = "video/webm",
    ) -> dict[str, Any]:
        analysis = await flows.analyze_video_intro(data, mime_type)
        logger.info(f"Candidate {candidate_id}: video intro analyzed")
        return {
            "video_analysis": analysis.model_dump(),
            "video_intro_recorded": True,
        }

    def store_uploads(
        self,
        candidate_id: str,
        resume: Optional[bytes] = None,
        resume_mime_type: Optional[str] = None,
        video: Optional[bytes] = None,
        video_mime_type: str = "video/webm",
    ) -> dict[str, str]:
        """
        Upload the raw files and return their URLs.

        Either every file is stored or, if one upload fails, the ones already
        written are removed again.
        """
        pending = []
        if resume is not None and resume_mime_type:
            filename = storage.unique_filename(storage.resume_extension(resume_mime_type))
            pending.append(
                ("resume_url", storage.resume_path(candidate_id, filename), resume, resume_mime_type)
            )
        if video is not None:
            filename = storage.unique_filename("webm")
            pending.append(
                ("video_intro_url", storage.video_path("intro", candidate_id, filename), video, video_mime_type)
            )

        urls: dict[str, str] = {}
        stored: list[str] = []
        try:
            for field, path, data, content_type in pending:
                urls[field] = self.bucket.upload(path, data, content_type)
                stored.append(path)
        except Exception:
            for path in stored:
                self.bucket.delete(path)
            raise
        return urls

    async def process_resume(
        self,
        candidate_id: str,
        data: bytes,
        mime_type: str,
    ) -> dict[str, Any]:
        """
        Extract structured profile data from a resume, then store the file.

        Returns:
            Update dict with resume_url, resume_text, extracted profile
            fields, resume_summary and ``resume_uploaded=True``.
        """
        updates = await self.analyze_resume(candidate_id, data, mime_type)
        updates.update(self.store_uploads(candidate_id, resume=data, resume_mime_type=mime_type))
        return updates

    async def process_video(
        self,
        candidate_id: str,
        data: bytes,
        mime_type: str = "video/webm",
    ) -> dict[str, Any]:
        updates = await self.analyze_video(candidate_id, data, mime_type)
        updates.update(self.store_uploads(candidate_id, video=data, video_mime_type=mime_type))
        return updates

    async def generate_complete_profile(
        self,
        candidate_id: str,
        profile_data: dict[str, Any],
        existing_profile: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Embed the merged profile so it can be found by semantic search."""
        merged = {**(existing_profile or {}), **profile_data}
        text = profile_to_text(merged)
        if not text:
            raise AIFlowError(
                "generateCompleteProfile", f"candidate {candidate_id} has no profile content"
            )

        embedding = await flows.generate_text_embedding(text)
        logger.info(f"Candidate {candidate_id}: profile embedded ({len(embedding.embedding)} dims)")
        return {
            "embedding": embedding.embedding,
            "embedding_model": embedding.model_used,
            "last_processed": datetime.utcnow(),
        }

    async def process_candidate(
        self,
        candidate_id: str,
        profile_data: Optional[dict[str, Any]] = None,
        existing_profile: Optional[dict[str, Any]] = None,
        resume: Optional[bytes] = None,
        resume_mime_type: Optional[str] = None,
        video: Optional[bytes] = None,
        video_mime_type: str = "video/webm",
    ) -> dict[str, Any]:
        """
        Run every applicable flow for one candidate in a fixed order.

        Resume text extraction → profile extraction → summary → video
        analysis → embedding. Uploads are stored only after every step has
        succeeded, and no database row is touched here.
        """
        logger.info(f"🚀 Processing candidate {candidate_id}")
        updates: dict[str, Any] = dict(profile_data or {})
        has_resume = bool(resume and resume_mime_type)

        if has_resume:
            updates.update(await self.analyze_resume(candidate_id, resume, resume_mime_type))

        if video:
            updates.update(await self.analyze_video(candidate_id, video, video_mime_type))

        updates.update(
            await self.generate_complete_profile(candidate_id, updates, existing_profile)
        )
        updates.update(self.store_uploads(
            candidate_id,
            resume=resume if has_resume else None,
            resume_mime_type=resume_mime_type,
            video=video or None,
            video_mime_type=video_mime_type,
        ))
        logger.info(f"✅ Candidate {candidate_id} processed")
        return updates

    async def score_application(self, candidate: dict[str, Any], job: dict[str, Any]) -> dict[str, Any]:
        """Score a candidate against a job for the application's match score."""
        match = await flows.match_candidate_to_job(candidate, job)
        return {
            "ai_match_score": match.match_score,
            "ai_analysis": match.model_dump(),
        }


ai_orchestrator = AIOrchestrator()
