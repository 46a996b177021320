"""
Job handlers for the AI worker pool.

Each handler runs one orchestrator operation and persists its output through
its own database session, since jobs outlive the request that queued them.
"""

from datetime import datetime
from typing import Any

from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.db.session import SessionLocal
from app.models import Application, CandidateProfile, Job
from app.services.orchestrator import ai_orchestrator
from app.workers.worker_pool import AIWorkerPool, ai_worker_pool

logger = get_logger("worker_handlers")


def save_candidate_updates(candidate_id: str, updates: dict[str, Any]) -> None:
    with SessionLocal() as db:
        candidate = db.get(CandidateProfile, candidate_id)
        if candidate is None:
            raise NotFoundError("Candidate")
        candidate.apply_updates(updates)
        db.commit()


def _summarize(candidate_id: str, updates: dict[str, Any]) -> dict[str, Any]:
    return {"candidateId": candidate_id, "updatedFields": sorted(updates)}


async def handle_resume_job(payload: dict[str, Any]) -> dict[str, Any]:
    candidate_id = payload["candidate_id"]
    updates = await ai_orchestrator.process_resume(
        candidate_id, payload["data"], payload["mime_type"]
    )
    save_candidate_updates(candidate_id, updates)
    return _summarize(candidate_id, updates)


async def handle_video_job(payload: dict[str, Any]) -> dict[str, Any]:
    candidate_id = payload["candidate_id"]
    updates = await ai_orchestrator.process_video(
        candidate_id, payload["data"], payload.get("mime_type", "video/webm")
    )
    save_candidate_updates(candidate_id, updates)
    return _summarize(candidate_id, updates)


async def handle_profile_generation_job(payload: dict[str, Any]) -> dict[str, Any]:
    candidate_id = payload["candidate_id"]

    # Re-read the profile so results of earlier jobs in the batch are included
    with SessionLocal() as db:
        candidate = db.get(CandidateProfile, candidate_id)
        if candidate is None:
            raise NotFoundError("Candidate")
        existing_profile = candidate.to_dict()

    updates = await ai_orchestrator.generate_complete_profile(
        candidate_id, payload.get("profile_data") or {}, existing_profile
    )
    updates["profile_complete"] = True
    save_candidate_updates(candidate_id, updates)
    return _summarize(candidate_id, updates)


async def handle_matching_job(payload: dict[str, Any]) -> dict[str, Any]:
    application_id = payload["application_id"]

    with SessionLocal() as db:
        application = db.get(Application, application_id)
        if application is None:
            raise NotFoundError("Application")
        candidate = db.get(CandidateProfile, application.candidate_id)
        job = db.get(Job, application.job_id)
        if candidate is None or job is None:
            raise NotFoundError("Candidate or job")

        candidate_view = {
            "title": candidate.current_title,
            "experience": candidate.experience,
            "location": candidate.location,
            "skills": candidate.skills or [],
            "summary": candidate.professional_summary or candidate.resume_summary,
            "preferredJobTypes": candidate.preferred_job_types or [],
        }
        job_view = {
            "title": job.title,
            "department": job.department,
            "location": job.location,
            "employmentType": job.employment_type,
            "requirements": job.requirements or [],
            "skills": job.skills or [],
        }

    score = await ai_orchestrator.score_application(candidate_view, job_view)

    with SessionLocal() as db:
        application = db.get(Application, application_id)
        application.ai_match_score = score["ai_match_score"]
        application.ai_analysis = score["ai_analysis"]
        application.updated_at = datetime.utcnow()
        db.commit()

    logger.info(f"Application {application_id} scored {score['ai_match_score']}")
    return {"applicationId": application_id, "matchScore": score["ai_match_score"]}


def register_default_handlers(pool: AIWorkerPool) -> None:
    pool.register("resume", handle_resume_job)
    pool.register("video", handle_video_job)
    pool.register("profile-generation", handle_profile_generation_job)
    pool.register("matching", handle_matching_job)


register_default_handlers(ai_worker_pool)
