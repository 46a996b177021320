"""
Candidate API endpoints.

Onboarding is the entry point of the AI enrichment pipeline:

- ``priority=high`` runs the orchestrator inside the request and writes the
  basic and enrichment fields together.
- ``priority=medium|low`` writes the basic fields, queues one worker-pool job
  per upload plus a profile-generation job, and returns the job ids so the
  client can poll for status.
"""

import base64
import binascii
import uuid
from datetime import datetime
from typing import Any, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Query, UploadFile, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from app.api.deps import AuthenticatedUser, get_current_user, rate_limit, require_roles
from app.api.v1.jobs import JobResponse
from app.core.errors import AppError
from app.core.logging import get_logger
from app.core.security import Role
from app.db.session import get_db
from app.models import CandidateProfile
from app.services import semantic_search
from app.services.document_text import UnsupportedDocumentError, detect_mime_type
from app.services.orchestrator import ai_orchestrator
from app.workers.worker_pool import ai_worker_pool

logger = get_logger("candidates")

router = APIRouter()

STAFF_ROLES = (Role.RECRUITER, Role.COMPANY_ADMIN, Role.INTERVIEWER, Role.SUPER_ADMIN)


# ============== Pydantic Schemas ==============


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OnboardingRequest(CamelModel):
    """Schema for the onboarding payload (uploads are base64 encoded)."""

    candidate_id: str = Field(min_length=1)
    priority: Literal["high", "medium", "low"] = "medium"
    first_name: Optional[str] = Field(default=None, min_length=2)
    last_name: Optional[str] = Field(default=None, min_length=2)
    phone: Optional[str] = None
    location: Optional[str] = Field(default=None, min_length=2)
    resume_file: Optional[str] = None
    resume_mime_type: Optional[str] = None
    video_blob: Optional[str] = None


class ProfileUpdateRequest(CamelModel):
    """Schema for manual profile edits by the candidate."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    current_title: Optional[str] = None
    experience: Optional[Literal["entry_level", "mid_level", "senior", "executive"]] = None
    skills: Optional[list[str]] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    expected_salary: Optional[str] = None
    preferred_locations: Optional[list[str]] = None
    preferred_job_types: Optional[list[str]] = None
    professional_summary: Optional[str] = None


# ============== Helper Functions ==============

PUBLIC_FIELDS = (
    "id",
    "first_name",
    "last_name",
    "email",
    "phone",
    "location",
    "current_title",
    "experience",
    "skills",
    "linkedin_url",
    "portfolio_url",
    "expected_salary",
    "preferred_locations",
    "preferred_job_types",
    "professional_summary",
    "resume_url",
    "resume_summary",
    "video_intro_url",
    "video_analysis",
    "resume_uploaded",
    "video_intro_recorded",
    "profile_complete",
    "last_processed",
    "updated_at",
)


def serialize_profile(profile: dict[str, Any]) -> dict[str, Any]:
    """Camel-case a profile dict, dropping raw text and embedding vectors."""
    return {
        to_camel(key): value
        for key, value in profile.items()
        if key not in ("resume_text", "embedding") and not isinstance(value, bytes)
    }


def candidate_view(candidate: CandidateProfile) -> dict[str, Any]:
    data = candidate.to_dict()
    view = {key: data[key] for key in PUBLIC_FIELDS}
    view["has_embedding"] = bool(candidate.embedding)
    return serialize_profile(view)


def decode_upload(encoded: str, field: str) -> bytes:
    # Accept data URLs ("data:application/pdf;base64,....") as well as bare base64
    if encoded.startswith("data:") and "," in encoded:
        encoded = encoded.split(",", 1)[1]
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field} is not valid base64",
        )
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} is empty")
    return data


def get_candidate_or_404(db: Session, candidate_id: str) -> CandidateProfile:
    candidate = db.get(CandidateProfile, candidate_id)
    if candidate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidate not found")
    return candidate


def ensure_can_access(current_user: AuthenticatedUser, candidate_id: str) -> None:
    if current_user.role == Role.CANDIDATE and current_user.id != candidate_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


# ============== API Endpoints ==============


@router.post("/onboarding", dependencies=[Depends(rate_limit("ai"))])
async def complete_onboarding(
    payload: OnboardingRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(
        require_roles(Role.CANDIDATE, Role.RECRUITER, Role.COMPANY_ADMIN, Role.SUPER_ADMIN)
    ),
):
    """Complete candidate onboarding, enriching the profile with AI."""
    ensure_can_access(current_user, payload.candidate_id)

    if payload.resume_file and not payload.resume_mime_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="resumeMimeType is required when resumeFile is provided",
        )

    resume = decode_upload(payload.resume_file, "resumeFile") if payload.resume_file else None
    video = decode_upload(payload.video_blob, "videoBlob") if payload.video_blob else None

    candidate = get_candidate_or_404(db, payload.candidate_id)
    existing_profile = candidate.to_dict()

    profile_updates: dict[str, Any] = {
        key: value
        for key, value in {
            "first_name": payload.first_name,
            "last_name": payload.last_name,
            "phone": payload.phone,
            "location": payload.location,
        }.items()
        if value
    }

    if payload.priority == "high":
        try:
            enrichment = await ai_orchestrator.process_candidate(
                payload.candidate_id,
                profile_data=profile_updates,
                existing_profile=existing_profile,
                resume=resume,
                resume_mime_type=payload.resume_mime_type,
                video=video,
            )
        except Exception as e:
            logger.error(f"Onboarding failed for candidate {payload.candidate_id}: {e}")
            raise AppError(f"Failed to complete onboarding: {e}")

        enrichment["profile_complete"] = True
        enrichment["last_processed"] = datetime.utcnow()
        candidate.apply_updates(enrichment)
        db.commit()

        return {
            "success": True,
            "data": {
                "profileComplete": True,
                "profile": serialize_profile(enrichment),
                "processedImmediately": True,
            },
            "message": "Profile onboarding completed successfully!",
            "processedAt": datetime.utcnow().isoformat(),
        }

    if profile_updates:
        candidate.apply_updates(profile_updates)
        db.commit()

    batch = uuid.uuid4().hex[:8]
    specs = []

    if resume is not None:
        specs.append({
            "type": "resume",
            "payload": {"candidate_id": payload.candidate_id, "data": resume, "mime_type": payload.resume_mime_type},
            "job_id": f"onboarding-resume-{payload.candidate_id}-{batch}",
        })

    if video is not None:
        specs.append({
            "type": "video",
            "payload": {"candidate_id": payload.candidate_id, "data": video, "mime_type": "video/webm"},
            "job_id": f"onboarding-video-{payload.candidate_id}-{batch}",
        })

    specs.append({
        "type": "profile-generation",
        "payload": {"candidate_id": payload.candidate_id, "profile_data": profile_updates},
        "job_id": f"onboarding-profile-{payload.candidate_id}-{batch}",
    })

    jobs = ai_worker_pool.add_jobs([{**spec, "priority": payload.priority} for spec in specs])

    for job in jobs:
        background_tasks.add_task(ai_worker_pool.run, job.id)

    return {
        "success": True,
        "data": {
            "profileComplete": False,
            "profile": serialize_profile(profile_updates),
            "jobs": [{"id": job.id, "status": "queued"} for job in jobs],
            "processingQueued": True,
        },
        "message": "Profile updates saved. AI processing queued for completion.",
    }


@router.get("/onboarding")
async def get_onboarding_status(
    candidate_id: str = Query(..., alias="candidateId"),
    job_id: Optional[str] = Query(None, alias="jobId"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Get onboarding status, or the status of one queued processing job."""
    ensure_can_access(current_user, candidate_id)

    if job_id:
        job_status = ai_worker_pool.get_job_status(job_id)
        if job_status is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
        return {"success": True, "data": job_status}

    candidate = get_candidate_or_404(db, candidate_id)
    return {
        "success": True,
        "data": {
            "profileComplete": bool(candidate.profile_complete),
            "hasResume": bool(candidate.resume_url),
            "hasVideo": bool(candidate.video_intro_url),
            "hasEmbeddings": bool(candidate.embedding),
            "lastProcessed": candidate.last_processed,
            "profile": candidate_view(candidate),
        },
    }


@router.put("/profile")
async def update_profile(
    data: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(Role.CANDIDATE)),
):
    """Manually update the current candidate's profile fields."""
    candidate = get_candidate_or_404(db, current_user.id)
    updates = data.model_dump(exclude_unset=True)
    candidate.apply_updates(updates)
    db.commit()
    db.refresh(candidate)
    return {"success": True, "data": candidate_view(candidate)}


@router.post("/resume", dependencies=[Depends(rate_limit("upload"))])
async def upload_resume(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(Role.CANDIDATE)),
):
    """
    Upload a resume (PDF, DOCX or TXT) and process it immediately.

    Stores the file, extracts profile fields and a summary, and writes them to
    the current candidate's profile.
    """
    try:
        mime_type = detect_mime_type(file.filename or "", file.content_type)
    except UnsupportedDocumentError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only PDF, DOCX or TXT files are accepted",
        )

    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    candidate = get_candidate_or_404(db, current_user.id)

    try:
        updates = await ai_orchestrator.process_resume(current_user.id, content, mime_type)
    except Exception as e:
        logger.error(f"Resume processing failed for candidate {current_user.id}: {e}")
        raise AppError(f"Error processing resume: {e}")

    candidate.apply_updates(updates)
    db.commit()
    db.refresh(candidate)

    return {"success": True, "data": candidate_view(candidate)}


@router.get("/job-recommendations", dependencies=[Depends(rate_limit("api"))])
async def job_recommendations(
    limit: int = Query(10, ge=1, le=50),
    include_applied: bool = Query(False, alias="includeApplied"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(Role.CANDIDATE)),
):
    """Active jobs ranked by similarity to the candidate's profile embedding."""
    candidate = get_candidate_or_404(db, current_user.id)
    ranked = await semantic_search.recommend_jobs(db, candidate, limit, include_applied)

    recommendations = [
        {
            **JobResponse.model_validate(job).model_dump(mode="json"),
            "aiMatchScore": round(score * 100),
        }
        for job, score in ranked
    ]
    return {
        "success": True,
        "data": {
            "recommendations": recommendations,
            "reasoning": f"Found {len(recommendations)} job(s) that are semantically similar to your profile.",
        },
    }


@router.get("/{candidate_id}")
async def get_candidate(
    candidate_id: str,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(
        require_roles(Role.CANDIDATE, *STAFF_ROLES)
    ),
):
    """Get a candidate profile. Candidates can only read their own."""
    ensure_can_access(current_user, candidate_id)
    candidate = get_candidate_or_404(db, candidate_id)
    return {"success": True, "data": candidate_view(candidate)}
