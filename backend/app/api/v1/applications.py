"""
Application API endpoints.

Candidates apply to active jobs; recruiters move applications through the
pending → reviewed → interviewed → hired | rejected pipeline. Every new
application queues a low-priority matching job that fills in the AI score.
"""

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from app.api.deps import AuthenticatedUser, get_current_user, require_roles
from app.api.pagination import paginate
from app.core.logging import get_logger
from app.core.security import Role
from app.db.session import get_db
from app.models import Application, CandidateProfile, Job
from app.workers.worker_pool import ai_worker_pool

logger = get_logger("applications")

router = APIRouter()

ApplicationStatus = Literal["pending", "reviewed", "interviewed", "hired", "rejected"]
REVIEWER_ROLES = (Role.RECRUITER, Role.COMPANY_ADMIN, Role.SUPER_ADMIN)


# ============== Pydantic Schemas ==============


class ApplicationCreate(BaseModel):
    job_id: str
    cover_letter: Optional[str] = None


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    reason: Optional[str] = None


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    candidate_id: str
    job_id: str
    company_id: Optional[str]
    status: str
    cover_letter: Optional[str]
    ai_match_score: Optional[int]
    ai_analysis: Optional[dict]
    status_history: list[dict] = []
    created_at: datetime
    updated_at: datetime


# ============== Helper Functions ==============


def get_application_or_404(db: Session, application_id: str) -> Application:
    application = db.get(Application, application_id)
    if application is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    return application


def can_view(current_user: AuthenticatedUser, application: Application) -> bool:
    if current_user.role == Role.SUPER_ADMIN:
        return True
    if current_user.role == Role.CANDIDATE:
        return application.candidate_id == current_user.id
    return current_user.company_id is not None and application.company_id == current_user.company_id


# ============== API Endpoints ==============


@router.get("")
async def list_applications(
    candidate_id: Optional[str] = Query(None, alias="candidateId"),
    job_id: Optional[str] = Query(None, alias="jobId"),
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    min_score: Optional[int] = Query(None, alias="minScore", ge=0, le=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """List applications visible to the current user, newest first."""
    applications = db.query(Application).order_by(Application.created_at.desc()).all()
    applications = [app for app in applications if can_view(current_user, app)]

    if candidate_id:
        applications = [app for app in applications if app.candidate_id == candidate_id]
    if job_id:
        applications = [app for app in applications if app.job_id == job_id]
    if status_filter:
        applications = [app for app in applications if app.status == status_filter]
    if min_score is not None:
        applications = [
            app for app in applications
            if app.ai_match_score is not None and app.ai_match_score >= min_score
        ]

    page_items, pagination = paginate(applications, page, limit)
    return {
        "data": [ApplicationResponse.model_validate(app) for app in page_items],
        "pagination": pagination,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_application(
    data: ApplicationCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(Role.CANDIDATE)),
):
    """Apply to an active job as the current candidate."""
    candidate = db.get(CandidateProfile, current_user.id)
    if candidate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidate not found")

    job = db.get(Job, data.job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    if job.status != "active":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Job is not accepting applications",
        )

    existing = (
        db.query(Application)
        .filter(Application.candidate_id == current_user.id, Application.job_id == job.id)
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You have already applied for this job",
        )

    application = Application(
        candidate_id=current_user.id,
        job_id=job.id,
        company_id=job.company_id,
        cover_letter=data.cover_letter,
        status_history=[],
    )
    application.record_status("pending", current_user.id, "Application submitted")
    db.add(application)
    job.bump_stat("applications")
    db.commit()
    db.refresh(application)

    match_job = ai_worker_pool.add_job(
        "matching", {"application_id": application.id}, priority="low"
    )
    background_tasks.add_task(ai_worker_pool.run, match_job.id)

    logger.info(f"Candidate {current_user.id} applied to job {job.id} ({application.id})")
    return {
        "success": True,
        "message": "Application submitted successfully",
        "data": ApplicationResponse.model_validate(application),
        "matchingJobId": match_job.id,
    }


@router.get("/{application_id}")
async def get_application(
    application_id: str,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    application = get_application_or_404(db, application_id)
    if not can_view(current_user, application):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return {"success": True, "data": ApplicationResponse.model_validate(application)}


@router.put("/{application_id}/status")
async def update_application_status(
    application_id: str,
    data: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(*REVIEWER_ROLES)),
):
    """Update an application's status and append it to the history."""
    application = get_application_or_404(db, application_id)
    if not can_view(current_user, application):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    application.record_status(data.status, current_user.id, data.reason)
    db.commit()

    logger.info(f"Application {application_id} status -> {data.status} by {current_user.id}")
    return {
        "success": True,
        "data": {
            "applicationId": application_id,
            "status": data.status,
            "updatedBy": current_user.id,
            "timestamp": datetime.utcnow().isoformat(),
        },
    }
