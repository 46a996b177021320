"""
Job posting API endpoints.

Recruiters and company admins manage postings for their own company;
candidates only ever see active postings.
"""

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.deps import AuthenticatedUser, get_current_user, rate_limit, require_roles
from app.api.pagination import paginate
from app.core.errors import AppError
from app.core.logging import get_logger
from app.core.security import Role
from app.db.session import get_db
from app.models import Job
from app.services.ai import flows
from app.workers.worker_pool import ai_worker_pool

logger = get_logger("jobs")

router = APIRouter()

JobStatus = Literal["draft", "active", "paused", "closed", "archived"]
MANAGER_ROLES = (Role.RECRUITER, Role.COMPANY_ADMIN, Role.SUPER_ADMIN)


# ============== Pydantic Schemas ==============


class JobCreate(BaseModel):
    title: str = Field(min_length=2)
    department: Optional[str] = None
    location: Optional[str] = None
    employment_type: Literal["full_time", "part_time", "contract", "freelance", "internship"] = "full_time"
    description: Optional[str] = None
    requirements: list[str] = []
    skills: list[str] = []
    salary_range: Optional[str] = None
    status: JobStatus = "draft"
    company_id: Optional[str] = None  # only honoured for super admins


class JobUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=2)
    department: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[Literal["full_time", "part_time", "contract", "freelance", "internship"]] = None
    description: Optional[str] = None
    requirements: Optional[list[str]] = None
    skills: Optional[list[str]] = None
    salary_range: Optional[str] = None


class JobStatusUpdate(BaseModel):
    status: JobStatus


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    department: Optional[str]
    location: Optional[str]
    employment_type: Optional[str]
    description: Optional[str]
    requirements: list[str] = []
    skills: list[str] = []
    salary_range: Optional[str]
    status: str
    company_id: Optional[str]
    recruiter_id: Optional[str]
    stats: dict = {}
    created_at: datetime
    updated_at: datetime


class GenerateDescriptionRequest(BaseModel):
    job_title: str
    job_level: str
    department: str
    location: str
    responsibilities: str
    qualifications: str


# ============== Helper Functions ==============


def get_job_or_404(db: Session, job_id: str) -> Job:
    job = db.get(Job, job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job


def ensure_can_manage(current_user: AuthenticatedUser, job: Job) -> None:
    if current_user.role == Role.SUPER_ADMIN:
        return
    if current_user.company_id is None or current_user.company_id != job.company_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


# ============== API Endpoints ==============


@router.get("/queue-stats")
async def queue_stats(
    current_user: AuthenticatedUser = Depends(require_roles(Role.COMPANY_ADMIN, Role.SUPER_ADMIN)),
):
    """In-memory AI worker pool statistics."""
    return {"success": True, "data": ai_worker_pool.get_queue_stats()}


@router.post("/queue/pause")
async def pause_queue(
    current_user: AuthenticatedUser = Depends(require_roles(Role.SUPER_ADMIN)),
):
    """Hold AI job execution; queued jobs stay pending."""
    ai_worker_pool.pause()
    logger.info(f"AI queue paused by {current_user.id}")
    return {"success": True, "data": ai_worker_pool.get_queue_stats()}


@router.post("/queue/resume")
async def resume_queue(
    background_tasks: BackgroundTasks,
    current_user: AuthenticatedUser = Depends(require_roles(Role.SUPER_ADMIN)),
):
    """Resume AI job execution and run the jobs held while paused."""
    deferred = ai_worker_pool.resume()
    for job_id in deferred:
        background_tasks.add_task(ai_worker_pool.run, job_id)
    logger.info(f"AI queue resumed by {current_user.id}, {len(deferred)} jobs rescheduled")
    return {"success": True, "data": {"rescheduled": deferred}}


@router.post("/generate", dependencies=[Depends(rate_limit("ai"))])
async def generate_description(
    data: GenerateDescriptionRequest,
    current_user: AuthenticatedUser = Depends(require_roles(*MANAGER_ROLES)),
):
    """Draft a job description with AI."""
    try:
        result = await flows.generate_job_description(flows.JobDescriptionInput(**data.model_dump()))
    except Exception as e:
        logger.error(f"Job description generation failed: {e}")
        raise AppError(f"Failed to generate job description: {e}")
    return {"success": True, "data": {"jobDescription": result.job_description}}


@router.get("", dependencies=[Depends(rate_limit("search"))])
async def list_jobs(
    status_filter: Optional[JobStatus] = Query(None, alias="status"),
    department: Optional[str] = None,
    company_id: Optional[str] = Query(None, alias="companyId"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """
    List job postings.

    Candidates see active postings from every company; staff see all
    postings of their own company; super admins see everything.
    """
    jobs = db.query(Job).order_by(Job.created_at.desc()).all()

    if current_user.role == Role.CANDIDATE:
        jobs = [job for job in jobs if job.status == "active"]
    elif current_user.role != Role.SUPER_ADMIN:
        jobs = [job for job in jobs if job.company_id == current_user.company_id]

    if status_filter:
        jobs = [job for job in jobs if job.status == status_filter]
    if department:
        jobs = [job for job in jobs if (job.department or "").lower() == department.lower()]
    if company_id:
        jobs = [job for job in jobs if job.company_id == company_id]
    if search:
        needle = search.lower()
        jobs = [
            job for job in jobs
            if needle in job.title.lower()
            or needle in (job.description or "").lower()
            or any(needle in skill.lower() for skill in job.skills or [])
        ]

    page_items, pagination = paginate(jobs, page, limit)
    return {
        "data": [JobResponse.model_validate(job) for job in page_items],
        "pagination": pagination,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_job(
    data: JobCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(*MANAGER_ROLES)),
):
    """Create a job posting for the current user's company."""
    company_id = data.company_id if current_user.role == Role.SUPER_ADMIN else current_user.company_id
    if not company_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Company association required",
        )

    job = Job(
        **data.model_dump(exclude={"company_id"}),
        company_id=company_id,
        recruiter_id=current_user.id,
    )
    db.add(job)
    db.commit()
    db.refresh(job)

    logger.info(f"Job {job.id} created by {current_user.id} ({job.status})")
    return {"success": True, "data": JobResponse.model_validate(job)}


@router.get("/{job_id}")
async def get_job(
    job_id: str,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Get a job posting; candidate views are counted."""
    job = get_job_or_404(db, job_id)

    if current_user.role == Role.CANDIDATE:
        if job.status != "active":
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
        job.bump_stat("views")
        db.commit()
        db.refresh(job)
    else:
        ensure_can_manage(current_user, job)

    return {"success": True, "data": JobResponse.model_validate(job)}


@router.put("/{job_id}")
async def update_job(
    job_id: str,
    data: JobUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(*MANAGER_ROLES)),
):
    job = get_job_or_404(db, job_id)
    ensure_can_manage(current_user, job)

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(job, key, value)
    job.embedding = None
    job.embedding_model = None
    job.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(job)

    return {"success": True, "data": JobResponse.model_validate(job)}


@router.put("/{job_id}/status")
async def update_job_status(
    job_id: str,
    data: JobStatusUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(*MANAGER_ROLES)),
):
    """Move a posting between draft/active/paused/closed/archived."""
    job = get_job_or_404(db, job_id)
    ensure_can_manage(current_user, job)

    if job.status == "archived" and data.status != "archived":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Archived jobs cannot be reopened",
        )

    previous = job.status
    job.status = data.status
    job.updated_at = datetime.utcnow()
    db.commit()

    logger.info(f"Job {job_id} status {previous} -> {data.status} by {current_user.id}")
    return {
        "success": True,
        "data": {"jobId": job_id, "previousStatus": previous, "status": data.status},
    }
