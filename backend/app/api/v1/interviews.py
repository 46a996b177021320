"""
Interview API endpoints.

Recruiters schedule interviews for applications; the assigned interviewer
marks them completed and submits feedback exactly once.
"""

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.deps import AuthenticatedUser, get_current_user, require_roles
from app.api.pagination import paginate
from app.core.logging import get_logger
from app.core.security import Role
from app.db.session import get_db
from app.models import Application, Interview, User

logger = get_logger("interviews")

router = APIRouter()

SCHEDULER_ROLES = (Role.RECRUITER, Role.COMPANY_ADMIN, Role.SUPER_ADMIN)
FEEDBACK_READER_ROLES = (Role.INTERVIEWER, Role.RECRUITER, Role.COMPANY_ADMIN, Role.SUPER_ADMIN)


# ============== Pydantic Schemas ==============


class InterviewCreate(BaseModel):
    application_id: str
    interviewer_id: str
    scheduled_at: datetime
    duration_minutes: int = Field(default=60, ge=15, le=480)
    interview_type: Literal["video", "phone", "onsite"] = "video"
    meeting_link: Optional[str] = None
    notes: Optional[str] = None


class InterviewStatusUpdate(BaseModel):
    status: Literal["scheduled", "completed", "cancelled"]


class FeedbackRequest(BaseModel):
    """Schema for interviewer feedback (ratings are 1-5)."""

    overall_rating: int = Field(ge=1, le=5)
    recommendation: Literal["Strong Hire", "Hire", "Hire with Reservations", "No Hire"]
    technical_skills: Optional[int] = Field(default=None, ge=1, le=5)
    communication: Optional[int] = Field(default=None, ge=1, le=5)
    problem_solving: Optional[int] = Field(default=None, ge=1, le=5)
    cultural_fit: Optional[int] = Field(default=None, ge=1, le=5)
    strengths: Optional[str] = None
    weaknesses: Optional[str] = None
    detailed_feedback: Optional[str] = None
    questions_asked: list[str] = []


class InterviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str
    candidate_id: Optional[str]
    job_id: Optional[str]
    company_id: Optional[str]
    interviewer_id: str
    scheduled_at: datetime
    duration_minutes: int
    interview_type: str
    status: str
    meeting_link: Optional[str]
    notes: Optional[str]
    has_feedback: bool = False
    rating: Optional[int]
    recommendation: Optional[str]


# ============== Helper Functions ==============


def to_response(interview: Interview) -> InterviewResponse:
    response = InterviewResponse.model_validate(interview)
    response.has_feedback = interview.feedback is not None
    return response


def get_interview_or_404(db: Session, interview_id: str) -> Interview:
    interview = db.get(Interview, interview_id)
    if interview is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interview not found")
    return interview


def can_view(current_user: AuthenticatedUser, interview: Interview) -> bool:
    if current_user.role == Role.SUPER_ADMIN:
        return True
    if current_user.role == Role.INTERVIEWER:
        return interview.interviewer_id == current_user.id
    if current_user.role == Role.CANDIDATE:
        return interview.candidate_id == current_user.id
    return current_user.company_id is not None and interview.company_id == current_user.company_id


# ============== API Endpoints ==============


@router.post("", status_code=status.HTTP_201_CREATED)
async def schedule_interview(
    data: InterviewCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(*SCHEDULER_ROLES)),
):
    """Schedule an interview for an application."""
    application = db.get(Application, data.application_id)
    if application is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    if current_user.role != Role.SUPER_ADMIN and application.company_id != current_user.company_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    if application.status in ("hired", "rejected"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot schedule an interview for a {application.status} application",
        )

    # Feedback is interviewer-only, so nobody else can be assigned
    interviewer = db.get(User, data.interviewer_id)
    if interviewer is None or interviewer.role != Role.INTERVIEWER.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interviewer not found")
    if interviewer.company_id != application.company_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Interviewer belongs to a different company",
        )

    interview = Interview(
        **data.model_dump(),
        candidate_id=application.candidate_id,
        job_id=application.job_id,
        company_id=application.company_id,
    )
    db.add(interview)
    db.commit()
    db.refresh(interview)

    logger.info(f"Interview {interview.id} scheduled for application {application.id}")
    return {"success": True, "data": to_response(interview)}


@router.get("")
async def list_interviews(
    status_filter: Optional[Literal["scheduled", "completed", "cancelled"]] = Query(None, alias="status"),
    upcoming: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """List interviews visible to the current user, soonest first."""
    interviews = db.query(Interview).order_by(Interview.scheduled_at.asc()).all()
    interviews = [interview for interview in interviews if can_view(current_user, interview)]

    if status_filter:
        interviews = [interview for interview in interviews if interview.status == status_filter]
    if upcoming:
        now = datetime.utcnow()
        interviews = [interview for interview in interviews if interview.scheduled_at >= now]

    page_items, pagination = paginate(interviews, page, limit)
    return {"data": [to_response(interview) for interview in page_items], "pagination": pagination}


@router.get("/{interview_id}")
async def get_interview(
    interview_id: str,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    interview = get_interview_or_404(db, interview_id)
    if not can_view(current_user, interview):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return {"success": True, "data": to_response(interview)}


@router.put("/{interview_id}/status")
async def update_interview_status(
    interview_id: str,
    data: InterviewStatusUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(Role.INTERVIEWER, *SCHEDULER_ROLES)),
):
    interview = get_interview_or_404(db, interview_id)
    if not can_view(current_user, interview):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    if interview.feedback is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Interview already has feedback",
        )

    interview.status = data.status
    interview.updated_at = datetime.utcnow()
    db.commit()
    return {"success": True, "data": to_response(interview)}


@router.get("/{interview_id}/feedback")
async def get_feedback(
    interview_id: str,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(*FEEDBACK_READER_ROLES)),
):
    interview = get_interview_or_404(db, interview_id)
    if not can_view(current_user, interview):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    if interview.feedback is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No feedback submitted for this interview",
        )
    return {"success": True, "data": {"interviewId": interview_id, "feedback": interview.feedback}}


@router.post("/{interview_id}/feedback")
async def submit_feedback(
    interview_id: str,
    data: FeedbackRequest,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(Role.INTERVIEWER)),
):
    """Submit feedback; only the assigned interviewer, only once, only after completion."""
    interview = get_interview_or_404(db, interview_id)

    if interview.interviewer_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the assigned interviewer can submit feedback",
        )
    if interview.status != "completed":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot submit feedback for an incomplete interview",
        )
    if interview.feedback is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Feedback has already been submitted for this interview",
        )

    now = datetime.utcnow()
    interview.feedback = {
        **data.model_dump(),
        "submitted_at": now.isoformat(),
        "submitted_by": current_user.id,
    }
    interview.rating = data.overall_rating
    interview.recommendation = data.recommendation
    interview.updated_at = now

    application = db.get(Application, interview.application_id)
    if application is not None and application.status in ("pending", "reviewed"):
        application.record_status("interviewed", current_user.id, "Interview feedback submitted")

    db.commit()

    logger.info(
        f"Interview {interview_id} feedback by {current_user.id}: "
        f"{data.overall_rating}/5, {data.recommendation}"
    )
    return {
        "success": True,
        "data": {"interviewId": interview_id, "feedback": interview.feedback},
    }
