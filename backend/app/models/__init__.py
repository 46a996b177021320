from app.models.user import User
from app.models.company import Company
from app.models.candidate import CandidateProfile
from app.models.job import Job, JOB_STATUSES
from app.models.application import Application, APPLICATION_STATUSES
from app.models.interview import Interview, INTERVIEW_STATUSES

__all__ = [
    "User",
    "Company",
    "CandidateProfile",
    "Job",
    "JOB_STATUSES",
    "Application",
    "APPLICATION_STATUSES",
    "Interview",
    "INTERVIEW_STATUSES",
]
