from datetime import datetime

from sqlalchemy import Column, String, Integer, ForeignKey, JSON, DateTime, Text
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.user import new_id

INTERVIEW_STATUSES = ("scheduled", "completed", "cancelled")


class Interview(Base):
    """
    Scheduled interview for an application.

    ``feedback`` is written exactly once, by the assigned interviewer.
    """

    __tablename__ = "interviews"

    id = Column(String, primary_key=True, default=new_id)
    application_id = Column(String, ForeignKey("applications.id"), index=True)
    candidate_id = Column(String, index=True)
    job_id = Column(String, index=True)
    company_id = Column(String, index=True)
    interviewer_id = Column(String, ForeignKey("users.id"), index=True)

    scheduled_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, default=60)
    interview_type = Column(String, default="video")  # "video", "phone", "onsite"
    status = Column(String, default="scheduled")  # one of INTERVIEW_STATUSES
    meeting_link = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    feedback = Column(JSON, nullable=True)
    rating = Column(Integer, nullable=True)
    recommendation = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    application = relationship("Application", back_populates="interviews")
