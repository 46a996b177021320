from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, Integer, ForeignKey, JSON, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.user import new_id

APPLICATION_STATUSES = ("pending", "reviewed", "interviewed", "hired", "rejected")


class Application(Base):
    """A candidate's application to a job, scored by the matching flow."""

    __tablename__ = "applications"
    __table_args__ = (UniqueConstraint("candidate_id", "job_id", name="uq_candidate_job"),)

    id = Column(String, primary_key=True, default=new_id)
    candidate_id = Column(String, ForeignKey("candidates.id"), index=True)
    job_id = Column(String, ForeignKey("jobs.id"), index=True)
    company_id = Column(String, ForeignKey("companies.id"), index=True)

    status = Column(String, default="pending")  # one of APPLICATION_STATUSES
    cover_letter = Column(Text)

    ai_match_score = Column(Integer, nullable=True)  # 0-100
    ai_analysis = Column(JSON, nullable=True)

    # [{ "status": str, "changed_by": str, "reason": str | None, "at": iso8601 }, ...]
    status_history = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow)

    candidate = relationship("CandidateProfile", back_populates="applications")
    job = relationship("Job", back_populates="applications")
    interviews = relationship("Interview", back_populates="application")

    def record_status(self, status: str, changed_by: str, reason: Optional[str] = None) -> None:
        now = datetime.utcnow()
        self.status = status
        self.status_history = list(self.status_history or []) + [
            {"status": status, "changed_by": changed_by, "reason": reason, "at": now.isoformat()}
        ]
        self.updated_at = now
