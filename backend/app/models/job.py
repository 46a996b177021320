from datetime import datetime

from sqlalchemy import Column, String, ForeignKey, JSON, DateTime, Text
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.user import new_id

JOB_STATUSES = ("draft", "active", "paused", "closed", "archived")


class Job(Base):
    """Job posting owned by a recruiter within a company."""

    __tablename__ = "jobs"

    id = Column(String, primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    department = Column(String)
    location = Column(String)
    employment_type = Column(String, default="full_time")
    description = Column(Text)
    requirements = Column(JSON, default=list)
    skills = Column(JSON, default=list)
    salary_range = Column(String)
    status = Column(String, default="draft")  # one of JOB_STATUSES

    company_id = Column(String, ForeignKey("companies.id"), index=True)
    recruiter_id = Column(String, ForeignKey("users.id"), index=True)

    # Counters: {"views": int, "applications": int}
    stats = Column(JSON, default=lambda: {"views": 0, "applications": 0})

    # Filled lazily for job recommendations; cleared when the posting is edited
    embedding = Column(JSON, nullable=True)
    embedding_model = Column(String)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    company = relationship("Company", back_populates="jobs")
    applications = relationship("Application", back_populates="job")

    def bump_stat(self, name: str, amount: int = 1) -> None:
        # JSON columns are not mutation-tracked, so assign a new dict
        stats = dict(self.stats or {})
        stats[name] = stats.get(name, 0) + amount
        self.stats = stats
