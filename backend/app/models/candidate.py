from datetime import datetime

from sqlalchemy import Column, String, ForeignKey, JSON, Boolean, DateTime, Text
from sqlalchemy.orm import relationship

from app.db.base import Base


class CandidateProfile(Base):
    """
    Candidate profile keyed by the owning user id.

    Written by onboarding and by the AI pipeline; rows are only ever updated.
    """

    __tablename__ = "candidates"

    id = Column(String, ForeignKey("users.id"), primary_key=True)

    # 1. Basic info
    first_name = Column(String)
    last_name = Column(String)
    email = Column(String)
    phone = Column(String)
    location = Column(String)

    # 2. Extracted profile fields
    current_title = Column(String)
    experience = Column(String)  # "entry_level", "mid_level", "senior", "executive"
    skills = Column(JSON, default=list)
    linkedin_url = Column(String)
    portfolio_url = Column(String)
    expected_salary = Column(String)
    preferred_locations = Column(JSON, default=list)
    preferred_job_types = Column(JSON, default=list)
    professional_summary = Column(Text)

    # 3. Resume & video
    resume_url = Column(String)
    resume_text = Column(Text)
    resume_summary = Column(Text)
    video_intro_url = Column(String)
    video_analysis = Column(JSON, nullable=True)

    # 4. Semantic search
    embedding = Column(JSON, nullable=True)
    embedding_model = Column(String)

    # 5. Flags & meta
    resume_uploaded = Column(Boolean, default=False)
    video_intro_recorded = Column(Boolean, default=False)
    profile_complete = Column(Boolean, default=False)
    last_processed = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="candidate_profile")
    applications = relationship("Application", back_populates="candidate")

    def apply_updates(self, updates: dict) -> None:
        """Soft-update known columns from a dict; unknown keys are ignored."""
        for key, value in updates.items():
            if hasattr(type(self), key) and key not in ("id", "created_at"):
                setattr(self, key, value)
        self.updated_at = datetime.utcnow()

    def to_dict(self) -> dict:
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }
