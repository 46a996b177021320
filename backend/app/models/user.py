import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.db.base import Base


def new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    """User account; role and company_id are mirrored into token claims."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String)
    role = Column(String, default="candidate")  # see app.core.security.Role
    company_id = Column(String, ForeignKey("companies.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    company = relationship("Company", back_populates="users")
    candidate_profile = relationship(
        "CandidateProfile", back_populates="user", uselist=False
    )
