from datetime import datetime

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.user import new_id


class Company(Base):
    """Tenant owning jobs, recruiters and interviewers."""

    __tablename__ = "companies"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    website = Column(String, nullable=True)
    plan = Column(String, default="free")  # "free", "starter", "professional", "enterprise"
    status = Column(String, default="active")  # "active", "suspended"
    created_at = Column(DateTime, default=datetime.utcnow)

    users = relationship("User", back_populates="company")
    jobs = relationship("Job", back_populates="company")
