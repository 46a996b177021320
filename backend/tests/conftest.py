"""Shared fixtures: in-memory database, temp storage, users and tokens."""

import os
import tempfile

# Settings are read at import time, so the environment must be ready first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="persona-recruit-storage-")
os.environ["GEMINI_API_KEY"] = "test-key"

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.core.rate_limit import rate_limit_store
from app.core.security import Role, build_claims, create_access_token, get_password_hash
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.main import app
from app.models import CandidateProfile, Company, Job, User
from app.workers.worker_pool import ai_worker_pool

PASSWORD = "password123"


@pytest.fixture(scope="session")
def password_hash():
    return get_password_hash(PASSWORD)


@pytest.fixture(autouse=True)
def reset_state():
    """Fresh tables, rate-limit counters and job registry for every test."""
    Base.metadata.create_all(bind=engine)
    rate_limit_store.clear()
    ai_worker_pool.clear()
    yield
    Base.metadata.drop_all(bind=engine)
    rate_limit_store.clear()
    ai_worker_pool.clear()


@pytest.fixture(autouse=True)
def offline_genai():
    """No test ever reaches the Gemini API; flows under test patch what they need."""
    with patch("app.services.ai.flows.genai") as mocked:
        yield mocked


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db, password_hash):
    def _make_user(role: Role, email: str, company_id=None, full_name="Test User") -> User:
        user = User(
            email=email,
            hashed_password=password_hash,
            full_name=full_name,
            role=role.value,
            company_id=company_id,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        if role == Role.CANDIDATE:
            first, _, last = full_name.partition(" ")
            db.add(CandidateProfile(id=user.id, email=email, first_name=first, last_name=last or None))
            db.commit()
        return user

    return _make_user


def _auth_headers(user: User) -> dict:
    token = create_access_token(build_claims(user.id, user.email, user.role, user.company_id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Bearer header carrying the user's role and company claims."""
    return _auth_headers


@pytest.fixture
def company(db):
    company = Company(name="Acme Corp")
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


@pytest.fixture
def other_company(db):
    company = Company(name="Globex")
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


@pytest.fixture
def super_admin(make_user):
    return make_user(Role.SUPER_ADMIN, "root@example.com")


@pytest.fixture
def company_admin(make_user, company):
    return make_user(Role.COMPANY_ADMIN, "owner@acme.com", company.id)


@pytest.fixture
def recruiter(make_user, company):
    return make_user(Role.RECRUITER, "recruiter@acme.com", company.id)


@pytest.fixture
def interviewer(make_user, company):
    return make_user(Role.INTERVIEWER, "interviewer@acme.com", company.id)


@pytest.fixture
def candidate(make_user):
    return make_user(Role.CANDIDATE, "jane@example.com", full_name="Jane Doe")


@pytest.fixture
def active_job(db, company, recruiter):
    job = Job(
        title="Backend Engineer",
        department="Engineering",
        location="Remote",
        skills=["Python", "SQL"],
        requirements=["3+ years"],
        status="active",
        company_id=company.id,
        recruiter_id=recruiter.id,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job
