"""
Authentication API endpoints.

Handles candidate registration and login with JWT token generation. Tokens
carry the ``role`` and ``companyId`` custom claims used by every role guard.
"""

import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.orm import Session

from app.api.deps import AuthenticatedUser, get_current_user, rate_limit
from app.core.security import (
    Role,
    build_claims,
    create_access_token,
    get_password_hash,
    verify_password,
)
from app.db.session import get_db
from app.models import CandidateProfile, User

router = APIRouter()


# ============== Pydantic Schemas ==============


class UserRegister(BaseModel):
    """Schema for candidate self-registration."""

    email: str
    password: str
    full_name: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate email format."""
        email_pattern = r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$"
        if not re.match(email_pattern, v):
            raise ValueError("Invalid email format")
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v


class UserResponse(BaseModel):
    """Schema for user response (without password)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: Optional[str] = None
    role: str
    company_id: Optional[str] = None


class Token(BaseModel):
    """Schema for JWT token response."""

    access_token: str
    token_type: str = "bearer"
    role: str


# ============== Helper Functions ==============


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get a user by email address."""
    return db.query(User).filter(User.email == email.lower()).first()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def issue_token(user: User) -> Token:
    claims = build_claims(user.id, user.email, user.role, user.company_id)
    return Token(access_token=create_access_token(claims), role=user.role)


# ============== API Endpoints ==============


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("auth"))],
)
async def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """
    Register a new candidate.

    Staff accounts (recruiters, interviewers, admins) are provisioned by a
    super admin; self-registration always yields a candidate with an empty
    profile.
    """
    if get_user_by_email(db, user_data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    new_user = User(
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        full_name=user_data.full_name,
        role=Role.CANDIDATE.value,
    )
    db.add(new_user)
    db.flush()

    first_name, _, last_name = user_data.full_name.partition(" ")
    db.add(
        CandidateProfile(
            id=new_user.id,
            email=new_user.email,
            first_name=first_name or None,
            last_name=last_name or None,
        )
    )
    db.commit()
    db.refresh(new_user)

    return new_user


@router.post("/login", response_model=Token, dependencies=[Depends(rate_limit("auth"))])
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """
    Login and get a JWT access token.

    Uses OAuth2 password flow. Send username (email) and password as form data.
    """
    user = authenticate_user(db, form_data.username, form_data.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return issue_token(user)


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the current authenticated user."""
    user = db.get(User, current_user.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
