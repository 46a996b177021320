"""
Admin API endpoints.

Tenant and staff management. Super admins manage every company; company
admins can only add recruiters and interviewers to their own company.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.deps import AuthenticatedUser, require_roles
from app.api.pagination import paginate
from app.core.logging import get_logger
from app.core.security import Role, get_password_hash
from app.db.session import get_db
from app.models import Company, User

logger = get_logger("admin")

router = APIRouter()

StaffRole = Literal["company_admin", "recruiter", "interviewer"]


# ============== Pydantic Schemas ==============


class CompanyCreate(BaseModel):
    name: str = Field(min_length=2)
    website: Optional[str] = None
    plan: Literal["free", "starter", "professional", "enterprise"] = "free"


class CompanyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    website: Optional[str]
    plan: str
    status: str


class StaffCreate(BaseModel):
    email: str
    password: str = Field(min_length=8)
    full_name: str
    role: StaffRole
    company_id: Optional[str] = None


class RoleUpdate(BaseModel):
    role: Literal["super_admin", "company_admin", "recruiter", "interviewer", "candidate"]
    company_id: Optional[str] = None


class AdminUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: Optional[str]
    role: str
    company_id: Optional[str]


def _get_company_or_404(db: Session, company_id: str) -> Company:
    company = db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


# ============== API Endpoints ==============


@router.get("/companies")
async def list_companies(
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(Role.SUPER_ADMIN)),
):
    companies = db.query(Company).order_by(Company.created_at.asc()).all()
    return {"total": len(companies), "companies": [CompanyResponse.model_validate(c) for c in companies]}


@router.post("/companies", status_code=status.HTTP_201_CREATED)
async def create_company(
    data: CompanyCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(Role.SUPER_ADMIN)),
):
    company = Company(**data.model_dump())
    db.add(company)
    db.commit()
    db.refresh(company)

    logger.info(f"Company {company.id} ({company.name}) created by {current_user.id}")
    return {"success": True, "data": CompanyResponse.model_validate(company)}


@router.get("/users")
async def list_users(
    role: Optional[str] = None,
    company_id: Optional[str] = Query(None, alias="companyId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(Role.SUPER_ADMIN)),
):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if company_id:
        query = query.filter(User.company_id == company_id)

    page_items, pagination = paginate(query.order_by(User.created_at.asc()).all(), page, limit)
    return {"data": [AdminUser.model_validate(u) for u in page_items], "pagination": pagination}


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_staff_user(
    data: StaffCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(Role.SUPER_ADMIN, Role.COMPANY_ADMIN)),
):
    """Create a staff account attached to a company."""
    if current_user.role == Role.COMPANY_ADMIN:
        if data.role == Role.COMPANY_ADMIN.value:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        company_id = current_user.company_id
    else:
        company_id = data.company_id

    if not company_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Staff accounts require a company",
        )
    _get_company_or_404(db, company_id)

    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(
        email=email,
        hashed_password=get_password_hash(data.password),
        full_name=data.full_name,
        role=data.role,
        company_id=company_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Staff user {user.id} ({user.role}) created in company {company_id}")
    return {"success": True, "data": AdminUser.model_validate(user)}


@router.put("/users/{user_id}/role")
async def update_user_role(
    user_id: str,
    data: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_roles(Role.SUPER_ADMIN)),
):
    """
    Change a user's role and company.

    The new claims only take effect once the user logs in again.
    """
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if data.company_id:
        _get_company_or_404(db, data.company_id)
    elif data.role in ("company_admin", "recruiter", "interviewer"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Staff accounts require a company",
        )

    previous = user.role
    user.role = data.role
    user.company_id = data.company_id
    db.commit()

    logger.info(f"User {user_id} role {previous} -> {data.role} by {current_user.id}")
    return {"success": True, "data": AdminUser.model_validate(user)}
