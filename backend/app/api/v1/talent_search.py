"""
Semantic talent search for recruiters.

The query is embedded with Gemini and compared against every stored candidate
profile embedding.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from app.api.deps import AuthenticatedUser, rate_limit, require_roles
from app.api.v1.candidates import CamelModel, candidate_view
from app.core.logging import get_logger
from app.core.security import Role
from app.db.session import get_db
from app.services import semantic_search

logger = get_logger("talent_search")

router = APIRouter()


# ============== Pydantic Schemas ==============


class SearchFilters(CamelModel):
    skills: Optional[list[str]] = None
    location: Optional[str] = None
    experience: Optional[Literal["entry_level", "mid_level", "senior", "executive"]] = None


class TalentSearchRequest(CamelModel):
    search_query: str = Field(min_length=1, max_length=500)
    result_count: int = Field(default=10, ge=1, le=50)
    min_score: float = Field(default=0.0, ge=0, le=1)
    filters: SearchFilters = SearchFilters()


# ============== API Endpoints ==============


@router.post("/talent-search", dependencies=[Depends(rate_limit("search"))])
async def talent_search(
    data: TalentSearchRequest,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(
        require_roles(Role.RECRUITER, Role.COMPANY_ADMIN, Role.SUPER_ADMIN)
    ),
):
    """Find candidates whose profiles are semantically closest to the query."""
    ranked = await semantic_search.search_candidates(
        db,
        data.search_query,
        limit=data.result_count,
        min_score=data.min_score,
        skills=data.filters.skills,
        location=data.filters.location,
        experience=data.filters.experience,
    )
    logger.info(f"Talent search by {current_user.id}: {len(ranked)} results")

    return {
        "success": True,
        "data": {
            "candidates": [
                {**candidate_view(candidate), "matchScore": score} for candidate, score in ranked
            ],
            "searchSummary": semantic_search.search_summary(ranked),
            "totalResults": len(ranked),
        },
    }
