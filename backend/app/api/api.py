"""
API Router Aggregator.

Combines all v1 API routers into a single router for the main app.
"""

from fastapi import APIRouter

from app.api.v1 import (
    admin,
    applications,
    auth,
    candidates,
    interviews,
    jobs,
    processing,
    talent_search,
)

api_router = APIRouter()

# Include all v1 routers with their prefixes and tags
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

api_router.include_router(
    candidates.router,
    prefix="/candidates",
    tags=["Candidates"],
)

api_router.include_router(
    processing.router,
    prefix="/ai/processing",
    tags=["AI Processing"],
)

api_router.include_router(
    talent_search.router,
    prefix="/ai",
    tags=["AI Search"],
)

api_router.include_router(
    jobs.router,
    prefix="/jobs",
    tags=["Jobs"],
)

api_router.include_router(
    applications.router,
    prefix="/applications",
    tags=["Applications"],
)

api_router.include_router(
    interviews.router,
    prefix="/interviews",
    tags=["Interviews"],
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["Admin"],
)
