from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import get_logger
from app.core.request_limits import RequestLimitsMiddleware
from app.db.base import Base
from app.db.session import engine

# Import all models so SQLAlchemy can discover them for table creation
from app.models import User, Company, CandidateProfile, Job, Application, Interview  # noqa: F401

# Registers the AI job handlers on the shared worker pool
from app.workers import handlers  # noqa: F401

# Import API router
from app.api.api import api_router
from app.services.storage import bucket
from app.workers.worker_pool import ai_worker_pool

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup."""
    Base.metadata.create_all(bind=engine)
    logger.info(f"{settings.APP_NAME} started with job types {ai_worker_pool.job_types}")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="AI-Powered Recruitment Platform with Candidate Onboarding and Matching",
    version="1.0.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# CORS Middleware - allowlist from env (comma-separated)
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in settings.BACKEND_CORS_ORIGINS.split(",")
    if origin.strip()
]

app.add_middleware(RequestLimitsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {"message": f"Welcome to {settings.APP_NAME} API"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "queue": ai_worker_pool.get_queue_stats()["total"]}


# Include API router with /api prefix
app.include_router(api_router, prefix="/api")

# Uploaded files, addressed by the URLs the bucket hands out
bucket.root.mkdir(parents=True, exist_ok=True)
app.mount(settings.STORAGE_BASE_URL, StaticFiles(directory=str(bucket.root), check_dir=False), name="files")
