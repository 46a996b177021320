"""
AI processing job endpoints.

Clients poll these after onboarding or applying to see how their queued
worker-pool jobs are doing. Job state is in-memory only.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import AuthenticatedUser, get_current_user
from app.workers.worker_pool import ai_worker_pool

router = APIRouter()


@router.get("/{job_id}")
async def get_processing_job(
    job_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Return the current state of a processing job."""
    job_status = ai_worker_pool.get_job_status(job_id)
    if job_status is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return {"success": True, "data": job_status}


@router.post("/{job_id}/cancel")
async def cancel_processing_job(
    job_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Cancel a job that has not started yet."""
    if ai_worker_pool.get_job_status(job_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")

    if not ai_worker_pool.cancel_job(job_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only pending jobs can be cancelled",
        )
    return {"success": True, "data": ai_worker_pool.get_job_status(job_id)}
