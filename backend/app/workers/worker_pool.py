"""
AI Worker Pool.

In-process, non-durable job queue for deferred AI processing. Jobs are plain
in-memory records: a process restart (or cold start) forgets all of them, and
priority is recorded but never reorders execution.

Lifecycle: pending → processing → completed | failed. A pending job can also
be cancelled before it starts.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from app.core.logging import get_logger

logger = get_logger("worker_pool")

JobHandler = Callable[[dict[str, Any]], Awaitable[Any]]

PRIORITIES = ("high", "medium", "low")
JOB_STATES = ("pending", "processing", "completed", "failed", "cancelled")


@dataclass
class ProcessingJob:
    id: str
    type: str
    priority: str
    payload: dict[str, Any]
    status: str = "pending"
    result: Any = None
    error: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    processing_time_ms: Optional[float] = None

    def snapshot(self) -> dict[str, Any]:
        """Public view of the job (the payload may hold raw uploads, so it is omitted)."""
        return {
            "id": self.id,
            "type": self.type,
            "priority": self.priority,
            "status": self.status,
            "result": self.result,
            "error": self.error,
            "createdAt": self.created_at.isoformat(),
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "processingTimeMs": self.processing_time_ms,
        }


class AIWorkerPool:
    def __init__(self):
        self._handlers: dict[str, JobHandler] = {}
        self._jobs: dict[str, ProcessingJob] = {}
        self._paused = False
        # Jobs whose run was requested while paused, in request order
        self._deferred: list[str] = []

    def register(self, job_type: str, handler: JobHandler) -> None:
        self._handlers[job_type] = handler

    @property
    def job_types(self) -> list[str]:
        return sorted(self._handlers)

    def add_job(
        self,
        job_type: str,
        payload: dict[str, Any],
        priority: str = "medium",
        job_id: Optional[str] = None,
    ) -> ProcessingJob:
        """Record a pending job; the caller schedules ``run`` for it."""
        return self.add_jobs([
            {"type": job_type, "payload": payload, "priority": priority, "job_id": job_id}
        ])[0]

    def add_jobs(self, specs: list[dict[str, Any]]) -> list[ProcessingJob]:
        """
        Record several pending jobs at once.

        Each entry holds ``type`` and ``payload`` plus optional ``priority`` and
        ``job_id``. Every entry is validated first, so a bad one records nothing.
        """
        jobs = []
        seen: set[str] = set()
        for spec in specs:
            job_type = spec["type"]
            priority = spec.get("priority") or "medium"
            if job_type not in self._handlers:
                raise ValueError(f"Unknown job type: {job_type}")
            if priority not in PRIORITIES:
                raise ValueError(f"Unknown priority: {priority}")

            job_id = spec.get("job_id") or f"{job_type}-{uuid.uuid4().hex[:12]}"
            if job_id in self._jobs or job_id in seen:
                raise ValueError(f"Duplicate job id: {job_id}")
            seen.add(job_id)
            jobs.append(ProcessingJob(id=job_id, type=job_type, priority=priority, payload=spec["payload"]))

        for job in jobs:
            self._jobs[job.id] = job
            logger.info(f"Job queued: {job.id} ({job.type}, {job.priority})")
        return jobs

    def pause(self) -> None:
        """Hold new runs; jobs already processing finish normally."""
        self._paused = True
        logger.info("Worker pool paused")

    def resume(self) -> list[str]:
        """Unpause and return the ids of runs held while paused, for rescheduling."""
        self._paused = False
        deferred = [job_id for job_id in self._deferred if job_id in self._jobs]
        self._deferred = []
        logger.info(f"Worker pool resumed with {len(deferred)} deferred jobs")
        return deferred

    async def run(self, job_id: str) -> Optional[dict[str, Any]]:
        """Execute a pending job in-process and return its final snapshot."""
        job = self._jobs.get(job_id)
        if job is None:
            logger.warning(f"Job {job_id} disappeared before it ran")
            return None
        if job.status != "pending":
            logger.info(f"Skipping job {job_id} in state {job.status}")
            return job.snapshot()
        if self._paused:
            if job_id not in self._deferred:
                self._deferred.append(job_id)
            logger.info(f"Pool paused, deferring job {job_id}")
            return job.snapshot()

        job.status = "processing"
        job.started_at = datetime.utcnow()
        started = time.monotonic()
        logger.info(f"Processing job {job_id} ({job.type})")

        try:
            job.result = await self._handlers[job.type](job.payload)
            job.status = "completed"
        except Exception as exc:
            job.status = "failed"
            job.error = str(exc) or exc.__class__.__name__
            logger.exception(f"Job {job_id} failed: {job.error}")
        finally:
            job.finished_at = datetime.utcnow()
            job.processing_time_ms = round((time.monotonic() - started) * 1000, 2)
            # Raw uploads are no longer needed once the job has run
            job.payload = {}

        if job.status == "completed":
            logger.info(f"Job {job_id} completed in {job.processing_time_ms}ms")
        return job.snapshot()

    def get_job_status(self, job_id: str) -> Optional[dict[str, Any]]:
        job = self._jobs.get(job_id)
        return job.snapshot() if job else None

    def cancel_job(self, job_id: str) -> bool:
        job = self._jobs.get(job_id)
        if job is None or job.status != "pending":
            return False
        job.status = "cancelled"
        job.finished_at = datetime.utcnow()
        job.payload = {}
        logger.info(f"Job {job_id} cancelled")
        return True

    def get_queue_stats(self) -> dict[str, Any]:
        by_status = {state: 0 for state in JOB_STATES}
        by_type: dict[str, int] = {}
        for job in self._jobs.values():
            by_status[job.status] += 1
            by_type[job.type] = by_type.get(job.type, 0) + 1
        return {
            "total": len(self._jobs),
            "byStatus": by_status,
            "byType": by_type,
            "jobTypes": self.job_types,
            "paused": self._paused,
            "deferred": len(self._deferred),
        }

    def clear(self) -> None:
        self._jobs.clear()
        self._deferred.clear()
        self._paused = False


ai_worker_pool = AIWorkerPool()
