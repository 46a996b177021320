"""
Semantic search over stored embeddings.

Candidate and job vectors are JSON lists on their rows, so ranking is a
linear cosine-similarity scan. Scores map cosine distance (0..2) onto 0..1,
where 1 means identical direction.
"""

import math
from typing import Any, Callable, Iterable, Optional, TypeVar

from sqlalchemy.orm import Session

from app.core.errors import ConflictError
from app.core.logging import get_logger
from app.models import Application, CandidateProfile, Job
from app.services.ai import flows

logger = get_logger("semantic_search")

T = TypeVar("T")


def cosine_similarity(a: Optional[list[float]], b: Optional[list[float]]) -> Optional[float]:
    """Cosine similarity, or None when the vectors cannot be compared."""
    if not a or not b or len(a) != len(b):
        return None
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return None
    return sum(x * y for x, y in zip(a, b)) / (norm_a * norm_b)


def similarity_score(similarity: float) -> float:
    distance = 1 - similarity
    return round(max(0.0, min(1.0, 1 - distance / 2)), 4)


def rank_by_embedding(
    query: list[float],
    items: Iterable[T],
    embedding_of: Callable[[T], Optional[list[float]]],
    limit: int,
    min_score: float = 0.0,
) -> list[tuple[T, float]]:
    """Best matches first; items without a comparable vector are skipped."""
    scored = []
    for item in items:
        similarity = cosine_similarity(query, embedding_of(item))
        if similarity is None:
            continue
        score = similarity_score(similarity)
        if score >= min_score:
            scored.append((item, score))
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:limit]


def job_to_text(job: Job) -> str:
    parts = [
        job.title,
        job.department or "",
        job.location or "",
        (job.employment_type or "").replace("_", " "),
        " ".join(job.skills or []),
        " ".join(job.requirements or []),
        job.description or "",
    ]
    return "\n".join(part for part in parts if part).strip()


def _matches_filters(
    candidate: CandidateProfile,
    skills: Optional[list[str]],
    location: Optional[str],
    experience: Optional[str],
) -> bool:
    if skills:
        owned = {skill.lower() for skill in candidate.skills or []}
        if not all(skill.lower() in owned for skill in skills):
            return False
    if location and location.lower() not in (candidate.location or "").lower():
        return False
    if experience and candidate.experience != experience:
        return False
    return True


async def search_candidates(
    db: Session,
    query: str,
    limit: int = 10,
    min_score: float = 0.0,
    skills: Optional[list[str]] = None,
    location: Optional[str] = None,
    experience: Optional[str] = None,
) -> list[tuple[CandidateProfile, float]]:
    """Rank embedded candidate profiles against a natural-language query."""
    query_embedding = await flows.generate_text_embedding(query, task_type="retrieval_query")

    candidates = [
        candidate
        for candidate in db.query(CandidateProfile).filter(CandidateProfile.embedding.isnot(None)).all()
        if _matches_filters(candidate, skills, location, experience)
    ]
    ranked = rank_by_embedding(
        query_embedding.embedding, candidates, lambda c: c.embedding, limit, min_score
    )
    logger.info(f"Talent search matched {len(ranked)} of {len(candidates)} embedded candidates")
    return ranked


async def ensure_job_embeddings(db: Session, jobs: list[Job]) -> None:
    """Embed postings that have no vector yet and store them."""
    missing = [job for job in jobs if not job.embedding]
    for job in missing:
        result = await flows.generate_text_embedding(job_to_text(job))
        job.embedding = result.embedding
        job.embedding_model = result.model_used
    if missing:
        db.commit()
        logger.info(f"Embedded {len(missing)} job postings")


async def recommend_jobs(
    db: Session,
    candidate: CandidateProfile,
    limit: int = 10,
    include_applied: bool = False,
) -> list[tuple[Job, float]]:
    """Active postings closest to the candidate's stored profile embedding."""
    if not candidate.embedding:
        raise ConflictError("Candidate profile has no embedding yet; complete onboarding first")

    jobs = db.query(Job).filter(Job.status == "active").all()
    if not include_applied:
        applied = {
            job_id
            for (job_id,) in db.query(Application.job_id).filter(Application.candidate_id == candidate.id)
        }
        jobs = [job for job in jobs if job.id not in applied]

    await ensure_job_embeddings(db, jobs)
    ranked = rank_by_embedding(candidate.embedding, jobs, lambda j: j.embedding, limit)
    logger.info(f"Candidate {candidate.id}: {len(ranked)} job recommendations")
    return ranked


def search_summary(ranked: list[tuple[Any, float]]) -> dict[str, Any]:
    scores = [score for _, score in ranked]
    return {
        "totalResults": len(ranked),
        "avgMatchScore": round(sum(scores) / len(scores), 4) if scores else 0,
        "topMatchScore": max(scores) if scores else 0,
    }
