"""
AI Flows.

Each flow sends one request to Google Gemini with a fixed prompt and an
expected output schema, then returns the validated pydantic model. There is no
retry or fallback: a missing key, an empty answer or a response that does not
match the schema raises ``AIFlowError``.
"""

import json
from typing import Literal, Optional, Type, TypeVar

import google.generativeai as genai
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.errors import AIFlowError
from app.core.logging import get_logger
from app.services.document_text import UnsupportedDocumentError, extract_document_text

logger = get_logger("ai_flows")

ModelT = TypeVar("ModelT", bound=BaseModel)

ExperienceLevel = Literal["entry_level", "mid_level", "senior", "executive"]
JobType = Literal["full_time", "part_time", "contract", "freelance", "internship"]

MIN_SUMMARY_INPUT_CHARS = 100


# ============== Output Schemas ==============


class ExtractedProfile(BaseModel):
    current_title: Optional[str] = None
    experience: Optional[ExperienceLevel] = None
    location: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    expected_salary: Optional[str] = None
    preferred_locations: list[str] = Field(default_factory=list)
    preferred_job_types: list[JobType] = Field(default_factory=list)
    professional_summary: str


class ResumeSummary(BaseModel):
    summary: str


class TextEmbedding(BaseModel):
    embedding: list[float]
    model_used: str


class VideoAnalysis(BaseModel):
    communication_score: int = Field(ge=1, le=10)
    confidence_score: int = Field(ge=1, le=10)
    professionalism_score: int = Field(ge=1, le=10)
    transcript_summary: str
    highlights: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)


class JobDescriptionInput(BaseModel):
    job_title: str
    job_level: str
    department: str
    location: str
    responsibilities: str
    qualifications: str


class JobDescription(BaseModel):
    job_description: str


class CandidateJobMatch(BaseModel):
    match_score: int = Field(ge=0, le=100)
    reasoning: str
    matched_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)


# ============== Gemini plumbing ==============


def configure_gemini(flow: str) -> None:
    """Configure the Gemini client or fail the flow."""
    if not settings.GEMINI_API_KEY:
        raise AIFlowError(flow, "GEMINI_API_KEY is not configured")
    genai.configure(api_key=settings.GEMINI_API_KEY)


def _json_instructions(schema: Type[BaseModel]) -> str:
    return (
        "\n\nRespond with a single JSON object (no markdown) that matches this JSON schema:\n"
        f"{json.dumps(schema.model_json_schema())}"
    )


async def _generate_structured(flow: str, parts: list, schema: Type[ModelT]) -> ModelT:
    configure_gemini(flow)
    model = genai.GenerativeModel(
        settings.GEMINI_MODEL,
        generation_config={"response_mime_type": "application/json"},
    )

    logger.info(f"{flow}: sending request to {settings.GEMINI_MODEL}")
    response = await model.generate_content_async(parts)

    try:
        text = response.text
    except ValueError as exc:
        # Raised by the SDK when the candidate has no text parts (e.g. blocked)
        raise AIFlowError(flow, f"no usable output ({exc})") from exc

    if not text or not text.strip():
        raise AIFlowError(flow, "empty response from model")

    try:
        result = schema.model_validate_json(text)
    except PydanticValidationError as exc:
        logger.error(f"{flow}: response did not match schema: {text[:300]}")
        raise AIFlowError(flow, "response did not match the expected schema") from exc

    logger.info(f"{flow}: received {len(text)} chars")
    return result


# ============== Flows ==============


def extract_resume_text(data: bytes, mime_type: str) -> str:
    """Extract plain text from resume bytes; empty documents fail the flow."""
    try:
        text = extract_document_text(data, mime_type)
    except UnsupportedDocumentError as exc:
        raise AIFlowError("extractResumeText", str(exc)) from exc
    except Exception as exc:
        raise AIFlowError("extractResumeText", f"could not read document: {exc}") from exc

    if not text:
        raise AIFlowError("extractResumeText", "no text could be extracted from the resume")
    return text


async def extract_profile_from_resume(resume_text: str) -> ExtractedProfile:
    prompt = f"""You are an expert resume analyzer. Extract structured profile information from the given resume text.

Analyze the resume and extract:
1. Current or most recent job title
2. Experience level based on years of experience:
   - entry_level: 0-2 years
   - mid_level: 3-5 years
   - senior: 6-10 years
   - executive: 10+ years or C-level positions
3. Current location (city, state/country)
4. Comprehensive list of skills (technical, software, methodologies, soft skills)
5. Contact information (phone, LinkedIn URL)
6. Salary expectations if mentioned
7. Preferred work locations if mentioned
8. Preferred job types (full_time, part_time, contract, freelance, internship)
9. A professional summary (3-5 sentences) highlighting key achievements

If information is not found in the resume, omit that field.
For phone, format consistently (e.g., +1-555-123-4567).

Resume Text:
{resume_text}"""
    return await _generate_structured(
        "extractProfileFromResume",
        [prompt + _json_instructions(ExtractedProfile)],
        ExtractedProfile,
    )


async def generate_resume_summary(resume_text: str) -> ResumeSummary:
    if len(resume_text) < MIN_SUMMARY_INPUT_CHARS:
        raise AIFlowError(
            "generateResumeSummary",
            f"resume text must be at least {MIN_SUMMARY_INPUT_CHARS} characters",
        )

    prompt = f"""You are an expert HR professional and resume writer.
Based on the following resume text, generate a concise and compelling professional summary (approximately 3-5 sentences).
The summary should highlight the candidate's key skills, most relevant experience, and career aspirations if evident.

Resume Text:
{resume_text}"""
    return await _generate_structured(
        "generateResumeSummary",
        [prompt + _json_instructions(ResumeSummary)],
        ResumeSummary,
    )


async def generate_text_embedding(text: str, task_type: str = "retrieval_document") -> TextEmbedding:
    flow = "generateTextEmbedding"
    if not text.strip():
        raise AIFlowError(flow, "cannot embed empty text")

    configure_gemini(flow)
    model = settings.EMBEDDING_MODEL
    logger.info(f"{flow}: embedding {len(text)} chars with {model}")

    result = await genai.embed_content_async(
        model=model,
        content=text,
        task_type=task_type,
    )
    embedding = result.get("embedding") if isinstance(result, dict) else None

    if not embedding:
        raise AIFlowError(flow, "no embedding vector returned")

    logger.info(f"{flow}: vector length {len(embedding)}")
    return TextEmbedding(embedding=embedding, model_used=model)


async def analyze_video_intro(video: bytes, mime_type: str = "video/webm") -> VideoAnalysis:
    prompt = """You are an experienced interviewer reviewing a candidate's short video introduction.

Rate on a 1-10 scale:
- communication: clarity, structure and pace
- confidence: presence and conviction
- professionalism: tone, setting and preparation

Summarize what the candidate says in 2-3 sentences, then list notable highlights and any concerns."""
    return await _generate_structured(
        "analyzeVideoIntro",
        [{"mime_type": mime_type, "data": video}, prompt + _json_instructions(VideoAnalysis)],
        VideoAnalysis,
    )


async def generate_job_description(job: JobDescriptionInput) -> JobDescription:
    prompt = f"""You are an expert HR copywriter specializing in creating compelling job descriptions that attract top talent.

Generate a comprehensive, professional and engaging job description from the following information.

Job Title: {job.job_title}
Job Level: {job.job_level}
Department: {job.department}
Location: {job.location}

Key Responsibilities:
{job.responsibilities}

Key Qualifications:
{job.qualifications}

Structure the output with the sections "About Us", "Role Overview", "Key Responsibilities", "Qualifications" and "Why Join Us?".
Use generic positive statements where company information is not provided."""
    return await _generate_structured(
        "generateJobDescription",
        [prompt + _json_instructions(JobDescription)],
        JobDescription,
    )


async def match_candidate_to_job(candidate: dict, job: dict) -> CandidateJobMatch:
    prompt = f"""You are a technical recruiter scoring how well a candidate fits a job.

Score from 0 to 100, weighting skills (50%), experience level (30%) and location/job type fit (20%).
List the job skills the candidate has and the ones they are missing.

Job:
{json.dumps(job, default=str)}

Candidate:
{json.dumps(candidate, default=str)}"""
    return await _generate_structured(
        "matchCandidateToJob",
        [prompt + _json_instructions(CandidateJobMatch)],
        CandidateJobMatch,
    )
