"""
Resume document text extraction.

Turns uploaded resume bytes (PDF, DOCX or plain text) into normalized text
for the AI flows. Parsing is local; nothing here calls the AI provider.
"""

import io
import re
from typing import Optional

import docx
import pdfplumber

PDF_MIME_TYPES = {"application/pdf"}
DOCX_MIME_TYPES = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
}
TEXT_MIME_TYPES = {"text/plain", "text/markdown"}

SUPPORTED_MIME_TYPES = PDF_MIME_TYPES | DOCX_MIME_TYPES | TEXT_MIME_TYPES


class UnsupportedDocumentError(ValueError):
    pass


def _extract_text_from_pdf(data: bytes) -> str:
    text_parts = []

    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)

    return "\n".join(text_parts)


def _extract_text_from_docx(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    parts: list[str] = []
    for paragraph in document.paragraphs:
        text = paragraph.text.strip()
        if text:
            parts.append(text)
    return "\n".join(parts)


def clean_text(text: str) -> str:
    """Clean and normalize extracted text."""
    text = text.replace("\r\n", "\n")
    # Remove excessive whitespace
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]{2,}", " ", text)
    # Remove common artifacts
    text = re.sub(r"•\s*", "- ", text)
    text = re.sub(r"[●○■□◆◇]", "-", text)

    return text.strip()


def detect_mime_type(filename: str, declared: Optional[str] = None) -> str:
    if declared and declared in SUPPORTED_MIME_TYPES:
        return declared
    lowered = filename.lower()
    if lowered.endswith(".pdf"):
        return "application/pdf"
    if lowered.endswith(".docx"):
        return "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    if lowered.endswith(".txt"):
        return "text/plain"
    raise UnsupportedDocumentError(f"Unsupported resume file: {filename}")


def extract_document_text(data: bytes, mime_type: str) -> str:
    """
    Extract normalized text from a resume document.

    Args:
        data: Raw file bytes
        mime_type: Declared MIME type of the upload

    Returns:
        Cleaned text (may be empty for image-only PDFs)
    """
    if mime_type in PDF_MIME_TYPES or "pdf" in mime_type:
        raw = _extract_text_from_pdf(data)
    elif mime_type in DOCX_MIME_TYPES or "word" in mime_type:
        raw = _extract_text_from_docx(data)
    elif mime_type in TEXT_MIME_TYPES or mime_type.startswith("text/"):
        raw = data.decode("utf-8", errors="replace")
    else:
        raise UnsupportedDocumentError(f"Unsupported resume type: {mime_type}")

    return clean_text(raw)
