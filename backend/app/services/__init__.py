from app.services.document_text import (
    clean_text,
    detect_mime_type,
    extract_document_text,
    UnsupportedDocumentError,
)
from app.services.storage import LocalBucket, bucket

__all__ = [
    "clean_text",
    "detect_mime_type",
    "extract_document_text",
    "UnsupportedDocumentError",
    "LocalBucket",
    "bucket",
]
