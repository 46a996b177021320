"""
Object storage for resumes, videos and profile pictures.

Files live in a local directory bucket under ``STORAGE_ROOT`` using the same
path prefixes the frontend expects:

    candidates/{uid}/resume/{file}
    videos/{intro|interview}/{uid}/{file}
    profile-pictures/{uid}/{file}
"""

import mimetypes
import uuid
from pathlib import Path
from typing import Optional

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("storage")

VIDEO_KINDS = ("intro", "interview")

RESUME_EXTENSIONS = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
}


def resume_extension(mime_type: str) -> str:
    if mime_type in RESUME_EXTENSIONS:
        return RESUME_EXTENSIONS[mime_type]
    return "pdf" if "pdf" in mime_type else "docx"


def resume_path(uid: str, filename: str) -> str:
    return f"candidates/{uid}/resume/{filename}"


def video_path(kind: str, uid: str, filename: str) -> str:
    if kind not in VIDEO_KINDS:
        raise ValueError(f"Unknown video kind: {kind}")
    return f"videos/{kind}/{uid}/{filename}"


def profile_picture_path(uid: str, filename: str) -> str:
    return f"profile-pictures/{uid}/{filename}"


def unique_filename(extension: str) -> str:
    return f"{uuid.uuid4()}.{extension.lstrip('.')}"


class LocalBucket:
    """Minimal bucket API backed by a directory."""

    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        self.root = Path(root or settings.STORAGE_ROOT).resolve()
        self.base_url = (base_url or settings.STORAGE_BASE_URL).rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root not in target.parents:
            raise ValueError(f"Invalid storage path: {path}")
        return target

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info(f"Stored {len(data)} bytes at {path} ({content_type or 'unknown type'})")
        return self.url_for(path)

    def download(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise FileNotFoundError(path)
        return target.read_bytes()

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.is_file():
            return False
        target.unlink()
        logger.info(f"Deleted {path}")
        return True

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def content_type(self, path: str) -> str:
        return mimetypes.guess_type(path)[0] or "application/octet-stream"

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path}"


bucket = LocalBucket()
