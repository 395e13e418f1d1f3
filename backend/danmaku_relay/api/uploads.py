"""Background media upload storage."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import BinaryIO
import uuid

from pydantic import BaseModel

UPLOAD_URL_PREFIX = "/uploads"
_CHUNK_BYTES = 1024 * 1024
_MAX_SUFFIX_LENGTH = 10
_MEDIA_KINDS = ("image", "video")
# Scriptable image formats served back from our own origin.
_REJECTED_MEDIA_TYPES = frozenset({"image/svg+xml"})


class UploadTooLargeError(ValueError):
    """Raised when an upload exceeds the configured byte limit."""


class UploadEmptyError(ValueError):
    """Raised when an upload carries no bytes."""


class UploadResult(BaseModel):
    """Response body for POST /api/upload."""

    url: str
    kind: str


def media_kind(content_type: str | None) -> str | None:
    """Map a declared MIME type to image/video; anything else is unsupported."""
    if not content_type:
        return None
    media_type = content_type.split(";", 1)[0].strip().lower()
    major, _, minor = media_type.partition("/")
    if not minor or "/" in minor or media_type in _REJECTED_MEDIA_TYPES:
        return None
    if major in _MEDIA_KINDS:
        return major
    return None


def storage_name(filename: str | None, content_type: str) -> str:
    """Generate a collision-free file name, keeping a sane extension when available."""
    suffix = Path(filename or "").suffix.lower()
    if not suffix[1:].isalnum() or len(suffix) > _MAX_SUFFIX_LENGTH:
        suffix = mimetypes.guess_extension(content_type.split(";", 1)[0].strip()) or ""
    return f"{uuid.uuid4().hex}{suffix}"


def store_upload(
    source: BinaryIO,
    *,
    upload_dir: Path,
    filename: str | None,
    content_type: str,
    max_bytes: int,
) -> str:
    """Copy the upload into upload_dir and return the stored file name."""
    upload_dir.mkdir(parents=True, exist_ok=True)
    name = storage_name(filename, content_type)
    target = upload_dir / name
    written = 0
    try:
        with target.open("wb") as sink:
            while True:
                chunk = source.read(_CHUNK_BYTES)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLargeError(f"upload exceeds {max_bytes} bytes")
                sink.write(chunk)
        if written == 0:
            raise UploadEmptyError("upload is empty")
    except BaseException:
        target.unlink(missing_ok=True)
        raise
    return name
