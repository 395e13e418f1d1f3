"""Upload REST route for background media."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter
from fastapi import File
from fastapi import UploadFile

import danmaku_relay.runtime as runtime
from danmaku_relay.api.errors import raise_api_error
from danmaku_relay.api.uploads import UPLOAD_URL_PREFIX
from danmaku_relay.api.uploads import UploadEmptyError
from danmaku_relay.api.uploads import UploadResult
from danmaku_relay.api.uploads import UploadTooLargeError
from danmaku_relay.api.uploads import media_kind
from danmaku_relay.api.uploads import store_upload

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/upload")
def upload_media(file: UploadFile = File(...)) -> UploadResult:
    """Store one image/video file and return the URL to use with adminSetBackground."""
    settings = runtime.get_settings()
    content_type = file.content_type or ""
    kind = media_kind(content_type)
    if kind is None:
        raise_api_error(
            status_code=415,
            code="UPLOAD_UNSUPPORTED_TYPE",
            message="only image/* and video/* uploads are accepted",
            detail={"content_type": content_type},
        )

    try:
        name = store_upload(
            file.file,
            upload_dir=Path(settings.upload_dir),
            filename=file.filename,
            content_type=content_type,
            max_bytes=settings.upload_max_bytes,
        )
    except UploadTooLargeError:
        raise_api_error(
            status_code=413,
            code="UPLOAD_TOO_LARGE",
            message="upload is too large",
            detail={"max_bytes": settings.upload_max_bytes},
        )
    except UploadEmptyError:
        raise_api_error(
            status_code=400,
            code="UPLOAD_EMPTY",
            message="upload is empty",
        )
    finally:
        file.file.close()

    logger.info("stored %s upload %s", kind, name)
    return UploadResult(url=f"{UPLOAD_URL_PREFIX}/{name}", kind=kind)
