"""Read-only state REST route."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

import danmaku_relay.runtime as runtime

router = APIRouter()


@router.get("/api/state")
def get_state() -> dict[str, Any]:
    """Return the current settings plus banned-word snapshot."""
    return runtime.get_core().snapshot()
