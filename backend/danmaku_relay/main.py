"""FastAPI application entrypoint for the danmaku relay."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

import danmaku_relay.runtime as runtime
from danmaku_relay.api.errors import handle_http_exception
from danmaku_relay.api.routers.state import router as state_router
from danmaku_relay.api.routers.uploads import router as uploads_router
from danmaku_relay.api.uploads import UPLOAD_URL_PREFIX
from danmaku_relay.core.config import Settings
from danmaku_relay.core.config import load_settings
from danmaku_relay.ws.routers import router as ws_router

logger = logging.getLogger(__name__)


def startup() -> None:
    """Reset in-memory relay state from the current environment."""
    runtime.startup()
    settings = runtime.get_settings()
    logger.info(
        "relay ready (env=%s, lanes=%d, speed=%d, density=%d)",
        settings.app_env,
        settings.default_lanes,
        settings.default_barrage_speed,
        settings.default_barrage_density,
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    startup()
    yield


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    application = FastAPI(title="Danmaku Relay", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=False,
        allow_methods=["GET", "POST"],
    )

    @application.exception_handler(StarletteHTTPException)
    async def handle_http_exception_route(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Adapter used by FastAPI exception handling."""
        return await handle_http_exception(request, exc)

    application.include_router(state_router)
    application.include_router(uploads_router)
    application.include_router(ws_router)

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    application.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=str(upload_dir)), name="uploads")

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        application.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    return application


app = create_app()


__all__ = [
    "app",
    "create_app",
    "startup",
]
