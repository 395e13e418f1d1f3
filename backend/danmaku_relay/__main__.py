"""Run the relay with uvicorn: ``python -m danmaku_relay``."""

from __future__ import annotations

import uvicorn

from danmaku_relay.core.config import load_settings


def main() -> None:
    settings = load_settings()
    uvicorn.run(
        "danmaku_relay.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
