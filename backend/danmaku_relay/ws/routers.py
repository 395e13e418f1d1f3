"""WebSocket route handler for the shared danmaku channel."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi import WebSocket
from fastapi import WebSocketDisconnect

import danmaku_relay.runtime as runtime
from danmaku_relay.relay.hub import Session

from .heartbeat import HeartbeatConfig
from .heartbeat import ws_message_loop

router = APIRouter()


@router.websocket("/ws")
async def ws_danmaku(websocket: WebSocket) -> None:
    """Danmaku websocket: initial state snapshot, then inbound events and fan-out."""
    settings = runtime.get_settings()
    core = runtime.get_core()

    await websocket.accept()
    session = Session(outbox_max_events=settings.outbox_max_events)
    core.connect(session)
    try:
        await ws_message_loop(
            websocket,
            session=session,
            core=core,
            heartbeat=HeartbeatConfig(
                interval_seconds=settings.heartbeat_interval_seconds,
                pong_timeout_seconds=settings.heartbeat_timeout_seconds,
                max_missed_pongs=settings.heartbeat_max_missed,
            ),
        )
    except WebSocketDisconnect:
        return
    finally:
        core.disconnect(session)
