"""WebSocket heartbeat and message-loop utilities."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from datetime import timezone
import logging
from typing import Any

from fastapi import WebSocketDisconnect

from danmaku_relay.relay.core import BroadcastCore
from danmaku_relay.relay.hub import Session

from .broadcast import pump_outbox
from .protocol import EVENT_PING
from .protocol import EVENT_PONG
from .protocol import parse_client_event
from .protocol import ws_event

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class HeartbeatConfig:
    interval_seconds: float = 30.0
    pong_timeout_seconds: float = 10.0
    max_missed_pongs: int = 2


class HeartbeatState:
    """Track one websocket heartbeat ping/pong lifecycle."""

    def __init__(self) -> None:
        self.last_ping_at: float | None = None
        self.last_pong_at: float | None = None
        self.missed_pong_count = 0
        self._awaiting_pong = False
        self._pong_event = asyncio.Event()

    def mark_ping_sent(self) -> None:
        self.last_ping_at = datetime.now(timezone.utc).timestamp()
        self._awaiting_pong = True
        self._pong_event.clear()

    def mark_pong_received(self) -> None:
        self.last_pong_at = datetime.now(timezone.utc).timestamp()
        if not self._awaiting_pong:
            return
        self._awaiting_pong = False
        self.missed_pong_count = 0
        self._pong_event.set()

    async def wait_for_pong(self, *, timeout_seconds: float) -> bool:
        if not self._awaiting_pong:
            return True
        try:
            await asyncio.wait_for(self._pong_event.wait(), timeout=timeout_seconds)
        except TimeoutError:
            self._awaiting_pong = False
            self.missed_pong_count += 1
            return False
        return True


def handle_ws_message(
    *,
    session: Session,
    core: BroadcastCore,
    heartbeat_state: HeartbeatState,
    message: str,
) -> None:
    event = parse_client_event(message)
    if event is None:
        logger.debug("dropping malformed frame from %s", session.session_id)
        return
    if event.type == EVENT_PING:
        session.deliver(ws_event(EVENT_PONG, {}))
        return
    if event.type == EVENT_PONG:
        heartbeat_state.mark_pong_received()
        return
    core.dispatch(session, event.type, event.payload)


async def heartbeat_loop(
    websocket: Any,
    *,
    session: Session,
    heartbeat_state: HeartbeatState,
    config: HeartbeatConfig,
) -> None:
    sleep_between_pings = max(config.interval_seconds - config.pong_timeout_seconds, 0.0)
    while True:
        session.deliver(ws_event(EVENT_PING, {}))
        heartbeat_state.mark_ping_sent()
        pong_received = await heartbeat_state.wait_for_pong(timeout_seconds=config.pong_timeout_seconds)
        if (not pong_received) and heartbeat_state.missed_pong_count >= config.max_missed_pongs:
            logger.info("closing session %s: heartbeat timeout", session.session_id)
            try:
                await websocket.close(code=4408, reason="HEARTBEAT_TIMEOUT")
            except Exception:
                logger.debug("session %s already closed", session.session_id)
            return
        if sleep_between_pings > 0:
            await asyncio.sleep(sleep_between_pings)


async def _cancel_task(task: asyncio.Task[Any]) -> None:
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    except Exception as exc:
        logger.debug("background task %s ended with %r", task.get_name(), exc)


async def receive_text_frame(websocket: Any) -> str | None:
    """Read one frame; binary frames come back as None, disconnects raise."""
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(code=message.get("code", 1000), reason=message.get("reason"))
    return message.get("text")


async def ws_message_loop(
    websocket: Any,
    *,
    session: Session,
    core: BroadcastCore,
    heartbeat: HeartbeatConfig | None = None,
) -> None:
    heartbeat_state = HeartbeatState()
    writer_task = asyncio.create_task(pump_outbox(session, websocket))
    heartbeat_task = asyncio.create_task(
        heartbeat_loop(
            websocket,
            session=session,
            heartbeat_state=heartbeat_state,
            config=heartbeat or HeartbeatConfig(),
        )
    )
    try:
        while True:
            message = await receive_text_frame(websocket)
            if message is None:
                logger.debug("dropping non-text frame from %s", session.session_id)
                continue
            handle_ws_message(
                session=session,
                core=core,
                heartbeat_state=heartbeat_state,
                message=message,
            )
    except WebSocketDisconnect:
        return
    finally:
        try:
            await _cancel_task(heartbeat_task)
        finally:
            await _cancel_task(writer_task)
