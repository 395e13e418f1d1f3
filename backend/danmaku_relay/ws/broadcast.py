"""Outbox writer bridging session queues to the websocket transport."""

from __future__ import annotations

import logging
from typing import Any

from danmaku_relay.relay.hub import Session

from .protocol import ws_send_message

logger = logging.getLogger(__name__)


async def pump_outbox(session: Session, websocket: Any) -> None:
    """Drain one session's outbox onto its socket until the first send failure."""
    while True:
        message = await session.outbox.get()
        try:
            await ws_send_message(websocket, message)
        except Exception as exc:
            session.closed = True
            logger.warning("send to session %s failed: %r", session.session_id, exc)
            return
