"""Per-connection sessions and the multicast registry they subscribe to."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
import uuid

from danmaku_relay.ws.protocol import ws_event

logger = logging.getLogger(__name__)

DEFAULT_OUTBOX_EVENTS = 256


class Session:
    """One live connection: admin flag plus a bounded outbound queue.

    ``is_admin`` only ever flips from False to True, through the admin gate.
    """

    def __init__(self, session_id: str | None = None, *, outbox_max_events: int = DEFAULT_OUTBOX_EVENTS) -> None:
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.is_admin = False
        self.closed = False
        self.dropped_events = 0
        self.outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=outbox_max_events)

    def __repr__(self) -> str:
        return f"Session(id={self.session_id!r}, admin={self.is_admin})"

    def deliver(self, message: dict[str, Any]) -> bool:
        """Queue one outbound message without blocking; full or closed outboxes drop it."""
        if self.closed:
            return False
        try:
            self.outbox.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped_events += 1
            logger.warning(
                "outbox full, dropping %s for session %s", message.get("type"), self.session_id
            )
            return False
        return True

    def pending(self) -> list[dict[str, Any]]:
        """Drain and return everything currently queued."""
        drained: list[dict[str, Any]] = []
        while True:
            try:
                drained.append(self.outbox.get_nowait())
            except asyncio.QueueEmpty:
                return drained


class SessionHub:
    """Subscriber registry used for sender-only replies and fan-out."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session: object) -> bool:
        return isinstance(session, Session) and self._sessions.get(session.session_id) is session

    def sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def add(self, session: Session) -> None:
        self._sessions[session.session_id] = session

    def discard(self, session: Session) -> None:
        if self._sessions.get(session.session_id) is session:
            del self._sessions[session.session_id]

    def send_to(self, session: Session, event_type: str, payload: dict[str, Any]) -> bool:
        return session.deliver(ws_event(event_type, payload))

    def broadcast(self, event_type: str, payload: dict[str, Any]) -> int:
        """Queue one event for every session; returns how many accepted it."""
        message = ws_event(event_type, payload)
        delivered = 0
        stale: list[Session] = []
        for session in list(self._sessions.values()):
            if session.closed:
                stale.append(session)
                continue
            if session.deliver(message):
                delivered += 1
        for session in stale:
            self.discard(session)
        return delivered
