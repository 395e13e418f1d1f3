"""Broadcast core: validates inbound events, mutates shared state, fans results out.

Every handler runs as one bounded transition under ``self._lock``. Outbound
events are queued on session outboxes while the lock is held, so every
session observes mutations and danmaku in the same order. Delivery to the
socket happens later on each connection's own writer task.

Failure policy per event:

* validation rejections and unauthorized admin calls are dropped silently;
* banned content gets a ``bannedAlert`` for the sender only;
* a wrong admin password gets ``adminLoginResult {ok: false}`` for the sender only.
"""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Mapping
import logging
import threading
from typing import Any

from danmaku_relay.auth.gate import authorize
from danmaku_relay.auth.gate import login
from danmaku_relay.core.text import fits_length
from danmaku_relay.core.text import normalize_color
from danmaku_relay.core.text import normalize_text
from danmaku_relay.relay.hub import Session
from danmaku_relay.relay.hub import SessionHub
from danmaku_relay.state.filtering import is_banned
from danmaku_relay.state.lanes import LaneAllocator
from danmaku_relay.state.models import Danmaku
from danmaku_relay.state.store import SettingsStore
from danmaku_relay.ws import protocol

logger = logging.getLogger(__name__)

BANNED_ALERT_ERROR = "message contains a banned word"
LOGIN_FAILED_ERROR = "invalid admin password"


class BroadcastCore:
    """Single logical owner of settings, banned words and the lane cursor."""

    def __init__(
        self,
        *,
        store: SettingsStore,
        admin_password: str,
        hub: SessionHub | None = None,
        allocator: LaneAllocator | None = None,
        max_text_graphemes: int = 100,
    ) -> None:
        self.store = store
        self.hub = hub if hub is not None else SessionHub()
        self.allocator = allocator if allocator is not None else LaneAllocator()
        self._admin_password = admin_password
        self._max_text_graphemes = max_text_graphemes
        self._lock = threading.RLock()
        self._handlers: dict[str, Callable[[Session, Mapping[str, Any]], None]] = {
            protocol.EVENT_SEND_DANMAKU: lambda s, p: self.send_danmaku(s, p.get("text"), p.get("color")),
            protocol.EVENT_ADMIN_LOGIN: lambda s, p: self.admin_login(s, p.get("password")),
            protocol.EVENT_ADMIN_UPDATE_SETTINGS: self.admin_update_settings,
            protocol.EVENT_ADMIN_SET_BACKGROUND: self.admin_set_background,
            protocol.EVENT_ADMIN_ADD_BANNED_WORD: lambda s, p: self.admin_add_banned_word(s, p.get("word")),
            protocol.EVENT_ADMIN_REMOVE_BANNED_WORD: lambda s, p: self.admin_remove_banned_word(s, p.get("word")),
        }

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return self.store.snapshot()

    def _broadcast_state(self) -> None:
        self.hub.broadcast(protocol.EVENT_STATE, self.store.snapshot())

    def _authorized(self, session: Session, operation: str) -> bool:
        if authorize(session):
            return True
        logger.debug("dropping %s from non-admin session %s", operation, session.session_id)
        return False

    def connect(self, session: Session) -> None:
        """Register the session and send it the current snapshot."""
        with self._lock:
            self.hub.add(session)
            self.hub.send_to(session, protocol.EVENT_STATE, self.store.snapshot())
        logger.info("session %s connected (%d online)", session.session_id, len(self.hub))

    def disconnect(self, session: Session) -> None:
        with self._lock:
            self.hub.discard(session)
        session.closed = True
        logger.info("session %s disconnected (%d online)", session.session_id, len(self.hub))

    def send_danmaku(self, session: Session, text: object, color: object = None) -> Danmaku | None:
        """Filter, lane-assign and broadcast one message; returns it when accepted."""
        cleaned = normalize_text(text)
        if not cleaned:
            logger.debug("dropping empty danmaku from %s", session.session_id)
            return None
        if not fits_length(cleaned, self._max_text_graphemes):
            logger.debug("dropping over-long danmaku from %s", session.session_id)
            return None

        with self._lock:
            if is_banned(cleaned, self.store.banned_words()):
                self.hub.send_to(
                    session,
                    protocol.EVENT_BANNED_ALERT,
                    {"ok": False, "error": BANNED_ALERT_ERROR},
                )
                logger.info("blocked danmaku from %s: banned word", session.session_id)
                return None

            message = Danmaku(
                text=cleaned,
                color=normalize_color(color),
                lane=self.allocator.next_lane(self.store.get().lanes),
            )
            self.hub.broadcast(
                protocol.EVENT_DANMAKU,
                {"text": message.text, "color": message.color, "lane": message.lane},
            )
        return message

    def admin_login(self, session: Session, password: object) -> bool:
        with self._lock:
            result = login(session, password, self._admin_password)
            if result.granted:
                self.hub.send_to(session, protocol.EVENT_ADMIN_LOGIN_RESULT, {"ok": True})
            else:
                self.hub.send_to(
                    session,
                    protocol.EVENT_ADMIN_LOGIN_RESULT,
                    {"ok": False, "error": LOGIN_FAILED_ERROR},
                )
        if result.granted:
            logger.info("session %s granted admin", session.session_id)
        else:
            logger.info("session %s failed admin login", session.session_id)
        return result.granted

    def admin_update_settings(self, session: Session, patch: object) -> bool:
        with self._lock:
            if not self._authorized(session, "adminUpdateSettings"):
                return False
            if not isinstance(patch, Mapping):
                return False
            updated = self.store.apply_partial_update(patch)
            self._broadcast_state()
        logger.info(
            "settings updated by %s: speed=%d density=%d lanes=%d",
            session.session_id,
            updated.barrage_speed,
            updated.barrage_density,
            updated.lanes,
        )
        return True

    def admin_set_background(self, session: Session, descriptor: object) -> bool:
        with self._lock:
            if not self._authorized(session, "adminSetBackground"):
                return False
            if not isinstance(descriptor, Mapping) or not self.store.set_background(descriptor):
                logger.debug("ignoring background descriptor from %s", session.session_id)
                return False
            self._broadcast_state()
            background = self.store.get().background
        logger.info("background set by %s: %s %s", session.session_id, background.type, background.url)
        return True

    def admin_add_banned_word(self, session: Session, word: object) -> bool:
        with self._lock:
            if not self._authorized(session, "adminAddBannedWord"):
                return False
            if not self.store.add_banned_word(word):
                return False
            self._broadcast_state()
        logger.info("banned word added by %s", session.session_id)
        return True

    def admin_remove_banned_word(self, session: Session, word: object) -> bool:
        with self._lock:
            if not self._authorized(session, "adminRemoveBannedWord"):
                return False
            if not self.store.remove_banned_word(word):
                return False
            self._broadcast_state()
        logger.info("banned word removed by %s", session.session_id)
        return True

    def dispatch(self, session: Session, event_type: str, payload: Mapping[str, Any]) -> None:
        """Route one inbound event by name; unknown names are dropped."""
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.debug("ignoring unknown event %r from %s", event_type, session.session_id)
            return
        handler(session, payload)
