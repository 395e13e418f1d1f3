"""WebSocket wire protocol helpers."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

WS_PROTOCOL_VERSION = 1

# Server -> client
EVENT_STATE = "state"
EVENT_DANMAKU = "danmaku"
EVENT_BANNED_ALERT = "bannedAlert"
EVENT_ADMIN_LOGIN_RESULT = "adminLoginResult"
EVENT_PING = "PING"
EVENT_PONG = "PONG"

# Client -> server
EVENT_SEND_DANMAKU = "sendDanmaku"
EVENT_ADMIN_LOGIN = "adminLogin"
EVENT_ADMIN_UPDATE_SETTINGS = "adminUpdateSettings"
EVENT_ADMIN_SET_BACKGROUND = "adminSetBackground"
EVENT_ADMIN_ADD_BANNED_WORD = "adminAddBannedWord"
EVENT_ADMIN_REMOVE_BANNED_WORD = "adminRemoveBannedWord"


class ClientEvent(BaseModel):
    """Inbound envelope; payload contents are validated by each handler."""

    type: str = Field(min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)
    v: int = WS_PROTOCOL_VERSION


def ws_event(event_type: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {"v": WS_PROTOCOL_VERSION, "type": event_type, "payload": payload}


def parse_client_event(message: str) -> ClientEvent | None:
    """Parse one inbound text frame; returns None for anything malformed."""
    if message in (EVENT_PING, EVENT_PONG):
        return ClientEvent(type=message)
    try:
        return ClientEvent.model_validate_json(message)
    except ValidationError:
        return None


async def ws_send_message(websocket: Any, message: dict[str, Any]) -> None:
    if hasattr(websocket, "send_json"):
        await websocket.send_json(message)
        return
    if hasattr(websocket, "send_text"):
        await websocket.send_text(json.dumps(message))
        return
    raise TypeError(f"{type(websocket).__name__} has no send_json or send_text")


async def ws_send_event(websocket: Any, event_type: str, payload: dict[str, Any]) -> None:
    await ws_send_message(websocket, ws_event(event_type, payload))
