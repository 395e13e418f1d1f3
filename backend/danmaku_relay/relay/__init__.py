"""Broadcast relay package."""

from danmaku_relay.relay.core import BroadcastCore
from danmaku_relay.relay.hub import Session
from danmaku_relay.relay.hub import SessionHub

__all__ = [
    "BroadcastCore",
    "Session",
    "SessionHub",
]
