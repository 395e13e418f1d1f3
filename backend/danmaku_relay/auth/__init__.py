"""Admin authorization for mutating relay operations."""

from danmaku_relay.auth.gate import LoginResult
from danmaku_relay.auth.gate import authorize
from danmaku_relay.auth.gate import login
from danmaku_relay.auth.gate import password_matches

__all__ = [
    "LoginResult",
    "authorize",
    "login",
    "password_matches",
]
