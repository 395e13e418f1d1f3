"""Admin capability gate bound to one connection session."""

from __future__ import annotations

from dataclasses import dataclass
import hmac
from typing import Protocol


class AdminCapable(Protocol):
    is_admin: bool


@dataclass(slots=True, frozen=True)
class LoginResult:
    granted: bool


def password_matches(supplied: object, configured: str) -> bool:
    """Exact string equality, compared in constant time over UTF-8 bytes."""
    if not isinstance(supplied, str):
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), configured.encode("utf-8"))


def login(session: AdminCapable, supplied: object, configured: str) -> LoginResult:
    """Grant admin to the session on an exact password match; never revokes."""
    if not password_matches(supplied, configured):
        return LoginResult(granted=False)
    session.is_admin = True
    return LoginResult(granted=True)


def authorize(session: AdminCapable) -> bool:
    return bool(session.is_admin)
