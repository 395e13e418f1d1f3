"""Shared fixtures for relay tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from danmaku_relay.relay.core import BroadcastCore
from danmaku_relay.relay.hub import Session
from danmaku_relay.state.models import DisplaySettings
from danmaku_relay.state.store import SettingsStore

ADMIN_PASSWORD = "relay-admin-secret"


@pytest.fixture
def admin_password() -> str:
    return ADMIN_PASSWORD


@pytest.fixture
def relay_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the relay at a throwaway upload dir with a known admin password."""
    upload_dir = tmp_path / "uploads"
    monkeypatch.setenv("DANMAKU_ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("DANMAKU_UPLOAD_DIR", str(upload_dir))
    monkeypatch.setenv("DANMAKU_STATIC_DIR", str(tmp_path / "public"))
    return upload_dir


@pytest.fixture
def core() -> BroadcastCore:
    """Fresh core with defaults speed=5 density=5 lanes=10."""
    store = SettingsStore(DisplaySettings(barrage_speed=5, barrage_density=5, lanes=10))
    return BroadcastCore(store=store, admin_password=ADMIN_PASSWORD, max_text_graphemes=20)


@pytest.fixture
def connect(core: BroadcastCore):
    """Connect a new session to the core and clear its initial snapshot."""

    def _connect(session_id: str) -> Session:
        session = Session(session_id)
        core.connect(session)
        session.pending()
        return session

    return _connect
