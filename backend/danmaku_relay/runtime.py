"""Process-wide runtime state shared by REST and WebSocket handlers."""

from __future__ import annotations

from danmaku_relay.core.config import Settings
from danmaku_relay.core.config import load_settings
from danmaku_relay.core.logging_config import configure_logging
from danmaku_relay.relay.core import BroadcastCore
from danmaku_relay.state.models import DisplaySettings
from danmaku_relay.state.store import SettingsStore

settings: Settings | None = None
core: BroadcastCore | None = None


def build_core(config: Settings) -> BroadcastCore:
    """Create a fresh broadcast core seeded with configured defaults."""
    store = SettingsStore(
        DisplaySettings(
            barrage_speed=config.default_barrage_speed,
            barrage_density=config.default_barrage_density,
            lanes=config.default_lanes,
        )
    )
    return BroadcastCore(
        store=store,
        admin_password=config.admin_password,
        max_text_graphemes=config.danmaku_max_graphemes,
    )


def startup() -> None:
    """Load settings and reset all in-memory relay state."""
    global settings, core
    settings = load_settings()
    configure_logging(settings.log_level)
    core = build_core(settings)


def get_settings() -> Settings:
    if settings is None:
        startup()
    assert settings is not None
    return settings


def get_core() -> BroadcastCore:
    if core is None:
        startup()
    assert core is not None
    return core


__all__ = [
    "Settings",
    "build_core",
    "core",
    "get_core",
    "get_settings",
    "settings",
    "startup",
]
