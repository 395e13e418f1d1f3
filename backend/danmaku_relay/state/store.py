"""In-memory settings store shared by every connection."""

from __future__ import annotations

from collections.abc import Iterator
from collections.abc import Mapping
from contextlib import contextmanager
import threading
from typing import Any

from danmaku_relay.state.filtering import BannedWordSet
from danmaku_relay.state.filtering import add_word
from danmaku_relay.state.filtering import remove_word
from danmaku_relay.state.models import BACKGROUND_NONE
from danmaku_relay.state.models import BACKGROUND_TYPES
from danmaku_relay.state.models import DENSITY_RANGE
from danmaku_relay.state.models import LANES_RANGE
from danmaku_relay.state.models import SPEED_RANGE
from danmaku_relay.state.models import Background
from danmaku_relay.state.models import DisplaySettings
from danmaku_relay.state.models import clamp

# Wire key -> (attribute, clamp range)
PATCH_FIELDS: dict[str, tuple[str, tuple[int, int]]] = {
    "barrageSpeed": ("barrage_speed", SPEED_RANGE),
    "barrageDensity": ("barrage_density", DENSITY_RANGE),
    "lanes": ("lanes", LANES_RANGE),
}


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class SettingsStore:
    """Holds display settings and banned words behind one re-entrant lock."""

    def __init__(
        self,
        initial: DisplaySettings,
        banned_words: BannedWordSet | None = None,
    ) -> None:
        self._settings = initial.copy()
        self._banned_words = banned_words if banned_words is not None else BannedWordSet()
        self._lock = threading.RLock()

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Acquire the store write lock."""
        with self._lock:
            yield

    def get(self) -> DisplaySettings:
        """Return a copy of the current settings."""
        with self._lock:
            return self._settings.copy()

    def banned_words(self) -> list[str]:
        with self._lock:
            return self._banned_words.as_list()

    def apply_partial_update(self, patch: Mapping[str, Any]) -> DisplaySettings:
        """Clamp and apply every recognized integer field; ignore everything else."""
        with self._lock:
            for key, (attribute, bounds) in PATCH_FIELDS.items():
                value = patch.get(key)
                if not _is_int(value):
                    continue
                setattr(self._settings, attribute, clamp(value, bounds))
            return self._settings.copy()

    def set_background(self, descriptor: Mapping[str, Any]) -> bool:
        """Apply a background descriptor; returns False when the descriptor is ignored."""
        kind = descriptor.get("type")
        if not isinstance(kind, str) or kind not in BACKGROUND_TYPES:
            return False
        if kind == BACKGROUND_NONE:
            with self._lock:
                self._settings.background = Background()
            return True

        url = descriptor.get("url")
        if not isinstance(url, str) or not url.strip():
            return False
        with self._lock:
            self._settings.background = Background(type=kind, url=url.strip())
        return True

    def add_banned_word(self, word: object) -> bool:
        with self._lock:
            return add_word(word, self._banned_words)

    def remove_banned_word(self, word: object) -> bool:
        with self._lock:
            return remove_word(word, self._banned_words)

    def snapshot(self) -> dict[str, Any]:
        """Build the wire snapshot of settings plus banned words."""
        with self._lock:
            current = self._settings
            return {
                "settings": {
                    "barrageSpeed": current.barrage_speed,
                    "barrageDensity": current.barrage_density,
                    "lanes": current.lanes,
                    "background": {
                        "type": current.background.type,
                        "url": current.background.url,
                    },
                },
                "bannedWords": self._banned_words.as_list(),
            }
