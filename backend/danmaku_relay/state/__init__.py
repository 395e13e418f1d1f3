"""Shared display state package."""

from danmaku_relay.state.filtering import BannedWordSet
from danmaku_relay.state.filtering import add_word
from danmaku_relay.state.filtering import is_banned
from danmaku_relay.state.filtering import remove_word
from danmaku_relay.state.lanes import LaneAllocator
from danmaku_relay.state.models import Background
from danmaku_relay.state.models import Danmaku
from danmaku_relay.state.models import DisplaySettings
from danmaku_relay.state.store import SettingsStore

__all__ = [
    "Background",
    "BannedWordSet",
    "Danmaku",
    "DisplaySettings",
    "LaneAllocator",
    "SettingsStore",
    "add_word",
    "is_banned",
    "remove_word",
]
