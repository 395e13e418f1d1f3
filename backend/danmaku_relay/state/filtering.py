"""Banned-word set and message filter."""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Iterator


class BannedWordSet:
    """Ordered set of non-empty banned words; insertion order is kept for display."""

    def __init__(self, words: Iterable[str] = ()) -> None:
        self._words: dict[str, None] = {}
        for word in words:
            add_word(word, self)

    def __contains__(self, word: object) -> bool:
        return word in self._words

    def __iter__(self) -> Iterator[str]:
        return iter(self._words)

    def __len__(self) -> int:
        return len(self._words)

    def as_list(self) -> list[str]:
        return list(self._words)

    def _insert(self, word: str) -> None:
        self._words[word] = None

    def _delete(self, word: str) -> None:
        del self._words[word]


def is_banned(text: str, words: Iterable[str]) -> bool:
    """Return True when any non-empty word is a case-sensitive substring of text."""
    if not text:
        return False
    return any(word and word in text for word in words)


def add_word(word: object, words: BannedWordSet) -> bool:
    """Add a trimmed word; returns False for blank or duplicate input."""
    if not isinstance(word, str):
        return False
    candidate = word.strip()
    if not candidate or candidate in words:
        return False
    words._insert(candidate)
    return True


def remove_word(word: object, words: BannedWordSet) -> bool:
    """Remove the exact trimmed word; returns False when it was not present."""
    if not isinstance(word, str):
        return False
    candidate = word.strip()
    if candidate not in words:
        return False
    words._delete(candidate)
    return True
