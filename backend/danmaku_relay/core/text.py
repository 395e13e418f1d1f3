"""Danmaku text normalization and length helpers."""

from __future__ import annotations

import regex

DEFAULT_COLOR = "#ffffff"
_GRAPHEME_PATTERN = regex.compile(r"\X")


def normalize_text(raw_text: object) -> str:
    """Trim surrounding whitespace; non-string input normalizes to an empty string."""
    if not isinstance(raw_text, str):
        return ""
    return raw_text.strip()


def normalize_color(raw_color: object) -> str:
    """Return the trimmed color, falling back to white when missing or blank."""
    color = normalize_text(raw_color)
    return color or DEFAULT_COLOR


def count_graphemes(value: str) -> int:
    """Count user-visible characters using grapheme clusters."""
    return len(_GRAPHEME_PATTERN.findall(value))


def fits_length(value: str, max_graphemes: int) -> bool:
    """Check a non-empty value against the grapheme budget."""
    return 1 <= count_graphemes(value) <= max_graphemes
