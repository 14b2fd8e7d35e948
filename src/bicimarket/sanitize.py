"""Cleaning helpers applied to user input before it is persisted."""

from __future__ import annotations

import math
import re
import unicodedata
from typing import Any

_TAG_RE = re.compile(r"<[^>]*>?")
_TEXT_EXTRA = frozenset("-_.,")


def _strip_tags(value: str) -> str:
    return _TAG_RE.sub("", value)


def _is_text_char(ch: str) -> bool:
    # letters, numbers, whitespace and a few separators
    return unicodedata.category(ch)[0] in "LN" or ch.isspace() or ch in _TEXT_EXTRA


def _is_input_char(ch: str) -> bool:
    # letters, numbers, punctuation and space separators
    cat = unicodedata.category(ch)
    return cat[0] in "LNP" or cat == "Zs"


def sanitize_text(value: str | None, max_length: int = 200) -> str:
    """Strip markup and anything outside letters/numbers/whitespace/``-_.,``, then cap length."""
    if not value:
        return ""
    clean = "".join(ch for ch in _strip_tags(value) if _is_text_char(ch))
    return clean[:max_length].strip()


def sanitize_short(value: str | None) -> str:
    return sanitize_text(value, 50)


def sanitize_long(value: str | None) -> str:
    return sanitize_text(value, 2000)


def sanitize_input(value: str | None, max_length: int = 255) -> str:
    """Looser variant of ``sanitize_text`` that keeps punctuation."""
    if not value:
        return ""
    clean = "".join(ch for ch in _strip_tags(value) if _is_input_char(ch))
    return clean.strip()[:max_length]


def parse_number(value: Any) -> float | None:
    """Parse a finite number from user input; None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def sanitize_number(value: Any, min_value: float = 0, max_value: float = 999_999) -> float | None:
    """Parse and clamp to ``[min_value, max_value]``; None for non-numeric input."""
    num = parse_number(value)
    if num is None:
        return None
    return float(max(min_value, min(max_value, num)))
