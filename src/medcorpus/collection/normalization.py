"""Text normalization helpers shared by collection parsers."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse repeated whitespace and trim boundaries."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def join_non_empty(parts: list[str], separator: str = " ") -> str:
    """Join the non-blank parts, preserving order."""

    return separator.join(part for part in parts if part and part.strip())
