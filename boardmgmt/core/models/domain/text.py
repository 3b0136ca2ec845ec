"""Small text helpers shared by services."""

from __future__ import annotations

import re
from typing import Optional

_NON_SLUG_CHARS = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-{2,}")
_REPLY_PREFIX = re.compile(r"^\s*(re|fw|fwd)\s*:\s*", re.IGNORECASE)
_UNSAFE_FILE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def slugify(text: Optional[str]) -> str:
    """Lowercase URL slug: ``"Board Meetings 2025!"`` -> ``"board-meetings-2025"``."""
    if not text:
        return ""
    slug = _NON_SLUG_CHARS.sub("", text.strip().lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _DASHES.sub("-", slug)
    return slug.strip("-")


def normalize_subject(subject: Optional[str]) -> str:
    """Strip any number of leading ``Re:``/``Fw:``/``Fwd:`` prefixes and lowercase."""
    value = (subject or "").strip()
    while True:
        stripped = _REPLY_PREFIX.sub("", value, count=1)
        if stripped == value:
            break
        value = stripped
    return value.strip().lower()


def safe_file_stem(name: str, max_length: int = 80) -> str:
    """File-system safe version of a file name stem."""
    stem = _UNSAFE_FILE_CHARS.sub("-", name.strip()).strip("-.")
    return (stem or "file")[:max_length]


def full_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return " ".join(part for part in ((first_name or "").strip(), (last_name or "").strip()) if part)
