"""Calendar provider names and mailbox identifier normalization."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import unquote


class CalendarProviders:
    microsoft365 = "Microsoft365"
    zoom = "Zoom"

    @classmethod
    def all(cls) -> tuple[str, ...]:
        return (cls.microsoft365, cls.zoom)

    @classmethod
    def is_supported(cls, name: Optional[str]) -> bool:
        return name in cls.all()


class MailboxIdentifier:
    """
    Normalize the many shapes a mailbox reference arrives in.

    Accepts values such as ``"Jane <jane@corp.com>"``, ``"mailto:jane@corp.com"``,
    ``"SMTP:jane@corp.com; other@corp.com"`` or URL-encoded addresses, and returns
    the bare address (or ``None`` for blank input).
    """

    _EMAIL_IN_ANGLE_BRACKETS = re.compile(r"<([^>]+)>")
    _KNOWN_PREFIXES = ("mailto:", "smtp:", "sip:", "userprincipalname:", "upn:", "email:")
    _QUOTES = "\"'«»"

    @classmethod
    def normalize(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None

        trimmed = value.strip()

        # Comma or semicolon separated lists: keep the first entry
        separators = [idx for idx in (trimmed.find(","), trimmed.find(";")) if idx >= 0]
        if separators and min(separators) > 0:
            trimmed = trimmed[: min(separators)].strip()

        match = cls._EMAIL_IN_ANGLE_BRACKETS.search(trimmed)
        if match:
            trimmed = match.group(1).strip()

        trimmed = trimmed.strip(cls._QUOTES)

        lowered = trimmed.lower()
        for prefix in cls._KNOWN_PREFIXES:
            if lowered.startswith(prefix):
                trimmed = trimmed[len(prefix) :].strip()
                break

        if "%" in trimmed:
            trimmed = unquote(trimmed)

        return trimmed or None
