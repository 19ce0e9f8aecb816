"""Case-insensitive substring matching for ignorable errors."""

from __future__ import annotations

from typing import Iterable


def is_whitelisted(text: str | None, patterns: Iterable[str | None] | None) -> bool:
    """Return True if any pattern occurs in ``text``, ignoring case.

    Missing text is matched as the empty string, so only an empty pattern
    whitelists it. ``None`` patterns are skipped.
    """
    if not patterns:
        return False

    haystack = (text or "").casefold()
    for pattern in patterns:
        if pattern is None:
            continue
        if str(pattern).casefold() in haystack:
            return True
    return False
