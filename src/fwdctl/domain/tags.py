"""Tag domain logic — normalization."""

from __future__ import annotations

from collections.abc import Iterable


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Strip whitespace, drop empties, and deduplicate preserving first occurrence.

    Examples:
        >>> normalize_tags([" vip", "export", "vip", ""])
        ['vip', 'export']
    """
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = str(tag).strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)
