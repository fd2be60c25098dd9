"""ID patterns and generation.

Clients and folders get random, prefixed identifiers:
``cli_`` / ``fld_`` followed by 12 lowercase hex characters.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import re
import uuid

ID_PATTERNS: dict[str, re.Pattern[str]] = {
    "client": re.compile(r"^cli_[0-9a-f]{12}$"),
    "folder": re.compile(r"^fld_[0-9a-f]{12}$"),
}

TYPE_PREFIXES: dict[str, str] = {
    "client": "cli_",
    "folder": "fld_",
}


def generate_id(kind: str) -> str:
    """Generate a fresh ID for *kind* (``client`` or ``folder``).

    Raises:
        KeyError: If *kind* has no registered prefix.
    """
    return f"{TYPE_PREFIXES[kind]}{uuid.uuid4().hex[:12]}"


def validate_id(record_id: str, kind: str) -> bool:
    """Check whether *record_id* matches the expected pattern for *kind*."""
    pattern = ID_PATTERNS.get(kind)
    if pattern is None:
        return False
    return pattern.match(record_id) is not None
