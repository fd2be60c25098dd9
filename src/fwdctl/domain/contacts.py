"""Primary-contact invariant for business clients.

INVARIANT: a persisted business client has at least one active contact and
exactly one contact that is both active and primary.

The functions here *repair* the invariant on a new list of contacts; they
never mutate their input.  Whether an empty active set is acceptable is
the caller's decision (the contact service rejects it).
"""

from __future__ import annotations

from collections.abc import Sequence

from fwdctl.domain.models import ContactPerson


def count_active(contacts: Sequence[ContactPerson]) -> int:
    return sum(1 for contact in contacts if contact.is_active)


def set_primary(contacts: Sequence[ContactPerson], index: int) -> list[ContactPerson]:
    """Make ``contacts[index]`` the only primary contact."""
    return [
        contact.model_copy(update={"is_primary": i == index})
        for i, contact in enumerate(contacts)
    ]


def ensure_active_primary(contacts: Sequence[ContactPerson]) -> list[ContactPerson]:
    """Promote the first active contact when no active primary exists."""
    result = list(contacts)
    if any(c.is_active and c.is_primary for c in result):
        return result
    for i, contact in enumerate(result):
        if contact.is_active:
            result[i] = contact.model_copy(update={"is_primary": True})
            break
    return result


def append_contact(
    contacts: Sequence[ContactPerson],
    new_contact: ContactPerson,
) -> list[ContactPerson]:
    """Append *new_contact*; a primary newcomer demotes every sibling first."""
    result = list(contacts)
    result.append(new_contact)
    if new_contact.is_primary:
        result = set_primary(result, len(result) - 1)
    return ensure_active_primary(result)


def replace_contact(
    contacts: Sequence[ContactPerson],
    index: int,
    updated: ContactPerson,
    *,
    made_primary: bool = False,
) -> list[ContactPerson]:
    """Swap in *updated* at *index*, keeping a single active primary."""
    result = list(contacts)
    result[index] = updated
    if made_primary:
        result = set_primary(result, index)
    return ensure_active_primary(result)


def drop_contact(
    contacts: Sequence[ContactPerson],
    index: int,
    *,
    deactivate_only: bool = False,
) -> list[ContactPerson]:
    """Remove (or deactivate) ``contacts[index]`` and re-elect a primary if needed.

    A deactivated contact also loses its primary flag.  The returned list
    may hold no active contact at all; callers must check
    :func:`count_active` before persisting it.
    """
    if deactivate_only:
        result = list(contacts)
        result[index] = result[index].model_copy(update={"is_active": False, "is_primary": False})
    else:
        result = [c for i, c in enumerate(contacts) if i != index]
    return ensure_active_primary(result)
