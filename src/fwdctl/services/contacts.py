"""ContactService — index-addressed contacts of business clients.

Every write reads the client, computes the new contact list with the
pure helpers in :mod:`fwdctl.domain.contacts`, and writes it back through
:meth:`ClientService.update` with the version it read.  A concurrent
writer therefore surfaces as
:class:`~fwdctl.errors.ConcurrentModificationError` instead of a lost
update.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from fwdctl.domain.contacts import (
    append_contact,
    count_active,
    drop_contact,
    replace_contact,
)
from fwdctl.domain.models import BusinessClient, ContactPerson
from fwdctl.domain.rules import validate_contact_person
from fwdctl.errors import (
    ClientNotFoundError,
    ContactIndexError,
    ContactValidationError,
    InvalidOperationError,
    LastActiveContactError,
)
from fwdctl.services._helpers import deep_merge
from fwdctl.services.base import BaseService
from fwdctl.services.clients import ClientService
from fwdctl.services.telemetry import traced

if TYPE_CHECKING:
    from fwdctl.infrastructure.store import Store

logger = logging.getLogger(__name__)


def _validated(contact: Mapping[str, Any]) -> ContactPerson:
    """Run the contact rules, then shape the contact model."""
    issues = validate_contact_person(contact)
    if issues:
        raise ContactValidationError(
            [issue.message for issue in issues],
            issues=[issue.model_dump() for issue in issues],
        )
    try:
        return ContactPerson.model_validate(dict(contact))
    except ValidationError as exc:
        shape_issues = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
                "code": "INVALID_VALUE",
            }
            for err in exc.errors()
        ]
        raise ContactValidationError(
            [issue["message"] for issue in shape_issues], issues=shape_issues
        ) from exc


def _check_index(contacts: Sequence[ContactPerson], index: int) -> None:
    if not 0 <= index < len(contacts):
        raise ContactIndexError(index, len(contacts))


class ContactService(BaseService):
    """Add, update, remove, and look up business contacts."""

    def __init__(self, store: Store) -> None:
        super().__init__(store)
        self._clients = ClientService(store)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @traced
    def add_contact(self, client_id: str, contact: Mapping[str, Any]) -> BusinessClient:
        """Append a contact; a primary newcomer demotes the current primary."""
        client = self._business(client_id)
        new_contact = _validated(contact)
        contacts = append_contact(client.business_info.contacts, new_contact)
        return self._save(client, contacts)

    @traced
    def update_contact(
        self, client_id: str, index: int, updates: Mapping[str, Any]
    ) -> BusinessClient:
        """Merge *updates* into ``contacts[index]``.

        Setting ``is_primary`` demotes every sibling.  Deactivating a
        contact also drops its primary flag; the first remaining active
        contact is promoted when no active primary is left.
        """
        client = self._business(client_id)
        contacts = client.business_info.contacts
        _check_index(contacts, index)

        merged = deep_merge(contacts[index].model_dump(mode="json"), updates)
        updated = _validated(merged)
        made_primary = updates.get("is_primary") is True
        if made_primary and not updated.is_active:
            raise InvalidOperationError("An inactive contact cannot be made primary")
        if not updated.is_active and updated.is_primary:
            updated = updated.model_copy(update={"is_primary": False})

        new_contacts = replace_contact(contacts, index, updated, made_primary=made_primary)
        return self._save(client, new_contacts)

    @traced
    def remove_contact(
        self, client_id: str, index: int, *, deactivate_only: bool = False
    ) -> BusinessClient:
        """Delete (or deactivate) ``contacts[index]``.

        Raises:
            LastActiveContactError: no active contact would remain.
        """
        client = self._business(client_id)
        contacts = client.business_info.contacts
        _check_index(contacts, index)
        new_contacts = drop_contact(contacts, index, deactivate_only=deactivate_only)
        return self._save(client, new_contacts)

    @traced
    def set_primary_contact(self, client_id: str, index: int) -> BusinessClient:
        return self.update_contact(client_id, index, {"is_primary": True})

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def get_contact(self, client_id: str, index: int) -> ContactPerson | None:
        """The contact at *index*, or None for a missing/non-business client or bad index."""
        client = self._clients.get_by_id(client_id)
        if not isinstance(client, BusinessClient):
            return None
        contacts = client.business_info.contacts
        if not 0 <= index < len(contacts):
            return None
        return contacts[index]

    @traced
    def list_contacts(
        self,
        client_id: str,
        *,
        active_only: bool = False,
        primary_only: bool = False,
    ) -> list[ContactPerson]:
        client = self._clients.get_by_id(client_id)
        if not isinstance(client, BusinessClient):
            return []
        contacts = list(client.business_info.contacts)
        if active_only:
            contacts = [c for c in contacts if c.is_active]
        if primary_only:
            contacts = [c for c in contacts if c.is_primary]
        return contacts

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _business(self, client_id: str) -> BusinessClient:
        client = self._clients.get_by_id(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        if not isinstance(client, BusinessClient):
            raise InvalidOperationError(
                f"Client {client_id} is not a business client; contacts apply to businesses only"
            )
        return client

    def _save(self, client: BusinessClient, contacts: list[ContactPerson]) -> BusinessClient:
        if count_active(contacts) == 0:
            raise LastActiveContactError()
        updated = self._clients.update(
            client.id,
            {"business_info": {"contacts": [c.model_dump(mode="json") for c in contacts]}},
            expected_version=client.version,
        )
        logger.debug("Saved %d contacts on %s", len(contacts), client.id)
        assert isinstance(updated, BusinessClient)
        return updated
