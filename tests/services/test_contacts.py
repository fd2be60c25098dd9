"""Tests for ContactService — index-addressed business contacts."""

from __future__ import annotations

import pytest

from fwdctl.domain.models import BusinessClient
from fwdctl.errors import (
    ClientNotFoundError,
    ContactIndexError,
    ContactValidationError,
    InvalidOperationError,
    LastActiveContactError,
)
from fwdctl.infrastructure.store import Store
from fwdctl.services.contacts import ContactService
from tests.conftest import contact_payload, create_business, create_individual


def _names(client: BusinessClient) -> list[str]:
    return [c.first_name for c in client.business_info.contacts]


def _primary(client: BusinessClient) -> list[str]:
    return [c.first_name for c in client.business_info.contacts if c.is_primary]


@pytest.fixture
def acme(store: Store) -> BusinessClient:
    """Business with three contacts, the first one primary."""
    return create_business(
        store,
        contacts=[
            contact_payload("Ana", is_primary=True),
            contact_payload("Luc"),
            contact_payload("Zoe"),
        ],
    )


class TestAdd:
    def test_append(self, store: Store, acme: BusinessClient) -> None:
        updated = ContactService(store).add_contact(acme.id, contact_payload("Max"))
        assert _names(updated) == ["Ana", "Luc", "Zoe", "Max"]
        assert _primary(updated) == ["Ana"]
        assert updated.version == acme.version + 1

    def test_primary_newcomer_demotes(self, store: Store, acme: BusinessClient) -> None:
        updated = ContactService(store).add_contact(
            acme.id, contact_payload("Max", is_primary=True)
        )
        assert _primary(updated) == ["Max"]

    def test_invalid_contact(self, store: Store, acme: BusinessClient) -> None:
        with pytest.raises(ContactValidationError) as exc_info:
            ContactService(store).add_contact(acme.id, {"first_name": "Max"})
        codes = [issue["code"] for issue in exc_info.value.detail["issues"]]
        assert codes == ["REQUIRED_FIELD", "REQUIRED_FIELD"]

    def test_individual_client_rejected(self, store: Store) -> None:
        client = create_individual(store)
        with pytest.raises(InvalidOperationError):
            ContactService(store).add_contact(client.id, contact_payload())

    def test_missing_client(self, store: Store) -> None:
        with pytest.raises(ClientNotFoundError):
            ContactService(store).add_contact("cli_000000000000", contact_payload())


class TestUpdate:
    def test_merge(self, store: Store, acme: BusinessClient) -> None:
        updated = ContactService(store).update_contact(acme.id, 1, {"title": "Ops lead"})
        contact = updated.business_info.contacts[1]
        assert (contact.first_name, contact.title) == ("Luc", "Ops lead")

    def test_make_primary(self, store: Store, acme: BusinessClient) -> None:
        updated = ContactService(store).update_contact(acme.id, 2, {"is_primary": True})
        assert _primary(updated) == ["Zoe"]

    def test_deactivate_primary_promotes_next(self, store: Store, acme: BusinessClient) -> None:
        updated = ContactService(store).update_contact(acme.id, 0, {"is_active": False})
        assert _primary(updated) == ["Luc"]
        assert updated.business_info.contacts[0].is_active is False

    def test_inactive_cannot_become_primary(self, store: Store, acme: BusinessClient) -> None:
        with pytest.raises(InvalidOperationError):
            ContactService(store).update_contact(
                acme.id, 1, {"is_active": False, "is_primary": True}
            )

    @pytest.mark.parametrize("index", [-1, 3, 99])
    def test_bad_index(self, store: Store, acme: BusinessClient, index: int) -> None:
        with pytest.raises(ContactIndexError):
            ContactService(store).update_contact(acme.id, index, {"title": "x"})


class TestRemove:
    def test_remove_primary_reelects(self, store: Store, acme: BusinessClient) -> None:
        updated = ContactService(store).remove_contact(acme.id, 0)
        assert _names(updated) == ["Luc", "Zoe"]
        assert _primary(updated) == ["Luc"]

    def test_sequential_removal_until_last(self, store: Store, acme: BusinessClient) -> None:
        service = ContactService(store)
        service.remove_contact(acme.id, 2)
        service.remove_contact(acme.id, 1)
        with pytest.raises(LastActiveContactError):
            service.remove_contact(acme.id, 0)
        assert [c.first_name for c in service.list_contacts(acme.id)] == ["Ana"]

    def test_deactivate_only(self, store: Store, acme: BusinessClient) -> None:
        updated = ContactService(store).remove_contact(acme.id, 1, deactivate_only=True)
        assert len(updated.business_info.contacts) == 3
        assert updated.business_info.contacts[1].is_active is False

    def test_cannot_deactivate_last_active(self, store: Store) -> None:
        client = create_business(store)
        with pytest.raises(LastActiveContactError):
            ContactService(store).remove_contact(client.id, 0, deactivate_only=True)


class TestReads:
    def test_set_primary(self, store: Store, acme: BusinessClient) -> None:
        updated = ContactService(store).set_primary_contact(acme.id, 1)
        assert _primary(updated) == ["Luc"]

    def test_get_contact(self, store: Store, acme: BusinessClient) -> None:
        service = ContactService(store)
        contact = service.get_contact(acme.id, 2)
        assert contact is not None
        assert contact.first_name == "Zoe"
        assert service.get_contact(acme.id, 3) is None
        assert service.get_contact("cli_000000000000", 0) is None

    def test_list_filters(self, store: Store, acme: BusinessClient) -> None:
        service = ContactService(store)
        service.remove_contact(acme.id, 2, deactivate_only=True)
        assert len(service.list_contacts(acme.id)) == 3
        assert len(service.list_contacts(acme.id, active_only=True)) == 2
        primary = service.list_contacts(acme.id, primary_only=True)
        assert [c.first_name for c in primary] == ["Ana"]

    def test_list_for_individual_is_empty(self, store: Store) -> None:
        client = create_individual(store)
        assert ContactService(store).list_contacts(client.id) == []
