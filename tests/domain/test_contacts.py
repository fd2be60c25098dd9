"""Tests for the primary-contact repair helpers."""

from __future__ import annotations

from fwdctl.domain.contacts import (
    append_contact,
    count_active,
    drop_contact,
    ensure_active_primary,
    replace_contact,
    set_primary,
)
from fwdctl.domain.models import ContactPerson


def _person(name: str, *, primary: bool = False, active: bool = True) -> ContactPerson:
    return ContactPerson(first_name=name, last_name="X", is_primary=primary, is_active=active)


def _primaries(contacts: list[ContactPerson]) -> list[str]:
    return [c.first_name for c in contacts if c.is_primary]


class TestSetPrimary:
    def test_only_target_is_primary(self) -> None:
        contacts = [_person("a", primary=True), _person("b"), _person("c", primary=True)]
        assert _primaries(set_primary(contacts, 1)) == ["b"]

    def test_input_untouched(self) -> None:
        contacts = [_person("a", primary=True), _person("b")]
        set_primary(contacts, 1)
        assert _primaries(contacts) == ["a"]


class TestEnsureActivePrimary:
    def test_keeps_existing_active_primary(self) -> None:
        contacts = [_person("a"), _person("b", primary=True)]
        assert _primaries(ensure_active_primary(contacts)) == ["b"]

    def test_promotes_first_active(self) -> None:
        contacts = [_person("a", active=False), _person("b"), _person("c")]
        assert _primaries(ensure_active_primary(contacts)) == ["b"]

    def test_inactive_primary_does_not_count(self) -> None:
        contacts = [_person("a", primary=True, active=False), _person("b")]
        assert _primaries(ensure_active_primary(contacts)) == ["a", "b"]

    def test_no_active_contacts(self) -> None:
        contacts = [_person("a", active=False)]
        assert _primaries(ensure_active_primary(contacts)) == []


class TestAppend:
    def test_primary_newcomer_demotes_siblings(self) -> None:
        result = append_contact([_person("a", primary=True)], _person("b", primary=True))
        assert _primaries(result) == ["b"]

    def test_first_contact_becomes_primary(self) -> None:
        result = append_contact([], _person("a"))
        assert _primaries(result) == ["a"]

    def test_regular_newcomer(self) -> None:
        result = append_contact([_person("a", primary=True)], _person("b"))
        assert [c.first_name for c in result] == ["a", "b"]
        assert _primaries(result) == ["a"]


class TestReplace:
    def test_made_primary(self) -> None:
        contacts = [_person("a", primary=True), _person("b")]
        result = replace_contact(contacts, 1, _person("b2"), made_primary=True)
        assert _primaries(result) == ["b2"]

    def test_demoting_primary_promotes_first_active(self) -> None:
        contacts = [_person("a", primary=True), _person("b")]
        result = replace_contact(contacts, 0, _person("a"))
        assert _primaries(result) == ["a"]


class TestDrop:
    def test_remove_primary_promotes_next_active(self) -> None:
        contacts = [_person("a", primary=True), _person("b", active=False), _person("c")]
        result = drop_contact(contacts, 0)
        assert [c.first_name for c in result] == ["b", "c"]
        assert _primaries(result) == ["c"]

    def test_deactivate_clears_primary(self) -> None:
        contacts = [_person("a", primary=True), _person("b")]
        result = drop_contact(contacts, 0, deactivate_only=True)
        assert len(result) == 2
        assert result[0].is_active is False
        assert _primaries(result) == ["b"]

    def test_may_leave_no_active(self) -> None:
        result = drop_contact([_person("a", primary=True)], 0)
        assert count_active(result) == 0
