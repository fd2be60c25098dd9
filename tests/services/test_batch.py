"""Tests for BatchService — partial-failure batch operations."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from fwdctl.config.settings import FwdSettings
from fwdctl.domain.models import BusinessClient
from fwdctl.errors import InvalidOperationError, StoreError
from fwdctl.infrastructure.store import Store
from fwdctl.services.batch import BatchService
from fwdctl.services.clients import ClientService
from fwdctl.services.contracts import (
    BatchOperation,
    BatchOperationData,
    BatchOperationResult,
    DeleteClientParams,
)
from tests.conftest import add_folder, contact_payload, create_business, create_individual

MISSING = "cli_000000000000"


def _run(store: Store, operation: str, ids: list[str], **kwargs: object) -> BatchOperationResult:
    data = kwargs.pop("data", {})
    request = BatchOperation(
        operation=operation,
        client_ids=ids,
        data=BatchOperationData(**data),  # type: ignore[arg-type]
        **kwargs,  # type: ignore[arg-type]
    )
    return BatchService(store).execute_batch(request, user_id="tester")


def _assert_accounting(result: BatchOperationResult) -> None:
    assert result.success_count == len(result.success_ids)
    assert result.error_count == len(result.errors)
    assert result.warning_count == len(result.warnings)
    assert len(set(result.success_ids)) == len(result.success_ids)
    assert result.success_count + result.error_count <= result.total_requested


class TestRequestChecks:
    def test_empty_ids(self, store: Store) -> None:
        with pytest.raises(InvalidOperationError):
            _run(store, "add_tags", [], data={"tags": ["vip"]})

    def test_cap_is_checked_before_store_access(self, settings: FwdSettings) -> None:
        fake_store = MagicMock()
        fake_store.settings = settings
        request = BatchOperation(
            operation="add_tags",
            client_ids=[f"cli_{i:012x}" for i in range(1001)],
            data=BatchOperationData(tags=["vip"]),
        )
        with pytest.raises(InvalidOperationError, match="limited to 1000"):
            BatchService(fake_store).execute_batch(request)
        fake_store.clients.lifecycle_rows.assert_not_called()
        fake_store.folders.clients_with_active_folders.assert_not_called()

    def test_exactly_the_cap_is_accepted(self, settings: FwdSettings) -> None:
        fake_store = MagicMock()
        fake_store.settings = settings
        fake_store.clients.lifecycle_rows.return_value = {}
        ids = [f"cli_{i:012x}" for i in range(1000)]
        request = BatchOperation(
            operation="add_tags", client_ids=ids, data=BatchOperationData(tags=["vip"])
        )
        result = BatchService(fake_store).execute_batch(request)
        assert result.executed is False
        assert result.error_count == 1000

    @pytest.mark.parametrize(
        ("operation", "data"),
        [
            ("update", {}),
            ("change_status", {}),
            ("change_status", {"new_status": "dormant"}),
            ("add_tags", {"tags": [" "]}),
            ("remove_tags", {}),
        ],
    )
    def test_missing_payload(self, store: Store, operation: str, data: dict) -> None:
        client = create_individual(store)
        with pytest.raises(InvalidOperationError):
            _run(store, operation, [client.id], data=data)


class TestPreflight:
    def test_unknown_id_halts_without_force(self, store: Store) -> None:
        client = create_individual(store)
        result = _run(
            store, "change_status", [client.id, MISSING], data={"new_status": "suspended"}
        )
        assert result.executed is False
        assert result.success_ids == []
        assert [(e.client_id, e.error_code) for e in result.errors] == [(MISSING, "NOT_FOUND")]
        fetched = ClientService(store).get_by_id(client.id)
        assert fetched is not None
        assert fetched.status == "active"
        _assert_accounting(result)

    def test_force_processes_the_rest(self, store: Store) -> None:
        client = create_individual(store)
        result = _run(
            store,
            "change_status",
            [client.id, MISSING],
            data={"new_status": "suspended"},
            force=True,
        )
        assert result.executed is True
        assert result.success_ids == [client.id]
        fetched = ClientService(store).get_by_id(client.id)
        assert fetched is not None
        assert fetched.status == "suspended"
        _assert_accounting(result)

    def test_deleted_client(self, store: Store) -> None:
        client = create_individual(store)
        ClientService(store).delete(DeleteClientParams(client_id=client.id))
        result = _run(store, "add_tags", [client.id], data={"tags": ["x"]}, force=True)
        assert [e.error_code for e in result.errors] == ["DELETED_CLIENT"]
        assert result.success_ids == []

    def test_duplicate_ids_counted_once(self, store: Store) -> None:
        client = create_individual(store)
        result = _run(store, "add_tags", [client.id, client.id], data={"tags": ["vip"]})
        assert result.total_requested == 1
        assert result.success_ids == [client.id]
        _assert_accounting(result)


class TestOperations:
    def test_update_validates_each_item(self, store: Store) -> None:
        good = create_individual(store, "a@example.com")
        business = create_business(store)
        result = _run(
            store,
            "update",
            [good.id, business.id],
            data={"updates": {"individual_info": {"first_name": ""}}},
        )
        assert result.success_ids == []
        assert [e.error_code for e in result.errors] == ["VALIDATION_ERROR", "VALIDATION_ERROR"]

        result = _run(
            store,
            "update",
            [good.id, business.id],
            data={"updates": {"commercial_info": {"credit_limit": 2500}}},
        )
        assert result.success_ids == [good.id, business.id]
        fetched = ClientService(store).get_by_id(business.id)
        assert fetched is not None
        assert fetched.commercial_info.credit_limit == 2500

    def test_update_cannot_leave_an_inactive_primary(self, store: Store) -> None:
        business = create_business(store)
        contacts = [
            contact_payload("Ana", "Diaz", is_primary=True, is_active=False),
            contact_payload("Luc", "Roy"),
        ]
        result = _run(
            store,
            "update",
            [business.id],
            data={"updates": {"business_info": {"contacts": contacts}}},
        )
        assert result.success_ids == []
        assert [e.error_code for e in result.errors] == ["VALIDATION_ERROR"]
        stored = ClientService(store).get_by_id(business.id)
        assert isinstance(stored, BusinessClient)
        assert [
            c.first_name for c in stored.business_info.contacts if c.is_active and c.is_primary
        ] == ["Claire"]

    def test_item_failure_does_not_stop_the_loop(
        self, store: Store, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        first = create_individual(store, "a@example.com")
        second = create_individual(store, "b@example.com")
        original = ClientService.update

        def flaky(self: ClientService, client_id: str, data: dict, **kwargs: object) -> object:
            if client_id == first.id:
                raise StoreError("disk full")
            return original(self, client_id, data, **kwargs)  # type: ignore[arg-type]

        monkeypatch.setattr(ClientService, "update", flaky)
        result = _run(
            store,
            "update",
            [first.id, second.id],
            data={"updates": {"internal_notes": "checked"}},
        )
        assert result.executed is True
        assert result.success_ids == [second.id]
        assert [(e.client_id, e.error_code, e.error) for e in result.errors] == [
            (first.id, "UPDATE_ERROR", "disk full")
        ]
        _assert_accounting(result)

    def test_change_status_all_at_once(self, store: Store) -> None:
        ids = [create_individual(store, f"p{i}@example.com").id for i in range(3)]
        result = _run(store, "change_status", ids, data={"new_status": "archived"})
        assert result.success_ids == ids
        for client_id in ids:
            client = ClientService(store).get_by_id(client_id)
            assert client is not None
            assert client.status == "archived"
            assert client.version == 2

    def test_add_tags_is_idempotent(self, store: Store) -> None:
        client = create_individual(store)
        _run(store, "add_tags", [client.id], data={"tags": ["vip", "export"]})
        result = _run(store, "add_tags", [client.id], data={"tags": ["vip"]})
        assert result.success_ids == [client.id]
        fetched = ClientService(store).get_by_id(client.id)
        assert fetched is not None
        assert fetched.tags == ["export", "vip"]

    def test_remove_tags(self, store: Store) -> None:
        client = create_individual(store, tags=["vip", "export"])
        _run(store, "remove_tags", [client.id], data={"tags": ["vip", "absent"]})
        fetched = ClientService(store).get_by_id(client.id)
        assert fetched is not None
        assert fetched.tags == ["export"]

    def test_delete_halts_on_active_folders(self, store: Store) -> None:
        busy = create_individual(store, "busy@example.com")
        idle = create_individual(store, "idle@example.com")
        add_folder(store, busy.id, "active")
        result = _run(store, "delete", [busy.id, idle.id])
        assert result.executed is False
        assert [(w.client_id, w.warning_code) for w in result.warnings] == [
            (busy.id, "ACTIVE_FOLDERS")
        ]
        assert ClientService(store).get_by_id(idle.id) is not None
        _assert_accounting(result)

    def test_forced_delete(self, store: Store) -> None:
        busy = create_individual(store, "busy@example.com")
        idle = create_individual(store, "idle@example.com")
        add_folder(store, busy.id, "active")
        result = _run(store, "delete", [busy.id, idle.id], force=True)
        assert result.executed is True
        assert result.success_ids == [busy.id, idle.id]
        record = store.clients.get(idle.id, include_deleted=True)
        assert record is not None
        assert record["deletion_reason"] == "Batch deletion"
        assert record["deleted_by"] == "tester"


class TestStoreFailures:
    def test_status_statement_failure_marks_every_id(self, store: Store) -> None:
        first = create_individual(store, "a@example.com")
        second = create_individual(store, "b@example.com")
        with patch.object(
            store.clients, "bulk_update_status", side_effect=StoreError("database is locked")
        ):
            result = _run(
                store,
                "change_status",
                [first.id, second.id],
                data={"new_status": "inactive"},
            )
        assert result.success_ids == []
        assert {e.error_code for e in result.errors} == {"BATCH_UPDATE_ERROR"}
        assert store.clients.get(first.id)["status"] == "active"  # type: ignore[index]
        _assert_accounting(result)

    def test_unreported_ids_fail_individually(self, store: Store) -> None:
        first = create_individual(store, "a@example.com")
        second = create_individual(store, "b@example.com")
        with patch.object(store.clients, "bulk_update_status", return_value=[first.id]):
            result = _run(
                store,
                "change_status",
                [first.id, second.id],
                data={"new_status": "inactive"},
            )
        assert result.success_ids == [first.id]
        assert [(e.client_id, e.error_code) for e in result.errors] == [
            (second.id, "STATUS_UPDATE_FAILED")
        ]

    def test_tag_failure_is_per_client(self, store: Store) -> None:
        first = create_individual(store, "a@example.com")
        second = create_individual(store, "b@example.com")
        original = store.clients.add_tags

        def flaky(client_id: str, tags: object, **kwargs: object) -> object:
            if client_id == first.id:
                raise StoreError("constraint failed")
            return original(client_id, tags, **kwargs)  # type: ignore[arg-type]

        with patch.object(store.clients, "add_tags", side_effect=flaky):
            result = _run(store, "add_tags", [first.id, second.id], data={"tags": ["vip"]})
        assert result.success_ids == [second.id]
        assert [e.error_code for e in result.errors] == ["ADD_TAGS_ERROR"]
