"""ClientService — the record service.

Create, read, update, and delete client records, plus the read models
built on them (detail, statistics, paged listing, global counts).

Create and update do not validate: callers run
:class:`~fwdctl.services.validation.ValidationService` first.  A payload
that cannot even be shaped into a client model is refused with
:class:`~fwdctl.errors.InvalidOperationError`.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError
from sqlalchemy import and_

from fwdctl.domain.contacts import count_active, ensure_active_primary
from fwdctl.domain.ids import generate_id, validate_id
from fwdctl.domain.models import (
    BusinessClient,
    Client,
    ClientDetail,
    ClientPage,
    ClientStatistics,
    CommercialHistory,
    CommercialInfo,
    build_display_info,
    display_name,
    parse_client,
    to_summary,
)
from fwdctl.domain.tags import normalize_tags
from fwdctl.domain.types import (
    ClientStatus,
    ClientType,
    DeletionType,
    FolderAction,
    FolderPolicy,
    FolderStatus,
)
from fwdctl.errors import (
    ActiveFoldersError,
    ClientNotFoundError,
    ConcurrentModificationError,
    InvalidOperationError,
)
from fwdctl.infrastructure.database.schema import clients
from fwdctl.services._helpers import days_ago_iso, deep_merge, now_iso
from fwdctl.services.base import BaseService
from fwdctl.services.contracts import DeleteClientParams, DeleteClientResult, FolderActionRecord
from fwdctl.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

DEFAULT_DELETION_REASON = "Manual deletion"
STATISTICS_PERIOD_DAYS = 30

# Keys a caller may never set through create/update.
_SERVER_FIELDS = frozenset(
    {
        "id",
        "client_type",
        "status",
        "commercial_history",
        "created_by",
        "created_at",
        "updated_at",
        "deleted_at",
        "deleted_by",
        "deletion_reason",
        "version",
    }
)
_UPDATABLE_SERVER_FIELDS = frozenset({"status", "commercial_history"})


def parse_record(record: Mapping[str, Any]) -> Client:
    """Build a client model from a record dict, refusing malformed shapes."""
    try:
        return parse_client(dict(record))
    except ValidationError as exc:
        issues = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise InvalidOperationError(
            f"Client data does not match the {record.get('client_type')} client shape",
            detail={"errors": issues},
        ) from exc


def with_repaired_contacts(client: Client) -> Client:
    """Promote a primary contact on a business client that lacks an active one."""
    if not isinstance(client, BusinessClient):
        return client
    contacts = ensure_active_primary(client.business_info.contacts)
    info = client.business_info.model_copy(update={"contacts": contacts})
    return client.model_copy(update={"business_info": info})


class ClientService(BaseService):
    """Record service over the client store."""

    # ------------------------------------------------------------------
    # Create / read
    # ------------------------------------------------------------------

    @traced
    def create(self, data: Mapping[str, Any], created_by: str | None = None) -> Client:
        """Persist a new client with defaults applied and status ``active``.

        Raises:
            InvalidOperationError: unknown ``client_type`` or unshapeable payload.
            StoreError: the insert failed.
        """
        client_type = data.get("client_type")
        if client_type not in {t.value for t in ClientType}:
            raise InvalidOperationError(f"Unknown client type: {client_type}")

        now = now_iso()
        payload = {k: v for k, v in data.items() if k not in _SERVER_FIELDS}
        defaults = CommercialInfo().model_dump(mode="json")
        commercial = data.get("commercial_info")
        if not isinstance(commercial, Mapping):
            commercial = {}
        record = {
            **payload,
            "id": generate_id("client"),
            "client_type": client_type,
            "status": ClientStatus.ACTIVE.value,
            "commercial_info": {**defaults, **commercial},
            "commercial_history": CommercialHistory().model_dump(mode="json"),
            "tags": sorted(normalize_tags(data.get("tags") or [])),
            "created_by": created_by,
            "created_at": now,
            "updated_at": now,
            "version": 1,
        }
        client = with_repaired_contacts(parse_record(record))
        self._store.clients.insert(
            client.model_dump(mode="json"), display_name=display_name(client)
        )
        logger.info("Created %s client %s", client.client_type, client.id)
        return client

    @traced
    def get_by_id(self, client_id: str) -> Client | None:
        """The live client, or None when missing or soft-deleted."""
        record = self._store.clients.get(client_id)
        if record is None:
            return None
        return parse_record(record)

    @traced
    def get_detail(self, client_id: str) -> ClientDetail | None:
        client = self.get_by_id(client_id)
        if client is None:
            return None
        by_status = self._store.folders.count_by_status(client_id)
        active = by_status.get(FolderStatus.ACTIVE.value, 0)
        last_activity = self._store.folders.last_update(client_id)
        return ClientDetail(
            client=client,
            display_info=build_display_info(client),
            total_folders=sum(by_status.values()),
            active_folders=active,
            last_activity_date=last_activity or client.updated_at,
            can_modify=client.status != ClientStatus.ARCHIVED,
            can_delete=active == 0 and client.status == ClientStatus.INACTIVE,
        )

    @traced
    def get_statistics(self, client_id: str) -> ClientStatistics:
        """Folder counts by status and commercial history figures.

        Raises:
            ClientNotFoundError: missing or soft-deleted client.
        """
        client = self.get_by_id(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        by_status = self._store.folders.count_by_status(client_id)
        now = now_iso()
        return ClientStatistics(
            client_id=client_id,
            total_folders=sum(by_status.values()),
            folders_by_status=by_status,
            total_revenue=client.commercial_history.total_orders_amount,
            revenue_currency=client.commercial_info.credit_limit_currency,
            average_payment_delay=client.commercial_history.average_payment_delay_days,
            calculated_at=now,
            period_start=days_ago_iso(STATISTICS_PERIOD_DAYS),
            period_end=now,
        )

    @traced
    def list_clients(
        self,
        *,
        page: int = 1,
        page_size: int | None = None,
        statuses: list[str] | None = None,
        client_types: list[str] | None = None,
    ) -> ClientPage:
        """Newest-first page of live clients."""
        if page < 1:
            raise InvalidOperationError(f"Page must be >= 1, got {page}")
        config = self.settings.search
        size = min(page_size or config.default_page_size, config.max_page_size)
        if size < 1:
            raise InvalidOperationError(f"Page size must be >= 1, got {size}")

        conditions = [clients.c.deleted_at.is_(None)]
        if statuses:
            conditions.append(clients.c.status.in_(statuses))
        if client_types:
            conditions.append(clients.c.client_type.in_(client_types))
        where = and_(*conditions)

        total = self._store.clients.count(where)
        records = self._store.clients.select_records(
            where,
            order_by=[clients.c.created_at.desc()],
            offset=(page - 1) * size,
            limit=size,
        )
        return ClientPage(
            clients=[to_summary(parse_record(r)) for r in records],
            total=total,
            page=page,
            page_size=size,
            total_pages=math.ceil(total / size),
        )

    @traced
    def global_stats(self) -> dict[str, Any]:
        """Totals by status and by type over live clients."""
        by_status = self._store.clients.count_by("status")
        by_type = self._store.clients.count_by("client_type")
        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "by_type": by_type,
        }

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    @traced
    def update(
        self,
        client_id: str,
        data: Mapping[str, Any],
        *,
        expected_version: int | None = None,
    ) -> Client:
        """Deep-merge *data* into the stored client and bump its version.

        ``tags`` in *data* replaces the tag set; lists inside sections
        (contacts, payment methods) replace the stored list.
        A business client left without an active primary gets its first
        active contact promoted.

        Raises:
            ClientNotFoundError: missing or soft-deleted client.
            ConcurrentModificationError: the stored version is not
                *expected_version*, or changed during the write.
            InvalidOperationError: the merged record is not a valid client,
                or is a business client with no active contact.
            StoreError: the write failed.
        """
        current = self._store.clients.get(client_id)
        if current is None:
            raise ClientNotFoundError(client_id)
        version = int(current["version"])
        if expected_version is not None and version != expected_version:
            raise ConcurrentModificationError(client_id, expected_version)

        patch = {
            k: v
            for k, v in data.items()
            if k not in _SERVER_FIELDS or k in _UPDATABLE_SERVER_FIELDS
        }
        if "tags" in patch:
            patch["tags"] = sorted(normalize_tags(patch["tags"] or []))
        merged = deep_merge(current, patch)
        merged["updated_at"] = now_iso()
        merged["version"] = version + 1

        client = with_repaired_contacts(parse_record(merged))
        if isinstance(client, BusinessClient) and count_active(client.business_info.contacts) == 0:
            raise InvalidOperationError(
                f"Client {client_id} must keep at least one active contact"
            )
        self._replace(client, expected_version=version)
        logger.info("Updated client %s (version %d)", client_id, client.version)
        return client

    def _replace(self, client: Client, *, expected_version: int) -> None:
        """Compare-and-swap write of *client* over *expected_version*."""
        written = self._store.clients.replace(
            client.model_dump(mode="json"),
            display_name=display_name(client),
            expected_version=expected_version,
        )
        if written:
            return
        if self._store.clients.get(client.id) is None:
            raise ClientNotFoundError(client.id)
        raise ConcurrentModificationError(client.id, expected_version)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @traced
    def delete(self, params: DeleteClientParams) -> DeleteClientResult:
        """Soft or hard delete with an explicit folder policy.

        The client write and the folder policy run in one transaction.

        Raises:
            ClientNotFoundError: missing or already soft-deleted client.
            ActiveFoldersError: active folders exist and ``force`` is off.
            InvalidOperationError: bad transfer target.
            StoreError: the transaction failed (nothing was written).
        """
        client_id = params.client_id
        if self._store.clients.get(client_id) is None:
            raise ClientNotFoundError(client_id)

        folders = self._store.folders.list_for_client(client_id)
        active_ids = [f["id"] for f in folders if f["status"] == FolderStatus.ACTIVE]
        if active_ids and not params.force:
            raise ActiveFoldersError(client_id, active_ids)

        target_id = params.transfer_to_client_id
        if params.handle_folders == FolderPolicy.TRANSFER:
            self._check_transfer_target(client_id, target_id)

        warnings: list[str] = []
        if active_ids:
            warnings.append(f"Client deleted with {len(active_ids)} active folder(s)")

        folder_ids = [f["id"] for f in folders]
        deleted_at = now_iso()
        with trace_span("delete_transaction"), self._store.transaction() as conn:
            if params.deletion_type == DeletionType.HARD:
                removed = self._store.clients.hard_delete(client_id, conn=conn)
            else:
                removed = self._store.clients.soft_delete(
                    client_id,
                    deleted_at=deleted_at,
                    deleted_by=params.deleted_by,
                    reason=params.reason or DEFAULT_DELETION_REASON,
                    conn=conn,
                )
            if not removed:
                raise ClientNotFoundError(client_id)

            if params.handle_folders == FolderPolicy.ARCHIVE:
                self._store.folders.archive(folder_ids, updated_at=deleted_at, conn=conn)
            elif params.handle_folders == FolderPolicy.TRANSFER:
                self._store.folders.reassign(
                    folder_ids, str(target_id), updated_at=deleted_at, conn=conn
                )

        actions = _folder_actions(folder_ids, params.handle_folders, target_id)
        hard = params.deletion_type == DeletionType.HARD
        if hard and params.handle_folders == FolderPolicy.KEEP and folder_ids:
            warnings.append(
                f"{len(folder_ids)} folder(s) still reference the removed client {client_id}"
            )

        logger.info(
            "Deleted client %s (%s, folders=%s, affected=%d)",
            client_id,
            params.deletion_type.value,
            params.handle_folders.value,
            len(folder_ids),
        )
        return DeleteClientResult(
            success=True,
            client_id=client_id,
            deletion_type=params.deletion_type,
            affected_folders_count=len(folder_ids),
            folder_actions=actions,
            warnings=warnings,
            deleted_at=deleted_at,
        )

    def _check_transfer_target(self, client_id: str, target_id: str | None) -> None:
        if not target_id:
            raise InvalidOperationError("transfer_to_client_id is required to transfer folders")
        if not validate_id(target_id, "client"):
            raise InvalidOperationError(f"Malformed client id: {target_id}")
        if target_id == client_id:
            raise InvalidOperationError("Cannot transfer folders to the client being deleted")
        if self._store.clients.get(target_id) is None:
            raise InvalidOperationError(
                f"Transfer target not found: {target_id}",
                detail={"transfer_to_client_id": target_id},
            )


def _folder_actions(
    folder_ids: list[str], policy: FolderPolicy, target_id: str | None
) -> list[FolderActionRecord]:
    if policy == FolderPolicy.ARCHIVE:
        return [FolderActionRecord(folder_id=f, action=FolderAction.ARCHIVED) for f in folder_ids]
    if policy == FolderPolicy.TRANSFER:
        return [
            FolderActionRecord(
                folder_id=f, action=FolderAction.TRANSFERRED, target_client_id=target_id
            )
            for f in folder_ids
        ]
    return [FolderActionRecord(folder_id=f, action=FolderAction.KEPT) for f in folder_ids]
