"""Folder persistence, limited to what client lifecycle rules need."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import Connection, func, insert, select, update

from fwdctl.infrastructure.database.schema import folders
from fwdctl.infrastructure.repositories.base import Repository, store_errors

ACTIVE_STATUS = "active"
ARCHIVED_STATUS = "archived"


class FolderRepository(Repository):
    """SQL over ``folders``.  Soft-deleted folders are invisible to every read."""

    @store_errors
    def insert(self, record: Mapping[str, Any], *, conn: Connection | None = None) -> None:
        with self._begin(conn) as c:
            c.execute(insert(folders).values(**record))

    @store_errors
    def list_for_client(
        self, client_id: str, *, conn: Connection | None = None
    ) -> list[dict[str, Any]]:
        stmt = (
            select(folders)
            .where(folders.c.client_id == client_id, folders.c.deleted_at.is_(None))
            .order_by(folders.c.created_at, folders.c.id)
        )
        with self._read(conn) as c:
            return [dict(row) for row in c.execute(stmt).mappings().all()]

    @store_errors
    def clients_with_active_folders(self, client_ids: Sequence[str]) -> set[str]:
        """Subset of *client_ids* owning at least one active folder (one query)."""
        if not client_ids:
            return set()
        stmt = (
            select(folders.c.client_id)
            .where(
                folders.c.client_id.in_(list(client_ids)),
                folders.c.status == ACTIVE_STATUS,
                folders.c.deleted_at.is_(None),
            )
            .distinct()
        )
        with self._engine.connect() as conn:
            return {str(row.client_id) for row in conn.execute(stmt)}

    @store_errors
    def count_by_status(self, client_id: str) -> dict[str, int]:
        stmt = (
            select(folders.c.status, func.count())
            .where(folders.c.client_id == client_id, folders.c.deleted_at.is_(None))
            .group_by(folders.c.status)
        )
        with self._engine.connect() as conn:
            return {str(row[0]): int(row[1]) for row in conn.execute(stmt).fetchall()}

    @store_errors
    def last_update(self, client_id: str) -> str | None:
        """Latest ``updated_at`` among the client's folders."""
        stmt = select(func.max(folders.c.updated_at)).where(
            folders.c.client_id == client_id, folders.c.deleted_at.is_(None)
        )
        with self._engine.connect() as conn:
            value = conn.execute(stmt).scalar_one_or_none()
        return str(value) if value is not None else None

    @store_errors
    def archive(
        self, folder_ids: Sequence[str], *, updated_at: str, conn: Connection | None = None
    ) -> None:
        if not folder_ids:
            return
        with self._begin(conn) as c:
            c.execute(
                update(folders)
                .where(folders.c.id.in_(list(folder_ids)))
                .values(status=ARCHIVED_STATUS, updated_at=updated_at)
            )

    @store_errors
    def reassign(
        self,
        folder_ids: Sequence[str],
        target_client_id: str,
        *,
        updated_at: str,
        conn: Connection | None = None,
    ) -> None:
        if not folder_ids:
            return
        with self._begin(conn) as c:
            c.execute(
                update(folders)
                .where(folders.c.id.in_(list(folder_ids)))
                .values(client_id=target_client_id, updated_at=updated_at)
            )
