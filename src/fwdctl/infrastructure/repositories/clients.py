"""Client persistence: documents, denormalised columns, and the tag table."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlalchemy import (
    Connection,
    ColumnElement,
    and_,
    delete,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from fwdctl.infrastructure.database.schema import CLIENT_COLUMN_PATHS, client_tags, clients
from fwdctl.infrastructure.repositories.base import Repository, store_errors

# Columns that override the stored document on read.
_LIFECYCLE_COLUMNS = (
    "id",
    "client_type",
    "status",
    "created_by",
    "created_at",
    "updated_at",
    "deleted_at",
    "deleted_by",
    "deletion_reason",
    "version",
)


def _dig(document: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    node: Any = document
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def _column_values(record: Mapping[str, Any], display_name: str) -> dict[str, Any]:
    """Split *record* into the document plus the scalar column values."""
    document = {k: v for k, v in record.items() if k != "tags"}
    values: dict[str, Any] = {
        "id": record["id"],
        "client_type": record["client_type"],
        "status": record["status"],
        "display_name": display_name,
        "document": document,
        "created_by": record.get("created_by"),
        "created_at": record["created_at"],
        "updated_at": record["updated_at"],
        "deleted_at": record.get("deleted_at"),
        "deleted_by": record.get("deleted_by"),
        "deletion_reason": record.get("deletion_reason"),
        "version": record.get("version", 1),
    }
    for column, path in CLIENT_COLUMN_PATHS.items():
        values[column] = _dig(record, path)
    if values["email"] is None:
        values["email"] = ""
    return values


def _to_record(row: Mapping[str, Any], tags: list[str]) -> dict[str, Any]:
    record = dict(row["document"])
    for column in _LIFECYCLE_COLUMNS:
        record[column] = row[column]
    record["tags"] = tags
    return record


class ClientRepository(Repository):
    """All SQL touching ``clients`` and ``client_tags``.

    Records go in and come out as plain dicts shaped like the client
    model (``tags`` included, sorted).  Unless ``include_deleted`` is set,
    reads ignore soft-deleted rows.
    """

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _load(self, conn: Connection, stmt: Any) -> list[dict[str, Any]]:
        rows = conn.execute(stmt).mappings().all()
        if not rows:
            return []
        ids = [row["id"] for row in rows]
        tags_by_id: dict[str, list[str]] = defaultdict(list)
        tag_rows = conn.execute(
            select(client_tags.c.client_id, client_tags.c.tag)
            .where(client_tags.c.client_id.in_(ids))
            .order_by(client_tags.c.tag)
        ).fetchall()
        for tag_row in tag_rows:
            tags_by_id[tag_row.client_id].append(tag_row.tag)
        return [_to_record(row, tags_by_id[row["id"]]) for row in rows]

    @store_errors
    def get(
        self,
        client_id: str,
        *,
        include_deleted: bool = False,
        conn: Connection | None = None,
    ) -> dict[str, Any] | None:
        """Fetch one client record; None when absent (or soft-deleted)."""
        stmt = select(clients).where(clients.c.id == client_id)
        if not include_deleted:
            stmt = stmt.where(clients.c.deleted_at.is_(None))
        with self._read(conn) as c:
            records = self._load(c, stmt)
        return records[0] if records else None

    @store_errors
    def lifecycle_rows(self, client_ids: Sequence[str]) -> dict[str, dict[str, Any]]:
        """``id``/``status``/``deleted_at`` for every existing id, deleted ones included."""
        if not client_ids:
            return {}
        stmt = select(clients.c.id, clients.c.status, clients.c.deleted_at).where(
            clients.c.id.in_(list(client_ids))
        )
        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return {str(row["id"]): dict(row) for row in rows}

    @store_errors
    def email_taken(self, email: str, *, exclude_id: str | None = None) -> bool:
        """Whether a non-deleted client other than *exclude_id* uses *email* (case-insensitive)."""
        stmt = select(clients.c.id).where(
            func.casefold(clients.c.email) == email.strip().casefold(),
            clients.c.deleted_at.is_(None),
        )
        if exclude_id:
            stmt = stmt.where(clients.c.id != exclude_id)
        with self._engine.connect() as conn:
            return conn.execute(stmt.limit(1)).first() is not None

    @store_errors
    def siret_taken(self, siret: str, *, exclude_id: str | None = None) -> bool:
        stmt = select(clients.c.id).where(
            clients.c.siret == siret,
            clients.c.deleted_at.is_(None),
        )
        if exclude_id:
            stmt = stmt.where(clients.c.id != exclude_id)
        with self._engine.connect() as conn:
            return conn.execute(stmt.limit(1)).first() is not None

    @store_errors
    def count(self, where: ColumnElement[bool] | None = None) -> int:
        stmt = select(func.count()).select_from(clients)
        if where is not None:
            stmt = stmt.where(where)
        with self._engine.connect() as conn:
            return int(conn.execute(stmt).scalar_one() or 0)

    @store_errors
    def select_records(
        self,
        where: ColumnElement[bool] | None = None,
        *,
        order_by: Sequence[Any] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Full records matching *where*, ordered and windowed."""
        stmt = select(clients)
        if where is not None:
            stmt = stmt.where(where)
        stmt = stmt.order_by(*order_by, clients.c.id)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._engine.connect() as conn:
            return self._load(conn, stmt)

    @store_errors
    def facet_rows(self, where: ColumnElement[bool] | None = None) -> list[dict[str, Any]]:
        """The facet columns of every row matching *where* (no pagination)."""
        stmt = select(
            clients.c.client_type,
            clients.c.status,
            clients.c.country,
            clients.c.industry,
        )
        if where is not None:
            stmt = stmt.where(where)
        with self._engine.connect() as conn:
            return [dict(row) for row in conn.execute(stmt).mappings().all()]

    @store_errors
    def name_rows(self, prefix: str, *, limit: int) -> list[dict[str, Any]]:
        """Name and email columns of non-deleted clients with a field starting with *prefix*."""
        pattern = f"{prefix.casefold()}%"
        fields = (
            clients.c.first_name,
            clients.c.last_name,
            clients.c.display_name,
            clients.c.company_name,
            clients.c.email,
        )
        stmt = (
            select(clients.c.id, clients.c.client_type, *fields)
            .where(
                clients.c.deleted_at.is_(None),
                func.casefold(func.coalesce(fields[0], "")).like(pattern)
                | func.casefold(func.coalesce(fields[1], "")).like(pattern)
                | func.casefold(func.coalesce(fields[2], "")).like(pattern)
                | func.casefold(func.coalesce(fields[3], "")).like(pattern)
                | func.casefold(fields[4]).like(pattern),
            )
            .order_by(clients.c.display_name)
            .limit(limit)
        )
        with self._engine.connect() as conn:
            return [dict(row) for row in conn.execute(stmt).mappings().all()]

    @store_errors
    def count_by(self, column: str) -> dict[str, int]:
        """Non-deleted client counts grouped by *column*."""
        col = clients.c[column]
        stmt = (
            select(col, func.count())
            .where(clients.c.deleted_at.is_(None))
            .group_by(col)
        )
        with self._engine.connect() as conn:
            return {str(row[0]): int(row[1]) for row in conn.execute(stmt).fetchall()}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @store_errors
    def insert(
        self,
        record: Mapping[str, Any],
        *,
        display_name: str,
        conn: Connection | None = None,
    ) -> None:
        with self._begin(conn) as c:
            c.execute(insert(clients).values(**_column_values(record, display_name)))
            self._write_tags(c, record["id"], record.get("tags") or [])

    @store_errors
    def replace(
        self,
        record: Mapping[str, Any],
        *,
        display_name: str,
        expected_version: int,
        conn: Connection | None = None,
    ) -> bool:
        """Overwrite a live client if its stored version is *expected_version*.

        ``record["version"]`` must already hold the bumped version.  Tags
        are replaced wholesale.  Returns False when no row matched (missing,
        deleted, or a concurrent write got there first).
        """
        values = _column_values(record, display_name)
        client_id = values.pop("id")
        with self._begin(conn) as c:
            result = c.execute(
                update(clients)
                .where(
                    clients.c.id == client_id,
                    clients.c.deleted_at.is_(None),
                    clients.c.version == expected_version,
                )
                .values(**values)
            )
            if result.rowcount != 1:
                return False
            c.execute(delete(client_tags).where(client_tags.c.client_id == client_id))
            self._write_tags(c, client_id, record.get("tags") or [])
        return True

    @store_errors
    def soft_delete(
        self,
        client_id: str,
        *,
        deleted_at: str,
        deleted_by: str | None,
        reason: str,
        conn: Connection | None = None,
    ) -> bool:
        with self._begin(conn) as c:
            result = c.execute(
                update(clients)
                .where(clients.c.id == client_id, clients.c.deleted_at.is_(None))
                .values(
                    deleted_at=deleted_at,
                    deleted_by=deleted_by,
                    deletion_reason=reason,
                    updated_at=deleted_at,
                    version=clients.c.version + 1,
                )
            )
        return result.rowcount == 1

    @store_errors
    def hard_delete(self, client_id: str, *, conn: Connection | None = None) -> bool:
        with self._begin(conn) as c:
            c.execute(delete(client_tags).where(client_tags.c.client_id == client_id))
            result = c.execute(delete(clients).where(clients.c.id == client_id))
        return result.rowcount == 1

    @store_errors
    def bulk_update_status(
        self,
        client_ids: Sequence[str],
        status: str,
        *,
        updated_at: str,
    ) -> list[str]:
        """Set *status* on every live id in one transaction; returns the ids updated.

        All-or-nothing: if the statement fails nothing is committed.
        """
        if not client_ids:
            return []
        live = and_(clients.c.id.in_(list(client_ids)), clients.c.deleted_at.is_(None))
        with self._engine.begin() as conn:
            targets = [str(row.id) for row in conn.execute(select(clients.c.id).where(live))]
            if targets:
                conn.execute(
                    update(clients)
                    .where(clients.c.id.in_(targets))
                    .values(status=status, updated_at=updated_at, version=clients.c.version + 1)
                )
        return targets

    @store_errors
    def add_tags(
        self, client_id: str, tags: Iterable[str], *, updated_at: str
    ) -> list[str] | None:
        """Union *tags* into the client's tag set atomically.

        Returns the resulting sorted tag list, or None when the client is
        missing or deleted.
        """
        with self._engine.begin() as conn:
            if not self._touch(conn, client_id, updated_at):
                return None
            self._write_tags(conn, client_id, tags)
            return self._tags(conn, client_id)

    @store_errors
    def remove_tags(
        self, client_id: str, tags: Iterable[str], *, updated_at: str
    ) -> list[str] | None:
        """Subtract *tags* from the client's tag set atomically."""
        with self._engine.begin() as conn:
            if not self._touch(conn, client_id, updated_at):
                return None
            conn.execute(
                delete(client_tags).where(
                    client_tags.c.client_id == client_id,
                    client_tags.c.tag.in_(list(tags)),
                )
            )
            return self._tags(conn, client_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _touch(self, conn: Connection, client_id: str, updated_at: str) -> bool:
        result = conn.execute(
            update(clients)
            .where(clients.c.id == client_id, clients.c.deleted_at.is_(None))
            .values(updated_at=updated_at, version=clients.c.version + 1)
        )
        return result.rowcount == 1

    def _write_tags(self, conn: Connection, client_id: str, tags: Iterable[str]) -> None:
        rows = [{"client_id": client_id, "tag": tag} for tag in dict.fromkeys(tags)]
        if not rows:
            return
        stmt = sqlite_insert(client_tags).on_conflict_do_nothing(
            index_elements=[client_tags.c.client_id, client_tags.c.tag]
        )
        conn.execute(stmt, rows)

    def _tags(self, conn: Connection, client_id: str) -> list[str]:
        rows = conn.execute(
            select(client_tags.c.tag)
            .where(client_tags.c.client_id == client_id)
            .order_by(client_tags.c.tag)
        ).fetchall()
        return [str(row.tag) for row in rows]
