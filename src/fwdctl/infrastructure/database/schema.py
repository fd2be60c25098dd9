"""SQLAlchemy Core table definitions for the fwdctl database.

Each client is stored as a JSON ``document`` holding its nested sections,
plus denormalised scalar columns used for filtering, sorting, and
uniqueness lookups.  Columns win over the document for the audit and
lifecycle fields (``status``, ``updated_at``, ``deleted_*``, ``version``)
because bulk statements only touch columns.

Tags live in ``client_tags`` so that adding or removing tags is a single
set operation in the store rather than a read-modify-write of a list.

``folders.client_id`` deliberately has no foreign key: a hard-deleted
client may leave folders pointing at it (``handle_folders=keep``).
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    REAL,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

clients = Table(
    "clients",
    metadata,
    Column("id", Text, primary_key=True),
    Column("client_type", Text, nullable=False),
    Column("status", Text, nullable=False),
    Column("display_name", Text, nullable=False),
    Column("email", Text, nullable=False),
    Column("siret", Text),
    Column("first_name", Text),
    Column("last_name", Text),
    Column("company_name", Text),
    Column("industry", Text),
    Column("country", Text),
    Column("city", Text),
    Column("priority", Text),
    Column("language", Text),
    Column("credit_limit", REAL, default=0.0, server_default="0.0"),
    Column("payment_terms_days", Integer, default=30, server_default="30"),
    Column("internal_notes", Text),
    Column("document", JSON, nullable=False),
    Column("created_by", Text),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
    Column("deleted_at", Text),
    Column("deleted_by", Text),
    Column("deletion_reason", Text),
    Column("version", Integer, nullable=False, default=1, server_default="1"),
)

client_tags = Table(
    "client_tags",
    metadata,
    Column("client_id", Text, ForeignKey("clients.id"), nullable=False),
    Column("tag", Text, nullable=False),
    UniqueConstraint("client_id", "tag"),
)

folders = Table(
    "folders",
    metadata,
    Column("id", Text, primary_key=True),
    Column("client_id", Text, nullable=False),
    Column("status", Text, nullable=False),
    Column("reference", Text),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
    Column("deleted_at", Text),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_clients_status", clients.c.status)
Index("ix_clients_type", clients.c.client_type)
Index("ix_clients_email", clients.c.email)
Index("ix_clients_siret", clients.c.siret)
Index("ix_clients_deleted_at", clients.c.deleted_at)
Index("ix_client_tags_tag", client_tags.c.tag)
Index("ix_folders_client", folders.c.client_id)
Index("ix_folders_status", folders.c.status)

# Document paths feeding each denormalised column.
CLIENT_COLUMN_PATHS: dict[str, tuple[str, ...]] = {
    "email": ("contact_info", "email"),
    "siret": ("business_info", "legal_info", "siret"),
    "first_name": ("individual_info", "first_name"),
    "last_name": ("individual_info", "last_name"),
    "company_name": ("business_info", "company_name"),
    "industry": ("business_info", "industry"),
    "country": ("contact_info", "address", "country"),
    "city": ("contact_info", "address", "city"),
    "priority": ("commercial_info", "priority"),
    "language": ("commercial_info", "preferred_language"),
    "credit_limit": ("commercial_info", "credit_limit"),
    "payment_terms_days": ("commercial_info", "payment_terms_days"),
    "internal_notes": ("internal_notes",),
}
