"""SQLite database engine and schema via SQLAlchemy Core."""

from fwdctl.infrastructure.database.engine import create_db_engine, init_database
from fwdctl.infrastructure.database.schema import client_tags, clients, folders, metadata

__all__ = [
    "client_tags",
    "clients",
    "create_db_engine",
    "folders",
    "init_database",
    "metadata",
]
