"""Database engine setup for SQLite with WAL mode.

SQLite is the default backing store: WAL mode for concurrent readers,
foreign keys enforced, ACID transactions per write.  The DB is stored at
``{workspace_root}/.fwdctl/fwdctl.db`` unless configured otherwise.

Every connection gets a ``casefold()`` SQL function.  SQLite's own
``lower()`` folds ASCII only, so case-insensitive matching on accented
names goes through it instead.

SQLAlchemy Core (not ORM) is used: records are JSON documents with a few
indexed columns, so an identity map buys nothing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from fwdctl.infrastructure.database.schema import metadata


def _casefold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        dbapi_conn.create_function("casefold", 1, _casefold, deterministic=True)

    return engine


def init_database(db_path: Path) -> Engine:
    """Create the database file at *db_path* with all tables.

    Parent directories are created as needed.  Idempotent — safe to call
    on an existing database.

    Returns the engine ready for use.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    return engine
