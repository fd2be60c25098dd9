"""Store — the single persistence dependency injected into every service.

The Store owns the SQLAlchemy engine and the repositories built on it.
:meth:`transaction` yields a connection inside ``engine.begin()`` so a
service can group writes across repositories (a client delete and its
folder policy commit or roll back together).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from fwdctl.errors import StoreError
from fwdctl.infrastructure.database.engine import init_database
from fwdctl.infrastructure.repositories.clients import ClientRepository
from fwdctl.infrastructure.repositories.folders import FolderRepository

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from fwdctl.config.settings import FwdSettings

logger = logging.getLogger(__name__)


class Store:
    """Engine plus repositories, constructed once per process (or per test).

    Services receive the Store via their :class:`BaseService` constructor.
    """

    def __init__(self, settings: FwdSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.database_path)
        self.clients = ClientRepository(self._engine)
        self.folders = FolderRepository(self._engine)
        logger.debug("Store opened at %s", settings.database_path)

    @property
    def path(self) -> Path:
        return self._settings.database_path

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> FwdSettings:
        return self._settings

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """One database transaction: commit on success, roll back on exception.

        Usage::

            with store.transaction() as conn:
                store.clients.soft_delete(client_id, ..., conn=conn)
                store.folders.archive(folder_ids, ..., conn=conn)
        """
        try:
            with self._engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            raise StoreError(f"Transaction failed: {exc}") from exc

    def close(self) -> None:
        self._engine.dispose()
