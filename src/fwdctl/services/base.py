"""BaseService — foundation for all fwdctl services.

Every service receives a :class:`Store` at construction time. The Store
provides the repositories and transactional access to the database.
Services own their transaction boundaries via ``self._store.transaction()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fwdctl.config.settings import FwdSettings
    from fwdctl.infrastructure.store import Store


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class ClientService(BaseService):
            def delete(self, params: DeleteClientParams) -> DeleteClientResult:
                with self._store.transaction() as conn:
                    ...
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    @property
    def settings(self) -> FwdSettings:
        return self._store.settings
