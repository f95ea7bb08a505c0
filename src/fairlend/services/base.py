"""BaseService — foundation for all fairlend services.

Every service receives a :class:`Store` at construction time. The Store
carries the settings and transactional database access. Services own
their transaction boundaries via ``self._store.transaction()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fairlend.config.settings import FairlendSettings
    from fairlend.infrastructure.store import Store


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class SyncService(BaseService):
            def process_transaction(self, txn) -> ServiceResult:
                with self._store.transaction() as conn:
                    ...
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    @property
    def settings(self) -> FairlendSettings:
        return self._store.settings
