"""Store — the single dependency injected into every service.

Owns the settings and a lazily created SQLite engine. Routing and ledger
operations never touch the database, so the engine (and the database
file) only comes into existence on the first :meth:`Store.transaction`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from fairlend.infrastructure.database.engine import init_database

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from fairlend.config.settings import FairlendSettings

logger = logging.getLogger(__name__)


class Store:
    """Settings plus transactional database access.

    Usage::

        with store.transaction() as conn:
            conn.execute(insert(payments).values(...))

    The block commits on normal exit and rolls back if it raises.
    """

    def __init__(self, settings: FairlendSettings) -> None:
        self._settings = settings
        self._engine: Engine | None = None

    @property
    def settings(self) -> FairlendSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        """The SQLAlchemy engine (database initialized on first access)."""
        if self._engine is None:
            db_path = self._settings.database_path
            logger.debug("Opening database at %s", db_path)
            self._engine = init_database(db_path)
        return self._engine

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Yield a connection inside ``engine.begin()``."""
        with self.engine.begin() as conn:
            yield conn

    def close(self) -> None:
        """Dispose of the engine, if one was created."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
