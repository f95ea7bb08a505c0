"""SQLite database engine and schema via SQLAlchemy Core."""

from fairlend.infrastructure.database.engine import create_db_engine, init_database
from fairlend.infrastructure.database.schema import (
    backfill_log,
    borrowers,
    ledger_postings,
    metadata,
    mortgages,
    payments,
    sync_log,
)

__all__ = [
    "backfill_log",
    "borrowers",
    "create_db_engine",
    "init_database",
    "ledger_postings",
    "metadata",
    "mortgages",
    "payments",
    "sync_log",
]
