"""SQLAlchemy Core table definitions for the payment-sync database.

Timestamps are ISO 8601 UTC strings; dates are ``YYYY-MM-DD`` strings as
Rotessa reports them. Error lists are stored as JSON arrays.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)

metadata = MetaData()

borrowers = Table(
    "borrowers",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text),
    Column("rotessa_customer_id", Text, nullable=False, unique=True),
    Column("created", Text, nullable=False),
)

mortgages = Table(
    "mortgages",
    metadata,
    Column("id", Text, primary_key=True),
    Column("borrower_id", Text, ForeignKey("borrowers.id"), nullable=False),
    Column("rotessa_schedule_id", Integer, unique=True),
    Column("created", Text, nullable=False),
)

payments = Table(
    "payments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("mortgage_id", Text, ForeignKey("mortgages.id"), nullable=False),
    Column("borrower_id", Text, ForeignKey("borrowers.id")),
    Column("amount", Text, nullable=False),  # decimal string as reported
    Column("amount_cents", Integer, nullable=False),
    Column("currency", Text, nullable=False, default="CAD", server_default="CAD"),
    Column("payment_type", Text, nullable=False, server_default="interest_only"),
    Column("status", Text, nullable=False),
    Column("process_date", Text, nullable=False),
    Column("due_date", Text),
    Column("paid_date", Text),
    Column("settlement_date", Text),
    Column("rotessa_transaction_id", Text, nullable=False, unique=True),
    Column("rotessa_customer_id", Text),
    Column("rotessa_schedule_id", Integer),
    Column("rotessa_status", Text),
    Column("rotessa_status_reason", Text),
    Column("ledger_transaction_id", Text),  # "pending:{reference}" until posted
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
)

sync_log = Table(
    "sync_log",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("sync_type", Text, nullable=False),
    Column("scope", Text, nullable=False),
    Column("entity_id", Text),
    Column("status", Text, nullable=False),
    Column("triggered_by", Text),
    Column("started_at", Text, nullable=False),
    Column("completed_at", Text),
    Column("start_date", Text),
    Column("end_date", Text),
    Column("transactions_processed", Integer, default=0, server_default="0"),
    Column("payments_created", Integer, default=0, server_default="0"),
    Column("payments_updated", Integer, default=0, server_default="0"),
    Column("ledger_transactions_created", Integer, default=0, server_default="0"),
    Column("errors", Integer, default=0, server_default="0"),
    Column("error_details", Text),  # JSON array
)

backfill_log = Table(
    "backfill_log",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("mortgage_id", Text, nullable=False),
    Column("schedule_id", Integer),
    Column("triggered_by", Text),
    Column("status", Text, nullable=False),
    Column("started_at", Text, nullable=False),
    Column("completed_at", Text),
    Column("transactions_found", Integer, default=0, server_default="0"),
    Column("payments_created", Integer, default=0, server_default="0"),
    Column("ledger_transactions_created", Integer, default=0, server_default="0"),
    Column("errors", Integer, default=0, server_default="0"),
    Column("error_details", Text),  # JSON array
)

# Outbox for the external ledger. Rows are written here and posted elsewhere.
ledger_postings = Table(
    "ledger_postings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("reference", Text, nullable=False, unique=True),
    Column("payment_id", Integer, ForeignKey("payments.id"), nullable=False),
    Column("mortgage_id", Text, nullable=False),
    Column("rotessa_customer_id", Text, nullable=False),
    Column("amount_cents", Integer, nullable=False),
    Column("effective_timestamp", Text),
    Column("status", Text, nullable=False, default="pending", server_default="pending"),
    Column("created", Text, nullable=False),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_payments_mortgage", payments.c.mortgage_id)
Index("ix_payments_status", payments.c.status)
Index("ix_sync_log_status", sync_log.c.status)
Index("ix_sync_log_started_at", sync_log.c.started_at)
Index("ix_ledger_postings_status", ledger_postings.c.status)
