"""SyncService — Rotessa payment reconciliation.

Polls the Rotessa transaction report and mirrors it into local payment
records, then hands cleared payments to the external ledger through the
``ledger_postings`` outbox.

Key patterns:
- Every run writes a sync log row first and finalizes it with metrics.
- Per-item error isolation: one bad transaction is recorded, not raised.
- Idempotency: payments are keyed by Rotessa transaction id and a payment
  is queued for the ledger at most once.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fairlend.domain.payments import (
    InvalidDateRangeError,
    LinkNotFoundError,
    PaymentNotFoundError,
    PaymentStatus,
    RotessaStatus,
    SyncError,
    SyncHealth,
    SyncScope,
    SyncStatus,
    SyncType,
    amount_to_cents,
    backfill_reference,
    map_rotessa_status,
    payment_reference,
    resolve_sync_status,
    sync_health,
    to_ledger_timestamp,
    validate_date_range,
)
from fairlend.infrastructure.database.schema import (
    backfill_log,
    borrowers,
    ledger_postings,
    mortgages,
    payments,
    sync_log,
)
from fairlend.infrastructure.rotessa import RotessaError
from fairlend.services._helpers import days_ago_iso, now_iso, since_iso, today_iso, years_ago_iso
from fairlend.services.base import BaseService
from fairlend.services.result import ServiceResult
from fairlend.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from sqlalchemy import Connection, Row

    from fairlend.infrastructure.rotessa import RotessaTransaction, TransactionSource

logger = logging.getLogger(__name__)

# Failures that are recorded against a single transaction instead of aborting the run.
_ITEM_ERRORS = (SyncError, ValueError, SQLAlchemyError)

# Upper bound on report pages walked by a backfill.
_MAX_REPORT_PAGES = 500


@dataclass
class SyncMetrics:
    transactions_processed: int = 0
    payments_created: int = 0
    payments_updated: int = 0
    ledger_transactions_created: int = 0
    errors: int = 0


@dataclass
class BackfillMetrics:
    transactions_found: int = 0
    payments_created: int = 0
    ledger_transactions_created: int = 0
    errors: int = 0


@dataclass
class _Upsert:
    payment_id: int
    mortgage_id: str
    created: bool = False
    updated: bool = False


@dataclass
class _RunErrors:
    items: list[dict[str, Any]] = field(default_factory=list)

    def add(self, transaction_id: str | int, message: str) -> None:
        self.items.append(
            {"transaction_id": str(transaction_id), "error": message, "timestamp": now_iso()}
        )


def _sync_log_to_dict(row: Row[Any]) -> dict[str, Any]:
    return {
        "id": row.id,
        "sync_type": row.sync_type,
        "scope": row.scope,
        "entity_id": row.entity_id,
        "status": row.status,
        "triggered_by": row.triggered_by,
        "started_at": row.started_at,
        "completed_at": row.completed_at,
        "date_range": (
            {"start_date": row.start_date, "end_date": row.end_date}
            if row.start_date or row.end_date
            else None
        ),
        "metrics": {
            "transactions_processed": row.transactions_processed,
            "payments_created": row.payments_created,
            "payments_updated": row.payments_updated,
            "ledger_transactions_created": row.ledger_transactions_created,
            "errors": row.errors,
        },
        "errors": json.loads(row.error_details) if row.error_details else [],
    }


class SyncService(BaseService):
    """Reconciles Rotessa transactions with local payments."""

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    @traced
    def link_schedule(
        self,
        mortgage_id: str,
        *,
        borrower_id: str,
        rotessa_customer_id: str | int,
        schedule_id: int,
        borrower_name: str | None = None,
    ) -> ServiceResult:
        """Link a mortgage to its Rotessa customer and transaction schedule.

        Creates the borrower and mortgage rows on first use and updates the
        identifiers afterwards.
        """
        op = "sync_link"
        customer_id = str(rotessa_customer_id)
        now = now_iso()
        try:
            with self._store.transaction() as conn:
                existing_borrower = conn.execute(
                    select(borrowers).where(borrowers.c.id == borrower_id)
                ).first()
                if existing_borrower is None:
                    conn.execute(
                        insert(borrowers).values(
                            id=borrower_id,
                            name=borrower_name,
                            rotessa_customer_id=customer_id,
                            created=now,
                        )
                    )
                else:
                    conn.execute(
                        update(borrowers)
                        .where(borrowers.c.id == borrower_id)
                        .values(
                            rotessa_customer_id=customer_id,
                            name=borrower_name or existing_borrower.name,
                        )
                    )

                existing_mortgage = conn.execute(
                    select(mortgages.c.id).where(mortgages.c.id == mortgage_id)
                ).first()
                if existing_mortgage is None:
                    conn.execute(
                        insert(mortgages).values(
                            id=mortgage_id,
                            borrower_id=borrower_id,
                            rotessa_schedule_id=schedule_id,
                            created=now,
                        )
                    )
                else:
                    conn.execute(
                        update(mortgages)
                        .where(mortgages.c.id == mortgage_id)
                        .values(borrower_id=borrower_id, rotessa_schedule_id=schedule_id)
                    )
        except SQLAlchemyError as exc:
            logger.warning("Linking %s failed: %s", mortgage_id, exc)
            return ServiceResult.failure(
                op,
                "LINK_CONFLICT",
                "Customer or schedule is already linked to another record",
                mortgage_id=mortgage_id,
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "mortgage_id": mortgage_id,
                "borrower_id": borrower_id,
                "rotessa_customer_id": customer_id,
                "rotessa_schedule_id": schedule_id,
                "created": existing_mortgage is None,
            },
        )

    # ------------------------------------------------------------------
    # Single-record operations
    # ------------------------------------------------------------------

    def _upsert_payment(self, conn: Connection, txn: RotessaTransaction) -> _Upsert:
        """Insert or update the payment for one report row.

        Raises:
            LinkNotFoundError: New transaction whose customer or schedule is
                not linked.
        """
        status = map_rotessa_status(txn.status)
        now = now_iso()
        existing = conn.execute(
            select(payments.c.id, payments.c.mortgage_id, payments.c.paid_date).where(
                payments.c.rotessa_transaction_id == str(txn.id)
            )
        ).first()

        if existing is not None:
            conn.execute(
                update(payments)
                .where(payments.c.id == existing.id)
                .values(
                    status=status,
                    rotessa_status=txn.status,
                    rotessa_status_reason=txn.status_reason,
                    settlement_date=txn.settlement_date,
                    paid_date=(
                        txn.settlement_date if status == PaymentStatus.CLEARED else existing.paid_date
                    ),
                    modified=now,
                )
            )
            return _Upsert(payment_id=existing.id, mortgage_id=existing.mortgage_id, updated=True)

        borrower = conn.execute(
            select(borrowers.c.id).where(borrowers.c.rotessa_customer_id == str(txn.customer_id))
        ).first()
        if borrower is None:
            msg = f"Borrower not found for Rotessa customer {txn.customer_id}"
            raise LinkNotFoundError(msg)

        mortgage = conn.execute(
            select(mortgages.c.id).where(
                mortgages.c.rotessa_schedule_id == txn.transaction_schedule_id
            )
        ).first()
        if mortgage is None:
            msg = f"Mortgage not found for Rotessa schedule {txn.transaction_schedule_id}"
            raise LinkNotFoundError(msg)

        result = conn.execute(
            insert(payments).values(
                mortgage_id=mortgage.id,
                borrower_id=borrower.id,
                amount=txn.amount,
                amount_cents=amount_to_cents(txn.amount),
                currency="CAD",
                payment_type="interest_only",
                status=status,
                process_date=txn.process_date,
                due_date=txn.process_date,
                paid_date=txn.settlement_date if status == PaymentStatus.CLEARED else None,
                settlement_date=txn.settlement_date,
                rotessa_transaction_id=str(txn.id),
                rotessa_customer_id=str(txn.customer_id),
                rotessa_schedule_id=txn.transaction_schedule_id,
                rotessa_status=txn.status,
                rotessa_status_reason=txn.status_reason,
                created=now,
                modified=now,
            )
        )
        return _Upsert(
            payment_id=result.inserted_primary_key[0],
            mortgage_id=mortgage.id,
            created=True,
        )

    def _queue_posting(
        self,
        conn: Connection,
        payment_id: int,
        *,
        reference: str | None = None,
        effective_timestamp: str | None = None,
    ) -> bool:
        """Write the outbox row for *payment_id*. False if already queued.

        Raises:
            PaymentNotFoundError: Unknown payment.
            LinkNotFoundError: The payment's mortgage or borrower is gone.
        """
        payment = conn.execute(select(payments).where(payments.c.id == payment_id)).first()
        if payment is None:
            msg = f"Payment {payment_id} not found"
            raise PaymentNotFoundError(msg)
        if payment.ledger_transaction_id:
            return False

        link = conn.execute(
            select(borrowers.c.rotessa_customer_id)
            .select_from(mortgages.join(borrowers, mortgages.c.borrower_id == borrowers.c.id))
            .where(mortgages.c.id == payment.mortgage_id)
        ).first()
        if link is None:
            msg = f"Borrower not found for mortgage {payment.mortgage_id}"
            raise LinkNotFoundError(msg)

        reference = reference or payment_reference(payment.id, payment.mortgage_id)
        now = now_iso()
        conn.execute(
            insert(ledger_postings).values(
                reference=reference,
                payment_id=payment.id,
                mortgage_id=payment.mortgage_id,
                rotessa_customer_id=link.rotessa_customer_id,
                amount_cents=payment.amount_cents,
                effective_timestamp=effective_timestamp,
                status="pending",
                created=now,
            )
        )
        conn.execute(
            update(payments)
            .where(payments.c.id == payment.id)
            .values(ledger_transaction_id=f"pending:{reference}", modified=now)
        )
        return True

    @traced
    def process_transaction(self, txn: RotessaTransaction) -> ServiceResult:
        """Create or update the local payment for one Rotessa transaction."""
        op = "process_transaction"
        try:
            with self._store.transaction() as conn:
                outcome = self._upsert_payment(conn, txn)
        except LinkNotFoundError as exc:
            return ServiceResult.failure(op, "NOT_FOUND", str(exc), transaction_id=txn.id)
        except ValueError as exc:
            return ServiceResult.failure(op, "INVALID_AMOUNT", str(exc), transaction_id=txn.id)
        return ServiceResult(ok=True, op=op, data=asdict(outcome))

    @traced
    def record_to_ledger(
        self,
        payment_id: int,
        *,
        reference: str | None = None,
        effective_timestamp: str | None = None,
    ) -> ServiceResult:
        """Queue a payment for the external ledger (no-op when already queued)."""
        op = "record_to_ledger"
        try:
            with self._store.transaction() as conn:
                queued = self._queue_posting(
                    conn,
                    payment_id,
                    reference=reference,
                    effective_timestamp=effective_timestamp,
                )
        except SyncError as exc:
            return ServiceResult.failure(op, "NOT_FOUND", str(exc), payment_id=payment_id)
        except IntegrityError:
            return ServiceResult.failure(
                op,
                "REFERENCE_CONFLICT",
                f"Ledger reference {reference!r} is already used by another payment",
                payment_id=payment_id,
                reference=reference,
            )
        return ServiceResult(ok=True, op=op, data={"payment_id": payment_id, "queued": queued})

    # ------------------------------------------------------------------
    # Sync runs
    # ------------------------------------------------------------------

    def _running_sync(self, conn: Connection) -> Row[Any] | None:
        return conn.execute(
            select(sync_log.c.id)
            .where(sync_log.c.status == SyncStatus.RUNNING)
            .order_by(sync_log.c.id.desc())
            .limit(1)
        ).first()

    def _create_sync_log(
        self,
        *,
        sync_type: SyncType,
        scope: SyncScope,
        entity_id: str | None,
        triggered_by: str | None,
        start_date: str | None,
        end_date: str | None,
    ) -> int:
        with self._store.transaction() as conn:
            result = conn.execute(
                insert(sync_log).values(
                    sync_type=sync_type,
                    scope=scope,
                    entity_id=entity_id,
                    status=SyncStatus.RUNNING,
                    triggered_by=triggered_by,
                    started_at=now_iso(),
                    start_date=start_date,
                    end_date=end_date,
                )
            )
            return result.inserted_primary_key[0]

    def _finish_sync_log(
        self,
        log_id: int,
        status: SyncStatus,
        metrics: SyncMetrics,
        errors: _RunErrors,
    ) -> None:
        with self._store.transaction() as conn:
            conn.execute(
                update(sync_log)
                .where(sync_log.c.id == log_id)
                .values(
                    status=status,
                    completed_at=now_iso(),
                    error_details=json.dumps(errors.items) if errors.items else None,
                    **asdict(metrics),
                )
            )

    def _load_sync_log(self, log_id: int) -> dict[str, Any] | None:
        with self._store.transaction() as conn:
            row = conn.execute(select(sync_log).where(sync_log.c.id == log_id)).first()
        return _sync_log_to_dict(row) if row is not None else None

    def _schedule_for_mortgage(self, mortgage_id: str) -> int | None:
        with self._store.transaction() as conn:
            row = conn.execute(
                select(mortgages.c.rotessa_schedule_id).where(mortgages.c.id == mortgage_id)
            ).first()
        return row.rotessa_schedule_id if row is not None else None

    @traced
    def trigger_manual_sync(
        self,
        source: TransactionSource,
        *,
        scope: SyncScope | str = SyncScope.ALL,
        entity_id: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        triggered_by: str | None = None,
    ) -> ServiceResult:
        """Start and run an operator-requested sync.

        Refuses while another sync is running. An explicit date range must
        be ordered and no wider than ``[sync] max_range_days``.
        """
        op = "sync_run"
        scope = SyncScope(scope)

        with self._store.transaction() as conn:
            running = self._running_sync(conn)
        if running is not None:
            return ServiceResult.failure(
                op, "SYNC_IN_PROGRESS", "A sync is already in progress", sync_id=running.id
            )

        if (start_date is None) != (end_date is None):
            return ServiceResult.failure(
                op, "INVALID_DATE_RANGE", "Both start and end dates are required"
            )
        if start_date is not None and end_date is not None:
            try:
                validate_date_range(
                    start_date, end_date, max_days=self.settings.sync.max_range_days
                )
            except InvalidDateRangeError as exc:
                return ServiceResult.failure(op, exc.code, str(exc))

        log_id = self._create_sync_log(
            sync_type=SyncType.MANUAL,
            scope=scope,
            entity_id=entity_id,
            triggered_by=triggered_by,
            start_date=start_date,
            end_date=end_date,
        )
        return self.perform_sync(
            log_id,
            source,
            scope=scope,
            entity_id=entity_id,
            start_date=start_date,
            end_date=end_date,
        )

    @traced
    def run_daily_sync(self, source: TransactionSource) -> ServiceResult:
        """The scheduled all-borrowers sync over the default lookback window."""
        log_id = self._create_sync_log(
            sync_type=SyncType.DAILY,
            scope=SyncScope.ALL,
            entity_id=None,
            triggered_by=None,
            start_date=None,
            end_date=None,
        )
        return self.perform_sync(log_id, source, scope=SyncScope.ALL)

    @traced
    def perform_sync(
        self,
        log_id: int,
        source: TransactionSource,
        *,
        scope: SyncScope | str = SyncScope.ALL,
        entity_id: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> ServiceResult:
        """Fetch, reconcile and finalize the sync log *log_id*."""
        op = "sync_run"
        scope = SyncScope(scope)
        metrics = SyncMetrics()
        errors = _RunErrors()

        end_date = end_date or today_iso()
        start_date = start_date or days_ago_iso(self.settings.sync.lookback_days)

        schedule_id: int | None = None
        if scope == SyncScope.MORTGAGE and entity_id:
            schedule_id = self._schedule_for_mortgage(entity_id)
            if schedule_id is None:
                errors.add("sync", f"Mortgage {entity_id} has no linked Rotessa schedule")
                self._finish_sync_log(log_id, SyncStatus.FAILED, metrics, errors)
                return self._run_result(op, log_id)

        try:
            with trace_span("fetch") as span:
                transactions = source.list_transactions(start_date=start_date, end_date=end_date)
                if span is not None:
                    span.annotate("transactions", len(transactions))

            with trace_span("reconcile"):
                self._reconcile(
                    transactions,
                    metrics,
                    errors,
                    scope=scope,
                    entity_id=entity_id,
                    schedule_id=schedule_id,
                )
        except RotessaError as exc:
            logger.warning("Sync %s could not fetch transactions: %s", log_id, exc)
            errors.add("sync", str(exc))
            self._finish_sync_log(log_id, SyncStatus.FAILED, metrics, errors)
            return self._run_result(op, log_id)
        except Exception as exc:
            # Any failure still finalizes the log; a running row blocks later syncs.
            logger.exception("Sync %s aborted", log_id)
            errors.add("sync", f"{type(exc).__name__}: {exc}")
            self._finish_sync_log(log_id, SyncStatus.FAILED, metrics, errors)
            return self._run_result(op, log_id)

        status = resolve_sync_status(metrics.errors, metrics.transactions_processed)
        self._finish_sync_log(log_id, status, metrics, errors)
        logger.info(
            "Sync %s finished: %s (%d processed, %d errors)",
            log_id,
            status,
            metrics.transactions_processed,
            metrics.errors,
        )
        return self._run_result(op, log_id)

    def _reconcile(
        self,
        transactions: list[RotessaTransaction],
        metrics: SyncMetrics,
        errors: _RunErrors,
        *,
        scope: SyncScope,
        entity_id: str | None,
        schedule_id: int | None,
    ) -> None:
        for txn in transactions:
            if scope == SyncScope.BORROWER and entity_id and str(txn.customer_id) != entity_id:
                continue
            if schedule_id is not None and txn.transaction_schedule_id != schedule_id:
                continue

            metrics.transactions_processed += 1
            try:
                with self._store.transaction() as conn:
                    outcome = self._upsert_payment(conn, txn)
            except _ITEM_ERRORS as exc:
                logger.debug("Transaction %s failed", txn.id, exc_info=True)
                errors.add(txn.id, str(exc))
                metrics.errors += 1
                continue

            if outcome.created:
                metrics.payments_created += 1
            elif outcome.updated:
                metrics.payments_updated += 1

            if txn.status != RotessaStatus.APPROVED:
                continue
            try:
                with self._store.transaction() as conn:
                    queued = self._queue_posting(conn, outcome.payment_id)
            except _ITEM_ERRORS as exc:
                errors.add(txn.id, f"Ledger: {exc}")
                metrics.errors += 1
                continue
            if queued:
                metrics.ledger_transactions_created += 1

    def _run_result(self, op: str, log_id: int) -> ServiceResult:
        entry = self._load_sync_log(log_id)
        if entry is None:
            return ServiceResult.failure(op, "NOT_FOUND", f"Sync log {log_id} not found")
        warnings = [f"{e['transaction_id']}: {e['error']}" for e in entry["errors"]]
        return ServiceResult(ok=True, op=op, data=entry, warnings=warnings)

    # ------------------------------------------------------------------
    # Historical backfill
    # ------------------------------------------------------------------

    @traced
    def backfill_historical_payments(
        self,
        mortgage_id: str,
        source: TransactionSource,
        *,
        triggered_by: str | None = None,
    ) -> ServiceResult:
        """Import a schedule's approved history and queue it for the ledger.

        Walks every report page over the last ``[sync] backfill_years`` years,
        keeps Approved transactions for the mortgage's schedule that carry a
        settlement date, and posts them with the settlement date as the
        effective timestamp.
        """
        op = "sync_backfill"
        with self._store.transaction() as conn:
            mortgage = conn.execute(
                select(mortgages.c.id, mortgages.c.rotessa_schedule_id).where(
                    mortgages.c.id == mortgage_id
                )
            ).first()
        if mortgage is None:
            return ServiceResult.failure(
                op, "NOT_FOUND", f"Mortgage {mortgage_id} not found", mortgage_id=mortgage_id
            )
        schedule_id = mortgage.rotessa_schedule_id

        # The log row exists before any processing.
        with self._store.transaction() as conn:
            log_id = conn.execute(
                insert(backfill_log).values(
                    mortgage_id=mortgage_id,
                    schedule_id=schedule_id,
                    triggered_by=triggered_by,
                    status=SyncStatus.RUNNING,
                    started_at=now_iso(),
                )
            ).inserted_primary_key[0]

        metrics = BackfillMetrics()
        errors = _RunErrors()
        status: SyncStatus

        try:
            history = self._fetch_all_pages(
                source,
                start_date=years_ago_iso(self.settings.sync.backfill_years),
                end_date=today_iso(),
            )
            eligible = [
                txn
                for txn in history
                if txn.transaction_schedule_id == schedule_id
                and txn.status == RotessaStatus.APPROVED
                and txn.settlement_date is not None
            ]
            metrics.transactions_found = len(eligible)

            for txn in eligible:
                try:
                    with self._store.transaction() as conn:
                        outcome = self._upsert_payment(conn, txn)
                        if outcome.created:
                            metrics.payments_created += 1
                        queued = self._queue_posting(
                            conn,
                            outcome.payment_id,
                            reference=backfill_reference(outcome.payment_id, mortgage_id),
                            effective_timestamp=to_ledger_timestamp(txn.settlement_date or ""),
                        )
                except _ITEM_ERRORS as exc:
                    errors.add(txn.id, str(exc))
                    metrics.errors += 1
                    continue
                if queued:
                    metrics.ledger_transactions_created += 1

            status = resolve_sync_status(metrics.errors, metrics.transactions_found)
        except RotessaError as exc:
            logger.warning("Backfill %s could not fetch transactions: %s", log_id, exc)
            errors.add("backfill", str(exc))
            status = SyncStatus.FAILED
        except Exception as exc:
            logger.exception("Backfill %s aborted", log_id)
            errors.add("backfill", f"{type(exc).__name__}: {exc}")
            status = SyncStatus.FAILED

        with self._store.transaction() as conn:
            conn.execute(
                update(backfill_log)
                .where(backfill_log.c.id == log_id)
                .values(
                    status=status,
                    completed_at=now_iso(),
                    error_details=json.dumps(errors.items) if errors.items else None,
                    **asdict(metrics),
                )
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": log_id,
                "mortgage_id": mortgage_id,
                "schedule_id": schedule_id,
                "status": status,
                "metrics": asdict(metrics),
                "errors": errors.items,
            },
            warnings=[f"{e['transaction_id']}: {e['error']}" for e in errors.items],
        )

    @staticmethod
    def _fetch_all_pages(
        source: TransactionSource,
        *,
        start_date: str,
        end_date: str,
    ) -> list[RotessaTransaction]:
        """Collect report pages until an empty one comes back."""
        rows: list[RotessaTransaction] = []
        for page in range(1, _MAX_REPORT_PAGES + 1):
            batch = source.list_transactions(start_date=start_date, end_date=end_date, page=page)
            if not batch:
                break
            rows.extend(batch)
        return rows

    # ------------------------------------------------------------------
    # Admin queries
    # ------------------------------------------------------------------

    @traced
    def get_sync_status(self) -> ServiceResult:
        """Health summary for the admin dashboard."""
        op = "sync_status"
        next_sync = self.settings.sync.schedule_description

        with self._store.transaction() as conn:
            running = self._running_sync(conn)
            latest = (
                conn.execute(select(sync_log).order_by(sync_log.c.id.desc()).limit(1)).first()
                if running is None
                else None
            )

        if running is not None:
            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "status": SyncHealth.SYNCING,
                    "message": "Sync in progress",
                    "last_sync": None,
                    "active_sync_id": running.id,
                },
            )

        if latest is None:
            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "status": SyncHealth.HEALTHY,
                    "message": "No sync history",
                    "last_sync": None,
                    "next_sync": next_sync,
                },
            )

        health = sync_health(latest.status)
        if health == SyncHealth.HEALTHY:
            message = "All systems normal"
        elif health == SyncHealth.PARTIAL:
            message = f"{latest.errors or 0} errors in last sync"
        else:
            message = "Last sync failed"

        last_sync = (
            {
                "completed_at": latest.completed_at,
                "transactions_processed": latest.transactions_processed or 0,
                "errors": latest.errors or 0,
            }
            if latest.completed_at
            else None
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "status": health,
                "message": message,
                "last_sync": last_sync,
                "next_sync": next_sync,
            },
        )

    @traced
    def get_recent_sync_logs(self, limit: int | None = None) -> ServiceResult:
        """Most recent sync logs, newest first."""
        limit = limit or self.settings.sync.recent_logs_limit
        with self._store.transaction() as conn:
            rows = conn.execute(select(sync_log).order_by(sync_log.c.id.desc()).limit(limit)).all()
        items = [_sync_log_to_dict(row) for row in rows]
        return ServiceResult(ok=True, op="sync_logs", data={"count": len(items), "items": items})

    @traced
    def get_week_metrics(self) -> ServiceResult:
        """Totals over syncs started in the last seven days."""
        with self._store.transaction() as conn:
            row = conn.execute(
                select(
                    func.coalesce(func.sum(sync_log.c.transactions_processed), 0).label("synced"),
                    func.coalesce(func.sum(sync_log.c.ledger_transactions_created), 0).label(
                        "ledger"
                    ),
                    func.coalesce(func.sum(sync_log.c.errors), 0).label("errors"),
                ).where(sync_log.c.started_at >= since_iso(days=7))
            ).one()

        total, errors = int(row.synced), int(row.errors)
        success_rate = ((total - errors) / total) * 100 if total > 0 else 100.0
        return ServiceResult(
            ok=True,
            op="sync_metrics",
            data={
                "total_synced": total,
                "ledger_transactions": int(row.ledger),
                "errors": errors,
                "success_rate": round(success_rate, 1),
            },
        )
