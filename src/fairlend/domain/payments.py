"""Payment and sync vocabulary for Rotessa reconciliation.

Rotessa (the pre-authorized debit processor) reports transactions with its
own status names. These are mapped onto local payment statuses, and every
sync run is summarized by a status derived from its error count.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import StrEnum

MAX_SYNC_RANGE_DAYS = 90


class PaymentStatus(StrEnum):
    """Local lifecycle of a borrower payment."""

    PENDING = "pending"
    PROCESSING = "processing"
    CLEARED = "cleared"
    FAILED = "failed"
    NSF = "nsf"


class RotessaStatus(StrEnum):
    """Transaction statuses reported by Rotessa."""

    FUTURE = "Future"
    PENDING = "Pending"
    APPROVED = "Approved"
    DECLINED = "Declined"
    CHARGEBACK = "Chargeback"


class SyncStatus(StrEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class SyncType(StrEnum):
    DAILY = "daily"
    MANUAL = "manual"


class SyncScope(StrEnum):
    ALL = "all"
    BORROWER = "borrower"
    MORTGAGE = "mortgage"


class SyncHealth(StrEnum):
    """Dashboard summary of the most recent sync."""

    HEALTHY = "healthy"
    SYNCING = "syncing"
    PARTIAL = "partial"
    FAILED = "failed"


_STATUS_MAP: dict[str, PaymentStatus] = {
    RotessaStatus.FUTURE: PaymentStatus.PENDING,
    RotessaStatus.PENDING: PaymentStatus.PENDING,
    RotessaStatus.APPROVED: PaymentStatus.CLEARED,
    RotessaStatus.DECLINED: PaymentStatus.FAILED,
    RotessaStatus.CHARGEBACK: PaymentStatus.NSF,
}


class SyncError(Exception):
    """Base class for reconciliation failures on a single record."""


class LinkNotFoundError(SyncError):
    """A Rotessa customer or schedule is not linked to a local record."""


class PaymentNotFoundError(SyncError):
    """No local payment with the given id."""


class InvalidDateRangeError(ValueError):
    """Sync date range is reversed or too wide."""

    def __init__(self, message: str, *, code: str = "INVALID_DATE_RANGE") -> None:
        super().__init__(message)
        self.code = code


def map_rotessa_status(status: str) -> PaymentStatus:
    """Map a Rotessa status onto a payment status. Unknown values are pending."""
    return _STATUS_MAP.get(status, PaymentStatus.PENDING)


def resolve_sync_status(errors: int, processed: int) -> SyncStatus:
    """Outcome of a finished run from its error and processed counts."""
    if errors == 0:
        return SyncStatus.COMPLETED
    if errors < processed:
        return SyncStatus.PARTIAL
    return SyncStatus.FAILED


def sync_health(status: str) -> SyncHealth:
    """Dashboard health for a finished sync status."""
    if status == SyncStatus.COMPLETED:
        return SyncHealth.HEALTHY
    if status == SyncStatus.PARTIAL:
        return SyncHealth.PARTIAL
    return SyncHealth.FAILED


def amount_to_cents(amount: str | Decimal | int) -> int:
    """Convert a decimal dollar amount to integer cents (half-up).

    Examples:
        >>> amount_to_cents("1250.00")
        125000
        >>> amount_to_cents("0.005")
        1
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as exc:
        msg = f"Invalid payment amount: {amount!r}"
        raise ValueError(msg) from exc
    if not value.is_finite():
        msg = f"Invalid payment amount: {amount!r}"
        raise ValueError(msg)
    cents = (value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def to_ledger_timestamp(settlement_date: str) -> str:
    """Turn a ``YYYY-MM-DD`` settlement date into the ledger's ISO 8601 form."""
    date.fromisoformat(settlement_date)
    return f"{settlement_date}T00:00:00Z"


def validate_date_range(
    start_date: str,
    end_date: str,
    *,
    max_days: int = MAX_SYNC_RANGE_DAYS,
) -> tuple[date, date]:
    """Parse and check a ``YYYY-MM-DD`` sync range.

    Raises:
        InvalidDateRangeError: Unparseable dates, start after end, or a
            range longer than *max_days*.
    """
    try:
        start = date.fromisoformat(start_date)
        end = date.fromisoformat(end_date)
    except ValueError as exc:
        raise InvalidDateRangeError(f"Invalid date: {exc}") from exc
    if start > end:
        raise InvalidDateRangeError("Start date must be before end date")
    if (end - start).days > max_days:
        raise InvalidDateRangeError(
            f"Date range cannot exceed {max_days} days",
            code="DATE_RANGE_TOO_LARGE",
        )
    return start, end


def payment_reference(payment_id: int | str, mortgage_id: str) -> str:
    """Idempotency reference for a regular sync posting."""
    return f"payment:{payment_id}:{mortgage_id}"


def backfill_reference(payment_id: int | str, mortgage_id: str) -> str:
    """Idempotency reference for a historical backfill posting."""
    return f"backfill:{payment_id}:{mortgage_id}"
