"""Rotessa transaction-report access.

Rotessa offers no webhooks, so payments are reconciled by polling the
``/transaction_report`` endpoint. Two sources implement the same
:class:`TransactionSource` protocol:

- :class:`RotessaClient` — the live HTTP API via httpx.
- :class:`JsonReportSource` — a report previously exported to a JSON file.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ValidationError, field_validator

logger = logging.getLogger(__name__)

PRODUCTION_BASE_URL = "https://api.rotessa.com/v1"
SANDBOX_BASE_URL = "https://sandbox-api.rotessa.com/v1"

TRANSACTION_REPORT_PATH = "/transaction_report"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class RotessaError(Exception):
    """Base class for Rotessa access failures."""


class RotessaConfigError(RotessaError):
    """Client cannot be built (missing API key)."""


class RotessaApiError(RotessaError):
    """Rotessa answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        method: str,
        path: str,
        errors: list[dict[str, str]] | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.method = method
        self.path = path
        self.errors = errors
        self.payload = payload


class RotessaRequestError(RotessaError):
    """The request never produced a response (network error, timeout)."""

    def __init__(self, message: str, *, method: str, path: str) -> None:
        super().__init__(message)
        self.method = method
        self.path = path


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class RotessaTransaction(BaseModel):
    """One row of the transaction report (fields used by reconciliation)."""

    model_config = {"frozen": True, "extra": "ignore"}

    id: int
    customer_id: int
    custom_identifier: str | None = None
    transaction_schedule_id: int
    amount: str
    status: str
    status_reason: str | None = None
    process_date: str
    settlement_date: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_as_text(cls, value: Any) -> Any:
        if isinstance(value, int | float):
            return str(value)
        return value


class TransactionSource(Protocol):
    """Anything that can list report rows for a date range."""

    def list_transactions(
        self,
        *,
        start_date: str,
        end_date: str | None = None,
        page: int | None = None,
    ) -> list[RotessaTransaction]: ...


def parse_transactions(rows: Any) -> list[RotessaTransaction]:
    """Validate a decoded JSON payload into transaction records."""
    if not isinstance(rows, list):
        msg = f"Expected a list of transactions, got {type(rows).__name__}"
        raise RotessaError(msg)
    try:
        return [RotessaTransaction.model_validate(row) for row in rows]
    except ValidationError as exc:
        msg = f"Malformed transaction report: {exc.error_count()} invalid field(s)"
        raise RotessaError(msg) from exc


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


def _normalize_errors(payload: Any) -> list[dict[str, str]] | None:
    """Extract ``[{error_code, error_message}]`` from an error body."""
    if not isinstance(payload, dict):
        return None
    errors = payload.get("errors")
    if not isinstance(errors, list):
        return None
    normalized: list[dict[str, str]] = []
    for item in errors:
        if not isinstance(item, dict):
            continue
        code = str(item.get("error_code") or "")
        message = str(item.get("error_message") or "")
        if code or message:
            normalized.append({"error_code": code, "error_message": message})
    return normalized or None


class RotessaClient:
    """Thin synchronous client for the Rotessa REST API.

    Args:
        api_key: Rotessa API key (required).
        base_url: API root, production by default.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = PRODUCTION_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not api_key:
            msg = "Rotessa API key is not configured (set FAIRLEND_ROTESSA__API_KEY)"
            raise RotessaConfigError(msg)
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={
                "Accept": "application/json",
                "Authorization": f'Token token="{api_key}"',
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    def __enter__(self) -> RotessaClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        query = {k: v for k, v in params.items() if v is not None}
        try:
            response = self._client.get(path, params=query)
        except httpx.TimeoutException as exc:
            raise RotessaRequestError("Rotessa request timed out.", method="GET", path=path) from exc
        except httpx.HTTPError as exc:
            raise RotessaRequestError("Rotessa request failed.", method="GET", path=path) from exc

        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None

        if response.is_error:
            errors = _normalize_errors(payload)
            message = (
                errors[0]["error_message"]
                if errors and errors[0]["error_message"]
                else f"Rotessa request failed with status {response.status_code}"
            )
            logger.warning("Rotessa %s %s -> %s", "GET", path, response.status_code)
            raise RotessaApiError(
                message,
                status=response.status_code,
                method="GET",
                path=path,
                errors=errors,
                payload=payload,
            )
        return payload

    def transaction_report(
        self,
        *,
        start_date: str,
        end_date: str | None = None,
        page: int | None = None,
        status: str | None = None,
        filter: str | None = None,  # noqa: A002
    ) -> list[RotessaTransaction]:
        """``GET /transaction_report`` for the given process-date window."""
        payload = self._get(
            TRANSACTION_REPORT_PATH,
            {
                "start_date": start_date,
                "end_date": end_date,
                "page": page,
                "status": status,
                "filter": filter,
            },
        )
        return parse_transactions(payload if payload is not None else [])

    def list_transactions(
        self,
        *,
        start_date: str,
        end_date: str | None = None,
        page: int | None = None,
    ) -> list[RotessaTransaction]:
        return self.transaction_report(start_date=start_date, end_date=end_date, page=page)


# ---------------------------------------------------------------------------
# Offline source
# ---------------------------------------------------------------------------


class JsonReportSource:
    """Transaction report rows read from a JSON file.

    The file holds the same array the API returns. Rows are filtered by
    process date; everything fits on page 1.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._rows: list[RotessaTransaction] | None = None

    def _load(self) -> list[RotessaTransaction]:
        if self._rows is None:
            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                msg = f"Cannot read transaction report {self._path}: {exc}"
                raise RotessaError(msg) from exc
            self._rows = parse_transactions(raw)
        return self._rows

    def list_transactions(
        self,
        *,
        start_date: str,
        end_date: str | None = None,
        page: int | None = None,
    ) -> list[RotessaTransaction]:
        if page is not None and page > 1:
            return []
        start = date.fromisoformat(start_date)
        end = date.fromisoformat(end_date) if end_date else None
        rows: list[RotessaTransaction] = []
        for row in self._load():
            try:
                processed = date.fromisoformat(row.process_date)
            except ValueError as exc:
                msg = f"Transaction {row.id} has an invalid process_date {row.process_date!r}"
                raise RotessaError(msg) from exc
            if processed < start or (end is not None and processed > end):
                continue
            rows.append(row)
        return rows

    def __enter__(self) -> JsonReportSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._rows = None
