"""Shared pytest fixtures and test helpers for fairlend tests."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from fairlend.config.settings import FairlendSettings
from fairlend.infrastructure.rotessa import RotessaTransaction
from fairlend.infrastructure.store import Store


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer FAIRLEND_* variables out of the tests."""
    monkeypatch.delenv("FAIRLEND_CONFIG", raising=False)
    monkeypatch.delenv("FAIRLEND_ROTESSA__API_KEY", raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path) -> FairlendSettings:
    return FairlendSettings.from_cli(project_root=tmp_path)


@pytest.fixture
def store(settings: FairlendSettings) -> Iterator[Store]:
    """Store backed by a fresh SQLite database under ``tmp_path``."""
    s = Store(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI uses an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command
    test classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Transaction report helpers
# ---------------------------------------------------------------------------


def make_row(
    txn_id: int,
    *,
    customer_id: int = 1001,
    schedule_id: int = 5001,
    amount: str = "1250.00",
    status: str = "Approved",
    process_date: str = "2024-01-15",
    settlement_date: str | None = "2024-01-17",
    status_reason: str | None = None,
) -> dict[str, Any]:
    """One transaction-report row as the Rotessa API returns it."""
    return {
        "id": txn_id,
        "customer_id": customer_id,
        "custom_identifier": f"CUST-{customer_id}",
        "transaction_schedule_id": schedule_id,
        "amount": amount,
        "status": status,
        "status_reason": status_reason,
        "process_date": process_date,
        "settlement_date": settlement_date,
    }


class FakeSource:
    """In-memory transaction source that records every call."""

    def __init__(self, pages: list[list[dict[str, Any]]] | None = None) -> None:
        self.pages = [[RotessaTransaction.model_validate(r) for r in p] for p in pages or []]
        self.calls: list[dict[str, Any]] = []

    def list_transactions(
        self,
        *,
        start_date: str,
        end_date: str | None = None,
        page: int | None = None,
    ) -> list[RotessaTransaction]:
        self.calls.append({"start_date": start_date, "end_date": end_date, "page": page})
        index = (page or 1) - 1
        return self.pages[index] if index < len(self.pages) else []


@pytest.fixture
def row() -> Callable[..., dict[str, Any]]:
    """Factory for transaction-report rows."""
    return make_row


@pytest.fixture
def fake_source() -> Callable[..., FakeSource]:
    """Factory for :class:`FakeSource` (one list per report page)."""

    def build(*pages: list[dict[str, Any]]) -> FakeSource:
        return FakeSource(list(pages))

    return build


@pytest.fixture
def report_file(tmp_path: Path) -> Callable[[list[dict[str, Any]]], Path]:
    """Write rows to a JSON transaction report and return its path."""

    def write(rows: list[dict[str, Any]]) -> Path:
        path = tmp_path / "report.json"
        path.write_text(json.dumps(rows), encoding="utf-8")
        return path

    return write
