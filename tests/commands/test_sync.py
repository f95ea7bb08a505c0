"""Tests for the sync CLI commands."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from fairlend.cli import cli
from fairlend.services._helpers import days_ago_iso, today_iso

RowFactory = Callable[..., dict[str, Any]]
ReportWriter = Callable[[list[dict[str, Any]]], Path]

_LINK = ["sync", "link", "m1", "--borrower", "b1", "--customer-id", "1001", "--schedule-id", "5001"]
_RANGE = ["--start", "2024-01-01", "--end", "2024-01-31"]


@pytest.fixture
def linked(cli_runner: CliRunner, _isolated_project: None) -> CliRunner:
    result = cli_runner.invoke(cli, _LINK)
    assert result.exit_code == 0, result.output
    return cli_runner


@pytest.mark.usefixtures("_isolated_project")
class TestSyncLink:
    def test_link(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", *_LINK, "--name", "Jane Doe"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["created"] is True
        assert data["rotessa_schedule_id"] == 5001

    def test_conflict(self, linked: CliRunner) -> None:
        args = ["sync", "link", "m2", "--borrower", "b2", "--customer-id", "2002"]
        result = linked.invoke(cli, ["--json", *args, "--schedule-id", "5001"])
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "LINK_CONFLICT"

    def test_required_options(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["sync", "link", "m1", "--borrower", "b1"])
        assert result.exit_code == 2


class TestSyncRun:
    def test_from_file(self, linked: CliRunner, row: RowFactory, report_file: ReportWriter) -> None:
        path = report_file([row(1), row(2, status="Declined", settlement_date=None)])
        result = linked.invoke(
            cli, ["--json", "sync", "run", "--from-file", str(path), *_RANGE, "--by", "ops"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["status"] == "completed"
        assert data["triggered_by"] == "ops"
        assert data["metrics"]["payments_created"] == 2
        assert data["metrics"]["ledger_transactions_created"] == 1

    def test_human_output(
        self, linked: CliRunner, row: RowFactory, report_file: ReportWriter
    ) -> None:
        path = report_file([row(1)])
        result = linked.invoke(cli, ["sync", "run", "--from-file", str(path), *_RANGE])
        assert result.exit_code == 0
        assert "sync_run #1: completed" in result.output
        assert "payments created: 1" in result.output

    def test_item_errors_are_warnings(
        self, linked: CliRunner, row: RowFactory, report_file: ReportWriter
    ) -> None:
        path = report_file([row(1), row(2, customer_id=9999)])
        result = linked.invoke(cli, ["sync", "run", "--from-file", str(path), *_RANGE])
        assert result.exit_code == 0
        assert "partial" in result.stdout
        assert "WARNING: 2: Borrower not found for Rotessa customer 9999" in result.stderr

    def test_quiet_prints_status(
        self, linked: CliRunner, row: RowFactory, report_file: ReportWriter
    ) -> None:
        path = report_file([row(1), row(2, customer_id=9999)])
        result = linked.invoke(cli, ["-q", "sync", "run", "--from-file", str(path), *_RANGE])
        assert result.stdout.strip() == "partial"
        assert "WARNING" not in result.stderr

    def test_daily(self, linked: CliRunner, report_file: ReportWriter) -> None:
        path = report_file([])
        result = linked.invoke(cli, ["--json", "sync", "run", "--daily", "--from-file", str(path)])
        data = json.loads(result.stdout)["data"]
        assert data["sync_type"] == "daily"
        assert data["status"] == "completed"

    def test_scope_requires_entity(self, linked: CliRunner, report_file: ReportWriter) -> None:
        path = report_file([])
        result = linked.invoke(
            cli, ["sync", "run", "--from-file", str(path), "--scope", "mortgage"]
        )
        assert result.exit_code == 2
        assert "--entity is required" in result.output

    def test_mortgage_scope(
        self, linked: CliRunner, row: RowFactory, report_file: ReportWriter
    ) -> None:
        path = report_file([row(1), row(2, schedule_id=6000)])
        scope = ["--scope", "mortgage", "--entity", "m1"]
        result = linked.invoke(
            cli, ["--json", "sync", "run", "--from-file", str(path), *_RANGE, *scope]
        )
        data = json.loads(result.stdout)["data"]
        assert data["metrics"]["transactions_processed"] == 1
        assert data["metrics"]["errors"] == 0

    def test_half_open_range(self, linked: CliRunner, report_file: ReportWriter) -> None:
        path = report_file([])
        result = linked.invoke(
            cli, ["--json", "sync", "run", "--from-file", str(path), "--start", "2024-01-01"]
        )
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "INVALID_DATE_RANGE"

    def test_range_too_large(self, linked: CliRunner, report_file: ReportWriter) -> None:
        path = report_file([])
        wide = ["--start", "2024-01-01", "--end", "2024-12-31"]
        result = linked.invoke(cli, ["--json", "sync", "run", "--from-file", str(path), *wide])
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "DATE_RANGE_TOO_LARGE"

    def test_malformed_report_fails_the_sync(
        self, linked: CliRunner, tmp_path: Path
    ) -> None:
        path = tmp_path / "bad.json"
        path.write_text('{"not": "a list"}', encoding="utf-8")
        result = linked.invoke(cli, ["--json", "sync", "run", "--from-file", str(path), *_RANGE])
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["status"] == "failed"
        assert data["errors"][0]["transaction_id"] == "sync"

    def test_missing_api_key(self, linked: CliRunner) -> None:
        result = linked.invoke(cli, ["sync", "run"])
        assert result.exit_code == 1
        assert "API key is not configured" in result.output

    def test_missing_file(self, linked: CliRunner) -> None:
        result = linked.invoke(cli, ["sync", "run", "--from-file", "nope.json"])
        assert result.exit_code == 2


class TestSyncBackfill:
    def test_backfill_from_file(
        self, linked: CliRunner, row: RowFactory, report_file: ReportWriter
    ) -> None:
        settled = days_ago_iso(28)
        path = report_file(
            [
                row(1, process_date=days_ago_iso(30), settlement_date=settled),
                row(2, process_date=days_ago_iso(60), status="Declined", settlement_date=None),
                row(3, process_date=days_ago_iso(30), schedule_id=6000),
            ]
        )
        result = linked.invoke(
            cli, ["--json", "sync", "backfill", "m1", "--from-file", str(path), "--by", "ops"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["status"] == "completed"
        assert data["schedule_id"] == 5001
        assert data["metrics"]["transactions_found"] == 1
        assert data["metrics"]["ledger_transactions_created"] == 1

    def test_old_history_is_outside_window(
        self, linked: CliRunner, row: RowFactory, report_file: ReportWriter
    ) -> None:
        path = report_file([row(1, process_date="2001-01-01", settlement_date="2001-01-03")])
        result = linked.invoke(cli, ["-q", "sync", "backfill", "m1", "--from-file", str(path)])
        assert result.exit_code == 0
        assert result.stdout.strip() == "completed"

    def test_unknown_mortgage(self, linked: CliRunner, report_file: ReportWriter) -> None:
        path = report_file([])
        result = linked.invoke(
            cli, ["--json", "sync", "backfill", "nope", "--from-file", str(path)]
        )
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "NOT_FOUND"


class TestSyncAdmin:
    def test_status_without_history(self, linked: CliRunner) -> None:
        result = linked.invoke(cli, ["sync", "status"])
        assert result.exit_code == 0
        assert "healthy" in result.output
        assert "No sync history" in result.output
        assert "Daily at 11 PM UTC" in result.output

    def test_status_after_run(
        self, linked: CliRunner, row: RowFactory, report_file: ReportWriter
    ) -> None:
        path = report_file([row(1, process_date=today_iso())])
        linked.invoke(cli, ["sync", "run", "--from-file", str(path)])
        result = linked.invoke(cli, ["--json", "sync", "status"])
        data = json.loads(result.stdout)["data"]
        assert data["message"] == "All systems normal"
        assert data["last_sync"]["transactions_processed"] == 1

    def test_logs(self, linked: CliRunner, report_file: ReportWriter) -> None:
        path = report_file([])
        for _ in range(3):
            linked.invoke(cli, ["sync", "run", "--daily", "--from-file", str(path)])

        table = linked.invoke(cli, ["sync", "logs"])
        assert table.exit_code == 0
        assert "3 syncs" in table.output

        quiet = linked.invoke(cli, ["-q", "sync", "logs", "--limit", "2"])
        assert quiet.stdout.split() == ["3", "2"]

    def test_metrics(self, linked: CliRunner) -> None:
        result = linked.invoke(cli, ["--json", "sync", "metrics"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["success_rate"] == 100.0

    def test_metrics_human(self, linked: CliRunner) -> None:
        result = linked.invoke(cli, ["sync", "metrics"])
        assert "success rate: 100.0%" in result.output
