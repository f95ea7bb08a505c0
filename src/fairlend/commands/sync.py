"""Command group: Rotessa payment reconciliation."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from fairlend.commands._base import FlGroup, report_file_option
from fairlend.services.sync import SyncService

if TYPE_CHECKING:
    from fairlend.commands._context import AppContext

_SYNC_EXAMPLES = """\
  fairlend sync link mortgage_1 --borrower borrower_1 --customer-id 1001 --schedule-id 5001
  fairlend sync run
  fairlend sync run --from-file report.json --start 2024-01-01 --end 2024-01-31
  fairlend sync backfill mortgage_1
  fairlend sync status
  fairlend sync logs --limit 5
  fairlend sync metrics"""

@click.group(cls=FlGroup, examples=_SYNC_EXAMPLES)
@click.pass_obj
def sync(app: AppContext) -> None:
    """Reconcile Rotessa transactions with local payments."""


@sync.command(
    examples="""\
  fairlend sync link mortgage_1 --borrower borrower_1 --customer-id 1001 --schedule-id 5001
  fairlend sync link mortgage_1 --borrower borrower_1 --name "Jane Doe" \\
      --customer-id 1001 --schedule-id 5001"""
)
@click.argument("mortgage_id")
@click.option("--borrower", "borrower_id", required=True, help="Local borrower id.")
@click.option("--name", "borrower_name", default=None, help="Borrower display name.")
@click.option("--customer-id", required=True, type=int, help="Rotessa customer id.")
@click.option("--schedule-id", required=True, type=int, help="Rotessa transaction schedule id.")
@click.pass_obj
def link(
    app: AppContext,
    mortgage_id: str,
    borrower_id: str,
    borrower_name: str | None,
    customer_id: int,
    schedule_id: int,
) -> None:
    """Link MORTGAGE_ID to a Rotessa customer and schedule."""
    app.emit(
        SyncService(app.store).link_schedule(
            mortgage_id,
            borrower_id=borrower_id,
            rotessa_customer_id=customer_id,
            schedule_id=schedule_id,
            borrower_name=borrower_name,
        )
    )


@sync.command(
    examples="""\
  fairlend sync run
  fairlend sync run --daily
  fairlend sync run --scope mortgage --entity mortgage_1
  fairlend sync run --from-file report.json --start 2024-01-01 --end 2024-01-31"""
)
@report_file_option
@click.option(
    "--scope",
    type=click.Choice(["all", "borrower", "mortgage"]),
    default="all",
    help="Limit the sync to one borrower or mortgage.",
)
@click.option("--entity", "entity_id", default=None, help="Rotessa customer id or mortgage id.")
@click.option("--start", "start_date", default=None, help="First process date (YYYY-MM-DD).")
@click.option("--end", "end_date", default=None, help="Last process date (YYYY-MM-DD).")
@click.option("--daily", is_flag=True, help="Run as the scheduled daily sync.")
@click.option("--by", "triggered_by", default=None, help="Operator recorded on the sync log.")
@click.pass_obj
def run(
    app: AppContext,
    from_file: Path | None,
    scope: str,
    entity_id: str | None,
    start_date: str | None,
    end_date: str | None,
    daily: bool,
    triggered_by: str | None,
) -> None:
    """Fetch the transaction report and reconcile it."""
    if scope != "all" and not entity_id:
        raise click.UsageError(f"--entity is required with --scope {scope}")
    svc = SyncService(app.store)
    with app.transaction_source(from_file) as source:
        if daily:
            result = svc.run_daily_sync(source)
        else:
            result = svc.trigger_manual_sync(
                source,
                scope=scope,
                entity_id=entity_id,
                start_date=start_date,
                end_date=end_date,
                triggered_by=triggered_by,
            )
    app.emit(result)


@sync.command(
    examples="""\
  fairlend sync backfill mortgage_1
  fairlend sync backfill mortgage_1 --from-file history.json"""
)
@click.argument("mortgage_id")
@report_file_option
@click.option("--by", "triggered_by", default=None, help="Operator recorded on the backfill log.")
@click.pass_obj
def backfill(
    app: AppContext,
    mortgage_id: str,
    from_file: Path | None,
    triggered_by: str | None,
) -> None:
    """Import approved history for MORTGAGE_ID and queue it for the ledger."""
    svc = SyncService(app.store)
    with app.transaction_source(from_file) as source:
        result = svc.backfill_historical_payments(mortgage_id, source, triggered_by=triggered_by)
    app.emit(result)


@sync.command(
    examples="""\
  fairlend sync status
  fairlend --json sync status"""
)
@click.pass_obj
def status(app: AppContext) -> None:
    """Health of the most recent sync."""
    app.emit(SyncService(app.store).get_sync_status())


@sync.command(
    examples="""\
  fairlend sync logs
  fairlend sync logs --limit 25"""
)
@click.option("--limit", default=None, type=int, help="Number of logs (default from config).")
@click.pass_obj
def logs(app: AppContext, limit: int | None) -> None:
    """Recent sync logs, newest first."""
    app.emit(SyncService(app.store).get_recent_sync_logs(limit))


@sync.command(
    examples="""\
  fairlend sync metrics
  fairlend --json sync metrics"""
)
@click.pass_obj
def metrics(app: AppContext) -> None:
    """Totals for the last seven days."""
    app.emit(SyncService(app.store).get_week_metrics())
