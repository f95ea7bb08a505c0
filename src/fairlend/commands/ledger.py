"""Command group: ledger account and asset naming."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fairlend.commands._base import FlGroup
from fairlend.services.ledger import LedgerService

if TYPE_CHECKING:
    from fairlend.commands._context import AppContext

_LEDGER_EXAMPLES = """\
  fairlend ledger account investor:user_123:wallet
  fairlend ledger balance 10000 CAD
  fairlend ledger asset mortgage_abc123"""


@click.group(cls=FlGroup, examples=_LEDGER_EXAMPLES)
@click.pass_obj
def ledger(app: AppContext) -> None:
    """Inspect ledger addresses, balances and share assets."""


@ledger.command(
    examples="""\
  fairlend ledger account world
  fairlend ledger account mortgage:m_1:shares"""
)
@click.argument("address")
@click.pass_obj
def account(app: AppContext, address: str) -> None:
    """Describe a ledger account ADDRESS."""
    app.emit(LedgerService(app.store).describe_account(address))


@ledger.command(
    examples="""\
  fairlend ledger balance 10000 CAD
  fairlend ledger balance 50 MABC1234/SHARE
  fairlend ledger balance 2500"""
)
@click.argument("amount")
@click.argument("asset", required=False)
@click.pass_obj
def balance(app: AppContext, amount: str, asset: str | None) -> None:
    """Format a raw AMOUNT of ASSET (default: the configured currency)."""
    app.emit(LedgerService(app.store).format_balance(amount, asset))


@ledger.command(
    examples="""\
  fairlend ledger asset mortgage_abc123
  fairlend ledger asset mortgage_abc123 --no-check"""
)
@click.argument("mortgage_id")
@click.option("--no-check", is_flag=True, help="Skip the collision check against linked mortgages.")
@click.pass_obj
def asset(app: AppContext, mortgage_id: str, no_check: bool) -> None:
    """Show the share asset code for MORTGAGE_ID."""
    app.emit(LedgerService(app.store).share_asset(mortgage_id, check_collisions=not no_check))
