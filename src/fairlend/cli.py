"""Root CLI group for fairlend with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from fairlend import __version__
from fairlend.commands import register_commands
from fairlend.commands._context import AppContext
from fairlend.config.settings import FairlendSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="fairlend")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="SQLite database file (overrides [database] path).",
)
@click.option("--sandbox", is_flag=True, help="Use the Rotessa sandbox API.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    db_path: Path | None,
    sandbox: bool,
) -> None:
    """fairlend: mortgage platform operations.

    \b
    route   check request URLs against the subdomain redirect rules
    ledger  account naming, balance formatting and share assets
    sync    Rotessa payment reconciliation
    """
    ctx.ensure_object(dict)
    settings = FairlendSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        db_path=db_path,
        sandbox=sandbox,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
