"""AppContext — shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. Provides a lazy Store and centralized result
emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fairlend.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from pathlib import Path

    from fairlend.config.settings import FairlendSettings
    from fairlend.infrastructure.rotessa import JsonReportSource, RotessaClient
    from fairlend.infrastructure.store import Store
    from fairlend.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The store is created on first use so ``--help`` and ``--version``
    never open the database.
    """

    def __init__(self, settings: FairlendSettings) -> None:
        self.settings = settings
        self._store: Store | None = None

        from fairlend.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from fairlend.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def store(self) -> Store:
        """The store instance (created lazily on first access)."""
        if self._store is None:
            from fairlend.infrastructure.store import Store

            self._store = Store(self.settings)
        return self._store

    def transaction_source(self, from_file: Path | None) -> JsonReportSource | RotessaClient:
        """A JSON report file when given, otherwise the live Rotessa API.

        ``--sandbox`` points the client at the Rotessa sandbox.

        Raises:
            click.ClickException: No API key is configured.
        """
        from fairlend.infrastructure.rotessa import (
            SANDBOX_BASE_URL,
            JsonReportSource,
            RotessaClient,
            RotessaConfigError,
        )

        if from_file is not None:
            return JsonReportSource(from_file)
        cfg = self.settings.rotessa
        try:
            return RotessaClient(
                cfg.api_key,
                base_url=SANDBOX_BASE_URL if self.settings.sandbox else cfg.base_url,
                timeout=cfg.timeout_seconds,
            )
        except RotessaConfigError as exc:
            raise click.ClickException(str(exc)) from exc

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout. Warnings go to stderr so they don't
          pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output and not settings.quiet:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
