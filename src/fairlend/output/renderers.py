"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fairlend.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from fairlend.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


# Single value printed by ``--quiet`` for scalar results.
_QUIET_KEYS: dict[str, str] = {
    "route_check": "redirect",
    "ledger_account": "display",
    "ledger_balance": "formatted",
    "ledger_asset": "asset",
    "sync_run": "status",
    "sync_backfill": "status",
    "sync_status": "status",
}


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))

    key = _QUIET_KEYS.get(result.op)
    if key is not None and result.data.get(key) is not None:
        return str(result.data[key])

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    """Extract an identifier from a list item (sync logs, rules)."""
    if isinstance(item, dict):
        for key in ("id", "name"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="fl.ok")
    op = Text(f"  {result.op}", style="fl.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="fl.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="fl.id")
    elif key in ("url", "redirect"):
        v = Text(str(value), style="fl.url" if value else "")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    elif key == "formatted":
        v = Text(str(value), style="fl.amount")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="fl.error")
    op = Text(f"  {result.op}", style="fl.op")
    code = Text(f" [{err.code}]" if err else "", style="fl.key")
    console.print(label, op, code, Text(": "), msg, sep="")
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Routing renderers ─────────────────────────────────────────────────


def _render_route_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a route decision: redirect target or pass-through."""
    _status_line(console, result)
    d = result.data
    for key in ("url", "subdomain", "pathname", "authenticated", "role"):
        _field(console, key, d.get(key))
    if d.get("redirect"):
        _field(console, "redirect", d["redirect"])
        _field(console, "rule", d.get("rule"))
    else:
        console.print(Text("  no redirect (request continues)", style="dim"))
    if verbose:
        _render_meta(console, result)


def _render_route_rules(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the rule registry in evaluation order."""
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Rule", style="fl.id", no_wrap=True)
    table.add_column("Priority", justify="right")
    for item in items:
        table.add_row(str(item["position"]), str(item["name"]), str(item["priority"]))
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} rules")
    if verbose:
        _render_meta(console, result)


# ── Sync renderers ────────────────────────────────────────────────────


def _metrics_lines(metrics: dict[str, Any]) -> list[str]:
    return [f"{key.replace('_', ' ')}: {value}" for key, value in metrics.items()]


def _render_sync_run(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a finished sync or backfill log as a panel."""
    d = result.data
    status = str(d.get("status", ""))
    lines: list[str] = []
    for key in ("sync_type", "scope", "entity_id", "mortgage_id", "schedule_id", "started_at"):
        if d.get(key) is not None:
            lines.append(f"{key}: {d[key]}")
    date_range = d.get("date_range")
    if date_range:
        lines.append(f"range: {date_range['start_date']} .. {date_range['end_date']}")
    lines.extend(_metrics_lines(d.get("metrics", {})))

    title = f"{result.op} #{d.get('id', '?')}: {status}"
    console.print(
        Panel(
            "\n".join(lines),
            title=title,
            border_style=style_for_status(status) or "dim",
            expand=False,
        )
    )
    for err in d.get("errors", []):
        console.print(
            f"  [fl.error]error[/fl.error] {err.get('transaction_id')}: {err.get('error')}"
        )
    if verbose:
        _render_meta(console, result)


def _render_sync_status(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    status = str(d.get("status", ""))
    console.print(
        Text("  status: ", style="fl.key"),
        Text(status, style=style_for_status(status)),
        Text(f"  {d.get('message', '')}"),
        sep="",
    )
    last = d.get("last_sync")
    if last:
        _field(console, "last sync", last.get("completed_at"))
        _field(console, "processed", last.get("transactions_processed"))
        _field(console, "errors", last.get("errors"))
    if d.get("active_sync_id") is not None:
        _field(console, "active_sync_id", d["active_sync_id"])
    if d.get("next_sync"):
        _field(console, "next sync", d["next_sync"])
    if verbose:
        _render_meta(console, result)


def _render_sync_logs(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="fl.id", justify="right")
    table.add_column("Type")
    table.add_column("Scope")
    table.add_column("Status")
    table.add_column("Started", style="dim")
    table.add_column("Processed", justify="right")
    table.add_column("Created", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Ledger", justify="right")
    table.add_column("Errors", justify="right")
    if verbose:
        table.add_column("Completed", style="dim")

    for item in items:
        status = str(item.get("status", ""))
        metrics = item.get("metrics", {})
        row: list[Any] = [
            str(item.get("id", "")),
            str(item.get("sync_type", "")),
            str(item.get("scope", "")),
            Text(status, style=style_for_status(status)),
            str(item.get("started_at", "")),
            str(metrics.get("transactions_processed", 0)),
            str(metrics.get("payments_created", 0)),
            str(metrics.get("payments_updated", 0)),
            str(metrics.get("ledger_transactions_created", 0)),
            str(metrics.get("errors", 0)),
        ]
        if verbose:
            row.append(str(item.get("completed_at") or ""))
        table.add_row(*row)

    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} syncs")


def _render_sync_metrics(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "synced (7d)", d.get("total_synced", 0))
    _field(console, "ledger postings", d.get("ledger_transactions", 0))
    _field(console, "errors", d.get("errors", 0))
    _field(console, "success rate", f"{d.get('success_rate', 100.0)}%")
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Routing
    "route_check": _render_route_check,
    "route_rules": _render_route_rules,
    # Ledger
    "ledger_account": _render_generic,
    "ledger_balance": _render_generic,
    "ledger_asset": _render_generic,
    # Sync
    "sync_link": _render_generic,
    "sync_run": _render_sync_run,
    "sync_backfill": _render_sync_run,
    "sync_status": _render_sync_status,
    "sync_logs": _render_sync_logs,
    "sync_metrics": _render_sync_metrics,
}
