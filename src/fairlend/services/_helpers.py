"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


def today_iso() -> str:
    """Today's date as YYYY-MM-DD."""
    return datetime.now(UTC).strftime("%Y-%m-%d")


def days_ago_iso(days: int) -> str:
    """The UTC date *days* before today as YYYY-MM-DD."""
    return (datetime.now(UTC) - timedelta(days=days)).strftime("%Y-%m-%d")


def now_iso() -> str:
    """Current UTC time as standard ISO 8601 (for sync logs and audit columns)."""
    return datetime.now(UTC).isoformat()


def since_iso(*, days: int) -> str:
    """UTC timestamp *days* ago, comparable with :func:`now_iso` values."""
    return (datetime.now(UTC) - timedelta(days=days)).isoformat()


def years_ago_iso(years: int) -> str:
    """Today's UTC date moved back *years* years, as YYYY-MM-DD.

    Feb 29 falls back to Feb 28 in non-leap target years.
    """
    today = datetime.now(UTC).date()
    try:
        shifted = today.replace(year=today.year - years)
    except ValueError:
        shifted = today.replace(year=today.year - years, day=28)
    return shifted.isoformat()
