"""Ledger account naming, asset naming and balance formatting.

Account addresses follow the external ledger's colon-delimited scheme
(``investor:{userId}:inventory``, ``mortgage:{id}:trust``) plus the
``@``-prefixed system accounts (``@world``). Balances arrive as raw
integers: minor units (cents) for currencies, whole units for share tokens.

Nothing here computes balances. These helpers only name and display data
the ledger already holds.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import ClassVar, TypeVar

SYSTEM_NAMESPACE = "system"
OTHER_NAMESPACE = "other"

CURRENCY_SYMBOLS: dict[str, str] = {
    "CAD": "$",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}

# New format M{hash}[/precision]; legacy format M{id}/SHARE.
SHARE_ASSET_RE = re.compile(r"^M[A-Za-z0-9]+(?:/SHARE|/\d+)?$")
ASSET_HASH_RE = re.compile(r"^M([A-Z0-9]+)(/\d+)?$")
LEGACY_SHARE_SUFFIX = "/SHARE"

Amount = int | Decimal | str


class LedgerError(ValueError):
    """Base class for ledger naming/formatting errors."""


class InvalidAmountError(LedgerError):
    """An amount could not be read as a number."""


class ShareAssetCollisionError(LedgerError):
    """Two mortgages hash to the same share asset code."""

    def __init__(self, asset: str, mortgage_id: str, existing_mortgage_id: str) -> None:
        self.asset = asset
        self.mortgage_id = mortgage_id
        self.existing_mortgage_id = existing_mortgage_id
        super().__init__(
            f"Share asset {asset} for mortgage {mortgage_id!r} "
            f"is already assigned to mortgage {existing_mortgage_id!r}"
        )


# ---------------------------------------------------------------------------
# Account addresses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SystemAddress:
    """An ``@``-prefixed ledger system account such as ``@world``."""

    kind: ClassVar[str] = "system"
    address: str


@dataclass(frozen=True)
class NamespacedAddress:
    """``{namespace}:{rest}`` where the namespace is non-empty."""

    kind: ClassVar[str] = "namespace"
    address: str
    namespace: str
    rest: str

    @property
    def segments(self) -> list[str]:
        return self.rest.split(":")


@dataclass(frozen=True)
class UnqualifiedAddress:
    """An address with no usable namespace (no colon, or a leading colon)."""

    kind: ClassVar[str] = "other"
    address: str


AccountAddress = SystemAddress | NamespacedAddress | UnqualifiedAddress


def parse_address(address: str) -> AccountAddress:
    """Classify a ledger account address.

    Examples:
        >>> parse_address("@world")
        SystemAddress(address='@world')
        >>> parse_address("investor:abc123:inventory").namespace
        'investor'
        >>> parse_address(":startsWithColon").kind
        'other'
    """
    if address.startswith("@"):
        return SystemAddress(address=address)
    namespace, sep, rest = address.partition(":")
    if not sep or not namespace:
        return UnqualifiedAddress(address=address)
    return NamespacedAddress(address=address, namespace=namespace, rest=rest)


def get_namespace(address: str) -> str:
    """Namespace of *address*: its prefix, ``"system"`` or ``"other"``."""
    parsed = parse_address(address)
    if isinstance(parsed, SystemAddress):
        return SYSTEM_NAMESPACE
    if isinstance(parsed, NamespacedAddress):
        return parsed.namespace
    return OTHER_NAMESPACE


def parse_owner_id(address: str) -> str:
    """Owner of an account: ``fairlend``, the investor's user id, or the address.

    Examples:
        >>> parse_owner_id("investor:abc123:inventory")
        'abc123'
        >>> parse_owner_id("fairlend:fees")
        'fairlend'
        >>> parse_owner_id("mortgage:abc:shares")
        'mortgage:abc:shares'
    """
    parsed = parse_address(address)
    if not isinstance(parsed, NamespacedAddress):
        return address
    if parsed.namespace == "fairlend":
        return "fairlend"
    if parsed.namespace == "investor":
        return parsed.segments[0] or address
    return address


def truncate_address(address: str, max_length: int = 24) -> str:
    """Shorten *address* to roughly *max_length* chars with a ``...`` middle."""
    if len(address) <= max_length:
        return address
    start = address[: max_length // 2 - 1]
    end = address[-(max_length // 2 - 2) :]
    return f"{start}...{end}"


_T = TypeVar("_T")


def _address_of(account: object) -> str:
    if isinstance(account, Mapping):
        return account["address"]
    return account.address  # type: ignore[attr-defined]


def group_accounts_by_namespace(
    accounts: Iterable[_T],
    *,
    key: Callable[[_T], str] = _address_of,
) -> dict[str, list[_T]]:
    """Group accounts by the namespace of their address, keeping input order."""
    groups: dict[str, list[_T]] = {}
    for account in accounts:
        groups.setdefault(get_namespace(key(account)), []).append(account)
    return groups


# ---------------------------------------------------------------------------
# Balances
# ---------------------------------------------------------------------------


def to_decimal(amount: Amount) -> Decimal:
    """Read an int, Decimal or numeric string as a Decimal."""
    if isinstance(amount, bool):
        msg = f"Not an amount: {amount!r}"
        raise InvalidAmountError(msg)
    if isinstance(amount, Decimal):
        value = amount
    else:
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation as exc:
            msg = f"Not an amount: {amount!r}"
            raise InvalidAmountError(msg) from exc
    if not value.is_finite():
        msg = f"Not a finite amount: {amount!r}"
        raise InvalidAmountError(msg)
    return value


def _plain(value: Decimal, *, grouped: bool = False) -> str:
    if value == value.to_integral_value():
        return f"{int(value):,}" if grouped else str(int(value))
    normalized = value.normalize()
    return f"{normalized:,}" if grouped else str(normalized)


def is_share_asset(asset: str) -> bool:
    """True for mortgage share tokens (``M5B8F2A1C``, ``M5B8F2A1C/100``, ``Mabc/SHARE``)."""
    return SHARE_ASSET_RE.match(asset) is not None


def format_balance(amount: Amount, asset: str) -> str:
    """Render a raw ledger balance for display.

    Examples:
        >>> format_balance(10000, "CAD")
        '$100.00 CAD'
        >>> format_balance(50, "MABC1234/SHARE")
        '50 shares'
        >>> format_balance(1000, "POINTS")
        '1,000 POINTS'
    """
    value = to_decimal(amount)

    symbol = CURRENCY_SYMBOLS.get(asset)
    if symbol is not None:
        major = value / 100
        sign = "-" if major < 0 else ""
        return f"{sign}{symbol}{abs(major):,.2f} {asset}"

    if is_share_asset(asset):
        suffix = "" if value == 1 else "s"
        return f"{_plain(value)} share{suffix}"

    return f"{_plain(value, grouped=True)} {asset}"


# ---------------------------------------------------------------------------
# Share assets
# ---------------------------------------------------------------------------


def _rolling_hash32(text: str) -> int:
    """Signed 32-bit ``h * 31 + c`` hash over UTF-16 code units."""
    encoded = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    return h - 0x1_0000_0000 if h & 0x8000_0000 else h


def get_mortgage_share_asset(mortgage_id: str) -> str:
    """Deterministic share asset code for a mortgage.

    The ledger requires asset names matching ``[A-Z][A-Z0-9]{0,16}(/\\d{1,6})?``,
    so the id is hashed into ``M`` + up to 8 uppercase hex chars.
    The mapping is one-way and not collision-free; see
    :func:`ensure_unique_share_asset`.

    Examples:
        >>> get_mortgage_share_asset("a")
        'M61'
        >>> get_mortgage_share_asset("")
        'M0'
    """
    digest = abs(_rolling_hash32(mortgage_id))
    return f"M{digest:X}"[:9]


def ensure_unique_share_asset(mortgage_id: str, known_assets: Mapping[str, str]) -> str:
    """Return the share asset for *mortgage_id*, refusing hash collisions.

    Args:
        mortgage_id: Mortgage to name.
        known_assets: Existing ``asset -> mortgage_id`` assignments.

    Raises:
        ShareAssetCollisionError: The asset belongs to another mortgage.
    """
    asset = get_mortgage_share_asset(mortgage_id)
    existing = known_assets.get(asset)
    if existing is not None and existing != mortgage_id:
        raise ShareAssetCollisionError(asset, mortgage_id, existing)
    return asset


def parse_mortgage_id_from_asset(asset: str) -> str | None:
    """Identifier embedded in a share asset name, or None.

    Hashed assets yield the hash, not the original mortgage id.

    Examples:
        >>> parse_mortgage_id_from_asset("M5B8F2A1C")
        '5B8F2A1C'
        >>> parse_mortgage_id_from_asset("Mabc123/SHARE")
        'abc123'
        >>> parse_mortgage_id_from_asset("CAD") is None
        True
    """
    match = ASSET_HASH_RE.match(asset)
    if match:
        return match.group(1)
    if asset.startswith("M") and asset.endswith(LEGACY_SHARE_SUFFIX):
        return asset[1 : -len(LEGACY_SHARE_SUFFIX)]
    return None
