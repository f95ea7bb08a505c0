"""Tests for ledger account naming, balance formatting and share assets."""

from dataclasses import dataclass
from decimal import Decimal

import pytest

from fairlend.domain.ledger import (
    InvalidAmountError,
    NamespacedAddress,
    ShareAssetCollisionError,
    SystemAddress,
    UnqualifiedAddress,
    ensure_unique_share_asset,
    format_balance,
    get_mortgage_share_asset,
    get_namespace,
    group_accounts_by_namespace,
    is_share_asset,
    parse_address,
    parse_mortgage_id_from_asset,
    parse_owner_id,
    to_decimal,
    truncate_address,
)


class TestParseAddress:
    def test_system(self) -> None:
        parsed = parse_address("@world")
        assert isinstance(parsed, SystemAddress)
        assert parsed.kind == "system"

    def test_namespaced(self) -> None:
        parsed = parse_address("investor:abc123:inventory")
        assert isinstance(parsed, NamespacedAddress)
        assert parsed.namespace == "investor"
        assert parsed.rest == "abc123:inventory"
        assert parsed.segments == ["abc123", "inventory"]

    @pytest.mark.parametrize("address", ["world", ":startsWithColon", ""])
    def test_unqualified(self, address: str) -> None:
        parsed = parse_address(address)
        assert isinstance(parsed, UnqualifiedAddress)
        assert parsed.kind == "other"


class TestNamespaceAndOwner:
    @pytest.mark.parametrize(
        ("address", "namespace"),
        [
            ("@world", "system"),
            ("investor:abc:inventory", "investor"),
            ("mortgage:m1:trust", "mortgage"),
            ("fairlend:fees", "fairlend"),
            ("plain", "other"),
            (":x", "other"),
        ],
    )
    def test_get_namespace(self, address: str, namespace: str) -> None:
        assert get_namespace(address) == namespace

    @pytest.mark.parametrize(
        ("address", "owner"),
        [
            ("investor:abc123:inventory", "abc123"),
            ("fairlend:fees", "fairlend"),
            ("fairlend:inventory", "fairlend"),
            ("mortgage:abc:shares", "mortgage:abc:shares"),
            ("@world", "@world"),
            ("investor::wallet", "investor::wallet"),
        ],
    )
    def test_parse_owner_id(self, address: str, owner: str) -> None:
        assert parse_owner_id(address) == owner


class TestTruncateAddress:
    def test_short_address_unchanged(self) -> None:
        assert truncate_address("investor:abc") == "investor:abc"

    def test_exact_length_unchanged(self) -> None:
        address = "x" * 24
        assert truncate_address(address) == address

    def test_long_address_truncated(self) -> None:
        address = "investor:user_2abcdefghijklmnop:inventory"
        result = truncate_address(address)
        assert result == f"{address[:11]}...{address[-10:]}"
        assert "..." in result

    def test_custom_length(self) -> None:
        assert truncate_address("abcdefghijklmnop", 10) == "abcd...nop"


class TestGroupAccounts:
    def test_groups_mappings(self) -> None:
        accounts = [
            {"address": "investor:a:inventory"},
            {"address": "@world"},
            {"address": "investor:b:inventory"},
        ]
        groups = group_accounts_by_namespace(accounts)
        assert list(groups) == ["investor", "system"]
        assert groups["investor"] == [accounts[0], accounts[2]]

    def test_groups_objects(self) -> None:
        @dataclass
        class Account:
            address: str

        groups = group_accounts_by_namespace([Account("fairlend:fees"), Account("x")])
        assert set(groups) == {"fairlend", "other"}

    def test_custom_key(self) -> None:
        groups = group_accounts_by_namespace(["mortgage:1:trust"], key=lambda a: a)
        assert groups == {"mortgage": ["mortgage:1:trust"]}


class TestFormatBalance:
    @pytest.mark.parametrize(
        ("amount", "asset", "expected"),
        [
            (10000, "CAD", "$100.00 CAD"),
            ("10000", "CAD", "$100.00 CAD"),
            (123456789, "USD", "$1,234,567.89 USD"),
            (5, "EUR", "€0.05 EUR"),
            (-2550, "GBP", "-£25.50 GBP"),
            (0, "CAD", "$0.00 CAD"),
            (50, "MABC1234/SHARE", "50 shares"),
            (1, "M5B8F2A1C", "1 share"),
            (100, "M5B8F2A1C/100", "100 shares"),
            (1000, "POINTS", "1,000 POINTS"),
            (Decimal("12.5"), "POINTS", "12.5 POINTS"),
        ],
    )
    def test_formats(self, amount: object, asset: str, expected: str) -> None:
        assert format_balance(amount, asset) == expected  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("asset", "expected"),
        [
            ("M", "1,500 M"),
            ("M-X", "1,500 M-X"),
            ("M5B8F2A1C/abc", "1,500 M5B8F2A1C/abc"),
            ("mABC", "1,500 mABC"),
            ("MXN", "1500 shares"),
        ],
    )
    def test_only_well_formed_tokens_are_shares(self, asset: str, expected: str) -> None:
        assert format_balance(1500, asset) == expected

    @pytest.mark.parametrize("amount", ["abc", "", "NaN", "Infinity", True])
    def test_invalid_amount(self, amount: object) -> None:
        with pytest.raises(InvalidAmountError):
            format_balance(amount, "CAD")  # type: ignore[arg-type]

    def test_invalid_amount_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            to_decimal("oops")


class TestShareAssets:
    @pytest.mark.parametrize(
        ("mortgage_id", "asset"),
        [("a", "M61"), ("ab", "MC21"), ("", "M0")],
    )
    def test_known_hashes(self, mortgage_id: str, asset: str) -> None:
        assert get_mortgage_share_asset(mortgage_id) == asset

    def test_deterministic(self) -> None:
        mortgage_id = "k57d2x8w9q3m1n0b4v6c"
        assert get_mortgage_share_asset(mortgage_id) == get_mortgage_share_asset(mortgage_id)

    @pytest.mark.parametrize(
        "mortgage_id",
        ["k57d2x8w9q3m1n0b4v6c", "mortgage_abc123", "x" * 200, "hypothèque", "🏠"],
    )
    def test_asset_shape(self, mortgage_id: str) -> None:
        asset = get_mortgage_share_asset(mortgage_id)
        assert asset.startswith("M")
        assert 2 <= len(asset) <= 9
        assert all(c in "0123456789ABCDEF" for c in asset[1:])
        assert is_share_asset(asset)

    def test_utf16_code_units(self) -> None:
        # U+1F3E0 is the surrogate pair D83C DFE0.
        expected = ((0xD83C * 31) + 0xDFE0) & 0xFFFFFFFF
        assert get_mortgage_share_asset("🏠") == f"M{expected:X}"

    @pytest.mark.parametrize(
        ("asset", "expected"),
        [("M5B8F2A1C", True), ("Mabc/SHARE", True), ("M12/100", True), ("CAD", False), ("M", False)],
    )
    def test_is_share_asset(self, asset: str, expected: bool) -> None:
        assert is_share_asset(asset) is expected

    @pytest.mark.parametrize(
        ("asset", "expected"),
        [
            ("M5B8F2A1C", "5B8F2A1C"),
            ("M5B8F2A1C/100", "5B8F2A1C"),
            ("Mabc123/SHARE", "abc123"),
            ("CAD", None),
            ("Mabc", None),
        ],
    )
    def test_parse_mortgage_id_from_asset(self, asset: str, expected: str | None) -> None:
        assert parse_mortgage_id_from_asset(asset) == expected

    def test_round_trip_yields_hash(self) -> None:
        asset = get_mortgage_share_asset("mortgage_abc123")
        assert parse_mortgage_id_from_asset(asset) == asset[1:]


class TestEnsureUniqueShareAsset:
    def test_unknown_asset(self) -> None:
        assert ensure_unique_share_asset("a", {}) == "M61"

    def test_same_mortgage_is_fine(self) -> None:
        assert ensure_unique_share_asset("a", {"M61": "a"}) == "M61"

    def test_collision_raises(self) -> None:
        with pytest.raises(ShareAssetCollisionError) as excinfo:
            ensure_unique_share_asset("a", {"M61": "other"})
        assert excinfo.value.asset == "M61"
        assert excinfo.value.existing_mortgage_id == "other"
