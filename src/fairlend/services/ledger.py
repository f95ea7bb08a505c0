"""LedgerService — account and asset naming lookups for operators."""

from __future__ import annotations

from sqlalchemy import select

from fairlend.domain.ledger import (
    InvalidAmountError,
    NamespacedAddress,
    ShareAssetCollisionError,
    ensure_unique_share_asset,
    format_balance,
    get_mortgage_share_asset,
    get_namespace,
    parse_address,
    parse_mortgage_id_from_asset,
    parse_owner_id,
    truncate_address,
)
from fairlend.infrastructure.database.schema import mortgages
from fairlend.services.base import BaseService
from fairlend.services.result import ServiceResult
from fairlend.services.telemetry import traced


class LedgerService(BaseService):
    """Wraps the ledger naming helpers as ServiceResults."""

    @traced
    def describe_account(self, address: str) -> ServiceResult:
        """Break an account address into namespace, owner and segments."""
        parsed = parse_address(address)
        data: dict[str, object] = {
            "address": address,
            "kind": parsed.kind,
            "namespace": get_namespace(address),
            "owner": parse_owner_id(address),
            "display": truncate_address(address, self.settings.ledger.address_display_length),
        }
        if isinstance(parsed, NamespacedAddress):
            data["segments"] = parsed.segments
        return ServiceResult(ok=True, op="ledger_account", data=data)

    @traced
    def format_balance(self, amount: str, asset: str | None = None) -> ServiceResult:
        """Format a raw balance; *asset* defaults to the configured currency."""
        op = "ledger_balance"
        asset = asset or self.settings.ledger.default_currency
        try:
            formatted = format_balance(amount, asset)
        except InvalidAmountError as exc:
            return ServiceResult.failure(op, "INVALID_AMOUNT", str(exc), amount=amount)
        return ServiceResult(
            ok=True,
            op=op,
            data={"amount": amount, "asset": asset, "formatted": formatted},
        )

    @traced
    def share_asset(self, mortgage_id: str, *, check_collisions: bool = True) -> ServiceResult:
        """Share asset code the ledger uses for *mortgage_id*.

        With *check_collisions*, the code is compared against every linked
        mortgage so two mortgages never share one asset.
        """
        op = "ledger_asset"
        asset = get_mortgage_share_asset(mortgage_id)
        if check_collisions:
            with self._store.transaction() as conn:
                known = {
                    get_mortgage_share_asset(row.id): row.id
                    for row in conn.execute(select(mortgages.c.id))
                }
            try:
                ensure_unique_share_asset(mortgage_id, known)
            except ShareAssetCollisionError as exc:
                return ServiceResult.failure(
                    op,
                    "SHARE_ASSET_COLLISION",
                    str(exc),
                    asset=exc.asset,
                    existing_mortgage_id=exc.existing_mortgage_id,
                )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "mortgage_id": mortgage_id,
                "asset": asset,
                "hash": parse_mortgage_id_from_asset(asset),
            },
        )
