from __future__ import annotations

from vaultcheck.errors import ArithmeticPreconditionError


def _check_non_negative(**values: int) -> None:
    for name, value in values.items():
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")


def quote_mint(deposit_amount: int, total_share_supply: int, total_vault_assets: int) -> int:
    """Shares to mint for a deposit. The first deposit into an empty vault mints 1:1."""
    _check_non_negative(
        deposit_amount=deposit_amount,
        total_share_supply=total_share_supply,
        total_vault_assets=total_vault_assets,
    )
    if total_share_supply == 0:
        return deposit_amount
    if total_vault_assets == 0:
        raise ArithmeticPreconditionError("quote_mint: vault has shares outstanding but no assets")
    return (deposit_amount * total_share_supply) // total_vault_assets


def quote_burn(share_amount: int, total_vault_assets: int, total_share_supply: int) -> int:
    """Assets released when burning ``share_amount`` shares."""
    _check_non_negative(
        share_amount=share_amount,
        total_vault_assets=total_vault_assets,
        total_share_supply=total_share_supply,
    )
    if total_share_supply == 0:
        raise ArithmeticPreconditionError("quote_burn: vault has no shares outstanding")
    return (share_amount * total_vault_assets) // total_share_supply
