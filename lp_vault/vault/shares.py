"""ERC-4626 share accounting.

Conversions use a virtual offset of one share and one asset, so the price
denominator is ``total_supply + 1`` / ``total_assets + 1`` and is never zero.
Rounding always favours the vault: deposits and redemptions round down,
mints and withdrawals round up.
"""

from __future__ import annotations

from enum import Enum

from eth_utils import to_checksum_address

from lp_vault.core.errors import InsufficientBalanceError
from lp_vault.core.utils.checked_math import checked_add, mul_div, mul_div_up, require_uint

VIRTUAL_OFFSET = 1


class Rounding(str, Enum):
    DOWN = "DOWN"
    UP = "UP"


def convert_to_shares(
    assets: int, total_assets: int, total_supply: int, rounding: Rounding = Rounding.DOWN
) -> int:
    fn = mul_div_up if rounding is Rounding.UP else mul_div
    return fn(
        require_uint(assets, "assets"),
        checked_add(total_supply, VIRTUAL_OFFSET),
        checked_add(total_assets, VIRTUAL_OFFSET),
    )


def convert_to_assets(
    shares: int, total_assets: int, total_supply: int, rounding: Rounding = Rounding.DOWN
) -> int:
    fn = mul_div_up if rounding is Rounding.UP else mul_div
    return fn(
        require_uint(shares, "shares"),
        checked_add(total_assets, VIRTUAL_OFFSET),
        checked_add(total_supply, VIRTUAL_OFFSET),
    )


class ShareLedger:
    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        self.balances: dict[str, int] = {}
        self.supply = 0

    def balance_of(self, owner: str) -> int:
        return self.balances.get(to_checksum_address(owner), 0)

    def mint(self, to: str, shares: int) -> None:
        self.supply = checked_add(self.supply, shares)
        holder = to_checksum_address(to)
        self.balances[holder] = self.balances.get(holder, 0) + shares

    def burn(self, owner: str, shares: int) -> None:
        holder = to_checksum_address(owner)
        balance = self.balances.get(holder, 0)
        if balance < shares:
            raise InsufficientBalanceError(self.symbol, holder, balance, shares)
        self.balances[holder] = balance - shares
        self.supply -= shares
