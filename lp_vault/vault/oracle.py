"""Conversion of pooled token amounts into reference-asset units.

``ParityOracle`` is the legacy behaviour: both pool tokens count one-for-one
as the reference asset. It is only correct while both tokens trade at par
with the reference asset, and it stays the default so existing share prices
keep matching. ``FeedOracle`` and ``PoolSpotOracle`` are opt-in.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from eth_utils import to_checksum_address

from lp_vault.core.constants.base import PRICE_SCALE
from lp_vault.core.errors import ConfigurationError
from lp_vault.core.utils.checked_math import mul_div
from lp_vault.vault.models import ReservesSnapshot


@runtime_checkable
class PriceOracle(Protocol):
    async def to_reference(
        self, token: str, amount: int, snapshot: ReservesSnapshot
    ) -> int: ...


class ParityOracle:
    async def to_reference(
        self, token: str, amount: int, snapshot: ReservesSnapshot
    ) -> int:
        return amount


class FeedOracle:
    """Prices from an external feed, as reference units per token unit scaled by 1e18."""

    def __init__(
        self, reference_asset: str, price_source: Callable[[str], Awaitable[int]]
    ) -> None:
        self.reference_asset = to_checksum_address(reference_asset)
        self.price_source = price_source

    async def to_reference(
        self, token: str, amount: int, snapshot: ReservesSnapshot
    ) -> int:
        if to_checksum_address(token) == self.reference_asset or amount == 0:
            return amount
        price = int(await self.price_source(to_checksum_address(token)))
        if price < 0:
            raise ValueError(f"Negative price {price} for {token}")
        return mul_div(amount, price, PRICE_SCALE)


class PoolSpotOracle:
    """Prices the paired token at the pool's own reserve ratio.

    Reads the same snapshot as the valuation, so it inherits the pool's
    exposure to in-block price manipulation.
    """

    def __init__(self, reference_asset: str) -> None:
        self.reference_asset = to_checksum_address(reference_asset)

    async def to_reference(
        self, token: str, amount: int, snapshot: ReservesSnapshot
    ) -> int:
        token = to_checksum_address(token)
        if token == self.reference_asset or amount == 0:
            return amount
        if snapshot.token0 == self.reference_asset and token == snapshot.token1:
            return mul_div(amount, snapshot.reserve0, snapshot.reserve1)
        if snapshot.token1 == self.reference_asset and token == snapshot.token0:
            return mul_div(amount, snapshot.reserve1, snapshot.reserve0)
        raise ConfigurationError(
            f"Reference asset {self.reference_asset} is not a side of the pool"
        )
