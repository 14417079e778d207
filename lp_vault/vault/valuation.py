"""Total managed assets: idle reference asset plus the AMM position.

The position is valued from a fresh read of the pool on every call. Pool
reserves and LP supply are shared with every other pool participant, so any
cached figure could already be stale by the next call.

The vault's pro-rata share of each reserve is ``claim * reserve // supply``
(truncated, so the figure errs low). The two owned amounts are converted by
the configured ``PriceOracle``; with the default ``ParityOracle`` they are
simply added to the idle balance.
"""

from __future__ import annotations

from loguru import logger

from lp_vault.core.utils.checked_math import checked_add
from lp_vault.core.utils.uniswap_v2_math import pro_rata
from lp_vault.vault.interfaces import LiquidityPair, TokenLedger
from lp_vault.vault.models import PositionValuation, ReservesSnapshot
from lp_vault.vault.oracle import ParityOracle, PriceOracle


class ValuationEngine:
    def __init__(
        self,
        reference_asset: TokenLedger,
        pair: LiquidityPair,
        holder: str,
        oracle: PriceOracle | None = None,
    ) -> None:
        self.reference_asset = reference_asset
        self.pair = pair
        self.holder = holder
        self.oracle = oracle or ParityOracle()
        self.logger = logger.bind(component="valuation")

    async def read_reserves(self) -> ReservesSnapshot:
        reserve0, reserve1, last_update = await self.pair.get_reserves()
        total_supply = await self.pair.total_supply()
        return ReservesSnapshot(
            token0=self.pair.token0,
            token1=self.pair.token1,
            reserve0=int(reserve0),
            reserve1=int(reserve1),
            total_supply=int(total_supply),
            block_timestamp_last=int(last_update),
        )

    async def position(self) -> PositionValuation:
        idle = int(await self.reference_asset.balance_of(self.holder))
        claim = int(await self.pair.balance_of(self.holder))
        if claim == 0:
            return PositionValuation(
                idle=idle,
                liquidity_claim=0,
                owned0=0,
                owned1=0,
                position_value=0,
                total_assets=idle,
            )

        snapshot = await self.read_reserves()
        owned0 = pro_rata(claim, snapshot.reserve0, snapshot.total_supply)
        owned1 = pro_rata(claim, snapshot.reserve1, snapshot.total_supply)
        position_value = checked_add(
            await self.oracle.to_reference(snapshot.token0, owned0, snapshot),
            await self.oracle.to_reference(snapshot.token1, owned1, snapshot),
        )
        total = checked_add(idle, position_value)
        self.logger.debug(
            f"claim={claim}/{snapshot.total_supply} owned={owned0}/{owned1} "
            f"idle={idle} total={total}"
        )
        return PositionValuation(
            idle=idle,
            liquidity_claim=claim,
            owned0=owned0,
            owned1=owned1,
            position_value=position_value,
            total_assets=total,
            reserves=snapshot,
        )

    async def total_assets(self) -> int:
        return (await self.position()).total_assets
