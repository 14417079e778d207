from __future__ import annotations

from lp_vault.core.constants import ZERO_ADDRESS
from lp_vault.core.constants.base import MAX_UINT112, MINIMUM_LIQUIDITY, SWAP_FEE_BPS
from lp_vault.core.errors import InsufficientLiquidityError
from lp_vault.core.utils.checked_math import checked_mul, require_uint
from lp_vault.core.utils.uniswap_v2_math import amounts_for_liquidity, liquidity_to_mint
from lp_vault.ledger.chain import Chain
from lp_vault.ledger.token import Erc20Ledger


class V2Pair(Erc20Ledger):
    """Constant-product pool whose LP token is the pair itself."""

    _state_fields = (*Erc20Ledger._state_fields, "reserve0", "reserve1", "block_timestamp_last")

    def __init__(self, chain: Chain, token0: Erc20Ledger, token1: Erc20Ledger) -> None:
        super().__init__(chain, f"UNI-V2 {token0.symbol}/{token1.symbol}")
        self._token0 = token0
        self._token1 = token1
        self.token0 = token0.address
        self.token1 = token1.address
        self.reserve0 = 0
        self.reserve1 = 0
        self.block_timestamp_last = 0

    async def get_reserves(self) -> tuple[int, int, int]:
        return self.reserve0, self.reserve1, self.block_timestamp_last

    async def mint(self, to: str) -> int:  # type: ignore[override]
        balance0 = await self._token0.balance_of(self.address)
        balance1 = await self._token1.balance_of(self.address)
        amount0 = balance0 - self.reserve0
        amount1 = balance1 - self.reserve1

        supply = self.supply
        liquidity = liquidity_to_mint(amount0, amount1, self.reserve0, self.reserve1, supply)
        if supply == 0:
            await super().mint(ZERO_ADDRESS, MINIMUM_LIQUIDITY)
        await super().mint(to, liquidity)
        await self._update(balance0, balance1)
        return liquidity

    async def burn(self, to: str) -> tuple[int, int]:  # type: ignore[override]
        balance0 = await self._token0.balance_of(self.address)
        balance1 = await self._token1.balance_of(self.address)
        liquidity = await self.balance_of(self.address)

        amount0, amount1 = amounts_for_liquidity(liquidity, balance0, balance1, self.supply)
        await super().burn(self.address, liquidity)
        await self._token0.transfer(self.address, to, amount0)
        await self._token1.transfer(self.address, to, amount1)
        await self._update(balance0 - amount0, balance1 - amount1)
        return amount0, amount1

    async def swap(self, amount0_out: int, amount1_out: int, to: str) -> None:
        if amount0_out <= 0 and amount1_out <= 0:
            raise InsufficientLiquidityError("Insufficient output amount")
        if amount0_out >= self.reserve0 or amount1_out >= self.reserve1:
            raise InsufficientLiquidityError("Insufficient liquidity")

        if amount0_out:
            await self._token0.transfer(self.address, to, amount0_out)
        if amount1_out:
            await self._token1.transfer(self.address, to, amount1_out)
        balance0 = await self._token0.balance_of(self.address)
        balance1 = await self._token1.balance_of(self.address)

        amount0_in = max(0, balance0 - (self.reserve0 - amount0_out))
        amount1_in = max(0, balance1 - (self.reserve1 - amount1_out))
        if amount0_in <= 0 and amount1_in <= 0:
            raise InsufficientLiquidityError("Insufficient input amount")

        adjusted0 = balance0 * 10_000 - amount0_in * SWAP_FEE_BPS
        adjusted1 = balance1 * 10_000 - amount1_in * SWAP_FEE_BPS
        if checked_mul(adjusted0, adjusted1) < self.reserve0 * self.reserve1 * 10_000**2:
            raise InsufficientLiquidityError("K invariant violated")
        await self._update(balance0, balance1)

    async def sync(self) -> None:
        await self._update(
            await self._token0.balance_of(self.address),
            await self._token1.balance_of(self.address),
        )

    async def _update(self, balance0: int, balance1: int) -> None:
        require_uint(balance0, "balance0", bound=MAX_UINT112)
        require_uint(balance1, "balance1", bound=MAX_UINT112)
        self.reserve0 = balance0
        self.reserve1 = balance1
        self.block_timestamp_last = (await self.chain.now()) % 2**32
