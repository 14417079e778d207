from __future__ import annotations

from eth_utils import to_checksum_address
from loguru import logger

from lp_vault.core.constants import ZERO_ADDRESS
from lp_vault.core.errors import DeadlineExpiredError, SlippageError
from lp_vault.core.utils.uniswap_v2_math import get_amount_out, optimal_amounts
from lp_vault.ledger.chain import Chain
from lp_vault.ledger.factory import V2Factory
from lp_vault.ledger.pair import V2Pair


class V2Router:
    """Uniswap V2 Router02 semantics over the in-memory ledgers.

    Every entry point runs in one atomic scope: a rejection anywhere leaves
    balances, allowances and reserves as they were.
    """

    def __init__(self, chain: Chain, factory: V2Factory) -> None:
        self.chain = chain
        self._factory = factory
        self.address = chain.next_address()
        self.logger = logger.bind(component="router")

    async def factory(self) -> V2Factory:
        return self._factory

    async def _ensure(self, deadline: int) -> None:
        now = await self.chain.now()
        if deadline < now:
            raise DeadlineExpiredError(deadline, now)

    async def _pair_for(self, token_a: str, token_b: str, *, create: bool) -> V2Pair:
        pair_address = await self._factory.get_pair(token_a, token_b)
        if pair_address == ZERO_ADDRESS:
            if not create:
                raise KeyError(f"No pair for {token_a}/{token_b}")
            return await self._factory.create_pair(
                self.chain.ledger_at(token_a), self.chain.ledger_at(token_b)
            )
        return await self._factory.pair_at(pair_address)

    @staticmethod
    def _ordered_reserves(pair: V2Pair, token_a: str) -> tuple[int, int]:
        if to_checksum_address(token_a) == pair.token0:
            return pair.reserve0, pair.reserve1
        return pair.reserve1, pair.reserve0

    async def add_liquidity(
        self,
        caller: str,
        token_a: str,
        token_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
    ) -> tuple[int, int, int]:
        async with self.chain.atomic():
            await self._ensure(deadline)
            pair = await self._pair_for(token_a, token_b, create=True)
            reserve_a, reserve_b = self._ordered_reserves(pair, token_a)
            amount_a, amount_b = optimal_amounts(
                token_a=token_a,
                token_b=token_b,
                amount_a_desired=amount_a_desired,
                amount_b_desired=amount_b_desired,
                amount_a_min=amount_a_min,
                amount_b_min=amount_b_min,
                reserve_a=reserve_a,
                reserve_b=reserve_b,
            )
            await self.chain.ledger_at(token_a).transfer_from(
                self.address, caller, pair.address, amount_a
            )
            await self.chain.ledger_at(token_b).transfer_from(
                self.address, caller, pair.address, amount_b
            )
            liquidity = await pair.mint(to)
        self.logger.debug(
            f"addLiquidity {amount_a}/{amount_b} -> {liquidity} LP for {to}"
        )
        return amount_a, amount_b, liquidity

    async def remove_liquidity(
        self,
        caller: str,
        token_a: str,
        token_b: str,
        liquidity: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
    ) -> tuple[int, int]:
        async with self.chain.atomic():
            await self._ensure(deadline)
            pair = await self._pair_for(token_a, token_b, create=False)
            await pair.transfer_from(self.address, caller, pair.address, liquidity)
            amount0, amount1 = await pair.burn(to)
            if to_checksum_address(token_a) == pair.token0:
                amount_a, amount_b = amount0, amount1
            else:
                amount_a, amount_b = amount1, amount0
            if amount_a < amount_a_min:
                raise SlippageError(token_a, amount_a, amount_a_min)
            if amount_b < amount_b_min:
                raise SlippageError(token_b, amount_b, amount_b_min)
        self.logger.debug(f"removeLiquidity {liquidity} LP -> {amount_a}/{amount_b}")
        return amount_a, amount_b

    async def swap_exact_tokens_for_tokens(
        self,
        caller: str,
        amount_in: int,
        amount_out_min: int,
        path: list[str],
        to: str,
        deadline: int,
    ) -> int:
        if len(path) != 2:
            raise ValueError("Only single-hop paths are supported")
        token_in, token_out = path
        async with self.chain.atomic():
            await self._ensure(deadline)
            pair = await self._pair_for(token_in, token_out, create=False)
            reserve_in, reserve_out = self._ordered_reserves(pair, token_in)
            amount_out = get_amount_out(amount_in, reserve_in, reserve_out)
            if amount_out < amount_out_min:
                raise SlippageError(token_out, amount_out, amount_out_min)
            await self.chain.ledger_at(token_in).transfer_from(
                self.address, caller, pair.address, amount_in
            )
            if to_checksum_address(token_in) == pair.token0:
                await pair.swap(0, amount_out, to)
            else:
                await pair.swap(amount_out, 0, to)
        return amount_out
