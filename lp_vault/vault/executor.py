"""Moves idle vault tokens into the AMM position and back.

Each call is authorized first, then runs in one ``atomic()`` scope of the
execution context. The router gets an allowance of exactly the requested
amount for that call only, and no router allowance survives the call:
whatever the router did not consume is reset to zero, and a rejected call
clears both approvals before the error propagates. Backends that roll back
on their own (the in-memory chain) restore the pre-call state on top of
that. Backends that cannot (a live chain) rely on the clearing.

Retries are left to the caller, with fresh parameters.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger

from lp_vault.access.authorizer import Authorizer
from lp_vault.core.constants.base import OP_DIVEST, OP_INVEST
from lp_vault.core.errors import UnauthorizedError
from lp_vault.core.utils.checked_math import require_uint
from lp_vault.vault.interfaces import ExecutionContext, LiquidityRouter, TokenLedger
from lp_vault.vault.models import DivestmentReceipt, InvestmentReceipt


class InvestmentExecutor:
    def __init__(
        self,
        *,
        token0: TokenLedger,
        token1: TokenLedger,
        lp_token: TokenLedger,
        router: LiquidityRouter,
        holder: str,
        context: ExecutionContext,
        authorizer: Authorizer,
    ) -> None:
        self.token0 = token0
        self.token1 = token1
        self.lp_token = lp_token
        self.router = router
        self.holder = holder
        self.context = context
        self.authorizer = authorizer
        self.logger = logger.bind(component="executor")

    async def _authorize(self, caller: str, operation: str) -> None:
        if not await self.authorizer.is_allowed(caller, operation):
            self.logger.warning(f"Rejected {operation} from {caller}")
            raise UnauthorizedError(caller, operation)

    async def _clear_residual(self, token: TokenLedger) -> None:
        if await token.allowance(self.holder, self.router.address) > 0:
            await token.approve(self.holder, self.router.address, 0)

    @asynccontextmanager
    async def _router_allowances(
        self, label: str, *tokens: TokenLedger
    ) -> AsyncIterator[None]:
        # also runs on task cancellation
        try:
            yield
        except BaseException as exc:
            self.logger.error(f"{label} rejected: {type(exc).__name__}: {exc}")
            for token in tokens:
                await self._clear_residual(token)
            raise
        for token in tokens:
            await self._clear_residual(token)

    async def invest_v2(
        self,
        caller: str,
        amount0: int,
        amount1: int,
        amount0_min: int,
        amount1_min: int,
    ) -> InvestmentReceipt:
        await self._authorize(caller, OP_INVEST)
        for name, value in (
            ("amount0", amount0),
            ("amount1", amount1),
            ("amount0_min", amount0_min),
            ("amount1_min", amount1_min),
        ):
            require_uint(value, name)

        router = self.router.address
        label = f"invest_v2({amount0}, {amount1})"
        async with self.context.atomic():
            deadline = await self.context.now()
            async with self._router_allowances(label, self.token0, self.token1):
                await self.token0.approve(self.holder, router, amount0)
                await self.token1.approve(self.holder, router, amount1)
                used0, used1, minted = await self.router.add_liquidity(
                    self.holder,
                    self.token0.address,
                    self.token1.address,
                    amount0,
                    amount1,
                    amount0_min,
                    amount1_min,
                    self.holder,
                    deadline,
                )

        self.logger.info(
            f"Invested {used0}/{used1} (requested {amount0}/{amount1}), minted {minted} LP"
        )
        return InvestmentReceipt(
            amount0_used=used0,
            amount1_used=used1,
            liquidity_minted=minted,
            deadline=deadline,
        )

    async def divest_v2(
        self,
        caller: str,
        liquidity: int,
        amount0_min: int,
        amount1_min: int,
    ) -> DivestmentReceipt:
        await self._authorize(caller, OP_DIVEST)
        require_uint(liquidity, "liquidity")
        require_uint(amount0_min, "amount0_min")
        require_uint(amount1_min, "amount1_min")

        router = self.router.address
        async with self.context.atomic():
            deadline = await self.context.now()
            async with self._router_allowances(f"divest_v2({liquidity})", self.lp_token):
                await self.lp_token.approve(self.holder, router, liquidity)
                received0, received1 = await self.router.remove_liquidity(
                    self.holder,
                    self.token0.address,
                    self.token1.address,
                    liquidity,
                    amount0_min,
                    amount1_min,
                    self.holder,
                    deadline,
                )

        self.logger.info(f"Divested {liquidity} LP for {received0}/{received1}")
        return DivestmentReceipt(
            liquidity_burned=liquidity,
            amount0_received=received0,
            amount1_received=received1,
            deadline=deadline,
        )
