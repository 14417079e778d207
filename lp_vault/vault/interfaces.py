"""Interfaces of the external collaborators the vault consumes.

The vault never owns token balances, LP balances or pool reserves; it reads
and moves them through these protocols. ``lp_vault.ledger`` implements them in
memory, ``lp_vault.adapters.uniswap_v2_adapter`` against a live chain.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenLedger(Protocol):
    address: str

    async def balance_of(self, holder: str) -> int: ...

    async def allowance(self, owner: str, spender: str) -> int: ...

    async def approve(self, owner: str, spender: str, amount: int) -> None: ...

    async def transfer(self, sender: str, recipient: str, amount: int) -> None: ...

    async def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> None: ...


@runtime_checkable
class LiquidityPair(Protocol):
    address: str
    token0: str
    token1: str

    async def balance_of(self, holder: str) -> int: ...

    async def total_supply(self) -> int: ...

    async def get_reserves(self) -> tuple[int, int, int]: ...


@runtime_checkable
class PairFactory(Protocol):
    async def get_pair(self, token_a: str, token_b: str) -> str: ...

    async def pair_at(self, address: str) -> LiquidityPair: ...


@runtime_checkable
class LiquidityRouter(Protocol):
    address: str

    async def factory(self) -> PairFactory: ...

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
    ) -> tuple[int, int, int]: ...

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
    ) -> tuple[int, int]: ...


@runtime_checkable
class ExecutionContext(Protocol):
    async def now(self) -> int: ...

    def atomic(self) -> AbstractAsyncContextManager[None]: ...
