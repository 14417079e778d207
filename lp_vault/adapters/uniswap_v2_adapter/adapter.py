from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from eth_utils import to_checksum_address

from lp_vault.core.adapters.BaseAdapter import BaseAdapter, reporting_read
from lp_vault.core.constants import ZERO_ADDRESS
from lp_vault.core.constants.base import DEFAULT_DEADLINE_BUFFER_S
from lp_vault.core.constants.erc20_abi import ERC20_ABI
from lp_vault.core.constants.uniswap_v2_abi import (
    UNISWAP_V2_FACTORY_ABI,
    UNISWAP_V2_PAIR_ABI,
    UNISWAP_V2_ROUTER_ABI,
)
from lp_vault.core.utils.tokens import approve_exact, get_token_allowance, get_token_balance
from lp_vault.core.utils.transaction import encode_call, send_transaction
from lp_vault.core.utils.web3 import web3_from_chain_id
from lp_vault.vault.models import PositionValuation
from lp_vault.vault.valuation import ValuationEngine


class _Signer:
    def __init__(self, chain_id: int, wallet_address: str | None, sign_callback: Callable | None):
        self.chain_id = int(chain_id)
        self.wallet_address = to_checksum_address(wallet_address) if wallet_address else None
        self.sign_callback = sign_callback

    def _require_sender(self, sender: str) -> str:
        if self.wallet_address is None or self.sign_callback is None:
            raise ValueError("wallet address and sign callback are required for writes")
        if to_checksum_address(sender) != self.wallet_address:
            raise ValueError(
                f"Can only send as {self.wallet_address}, not {to_checksum_address(sender)}"
            )
        return self.wallet_address

    async def _send(self, target: str, abi: list[dict[str, Any]], fn_name: str, args: list[Any]) -> str:
        tx = await encode_call(
            target=target,
            abi=abi,
            fn_name=fn_name,
            args=args,
            from_address=self.wallet_address,
            chain_id=self.chain_id,
        )
        return await send_transaction(tx, self.sign_callback)


class Web3Erc20(_Signer):
    def __init__(
        self,
        address: str,
        chain_id: int,
        *,
        wallet_address: str | None = None,
        sign_callback: Callable | None = None,
    ) -> None:
        super().__init__(chain_id, wallet_address, sign_callback)
        self.address = to_checksum_address(address)

    async def balance_of(self, holder: str) -> int:
        return await get_token_balance(self.address, self.chain_id, holder)

    async def allowance(self, owner: str, spender: str) -> int:
        return await get_token_allowance(self.address, self.chain_id, owner, spender)

    async def approve(self, owner: str, spender: str, amount: int) -> None:
        sender = self._require_sender(owner)
        await approve_exact(
            token_address=self.address,
            owner=sender,
            spender=spender,
            amount=int(amount),
            chain_id=self.chain_id,
            signing_callback=self.sign_callback,
        )

    async def transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._require_sender(sender)
        await self._send(
            self.address, ERC20_ABI, "transfer", [to_checksum_address(recipient), int(amount)]
        )

    async def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> None:
        self._require_sender(spender)
        await self._send(
            self.address,
            ERC20_ABI,
            "transferFrom",
            [to_checksum_address(owner), to_checksum_address(recipient), int(amount)],
        )


class Web3Pair(Web3Erc20):
    token0: str
    token1: str

    @classmethod
    async def load(
        cls,
        address: str,
        chain_id: int,
        *,
        wallet_address: str | None = None,
        sign_callback: Callable | None = None,
    ) -> Web3Pair:
        pair = cls(
            address, chain_id, wallet_address=wallet_address, sign_callback=sign_callback
        )
        async with web3_from_chain_id(pair.chain_id) as web3:
            contract = web3.eth.contract(address=pair.address, abi=UNISWAP_V2_PAIR_ABI)
            token0, token1 = await asyncio.gather(
                contract.functions.token0().call(block_identifier="latest"),
                contract.functions.token1().call(block_identifier="latest"),
            )
        pair.token0 = to_checksum_address(token0)
        pair.token1 = to_checksum_address(token1)
        return pair

    async def total_supply(self) -> int:
        async with web3_from_chain_id(self.chain_id) as web3:
            contract = web3.eth.contract(address=self.address, abi=UNISWAP_V2_PAIR_ABI)
            return int(await contract.functions.totalSupply().call(block_identifier="pending"))

    async def get_reserves(self) -> tuple[int, int, int]:
        async with web3_from_chain_id(self.chain_id) as web3:
            contract = web3.eth.contract(address=self.address, abi=UNISWAP_V2_PAIR_ABI)
            reserve0, reserve1, ts = await contract.functions.getReserves().call(
                block_identifier="pending"
            )
        return int(reserve0), int(reserve1), int(ts)


class Web3Factory(_Signer):
    def __init__(
        self,
        address: str,
        chain_id: int,
        *,
        wallet_address: str | None = None,
        sign_callback: Callable | None = None,
    ) -> None:
        super().__init__(chain_id, wallet_address, sign_callback)
        self.address = to_checksum_address(address)

    async def get_pair(self, token_a: str, token_b: str) -> str:
        async with web3_from_chain_id(self.chain_id) as web3:
            contract = web3.eth.contract(address=self.address, abi=UNISWAP_V2_FACTORY_ABI)
            addr = await contract.functions.getPair(
                to_checksum_address(token_a), to_checksum_address(token_b)
            ).call(block_identifier="latest")
        if not addr or str(addr).lower() == ZERO_ADDRESS:
            return ZERO_ADDRESS
        return to_checksum_address(addr)

    async def pair_at(self, address: str) -> Web3Pair:
        return await Web3Pair.load(
            address,
            self.chain_id,
            wallet_address=self.wallet_address,
            sign_callback=self.sign_callback,
        )


class Web3Router(_Signer):
    """UniswapV2Router02 client.

    The amounts returned by ``add_liquidity``/``remove_liquidity`` come from an
    ``eth_call`` simulation against the pending block right before the
    transaction is sent; the mined transaction enforces the same minimums.
    """

    def __init__(
        self,
        address: str,
        chain_id: int,
        *,
        wallet_address: str | None = None,
        sign_callback: Callable | None = None,
    ) -> None:
        super().__init__(chain_id, wallet_address, sign_callback)
        self.address = to_checksum_address(address)
        self._factory: Web3Factory | None = None

    async def factory(self) -> Web3Factory:
        if self._factory is None:
            async with web3_from_chain_id(self.chain_id) as web3:
                contract = web3.eth.contract(address=self.address, abi=UNISWAP_V2_ROUTER_ABI)
                factory_address = await contract.functions.factory().call(
                    block_identifier="latest"
                )
            self._factory = Web3Factory(
                factory_address,
                self.chain_id,
                wallet_address=self.wallet_address,
                sign_callback=self.sign_callback,
            )
        return self._factory

    async def _simulate(self, fn_name: str, args: list[Any], sender: str) -> Any:
        async with web3_from_chain_id(self.chain_id) as web3:
            contract = web3.eth.contract(address=self.address, abi=UNISWAP_V2_ROUTER_ABI)
            fn = getattr(contract.functions, fn_name)
            return await fn(*args).call({"from": sender}, block_identifier="pending")

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
        sender = self._require_sender(caller)
        args = [
            to_checksum_address(token_a),
            to_checksum_address(token_b),
            int(amount_a_desired),
            int(amount_b_desired),
            int(amount_a_min),
            int(amount_b_min),
            to_checksum_address(to),
            int(deadline),
        ]
        amount_a, amount_b, liquidity = await self._simulate("addLiquidity", args, sender)
        await self._send(self.address, UNISWAP_V2_ROUTER_ABI, "addLiquidity", args)
        return int(amount_a), int(amount_b), int(liquidity)

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
        sender = self._require_sender(caller)
        args = [
            to_checksum_address(token_a),
            to_checksum_address(token_b),
            int(liquidity),
            int(amount_a_min),
            int(amount_b_min),
            to_checksum_address(to),
            int(deadline),
        ]
        amount_a, amount_b = await self._simulate("removeLiquidity", args, sender)
        await self._send(self.address, UNISWAP_V2_ROUTER_ABI, "removeLiquidity", args)
        return int(amount_a), int(amount_b)


class Web3ExecutionContext:
    """Serializes vault calls against a live chain.

    On-chain transactions sent one after another cannot be reverted together,
    so ``atomic()`` only serializes; the executor restores allowances itself
    when a step fails. ``now()`` is the latest block timestamp plus a buffer,
    since the transaction lands in a later block than the one read.
    """

    def __init__(self, chain_id: int, *, deadline_buffer_s: int = DEFAULT_DEADLINE_BUFFER_S):
        self.chain_id = int(chain_id)
        self.deadline_buffer_s = int(deadline_buffer_s)
        self._lock = asyncio.Lock()

    async def now(self) -> int:
        async with web3_from_chain_id(self.chain_id) as web3:
            block = await web3.eth.get_block("latest")
        return int(block["timestamp"]) + self.deadline_buffer_s

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        async with self._lock:
            yield


class UniswapV2Adapter(BaseAdapter):
    """Read-only reporting over a Uniswap V2 position, as ``(ok, result)`` tuples."""

    adapter_type = "UNISWAP_V2"

    def __init__(self, config: dict[str, Any]) -> None:
        super().__init__("uniswap_v2_adapter", config)
        self.chain_id = int(config["chain_id"])
        self.router = Web3Router(config["router"], self.chain_id)

    @reporting_read
    async def get_pair(self, token_a: str, token_b: str) -> str | None:
        factory = await self.router.factory()
        pair = await factory.get_pair(token_a, token_b)
        return None if pair == ZERO_ADDRESS else pair

    @reporting_read
    async def get_pool_state(self, token_a: str, token_b: str) -> dict[str, Any]:
        factory = await self.router.factory()
        pair_address = await factory.get_pair(token_a, token_b)
        if pair_address == ZERO_ADDRESS:
            raise ValueError(f"No pool for {token_a}/{token_b}")
        pair = await factory.pair_at(pair_address)
        reserve0, reserve1, ts = await pair.get_reserves()
        return {
            "pair": pair.address,
            "token0": pair.token0,
            "token1": pair.token1,
            "reserve0": reserve0,
            "reserve1": reserve1,
            "blockTimestampLast": ts,
            "totalSupply": await pair.total_supply(),
        }

    @reporting_read
    async def get_position_value(
        self, *, holder: str, reference_asset: str, token_a: str, token_b: str
    ) -> PositionValuation:
        factory = await self.router.factory()
        pair_address = await factory.get_pair(token_a, token_b)
        if pair_address == ZERO_ADDRESS:
            raise ValueError(f"No pool for {token_a}/{token_b}")
        engine = ValuationEngine(
            Web3Erc20(reference_asset, self.chain_id),
            await factory.pair_at(pair_address),
            to_checksum_address(holder),
        )
        return await engine.position()
