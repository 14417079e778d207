"""Build, price, sign and broadcast EIP-1559 transactions.

Every quantity that RPCs may disagree on (nonce, base fee, tip, gas) is read
from all configured endpoints and the largest answer wins.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from eth_account import Account
from loguru import logger
from web3 import AsyncWeb3

from lp_vault.core.utils.checked_math import mul_div_up
from lp_vault.core.utils.web3 import (
    transaction_chain_id,
    web3_from_chain_id,
    web3s_from_chain_id,
)

GAS_LIMIT_HEADROOM_BPS = 11_000
TIP_MULTIPLIER = 1.5
BASE_FEE_HEADROOM = 2
FEE_HISTORY_BLOCKS = 10
FEE_HISTORY_PERCENTILE = 80

SignCallback = Callable[[dict], Awaitable[bytes]]


class TransactionRevertedError(RuntimeError):
    def __init__(
        self,
        txn_hash: str,
        receipt: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.txn_hash = txn_hash
        self.receipt = receipt or {}
        super().__init__(message or f"Transaction reverted: {txn_hash}")


def _sender(transaction: dict) -> str:
    try:
        return AsyncWeb3.to_checksum_address(transaction["from"])
    except KeyError:
        raise ValueError("Transaction does not contain from address") from None


def _hex_hash(txn_hash: str) -> str:
    return txn_hash if txn_hash.startswith("0x") else f"0x{txn_hash}"


async def _max_over_rpcs(
    chain_id: int, read: Callable[[AsyncWeb3], Awaitable[int]]
) -> int:
    async with web3s_from_chain_id(chain_id) as web3s:
        answers = await asyncio.gather(*(read(w3) for w3 in web3s))
    return max(answers)


async def with_nonce(transaction: dict) -> dict:
    sender = _sender(transaction)

    async def _pending_count(w3: AsyncWeb3) -> int:
        return await w3.eth.get_transaction_count(sender, block_identifier="pending")

    nonce = await _max_over_rpcs(transaction_chain_id(transaction), _pending_count)
    return {**transaction, "nonce": nonce}


async def with_fees(transaction: dict) -> dict:
    chain_id = transaction_chain_id(transaction)

    async def _base_fee(w3: AsyncWeb3) -> int:
        block = await w3.eth.get_block("latest")
        return block.baseFeePerGas

    async def _recent_tip(w3: AsyncWeb3) -> int:
        history = await w3.eth.fee_history(
            FEE_HISTORY_BLOCKS, "latest", [FEE_HISTORY_PERCENTILE]
        )
        tips = [reward[0] for reward in history.reward]
        return sum(tips) // len(tips)

    base_fee, tip = await asyncio.gather(
        _max_over_rpcs(chain_id, _base_fee), _max_over_rpcs(chain_id, _recent_tip)
    )
    priority = int(tip * TIP_MULTIPLIER)
    return {
        **transaction,
        "maxFeePerGas": int(base_fee * BASE_FEE_HEADROOM) + priority,
        "maxPriorityFeePerGas": priority,
    }


async def with_gas_limit(transaction: dict) -> dict:
    # a stale gas field would be treated as a hard cap by some RPCs
    unpriced = {k: v for k, v in transaction.items() if k != "gas"}

    async def _estimate(w3: AsyncWeb3) -> int:
        try:
            return await w3.eth.estimate_gas(unpriced, block_identifier="latest")
        except Exception as exc:
            logger.info(f"Gas estimate failed on {w3.provider.endpoint_uri}: {exc}")
            return 0

    estimate = await _max_over_rpcs(transaction_chain_id(unpriced), _estimate)
    if estimate == 0:
        logger.error("Gas estimation failed on all RPCs")
        raise RuntimeError("Gas estimation failed on all RPCs")
    return {**unpriced, "gas": mul_div_up(estimate, GAS_LIMIT_HEADROOM_BPS, 10_000)}


async def broadcast_transaction(chain_id: int, signed_transaction: bytes) -> str:
    async with web3_from_chain_id(chain_id) as web3:
        txn_hash = await web3.eth.send_raw_transaction(signed_transaction)
    return _hex_hash(txn_hash.hex())


async def wait_for_transaction_receipt(
    chain_id: int,
    txn_hash: str,
    poll_interval: float = 0.1,
    timeout: int = 300,
) -> dict:
    txn_hash = _hex_hash(txn_hash)
    async with web3_from_chain_id(chain_id) as web3:
        receipt = dict(
            await web3.eth.wait_for_transaction_receipt(
                txn_hash, poll_latency=poll_interval, timeout=timeout
            )
        )
    if receipt.get("status") == 0:
        raise TransactionRevertedError(txn_hash, receipt)
    return receipt


async def send_transaction(
    transaction: dict, sign_callback: SignCallback | None, wait_for_receipt=True
) -> str:
    """Fill gas, nonce and fees, sign, broadcast and (by default) await the receipt.

    Raises ``TransactionRevertedError`` when the mined receipt reports failure.
    """
    if sign_callback is None:
        raise ValueError("sign_callback must be provided to send transaction")

    chain_id = transaction_chain_id(transaction)
    log = logger.bind(chain_id=chain_id, to=transaction.get("to"))
    log.info("Preparing transaction")

    prepared = await with_fees(await with_nonce(await with_gas_limit(transaction)))
    txn_hash = await broadcast_transaction(chain_id, await sign_callback(prepared))
    log.info(f"Transaction broadcast: {txn_hash} (nonce {prepared['nonce']})")

    if wait_for_receipt:
        await wait_for_transaction_receipt(chain_id, txn_hash)
    return txn_hash


def make_sign_callback(private_key: str) -> SignCallback:
    account = Account.from_key(private_key)

    async def sign_callback(tx: dict) -> bytes:
        return account.sign_transaction(tx).raw_transaction

    return sign_callback


async def encode_call(
    *,
    target: str,
    abi: list[dict[str, Any]],
    fn_name: str,
    args: list[Any],
    from_address: str,
    chain_id: int,
    value: int = 0,
) -> dict[str, Any]:
    """Unsigned transaction calling ``fn_name(*args)`` on ``target``."""
    to = AsyncWeb3.to_checksum_address(target)
    async with web3_from_chain_id(chain_id) as web3:
        try:
            data = web3.eth.contract(address=to, abi=abi).encode_abi(fn_name, args)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Failed to encode {fn_name}: {exc}") from exc

    return {
        "chainId": int(chain_id),
        "from": AsyncWeb3.to_checksum_address(from_address),
        "to": to,
        "data": data,
        "value": int(value),
    }
