from web3 import AsyncWeb3

from lp_vault.core.constants.erc20_abi import ERC20_ABI
from lp_vault.core.utils.transaction import (
    SignCallback,
    encode_call,
    send_transaction,
)
from lp_vault.core.utils.web3 import web3_from_chain_id


async def _read_erc20(
    token_address: str, chain_id: int, fn_name: str, *holders: str
) -> int:
    async with web3_from_chain_id(chain_id) as web3:
        token = web3.eth.contract(
            address=web3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        fn = getattr(token.functions, fn_name)
        value = await fn(*(web3.to_checksum_address(h) for h in holders)).call(
            block_identifier="pending"
        )
    return int(value)


async def get_token_balance(
    token_address: str, chain_id: int, wallet_address: str
) -> int:
    return await _read_erc20(token_address, chain_id, "balanceOf", wallet_address)


async def get_token_allowance(
    token_address: str, chain_id: int, owner_address: str, spender_address: str
) -> int:
    return await _read_erc20(
        token_address, chain_id, "allowance", owner_address, spender_address
    )


async def approve_exact(
    *,
    token_address: str,
    owner: str,
    spender: str,
    amount: int,
    chain_id: int,
    signing_callback: SignCallback,
) -> str:
    """Set the allowance to exactly ``amount``; never tops up or grants more."""
    approve_tx = await encode_call(
        target=token_address,
        abi=ERC20_ABI,
        fn_name="approve",
        args=[AsyncWeb3.to_checksum_address(spender), int(amount)],
        from_address=owner,
        chain_id=chain_id,
    )
    return await send_transaction(approve_tx, signing_callback)
