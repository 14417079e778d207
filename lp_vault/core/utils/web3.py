from contextlib import asynccontextmanager

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import ExtraDataToPOAMiddleware

from lp_vault.core.config import get_rpc_urls

# BSC and Polygon carry oversized extraData in block headers.
POA_CHAIN_IDS = frozenset({56, 137})


def rpc_urls_for(chain_id: int) -> list[str]:
    configured = get_rpc_urls()
    # JSON config yields string keys; programmatic config may use ints
    urls = configured.get(str(chain_id), configured.get(chain_id))
    if not urls:
        raise ValueError(f"No RPCs configured for chain ID {chain_id}")
    return [urls] if isinstance(urls, str) else list(urls)


def _connect(url: str, chain_id: int) -> AsyncWeb3:
    web3 = AsyncWeb3(
        AsyncHTTPProvider(
            url, request_kwargs={"headers": AsyncHTTPProvider.get_request_headers()}
        )
    )
    if chain_id in POA_CHAIN_IDS:
        web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return web3


def transaction_chain_id(transaction: dict) -> int:
    try:
        return int(transaction["chainId"])
    except KeyError:
        raise ValueError("Transaction does not contain chainId") from None


@asynccontextmanager
async def web3s_from_chain_id(chain_id: int):
    """One connected client per configured RPC; all are closed on exit."""
    web3s = [_connect(url, chain_id) for url in rpc_urls_for(chain_id)]
    try:
        yield web3s
    finally:
        for web3 in web3s:
            await web3.provider.disconnect()


@asynccontextmanager
async def web3_from_chain_id(chain_id: int):
    web3 = _connect(rpc_urls_for(chain_id)[0], chain_id)
    try:
        yield web3
    finally:
        await web3.provider.disconnect()
