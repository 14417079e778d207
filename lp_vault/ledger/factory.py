from __future__ import annotations

from eth_utils import to_checksum_address

from lp_vault.core.constants import ZERO_ADDRESS
from lp_vault.core.utils.uniswap_v2_math import sort_tokens
from lp_vault.ledger.chain import Chain, StatefulLedger
from lp_vault.ledger.pair import V2Pair
from lp_vault.ledger.token import Erc20Ledger


class V2Factory(StatefulLedger):
    _state_fields = ("pairs",)

    def __init__(self, chain: Chain) -> None:
        self.chain = chain
        self.address = chain.next_address()
        # (token0, token1) -> pair address, tokens sorted
        self.pairs: dict[tuple[str, str], str] = {}
        chain.register(self.address, self)

    async def get_pair(self, token_a: str, token_b: str) -> str:
        key = sort_tokens(to_checksum_address(token_a), to_checksum_address(token_b))
        return self.pairs.get(key, ZERO_ADDRESS)

    async def pair_at(self, address: str) -> V2Pair:
        ledger = self.chain.ledger_at(address)
        if not isinstance(ledger, V2Pair):
            raise KeyError(f"{address} is not a pair")
        return ledger

    async def create_pair(self, token_a: Erc20Ledger, token_b: Erc20Ledger) -> V2Pair:
        t0, t1 = sort_tokens(token_a.address, token_b.address)
        if (t0, t1) in self.pairs:
            raise ValueError(f"Pair exists for {t0}/{t1}")
        first, second = (token_a, token_b) if token_a.address == t0 else (token_b, token_a)
        pair = V2Pair(self.chain, first, second)
        self.pairs[(t0, t1)] = pair.address
        return pair
