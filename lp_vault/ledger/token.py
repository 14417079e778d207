from __future__ import annotations

from eth_utils import to_checksum_address

from lp_vault.core.constants.base import MAX_UINT256
from lp_vault.core.errors import InsufficientAllowanceError, InsufficientBalanceError
from lp_vault.core.utils.checked_math import checked_add, require_uint
from lp_vault.ledger.chain import Chain, StatefulLedger


class Erc20Ledger(StatefulLedger):
    """ERC-20 balances and allowances.

    Each method validates before it mutates, so a rejected call changes
    nothing even outside an atomic scope. An allowance of ``MAX_UINT256`` is
    treated as infinite and is not decremented by ``transfer_from``.
    """

    _state_fields = ("balances", "allowances", "supply")

    def __init__(
        self,
        chain: Chain,
        symbol: str,
        *,
        decimals: int = 18,
        address: str | None = None,
    ) -> None:
        self.chain = chain
        self.symbol = symbol
        self.decimals = int(decimals)
        self.address = to_checksum_address(address or chain.next_address())
        self.balances: dict[str, int] = {}
        self.allowances: dict[tuple[str, str], int] = {}
        self.supply = 0
        chain.register(self.address, self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol}@{self.address})"

    async def balance_of(self, holder: str) -> int:
        return self.balances.get(to_checksum_address(holder), 0)

    async def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(
            (to_checksum_address(owner), to_checksum_address(spender)), 0
        )

    async def total_supply(self) -> int:
        return self.supply

    async def approve(self, owner: str, spender: str, amount: int) -> None:
        key = (to_checksum_address(owner), to_checksum_address(spender))
        self.allowances[key] = require_uint(amount, "amount")

    async def transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._move(to_checksum_address(sender), to_checksum_address(recipient), amount)

    async def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> None:
        key = (to_checksum_address(owner), to_checksum_address(spender))
        allowed = self.allowances.get(key, 0)
        if allowed < amount:
            raise InsufficientAllowanceError(self.symbol, key[0], key[1], allowed, amount)
        self._move(key[0], to_checksum_address(recipient), amount)
        if allowed != MAX_UINT256:
            self.allowances[key] = allowed - amount

    async def mint(self, to: str, amount: int) -> None:
        require_uint(amount, "amount")
        self.supply = checked_add(self.supply, amount)
        holder = to_checksum_address(to)
        self.balances[holder] = self.balances.get(holder, 0) + amount

    async def burn(self, holder: str, amount: int) -> None:
        holder = to_checksum_address(holder)
        balance = self.balances.get(holder, 0)
        if balance < amount:
            raise InsufficientBalanceError(self.symbol, holder, balance, amount)
        self.balances[holder] = balance - amount
        self.supply -= amount

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        require_uint(amount, "amount")
        balance = self.balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalanceError(self.symbol, sender, balance, amount)
        self.balances[sender] = balance - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount
