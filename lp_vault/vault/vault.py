from __future__ import annotations

from decimal import Decimal

from eth_utils import to_checksum_address
from loguru import logger

from lp_vault.access.authorizer import Authorizer
from lp_vault.core.constants import ZERO_ADDRESS
from lp_vault.core.errors import (
    ConfigurationError,
    InsufficientBalanceError,
    UnauthorizedError,
)
from lp_vault.core.utils.checked_math import require_uint
from lp_vault.vault.executor import InvestmentExecutor
from lp_vault.vault.interfaces import (
    ExecutionContext,
    LiquidityPair,
    LiquidityRouter,
    TokenLedger,
)
from lp_vault.vault.models import DivestmentReceipt, InvestmentReceipt, PositionValuation
from lp_vault.vault.oracle import PriceOracle
from lp_vault.vault.shares import Rounding, ShareLedger, convert_to_assets, convert_to_shares
from lp_vault.vault.valuation import ValuationEngine


class LiquidityVault:
    """Pooled vault over one reference asset and one AMM liquidity position.

    Build it with ``await LiquidityVault.create(...)``: the pool for the
    configured pair is resolved once there and pinned for the vault's life.
    """

    def __init__(
        self,
        *,
        address: str,
        asset: TokenLedger,
        token0: TokenLedger,
        token1: TokenLedger,
        pair: LiquidityPair,
        router: LiquidityRouter,
        context: ExecutionContext,
        authorizer: Authorizer,
        oracle: PriceOracle | None = None,
        symbol: str = "lpVLT",
    ) -> None:
        self.address = to_checksum_address(address)
        self.asset = asset
        self.token0 = token0
        self.token1 = token1
        self.pair = pair
        self.router = router
        self.context = context
        self.shares = ShareLedger(symbol)
        self.valuation = ValuationEngine(asset, pair, self.address, oracle)
        self.executor = InvestmentExecutor(
            token0=token0,
            token1=token1,
            lp_token=pair,  # type: ignore[arg-type]
            router=router,
            holder=self.address,
            context=context,
            authorizer=authorizer,
        )
        self.logger = logger.bind(component="vault", vault=self.address)

    @classmethod
    async def create(
        cls,
        *,
        address: str,
        asset: TokenLedger,
        token0: TokenLedger,
        token1: TokenLedger,
        router: LiquidityRouter,
        context: ExecutionContext,
        authorizer: Authorizer,
        oracle: PriceOracle | None = None,
        symbol: str = "lpVLT",
    ) -> LiquidityVault:
        factory = await router.factory()
        pair_address = await factory.get_pair(token0.address, token1.address)
        if not pair_address or pair_address.lower() == ZERO_ADDRESS:
            raise ConfigurationError(
                f"No pool exists for {token0.address}/{token1.address}"
            )
        pair = await factory.pair_at(pair_address)
        logger.info(f"Vault {address} pinned pool {pair_address}")
        return cls(
            address=address,
            asset=asset,
            token0=token0,
            token1=token1,
            pair=pair,
            router=router,
            context=context,
            authorizer=authorizer,
            oracle=oracle,
            symbol=symbol,
        )

    # -- valuation -------------------------------------------------------------

    async def total_assets(self) -> int:
        return await self.valuation.total_assets()

    async def position(self) -> PositionValuation:
        return await self.valuation.position()

    async def share_price(self) -> Decimal:
        """Assets per share, including the virtual offset."""
        total = await self.total_assets()
        return Decimal(total + 1) / Decimal(self.shares.supply + 1)

    # -- investment ------------------------------------------------------------

    async def invest_v2(
        self,
        caller: str,
        amount0: int,
        amount1: int,
        amount0_min: int,
        amount1_min: int,
    ) -> InvestmentReceipt:
        return await self.executor.invest_v2(
            caller, amount0, amount1, amount0_min, amount1_min
        )

    async def divest_v2(
        self, caller: str, liquidity: int, amount0_min: int, amount1_min: int
    ) -> DivestmentReceipt:
        return await self.executor.divest_v2(caller, liquidity, amount0_min, amount1_min)

    # -- shares ----------------------------------------------------------------

    def total_supply(self) -> int:
        return self.shares.supply

    def balance_of(self, owner: str) -> int:
        return self.shares.balance_of(owner)

    async def convert_to_shares(self, assets: int) -> int:
        return convert_to_shares(assets, await self.total_assets(), self.shares.supply)

    async def convert_to_assets(self, shares: int) -> int:
        return convert_to_assets(shares, await self.total_assets(), self.shares.supply)

    async def preview_deposit(self, assets: int) -> int:
        return await self.convert_to_shares(assets)

    async def preview_mint(self, shares: int) -> int:
        return convert_to_assets(
            shares, await self.total_assets(), self.shares.supply, Rounding.UP
        )

    async def preview_withdraw(self, assets: int) -> int:
        return convert_to_shares(
            assets, await self.total_assets(), self.shares.supply, Rounding.UP
        )

    async def preview_redeem(self, shares: int) -> int:
        return await self.convert_to_assets(shares)

    async def max_withdraw(self, owner: str) -> int:
        """Bounded by both the owner's shares and the vault's idle balance."""
        owned = await self.convert_to_assets(self.shares.balance_of(owner))
        return min(owned, await self.asset.balance_of(self.address))

    async def deposit(self, caller: str, assets: int, receiver: str) -> int:
        require_uint(assets, "assets")
        async with self.context.atomic():
            shares = await self.preview_deposit(assets)
            await self.asset.transfer_from(self.address, caller, self.address, assets)
            self.shares.mint(receiver, shares)
        self.logger.info(f"Deposit {assets} from {caller} -> {shares} shares to {receiver}")
        return shares

    async def mint(self, caller: str, shares: int, receiver: str) -> int:
        require_uint(shares, "shares")
        async with self.context.atomic():
            assets = await self.preview_mint(shares)
            await self.asset.transfer_from(self.address, caller, self.address, assets)
            self.shares.mint(receiver, shares)
        self.logger.info(f"Mint {shares} shares to {receiver} for {assets} from {caller}")
        return assets

    async def withdraw(self, caller: str, assets: int, receiver: str, owner: str) -> int:
        require_uint(assets, "assets")
        async with self.context.atomic():
            shares = await self.preview_withdraw(assets)
            await self._exit(caller, owner, receiver, assets, shares)
        return shares

    async def redeem(self, caller: str, shares: int, receiver: str, owner: str) -> int:
        require_uint(shares, "shares")
        async with self.context.atomic():
            assets = await self.preview_redeem(shares)
            await self._exit(caller, owner, receiver, assets, shares)
        return assets

    async def _exit(
        self, caller: str, owner: str, receiver: str, assets: int, shares: int
    ) -> None:
        if to_checksum_address(caller) != to_checksum_address(owner):
            raise UnauthorizedError(caller, "withdraw")
        owned = self.shares.balance_of(owner)
        if owned < shares:
            raise InsufficientBalanceError(self.shares.symbol, owner, owned, shares)
        idle = await self.asset.balance_of(self.address)
        if idle < assets:
            raise InsufficientBalanceError(self.asset.address, self.address, idle, assets)
        await self.asset.transfer(self.address, receiver, assets)
        # burned last so a failed transfer leaves the share ledger untouched
        self.shares.burn(owner, shares)
        self.logger.info(
            f"Withdraw {assets} to {receiver} burning {shares} shares of {owner}"
        )
