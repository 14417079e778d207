import pytest
import pytest_asyncio

from lp_vault.access.authorizer import MANAGER_ROLE, RoleAuthorizer, RoleRegistry
from lp_vault.ledger import Chain, Erc20Ledger, V2Factory, V2Router
from lp_vault.testing import (
    ADMIN,
    GENESIS,
    LP_SUPPLY,
    LP_WHALE,
    MANAGER,
    RESERVE0,
    RESERVE1,
    VAULT,
)
from lp_vault.vault.vault import LiquidityVault


def pytest_configure(config):
    config.addinivalue_line("markers", "smoke: mark test as a smoke test")
    config.addinivalue_line("markers", "scenario: end-to-end vault scenario")


@pytest.fixture
def chain() -> Chain:
    return Chain(timestamp=GENESIS)


@pytest.fixture
def token0(chain) -> Erc20Ledger:
    # allocated first, so it sorts as the pool's token0
    return Erc20Ledger(chain, "USDC", decimals=6)


@pytest.fixture
def token1(chain, token0) -> Erc20Ledger:
    return Erc20Ledger(chain, "WETH")


@pytest.fixture
def factory(chain, token1) -> V2Factory:
    return V2Factory(chain)


@pytest.fixture
def router(chain, factory) -> V2Router:
    return V2Router(chain, factory)


@pytest_asyncio.fixture
async def pair(factory, token0, token1):
    """Pool holding 10000/5000 with 1000 LP units owned by a third party."""
    pair = await factory.create_pair(token0, token1)
    await token0.mint(pair.address, RESERVE0)
    await token1.mint(pair.address, RESERVE1)
    await Erc20Ledger.mint(pair, LP_WHALE, LP_SUPPLY)
    await pair.sync()
    return pair


@pytest.fixture
def registry() -> RoleRegistry:
    registry = RoleRegistry(ADMIN)
    registry.grant_role(ADMIN, MANAGER_ROLE, MANAGER)
    return registry


@pytest.fixture
def authorizer(registry) -> RoleAuthorizer:
    return RoleAuthorizer(registry)


@pytest_asyncio.fixture
async def vault(chain, token0, token1, router, pair, authorizer) -> LiquidityVault:
    return await LiquidityVault.create(
        address=VAULT,
        asset=token0,
        token0=token0,
        token1=token1,
        router=router,
        context=chain,
        authorizer=authorizer,
    )


@pytest_asyncio.fixture
async def funded_vault(vault, token0, token1) -> LiquidityVault:
    """Vault holding 1000 of each pool token and no LP claim."""
    await token0.mint(VAULT, 1_000)
    await token1.mint(VAULT, 1_000)
    return vault
