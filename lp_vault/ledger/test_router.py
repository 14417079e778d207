import pytest

from lp_vault.core.constants import ZERO_ADDRESS
from lp_vault.core.constants.base import MINIMUM_LIQUIDITY
from lp_vault.core.errors import (
    DeadlineExpiredError,
    InsufficientAllowanceError,
    SlippageError,
)
from lp_vault.core.utils.uniswap_v2_math import get_amount_out
from lp_vault.ledger import Erc20Ledger
from lp_vault.testing import ALICE, GENESIS, LP_SUPPLY, RESERVE0, RESERVE1


async def _fund(token, router, amount):
    await token.mint(ALICE, amount)
    await token.approve(ALICE, router.address, amount)


async def _add(router, token0, token1, a0, a1, min0=0, min1=0, deadline=GENESIS):
    return await router.add_liquidity(
        ALICE, token0.address, token1.address, a0, a1, min0, min1, ALICE, deadline
    )


class TestAddLiquidity:
    @pytest.mark.asyncio
    async def test_proportional_mint(self, router, pair, token0, token1):
        await _fund(token0, router, 500)
        await _fund(token1, router, 250)

        assert await _add(router, token0, token1, 500, 250, 495, 245) == (500, 250, 50)
        assert await pair.get_reserves() == (RESERVE0 + 500, RESERVE1 + 250, GENESIS)
        assert await pair.total_supply() == LP_SUPPLY + 50
        assert await pair.balance_of(ALICE) == 50

    @pytest.mark.asyncio
    async def test_token_order_of_request_does_not_matter(self, router, pair, token0, token1):
        await _fund(token0, router, 500)
        await _fund(token1, router, 250)

        used1, used0, minted = await router.add_liquidity(
            ALICE, token1.address, token0.address, 250, 500, 0, 0, ALICE, GENESIS
        )
        assert (used0, used1, minted) == (500, 250, 50)

    @pytest.mark.asyncio
    async def test_unused_desired_amount_stays_with_caller(self, router, pair, token0, token1):
        await _fund(token0, router, 600)
        await _fund(token1, router, 250)

        assert await _add(router, token0, token1, 600, 250) == (500, 250, 50)
        assert await token0.balance_of(ALICE) == 100
        assert await token0.allowance(ALICE, router.address) == 100

    @pytest.mark.asyncio
    async def test_expired_deadline_changes_nothing(self, chain, router, pair, token0, token1):
        await _fund(token0, router, 500)
        await _fund(token1, router, 250)
        chain.advance(1)

        with pytest.raises(DeadlineExpiredError):
            await _add(router, token0, token1, 500, 250, deadline=GENESIS)
        assert await token0.balance_of(ALICE) == 500
        assert await pair.get_reserves() == (RESERVE0, RESERVE1, GENESIS)

    @pytest.mark.asyncio
    async def test_deadline_equal_to_now_is_accepted(self, router, pair, token0, token1):
        await _fund(token0, router, 500)
        await _fund(token1, router, 250)
        await _add(router, token0, token1, 500, 250, deadline=GENESIS)

    @pytest.mark.asyncio
    async def test_slippage_changes_nothing(self, router, pair, token0, token1):
        await _fund(token0, router, 500)
        await _fund(token1, router, 250)

        with pytest.raises(SlippageError):
            await _add(router, token0, token1, 500, 250, 495, 251)
        assert await token0.allowance(ALICE, router.address) == 500
        assert await token1.balance_of(ALICE) == 250
        assert await pair.total_supply() == LP_SUPPLY

    @pytest.mark.asyncio
    async def test_second_transfer_failing_reverts_first(self, router, pair, token0, token1):
        await _fund(token0, router, 500)
        await token1.mint(ALICE, 250)

        with pytest.raises(InsufficientAllowanceError):
            await _add(router, token0, token1, 500, 250)
        assert await token0.balance_of(ALICE) == 500
        assert await token0.balance_of(pair.address) == RESERVE0

    @pytest.mark.asyncio
    async def test_creates_missing_pair(self, chain, factory, router):
        tkA = Erc20Ledger(chain, "AAA")
        tkB = Erc20Ledger(chain, "BBB")
        await _fund(tkA, router, 4_000)
        await _fund(tkB, router, 1_000)

        _, _, minted = await _add(router, tkA, tkB, 4_000, 1_000)

        pair = await factory.pair_at(await factory.get_pair(tkA.address, tkB.address))
        assert minted == 2_000 - MINIMUM_LIQUIDITY
        assert await pair.balance_of(ZERO_ADDRESS) == MINIMUM_LIQUIDITY

    @pytest.mark.asyncio
    async def test_failed_creation_leaves_no_pair(self, chain, factory, router):
        tkA = Erc20Ledger(chain, "AAA")
        tkB = Erc20Ledger(chain, "BBB")
        await _fund(tkA, router, 4_000)

        with pytest.raises(InsufficientAllowanceError):
            await _add(router, tkA, tkB, 4_000, 1_000)
        assert await factory.get_pair(tkA.address, tkB.address) == ZERO_ADDRESS


class TestRemoveLiquidity:
    @pytest.mark.asyncio
    async def test_round_trip(self, router, pair, token0, token1):
        await _fund(token0, router, 500)
        await _fund(token1, router, 250)
        await _add(router, token0, token1, 500, 250)
        await pair.approve(ALICE, router.address, 50)

        received = await router.remove_liquidity(
            ALICE, token0.address, token1.address, 50, 500, 250, ALICE, GENESIS
        )
        assert received == (500, 250)
        assert await pair.balance_of(ALICE) == 0
        assert await pair.get_reserves() == (RESERVE0, RESERVE1, GENESIS)

    @pytest.mark.asyncio
    async def test_minimum_not_met_changes_nothing(self, router, pair, token0, token1):
        await _fund(token0, router, 500)
        await _fund(token1, router, 250)
        await _add(router, token0, token1, 500, 250)
        await pair.approve(ALICE, router.address, 50)

        with pytest.raises(SlippageError):
            await router.remove_liquidity(
                ALICE, token0.address, token1.address, 50, 501, 0, ALICE, GENESIS
            )
        assert await pair.balance_of(ALICE) == 50
        assert await pair.allowance(ALICE, router.address) == 50
        assert await token0.balance_of(ALICE) == 0


@pytest.mark.asyncio
async def test_swap_exact_tokens_for_tokens(router, pair, token0, token1):
    await _fund(token0, router, 100)
    expected = get_amount_out(100, RESERVE0, RESERVE1)

    out = await router.swap_exact_tokens_for_tokens(
        ALICE, 100, expected, [token0.address, token1.address], ALICE, GENESIS
    )
    assert out == expected
    assert await token1.balance_of(ALICE) == expected
    assert await pair.get_reserves() == (RESERVE0 + 100, RESERVE1 - expected, GENESIS)

    await _fund(token0, router, 100)
    with pytest.raises(SlippageError):
        await router.swap_exact_tokens_for_tokens(
            ALICE, 100, RESERVE1, [token0.address, token1.address], ALICE, GENESIS
        )
