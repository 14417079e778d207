import pytest

from lp_vault.core.constants import ZERO_ADDRESS
from lp_vault.core.constants.base import MINIMUM_LIQUIDITY
from lp_vault.core.errors import InsufficientLiquidityError, SlippageError
from lp_vault.core.utils.uniswap_v2_math import (
    amounts_for_liquidity,
    get_amount_out,
    liquidity_to_mint,
    optimal_amounts,
    pro_rata,
    quote,
    slippage_min,
    sort_tokens,
)

TOKEN_A = "0x1111111111111111111111111111111111111111"
TOKEN_B = "0x3333333333333333333333333333333333333333"


def _optimal(a_des, b_des, a_min, b_min, reserve_a=10_000, reserve_b=5_000):
    return optimal_amounts(
        token_a=TOKEN_A,
        token_b=TOKEN_B,
        amount_a_desired=a_des,
        amount_b_desired=b_des,
        amount_a_min=a_min,
        amount_b_min=b_min,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
    )


class TestSortTokens:
    def test_orders_by_numeric_value(self):
        assert sort_tokens(TOKEN_B, TOKEN_A) == (TOKEN_A, TOKEN_B)
        assert sort_tokens(TOKEN_A, TOKEN_B) == (TOKEN_A, TOKEN_B)

    def test_identical(self):
        with pytest.raises(ValueError, match="Identical"):
            sort_tokens(TOKEN_A, TOKEN_A.lower())

    def test_zero_address(self):
        with pytest.raises(ValueError, match="Zero"):
            sort_tokens(ZERO_ADDRESS, TOKEN_A)


def test_quote():
    assert quote(500, 10_000, 5_000) == 250
    with pytest.raises(InsufficientLiquidityError):
        quote(0, 10_000, 5_000)
    with pytest.raises(InsufficientLiquidityError):
        quote(1, 0, 5_000)


class TestOptimalAmounts:
    def test_exact_ratio(self):
        assert _optimal(500, 250, 495, 245) == (500, 250)

    def test_keeps_b_when_a_is_in_excess(self):
        assert _optimal(600, 250, 0, 0) == (500, 250)

    def test_keeps_a_when_b_is_in_excess(self):
        assert _optimal(500, 400, 0, 0) == (500, 250)

    def test_empty_pool_takes_desired(self):
        assert _optimal(7, 9, 7, 9, reserve_a=0, reserve_b=0) == (7, 9)

    def test_b_below_minimum(self):
        with pytest.raises(SlippageError) as exc_info:
            _optimal(500, 250, 495, 251)
        assert exc_info.value.amount == 250
        assert exc_info.value.minimum == 251

    def test_a_below_minimum(self):
        with pytest.raises(SlippageError):
            _optimal(600, 250, 501, 0)


class TestLiquidityToMint:
    def test_proportional(self):
        assert liquidity_to_mint(500, 250, 10_000, 5_000, 1_000) == 50

    def test_takes_smaller_side(self):
        assert liquidity_to_mint(500, 100, 10_000, 5_000, 1_000) == 20

    def test_first_mint_locks_minimum(self):
        assert liquidity_to_mint(4_000, 1_000, 0, 0, 0) == 2_000 - MINIMUM_LIQUIDITY

    def test_zero_rejected(self):
        with pytest.raises(InsufficientLiquidityError):
            liquidity_to_mint(1, 1, 10_000, 5_000, 1_000)


def test_pro_rata_rounds_down():
    assert pro_rata(50, 10_500, 1_050) == 500
    assert pro_rata(1, 10, 3) == 3
    assert pro_rata(0, 10_500, 1_050) == 0


def test_amounts_for_liquidity():
    assert amounts_for_liquidity(50, 10_500, 5_250, 1_050) == (500, 250)
    with pytest.raises(InsufficientLiquidityError):
        amounts_for_liquidity(0, 10_500, 5_250, 1_050)


def test_get_amount_out_charges_fee():
    # 100 in at 30 bps against 10000/5000: 997_000 * 5_000 // (10_000 * 10_000 + 997_000)
    assert get_amount_out(100, 10_000, 5_000) == 49
    with pytest.raises(InsufficientLiquidityError):
        get_amount_out(0, 10_000, 5_000)


def test_slippage_min():
    assert slippage_min(10_000, 50) == 9_950
    assert slippage_min(10_000, 0) == 10_000
    assert slippage_min(10_000, 20_000) == 0
