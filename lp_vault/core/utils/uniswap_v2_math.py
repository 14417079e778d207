"""Uniswap v2 constant-product math.

Integer-only helpers shared by the in-memory pair/router and by valuation
reads. Rounding always truncates, matching the on-chain library.
"""

from __future__ import annotations

from lp_vault.core.constants import ZERO_ADDRESS
from lp_vault.core.constants.base import MINIMUM_LIQUIDITY, SWAP_FEE_BPS
from lp_vault.core.errors import InsufficientLiquidityError, SlippageError
from lp_vault.core.utils.checked_math import (
    checked_add,
    checked_mul,
    checked_sub,
    isqrt,
    mul_div,
)


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    if token_a.lower() == token_b.lower():
        raise ValueError("Identical token addresses")
    t0, t1 = (token_a, token_b) if int(token_a, 16) < int(token_b, 16) else (token_b, token_a)
    if t0.lower() == ZERO_ADDRESS:
        raise ValueError("Zero token address")
    return t0, t1


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    if amount_a <= 0:
        raise InsufficientLiquidityError("Insufficient amount")
    if reserve_a <= 0 or reserve_b <= 0:
        raise InsufficientLiquidityError("Insufficient liquidity")
    return mul_div(amount_a, reserve_b, reserve_a)


def optimal_amounts(
    *,
    token_a: str,
    token_b: str,
    amount_a_desired: int,
    amount_b_desired: int,
    amount_a_min: int,
    amount_b_min: int,
    reserve_a: int,
    reserve_b: int,
) -> tuple[int, int]:
    """Pick the amounts the router actually pulls for an add-liquidity request.

    An empty pool takes both desired amounts. Otherwise one side is kept and
    the other is quoted at the current reserve ratio; the quoted side must
    not exceed its desired amount and neither side may fall below its minimum.
    """
    if reserve_a == 0 and reserve_b == 0:
        return amount_a_desired, amount_b_desired

    amount_b_optimal = quote(amount_a_desired, reserve_a, reserve_b)
    if amount_b_optimal <= amount_b_desired:
        if amount_b_optimal < amount_b_min:
            raise SlippageError(token_b, amount_b_optimal, amount_b_min)
        if amount_a_desired < amount_a_min:
            raise SlippageError(token_a, amount_a_desired, amount_a_min)
        return amount_a_desired, amount_b_optimal

    amount_a_optimal = quote(amount_b_desired, reserve_b, reserve_a)
    if amount_a_optimal > amount_a_desired:
        raise InsufficientLiquidityError("Quoted amount exceeds desired amount")
    if amount_a_optimal < amount_a_min:
        raise SlippageError(token_a, amount_a_optimal, amount_a_min)
    if amount_b_desired < amount_b_min:
        raise SlippageError(token_b, amount_b_desired, amount_b_min)
    return amount_a_optimal, amount_b_desired


def liquidity_to_mint(
    amount0: int, amount1: int, reserve0: int, reserve1: int, total_supply: int
) -> int:
    if total_supply == 0:
        liquidity = checked_sub(isqrt(checked_mul(amount0, amount1)), MINIMUM_LIQUIDITY)
    else:
        liquidity = min(
            mul_div(amount0, total_supply, reserve0),
            mul_div(amount1, total_supply, reserve1),
        )
    if liquidity <= 0:
        raise InsufficientLiquidityError("Insufficient liquidity minted")
    return liquidity


def pro_rata(claim: int, reserve: int, total_supply: int) -> int:
    """Owned part of ``reserve`` for ``claim`` LP units, rounded down."""
    return mul_div(claim, reserve, total_supply)


def amounts_for_liquidity(
    liquidity: int, balance0: int, balance1: int, total_supply: int
) -> tuple[int, int]:
    amount0 = pro_rata(liquidity, balance0, total_supply)
    amount1 = pro_rata(liquidity, balance1, total_supply)
    if amount0 <= 0 or amount1 <= 0:
        raise InsufficientLiquidityError("Insufficient liquidity burned")
    return amount0, amount1


def get_amount_out(
    amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int = SWAP_FEE_BPS
) -> int:
    if amount_in <= 0:
        raise InsufficientLiquidityError("Insufficient input amount")
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidityError("Insufficient liquidity")
    amount_in_with_fee = checked_mul(amount_in, 10_000 - fee_bps)
    numerator = checked_mul(amount_in_with_fee, reserve_out)
    denominator = checked_add(checked_mul(reserve_in, 10_000), amount_in_with_fee)
    return numerator // denominator


def slippage_min(amount: int, slippage_bps: int) -> int:
    bps = max(0, min(10_000, int(slippage_bps)))
    return max(0, (int(amount) * (10_000 - bps)) // 10_000)
