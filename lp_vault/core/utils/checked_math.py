"""uint256 arithmetic that aborts instead of wrapping.

Python ints never overflow, so the bounds are enforced explicitly. Every
helper raises ``ArithmeticBoundaryError`` when an operand or result falls
outside ``[0, MAX_UINT256]`` or a divisor is zero.
"""

from __future__ import annotations

import math

from lp_vault.core.constants.base import MAX_UINT256
from lp_vault.core.errors import ArithmeticBoundaryError


def require_uint(value: int, name: str = "value", *, bound: int = MAX_UINT256) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ArithmeticBoundaryError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ArithmeticBoundaryError(f"{name} underflow: {value}")
    if value > bound:
        raise ArithmeticBoundaryError(f"{name} overflow: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    return require_uint(require_uint(a, "a") + require_uint(b, "b"), "a + b")


def checked_sub(a: int, b: int) -> int:
    return require_uint(require_uint(a, "a") - require_uint(b, "b"), "a - b")


def checked_mul(a: int, b: int) -> int:
    return require_uint(require_uint(a, "a") * require_uint(b, "b"), "a * b")


def checked_div(a: int, b: int) -> int:
    if require_uint(b, "b") == 0:
        raise ArithmeticBoundaryError("division by zero")
    return require_uint(a, "a") // b


def mul_div(a: int, b: int, denominator: int) -> int:
    """``a * b // denominator`` with the product checked against uint256."""
    return checked_div(checked_mul(a, b), denominator)


def mul_div_up(a: int, b: int, denominator: int) -> int:
    product = checked_mul(a, b)
    if require_uint(denominator, "denominator") == 0:
        raise ArithmeticBoundaryError("division by zero")
    return require_uint(-(-product // denominator), "ceil(a * b / d)")


def isqrt(value: int) -> int:
    return math.isqrt(require_uint(value))
