"""
Checked uint256 arithmetic for contract accounting.

Python integers never wrap, so overflow has to be detected explicitly.
Every helper raises ArithmeticOverflowError when the result would leave
the unsigned 256-bit range instead of silently producing it.
"""

from __future__ import annotations

from ..constants import UINT256_MAX
from ..vm.exceptions import ArithmeticOverflowError

MAX_UINT256 = UINT256_MAX


class SafeMath:
    """Unsigned 256-bit arithmetic with overflow and underflow checks."""

    @staticmethod
    def require_uint(value: int, name: str = "value") -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ArithmeticOverflowError(
                f"SafeMath: {name} must be an integer",
                {name: repr(value)},
            )
        if value < 0 or value > MAX_UINT256:
            raise ArithmeticOverflowError(
                f"SafeMath: {name} outside uint256 range",
                {name: value},
            )
        return value

    @staticmethod
    def safe_add(a: int, b: int) -> int:
        result = a + b
        if result > MAX_UINT256:
            raise ArithmeticOverflowError("SafeMath: addition overflow", {"a": a, "b": b})
        return result

    @staticmethod
    def safe_sub(a: int, b: int) -> int:
        if b > a:
            raise ArithmeticOverflowError("SafeMath: subtraction underflow", {"a": a, "b": b})
        return a - b

    @staticmethod
    def safe_mul(a: int, b: int) -> int:
        result = a * b
        if result > MAX_UINT256:
            raise ArithmeticOverflowError(
                "SafeMath: multiplication overflow", {"a": a, "b": b}
            )
        return result

    @staticmethod
    def safe_div(a: int, b: int) -> int:
        """Floor division; division by zero is an error, not zero."""
        if b == 0:
            raise ArithmeticOverflowError("SafeMath: division by zero", {"a": a})
        return a // b

    @staticmethod
    def mul_div(a: int, b: int, denominator: int) -> int:
        """floor(a * b / denominator) with the product range-checked."""
        return SafeMath.safe_div(SafeMath.safe_mul(a, b), denominator)


safe_add = SafeMath.safe_add
safe_sub = SafeMath.safe_sub
safe_mul = SafeMath.safe_mul
safe_div = SafeMath.safe_div
mul_div = SafeMath.mul_div
