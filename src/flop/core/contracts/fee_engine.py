"""
Transfer fee computation.

The fee on a transfer is ``(amount * total_pct + 50) // 100``: whole
percentage points rounded half-up at the 0.5% boundary. The fee is then
split across burn, prediction pool and buyback in proportion to their
percentages; floor division is used for burn and pool and the buyback
share absorbs the remainder so the four parts always sum to ``amount``.

This module is pure: it computes a FeeSplit and never touches balances.
Applying a split is the token's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from ..constants import (
    DEFAULT_BURN_FEE_PCT,
    DEFAULT_BUYBACK_FEE_PCT,
    DEFAULT_PREDICTION_POOL_FEE_PCT,
    FEE_DENOMINATOR,
    FEE_ROUNDING_BIAS,
    MAX_TOTAL_FEE_PCT,
)
from ..vm.exceptions import InvalidFeeConfigError, InvariantViolationError
from .safe_math import SafeMath


@dataclass(frozen=True)
class FeeConfig:
    """Fee percentages in whole percentage points."""

    burn_fee_pct: int = DEFAULT_BURN_FEE_PCT
    prediction_pool_fee_pct: int = DEFAULT_PREDICTION_POOL_FEE_PCT
    buyback_fee_pct: int = DEFAULT_BUYBACK_FEE_PCT

    def __post_init__(self) -> None:
        for name in ("burn_fee_pct", "prediction_pool_fee_pct", "buyback_fee_pct"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidFeeConfigError(
                    f"FLOP: {name} must be a non-negative integer", {name: value}
                )
        if self.total_fee_pct > MAX_TOTAL_FEE_PCT:
            raise InvalidFeeConfigError(
                f"FLOP: total fee {self.total_fee_pct}% exceeds {MAX_TOTAL_FEE_PCT}%",
                self.to_dict(),
            )

    @property
    def total_fee_pct(self) -> int:
        return self.burn_fee_pct + self.prediction_pool_fee_pct + self.buyback_fee_pct

    def to_dict(self) -> Dict[str, int]:
        return {
            "burn_fee_pct": self.burn_fee_pct,
            "prediction_pool_fee_pct": self.prediction_pool_fee_pct,
            "buyback_fee_pct": self.buyback_fee_pct,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeeConfig":
        return cls(
            burn_fee_pct=int(data.get("burn_fee_pct", DEFAULT_BURN_FEE_PCT)),
            prediction_pool_fee_pct=int(
                data.get("prediction_pool_fee_pct", DEFAULT_PREDICTION_POOL_FEE_PCT)
            ),
            buyback_fee_pct=int(data.get("buyback_fee_pct", DEFAULT_BUYBACK_FEE_PCT)),
        )


@dataclass(frozen=True)
class FeeSplit:
    """Outcome of splitting one transfer amount."""

    amount: int
    transfer_amount: int
    fee_amount: int
    burn_amount: int
    prediction_pool_amount: int
    buyback_amount: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "amount": self.amount,
            "transfer_amount": self.transfer_amount,
            "fee_amount": self.fee_amount,
            "burn_amount": self.burn_amount,
            "prediction_pool_amount": self.prediction_pool_amount,
            "buyback_amount": self.buyback_amount,
        }


def compute_fee(amount: int, total_fee_pct: int) -> int:
    """Fee with the +50 rounding bias before dividing by 100."""
    biased = SafeMath.safe_add(SafeMath.safe_mul(amount, total_fee_pct), FEE_ROUNDING_BIAS)
    return SafeMath.safe_div(biased, FEE_DENOMINATOR)


def compute_fee_split(amount: int, config: FeeConfig) -> FeeSplit:
    """
    Split ``amount`` into the recipient's share and the three fee shares.

    Args:
        amount: Gross transfer amount in base units
        config: Fee percentages to apply

    Returns:
        FeeSplit whose parts sum exactly to ``amount``

    Raises:
        InvariantViolationError: If the fee would exceed the amount
    """
    SafeMath.require_uint(amount, "amount")
    total_fee_pct = config.total_fee_pct

    if total_fee_pct == 0:
        return FeeSplit(
            amount=amount,
            transfer_amount=amount,
            fee_amount=0,
            burn_amount=0,
            prediction_pool_amount=0,
            buyback_amount=0,
        )

    fee_amount = compute_fee(amount, total_fee_pct)
    if fee_amount > amount:
        raise InvariantViolationError(
            "FLOP: fee exceeds transfer amount",
            {"amount": amount, "fee_amount": fee_amount, "total_fee_pct": total_fee_pct},
        )
    transfer_amount = SafeMath.safe_sub(amount, fee_amount)

    burn_amount = SafeMath.mul_div(fee_amount, config.burn_fee_pct, total_fee_pct)
    prediction_pool_amount = SafeMath.mul_div(
        fee_amount, config.prediction_pool_fee_pct, total_fee_pct
    )
    buyback_amount = SafeMath.safe_sub(
        SafeMath.safe_sub(fee_amount, burn_amount), prediction_pool_amount
    )

    split = FeeSplit(
        amount=amount,
        transfer_amount=transfer_amount,
        fee_amount=fee_amount,
        burn_amount=burn_amount,
        prediction_pool_amount=prediction_pool_amount,
        buyback_amount=buyback_amount,
    )
    parts = transfer_amount + burn_amount + prediction_pool_amount + buyback_amount
    if parts != amount:
        raise InvariantViolationError("FLOP: fee split does not sum to amount", split.to_dict())
    return split
