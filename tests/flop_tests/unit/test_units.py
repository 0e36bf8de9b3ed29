"""
Unit tests for FLOP unit conversion helpers.
"""

from decimal import Decimal

import pytest

from flop.core.constants import UINT256_MAX, WEI_PER_TOKEN
from flop.core.units import format_flop, from_base_units, quantize_flop, to_base_units


def test_to_base_units_from_string():
    assert to_base_units("1") == WEI_PER_TOKEN
    assert to_base_units("0.5") == WEI_PER_TOKEN // 2
    assert to_base_units("0.000000000000000001") == 1


def test_sub_base_unit_fraction_truncates():
    assert to_base_units("0.0000000000000000019") == 1


def test_from_base_units_round_trips():
    assert from_base_units(1_500_000_000_000_000_000) == Decimal("1.5")


def test_format_flop_strips_trailing_zeros():
    assert format_flop(WEI_PER_TOKEN * 1000) == "1000"
    assert format_flop(1_250_000_000_000_000_000) == "1.25"
    assert format_flop(0) == "0"


def test_uint256_amounts_keep_precision():
    assert to_base_units(from_base_units(UINT256_MAX)) == UINT256_MAX


@pytest.mark.parametrize("value", [1.5, "abc", "NaN", "Infinity", None])
def test_invalid_amounts_rejected(value):
    with pytest.raises(ValueError):
        to_base_units(value)


def test_negative_amount_rejected():
    assert quantize_flop("-1") == Decimal("-1")
    with pytest.raises(ValueError):
        to_base_units("-1")
