"""
Unit tests for the base ERC20 balance ledger.
"""

import pytest

from flop.core.constants import UINT256_MAX, ZERO_ADDRESS
from flop.core.contracts.erc20 import ERC20Token
from flop.core.vm.exceptions import (
    ArithmeticOverflowError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    NotOwnerError,
    VMExecutionError,
)

from flop_tests.addresses import ALICE, BOB, DEPLOYER, ZERO


@pytest.fixture
def erc20():
    token = ERC20Token(name="Test", symbol="TST", owner=DEPLOYER)
    token.mint(DEPLOYER, DEPLOYER, 10_000)
    return token


def test_address_is_generated(erc20):
    assert erc20.address.startswith("0x")
    assert len(erc20.address) == 42


def test_transfer_moves_exact_amount(erc20):
    erc20.transfer(DEPLOYER, ALICE, 2500)

    assert erc20.balance_of(ALICE) == 2500
    assert erc20.balance_of(DEPLOYER) == 7500
    assert erc20.events[-1].args == {"from": DEPLOYER, "to": ALICE, "value": 2500}


def test_transfer_checks(erc20):
    with pytest.raises(InsufficientBalanceError):
        erc20.transfer(ALICE, BOB, 1)
    with pytest.raises(InvalidAddressError):
        erc20.transfer(DEPLOYER, ZERO, 1)
    with pytest.raises(ArithmeticOverflowError):
        erc20.transfer(DEPLOYER, ALICE, -1)


def test_approve_and_transfer_from(erc20):
    erc20.approve(DEPLOYER, BOB, 1000)
    assert erc20.events[-1].event_type == "Approval"

    erc20.transfer_from(BOB, DEPLOYER, ALICE, 400)

    assert erc20.allowance(DEPLOYER, BOB) == 600
    assert erc20.balance_of(ALICE) == 400
    with pytest.raises(InsufficientAllowanceError):
        erc20.transfer_from(BOB, DEPLOYER, ALICE, 601)


def test_increase_allowance_saturates(erc20):
    erc20.approve(DEPLOYER, BOB, UINT256_MAX - 1)
    erc20.increase_allowance(DEPLOYER, BOB, 10)

    assert erc20.allowance(DEPLOYER, BOB) == UINT256_MAX


def test_decrease_allowance_below_zero_rejected(erc20):
    erc20.approve(DEPLOYER, BOB, 10)
    erc20.decrease_allowance(DEPLOYER, BOB, 4)

    assert erc20.allowance(DEPLOYER, BOB) == 6
    with pytest.raises(InsufficientAllowanceError):
        erc20.decrease_allowance(DEPLOYER, BOB, 7)


@pytest.mark.parametrize("method", ["increase_allowance", "decrease_allowance"])
def test_allowance_adjustments_reject_negative_values(erc20, method):
    erc20.approve(DEPLOYER, BOB, 10)

    with pytest.raises(ArithmeticOverflowError):
        getattr(erc20, method)(DEPLOYER, BOB, -1000)

    assert erc20.allowance(DEPLOYER, BOB) == 10


def test_burn_and_burn_from(erc20):
    erc20.burn(DEPLOYER, 1000)
    assert erc20.total_supply == 9000
    assert erc20.events[-1].args["to"] == ZERO_ADDRESS

    erc20.approve(DEPLOYER, BOB, 500)
    erc20.burn_from(BOB, DEPLOYER, 500)
    assert erc20.total_supply == 8500
    assert erc20.allowance(DEPLOYER, BOB) == 0

    with pytest.raises(InsufficientBalanceError):
        erc20.burn(ALICE, 1)


def test_mint_respects_owner_and_cap():
    token = ERC20Token(name="Capped", symbol="CAP", owner=DEPLOYER, max_supply=100)
    token.mint(DEPLOYER, ALICE, 100)

    with pytest.raises(VMExecutionError, match="max supply"):
        token.mint(DEPLOYER, ALICE, 1)
    with pytest.raises(NotOwnerError):
        token.mint(ALICE, ALICE, 1)


def test_transfer_ownership_updates_owner(erc20):
    erc20.transfer_ownership(DEPLOYER, ALICE)

    assert erc20.owner == ALICE
    erc20.mint(ALICE, BOB, 1)
    with pytest.raises(NotOwnerError):
        erc20.mint(DEPLOYER, BOB, 1)


def test_round_trip_through_dict(erc20):
    erc20.approve(DEPLOYER, BOB, 77)
    erc20.transfer(DEPLOYER, ALICE, 5)

    restored = ERC20Token.from_dict(erc20.to_dict())

    assert restored.to_dict() == erc20.to_dict()
    assert restored.allowance(DEPLOYER, BOB) == 77
