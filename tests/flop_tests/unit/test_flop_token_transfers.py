"""
Unit tests for FLOP fee-bearing transfers, admin setters and rescue.
"""

import pytest

from flop.core.constants import UINT256_MAX, ZERO_ADDRESS
from flop.core.contracts.erc20 import ERC20Token
from flop.core.vm.exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidFeeConfigError,
    NotAuthorizedError,
    NotOwnerError,
    VMExecutionError,
    ZeroAmountError,
)

from flop_tests.addresses import ALICE, BOB, BUYBACK, DEPLOYER, INITIAL_SUPPLY, OUTSIDER, POOL, ZERO


def test_deploy_mints_initial_supply_to_deployer(token):
    assert token.balance_of(DEPLOYER) == INITIAL_SUPPLY
    assert token.total_supply == INITIAL_SUPPLY
    assert token.owner == DEPLOYER
    assert token.symbol == "FLOP"
    assert token.decimals == 18


def test_transfer_routes_fee_shares(token):
    token.transfer(DEPLOYER, ALICE, 1000)

    assert token.balance_of(ALICE) == 970
    assert token.balance_of(POOL) == 10
    assert token.balance_of(BUYBACK) == 10
    assert token.balance_of(DEPLOYER) == INITIAL_SUPPLY - 1000
    assert token.total_supply == INITIAL_SUPPLY - 10


def test_transfer_emits_fee_events_in_order(token):
    start = len(token.events)
    token.transfer(DEPLOYER, ALICE, 1050)

    emitted = [(e.event_type, dict(e.args)) for e in list(token.events)[start:]]
    assert emitted == [
        ("Transfer", {"from": DEPLOYER, "to": ALICE, "value": 1018}),
        ("Transfer", {"from": DEPLOYER, "to": POOL, "value": 10}),
        ("Transfer", {"from": DEPLOYER, "to": BUYBACK, "value": 12}),
        ("BuybackExecuted", {"amount": 12}),
        ("Transfer", {"from": DEPLOYER, "to": ZERO_ADDRESS, "value": 10}),
        ("Burned", {"amount": 10}),
    ]


def test_small_transfer_pays_no_fee(token):
    token.transfer(DEPLOYER, ALICE, 10)

    assert token.balance_of(ALICE) == 10
    assert token.total_supply == INITIAL_SUPPLY


def test_transfer_rejects_zero_amount(token):
    with pytest.raises(ZeroAmountError):
        token.transfer(DEPLOYER, ALICE, 0)


@pytest.mark.parametrize("recipient", [ZERO, "", "   "])
def test_transfer_rejects_zero_recipient(token, recipient):
    with pytest.raises(InvalidAddressError):
        token.transfer(DEPLOYER, recipient, 100)


def test_transfer_insufficient_balance_changes_nothing(token):
    before = token.to_dict()

    with pytest.raises(InsufficientBalanceError):
        token.transfer(ALICE, BOB, 1)

    assert token.to_dict() == before


def test_failed_receive_hook_rolls_back_transfer(token):
    def reject(_token, _sender, _amount):
        raise VMExecutionError("recipient refused")

    token.register_receive_hook(ALICE, reject)
    events_before = len(token.events)

    with pytest.raises(VMExecutionError, match="recipient refused"):
        token.transfer(DEPLOYER, ALICE, 1000)

    assert token.balance_of(ALICE) == 0
    assert token.balance_of(DEPLOYER) == INITIAL_SUPPLY
    assert token.total_supply == INITIAL_SUPPLY
    assert len(token.events) == events_before


def test_transfer_is_not_reentrancy_guarded(token):
    """A recipient may transfer onward from inside its receive hook."""

    def forward(tok, _sender, amount):
        tok.remove_receive_hook(ALICE)
        tok.transfer(ALICE, BOB, amount)

    token.register_receive_hook(ALICE, forward)
    token.transfer(DEPLOYER, ALICE, 1000)

    assert token.balance_of(BOB) == 941  # 970 minus its own 3% fee of 29
    assert token.balance_of(ALICE) == 0


def test_transfer_from_spends_full_amount_of_allowance(token):
    token.approve(DEPLOYER, BOB, 5000)

    token.transfer_from(BOB, DEPLOYER, ALICE, 1000)

    assert token.allowance(DEPLOYER, BOB) == 4000
    assert token.balance_of(ALICE) == 970


def test_transfer_from_insufficient_allowance(token):
    token.approve(DEPLOYER, BOB, 999)

    with pytest.raises(InsufficientAllowanceError):
        token.transfer_from(BOB, DEPLOYER, ALICE, 1000)

    assert token.allowance(DEPLOYER, BOB) == 999
    assert token.balance_of(ALICE) == 0


def test_transfer_from_failure_restores_allowance(token):
    token.approve(ALICE, BOB, 10_000)

    with pytest.raises(InsufficientBalanceError):
        token.transfer_from(BOB, ALICE, DEPLOYER, 5000)

    assert token.allowance(ALICE, BOB) == 10_000


def test_unlimited_allowance_is_not_decremented(token):
    token.approve(DEPLOYER, BOB, UINT256_MAX)

    token.transfer_from(BOB, DEPLOYER, ALICE, 1000)

    assert token.allowance(DEPLOYER, BOB) == UINT256_MAX


def test_quote_fee_does_not_mutate(token):
    before = token.to_dict()

    split = token.quote_fee(1000)

    assert split.fee_amount == 30
    assert token.to_dict() == before


def test_zero_fees_pass_amount_through(token):
    token.set_fees(DEPLOYER, 0, 0, 0)

    token.transfer(DEPLOYER, ALICE, 1000)

    assert token.balance_of(ALICE) == 1000
    assert token.balance_of(POOL) == 0
    assert token.balance_of(BUYBACK) == 0
    assert token.total_supply == INITIAL_SUPPLY


def test_set_fees_changes_split(token):
    token.set_fees(DEPLOYER, 0, 5, 0)

    token.transfer(DEPLOYER, ALICE, 1000)

    assert token.balance_of(ALICE) == 950
    assert token.balance_of(POOL) == 50
    assert token.total_supply == INITIAL_SUPPLY


def test_set_fees_rejects_total_above_100(token):
    with pytest.raises(InvalidFeeConfigError):
        token.set_fees(DEPLOYER, 60, 30, 11)

    assert token.fee_config.total_fee_pct == 3


def test_admin_setters_are_owner_only(token):
    with pytest.raises(NotOwnerError):
        token.set_fees(OUTSIDER, 1, 1, 1)
    with pytest.raises(NotAuthorizedError):
        token.set_prediction_pool(OUTSIDER, ALICE)
    with pytest.raises(NotOwnerError):
        token.set_buyback_wallet(OUTSIDER, ALICE)
    with pytest.raises(NotOwnerError):
        token.mint(OUTSIDER, OUTSIDER, 1)


def test_destination_setters_redirect_fees(token):
    token.set_prediction_pool(DEPLOYER, BOB)
    token.set_buyback_wallet(DEPLOYER, OUTSIDER)

    token.transfer(DEPLOYER, ALICE, 1000)

    assert token.balance_of(BOB) == 10
    assert token.balance_of(OUTSIDER) == 10


def test_destination_setters_reject_zero_address(token):
    with pytest.raises(InvalidAddressError):
        token.set_prediction_pool(DEPLOYER, ZERO)
    with pytest.raises(InvalidAddressError):
        token.set_buyback_wallet(DEPLOYER, ZERO)


def test_owner_mint_increases_supply(token):
    token.mint(DEPLOYER, ALICE, 500)

    assert token.balance_of(ALICE) == 500
    assert token.total_supply == INITIAL_SUPPLY + 500


def test_rescue_foreign_tokens_to_owner(token):
    foreign = ERC20Token(name="Other", symbol="OTH", owner=DEPLOYER)
    foreign.mint(DEPLOYER, token.address, 500)

    token.rescue_tokens(DEPLOYER, foreign, 300)

    assert foreign.balance_of(DEPLOYER) == 300
    assert foreign.balance_of(token.address) == 200


def test_rescue_refuses_own_token(token):
    with pytest.raises(InvalidAddressError):
        token.rescue_tokens(DEPLOYER, token, 1)


def test_rescue_is_owner_only(token):
    foreign = ERC20Token(name="Other", symbol="OTH", owner=DEPLOYER)

    with pytest.raises(NotOwnerError):
        token.rescue_tokens(OUTSIDER, foreign, 1)
    with pytest.raises(NotOwnerError):
        token.rescue_native(OUTSIDER)


def test_rescue_native_withdraws_whole_balance(token):
    token.receive_native(ALICE, 77)
    token.receive_native(BOB, 23)

    assert token.rescue_native(DEPLOYER) == 100
    assert token.native_balance == 0
    assert token.rescue_native(DEPLOYER) == 0
