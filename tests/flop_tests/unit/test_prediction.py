"""
Unit tests for the prediction entry point.
"""

import pytest

from flop.core.vm.exceptions import InsufficientBalanceError, VMExecutionError, ZeroAmountError

from flop_tests.addresses import ALICE, BUYBACK, DEPLOYER, OUTSIDER, POOL


@pytest.mark.parametrize(
    "amount,expected_xp",
    [(1, 1), (1023, 1), (1024, 1), (1025, 2), (2048, 2), (10_240, 10)],
)
def test_xp_is_one_per_started_1024_units(funded_token, amount, expected_xp):
    assert funded_token.place_prediction(ALICE, amount, "up") == expected_xp
    assert funded_token.get_xp(ALICE) == expected_xp


def test_prediction_stake_goes_to_pool_with_fees(funded_token):
    funded_token.place_prediction(ALICE, 1024, "BTC > 100k")

    # fee 31: pool share 10, buyback 11, burn 10
    assert funded_token.balance_of(ALICE) == 100_000 - 1024
    assert funded_token.balance_of(POOL) == 993 + 10
    assert funded_token.balance_of(BUYBACK) == 11


def test_prediction_events(funded_token):
    funded_token.grant_xp(DEPLOYER, ALICE, 5)
    funded_token.place_prediction(ALICE, 2000, "down")

    placed, updated = list(funded_token.events)[-2:]
    assert placed.event_type == "PredictionPlaced"
    assert placed.args == {"user": ALICE, "amount": 2000, "prediction": "down"}
    assert updated.event_type == "FlopXPUpdated"
    assert updated.args == {"user": ALICE, "newXP": 7}


def test_prediction_needs_no_authorization(funded_token):
    assert not funded_token.is_authorized(ALICE)

    funded_token.place_prediction(ALICE, 500, "up")

    assert funded_token.get_xp(ALICE) == 1


def test_prediction_ignores_xp_pause(funded_token):
    funded_token.toggle_xp_pause(DEPLOYER)

    funded_token.place_prediction(ALICE, 500, "up")

    assert funded_token.get_xp(ALICE) == 1


def test_prediction_without_balance_fails_cleanly(funded_token):
    with pytest.raises(InsufficientBalanceError):
        funded_token.place_prediction(OUTSIDER, 10, "up")

    assert funded_token.get_xp(OUTSIDER) == 0


def test_zero_prediction_rejected(funded_token):
    with pytest.raises(ZeroAmountError):
        funded_token.place_prediction(ALICE, 0, "up")


def test_failed_pool_credit_rolls_back_xp(funded_token):
    def refuse(_token, _sender, _amount):
        raise VMExecutionError("pool closed")

    funded_token.register_receive_hook(POOL, refuse)
    events_before = len(funded_token.events)

    with pytest.raises(VMExecutionError):
        funded_token.place_prediction(ALICE, 4096, "up")

    assert funded_token.get_xp(ALICE) == 0
    assert funded_token.balance_of(ALICE) == 100_000
    assert len(funded_token.events) == events_before


def test_prediction_metrics(metered_token, registry):
    metered_token.transfer(DEPLOYER, ALICE, 10_000)
    metered_token.place_prediction(ALICE, 3000, "up")

    assert registry.get_sample_value("flop_predictions_total") == 1.0
    assert registry.get_sample_value("flop_xp_granted_total", {"source": "prediction"}) == 3.0
    assert registry.get_sample_value("flop_transfers_total", {"kind": "prediction"}) == 1.0
    assert registry.get_sample_value("flop_transfers_total", {"kind": "transfer"}) == 1.0
