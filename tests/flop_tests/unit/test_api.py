"""
Tests for the token HTTP API.
"""

import pytest

from flop.api.app import create_app

from flop_tests.addresses import ALICE, BOB, BUYBACK, DEPLOYER, INITIAL_SUPPLY, POOL


@pytest.fixture
def client(metered_token):
    app = create_app(metered_token)
    app.config["TESTING"] = True
    return app.test_client()


def test_info(client, metered_token):
    response = client.get("/token/info")

    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    assert data["symbol"] == "FLOP"
    assert data["owner"] == DEPLOYER
    assert data["total_supply"] == str(INITIAL_SUPPLY)
    assert data["prediction_pool"] == POOL
    assert data["buyback_wallet"] == BUYBACK
    assert data["xp_paused"] is False


def test_balance_is_case_insensitive(client):
    response = client.get(f"/token/balance/{DEPLOYER.upper().replace('0X', '0x')}")

    data = response.get_json()
    assert data["address"] == DEPLOYER
    assert data["balance"] == str(INITIAL_SUPPLY)


def test_xp_and_allowance(client, metered_token):
    metered_token.grant_xp(DEPLOYER, ALICE, 12)
    metered_token.approve(ALICE, BOB, 34)

    assert client.get(f"/token/xp/{ALICE}").get_json()["xp"] == 12
    assert client.get(f"/token/allowance/{ALICE}/{BOB}").get_json()["allowance"] == "34"


def test_fees(client):
    data = client.get("/token/fees").get_json()

    assert data["burn_fee_pct"] == 1
    assert data["total_fee_pct"] == 3


def test_airdrop_state(client, metered_token):
    metered_token.airdrop_batch(DEPLOYER, [ALICE], 5)

    data = client.get("/token/airdrop").get_json()

    assert data["current_batch"] == 1
    assert data["processed_batches"] == [0]


def test_events_pagination_and_filter(client, metered_token):
    for _ in range(3):
        metered_token.transfer(DEPLOYER, ALICE, 1000)

    data = client.get("/token/events?event_type=Burned&limit=2&offset=1").get_json()

    assert data["total"] == 3
    assert len(data["events"]) == 2
    assert all(e["event_type"] == "Burned" for e in data["events"])


@pytest.mark.parametrize("query", ["limit=0", "limit=100000", "offset=-1", "limit=abc"])
def test_events_rejects_bad_paging(client, query):
    response = client.get(f"/token/events?{query}")

    assert response.status_code == 400
    assert response.get_json()["code"] == "invalid_query"


def test_events_rejects_unknown_type(client):
    response = client.get("/token/events?event_type=Minted")

    assert response.status_code == 400
    assert response.get_json()["code"] == "invalid_event_type"


def test_quote(client):
    response = client.post("/token/quote", json={"amount": 1050})

    assert response.status_code == 200
    data = response.get_json()
    assert data["fee_amount"] == "32"
    assert data["transfer_amount"] == "1018"
    assert data["buyback_amount"] == "12"


@pytest.mark.parametrize("payload", [{}, {"amount": 0}, {"amount": -5}, {"amount": "lots"}])
def test_quote_rejects_invalid_amount(client, payload):
    response = client.post("/token/quote", json=payload)

    assert response.status_code == 400
    assert response.get_json()["code"] == "invalid_payload"


def test_quote_requires_json(client):
    response = client.post("/token/quote", data="amount=5")

    assert response.status_code == 400


def test_metrics_endpoint(client, metered_token):
    metered_token.transfer(DEPLOYER, ALICE, 1000)

    response = client.get("/metrics")

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert 'flop_transfers_total{kind="transfer"} 1.0' in body
    assert "flop_total_supply" in body


def test_metrics_disabled_without_metrics(token):
    client = create_app(token).test_client()

    assert client.get("/metrics").status_code == 404
    assert client.get("/health").get_json()["status"] == "ok"
