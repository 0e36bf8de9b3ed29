import sys
from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

# Make ``flop`` importable without an editable install
project_root = Path(__file__).resolve().parents[2]
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from flop.core.contracts.flop_token import FlopToken  # noqa: E402
from flop.core.token_metrics import TokenMetrics  # noqa: E402

from flop_tests.addresses import ALICE, BUYBACK, DEPLOYER, INITIAL_SUPPLY, POOL  # noqa: E402


@pytest.fixture
def token():
    """Freshly deployed token with a small supply held by the deployer."""
    return FlopToken.deploy(DEPLOYER, POOL, BUYBACK, initial_supply=INITIAL_SUPPLY)


@pytest.fixture
def funded_token(token):
    """Token where ALICE holds 100_000 base units (paid fee-free via airdrop)."""
    token.airdrop_batch(DEPLOYER, [ALICE], 100_000)
    return token


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    return TokenMetrics(registry=registry)


@pytest.fixture
def metered_token(metrics):
    return FlopToken.deploy(DEPLOYER, POOL, BUYBACK, initial_supply=INITIAL_SUPPLY, metrics=metrics)
