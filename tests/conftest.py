"""
conftest.py - Shared pytest fixtures for staking tests

Provides common fixtures used across unit, conformance and functional tests:
- Fake collaborators (native chain, fungible token) with funded holders
- Native and token pools ready for staking
"""

import pytest

from staking import create_native_pool, create_token_pool

from tests.fake_chain import FakeChain, FakeToken
from tests.helpers import START, CUSTODY, ALICE, BOB, INITIAL_FUNDS


# =============================================================================
# COLLABORATOR FIXTURES
# =============================================================================

@pytest.fixture
def chain():
    """Native chain with two funded holders and an empty custody account."""
    return FakeChain({ALICE: INITIAL_FUNDS, BOB: INITIAL_FUNDS})


@pytest.fixture
def token():
    """Fungible token with two funded holders; custody approved for everything."""
    t = FakeToken({ALICE: INITIAL_FUNDS, BOB: INITIAL_FUNDS})
    t.approve(ALICE, CUSTODY, INITIAL_FUNDS)
    t.approve(BOB, CUSTODY, INITIAL_FUNDS)
    return t


# =============================================================================
# POOL FIXTURES
# =============================================================================

@pytest.fixture
def native_pool(chain):
    """Native-currency pool at START, quiet."""
    return create_native_pool(chain, CUSTODY, initial_time=START, verbose=False)


@pytest.fixture
def token_pool(token):
    """Token pool at START, quiet."""
    return create_token_pool(token, CUSTODY, initial_time=START, verbose=False)


@pytest.fixture(params=["native", "token"])
def pool(request, chain, token):
    """Both pool variants; tests using this run once per asset type."""
    if request.param == "native":
        return create_native_pool(chain, CUSTODY, initial_time=START, verbose=False)
    return create_token_pool(token, CUSTODY, initial_time=START, verbose=False)


@pytest.fixture
def funded_pool(pool):
    """A pool whose custody already holds 1_000 of reward reserves (from BOB)."""
    pool.fund_rewards(BOB, 1_000)
    return pool
