"""
Atomicity Conformance Tests

INVARIANT: Operations are all-or-nothing.

    ∀ operation op:
        op succeeds ⟹ ledger mutation, asset movement and event are all applied
        op fails    ⟹ none of them are applied

A failed outward push reverts the debit and the liquidated flag that were
applied before it.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from datetime import timedelta

from staking import (
    StakingError, TransferFailureError, InsufficientFundsError,
    InsufficientAllowanceError, DURATION_TIERS,
    create_native_pool, create_token_pool,
)

from tests.fake_chain import FakeChain, FakeToken
from tests.helpers import START, CUSTODY, ALICE, BOB, days_later


def snapshot(pool, *holders):
    return (
        {h: pool.get_balance(h) for h in holders},
        {h: pool.list_stakes(h) for h in holders},
        list(pool.event_log),
        {h: pool.asset.balance_of(h) for h in holders + (CUSTODY,)},
    )


class TestAtomicityProperties:
    """Property-based atomicity tests."""

    @given(
        amount=st.integers(min_value=20, max_value=10 ** 9),
        days=st.sampled_from(DURATION_TIERS),
    )
    @settings(max_examples=50)
    def test_failed_mature_push_changes_nothing(self, amount, days):
        """
        PROPERTY: If custody cannot cover principal + reward, liquidation leaves
        balances, history, events and asset balances exactly as they were.
        """
        chain = FakeChain({ALICE: amount})
        pool = create_native_pool(chain, CUSTODY, initial_time=START, verbose=False)
        pool.stake(ALICE, amount, days)
        pool.advance_time(days_later(pool, days))
        stake = pool.get_stake(ALICE, 1)
        before = snapshot(pool, ALICE)

        if stake.reward == 0:
            # Nothing owed beyond principal: the push is covered
            assert pool.liquidate(ALICE, 1) == amount
        else:
            with pytest.raises(TransferFailureError):
                pool.liquidate(ALICE, 1)
            assert snapshot(pool, ALICE) == before

    @given(
        balance=st.integers(min_value=0, max_value=1000),
        allowance=st.integers(min_value=0, max_value=1000),
        amount=st.integers(min_value=1, max_value=1000),
    )
    @settings(max_examples=100)
    def test_token_pull_all_or_nothing(self, balance, allowance, amount):
        """
        PROPERTY: A token stake either records the stake and moves the tokens,
        or raises and changes neither.
        """
        token = FakeToken({ALICE: balance})
        token.approve(ALICE, CUSTODY, allowance)
        pool = create_token_pool(token, CUSTODY, initial_time=START, verbose=False)

        try:
            pool.stake(ALICE, amount, 30)
        except InsufficientFundsError:
            assert balance < amount
            applied = False
        except InsufficientAllowanceError:
            assert balance >= amount > allowance
            applied = False
        else:
            applied = True

        if applied:
            assert pool.get_balance(ALICE) == amount
            assert token.balance_of(ALICE) == balance - amount
            assert token.balance_of(CUSTODY) == amount
            assert len(pool.event_log) == 1
        else:
            assert pool.stake_count(ALICE) == 0
            assert pool.get_balance(ALICE) == 0
            assert token.balance_of(ALICE) == balance
            assert token.balance_of(CUSTODY) == 0
            assert pool.event_log == []


class TestAtomicityExamples:
    """Explicit atomicity examples."""

    def test_refused_push_restores_stake_and_balance(self, chain):
        pool = create_native_pool(chain, CUSTODY, initial_time=START, verbose=False)
        pool.stake(ALICE, 1000, 60)
        pool.stake(ALICE, 500, 30)
        chain.fail_transfers_to.add(ALICE)
        before = snapshot(pool, ALICE)

        with pytest.raises(TransferFailureError):
            pool.liquidate(ALICE, 1)

        assert snapshot(pool, ALICE) == before
        assert pool.get_stake(ALICE, 1).liquidated is False

    def test_restored_stake_is_still_liquidatable(self, chain):
        pool = create_native_pool(chain, CUSTODY, initial_time=START, verbose=False)
        pool.stake(ALICE, 1000, 60)
        chain.fail_transfers_to.add(ALICE)
        with pytest.raises(TransferFailureError):
            pool.liquidate(ALICE, 1)

        chain.fail_transfers_to.clear()

        assert pool.liquidate(ALICE, 1) == 1000
        assert pool.get_stake(ALICE, 1).liquidated is True

    def test_failure_does_not_touch_other_holders(self, chain):
        pool = create_native_pool(chain, CUSTODY, initial_time=START, verbose=False)
        pool.stake(ALICE, 1000, 90)
        pool.stake(BOB, 400, 30)
        pool.advance_time(days_later(pool, 90))
        bob_before = snapshot(pool, BOB)[:2]

        # No reserves: ALICE's reward comes out of BOB's principal, leaving 350
        assert pool.liquidate(ALICE, 1) == 1050
        with pytest.raises(TransferFailureError):
            pool.liquidate(BOB, 1)

        assert snapshot(pool, BOB)[:2] == bob_before

    def test_pull_failure_commits_nothing(self, token):
        pool = create_token_pool(token, CUSTODY, initial_time=START, verbose=False)
        token.approve(ALICE, CUSTODY, 0)

        with pytest.raises(StakingError):
            pool.stake(ALICE, 100, 90)

        assert pool.list_holders() == []
        assert pool.event_log == []
        assert token.balance_of(CUSTODY) == 0
