"""
helpers.py - Shared constants and invariant checks for staking tests
"""

from datetime import datetime, timedelta
from typing import Dict

from staking import StakingPool


START = datetime(2025, 1, 1, 9, 0, 0)
CUSTODY = "0xpool"
ALICE = "0xa11ce"
BOB = "0xb0b"
INITIAL_FUNDS = 1_000_000


def expected_balances(pool: StakingPool) -> Dict[str, int]:
    """Recompute every holder's balance from their active stakes."""
    return {
        holder: sum(s.amount for s in pool.list_stakes(holder) if not s.liquidated)
        for holder in pool.list_holders()
    }


def balance_invariant_holds(pool: StakingPool) -> bool:
    """Aggregate balance equals the sum of active principals for every holder."""
    return all(
        pool.get_balance(holder) == expected
        for holder, expected in expected_balances(pool).items()
    )


def days_later(pool: StakingPool, days: int, seconds: int = 0) -> datetime:
    return pool.current_time + timedelta(days=days, seconds=seconds)
