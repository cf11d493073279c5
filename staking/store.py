"""
store.py - Per-holder stake storage

StakeStore holds the two mappings behind a pool:
    holder -> ordered list of Stake records
    holder -> aggregate active balance

The store has no rules of its own. StakingPool owns it exclusively and is the
only code that writes to it; it can be injected so that a pool can be built
over pre-existing state.
"""

from __future__ import annotations
from typing import Dict, List, Optional

from .core import Stake


class StakeStore:
    """
    In-memory holder ledger keyed by identity.

    Stakes are frozen, so replacing a list element is the only way a record
    changes. Lists are append-only from the pool's point of view.
    """

    def __init__(
        self,
        stakes: Optional[Dict[str, List[Stake]]] = None,
        balances: Optional[Dict[str, int]] = None,
    ):
        self.stakes: Dict[str, List[Stake]] = {
            holder: list(records) for holder, records in (stakes or {}).items()
        }
        self.balances: Dict[str, int] = dict(balances or {})

    def history(self, holder: str) -> List[Stake]:
        """Return the holder's live stake list (empty if the holder is unknown)."""
        return self.stakes.get(holder, [])

    def balance(self, holder: str) -> int:
        return self.balances.get(holder, 0)

    def count(self, holder: str) -> int:
        return len(self.stakes.get(holder, ()))

    def append(self, holder: str, stake: Stake) -> None:
        self.stakes.setdefault(holder, []).append(stake)

    def replace(self, holder: str, index: int, stake: Stake) -> None:
        self.stakes[holder][index] = stake

    def credit(self, holder: str, amount: int) -> None:
        self.balances[holder] = self.balances.get(holder, 0) + amount

    def debit(self, holder: str, amount: int) -> None:
        self.balances[holder] = self.balances.get(holder, 0) - amount

    def holders(self) -> List[str]:
        """Every identity with a stake list or a recorded balance, sorted."""
        return sorted(self.stakes.keys() | self.balances.keys())

    def copy(self) -> StakeStore:
        """Independent copy (Stake records are immutable and shared)."""
        return StakeStore(self.stakes, self.balances)
