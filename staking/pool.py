"""
pool.py - Stateful Staking Pool

The StakingPool class is the central state manager for the staking system.
It is the only module that mutates stake state, ensuring controlled and
auditable changes.

Key responsibilities:
    - Implements the StakingView protocol for safe read-only access by pure functions
    - Opens stakes (pull into custody, compute reward, append record)
    - Liquidates stakes (debit, flag, then push out of custody)
    - Tracks logical time for maturity decisions
    - Records every applied operation in the event log

Liquidation ordering:
    The holder balance is debited and the stake flagged liquidated BEFORE any
    value leaves custody. A recipient that regains control during the push and
    calls liquidate() again on the same stake finds it already liquidated.
    If the push fails, both mutations are reverted before the error is raised.
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Any

from .core import (
    # Types
    Stake, StakeEvent, StakeOpened, StakeClosed, RewardsFunded, AssetAdapter,
    # Constants
    SECONDS_PER_DAY,
    # Exceptions
    StakingError, InsufficientFundsError, InvalidStakeIdError, AlreadyLiquidatedError,
    TransferFailureError,
    # Functions
    require_identity, validate_duration, validate_amount,
    compute_reward, is_mature,
)
from .adapters import (
    NativeChain, FungibleToken, NativeAssetAdapter, TokenAssetAdapter,
)
from .store import StakeStore


class StakingPool:
    """
    Time-locked staking ledger over a single asset.

    Implements the StakingView protocol, allowing the pool to be passed to pure
    functions that access only read-only methods.

    Design Principles:
        - Always validates: identity, duration tier, amount and stake id are
          checked before any state changes.
        - All-or-nothing: every operation either commits fully or raises with
          no state change.
        - Always logs: every applied operation is appended to event_log.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own StakingPool instance.

    Example:
        pool = StakingPool("ether", NativeAssetAdapter(chain, "0xpool"))
        stake_id = pool.stake("0xalice", 1000, 90)
        pool.advance_time(pool.current_time + timedelta(days=90))
        pool.liquidate("0xalice", stake_id)    # pays 1050
    """

    def __init__(
        self,
        name: str,
        asset: AssetAdapter,
        initial_time: Optional[datetime] = None,
        verbose: bool = True,
        store: Optional[StakeStore] = None,
    ):
        """
        Create a staking pool.

        Args:
            name: Pool identifier
            asset: Adapter moving the staked asset into and out of custody
            initial_time: Starting time for the pool (default: 1970-01-01)
            verbose: Print applied operations and rejections (default: True)
            store: Existing holder ledger to operate on (default: a new empty store)
        """
        self.name = name
        self.asset = asset
        self.store = store if store is not None else StakeStore()
        self.event_log: List[StakeEvent] = []
        self._current_time: datetime = initial_time or datetime(1970, 1, 1)
        self.verbose = verbose

    # ========================================================================
    # StakingView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        """Current logical time of the pool."""
        return self._current_time

    def get_balance(self, caller: str) -> int:
        """
        Get the caller's aggregate active principal.

        Returns:
            Sum of amount over the caller's non-liquidated stakes (0 if none)

        Raises:
            ValidationError: If caller is the zero identity
        """
        require_identity(caller)
        return self.store.balance(caller)

    def list_stakes(self, caller: str) -> List[Stake]:
        """
        List the caller's stakes in insertion order (ids 1..n).

        Liquidated stakes remain in the list with liquidated=True.

        Raises:
            ValidationError: If caller is the zero identity
        """
        require_identity(caller)
        return list(self.store.history(caller))

    def get_stake(self, caller: str, stake_id: int) -> Stake:
        """
        Get one stake from the caller's history.

        Raises:
            ValidationError: If caller is the zero identity
            InvalidStakeIdError: If stake_id is not in 1..stake_count(caller)
        """
        require_identity(caller)
        return self.store.history(caller)[self._index_of(caller, stake_id)]

    def stake_count(self, caller: str) -> int:
        """Number of stakes ever opened by the caller."""
        require_identity(caller)
        return self.store.count(caller)

    def list_holders(self) -> List[str]:
        """Identities with a stake history or a recorded balance, sorted."""
        return self.store.holders()

    def total_staked(self) -> int:
        """Sum of active principal across all holders."""
        return sum(self.store.balance(h) for h in self.store.holders())

    def verify_balances(self) -> Dict[str, Any]:
        """
        Verify the aggregate balance invariant for every holder.

        For each holder, the recorded balance must equal the sum of amount over
        that holder's non-liquidated stakes. Custody must also hold at least the
        total active principal.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every check holds
            - 'total_staked': int - Sum of recorded holder balances
            - 'custody': int - Asset balance held by custody
            - 'discrepancies': List[Dict] - One entry per failed check

        Example:
            result = pool.verify_balances()
            assert result['valid'], f"Invariant violated: {result['discrepancies']}"
        """
        discrepancies = []

        for holder in self.store.holders():
            recorded = self.store.balance(holder)
            expected = sum(s.amount for s in self.store.history(holder) if not s.liquidated)
            if recorded != expected:
                discrepancies.append({
                    'holder': holder,
                    'expected': expected,
                    'actual': recorded,
                    'difference': recorded - expected,
                })

        total = self.total_staked()
        custody = self.asset.balance_of(self.asset.custody)
        if custody < total:
            discrepancies.append({
                'holder': self.asset.custody,
                'expected': total,
                'actual': custody,
                'difference': custody - total,
                'error': 'custody under-collateralized',
            })

        return {
            'valid': len(discrepancies) == 0,
            'total_staked': total,
            'custody': custody,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: datetime) -> None:
        """
        Advance the pool's logical clock to a new time.

        Time can only move forward, never backward.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    # ========================================================================
    # STAKING OPERATIONS (Mutating)
    # ========================================================================

    def stake(self, caller: str, amount: int, duration_days: int) -> int:
        """
        Lock amount for duration_days and record a new stake.

        For the native asset, amount is the value attached to the call. For a
        token, custody must already be authorized for at least amount.

        Args:
            caller: Depositor identity
            amount: Principal in base units (> 0)
            duration_days: One of DURATION_TIERS (30, 60, 90)

        Returns:
            The new stake id (previous count + 1)

        Raises:
            ValidationError: Zero identity, invalid tier, or non-positive amount
            InsufficientFundsError: Caller cannot provide amount
            InsufficientAllowanceError: Custody not authorized for amount (token)
            TransferFailureError: Asset refused the pull
        """
        require_identity(caller)
        validate_duration(duration_days)
        validate_amount(amount)

        try:
            self.asset.pull(caller, amount)
        except StakingError as e:
            self._reject(e)
            raise

        reward = compute_reward(duration_days, amount)
        stake_id = self.store.count(caller) + 1
        record = Stake(
            stake_id=stake_id,
            owner=caller,
            amount=amount,
            duration=duration_days * SECONDS_PER_DAY,
            created_at=self._current_time,
            reward=reward,
        )
        self.store.append(caller, record)
        self.store.credit(caller, amount)

        self.event_log.append(StakeOpened(
            holder=caller,
            amount=amount,
            stake_id=stake_id,
            duration_days=duration_days,
            reward=reward,
            timestamp=self._current_time,
        ))
        if self.verbose:
            print(f"✓ STAKE OPENED: {caller} #{stake_id} {amount} for {duration_days}d "
                  f"(reward {reward}, matures {record.matures_at})")
        return stake_id

    def liquidate(self, caller: str, stake_id: int) -> int:
        """
        Close a stake and return its value to the caller.

        Effects happen in this order:
            1. Debit the caller's balance by the stake amount
            2. Mark the stake liquidated
            3. Push principal (+ reward if mature) out of custody

        Withdrawing before created_at + duration forfeits the whole reward.

        Args:
            caller: Stake owner
            stake_id: Id from the caller's own history

        Returns:
            The amount pushed to the caller

        Raises:
            ValidationError: If caller is the zero identity
            InvalidStakeIdError: If stake_id is not in the caller's history
            AlreadyLiquidatedError: If the stake was already liquidated
            InsufficientFundsError: If the recorded balance cannot cover the stake
            TransferFailureError: If the push fails (steps 1-2 are reverted)
        """
        require_identity(caller)
        index = self._index_of(caller, stake_id)
        original = self.store.history(caller)[index]
        if original.liquidated:
            raise self._reject(AlreadyLiquidatedError(
                f"{caller} stake #{stake_id} already liquidated"
            ))
        # Only reachable through an inconsistent injected store
        if self.store.balance(caller) < original.amount:
            raise self._reject(InsufficientFundsError(
                f"{caller} recorded balance {self.store.balance(caller)} "
                f"cannot cover stake #{stake_id} amount {original.amount}"
            ))

        self.store.debit(caller, original.amount)
        self.store.replace(caller, index, replace(original, liquidated=True))

        now = self._current_time
        mature = is_mature(original, now)
        reward_paid = original.reward if mature else 0
        payout = original.amount + reward_paid

        try:
            delivered = self.asset.push(caller, payout)
        except Exception as e:
            self._revert_liquidation(caller, index, original)
            raise self._reject(TransferFailureError(
                f"push of {payout} to {caller} raised: {e}"
            )) from e
        if not delivered:
            self._revert_liquidation(caller, index, original)
            raise self._reject(TransferFailureError(
                f"push of {payout} to {caller} failed"
            ))

        self.event_log.append(StakeClosed(
            holder=caller,
            amount=original.amount,
            stake_id=stake_id,
            reward_paid=reward_paid,
            timestamp=now,
        ))
        if self.verbose:
            kind = "mature" if mature else "early"
            print(f"✓ STAKE CLOSED: {caller} #{stake_id} paid {payout} ({kind})")
        return payout

    def fund_rewards(self, funder: str, amount: int) -> None:
        """
        Add value to custody to cover future rewards.

        The value does not belong to any stake and no holder balance changes.

        Raises:
            ValidationError: Zero identity or non-positive amount
            InsufficientFundsError, InsufficientAllowanceError, TransferFailureError:
                If the asset refuses the pull
        """
        require_identity(funder)
        validate_amount(amount)
        try:
            self.asset.pull(funder, amount)
        except StakingError as e:
            self._reject(e)
            raise

        self.event_log.append(RewardsFunded(
            funder=funder, amount=amount, timestamp=self._current_time,
        ))
        if self.verbose:
            print(f"✓ REWARDS FUNDED: {funder} added {amount}")

    def _index_of(self, caller: str, stake_id: int) -> int:
        """Map a 1-based stake id to a list index, or raise InvalidStakeIdError."""
        count = self.store.count(caller)
        if isinstance(stake_id, bool) or not isinstance(stake_id, int) or not 1 <= stake_id <= count:
            raise self._reject(InvalidStakeIdError(
                f"{caller} has no stake #{stake_id} (has {count})"
            ))
        return stake_id - 1

    def _revert_liquidation(self, caller: str, index: int, original: Stake) -> None:
        # Restores only this stake's own effects; anything a reentrant call
        # committed during the push stays as it is.
        self.store.replace(caller, index, original)
        self.store.credit(caller, original.amount)

    def _reject(self, error: StakingError) -> StakingError:
        if self.verbose:
            print(f"✗ REJECTED: {error}")
        return error

    # ========================================================================
    # POOL OPERATIONS
    # ========================================================================

    def clone(self) -> StakingPool:
        """
        Create a copy of this pool's ledger state.

        Holder histories, balances, the event log, current time and
        configuration are independent of the original. The asset adapter is
        shared: custody is external state the pool does not own.
        """
        cloned = StakingPool.__new__(StakingPool)
        cloned.name = self.name
        cloned.asset = self.asset
        cloned.store = self.store.copy()
        cloned.event_log = list(self.event_log)
        cloned._current_time = self._current_time
        cloned.verbose = self.verbose
        return cloned

    def __repr__(self) -> str:
        return (f"StakingPool({self.name!r}, {self.asset!r}, holders={len(self.store.holders())}, "
                f"staked={self.total_staked()})")


# ============================================================================
# POOL FACTORIES
# ============================================================================

def create_native_pool(
    chain: NativeChain,
    custody: str,
    name: str = "native",
    initial_time: Optional[datetime] = None,
    verbose: bool = True,
) -> StakingPool:
    """
    Create a pool staking the chain's native currency.

    Args:
        chain: Native value transfer capability
        custody: Identity (contract address) holding staked value
        name: Pool identifier
        initial_time: Starting time for the pool
        verbose: Print applied operations and rejections

    Returns:
        A StakingPool over a NativeAssetAdapter
    """
    return StakingPool(
        name,
        NativeAssetAdapter(chain, custody),
        initial_time=initial_time,
        verbose=verbose,
    )


def create_token_pool(
    token: FungibleToken,
    custody: str,
    name: str = "token",
    initial_time: Optional[datetime] = None,
    verbose: bool = True,
) -> StakingPool:
    """
    Create a pool staking an external fungible token.

    Holders must approve custody as spender on the token before staking.
    """
    return StakingPool(
        name,
        TokenAssetAdapter(token, custody),
        initial_time=initial_time,
        verbose=verbose,
    )
