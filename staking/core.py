"""
Core types and pure functions for the staking system.

This module provides the foundational data structures and protocols for staking:
1. Protocols: AssetAdapter for custody movement, StakingView for read-only access
2. Immutable data structures: Stake, StakeOpened, StakeClosed, RewardsFunded, Payout
3. Exceptions: StakingError and domain-specific error types
4. Preconditions: require_identity, validate_duration, validate_amount
5. Reward and payout functions: compute_reward, is_mature, compute_payout

All functions in this module are pure. No function here can mutate pool state;
StakingPool in pool.py is the only place that does.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import (
    Dict, List, Optional, Tuple, Protocol, Union, runtime_checkable
)


# ============================================================================
# CONSTANTS
# ============================================================================

# The all-zero address. Never a valid caller or recipient.
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

SECONDS_PER_DAY = 86_400

# Accepted lock lengths, in days.
DURATION_TIERS: Tuple[int, ...] = (30, 60, 90)

# Reward per tier as (numerator, denominator) of the principal.
# 90 days -> 5%, 60 days -> 1%, 30 days -> 0.05%. Integer division truncates.
REWARD_RATES: Dict[int, Tuple[int, int]] = {
    90: (5, 100),
    60: (1, 100),
    30: (5, 10_000),
}


# ============================================================================
# EXCEPTIONS
# ============================================================================

class StakingError(Exception):
    """Base exception for all staking-related errors."""
    pass


class ValidationError(StakingError, ValueError):
    """Raised for a zero-identity caller, an invalid duration tier, or a non-positive amount."""
    pass


class InsufficientFundsError(StakingError):
    """Raised when the depositor does not hold the amount being staked."""
    pass


class InsufficientAllowanceError(StakingError):
    """Raised when the depositor has not authorized custody to pull the amount."""
    pass


class InvalidStakeIdError(StakingError, IndexError):
    """Raised when a stake id does not address a record in the caller's history."""
    pass


class AlreadyLiquidatedError(StakingError):
    """Raised when liquidating a stake that has already been liquidated."""
    pass


class TransferFailureError(StakingError):
    """Raised when the asset refuses to move value; the operation is rolled back."""
    pass


# ============================================================================
# PRECONDITIONS
# ============================================================================

def is_zero_identity(identity: Optional[str]) -> bool:
    """
    Return True if identity is missing, blank, or an all-zero hex address.

    "0x0", "0x0000...0000" and "0X00" are all treated as the zero address.
    """
    if identity is None or not isinstance(identity, str):
        return True
    stripped = identity.strip()
    if not stripped:
        return True
    if stripped[:2].lower() == "0x":
        digits = stripped[2:]
        return not digits or set(digits) == {"0"}
    return False


def require_identity(identity: Optional[str]) -> str:
    """
    Guard run at the top of every public operation.

    Returns:
        The identity unchanged, so the call can be used inline.

    Raises:
        ValidationError: If the identity is the zero/empty identity.
    """
    if is_zero_identity(identity):
        raise ValidationError(f"caller identity must be non-zero, got {identity!r}")
    return identity


def validate_duration(duration_days: int) -> int:
    """
    Check that a lock length is one of the accepted tiers.

    Raises:
        ValidationError: If duration_days is not an int in DURATION_TIERS.
    """
    # 30.0 == 30, so the type has to be checked before membership
    if (isinstance(duration_days, bool) or not isinstance(duration_days, int)
            or duration_days not in DURATION_TIERS):
        raise ValidationError(
            f"duration must be one of {list(DURATION_TIERS)} days, got {duration_days!r}"
        )
    return duration_days


def validate_amount(amount: int) -> int:
    """
    Check that an amount is a positive integer number of base units.

    Raises:
        ValidationError: If amount is not an int or is <= 0.
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"amount must be an integer, got {type(amount).__name__}")
    if amount <= 0:
        raise ValidationError(f"amount must be positive, got {amount}")
    return amount


# ============================================================================
# REWARDS
# ============================================================================

def compute_reward(duration_days: int, amount: int) -> int:
    """
    Compute the fixed reward for a stake from its tier and principal.

    Integer arithmetic, truncating toward zero. No rounding adjustment is
    applied, so small 30-day stakes earn nothing:

        compute_reward(90, 1000) == 50
        compute_reward(60, 1000) == 10
        compute_reward(30, 1000) == 0     # 0.5 truncated

    Raises:
        ValidationError: If duration_days is not an accepted tier.
    """
    numerator, denominator = REWARD_RATES[validate_duration(duration_days)]
    return amount * numerator // denominator


# ============================================================================
# STAKE RECORD
# ============================================================================

@dataclass(frozen=True, slots=True)
class Stake:
    """
    A single principal deposit locked for a fixed duration.

    Attributes:
        stake_id: 1-based position in the owner's stake history (never reused).
        owner: Identity of the depositor.
        amount: Principal locked, in base units.
        duration: Lock length in seconds.
        created_at: Pool time at which the stake was opened.
        reward: Reward computed at creation; paid only if liquidated at maturity.
        liquidated: True once the stake has been liquidated (terminal).

    This class is immutable (frozen=True). Liquidation replaces the record in
    the owner's history with a copy whose liquidated flag is set.
    """
    stake_id: int
    owner: str
    amount: int
    duration: int
    created_at: datetime
    reward: int
    liquidated: bool = False

    def __post_init__(self):
        if not self.owner or not self.owner.strip():
            raise ValueError("Stake owner cannot be empty")
        if self.stake_id < 1:
            raise ValueError(f"Stake id must be >= 1, got {self.stake_id}")
        if self.amount <= 0:
            raise ValueError(f"Stake amount must be positive, got {self.amount}")
        if self.duration <= 0:
            raise ValueError(f"Stake duration must be positive, got {self.duration}")
        if self.reward < 0:
            raise ValueError(f"Stake reward cannot be negative, got {self.reward}")

    @property
    def duration_days(self) -> int:
        return self.duration // SECONDS_PER_DAY

    @property
    def matures_at(self) -> datetime:
        """Instant from which liquidation pays principal plus reward."""
        return self.created_at + timedelta(seconds=self.duration)

    @property
    def is_active(self) -> bool:
        return not self.liquidated

    def __repr__(self) -> str:
        status = "liquidated" if self.liquidated else "active"
        return (
            f"Stake(#{self.stake_id} {self.owner}: {self.amount} "
            f"for {self.duration_days}d, reward={self.reward}, {status})"
        )


def is_mature(stake: Stake, at: datetime) -> bool:
    """Hard cliff: mature from created_at + duration onward, early before it."""
    return at >= stake.matures_at


def compute_payout(stake: Stake, at: datetime) -> int:
    """
    Amount returned to the owner when liquidating at the given time.

    Early withdrawal forfeits the whole reward; there is no pro-rating.
    """
    if is_mature(stake, at):
        return stake.amount + stake.reward
    return stake.amount


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class StakeOpened:
    """Emitted when a stake is created."""
    holder: str
    amount: int
    stake_id: int
    duration_days: int
    reward: int
    timestamp: datetime

    def __repr__(self) -> str:
        return f"StakeOpened({self.holder} #{self.stake_id}: {self.amount})"


@dataclass(frozen=True, slots=True)
class StakeClosed:
    """
    Emitted when a stake is liquidated.

    amount is always the principal; reward_paid is 0 for early withdrawals.
    """
    holder: str
    amount: int
    stake_id: int
    reward_paid: int
    timestamp: datetime

    def __repr__(self) -> str:
        return f"StakeClosed({self.holder} #{self.stake_id}: {self.amount} +{self.reward_paid})"


@dataclass(frozen=True, slots=True)
class RewardsFunded:
    """Emitted when value is added to custody to cover future rewards."""
    funder: str
    amount: int
    timestamp: datetime


StakeEvent = Union[StakeOpened, StakeClosed, RewardsFunded]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class AssetAdapter(Protocol):
    """
    Capability for moving the staked asset into and out of custody.

    The pool calls pull() before recording a stake and push() after marking a
    stake liquidated. pull() raises on any failure; push() reports failure by
    returning False and the caller must check it.
    """

    custody: str

    def pull(self, sender: str, amount: int) -> None:
        """
        Move amount from sender into custody.

        Raises:
            InsufficientFundsError, InsufficientAllowanceError, TransferFailureError
        """
        ...

    def push(self, recipient: str, amount: int) -> bool:
        """Move amount from custody to recipient. Returns True on success."""
        ...

    def balance_of(self, identity: str) -> int:
        """Return the asset balance held by identity."""
        ...


@runtime_checkable
class StakingView(Protocol):
    """
    Read-only interface to pool state.

    Functions accepting a StakingView declare their read-only intent. The
    StakingPool class implements this protocol but also provides mutation
    methods. For testing, FakeStakingView provides an immutable implementation.
    """

    @property
    def current_time(self) -> datetime:
        """Return the current logical time of the pool."""
        ...

    def get_balance(self, caller: str) -> int:
        """Return the caller's aggregate active principal."""
        ...

    def list_stakes(self, caller: str) -> List[Stake]:
        """Return the caller's stake history in insertion order."""
        ...

    def get_stake(self, caller: str, stake_id: int) -> Stake:
        """Return one stake from the caller's history."""
        ...


# ============================================================================
# PREVIEW
# ============================================================================

@dataclass(frozen=True, slots=True)
class Payout:
    """
    What liquidating a stake would return at a given instant.

    Attributes:
        stake_id: The stake being previewed.
        principal: Principal returned in every case.
        reward: Reward returned (0 when early or already liquidated).
        mature: Whether the instant is at or past maturity.
        liquidatable: False if the stake has already been liquidated.
    """
    stake_id: int
    principal: int
    reward: int
    mature: bool
    liquidatable: bool

    @property
    def total(self) -> int:
        return self.principal + self.reward if self.liquidatable else 0


def preview_liquidation(
    view: StakingView,
    holder: str,
    stake_id: int,
    at: Optional[datetime] = None,
) -> Payout:
    """
    Describe the result of liquidating a stake without touching pool state.

    Args:
        view: Read-only pool access
        holder: Identity whose stake is previewed
        stake_id: Stake to preview
        at: Instant to evaluate (default: view.current_time)

    Returns:
        Payout describing principal, reward and maturity at that instant.

    Raises:
        ValidationError: If holder is the zero identity
        InvalidStakeIdError: If stake_id is not in the holder's history
    """
    stake = view.get_stake(holder, stake_id)
    when = at if at is not None else view.current_time
    mature = is_mature(stake, when)
    return Payout(
        stake_id=stake.stake_id,
        principal=stake.amount,
        reward=stake.reward if mature and stake.is_active else 0,
        mature=mature,
        liquidatable=stake.is_active,
    )
