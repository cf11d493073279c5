"""
staking - Time-Locked Staking Ledger

Lock native currency or a fungible token for 30, 60 or 90 days in exchange for
a fixed, tier-based reward. Liquidate later for principal plus reward, or
principal only if withdrawn before maturity.

Usage:
    from staking import create_native_pool

    pool = create_native_pool(chain, custody="0xpool")

    # Open a 90-day stake (reward = 5% of principal)
    stake_id = pool.stake("0xalice", 1000, 90)
    pool.get_balance("0xalice")             # 1000

    # After maturity
    pool.advance_time(pool.current_time + timedelta(days=90))
    pool.liquidate("0xalice", stake_id)     # pays 1050
    pool.get_stake("0xalice", stake_id).liquidated   # True

    # Token variant: approve custody first on the token contract
    pool = create_token_pool(token, custody="0xpool")
"""

# Core types
from .core import (
    Stake,
    StakeOpened,
    StakeClosed,
    RewardsFunded,
    StakeEvent,
    Payout,
    AssetAdapter,
    StakingView,
    StakingError,
    ValidationError,
    InsufficientFundsError,
    InsufficientAllowanceError,
    InvalidStakeIdError,
    AlreadyLiquidatedError,
    TransferFailureError,
    is_zero_identity,
    require_identity,
    validate_duration,
    validate_amount,
    compute_reward,
    is_mature,
    compute_payout,
    preview_liquidation,
    ZERO_ADDRESS,
    SECONDS_PER_DAY,
    DURATION_TIERS,
    REWARD_RATES,
)

# Asset adapters
from .adapters import (
    NativeChain,
    FungibleToken,
    NativeAssetAdapter,
    TokenAssetAdapter,
)

# Pool
from .store import StakeStore
from .pool import StakingPool, create_native_pool, create_token_pool

__all__ = [
    # Core
    'Stake', 'StakeOpened', 'StakeClosed', 'RewardsFunded', 'StakeEvent', 'Payout',
    'AssetAdapter', 'StakingView',
    'StakingError', 'ValidationError', 'InsufficientFundsError',
    'InsufficientAllowanceError', 'InvalidStakeIdError', 'AlreadyLiquidatedError',
    'TransferFailureError',
    'is_zero_identity', 'require_identity', 'validate_duration', 'validate_amount',
    'compute_reward', 'is_mature', 'compute_payout', 'preview_liquidation',
    'ZERO_ADDRESS', 'SECONDS_PER_DAY', 'DURATION_TIERS', 'REWARD_RATES',
    # Adapters
    'NativeChain', 'FungibleToken', 'NativeAssetAdapter', 'TokenAssetAdapter',
    # Pool
    'StakeStore', 'StakingPool', 'create_native_pool', 'create_token_pool',
]

__version__ = '1.0.0'
