"""
Database models for Zawadii.
Businesses, customers, and the reward ledger.
"""
from .business import Business
from .customer import Customer
from .reward import (
    RewardCodeStatus,
    CustomerRewardStatus,
    Reward,
    RewardCode,
    CustomerReward,
    DEFAULT_TERMS,
)

__all__ = [
    'Business',
    'Customer',
    # Reward ledger
    'RewardCodeStatus',
    'CustomerRewardStatus',
    'Reward',
    'RewardCode',
    'CustomerReward',
    'DEFAULT_TERMS',
]
