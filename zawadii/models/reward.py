"""
Reward ledger models.

A business defines a Reward, then generates single-use RewardCode vouchers
for it. Granting a code to a customer produces a CustomerReward claim.

Code lifecycle:
    unused -> pending -> bought     (message delivered)
    pending -> unused               (delivery failed, reservation reclaimed)
    bought is terminal.

Claims are created 'pending' together with the code reservation, moved to
'bought' on delivery, and deleted outright when the reservation rolls back.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Any
from ..extensions import db


# ==================== Enums ====================

class RewardCodeStatus(str, Enum):
    """Status of a single reward code."""
    UNUSED = 'unused'     # Available in inventory
    PENDING = 'pending'   # Reserved by an in-flight message send
    BOUGHT = 'bought'     # Granted to a customer (terminal)


class CustomerRewardStatus(str, Enum):
    """Status of a customer's reward claim."""
    PENDING = 'pending'
    BOUGHT = 'bought'
    CLAIMED = 'claimed'
    REDEEMED = 'redeemed'
    EXPIRED = 'expired'


DEFAULT_TERMS = (
    "• This reward is valid for one-time use only\n"
    "• Points cannot be refunded once redeemed\n"
    "• Cannot be combined with other offers\n"
    "• Management reserves the right to modify terms at any time"
)


# ==================== Models ====================

class Reward(db.Model):
    """A reward definition offered by a business."""
    __tablename__ = 'rewards'

    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey('businesses.id'), nullable=False)

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    points_required = db.Column(db.Integer, nullable=False, default=0)
    cost = db.Column(db.Numeric(12, 2))

    image_url = db.Column(db.String(500))
    terms_and_conditions = db.Column(db.Text)
    uses_default_terms = db.Column(db.Boolean, default=True)

    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    codes = db.relationship('RewardCode', backref='reward', lazy='dynamic')

    __table_args__ = (
        db.Index('ix_rewards_business_active', 'business_id', 'is_active'),
    )

    def __repr__(self):
        return f'<Reward {self.title}>'

    @property
    def terms(self) -> str:
        if self.uses_default_terms or not self.terms_and_conditions:
            return DEFAULT_TERMS
        return self.terms_and_conditions

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'business_id': self.business_id,
            'title': self.title,
            'description': self.description,
            'points_required': self.points_required,
            'cost': float(self.cost) if self.cost is not None else None,
            'image_url': self.image_url,
            'terms_and_conditions': self.terms_and_conditions,
            'uses_default_terms': self.uses_default_terms,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class RewardCode(db.Model):
    """
    A single redeemable voucher for a reward.

    Invariant: status == 'unused' exactly when customer_id is NULL.
    bought_at records when the code was assigned (reserved) to a customer.
    """
    __tablename__ = 'reward_codes'

    id = db.Column(db.Integer, primary_key=True)
    reward_id = db.Column(db.Integer, db.ForeignKey('rewards.id'), nullable=False)
    business_id = db.Column(db.Integer, db.ForeignKey('businesses.id'), nullable=False)

    code = db.Column(db.String(50), unique=True, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=RewardCodeStatus.UNUSED.value)

    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'))
    bought_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.Index('ix_reward_codes_business_status', 'business_id', 'status'),
        db.Index('ix_reward_codes_reward_code', 'reward_id', 'code'),
    )

    def __repr__(self):
        return f'<RewardCode {self.code} {self.status}>'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'reward_id': self.reward_id,
            'business_id': self.business_id,
            'code': self.code,
            'status': self.status,
            'customer_id': self.customer_id,
            'bought_at': self.bought_at.isoformat() if self.bought_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class CustomerReward(db.Model):
    """A customer's claim on a specific reward code."""
    __tablename__ = 'customer_rewards'

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False)
    reward_id = db.Column(db.Integer, db.ForeignKey('rewards.id'), nullable=False)
    business_id = db.Column(db.Integer, db.ForeignKey('businesses.id'), nullable=False)
    reward_code_id = db.Column(db.Integer, db.ForeignKey('reward_codes.id'), nullable=False)

    status = db.Column(db.String(20), nullable=False, default=CustomerRewardStatus.PENDING.value)
    claimed_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.Index('ix_customer_rewards_customer', 'customer_id'),
        db.Index('ix_customer_rewards_code', 'reward_code_id'),
    )

    def __repr__(self):
        return f'<CustomerReward customer={self.customer_id} code={self.reward_code_id} {self.status}>'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'reward_id': self.reward_id,
            'business_id': self.business_id,
            'reward_code_id': self.reward_code_id,
            'status': self.status,
            'claimed_at': self.claimed_at.isoformat() if self.claimed_at else None,
        }
