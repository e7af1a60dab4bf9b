"""
Reward ledger store.

Single-row operations on reward codes and customer reward claims. Every
write commits on its own: the reward attachment workflow sequences them as
independent steps and compensates explicitly, so no write here may depend on
a later one being committed.

The reservation is a conditional UPDATE on status = 'unused', which is the
only contended write; the database guarantees at most one concurrent caller
sees a changed row.
"""

import logging
from datetime import datetime
from typing import Optional, Callable

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models.reward import (
    RewardCode,
    RewardCodeStatus,
    CustomerReward,
    CustomerRewardStatus,
)
from ..utils.exceptions import LedgerWriteError

logger = logging.getLogger(__name__)


class RewardLedgerStore:
    """SQLAlchemy-backed reward ledger."""

    def __init__(self, session=None, clock: Callable[[], datetime] = None):
        self._session = session
        self._clock = clock or datetime.utcnow

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _commit(self, operation: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise LedgerWriteError(operation, e) from e

    # ==================== Reads ====================

    def get_code(self, reward_code_id: int) -> Optional[RewardCode]:
        return self.session.get(RewardCode, reward_code_id)

    # ==================== Reward codes ====================

    def reserve_code(self, reward_code_id: int, business_id: int, customer_id: int) -> bool:
        """
        Move a code from unused to pending for one customer.

        Returns:
            True if this call won the reservation, False if the code was not
            unused (or not in this business). Nothing is written on False.
        """
        try:
            changed = self.session.query(RewardCode).filter(
                RewardCode.id == reward_code_id,
                RewardCode.business_id == business_id,
                RewardCode.status == RewardCodeStatus.UNUSED.value,
            ).update({
                RewardCode.status: RewardCodeStatus.PENDING.value,
                RewardCode.customer_id: customer_id,
                RewardCode.bought_at: self._clock(),
            }, synchronize_session=False)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise LedgerWriteError('reserve_code', e) from e

        self._commit('reserve_code')
        return changed == 1

    def release_code(self, reward_code_id: int) -> bool:
        """
        Return a pending code to inventory and clear its assignment.

        Bought codes are never touched.
        """
        try:
            changed = self.session.query(RewardCode).filter(
                RewardCode.id == reward_code_id,
                RewardCode.status == RewardCodeStatus.PENDING.value,
            ).update({
                RewardCode.status: RewardCodeStatus.UNUSED.value,
                RewardCode.customer_id: None,
                RewardCode.bought_at: None,
            }, synchronize_session=False)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise LedgerWriteError('release_code', e) from e

        self._commit('release_code')
        return changed == 1

    def finalize_code(self, reward_code_id: int) -> bool:
        """Mark a pending code as bought."""
        try:
            changed = self.session.query(RewardCode).filter(
                RewardCode.id == reward_code_id,
                RewardCode.status == RewardCodeStatus.PENDING.value,
            ).update({
                RewardCode.status: RewardCodeStatus.BOUGHT.value,
            }, synchronize_session=False)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise LedgerWriteError('finalize_code', e) from e

        self._commit('finalize_code')
        return changed == 1

    # ==================== Claims ====================

    def create_claim(
        self,
        customer_id: int,
        reward_id: int,
        business_id: int,
        reward_code_id: int
    ) -> CustomerReward:
        """Insert a pending claim linked to a reserved code."""
        claim = CustomerReward(
            customer_id=customer_id,
            reward_id=reward_id,
            business_id=business_id,
            reward_code_id=reward_code_id,
            status=CustomerRewardStatus.PENDING.value,
            claimed_at=self._clock(),
        )
        try:
            self.session.add(claim)
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise LedgerWriteError('create_claim', e) from e

        self._commit('create_claim')
        return claim

    def finalize_claim(self, claim_id: int) -> bool:
        """Mark a pending claim as bought."""
        try:
            changed = self.session.query(CustomerReward).filter(
                CustomerReward.id == claim_id,
                CustomerReward.status == CustomerRewardStatus.PENDING.value,
            ).update({
                CustomerReward.status: CustomerRewardStatus.BOUGHT.value,
            }, synchronize_session=False)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise LedgerWriteError('finalize_claim', e) from e

        self._commit('finalize_claim')
        return changed == 1

    def delete_claim(self, claim_id: int) -> bool:
        """Delete a claim outright (rollback of an unfinished grant)."""
        try:
            changed = self.session.query(CustomerReward).filter(
                CustomerReward.id == claim_id,
            ).delete(synchronize_session=False)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise LedgerWriteError('delete_claim', e) from e

        self._commit('delete_claim')
        return changed == 1
