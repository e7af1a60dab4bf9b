"""
Reward code inventory.

Handles:
- Bulk generation of single-use codes for a reward
- Listing and deleting codes (only unused codes may be deleted)
- The list of rewards that can currently be attached to a message
"""

import logging
import re
from datetime import datetime, date
from typing import List, Dict, Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models.reward import Reward, RewardCode, RewardCodeStatus
from ..utils.exceptions import (
    NotFoundError,
    ValidationError,
    InvalidStatusTransitionError,
    LedgerWriteError,
)

logger = logging.getLogger(__name__)

MAX_CODES_PER_BATCH = 100

# Marketing verbs skipped when picking the word a code prefix is built from
PREFIXES_TO_REMOVE = ('free', 'get', 'win', 'buy', 'purchase')

LEADING_SYMBOLS = re.compile(r'^[0-9%\s\-+*/()\[\]{}.,:;!@#$^&]+')


def generate_code_prefix(title: str) -> str:
    """
    Three-letter code prefix from a reward title.

    'Free Coffee' -> 'COF', '50% off lunch' -> 'OFF', 'Tea' -> 'TEA',
    'Go' -> 'GOX'. Empty titles give 'RWD'.
    """
    if not title or not title.strip():
        return 'RWD'

    clean_name = title.strip()
    for prefix in PREFIXES_TO_REMOVE:
        clean_name = re.sub(rf'^{prefix}\s+', '', clean_name, flags=re.IGNORECASE)

    clean_name = LEADING_SYMBOLS.sub('', clean_name)

    words = [word for word in clean_name.split() if re.search(r'[A-Za-z]', word)]
    meaningful_word = words[0] if words else title

    letters = re.sub(r'[^A-Za-z]', '', meaningful_word).upper()
    return letters[:3].ljust(3, 'X')


def code_stem(title: str, day: date) -> str:
    """Prefix plus MMDD date code."""
    return f'{generate_code_prefix(title)}{day:%m%d}'


class RewardCodeService:
    """Reward code inventory operations, scoped to one business per call."""

    def get_reward(self, business_id: int, reward_id: int) -> Reward:
        reward = Reward.query.filter_by(id=reward_id, business_id=business_id).first()
        if not reward:
            raise NotFoundError('Reward', reward_id)
        return reward

    def _next_sequence(self, stem: str) -> int:
        """Next free sequence number for codes starting with stem."""
        existing = db.session.query(RewardCode.code).filter(
            RewardCode.code.like(f'{stem}%')
        ).all()

        highest = 0
        for (code,) in existing:
            suffix = code[len(stem):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return highest + 1

    def generate_codes(
        self,
        business_id: int,
        reward_id: int,
        quantity: int,
        today: Optional[date] = None
    ) -> List[RewardCode]:
        """
        Generate a batch of unused codes for a reward.

        Codes look like COF1018001: prefix, MMDD, then a 3-digit sequence that
        continues from the highest code already issued with the same stem.

        Raises:
            ValidationError: quantity outside 1-100
            NotFoundError: reward not in this business
            LedgerWriteError: insert failed (e.g. a concurrent batch took a code)
        """
        try:
            quantity = int(quantity)
        except (TypeError, ValueError):
            raise ValidationError('quantity must be an integer', 'quantity')

        if quantity < 1 or quantity > MAX_CODES_PER_BATCH:
            raise ValidationError(
                f'Generate between 1 and {MAX_CODES_PER_BATCH} codes at a time', 'quantity'
            )

        reward = self.get_reward(business_id, reward_id)
        stem = code_stem(reward.title, today or datetime.utcnow().date())
        start = self._next_sequence(stem)

        codes = [
            RewardCode(
                reward_id=reward.id,
                business_id=business_id,
                code=f'{stem}{start + i:03d}',
                status=RewardCodeStatus.UNUSED.value,
            )
            for i in range(quantity)
        ]

        try:
            db.session.add_all(codes)
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            logger.warning(f'Code collision generating {stem} codes: {e}')
            raise LedgerWriteError('generate_codes', e) from e
        except SQLAlchemyError as e:
            db.session.rollback()
            raise LedgerWriteError('generate_codes', e) from e

        logger.info(
            'Generated %d codes for reward %s (%s%03d-%s%03d)',
            quantity, reward.id, stem, start, stem, start + quantity - 1
        )
        return codes

    def list_codes(
        self,
        business_id: int,
        reward_id: Optional[int] = None,
        status: Optional[str] = None
    ) -> List[RewardCode]:
        query = RewardCode.query.filter_by(business_id=business_id)
        if reward_id is not None:
            query = query.filter_by(reward_id=reward_id)
        if status:
            valid = [s.value for s in RewardCodeStatus]
            if status not in valid:
                raise ValidationError(f'status must be one of: {valid}', 'status')
            query = query.filter_by(status=status)
        return query.order_by(RewardCode.code.asc()).all()

    def delete_unused_code(self, business_id: int, code_id: int) -> Dict[str, Any]:
        """
        Delete a code that was never handed out.

        Pending and bought codes are kept for accounting.
        """
        code = RewardCode.query.filter_by(id=code_id, business_id=business_id).first()
        if not code:
            raise NotFoundError('Reward code', code_id)

        if code.status != RewardCodeStatus.UNUSED.value:
            raise InvalidStatusTransitionError('reward code', code.status, 'deleted')

        snapshot = code.to_dict()

        # Conditional delete guards against a reservation landing in between
        deleted = RewardCode.query.filter_by(
            id=code_id,
            business_id=business_id,
            status=RewardCodeStatus.UNUSED.value
        ).delete(synchronize_session=False)

        if not deleted:
            db.session.rollback()
            raise InvalidStatusTransitionError('reward code', RewardCodeStatus.PENDING.value, 'deleted')

        db.session.commit()
        logger.info('Deleted unused reward code %s', snapshot['code'])
        return snapshot

    def list_attachable_rewards(self, business_id: int) -> List[Dict[str, Any]]:
        """
        Rewards that can be attached to a message right now.

        One option per reward title, carrying the first unused code in code order.
        """
        rows = db.session.query(RewardCode, Reward).join(
            Reward, RewardCode.reward_id == Reward.id
        ).filter(
            RewardCode.business_id == business_id,
            RewardCode.status == RewardCodeStatus.UNUSED.value,
            Reward.is_active == True
        ).order_by(RewardCode.code.asc()).all()

        options = {}
        for code, reward in rows:
            title = reward.title or 'Unknown Reward'
            if title in options:
                continue
            options[title] = {
                'id': f'{reward.id}_{code.id}',
                'title': title,
                'reward_id': reward.id,
                'reward_code_id': code.id,
                'reward_code': code.code,
            }

        return list(options.values())

    def code_counts(self, business_id: int, reward_id: int) -> Dict[str, int]:
        """Number of codes per status for one reward."""
        counts = {s.value: 0 for s in RewardCodeStatus}
        rows = db.session.query(
            RewardCode.status, db.func.count(RewardCode.id)
        ).filter(
            RewardCode.business_id == business_id,
            RewardCode.reward_id == reward_id
        ).group_by(RewardCode.status).all()

        for status, count in rows:
            counts[status] = count
        return counts


# Singleton instance
reward_code_service = RewardCodeService()
