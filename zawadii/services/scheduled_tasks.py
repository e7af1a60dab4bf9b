"""
Scheduled Tasks Service for Zawadii.

Handles automated background jobs:
- Reclaiming reward reservations left pending by an interrupted message send

These tasks can be triggered by:
1. The background scheduler (zawadii.utils.scheduler)
2. Flask CLI commands (for cron jobs)
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Any, Optional

from sqlalchemy import or_

from ..models.reward import (
    RewardCode,
    RewardCodeStatus,
    CustomerReward,
    CustomerRewardStatus,
)
from .reward_ledger import RewardLedgerStore

logger = logging.getLogger(__name__)


class ScheduledTasksService:
    """
    Service for running scheduled/background tasks.
    """

    def __init__(self, store: RewardLedgerStore = None):
        self.store = store or RewardLedgerStore()

    # ==================== RESERVATION RECLAIM ====================

    def reclaim_stale_reservations(
        self,
        timeout_minutes: int,
        business_id: Optional[int] = None,
        dry_run: bool = False,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Return stale pending reward codes to inventory.

        A code stays pending only while a message send is in flight. A code
        reserved longer ago than timeout_minutes belongs to a send that died
        between reservation and finalization, so the code goes back to unused
        and its pending claims are deleted. Claims are only touched once the
        release itself succeeds.

        Args:
            timeout_minutes: Age after which a reservation is considered stale
            business_id: Limit to one business (all businesses if None)
            dry_run: If True, report but don't modify anything

        Returns:
            Summary of reclaimed codes
        """
        now = now or datetime.utcnow()
        cutoff = now - timedelta(minutes=timeout_minutes)

        query = RewardCode.query.filter(
            RewardCode.status == RewardCodeStatus.PENDING.value,
            or_(RewardCode.bought_at.is_(None), RewardCode.bought_at < cutoff)
        )
        if business_id is not None:
            query = query.filter(RewardCode.business_id == business_id)

        stale_codes = query.order_by(RewardCode.id.asc()).all()

        results = {
            'processed': 0,
            'reclaimed': 0,
            'claims_deleted': 0,
            'errors': [],
            'details': [],
            'dry_run': dry_run,
            'cutoff': cutoff.isoformat(),
        }

        for code in stale_codes:
            results['processed'] += 1
            code_id = code.id
            code_value = code.code

            claim_ids = [
                claim.id for claim in CustomerReward.query.filter_by(
                    reward_code_id=code_id,
                    status=CustomerRewardStatus.PENDING.value
                ).all()
            ]

            results['details'].append({
                'reward_code_id': code_id,
                'code': code_value,
                'business_id': code.business_id,
                'reserved_at': code.bought_at.isoformat() if code.bought_at else None,
                'claim_ids': claim_ids,
            })

            if dry_run:
                continue

            try:
                # Release is conditional on pending; a send that finalized in
                # the meantime keeps both its code and its claim
                if not self.store.release_code(code_id):
                    logger.info(f'Reward code {code_value} left pending before reclaim; skipped')
                    continue
                results['reclaimed'] += 1

                for claim_id in claim_ids:
                    if self.store.delete_claim(claim_id):
                        results['claims_deleted'] += 1
            except Exception as e:
                logger.error(f'Failed to reclaim reward code {code_value}: {e}')
                results['errors'].append({'reward_code_id': code_id, 'error': str(e)})

        if stale_codes:
            logger.info(
                f"Reservation reclaim{' (dry run)' if dry_run else ''}: "
                f"{results['processed']} stale, {results['reclaimed']} reclaimed, "
                f"{results['claims_deleted']} claims deleted"
            )

        return results


# Singleton instance
scheduled_tasks_service = ScheduledTasksService()
