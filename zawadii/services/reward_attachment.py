"""
Reward attachment workflow.

Sends an SMS to one customer and, when a reward is selected, couples the
delivery to the consumption of exactly one reward code.

The ledger store and the SMS gateway are separate systems, so this is a saga
rather than a transaction. Each phase has a paired compensation:

    1. Reserve    code unused -> pending, insert pending claim
                  (claim insert fails -> release the code immediately)
    2. Send       compose the body and call the gateway once
    3. Finalize   delivered -> code bought, claim bought
       Compensate not delivered -> code unused, claim deleted

A code is never bought without a delivered message. Once the message is
delivered nothing is rolled back: losing a code from inventory is preferred
over letting it be granted twice.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any

from .sms_service import GENERIC_SEND_ERROR
from ..utils.exceptions import (
    ZawadiiError,
    ValidationError,
    RewardUnavailableError,
    ReservationWriteError,
    DeliveryFailureError,
)
from ..utils.validation import validate_message, validate_phone, clean_phone

logger = logging.getLogger(__name__)


@dataclass
class MessageRecipient:
    """Destination of a message. customer_id is None for walk-in customers."""
    phone: str
    name: str = ''
    customer_id: Optional[int] = None


@dataclass
class RewardSelection:
    """A previously loaded unused reward code chosen for attachment."""
    reward_code_id: int
    reward_title: str


@dataclass
class Reservation:
    """A reserved code and its pending claim."""
    reward_code_id: int
    claim_id: int
    reward_id: int
    code: str
    title: str


@dataclass
class AttachmentResult:
    """Successful workflow outcome."""
    success: bool
    request_id: Optional[str] = None
    delivered_count: int = 0
    reward_code: Optional[str] = None
    reward_code_id: Optional[int] = None
    claim_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compose_message(
    message: str,
    business_name: Optional[str] = None,
    reward_title: Optional[str] = None,
    reward_code: Optional[str] = None
) -> str:
    """
    Build the final SMS body.

    The business name is appended as a signature unless the message already
    mentions it; an attached reward adds its title and code on a new paragraph.
    """
    final_message = message.strip()

    if business_name and business_name not in final_message:
        final_message = f'{final_message} - {business_name}'

    if reward_code:
        final_message += f'\n\nAttached reward: {reward_title}, reward code: {reward_code}'

    return final_message


class RewardAttachmentWorkflow:
    """
    Send a message with an optional reward attached.

    Args:
        store: reward ledger (see RewardLedgerStore)
        gateway: SMS gateway (see BeemSMSGateway)
        max_message_length: limit for the caller's message text
    """

    def __init__(self, store, gateway, max_message_length: int = 500):
        self.store = store
        self.gateway = gateway
        self.max_message_length = max_message_length

    def send(
        self,
        business_id: int,
        recipient: MessageRecipient,
        message: str,
        selection: Optional[RewardSelection] = None,
        business_name: Optional[str] = None
    ) -> AttachmentResult:
        """
        Run the workflow.

        Raises:
            ValidationError: bad phone, empty/long message, reward for a walk-in
            RewardUnavailableError: the selected code is no longer unused
            ReservationWriteError: claim could not be created (code released)
            DeliveryFailureError: gateway did not deliver (reservation rolled back)
        """
        text = validate_message(message, self.max_message_length)

        if not validate_phone(recipient.phone):
            raise ValidationError('Phone number must be in the format +255XXXXXXXXX', 'phone')

        if selection is not None and recipient.customer_id is None:
            raise ValidationError('Rewards can only be attached for registered customers', 'reward')

        reservation = None
        if selection is not None:
            reservation = self._reserve(business_id, recipient.customer_id, selection)

        try:
            body = compose_message(
                text,
                business_name,
                reservation.title if reservation else None,
                reservation.code if reservation else None,
            )
            result = self.gateway.send(
                [{'phone': clean_phone(recipient.phone)}],
                body
            )
        except ZawadiiError:
            self._compensate(reservation)
            raise
        except Exception as e:
            logger.exception('SMS gateway call failed')
            self._compensate(reservation)
            raise DeliveryFailureError(GENERIC_SEND_ERROR) from e
        except BaseException:
            # Interrupted mid-flight: nothing else will reclaim the reservation
            self._compensate(reservation)
            raise

        if not result.delivered:
            logger.warning(
                'SMS not delivered to %s: error=%s delivered=%s failed=%s',
                recipient.phone, result.error, result.delivered_count, result.failed_count
            )
            self._compensate(reservation)
            raise DeliveryFailureError(
                result.error or GENERIC_SEND_ERROR,
                provider_code=result.provider_code,
                delivery_result=result
            )

        if reservation is not None:
            self._finalize(reservation)

        logger.info(
            'Message delivered to %s (request_id=%s, reward_code=%s)',
            recipient.phone, result.request_id, reservation.code if reservation else None
        )

        return AttachmentResult(
            success=True,
            request_id=result.request_id,
            delivered_count=result.delivered_count,
            reward_code=reservation.code if reservation else None,
            reward_code_id=reservation.reward_code_id if reservation else None,
            claim_id=reservation.claim_id if reservation else None,
        )

    # ==================== Phase 1: reserve ====================

    def _reserve(self, business_id: int, customer_id: int, selection: RewardSelection) -> Reservation:
        code_id = selection.reward_code_id

        if not self.store.reserve_code(code_id, business_id, customer_id):
            logger.info('Reward code %s is not unused; refusing to send', code_id)
            raise RewardUnavailableError(code_id)

        logger.info('Reserved reward code %s for customer %s', code_id, customer_id)

        try:
            reward_code = self.store.get_code(code_id)
            claim = self.store.create_claim(
                customer_id=customer_id,
                reward_id=reward_code.reward_id,
                business_id=business_id,
                reward_code_id=code_id,
            )
        except Exception as e:
            logger.error(f'Failed to create claim for reward code {code_id}: {e}')
            self._release_code(code_id)
            raise ReservationWriteError(e) from e
        except BaseException:
            self._release_code(code_id)
            raise

        return Reservation(
            reward_code_id=code_id,
            claim_id=claim.id,
            reward_id=reward_code.reward_id,
            code=reward_code.code,
            title=selection.reward_title,
        )

    # ==================== Phase 3: finalize / compensate ====================

    def _finalize(self, reservation: Reservation) -> None:
        """
        Mark code and claim bought. The message is already out, so a failed
        write here is logged and left for reconciliation.

        A write that matches no row means the reservation was released while
        the send was in flight (e.g. by the reclaim sweep); the delivered code
        is then back in inventory and needs manual attention.
        """
        try:
            if not self.store.finalize_code(reservation.reward_code_id):
                logger.warning(
                    'Finalization partial failure: reward code %s was no longer pending '
                    'after delivery; it was not marked bought',
                    reservation.reward_code_id
                )
        except Exception as e:
            logger.warning(
                'Finalization partial failure: reward code %s not marked bought: %s',
                reservation.reward_code_id, e
            )

        try:
            if not self.store.finalize_claim(reservation.claim_id):
                logger.warning(
                    'Finalization partial failure: claim %s (code %s) was no longer pending '
                    'after delivery; it was not marked bought',
                    reservation.claim_id, reservation.reward_code_id
                )
        except Exception as e:
            logger.warning(
                'Finalization partial failure: claim %s not marked bought (code %s): %s',
                reservation.claim_id, reservation.reward_code_id, e
            )

    def _compensate(self, reservation: Optional[Reservation]) -> None:
        if reservation is None:
            return

        logger.info('Rolling back reservation of reward code %s', reservation.reward_code_id)
        self._release_code(reservation.reward_code_id)

        try:
            self.store.delete_claim(reservation.claim_id)
        except Exception as e:
            logger.error(
                'Compensation failure: claim %s for reward code %s was not deleted: %s',
                reservation.claim_id, reservation.reward_code_id, e
            )

    def _release_code(self, reward_code_id: int) -> None:
        try:
            self.store.release_code(reward_code_id)
        except Exception as e:
            logger.error(
                'Compensation failure: reward code %s left pending: %s',
                reward_code_id, e
            )
