"""
Business logic services for Zawadii.
"""
from .reward_ledger import RewardLedgerStore
from .reward_attachment import (
    RewardAttachmentWorkflow,
    MessageRecipient,
    RewardSelection,
    AttachmentResult,
)
from .sms_service import BeemSMSGateway, MessageDeliveryResult
from .reward_code_service import RewardCodeService

__all__ = [
    'RewardLedgerStore',
    'RewardAttachmentWorkflow',
    'MessageRecipient',
    'RewardSelection',
    'AttachmentResult',
    'BeemSMSGateway',
    'MessageDeliveryResult',
    'RewardCodeService',
]
