"""
Customer messaging API endpoints.

Handles:
- Sending an SMS to one customer with an optional reward attached
- Listing the rewards that can be attached right now
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..models import Customer
from ..middleware.business_auth import require_business_auth
from ..services.reward_attachment import (
    RewardAttachmentWorkflow,
    MessageRecipient,
    RewardSelection,
)
from ..services.reward_code_service import reward_code_service
from ..services.reward_ledger import RewardLedgerStore
from ..services.sms_service import BeemSMSGateway
from ..utils.errors import bad_request
from ..utils.validation import clean_phone

messages_bp = Blueprint('messages', __name__)


def build_workflow() -> RewardAttachmentWorkflow:
    """Workflow wired to the app's database and SMS gateway."""
    return RewardAttachmentWorkflow(
        store=RewardLedgerStore(),
        gateway=BeemSMSGateway.from_app_config(),
        max_message_length=current_app.config.get('MESSAGE_MAX_LENGTH', 500)
    )


@messages_bp.route('/send', methods=['POST'])
@require_business_auth
def send_message():
    """
    Send a message to one customer.

    JSON body:
        phone: Customer phone number, +255XXXXXXXXX (required)
        name: Customer display name
        message: Message text, at most 500 characters (required)
        reward_code_id: Unused reward code to attach (optional)
        reward_title: Title of the reward the code belongs to

    Returns:
        request_id from the SMS gateway and the attached reward code, if any
    """
    data = request.get_json(silent=True) or {}

    phone = clean_phone(data.get('phone'))
    if not phone:
        return bad_request('phone is required')

    selection = None
    if data.get('reward_code_id') is not None:
        try:
            reward_code_id = int(data['reward_code_id'])
        except (ValueError, TypeError):
            return bad_request('reward_code_id must be an integer')
        selection = RewardSelection(
            reward_code_id=reward_code_id,
            reward_title=data.get('reward_title') or 'Reward'
        )

    # Registered customers are recognised by phone number; walk-ins have no id
    customer = Customer.find_by_phone(phone)

    recipient = MessageRecipient(
        phone=phone,
        name=data.get('name') or (customer.full_name if customer else '') or '',
        customer_id=customer.id if customer else None
    )

    result = build_workflow().send(
        business_id=g.business_id,
        recipient=recipient,
        message=data.get('message') or '',
        selection=selection,
        business_name=g.business.name
    )

    return jsonify({
        **result.to_dict(),
        'message': 'SMS sent successfully'
    })


@messages_bp.route('/rewards', methods=['GET'])
@require_business_auth
def list_attachable_rewards():
    """
    Rewards that can be attached to a message for a customer.

    Query params:
        phone: Customer phone number. Walk-in customers get an empty list.

    Returns:
        One option per reward title with the code that would be attached
    """
    phone = clean_phone(request.args.get('phone'))
    # An unencoded '+' in a query string arrives as a space
    if phone.startswith('255'):
        phone = f'+{phone}'
    customer = Customer.find_by_phone(phone) if phone else None

    if phone and not customer:
        return jsonify({'rewards': [], 'eligible': False, 'count': 0})

    rewards = reward_code_service.list_attachable_rewards(g.business_id)
    return jsonify({
        'rewards': rewards,
        'eligible': customer is not None or not phone,
        'count': len(rewards)
    })
