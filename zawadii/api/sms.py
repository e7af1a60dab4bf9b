"""
Bulk SMS API endpoint.

Plain message delivery to many recipients. Rewards are never attached here;
use /api/messages/send for a single customer with a reward.
"""
from flask import Blueprint, request, jsonify

from ..middleware.business_auth import require_business_auth
from ..services.sms_service import BeemSMSGateway
from ..utils.errors import bad_request, error_response, ErrorCode

sms_bp = Blueprint('sms', __name__)


@sms_bp.route('/send', methods=['POST'])
@require_business_auth
def send_sms():
    """
    Send one message to a list of recipients.

    JSON body:
        recipients: [{"phone": "+255700000001"}, ...] (required, non-empty)
        message: Message text (required)

    Returns:
        request_id, sent_count and failed_count from the gateway
    """
    data = request.get_json(silent=True) or {}
    recipients = data.get('recipients')
    message = data.get('message') or ''

    if not recipients or not isinstance(recipients, list):
        return bad_request('Recipients array is required and cannot be empty')

    if any(not isinstance(r, dict) or not r.get('phone') for r in recipients):
        return bad_request('Every recipient needs a phone number', ErrorCode.INVALID_FIELD)

    if not message.strip():
        return bad_request('Message is required', ErrorCode.MISSING_FIELD)

    result = BeemSMSGateway.from_app_config().send(recipients, message)

    if not result.success:
        return error_response(
            result.error or 'Failed to send SMS',
            ErrorCode.DELIVERY_FAILED,
            502,
            details={'provider_code': result.provider_code, 'status_code': result.status_code}
        )

    return jsonify({
        'success': True,
        'request_id': result.request_id,
        'sent_count': result.delivered_count,
        'failed_count': result.failed_count,
        'message': 'SMS sent successfully'
    })
