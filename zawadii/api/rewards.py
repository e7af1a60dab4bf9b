"""
Rewards API endpoints for Zawadii loyalty programs.

Handles:
- Rewards catalog management
- Reward code generation, listing and deletion
"""
import logging
from decimal import Decimal, InvalidOperation
from flask import Blueprint, request, jsonify, g
from ..extensions import db
from ..models import Reward, RewardCode, RewardCodeStatus, DEFAULT_TERMS
from ..middleware.business_auth import require_business_auth
from ..services.reward_code_service import reward_code_service
from ..utils.errors import bad_request, not_found, conflict, ErrorCode

logger = logging.getLogger(__name__)

rewards_bp = Blueprint('rewards', __name__)

UPDATABLE_FIELDS = (
    'title', 'description', 'points_required', 'cost', 'image_url',
    'terms_and_conditions', 'uses_default_terms', 'is_active',
)


def _parse_reward_fields(data: dict) -> tuple:
    """
    Validate and convert reward fields from a JSON body.

    Returns:
        (fields, error_message) - error_message is None when valid
    """
    fields = {}

    if 'title' in data:
        title = (data.get('title') or '').strip()
        if not title:
            return None, 'title cannot be empty'
        fields['title'] = title

    if 'points_required' in data:
        try:
            points = int(data['points_required'])
        except (ValueError, TypeError):
            return None, 'points_required must be an integer'
        if points < 0:
            return None, 'points_required cannot be negative'
        fields['points_required'] = points

    if 'cost' in data:
        if data['cost'] is None:
            fields['cost'] = None
        else:
            try:
                fields['cost'] = Decimal(str(data['cost']))
            except InvalidOperation:
                return None, 'cost must be a number'

    for key in ('description', 'image_url', 'terms_and_conditions'):
        if key in data:
            fields[key] = data[key]

    for key in ('uses_default_terms', 'is_active'):
        if key in data:
            fields[key] = bool(data[key])

    if fields.get('uses_default_terms'):
        fields['terms_and_conditions'] = None

    return fields, None


# ==============================================================================
# REWARDS CATALOG
# ==============================================================================

@rewards_bp.route('', methods=['GET'])
@require_business_auth
def list_rewards():
    """
    List all rewards for the business, newest first.

    Query params:
        include_inactive: Include inactive rewards (default true)
    """
    include_inactive = request.args.get('include_inactive', 'true').lower() == 'true'

    query = Reward.query.filter_by(business_id=g.business_id)
    if not include_inactive:
        query = query.filter(Reward.is_active == True)

    rewards = query.order_by(Reward.created_at.desc(), Reward.id.desc()).all()

    return jsonify({
        'rewards': [{
            **r.to_dict(),
            'code_counts': reward_code_service.code_counts(g.business_id, r.id)
        } for r in rewards],
        'count': len(rewards)
    })


@rewards_bp.route('', methods=['POST'])
@require_business_auth
def create_reward():
    """
    Create a new reward.

    JSON body:
        title: Reward name (required)
        points_required: Points needed to earn it (required)
        description, cost, image_url, terms_and_conditions,
        uses_default_terms, is_active: optional
    """
    data = request.get_json(silent=True) or {}

    for field in ('title', 'points_required'):
        if data.get(field) is None:
            return bad_request(f'{field} is required', ErrorCode.MISSING_FIELD)

    fields, error = _parse_reward_fields(data)
    if error:
        return bad_request(error, ErrorCode.INVALID_FIELD)

    reward = Reward(business_id=g.business_id, **fields)
    db.session.add(reward)
    db.session.commit()

    logger.info('Created reward %s for business %s', reward.id, g.business_id)

    return jsonify({
        'success': True,
        'reward': reward.to_dict(),
        'message': f'Reward "{reward.title}" created'
    }), 201


@rewards_bp.route('/default-terms', methods=['GET'])
def get_default_terms():
    """Default terms applied to rewards without custom terms."""
    return jsonify({'terms': DEFAULT_TERMS})


@rewards_bp.route('/<int:reward_id>', methods=['GET'])
@require_business_auth
def get_reward(reward_id):
    """Get a single reward with code counts."""
    reward = Reward.query.filter_by(id=reward_id, business_id=g.business_id).first()
    if not reward:
        return not_found('Reward not found', ErrorCode.REWARD_NOT_FOUND)

    result = reward.to_dict()
    result['terms'] = reward.terms
    result['code_counts'] = reward_code_service.code_counts(g.business_id, reward.id)
    return jsonify(result)


@rewards_bp.route('/<int:reward_id>', methods=['PUT'])
@require_business_auth
def update_reward(reward_id):
    """Update a reward. Any field from create may be sent."""
    reward = Reward.query.filter_by(id=reward_id, business_id=g.business_id).first()
    if not reward:
        return not_found('Reward not found', ErrorCode.REWARD_NOT_FOUND)

    data = request.get_json(silent=True) or {}
    fields, error = _parse_reward_fields({k: v for k, v in data.items() if k in UPDATABLE_FIELDS})
    if error:
        return bad_request(error, ErrorCode.INVALID_FIELD)

    for key, value in fields.items():
        setattr(reward, key, value)
    db.session.commit()

    return jsonify({'success': True, 'reward': reward.to_dict()})


@rewards_bp.route('/<int:reward_id>', methods=['DELETE'])
@require_business_auth
def delete_reward(reward_id):
    """
    Delete a reward and its unused codes.

    Refused once any code has been reserved or granted.
    """
    reward = Reward.query.filter_by(id=reward_id, business_id=g.business_id).first()
    if not reward:
        return not_found('Reward not found', ErrorCode.REWARD_NOT_FOUND)

    in_use = RewardCode.query.filter(
        RewardCode.reward_id == reward.id,
        RewardCode.status != RewardCodeStatus.UNUSED.value
    ).count()
    if in_use:
        return conflict(f'Reward has {in_use} code(s) already handed out and cannot be deleted')

    RewardCode.query.filter_by(reward_id=reward.id).delete(synchronize_session=False)
    db.session.delete(reward)
    db.session.commit()

    return jsonify({'success': True, 'message': 'Reward deleted'})


# ==============================================================================
# REWARD CODES
# ==============================================================================

@rewards_bp.route('/<int:reward_id>/codes', methods=['GET'])
@require_business_auth
def list_reward_codes(reward_id):
    """
    List codes for a reward.

    Query params:
        status: unused, pending or bought
    """
    reward_code_service.get_reward(g.business_id, reward_id)
    codes = reward_code_service.list_codes(
        g.business_id,
        reward_id=reward_id,
        status=request.args.get('status')
    )
    return jsonify({
        'codes': [c.to_dict() for c in codes],
        'count': len(codes)
    })


@rewards_bp.route('/<int:reward_id>/codes', methods=['POST'])
@require_business_auth
def generate_reward_codes(reward_id):
    """
    Generate reward codes.

    JSON body:
        quantity: Number of codes, 1-100 (default 10)
    """
    data = request.get_json(silent=True) or {}
    codes = reward_code_service.generate_codes(
        g.business_id,
        reward_id,
        data.get('quantity', 10)
    )

    return jsonify({
        'success': True,
        'codes': [c.to_dict() for c in codes],
        'count': len(codes),
        'message': f'Generated {len(codes)} reward codes successfully'
    }), 201


@rewards_bp.route('/codes/<int:code_id>', methods=['DELETE'])
@require_business_auth
def delete_reward_code(code_id):
    """Delete an unused code. Pending and bought codes are kept for accounting."""
    code = reward_code_service.delete_unused_code(g.business_id, code_id)
    return jsonify({
        'success': True,
        'message': f"Code {code['code']} has been deleted successfully."
    })
