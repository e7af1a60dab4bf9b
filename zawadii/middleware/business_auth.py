"""
Business context middleware.

Resolves the business (tenant) an admin API request acts on.
"""
from functools import wraps
from flask import request, g
from ..models import Business
from ..extensions import db
from ..utils.errors import unauthorized, not_found, forbidden, ErrorCode


def get_business_id_from_request() -> int | None:
    """
    Get the business id from the request.

    Priority:
    1. X-Business-ID header
    2. business_id query parameter

    Returns:
        Business id or None when missing or not an integer
    """
    raw = request.headers.get('X-Business-ID') or request.args.get('business_id')
    if not raw:
        return None
    try:
        return int(raw)
    except (ValueError, TypeError):
        return None


def require_business_auth(f):
    """
    Decorator to require a business context for admin API endpoints.

    Sets g.business_id and g.business.

    Usage:
        @require_business_auth
        def my_endpoint():
            business_id = g.business_id
            ...
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        business_id = get_business_id_from_request()

        if business_id is None:
            return unauthorized('Missing business context')

        business = db.session.get(Business, business_id)

        if not business:
            return not_found('Business not found', ErrorCode.BUSINESS_NOT_FOUND)

        if not business.is_active:
            return forbidden('This business has been disabled')

        g.business_id = business.id
        g.business = business

        return f(*args, **kwargs)

    return decorated_function
