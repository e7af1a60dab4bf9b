"""
Middleware package for Zawadii.
"""
from .business_auth import require_business_auth, get_business_id_from_request
