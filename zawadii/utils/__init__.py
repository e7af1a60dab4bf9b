"""
Utility modules for Zawadii.
"""
from .logging_config import setup_logging
from .errors import (
    ErrorCode,
    error_response,
    from_exception,
    bad_request,
    unauthorized,
    forbidden,
    not_found,
    conflict,
    internal_error
)
from .exceptions import (
    ZawadiiError,
    NotFoundError,
    ValidationError,
    InvalidStatusTransitionError,
    ConfigurationError,
    LedgerWriteError,
    RewardUnavailableError,
    ReservationWriteError,
    DeliveryFailureError,
)
