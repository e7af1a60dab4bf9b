"""
Custom exceptions for Zawadii business logic.

These exceptions carry a machine-readable code and the HTTP status the API
layer should answer with.
"""


class ZawadiiError(Exception):
    """Base exception for all Zawadii business logic errors."""

    status_code = 400

    def __init__(self, message: str, code: str = "ZAWADII_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(ZawadiiError):
    """Resource not found."""

    status_code = 404

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with ID {identifier} not found"
        super().__init__(message, f"{resource.upper().replace(' ', '_')}_NOT_FOUND")


class ValidationError(ZawadiiError):
    """Invalid input data."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"INVALID_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)


class InvalidStatusTransitionError(ZawadiiError):
    """Invalid status transition for a resource."""

    status_code = 409

    def __init__(self, resource: str, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        message = f"Cannot change {resource} status from '{from_status}' to '{to_status}'"
        super().__init__(message, "INVALID_STATUS_TRANSITION")


class ConfigurationError(ZawadiiError):
    """Application configuration error."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, "CONFIGURATION_ERROR")


class LedgerWriteError(ZawadiiError):
    """The reward ledger store rejected a write."""

    status_code = 500

    def __init__(self, operation: str, original_error: Exception = None):
        self.operation = operation
        self.original_error = original_error
        message = f"Reward ledger write failed during {operation}"
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message, "LEDGER_WRITE_FAILED")


# ==================== Reward attachment workflow ====================

class RewardUnavailableError(ZawadiiError):
    """Selected reward code is no longer unused. Nothing was written."""

    status_code = 409

    def __init__(self, reward_code_id=None):
        self.reward_code_id = reward_code_id
        super().__init__(
            "The selected reward is no longer available. Please choose another reward.",
            "REWARD_UNAVAILABLE"
        )


class ReservationWriteError(ZawadiiError):
    """Claim insert failed after the code was reserved; the code was released."""

    status_code = 500

    def __init__(self, original_error: Exception = None):
        self.original_error = original_error
        super().__init__("Failed to prepare reward", "RESERVATION_FAILED")


class DeliveryFailureError(ZawadiiError):
    """The SMS gateway did not deliver the message; reservation was rolled back."""

    status_code = 502

    def __init__(self, message: str = None, provider_code=None, delivery_result=None):
        self.provider_code = provider_code
        self.delivery_result = delivery_result
        super().__init__(message or "Failed to send SMS", "DELIVERY_FAILED")
