"""
Input validation helpers for customer phone numbers and messages.
"""
import re

from .exceptions import ValidationError

PHONE_PATTERN = re.compile(r'^\+255[0-9]{9}$')


def clean_phone(phone: str) -> str:
    """Strip whitespace from a phone number."""
    return re.sub(r'\s', '', phone or '')


def validate_phone(phone: str) -> bool:
    """Tanzanian mobile number in +255XXXXXXXXX form."""
    return bool(PHONE_PATTERN.match(clean_phone(phone)))


def normalize_recipient(phone: str) -> str:
    """Gateway recipient format: digits only, no leading '+'."""
    return clean_phone(phone).lstrip('+')


def validate_message(message: str, max_length: int = 500) -> str:
    """
    Validate a message body and return it trimmed.

    Raises:
        ValidationError: empty or too long
    """
    text = (message or '').strip()
    if not text:
        raise ValidationError('Message is required', 'message')
    if len(text) > max_length:
        raise ValidationError(f'Message must be at most {max_length} characters', 'message')
    return text
