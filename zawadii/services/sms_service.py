"""
SMS delivery through the Beem Africa gateway.

API Documentation: https://docs.beem.africa/

Usage:
    gateway = BeemSMSGateway.from_app_config()
    result = gateway.send([{'phone': '+255700000001'}], 'Thanks for visiting!')
    if result.success:
        ...
"""

import base64
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional, List

import requests
from flask import current_app

from ..utils.exceptions import ConfigurationError
from ..utils.validation import normalize_recipient

logger = logging.getLogger(__name__)

# Provider error codes with a dedicated user-facing message
PROVIDER_ERROR_MESSAGES = {
    111: 'Invalid sender ID. Please check the SMS sender name configured for your account.',
    120: 'Invalid SMS gateway credentials. Please check the API key and secret key.',
}

GENERIC_SEND_ERROR = 'Failed to send SMS'


@dataclass
class MessageDeliveryResult:
    """Outcome of one send attempt."""
    success: bool
    delivered_count: int = 0
    failed_count: int = 0
    request_id: Optional[str] = None
    error: Optional[str] = None
    provider_code: Optional[int] = None
    status_code: Optional[int] = None

    @property
    def delivered(self) -> bool:
        """At least one recipient accepted by the gateway."""
        return self.success and self.delivered_count > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'request_id': self.request_id,
            'sent_count': self.delivered_count,
            'failed_count': self.failed_count,
            'error': self.error,
            'code': self.provider_code,
        }


def classify_provider_error(code: Optional[int], message: Optional[str] = None) -> str:
    """Map a provider error code to the message shown to business owners."""
    try:
        mapped = PROVIDER_ERROR_MESSAGES.get(int(code)) if code is not None else None
    except (TypeError, ValueError):
        mapped = None
    return mapped or message or GENERIC_SEND_ERROR


class BeemSMSGateway:
    """
    Beem Africa SMS client.

    Sends one message body to a list of recipients and reports how many
    the gateway accepted. Network errors, non-2xx responses and unparseable
    bodies come back as an unsuccessful MessageDeliveryResult; only missing
    configuration raises.
    """

    DEFAULT_URL = 'https://apisms.beem.africa/v1/send'

    def __init__(
        self,
        api_key: Optional[str],
        secret_key: Optional[str],
        source_addr: Optional[str],
        url: str = DEFAULT_URL,
        timeout: int = 10,
        session: Optional[requests.Session] = None
    ):
        self.api_key = api_key
        self.secret_key = secret_key
        self.source_addr = source_addr
        self.url = url
        self.timeout = timeout
        self._http = session or requests

    @classmethod
    def from_app_config(cls) -> 'BeemSMSGateway':
        """Build a gateway from the current Flask app configuration."""
        config = current_app.config
        return cls(
            api_key=config.get('BEEM_API_KEY'),
            secret_key=config.get('BEEM_SECRET_KEY'),
            source_addr=config.get('BEEM_SMS_SOURCE_ADDR'),
            url=config.get('BEEM_SMS_URL', cls.DEFAULT_URL),
            timeout=config.get('SMS_TIMEOUT_SECONDS', 10),
        )

    def is_configured(self) -> bool:
        return bool(self.api_key and self.secret_key and self.source_addr)

    def _get_headers(self) -> Dict[str, str]:
        """Basic auth with api_key:secret_key."""
        token = base64.b64encode(f'{self.api_key}:{self.secret_key}'.encode('utf-8')).decode('ascii')
        return {
            'Authorization': f'Basic {token}',
            'Content-Type': 'application/json'
        }

    def build_payload(self, recipients: List[Dict[str, Any]], message: str) -> Dict[str, Any]:
        """
        Build the provider request body.

        Args:
            recipients: dicts with a 'phone' key
            message: message body

        Returns:
            Beem send payload with 1-based recipient ids
        """
        return {
            'source_addr': self.source_addr,
            'message': message.strip(),
            'recipients': [
                {
                    'dest_addr': normalize_recipient(recipient['phone']),
                    'recipient_id': index + 1,
                }
                for index, recipient in enumerate(recipients)
            ],
            'encoding': 1,  # Unicode, allows emoji
            'schedule_time': '',  # Send immediately
        }

    def send(self, recipients: List[Dict[str, Any]], message: str) -> MessageDeliveryResult:
        """
        Send an SMS to every recipient.

        Raises:
            ConfigurationError: gateway credentials or sender id missing
            ValueError: no recipients or empty message
        """
        if not recipients:
            raise ValueError('Recipients list is required and cannot be empty')
        if not message or not message.strip():
            raise ValueError('Message is required')

        if not self.is_configured():
            logger.error(
                'Missing Beem credentials: api_key=%s secret_key=%s source_addr=%s',
                bool(self.api_key), bool(self.secret_key), bool(self.source_addr)
            )
            raise ConfigurationError('SMS service configuration error')

        payload = self.build_payload(recipients, message)
        logger.info('Sending SMS to %d recipient(s)', len(payload['recipients']))

        try:
            response = self._http.post(
                self.url,
                headers=self._get_headers(),
                json=payload,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            logger.error('Beem SMS request timed out after %ss', self.timeout)
            return MessageDeliveryResult(success=False, error='SMS gateway timed out')
        except requests.exceptions.RequestException as e:
            logger.error(f'Beem SMS request failed: {e}')
            return MessageDeliveryResult(success=False, error=GENERIC_SEND_ERROR)

        try:
            data = response.json()
        except ValueError:
            logger.error('Beem SMS returned unparseable body (HTTP %s)', response.status_code)
            return MessageDeliveryResult(
                success=False,
                error=GENERIC_SEND_ERROR,
                status_code=response.status_code
            )
        if not isinstance(data, dict):
            data = {}

        provider_code = data.get('code')

        if not 200 <= response.status_code < 300:
            logger.error('Beem SMS error (HTTP %s): %s', response.status_code, data)
            return MessageDeliveryResult(
                success=False,
                error=classify_provider_error(provider_code, data.get('message')),
                provider_code=provider_code,
                status_code=response.status_code
            )

        delivered = int(data.get('valid') or 0)
        failed = int(data.get('invalid') or 0) + int(data.get('duplicates') or 0)

        logger.info(
            'Beem SMS accepted: request_id=%s valid=%s failed=%s',
            data.get('request_id'), delivered, failed
        )

        return MessageDeliveryResult(
            success=True,
            delivered_count=delivered,
            failed_count=failed,
            request_id=str(data['request_id']) if data.get('request_id') is not None else None,
            provider_code=provider_code,
            status_code=response.status_code
        )
