"""
Logging Sanitizer Utility

Provides utilities to sanitize sensitive data before logging.
Prevents accidental logging of tokens, farmer signatures, bank details and
other sensitive information carried in request payloads.
"""

from typing import Dict, Any
from werkzeug.datastructures import MultiDict


# Fields that should never be logged
SENSITIVE_FIELDS = {
    'password',
    'otp',
    'secret',
    'token',
    'api_key',
    'apikey',
    'auth_token',
    'access_token',
    'refresh_token',
    'session_id',
    'authorization',
    'farmer_signature',
    'signature',
    'account_number',
    'bank_account',
    'ifsc',
    'ifsc_code',
    'upi_id',
    'aadhaar',
    'aadhaar_number',
    'pan',
    'pan_number',
}


def sanitize_dict(data: Dict[str, Any], redact_text: str = '[REDACTED]') -> Dict[str, Any]:
    """
    Sanitize a dictionary by replacing sensitive field values with redaction text.

    Args:
        data: Dictionary to sanitize
        redact_text: Text to use for redacted values (default: '[REDACTED]')

    Returns:
        Sanitized dictionary with sensitive values replaced

    Example:
        >>> sanitize_dict({'crop_type': 'paddy', 'farmer_signature': 'data:image/png;...'})
        {'crop_type': 'paddy', 'farmer_signature': '[REDACTED]'}
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if str(key).lower() in SENSITIVE_FIELDS:
            sanitized[key] = redact_text
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, redact_text)
        elif isinstance(value, list):
            sanitized[key] = [
                sanitize_dict(item, redact_text) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            sanitized[key] = value

    return sanitized


def sanitize_payload(payload: Any, redact_text: str = '[REDACTED]') -> Any:
    """
    Sanitize a request payload (JSON body or query args) for safe logging.

    Non-dict payloads are returned unchanged.
    """
    if isinstance(payload, MultiDict):
        payload = payload.to_dict()
    if isinstance(payload, dict):
        return sanitize_dict(payload, redact_text)
    return payload


def sanitize_exception_message(exception: Exception) -> str:
    """
    Sanitize exception messages to ensure they don't contain sensitive data.

    Args:
        exception: Exception to sanitize

    Returns:
        Sanitized exception message
    """
    message = str(exception)

    if any(field in message.lower() for field in SENSITIVE_FIELDS if len(field) > 3):
        return f"{type(exception).__name__}: [Message contains sensitive data]"

    return message
