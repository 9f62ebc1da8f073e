"""
Test the logging sanitizer utility.
Sensitive values in request payloads must never reach the logs.
"""

from werkzeug.datastructures import ImmutableMultiDict
from agrocycle.utils.logging_sanitizer import (
    SENSITIVE_FIELDS,
    sanitize_dict,
    sanitize_exception_message,
    sanitize_payload,
)


def test_sanitize_dict():
    data = {
        'crop_type': 'paddy',
        'farmer_signature': 'data:image/png;base64,AAAA',
        'otp': '123456',
    }
    result = sanitize_dict(data)
    assert result['crop_type'] == 'paddy'
    assert result['farmer_signature'] == '[REDACTED]'
    assert result['otp'] == '[REDACTED]'


def test_case_insensitive():
    result = sanitize_dict({'Authorization': 'Bearer x', 'UPI_ID': 'farmer@upi'})
    assert result['Authorization'] == '[REDACTED]'
    assert result['UPI_ID'] == '[REDACTED]'


def test_nested_report_is_sanitized():
    data = {
        'status': 'work_complete',
        'report': {
            'actual_quantity_tonnes': 5.9,
            'farmer_signature': 'sig',
        },
        'payees': [{'bank_account': '0000111122223333', 'name': 'R. Singh'}],
    }
    result = sanitize_dict(data)
    assert result['report']['actual_quantity_tonnes'] == 5.9
    assert result['report']['farmer_signature'] == '[REDACTED]'
    assert result['payees'][0]['bank_account'] == '[REDACTED]'
    assert result['payees'][0]['name'] == 'R. Singh'


def test_original_is_not_modified():
    data = {'otp': '123456'}
    sanitize_dict(data)
    assert data['otp'] == '123456'


def test_sanitize_payload_multidict():
    form = ImmutableMultiDict([('crop_type', 'wheat'), ('token', 'abc')])
    result = sanitize_payload(form)
    assert result['crop_type'] == 'wheat'
    assert result['token'] == '[REDACTED]'


def test_sanitize_payload_passes_through_non_dicts():
    assert sanitize_payload(['a', 'b']) == ['a', 'b']
    assert sanitize_payload(None) is None


def test_sanitize_exception_message():
    message = sanitize_exception_message(ValueError("bad token abc123 for farmer"))
    assert 'abc123' not in message


def test_sensitive_fields_cover_payment_details():
    for field in ('ifsc', 'aadhaar', 'pan', 'farmer_signature'):
        assert field in SENSITIVE_FIELDS
