"""
Request parsing shared by the API blueprints.
"""

from flask import request
from agrocycle.buisness.dispatching.errors import ValidationError
from agrocycle.logger import get_logger
from agrocycle.utils.logging_sanitizer import sanitize_payload

logger = get_logger("agrocycle.routes")


def json_body() -> dict:
    """The request's JSON object; an empty dict when there is no body"""
    data = request.get_json(silent=True)
    if data is None:
        if request.data:
            raise ValidationError("Request body must be valid JSON")
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    logger.debug(f"{request.method} {request.path} payload: {sanitize_payload(data)}")
    return data


def int_field(data: dict, name: str, required: bool = True):
    value = data.get(name)
    if value is None or value == '':
        if required:
            raise ValidationError(f"{name} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


def same_quantity(a, b) -> bool:
    """Quantities equal to 2 d.p."""
    try:
        return round(float(a), 2) == round(float(b), 2)
    except (TypeError, ValueError):
        return False
