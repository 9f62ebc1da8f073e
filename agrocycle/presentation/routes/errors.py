"""
JSON error responses.

Domain errors carry their own HTTP status and reason code; everything the
API answers with on failure has the shape
{"error": <class>, "reason": <code>, "message": <what failed>}.
"""

from flask import jsonify
from werkzeug.exceptions import HTTPException
from agrocycle.buisness.dispatching.errors import FulfillmentDomainError
from agrocycle.logger import get_logger
from agrocycle.utils.logging_sanitizer import sanitize_exception_message

logger = get_logger("agrocycle.routes.errors")


def domain_error_response(error: FulfillmentDomainError):
    body = error.to_dict()
    existing = getattr(error, 'existing', None)
    if existing is not None and hasattr(existing, 'to_dict'):
        body['existing'] = existing.to_dict()
    return jsonify(body), error.http_status


def register_error_handlers(app):

    @app.errorhandler(FulfillmentDomainError)
    def handle_domain_error(error):
        logger.info(f"{type(error).__name__} ({error.reason}): {sanitize_exception_message(error)}")
        return domain_error_response(error)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            'error': error.name.replace(' ', ''),
            'reason': 'http_error',
            'message': error.description,
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.error(f"Unhandled error: {sanitize_exception_message(error)}", exc_info=True)
        return jsonify({
            'error': 'InternalServerError',
            'reason': 'internal_error',
            'message': 'An unexpected error occurred',
        }), 500
