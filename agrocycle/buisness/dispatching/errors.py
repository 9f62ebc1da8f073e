"""
Domain exceptions for pickup fulfillment

These exceptions represent business rule violations and domain-specific errors.
They are raised by the business layer, carry the HTTP status the presentation
layer answers with, and a short machine-readable reason code.
"""


class FulfillmentDomainError(Exception):
    """Base exception for all fulfillment domain errors"""
    http_status = 400
    reason = 'domain_error'

    def __init__(self, message, reason=None):
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason

    def to_dict(self):
        return {
            'error': type(self).__name__,
            'reason': self.reason,
            'message': self.message,
        }


class PreconditionFailed(FulfillmentDomainError):
    """Raised when the entity is not in a state that allows the operation"""
    http_status = 409
    reason = 'precondition_failed'


class ConcurrencyConflict(FulfillmentDomainError):
    """Raised when a shared resource was taken by a concurrent writer"""
    http_status = 409
    reason = 'concurrency_conflict'


class AlreadyProcessed(FulfillmentDomainError):
    """Raised on a repeat of a once-only operation; carries the existing record"""
    http_status = 409
    reason = 'already_processed'

    def __init__(self, message, existing=None, reason=None):
        super().__init__(message, reason=reason)
        self.existing = existing


class ValidationError(FulfillmentDomainError):
    """Raised when input values are malformed or out of range"""
    http_status = 422
    reason = 'validation_error'


class ActorNotPermitted(FulfillmentDomainError):
    """Raised when the acting party may not perform the operation"""
    http_status = 403
    reason = 'actor_not_permitted'


class EntityNotFound(FulfillmentDomainError):
    http_status = 404
    reason = 'not_found'


class BookingNotAssignable(PreconditionFailed):
    reason = 'booking_not_assignable'


class NoCapability(PreconditionFailed):
    """Raised when a vehicle's type cannot fill the requested role"""
    reason = 'no_capability'


class InvalidTransition(PreconditionFailed):
    reason = 'invalid_transition'


class ReportLocked(PreconditionFailed):
    """Raised when the completion report is edited after work_complete"""
    reason = 'report_locked'


class InsufficientStock(PreconditionFailed):
    reason = 'insufficient_stock'


class NotApprovable(PreconditionFailed):
    reason = 'not_approvable'


class VehicleUnavailable(ConcurrencyConflict):
    reason = 'vehicle_unavailable'


class AlreadyApproved(AlreadyProcessed):
    reason = 'already_approved'


class InboundAlreadyRecorded(AlreadyProcessed):
    reason = 'inbound_already_recorded'


class AlreadyPaid(AlreadyProcessed):
    reason = 'already_paid'


class NonPositiveNet(ValidationError):
    reason = 'non_positive_net'


class InvalidReport(ValidationError):
    reason = 'invalid_report'
