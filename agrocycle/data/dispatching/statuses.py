"""
Closed vocabularies for the fulfillment tables.

Columns store the plain string value; compare against `.value` or use the
enum directly since every member is also a `str`.
"""

from enum import Enum


class BookingStatus(str, Enum):
    """
    Bookings move pending → confirmed → scheduled → completed, or to cancelled.
    IN_PROGRESS is kept for clients that read it but is never written; operator
    progress lives on the assignment.
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    SCHEDULED = 'scheduled'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class VehicleType(str, Enum):
    BALER = 'baler'
    TRUCK = 'truck'
    BOTH = 'both'


class Availability(str, Enum):
    AVAILABLE = 'available'
    BUSY = 'busy'


class Ownership(str, Enum):
    PLATFORM = 'platform'
    THIRD_PARTY = 'third_party'


class AssignmentStatus(str, Enum):
    ASSIGNED = 'assigned'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class OperatorStatus(str, Enum):
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    EN_ROUTE = 'en_route'
    ARRIVED = 'arrived'
    WORK_STARTED = 'work_started'
    WORK_COMPLETE = 'work_complete'
    DELIVERED = 'delivered'


class Direction(str, Enum):
    INBOUND = 'inbound'
    OUTBOUND = 'outbound'


class PayoutStatus(str, Enum):
    PENDING = 'pending'
    COMPLETED = 'completed'


ACTIVE_ASSIGNMENT_STATUSES = (AssignmentStatus.ASSIGNED.value, AssignmentStatus.IN_PROGRESS.value)


def values(enum_cls):
    return [member.value for member in enum_cls]
