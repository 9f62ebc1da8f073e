"""
State machines for booking, assignment and operator lifecycles

Encodes valid transitions and provides guard hooks.
Keeps "what is allowed" separate from "how persistence occurs".
"""

from typing import Dict, Optional, Set, TYPE_CHECKING
from agrocycle.buisness.dispatching.errors import InvalidTransition
from agrocycle.data.dispatching.statuses import AssignmentStatus, BookingStatus, OperatorStatus

if TYPE_CHECKING:
    from agrocycle.data.dispatching.assignment import Assignment


class _TransitionTable:
    """Shared can/validate/allowed helpers over a TRANSITIONS table"""

    NAME = 'status'
    TERMINAL_STATES: Set[str] = set()
    TRANSITIONS: Dict[str, Set[str]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        if from_status in cls.TERMINAL_STATES:
            return False
        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """
        Validate transition and raise exception if invalid.

        Raises:
            InvalidTransition: naming the allowed successors
        """
        if not cls.can_transition(from_status, to_status):
            allowed = sorted(cls.get_allowed_transitions(from_status))
            raise InvalidTransition(
                f"Invalid {cls.NAME} transition: {from_status} → {to_status}; "
                f"allowed: {', '.join(allowed) if allowed else 'none'}"
            )

    @classmethod
    def get_allowed_transitions(cls, from_status: str) -> Set[str]:
        """Get set of allowed target statuses from current status"""
        if from_status in cls.TERMINAL_STATES:
            return set()
        return set(cls.TRANSITIONS.get(from_status, set()))


class BookingStateMachine(_TransitionTable):
    """
    State machine for Booking.status.

    Only the dispatch assigner schedules a booking and only the completion
    reconciler completes one. Unassign and operator rejection send a
    scheduled booking back to pending.
    """

    NAME = 'booking'

    PENDING = BookingStatus.PENDING.value
    CONFIRMED = BookingStatus.CONFIRMED.value
    SCHEDULED = BookingStatus.SCHEDULED.value
    IN_PROGRESS = BookingStatus.IN_PROGRESS.value
    COMPLETED = BookingStatus.COMPLETED.value
    CANCELLED = BookingStatus.CANCELLED.value

    ASSIGNABLE = {PENDING, CONFIRMED}
    CANCELLABLE = {PENDING, CONFIRMED}

    TERMINAL_STATES = {COMPLETED, CANCELLED}

    TRANSITIONS: Dict[str, Set[str]] = {
        PENDING: {CONFIRMED, SCHEDULED, CANCELLED},
        CONFIRMED: {SCHEDULED, CANCELLED},
        SCHEDULED: {PENDING, IN_PROGRESS, COMPLETED},
        IN_PROGRESS: {PENDING, COMPLETED},
    }


class AssignmentStateMachine(_TransitionTable):
    """
    State machine for the hub-facing Assignment.status.

    The hub track is cross-checked against the operator track: completion
    requires the operator to have reached work_complete.
    """

    NAME = 'assignment'

    ASSIGNED = AssignmentStatus.ASSIGNED.value
    IN_PROGRESS = AssignmentStatus.IN_PROGRESS.value
    COMPLETED = AssignmentStatus.COMPLETED.value
    CANCELLED = AssignmentStatus.CANCELLED.value

    TERMINAL_STATES = {COMPLETED, CANCELLED}

    TRANSITIONS: Dict[str, Set[str]] = {
        ASSIGNED: {IN_PROGRESS, COMPLETED, CANCELLED},
        IN_PROGRESS: {COMPLETED, CANCELLED},
    }

    # Operator stages at which the hub may approve completion
    APPROVABLE_OPERATOR_STATUSES = {
        OperatorStatus.WORK_COMPLETE.value,
        OperatorStatus.DELIVERED.value,
    }

    # Operator stages after which the hub may no longer unassign
    LOCKED_OPERATOR_STATUSES = APPROVABLE_OPERATOR_STATUSES

    @classmethod
    def can_complete(cls, assignment: 'Assignment') -> bool:
        return (
            cls.can_transition(assignment.status, cls.COMPLETED)
            and assignment.operator_status in cls.APPROVABLE_OPERATOR_STATUSES
        )

    @classmethod
    def can_cancel(cls, assignment: 'Assignment') -> bool:
        return (
            cls.can_transition(assignment.status, cls.CANCELLED)
            and assignment.operator_status not in cls.LOCKED_OPERATOR_STATUSES
        )


class OperatorStateMachine(_TransitionTable):
    """
    State machine for Assignment.operator_status.

    Strictly linear; each step only accepts its immediate successor.
    Rejection is only possible before accepting.
    """

    NAME = 'operator'

    PENDING = OperatorStatus.PENDING.value
    ACCEPTED = OperatorStatus.ACCEPTED.value
    REJECTED = OperatorStatus.REJECTED.value
    EN_ROUTE = OperatorStatus.EN_ROUTE.value
    ARRIVED = OperatorStatus.ARRIVED.value
    WORK_STARTED = OperatorStatus.WORK_STARTED.value
    WORK_COMPLETE = OperatorStatus.WORK_COMPLETE.value
    DELIVERED = OperatorStatus.DELIVERED.value

    ORDER = [PENDING, ACCEPTED, EN_ROUTE, ARRIVED, WORK_STARTED, WORK_COMPLETE, DELIVERED]

    TERMINAL_STATES = {REJECTED, DELIVERED}

    TRANSITIONS: Dict[str, Set[str]] = {
        PENDING: {ACCEPTED, REJECTED},
        ACCEPTED: {EN_ROUTE},
        EN_ROUTE: {ARRIVED},
        ARRIVED: {WORK_STARTED},
        WORK_STARTED: {WORK_COMPLETE},
        WORK_COMPLETE: {DELIVERED},
    }

    # Timestamp column stamped on entering each stage
    TIMESTAMP_FIELDS = {
        ACCEPTED: 'accepted_at',
        EN_ROUTE: 'en_route_at',
        ARRIVED: 'arrived_at',
        WORK_STARTED: 'work_started_at',
        WORK_COMPLETE: 'work_completed_at',
        DELIVERED: 'delivered_at',
    }

    @classmethod
    def next_status(cls, from_status: str) -> Optional[str]:
        """The forward successor of from_status, or None at the end"""
        if from_status not in cls.ORDER:
            return None
        index = cls.ORDER.index(from_status)
        if index + 1 >= len(cls.ORDER):
            return None
        return cls.ORDER[index + 1]

    @classmethod
    def has_reached(cls, current: str, stage: str) -> bool:
        if current not in cls.ORDER:
            return False
        return cls.ORDER.index(current) >= cls.ORDER.index(stage)

    @classmethod
    def report_editable(cls, current: str) -> bool:
        return current in cls.ORDER and not cls.has_reached(current, cls.WORK_COMPLETE)
