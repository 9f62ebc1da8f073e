"""
DispatchAssigner - Domain service binding a booking to field equipment

Creates and cancels assignments. Vehicle availability is claimed with a
conditional UPDATE in the same transaction as the assignment insert, and
the partial unique indexes on assignments back up both exclusivity rules.
"""

from datetime import datetime
from typing import Optional, Tuple, TYPE_CHECKING
from agrocycle import db
from agrocycle.buisness.core.guarded_update import guarded_update
from agrocycle.buisness.dispatching.errors import ConcurrencyConflict, InvalidTransition, PreconditionFailed
from agrocycle.buisness.dispatching.narrator import FulfillmentNarrator
from agrocycle.buisness.dispatching.policies import BookingAssignabilityPolicy, VehicleCapabilityPolicy
from agrocycle.buisness.dispatching.state_machine import AssignmentStateMachine, BookingStateMachine
from agrocycle.buisness.dispatching.vehicle_registry import VehicleRegistry
from agrocycle.data.dispatching.assignment import Assignment
from agrocycle.data.dispatching.statuses import ACTIVE_ASSIGNMENT_STATUSES
from agrocycle.logger import get_logger

if TYPE_CHECKING:
    from agrocycle.buisness.dispatching.context import FulfillmentContext

logger = get_logger("agrocycle.domain.dispatching.dispatch_assigner")


class DispatchAssigner:
    """
    Domain service for assignment creation and hub-initiated cancellation.

    Responsibilities:
    - Check booking assignability and vehicle capability
    - Claim vehicles and insert the assignment
    - Schedule the booking, or send it back to pending on unassign
    """

    def __init__(self, ctx: 'FulfillmentContext'):
        self.ctx = ctx

    def assign(
        self,
        actor_id: int,
        baler_vehicle_id: int,
        truck_vehicle_id: Optional[int] = None,
    ) -> Tuple[Assignment, Optional[float]]:
        """
        Assign a baler (and optionally a truck) to the booking.

        Args:
            actor_id: Hub manager making the assignment
            baler_vehicle_id: Vehicle acting as baler
            truck_vehicle_id: Optional vehicle acting as truck

        Returns:
            tuple: (assignment, estimated completion minutes)

        Raises:
            BookingNotAssignable: booking status or existing active assignment
            NoCapability: vehicle type does not fit its role
            VehicleUnavailable: vehicle busy at commit time
        """
        booking = self.ctx.booking
        BookingAssignabilityPolicy.check(booking)

        baler = VehicleRegistry.get(baler_vehicle_id)
        truck = VehicleRegistry.get(truck_vehicle_id) if truck_vehicle_id is not None else None
        VehicleCapabilityPolicy.check(baler, truck)

        if truck is not None and truck.hub_id != baler.hub_id:
            raise PreconditionFailed(
                f"Truck {truck.id} belongs to hub {truck.hub_id}, baler {baler.id} to hub {baler.hub_id}",
                reason='hub_mismatch',
            )

        # Re-checked by the database, not by the reads above
        VehicleRegistry.claim(baler.id)
        if truck is not None:
            VehicleRegistry.claim(truck.id)

        assignment = Assignment(
            booking_id=booking.id,
            baler_vehicle_id=baler.id,
            truck_vehicle_id=truck.id if truck is not None else None,
            hub_id=baler.hub_id,
            status=AssignmentStateMachine.ASSIGNED,
            assigned_at=datetime.utcnow(),
            created_by_id=actor_id,
            updated_by_id=actor_id,
        )
        db.session.add(assignment)
        db.session.flush()

        booking.hub_id = baler.hub_id
        if self.ctx.event is not None:
            self.ctx.event.hub_id = baler.hub_id
        self.ctx.booking_manager.set_status(actor_id, BookingStateMachine.SCHEDULED, skip_comment=True)

        estimated_minutes = None
        if baler.time_per_tonne is not None:
            estimated_minutes = round(baler.time_per_tonne * booking.estimated_tonnes, 2)

        self.ctx.add_comment(actor_id, FulfillmentNarrator.assigned(assignment, estimated_minutes))
        db.session.flush()

        logger.info(
            f"Assignment {assignment.id} created for booking {booking.id}: "
            f"baler={baler.id} truck={assignment.truck_vehicle_id}"
        )
        return assignment, estimated_minutes

    def unassign(self, actor_id: int, assignment: Assignment, reason: Optional[str] = None) -> Assignment:
        """
        Cancel an active assignment before the operator reports work complete.

        Raises:
            InvalidTransition: assignment is not active
            PreconditionFailed: operator already reached work_complete
        """
        if assignment.booking_id != self.ctx.booking.id:
            raise PreconditionFailed(
                f"Assignment {assignment.id} does not belong to booking {self.ctx.booking.id}"
            )
        AssignmentStateMachine.validate_transition(assignment.status, AssignmentStateMachine.CANCELLED)
        if not AssignmentStateMachine.can_cancel(assignment):
            raise PreconditionFailed(
                f"Assignment {assignment.id} is {assignment.operator_status}; "
                f"completed work must be approved, not unassigned",
                reason='work_already_reported',
            )

        cancelled = guarded_update(
            Assignment,
            assignment.id,
            [
                Assignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
                Assignment.operator_status.notin_(sorted(AssignmentStateMachine.LOCKED_OPERATOR_STATUSES)),
            ],
            {
                'status': AssignmentStateMachine.CANCELLED,
                'cancelled_reason': reason,
                'updated_by_id': actor_id,
            },
        )
        if not cancelled:
            raise ConcurrencyConflict(
                f"Assignment {assignment.id} changed while being unassigned; reload and retry"
            )

        VehicleRegistry.release(assignment.vehicle_ids)
        self.revert_booking(actor_id)
        self.ctx.add_comment(actor_id, FulfillmentNarrator.unassigned(assignment, reason))
        db.session.flush()

        logger.info(f"Assignment {assignment.id} unassigned by {actor_id}")
        return assignment

    def revert_booking(self, actor_id: int) -> None:
        booking = self.ctx.booking
        if booking.status == BookingStateMachine.PENDING:
            return
        if booking.status not in (BookingStateMachine.SCHEDULED, BookingStateMachine.IN_PROGRESS):
            raise InvalidTransition(
                f"Booking {booking.id} is {booking.status} and cannot return to pending"
            )
        self.ctx.booking_manager.set_status(actor_id, BookingStateMachine.PENDING, skip_comment=True)
