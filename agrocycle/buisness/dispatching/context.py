"""
FulfillmentContext - Domain Facade for the pickup booking aggregate

Acts as the aggregate controller and provides an intention-revealing interface
for fulfillment operations. Delegates mutation work to BookingManager,
DispatchAssigner, OperatorTracker and CompletionReconciler. Each operation is
one transaction: committed on success, rolled back on any error.
"""

from typing import Any, Dict, List, Optional
from agrocycle import db
from agrocycle.buisness.core.event_context import EventContext
from agrocycle.buisness.core.unit_of_work import transaction
from agrocycle.buisness.dispatching.booking_manager import BookingManager
from agrocycle.buisness.dispatching.completion_reconciler import CompletionReconciler
from agrocycle.buisness.dispatching.dispatch_assigner import DispatchAssigner
from agrocycle.buisness.dispatching.errors import ConcurrencyConflict, EntityNotFound, PreconditionFailed
from agrocycle.buisness.dispatching.operator_tracker import OperatorTracker
from agrocycle.data.core.event_info.event import Event
from agrocycle.data.dispatching.assignment import Assignment
from agrocycle.data.dispatching.booking import Booking


def _assignment_conflict(exc):
    return ConcurrencyConflict(
        "Booking or vehicle already holds an active assignment; reload and retry"
    )


class FulfillmentContext:
    """
    Domain Facade for the booking aggregate.

    Holds the booking, its timeline event and its assignments. Exposes an
    intention-revealing interface and delegates mutation work to managers.

    Pattern: Domain Facade / Aggregate Controller
    """

    def __init__(self, booking_id: Optional[int] = None, booking: Optional[Booking] = None):
        """
        Initialize context from booking_id or booking object.

        Raises:
            EntityNotFound: booking does not exist
        """
        if booking is not None:
            self.booking = booking
            self.booking_id = booking.id
        elif booking_id is not None:
            self.booking = db.session.get(Booking, booking_id)
            if self.booking is None:
                raise EntityNotFound(f"Booking {booking_id} not found")
            self.booking_id = booking_id
        else:
            raise ValueError("Either booking_id or booking must be provided")

        self.estimated_completion_minutes = None
        self._build()

        self.booking_manager = BookingManager(self)
        self.assigner = DispatchAssigner(self)
        self.tracker = OperatorTracker(self)
        self.reconciler = CompletionReconciler(self)

    def _build(self) -> None:
        """Load the event and assignments for the booking."""
        self.event = db.session.get(Event, self.booking.event_id) if self.booking.event_id else None
        self.assignments = (
            Assignment.query.filter_by(booking_id=self.booking_id)
            .order_by(Assignment.assigned_at.asc(), Assignment.id.asc())
            .all()
        )
        self.active_assignment = next((a for a in self.assignments if a.is_active), None)

    @classmethod
    def load(cls, booking_id: int) -> 'FulfillmentContext':
        return cls(booking_id=booking_id)

    @classmethod
    def from_booking(cls, booking: Booking) -> 'FulfillmentContext':
        return cls(booking=booking)

    @classmethod
    def for_assignment(cls, assignment_id: int) -> 'FulfillmentContext':
        """
        Load the context of the booking an assignment belongs to.

        Raises:
            EntityNotFound: assignment does not exist
        """
        assignment = db.session.get(Assignment, assignment_id)
        if assignment is None:
            raise EntityNotFound(f"Assignment {assignment_id} not found")
        return cls(booking_id=assignment.booking_id)

    @classmethod
    def create_booking(cls, farmer_id: int, crop_type: str, area_in_acres, **fields) -> 'FulfillmentContext':
        """
        Create a pending booking priced from the price table.

        Returns:
            FulfillmentContext: context of the new booking
        """
        with transaction():
            booking = BookingManager.create(farmer_id, crop_type, area_in_acres, **fields)
        return cls(booking=booking)

    # ========== Read Model Helpers ==========

    def get_assignment(self, assignment_id: int) -> Assignment:
        for assignment in self.assignments:
            if assignment.id == assignment_id:
                return assignment
        raise EntityNotFound(f"Assignment {assignment_id} not found on booking {self.booking_id}")

    def require_active_assignment(self) -> Assignment:
        if self.active_assignment is None:
            raise PreconditionFailed(
                f"Booking {self.booking_id} has no active assignment", reason='no_active_assignment'
            )
        return self.active_assignment

    @property
    def event_context(self) -> Optional[EventContext]:
        return EventContext(self.event) if self.event is not None else None

    def add_comment(self, actor_id: int, content: str, is_human_made: bool = False) -> None:
        if self.event is not None:
            EventContext(self.event).add_comment(actor_id, content, is_human_made=is_human_made)

    # ========== Booking Lifecycle Operations ==========

    def confirm(self, actor_id: int) -> 'FulfillmentContext':
        with transaction():
            self.booking_manager.confirm(actor_id)
        self._build()
        return self

    def cancel(self, actor_id: int, reason: Optional[str] = None) -> 'FulfillmentContext':
        with transaction():
            self.booking_manager.cancel(actor_id, reason)
        self._build()
        return self

    def comment(self, actor_id: int, content: str) -> 'FulfillmentContext':
        """Add a human comment to the booking timeline"""
        with transaction():
            self.add_comment(actor_id, content, is_human_made=True)
        return self

    # ========== Dispatch Operations ==========

    def assign(
        self,
        actor_id: int,
        baler_vehicle_id: int,
        truck_vehicle_id: Optional[int] = None,
    ) -> 'FulfillmentContext':
        """
        Assign equipment to the booking. The estimated completion time is
        left on `estimated_completion_minutes`.
        """
        with transaction(on_conflict=_assignment_conflict):
            _, minutes = self.assigner.assign(actor_id, baler_vehicle_id, truck_vehicle_id)
        self.estimated_completion_minutes = minutes
        self._build()
        return self

    def unassign(self, actor_id: int, reason: Optional[str] = None,
                 assignment_id: Optional[int] = None) -> 'FulfillmentContext':
        with transaction():
            assignment = (
                self.get_assignment(assignment_id) if assignment_id is not None
                else self.require_active_assignment()
            )
            self.assigner.unassign(actor_id, assignment, reason)
        self._build()
        return self

    def reassign(
        self,
        actor_id: int,
        baler_vehicle_id: int,
        truck_vehicle_id: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> 'FulfillmentContext':
        """Unassign the active assignment and assign new equipment in one transaction."""
        with transaction(on_conflict=_assignment_conflict):
            self.assigner.unassign(actor_id, self.require_active_assignment(), reason)
            _, minutes = self.assigner.assign(actor_id, baler_vehicle_id, truck_vehicle_id)
        self.estimated_completion_minutes = minutes
        self._build()
        return self

    # ========== Operator Operations ==========

    def advance(
        self,
        assignment_id: int,
        next_status: str,
        actor_vehicle_id: int,
        report: Optional[Dict[str, Any]] = None,
        reason: Optional[str] = None,
    ) -> 'FulfillmentContext':
        with transaction():
            self.tracker.advance(self.get_assignment(assignment_id), next_status,
                                 actor_vehicle_id, report=report, reason=reason)
        self._build()
        return self

    def update_report(self, assignment_id: int, actor_vehicle_id: int,
                      report: Dict[str, Any]) -> 'FulfillmentContext':
        with transaction():
            self.tracker.update_report(self.get_assignment(assignment_id), actor_vehicle_id, report)
        self._build()
        return self

    # ========== Hub Review ==========

    def approve(
        self,
        actor_id: int,
        assignment_id: int,
        final_quantity_tonnes,
        notes: Optional[str] = None,
    ) -> 'FulfillmentContext':
        with transaction():
            self.reconciler.approve(actor_id, self.get_assignment(assignment_id),
                                    final_quantity_tonnes, notes=notes)
        self._build()
        return self

    # ========== Summary ==========

    def timeline(self) -> List[dict]:
        return self.event_context.timeline() if self.event is not None else []

    def get_summary(self, include_timeline: bool = True) -> Dict[str, Any]:
        summary = {
            'booking': self.booking.to_dict(),
            'active_assignment': self.active_assignment.to_dict() if self.active_assignment else None,
            'assignments': [a.to_dict() for a in self.assignments],
        }
        if self.estimated_completion_minutes is not None:
            summary['estimated_completion_minutes'] = self.estimated_completion_minutes
        if include_timeline:
            summary['timeline'] = self.timeline()
        return summary
