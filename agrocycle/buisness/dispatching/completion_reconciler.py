"""
CompletionReconciler - hub approval of reported work

The operator's work_complete report is unverified field data. Approval is
where the hub fixes the weighed quantity, completes the assignment and the
booking, prices the booking and frees the equipment.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, TYPE_CHECKING
from agrocycle import db
from agrocycle.buisness.core.guarded_update import guarded_update
from agrocycle.buisness.dispatching.errors import AlreadyApproved, NotApprovable, ValidationError
from agrocycle.buisness.dispatching.narrator import FulfillmentNarrator
from agrocycle.buisness.dispatching.state_machine import AssignmentStateMachine, BookingStateMachine
from agrocycle.buisness.dispatching.vehicle_registry import VehicleRegistry
from agrocycle.buisness.pricing.price_table import PriceTable, TONNES, to_decimal
from agrocycle.data.dispatching.assignment import Assignment
from agrocycle.data.dispatching.statuses import ACTIVE_ASSIGNMENT_STATUSES
from agrocycle.logger import get_logger

if TYPE_CHECKING:
    from agrocycle.buisness.dispatching.context import FulfillmentContext

logger = get_logger("agrocycle.domain.dispatching.completion_reconciler")


def clean_quantity(value, field='final_quantity_tonnes') -> float:
    """Positive tonnage, kept to 2 d.p."""
    try:
        quantity = to_decimal(value)
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number")
    if not quantity.is_finite() or quantity <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return float(quantity.quantize(TONNES, rounding=ROUND_HALF_UP))


class CompletionReconciler:

    def __init__(self, ctx: 'FulfillmentContext'):
        self.ctx = ctx

    def approve(
        self,
        actor_id: int,
        assignment: Assignment,
        final_quantity_tonnes,
        notes: Optional[str] = None,
    ) -> Assignment:
        """
        Approve reported work with the hub's final quantity.

        Raises:
            ValidationError: quantity not positive
            AlreadyApproved: assignment already completed (carries the assignment)
            NotApprovable: cancelled, or operator has not reached work_complete
        """
        final = clean_quantity(final_quantity_tonnes)
        self._check_approvable(assignment)

        approved = guarded_update(
            Assignment,
            assignment.id,
            [
                Assignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
                Assignment.operator_status.in_(sorted(AssignmentStateMachine.APPROVABLE_OPERATOR_STATUSES)),
            ],
            {
                'status': AssignmentStateMachine.COMPLETED,
                'actual_quantity_tonnes': final,
                'completed_at': datetime.utcnow(),
                'hub_notes': notes,
                'updated_by_id': actor_id,
            },
        )
        if not approved:
            # Lost to a concurrent approval or cancellation
            db.session.refresh(assignment)
            self._check_approvable(assignment)
            raise NotApprovable(f"Assignment {assignment.id} could not be approved")

        booking = self.ctx.booking
        booking.actual_tonnes = final
        booking.final_price = PriceTable.final_price(booking.crop_type, Decimal(str(final)))
        self.ctx.booking_manager.set_status(actor_id, BookingStateMachine.COMPLETED, skip_comment=True)

        VehicleRegistry.release(assignment.vehicle_ids, count_trip=True)
        self.ctx.add_comment(actor_id, FulfillmentNarrator.approved(assignment, booking))
        db.session.flush()

        logger.info(
            f"Assignment {assignment.id} approved at {final} t "
            f"(operator reported {assignment.operator_reported_tonnes} t); "
            f"booking {booking.id} final price {booking.final_price}"
        )
        return assignment

    @staticmethod
    def _check_approvable(assignment: Assignment) -> None:
        if assignment.status == AssignmentStateMachine.COMPLETED:
            raise AlreadyApproved(
                f"Assignment {assignment.id} was already approved", existing=assignment
            )
        if not AssignmentStateMachine.can_complete(assignment):
            raise NotApprovable(
                f"Assignment {assignment.id} is {assignment.status}/{assignment.operator_status}; "
                f"approval needs the operator to report work_complete"
            )
