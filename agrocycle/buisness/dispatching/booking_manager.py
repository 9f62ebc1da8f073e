"""
BookingManager - Domain service for the booking lifecycle

Creates bookings from the price-table estimate and applies booking status
transitions through BookingStateMachine, narrating each one on the
booking's timeline.
"""

from datetime import date
from typing import Optional, TYPE_CHECKING
from agrocycle import db
from agrocycle.buisness.core.event_context import EventContext
from agrocycle.buisness.core.guarded_update import guarded_update
from agrocycle.buisness.dispatching.errors import ConcurrencyConflict, PreconditionFailed, ValidationError
from agrocycle.buisness.dispatching.narrator import FulfillmentNarrator
from agrocycle.buisness.dispatching.state_machine import BookingStateMachine
from agrocycle.buisness.pricing.price_table import PriceTable
from agrocycle.data.dispatching.booking import Booking
from agrocycle.logger import get_logger

if TYPE_CHECKING:
    from agrocycle.buisness.dispatching.context import FulfillmentContext

logger = get_logger("agrocycle.domain.dispatching.booking_manager")


def _parse_date(value) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"harvest_end_date must be an ISO date, got {value!r}")


class BookingManager:
    """
    Domain service for booking operations.

    Responsibilities:
    - Create bookings with the price-table estimate
    - Transition Booking.status via BookingStateMachine
    - Emit machine-generated timeline comments via FulfillmentNarrator
    """

    def __init__(self, ctx: 'FulfillmentContext'):
        self.ctx = ctx

    @property
    def booking(self) -> Booking:
        return self.ctx.booking

    @staticmethod
    def create(
        farmer_id: int,
        crop_type: str,
        area_in_acres,
        farm_plot_id: Optional[int] = None,
        harvest_end_date=None,
        preferred_pickup_window: Optional[str] = None,
        farmer_notes: Optional[str] = None,
    ) -> Booking:
        """
        Create a pending booking with its estimate and timeline event.
        Flushes; the caller commits.
        """
        if not farmer_id:
            raise ValidationError("farmer_id is required")

        estimate = PriceTable.estimate(crop_type, area_in_acres)

        booking = Booking(
            farmer_id=farmer_id,
            farm_plot_id=farm_plot_id,
            crop_type=estimate.crop_type,
            area_in_acres=estimate.area_in_acres,
            estimated_tonnes=estimate.estimated_tonnes,
            estimated_price=estimate.estimated_price,
            harvest_end_date=_parse_date(harvest_end_date),
            preferred_pickup_window=preferred_pickup_window,
            farmer_notes=farmer_notes,
            status=BookingStateMachine.PENDING,
            created_by_id=farmer_id,
            updated_by_id=farmer_id,
        )
        db.session.add(booking)
        db.session.flush()

        booking.create_event()
        db.session.flush()
        EventContext(booking.event_id).add_comment(
            farmer_id, FulfillmentNarrator.booking_created(booking), is_human_made=False
        )
        logger.info(
            f"Booking {booking.id} created for farmer {farmer_id}: "
            f"{estimate.estimated_tonnes} t {estimate.crop_type}"
        )
        return booking

    def set_status(
        self,
        actor_id: int,
        new_status: str,
        reason: Optional[str] = None,
        skip_comment: bool = False,
    ) -> None:
        """
        Transition Booking.status, conditional on the stored status still
        being the one this context read.

        Raises:
            InvalidTransition: If transition is invalid
            ConcurrencyConflict: the booking was moved by a concurrent writer
        """
        old_status = self.booking.status
        BookingStateMachine.validate_transition(old_status, new_status)

        applied = guarded_update(
            Booking,
            self.booking.id,
            [Booking.status == old_status],
            {'status': new_status, 'updated_by_id': actor_id},
        )
        if not applied:
            logger.info(f"Booking {self.booking.id} left {old_status} before the move to {new_status}")
            raise ConcurrencyConflict(
                f"Booking {self.booking.id} was updated concurrently; reload and retry"
            )

        event = self.ctx.event
        if event is not None:
            event.status = new_status
            if not skip_comment:
                EventContext(event).add_comment(
                    actor_id,
                    FulfillmentNarrator.status_changed(old_status, new_status, reason),
                    is_human_made=False,
                )

    def confirm(self, actor_id: int) -> None:
        """Hub acknowledges the booking (pending → confirmed)"""
        if self.booking.status != BookingStateMachine.PENDING:
            raise PreconditionFailed(
                f"Booking {self.booking.id} is {self.booking.status}; only pending bookings can be confirmed"
            )
        self.set_status(actor_id, BookingStateMachine.CONFIRMED, skip_comment=True)
        self.ctx.add_comment(actor_id, FulfillmentNarrator.booking_confirmed())
        db.session.flush()

    def cancel(self, actor_id: int, reason: Optional[str] = None) -> None:
        """
        Cancel a booking that has not been scheduled yet.

        Raises:
            PreconditionFailed: booking is scheduled or beyond
        """
        if self.booking.status not in BookingStateMachine.CANCELLABLE:
            raise PreconditionFailed(
                f"Booking {self.booking.id} is {self.booking.status}; "
                f"only pending or confirmed bookings can be cancelled",
                reason='booking_not_cancellable',
            )
        self.set_status(actor_id, BookingStateMachine.CANCELLED, skip_comment=True)
        self.booking.cancellation_reason = reason
        self.ctx.add_comment(actor_id, FulfillmentNarrator.booking_cancelled(reason))
        db.session.flush()
        logger.info(f"Booking {self.booking.id} cancelled by {actor_id}")
