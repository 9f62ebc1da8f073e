"""
Booking Assignability Policy

A booking may only be handed to equipment while it is pending or confirmed
and has no other active assignment.
"""

from agrocycle.buisness.dispatching.errors import BookingNotAssignable
from agrocycle.buisness.dispatching.state_machine import BookingStateMachine
from agrocycle.data.dispatching.assignment import Assignment
from agrocycle.data.dispatching.statuses import ACTIVE_ASSIGNMENT_STATUSES


class BookingAssignabilityPolicy:

    @classmethod
    def check(cls, booking) -> None:
        """
        Raises:
            BookingNotAssignable: wrong booking status or an active assignment exists
        """
        if booking.status not in BookingStateMachine.ASSIGNABLE:
            raise BookingNotAssignable(
                f"Booking {booking.id} is {booking.status}; only pending or confirmed bookings can be assigned"
            )

        active = cls.find_active_assignment(booking.id)
        if active is not None:
            raise BookingNotAssignable(
                f"Booking {booking.id} already has active assignment {active.id}"
            )

    @staticmethod
    def find_active_assignment(booking_id: int):
        return Assignment.query.filter(
            Assignment.booking_id == booking_id,
            Assignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
        ).first()
