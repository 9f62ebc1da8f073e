"""
FulfillmentNarrator - Comment composer for pickup lifecycle events

Ensures every transition produces a consistent machine-generated comment.
Separates audit narrative formatting from transition logic.
"""

from typing import Optional


class FulfillmentNarrator:
    """
    Composes machine-generated comments for pickup lifecycle events.

    All methods return comment text that should be added to the booking Event
    with is_human_made=False.
    """

    @staticmethod
    def booking_created(booking) -> str:
        return (
            f"Booking created (ID: {booking.id}) | {booking.crop_type}, {booking.area_in_acres} acres | "
            f"Estimate: {booking.estimated_tonnes:.2f} t, ₹{booking.estimated_price:.0f}"
        )

    @staticmethod
    def booking_confirmed() -> str:
        return "Booking confirmed by hub"

    @staticmethod
    def booking_cancelled(reason: Optional[str]) -> str:
        comment = "Booking cancelled"
        if reason:
            comment += f" | Reason: {reason}"
        return comment

    @staticmethod
    def status_changed(from_status: str, to_status: str, reason: Optional[str] = None) -> str:
        """Comment for booking status changes"""
        comment = f"Booking status changed: {from_status} → {to_status}"
        if reason:
            comment += f" | Reason: {reason}"
        return comment

    @staticmethod
    def assigned(assignment, estimated_minutes: Optional[float] = None) -> str:
        comment = f"Assignment {assignment.id} created | Baler: {assignment.baler_vehicle_id}"
        if assignment.truck_vehicle_id:
            comment += f" | Truck: {assignment.truck_vehicle_id}"
        if estimated_minutes is not None:
            comment += f" | Est. {estimated_minutes:.0f} min"
        return comment

    @staticmethod
    def unassigned(assignment, reason: Optional[str]) -> str:
        comment = f"Assignment {assignment.id} cancelled by hub"
        if reason:
            comment += f" | Reason: {reason}"
        return comment

    @staticmethod
    def operator_progress(assignment, from_status: str, to_status: str) -> str:
        return f"Operator update on assignment {assignment.id}: {from_status} → {to_status}"

    @staticmethod
    def operator_rejected(assignment, reason: Optional[str]) -> str:
        comment = f"Operator rejected assignment {assignment.id}"
        if reason:
            comment += f" | Reason: {reason}"
        return comment

    @staticmethod
    def work_reported(assignment) -> str:
        return (
            f"Work complete reported | {assignment.actual_quantity_tonnes} t in "
            f"{assignment.time_required_minutes:.0f} min"
        )

    @staticmethod
    def approved(assignment, booking) -> str:
        comment = (
            f"Completion approved | Final: {booking.actual_tonnes} t, ₹{booking.final_price:.0f}"
        )
        if (assignment.operator_reported_tonnes is not None
                and assignment.operator_reported_tonnes != booking.actual_tonnes):
            comment += f" (operator reported {assignment.operator_reported_tonnes} t)"
        if assignment.hub_notes:
            comment += f" | Notes: {assignment.hub_notes}"
        return comment

    @staticmethod
    def inbound_recorded(entry) -> str:
        return f"Inbound of {entry.quantity_tonnes} t recorded at hub {entry.hub_id} (entry {entry.id})"

    @staticmethod
    def paid(payout) -> str:
        return f"Included in payout {payout.id} | Net payable ₹{payout.net_payable:.2f}"
