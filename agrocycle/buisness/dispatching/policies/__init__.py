"""
Policy classes for fulfillment business rules

Policies are composable validation rules that enforce business invariants.
They raise domain exceptions when violations are detected.
"""

from agrocycle.buisness.dispatching.policies.booking_assignability import BookingAssignabilityPolicy
from agrocycle.buisness.dispatching.policies.vehicle_capability import VehicleCapabilityPolicy
from agrocycle.buisness.dispatching.policies.operator_actor import OperatorActorPolicy
from agrocycle.buisness.dispatching.policies.completion_report import CompletionReportPolicy

__all__ = [
    'BookingAssignabilityPolicy',
    'VehicleCapabilityPolicy',
    'OperatorActorPolicy',
    'CompletionReportPolicy',
]
