"""
Dispatching business layer.

Main entry point: FulfillmentContext (domain facade)

- FulfillmentContext: Domain facade / aggregate controller for a booking
- BookingManager: Booking lifecycle operations
- DispatchAssigner: Assign / unassign equipment
- OperatorTracker: Operator status track and completion report
- CompletionReconciler: Hub approval of reported work
- VehicleRegistry: Vehicle availability and capability
- State machines: Booking, assignment and operator transitions
- Policies: Business rule validation
- FulfillmentNarrator: Comment generation
"""

from agrocycle.buisness.dispatching.context import FulfillmentContext
from agrocycle.buisness.dispatching.booking_manager import BookingManager
from agrocycle.buisness.dispatching.dispatch_assigner import DispatchAssigner
from agrocycle.buisness.dispatching.operator_tracker import OperatorTracker
from agrocycle.buisness.dispatching.completion_reconciler import CompletionReconciler
from agrocycle.buisness.dispatching.vehicle_registry import VehicleRegistry
from agrocycle.buisness.dispatching.errors import (
    FulfillmentDomainError,
    PreconditionFailed,
    ConcurrencyConflict,
    AlreadyProcessed,
    ValidationError,
    ActorNotPermitted,
    EntityNotFound,
)

__all__ = [
    'FulfillmentContext',
    'BookingManager',
    'DispatchAssigner',
    'OperatorTracker',
    'CompletionReconciler',
    'VehicleRegistry',
    'FulfillmentDomainError',
    'PreconditionFailed',
    'ConcurrencyConflict',
    'AlreadyProcessed',
    'ValidationError',
    'ActorNotPermitted',
    'EntityNotFound',
]
