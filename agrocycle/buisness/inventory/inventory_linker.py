"""
InventoryLinker - hub stock movements

Turns a completed assignment into exactly one inbound entry, records manual
movements, and computes stock from the movement log. Stock is never stored.
"""

from __future__ import annotations

from sqlalchemy import case, func
from agrocycle import db
from agrocycle.buisness.core.unit_of_work import transaction
from agrocycle.buisness.dispatching.completion_reconciler import clean_quantity
from agrocycle.buisness.dispatching.context import FulfillmentContext
from agrocycle.buisness.dispatching.errors import (
    EntityNotFound,
    InboundAlreadyRecorded,
    InsufficientStock,
    PreconditionFailed,
    ValidationError,
)
from agrocycle.buisness.dispatching.narrator import FulfillmentNarrator
from agrocycle.buisness.dispatching.state_machine import AssignmentStateMachine
from agrocycle.data.core.hub import Hub
from agrocycle.data.dispatching.assignment import Assignment
from agrocycle.data.dispatching.statuses import Direction, values
from agrocycle.data.inventory.inventory_entry import InventoryEntry
from agrocycle.logger import get_logger

logger = get_logger("agrocycle.domain.inventory.inventory_linker")


def _round_tonnes(value) -> float:
    return round(float(value or 0), 2)


class InventoryLinker:
    """
    Core inventory operations.

    Responsibilities:
    - One inbound entry per completed assignment (unique source_assignment_id)
    - Manual inbound/outbound entries with no idempotency key
    - Stock computed by aggregate query over the entries
    """

    @classmethod
    def record_inbound(
        cls,
        assignment_id: int,
        quantity_tonnes=None,
        notes: str | None = None,
        *,
        actor_id: int | None = None,
        storage_location: str | None = None,
        counterparty_name: str | None = None,
    ) -> InventoryEntry:
        """
        Record the collection of a completed assignment into its hub's stock.

        Raises:
            EntityNotFound: assignment does not exist
            PreconditionFailed: assignment is not completed
            InboundAlreadyRecorded: an entry already exists (carries it)
        """
        def conflict(exc):
            existing = cls.find_inbound(assignment_id)
            return InboundAlreadyRecorded(
                f"Inbound for assignment {assignment_id} was already recorded", existing=existing
            )

        with transaction(on_conflict=conflict):
            assignment = db.session.get(Assignment, assignment_id)
            if assignment is None:
                raise EntityNotFound(f"Assignment {assignment_id} not found")
            if assignment.status != AssignmentStateMachine.COMPLETED:
                raise PreconditionFailed(
                    f"Assignment {assignment_id} is {assignment.status}; only completed assignments enter stock",
                    reason='assignment_not_completed',
                )

            existing = cls.find_inbound(assignment_id)
            if existing is not None:
                raise InboundAlreadyRecorded(
                    f"Inbound for assignment {assignment_id} was already recorded as entry {existing.id}",
                    existing=existing,
                )

            quantity = clean_quantity(
                quantity_tonnes if quantity_tonnes is not None else assignment.actual_quantity_tonnes,
                field='quantity_tonnes',
            )
            booking = assignment.booking
            entry = InventoryEntry(
                hub_id=assignment.hub_id,
                direction=Direction.INBOUND.value,
                quantity_tonnes=quantity,
                source_assignment_id=assignment.id,
                counterparty_name=counterparty_name or f"Farmer #{booking.farmer_id}",
                vehicle_number=assignment.baler.vehicle_number if assignment.baler else None,
                notes=notes,
                farmer_id=booking.farmer_id,
                booking_id=booking.id,
                storage_location=storage_location,
                created_by_id=actor_id,
                updated_by_id=actor_id,
            )
            db.session.add(entry)
            db.session.flush()

            FulfillmentContext.from_booking(booking).add_comment(
                actor_id, FulfillmentNarrator.inbound_recorded(entry)
            )

        logger.info(f"Inbound entry {entry.id}: {quantity} t from assignment {assignment_id} at hub {entry.hub_id}")
        return entry

    @classmethod
    def record_manual(
        cls,
        hub_id: int,
        quantity_tonnes,
        counterparty_name: str,
        direction: str = Direction.INBOUND.value,
        vehicle_number: str | None = None,
        notes: str | None = None,
        *,
        actor_id: int | None = None,
        storage_location: str | None = None,
        sale_price=None,
    ) -> InventoryEntry:
        """
        Record stock not sourced from a tracked pickup, or stock leaving the hub.

        Raises:
            ValidationError: bad direction, counterparty or quantity
            InsufficientStock: outbound exceeds current stock
        """
        if direction not in values(Direction):
            raise ValidationError(f"direction must be one of {', '.join(values(Direction))}")
        if not counterparty_name or not str(counterparty_name).strip():
            raise ValidationError("counterparty_name is required")
        quantity = clean_quantity(quantity_tonnes, field='quantity_tonnes')
        if sale_price is not None:
            try:
                sale_price = float(sale_price)
            except (TypeError, ValueError):
                raise ValidationError("sale_price must be a number")
            if sale_price < 0:
                raise ValidationError("sale_price must not be negative")

        with transaction():
            if db.session.get(Hub, hub_id) is None:
                raise EntityNotFound(f"Hub {hub_id} not found")

            if direction == Direction.OUTBOUND.value:
                available = cls.current_stock(hub_id)
                if quantity > available:
                    raise InsufficientStock(
                        f"Hub {hub_id} holds {available} t; cannot send out {quantity} t"
                    )

            entry = InventoryEntry(
                hub_id=hub_id,
                direction=direction,
                quantity_tonnes=quantity,
                counterparty_name=str(counterparty_name).strip(),
                vehicle_number=vehicle_number,
                notes=notes,
                storage_location=storage_location,
                sale_price=sale_price,
                created_by_id=actor_id,
                updated_by_id=actor_id,
            )
            db.session.add(entry)
            db.session.flush()

        logger.info(f"Manual {direction} entry {entry.id}: {quantity} t at hub {hub_id}")
        return entry

    @staticmethod
    def find_inbound(assignment_id: int) -> InventoryEntry | None:
        return InventoryEntry.query.filter_by(source_assignment_id=assignment_id).first()

    @staticmethod
    def _signed_quantity():
        return case(
            (InventoryEntry.direction == Direction.INBOUND.value, InventoryEntry.quantity_tonnes),
            else_=-InventoryEntry.quantity_tonnes,
        )

    @classmethod
    def current_stock(cls, hub_id: int) -> float:
        """Σ inbound − Σ outbound for the hub"""
        total = db.session.query(
            func.coalesce(func.sum(cls._signed_quantity()), 0.0)
        ).filter(InventoryEntry.hub_id == hub_id).scalar()
        return _round_tonnes(total)

    @classmethod
    def stock_summary(cls, hub_id: int) -> dict:
        inbound = func.sum(case(
            (InventoryEntry.direction == Direction.INBOUND.value, InventoryEntry.quantity_tonnes), else_=0.0
        ))
        outbound = func.sum(case(
            (InventoryEntry.direction == Direction.OUTBOUND.value, InventoryEntry.quantity_tonnes), else_=0.0
        ))
        from_pickups = func.sum(case(
            (InventoryEntry.source_assignment_id.isnot(None), InventoryEntry.quantity_tonnes), else_=0.0
        ))
        row = db.session.query(
            inbound, outbound, from_pickups, func.count(InventoryEntry.id)
        ).filter(InventoryEntry.hub_id == hub_id).one()

        total_inbound, total_outbound, pickup_inbound, entry_count = row
        return {
            'hub_id': hub_id,
            'total_inbound_tonnes': _round_tonnes(total_inbound),
            'total_outbound_tonnes': _round_tonnes(total_outbound),
            'inbound_from_pickups_tonnes': _round_tonnes(pickup_inbound),
            'current_stock_tonnes': _round_tonnes((total_inbound or 0) - (total_outbound or 0)),
            'entry_count': entry_count,
        }

    @staticmethod
    def list_entries(hub_id: int, direction: str | None = None, limit: int = 100) -> list:
        query = InventoryEntry.query.filter_by(hub_id=hub_id)
        if direction is not None:
            query = query.filter_by(direction=direction)
        return query.order_by(InventoryEntry.created_at.desc(), InventoryEntry.id.desc()).limit(limit).all()
