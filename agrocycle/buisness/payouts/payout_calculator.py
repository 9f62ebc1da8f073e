"""
PayoutCalculator - deterministic farmer payouts

All rates are ₹ per tonne. For the total tonnage T of the selected bookings:

    base_amount         = T × base_price
    subsidy             = T × subsidy_rate
    baling_cost         = T × baling_cost_rate
    logistics_deduction = T × logistics_rate
    net_payable         = base_amount + subsidy − baling_cost − logistics_deduction

Amounts use Decimal arithmetic and are rounded half-up to paise. A booking
is paid at most once: payout_bookings.booking_id is unique and
Booking.payout_id is set by a guarded update in the same transaction that
inserts the payout.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping
from agrocycle import db
from agrocycle.buisness.core.event_context import EventContext
from agrocycle.buisness.core.guarded_update import guarded_update
from agrocycle.buisness.core.unit_of_work import transaction
from agrocycle.buisness.dispatching.errors import (
    AlreadyPaid,
    AlreadyProcessed,
    ConcurrencyConflict,
    EntityNotFound,
    NonPositiveNet,
    PreconditionFailed,
    ValidationError,
)
from agrocycle.buisness.dispatching.narrator import FulfillmentNarrator
from agrocycle.buisness.dispatching.state_machine import BookingStateMachine
from agrocycle.buisness.pricing.price_table import TONNES, to_decimal
from agrocycle.data.dispatching.booking import Booking
from agrocycle.data.dispatching.statuses import PayoutStatus
from agrocycle.data.payouts.payout import Payout, PayoutBooking
from agrocycle.logger import get_logger

logger = get_logger("agrocycle.domain.payouts.payout_calculator")

PAISE = Decimal('0.01')

RATE_FIELDS = ('base_price', 'subsidy_rate', 'baling_cost_rate', 'logistics_rate')


def _money(value: Decimal) -> Decimal:
    return value.quantize(PAISE, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PayoutRates:
    base_price: Decimal
    subsidy_rate: Decimal = Decimal('0')
    baling_cost_rate: Decimal = Decimal('0')
    logistics_rate: Decimal = Decimal('0')

    @classmethod
    def from_mapping(cls, data: Mapping, defaults: Mapping | None = None) -> 'PayoutRates':
        """
        Build rates from request data, falling back to configured defaults.

        Raises:
            ValidationError: missing base_price, or a rate that is not a non-negative number
        """
        defaults = defaults or {}
        rates = {}
        for field in RATE_FIELDS:
            raw = data.get(field)
            if raw is None:
                raw = defaults.get(field)
            if raw is None:
                if field == 'base_price':
                    raise ValidationError("base_price is required")
                raw = 0
            if isinstance(raw, bool):
                raise ValidationError(f"{field} must be a number")
            try:
                value = to_decimal(raw)
            except (ArithmeticError, ValueError, TypeError):
                raise ValidationError(f"{field} must be a number")
            if not value.is_finite() or value < 0:
                raise ValidationError(f"{field} must be a non-negative number")
            rates[field] = value
        return cls(**rates)

    def to_dict(self):
        return {field: float(getattr(self, field)) for field in RATE_FIELDS}


@dataclass(frozen=True)
class PayoutBreakdown:
    farmer_id: int
    booking_ids: tuple
    rates: PayoutRates
    total_quantity_tonnes: Decimal
    base_amount: Decimal
    subsidy: Decimal
    baling_cost: Decimal
    logistics_deduction: Decimal
    net_payable: Decimal

    @classmethod
    def compute(cls, farmer_id: int, booking_ids: Iterable[int], tonnages: Iterable,
                rates: PayoutRates) -> 'PayoutBreakdown':
        total = sum((to_decimal(t) for t in tonnages), Decimal('0')).quantize(TONNES, rounding=ROUND_HALF_UP)
        base_amount = _money(total * rates.base_price)
        subsidy = _money(total * rates.subsidy_rate)
        baling_cost = _money(total * rates.baling_cost_rate)
        logistics = _money(total * rates.logistics_rate)
        return cls(
            farmer_id=farmer_id,
            booking_ids=tuple(booking_ids),
            rates=rates,
            total_quantity_tonnes=total,
            base_amount=base_amount,
            subsidy=subsidy,
            baling_cost=baling_cost,
            logistics_deduction=logistics,
            net_payable=base_amount + subsidy - baling_cost - logistics,
        )

    def to_dict(self):
        return {
            'farmer_id': self.farmer_id,
            'booking_ids': list(self.booking_ids),
            'rates': self.rates.to_dict(),
            'total_quantity_tonnes': float(self.total_quantity_tonnes),
            'base_amount': float(self.base_amount),
            'subsidy': float(self.subsidy),
            'baling_cost': float(self.baling_cost),
            'logistics_deduction': float(self.logistics_deduction),
            'net_payable': float(self.net_payable),
        }


class PayoutCalculator:

    @classmethod
    def calculate(cls, farmer_id: int, booking_ids: Iterable[int], rates: PayoutRates) -> PayoutBreakdown:
        """
        Compute the breakdown for a farmer's completed, unpaid bookings.

        Raises:
            ValidationError: empty or duplicated booking ids
            EntityNotFound: a booking does not exist
            PreconditionFailed: a booking is someone else's or not completed
            AlreadyPaid: a booking is already on a payout
        """
        bookings = cls._load_payable(farmer_id, booking_ids)
        return PayoutBreakdown.compute(
            farmer_id,
            [b.id for b in bookings],
            [b.payable_tonnes for b in bookings],
            rates,
        )

    @classmethod
    def commit(
        cls,
        breakdown: PayoutBreakdown,
        hub_id: int | None = None,
        notes: str | None = None,
        *,
        actor_id: int | None = None,
    ) -> Payout:
        """
        Persist a pending payout and mark its bookings paid, atomically.

        Raises:
            NonPositiveNet: net payable is zero or negative
            AlreadyPaid: a booking was paid in the meantime
            ConcurrencyConflict: bookings changed since the breakdown was calculated
        """
        if breakdown.net_payable <= 0:
            raise NonPositiveNet(
                f"Net payable ₹{breakdown.net_payable} is not positive; payout refused"
            )

        def conflict(exc):
            return AlreadyPaid(
                "One or more bookings were paid by a concurrent payout", existing=None
            )

        with transaction(on_conflict=conflict):
            fresh = cls.calculate(breakdown.farmer_id, breakdown.booking_ids, breakdown.rates)
            if fresh != breakdown:
                raise ConcurrencyConflict("Bookings changed since the payout was calculated; recalculate")

            payout = Payout(
                farmer_id=breakdown.farmer_id,
                hub_id=hub_id,
                total_quantity_tonnes=float(breakdown.total_quantity_tonnes),
                price_per_tonne=float(breakdown.rates.base_price),
                base_amount=float(breakdown.base_amount),
                subsidy=float(breakdown.subsidy),
                baling_cost=float(breakdown.baling_cost),
                logistics_deduction=float(breakdown.logistics_deduction),
                net_payable=float(breakdown.net_payable),
                status=PayoutStatus.PENDING.value,
                notes=notes,
                created_by_id=actor_id,
                updated_by_id=actor_id,
            )
            db.session.add(payout)
            db.session.flush()

            for booking_id in breakdown.booking_ids:
                db.session.add(PayoutBooking(payout_id=payout.id, booking_id=booking_id))
            db.session.flush()

            for booking_id in breakdown.booking_ids:
                marked = guarded_update(
                    Booking,
                    booking_id,
                    [Booking.payout_id.is_(None)],
                    {'payout_id': payout.id, 'updated_by_id': actor_id},
                )
                if not marked:
                    raise AlreadyPaid(f"Booking {booking_id} was paid by a concurrent payout")

                booking = db.session.get(Booking, booking_id)
                if booking.event_id:
                    EventContext(booking.event_id).add_comment(actor_id, FulfillmentNarrator.paid(payout))

        logger.info(
            f"Payout {payout.id} committed for farmer {breakdown.farmer_id}: "
            f"{len(breakdown.booking_ids)} bookings, net ₹{breakdown.net_payable}"
        )
        return payout

    @classmethod
    def mark_completed(cls, payout_id: int, transaction_id: str, *, actor_id: int | None = None) -> Payout:
        """
        Record that money was disbursed (pending → completed).

        Raises:
            EntityNotFound: payout does not exist
            ValidationError: transaction_id missing
            AlreadyProcessed: payout already completed (carries it)
        """
        if not transaction_id or not str(transaction_id).strip():
            raise ValidationError("transaction_id is required")

        with transaction():
            payout = cls.get(payout_id)
            completed = guarded_update(
                Payout,
                payout_id,
                [Payout.status == PayoutStatus.PENDING.value],
                {
                    'status': PayoutStatus.COMPLETED.value,
                    'transaction_id': str(transaction_id).strip(),
                    'paid_at': datetime.utcnow(),
                    'updated_by_id': actor_id,
                },
            )
            if not completed:
                db.session.refresh(payout)
                raise AlreadyProcessed(f"Payout {payout_id} is already completed", existing=payout)

        logger.info(f"Payout {payout_id} completed with transaction {transaction_id}")
        return payout

    @staticmethod
    def get(payout_id: int) -> Payout:
        payout = db.session.get(Payout, payout_id)
        if payout is None:
            raise EntityNotFound(f"Payout {payout_id} not found")
        return payout

    @staticmethod
    def list_payouts(farmer_id: int | None = None, hub_id: int | None = None,
                     status: str | None = None) -> list:
        query = Payout.query
        if farmer_id is not None:
            query = query.filter_by(farmer_id=farmer_id)
        if hub_id is not None:
            query = query.filter_by(hub_id=hub_id)
        if status is not None:
            query = query.filter_by(status=status)
        return query.order_by(Payout.created_at.desc(), Payout.id.desc()).all()

    @staticmethod
    def unpaid_bookings(farmer_id: int) -> list:
        return (
            Booking.query.filter_by(farmer_id=farmer_id, status=BookingStateMachine.COMPLETED)
            .filter(Booking.payout_id.is_(None))
            .order_by(Booking.id)
            .all()
        )

    @staticmethod
    def _load_payable(farmer_id: int, booking_ids: Iterable[int]) -> list:
        try:
            booking_ids = [int(b) for b in booking_ids]
        except (TypeError, ValueError):
            raise ValidationError("booking_ids must be a list of integers")
        if not booking_ids:
            raise ValidationError("At least one booking is required")
        if len(set(booking_ids)) != len(booking_ids):
            raise ValidationError("booking_ids contains duplicates")

        found = {b.id: b for b in Booking.query.filter(Booking.id.in_(booking_ids)).all()}
        bookings = []
        for booking_id in booking_ids:
            booking = found.get(booking_id)
            if booking is None:
                raise EntityNotFound(f"Booking {booking_id} not found")
            if booking.farmer_id != farmer_id:
                raise PreconditionFailed(
                    f"Booking {booking_id} does not belong to farmer {farmer_id}",
                    reason='booking_not_owned',
                )
            if booking.status != BookingStateMachine.COMPLETED:
                raise PreconditionFailed(
                    f"Booking {booking_id} is {booking.status}; only completed bookings are payable",
                    reason='booking_not_completed',
                )
            if booking.payout_id is not None:
                raise AlreadyPaid(
                    f"Booking {booking_id} was already paid in payout {booking.payout_id}",
                    existing=db.session.get(Payout, booking.payout_id),
                )
            bookings.append(booking)
        return bookings
