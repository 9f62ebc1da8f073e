from agrocycle import db
from agrocycle.data.core.user_created_base import UserCreatedBase
from agrocycle.data.dispatching.statuses import PayoutStatus


class Payout(UserCreatedBase):
    __tablename__ = 'payouts'

    farmer_id = db.Column(db.Integer, nullable=False, index=True)
    hub_id = db.Column(db.Integer, db.ForeignKey('hubs.id'), nullable=True)

    total_quantity_tonnes = db.Column(db.Float, nullable=False)
    price_per_tonne = db.Column(db.Float, nullable=False)

    # Breakdown
    base_amount = db.Column(db.Float, nullable=False)
    subsidy = db.Column(db.Float, nullable=False, default=0)
    baling_cost = db.Column(db.Float, nullable=False, default=0)
    logistics_deduction = db.Column(db.Float, nullable=False, default=0)
    net_payable = db.Column(db.Float, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=PayoutStatus.PENDING.value)
    transaction_id = db.Column(db.String(100), nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    booking_links = db.relationship('PayoutBooking', back_populates='payout', order_by='PayoutBooking.id')

    @property
    def booking_ids(self):
        return [link.booking_id for link in self.booking_links]

    def to_dict(self, include_audit_fields=True, exclude=None):
        result = super().to_dict(include_audit_fields=include_audit_fields, exclude=exclude)
        result['booking_ids'] = self.booking_ids
        return result

    def __repr__(self):
        return f'<Payout {self.id} farmer={self.farmer_id} net={self.net_payable} {self.status}>'


class PayoutBooking(db.Model):
    """Link row; booking_id is unique so a booking can be paid at most once"""
    __tablename__ = 'payout_bookings'

    id = db.Column(db.Integer, primary_key=True)
    payout_id = db.Column(db.Integer, db.ForeignKey('payouts.id'), nullable=False)
    booking_id = db.Column(db.Integer, db.ForeignKey('bookings.id'), nullable=False, unique=True)

    payout = db.relationship('Payout', back_populates='booking_links')

    def __repr__(self):
        return f'<PayoutBooking payout={self.payout_id} booking={self.booking_id}>'
