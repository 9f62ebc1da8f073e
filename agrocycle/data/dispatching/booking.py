from agrocycle import db
from agrocycle.data.core.event_info.event import Event
from agrocycle.data.core.user_created_base import UserCreatedBase
from agrocycle.data.dispatching.statuses import BookingStatus


class Booking(UserCreatedBase):
    __tablename__ = 'bookings'

    # Constants
    event_type = "Pickup"

    # Request fields (fixed once created)
    farmer_id = db.Column(db.Integer, nullable=False, index=True)
    farm_plot_id = db.Column(db.Integer, nullable=True)
    crop_type = db.Column(db.String(30), nullable=False)
    area_in_acres = db.Column(db.Float, nullable=False)
    estimated_tonnes = db.Column(db.Float, nullable=False)
    estimated_price = db.Column(db.Float, nullable=False)
    harvest_end_date = db.Column(db.Date, nullable=True)
    preferred_pickup_window = db.Column(db.String(100), nullable=True)
    farmer_notes = db.Column(db.Text, nullable=True)

    # Lifecycle
    status = db.Column(db.String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    hub_id = db.Column(db.Integer, db.ForeignKey('hubs.id'), nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)

    # Set together with status=completed by the completion reconciler
    actual_tonnes = db.Column(db.Float, nullable=True)
    final_price = db.Column(db.Float, nullable=True)

    # Paid guard; set in the same transaction that inserts the payout
    payout_id = db.Column(db.Integer, db.ForeignKey('payouts.id'), nullable=True)

    event_id = db.Column(db.Integer, db.ForeignKey('events.id'), nullable=True)

    hub = db.relationship('Hub')
    event = db.relationship('Event')

    # Note: Use FulfillmentContext to access assignments and perform operations

    def create_event(self):
        description = (
            f"Pickup booking created for {self.area_in_acres} acres of {self.crop_type}"
        )
        self.event_id = Event.add_event(
            event_type=self.event_type,
            description=description,
            actor_id=self.created_by_id,
            hub_id=self.hub_id,
            status=self.status,
        )

    @property
    def is_paid(self):
        return self.payout_id is not None

    @property
    def payable_tonnes(self):
        return self.actual_tonnes if self.actual_tonnes is not None else self.estimated_tonnes

    def __repr__(self):
        return f'<Booking {self.id} {self.crop_type} {self.status}>'
