from agrocycle import db
from agrocycle.data.core.user_created_base import UserCreatedBase
from agrocycle.data.dispatching.statuses import Direction


class InventoryEntry(UserCreatedBase):
    """
    Append-only stock movement at a hub.

    Entries linked to an assignment are unique per assignment, which is what
    makes recording the inbound collection idempotent.
    """
    __tablename__ = 'inventory_entries'

    hub_id = db.Column(db.Integer, db.ForeignKey('hubs.id'), nullable=False, index=True)
    direction = db.Column(db.String(10), nullable=False, default=Direction.INBOUND.value)
    quantity_tonnes = db.Column(db.Float, nullable=False)
    source_assignment_id = db.Column(
        db.Integer, db.ForeignKey('assignments.id'), nullable=True, unique=True
    )
    counterparty_name = db.Column(db.String(150), nullable=False)
    vehicle_number = db.Column(db.String(30), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    farmer_id = db.Column(db.Integer, nullable=True)
    booking_id = db.Column(db.Integer, db.ForeignKey('bookings.id'), nullable=True)
    storage_location = db.Column(db.String(100), nullable=True)
    sale_price = db.Column(db.Float, nullable=True)

    __table_args__ = (
        db.CheckConstraint('quantity_tonnes > 0', name='ck_inventory_entries_positive_qty'),
    )

    source_assignment = db.relationship('Assignment')

    def __repr__(self):
        return f'<InventoryEntry {self.id} {self.direction} {self.quantity_tonnes}t hub={self.hub_id}>'
