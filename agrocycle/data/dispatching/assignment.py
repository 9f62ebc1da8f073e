from agrocycle import db
from datetime import datetime
from agrocycle.data.core.user_created_base import UserCreatedBase
from agrocycle.data.dispatching.statuses import AssignmentStatus, OperatorStatus, ACTIVE_ASSIGNMENT_STATUSES


_ACTIVE_WHERE = "status IN ({})".format(", ".join(f"'{s}'" for s in ACTIVE_ASSIGNMENT_STATUSES))


def _active_unique_index(name, column):
    # At most one active assignment per booking / baler / truck
    return db.Index(
        name,
        column,
        unique=True,
        sqlite_where=db.text(_ACTIVE_WHERE),
        postgresql_where=db.text(_ACTIVE_WHERE),
    )


class Assignment(UserCreatedBase):
    __tablename__ = 'assignments'
    __table_args__ = (
        _active_unique_index('uq_assignments_active_booking', 'booking_id'),
        _active_unique_index('uq_assignments_active_baler', 'baler_vehicle_id'),
        _active_unique_index('uq_assignments_active_truck', 'truck_vehicle_id'),
    )

    booking_id = db.Column(db.Integer, db.ForeignKey('bookings.id'), nullable=False, index=True)
    baler_vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicles.id'), nullable=False)
    truck_vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicles.id'), nullable=True)
    hub_id = db.Column(db.Integer, db.ForeignKey('hubs.id'), nullable=False)

    # Hub-facing and operator-facing tracks
    status = db.Column(db.String(20), nullable=False, default=AssignmentStatus.ASSIGNED.value)
    operator_status = db.Column(db.String(20), nullable=False, default=OperatorStatus.PENDING.value)

    assigned_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    accepted_at = db.Column(db.DateTime, nullable=True)
    en_route_at = db.Column(db.DateTime, nullable=True)
    arrived_at = db.Column(db.DateTime, nullable=True)
    work_started_at = db.Column(db.DateTime, nullable=True)
    work_completed_at = db.Column(db.DateTime, nullable=True)
    delivered_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    # Completion report
    actual_quantity_tonnes = db.Column(db.Float, nullable=True)
    operator_reported_tonnes = db.Column(db.Float, nullable=True)
    time_required_minutes = db.Column(db.Float, nullable=True)
    moisture_content = db.Column(db.Float, nullable=True)
    bale_count = db.Column(db.Integer, nullable=True)
    operator_remarks = db.Column(db.Text, nullable=True)
    photos = db.Column(db.JSON, nullable=True)
    farmer_signature = db.Column(db.Text, nullable=True)

    rejection_reason = db.Column(db.Text, nullable=True)
    cancelled_reason = db.Column(db.Text, nullable=True)
    hub_notes = db.Column(db.Text, nullable=True)

    booking = db.relationship('Booking', backref=db.backref('assignments', lazy='dynamic'))
    baler = db.relationship('Vehicle', foreign_keys=[baler_vehicle_id])
    truck = db.relationship('Vehicle', foreign_keys=[truck_vehicle_id])
    hub = db.relationship('Hub')

    @property
    def is_active(self):
        return self.status in ACTIVE_ASSIGNMENT_STATUSES

    @property
    def vehicle_ids(self):
        return [vid for vid in (self.baler_vehicle_id, self.truck_vehicle_id) if vid is not None]

    def __repr__(self):
        return f'<Assignment {self.id} booking={self.booking_id} {self.status}/{self.operator_status}>'
