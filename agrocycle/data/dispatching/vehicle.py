from agrocycle import db
from agrocycle.data.core.user_created_base import UserCreatedBase
from agrocycle.data.dispatching.statuses import Availability, Ownership, VehicleType


class Vehicle(UserCreatedBase):
    __tablename__ = 'vehicles'

    hub_id = db.Column(db.Integer, db.ForeignKey('hubs.id'), nullable=False)
    vehicle_type = db.Column(db.String(10), nullable=False)
    vehicle_number = db.Column(db.String(30), unique=True, nullable=True)
    operator_name = db.Column(db.String(100), nullable=True)
    ownership = db.Column(db.String(20), nullable=False, default=Ownership.PLATFORM.value)

    # Materialized from active assignments; written only through VehicleRegistry
    availability_status = db.Column(
        db.String(10), nullable=False, default=Availability.AVAILABLE.value, index=True
    )

    # Minutes per tonne for balers, tonnes per load for trucks
    time_per_tonne = db.Column(db.Float, nullable=True)
    capacity_tonnes = db.Column(db.Float, nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    total_trips = db.Column(db.Integer, default=0, nullable=False)

    hub = db.relationship('Hub', back_populates='vehicles')

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.vehicle_type in (VehicleType.BALER.value, VehicleType.BOTH.value) and self.time_per_tonne is None:
            self.time_per_tonne = 30
        if self.vehicle_type in (VehicleType.TRUCK.value, VehicleType.BOTH.value) and self.capacity_tonnes is None:
            self.capacity_tonnes = 5

    @property
    def can_bale(self):
        return self.vehicle_type in (VehicleType.BALER.value, VehicleType.BOTH.value)

    @property
    def can_haul(self):
        return self.vehicle_type in (VehicleType.TRUCK.value, VehicleType.BOTH.value)

    @property
    def is_available(self):
        return self.availability_status == Availability.AVAILABLE.value

    def __repr__(self):
        return f'<Vehicle {self.id} {self.vehicle_type} {self.availability_status}>'
