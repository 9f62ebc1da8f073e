"""
VehicleRegistry - availability and capability of hub equipment

availability_status is a materialized flag: busy iff the vehicle is on an
assigned/in_progress assignment. It is only written here, with conditional
UPDATE statements executed in the caller's transaction, so the check and the
write happen in one statement at commit time.
"""

from typing import Iterable, List, Optional
from sqlalchemy import or_, update
from agrocycle import db
from agrocycle.buisness.core.guarded_update import guarded_update
from agrocycle.buisness.dispatching.errors import EntityNotFound, ValidationError, VehicleUnavailable
from agrocycle.data.dispatching.assignment import Assignment
from agrocycle.data.dispatching.statuses import (
    ACTIVE_ASSIGNMENT_STATUSES,
    Availability,
    Ownership,
    VehicleType,
    values,
)
from agrocycle.data.dispatching.vehicle import Vehicle
from agrocycle.data.core.hub import Hub
from agrocycle.logger import get_logger

logger = get_logger("agrocycle.domain.dispatching.vehicle_registry")


class VehicleRegistry:

    @staticmethod
    def get(vehicle_id: int) -> Vehicle:
        vehicle = db.session.get(Vehicle, vehicle_id)
        if vehicle is None:
            raise EntityNotFound(f"Vehicle {vehicle_id} not found")
        return vehicle

    @staticmethod
    def list_vehicles(hub_id: Optional[int] = None, vehicle_type: Optional[str] = None,
                      available_only: bool = False) -> List[Vehicle]:
        query = Vehicle.query.filter(Vehicle.is_active.is_(True))
        if hub_id is not None:
            query = query.filter(Vehicle.hub_id == hub_id)
        if vehicle_type == VehicleType.BALER.value:
            query = query.filter(Vehicle.vehicle_type.in_([VehicleType.BALER.value, VehicleType.BOTH.value]))
        elif vehicle_type == VehicleType.TRUCK.value:
            query = query.filter(Vehicle.vehicle_type.in_([VehicleType.TRUCK.value, VehicleType.BOTH.value]))
        elif vehicle_type is not None:
            query = query.filter(Vehicle.vehicle_type == vehicle_type)
        if available_only:
            query = query.filter(Vehicle.availability_status == Availability.AVAILABLE.value)
        return query.order_by(Vehicle.id).all()

    @staticmethod
    def register(hub_id: int, vehicle_type: str, actor_id: Optional[int] = None, **fields) -> Vehicle:
        """
        Add a vehicle to a hub's fleet. Flushes; the caller commits.

        Raises:
            ValidationError: unknown type/ownership or non-positive rates
            EntityNotFound: hub does not exist
        """
        if vehicle_type not in values(VehicleType):
            raise ValidationError(f"vehicle_type must be one of {', '.join(values(VehicleType))}")
        if db.session.get(Hub, hub_id) is None:
            raise EntityNotFound(f"Hub {hub_id} not found")

        ownership = fields.get('ownership') or Ownership.PLATFORM.value
        if ownership not in values(Ownership):
            raise ValidationError(f"ownership must be one of {', '.join(values(Ownership))}")
        fields['ownership'] = ownership

        for field in ('time_per_tonne', 'capacity_tonnes'):
            if fields.get(field) is not None and float(fields[field]) <= 0:
                raise ValidationError(f"{field} must be greater than 0")

        data = dict(fields, hub_id=hub_id, vehicle_type=vehicle_type,
                    availability_status=Availability.AVAILABLE.value)
        vehicle = Vehicle.from_dict(data, user_id=actor_id, skip_fields=['id', 'total_trips'])
        db.session.add(vehicle)
        db.session.flush()
        logger.info(f"Registered {vehicle_type} vehicle {vehicle.id} at hub {hub_id}")
        return vehicle

    @staticmethod
    def claim(vehicle_id: int) -> None:
        """
        Mark a vehicle busy if, and only if, it is still available.

        Raises:
            VehicleUnavailable: another writer took the vehicle first
        """
        claimed = guarded_update(
            Vehicle,
            vehicle_id,
            [
                Vehicle.availability_status == Availability.AVAILABLE.value,
                Vehicle.is_active.is_(True),
            ],
            {'availability_status': Availability.BUSY.value},
        )
        if not claimed:
            logger.info(f"Claim of vehicle {vehicle_id} lost: no longer available")
            raise VehicleUnavailable(f"Vehicle {vehicle_id} is no longer available")

    @staticmethod
    def release(vehicle_ids: Iterable[int], count_trip: bool = False) -> None:
        """Mark vehicles available again; optionally count a finished trip"""
        vehicle_ids = [vid for vid in vehicle_ids if vid is not None]
        if not vehicle_ids:
            return
        changes = {'availability_status': Availability.AVAILABLE.value}
        if count_trip:
            changes['total_trips'] = Vehicle.total_trips + 1
        db.session.execute(
            update(Vehicle)
            .where(Vehicle.id.in_(vehicle_ids))
            .values(**changes)
            .execution_options(synchronize_session='fetch')
        )

    @staticmethod
    def active_assignment_count(vehicle_id: int) -> int:
        return Assignment.query.filter(
            or_(Assignment.baler_vehicle_id == vehicle_id, Assignment.truck_vehicle_id == vehicle_id),
            Assignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
        ).count()

    @classmethod
    def reconcile(cls, vehicle_id: int) -> Vehicle:
        """
        Recompute availability from active assignments, repairing any drift.
        Flushes; the caller commits.
        """
        vehicle = cls.get(vehicle_id)
        db.session.refresh(vehicle)
        expected = (
            Availability.BUSY.value if cls.active_assignment_count(vehicle_id) > 0
            else Availability.AVAILABLE.value
        )
        if vehicle.availability_status != expected:
            logger.warning(
                f"Vehicle {vehicle_id} availability drifted: "
                f"{vehicle.availability_status} -> {expected}"
            )
            vehicle.availability_status = expected
            db.session.flush()
        return vehicle
