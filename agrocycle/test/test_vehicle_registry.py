"""
Vehicle registration, atomic claims and availability reconciliation
"""
import pytest
from sqlalchemy import update
from agrocycle.buisness.dispatching.errors import EntityNotFound, ValidationError, VehicleUnavailable
from agrocycle.buisness.dispatching.vehicle_registry import VehicleRegistry
from agrocycle.data.dispatching.vehicle import Vehicle
from agrocycle.test.helpers import HUB_MANAGER_ID, assigned_booking, make_fleet, make_hub, make_vehicle


def test_register_defaults(app_ctx):
    hub = make_hub()
    baler = make_vehicle(hub, 'baler')
    truck = make_vehicle(hub, 'truck')
    both = make_vehicle(hub, 'both')

    assert baler.time_per_tonne == 30 and baler.capacity_tonnes is None
    assert truck.capacity_tonnes == 5 and truck.time_per_tonne is None
    assert both.can_bale and both.can_haul
    assert baler.availability_status == 'available'
    assert baler.ownership == 'platform'
    assert baler.created_by_id == HUB_MANAGER_ID


@pytest.mark.parametrize('vehicle_type,fields', [
    ('tractor', {}),
    ('baler', {'ownership': 'leased'}),
    ('baler', {'time_per_tonne': 0}),
    ('truck', {'capacity_tonnes': -1}),
])
def test_register_rejects_bad_input(app_ctx, vehicle_type, fields):
    hub = make_hub()
    with pytest.raises(ValidationError):
        VehicleRegistry.register(hub.id, vehicle_type, **fields)


def test_register_unknown_hub(app_ctx):
    with pytest.raises(EntityNotFound):
        VehicleRegistry.register(999, 'baler')


def test_list_vehicles_by_role(app_ctx):
    hub = make_hub()
    baler = make_vehicle(hub, 'baler')
    truck = make_vehicle(hub, 'truck')
    both = make_vehicle(hub, 'both')

    assert [v.id for v in VehicleRegistry.list_vehicles(hub.id, 'baler')] == [baler.id, both.id]
    assert [v.id for v in VehicleRegistry.list_vehicles(hub.id, 'truck')] == [truck.id, both.id]


def test_list_available_only(app_ctx):
    hub, baler, truck = make_fleet()
    assigned_booking(baler)
    available = VehicleRegistry.list_vehicles(hub.id, available_only=True)
    assert [v.id for v in available] == [truck.id]


def test_claim_twice_loses(app_ctx, db):
    hub = make_hub()
    baler = make_vehicle(hub, 'baler')
    VehicleRegistry.claim(baler.id)
    with pytest.raises(VehicleUnavailable):
        VehicleRegistry.claim(baler.id)
    db.session.rollback()


def test_claim_inactive_vehicle(app_ctx, db):
    hub = make_hub()
    baler = make_vehicle(hub, 'baler')
    baler.is_active = False
    db.session.commit()
    with pytest.raises(VehicleUnavailable):
        VehicleRegistry.claim(baler.id)


def test_release_counts_trip(app_ctx, db):
    hub, baler, truck = make_fleet()
    VehicleRegistry.claim(baler.id)
    VehicleRegistry.claim(truck.id)
    VehicleRegistry.release([baler.id, truck.id], count_trip=True)
    db.session.commit()

    assert db.session.get(Vehicle, baler.id).availability_status == 'available'
    assert db.session.get(Vehicle, truck.id).total_trips == 1


def test_reconcile_repairs_drift(app_ctx, db):
    hub, baler, truck = make_fleet()
    assigned_booking(baler)

    # Drift both ways behind the registry's back
    db.session.execute(update(Vehicle).where(Vehicle.id == baler.id).values(availability_status='available'))
    db.session.execute(update(Vehicle).where(Vehicle.id == truck.id).values(availability_status='busy'))
    db.session.commit()

    assert VehicleRegistry.reconcile(baler.id).availability_status == 'busy'
    assert VehicleRegistry.reconcile(truck.id).availability_status == 'available'
    db.session.commit()


def test_active_assignment_count(app_ctx):
    hub, baler, truck = make_fleet()
    assigned_booking(baler, truck)
    assert VehicleRegistry.active_assignment_count(baler.id) == 1
    assert VehicleRegistry.active_assignment_count(truck.id) == 1
