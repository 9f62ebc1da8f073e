"""
Assigning equipment to bookings, unassigning and reassigning
"""
import pytest
from sqlalchemy import update
from sqlalchemy.orm.attributes import set_committed_value
from agrocycle.buisness.dispatching.context import FulfillmentContext
from agrocycle.buisness.dispatching.errors import (
    BookingNotAssignable,
    ConcurrencyConflict,
    EntityNotFound,
    NoCapability,
    PreconditionFailed,
    VehicleUnavailable,
)
from agrocycle.data.dispatching.assignment import Assignment
from agrocycle.data.dispatching.booking import Booking
from agrocycle.data.dispatching.vehicle import Vehicle
from agrocycle.test.helpers import (
    HUB_MANAGER_ID,
    advance_to,
    assigned_booking,
    make_booking,
    make_fleet,
    make_vehicle,
)


def test_assign_schedules_booking(app_ctx, db):
    hub, baler, truck = make_fleet()
    ctx = make_booking()
    ctx.assign(HUB_MANAGER_ID, baler.id, truck.id)

    assignment = ctx.active_assignment
    assert assignment.status == 'assigned'
    assert assignment.operator_status == 'pending'
    assert assignment.hub_id == hub.id
    assert ctx.booking.status == 'scheduled'
    assert ctx.booking.hub_id == hub.id
    assert ctx.estimated_completion_minutes == 180
    assert db.session.get(Vehicle, baler.id).availability_status == 'busy'
    assert db.session.get(Vehicle, truck.id).availability_status == 'busy'
    assert any('Assignment' in entry['content'] for entry in ctx.timeline())


def test_assign_from_confirmed(app_ctx):
    hub, baler, truck = make_fleet()
    ctx = make_booking().confirm(HUB_MANAGER_ID)
    ctx.assign(HUB_MANAGER_ID, baler.id)
    assert ctx.booking.status == 'scheduled'
    assert ctx.active_assignment.truck_vehicle_id is None


def test_busy_baler_is_refused(app_ctx):
    hub, baler, truck = make_fleet()
    assigned_booking(baler)
    second = make_booking(farmer_id=102)
    with pytest.raises(VehicleUnavailable):
        second.assign(HUB_MANAGER_ID, baler.id)
    assert FulfillmentContext.load(second.booking_id).booking.status == 'pending'


def test_stale_read_loses_at_claim(app_ctx, db):
    """A vehicle read as available but taken before the claim is refused"""
    hub, baler, truck = make_fleet()
    ctx = make_booking()
    assert db.session.get(Vehicle, baler.id).is_available

    db.session.execute(
        update(Vehicle).where(Vehicle.id == baler.id).values(availability_status='busy')
        .execution_options(synchronize_session=False)
    )

    with pytest.raises(VehicleUnavailable):
        ctx.assign(HUB_MANAGER_ID, baler.id)
    assert Assignment.query.count() == 0


def test_stale_cancel_loses_to_committed_assign(app_ctx, db):
    """A cancel that read the booking as pending before an assign committed is refused"""
    hub, baler, truck = make_fleet()
    ctx = make_booking()
    FulfillmentContext.load(ctx.booking_id).assign(HUB_MANAGER_ID, baler.id)

    # The cancelling request still holds the pre-assign read
    db.session.refresh(ctx.booking)
    set_committed_value(ctx.booking, 'status', 'pending')

    with pytest.raises(ConcurrencyConflict):
        ctx.cancel(101, 'changed my mind')

    stored = db.session.get(Booking, ctx.booking_id)
    assert stored.status == 'scheduled'
    assert stored.cancellation_reason is None
    assert Assignment.query.filter_by(booking_id=ctx.booking_id, status='assigned').count() == 1
    assert db.session.get(Vehicle, baler.id).availability_status == 'busy'


def test_stale_confirm_is_refused(app_ctx, db):
    hub, baler, truck = make_fleet()
    ctx = make_booking()
    db.session.execute(
        update(Booking).where(Booking.id == ctx.booking_id).values(status='scheduled')
        .execution_options(synchronize_session=False)
    )

    with pytest.raises(ConcurrencyConflict):
        ctx.confirm(HUB_MANAGER_ID)
    assert db.session.get(Booking, ctx.booking_id).status == 'pending'
    assert 'Booking confirmed by hub' not in [entry['content'] for entry in ctx.timeline()]


def test_failed_truck_claim_releases_baler(app_ctx, db):
    hub, baler, truck = make_fleet()
    other_baler = make_vehicle(hub, 'baler', vehicle_number='BL-2')
    assigned_booking(other_baler, truck)

    ctx = make_booking(farmer_id=102)
    with pytest.raises(VehicleUnavailable):
        ctx.assign(HUB_MANAGER_ID, baler.id, truck.id)
    assert db.session.get(Vehicle, baler.id).availability_status == 'available'


def test_second_assignment_for_booking_refused(app_ctx):
    hub, baler, truck = make_fleet()
    other_baler = make_vehicle(hub, 'baler', vehicle_number='BL-2')
    ctx, _ = assigned_booking(baler)
    with pytest.raises(BookingNotAssignable):
        ctx.assign(HUB_MANAGER_ID, other_baler.id)


def test_cancelled_booking_not_assignable(app_ctx):
    hub, baler, truck = make_fleet()
    ctx = make_booking().cancel(101, 'sold to another buyer')
    with pytest.raises(BookingNotAssignable):
        ctx.assign(HUB_MANAGER_ID, baler.id)


def test_truck_cannot_bale(app_ctx):
    hub, baler, truck = make_fleet()
    with pytest.raises(NoCapability):
        make_booking().assign(HUB_MANAGER_ID, truck.id)


def test_baler_cannot_haul(app_ctx):
    hub, baler, truck = make_fleet()
    second_baler = make_vehicle(hub, 'baler', vehicle_number='BL-2')
    with pytest.raises(NoCapability):
        make_booking().assign(HUB_MANAGER_ID, baler.id, second_baler.id)


def test_one_vehicle_cannot_fill_both_roles(app_ctx):
    hub, baler, truck = make_fleet()
    both = make_vehicle(hub, 'both', vehicle_number='BOTH-1')
    with pytest.raises(NoCapability):
        make_booking().assign(HUB_MANAGER_ID, both.id, both.id)


def test_both_type_can_fill_either_role(app_ctx):
    hub, baler, truck = make_fleet()
    both = make_vehicle(hub, 'both', vehicle_number='BOTH-1')
    ctx = make_booking()
    ctx.assign(HUB_MANAGER_ID, both.id)
    assert ctx.active_assignment.baler_vehicle_id == both.id


def test_truck_from_another_hub(app_ctx):
    hub, baler, truck = make_fleet()
    other_hub, other_baler, other_truck = make_fleet(code='HR-KNL-01')
    ctx = make_booking()
    with pytest.raises(PreconditionFailed) as excinfo:
        ctx.assign(HUB_MANAGER_ID, baler.id, other_truck.id)
    assert excinfo.value.reason == 'hub_mismatch'


def test_unknown_vehicle(app_ctx):
    make_fleet()
    with pytest.raises(EntityNotFound):
        make_booking().assign(HUB_MANAGER_ID, 999)


def test_unassign_frees_everything(app_ctx, db):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler, truck)
    ctx.unassign(HUB_MANAGER_ID, 'tractor broke down')

    cancelled = ctx.get_assignment(assignment.id)
    assert cancelled.status == 'cancelled'
    assert cancelled.cancelled_reason == 'tractor broke down'
    assert ctx.active_assignment is None
    assert ctx.booking.status == 'pending'
    assert db.session.get(Vehicle, baler.id).is_available
    assert db.session.get(Vehicle, truck.id).is_available


def test_unassign_blocked_after_work_complete(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    advance_to(ctx, assignment, 'work_complete')
    with pytest.raises(PreconditionFailed) as excinfo:
        ctx.unassign(HUB_MANAGER_ID, 'too late')
    assert excinfo.value.reason == 'work_already_reported'


def test_unassign_without_active_assignment(app_ctx):
    make_fleet()
    with pytest.raises(PreconditionFailed):
        make_booking().unassign(HUB_MANAGER_ID)


def test_reassign_swaps_equipment(app_ctx, db):
    hub, baler, truck = make_fleet()
    replacement = make_vehicle(hub, 'baler', vehicle_number='BL-2', time_per_tonne=20)
    ctx, first = assigned_booking(baler)

    ctx.reassign(HUB_MANAGER_ID, replacement.id, reason='swap')

    assert ctx.get_assignment(first.id).status == 'cancelled'
    assert ctx.active_assignment.baler_vehicle_id == replacement.id
    assert ctx.booking.status == 'scheduled'
    assert ctx.estimated_completion_minutes == 120
    assert db.session.get(Vehicle, baler.id).is_available
    assert len(ctx.assignments) == 2


def test_reassign_to_busy_vehicle_rolls_back(app_ctx, db):
    hub, baler, truck = make_fleet()
    busy = make_vehicle(hub, 'baler', vehicle_number='BL-2')
    assigned_booking(busy, farmer_id=102)
    ctx, first = assigned_booking(baler)

    with pytest.raises(ConcurrencyConflict):
        ctx.reassign(HUB_MANAGER_ID, busy.id)

    reloaded = FulfillmentContext.load(ctx.booking_id)
    assert reloaded.active_assignment.id == first.id
    assert reloaded.booking.status == 'scheduled'


def test_drifted_availability_stopped_by_unique_index(app_ctx, db):
    """A baler flagged available while still on an active job is refused by the database"""
    hub, baler, truck = make_fleet()
    assigned_booking(baler)
    db.session.execute(
        update(Vehicle).where(Vehicle.id == baler.id).values(availability_status='available')
    )
    db.session.commit()

    ctx = make_booking(farmer_id=102)
    with pytest.raises(ConcurrencyConflict):
        ctx.assign(HUB_MANAGER_ID, baler.id)

    assert Assignment.query.count() == 1
    assert Assignment.query.filter_by(booking_id=ctx.booking_id).count() == 0
    assert db.session.get(Booking, ctx.booking_id).status == 'pending'
