"""
Operator progress, rejection and the completion report
"""
import pytest
from agrocycle.buisness.dispatching.context import FulfillmentContext
from agrocycle.buisness.dispatching.errors import (
    ActorNotPermitted,
    InvalidReport,
    InvalidTransition,
    ReportLocked,
    ValidationError,
)
from agrocycle.data.dispatching.vehicle import Vehicle
from agrocycle.test.helpers import WORK_REPORT, advance_to, assigned_booking, make_fleet


def test_accept_moves_assignment_in_progress(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler, truck)
    ctx.advance(assignment.id, 'accepted', baler.id)

    accepted = ctx.get_assignment(assignment.id)
    assert accepted.operator_status == 'accepted'
    assert accepted.status == 'in_progress'
    assert accepted.accepted_at is not None
    # Booking stays scheduled until the hub approves
    assert ctx.booking.status == 'scheduled'


def test_truck_operator_may_advance(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler, truck)
    ctx.advance(assignment.id, 'accepted', truck.id)
    assert ctx.get_assignment(assignment.id).operator_status == 'accepted'


def test_other_operator_refused(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    with pytest.raises(ActorNotPermitted):
        ctx.advance(assignment.id, 'accepted', truck.id)


def test_steps_cannot_be_skipped(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    with pytest.raises(InvalidTransition) as excinfo:
        ctx.advance(assignment.id, 'arrived', baler.id)
    assert 'accepted' in str(excinfo.value)


def test_repeated_step_is_refused(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    ctx.advance(assignment.id, 'accepted', baler.id)
    with pytest.raises(InvalidTransition):
        ctx.advance(assignment.id, 'accepted', baler.id)


def test_unknown_status(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    with pytest.raises(ValidationError):
        ctx.advance(assignment.id, 'teleported', baler.id)


def test_full_track_stamps_timestamps(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    delivered = advance_to(ctx, assignment, 'delivered')

    assert delivered.operator_status == 'delivered'
    for field in ('accepted_at', 'en_route_at', 'arrived_at', 'work_started_at',
                  'work_completed_at', 'delivered_at'):
        assert getattr(delivered, field) is not None, field
    # Approval, not delivery, completes the assignment
    assert delivered.status == 'in_progress'


def test_work_complete_records_report(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    reported = advance_to(ctx, assignment, 'work_complete')

    assert reported.actual_quantity_tonnes == 5.9
    assert reported.operator_reported_tonnes == 5.9
    assert reported.time_required_minutes == 170
    assert reported.bale_count == 42


def test_work_complete_requires_quantity_and_time(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    advance_to(ctx, assignment, 'work_started')
    with pytest.raises(InvalidReport) as excinfo:
        ctx.advance(assignment.id, 'work_complete', baler.id, report={'bale_count': 10})
    assert 'actual_quantity_tonnes' in str(excinfo.value)
    assert ctx.get_assignment(assignment.id).operator_status == 'work_started'


def test_work_complete_uses_staged_report(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    advance_to(ctx, assignment, 'work_started')
    ctx.update_report(assignment.id, baler.id, {'actual_quantity_tonnes': 6.1, 'time_required_minutes': 150})
    ctx.advance(assignment.id, 'work_complete', baler.id)
    assert ctx.get_assignment(assignment.id).operator_reported_tonnes == 6.1


@pytest.mark.parametrize('report', [
    {'actual_quantity_tonnes': 0, 'time_required_minutes': 10},
    {'actual_quantity_tonnes': 'lots', 'time_required_minutes': 10},
    {'actual_quantity_tonnes': float('inf'), 'time_required_minutes': 10},
    {'moisture_content': 140},
    {'bale_count': -1},
    {'bale_count': 2.5},
    {'photos': {'selfie': ['a.jpg']}},
    {'photos': {'before': 'a.jpg'}},
    {'weather': 'sunny'},
])
def test_malformed_report(app_ctx, report):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    advance_to(ctx, assignment, 'work_started')
    with pytest.raises(InvalidReport):
        ctx.update_report(assignment.id, baler.id, report)


def test_photos_append(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    advance_to(ctx, assignment, 'arrived')
    ctx.update_report(assignment.id, baler.id, {'photos': {'before': ['b1.jpg']}})
    ctx.update_report(assignment.id, baler.id, {'photos': {'before': ['b2.jpg'], 'after': ['a1.jpg']}})

    photos = ctx.get_assignment(assignment.id).photos
    assert photos['before'] == ['b1.jpg', 'b2.jpg']
    assert photos['after'] == ['a1.jpg']
    assert photos['fieldCondition'] == []


def test_report_locked_after_work_complete(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    advance_to(ctx, assignment, 'work_complete')

    with pytest.raises(ReportLocked):
        ctx.update_report(assignment.id, baler.id, {'actual_quantity_tonnes': 9})
    with pytest.raises(ReportLocked):
        ctx.advance(assignment.id, 'delivered', baler.id, report={'actual_quantity_tonnes': 9})
    assert ctx.get_assignment(assignment.id).actual_quantity_tonnes == WORK_REPORT['actual_quantity_tonnes']


def test_reject_frees_booking_and_vehicles(app_ctx, db):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler, truck)
    ctx.advance(assignment.id, 'rejected', baler.id, reason='engine trouble')

    rejected = ctx.get_assignment(assignment.id)
    assert rejected.operator_status == 'rejected'
    assert rejected.status == 'cancelled'
    assert rejected.rejection_reason == 'engine trouble'
    assert ctx.booking.status == 'pending'
    assert ctx.active_assignment is None
    assert db.session.get(Vehicle, baler.id).is_available
    assert db.session.get(Vehicle, truck.id).is_available


def test_rejected_booking_can_be_reassigned(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    ctx.advance(assignment.id, 'rejected', baler.id)

    ctx = FulfillmentContext.load(ctx.booking_id)
    ctx.assign(900, baler.id)
    assert ctx.active_assignment.id != assignment.id
    assert ctx.booking.status == 'scheduled'


def test_reject_after_accept_refused(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    ctx.advance(assignment.id, 'accepted', baler.id)
    with pytest.raises(InvalidTransition):
        ctx.advance(assignment.id, 'rejected', baler.id)


def test_cancelled_assignment_takes_no_updates(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    ctx.unassign(900, 'rain')
    with pytest.raises(InvalidTransition):
        ctx.advance(assignment.id, 'accepted', baler.id)
    with pytest.raises(ReportLocked):
        ctx.update_report(assignment.id, baler.id, {'bale_count': 3})


def test_timeline_narrates_progress(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    advance_to(ctx, assignment, 'en_route')
    contents = [entry['content'] for entry in ctx.timeline()]
    assert len(contents) >= 4
    assert all(not entry['is_human_made'] for entry in ctx.timeline())
