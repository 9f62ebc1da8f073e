"""
Hub dispatch routes: confirm bookings, assign equipment, review completions
"""

from flask import jsonify, request
from flask_login import current_user, login_required
from agrocycle.auth import ROLE_HUB_MANAGER, role_required
from agrocycle.buisness.dispatching.context import FulfillmentContext
from agrocycle.buisness.dispatching.errors import AlreadyApproved, PreconditionFailed
from agrocycle.data.dispatching.assignment import Assignment
from agrocycle.data.dispatching.booking import Booking
from agrocycle.logger import get_logger
from agrocycle.presentation.routes.helpers import int_field, json_body, same_quantity
from agrocycle.presentation.routes.hub import hub_bp

logger = get_logger("agrocycle.routes.hub.dispatch")


def _assignment_body(ctx, assignment_id):
    body = {
        'assignment': ctx.get_assignment(assignment_id).to_dict(),
        'booking': ctx.booking.to_dict(),
    }
    if ctx.estimated_completion_minutes is not None:
        body['estimated_completion_minutes'] = ctx.estimated_completion_minutes
    return body


def _assignment_response(ctx, assignment_id, status=200):
    return jsonify(_assignment_body(ctx, assignment_id)), status


@hub_bp.get('/bookings')
@login_required
@role_required(ROLE_HUB_MANAGER)
def list_requests():
    status = request.args.get('status')
    query = Booking.query
    if status:
        query = query.filter_by(status=status)
    else:
        query = query.filter(Booking.status.in_(['pending', 'confirmed']))
    bookings = query.order_by(Booking.created_at.asc(), Booking.id.asc()).limit(200).all()
    return jsonify({'bookings': [b.to_dict() for b in bookings]})


@hub_bp.post('/bookings/<int:booking_id>/confirm')
@login_required
@role_required(ROLE_HUB_MANAGER)
def confirm_booking(booking_id):
    ctx = FulfillmentContext.load(booking_id).confirm(current_user.id)
    return jsonify(ctx.booking.to_dict())


@hub_bp.get('/assignments')
@login_required
@role_required(ROLE_HUB_MANAGER)
def list_assignments():
    query = Assignment.query
    hub_id = request.args.get('hub_id', type=int)
    if hub_id is not None:
        query = query.filter_by(hub_id=hub_id)
    status = request.args.get('status')
    if status:
        query = query.filter_by(status=status)
    operator_status = request.args.get('operator_status')
    if operator_status:
        query = query.filter_by(operator_status=operator_status)
    assignments = query.order_by(Assignment.assigned_at.desc()).limit(200).all()
    return jsonify({'assignments': [a.to_dict() for a in assignments]})


@hub_bp.post('/assignments')
@login_required
@role_required(ROLE_HUB_MANAGER)
def create_assignment():
    data = json_body()
    ctx = FulfillmentContext.load(int_field(data, 'booking_id'))
    ctx.assign(
        current_user.id,
        int_field(data, 'baler_vehicle_id'),
        int_field(data, 'truck_vehicle_id', required=False),
    )
    return _assignment_response(ctx, ctx.active_assignment.id, 201)


@hub_bp.post('/assignments/<int:assignment_id>/unassign')
@login_required
@role_required(ROLE_HUB_MANAGER)
def unassign(assignment_id):
    data = json_body()
    ctx = FulfillmentContext.for_assignment(assignment_id)
    ctx.unassign(current_user.id, data.get('reason'), assignment_id=assignment_id)
    return _assignment_response(ctx, assignment_id)


@hub_bp.post('/assignments/<int:assignment_id>/reassign')
@login_required
@role_required(ROLE_HUB_MANAGER)
def reassign(assignment_id):
    data = json_body()
    ctx = FulfillmentContext.for_assignment(assignment_id)
    current = ctx.require_active_assignment()
    if current.id != assignment_id:
        raise PreconditionFailed(
            f"Assignment {assignment_id} is not the active assignment of booking {ctx.booking_id}",
            reason='assignment_not_active',
        )
    ctx.reassign(
        current_user.id,
        int_field(data, 'baler_vehicle_id'),
        int_field(data, 'truck_vehicle_id', required=False),
        reason=data.get('reason'),
    )
    return _assignment_response(ctx, ctx.active_assignment.id, 201)


@hub_bp.post('/assignments/<int:assignment_id>/approve')
@login_required
@role_required(ROLE_HUB_MANAGER)
def approve(assignment_id):
    data = json_body()
    final_quantity = data.get('final_quantity_tonnes')
    ctx = FulfillmentContext.for_assignment(assignment_id)
    try:
        ctx.approve(current_user.id, assignment_id, final_quantity, notes=data.get('notes'))
    except AlreadyApproved as error:
        if not same_quantity(error.existing.actual_quantity_tonnes, final_quantity):
            raise
        # Exact retry of an approval that already went through
        logger.info(f"Repeated approval of assignment {assignment_id} answered from the stored result")
        body = _assignment_body(FulfillmentContext.for_assignment(assignment_id), assignment_id)
        body['notice'] = 'already_approved'
        return jsonify(body)
    return _assignment_response(ctx, assignment_id)
