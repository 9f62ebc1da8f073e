"""
Operator-facing job routes

The acting operator's id is their vehicle id; jobs are the assignments that
vehicle is on, as baler or as truck.
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import or_
from agrocycle import limiter
from agrocycle.auth import ROLE_OPERATOR, role_required
from agrocycle.buisness.dispatching.context import FulfillmentContext
from agrocycle.buisness.dispatching.errors import ValidationError
from agrocycle.data.dispatching.assignment import Assignment
from agrocycle.data.dispatching.statuses import AssignmentStatus, OperatorStatus
from agrocycle.presentation.routes.helpers import json_body

bp = Blueprint('operator', __name__)

JOB_FILTERS = {
    'incoming': lambda q: q.filter(
        Assignment.status == AssignmentStatus.ASSIGNED.value,
        Assignment.operator_status == OperatorStatus.PENDING.value,
    ),
    'active': lambda q: q.filter(
        Assignment.status.in_([AssignmentStatus.IN_PROGRESS.value, AssignmentStatus.COMPLETED.value]),
        Assignment.operator_status != OperatorStatus.DELIVERED.value,
    ),
    'history': lambda q: q.filter(
        or_(
            Assignment.status == AssignmentStatus.CANCELLED.value,
            Assignment.operator_status == OperatorStatus.DELIVERED.value,
        )
    ),
}


def _job(assignment):
    job = assignment.to_dict()
    booking = assignment.booking
    job['booking'] = {
        'id': booking.id,
        'crop_type': booking.crop_type,
        'area_in_acres': booking.area_in_acres,
        'estimated_tonnes': booking.estimated_tonnes,
        'preferred_pickup_window': booking.preferred_pickup_window,
        'farm_plot_id': booking.farm_plot_id,
        'status': booking.status,
    }
    return job


@bp.get('/jobs')
@login_required
@role_required(ROLE_OPERATOR)
def list_jobs():
    status = request.args.get('status', 'active')
    if status not in JOB_FILTERS:
        raise ValidationError(f"status must be one of {', '.join(JOB_FILTERS)}")

    query = Assignment.query.filter(
        or_(Assignment.baler_vehicle_id == current_user.id, Assignment.truck_vehicle_id == current_user.id)
    )
    assignments = JOB_FILTERS[status](query).order_by(Assignment.assigned_at.desc()).limit(100).all()
    return jsonify({'jobs': [_job(a) for a in assignments]})


@bp.post('/jobs/<int:assignment_id>/advance')
@limiter.limit("20 per minute")
@login_required
@role_required(ROLE_OPERATOR)
def advance(assignment_id):
    data = json_body()
    next_status = data.get('status')
    if not next_status:
        raise ValidationError("status is required")

    ctx = FulfillmentContext.for_assignment(assignment_id)
    ctx.advance(
        assignment_id,
        next_status,
        current_user.id,
        report=data.get('report'),
        reason=data.get('reason'),
    )
    return jsonify(_job(ctx.get_assignment(assignment_id)))


@bp.patch('/jobs/<int:assignment_id>/report')
@limiter.limit("30 per minute")
@login_required
@role_required(ROLE_OPERATOR)
def update_report(assignment_id):
    data = json_body()
    ctx = FulfillmentContext.for_assignment(assignment_id)
    ctx.update_report(assignment_id, current_user.id, data)
    return jsonify(_job(ctx.get_assignment(assignment_id)))
