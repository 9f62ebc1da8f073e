"""
Farmer-facing booking routes
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from agrocycle.auth import ROLE_FARMER, ROLE_HUB_MANAGER, role_required
from agrocycle.buisness.dispatching.context import FulfillmentContext
from agrocycle.buisness.dispatching.errors import ActorNotPermitted, ValidationError
from agrocycle.data.dispatching.booking import Booking
from agrocycle.logger import get_logger
from agrocycle.presentation.routes.helpers import int_field, json_body

bp = Blueprint('bookings', __name__)
logger = get_logger("agrocycle.routes.bookings")

BOOKING_FIELDS = ('farm_plot_id', 'harvest_end_date', 'preferred_pickup_window', 'farmer_notes')


def _load_visible(booking_id):
    ctx = FulfillmentContext.load(booking_id)
    if current_user.is_farmer and ctx.booking.farmer_id != current_user.id:
        raise ActorNotPermitted(f"Booking {booking_id} belongs to another farmer")
    return ctx


@bp.post('')
@login_required
@role_required(ROLE_FARMER)
def create_booking():
    data = json_body()
    fields = {name: data.get(name) for name in BOOKING_FIELDS if data.get(name) is not None}
    if 'farm_plot_id' in fields:
        fields['farm_plot_id'] = int_field(data, 'farm_plot_id')

    ctx = FulfillmentContext.create_booking(
        current_user.id, data.get('crop_type'), data.get('area_in_acres'), **fields
    )
    logger.info(f"Farmer {current_user.id} created booking {ctx.booking_id}")
    return jsonify(ctx.get_summary()), 201


@bp.get('')
@login_required
@role_required(ROLE_FARMER, ROLE_HUB_MANAGER)
def list_bookings():
    query = Booking.query
    if current_user.is_farmer:
        query = query.filter_by(farmer_id=current_user.id)
    else:
        farmer_id = request.args.get('farmer_id', type=int)
        if farmer_id is not None:
            query = query.filter_by(farmer_id=farmer_id)
        hub_id = request.args.get('hub_id', type=int)
        if hub_id is not None:
            query = query.filter_by(hub_id=hub_id)

    status = request.args.get('status')
    if status:
        query = query.filter_by(status=status)

    bookings = query.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(200).all()
    return jsonify({'bookings': [b.to_dict() for b in bookings]})


@bp.get('/<int:booking_id>')
@login_required
@role_required(ROLE_FARMER, ROLE_HUB_MANAGER)
def get_booking(booking_id):
    return jsonify(_load_visible(booking_id).get_summary())


@bp.post('/<int:booking_id>/cancel')
@login_required
@role_required(ROLE_FARMER, ROLE_HUB_MANAGER)
def cancel_booking(booking_id):
    data = json_body()
    ctx = _load_visible(booking_id)
    ctx.cancel(current_user.id, data.get('reason'))
    return jsonify(ctx.get_summary())


@bp.post('/<int:booking_id>/comments')
@login_required
@role_required(ROLE_FARMER, ROLE_HUB_MANAGER)
def add_comment(booking_id):
    data = json_body()
    content = (data.get('content') or '').strip()
    if not content:
        raise ValidationError("content is required")
    ctx = _load_visible(booking_id).comment(current_user.id, content)
    return jsonify({'timeline': ctx.timeline()}), 201
