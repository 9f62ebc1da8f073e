"""
Hub payout routes

Rates in a request override the configured DEFAULT_*_RATE values; base_price
has no default and must always be sent.
"""

from flask import current_app, jsonify, request
from flask_login import current_user, login_required
from agrocycle.auth import ROLE_HUB_MANAGER, role_required
from agrocycle.buisness.payouts.payout_calculator import PayoutCalculator, PayoutRates
from agrocycle.presentation.routes.helpers import int_field, json_body
from agrocycle.presentation.routes.hub import hub_bp


def _rates(data):
    defaults = {
        'subsidy_rate': current_app.config.get('DEFAULT_SUBSIDY_RATE'),
        'baling_cost_rate': current_app.config.get('DEFAULT_BALING_COST_RATE'),
        'logistics_rate': current_app.config.get('DEFAULT_LOGISTICS_RATE'),
    }
    rates = data.get('rates')
    return PayoutRates.from_mapping(rates if isinstance(rates, dict) else data, defaults)


def _breakdown(data):
    booking_ids = data.get('booking_ids')
    if not isinstance(booking_ids, list):
        booking_ids = []
    return PayoutCalculator.calculate(int_field(data, 'farmer_id'), booking_ids, _rates(data))


@hub_bp.post('/payouts/calculate')
@login_required
@role_required(ROLE_HUB_MANAGER)
def calculate_payout():
    return jsonify(_breakdown(json_body()).to_dict())


@hub_bp.get('/payouts')
@login_required
@role_required(ROLE_HUB_MANAGER)
def list_payouts():
    payouts = PayoutCalculator.list_payouts(
        farmer_id=request.args.get('farmer_id', type=int),
        hub_id=request.args.get('hub_id', type=int),
        status=request.args.get('status') or None,
    )
    return jsonify({'payouts': [p.to_dict() for p in payouts]})


@hub_bp.post('/payouts')
@login_required
@role_required(ROLE_HUB_MANAGER)
def create_payout():
    data = json_body()
    breakdown = _breakdown(data)
    payout = PayoutCalculator.commit(
        breakdown,
        hub_id=int_field(data, 'hub_id', required=False),
        notes=data.get('notes'),
        actor_id=current_user.id,
    )
    return jsonify({'payout': payout.to_dict(), 'breakdown': breakdown.to_dict()}), 201


@hub_bp.get('/payouts/<int:payout_id>')
@login_required
@role_required(ROLE_HUB_MANAGER)
def get_payout(payout_id):
    return jsonify(PayoutCalculator.get(payout_id).to_dict())


@hub_bp.post('/payouts/<int:payout_id>/complete')
@login_required
@role_required(ROLE_HUB_MANAGER)
def complete_payout(payout_id):
    data = json_body()
    payout = PayoutCalculator.mark_completed(payout_id, data.get('transaction_id'), actor_id=current_user.id)
    return jsonify(payout.to_dict())


@hub_bp.get('/farmers/<int:farmer_id>/unpaid-bookings')
@login_required
@role_required(ROLE_HUB_MANAGER)
def unpaid_bookings(farmer_id):
    bookings = PayoutCalculator.unpaid_bookings(farmer_id)
    return jsonify({'bookings': [b.to_dict() for b in bookings]})
