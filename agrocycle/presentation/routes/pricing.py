from dataclasses import asdict
from flask import Blueprint, jsonify, request
from agrocycle.buisness.dispatching.errors import ValidationError
from agrocycle.buisness.pricing.price_table import PriceTable

bp = Blueprint('pricing', __name__)


@bp.get('/crops')
def crops():
    return jsonify({
        'crops': [asdict(rate) for rate in PriceTable.all_rates()],
        'price_note': 'Prices may vary based on market conditions',
    })


@bp.get('/calculator')
def calculator():
    crop_type = request.args.get('crop_type')
    area = request.args.get('area_in_acres')
    if not crop_type or area is None:
        raise ValidationError("crop_type and area_in_acres are required")
    return jsonify(PriceTable.estimate(crop_type, area).to_dict())
