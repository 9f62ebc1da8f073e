from flask import jsonify, request
from flask_login import current_user, login_required
from agrocycle.auth import ROLE_HUB_MANAGER, role_required
from agrocycle.buisness.core.unit_of_work import transaction
from agrocycle.buisness.dispatching.vehicle_registry import VehicleRegistry
from agrocycle.presentation.routes.helpers import int_field, json_body
from agrocycle.presentation.routes.hub import hub_bp

VEHICLE_FIELDS = ('vehicle_number', 'operator_name', 'ownership', 'time_per_tonne', 'capacity_tonnes')


@hub_bp.get('/vehicles')
@login_required
@role_required(ROLE_HUB_MANAGER)
def list_vehicles():
    vehicles = VehicleRegistry.list_vehicles(
        hub_id=request.args.get('hub_id', type=int),
        vehicle_type=request.args.get('type'),
        available_only=request.args.get('available', '').lower() in ('1', 'true', 'yes'),
    )
    return jsonify({'vehicles': [v.to_dict() for v in vehicles]})


@hub_bp.post('/vehicles')
@login_required
@role_required(ROLE_HUB_MANAGER)
def register_vehicle():
    data = json_body()
    fields = {name: data[name] for name in VEHICLE_FIELDS if data.get(name) is not None}
    with transaction():
        vehicle = VehicleRegistry.register(
            int_field(data, 'hub_id'), data.get('vehicle_type'), actor_id=current_user.id, **fields
        )
    return jsonify(vehicle.to_dict()), 201


@hub_bp.post('/vehicles/<int:vehicle_id>/reconcile')
@login_required
@role_required(ROLE_HUB_MANAGER)
def reconcile_vehicle(vehicle_id):
    with transaction():
        vehicle = VehicleRegistry.reconcile(vehicle_id)
    return jsonify(vehicle.to_dict())
