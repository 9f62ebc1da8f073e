from flask import jsonify, request
from flask_login import current_user, login_required
from agrocycle.auth import ROLE_HUB_MANAGER, role_required
from agrocycle.buisness.dispatching.errors import InboundAlreadyRecorded
from agrocycle.buisness.inventory.inventory_linker import InventoryLinker
from agrocycle.logger import get_logger
from agrocycle.presentation.routes.helpers import int_field, json_body, same_quantity
from agrocycle.presentation.routes.hub import hub_bp

logger = get_logger("agrocycle.routes.hub.inventory")


@hub_bp.get('/<int:hub_id>/inventory')
@login_required
@role_required(ROLE_HUB_MANAGER)
def inventory(hub_id):
    entries = InventoryLinker.list_entries(
        hub_id,
        direction=request.args.get('direction') or None,
        limit=min(request.args.get('limit', 100, type=int), 500),
    )
    return jsonify({
        'summary': InventoryLinker.stock_summary(hub_id),
        'entries': [e.to_dict() for e in entries],
    })


@hub_bp.post('/inventory/inbound')
@login_required
@role_required(ROLE_HUB_MANAGER)
def record_inbound():
    data = json_body()
    assignment_id = int_field(data, 'assignment_id')
    quantity = data.get('quantity_tonnes')
    try:
        entry = InventoryLinker.record_inbound(
            assignment_id,
            quantity,
            notes=data.get('notes'),
            actor_id=current_user.id,
            storage_location=data.get('storage_location'),
            counterparty_name=data.get('counterparty_name'),
        )
    except InboundAlreadyRecorded as error:
        existing = error.existing
        if existing is None or (quantity is not None and not same_quantity(existing.quantity_tonnes, quantity)):
            raise
        logger.info(f"Repeated inbound for assignment {assignment_id} answered with entry {existing.id}")
        return jsonify({'entry': existing.to_dict(), 'notice': 'already_recorded'})
    return jsonify({'entry': entry.to_dict()}), 201


@hub_bp.post('/inventory/manual')
@login_required
@role_required(ROLE_HUB_MANAGER)
def record_manual():
    data = json_body()
    entry = InventoryLinker.record_manual(
        int_field(data, 'hub_id'),
        data.get('quantity_tonnes'),
        data.get('counterparty_name'),
        direction=data.get('direction', 'inbound'),
        vehicle_number=data.get('vehicle_number'),
        notes=data.get('notes'),
        actor_id=current_user.id,
        storage_location=data.get('storage_location'),
        sale_price=data.get('sale_price'),
    )
    return jsonify({'entry': entry.to_dict()}), 201
