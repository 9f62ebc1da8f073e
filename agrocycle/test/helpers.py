"""
Builders shared by the tests. All of them need an active app context.
"""

from agrocycle import db
from agrocycle.buisness.dispatching.context import FulfillmentContext
from agrocycle.buisness.dispatching.vehicle_registry import VehicleRegistry
from agrocycle.data.core.hub import Hub

HUB_MANAGER_ID = 900
FARMER_ID = 101

WORK_REPORT = {
    'actual_quantity_tonnes': 5.9,
    'time_required_minutes': 170,
    'bale_count': 42,
    'moisture_content': 14.5,
}

# Operator steps up to, but excluding, work_complete
OPERATOR_STEPS = ['accepted', 'en_route', 'arrived', 'work_started']


def make_hub(code='PB-LDH-01', name='Ludhiana Collection Hub'):
    hub = Hub(name=name, code=code, city='Ludhiana', state='Punjab')
    db.session.add(hub)
    db.session.commit()
    return hub


def make_vehicle(hub, vehicle_type='baler', **fields):
    vehicle = VehicleRegistry.register(hub.id, vehicle_type, actor_id=HUB_MANAGER_ID, **fields)
    db.session.commit()
    return vehicle


def make_booking(farmer_id=FARMER_ID, crop_type='paddy', area_in_acres=5, **fields):
    return FulfillmentContext.create_booking(farmer_id, crop_type, area_in_acres, **fields)


def make_fleet(code='PB-LDH-01'):
    """A hub with one baler (30 min/t) and one truck"""
    hub = make_hub(code=code)
    baler = make_vehicle(hub, 'baler', vehicle_number=f'{code}-BL', time_per_tonne=30)
    truck = make_vehicle(hub, 'truck', vehicle_number=f'{code}-TR', capacity_tonnes=8)
    return hub, baler, truck


def assigned_booking(baler, truck=None, **booking_fields):
    """A booking with an active assignment; returns (ctx, assignment)"""
    ctx = make_booking(**booking_fields)
    ctx.assign(HUB_MANAGER_ID, baler.id, truck.id if truck is not None else None)
    return ctx, ctx.active_assignment


def advance_to(ctx, assignment, final_step, operator_id=None, report=None):
    """Walk the operator track from pending up to and including final_step"""
    operator_id = operator_id or assignment.baler_vehicle_id
    steps = OPERATOR_STEPS + ['work_complete', 'delivered']
    for step in steps[:steps.index(final_step) + 1]:
        step_report = (report or WORK_REPORT) if step == 'work_complete' else None
        ctx.advance(assignment.id, step, operator_id, report=step_report)
    return ctx.get_assignment(assignment.id)


def approved_booking(baler, truck=None, final_quantity=5.8, **booking_fields):
    """A completed booking whose assignment was approved at final_quantity"""
    ctx, assignment = assigned_booking(baler, truck, **booking_fields)
    advance_to(ctx, assignment, 'work_complete')
    ctx.approve(HUB_MANAGER_ID, assignment.id, final_quantity)
    return ctx, ctx.get_assignment(assignment.id)


def hub_headers(actor_id=HUB_MANAGER_ID):
    return {'X-Actor-Id': str(actor_id), 'X-Actor-Role': 'hub_manager'}


def farmer_headers(farmer_id=FARMER_ID):
    return {'X-Actor-Id': str(farmer_id), 'X-Actor-Role': 'farmer'}


def operator_headers(vehicle_id):
    return {'X-Actor-Id': str(vehicle_id), 'X-Actor-Role': 'operator'}
