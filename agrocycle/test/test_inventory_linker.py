"""
Stock movements: one inbound per completed assignment, manual entries, stock levels
"""
import pytest
from agrocycle.buisness.dispatching.errors import (
    EntityNotFound,
    InboundAlreadyRecorded,
    InsufficientStock,
    PreconditionFailed,
    ValidationError,
)
from agrocycle.buisness.inventory.inventory_linker import InventoryLinker
from agrocycle.data.inventory.inventory_entry import InventoryEntry
from agrocycle.test.helpers import HUB_MANAGER_ID, advance_to, approved_booking, assigned_booking, make_fleet


def test_record_inbound_defaults_to_approved_quantity(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = approved_booking(baler, truck, final_quantity=5.8)

    entry = InventoryLinker.record_inbound(assignment.id, actor_id=HUB_MANAGER_ID, storage_location='Shed B')

    assert entry.direction == 'inbound'
    assert entry.quantity_tonnes == 5.8
    assert entry.hub_id == hub.id
    assert entry.source_assignment_id == assignment.id
    assert entry.booking_id == ctx.booking_id
    assert entry.farmer_id == 101
    assert entry.counterparty_name == 'Farmer #101'
    assert entry.vehicle_number == baler.vehicle_number
    assert InventoryLinker.current_stock(hub.id) == 5.8
    assert any('Inbound of 5.8 t' in e['content'] for e in ctx.timeline())


def test_record_inbound_twice(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = approved_booking(baler)
    first = InventoryLinker.record_inbound(assignment.id, 5.8, actor_id=HUB_MANAGER_ID)

    with pytest.raises(InboundAlreadyRecorded) as excinfo:
        InventoryLinker.record_inbound(assignment.id, 5.8, actor_id=HUB_MANAGER_ID)
    assert excinfo.value.existing.id == first.id
    assert InventoryEntry.query.count() == 1
    assert InventoryLinker.current_stock(hub.id) == 5.8



def test_concurrent_inbound_stopped_by_unique_source(app_ctx, monkeypatch):
    """Two requests that both miss the existing-entry lookup: the second is refused at commit"""
    hub, baler, truck = make_fleet()
    ctx, assignment = approved_booking(baler)
    InventoryLinker.record_inbound(assignment.id, actor_id=HUB_MANAGER_ID)

    monkeypatch.setattr(InventoryLinker, 'find_inbound', staticmethod(lambda assignment_id: None))
    with pytest.raises(InboundAlreadyRecorded):
        InventoryLinker.record_inbound(assignment.id, actor_id=HUB_MANAGER_ID)

    assert InventoryEntry.query.count() == 1
    assert InventoryLinker.current_stock(hub.id) == 5.8
    assert len([e for e in ctx.timeline() if 'Inbound of' in e['content']]) == 1

def test_record_inbound_requires_completed_assignment(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = assigned_booking(baler)
    advance_to(ctx, assignment, 'work_complete')
    with pytest.raises(PreconditionFailed) as excinfo:
        InventoryLinker.record_inbound(assignment.id, 5.8, actor_id=HUB_MANAGER_ID)
    assert excinfo.value.reason == 'assignment_not_completed'


def test_record_inbound_unknown_assignment(app_ctx):
    with pytest.raises(EntityNotFound):
        InventoryLinker.record_inbound(404, 1, actor_id=HUB_MANAGER_ID)


def test_record_inbound_rejects_non_positive(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = approved_booking(baler)
    with pytest.raises(ValidationError):
        InventoryLinker.record_inbound(assignment.id, 0, actor_id=HUB_MANAGER_ID)


def test_manual_entries_and_summary(app_ctx):
    hub, baler, truck = make_fleet()
    ctx, assignment = approved_booking(baler, final_quantity=5.8)
    InventoryLinker.record_inbound(assignment.id, actor_id=HUB_MANAGER_ID)
    InventoryLinker.record_manual(hub.id, 10, 'Walk-in seller', actor_id=HUB_MANAGER_ID)
    InventoryLinker.record_manual(hub.id, 4.3, 'Bio-CNG plant', direction='outbound',
                                  vehicle_number='PB10-X-1', sale_price=2400, actor_id=HUB_MANAGER_ID)

    summary = InventoryLinker.stock_summary(hub.id)
    assert summary['total_inbound_tonnes'] == 15.8
    assert summary['total_outbound_tonnes'] == 4.3
    assert summary['inbound_from_pickups_tonnes'] == 5.8
    assert summary['current_stock_tonnes'] == 11.5
    assert summary['entry_count'] == 3
    assert InventoryLinker.current_stock(hub.id) == 11.5


def test_outbound_beyond_stock(app_ctx):
    hub, baler, truck = make_fleet()
    InventoryLinker.record_manual(hub.id, 3, 'Walk-in seller', actor_id=HUB_MANAGER_ID)
    with pytest.raises(InsufficientStock):
        InventoryLinker.record_manual(hub.id, 3.5, 'Paper mill', direction='outbound', actor_id=HUB_MANAGER_ID)
    assert InventoryLinker.current_stock(hub.id) == 3


def test_stock_is_per_hub(app_ctx):
    hub, baler, truck = make_fleet()
    other_hub, _, _ = make_fleet(code='HR-KNL-01')
    InventoryLinker.record_manual(hub.id, 3, 'Walk-in seller', actor_id=HUB_MANAGER_ID)
    assert InventoryLinker.current_stock(other_hub.id) == 0
    with pytest.raises(InsufficientStock):
        InventoryLinker.record_manual(other_hub.id, 1, 'Paper mill', direction='outbound', actor_id=HUB_MANAGER_ID)


@pytest.mark.parametrize('kwargs', [
    {'direction': 'sideways'},
    {'counterparty_name': '  '},
    {'quantity_tonnes': -2},
    {'sale_price': -5},
])
def test_manual_validation(app_ctx, kwargs):
    hub, baler, truck = make_fleet()
    args = {'quantity_tonnes': 2, 'counterparty_name': 'Walk-in seller'}
    args.update(kwargs)
    with pytest.raises(ValidationError):
        InventoryLinker.record_manual(
            hub.id, args.pop('quantity_tonnes'), args.pop('counterparty_name'), actor_id=HUB_MANAGER_ID, **args
        )


def test_manual_unknown_hub(app_ctx):
    with pytest.raises(EntityNotFound):
        InventoryLinker.record_manual(404, 1, 'Walk-in seller', actor_id=HUB_MANAGER_ID)


def test_list_entries_filters_direction(app_ctx):
    hub, baler, truck = make_fleet()
    InventoryLinker.record_manual(hub.id, 5, 'Walk-in seller', actor_id=HUB_MANAGER_ID)
    InventoryLinker.record_manual(hub.id, 2, 'Paper mill', direction='outbound', actor_id=HUB_MANAGER_ID)
    outbound = InventoryLinker.list_entries(hub.id, direction='outbound')
    assert [e.counterparty_name for e in outbound] == ['Paper mill']
    assert len(InventoryLinker.list_entries(hub.id)) == 2
