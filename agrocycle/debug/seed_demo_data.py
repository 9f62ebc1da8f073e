#!/usr/bin/env python3
"""
Demo Data Insertion
Inserts a hub, its fleet and one pending booking from debug/data/demo.json

Rows are looked up by their natural keys (hub code, vehicle number, farm
plot) so running the build twice does not duplicate them.
"""

from pathlib import Path
import json
from agrocycle import db
from agrocycle.logger import get_logger

logger = get_logger("agrocycle.debug.seed_demo_data")

DEMO_FILE = Path(__file__).parent / 'data' / 'demo.json'


def load_demo_data(path=DEMO_FILE):
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {path}: {e}")
        raise


def insert_demo_data(demo_data=None):
    """
    Insert demo hubs, vehicles and bookings

    Returns:
        dict: counts of inserted rows per section

    Raises:
        Exception: If insertion fails (fail-fast)
    """
    demo_data = demo_data if demo_data is not None else load_demo_data()
    summary = {'hubs': 0, 'vehicles': 0, 'bookings': 0}

    try:
        hubs = _insert_hubs(demo_data.get('Hubs', {}), summary)
        _insert_vehicles(demo_data.get('Vehicles', {}), hubs, summary)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Failed to insert demo data: {e}")
        raise

    # Bookings go through the fulfillment facade, which commits on its own
    _insert_bookings(demo_data.get('Bookings', {}), summary)

    logger.info(f"Demo data inserted: {summary}")
    return summary


def _insert_hubs(hubs_data, summary):
    from agrocycle.data.core.hub import Hub

    hubs = {}
    for hub_data in hubs_data.values():
        hub, created = Hub.find_or_create_from_dict(hub_data, lookup_fields=['code'])
        db.session.flush()
        hubs[hub.code] = hub
        summary['hubs'] += int(created)
    return hubs


def _insert_vehicles(vehicles_data, hubs, summary):
    from agrocycle.buisness.dispatching.vehicle_registry import VehicleRegistry
    from agrocycle.data.dispatching.vehicle import Vehicle

    for key, vehicle_data in vehicles_data.items():
        fields = dict(vehicle_data)
        hub = hubs.get(fields.pop('hub_code'))
        if hub is None:
            raise ValueError(f"Demo vehicle {key} references an unknown hub")
        if Vehicle.query.filter_by(vehicle_number=fields.get('vehicle_number')).first():
            logger.debug(f"Vehicle {fields.get('vehicle_number')} already exists, skipping")
            continue
        VehicleRegistry.register(hub.id, fields.pop('vehicle_type'), **fields)
        summary['vehicles'] += 1


def _insert_bookings(bookings_data, summary):
    from agrocycle.buisness.dispatching.context import FulfillmentContext
    from agrocycle.data.dispatching.booking import Booking

    for booking_data in bookings_data.values():
        fields = dict(booking_data)
        farmer_id = fields.pop('farmer_id')
        if Booking.query.filter_by(farmer_id=farmer_id, farm_plot_id=fields.get('farm_plot_id')).first():
            logger.debug(f"Demo booking for farmer {farmer_id} already exists, skipping")
            continue
        FulfillmentContext.create_booking(
            farmer_id, fields.pop('crop_type'), fields.pop('area_in_acres'), **fields
        )
        summary['bookings'] += 1
