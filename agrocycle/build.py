#!/usr/bin/env python3
"""
Database build orchestrator for the stubble pickup system
Creates tables and inserts the critical data the engine needs to run
"""

from agrocycle import create_app, db
from agrocycle.logger import get_logger

logger = get_logger("agrocycle.build")

SYSTEM_EVENT_TYPE = 'System'
SYSTEM_EVENT_DESCRIPTION = 'System initialized with core data'


def verify_critical_data():
    """
    Verify that critical data is present in the database

    Returns:
        bool: True if all critical data is present, False otherwise
    """
    from agrocycle.data.core.crop_price import CropPrice, DEFAULT_CROP_PRICES
    from agrocycle.data.core.event_info.event import Event

    known = {row.crop_type for row in CropPrice.query.all()}
    missing = [crop for crop, *_ in DEFAULT_CROP_PRICES if crop not in known]
    if missing:
        logger.warning(f"Crop prices missing for: {', '.join(missing)}")
        return False

    system_event = Event.query.filter_by(
        event_type=SYSTEM_EVENT_TYPE, description=SYSTEM_EVENT_DESCRIPTION
    ).first()
    if system_event is None:
        logger.warning("System initialization event not found")
        return False

    return True


def insert_critical_data():
    """
    Insert the default crop price table and the system initialization event.

    Existing crop prices are left untouched so that hub edits survive a rebuild.

    Raises:
        RuntimeError: if the data is still incomplete after insertion
    """
    from agrocycle.data.core.crop_price import CropPrice, DEFAULT_CROP_PRICES
    from agrocycle.data.core.event_info.event import Event

    if verify_critical_data():
        logger.info("Critical data already present, skipping insertion")
        return

    logger.warning("Critical data missing, inserting...")
    try:
        for crop_type, yield_factor, residue_ratio, price in DEFAULT_CROP_PRICES:
            _, created = CropPrice.find_or_create_from_dict(
                {
                    'crop_type': crop_type,
                    'yield_factor': yield_factor,
                    'residue_ratio': residue_ratio,
                    'price_per_tonne': price,
                },
                lookup_fields=['crop_type'],
            )
            if created:
                logger.info(f"Inserted crop price: {crop_type}")

        if not Event.query.filter_by(event_type=SYSTEM_EVENT_TYPE, description=SYSTEM_EVENT_DESCRIPTION).first():
            Event.add_event(SYSTEM_EVENT_TYPE, SYSTEM_EVENT_DESCRIPTION)

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Critical data insertion failed: {e}")
        raise

    if not verify_critical_data():
        raise RuntimeError("Critical data insertion completed but verification failed")
    logger.info("Successfully inserted critical data")


def build_models():
    """Create every table registered on the metadata"""
    db.create_all()
    logger.info("All database tables created")


def build_database(app=None, enable_debug_data=False):
    """
    Build tables and critical data, optionally followed by demo data.

    Args:
        app: application to build against; a new one is created when omitted
        enable_debug_data (bool): insert the demo hub, fleet and booking
    """
    app = app or create_app()

    with app.app_context():
        logger.info(f"Starting database build (debug data: {enable_debug_data})")
        build_models()
        insert_critical_data()

        if enable_debug_data:
            from agrocycle.debug.seed_demo_data import insert_demo_data
            logger.info("Inserting demo data...")
            insert_demo_data()

        logger.info("Database build completed successfully")


if __name__ == '__main__':
    import sys

    build_database(enable_debug_data='--enable-debug-data' in sys.argv[1:])
