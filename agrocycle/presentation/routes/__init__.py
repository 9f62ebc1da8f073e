"""
Routes package for the fulfillment JSON API
Organized by the acting party: farmer, hub, operator, plus the public price table
"""

from agrocycle.logger import get_logger

logger = get_logger("agrocycle.routes")


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    logger.debug("Initializing route blueprints")

    from .errors import register_error_handlers
    register_error_handlers(app)

    from .pricing import bp as pricing_bp
    from .bookings import bp as bookings_bp
    from .operator import bp as operator_bp
    from .hub import hub_bp

    app.register_blueprint(pricing_bp, url_prefix='/api')
    app.register_blueprint(bookings_bp, url_prefix='/api/bookings')
    app.register_blueprint(hub_bp, url_prefix='/api/hub')
    app.register_blueprint(operator_bp, url_prefix='/api/operator')

    logger.info("Route blueprints registered")
