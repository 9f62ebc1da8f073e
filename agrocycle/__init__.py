from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os
from agrocycle.logger import get_logger

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["2000 per day", "300 per hour"],
    storage_uri="memory://"  # Use Redis in production for multi-worker deployments
)


def _env_flag(name, default='False'):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app(config_overrides=None):
    """
    Build the Flask application.

    Configuration is read from the environment (see generate_env.py);
    `config_overrides` is applied last and is how tests point the app at
    an in-memory database.
    """
    from pathlib import Path

    app = Flask(__name__)

    logger = get_logger("agrocycle")
    logger.info("Initializing Flask application")

    # SECURITY: Require SECRET_KEY in environment - no fallback
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY')

    # Prefer an explicit DATABASE_URL; otherwise keep the SQLite file inside
    # the project's `instance/` directory.
    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        base_dir = Path(__file__).parent.parent
        instance_dir = base_dir / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'agrocycle.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['RATELIMIT_ENABLED'] = _env_flag('RATELIMIT_ENABLED', 'True')

    # Payout rate defaults (₹ per tonne) used when a hub request omits them
    app.config['DEFAULT_SUBSIDY_RATE'] = float(os.environ.get('DEFAULT_SUBSIDY_RATE', '500'))
    app.config['DEFAULT_BALING_COST_RATE'] = float(os.environ.get('DEFAULT_BALING_COST_RATE', '300'))
    app.config['DEFAULT_LOGISTICS_RATE'] = float(os.environ.get('DEFAULT_LOGISTICS_RATE', '150'))

    if config_overrides:
        app.config.update(config_overrides)

    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    logger.debug(f"Database configured: {app.config['SQLALCHEMY_DATABASE_URI'].split(':', 1)[0]}")

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from agrocycle.data.core.hub import Hub
    from agrocycle.data.core.crop_price import CropPrice
    from agrocycle.data.core.event_info.event import Event
    from agrocycle.data.core.event_info.comment import Comment
    from agrocycle.data.dispatching.vehicle import Vehicle
    from agrocycle.data.dispatching.booking import Booking
    from agrocycle.data.dispatching.assignment import Assignment
    from agrocycle.data.inventory.inventory_entry import InventoryEntry
    from agrocycle.data.payouts.payout import Payout, PayoutBooking

    logger.debug("Models imported and registered")

    # Actor identity is asserted by the upstream auth gateway
    from agrocycle.auth import load_actor_from_request
    login_manager.request_loader(load_actor_from_request)

    from agrocycle.presentation.routes import init_app as init_routes
    init_routes(app)

    logger.info("Flask application initialization complete")

    return app
