from flask import Blueprint

hub_bp = Blueprint('hub', __name__)

# Import all route modules
from . import (  # noqa: E402,F401
    vehicles,
    dispatch,
    inventory,
    payouts,
)
