"""
Actor identity.

Authentication (OTP, passwords, sessions) is done by the upstream gateway,
which forwards the authenticated actor as X-Actor-Id / X-Actor-Role headers.
Flask-Login's request_loader turns them into `current_user`.
"""

from functools import wraps
from flask import jsonify
from flask_login import UserMixin, current_user
from agrocycle import login_manager
from agrocycle.logger import get_logger

logger = get_logger("agrocycle.auth")

ROLE_FARMER = 'farmer'
ROLE_HUB_MANAGER = 'hub_manager'
ROLE_OPERATOR = 'operator'

ROLES = {ROLE_FARMER, ROLE_HUB_MANAGER, ROLE_OPERATOR}

ACTOR_ID_HEADER = 'X-Actor-Id'
ACTOR_ROLE_HEADER = 'X-Actor-Role'


class Actor(UserMixin):
    """
    An authenticated party. For operators the id is their vehicle id.
    """

    def __init__(self, actor_id, role):
        self.id = actor_id
        self.role = role

    def get_id(self):
        return f"{self.role}:{self.id}"

    @property
    def is_farmer(self):
        return self.role == ROLE_FARMER

    @property
    def is_hub_manager(self):
        return self.role == ROLE_HUB_MANAGER

    @property
    def is_operator(self):
        return self.role == ROLE_OPERATOR

    def __repr__(self):
        return f'<Actor {self.role} {self.id}>'


def load_actor_from_request(request):
    """Build the Actor from gateway headers; None when absent or malformed"""
    raw_id = request.headers.get(ACTOR_ID_HEADER)
    role = (request.headers.get(ACTOR_ROLE_HEADER) or '').strip().lower()
    if not raw_id or role not in ROLES:
        return None
    try:
        actor_id = int(raw_id)
    except ValueError:
        logger.warning(f"Rejected non-numeric {ACTOR_ID_HEADER} header")
        return None
    if actor_id <= 0:
        return None
    return Actor(actor_id, role)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({
        'error': 'Unauthorized',
        'reason': 'unauthenticated',
        'message': f"Missing or invalid {ACTOR_ID_HEADER} / {ACTOR_ROLE_HEADER} headers",
    }), 401


def role_required(*roles):
    """
    Restrict a view to the given actor roles. Use below @login_required.
    """
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if current_user.role not in roles:
                logger.info(f"{current_user!r} denied access to {view.__name__}")
                return jsonify({
                    'error': 'ActorNotPermitted',
                    'reason': 'role_not_permitted',
                    'message': f"Requires role: {', '.join(roles)}",
                }), 403
            return view(*args, **kwargs)
        return wrapped
    return decorator
