"""
Pytest configuration and fixtures

Each test gets its own application bound to a fresh in-memory SQLite
database with the crop price table seeded.

Domain tests use `app_ctx`. Route tests use `client` and must not hold an
app context across requests: Flask-Login caches the actor on `g`, which
lives on the app context.
"""
import os
import tempfile

os.environ.setdefault('SECRET_KEY', 'test-secret-key')
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='agrocycle-logs-'))
os.environ.setdefault('LOG_LEVEL', 'WARNING')

import pytest  # noqa: E402
from agrocycle import create_app  # noqa: E402
from agrocycle import db as _db  # noqa: E402
from agrocycle.build import build_models, insert_critical_data  # noqa: E402


@pytest.fixture(scope='function')
def app():
    """Create Flask application for testing"""
    app = create_app({
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'TESTING': True,
        'RATELIMIT_ENABLED': False,
    })
    with app.app_context():
        build_models()
        insert_critical_data()

    yield app

    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def app_ctx(app):
    """Push an application context for tests that call the domain layer directly"""
    with app.app_context():
        yield app
        _db.session.rollback()


@pytest.fixture(scope='function')
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def db(app_ctx):
    return _db
