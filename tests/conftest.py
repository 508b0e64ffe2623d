"""
Pytest configuration and shared fixtures for BatchDesk tests.
"""
import os
import tempfile
from datetime import date, datetime, timezone

import pytest

from batchdesk import create_app
from batchdesk.extensions import db
from batchdesk.seeders import seed_demo_catalog
from batchdesk.utils.timezone_utils import FixedClock

# Wednesday of ISO week 11; lot numbers for this day are 11202503
FIXED_INSTANT = datetime(2025, 3, 12, 10, 0, tzinfo=timezone.utc)
FIXED_DATE = date(2025, 3, 12)


@pytest.fixture(scope='function')
def app():
    """Create and configure a new app instance for each test."""
    db_fd, db_path = tempfile.mkstemp()

    app = create_app({
        'TESTING': True,
        'DATABASE_URL': f'sqlite:///{db_path}',
        'SECRET_KEY': 'test-secret-key',
        'ERP_BASE_URL': None,
        'PLANT_TIMEZONE': 'Europe/Prague',
    })

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def app_context(app):
    """Provide an application context for tests that need it."""
    with app.app_context():
        yield


@pytest.fixture
def auth_headers():
    """Headers the upstream proxy adds for an authenticated planner."""
    return {
        'Content-Type': 'application/json',
        'X-User-Id': '42',
        'X-User-Name': 'Jana Planner',
    }


@pytest.fixture
def fixed_clock():
    return FixedClock(FIXED_INSTANT)


@pytest.fixture
def seeded_catalog(app_context):
    """SP001 with S100 (100 g, stock 50, 5/day) and S200 (200 g, stock 20, 2/day)."""
    seed_demo_catalog(FIXED_DATE)
    return 'SP001'
