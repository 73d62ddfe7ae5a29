"""
Test configuration and fixtures for the fleet discipline API
"""

import pytest
import os

# Set test environment before importing app
os.environ.update({
    'FLASK_ENV': 'testing',
    'JWT_SECRET_KEY': 'test_jwt_secret_for_testing_only_0123456789',
    'DATABASE_URL': 'sqlite:///:memory:',
    'BACKGROUND_TASK_MODE': 'inline',
    'ENABLE_SCHEDULER': 'false',
})

from flask_jwt_extended import create_access_token

from app import create_app, db


@pytest.fixture(scope='function')
def app():
    """Create application for testing"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'BACKGROUND_TASK_MODE': 'inline',
        'ENABLE_SCHEDULER': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Database session bound to the test app"""
    yield db.session
    db.session.rollback()


@pytest.fixture
def auth_headers(app):
    """Bearer token for an arbitrary authenticated user"""
    token = create_access_token(identity='test-admin')
    return {'Authorization': f'Bearer {token}'}


# Fixtures for test data
@pytest.fixture
def franchise(db_session):
    from tests.factories import FranchiseFactory
    return FranchiseFactory()


@pytest.fixture
def driver(db_session, franchise):
    from tests.factories import DriverFactory
    return DriverFactory(franchise=franchise)


@pytest.fixture
def staff_member(db_session, franchise):
    from tests.factories import StaffFactory
    return StaffFactory(franchise=franchise)
