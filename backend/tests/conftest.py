"""
Pytest fixtures for pharmacy backend tests.

Provides test database setup, sample medicines/customers and test client.
"""

from datetime import date, timedelta

import pytest
from pharmacy import create_app
from pharmacy.extensions import db
from pharmacy.models import Medicine, Customer


FUTURE_EXPIRY = date.today() + timedelta(days=365)
PAST_EXPIRY = date(2023, 1, 1)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TRANSACTION_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_medicine(session, *, name="Aspirin", quantity=100, price_cents=599, expiry_date=FUTURE_EXPIRY) -> Medicine:
    """Insert a medicine directly (inventory intake is outside the sale workflows)."""
    medicine = Medicine(name=name, quantity=quantity, price_cents=price_cents, expiry_date=expiry_date)
    session.add(medicine)
    session.commit()
    return medicine


def make_customer(session, *, name="Abebe Bekele", contact="0997586356") -> Customer:
    customer = Customer(name=name, contact=contact)
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def customer(db_session):
    return make_customer(db_session)


@pytest.fixture(scope='function')
def aspirin(db_session):
    return make_medicine(db_session, name="Aspirin", quantity=100, price_cents=599)


@pytest.fixture(scope='function')
def amoxicillin(db_session):
    return make_medicine(db_session, name="Amoxicillin", quantity=23, price_cents=1250)


@pytest.fixture(scope='function')
def expired_ibuprofen(db_session):
    return make_medicine(db_session, name="Ibuprofen", quantity=15, price_cents=999, expiry_date=PAST_EXPIRY)
