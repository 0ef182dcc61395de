"""
Pytest fixtures for SalesLens backend tests.

Provides test database setup, ledger row factories, and test client.
"""

from datetime import datetime

import pytest
from saleslens import create_app
from saleslens.extensions import db
from saleslens.models import Customer, SaleRecord, SaleReversal
from saleslens.services.reconciliation_service import reconcile
from saleslens.services.request_gate import gate


USER_ID = "user-a"
OTHER_USER_ID = "user-b"

# Wednesday; its week starts on Sunday 2024-05-12
NOW = datetime(2024, 5, 15, 12, 0, 0)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LEDGER_READ_BACKOFF_SECONDS': 0,
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
        gate.reset()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_sale(db_session):
    """Factory inserting a purchase row for USER_ID (override any column)."""
    def _make(**fields):
        values = {
            "user_id": USER_ID,
            "product_name": "Rice",
            "amount_cents": 1000,
            "quantity": 1,
            "payment_method": "cash",
            "customer_phone": "walk-in",
            "purchase_date": NOW,
        }
        values.update(fields)
        sale = SaleRecord(**values)
        db_session.add(sale)
        db_session.commit()
        return sale

    return _make


@pytest.fixture(scope='function')
def make_customer(db_session):
    def _make(phone="0712000000", **fields):
        values = {
            "user_id": USER_ID,
            "phone_number": phone,
            "name": "Amina",
            "total_purchases_cents": 0,
            "total_sales_count": 0,
        }
        values.update(fields)
        customer = Customer(**values)
        db_session.add(customer)
        db_session.commit()
        return customer

    return _make


@pytest.fixture(scope='function')
def legacy_reversal(db_session):
    """Reversal recorded only in sale_reversals; the sale row is untouched."""
    def _make(sale, receipt="REV-LEGACY-0001"):
        reversal = SaleReversal(
            user_id=sale.user_id,
            original_sale_id=sale.id,
            reversal_reason="legacy",
            reversal_receipt_number=receipt,
            reversal_date=NOW,
        )
        db_session.add(reversal)
        db_session.commit()
        return reversal

    return _make


def row(id, product_name="Rice", amount_cents=1000, quantity=1, payment_method="cash",
        customer_phone="walk-in", purchase_date=NOW, amount_paid_cents=None):
    """Unsaved purchase row for pure reconciliation/analytics tests."""
    return SaleRecord(
        id=id,
        user_id=USER_ID,
        product_name=product_name,
        amount_cents=amount_cents,
        quantity=quantity,
        payment_method=payment_method,
        customer_phone=customer_phone,
        purchase_date=purchase_date,
        amount_paid_cents=amount_paid_cents,
    )


def effective(*rows, reversed_ids=()):
    return reconcile(rows, reversed_ids)


def user_headers(user_id: str = USER_ID, **extra) -> dict:
    """Helper to create the caller identity header."""
    headers = {'X-User-Id': user_id}
    headers.update(extra)
    return headers
