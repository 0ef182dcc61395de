# Overview: Pytest coverage for recording sales into the ledger.

import pytest

from saleslens.events import subscribe_to_sales_data_changes
from saleslens.models import Customer, InventoryMovement, SaleRecord
from saleslens.services.sales_service import record_sale
from saleslens.validation import ValidationError
from conftest import NOW, USER_ID


PHONE = "0712000000"


class TestRecordSale:

    def test_records_row_movement_and_customer(self, db_session):
        sale = record_sale(USER_ID, {
            "product_name": "Rice 5kg",
            "amount_cents": 10000,
            "quantity": 2,
            "payment_method": "Mobile Money",
            "customer_phone": PHONE,
            "customer_name": "Amina",
            "purchase_date": "2024-05-15T09:30:00Z",
        })

        stored = db_session.get(SaleRecord, sale.id)
        assert stored.payment_method == "mobile money"
        assert stored.purchase_date.isoformat() == "2024-05-15T09:30:00"

        [movement] = db_session.query(InventoryMovement).all()
        assert movement.movement_type == "sold"
        assert movement.quantity == 2
        assert movement.unit_price_cents == 5000

        customer = db_session.query(Customer).filter_by(phone_number=PHONE).one()
        assert customer.name == "Amina"
        assert customer.total_purchases_cents == 10000
        assert customer.total_sales_count == 1

    def test_defaults(self, db_session):
        sale = record_sale(USER_ID, {"product_name": "Salt", "amount_cents": 150}, now=NOW)
        assert sale.payment_method == "cash"
        assert sale.customer_phone == "walk-in"
        assert sale.purchase_date == NOW
        assert db_session.query(Customer).count() == 0

    def test_missing_quantity_moves_configured_units(self, app, db_session):
        app.config["LEGACY_QUANTITY_DEFAULT"] = 2
        try:
            record_sale(USER_ID, {"product_name": "Salt", "amount_cents": 150}, now=NOW)
        finally:
            app.config["LEGACY_QUANTITY_DEFAULT"] = 1

        [movement] = db_session.query(InventoryMovement).all()
        assert movement.quantity == 2
        assert movement.unit_price_cents == 75

    def test_repeat_customer_accumulates(self, db_session):
        for amount in (300, 700):
            record_sale(USER_ID, {"product_name": "Tea", "amount_cents": amount, "customer_phone": PHONE}, now=NOW)
        customer = db_session.query(Customer).one()
        assert customer.total_purchases_cents == 1000
        assert customer.total_sales_count == 2

    def test_credit_sale_with_deposit(self, db_session):
        sale = record_sale(USER_ID, {
            "product_name": "Flour",
            "amount_cents": 2000,
            "amount_paid_cents": 500,
            "payment_method": "credit",
            "customer_phone": PHONE,
        }, now=NOW)
        assert sale.amount_paid_cents == 500

    def test_publishes_change(self, db_session):
        received = []
        unsubscribe = subscribe_to_sales_data_changes(lambda user_id, **payload: received.append(payload))
        try:
            sale = record_sale(USER_ID, {"product_name": "Salt", "amount_cents": 150}, now=NOW)
        finally:
            unsubscribe()
        assert received == [{"entity_kind": "sale", "entity_id": sale.id}]

    @pytest.mark.parametrize("payload", [
        {"amount_cents": 100},
        {"product_name": "Salt"},
        {"product_name": "", "amount_cents": 100},
        {"product_name": "Salt", "amount_cents": -1},
        {"product_name": "Salt", "amount_cents": 10.5},
        {"product_name": "Salt", "amount_cents": 100, "quantity": -2},
        {"product_name": "Salt", "amount_cents": 100, "payment_method": "reversed"},
        {"product_name": "Salt", "amount_cents": 100, "payment_method": "barter"},
        {"product_name": "Salt", "amount_cents": 100, "amount_paid_cents": 200},
        {"product_name": "Salt", "amount_cents": 100, "purchase_date": "yesterday"},
    ])
    def test_invalid_payload_writes_nothing(self, db_session, payload):
        with pytest.raises(ValidationError):
            record_sale(USER_ID, payload)
        assert db_session.query(SaleRecord).count() == 0
