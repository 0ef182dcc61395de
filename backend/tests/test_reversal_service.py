# Overview: Pytest coverage for the sale reversal workflow.

"""
Sale Reversal Tests

Covers:
- Snapshot and zeroing of the reversed row
- Stock restored via a "returned" movement
- Customer totals decremented, never below zero
- Double reversal rejected (row state, legacy reversal record)
- Reason validated before anything is written
- Open views notified after commit
"""

from datetime import timedelta

import pytest

from saleslens.events import subscribe_to_sales_data_changes
from saleslens.models import Customer, InventoryMovement, SaleRecord, SaleReversal
from saleslens.services.reversal_service import (
    ReversalError,
    reversal_candidates,
    reverse_sale,
)
from saleslens.validation import ValidationError
from conftest import NOW, USER_ID


PHONE = "0712000000"


class TestReverseSale:

    def test_basic_reversal(self, db_session, make_sale, make_customer):
        customer = make_customer(PHONE, total_purchases_cents=300, total_sales_count=3)
        sale = make_sale(amount_cents=100, quantity=2, customer_phone=PHONE)

        reversal = reverse_sale(USER_ID, sale.id, "Damaged packaging", now=NOW)

        row = db_session.get(SaleRecord, sale.id)
        assert row.amount_cents == 0
        assert row.quantity == 0
        assert row.payment_method == "reversed"

        assert reversal.original_sale_id == sale.id
        assert reversal.original_amount_cents == 100
        assert reversal.original_quantity == 2
        assert reversal.original_payment_method == "cash"
        assert reversal.reversal_reason == "Damaged packaging"
        assert reversal.reversal_receipt_number == "REV-20240515-0001"

        [movement] = db_session.query(InventoryMovement).filter_by(sale_id=sale.id).all()
        assert movement.movement_type == "returned"
        assert movement.quantity == 2
        assert movement.unit_price_cents == 50

        customer = db_session.get(Customer, customer.id)
        assert customer.total_purchases_cents == 200
        assert customer.total_sales_count == 2

    def test_customer_totals_clamped_at_zero(self, db_session, make_sale, make_customer):
        customer = make_customer(PHONE, total_purchases_cents=50, total_sales_count=0)
        sale = make_sale(amount_cents=100, quantity=2, customer_phone=PHONE)

        reverse_sale(USER_ID, sale.id, "Refund", now=NOW)

        customer = db_session.get(Customer, customer.id)
        assert customer.total_purchases_cents == 0
        assert customer.total_sales_count == 0

    def test_walk_in_sale_touches_no_customer(self, db_session, make_sale, make_customer):
        make_customer(PHONE, total_purchases_cents=500, total_sales_count=1)
        sale = make_sale()

        reverse_sale(USER_ID, sale.id, "Refund", now=NOW)

        assert db_session.query(Customer).one().total_purchases_cents == 500

    def test_legacy_row_without_quantity_restocks_one_unit(self, db_session, make_sale):
        sale = make_sale(quantity=None)
        reversal = reverse_sale(USER_ID, sale.id, "Refund", now=NOW)
        assert reversal.original_quantity is None
        assert db_session.query(InventoryMovement).one().quantity == 1

    def test_receipt_numbers_increment_per_day(self, db_session, make_sale):
        first = make_sale()
        second = make_sale()
        assert reverse_sale(USER_ID, first.id, "a", now=NOW).reversal_receipt_number == "REV-20240515-0001"
        assert reverse_sale(USER_ID, second.id, "b", now=NOW).reversal_receipt_number == "REV-20240515-0002"


class TestReversalRejections:

    def test_double_reversal_rejected(self, db_session, make_sale, make_customer):
        customer = make_customer(PHONE, total_purchases_cents=300, total_sales_count=3)
        sale = make_sale(amount_cents=100, customer_phone=PHONE)
        reverse_sale(USER_ID, sale.id, "first", now=NOW)

        with pytest.raises(ReversalError) as exc:
            reverse_sale(USER_ID, sale.id, "second", now=NOW)

        assert exc.value.status_code == 409
        assert db_session.query(SaleReversal).count() == 1
        assert db_session.get(Customer, customer.id).total_purchases_cents == 200

    def test_legacy_reversal_counts_as_reversed(self, db_session, make_sale, legacy_reversal):
        sale = make_sale()
        legacy_reversal(sale)
        with pytest.raises(ReversalError):
            reverse_sale(USER_ID, sale.id, "again", now=NOW)

    def test_unknown_sale(self, db_session):
        with pytest.raises(ReversalError) as exc:
            reverse_sale(USER_ID, 4242, "reason", now=NOW)
        assert exc.value.status_code == 404

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reason_required(self, db_session, make_sale, reason):
        sale = make_sale()
        with pytest.raises(ValidationError):
            reverse_sale(USER_ID, sale.id, reason, now=NOW)
        assert db_session.query(SaleReversal).count() == 0
        assert db_session.get(SaleRecord, sale.id).amount_cents == 1000


class TestReversalEvents:

    def test_change_published_after_commit(self, db_session, make_sale):
        sale = make_sale()
        received = []
        unsubscribe = subscribe_to_sales_data_changes(
            lambda user_id, **payload: received.append((user_id, payload))
        )
        try:
            reversal = reverse_sale(USER_ID, sale.id, "Refund", now=NOW)
        finally:
            unsubscribe()

        assert received == [(USER_ID, {"entity_kind": "reversal", "entity_id": reversal.id})]

    def test_nothing_published_on_rejection(self, db_session):
        received = []
        unsubscribe = subscribe_to_sales_data_changes(lambda user_id, **payload: received.append(payload))
        try:
            with pytest.raises(ReversalError):
                reverse_sale(USER_ID, 4242, "reason", now=NOW)
        finally:
            unsubscribe()
        assert received == []


class TestReversalCandidates:

    def test_recent_unreversed_sales_only(self, db_session, make_sale):
        recent = make_sale(purchase_date=NOW - timedelta(days=3))
        make_sale(purchase_date=NOW - timedelta(days=31))
        reversed_sale = make_sale(purchase_date=NOW - timedelta(days=1))
        reverse_sale(USER_ID, reversed_sale.id, "Refund", now=NOW)

        assert [s.id for s in reversal_candidates(USER_ID, NOW)] == [recent.id]

    def test_limit(self, db_session, make_sale):
        for i in range(4):
            make_sale(purchase_date=NOW - timedelta(hours=i))
        assert len(reversal_candidates(USER_ID, NOW, limit=2)) == 2
