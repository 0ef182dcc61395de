# Overview: Service-layer reads of the raw sales ledger and its reversals.

"""
Ledger Reader

- Reads purchase rows for one user, newest first, optionally bounded by
  purchase_date (both bounds inclusive).
- Reads the reversal side channel for exactly the fetched sale ids and
  validates it before anything is reconciled.
- Filtering of reversed rows happens after reconciliation, so an unpaid
  credit sale is never mistaken for a reversed one.
- Store failures surface as StoreError; transient ones are retried first.
  Nothing is cached: every call re-reads the current reversal state.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import SaleRecord, SaleReversal, Customer, CreditPayment, Expense, InventoryReceipt
from ..models.sales import PAYMENT_METHOD_REVERSED
from .concurrency import run_with_retry
from .reconciliation_service import EffectiveSale, build_reversed_id_set, reconcile


class StoreError(Exception):
    """Raised when the underlying store cannot answer a query."""
    pass


def _read(op):
    attempts = current_app.config.get("LEDGER_READ_ATTEMPTS", 3)
    backoff = current_app.config.get("LEDGER_READ_BACKOFF_SECONDS", 0.1)
    try:
        return run_with_retry(op, attempts=attempts, backoff_base=backoff)
    except SQLAlchemyError as exc:
        raise StoreError(f"Sales ledger read failed: {exc}") from exc


def fetch_raw_sales(
    user_id: str,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> tuple[list[SaleRecord], set[int]]:
    """
    Fetch raw purchase rows plus the set of sale ids that have a reversal.

    Raises:
        StoreError: the store failed (after retries)
        ReconciliationInconsistency: a sale has more than one reversal
    """
    def _sales():
        query = db.session.query(SaleRecord).filter(SaleRecord.user_id == user_id)
        if start is not None:
            query = query.filter(SaleRecord.purchase_date >= start)
        if end is not None:
            query = query.filter(SaleRecord.purchase_date <= end)
        query = query.order_by(SaleRecord.purchase_date.desc(), SaleRecord.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    rows = _read(_sales)
    sale_ids = [row.id for row in rows]
    if not sale_ids:
        return rows, set()

    def _reversals():
        return db.session.query(SaleReversal).filter(
            SaleReversal.original_sale_id.in_(sale_ids),
        ).all()

    reversals = _read(_reversals)
    return rows, build_reversed_id_set(reversals, known_sale_ids=sale_ids)


def fetch_sales(
    user_id: str,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    include_reversed: bool = False,
    limit: Optional[int] = None,
) -> list[EffectiveSale]:
    """
    Reconciled sales for a user; reversed rows dropped unless asked for.

    `limit` counts the rows returned, so when reversed rows are dropped it
    is applied after filtering.
    """
    rows, reversed_ids = fetch_raw_sales(
        user_id, start=start, end=end, limit=limit if include_reversed else None,
    )
    sales = reconcile(
        rows,
        reversed_ids,
        quantity_default=current_app.config.get("LEGACY_QUANTITY_DEFAULT", 1),
    )
    if include_reversed:
        return sales
    active = [sale for sale in sales if not sale.is_reversed]
    return active[:limit] if limit else active


def fetch_sale(user_id: str, sale_id: int) -> Optional[EffectiveSale]:
    """One reconciled sale, reversed or not; None if the user has no such sale."""
    def _one():
        return db.session.query(SaleRecord).filter_by(id=sale_id, user_id=user_id).first()

    row = _read(_one)
    if row is None:
        return None

    def _reversals():
        return db.session.query(SaleReversal).filter_by(original_sale_id=sale_id).all()

    reversed_ids = build_reversed_id_set(_read(_reversals), known_sale_ids=[sale_id])
    return reconcile(
        [row],
        reversed_ids,
        quantity_default=current_app.config.get("LEGACY_QUANTITY_DEFAULT", 1),
    )[0]


def fetch_customers(user_id: str) -> list[Customer]:
    def _customers():
        return db.session.query(Customer).filter_by(user_id=user_id).order_by(Customer.id.asc()).all()

    return _read(_customers)


def fetch_credit_payments(
    user_id: str,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[CreditPayment]:
    def _payments():
        query = db.session.query(CreditPayment).filter(CreditPayment.user_id == user_id)
        if start is not None:
            query = query.filter(CreditPayment.paid_at >= start)
        if end is not None:
            query = query.filter(CreditPayment.paid_at <= end)
        return query.order_by(CreditPayment.paid_at.asc()).all()

    return _read(_payments)


def audit_reversals(user_id: str) -> dict:
    """
    Check every reversal of a user against the purchase ledger.

    Returns a summary dict; raises ReconciliationInconsistency on orphan or
    duplicate references.
    """
    def _all():
        reversals = db.session.query(SaleReversal).filter_by(user_id=user_id).all()
        sale_ids = [
            sale_id for (sale_id,) in
            db.session.query(SaleRecord.id).filter_by(user_id=user_id).all()
        ]
        return reversals, sale_ids

    reversals, sale_ids = _read(_all)
    reversed_ids = build_reversed_id_set(reversals, known_sale_ids=sale_ids)

    def _unmarked():
        if not reversed_ids:
            return []
        return db.session.query(SaleRecord.id).filter(
            SaleRecord.id.in_(reversed_ids),
            SaleRecord.payment_method != PAYMENT_METHOD_REVERSED,
        ).all()

    unmarked = sorted(sale_id for (sale_id,) in _read(_unmarked))
    return {
        "user_id": user_id,
        "sales": len(sale_ids),
        "reversals": len(reversals),
        "reversed_but_unmarked": unmarked,
    }


def fetch_expenses_total(user_id: str, start: datetime, end: datetime) -> int:
    def _total():
        return db.session.query(func.coalesce(func.sum(Expense.amount_cents), 0)).filter(
            Expense.user_id == user_id,
            Expense.expense_date >= start,
            Expense.expense_date <= end,
        ).scalar()

    return int(_read(_total) or 0)


def fetch_inventory_cost_total(user_id: str, start: datetime, end: datetime) -> int:
    def _total():
        return db.session.query(func.coalesce(func.sum(InventoryReceipt.total_cost_cents), 0)).filter(
            InventoryReceipt.user_id == user_id,
            InventoryReceipt.received_date >= start,
            InventoryReceipt.received_date <= end,
        ).scalar()

    return int(_read(_total) or 0)
