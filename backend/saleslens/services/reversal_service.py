"""
Sale Reversal Service

WHY: A reversal nullifies the financial effect of a sale while keeping the
sale row for audit. It must be applied exactly once: a second reversal would
decrement the customer's totals twice and restock twice.

DESIGN PRINCIPLES:
- Input is validated before any I/O (reason required)
- The pre-reversal amount, quantity and payment method are snapshotted on
  the SaleReversal row before the sale row is zeroed
- Stock is restored through a "returned" inventory movement
- Customer totals are decremented, clamped at zero
- Everything commits in one transaction; the unique constraint on
  original_sale_id rejects a concurrent second reversal at commit time
- Open views are notified only after the commit succeeds
"""

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..events import ENTITY_REVERSAL, publish_sales_data_changed
from ..extensions import db
from ..models import SaleRecord, SaleReversal, InventoryMovement
from ..models.inventory import MOVEMENT_RETURNED
from ..models.sales import PAYMENT_METHOD_REVERSED
from ..validation import require_text
from saleslens.time_utils import utcnow
from .concurrency import lock_for_update
from .ledger_service import fetch_sale, fetch_sales
from .reconciliation_service import EffectiveSale
from .sales_service import revert_sale_on_customer


class ReversalError(Exception):
    """Raised for reversal operation errors."""
    def __init__(self, message: str, status_code: int = 409):
        super().__init__(message)
        self.status_code = status_code


def next_reversal_receipt_number(user_id: str, now: datetime) -> str:
    """REV-YYYYMMDD-NNNN, numbered per user per day."""
    prefix = f"REV-{now.strftime('%Y%m%d')}-"
    count = db.session.query(SaleReversal).filter(
        SaleReversal.user_id == user_id,
        SaleReversal.reversal_receipt_number.like(f"{prefix}%"),
    ).count()
    return f"{prefix}{str(count + 1).zfill(4)}"


def reversal_candidates(
    user_id: str,
    now: datetime | None = None,
    *,
    days: int | None = None,
    limit: int | None = None,
) -> list[EffectiveSale]:
    """Recent sales that can still be reversed, newest first."""
    now = now or utcnow()
    days = days if days is not None else current_app.config.get("REVERSAL_WINDOW_DAYS", 30)
    limit = limit if limit is not None else current_app.config.get("REVERSAL_CANDIDATE_LIMIT", 50)
    return fetch_sales(user_id, start=now - timedelta(days=days), end=now, limit=limit)


def reverse_sale(
    user_id: str,
    sale_id: int,
    reason: str,
    now: datetime | None = None,
) -> SaleReversal:
    """
    Reverse one sale.

    Raises:
        ValidationError: reason missing
        ReversalError: sale not found (404) or already reversed (409)
        ReconciliationInconsistency: the sale already has several reversals
    """
    reason = require_text(reason, "reversal_reason")
    now = now or utcnow()

    current = fetch_sale(user_id, sale_id)
    if current is None:
        raise ReversalError(f"Sale {sale_id} not found", status_code=404)
    if current.is_reversed:
        raise ReversalError(f"Sale {sale_id} has already been reversed")

    sale = lock_for_update(
        db.session.query(SaleRecord).filter_by(id=sale_id, user_id=user_id)
    ).one()

    original_amount = sale.amount_cents or 0
    original_quantity = current.effective_quantity
    original_method = sale.payment_method

    reversal = SaleReversal(
        user_id=user_id,
        original_sale_id=sale.id,
        reversal_reason=reason,
        reversal_receipt_number=next_reversal_receipt_number(user_id, now),
        reversal_date=now,
        original_amount_cents=original_amount,
        original_quantity=sale.quantity,
        original_payment_method=original_method,
    )
    db.session.add(reversal)

    sale.amount_cents = 0
    sale.quantity = 0
    sale.payment_method = PAYMENT_METHOD_REVERSED

    if original_quantity > 0:
        db.session.add(InventoryMovement(
            user_id=user_id,
            sale_id=sale.id,
            product_name=sale.product_name,
            movement_type=MOVEMENT_RETURNED,
            quantity=original_quantity,
            unit_price_cents=original_amount // original_quantity,
            notes=f"Sale reversal: {reason}",
            movement_date=now,
        ))

    revert_sale_on_customer(user_id, sale.customer_phone, original_amount)

    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        already = db.session.query(SaleReversal).filter_by(original_sale_id=sale_id).first()
        if already is not None:
            raise ReversalError(f"Sale {sale_id} has already been reversed") from exc
        raise ReversalError("Could not allocate a reversal receipt number, retry") from exc

    current_app.logger.info(
        "Reversed sale %s (user %s) with receipt %s",
        sale_id, user_id, reversal.reversal_receipt_number,
    )
    publish_sales_data_changed(user_id=user_id, entity_kind=ENTITY_REVERSAL, entity_id=reversal.id)
    return reversal
