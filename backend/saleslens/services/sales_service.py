"""
Sales Service - recording purchases into the sales ledger

WHY: A recorded sale touches three tables that must agree: the purchase row,
the stock movement, and the customer's running totals. All three are written
in one transaction, then open views are told to re-query.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..events import ENTITY_SALE, publish_sales_data_changed
from ..extensions import db
from ..models import SaleRecord, InventoryMovement, Customer
from ..models.inventory import MOVEMENT_SOLD
from ..models.sales import WALK_IN_CUSTOMER
from ..validation import (
    ModelValidationPolicy,
    enforce_rules_sale,
    validate_payload,
)
from saleslens.time_utils import utcnow
from .concurrency import lock_for_update


SALE_POLICY = ModelValidationPolicy(
    writable_fields={
        "product_name",
        "amount_cents",
        "quantity",
        "amount_paid_cents",
        "payment_method",
        "customer_phone",
        "purchase_date",
    },
    required_on_create={"product_name", "amount_cents"},
)


def _customer_for_update(user_id: str, phone: str) -> Customer | None:
    return lock_for_update(
        db.session.query(Customer).filter_by(user_id=user_id, phone_number=phone)
    ).first()


def apply_sale_to_customer(
    user_id: str,
    phone: str,
    amount_cents: int,
    purchase_date: datetime,
    name: str | None = None,
) -> Customer | None:
    """Increment a customer's running totals, creating the customer if needed."""
    if not phone or phone == WALK_IN_CUSTOMER:
        return None

    customer = _customer_for_update(user_id, phone)
    if customer is None:
        customer = Customer(
            user_id=user_id,
            phone_number=phone,
            name=name,
            total_purchases_cents=0,
            total_sales_count=0,
        )
        db.session.add(customer)
    elif name and not customer.name:
        customer.name = name

    customer.total_purchases_cents = (customer.total_purchases_cents or 0) + amount_cents
    customer.total_sales_count = (customer.total_sales_count or 0) + 1
    if customer.first_purchase_date is None or purchase_date < customer.first_purchase_date:
        customer.first_purchase_date = purchase_date
    if customer.last_purchase_date is None or purchase_date > customer.last_purchase_date:
        customer.last_purchase_date = purchase_date
    return customer


def revert_sale_on_customer(user_id: str, phone: str, amount_cents: int) -> Customer | None:
    """Decrement a customer's running totals, clamped at zero."""
    if not phone or phone == WALK_IN_CUSTOMER:
        return None

    customer = _customer_for_update(user_id, phone)
    if customer is None:
        return None

    customer.total_purchases_cents = max(0, (customer.total_purchases_cents or 0) - amount_cents)
    customer.total_sales_count = max(0, (customer.total_sales_count or 0) - 1)
    return customer


def record_sale(user_id: str, payload: dict, now: datetime | None = None) -> SaleRecord:
    """
    Validate and insert one purchase line.

    Request payload:
        product_name, amount_cents (required); quantity, amount_paid_cents,
        payment_method (default cash), customer_phone (default walk-in),
        customer_name, purchase_date (default now)

    Raises:
        ValidationError: malformed payload (nothing is written)
    """
    payload = dict(payload or {})
    customer_name = payload.pop("customer_name", None)

    patch = validate_payload(model=SaleRecord, payload=payload, policy=SALE_POLICY, partial=False)
    patch.setdefault("payment_method", "cash")
    enforce_rules_sale(patch)

    if not patch.get("customer_phone"):
        patch["customer_phone"] = WALK_IN_CUSTOMER
    if patch.get("purchase_date") is None:
        patch["purchase_date"] = now or utcnow()

    sale = SaleRecord(user_id=user_id, **patch)
    db.session.add(sale)
    db.session.flush()

    quantity = (
        sale.quantity if sale.quantity is not None
        else current_app.config.get("LEGACY_QUANTITY_DEFAULT", 1)
    )
    if quantity > 0:
        db.session.add(InventoryMovement(
            user_id=user_id,
            sale_id=sale.id,
            product_name=sale.product_name,
            movement_type=MOVEMENT_SOLD,
            quantity=quantity,
            unit_price_cents=sale.amount_cents // quantity,
            movement_date=sale.purchase_date,
        ))

    apply_sale_to_customer(
        user_id,
        sale.customer_phone,
        sale.amount_cents,
        sale.purchase_date,
        name=str(customer_name).strip() if customer_name else None,
    )

    db.session.commit()
    publish_sales_data_changed(user_id=user_id, entity_kind=ENTITY_SALE, entity_id=sale.id)
    return sale
