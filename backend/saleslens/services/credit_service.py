# Overview: Credit balances, weekly cash flow, and the debt-cleared estimate.

"""
Credit & Cash Flow

There is no ledger linking a non-credit sale to an older credit balance: a
customer paying off debt and a customer buying something new both show up
as ordinary non-credit purchases. "Debt cleared" is therefore ESTIMATED:

    for each customer with at least one open (non-reversed) credit sale,
    contribution = min(weekly non-credit spend x attribution ratio,
                       total outstanding credit)

The ratio and the sale and customer fields used to correlate purchases with
customers are named policy parameters. The estimate has a known accuracy
ceiling; the exact figure comes from explicit CreditPayment records
(debt_settled), which record_credit_payment() writes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional

from flask import current_app
from sqlalchemy.orm.attributes import InstrumentedAttribute

from ..events import ENTITY_CREDIT_PAYMENT, publish_sales_data_changed
from ..extensions import db
from ..models import CreditPayment, Customer, SaleRecord
from ..models.sales import (
    PAYMENT_METHODS,
    PAYMENT_METHOD_CREDIT,
    PAYMENT_METHOD_REVERSED,
    WALK_IN_CUSTOMER,
)
from ..validation import ValidationError
from saleslens.time_utils import utcnow
from .concurrency import lock_for_update
from .ledger_service import fetch_sale
from .reconciliation_service import (
    EffectiveSale,
    filter_by_window,
    sum_effective_amount,
    sum_outstanding_credit,
)


_SALE_FIELDS = frozenset(sale_field.name for sale_field in fields(EffectiveSale))


class CreditPaymentError(Exception):
    """Raised for credit payment operation errors."""
    def __init__(self, message: str, status_code: int = 409):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class DebtHeuristicPolicy:
    attribution_ratio: Decimal = Decimal("0.3")
    correlation_key: str = "customer_phone"
    customer_key: str = "phone_number"

    def __post_init__(self):
        if self.correlation_key not in _SALE_FIELDS:
            raise ValueError(f"Unknown sale field for debt correlation: {self.correlation_key}")
        if not isinstance(getattr(Customer, self.customer_key, None), InstrumentedAttribute):
            raise ValueError(f"Unknown customer field for debt correlation: {self.customer_key}")

    @classmethod
    def from_config(cls, config: Mapping) -> "DebtHeuristicPolicy":
        return cls(
            attribution_ratio=Decimal(str(config.get("DEBT_ATTRIBUTION_RATIO", "0.3"))),
            correlation_key=config.get("DEBT_CORRELATION_KEY", "customer_phone"),
            customer_key=config.get("DEBT_CUSTOMER_KEY", "phone_number"),
        )


@dataclass(frozen=True)
class CashFlow:
    total_cash_cents: int
    pending_cents: int
    debt_cleared_cents: int
    debt_settled_cents: int
    open_credit_by_customer: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_cash_cents": self.total_cash_cents,
            "pending_cents": self.pending_cents,
            "debt_cleared_cents": self.debt_cleared_cents,
            "debt_cleared_is_estimate": True,
            "debt_settled_cents": self.debt_settled_cents,
            "open_credit_by_customer": dict(self.open_credit_by_customer),
        }


def _to_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def estimate_debt_cleared(
    customers: Optional[Iterable],
    all_sales: Optional[Iterable[EffectiveSale]],
    week_start: datetime,
    policy: Optional[DebtHeuristicPolicy] = None,
    *,
    now: Optional[datetime] = None,
) -> int:
    """
    Approximate credit repaid between week_start and now, in cents.

    Never raises on missing data: no customers, no sales or no credit all
    degrade to 0.
    """
    policy = policy or DebtHeuristicPolicy()
    if not customers or not all_sales:
        return 0

    active = [s for s in all_sales if not s.is_reversed]
    by_customer: dict[str, list[EffectiveSale]] = {}
    for sale in active:
        ref = getattr(sale, policy.correlation_key, None)
        if ref and ref != WALK_IN_CUSTOMER:
            by_customer.setdefault(ref, []).append(sale)

    total = 0
    seen = set()
    for customer in customers:
        ref = getattr(customer, policy.customer_key, None)
        if not ref or ref in seen:
            continue
        seen.add(ref)

        sales = by_customer.get(ref, [])
        credit_sales = [s for s in sales if s.is_credit]
        if not credit_sales:
            continue

        outstanding = sum_outstanding_credit(credit_sales)
        weekly_non_credit = sum_effective_amount(
            filter_by_window([s for s in sales if not s.is_credit], week_start, through=now)
        )
        attributed = _to_cents(Decimal(weekly_non_credit) * policy.attribution_ratio)
        total += min(attributed, outstanding)
    return total


def compute_cash_flow(
    all_sales: Iterable[EffectiveSale],
    customers: Optional[Iterable],
    week_start: datetime,
    *,
    now: Optional[datetime] = None,
    credit_payments: Iterable = (),
    policy: Optional[DebtHeuristicPolicy] = None,
) -> CashFlow:
    """
    Weekly cash received, credit still pending, and debt cleared/settled.

    The week runs from week_start through now (open-ended when now is None).
    Open credit per customer covers all time.
    """
    all_sales = [s for s in all_sales if not s.is_reversed]
    week = filter_by_window(all_sales, week_start, through=now)

    return CashFlow(
        total_cash_cents=sum_effective_amount(s for s in week if not s.is_credit),
        pending_cents=sum_outstanding_credit(s for s in week if s.is_credit),
        debt_cleared_cents=estimate_debt_cleared(customers, all_sales, week_start, policy, now=now),
        debt_settled_cents=sum(
            p.amount_cents for p in credit_payments
            if p.paid_at >= week_start and (now is None or p.paid_at <= now)
        ),
        open_credit_by_customer=outstanding_by_customer(all_sales),
    )


def outstanding_by_customer(sales: Iterable[EffectiveSale]) -> dict[str, int]:
    """Open credit per customer phone, across all time."""
    totals: dict[str, int] = {}
    for sale in sales:
        if sale.is_reversed or not sale.is_credit or sale.outstanding_credit_cents <= 0:
            continue
        totals[sale.customer_phone] = totals.get(sale.customer_phone, 0) + sale.outstanding_credit_cents
    return totals


def record_credit_payment(
    user_id: str,
    sale_id: int,
    amount_cents: int,
    payment_method: str = "cash",
    now: datetime | None = None,
) -> CreditPayment:
    """
    Record money received against one credit sale.

    Raises:
        ValidationError: amount or method malformed (checked before any I/O)
        CreditPaymentError: sale missing (404), reversed, not a credit sale,
            or payment larger than the remaining balance (409)
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
        raise ValidationError("amount_cents must be a positive integer")
    method = (payment_method or "").strip().lower()
    if method not in PAYMENT_METHODS or method in (PAYMENT_METHOD_CREDIT, PAYMENT_METHOD_REVERSED):
        raise ValidationError(f"Unsupported payment_method: {payment_method}")

    sale = fetch_sale(user_id, sale_id)
    if sale is None:
        raise CreditPaymentError(f"Sale {sale_id} not found", status_code=404)
    if sale.is_reversed:
        raise CreditPaymentError(f"Sale {sale_id} has been reversed")
    if not sale.is_credit:
        raise CreditPaymentError(f"Sale {sale_id} is not a credit sale")
    if amount_cents > sale.outstanding_credit_cents:
        raise CreditPaymentError(
            f"Payment exceeds remaining balance of {sale.outstanding_credit_cents} cents"
        )

    row = lock_for_update(
        db.session.query(SaleRecord).filter_by(id=sale_id, user_id=user_id)
    ).one()
    row.amount_paid_cents = (row.amount_paid_cents or 0) + amount_cents

    payment = CreditPayment(
        user_id=user_id,
        sale_id=sale_id,
        amount_cents=amount_cents,
        payment_method=method,
        paid_at=now or utcnow(),
    )
    db.session.add(payment)
    db.session.commit()

    current_app.logger.info(
        "Recorded credit payment of %d cents on sale %s (user %s)", amount_cents, sale_id, user_id
    )
    publish_sales_data_changed(user_id=user_id, entity_kind=ENTITY_CREDIT_PAYMENT, entity_id=payment.id)
    return payment
