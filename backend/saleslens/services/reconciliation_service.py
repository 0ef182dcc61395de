# Overview: Pure reconciliation of raw purchase rows against reversals.

"""
Reconciliation Engine

WHY: There is no canonical "sale" aggregate. A purchase row may have been
reversed either by mutating the row (payment_method = "reversed") or, for
rows written before that convention, only by a sale_reversals record. Every
consumer (dashboard cards, summaries, reports, reversal eligibility) must see
the same effective figures, so they all go through reconcile().

INVARIANTS:
- Pure: no I/O, no hidden state; output maps 1:1 over input.
- Idempotent: reconciling an EffectiveSale again yields an equal value.
- A reversed sale contributes 0 amount, 0 quantity and 0 outstanding credit.
- Effective amount is never more than the raw amount.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional

from saleslens.models.sales import PAYMENT_METHOD_CREDIT, PAYMENT_METHOD_REVERSED
from saleslens.time_utils import to_utc_z


class ReconciliationInconsistency(Exception):
    """Raised when reversal records cannot be matched 1:1 to sales."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def product_key(name: Optional[str]) -> str:
    """Normalized product identity used for every grouping and join."""
    return (name or "").strip().lower()


@dataclass(frozen=True)
class EffectiveSale:
    id: int
    product_name: str
    amount_cents: int
    quantity: Optional[int]
    payment_method: str
    customer_phone: str
    purchase_date: datetime
    amount_paid_cents: Optional[int]
    effective_amount_cents: int
    effective_quantity: int
    is_reversed: bool
    outstanding_credit_cents: int
    product_key: str

    @property
    def is_credit(self) -> bool:
        return self.payment_method == PAYMENT_METHOD_CREDIT

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_name": self.product_name,
            "amount_cents": self.amount_cents,
            "quantity": self.quantity,
            "payment_method": self.payment_method,
            "customer_phone": self.customer_phone,
            "purchase_date": to_utc_z(self.purchase_date),
            "amount_paid_cents": self.amount_paid_cents,
            "effective_amount_cents": self.effective_amount_cents,
            "effective_quantity": self.effective_quantity,
            "is_reversed": self.is_reversed,
            "outstanding_credit_cents": self.outstanding_credit_cents,
        }


def _outstanding_credit(method: str, amount: int, paid: Optional[int]) -> int:
    if method != PAYMENT_METHOD_CREDIT:
        return 0
    if paid is None:
        return amount
    return max(amount - paid, 0)


def reconcile_one(row, reversed_ids: set[int] | frozenset[int], *, quantity_default: int = 1) -> EffectiveSale:
    """Derive the effective view of a single purchase row (or EffectiveSale)."""
    method = (row.payment_method or "cash").strip().lower()
    is_reversed = method == PAYMENT_METHOD_REVERSED or row.id in reversed_ids
    amount = int(row.amount_cents or 0)
    quantity = row.quantity

    if is_reversed:
        effective_amount = 0
        effective_quantity = 0
        outstanding = 0
    else:
        effective_amount = amount
        effective_quantity = quantity if quantity is not None else quantity_default
        outstanding = _outstanding_credit(method, amount, row.amount_paid_cents)

    return EffectiveSale(
        id=row.id,
        product_name=row.product_name,
        amount_cents=amount,
        quantity=quantity,
        payment_method=method,
        customer_phone=row.customer_phone,
        purchase_date=row.purchase_date,
        amount_paid_cents=row.amount_paid_cents,
        effective_amount_cents=effective_amount,
        effective_quantity=effective_quantity,
        is_reversed=is_reversed,
        outstanding_credit_cents=outstanding,
        product_key=product_key(row.product_name),
    )


def reconcile(
    raw_rows: Iterable,
    reversed_ids: Iterable[int] = (),
    *,
    quantity_default: int = 1,
) -> list[EffectiveSale]:
    """
    Map raw rows to EffectiveSales.

    Accepts SaleRecord rows or previously reconciled EffectiveSales; an
    EffectiveSale already marked reversed stays reversed.
    """
    reversed_set = frozenset(reversed_ids)
    results = []
    for row in raw_rows:
        sale = reconcile_one(row, reversed_set, quantity_default=quantity_default)
        if isinstance(row, EffectiveSale) and row.is_reversed and not sale.is_reversed:
            sale = replace(
                sale,
                effective_amount_cents=0,
                effective_quantity=0,
                outstanding_credit_cents=0,
                is_reversed=True,
            )
        results.append(sale)
    return results


def build_reversed_id_set(
    reversals: Iterable,
    known_sale_ids: Iterable[int] | None = None,
) -> set[int]:
    """
    Collect original_sale_id values, rejecting inconsistent reversal data.

    Raises ReconciliationInconsistency when a sale is referenced by more than
    one reversal, or (when known_sale_ids is given) a reversal points at a
    sale that does not exist.
    """
    counts = Counter(r.original_sale_id for r in reversals)

    duplicates = sorted(sale_id for sale_id, n in counts.items() if n > 1)
    if duplicates:
        raise ReconciliationInconsistency(
            "Sale reversed more than once",
            details={"sale_ids": duplicates},
        )

    reversed_ids = set(counts)
    if known_sale_ids is not None:
        orphans = sorted(reversed_ids - set(known_sale_ids))
        if orphans:
            raise ReconciliationInconsistency(
                "Reversal references unknown sale",
                details={"sale_ids": orphans},
            )
    return reversed_ids


def sum_effective_amount(sales: Iterable[EffectiveSale]) -> int:
    return sum(s.effective_amount_cents for s in sales)


def sum_effective_quantity(sales: Iterable[EffectiveSale]) -> int:
    return sum(s.effective_quantity for s in sales)


def sum_outstanding_credit(sales: Iterable[EffectiveSale]) -> int:
    return sum(s.outstanding_credit_cents for s in sales)


def filter_by_window(
    sales: Iterable[EffectiveSale],
    start: Optional[datetime],
    end: Optional[datetime] = None,
    *,
    through: Optional[datetime] = None,
) -> list[EffectiveSale]:
    """
    Sales with start <= purchase_date < end (open ends when None).

    `through` is an inclusive upper bound, used for running windows that
    end at the current moment.
    """
    return [
        s for s in sales
        if (start is None or s.purchase_date >= start)
        and (end is None or s.purchase_date < end)
        and (through is None or s.purchase_date <= through)
    ]
