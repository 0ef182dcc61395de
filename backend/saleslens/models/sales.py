from __future__ import annotations

from ..extensions import db
from saleslens.time_utils import to_utc_z


PAYMENT_METHOD_CASH = "cash"
PAYMENT_METHOD_MOBILE_MONEY = "mobile money"
PAYMENT_METHOD_BANK_TRANSFER = "bank transfer"
PAYMENT_METHOD_CARD = "card"
PAYMENT_METHOD_CREDIT = "credit"
PAYMENT_METHOD_REVERSED = "reversed"

PAYMENT_METHODS = (
    PAYMENT_METHOD_CASH,
    PAYMENT_METHOD_MOBILE_MONEY,
    PAYMENT_METHOD_BANK_TRANSFER,
    PAYMENT_METHOD_CARD,
    PAYMENT_METHOD_CREDIT,
    PAYMENT_METHOD_REVERSED,
)

WALK_IN_CUSTOMER = "walk-in"


class SaleRecord(db.Model):
    """
    One product line of a customer purchase.

    WHY: The purchase table is the raw sales ledger. Rows are append-only
    except for reversal, which zeroes amount/quantity and sets
    payment_method to "reversed" on the same row. Consumers must always
    re-read current values and reconcile against sale_reversals.
    """
    __tablename__ = "customer_purchases"
    __table_args__ = (
        db.Index("ix_customer_purchases_user_date", "user_id", "purchase_date"),
        db.Index("ix_customer_purchases_user_phone", "user_id", "customer_phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)

    # Free text, matched across tables by normalized key only
    product_name = db.Column(db.String(255), nullable=False)

    # Line total: quantity x unit price - discount (cents)
    amount_cents = db.Column(db.Integer, nullable=False, default=0)
    # Legacy rows may not carry a quantity
    quantity = db.Column(db.Integer, nullable=True)
    # Set by checkout and credit payments; NULL means nothing recorded
    amount_paid_cents = db.Column(db.Integer, nullable=True)

    payment_method = db.Column(db.String(32), nullable=False, default=PAYMENT_METHOD_CASH, index=True)
    customer_phone = db.Column(db.String(32), nullable=False, default=WALK_IN_CUSTOMER)

    # Event time; never updated after insert
    purchase_date = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "product_name": self.product_name,
            "amount_cents": self.amount_cents,
            "quantity": self.quantity,
            "amount_paid_cents": self.amount_paid_cents,
            "payment_method": self.payment_method,
            "customer_phone": self.customer_phone,
            "purchase_date": to_utc_z(self.purchase_date),
            "created_at": to_utc_z(self.created_at),
        }


class SaleReversal(db.Model):
    """
    Append-only record of a sale reversal.

    WHY: Reversal nullifies the financial effect of a sale while keeping the
    sale row for audit. The original amount, quantity and payment method are
    snapshotted here because the sale row itself is zeroed.

    INVARIANT: at most one reversal per original sale (unique constraint).
    """
    __tablename__ = "sale_reversals"
    __table_args__ = (
        db.UniqueConstraint("original_sale_id", name="uq_sale_reversals_original_sale"),
        db.UniqueConstraint("user_id", "reversal_receipt_number", name="uq_sale_reversals_user_receipt"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    original_sale_id = db.Column(db.Integer, db.ForeignKey("customer_purchases.id"), nullable=False)

    reversal_reason = db.Column(db.String(500), nullable=False)
    reversal_receipt_number = db.Column(db.String(64), nullable=False)
    reversal_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    # Pre-reversal snapshot of the sale row
    original_amount_cents = db.Column(db.Integer, nullable=True)
    original_quantity = db.Column(db.Integer, nullable=True)
    original_payment_method = db.Column(db.String(32), nullable=True)

    original_sale = db.relationship("SaleRecord", backref=db.backref("reversals", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "original_sale_id": self.original_sale_id,
            "reversal_reason": self.reversal_reason,
            "reversal_receipt_number": self.reversal_receipt_number,
            "reversal_date": to_utc_z(self.reversal_date),
            "original_amount_cents": self.original_amount_cents,
            "original_quantity": self.original_quantity,
            "original_payment_method": self.original_payment_method,
        }


class CreditPayment(db.Model):
    """
    Explicit payment against an outstanding credit sale.

    WHY: Without it, "debt cleared" can only be estimated. Each payment also
    bumps SaleRecord.amount_paid_cents so outstanding balances stay current.
    """
    __tablename__ = "credit_payments"
    __table_args__ = (
        db.Index("ix_credit_payments_user_paid", "user_id", "paid_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("customer_purchases.id"), nullable=False, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(32), nullable=False, default=PAYMENT_METHOD_CASH)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("SaleRecord", backref=db.backref("credit_payments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "sale_id": self.sale_id,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "paid_at": to_utc_z(self.paid_at),
        }
