from __future__ import annotations

from ..extensions import db
from saleslens.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data with denormalized purchase aggregates.

    WHY: Dashboards show lifetime spend and visit counts without scanning the
    purchase ledger. Counters are updated in the same transaction as each
    recorded sale and decremented on reversal, never below zero.

    Purchases link to customers by phone number, not by foreign key.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("user_id", "phone_number", name="uq_customers_user_phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=True)
    phone_number = db.Column(db.String(32), nullable=False)

    # Denormalized aggregates
    total_purchases_cents = db.Column(db.Integer, nullable=False, default=0)
    total_sales_count = db.Column(db.Integer, nullable=False, default=0)
    first_purchase_date = db.Column(db.DateTime(timezone=True), nullable=True)
    last_purchase_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "phone_number": self.phone_number,
            "total_purchases_cents": self.total_purchases_cents,
            "total_sales_count": self.total_sales_count,
            "first_purchase_date": to_utc_z(self.first_purchase_date) if self.first_purchase_date else None,
            "last_purchase_date": to_utc_z(self.last_purchase_date) if self.last_purchase_date else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
