from __future__ import annotations

from ..extensions import db
from saleslens.time_utils import to_utc_z


MOVEMENT_RECEIVED = "received"
MOVEMENT_SOLD = "sold"
MOVEMENT_RETURNED = "returned"

MOVEMENT_TYPES = (MOVEMENT_RECEIVED, MOVEMENT_SOLD, MOVEMENT_RETURNED)


class InventoryMovement(db.Model):
    """
    Append-only stock movement.

    Quantity is always a positive count; direction comes from movement_type.
    sale_id loosely links sold/returned movements back to the purchase row.
    """
    __tablename__ = "inventory_movements"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_inventory_movements_quantity_positive"),
        db.Index("ix_inventory_movements_user_date", "user_id", "movement_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("customer_purchases.id"), nullable=True, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    movement_type = db.Column(db.String(16), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.String(500), nullable=True)
    movement_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "sale_id": self.sale_id,
            "product_name": self.product_name,
            "movement_type": self.movement_type,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "notes": self.notes,
            "movement_date": to_utc_z(self.movement_date),
        }


class InventoryReceipt(db.Model):
    """Stock purchase from a supplier; feeds the cost line of period summaries."""
    __tablename__ = "inventory_receipts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    total_cost_cents = db.Column(db.Integer, nullable=False, default=0)
    received_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "total_cost_cents": self.total_cost_cents,
            "received_date": to_utc_z(self.received_date),
        }
