from __future__ import annotations

from ..extensions import db
from saleslens.time_utils import to_utc_z


class Expense(db.Model):
    """Operating expense; feeds the expenses line of summaries and reports."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_user_date", "user_id", "expense_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    category = db.Column(db.String(64), nullable=False, default="general")
    description = db.Column(db.String(255), nullable=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    expense_date = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "category": self.category,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "expense_date": to_utc_z(self.expense_date),
        }
