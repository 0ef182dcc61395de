from __future__ import annotations

from ..extensions import db
from saleslens.time_utils import to_utc_z


GOAL_DAILY = "daily"
GOAL_WEEKLY = "weekly"
GOAL_MONTHLY = "monthly"
GOAL_YEARLY = "yearly"

GOAL_TYPES = (GOAL_DAILY, GOAL_WEEKLY, GOAL_MONTHLY, GOAL_YEARLY)


class SalesGoal(db.Model):
    """
    Revenue target for a period.

    At most one active goal per user and goal_type; creating a goal
    deactivates the previous one of the same type.
    """
    __tablename__ = "sales_goals"
    __table_args__ = (
        db.Index("ix_sales_goals_user_type_active", "user_id", "goal_type", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)

    goal_type = db.Column(db.String(16), nullable=False)
    target_amount_cents = db.Column(db.Integer, nullable=False)
    period_start = db.Column(db.DateTime(timezone=True), nullable=False)
    period_end = db.Column(db.DateTime(timezone=True), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "goal_type": self.goal_type,
            "target_amount_cents": self.target_amount_cents,
            "period_start": to_utc_z(self.period_start),
            "period_end": to_utc_z(self.period_end),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
