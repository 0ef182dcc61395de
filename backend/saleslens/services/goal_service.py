"""
Sales Goal Service

WHY: Owners set a revenue target per period and track daily progress
against it. Progress is measured in effective revenue, so reversed sales
never count toward a goal.

RULES:
- At most one active goal per user and goal_type; creating a new one
  deactivates the previous one in the same transaction
- target_amount_cents must be > 0 and the period must not end before it starts
"""

from __future__ import annotations

from datetime import datetime, timedelta

from ..extensions import db
from ..models import SalesGoal
from ..models.goals import GOAL_DAILY, GOAL_WEEKLY, GOAL_MONTHLY, GOAL_YEARLY
from ..validation import ModelValidationPolicy, enforce_rules_goal, validate_payload
from saleslens.time_utils import utcnow
from .ledger_service import fetch_sales


class GoalError(Exception):
    """Raised for goal operation errors."""
    pass


GOAL_POLICY = ModelValidationPolicy(
    writable_fields={"goal_type", "target_amount_cents", "period_start", "period_end"},
    required_on_create={"goal_type", "target_amount_cents", "period_start", "period_end"},
)


def create_goal(user_id: str, payload: dict) -> SalesGoal:
    patch = validate_payload(model=SalesGoal, payload=payload, policy=GOAL_POLICY, partial=False)
    enforce_rules_goal(patch)

    db.session.query(SalesGoal).filter_by(
        user_id=user_id,
        goal_type=patch["goal_type"],
        is_active=True,
    ).update({"is_active": False})

    goal = SalesGoal(user_id=user_id, is_active=True, **patch)
    db.session.add(goal)
    db.session.commit()
    return goal


def get_goal(user_id: str, goal_id: int) -> SalesGoal:
    goal = db.session.query(SalesGoal).filter_by(id=goal_id, user_id=user_id).first()
    if not goal:
        raise GoalError(f"Goal {goal_id} not found")
    return goal


def current_goal(user_id: str, now: datetime | None = None) -> SalesGoal | None:
    """Newest active goal whose period contains now."""
    now = now or utcnow()
    return db.session.query(SalesGoal).filter(
        SalesGoal.user_id == user_id,
        SalesGoal.is_active.is_(True),
        SalesGoal.period_start <= now,
        SalesGoal.period_end >= now,
    ).order_by(SalesGoal.created_at.desc(), SalesGoal.id.desc()).first()


def deactivate_goal(user_id: str, goal_id: int) -> SalesGoal:
    goal = get_goal(user_id, goal_id)
    goal.is_active = False
    db.session.commit()
    return goal


def daily_target_cents(goal: SalesGoal) -> float:
    target = goal.target_amount_cents
    total_days = (goal.period_end.date() - goal.period_start.date()).days + 1
    if goal.goal_type == GOAL_DAILY:
        return float(target)
    if goal.goal_type == GOAL_WEEKLY:
        return target / 7
    if goal.goal_type == GOAL_MONTHLY:
        return target / total_days
    if goal.goal_type == GOAL_YEARLY:
        return target / 365
    return 0.0


def daily_progress(user_id: str, goal_id: int, now: datetime | None = None) -> list[dict]:
    """
    One entry per day from period start up to today (or period end).

    percentage is capped at 100.
    """
    now = now or utcnow()
    goal = get_goal(user_id, goal_id)
    target = daily_target_cents(goal)

    by_day: dict[str, int] = {}
    for sale in fetch_sales(user_id, start=goal.period_start, end=goal.period_end):
        if sale.effective_amount_cents <= 0:
            continue
        day = sale.purchase_date.date().isoformat()
        by_day[day] = by_day.get(day, 0) + sale.effective_amount_cents

    progress = []
    day = goal.period_start.replace(hour=0, minute=0, second=0, microsecond=0)
    while day <= goal.period_end and day <= now:
        key = day.date().isoformat()
        amount = by_day.get(key, 0)
        pct = (amount / target * 100) if target > 0 else 0.0
        progress.append({
            "date": key,
            "amount_cents": amount,
            "goal_amount_cents": round(target),
            "percentage": round(min(pct, 100.0), 2),
        })
        day += timedelta(days=1)
    return progress
