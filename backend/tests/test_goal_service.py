# Overview: Pytest coverage for sales goals and daily goal progress.

from datetime import datetime

import pytest

from saleslens.models import SalesGoal
from saleslens.services.goal_service import (
    GoalError,
    create_goal,
    current_goal,
    daily_progress,
    daily_target_cents,
    deactivate_goal,
)
from saleslens.validation import ValidationError
from conftest import NOW, USER_ID


def _weekly(target=7000):
    return create_goal(USER_ID, {
        "goal_type": "weekly",
        "target_amount_cents": target,
        "period_start": "2024-05-12T00:00:00Z",
        "period_end": "2024-05-18T23:59:59Z",
    })


class TestCreateGoal:

    def test_new_goal_replaces_active_goal_of_same_type(self, db_session):
        first = _weekly()
        second = _weekly(14000)

        assert db_session.get(SalesGoal, first.id).is_active is False
        assert db_session.get(SalesGoal, second.id).is_active is True

    def test_other_types_stay_active(self, db_session):
        weekly = _weekly()
        create_goal(USER_ID, {
            "goal_type": "monthly",
            "target_amount_cents": 31000,
            "period_start": "2024-05-01T00:00:00Z",
            "period_end": "2024-05-31T23:59:59Z",
        })
        assert db_session.get(SalesGoal, weekly.id).is_active is True

    @pytest.mark.parametrize("changes", [
        {"goal_type": "hourly"},
        {"target_amount_cents": 0},
        {"period_end": "2024-05-01T00:00:00Z"},
    ])
    def test_invalid_goal(self, db_session, changes):
        payload = {
            "goal_type": "weekly",
            "target_amount_cents": 7000,
            "period_start": "2024-05-12T00:00:00Z",
            "period_end": "2024-05-18T23:59:59Z",
        }
        payload.update(changes)
        with pytest.raises(ValidationError):
            create_goal(USER_ID, payload)
        assert db_session.query(SalesGoal).count() == 0


class TestCurrentGoal:

    def test_goal_containing_now(self, db_session):
        goal = _weekly()
        assert current_goal(USER_ID, NOW).id == goal.id
        assert current_goal(USER_ID, datetime(2024, 6, 1)) is None

    def test_deactivated_goal_is_not_current(self, db_session):
        goal = _weekly()
        deactivate_goal(USER_ID, goal.id)
        assert current_goal(USER_ID, NOW) is None

    def test_unknown_goal(self, db_session):
        with pytest.raises(GoalError):
            deactivate_goal(USER_ID, 999)


class TestDailyProgress:

    def test_daily_target_by_type(self, db_session):
        goal = SalesGoal(goal_type="monthly", target_amount_cents=31000,
                         period_start=datetime(2024, 5, 1), period_end=datetime(2024, 5, 31, 23, 59, 59))
        assert daily_target_cents(goal) == 1000
        goal.goal_type = "weekly"
        assert daily_target_cents(goal) == 31000 / 7
        goal.goal_type = "daily"
        assert daily_target_cents(goal) == 31000
        goal.goal_type = "yearly"
        assert daily_target_cents(goal) == 31000 / 365

    def test_progress_until_today(self, db_session, make_sale, legacy_reversal):
        goal = _weekly(7000)
        make_sale(amount_cents=1500, purchase_date=datetime(2024, 5, 13, 10))
        make_sale(amount_cents=300, purchase_date=datetime(2024, 5, 14, 10))
        make_sale(amount_cents=200, purchase_date=datetime(2024, 5, 14, 16))
        legacy_reversal(make_sale(amount_cents=900, purchase_date=datetime(2024, 5, 15, 9)))

        progress = daily_progress(USER_ID, goal.id, NOW)

        assert [p["date"] for p in progress] == ["2024-05-12", "2024-05-13", "2024-05-14", "2024-05-15"]
        assert [p["amount_cents"] for p in progress] == [0, 1500, 500, 0]
        assert [p["percentage"] for p in progress] == [0.0, 100.0, 50.0, 0.0]
        assert all(p["goal_amount_cents"] == 1000 for p in progress)

    def test_unknown_goal(self, db_session):
        with pytest.raises(GoalError):
            daily_progress(USER_ID, 999, NOW)
