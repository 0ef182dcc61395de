# Overview: Pytest coverage for calendar-period financial summaries and insights.

from datetime import datetime

from saleslens.models import Expense, InventoryReceipt
from saleslens.services.summary_service import (
    PeriodSummary,
    performance_insights,
    period_summary,
    summaries,
    summary_periods,
)
from conftest import NOW, USER_ID


def _summary(revenue, cost=0, expenses=0, credit=0):
    return PeriodSummary(
        start=datetime(2024, 5, 1),
        end=datetime(2024, 5, 31),
        revenue_cents=revenue,
        cost_cents=cost,
        expenses_cents=expenses,
        credit_cents=credit,
        profit_cents=revenue - cost - expenses,
        sales_count=1,
    )


class TestSummaryPeriods:

    def test_bounds(self):
        periods = summary_periods(NOW)
        assert periods["today"] == (datetime(2024, 5, 15), datetime(2024, 5, 15, 23, 59, 59, 999999))
        assert periods["week"] == (datetime(2024, 5, 12), datetime(2024, 5, 18, 23, 59, 59, 999999))
        assert periods["month"] == (datetime(2024, 5, 1), datetime(2024, 5, 31, 23, 59, 59, 999999))
        assert periods["quarter"] == (datetime(2024, 4, 1), datetime(2024, 6, 30, 23, 59, 59, 999999))
        assert periods["year"] == (datetime(2024, 1, 1), datetime(2024, 12, 31, 23, 59, 59, 999999))
        assert periods["overall"][0] == datetime(2020, 1, 1)

    def test_december_quarter(self):
        periods = summary_periods(datetime(2024, 12, 3))
        assert periods["month"][1] == datetime(2024, 12, 31, 23, 59, 59, 999999)
        assert periods["quarter"] == (datetime(2024, 10, 1), datetime(2024, 12, 31, 23, 59, 59, 999999))


class TestPeriodSummary:

    def test_revenue_cost_expenses_credit(self, db_session, make_sale, legacy_reversal):
        make_sale(amount_cents=1000)
        make_sale(amount_cents=500, payment_method="credit", amount_paid_cents=200)
        legacy_reversal(make_sale(amount_cents=300))
        make_sale(amount_cents=0, quantity=0, payment_method="reversed")
        db_session.add_all([
            InventoryReceipt(user_id=USER_ID, product_name="Rice", quantity=4,
                             total_cost_cents=400, received_date=NOW),
            Expense(user_id=USER_ID, category="transport", amount_cents=100, expense_date=NOW),
        ])
        db_session.commit()

        start, end = summary_periods(NOW)["today"]
        summary = period_summary(USER_ID, start, end)

        assert summary.revenue_cents == 1500
        assert summary.credit_cents == 300
        assert summary.cost_cents == 400
        assert summary.expenses_cents == 100
        assert summary.profit_cents == 1000
        assert summary.sales_count == 2

    def test_all_periods(self, db_session, make_sale):
        make_sale(amount_cents=1000, purchase_date=NOW)
        make_sale(amount_cents=200, purchase_date=datetime(2024, 2, 1))

        results = summaries(USER_ID, NOW)

        assert set(results) == {"today", "week", "month", "quarter", "year", "overall"}
        assert results["today"].revenue_cents == 1000
        assert results["quarter"].revenue_cents == 1000
        assert results["year"].revenue_cents == 1200
        assert results["overall"].revenue_cents == 1200


class TestPerformanceInsights:

    def test_no_revenue_no_insights(self):
        assert performance_insights(_summary(0), "this month") == []

    def test_excellent_margin_and_cost_management(self):
        insights = performance_insights(_summary(1000, cost=300), "this month")
        assert insights[0]["type"] == "success"
        assert "Excellent profit margin" in insights[0]["message"]
        assert any("Great cost management" in i["message"] for i in insights)

    def test_negative_margin_and_high_credit(self):
        insights = performance_insights(_summary(1000, cost=800, expenses=300, credit=600), "this week")
        messages = [i["message"] for i in insights]
        assert "Negative profit margin. Urgent review of costs and pricing needed." in messages
        assert any(m.startswith("High credit sales (60.0% of revenue)") for m in messages)
        assert any(m.startswith("High cost ratio (80.0%)") for m in messages)

    def test_today_has_no_revenue_recap(self):
        insights = performance_insights(_summary(1000, cost=500), "today")
        assert not any("Total revenue" in i["message"] for i in insights)
