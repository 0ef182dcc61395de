# Overview: Pytest coverage for the sales report figures.

from datetime import datetime, timedelta

import pytest

from saleslens.models import Expense
from saleslens.services.report_service import ReportError, report_range, sales_report
from conftest import NOW, USER_ID


class TestReportRange:

    def test_rolling_week(self):
        assert report_range("week", NOW) == (NOW - timedelta(days=7), NOW)

    def test_month_back_clamps_to_month_end(self):
        now = datetime(2024, 3, 31, 10)
        assert report_range("month", now)[0] == datetime(2024, 2, 29, 10)

    def test_quarter_and_year_cross_year_boundary(self):
        now = datetime(2024, 2, 15)
        assert report_range("quarter", now)[0] == datetime(2023, 11, 15)
        assert report_range("year", now)[0] == datetime(2023, 2, 15)

    def test_unknown_period(self):
        with pytest.raises(ReportError):
            report_range("decade", NOW)


class TestSalesReport:

    def test_totals(self, db_session, make_sale, legacy_reversal):
        make_sale(amount_cents=6000)
        make_sale(amount_cents=4000, payment_method="credit", amount_paid_cents=1000)
        legacy_reversal(make_sale(amount_cents=5000))
        make_sale(amount_cents=9000, purchase_date=NOW - timedelta(days=10))
        db_session.add(Expense(user_id=USER_ID, category="rent", amount_cents=2000,
                               expense_date=NOW - timedelta(days=1)))
        db_session.commit()

        report = sales_report(user_id=USER_ID, period="week", now=NOW)
        totals = report["totals"]

        assert totals["revenue_cents"] == 10000
        assert totals["credit_sales_cents"] == 4000
        assert totals["cash_sales_cents"] == 6000
        assert totals["expenses_cents"] == 2000
        assert totals["net_profit_cents"] == 8000
        assert totals["transactions"] == 2
        assert totals["profit_margin_pct"] == 80.0
        assert totals["credit_ratio_pct"] == 40.0
        assert len(report["rows"]) == 2

    def test_empty_period(self, db_session):
        totals = sales_report(user_id=USER_ID, period="month", now=NOW)["totals"]
        assert totals["revenue_cents"] == 0
        assert totals["profit_margin_pct"] == 0.0

    def test_detail_rows_limited(self, db_session, make_sale):
        for i in range(4):
            make_sale(purchase_date=NOW - timedelta(hours=i))
        report = sales_report(user_id=USER_ID, period="week", now=NOW, detail_limit=3)
        assert len(report["rows"]) == 3
        assert report["totals"]["transactions"] == 4
