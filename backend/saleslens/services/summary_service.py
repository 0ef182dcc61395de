# Overview: Calendar-period financial summaries and performance insights.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from saleslens.time_utils import to_utc_z

from .analytics_service import period_windows
from .ledger_service import (
    fetch_expenses_total,
    fetch_inventory_cost_total,
    fetch_sales,
)
from .reconciliation_service import sum_effective_amount, sum_outstanding_credit


# Earliest date the "overall" period reaches back to
OVERALL_START = datetime(2020, 1, 1)

PERIODS = ("today", "week", "month", "quarter", "year", "overall")


@dataclass(frozen=True)
class PeriodSummary:
    start: datetime
    end: datetime
    revenue_cents: int
    cost_cents: int
    expenses_cents: int
    credit_cents: int
    profit_cents: int
    sales_count: int

    def to_dict(self) -> dict:
        return {
            "start": to_utc_z(self.start),
            "end": to_utc_z(self.end),
            "revenue_cents": self.revenue_cents,
            "cost_cents": self.cost_cents,
            "expenses_cents": self.expenses_cents,
            "credit_cents": self.credit_cents,
            "profit_cents": self.profit_cents,
            "sales_count": self.sales_count,
        }


def _end_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=23, minute=59, second=59, microsecond=999999)


def _last_day_of_month(year: int, month: int) -> datetime:
    if month == 12:
        return datetime(year, 12, 31)
    return datetime(year, month + 1, 1) - timedelta(days=1)


def summary_periods(now: datetime) -> dict[str, tuple[datetime, datetime]]:
    """Fixed calendar periods containing now; both bounds inclusive."""
    w = period_windows(now)
    quarter_last_month = w.quarter_start.month + 2
    return {
        "today": (w.today_start, _end_of_day(w.today_start)),
        "week": (w.week_start, _end_of_day(w.week_start + timedelta(days=6))),
        "month": (w.month_start, _end_of_day(_last_day_of_month(now.year, now.month))),
        "quarter": (w.quarter_start, _end_of_day(_last_day_of_month(now.year, quarter_last_month))),
        "year": (w.year_start, _end_of_day(datetime(now.year, 12, 31))),
        "overall": (OVERALL_START, _end_of_day(w.today_start)),
    }


def period_summary(user_id: str, start: datetime, end: datetime) -> PeriodSummary:
    """
    Revenue, cost, expenses, open credit and profit for [start, end].

    profit = revenue - inventory cost - operating expenses. Credit is the
    amount still owed on credit sales made in the period.
    """
    sales = [
        s for s in fetch_sales(user_id, start=start, end=end)
        if s.effective_amount_cents > 0
    ]
    revenue = sum_effective_amount(sales)
    credit = sum_outstanding_credit(s for s in sales if s.is_credit)
    cost = fetch_inventory_cost_total(user_id, start, end)
    expenses = fetch_expenses_total(user_id, start, end)

    return PeriodSummary(
        start=start,
        end=end,
        revenue_cents=revenue,
        cost_cents=cost,
        expenses_cents=expenses,
        credit_cents=credit,
        profit_cents=revenue - cost - expenses,
        sales_count=len(sales),
    )


def summaries(user_id: str, now: datetime) -> dict[str, PeriodSummary]:
    """
    Summaries for every calendar period.

    A store failure in any period aborts the whole computation so callers
    never mix fresh and stale figures.
    """
    return {
        name: period_summary(user_id, start, end)
        for name, (start, end) in summary_periods(now).items()
    }


def performance_insights(summary: PeriodSummary, period_label: str) -> list[dict]:
    """Margin, credit-exposure and cost-ratio hints for one period."""
    insights = []
    revenue = summary.revenue_cents
    profit = summary.profit_cents
    credit = summary.credit_cents
    cost = summary.cost_cents

    if revenue > 0:
        margin = profit / revenue * 100
        if margin > 30:
            insights.append({
                "type": "success",
                "message": f"Excellent profit margin! You're maintaining {margin:.1f}% profitability {period_label}.",
            })
        elif margin > 15:
            insights.append({
                "type": "info",
                "message": f"Good profit margin of {margin:.1f}%. Consider optimizing costs to improve further.",
            })
        elif margin > 0:
            insights.append({
                "type": "warning",
                "message": f"Low profit margin of {margin:.1f}%. Review your pricing and cost structure.",
            })
        else:
            insights.append({
                "type": "warning",
                "message": "Negative profit margin. Urgent review of costs and pricing needed.",
            })

    if credit > 0 and revenue > 0:
        credit_ratio = credit / revenue * 100
        if credit_ratio > 50:
            insights.append({
                "type": "warning",
                "message": (
                    f"High credit sales ({credit_ratio:.1f}% of revenue). "
                    "Follow up on collections to improve cash flow."
                ),
            })
        elif credit_ratio > 25:
            insights.append({
                "type": "info",
                "message": f"Moderate credit sales ({credit_ratio:.1f}% of revenue). Monitor payment timelines.",
            })

    if revenue > 0 and cost > 0:
        cost_ratio = cost / revenue * 100
        if cost_ratio > 70:
            insights.append({
                "type": "warning",
                "message": f"High cost ratio ({cost_ratio:.1f}%). Look for better suppliers or negotiate prices.",
            })
        elif cost_ratio < 40:
            insights.append({
                "type": "success",
                "message": f"Great cost management! Your cost-to-revenue ratio is {cost_ratio:.1f}%.",
            })

    if period_label != "today" and revenue > 0:
        insights.append({
            "type": "info",
            "message": (
                f"Total revenue {period_label} is {revenue / 100:.2f}. "
                "Track trends to identify growth opportunities."
            ),
        })

    return insights
