# Overview: Service-layer inputs for the downloadable sales report.

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app

from saleslens.time_utils import utcnow, to_utc_z
from .ledger_service import fetch_expenses_total, fetch_sales
from .reconciliation_service import sum_effective_amount


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


REPORT_PERIODS = ("week", "month", "quarter", "year")


def _months_back(dt: datetime, months: int) -> datetime:
    month_index = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    # Clamp e.g. March 31st -> February 28th/29th
    for day in range(dt.day, 27, -1):
        try:
            return dt.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    return dt.replace(year=year, month=month, day=min(dt.day, 28))


def report_range(period: str, now: datetime) -> tuple[datetime, datetime]:
    """Rolling range ending at now (not calendar-aligned)."""
    if period == "week":
        return now - timedelta(days=7), now
    if period == "month":
        return _months_back(now, 1), now
    if period == "quarter":
        return _months_back(now, 3), now
    if period == "year":
        return _months_back(now, 12), now
    raise ReportError(f"period must be one of: {', '.join(REPORT_PERIODS)}")


def _pct(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def sales_report(
    *,
    user_id: str,
    period: str,
    now: datetime | None = None,
    detail_limit: int | None = None,
) -> dict:
    """
    Figures handed to the report renderer: period totals plus recent rows.

    Totals use effective amounts, so reversed sales contribute nothing and
    are not counted as transactions.
    """
    now = now or utcnow()
    start, end = report_range(period, now)
    if detail_limit is None:
        detail_limit = current_app.config.get("REPORT_DETAIL_LIMIT", 50)

    sales = fetch_sales(user_id, start=start, end=end)
    expenses = fetch_expenses_total(user_id, start, end)

    revenue = sum_effective_amount(sales)
    credit_sales = sum_effective_amount(s for s in sales if s.is_credit)
    net_profit = revenue - expenses

    return {
        "period": period,
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "totals": {
            "revenue_cents": revenue,
            "expenses_cents": expenses,
            "cash_sales_cents": revenue - credit_sales,
            "credit_sales_cents": credit_sales,
            "net_profit_cents": net_profit,
            "transactions": len(sales),
            "profit_margin_pct": _pct(net_profit, revenue),
            "credit_ratio_pct": _pct(credit_sales, revenue),
        },
        "rows": [
            {
                "purchase_date": to_utc_z(s.purchase_date),
                "product_name": s.product_name,
                "amount_cents": s.effective_amount_cents,
                "payment_method": s.payment_method,
                "customer_phone": s.customer_phone,
            }
            for s in sales[:detail_limit]
        ],
    }
