# Overview: Loads the ledger once and derives dashboard metrics and cash flow from it.

from __future__ import annotations

from datetime import datetime

from flask import current_app

from saleslens.time_utils import utcnow
from .analytics_service import AnalyticsPolicy, SalesMetrics, compute_metrics, period_windows
from .credit_service import CashFlow, DebtHeuristicPolicy, compute_cash_flow
from .ledger_service import fetch_credit_payments, fetch_customers, fetch_sales


def _metrics_from(sales, now: datetime) -> SalesMetrics:
    return compute_metrics(sales, now, AnalyticsPolicy.from_config(current_app.config))


def _cash_flow_from(user_id: str, sales, now: datetime) -> CashFlow:
    week_start = period_windows(now).week_start
    return compute_cash_flow(
        sales,
        fetch_customers(user_id),
        week_start,
        now=now,
        credit_payments=fetch_credit_payments(user_id, start=week_start),
        policy=DebtHeuristicPolicy.from_config(current_app.config),
    )


def load_metrics(user_id: str, now: datetime | None = None) -> SalesMetrics:
    now = now or utcnow()
    return _metrics_from(fetch_sales(user_id, include_reversed=True), now)


def load_cash_flow(user_id: str, now: datetime | None = None) -> CashFlow:
    now = now or utcnow()
    return _cash_flow_from(user_id, fetch_sales(user_id, include_reversed=True), now)


def load_dashboard(user_id: str, now: datetime | None = None) -> dict:
    """Metrics and cash flow from one read of the ledger."""
    now = now or utcnow()
    sales = fetch_sales(user_id, include_reversed=True)
    return {
        "metrics": _metrics_from(sales, now).to_dict(),
        "cash_flow": _cash_flow_from(user_id, sales, now).to_dict(),
    }
