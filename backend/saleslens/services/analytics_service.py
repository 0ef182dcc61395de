# Overview: Time-windowed sales metrics, product breakdown, and week-over-week trends.

"""
Aggregator

All figures derive from EffectiveSales and are recomputed on every call.

WINDOWS (running, anchored at `now`):
- today:   midnight of now's calendar day
- week:    Sunday 00:00 of the current week
- month:   first day of the current month
- quarter: first day of the current quarter
- year:    January 1st
- previous week: [week_start - 7 days, week_start), half-open, so it can
  never overlap the current week.

PRODUCT IDENTITY: grouping uses the normalized product key; the displayed
name is the first spelling encountered.

TIE-BREAKS: best and slow seller resolve ties to the product encountered
first in grouping order (sales are read newest first).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional

from .reconciliation_service import (
    EffectiveSale,
    filter_by_window,
    sum_effective_amount,
    sum_effective_quantity,
)


NO_SALES = "No sales"

TREND_NEW = "New product this week"
TREND_NO_DATA = "No sales data for comparison"
TREND_STEADY = "Steady sales, no significant change"


@dataclass(frozen=True)
class StatusPolicy:
    """Weekly units -> status label; thresholds checked in descending order."""
    thresholds: tuple[tuple[float, str], ...] = (
        (20, "Fast Mover"),
        (10, "Stable"),
        (5, "Running Low"),
        (2, "Slow Mover"),
    )
    floor: str = "Very Slow"

    def classify(self, quantity: float) -> str:
        for minimum, label in sorted(self.thresholds, key=lambda t: t[0], reverse=True):
            if quantity >= minimum:
                return label
        return self.floor


@dataclass(frozen=True)
class AnalyticsPolicy:
    status: StatusPolicy = field(default_factory=StatusPolicy)
    trend_steady_pct: float = 5.0
    trend_limit: int = 5

    @classmethod
    def from_config(cls, config: Mapping) -> "AnalyticsPolicy":
        return cls(
            status=StatusPolicy(
                thresholds=tuple(config.get("SALES_STATUS_THRESHOLDS", StatusPolicy.thresholds)),
                floor=config.get("SALES_STATUS_FLOOR", StatusPolicy.floor),
            ),
            trend_steady_pct=float(config.get("TREND_STEADY_PCT", 5.0)),
            trend_limit=int(config.get("TREND_LIMIT", 5)),
        )


@dataclass(frozen=True)
class PeriodWindows:
    now: datetime
    today_start: datetime
    week_start: datetime
    month_start: datetime
    quarter_start: datetime
    year_start: datetime
    last_week_start: datetime
    last_week_end: datetime  # exclusive; equals week_start


def period_windows(now: datetime) -> PeriodWindows:
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    # Python weekday(): Monday=0 .. Sunday=6; weeks start on Sunday
    days_since_sunday = (today_start.weekday() + 1) % 7
    week_start = today_start - timedelta(days=days_since_sunday)
    month_start = today_start.replace(day=1)
    quarter_start = month_start.replace(month=((now.month - 1) // 3) * 3 + 1)
    year_start = month_start.replace(month=1)
    return PeriodWindows(
        now=now,
        today_start=today_start,
        week_start=week_start,
        month_start=month_start,
        quarter_start=quarter_start,
        year_start=year_start,
        last_week_start=week_start - timedelta(days=7),
        last_week_end=week_start,
    )


@dataclass
class ProductStats:
    key: str
    product: str
    units_sold: int = 0
    revenue_cents: int = 0


@dataclass(frozen=True)
class BreakdownItem:
    item: str
    units_sold: int
    revenue_cents: int
    status: str
    product_key: str = ""

    def to_dict(self) -> dict:
        return {
            "item": self.item,
            "units_sold": self.units_sold,
            "revenue_cents": self.revenue_cents,
            "status": self.status,
        }


@dataclass(frozen=True)
class SellerSummary:
    product: str
    quantity: int

    def to_dict(self) -> dict:
        return {"product": self.product, "quantity": self.quantity}


@dataclass(frozen=True)
class SalesTrend:
    product: str
    trend: str
    is_positive: Optional[bool]

    def to_dict(self) -> dict:
        return {"product": self.product, "trend": self.trend, "is_positive": self.is_positive}


@dataclass(frozen=True)
class TradeInsight:
    message: str
    product_name: str
    insight_type: str
    priority: str

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "product_name": self.product_name,
            "insight_type": self.insight_type,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class SalesMetrics:
    today_sales_cents: int
    week_sales_cents: int
    month_sales_cents: int
    items_sold_today: int
    best_seller_week: SellerSummary
    slow_seller_week: SellerSummary
    breakdown: list[BreakdownItem]
    trends: list[SalesTrend]
    insights: list[TradeInsight]

    def to_dict(self) -> dict:
        return {
            "today_sales_cents": self.today_sales_cents,
            "week_sales_cents": self.week_sales_cents,
            "month_sales_cents": self.month_sales_cents,
            "items_sold_today": self.items_sold_today,
            "best_seller_week": self.best_seller_week.to_dict(),
            "slow_seller_week": self.slow_seller_week.to_dict(),
            "breakdown": [item.to_dict() for item in self.breakdown],
            "trends": [trend.to_dict() for trend in self.trends],
            "insights": [insight.to_dict() for insight in self.insights],
        }


def group_by_product(sales: Iterable[EffectiveSale]) -> dict[str, ProductStats]:
    """Group by product key, preserving first-encountered order."""
    stats: dict[str, ProductStats] = {}
    for sale in sales:
        entry = stats.get(sale.product_key)
        if entry is None:
            entry = stats[sale.product_key] = ProductStats(key=sale.product_key, product=sale.product_name)
        entry.units_sold += sale.effective_quantity
        entry.revenue_cents += sale.effective_amount_cents
    return stats


def best_and_slow_sellers(stats: Mapping[str, ProductStats]) -> tuple[SellerSummary, SellerSummary]:
    """Argmax / argmin of units sold; ties go to the first encountered."""
    best: Optional[ProductStats] = None
    slow: Optional[ProductStats] = None
    for entry in stats.values():
        if best is None or entry.units_sold > best.units_sold:
            best = entry
        if slow is None or entry.units_sold < slow.units_sold:
            slow = entry
    if best is None or slow is None:
        empty = SellerSummary(NO_SALES, 0)
        return empty, empty
    return SellerSummary(best.product, best.units_sold), SellerSummary(slow.product, slow.units_sold)


def build_breakdown(stats: Mapping[str, ProductStats], status_policy: StatusPolicy) -> list[BreakdownItem]:
    """Breakdown rows sorted by units sold, descending; stable for ties."""
    items = [
        BreakdownItem(
            item=entry.product,
            units_sold=entry.units_sold,
            revenue_cents=entry.revenue_cents,
            status=status_policy.classify(entry.units_sold),
            product_key=entry.key,
        )
        for entry in stats.values()
    ]
    return sorted(items, key=lambda item: item.units_sold, reverse=True)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def classify_trend(current: float, previous: float, *, steady_pct: float = 5.0) -> tuple[str, Optional[bool]]:
    """Label a week-over-week quantity change."""
    if previous == 0:
        if current > 0:
            return TREND_NEW, True
        return TREND_NO_DATA, None

    pct = (current - previous) / previous * 100
    if abs(pct) < steady_pct:
        return TREND_STEADY, None
    if pct > 0:
        return f"Sales increased {_round_half_up(pct)}% vs last week", True
    return f"Sales dropped {_round_half_up(abs(pct))}% vs last week", False


def compute_trends(
    breakdown: list[BreakdownItem],
    current: Mapping[str, ProductStats],
    previous: Mapping[str, ProductStats],
    *,
    steady_pct: float = 5.0,
    limit: int = 5,
) -> list[SalesTrend]:
    """
    One trend per breakdown product, in breakdown order, truncated to `limit`.

    Truncation is positional, not by magnitude of change.
    """
    trends = []
    for item in breakdown[:limit]:
        key = item.product_key
        prev = previous.get(key)
        label, positive = classify_trend(
            current[key].units_sold,
            prev.units_sold if prev else 0,
            steady_pct=steady_pct,
        )
        trends.append(SalesTrend(product=item.item, trend=label, is_positive=positive))
    return trends


def trade_insights(breakdown: list[BreakdownItem], trends: list[SalesTrend], *, limit: int = 5) -> list[TradeInsight]:
    """Restock, pricing and demand hints derived from this week's movement."""
    if not breakdown:
        return []

    insights = []
    top = breakdown[0]
    fast_movers = [item for item in breakdown if item.status == "Fast Mover"]
    slow_movers = [item for item in breakdown if item.status in ("Very Slow", "Slow Mover")]

    if fast_movers:
        insights.append(TradeInsight(
            message=(
                f"{top.item} is selling fast ({top.units_sold} units this week). "
                "Check trade index for optimal restocking prices."
            ),
            product_name=top.item,
            insight_type="restock_alert",
            priority="high",
        ))

    if slow_movers:
        slow = slow_movers[0]
        insights.append(TradeInsight(
            message=(
                f"{slow.item} has slow sales ({slow.units_sold} units). "
                "Consider price adjustments or check market demand trends."
            ),
            product_name=slow.item,
            insight_type="pricing_alert",
            priority="medium",
        ))

    rising = [t for t in trends if t.is_positive is True]
    falling = [t for t in trends if t.is_positive is False]

    if rising:
        insights.append(TradeInsight(
            message=(
                f"{rising[0].product} shows increasing demand. "
                "Monitor market prices for profitable restocking opportunities."
            ),
            product_name=rising[0].product,
            insight_type="market_trend",
            priority="medium",
        ))

    if falling:
        insights.append(TradeInsight(
            message=(
                f"{falling[0].product} sales are declining. "
                "Check if market prices have increased affecting customer demand."
            ),
            product_name=falling[0].product,
            insight_type="demand_alert",
            priority="medium",
        ))

    return insights[:limit]


def compute_metrics(
    sales: Iterable[EffectiveSale],
    now: datetime,
    policy: Optional[AnalyticsPolicy] = None,
) -> SalesMetrics:
    """
    Dashboard metrics from effective sales.

    Reversed sales contribute nothing whether or not the caller filtered
    them out beforehand.
    """
    policy = policy or AnalyticsPolicy()
    windows = period_windows(now)
    active = [s for s in sales if not s.is_reversed]

    today = filter_by_window(active, windows.today_start, through=windows.now)
    week = filter_by_window(active, windows.week_start, through=windows.now)
    month = filter_by_window(active, windows.month_start, through=windows.now)
    last_week = filter_by_window(active, windows.last_week_start, windows.last_week_end)

    current_stats = group_by_product(week)
    previous_stats = group_by_product(last_week)

    best, slow = best_and_slow_sellers(current_stats)
    breakdown = build_breakdown(current_stats, policy.status)
    trends = compute_trends(
        breakdown,
        current_stats,
        previous_stats,
        steady_pct=policy.trend_steady_pct,
        limit=policy.trend_limit,
    )

    return SalesMetrics(
        today_sales_cents=sum_effective_amount(today),
        week_sales_cents=sum_effective_amount(week),
        month_sales_cents=sum_effective_amount(month),
        items_sold_today=sum_effective_quantity(today),
        best_seller_week=best,
        slow_seller_week=slow,
        breakdown=breakdown,
        trends=trends,
        insights=trade_insights(breakdown, trends),
    )
