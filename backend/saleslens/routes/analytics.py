# Overview: Flask API routes for dashboard metrics, cash flow and period summaries.

# backend/saleslens/routes/analytics.py
"""
Analytics API Routes

Every request recomputes from the ledger; nothing is cached.

A client may tag each request with a monotonically increasing token
(X-Request-Token header or request_token query param). If a newer request
for the same view was issued while this one was computing, the stale result
is discarded and 409 "superseded" is returned instead. A token that is not a
finite number is rejected with 400.
"""

import math

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_user
from ..services import dashboard_service, summary_service
from ..services.ledger_service import StoreError
from ..services.reconciliation_service import ReconciliationInconsistency
from ..services.request_gate import gate
from ..time_utils import utcnow
from ..validation import ValidationError


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


def _request_token():
    """Token from header or query param; None when absent, ValidationError when not a finite number."""
    raw = request.headers.get("X-Request-Token") or request.args.get("request_token")
    if raw is None or raw == "":
        return None
    try:
        token = float(raw)
    except ValueError:
        raise ValidationError("request token must be a number")
    if not math.isfinite(token):
        raise ValidationError("request token must be a finite number")
    return token


def _superseded():
    return jsonify({"error": "superseded"}), 409


def _gated(view: str, compute, failure_message: str):
    try:
        token = _request_token()
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    if token is not None and not gate.begin(g.user_id, view, token):
        return _superseded()

    try:
        payload = compute()
    except StoreError:
        current_app.logger.exception(failure_message)
        return jsonify({"error": "Sales data is temporarily unavailable"}), 503
    except ReconciliationInconsistency as e:
        current_app.logger.exception("Reversal ledger is inconsistent")
        return jsonify({"error": str(e), "details": e.details}), 500

    if token is not None and not gate.is_current(g.user_id, view, token):
        return _superseded()
    return jsonify(payload), 200


@analytics_bp.get("/metrics")
@require_user
def metrics_route():
    """Today/week/month totals, best and slow sellers, breakdown, trends and insights."""
    return _gated(
        "metrics",
        lambda: dashboard_service.load_metrics(g.user_id).to_dict(),
        "Failed to compute sales metrics",
    )


@analytics_bp.get("/cash-flow")
@require_user
def cash_flow_route():
    """Weekly cash received, pending credit and debt cleared."""
    return _gated(
        "cash-flow",
        lambda: dashboard_service.load_cash_flow(g.user_id).to_dict(),
        "Failed to compute cash flow",
    )


@analytics_bp.get("/summary")
@require_user
def summary_route():
    """
    Financial summaries for every calendar period plus performance insights.

    Query params:
        period: period the insights are computed for (default: month)
    """
    period = request.args.get("period", "month")
    if period not in summary_service.PERIODS:
        return jsonify({"error": f"period must be one of: {', '.join(summary_service.PERIODS)}"}), 400

    def compute():
        results = summary_service.summaries(g.user_id, utcnow())
        label = period if period in ("today", "overall") else f"this {period}"
        return {
            "summaries": {name: s.to_dict() for name, s in results.items()},
            "insights": summary_service.performance_insights(results[period], label),
        }

    return _gated("summary", compute, "Failed to compute financial summary")
