# Overview: Flask API routes for the sales report; returns JSON figures for rendering.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_user
from ..services import report_service
from ..services.ledger_service import StoreError
from ..services.reconciliation_service import ReconciliationInconsistency
from ..services.report_service import ReportError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales")
@require_user
def sales_report_route():
    """
    Sales report for a rolling period ending now.

    Query params:
        period: week | month | quarter | year (default: month)

    Returns:
        200: Totals and detail rows
        400: Unknown period
    """
    try:
        report = report_service.sales_report(
            user_id=g.user_id,
            period=request.args.get("period", "month"),
        )
        return jsonify(report), 200
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except StoreError:
        current_app.logger.exception("Failed to generate sales report")
        return jsonify({"error": "Sales data is temporarily unavailable"}), 503
    except ReconciliationInconsistency as e:
        current_app.logger.exception("Reversal ledger is inconsistent")
        return jsonify({"error": str(e), "details": e.details}), 500
