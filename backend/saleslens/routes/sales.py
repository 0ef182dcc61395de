# Overview: Flask API routes for recording, listing, reversing and settling sales.

# backend/saleslens/routes/sales.py
"""
Sales API Routes

DESIGN:
- Record a purchase line (with customer aggregate and stock movement)
- List reconciled sales; reversed rows hidden unless include_reversed=true
- List reversal candidates and reverse a sale with a required reason
- Record payments against open credit sales

All reads return effective amounts: a reversed sale shows 0 regardless of
what is stored on the row.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_user
from ..services import credit_service, ledger_service, reversal_service, sales_service
from ..services.credit_service import CreditPaymentError
from ..services.ledger_service import StoreError
from ..services.reconciliation_service import ReconciliationInconsistency
from ..services.reversal_service import ReversalError
from ..time_utils import parse_iso_datetime
from ..validation import ValidationError


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _store_failure(message: str):
    current_app.logger.exception(message)
    return jsonify({"error": "Sales data is temporarily unavailable"}), 503


def _inconsistency(exc: ReconciliationInconsistency):
    current_app.logger.exception("Reversal ledger is inconsistent")
    return jsonify({"error": str(exc), "details": exc.details}), 500


def _query_datetime(name: str):
    try:
        return parse_iso_datetime(request.args.get(name))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 datetime")


def _query_int(name: str, default=None):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")
    if value < 1:
        raise ValidationError(f"{name} must be >= 1")
    return value


@sales_bp.post("")
@require_user
def record_sale_route():
    """
    Record one purchase line.

    Request body:
    {
        "product_name": "Rice 5kg",
        "amount_cents": 10000,
        "quantity": 2,                     (optional)
        "amount_paid_cents": 4000,         (optional, credit sales)
        "payment_method": "credit",        (optional, default: cash)
        "customer_phone": "0712000000",    (optional, default: walk-in)
        "customer_name": "Amina",          (optional)
        "purchase_date": "2024-05-01T10:00:00Z"  (optional, default: now)
    }

    Returns:
        201: Sale recorded
        400: Invalid input
    """
    try:
        sale = sales_service.record_sale(g.user_id, request.get_json(silent=True) or {})
        return jsonify({"sale": sale.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_user
def list_sales_route():
    """
    List reconciled sales, newest first.

    Query params:
        start, end: ISO-8601 bounds on purchase_date (inclusive)
        include_reversed: "true" to include reversed rows (default false)
        limit: maximum rows
    """
    try:
        sales = ledger_service.fetch_sales(
            g.user_id,
            start=_query_datetime("start"),
            end=_query_datetime("end"),
            include_reversed=request.args.get("include_reversed", "false").lower() == "true",
            limit=_query_int("limit"),
        )
        return jsonify({"sales": [s.to_dict() for s in sales], "count": len(sales)}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StoreError:
        return _store_failure("Failed to list sales")
    except ReconciliationInconsistency as e:
        return _inconsistency(e)


@sales_bp.get("/reversal-candidates")
@require_user
def reversal_candidates_route():
    """Recent non-reversed sales that can be reversed."""
    try:
        sales = reversal_service.reversal_candidates(
            g.user_id,
            days=_query_int("days"),
            limit=_query_int("limit"),
        )
        return jsonify({"sales": [s.to_dict() for s in sales]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StoreError:
        return _store_failure("Failed to list reversal candidates")
    except ReconciliationInconsistency as e:
        return _inconsistency(e)


@sales_bp.post("/<int:sale_id>/reverse")
@require_user
def reverse_sale_route(sale_id: int):
    """
    Reverse a sale.

    Request body:
    {
        "reason": "Customer returned item"
    }

    Returns:
        201: Reversal recorded
        400: Reason missing
        404: Sale not found
        409: Sale already reversed
    """
    try:
        data = request.get_json(silent=True) or {}
        reversal = reversal_service.reverse_sale(g.user_id, sale_id, data.get("reason"))
        return jsonify({"reversal": reversal.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ReversalError as e:
        return jsonify({"error": str(e)}), e.status_code
    except StoreError:
        return _store_failure("Failed to reverse sale")
    except ReconciliationInconsistency as e:
        return _inconsistency(e)
    except Exception:
        current_app.logger.exception("Failed to reverse sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/<int:sale_id>/payments")
@require_user
def record_credit_payment_route(sale_id: int):
    """
    Record a payment against an open credit sale.

    Request body:
    {
        "amount_cents": 5000,
        "payment_method": "cash"   (optional, default: cash)
    }

    Returns:
        201: Payment recorded
        400: Invalid amount or method
        404: Sale not found
        409: Sale reversed, not on credit, or payment exceeds balance
    """
    try:
        data = request.get_json(silent=True) or {}
        payment = credit_service.record_credit_payment(
            g.user_id,
            sale_id,
            data.get("amount_cents"),
            data.get("payment_method", "cash"),
        )
        return jsonify({"payment": payment.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except CreditPaymentError as e:
        return jsonify({"error": str(e)}), e.status_code
    except StoreError:
        return _store_failure("Failed to record credit payment")
    except ReconciliationInconsistency as e:
        return _inconsistency(e)
    except Exception:
        current_app.logger.exception("Failed to record credit payment")
        return jsonify({"error": "Internal server error"}), 500
