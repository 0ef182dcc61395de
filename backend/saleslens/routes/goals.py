# Overview: Flask API routes for sales goals and daily goal progress.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_user
from ..services import goal_service
from ..services.goal_service import GoalError
from ..services.ledger_service import StoreError
from ..validation import ValidationError


goals_bp = Blueprint("goals", __name__, url_prefix="/api/goals")


@goals_bp.post("")
@require_user
def create_goal_route():
    """
    Create a goal; replaces the active goal of the same type.

    Request body:
    {
        "goal_type": "monthly",
        "target_amount_cents": 5000000,
        "period_start": "2024-05-01T00:00:00Z",
        "period_end": "2024-05-31T23:59:59Z"
    }
    """
    try:
        goal = goal_service.create_goal(g.user_id, request.get_json(silent=True) or {})
        return jsonify({"goal": goal.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create goal")
        return jsonify({"error": "Internal server error"}), 500


@goals_bp.get("/current")
@require_user
def current_goal_route():
    goal = goal_service.current_goal(g.user_id)
    return jsonify({"goal": goal.to_dict() if goal else None}), 200


@goals_bp.post("/<int:goal_id>/deactivate")
@require_user
def deactivate_goal_route(goal_id: int):
    try:
        goal = goal_service.deactivate_goal(g.user_id, goal_id)
        return jsonify({"goal": goal.to_dict()}), 200
    except GoalError as e:
        return jsonify({"error": str(e)}), 404


@goals_bp.get("/<int:goal_id>/progress")
@require_user
def goal_progress_route(goal_id: int):
    """Per-day effective revenue against the goal's daily target."""
    try:
        progress = goal_service.daily_progress(g.user_id, goal_id)
        return jsonify({"goal_id": goal_id, "progress": progress}), 200
    except GoalError as e:
        return jsonify({"error": str(e)}), 404
    except StoreError:
        current_app.logger.exception("Failed to compute goal progress")
        return jsonify({"error": "Sales data is temporarily unavailable"}), 503
