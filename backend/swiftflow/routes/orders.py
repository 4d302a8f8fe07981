# Overview: Flask API routes for the owner's orders; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import order_service
from ..decorators import require_auth
from .errors import DOMAIN_ERRORS, domain_error_response


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    Query params:
    - status: WAITING_FOR_PAYMENT | PROOF_UPLOADED | PAID (optional)
    - limit: int (optional, default 200, max 500)
    """
    limit = min(request.args.get("limit", 200, type=int) or 200, 500)
    orders = order_service.list_orders(g.owner_id, status=request.args.get("status"), limit=limit)
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200


@orders_bp.get("/<order_id>")
@require_auth
def get_order_route(order_id: str):
    try:
        order = order_service.get_order(g.owner_id, order_id)
        return jsonify({"order": order.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)


@orders_bp.post("/manual")
@require_auth
def create_manual_order_route():
    """
    Record a sale made outside the storefront. The order is PAID on creation
    and stock leaves the shelf immediately.
    """
    try:
        order = order_service.create_manual_order(g.owner_id, request.get_json(silent=True) or {})
        return jsonify({"order": order.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record manual order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<order_id>/status")
@require_auth
def set_status_route(order_id: str):
    """Body: {"status": "PAID" | "WAITING_FOR_PAYMENT"} (display labels accepted)."""
    try:
        data = request.get_json(silent=True) or {}
        if not data.get("status"):
            return jsonify({"error": "status required"}), 400

        order = order_service.set_status(g.owner_id, order_id, data["status"])
        return jsonify({"order": order.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to set status for order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500
