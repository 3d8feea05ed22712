# Overview: Flask API routes for cake pre-orders and the dashboard buckets.

from flask import Blueprint, g, jsonify, request

from ..datastore import get_store
from ..decorators import require_auth, require_permission
from ..services import catalog_service, schedule_service
from ..time_utils import to_utc_z
from ..validation import ConflictError, NotFoundError, ValidationError

cake_orders_bp = Blueprint("cake_orders", __name__, url_prefix="/api/cake-orders")


@cake_orders_bp.get("/dashboard")
@require_auth
@require_permission("MANAGE_CAKE_ORDERS")
def dashboard_route():
    """Pending orders split into urgent / today / future."""
    return jsonify(schedule_service.dashboard(get_store()).to_dict()), 200


@cake_orders_bp.get("/history")
@require_auth
@require_permission("MANAGE_CAKE_ORDERS")
def history_route():
    orders = schedule_service.history(get_store())
    return jsonify({"items": [o.to_dict() for o in orders]}), 200


@cake_orders_bp.get("/defaults")
@require_auth
@require_permission("MANAGE_CAKE_ORDERS")
def defaults_route():
    """Prefill for the order form."""
    return jsonify({
        "delivery_date": to_utc_z(schedule_service.default_delivery_time()),
        "created_by": g.profile.full_name,
        "quantity": 1,
        "deposit_amount": 0,
    }), 200


@cake_orders_bp.get("")
@require_auth
@require_permission("MANAGE_CAKE_ORDERS")
def list_route():
    try:
        orders = schedule_service.list_cake_orders(get_store(), status=request.args.get("status"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": [o.to_dict() for o in orders]}), 200


@cake_orders_bp.post("")
@require_auth
@require_permission("MANAGE_CAKE_ORDERS")
def create_route():
    payload = request.get_json(silent=True) or {}
    store = get_store()
    try:
        order = schedule_service.create_cake_order(
            store,
            payload,
            catalog_service.load_catalog(store).values(),
            created_by=g.profile.full_name,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(order.to_dict()), 201


@cake_orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("MANAGE_CAKE_ORDERS")
def get_route(order_id: int):
    try:
        order = schedule_service.get_cake_order(get_store(), order_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(order.to_dict()), 200


@cake_orders_bp.post("/<int:order_id>/deliver")
@require_auth
@require_permission("MANAGE_CAKE_ORDERS")
def deliver_route(order_id: int):
    try:
        order = schedule_service.mark_delivered(get_store(), order_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify(order.to_dict()), 200


@cake_orders_bp.post("/<int:order_id>/cancel")
@require_auth
@require_permission("MANAGE_CAKE_ORDERS")
def cancel_route(order_id: int):
    try:
        order = schedule_service.cancel_cake_order(get_store(), order_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify(order.to_dict()), 200
