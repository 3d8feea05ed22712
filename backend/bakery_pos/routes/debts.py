# Overview: Flask API routes for customer debts and the debt ledger.

"""
Debt routes

The ledger is append-only: there is no route to edit or delete a
transaction. Balances move only through POST /<id>/transactions (or a
debt-paid checkout).
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..datastore import get_store
from ..decorators import require_auth, require_permission
from ..services import debt_service
from ..validation import NotFoundError, ValidationError

debts_bp = Blueprint("debts", __name__, url_prefix="/api/debts")


@debts_bp.get("")
@require_auth
@require_permission("MANAGE_DEBTS")
def list_customers_route():
    customers = debt_service.list_customers(get_store(), search=request.args.get("search"))
    return jsonify({"items": [c.to_dict() for c in customers], "count": len(customers)}), 200


@debts_bp.get("/summary")
@require_auth
@require_permission("MANAGE_DEBTS")
def summary_route():
    return jsonify(debt_service.debt_summary(get_store())), 200


@debts_bp.post("")
@require_auth
@require_permission("MANAGE_DEBTS")
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        customer = debt_service.create_customer(get_store(), payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(customer.to_dict()), 201


@debts_bp.get("/<int:customer_id>")
@require_auth
@require_permission("MANAGE_DEBTS")
def get_customer_route(customer_id: int):
    try:
        customer = debt_service.get_customer(get_store(), customer_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(customer.to_dict()), 200


@debts_bp.put("/<int:customer_id>")
@require_auth
@require_permission("MANAGE_DEBTS")
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        customer = debt_service.update_customer(get_store(), customer_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(customer.to_dict()), 200


@debts_bp.get("/<int:customer_id>/transactions")
@require_auth
@require_permission("MANAGE_DEBTS")
def list_transactions_route(customer_id: int):
    store = get_store()
    try:
        debt_service.get_customer(store, customer_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    entries = debt_service.list_transactions(store, customer_id)
    return jsonify({"items": [e.to_dict() for e in entries]}), 200


@debts_bp.post("/<int:customer_id>/transactions")
@require_auth
@require_permission("MANAGE_DEBTS")
def record_transaction_route(customer_id: int):
    """
    Body: {"amount": 50000, "type": "debt" | "repayment", "note": "..."}

    amount must be a positive whole number of đồng.
    """
    data = request.get_json(silent=True) or {}
    try:
        entry = debt_service.record_transaction(
            get_store(),
            customer_id,
            data.get("amount"),
            data.get("type"),
            note=data.get("note"),
            actor_id=g.current_user.id,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({
        "transaction": entry.transaction.to_dict(),
        "customer": entry.customer.to_dict(),
    }), 201


@debts_bp.post("/<int:customer_id>/overdue")
@require_auth
@require_permission("MANAGE_DEBTS")
def mark_overdue_route(customer_id: int):
    try:
        customer = debt_service.mark_overdue(get_store(), customer_id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(customer.to_dict()), 200


@debts_bp.get("/<int:customer_id>/audit")
@require_auth
@require_permission("MANAGE_DEBTS")
def audit_route(customer_id: int):
    try:
        audit = debt_service.audit_balance(get_store(), customer_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    if not audit.ok:
        current_app.logger.warning(
            "Balance drift for customer %s: stored=%s ledger=%s",
            customer_id, audit.stored_balance, audit.ledger_balance,
        )
    return jsonify(audit.to_dict()), 200
