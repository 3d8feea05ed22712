# Overview: Flask API routes for the staff shift roster.

from flask import Blueprint, jsonify, request

from ..datastore import get_store
from ..decorators import require_auth, require_permission
from ..services import shift_service
from ..validation import NotFoundError, ValidationError

shifts_bp = Blueprint("shifts", __name__, url_prefix="/api/shifts")


@shifts_bp.get("")
@require_auth
@require_permission("VIEW_SHIFTS")
def list_shifts_route():
    shifts = shift_service.list_shifts(get_store())
    return jsonify({
        "items": [shift_service.shift_to_dict(s) for s in shifts],
        "stats": shift_service.shift_stats(shifts),
    }), 200


@shifts_bp.post("")
@require_auth
@require_permission("MANAGE_SHIFTS")
def create_shift_route():
    payload = request.get_json(silent=True) or {}
    try:
        shift = shift_service.create_shift(get_store(), payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(shift_service.shift_to_dict(shift)), 201


@shifts_bp.put("/<int:shift_id>")
@require_auth
@require_permission("MANAGE_SHIFTS")
def update_shift_route(shift_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        shift = shift_service.update_shift(get_store(), shift_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(shift_service.shift_to_dict(shift)), 200


@shifts_bp.delete("/<int:shift_id>")
@require_auth
@require_permission("MANAGE_SHIFTS")
def delete_shift_route(shift_id: int):
    try:
        shift_service.delete_shift(get_store(), shift_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"ok": True}), 200
