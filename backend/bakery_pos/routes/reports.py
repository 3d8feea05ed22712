# Overview: Flask API routes for back-office reports.

"""
Report routes (VIEW_REPORTS)

Query param `date`: YYYY-MM-DD for one shop-local day, "month" for the
current month; omitted means today.
"""

from flask import Blueprint, jsonify, request

from ..datastore import get_store
from ..decorators import require_auth, require_permission
from ..services import report_service
from ..validation import ValidationError

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/revenue")
@require_auth
@require_permission("VIEW_REPORTS")
def revenue_route():
    try:
        report = report_service.revenue_report(get_store(), request.args.get("date"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(report), 200


@reports_bp.get("/debts")
@require_auth
@require_permission("VIEW_REPORTS")
def debts_route():
    try:
        report = report_service.debt_report(get_store(), request.args.get("date"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(report), 200


@reports_bp.get("/inventory")
@require_auth
@require_permission("VIEW_REPORTS")
def inventory_route():
    return jsonify(report_service.inventory_report(get_store())), 200
