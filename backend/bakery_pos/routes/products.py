# Overview: Flask API routes for the product catalog and stock imports.

"""
Product routes

SECURITY: All routes require authentication.
- Read operations require VIEW_CATALOG
- Product writes require MANAGE_PRODUCTS
- Stock imports require IMPORT_STOCK
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..datastore import get_store
from ..decorators import require_auth, require_permission
from ..services import catalog_service
from ..validation import NotFoundError, ValidationError

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("VIEW_CATALOG")
def list_products_route():
    """
    Query params:
    - category: str (optional; "Tất cả" means all)
    - search: str (optional; name substring, any case)
    - price_mode: retail | wholesale (default retail)
    """
    try:
        products = catalog_service.list_products(
            get_store(),
            category=request.args.get("category"),
            search=request.args.get("search"),
            price_mode=request.args.get("price_mode", "retail"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"items": products, "count": len(products)}), 200


@products_bp.get("/categories")
@require_auth
def categories_route():
    return jsonify({"categories": [catalog_service.ALL_CATEGORIES, *catalog_service.CATEGORIES]}), 200


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_CATALOG")
def get_product_route(product_id: int):
    try:
        product = catalog_service.get_product(get_store(), product_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(product.to_dict()), 200


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        product = catalog_service.create_product(
            get_store(),
            payload,
            placeholder_image=current_app.config["PLACEHOLDER_IMAGE"],
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(product.to_dict()), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        product = catalog_service.update_product(get_store(), product_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(product.to_dict()), 200


@products_bp.post("/<int:product_id>/import")
@require_auth
@require_permission("IMPORT_STOCK")
def import_stock_route(product_id: int):
    """
    Receive a delivery.

    Body: {"quantity": 20, "price": 15000, "note": "..."}
    """
    data = request.get_json(silent=True) or {}
    try:
        log, product = catalog_service.import_stock(
            get_store(),
            product_id,
            data.get("quantity"),
            data.get("price"),
            note=data.get("note"),
            actor_id=g.current_user.id,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"log": log.to_dict(), "product": product.to_dict()}), 201


@products_bp.get("/inventory-logs")
@require_auth
@require_permission("IMPORT_STOCK")
def inventory_logs_route():
    limit = request.args.get("limit", default=50, type=int)
    limit = max(1, min(limit, 200))
    logs = catalog_service.list_inventory_logs(get_store(), limit=limit)
    return jsonify({"items": [log.to_dict() for log in logs]}), 200
