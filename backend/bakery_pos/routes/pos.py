# Overview: Flask API routes for the register: cart operations, quotes and checkout.

"""
POS routes

The register owns its cart. Every cart call sends the current state and
gets the next one back; the server re-reads names and prices from the
catalog so a client can never set its own prices.

State payload:
    {"price_mode": "retail", "discount_percent": 0, "customer_id": null,
     "lines": [{"product_id": 1, "quantity": 2}]}

CHECKOUT requires an X-Client-Ref header (one value per checkout attempt).
Resending the same ref returns the order created by the first request.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..datastore import get_store
from ..decorators import require_auth, require_permission
from ..records import OrderItemRecord, OrderRecord
from ..services import cart_service, catalog_service, checkout_service, debt_service
from ..services.invoice_service import BankInfo, ShopInfo, build_invoice, render_text
from ..validation import NotFoundError, ValidationError, coerce_int

pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")

MAX_CLIENT_REF_LENGTH = 64


def _load_state(body: dict, catalog) -> cart_service.PosState:
    raw = body.get("state") or {}
    if not isinstance(raw, dict):
        raise ValidationError("state must be an object")
    customer = None
    if raw.get("customer_id") is not None:
        customer = debt_service.get_customer(get_store(), coerce_int(raw["customer_id"], "customer_id"))
    return cart_service.state_from_payload(raw, catalog, customer=customer)


def _product(catalog, body: dict):
    product_id = coerce_int(body.get("product_id"), "product_id")
    product = catalog.get(product_id)
    if product is None:
        raise ValidationError(f"Unknown product: {product_id}")
    return product


def _state_response(state: cart_service.PosState, status: int = 200):
    totals = checkout_service.totals_for(state)
    return jsonify({"state": cart_service.state_to_dict(state), "totals": totals.to_dict()}), status


def _cart_op(apply):
    body = request.get_json(silent=True) or {}
    try:
        catalog = catalog_service.load_catalog(get_store())
        state = _load_state(body, catalog)
        state = apply(state, catalog, body)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return _state_response(state)


@pos_bp.post("/cart/add")
@require_auth
@require_permission("USE_POS")
def cart_add_route():
    """Body: {state, product_id, delta=1}"""
    return _cart_op(lambda state, catalog, body: cart_service.add_or_increment(
        state, _product(catalog, body), body.get("delta", 1)
    ))


@pos_bp.post("/cart/set")
@require_auth
@require_permission("USE_POS")
def cart_set_route():
    """
    Body: {state, product_id, quantity} or {state, product_id, quantity_text}.

    quantity <= 0 removes the line; quantity_text is keypad input and is
    clamped to >= 1.
    """
    def _apply(state, catalog, body):
        if "quantity_text" in body:
            qty = cart_service.parse_quantity_input(body.get("quantity_text"))
        else:
            qty = body.get("quantity")
        return cart_service.set_quantity(state, _product(catalog, body), qty)

    return _cart_op(_apply)


@pos_bp.post("/cart/remove")
@require_auth
@require_permission("USE_POS")
def cart_remove_route():
    return _cart_op(lambda state, catalog, body: cart_service.remove_line(
        state, coerce_int(body.get("product_id"), "product_id")
    ))


@pos_bp.post("/cart/price-mode")
@require_auth
@require_permission("USE_POS")
def cart_price_mode_route():
    """Body: {state, price_mode}"""
    return _cart_op(lambda state, catalog, body: cart_service.set_price_mode(
        state, body.get("price_mode"), catalog
    ))


@pos_bp.post("/cart/customer")
@require_auth
@require_permission("USE_POS")
def cart_customer_route():
    """Body: {state, customer_id} (null clears the selection)"""
    def _apply(state, catalog, body):
        customer = None
        if body.get("customer_id") is not None:
            customer = debt_service.get_customer(get_store(), coerce_int(body["customer_id"], "customer_id"))
        return cart_service.select_customer(state, customer)

    return _cart_op(_apply)


@pos_bp.post("/cart/discount")
@require_auth
@require_permission("USE_POS")
def cart_discount_route():
    """Body: {state, discount_percent} (clamped to 0..100)"""
    return _cart_op(lambda state, catalog, body: cart_service.set_discount(
        state, body.get("discount_percent")
    ))


@pos_bp.post("/cart/clear")
@require_auth
@require_permission("USE_POS")
def cart_clear_route():
    return _cart_op(lambda state, catalog, body: cart_service.clear_cart(state))


@pos_bp.post("/keypad")
@require_auth
@require_permission("USE_POS")
def keypad_route():
    """Body: {current: "1", key: "2"} -> {value: "2"}"""
    body = request.get_json(silent=True) or {}
    try:
        value = cart_service.keypad_input(str(body.get("current", "1")), body.get("key"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"value": value}), 200


@pos_bp.post("/quote")
@require_auth
@require_permission("USE_POS")
def quote_route():
    """Totals for a cart without settling it."""
    return _cart_op(lambda state, catalog, body: state)


def _invoice_for(order: OrderRecord, items, customer_name=None) -> dict:
    invoice = build_invoice(
        order,
        items,
        ShopInfo.from_config(current_app.config),
        BankInfo.from_config(current_app.config),
        customer_name=customer_name,
    )
    return {**invoice.to_dict(), "text": render_text(invoice)}


@pos_bp.post("/checkout")
@require_auth
@require_permission("USE_POS")
def checkout_route():
    """
    Settle the cart.

    Body: {state, payment_method: cash | transfer | debt}
    Header: X-Client-Ref

    201 with order, items, invoice and the next (cleared) state; 200 when
    the client ref was already settled; 400 for validation; 502 with
    failed_step / partially_applied when the store failed mid-way.
    """
    body = request.get_json(silent=True) or {}
    client_ref = (request.headers.get("X-Client-Ref") or "").strip()
    if not client_ref:
        return jsonify({"error": "X-Client-Ref header required"}), 400
    if len(client_ref) > MAX_CLIENT_REF_LENGTH:
        return jsonify({"error": f"X-Client-Ref cannot exceed {MAX_CLIENT_REF_LENGTH} characters"}), 400

    store = get_store()
    try:
        catalog = catalog_service.load_catalog(store)
        state = _load_state(body, catalog)
        method = body.get("payment_method")
        pending = checkout_service.begin_settlement(state, method)
        result = checkout_service.settle(
            store,
            state,
            method,
            client_ref=client_ref,
            actor_id=g.current_user.id,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    next_state = checkout_service.apply_settlement(pending, result)

    if not result.ok:
        if result.partially_applied:
            current_app.logger.error(
                "Settlement partially applied: ref=%s failed_step=%s completed=%s",
                client_ref, result.step, ",".join(result.completed_steps),
            )
            message = "Sale was only partially saved; check the order before retrying"
        else:
            current_app.logger.error("Settlement failed: ref=%s step=%s error=%s", client_ref, result.step, result.error)
            message = "Sale could not be saved; nothing was recorded"
        return jsonify({
            "error": message,
            "failed_step": result.step,
            "partially_applied": result.partially_applied,
            "completed_steps": list(result.completed_steps),
            "state": cart_service.state_to_dict(next_state),
        }), 502

    customer_name = result.customer.name if result.customer else (state.customer.name if state.customer else None)
    return jsonify({
        **result.to_dict(),
        "invoice": _invoice_for(result.order, result.items, customer_name),
        "state": cart_service.state_to_dict(next_state),
    }), 200 if result.replayed else 201


@pos_bp.get("/orders/<int:order_id>/invoice")
@require_auth
@require_permission("USE_POS")
def invoice_route(order_id: int):
    store = get_store()
    row = store.first("orders", {"id": order_id})
    if row is None:
        return jsonify({"error": "Order not found"}), 404
    order = OrderRecord.from_row(row)
    items = [OrderItemRecord.from_row(r) for r in store.select("order_items", {"order_id": order_id})]
    return jsonify(_invoice_for(order, items)), 200
