"""
HTTP API tests: authentication, permissions and the register flow
end-to-end on the in-memory database.
"""

import pytest


def _create_product(client, headers, **overrides):
    payload = {"name": "Bánh mì thịt", "category": "Bánh mì", "price": 20000, "wholesale_price": 17000, "stock": 50}
    payload.update(overrides)
    resp = client.post("/api/products", json=payload, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def _create_customer(client, headers, name="Chị Lan"):
    resp = client.post("/api/debts", json={"name": name, "phone": "0905000111"}, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


# ============================================================================
# System / auth
# ============================================================================

def test_health(client, db_session):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.get_json()["checks"]["database"]["status"] == "healthy"


def test_version_reports_store_timezone(client):
    data = client.get("/api/version").get_json()

    assert data["store_timezone"] == "Asia/Ho_Chi_Minh"
    assert data["server_time"].endswith("Z")


def test_login_rejects_bad_password(client, login):
    login("cashier")

    resp = client.post("/api/auth/login", json={"email": "cashier@test.local", "password": "wrong-pass-1"})

    assert resp.status_code == 401


def test_missing_profile_falls_back_to_guest_sales(client, login):
    headers = login("cashier", profile=False)

    me = client.get("/api/auth/me", headers=headers).get_json()["user"]

    assert me["full_name"] == "Nhân viên Sales"
    assert me["role"] == "sales"
    assert me["is_guest"] is True


def test_requests_without_token_are_401(client, db_session):
    assert client.get("/api/products").status_code == 401
    assert client.get("/api/products", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_logout_revokes_token(client, login):
    headers = login("admin")

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/auth/me", headers=headers).status_code == 401


@pytest.mark.parametrize("role,method,path,permission", [
    ("baker", "post", "/api/pos/quote", "USE_POS"),
    ("sales", "get", "/api/reports/revenue", "VIEW_REPORTS"),
    ("cashier", "post", "/api/products", "MANAGE_PRODUCTS"),
    ("baker", "get", "/api/debts", "MANAGE_DEBTS"),
])
def test_role_permissions(client, login, role, method, path, permission):
    headers = login(role)

    resp = getattr(client, method)(path, json={}, headers=headers)

    assert resp.status_code == 403
    assert resp.get_json()["required_permission"] == permission


# ============================================================================
# Register flow
# ============================================================================

def test_cart_add_then_quote_with_discount(client, login):
    headers = login("admin")
    product = _create_product(client, headers)

    resp = client.post("/api/pos/cart/add", json={"state": {}, "product_id": product["id"], "delta": 2}, headers=headers)
    assert resp.status_code == 200
    state = resp.get_json()["state"]

    state_payload = {
        "price_mode": state["price_mode"],
        "discount_percent": 10,
        "lines": [{"product_id": l["product_id"], "quantity": l["quantity"]} for l in state["lines"]],
    }
    quote = client.post("/api/pos/quote", json={"state": state_payload}, headers=headers).get_json()

    assert quote["totals"] == {"sub_total": 40000, "discount_percent": 10, "discount_amount": 4000, "total": 36000}


def test_checkout_requires_client_ref(client, login):
    headers = login("cashier")

    resp = client.post("/api/pos/checkout", json={"state": {}, "payment_method": "cash"}, headers=headers)

    assert resp.status_code == 400


def test_debt_checkout_without_customer_rejected(client, login):
    headers = login("admin")
    product = _create_product(client, headers)

    resp = client.post(
        "/api/pos/checkout",
        json={"state": {"price_mode": "wholesale", "lines": [{"product_id": product["id"], "quantity": 1}]}, "payment_method": "debt"},
        headers={**headers, "X-Client-Ref": "t-1"},
    )

    assert resp.status_code == 400
    assert client.get("/api/reports/revenue", headers=headers).get_json()["count"] == 0


def test_wholesale_debt_checkout_end_to_end_and_replay(client, login):
    headers = login("admin")
    product = _create_product(client, headers)
    customer = _create_customer(client, headers)
    body = {
        "state": {
            "price_mode": "wholesale",
            "customer_id": customer["id"],
            "lines": [{"product_id": product["id"], "quantity": 10}],
        },
        "payment_method": "debt",
    }
    ref_headers = {**headers, "X-Client-Ref": "reg1-0001"}

    resp = client.post("/api/pos/checkout", json=body, headers=ref_headers)

    assert resp.status_code == 201, resp.get_json()
    data = resp.get_json()
    assert data["order"]["total_amount"] == 170000
    assert data["debt_transaction"]["amount"] == 170000
    assert data["customer"]["amount"] == 170000
    assert data["customer"]["status"] == "pending"
    assert data["state"]["lines"] == []
    assert data["state"]["customer"] is None
    assert data["invoice"]["payment_label"] == "Ghi nợ"
    assert "170.000đ" in data["invoice"]["text"]

    again = client.post("/api/pos/checkout", json=body, headers=ref_headers)
    assert again.status_code == 200
    assert again.get_json()["replayed"] is True
    assert again.get_json()["order"]["id"] == data["order"]["id"]

    stored = client.get(f"/api/debts/{customer['id']}", headers=headers).get_json()
    assert stored["amount"] == 170000
    audit = client.get(f"/api/debts/{customer['id']}/audit", headers=headers).get_json()
    assert audit["ok"] is True
    assert audit["transaction_count"] == 1


def test_checkout_partial_failure_is_reported(client, login, use_fake_store, product_rows, customer_row):
    use_fake_store.seed("products", *product_rows)
    use_fake_store.seed("customer_debts", customer_row)
    use_fake_store.fail_on["customer_debts"] = "update"
    headers = login("cashier")

    resp = client.post(
        "/api/pos/checkout",
        json={
            "state": {"price_mode": "wholesale", "customer_id": 1, "lines": [{"product_id": 1, "quantity": 1}]},
            "payment_method": "debt",
        },
        headers={**headers, "X-Client-Ref": "t-partial"},
    )

    assert resp.status_code == 502
    data = resp.get_json()
    assert data["partially_applied"] is True
    assert data["failed_step"] == "customer_balance"
    assert data["completed_steps"] == ["order", "order_items", "debt_transaction"]
    assert len(data["state"]["lines"]) == 1


# ============================================================================
# Debts / cake orders / stock
# ============================================================================

def test_debt_repayment_route(client, login):
    headers = login("cashier")
    customer = _create_customer(client, headers)
    url = f"/api/debts/{customer['id']}/transactions"

    assert client.post(url, json={"amount": 100000, "type": "debt"}, headers=headers).status_code == 201
    resp = client.post(url, json={"amount": 150000, "type": "repayment"}, headers=headers)

    assert resp.status_code == 201
    assert resp.get_json()["customer"]["amount"] == -50000
    assert resp.get_json()["customer"]["status"] == "paid"
    assert client.post(url, json={"amount": -5, "type": "debt"}, headers=headers).status_code == 400
    assert len(client.get(url, headers=headers).get_json()["items"]) == 2


def test_cake_order_deliver_twice_conflicts(client, login):
    headers = login("baker")

    created = client.post("/api/cake-orders", json={
        "customer_name": "Chị Mai",
        "product_name": "Bánh kem sinh nhật",
        "total_amount": 350000,
        "deposit_amount": 100000,
        "delivery_date": "2030-01-01T03:00:00Z",
    }, headers=headers)
    assert created.status_code == 201
    order = created.get_json()
    assert order["created_by"] == "Test baker"
    assert order["remaining_amount"] == 250000

    url = f"/api/cake-orders/{order['id']}/deliver"
    assert client.post(url, headers=headers).status_code == 200
    assert client.post(url, headers=headers).status_code == 409

    history = client.get("/api/cake-orders/history", headers=headers).get_json()["items"]
    assert [o["id"] for o in history] == [order["id"]]


def test_cake_order_form_time_is_shop_local(client, login):
    headers = login("sales")

    resp = client.post("/api/cake-orders", json={
        "customer_name": "Anh Hùng",
        "product_name": "Bánh kem",
        "total_amount": 200000,
        "delivery_date": "2030-01-01T05:00",
    }, headers=headers)

    assert resp.status_code == 201, resp.get_json()
    assert resp.get_json()["delivery_date"] == "2029-12-31T22:00:00Z"


def test_import_stock_route(client, login):
    admin = login("admin")
    product = _create_product(client, admin, stock=5)
    baker = login("baker")

    resp = client.post(f"/api/products/{product['id']}/import", json={"quantity": 20, "price": 12000}, headers=baker)

    assert resp.status_code == 201, resp.get_json()
    assert resp.get_json()["product"]["stock"] == 25
