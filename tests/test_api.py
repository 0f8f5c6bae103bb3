"""HTTP tests for the storefront API."""

from storefront.errors import GatewayFailure
from storefront.services.payment import compute_signature

ADDRESS = {"street": "12 MG Road", "city": "Pune", "state": "MH", "zip": "411001"}
MANUAL = {"kind": "manual"}


def paid(settings, order_ref="order_gw1", payment_ref="pay_gw1", signature=None):
    return {
        "kind": "paid",
        "gateway_order_ref": order_ref,
        "gateway_payment_ref": payment_ref,
        "signature": signature or compute_signature(settings.RAZORPAY_KEY_SECRET, order_ref, payment_ref),
    }


def add(client, headers, name="Widget", price=10, quantity=1, image="widget.png"):
    return client.post("/cart/add", json={"name": name, "price": price, "image": image, "quantity": quantity}, headers=headers)


class TestAuthEndpoints:
    def test_register_and_login(self, client):
        resp = client.post("/register", json={
            "name": "Asha", "mobile": "9000000001", "email": "asha@example.com", "password": "pw",
        })
        assert resp.status_code == 201
        assert resp.json()["email"] == "asha@example.com"
        assert resp.json()["is_admin"] is False
        assert "password_hash" not in resp.json()

        resp = client.post("/login", json={"email": "asha@example.com", "password": "pw"})
        assert resp.status_code == 200
        assert resp.json()["token_type"] == "bearer"
        assert client.cookies.get("access_token") == resp.json()["access_token"]

    def test_duplicate_email(self, client, make_user):
        make_user("asha@example.com")
        resp = client.post("/register", json={
            "name": "Asha", "mobile": "9000000001", "email": "asha@example.com", "password": "pw",
        })
        assert resp.status_code == 409
        assert resp.json()["kind"] == "duplicate_email"

    def test_register_missing_field(self, client):
        resp = client.post("/register", json={"name": "Asha", "email": "asha@example.com", "password": "pw"})
        assert resp.status_code == 422
        assert resp.json()["kind"] == "invalid_input"

    def test_login_failures(self, client, make_user):
        make_user("asha@example.com")

        resp = client.post("/login", json={"email": "nobody@example.com", "password": "pw"})
        assert resp.status_code == 404
        assert resp.json()["kind"] == "not_found"

        resp = client.post("/login", json={"email": "asha@example.com", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["kind"] == "invalid_credential"

    def test_cookie_session_and_logout(self, client, make_user, login):
        make_user("asha@example.com")
        login("asha@example.com")

        assert client.get("/me").json()["email"] == "asha@example.com"

        assert client.post("/logout").status_code == 200
        resp = client.get("/me")
        assert resp.status_code == 401
        assert resp.json()["kind"] == "unauthorized"

    def test_cart_requires_session(self, client):
        resp = client.get("/cart")
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "kind": "unauthorized", "message": "Not authenticated"}


class TestCartEndpoints:
    def test_add_merge_remove(self, client, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")

        add(client, headers, quantity=2)
        resp = add(client, headers, quantity=1, price=99)
        body = resp.json()
        assert resp.status_code == 200
        assert body["items"] == [
            {"name": "Widget", "price": 10.0, "image": "widget.png", "quantity": 3, "line_total": 30.0}
        ]
        assert body["total"] == 30.0
        assert body["item_count"] == 3

        resp = client.post("/cart/remove-one", json={"name": "Widget"}, headers=headers)
        assert resp.json()["items"][0]["quantity"] == 2

        resp = client.delete("/cart/items/Widget", headers=headers)
        assert resp.json() == {"items": [], "total": 0.0, "item_count": 0}

    def test_remove_unknown_item(self, client, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")

        resp = client.post("/cart/remove-one", json={"name": "Ghost"}, headers=headers)
        assert resp.status_code == 404
        assert client.delete("/cart/items/Ghost", headers=headers).status_code == 404

    def test_rejects_non_positive_quantity(self, client, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")

        resp = add(client, headers, quantity=0)
        assert resp.status_code == 422
        assert resp.json()["kind"] == "invalid_input"


class TestPaymentEndpoints:
    def test_create_intent_uses_server_total(self, client, gateway, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")
        add(client, headers, price=10, quantity=3)

        resp = client.post("/payment/create-intent", json={"amount": 1}, headers=headers)

        assert resp.status_code == 200
        assert resp.json()["total"] == 30.0
        assert resp.json()["intent"]["amount"] == 3000
        assert resp.json()["key_id"] == "rzp_test_id"
        assert gateway.calls[0]["amount"] == 3000

    def test_create_intent_empty_cart(self, client, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")

        resp = client.post("/payment/create-intent", headers=headers)
        assert resp.status_code == 409
        assert resp.json()["kind"] == "empty_cart"

    def test_create_intent_gateway_down(self, client, gateway, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")
        add(client, headers)
        gateway.error = GatewayFailure("Payment gateway unavailable")

        resp = client.post("/payment/create-intent", headers=headers)
        assert resp.status_code == 502
        assert resp.json()["kind"] == "gateway_failure"

    def test_verify(self, client, settings, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")
        good = compute_signature(settings.RAZORPAY_KEY_SECRET, "order_gw1", "pay_gw1")

        resp = client.post("/payment/verify", json={"order_ref": "order_gw1", "payment_ref": "pay_gw1", "signature": good}, headers=headers)
        assert resp.json() == {"success": True, "verified": True}

        resp = client.post("/payment/verify", json={"order_ref": "order_gw1", "payment_ref": "pay_gw2", "signature": good}, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["kind"] == "invalid_signature"


class TestOrderEndpoints:
    def test_paid_order_clears_cart(self, client, settings, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")
        add(client, headers, quantity=2)
        assert client.post("/payment/create-intent", headers=headers).json()["intent"]["id"] == "order_gw1"

        resp = client.post("/orders", json={"address": ADDRESS, "payment": paid(settings)}, headers=headers)

        assert resp.status_code == 201
        assert resp.json() == {"success": True, "order_id": "order_gw1"}
        assert client.get("/cart", headers=headers).json()["items"] == []
        order = client.get("/orders", headers=headers).json()[0]
        assert order["status"] == "paid"
        assert order["payment_id"] == "pay_gw1"
        assert order["total_amount"] == 20.0

    def test_paid_order_rejected_when_cart_grew_after_payment(self, client, settings, gateway, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")
        add(client, headers, price=10)
        client.post("/payment/create-intent", headers=headers)
        add(client, headers, name="Console", price=900)

        resp = client.post("/orders", json={"address": ADDRESS, "payment": paid(settings)}, headers=headers)

        assert gateway.calls[0]["amount"] == 1000
        assert resp.status_code == 400
        assert resp.json()["kind"] == "invalid_input"
        assert client.get("/orders", headers=headers).json() == []
        assert len(client.get("/cart", headers=headers).json()["items"]) == 2

    def test_paid_order_with_bad_signature(self, client, settings, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")
        add(client, headers)

        resp = client.post("/orders", json={"address": ADDRESS, "payment": paid(settings, signature="0" * 64)}, headers=headers)

        assert resp.status_code == 400
        assert resp.json()["kind"] == "invalid_signature"
        assert client.get("/orders", headers=headers).json() == []
        assert len(client.get("/cart", headers=headers).json()["items"]) == 1

    def test_paid_order_needs_signature_fields(self, client, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")
        add(client, headers)

        resp = client.post("/orders", json={"address": ADDRESS, "payment": {"kind": "paid"}}, headers=headers)
        assert resp.status_code == 422

    def test_empty_cart(self, client, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")

        resp = client.post("/orders", json={"address": ADDRESS, "payment": MANUAL}, headers=headers)
        assert resp.status_code == 409
        assert resp.json()["kind"] == "empty_cart"

    def test_tracking_update_requires_admin(self, client, make_user, login):
        make_user("asha@example.com")
        headers = login("asha@example.com")
        add(client, headers)
        order_id = client.post("/orders", json={"address": ADDRESS, "payment": MANUAL}, headers=headers).json()["order_id"]

        resp = client.patch(f"/orders/{order_id}/tracking", json={"status": "shipped"}, headers=headers)

        assert resp.status_code == 403
        assert resp.json()["kind"] == "permission_denied"
        history = client.get(f"/orders/{order_id}", headers=headers).json()["tracking_history"]
        assert [e["status"] for e in history] == ["pending"]

    def test_tracking_update_unknown_order(self, client, make_user, login):
        make_user("admin@example.com", is_admin=True)
        admin = login("admin@example.com")

        resp = client.patch("/orders/order_missing/tracking", json={"status": "shipped"}, headers=admin)
        assert resp.status_code == 404

    def test_order_detail_hidden_from_other_users(self, client, make_user, login):
        make_user("asha@example.com")
        make_user("ravi@example.com")
        asha = login("asha@example.com")
        ravi = login("ravi@example.com")
        add(client, asha)
        order_id = client.post("/orders", json={"address": ADDRESS, "payment": MANUAL}, headers=asha).json()["order_id"]

        assert client.get(f"/orders/{order_id}", headers=ravi).status_code == 404
        assert client.get(f"/orders/{order_id}", headers=asha).status_code == 200

    def test_admin_lists_another_users_orders(self, client, make_user, login):
        make_user("asha@example.com")
        make_user("ravi@example.com")
        make_user("admin@example.com", is_admin=True)
        asha = login("asha@example.com")
        ravi = login("ravi@example.com")
        admin = login("admin@example.com")
        add(client, asha)
        client.post("/orders", json={"address": ADDRESS, "payment": MANUAL}, headers=asha)

        assert len(client.get("/orders", params={"email": "asha@example.com"}, headers=admin).json()) == 1
        resp = client.get("/orders", params={"email": "asha@example.com"}, headers=ravi)
        assert resp.status_code == 403


class TestAdminEndpoints:
    def test_grant_admin_and_read_logs(self, client, make_user, login):
        asha_id = make_user("asha@example.com")
        make_user("admin@example.com", is_admin=True)
        admin = login("admin@example.com")
        asha = login("asha@example.com")

        assert client.get("/users", headers=asha).status_code == 403
        users = client.get("/users", headers=admin).json()
        assert users["total"] == 2

        resp = client.put(f"/users/{asha_id}/admin", json={"is_admin": True}, headers=admin)
        assert resp.json()["is_admin"] is True
        assert client.get("/users", headers=asha).status_code == 200

        logs = client.get("/logs", params={"action": "LOGIN"}, headers=admin).json()
        assert logs["total"] >= 2
        assert all(entry["action"] == "LOGIN" for entry in logs["items"])


def test_end_to_end_manual_order_with_tracking(client, make_user, login):
    make_user("u1@example.com")
    make_user("admin@example.com", is_admin=True)
    u1 = login("u1@example.com")
    admin = login("admin@example.com")

    add(client, u1, name="Widget", price=10, quantity=2)
    cart = add(client, u1, name="Widget", price=10, quantity=1).json()
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3
    assert cart["total"] == 30.0

    intent = client.post("/payment/create-intent", headers=u1).json()
    assert intent["total"] == 30.0

    resp = client.post("/orders", json={"address": ADDRESS, "payment": MANUAL}, headers=u1)
    assert resp.status_code == 201
    order_id = resp.json()["order_id"]

    cart = client.get("/cart", headers=u1).json()
    assert [(i["name"], i["quantity"]) for i in cart["items"]] == [("Widget", 3)]

    resp = client.patch(f"/orders/{order_id}/tracking", json={"status": "shipped"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["tracking_status"] == "shipped"

    orders = client.get("/orders", headers=u1).json()
    assert len(orders) == 1
    assert orders[0]["order_id"] == order_id
    assert orders[0]["status"] == "pending"
    assert [e["status"] for e in orders[0]["tracking_history"]] == ["pending", "shipped"]
