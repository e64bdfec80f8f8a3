"""
End-to-end flows through the HTTP API, plus the public endpoints.
"""

from garments.models import Message


def test_buyer_order_through_payment(client, login, admin, manager, product, gateway, db_session):
    # Registration and verification
    resp = client.post("/api/v1/users", json={"email": "a@x.com"})
    assert resp.status_code == 201
    buyer_id = resp.get_json()["insertedId"]
    assert client.get("/api/v1/users/role/a@x.com").get_json() == {"role": "buyer", "status": "pending"}

    admin_client = login(admin.email)
    assert admin_client.patch(f"/api/v1/users/role/{buyer_id}", json={"role": "buyer"}).status_code == 200
    assert admin_client.patch(f"/api/v1/users/status/{buyer_id}", json={"status": "verified"}).status_code == 200

    buyer_client = login("a@x.com")

    # Placement
    resp = buyer_client.post("/api/v1/orders", json={"productId": product.id, "orderQuantity": 3})
    assert resp.status_code == 201
    order = resp.get_json()
    assert order["status"] == "pending"

    db_session.refresh(product)
    assert product.quantity == 7

    # Review
    resp = login(manager.email).patch(f"/api/v1/orders/approve/{order['id']}")
    assert resp.get_json()["status"] == "approved"

    # Payment bridge
    intent = buyer_client.post("/api/v1/create-payment-intent", json={"orderId": order["id"]}).get_json()
    assert intent["amount"] == 3750
    intent_id = intent["clientSecret"].removesuffix("_secret")
    gateway.settle(intent_id)

    resp = buyer_client.patch(
        f"/api/v1/orders/status/{order['id']}", json={"status": "paid", "transactionId": intent_id}
    )
    assert resp.status_code == 200
    paid = resp.get_json()
    assert paid["status"] == "paid"
    assert paid["transactionId"] == intent_id
    assert [e["status"] for e in paid["trackingHistory"]] == [
        "Order Placed", "Order Approved", "Payment Received",
    ]


def test_manager_cannot_delete_foreign_product(login, other_manager, product, db_session):
    resp = login(other_manager.email).delete(f"/api/v1/products/{product.id}")
    assert resp.status_code == 403

    db_session.refresh(product)
    assert product.status == "active"
    assert product.quantity == 10


def test_contact_form(client, db_session):
    resp = client.post(
        "/api/v1/contact",
        json={"name": "Rina", "email": "Rina@Shop.com", "subject": "Bulk pricing", "message": "Hello"},
    )
    assert resp.status_code == 201
    stored = db_session.get(Message, resp.get_json()["insertedId"])
    assert stored.email == "rina@shop.com"


def test_contact_form_requires_message(client):
    resp = client.post("/api/v1/contact", json={"name": "Rina", "email": "rina@shop.com"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Missing required fields: message"


def test_health(client, manager):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["database"]["details"]["users"] == 1
    assert body["payments"] == "not_configured"


def test_cors_headers(client, app):
    origin = app.config["ALLOWED_ORIGINS"][0]
    resp = client.get("/api/v1/products", headers={"Origin": origin})
    assert resp.headers["Access-Control-Allow-Origin"] == origin
    assert resp.headers["Access-Control-Allow-Credentials"] == "true"

    other = client.get("/api/v1/products", headers={"Origin": "https://evil.example"})
    assert "Access-Control-Allow-Origin" not in other.headers


def test_unknown_route_is_json(client):
    resp = client.get("/api/v1/nothing-here")
    assert resp.status_code == 404
    assert "error" in resp.get_json()
