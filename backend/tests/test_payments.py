"""
Payment bridge tests.

The processor is replaced by the FakeGateway fixture; StripeGateway is
exercised with stripe.PaymentIntent patched out.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
import stripe

from garments.errors import PaymentError, ValidationError
from garments.services import payment_service
from garments.services.payment_service import PaymentRecord, StripeGateway, to_minor_units


class TestMinorUnits:
    @pytest.mark.parametrize("price,expected", [
        ("19.99", 1999),
        (10, 1000),
        (125.5, 12550),
        ("12.345", 1235),
        ("0.005", 1),
        (Decimal("999999.99"), 99999999),
    ])
    def test_conversion(self, price, expected):
        assert to_minor_units(price) == expected

    @pytest.mark.parametrize("price", [None, "", "abc", 0, "-5", "1000000.00", True])
    def test_rejects(self, price):
        with pytest.raises(ValidationError):
            to_minor_units(price)


class TestCreateIntentRoute:
    def test_returns_client_secret(self, login, buyer, gateway):
        resp = login(buyer.email).post("/api/v1/create-payment-intent", json={"price": "19.99"})
        assert resp.status_code == 200
        assert resp.get_json() == {"clientSecret": "pi_test_1_secret", "amount": 1999, "currency": "usd"}
        record = gateway.intents["pi_test_1"]
        assert (record.amount, record.currency, record.metadata) == (1999, "usd", {})

    def test_currency_override(self, login, buyer, gateway):
        resp = login(buyer.email).post("/api/v1/create-payment-intent", json={"price": 5, "currency": "EUR"})
        assert resp.get_json()["currency"] == "eur"

    @pytest.mark.parametrize("body", [{}, {"price": "abc"}, {"price": -1}, {"price": 5, "currency": "dollars"}])
    def test_invalid_input(self, login, buyer, gateway, body):
        assert login(buyer.email).post("/api/v1/create-payment-intent", json=body).status_code == 400
        assert gateway.intents == {}

    def test_requires_login(self, client, gateway):
        assert client.post("/api/v1/create-payment-intent", json={"price": 5}).status_code == 401

    def test_processor_not_configured(self, login, buyer):
        resp = login(buyer.email).post("/api/v1/create-payment-intent", json={"price": 5})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Payment processing failed"}

    def test_amount_from_approved_order(self, login, buyer, manager, product, gateway):
        client = login(buyer.email)
        order = client.post("/api/v1/orders", json={"productId": product.id, "orderQuantity": 4}).get_json()
        login(manager.email).patch(f"/api/v1/orders/approve/{order['id']}")

        resp = client.post("/api/v1/create-payment-intent", json={"orderId": order["id"]})
        assert resp.status_code == 200
        assert resp.get_json()["amount"] == 5000
        assert gateway.intents["pi_test_1"].metadata == {"order_id": str(order["id"])}

    def test_order_must_be_approved(self, login, buyer, product, gateway):
        client = login(buyer.email)
        order = client.post("/api/v1/orders", json={"productId": product.id, "orderQuantity": 1}).get_json()
        resp = client.post("/api/v1/create-payment-intent", json={"orderId": order["id"]})
        assert resp.status_code == 400

    def test_order_of_someone_else(self, login, buyer, other_buyer, product, gateway):
        order = login(buyer.email).post(
            "/api/v1/orders", json={"productId": product.id, "orderQuantity": 1}
        ).get_json()
        resp = login(other_buyer.email).post("/api/v1/create-payment-intent", json={"orderId": order["id"]})
        assert resp.status_code == 403


class TestStripeGateway:
    def test_create_payment_intent(self, monkeypatch):
        calls = []

        def fake_create(**kwargs):
            calls.append(kwargs)
            return SimpleNamespace(client_secret="pi_abc_secret_xyz")

        monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

        secret = StripeGateway("sk_test_dummy").create_payment_intent(1999, "usd", {"order_id": "7"})
        assert secret == "pi_abc_secret_xyz"
        assert calls[0]["amount"] == 1999
        assert calls[0]["payment_method_types"] == ["card"]
        assert calls[0]["api_key"] == "sk_test_dummy"
        assert calls[0]["metadata"] == {"order_id": "7"}

    def test_processor_error_is_wrapped(self, monkeypatch):
        def fail(**kwargs):
            raise stripe.APIConnectionError("network down")

        monkeypatch.setattr(stripe.PaymentIntent, "create", fail)
        with pytest.raises(PaymentError):
            StripeGateway("sk_test_dummy").create_payment_intent(100, "usd")

    def test_retrieve_payment(self, monkeypatch):
        intent = SimpleNamespace(
            id="pi_1", status="succeeded", amount=3750, currency="usd", metadata={"order_id": "7"},
        )
        monkeypatch.setattr(stripe.PaymentIntent, "retrieve", lambda intent_id, **kwargs: intent)

        record = StripeGateway("sk_test_dummy").retrieve_payment("pi_1")
        assert record == PaymentRecord(
            id="pi_1", status="succeeded", amount=3750, currency="usd", metadata={"order_id": "7"},
        )

    def test_unknown_intent(self, monkeypatch):
        def missing(intent_id, **kwargs):
            raise stripe.InvalidRequestError("No such payment_intent", param="intent")

        monkeypatch.setattr(stripe.PaymentIntent, "retrieve", missing)
        assert StripeGateway("sk_test_dummy").retrieve_payment("pi_nope") is None


class TestConfirmOrderPayment:
    @pytest.fixture
    def order(self):
        return SimpleNamespace(id=7, order_price=Decimal("1000.00"), status="approved")

    def _stripe_intent(self, monkeypatch, **fields):
        intent = SimpleNamespace(
            **{"id": "pi_1", "status": "succeeded", "amount": 100000, "currency": "usd",
               "metadata": {"order_id": "7"}, **fields}
        )
        monkeypatch.setattr(stripe.PaymentIntent, "retrieve", lambda intent_id, **kwargs: intent)
        return StripeGateway("sk_test_dummy")

    def test_matching_charge(self, monkeypatch, order):
        gateway = self._stripe_intent(monkeypatch)
        record = payment_service.confirm_order_payment("pi_1", order, gateway=gateway)
        assert record.amount == 100000

    def test_small_charge_does_not_pay_large_order(self, monkeypatch, order):
        gateway = self._stripe_intent(monkeypatch, amount=50)
        with pytest.raises(ValidationError, match="does not match the order total"):
            payment_service.confirm_order_payment("pi_1", order, gateway=gateway)

    @pytest.mark.parametrize("fields,message", [
        ({"status": "processing"}, "not been confirmed"),
        ({"currency": "eur"}, "does not match"),
        ({"metadata": {}}, "not made for this order"),
        ({"metadata": {"order_id": "8"}}, "not made for this order"),
    ])
    def test_mismatches(self, monkeypatch, order, fields, message):
        gateway = self._stripe_intent(monkeypatch, **fields)
        with pytest.raises(ValidationError, match=message):
            payment_service.confirm_order_payment("pi_1", order, gateway=gateway)


def test_service_without_gateway(app):
    with app.test_request_context():
        with pytest.raises(PaymentError):
            payment_service.create_payment_intent("5.00")
