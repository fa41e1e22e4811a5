"""Integration tests for the Storefront API endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.exceptions import ExpectedVersionError
from storefront.api import (
    coupon_router,
    order_router,
    payment_router,
    product_router,
    register_storefront_exception_handlers,
    shipping_router,
)
from storefront.catalog.product import Product
from storefront.payments.gateway.fake_adapter import WEBHOOK_TEST_SIGNATURE


@pytest.fixture()
def client():
    app = FastAPI()
    for router in (product_router, coupon_router, order_router, payment_router, shipping_router):
        app.include_router(router)
    register_storefront_exception_handlers(app)
    return TestClient(app)


def _checkout(client, user_id="3", items=None, coupon_code=None):
    return client.post(
        "/orders",
        json={
            "user_id": user_id,
            "items": items or [{"product_id": "3", "quantity": 1}],
            "shipping_address_id": f"addr-{user_id}",
            "billing_address_id": f"addr-{user_id}",
            "coupon_code": coupon_code,
            "payment_method": "credit_card",
        },
    )


class TestProductEndpoints:
    def test_add_and_read_product(self, client):
        response = client.post(
            "/products",
            json={"product_id": "p-1", "name": "Desk Lamp", "sku": "LAMP-01", "price": 29.99, "stock_quantity": 12},
        )
        assert response.status_code == 201

        response = client.get("/products/p-1")
        assert response.status_code == 200
        assert response.json()["stock_quantity"] == 12

    def test_unknown_product_is_404(self, client):
        assert client.get("/products/nope").status_code == 404

    def test_duplicate_sku_is_409(self, client, catalog):
        response = client.post("/products", json={"name": "Dupe", "sku": "LAMP-XX", "price": 1.0})
        assert response.status_code == 201
        response = client.post("/products", json={"name": "Dupe", "sku": "LAMP-XX", "price": 1.0})
        assert response.status_code == 409
        assert response.json()["error"] == "integrity_violation"

    def test_restock(self, client, catalog):
        response = client.post("/products/4/restock", json={"quantity": 10})
        assert response.json()["stock_quantity"] == 110

    def test_lost_concurrent_update_is_409(self, client, catalog, monkeypatch):
        def stale(self, quantity, reference=None):
            raise ExpectedVersionError("Wrong expected version")

        monkeypatch.setattr(Product, "restock", stale)

        response = client.post("/products/4/restock", json={"quantity": 10})
        assert response.status_code == 409
        assert response.json()["error"] == "concurrent_update"


class TestCheckoutEndpoints:
    def test_checkout_with_coupon(self, client, catalog, coupons):
        response = _checkout(client, coupon_code="SAVE50")

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["discount_amount"] == 50.0
        assert body["subtotal"] == 1149.99
        assert body["total_amount"] == 1241.99
        assert body["order_number"].startswith("ORD")

    def test_insufficient_stock_is_409(self, client, catalog):
        response = _checkout(client, items=[{"product_id": "3", "quantity": 31}])
        assert response.status_code == 409
        assert response.json()["error"] == "insufficient_stock"

    def test_coupon_already_used_is_409(self, client, catalog, coupons):
        response = _checkout(client, user_id="2", items=[{"product_id": "6", "quantity": 1}], coupon_code="WELCOME10")
        assert response.status_code == 409
        assert response.json()["error"] == "coupon_already_used"

    def test_empty_cart_is_rejected(self, client, catalog):
        assert _checkout(client, items=[]).status_code in (400, 422)

    def test_eligibility(self, client, coupons):
        response = client.get("/coupons/WELCOME10/eligibility", params={"user_id": "1", "subtotal": 80})
        assert response.json() == {"eligible": True, "reason": None, "message": None, "discount": 8.0}

    def test_list_orders_for_user(self, client, catalog):
        _checkout(client, user_id="5", items=[{"product_id": "6", "quantity": 1}])
        response = client.get("/orders", params={"user_id": "5"})
        assert len(response.json()) == 1

    def test_invalid_transition_is_409(self, client, catalog):
        order_id = _checkout(client).json()["order_id"]
        response = client.put(f"/orders/{order_id}/status", json={"status": "delivered"})
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    def test_cancel_through_api(self, client, catalog):
        order_id = _checkout(client).json()["order_id"]
        response = client.put(f"/orders/{order_id}/status", json={"status": "cancelled", "reason": "Oops"})
        assert response.json()["status"] == "cancelled"
        assert client.get("/products/3").json()["stock_quantity"] == 30


class TestPaymentAndShippingEndpoints:
    def test_pay_confirm_ship_deliver(self, client, catalog, providers):
        order_id = _checkout(client).json()["order_id"]

        payment = client.post(f"/orders/{order_id}/payment", json={})
        assert payment.status_code == 201
        assert payment.json()["status"] == "pending"

        webhook = client.post(
            "/payments/webhook",
            json={"order_id": order_id, "status": "completed", "transaction_id": "txn-9", "amount": 1295.99},
            headers={"x-gateway-signature": WEBHOOK_TEST_SIGNATURE},
        )
        assert webhook.status_code == 200
        assert client.get(f"/orders/{order_id}").json()["status"] == "confirmed"

        shipment = client.post(f"/orders/{order_id}/shipment", json={"provider_id": str(providers["Fargo"].id)})
        assert shipment.status_code == 201

        for status in ("shipped", "delivered"):
            response = client.post("/shipping/webhook", json={"order_id": order_id, "status": status})
            assert response.status_code == 200
        assert client.get(f"/orders/{order_id}").json()["status"] == "delivered"

    def test_bad_gateway_signature_is_401(self, client, catalog):
        order_id = _checkout(client).json()["order_id"]
        client.post(f"/orders/{order_id}/payment", json={})
        response = client.post(
            "/payments/webhook",
            json={"order_id": order_id, "status": "completed"},
            headers={"x-gateway-signature": "forged"},
        )
        assert response.status_code == 401

    def test_shipping_pending_order_is_409(self, client, catalog, providers):
        order_id = _checkout(client).json()["order_id"]
        response = client.post(f"/orders/{order_id}/shipment", json={"provider_id": str(providers["G4S"].id)})
        assert response.status_code == 409
        assert response.json()["error"] == "order_not_ready"
