"""Storefront load test: concurrent checkouts over a small, contended catalog.

Many users race for the same few products and the same coupon, so the run
exercises stock reservation and coupon redemption under contention. At the
end every product's stock must still be non-negative.

Usage:
    locust -f loadtests/locustfile.py --host http://localhost:8000

    # Headless (CI mode):
    locust -f loadtests/locustfile.py CheckoutUser --headless \
           -u 50 -r 10 -t 120s --csv=results/loadtest
"""

import logging
import random
import time
import uuid
from datetime import UTC, datetime, timedelta

import requests
from locust import HttpUser, between, events, task

logger = logging.getLogger("loadtest")

CONTENDED_PRODUCTS = [
    {"product_id": f"load-{n}", "name": f"Load Test Item {n}", "sku": f"LOAD-{n}", "price": 49.99, "stock_quantity": 200}
    for n in range(1, 4)
]
COUPON_CODE = "LOADTEST10"


def _error_detail(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return (response.text or "")[:300] or "(empty response body)"
    return str(body.get("error") or body.get("detail") or body)[:300]


@events.test_start.add_listener
def seed_catalog(environment, **_kwargs):
    """Create the contended products and coupon before users start."""
    host = environment.host
    now = datetime.now(UTC)
    for product in CONTENDED_PRODUCTS:
        requests.post(f"{host}/products", json=product, timeout=10)
    requests.post(
        f"{host}/coupons",
        json={
            "code": COUPON_CODE,
            "discount_type": "percentage",
            "discount_value": 10,
            "valid_from": (now - timedelta(days=1)).isoformat(),
            "valid_until": (now + timedelta(days=1)).isoformat(),
            "max_uses": 100,
        },
        timeout=10,
    )
    print(f"\n[LOADTEST] Seeded {len(CONTENDED_PRODUCTS)} products at {time.strftime('%H:%M:%S')}")


@events.test_stop.add_listener
def check_stock(environment, **_kwargs):
    for product in CONTENDED_PRODUCTS:
        response = requests.get(f"{environment.host}/products/{product['product_id']}", timeout=10)
        if response.status_code == 200:
            stock = response.json()["stock_quantity"]
            print(f"[LOADTEST] {product['sku']}: {stock} units left")
            if stock < 0:
                logger.error("Stock went negative for %s", product["sku"])


class CheckoutUser(HttpUser):
    """Places small orders, sometimes with the shared coupon, then cancels a few."""

    wait_time = between(0.1, 0.5)

    def on_start(self):
        self.user_id = f"load-user-{uuid.uuid4().hex[:8]}"
        self.orders: list[str] = []

    @task(5)
    def checkout(self):
        product = random.choice(CONTENDED_PRODUCTS)
        payload = {
            "user_id": self.user_id,
            "items": [{"product_id": product["product_id"], "quantity": random.randint(1, 3)}],
            "shipping_address_id": "addr-1",
            "billing_address_id": "addr-1",
        }
        if random.random() < 0.2:
            payload["coupon_code"] = COUPON_CODE

        with self.client.post("/orders", json=payload, catch_response=True, name="POST /orders") as resp:
            if resp.status_code == 201:
                self.orders.append(resp.json()["order_id"])
            elif resp.status_code == 409:
                # Out of stock or coupon already used: an expected outcome under contention
                resp.success()
            else:
                resp.failure(f"Checkout failed: {resp.status_code} {_error_detail(resp)}")

    @task(1)
    def cancel(self):
        if not self.orders:
            return
        order_id = self.orders.pop()
        with self.client.put(
            f"/orders/{order_id}/status",
            json={"status": "cancelled", "reason": "load test"},
            catch_response=True,
            name="PUT /orders/{id}/status",
        ) as resp:
            if resp.status_code not in (200, 409):
                resp.failure(f"Cancel failed: {resp.status_code} {_error_detail(resp)}")
