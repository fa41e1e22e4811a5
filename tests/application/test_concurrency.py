"""Racing checkouts, cancels and coupon redemptions from real threads.

Each race leans on the version check: the loser of a concurrent write
retries against fresh state, so the invariants below hold however the
threads interleave.
"""

import threading
from datetime import UTC, datetime, timedelta

import pytest
from protean.utils.globals import current_domain
from storefront.catalog.listing import add_product
from storefront.catalog.product import Product
from storefront.config import settings
from storefront.coupons.coupon import Coupon
from storefront.coupons.issuance import create_coupon
from storefront.domain import storefront
from storefront.errors import CouponAlreadyUsed, CouponExhausted, InsufficientStock, StorefrontError
from storefront.ordering.checkout import place_order
from storefront.ordering.order import Order, OrderStatus
from storefront.ordering.status import advance_status


@pytest.fixture(autouse=True)
def patient_retries(monkeypatch):
    monkeypatch.setattr(settings, "MAX_CHECKOUT_ATTEMPTS", 20)


def _race(count, attempt):
    """Run ``attempt(i)`` on ``count`` threads released together; collect outcomes."""
    barrier = threading.Barrier(count)
    outcomes = []
    guard = threading.Lock()

    def run(index):
        with storefront.domain_context():
            barrier.wait()
            try:
                result = attempt(index)
            except StorefrontError as exc:
                result = exc
        with guard:
            outcomes.append(result)

    threads = [threading.Thread(target=run, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return outcomes


def _checkout(user_id, product_id, quantity=1, coupon_code=None):
    return place_order(
        user_id=user_id,
        cart_items=[{"product_id": product_id, "quantity": quantity}],
        shipping_address_id=f"addr-{user_id}",
        billing_address_id=f"addr-{user_id}",
        coupon_code=coupon_code,
    )


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


def test_last_unit_goes_to_exactly_one_buyer():
    add_product(product_id="last", name="Last One", sku="LAST-1", price=25.00, stock_quantity=1)

    outcomes = _race(2, lambda i: _checkout(str(i + 1), "last"))

    placed = [o for o in outcomes if isinstance(o, Order)]
    rejected = [o for o in outcomes if isinstance(o, InsufficientStock)]
    assert len(placed) == 1
    assert len(rejected) == 1
    assert current_domain.repository_for(Product).get("last").stock_quantity == 0
    assert len(_orders()) == 1


def test_stock_never_oversold():
    add_product(product_id="hot", name="Hot Item", sku="HOT-1", price=10.00, stock_quantity=5)

    outcomes = _race(8, lambda i: _checkout(str(i), "hot", quantity=2))

    placed = [o for o in outcomes if isinstance(o, Order)]
    assert len(placed) == 2
    assert all(isinstance(o, InsufficientStock) for o in outcomes if not isinstance(o, Order))
    assert current_domain.repository_for(Product).get("hot").stock_quantity == 1


def test_coupon_max_uses_holds_under_contention():
    add_product(product_id="mug", name="Mug", sku="MUG-1", price=100.00, stock_quantity=100)
    now = datetime.now(UTC)
    create_coupon("FIRST3", "fixed_amount", 5, now - timedelta(days=1), now + timedelta(days=1), max_uses=3)

    outcomes = _race(6, lambda i: _checkout(f"user-{i}", "mug", coupon_code="FIRST3"))

    placed = [o for o in outcomes if isinstance(o, Order)]
    assert len(placed) == 3
    assert all(isinstance(o, CouponExhausted) for o in outcomes if not isinstance(o, Order))
    assert current_domain.repository_for(Coupon).find_by_code("FIRST3").uses_count == 3
    assert current_domain.repository_for(Product).get("mug").stock_quantity == 97


def test_same_user_cannot_use_coupon_twice_concurrently():
    add_product(product_id="mug", name="Mug", sku="MUG-1", price=100.00, stock_quantity=100)
    now = datetime.now(UTC)
    create_coupon("ONEEACH", "percentage", 10, now - timedelta(days=1), now + timedelta(days=1))

    outcomes = _race(2, lambda i: _checkout("7", "mug", coupon_code="ONEEACH"))

    assert len([o for o in outcomes if isinstance(o, Order)]) == 1
    assert len([o for o in outcomes if isinstance(o, CouponAlreadyUsed)]) == 1
    assert current_domain.repository_for(Coupon).find_by_code("ONEEACH").uses_count == 1
    assert current_domain.repository_for(Product).get("mug").stock_quantity == 99


def test_checkouts_racing_cancels_keep_stock_consistent():
    add_product(product_id="tee", name="Tee", sku="TEE-1", price=20.00, stock_quantity=10)
    to_cancel = [_checkout(f"early-{i}", "tee").id for i in range(4)]

    def attempt(index):
        if index < len(to_cancel):
            return advance_status(to_cancel[index], OrderStatus.CANCELLED)
        return _checkout(f"late-{index}", "tee")

    outcomes = _race(12, attempt)

    assert all(isinstance(o, (Order, InsufficientStock)) for o in outcomes)
    repo = current_domain.repository_for(Order)
    live = [repo.get(o.id) for o in _orders() if o.status != OrderStatus.CANCELLED.value]
    stock = current_domain.repository_for(Product).get("tee").stock_quantity
    assert stock >= 0
    assert stock == 10 - sum(item.quantity for order in live for item in order.items)
    assert len([o for o in _orders() if o.status == OrderStatus.CANCELLED.value]) == 4
