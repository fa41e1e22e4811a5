import pytest
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.utils.globals import current_domain
from storefront.catalog.product import Product
from storefront.config import settings
from storefront.coupons.coupon import Coupon
from storefront.errors import InvalidTransition
from storefront.ordering.order import Order, OrderStatus
from storefront.ordering.status import advance_status


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock_quantity


class TestAdvanceStatus:
    def test_forward_chain(self, catalog, place):
        order = place("1", [("4", 2)])
        for status in ("confirmed", "shipped", "delivered"):
            order = advance_status(order.id, status)
        assert order.status == OrderStatus.DELIVERED.value
        assert order.delivered_at is not None

    def test_accepts_enum(self, catalog, place):
        order = place("1", [("4", 2)])
        assert advance_status(order.id, OrderStatus.CONFIRMED).status == "confirmed"

    def test_pending_to_delivered_rejected(self, catalog, place):
        order = place("1", [("4", 2)])
        with pytest.raises(InvalidTransition):
            advance_status(order.id, "delivered")
        assert current_domain.repository_for(type(order)).get(order.id).status == "pending"

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            advance_status("missing", "confirmed")


class TestLostStatusWrites:
    def test_cancel_retried_after_lost_write(self, catalog, place, monkeypatch):
        order = place("1", [("4", 2)])
        original = Order.advance_to
        calls = []

        def lose_first(self, new_status, reason=None):
            calls.append(new_status)
            if len(calls) == 1:
                raise ExpectedVersionError("Wrong expected version")
            return original(self, new_status, reason=reason)

        monkeypatch.setattr(Order, "advance_to", lose_first)

        assert advance_status(order.id, "cancelled").status == "cancelled"
        assert len(calls) >= 2
        assert _stock("4") == 100

    def test_gives_up_as_invalid_transition(self, catalog, place, monkeypatch):
        order = place("1", [("4", 2)])
        calls = []

        def always_lose(self, new_status, reason=None):
            calls.append(new_status)
            raise ExpectedVersionError("Wrong expected version")

        monkeypatch.setattr(Order, "advance_to", always_lose)

        with pytest.raises(InvalidTransition):
            advance_status(order.id, "cancelled")
        assert current_domain.repository_for(Order).get(order.id).status == "pending"
        assert _stock("4") == 98
        assert len(calls) >= settings.MAX_CHECKOUT_ATTEMPTS


class TestCancellation:
    def test_cancel_restocks_every_line(self, catalog, place):
        order = place("1", [("6", 3), ("7", 2)])
        assert _stock("6") == 197

        cancelled = advance_status(order.id, "cancelled", reason="Ordered by mistake")

        assert cancelled.status == OrderStatus.CANCELLED.value
        assert cancelled.cancellation_reason == "Ordered by mistake"
        assert _stock("6") == 200
        assert _stock("7") == 150

    def test_cancel_leaves_coupon_spent(self, catalog, coupons, place):
        order = place("3", [("3", 1)], coupon_code="SAVE50")
        advance_status(order.id, "cancelled")

        assert _stock("3") == 30
        assert current_domain.repository_for(Coupon).find_by_code("SAVE50").uses_count == 1

    def test_cancel_confirmed_order(self, catalog, place):
        order = place("1", [("5", 1)])
        advance_status(order.id, "confirmed")
        advance_status(order.id, "cancelled")
        assert _stock("5") == 40

    def test_cannot_cancel_twice(self, catalog, place):
        order = place("1", [("5", 1)])
        advance_status(order.id, "cancelled")
        with pytest.raises(InvalidTransition):
            advance_status(order.id, "cancelled")
        assert _stock("5") == 40

    def test_cannot_cancel_shipped_order(self, catalog, place):
        order = place("1", [("5", 1)])
        advance_status(order.id, "confirmed")
        advance_status(order.id, "shipped")
        with pytest.raises(InvalidTransition):
            advance_status(order.id, "cancelled")
        assert _stock("5") == 39
