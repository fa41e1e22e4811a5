"""Shared BDD fixtures and step definitions for checkout and the order lifecycle."""

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then, when
from storefront.catalog.product import Product
from storefront.coupons.coupon import Coupon
from storefront.errors import StorefrontError
from storefront.ordering.checkout import place_order
from storefront.ordering.repository import get_order
from storefront.ordering.status import advance_status
from storefront.shared.money import sum_amounts


@pytest.fixture()
def cart():
    return {"user_id": None, "items": []}


@pytest.fixture()
def error():
    """Container for the rule violation a step ran into."""
    return {"exc": None}


def _checkout(cart, coupon_code=None):
    return place_order(
        user_id=cart["user_id"],
        cart_items=cart["items"],
        shipping_address_id=f"addr-{cart['user_id']}",
        billing_address_id=f"addr-{cart['user_id']}",
        coupon_code=coupon_code,
    )


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the sample catalog is in stock")
def _(catalog):
    return catalog


@given("the sample coupons are issued")
def _(coupons):
    return coupons


@given("the sample shipping providers are registered", target_fixture="shipping_providers")
def _(providers):
    return providers


@given(parsers.cfparse('user "{user_id}" has {quantity:d} of product "{product_id}" in the cart'))
def _(cart, user_id, quantity, product_id):
    cart["user_id"] = user_id
    cart["items"].append({"product_id": product_id, "quantity": quantity})


@given("the user checked out", target_fixture="order")
def _(cart):
    return _checkout(cart)


@given(parsers.cfparse('the user checked out with coupon "{code}"'), target_fixture="order")
def _(cart, code):
    return _checkout(cart, coupon_code=code)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the user checks out", target_fixture="order")
def _(cart, error):
    try:
        return _checkout(cart)
    except StorefrontError as exc:
        error["exc"] = exc
        return None


@when(parsers.cfparse('the user checks out with coupon "{code}"'), target_fixture="order")
def _(cart, code, error):
    try:
        return _checkout(cart, coupon_code=code)
    except StorefrontError as exc:
        error["exc"] = exc
        return None


@when(parsers.cfparse('the order is moved to "{status}"'), target_fixture="order")
def _(order, status, error):
    try:
        return advance_status(order.id, status)
    except StorefrontError as exc:
        error["exc"] = exc
        return get_order(order.id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order is placed with status "{status}"'))
def _(order, status):
    assert order is not None
    assert order.status == status


@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert get_order(order.id).status == status


@then(parsers.cfparse("the order subtotal is {amount:f}"))
def _(order, amount):
    assert order.subtotal == amount


@then(parsers.cfparse("the order discount is {amount:f}"))
def _(order, amount):
    assert order.discount_amount == amount


@then(parsers.cfparse("the order total is {amount:f}"))
def _(order, amount):
    assert order.total_amount == amount


@then("the line totals add up to the order subtotal")
def _(order):
    assert sum_amounts(item.total_price for item in order.items) == order.subtotal


@then(parsers.cfparse('the request is rejected with "{code}"'))
def _(error, code):
    assert error["exc"] is not None
    assert error["exc"].code == code


@then(parsers.cfparse('product "{product_id}" has {quantity:d} units in stock'))
def _(product_id, quantity):
    assert current_domain.repository_for(Product).get(product_id).stock_quantity == quantity


@then(parsers.cfparse('the use count of coupon "{code}" is {count:d}'))
def _(code, count):
    assert current_domain.repository_for(Coupon).find_by_code(code).uses_count == count
