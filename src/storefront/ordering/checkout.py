"""Checkout: turning a cart into a pending order.

Everything a checkout writes happens in the single Unit of Work of the
``PlaceOrder`` handler: stock reservations for every line, the coupon
redemption and its use count, and the order with its items. If any step
raises, nothing is committed.

Concurrent checkouts over the same product or coupon are caught by
Protean's version check on commit: the losing Unit of Work raises
``ExpectedVersionError`` and ``place_order`` runs the checkout again against
the winner's stock and coupon state.
"""

import json
from uuid import uuid4

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.catalog.product import Product
from storefront.catalog.reservation import reserve_stock
from storefront.config import settings
from storefront.coupons.ledger import assess_coupon, redeem_coupon
from storefront.domain import storefront
from storefront.errors import InsufficientStock, StorefrontError
from storefront.ordering.order import Order
from storefront.ordering.pricing import items_subtotal, price_lines
from storefront.ordering.repository import get_order
from storefront.utils.logging import add_context

logger = structlog.get_logger(__name__)


def merge_cart_items(cart_items) -> list[dict]:
    """Validate cart entries and merge repeated products into one line.

    Each entry is a mapping with ``product_id`` and ``quantity``.
    """
    if not cart_items:
        raise ValidationError({"items": ["Cart must contain at least one item"]})

    merged: dict[str, int] = {}
    for entry in cart_items:
        product_id = entry.get("product_id")
        quantity = entry.get("quantity")
        if product_id is None or str(product_id).strip() == "":
            raise ValidationError({"product_id": ["Every cart item needs a product"]})
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ValidationError({"quantity": [f"Quantity for product {product_id} must be a positive integer"]})
        key = str(product_id)
        merged[key] = merged.get(key, 0) + quantity

    return [{"product_id": product_id, "quantity": quantity} for product_id, quantity in merged.items()]


@storefront.command(part_of="Order")
class PlaceOrder:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    shipping_address_id = Identifier(required=True)
    billing_address_id = Identifier(required=True)
    coupon_code = String(max_length=50)
    payment_method = String(max_length=50)
    notes = Text()


@storefront.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart = json.loads(command.items) if isinstance(command.items, str) else command.items
        products = current_domain.repository_for(Product)

        # Validate every line against live stock and capture current prices
        lines = []
        for entry in cart:
            product = products.get(entry["product_id"])
            product.ensure_can_supply(entry["quantity"])
            lines.append(
                {
                    "product_id": str(product.id),
                    "sku": product.sku,
                    "name": product.name,
                    "quantity": entry["quantity"],
                    "unit_price": product.price,
                }
            )

        coupon = None
        discount = 0.0
        if command.coupon_code:
            gross = items_subtotal(lines)
            coupon, _ = assess_coupon(command.user_id, command.coupon_code, gross)
            discount = coupon.discount_for(gross)

        pricing = price_lines(lines, discount=discount)

        for line in lines:
            reserve_stock(line["product_id"], line["quantity"], order_id=command.order_id)

        if coupon is not None:
            redeem_coupon(command.user_id, coupon.code, order_id=command.order_id, coupon=coupon)

        order = Order.place(
            user_id=command.user_id,
            lines=lines,
            pricing=pricing,
            shipping_address_id=command.shipping_address_id,
            billing_address_id=command.billing_address_id,
            coupon_id=str(coupon.id) if coupon else None,
            coupon_code=coupon.code if coupon else None,
            payment_method=command.payment_method,
            notes=command.notes,
            order_id=command.order_id,
        )
        current_domain.repository_for(Order).add(order)

        add_context(order_number=order.order_number)
        logger.info(
            "Order placed",
            order_id=str(order.id),
            user_id=str(command.user_id),
            item_count=len(lines),
            discount_amount=order.discount_amount,
            total_amount=order.total_amount,
        )
        return str(order.id)


def place_order(
    user_id,
    cart_items,
    shipping_address_id,
    billing_address_id,
    coupon_code=None,
    payment_method=None,
    notes=None,
) -> Order:
    """Place an order for ``cart_items`` and return it in ``pending`` status.

    Raises InsufficientStock, CouponInvalid, CouponExhausted or
    CouponAlreadyUsed without writing anything. A checkout that loses a
    concurrent write to the same rows is retried up to MAX_CHECKOUT_ATTEMPTS
    times before it is reported as InsufficientStock.
    """
    items = merge_cart_items(cart_items)
    coupon_code = coupon_code.strip() if coupon_code else None

    for attempt in range(1, settings.MAX_CHECKOUT_ATTEMPTS + 1):
        command = PlaceOrder(
            order_id=str(uuid4()),
            user_id=str(user_id),
            items=json.dumps(items),
            shipping_address_id=str(shipping_address_id),
            billing_address_id=str(billing_address_id),
            coupon_code=coupon_code,
            payment_method=payment_method,
            notes=notes,
        )
        try:
            order_id = current_domain.process(command, asynchronous=False)
        except ExpectedVersionError:
            logger.warning("Checkout lost a concurrent write", user_id=str(user_id), attempt=attempt)
            continue
        except StorefrontError as exc:
            logger.warning("Checkout rejected", user_id=str(user_id), error=exc.code, messages=exc.messages)
            raise
        return get_order(order_id)

    raise InsufficientStock({"items": ["Stock for this order is busy, please try again"]})
