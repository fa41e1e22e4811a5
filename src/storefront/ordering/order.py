"""Order aggregate (CQRS): a placed checkout and its lifecycle.

State Machine:
    PENDING → CONFIRMED → SHIPPED → DELIVERED
    CANCELLED (from PENDING or CONFIRMED)

Delivered and cancelled orders are final. Line items capture the unit price
at checkout and never change afterwards.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from storefront.config import settings
from storefront.domain import storefront
from storefront.errors import InvalidTransition
from storefront.ordering.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderDelivered,
    OrderPlaced,
    OrderShipped,
)
from storefront.ordering.pricing import PriceBreakdown
from storefront.shared.money import line_total, sum_amounts


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def generate_order_number() -> str:
    return f"ORD{uuid4().hex[:10].upper()}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """One product line of an order, priced at checkout time."""

    product_id = Identifier(required=True)
    sku = String(required=True, max_length=100)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    user_id = Identifier(required=True)
    order_number = String(required=True, max_length=50, unique=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    items_subtotal = Float(default=0.0, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    subtotal = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    total_amount = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="USD")
    shipping_address_id = Identifier(required=True)
    billing_address_id = Identifier(required=True)
    payment_method = String(max_length=50)
    notes = Text()
    coupon_id = Identifier()
    coupon_code = String(max_length=50)
    cancellation_reason = String(max_length=500)
    placed_at = DateTime()
    confirmed_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def line_totals_must_add_up_to_items_subtotal(self):
        if not self.items:
            return
        if sum_amounts(item.total_price for item in self.items) != self.items_subtotal:
            raise ValidationError({"items": ["Line totals do not add up to the items subtotal"]})

    @invariant.post
    def subtotal_must_net_out_discount(self):
        if sum_amounts([self.subtotal, self.discount_amount]) != self.items_subtotal:
            raise ValidationError({"subtotal": ["Subtotal must equal items subtotal less the discount"]})

    @invariant.post
    def total_must_add_up(self):
        if sum_amounts([self.subtotal, self.tax_amount, self.shipping_cost]) != self.total_amount:
            raise ValidationError({"total_amount": ["Total must equal subtotal plus tax and shipping"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        lines,
        pricing: PriceBreakdown,
        shipping_address_id,
        billing_address_id,
        coupon_id=None,
        coupon_code=None,
        payment_method=None,
        notes=None,
        order_id=None,
    ):
        """Create a pending order.

        Args:
            user_id: The customer placing the order.
            lines: List of dicts with product_id, sku, name, quantity, unit_price.
            pricing: Totals computed for ``lines`` by ``price_lines``.
        """
        now = datetime.now(UTC)
        items = [
            OrderItem(
                product_id=str(line["product_id"]),
                sku=line["sku"],
                name=line["name"],
                quantity=line["quantity"],
                unit_price=line["unit_price"],
                total_price=line_total(line["quantity"], line["unit_price"]),
            )
            for line in lines
        ]

        identity = {"id": order_id} if order_id is not None else {}
        order = cls(
            **identity,
            user_id=str(user_id),
            order_number=generate_order_number(),
            status=OrderStatus.PENDING.value,
            items=items,
            currency=settings.CURRENCY,
            shipping_address_id=str(shipping_address_id),
            billing_address_id=str(billing_address_id),
            payment_method=payment_method,
            notes=notes,
            coupon_id=str(coupon_id) if coupon_id else None,
            coupon_code=coupon_code,
            placed_at=now,
            updated_at=now,
            **pricing.as_dict(),
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                items=json.dumps(order.line_summary()),
                item_count=len(items),
                items_subtotal=order.items_subtotal,
                discount_amount=order.discount_amount,
                subtotal=order.subtotal,
                tax_amount=order.tax_amount,
                shipping_cost=order.shipping_cost,
                total_amount=order.total_amount,
                coupon_code=coupon_code,
                placed_at=now,
            )
        )
        return order

    def line_summary(self) -> list[dict]:
        return [
            {
                "product_id": str(item.product_id),
                "sku": item.sku,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.total_price,
            }
            for item in self.items
        ]

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def can_transition_to(self, target_status: OrderStatus) -> bool:
        return target_status in _VALID_TRANSITIONS.get(OrderStatus(self.status), set())

    def _assert_can_transition(self, target_status: OrderStatus):
        if not self.can_transition_to(target_status):
            raise InvalidTransition(
                {"status": [f"Cannot transition from {self.status} to {target_status.value}"]}
            )

    # -------------------------------------------------------------------
    # Order lifecycle transitions
    # -------------------------------------------------------------------
    def confirm(self):
        self._assert_can_transition(OrderStatus.CONFIRMED)
        now = datetime.now(UTC)
        self.status = OrderStatus.CONFIRMED.value
        self.confirmed_at = now
        self.updated_at = now
        self.raise_(OrderConfirmed(order_id=str(self.id), order_number=self.order_number, confirmed_at=now))

    def ship(self):
        self._assert_can_transition(OrderStatus.SHIPPED)
        now = datetime.now(UTC)
        self.status = OrderStatus.SHIPPED.value
        self.shipped_at = now
        self.updated_at = now
        self.raise_(OrderShipped(order_id=str(self.id), order_number=self.order_number, shipped_at=now))

    def deliver(self):
        self._assert_can_transition(OrderStatus.DELIVERED)
        now = datetime.now(UTC)
        self.status = OrderStatus.DELIVERED.value
        self.delivered_at = now
        self.updated_at = now
        self.raise_(OrderDelivered(order_id=str(self.id), order_number=self.order_number, delivered_at=now))

    def cancel(self, reason=None) -> list[tuple[str, int]]:
        """Cancel the order and return the (product_id, quantity) pairs to restock.

        The caller releases the stock in the same Unit of Work; a redeemed
        coupon stays spent.
        """
        self._assert_can_transition(OrderStatus.CANCELLED)
        previous = self.status
        restock = [(str(item.product_id), item.quantity) for item in self.items]

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                reason=reason,
                restocked_items=json.dumps([{"product_id": pid, "quantity": qty} for pid, qty in restock]),
                cancelled_at=now,
            )
        )
        return restock

    def advance_to(self, new_status, reason=None) -> list[tuple[str, int]]:
        """Move to ``new_status``; returns the lines to restock when cancelling."""
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise InvalidTransition({"status": [f"Unknown order status {new_status}"]}) from None

        if target == OrderStatus.CANCELLED:
            return self.cancel(reason=reason)
        if target == OrderStatus.CONFIRMED:
            self.confirm()
        elif target == OrderStatus.SHIPPED:
            self.ship()
        elif target == OrderStatus.DELIVERED:
            self.deliver()
        else:
            self._assert_can_transition(target)
        return []
