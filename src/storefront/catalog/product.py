"""Product aggregate (CQRS): catalog entry and its sellable stock.

Stock Model:
    stock_quantity: units available to sell right now. Reserving stock for
    an order decrements it immediately; cancelling the order releases the
    units back. It never goes negative.

Price changes only affect orders placed afterwards: order lines capture the
unit price at checkout.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from storefront.catalog.events import (
    LowStockDetected,
    ProductActivated,
    ProductAdded,
    ProductDeactivated,
    ProductPriceChanged,
    ProductRestocked,
    StockReleased,
    StockReserved,
)
from storefront.config import settings
from storefront.domain import storefront
from storefront.errors import InsufficientStock
from storefront.shared.money import to_cents


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    cost = Float(min_value=0.0)
    sku = String(required=True, max_length=100, unique=True)
    stock_quantity = Integer(default=0, min_value=0)
    category_id = Identifier()
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_cannot_be_negative(self):
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError({"stock_quantity": ["Stock quantity cannot be negative"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def add(
        cls,
        name,
        sku,
        price,
        stock_quantity=0,
        cost=None,
        category_id=None,
        description=None,
        product_id=None,
    ):
        now = datetime.now(UTC)
        identity = {"id": product_id} if product_id is not None else {}
        product = cls(
            **identity,
            name=name,
            sku=sku,
            price=to_cents(price),
            cost=to_cents(cost) if cost is not None else None,
            stock_quantity=stock_quantity,
            category_id=category_id,
            description=description,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                sku=sku,
                name=name,
                price=product.price,
                stock_quantity=stock_quantity,
                category_id=str(category_id) if category_id else None,
                added_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------
    def ensure_can_supply(self, quantity):
        """Raise InsufficientStock unless ``quantity`` units can be sold now."""
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if not self.is_active:
            raise InsufficientStock({"product_id": [f"Product {self.id} is not available for sale"]})
        if self.stock_quantity < quantity:
            raise InsufficientStock(
                {"quantity": [f"Insufficient stock for {self.sku}: {self.stock_quantity} available, {quantity} requested"]}
            )

    def reserve(self, quantity, order_id=None):
        """Take ``quantity`` units out of sellable stock for an order."""
        self.ensure_can_supply(quantity)

        previous = self.stock_quantity
        now = datetime.now(UTC)
        self.stock_quantity = previous - quantity
        self.updated_at = now

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                order_id=str(order_id) if order_id else None,
                quantity=quantity,
                previous_quantity=previous,
                new_quantity=self.stock_quantity,
                reserved_at=now,
            )
        )
        self._check_low_stock(now)

    def release(self, quantity, order_id=None):
        """Put previously reserved units back into sellable stock."""
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        previous = self.stock_quantity
        now = datetime.now(UTC)
        self.stock_quantity = previous + quantity
        self.updated_at = now

        self.raise_(
            StockReleased(
                product_id=str(self.id),
                order_id=str(order_id) if order_id else None,
                quantity=quantity,
                previous_quantity=previous,
                new_quantity=self.stock_quantity,
                released_at=now,
            )
        )

    def _check_low_stock(self, now):
        threshold = settings.LOW_STOCK_THRESHOLD
        if self.stock_quantity <= threshold:
            self.raise_(
                LowStockDetected(
                    product_id=str(self.id),
                    sku=self.sku,
                    stock_quantity=self.stock_quantity,
                    threshold=threshold,
                    detected_at=now,
                )
            )

    # -------------------------------------------------------------------
    # Catalog maintenance
    # -------------------------------------------------------------------
    def restock(self, quantity, reference=None):
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        previous = self.stock_quantity
        now = datetime.now(UTC)
        self.stock_quantity = previous + quantity
        self.updated_at = now

        self.raise_(
            ProductRestocked(
                product_id=str(self.id),
                quantity=quantity,
                previous_quantity=previous,
                new_quantity=self.stock_quantity,
                reference=reference,
                restocked_at=now,
            )
        )

    def change_price(self, new_price):
        if new_price is None or new_price < 0:
            raise ValidationError({"price": ["Price cannot be negative"]})

        previous = self.price
        now = datetime.now(UTC)
        self.price = to_cents(new_price)
        self.updated_at = now

        self.raise_(
            ProductPriceChanged(
                product_id=str(self.id),
                previous_price=previous,
                new_price=self.price,
                changed_at=now,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Product is already inactive"]})
        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now
        self.raise_(ProductDeactivated(product_id=str(self.id), deactivated_at=now))

    def activate(self):
        if self.is_active:
            raise ValidationError({"is_active": ["Product is already active"]})
        now = datetime.now(UTC)
        self.is_active = True
        self.updated_at = now
        self.raise_(ProductActivated(product_id=str(self.id), activated_at=now))
