"""Shipment aggregate (CQRS): the single shipment attached to an order.

State Machine:
    PENDING → SHIPPED → IN_TRANSIT → DELIVERED
    SHIPPED → DELIVERED
    SHIPPED / IN_TRANSIT / DELIVERED → RETURNED
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront
from storefront.errors import InvalidTransition
from storefront.shipping.events import ShipmentCreated, ShipmentStatusChanged


class ShipmentStatus(Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    RETURNED = "returned"


_VALID_TRANSITIONS = {
    ShipmentStatus.PENDING: {ShipmentStatus.SHIPPED},
    ShipmentStatus.SHIPPED: {ShipmentStatus.IN_TRANSIT, ShipmentStatus.DELIVERED, ShipmentStatus.RETURNED},
    ShipmentStatus.IN_TRANSIT: {ShipmentStatus.DELIVERED, ShipmentStatus.RETURNED},
    ShipmentStatus.DELIVERED: {ShipmentStatus.RETURNED},
    ShipmentStatus.RETURNED: set(),  # Terminal
}


@storefront.aggregate
class Shipment:
    order_id = Identifier(required=True, unique=True)
    provider_id = Identifier(required=True)
    provider_name = String(max_length=100)
    tracking_number = String(required=True, max_length=100)
    tracking_url = String(max_length=500)
    status = String(choices=ShipmentStatus, default=ShipmentStatus.PENDING.value)
    shipped_date = DateTime()
    estimated_delivery_date = DateTime()
    actual_delivery_date = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, order_id, provider, tracking_number, estimated_delivery_date=None):
        now = datetime.now(UTC)
        shipment = cls(
            order_id=str(order_id),
            provider_id=str(provider.id),
            provider_name=provider.name,
            tracking_number=tracking_number,
            tracking_url=provider.tracking_url(tracking_number),
            status=ShipmentStatus.PENDING.value,
            estimated_delivery_date=estimated_delivery_date,
            created_at=now,
            updated_at=now,
        )
        shipment.raise_(
            ShipmentCreated(
                shipment_id=str(shipment.id),
                order_id=str(order_id),
                provider_id=str(provider.id),
                tracking_number=tracking_number,
                estimated_delivery_date=estimated_delivery_date,
                created_at=now,
            )
        )
        return shipment

    def advance_to(self, new_status, occurred_at=None) -> ShipmentStatus:
        try:
            target = ShipmentStatus(new_status)
        except ValueError:
            raise InvalidTransition({"status": [f"Unknown shipment status {new_status}"]}) from None

        current = ShipmentStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(
                {"status": [f"Shipment cannot move from {current.value} to {target.value}"]}
            )

        occurred_at = occurred_at or datetime.now(UTC)
        self.status = target.value
        if target == ShipmentStatus.SHIPPED:
            self.shipped_date = occurred_at
        elif target == ShipmentStatus.DELIVERED:
            self.actual_delivery_date = occurred_at
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ShipmentStatusChanged(
                shipment_id=str(self.id),
                order_id=str(self.order_id),
                tracking_number=self.tracking_number,
                previous_status=current.value,
                new_status=target.value,
                occurred_at=occurred_at,
            )
        )
        return target
