"""Shipment creation: command, handler and entry point.

A shipment can only be booked for a confirmed order, with an active
provider, and only once per order.
"""

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import IntegrityViolation, OrderNotReady
from storefront.ordering.order import Order, OrderStatus
from storefront.shipping.carrier import get_carrier
from storefront.shipping.provider import ShippingProvider
from storefront.shipping.shipment import Shipment

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Shipment")
class CreateShipment:
    order_id = Identifier(required=True)
    provider_id = Identifier(required=True)


@storefront.command_handler(part_of=Shipment)
class CreateShipmentHandler:
    @handle(CreateShipment)
    def create_shipment(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        if order.status != OrderStatus.CONFIRMED.value:
            logger.warning("Shipment for unconfirmed order", order_id=str(order.id), status=order.status)
            raise OrderNotReady(
                {"order_id": [f"Order {order.order_number} is {order.status}; only confirmed orders ship"]}
            )

        provider = current_domain.repository_for(ShippingProvider).get(command.provider_id)
        if not provider.is_active:
            raise ValidationError({"provider_id": [f"Shipping provider {provider.name} is not active"]})

        repo = current_domain.repository_for(Shipment)
        if repo.find_for_order(order.id) is not None:
            raise IntegrityViolation({"order_id": [f"Order {order.order_number} already has a shipment"]})

        booking = get_carrier().create_shipment(
            order_id=str(order.id),
            provider_name=provider.name,
            estimated_delivery_days=provider.estimated_delivery_days,
        )
        if booking.get("error"):
            logger.warning("Carrier refused shipment", order_id=str(order.id), reason=booking["error"])
            raise InvalidOperationError(f"Carrier refused the shipment: {booking['error']}")

        shipment = Shipment.create(
            order_id=order.id,
            provider=provider,
            tracking_number=booking["tracking_number"],
            estimated_delivery_date=booking.get("estimated_delivery"),
        )
        repo.add(shipment)
        logger.info(
            "Shipment created",
            order_id=str(order.id),
            shipment_id=str(shipment.id),
            provider=provider.name,
            tracking_number=shipment.tracking_number,
        )
        return str(shipment.id)


def create_shipment(order_id, provider_id) -> Shipment:
    shipment_id = current_domain.process(
        CreateShipment(order_id=str(order_id), provider_id=str(provider_id)),
        asynchronous=False,
    )
    return current_domain.repository_for(Shipment).get(shipment_id)
