"""Carrier status updates: command and handler.

Handles carrier callbacks. A shipment reaching ``shipped`` ships the order;
reaching ``delivered`` delivers it. Both happen in the same Unit of Work as
the shipment update.
"""

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.ordering.order import Order, OrderStatus
from storefront.shipping.shipment import Shipment, ShipmentStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Shipment")
class RecordCarrierUpdate:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    occurred_at = DateTime()


@storefront.command_handler(part_of=Shipment)
class CarrierUpdateHandler:
    @handle(RecordCarrierUpdate)
    def record_update(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_for_order(command.order_id)
        reached = shipment.advance_to(command.status, occurred_at=command.occurred_at)
        repo.add(shipment)

        orders = current_domain.repository_for(Order)
        order = orders.get(command.order_id)
        if reached == ShipmentStatus.SHIPPED:
            order.ship()
            orders.add(order)
        elif reached == ShipmentStatus.DELIVERED:
            if order.status == OrderStatus.CONFIRMED.value:
                order.ship()
            order.deliver()
            orders.add(order)

        logger.info(
            "Carrier update recorded",
            order_id=str(order.id),
            tracking_number=shipment.tracking_number,
            shipment_status=shipment.status,
            order_status=order.status,
        )


def record_carrier_update(order_id, status, occurred_at=None) -> Shipment:
    current_domain.process(
        RecordCarrierUpdate(order_id=str(order_id), status=status, occurred_at=occurred_at),
        asynchronous=False,
    )
    return current_domain.repository_for(Shipment).get_for_order(order_id)
