"""Repositories for shipments and shipping providers."""

from protean.exceptions import ObjectNotFoundError

from storefront.domain import storefront
from storefront.shipping.provider import ShippingProvider
from storefront.shipping.shipment import Shipment


@storefront.repository(part_of=Shipment)
class ShipmentRepository:
    def find_for_order(self, order_id) -> Shipment | None:
        results = self._dao.query.filter(order_id=str(order_id)).all().items
        return results[0] if results else None

    def get_for_order(self, order_id) -> Shipment:
        shipment = self.find_for_order(order_id)
        if shipment is None:
            raise ObjectNotFoundError(f"No shipment recorded for order {order_id}")
        return shipment


@storefront.repository(part_of=ShippingProvider)
class ShippingProviderRepository:
    def find_by_name(self, name: str) -> ShippingProvider | None:
        results = self._dao.query.filter(name=name).all().items
        return results[0] if results else None
