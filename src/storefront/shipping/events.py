"""Domain events for shipping providers and shipments."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="ShippingProvider")
class ShippingProviderRegistered:
    __version__ = 1

    provider_id = Identifier(required=True)
    name = String(required=True)
    estimated_delivery_days = Integer()
    registered_at = DateTime(required=True)


@storefront.event(part_of="Shipment")
class ShipmentCreated:
    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    provider_id = Identifier(required=True)
    tracking_number = String(required=True)
    estimated_delivery_date = DateTime()
    created_at = DateTime(required=True)


@storefront.event(part_of="Shipment")
class ShipmentStatusChanged:
    """The carrier reported a new status for the shipment."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    occurred_at = DateTime(required=True)
