"""Carrier port: the shipping carrier as seen by the shipment tracker.

Status changes after creation arrive through the carrier webhook.
"""

from abc import ABC, abstractmethod


class CarrierPort(ABC):
    @abstractmethod
    def create_shipment(self, order_id: str, provider_name: str, estimated_delivery_days: int) -> dict:
        """Book a shipment with the carrier.

        Returns:
            dict with keys: tracking_number, estimated_delivery (datetime),
            and ``error`` when the carrier refused the booking
        """
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        ...
