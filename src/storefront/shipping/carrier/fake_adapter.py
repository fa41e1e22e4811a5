"""Fake carrier adapter: deterministic carrier for testing and development."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

from storefront.shipping.carrier.port import CarrierPort


class FakeCarrier(CarrierPort):
    """Fake carrier that always succeeds by default."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.bookings: list[dict] = []

    def configure(self, should_succeed: bool = True, failure_reason: str = "Carrier unavailable"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_shipment(self, order_id: str, provider_name: str, estimated_delivery_days: int) -> dict:
        self.bookings.append({"order_id": order_id, "provider_name": provider_name})
        if not self.should_succeed:
            return {"tracking_number": None, "estimated_delivery": None, "error": self.failure_reason}

        return {
            "tracking_number": f"TRK{uuid4().hex[:12].upper()}",
            "estimated_delivery": datetime.now(UTC) + timedelta(days=estimated_delivery_days or 0),
        }

    def verify_webhook_signature(self, _payload: str, _signature: str) -> bool:
        # Any signature is accepted in development and tests
        return True
