"""Carrier adapter abstraction: pluggable shipping carrier integration."""

from storefront.config import settings
from storefront.shipping.carrier.port import CarrierPort

_carrier_instance: CarrierPort | None = None


def get_carrier() -> CarrierPort:
    """Return the configured carrier adapter (singleton).

    Uses FakeCarrier by default; STOREFRONT_CARRIER_ADAPTER selects another.
    """
    global _carrier_instance
    if _carrier_instance is None:
        if settings.CARRIER_ADAPTER == "fake":
            from storefront.shipping.carrier.fake_adapter import FakeCarrier

            _carrier_instance = FakeCarrier()
        else:
            raise ValueError(f"Unknown carrier adapter: {settings.CARRIER_ADAPTER}")
    return _carrier_instance


def set_carrier(carrier: CarrierPort) -> None:
    global _carrier_instance
    _carrier_instance = carrier


def reset_carrier() -> None:
    """Reset the carrier singleton (useful for testing)."""
    global _carrier_instance
    _carrier_instance = None
