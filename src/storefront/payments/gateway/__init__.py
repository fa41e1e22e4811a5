"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations. The adapter
is chosen by STOREFRONT_PAYMENT_GATEWAY; only ``fake`` ships with the
storefront.
"""

from storefront.config import settings
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None

_ADAPTERS = {
    "fake": FakeGateway,
}


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, creating the configured one on first use."""
    global _current_gateway
    if _current_gateway is None:
        adapter = _ADAPTERS.get(settings.PAYMENT_GATEWAY)
        if adapter is None:
            raise ValueError(f"Unknown payment gateway adapter: {settings.PAYMENT_GATEWAY}")
        _current_gateway = adapter()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
