"""Payment gateway port.

Charges are asynchronous: ``request_charge`` only hands the order total to
the gateway, and the outcome arrives later through the payment webhook.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ChargeRequest:
    """Whether the gateway accepted a charge request for processing."""

    accepted: bool
    gateway_reference: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    success: bool
    gateway_refund_id: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    @abstractmethod
    def request_charge(
        self,
        order_id: str,
        amount: float,
        currency: str,
        payment_method: str,
        idempotency_key: str,
    ) -> ChargeRequest:
        """Ask the gateway to charge ``amount`` for ``order_id``."""
        ...

    @abstractmethod
    def refund(self, transaction_id: str, amount: float, reason: str) -> RefundResult:
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Check that a callback really comes from the gateway."""
        ...
