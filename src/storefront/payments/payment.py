"""Payment aggregate (CQRS): the single payment attached to an order.

State Machine:
    PENDING → COMPLETED → REFUNDED
    PENDING → FAILED → PENDING (retry)

The amount is the order total when the payment is initiated; a gateway
report of any other amount is rejected.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, String

from storefront.domain import storefront
from storefront.errors import IntegrityViolation, InvalidTransition
from storefront.payments.events import (
    PaymentCompleted,
    PaymentFailed,
    PaymentInitiated,
    PaymentRefunded,
    PaymentRetried,
)
from storefront.shared.money import to_cents


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PENDING},
    PaymentStatus.COMPLETED: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),  # Terminal
}


@storefront.aggregate
class Payment:
    order_id = Identifier(required=True, unique=True)
    payment_method = String(max_length=50)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    gateway_reference = String(max_length=255)
    transaction_id = String(max_length=255)
    failure_reason = String(max_length=500)
    refund_id = String(max_length=255)
    payment_date = DateTime()
    refunded_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def initiate(cls, order_id, amount, currency="USD", payment_method=None, gateway_reference=None):
        now = datetime.now(UTC)
        payment = cls(
            order_id=str(order_id),
            amount=to_cents(amount),
            currency=currency,
            payment_method=payment_method,
            status=PaymentStatus.PENDING.value,
            gateway_reference=gateway_reference,
            created_at=now,
            updated_at=now,
        )
        payment.raise_(
            PaymentInitiated(
                payment_id=str(payment.id),
                order_id=str(order_id),
                amount=payment.amount,
                currency=currency,
                payment_method=payment_method,
                gateway_reference=gateway_reference,
                initiated_at=now,
            )
        )
        return payment

    def _assert_can_transition(self, target_status: PaymentStatus) -> None:
        current = PaymentStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(
                {"status": [f"Payment cannot move from {current.value} to {target_status.value}"]}
            )

    def ensure_amount_matches(self, reported_amount) -> None:
        if reported_amount is not None and to_cents(reported_amount) != self.amount:
            raise IntegrityViolation(
                {"amount": [f"Reported amount {to_cents(reported_amount):.2f} does not match {self.amount:.2f}"]}
            )

    def complete(self, transaction_id=None, amount=None) -> None:
        self._assert_can_transition(PaymentStatus.COMPLETED)
        self.ensure_amount_matches(amount)

        now = datetime.now(UTC)
        self.status = PaymentStatus.COMPLETED.value
        self.transaction_id = transaction_id
        self.failure_reason = None
        self.payment_date = now
        self.updated_at = now
        self.raise_(
            PaymentCompleted(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                transaction_id=transaction_id,
                amount=self.amount,
                completed_at=now,
            )
        )

    def fail(self, reason=None) -> None:
        self._assert_can_transition(PaymentStatus.FAILED)
        now = datetime.now(UTC)
        self.status = PaymentStatus.FAILED.value
        self.failure_reason = reason or "Unknown failure"
        self.updated_at = now
        self.raise_(
            PaymentFailed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                reason=self.failure_reason,
                failed_at=now,
            )
        )

    def retry(self) -> None:
        self._assert_can_transition(PaymentStatus.PENDING)
        now = datetime.now(UTC)
        self.status = PaymentStatus.PENDING.value
        self.failure_reason = None
        self.updated_at = now
        self.raise_(PaymentRetried(payment_id=str(self.id), order_id=str(self.order_id), retried_at=now))

    def refund(self, refund_id=None) -> None:
        self._assert_can_transition(PaymentStatus.REFUNDED)
        now = datetime.now(UTC)
        self.status = PaymentStatus.REFUNDED.value
        self.refund_id = refund_id
        self.refunded_at = now
        self.updated_at = now
        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                amount=self.amount,
                refund_id=refund_id,
                refunded_at=now,
            )
        )
