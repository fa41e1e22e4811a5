"""In-process payment gateway for development and tests.

Accepts every charge and refund unless configured to decline, and records
each call so tests can assert on what was sent.
"""

from uuid import uuid4

from storefront.payments.gateway.port import ChargeRequest, PaymentGateway, RefundResult

WEBHOOK_TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def request_charge(
        self,
        order_id: str,
        amount: float,
        currency: str,
        payment_method: str,
        idempotency_key: str,
    ) -> ChargeRequest:
        self.calls.append(
            {
                "method": "request_charge",
                "order_id": order_id,
                "amount": amount,
                "currency": currency,
                "payment_method": payment_method,
                "idempotency_key": idempotency_key,
            }
        )
        if self.should_succeed:
            return ChargeRequest(accepted=True, gateway_reference=f"fake_chg_{uuid4().hex[:12]}")
        return ChargeRequest(accepted=False, failure_reason=self.failure_reason)

    def refund(self, transaction_id: str, amount: float, reason: str) -> RefundResult:
        self.calls.append(
            {
                "method": "refund",
                "transaction_id": transaction_id,
                "amount": amount,
                "reason": reason,
            }
        )
        if self.should_succeed:
            return RefundResult(success=True, gateway_refund_id=f"fake_ref_{uuid4().hex[:12]}")
        return RefundResult(success=False, failure_reason=self.failure_reason)

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == WEBHOOK_TEST_SIGNATURE
