"""Refunds for cancelled orders."""

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import InvalidTransition, OrderNotReady
from storefront.ordering.order import Order, OrderStatus
from storefront.payments.gateway import get_gateway
from storefront.payments.payment import Payment, PaymentStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Payment")
class RefundPayment:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@storefront.command_handler(part_of=Payment)
class RefundPaymentHandler:
    @handle(RefundPayment)
    def refund(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        if order.status != OrderStatus.CANCELLED.value:
            raise OrderNotReady({"order_id": [f"Only cancelled orders are refunded; {order.order_number} is {order.status}"]})

        repo = current_domain.repository_for(Payment)
        payment = repo.get_for_order(order.id)
        if payment.status != PaymentStatus.COMPLETED.value:
            raise InvalidTransition({"status": [f"Only completed payments are refunded; this one is {payment.status}"]})

        result = get_gateway().refund(
            transaction_id=payment.transaction_id,
            amount=payment.amount,
            reason=command.reason or "Order cancelled",
        )
        if not result.success:
            logger.warning("Refund declined", order_id=str(order.id), reason=result.failure_reason)
            raise InvalidOperationError(f"Refund declined by gateway: {result.failure_reason}")

        payment.refund(refund_id=result.gateway_refund_id)
        repo.add(payment)
        logger.info("Payment refunded", order_id=str(order.id), payment_id=str(payment.id), amount=payment.amount)


def refund_payment(order_id, reason=None) -> Payment:
    current_domain.process(RefundPayment(order_id=str(order_id), reason=reason), asynchronous=False)
    return current_domain.repository_for(Payment).get_for_order(order_id)
