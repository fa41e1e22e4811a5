"""Payment webhook processing: command and handler.

Handles gateway callbacks. A completed payment confirms an order that is
still pending, in the same Unit of Work.
"""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import InvalidTransition
from storefront.ordering.order import Order, OrderStatus
from storefront.payments.payment import Payment, PaymentStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Payment")
class RecordPaymentResult:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)  # completed, failed, pending, refunded
    transaction_id = String(max_length=255)
    amount = Float()
    reason = String(max_length=500)


@storefront.command_handler(part_of=Payment)
class PaymentResultHandler:
    @handle(RecordPaymentResult)
    def record_result(self, command):
        orders = current_domain.repository_for(Order)
        order = orders.get(command.order_id)

        repo = current_domain.repository_for(Payment)
        payment = repo.get_for_order(order.id)

        try:
            status = PaymentStatus(command.status)
        except ValueError:
            raise InvalidTransition({"status": [f"Unknown payment status {command.status}"]}) from None

        if status == PaymentStatus.COMPLETED:
            payment.complete(transaction_id=command.transaction_id, amount=command.amount)
            if order.status == OrderStatus.PENDING.value:
                order.confirm()
                orders.add(order)
        elif status == PaymentStatus.FAILED:
            payment.fail(command.reason)
        elif status == PaymentStatus.PENDING:
            payment.retry()
        else:
            payment.refund(refund_id=command.transaction_id)

        repo.add(payment)
        logger.info(
            "Payment result recorded",
            order_id=str(order.id),
            payment_id=str(payment.id),
            status=payment.status,
            order_status=order.status,
        )


def record_payment_result(order_id, status, transaction_id=None, amount=None, reason=None) -> Payment:
    current_domain.process(
        RecordPaymentResult(
            order_id=str(order_id),
            status=status,
            transaction_id=transaction_id,
            amount=amount,
            reason=reason,
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(Payment).get_for_order(order_id)
