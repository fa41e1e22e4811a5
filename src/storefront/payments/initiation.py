"""Payment initiation: command, handler and entry point.

Hands the order total to the payment gateway and records a pending payment.
The gateway reports the outcome later through the payment webhook.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import IntegrityViolation, OrderNotReady
from storefront.ordering.order import Order, OrderStatus
from storefront.payments.gateway import get_gateway
from storefront.payments.payment import Payment

logger = structlog.get_logger(__name__)

_PAYABLE_STATES = {OrderStatus.PENDING.value, OrderStatus.CONFIRMED.value}


@storefront.command(part_of="Payment")
class InitiatePayment:
    order_id = Identifier(required=True)
    payment_method = String(max_length=50)


@storefront.command_handler(part_of=Payment)
class InitiatePaymentHandler:
    @handle(InitiatePayment)
    def initiate_payment(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        if order.status not in _PAYABLE_STATES:
            logger.warning("Payment for order in wrong state", order_id=str(order.id), status=order.status)
            raise OrderNotReady({"order_id": [f"Order {order.order_number} is {order.status} and cannot be paid"]})

        repo = current_domain.repository_for(Payment)
        if repo.find_for_order(order.id) is not None:
            raise IntegrityViolation({"order_id": [f"Order {order.order_number} already has a payment"]})

        payment_method = command.payment_method or order.payment_method
        request = get_gateway().request_charge(
            order_id=str(order.id),
            amount=order.total_amount,
            currency=order.currency,
            payment_method=payment_method,
            idempotency_key=f"order-{order.id}",
        )

        payment = Payment.initiate(
            order_id=order.id,
            amount=order.total_amount,
            currency=order.currency,
            payment_method=payment_method,
            gateway_reference=request.gateway_reference,
        )
        if not request.accepted:
            payment.fail(request.failure_reason)

        repo.add(payment)
        logger.info(
            "Payment initiated",
            order_id=str(order.id),
            payment_id=str(payment.id),
            amount=payment.amount,
            status=payment.status,
        )
        return str(payment.id)


def initiate_payment(order_id, payment_method=None) -> Payment:
    payment_id = current_domain.process(
        InitiatePayment(order_id=str(order_id), payment_method=payment_method),
        asynchronous=False,
    )
    return current_domain.repository_for(Payment).get(payment_id)
