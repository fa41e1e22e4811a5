"""Order status changes: command, handler and entry point.

Cancelling returns every line to stock in the same Unit of Work as the
status change. A coupon redeemed by the order stays spent.
"""

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.catalog.reservation import release_stock
from storefront.config import settings
from storefront.domain import storefront
from storefront.errors import InvalidTransition
from storefront.ordering.order import Order, OrderStatus
from storefront.ordering.repository import get_order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class AdvanceOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, max_length=20)
    reason = String(max_length=500)


@storefront.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(AdvanceOrderStatus)
    def advance(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status

        restock = order.advance_to(command.new_status, reason=command.reason)
        for product_id, quantity in restock:
            release_stock(product_id, quantity, order_id=str(order.id))

        repo.add(order)
        logger.info(
            "Order status changed",
            order_id=str(order.id),
            order_number=order.order_number,
            from_status=previous,
            to_status=order.status,
            restocked_lines=len(restock),
        )


def advance_status(order_id, new_status, reason=None) -> Order:
    """Move an order to ``new_status`` and return it.

    Raises InvalidTransition for a move the order lifecycle does not allow
    and ObjectNotFoundError for an unknown order. A change that loses a
    concurrent write to the order or its products is retried.
    """
    new_status = new_status.value if isinstance(new_status, OrderStatus) else str(new_status)

    for attempt in range(1, settings.MAX_CHECKOUT_ATTEMPTS + 1):
        try:
            current_domain.process(
                AdvanceOrderStatus(order_id=str(order_id), new_status=new_status, reason=reason),
                asynchronous=False,
            )
        except ExpectedVersionError:
            logger.warning("Status change lost a concurrent write", order_id=str(order_id), attempt=attempt)
            continue
        except InvalidTransition as exc:
            logger.warning("Status change rejected", order_id=str(order_id), to_status=new_status, messages=exc.messages)
            raise
        return get_order(order_id)

    raise InvalidTransition({"status": [f"Order {order_id} is busy, could not move it to {new_status}"]})
