"""Stock reservation and release.

``reserve_stock`` and ``release_stock`` load, mutate and register the Product
with the repository of the *current* Unit of Work. Called from a command
handler they commit or roll back together with everything else that handler
writes; they never commit on their own.
"""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.catalog.product import Product
from storefront.domain import storefront


def reserve_stock(product_id, quantity, order_id=None) -> Product:
    """Decrement stock for ``product_id``; raises InsufficientStock when it cannot."""
    repo = current_domain.repository_for(Product)
    product = repo.get(product_id)
    product.reserve(quantity, order_id=order_id)
    repo.add(product)
    return product


def release_stock(product_id, quantity, order_id=None) -> Product:
    """Return ``quantity`` units of ``product_id`` to sellable stock."""
    repo = current_domain.repository_for(Product)
    product = repo.get(product_id)
    product.release(quantity, order_id=order_id)
    repo.add(product)
    return product


@storefront.command(part_of="Product")
class ReserveStock:
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    order_id = Identifier()


@storefront.command(part_of="Product")
class ReleaseStock:
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    order_id = Identifier()


@storefront.command_handler(part_of=Product)
class ReservationHandler:
    @handle(ReserveStock)
    def reserve(self, command):
        reserve_stock(command.product_id, command.quantity, order_id=command.order_id)

    @handle(ReleaseStock)
    def release(self, command):
        release_stock(command.product_id, command.quantity, order_id=command.order_id)


def process_reservation(product_id, quantity, order_id=None):
    """Standalone reservation outside checkout, in its own Unit of Work."""
    current_domain.process(
        ReserveStock(product_id=product_id, quantity=quantity, order_id=order_id),
        asynchronous=False,
    )


def process_release(product_id, quantity, order_id=None):
    current_domain.process(
        ReleaseStock(product_id=product_id, quantity=quantity, order_id=order_id),
        asynchronous=False,
    )
