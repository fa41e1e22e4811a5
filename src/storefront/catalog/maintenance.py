"""Catalog maintenance: restocking, price changes and availability."""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.catalog.product import Product
from storefront.domain import storefront


@storefront.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    reference = String(max_length=255)


@storefront.command(part_of="Product")
class ChangeProductPrice:
    product_id = Identifier(required=True)
    price = Float(required=True)


@storefront.command(part_of="Product")
class DeactivateProduct:
    product_id = Identifier(required=True)


@storefront.command(part_of="Product")
class ActivateProduct:
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Product)
class CatalogMaintenanceHandler:
    @handle(RestockProduct)
    def restock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restock(command.quantity, reference=command.reference)
        repo.add(product)

    @handle(ChangeProductPrice)
    def change_price(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.change_price(command.price)
        repo.add(product)

    @handle(DeactivateProduct)
    def deactivate(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.deactivate()
        repo.add(product)

    @handle(ActivateProduct)
    def activate(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.activate()
        repo.add(product)


def _process_for_product(product_id, command) -> Product:
    current_domain.process(command, asynchronous=False)
    return current_domain.repository_for(Product).get(product_id)


def restock_product(product_id, quantity, reference=None) -> Product:
    """Restock; a concurrent checkout on the same product makes one of the two fail its version check."""
    return _process_for_product(
        product_id, RestockProduct(product_id=product_id, quantity=quantity, reference=reference)
    )


def change_product_price(product_id, price) -> Product:
    return _process_for_product(product_id, ChangeProductPrice(product_id=product_id, price=price))


def deactivate_product(product_id) -> Product:
    return _process_for_product(product_id, DeactivateProduct(product_id=product_id))


def activate_product(product_id) -> Product:
    return _process_for_product(product_id, ActivateProduct(product_id=product_id))
