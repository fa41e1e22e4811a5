"""Adding products to the catalog: command and handler."""

import structlog
from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalog.product import Product
from storefront.domain import storefront
from storefront.errors import IntegrityViolation

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class AddProduct:
    product_id = Identifier()  # Optional; generated when omitted
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    cost = Float(min_value=0.0)
    sku = String(required=True, max_length=100)
    stock_quantity = Integer(default=0, min_value=0)
    category_id = Identifier()


@storefront.command_handler(part_of=Product)
class AddProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        repo = current_domain.repository_for(Product)
        if repo.find_by_sku(command.sku) is not None:
            logger.warning("Duplicate SKU rejected", sku=command.sku)
            raise IntegrityViolation({"sku": [f"SKU {command.sku} already exists"]})

        product = Product.add(
            name=command.name,
            sku=command.sku,
            price=command.price,
            stock_quantity=command.stock_quantity or 0,
            cost=command.cost,
            category_id=command.category_id,
            description=command.description,
            product_id=command.product_id,
        )
        repo.add(product)
        logger.info("Product added", product_id=str(product.id), sku=product.sku)
        return str(product.id)


def add_product(
    name,
    sku,
    price,
    stock_quantity=0,
    cost=None,
    category_id=None,
    description=None,
    product_id=None,
) -> Product:
    product_id = current_domain.process(
        AddProduct(
            product_id=product_id,
            name=name,
            sku=sku,
            price=price,
            stock_quantity=stock_quantity,
            cost=cost,
            category_id=category_id,
            description=description,
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(Product).get(product_id)
