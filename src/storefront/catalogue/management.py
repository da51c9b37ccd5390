"""Product administration: commands and handler.

Invoked from the admin product screen. Callers dispatch these through the
ProductCatalog service, which holds the product's stock lock around the
whole handler so that an edit can never interleave with a stock movement.
"""

import json

import structlog
from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


def _load_list(value):
    if value is None:
        return None
    return json.loads(value) if isinstance(value, str) else value


@storefront.command(part_of="Product")
class AddProduct:
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    category = String(max_length=100)
    description = Text()
    colors = Text()  # JSON: list of variant names
    features = Text()  # JSON: list of strings
    warranty = String(max_length=255)
    image_url = String(max_length=500)
    rating = Float(default=0.0, min_value=0.0, max_value=5.0)
    review_count = Integer(default=0, min_value=0)


@storefront.command(part_of="Product")
class UpdateProduct:
    """Edit a product. Fields left unset keep their current value."""

    product_id = Identifier(required=True)
    name = String(max_length=255)
    price = Float(min_value=0.0)
    stock = Integer(min_value=0)
    category = String(max_length=100)
    description = Text()
    colors = Text()
    features = Text()
    warranty = String(max_length=255)
    image_url = String(max_length=500)


@storefront.command(part_of="Product")
class RemoveProduct:
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(AddProduct)
    def add_product(self, command):
        product = Product.create(
            name=command.name,
            price=command.price,
            stock=command.stock or 0,
            category=command.category,
            description=command.description,
            colors=_load_list(command.colors),
            features=_load_list(command.features),
            warranty=command.warranty,
            image_url=command.image_url,
            rating=command.rating or 0.0,
            review_count=command.review_count or 0,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("Product added", product_id=str(product.id), name=product.name, stock=product.stock)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.update_details(
            name=command.name,
            price=command.price,
            category=command.category,
            description=command.description,
            warranty=command.warranty,
            image_url=command.image_url,
            colors=_load_list(command.colors),
            features=_load_list(command.features),
        )
        if command.stock is not None and command.stock != product.stock:
            product.adjust_stock(command.stock)
        repo.add(product)
        logger.info("Product updated", product_id=str(product.id))

    @handle(RemoveProduct)
    def remove_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        repo._dao.delete(product)
        logger.info("Product removed", product_id=str(command.product_id))
