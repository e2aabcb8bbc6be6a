"""Product registration: command and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from inventory.domain import inventory, logger
from inventory.ledger import get_ledger
from inventory.product.product import DEFAULT_LOW_STOCK_THRESHOLD, Product


@inventory.command(part_of="Product")
class RegisterProduct:
    name = String(required=True, max_length=100)
    description = String(max_length=1000)
    price = Float(required=True, min_value=0.0)
    category = String(max_length=50)
    images = Text()  # JSON: list of image URLs
    seller_id = Identifier()
    stock_quantity = Integer(default=0, min_value=0)
    low_stock_threshold = Integer(default=DEFAULT_LOW_STOCK_THRESHOLD, min_value=0)


@inventory.command_handler(part_of=Product)
class RegisterProductHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        images = json.loads(command.images) if isinstance(command.images, str) else command.images
        threshold = (
            command.low_stock_threshold if command.low_stock_threshold is not None else DEFAULT_LOW_STOCK_THRESHOLD
        )

        product = Product.register(
            name=command.name,
            price=command.price,
            description=command.description,
            category=command.category,
            images=images,
            seller_id=command.seller_id,
            low_stock_threshold=threshold,
        )
        current_domain.repository_for(Product).add(product)

        get_ledger().open(str(product.id), command.stock_quantity or 0, threshold)
        logger.info("product_registered", product_id=str(product.id), stock_quantity=command.stock_quantity or 0)
        return str(product.id)
