"""Stock movements: commands and handler.

The handler delegates to the stock ledger, which performs the conditional
change atomically, then drops the cached product detail.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from shared.cache import get_cache

from inventory.domain import inventory, logger
from inventory.ledger import StockLevel, get_ledger
from inventory.product.product import Product
from inventory.product.queries import product_cache_key


@inventory.command(part_of="Product")
class DecreaseStock:
    """Commit ``quantity`` units of a product against stock."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    idempotency_key = String(max_length=255)


@inventory.command(part_of="Product")
class IncreaseStock:
    """Restock, typically while closing a reconciliation case."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    idempotency_key = String(max_length=255)


def _after_change(level: StockLevel, operation: str) -> dict:
    get_cache().delete(product_cache_key(level.product_id))
    logger.info(
        "stock_changed",
        operation=operation,
        product_id=level.product_id,
        stock_quantity=level.quantity,
    )
    if level.is_low_stock:
        logger.warning(
            "low_stock",
            product_id=level.product_id,
            stock_quantity=level.quantity,
            threshold=level.low_stock_threshold,
        )
    return level.to_dict()


@inventory.command_handler(part_of=Product)
class StockMovementHandler:
    @handle(DecreaseStock)
    def decrease_stock(self, command):
        level = get_ledger().decrease(str(command.product_id), command.quantity, command.idempotency_key)
        return _after_change(level, "decrease")

    @handle(IncreaseStock)
    def increase_stock(self, command):
        level = get_ledger().increase(str(command.product_id), command.quantity, command.idempotency_key)
        return _after_change(level, "increase")
