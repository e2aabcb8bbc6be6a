"""Read side for products: detail lookup through the cache, low-stock listing."""

from protean.utils.globals import current_domain
from shared.cache import get_cache
from shared.settings import get_settings

from inventory.domain import logger
from inventory.ledger import get_ledger
from inventory.product.product import Product


def product_cache_key(product_id: str) -> str:
    return f"product:{product_id}"


def product_detail(product_id: str) -> dict:
    """Product details merged with the current stock level.

    Raises ``ObjectNotFoundError`` for unknown products.
    """
    cache = get_cache()
    key = product_cache_key(product_id)

    cached = cache.get_json(key)
    if cached is not None:
        logger.debug("product_cache_hit", product_id=product_id)
        return cached

    product = current_domain.repository_for(Product).get(product_id)
    level = get_ledger().level(str(product.id))
    detail = {
        **product.to_detail(),
        "stock_quantity": level.quantity,
        "is_low_stock": level.is_low_stock,
    }
    cache.set_json(key, detail, get_settings().product_cache_ttl_seconds)
    return detail


def low_stock_products() -> list[dict]:
    return [level.to_dict() for level in get_ledger().low_stock()]
