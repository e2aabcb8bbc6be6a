"""Product aggregate (CQRS): the sellable item and its display data.

Quantities are not held here; see ``inventory.ledger``.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from inventory.domain import inventory
from inventory.product.events import ProductRegistered


class ProductCategory(Enum):
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    BOOKS = "Books"
    HOME = "Home"
    BEAUTY = "Beauty"
    SPORTS = "Sports"
    OTHER = "Other"


DEFAULT_LOW_STOCK_THRESHOLD = 10


@inventory.aggregate
class Product:
    name = String(required=True, max_length=100)
    description = String(max_length=1000)
    price = Float(required=True, min_value=0.0)
    category = String(choices=ProductCategory, default=ProductCategory.OTHER.value)
    images = Text()  # JSON array of image URLs
    seller_id = Identifier()
    low_stock_threshold = Integer(default=DEFAULT_LOW_STOCK_THRESHOLD, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(
        cls,
        name,
        price,
        description=None,
        category=None,
        images=None,
        seller_id=None,
        low_stock_threshold=DEFAULT_LOW_STOCK_THRESHOLD,
    ):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            description=description,
            price=price,
            category=category or ProductCategory.OTHER.value,
            images=json.dumps(images or []),
            seller_id=seller_id,
            low_stock_threshold=low_stock_threshold,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                name=name,
                price=price,
                registered_at=now,
            )
        )
        return product

    @property
    def image_list(self) -> list[str]:
        return json.loads(self.images) if self.images else []

    def to_detail(self) -> dict:
        """Public representation used by the product lookup endpoint."""
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "images": self.image_list,
            "seller_id": str(self.seller_id) if self.seller_id else None,
            "low_stock_threshold": self.low_stock_threshold,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
