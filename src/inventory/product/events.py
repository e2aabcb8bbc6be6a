"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from inventory.domain import inventory


@inventory.event(part_of="Product")
class ProductRegistered:
    """A product was added to the catalog together with its opening stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    registered_at = DateTime(required=True)
