"""Order creation: command and handler.

Input is validated before the catalogue is consulted. Every line is priced
from the catalogue at this moment; that snapshot is what the customer pays.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from shared.errors import NotFoundError, UpstreamUnavailable

from ordering.domain import logger, ordering
from ordering.order.order import Order, PaymentMethod
from ordering.upstream import get_collaborators

_REQUIRED_SHIPPING_FIELDS = ("address", "city", "country", "phone")


@ordering.command(part_of="Order")
class CreateOrder:
    customer_id = Identifier(required=True)
    items = Text()  # JSON: list of {product_id, quantity}
    shipping = Text()  # JSON: shipping address dict
    payment_method = String(max_length=50)


def _load(raw, default):
    if raw is None or raw == "":
        return default
    return json.loads(raw) if isinstance(raw, str) else raw


def _validated_items(raw) -> list[dict]:
    items = _load(raw, [])
    if not isinstance(items, list) or not items:
        raise ValidationError({"items": ["No order items"]})

    validated = []
    for item in items:
        product_id = item.get("product_id") if isinstance(item, dict) else None
        quantity = item.get("quantity") if isinstance(item, dict) else None
        if not product_id:
            raise ValidationError({"items": ["Every item needs a product_id"]})
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"items": [f"Quantity must be a positive integer for product {product_id}"]})
        validated.append({"product_id": str(product_id), "quantity": quantity})
    return validated


def _validated_shipping(raw) -> dict:
    shipping = _load(raw, None)
    if not isinstance(shipping, dict) or not shipping:
        raise ValidationError({"shipping": ["Shipping address is required"]})
    missing = [name for name in _REQUIRED_SHIPPING_FIELDS if not shipping.get(name)]
    if missing:
        raise ValidationError({"shipping": [f"Missing shipping fields: {', '.join(missing)}"]})
    return {
        "address": shipping["address"],
        "city": shipping["city"],
        "postal_code": shipping.get("postal_code"),
        "country": shipping["country"],
        "phone": shipping["phone"],
    }


def _validated_payment_method(value) -> str:
    if not value:
        raise ValidationError({"payment_method": ["Payment method is required"]})
    valid = [method.value for method in PaymentMethod]
    if value not in valid:
        raise ValidationError({"payment_method": [f"Payment method must be one of: {', '.join(valid)}"]})
    return value


@ordering.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        items = _validated_items(command.items)
        shipping = _validated_shipping(command.shipping)
        payment_method = _validated_payment_method(command.payment_method)

        catalogue = get_collaborators().catalogue
        lines = []
        for item in items:
            try:
                snapshot = catalogue.fetch(item["product_id"])
            except NotFoundError as exc:
                raise ValidationError({"items": [f"Product not found: {item['product_id']}"]}) from exc
            except UpstreamUnavailable as exc:
                # Order creation surfaces collaborator outages as a client error.
                raise UpstreamUnavailable(
                    f"Could not price order: {exc.message}", status_code=400, product_id=item["product_id"]
                ) from exc
            lines.append(
                {
                    "product_id": snapshot.product_id,
                    "name": snapshot.name,
                    "quantity": item["quantity"],
                    "unit_price": snapshot.price,
                    "image": snapshot.image,
                }
            )

        order = Order.place(
            customer_id=command.customer_id,
            lines=lines,
            shipping=shipping,
            payment_method=payment_method,
        )
        current_domain.repository_for(Order).add(order)
        logger.info(
            "order_placed",
            order_id=str(order.id),
            customer_id=str(order.customer_id),
            item_count=len(lines),
            total_price=order.total_price,
        )
        return order
