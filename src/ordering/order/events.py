"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A customer checked out; prices are now fixed."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    item_count = Integer(required=True)
    total_price = Float(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    transaction_id = String()
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String()
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStockCommitted:
    """Every item of a paid order was committed against stock."""

    __version__ = 1

    order_id = Identifier(required=True)
    committed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStockCommitFailed:
    """Stock commit stopped at an item; the order awaits reconciliation."""

    __version__ = 1

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    reason = String()
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """An operator moved the order to a new status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    refund_due = Boolean(default=False)
    changed_at = DateTime(required=True)
