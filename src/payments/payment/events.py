"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from payments.domain import payments


@payments.event(part_of="Payment")
class PaymentInitiated:
    """A gateway order was registered and a pending payment recorded."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    gateway_order_id = String(required=True)
    amount_cents = Integer(required=True)
    currency = String(required=True)
    initiated_at = DateTime(required=True)


@payments.event(part_of="Payment")
class PaymentSucceeded:
    """The gateway confirmed the transaction."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    gateway_transaction_id = String()
    amount_cents = Integer(required=True)
    settled_at = DateTime(required=True)


@payments.event(part_of="Payment")
class PaymentFailed:
    """The gateway reported the transaction as declined or errored."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    gateway_transaction_id = String()
    reason = String()
    settled_at = DateTime(required=True)
