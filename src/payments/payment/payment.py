"""Payment aggregate (CQRS): one checkout attempt for one order.

State Machine:
    PENDING → SUCCESSFUL | FAILED   (exactly once; terminal states are final)

Besides settlement, the aggregate tracks whether its outcome has reached the
orders service, so undelivered outcomes can be relayed again.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, ValueObject

from payments.domain import payments
from payments.payment.events import PaymentFailed, PaymentInitiated, PaymentSucceeded


def _clip(value, length: int):
    """Gateway-supplied text, cut to fit the column it is stored in."""
    if value is None:
        return None
    return str(value)[:length]


class PaymentStatus(Enum):
    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"


@payments.value_object(part_of="Payment")
class GatewayDetail:
    """Transaction details reported by the gateway when the payment settled."""

    transaction_id = String(max_length=255)
    status = String(max_length=255)  # gateway message, e.g. "Approved"
    update_time = String(max_length=50)
    gateway_order_id = String(max_length=255)
    amount = Float()
    currency = String(max_length=3)


@payments.aggregate
class Payment:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    gateway_name = String(max_length=50, default="paymob")
    gateway_order_id = String(max_length=255, required=True)
    gateway_transaction_id = String(max_length=255)
    amount_cents = Integer(required=True, min_value=1)
    currency = String(max_length=3, default="EGP")
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    gateway_detail = ValueObject(GatewayDetail)
    outcome_delivered = Boolean(default=False)
    delivery_attempts = Integer(default=0)
    last_delivery_error = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()
    settled_at = DateTime()

    @classmethod
    def create(cls, order_id, customer_id, gateway_name, gateway_order_id, amount_cents, currency):
        now = datetime.now(UTC)
        payment = cls(
            order_id=order_id,
            customer_id=customer_id,
            gateway_name=gateway_name,
            gateway_order_id=str(gateway_order_id),
            amount_cents=amount_cents,
            currency=currency,
            status=PaymentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        payment.raise_(
            PaymentInitiated(
                payment_id=str(payment.id),
                order_id=str(order_id),
                customer_id=str(customer_id),
                gateway_order_id=str(gateway_order_id),
                amount_cents=amount_cents,
                currency=currency,
                initiated_at=now,
            )
        )
        return payment

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING.value

    def settle(self, success: bool, transaction_id=None, message=None, update_time=None, amount_cents=None, currency=None):
        """Move a pending payment to its terminal status."""
        if not self.is_pending:
            raise ValidationError({"status": [f"Payment already settled as {self.status}"]})

        now = datetime.now(UTC)
        self.status = PaymentStatus.SUCCESSFUL.value if success else PaymentStatus.FAILED.value
        self.gateway_transaction_id = _clip(transaction_id, 255)
        self.gateway_detail = GatewayDetail(
            transaction_id=self.gateway_transaction_id,
            status=_clip(message, 255) or self.status,
            update_time=_clip(update_time, 50),
            gateway_order_id=self.gateway_order_id,
            amount=(amount_cents if amount_cents is not None else self.amount_cents) / 100,
            currency=_clip(currency, 3) or self.currency,
        )
        self.settled_at = now
        self.updated_at = now

        if success:
            self.raise_(
                PaymentSucceeded(
                    payment_id=str(self.id),
                    order_id=str(self.order_id),
                    gateway_transaction_id=self.gateway_transaction_id,
                    amount_cents=self.amount_cents,
                    settled_at=now,
                )
            )
        else:
            self.raise_(
                PaymentFailed(
                    payment_id=str(self.id),
                    order_id=str(self.order_id),
                    gateway_transaction_id=self.gateway_transaction_id,
                    reason=_clip(message, 255),
                    settled_at=now,
                )
            )

    def outcome(self) -> dict:
        """The payload relayed to the orders service."""
        if self.is_pending:
            raise ValidationError({"status": ["Pending payments have no outcome yet"]})
        detail = self.gateway_detail
        return {
            "status": self.status,
            "payment_result": {
                "id": detail.transaction_id if detail else self.gateway_transaction_id,
                "status": detail.status if detail else self.status,
                "update_time": detail.update_time if detail else None,
                "gateway_order_id": self.gateway_order_id,
                "amount": detail.amount if detail else self.amount_cents / 100,
                "currency": detail.currency if detail else self.currency,
            },
        }

    def record_outcome_delivered(self):
        self.outcome_delivered = True
        self.delivery_attempts = (self.delivery_attempts or 0) + 1
        self.last_delivery_error = None
        self.updated_at = datetime.now(UTC)

    def record_outcome_delivery_failed(self, error: str):
        self.delivery_attempts = (self.delivery_attempts or 0) + 1
        self.last_delivery_error = error[:500]
        self.updated_at = datetime.now(UTC)
