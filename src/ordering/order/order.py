"""Order aggregate (CQRS): the core of the ordering domain.

Prices are fixed at checkout and never re-validated. Payment outcomes arrive
asynchronously from the payments service; a successful one triggers the stock
commit of every item, recorded item by item so a crashed commit can resume.

State Machine:
    PENDING → PROCESSING → SHIPPED → DELIVERED
    PENDING → PAYMENT_FAILED
    PROCESSING → PAYMENT_RECEIVED_STOCK_ERROR   (operator reconciliation)
    any → CANCELLED                             (operator; paid orders owe a refund)

The saga step log records, per order:
    price_snapshot → await_payment → commit_stock → notify
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering.domain import ordering
from ordering.order.events import (
    OrderPaid,
    OrderPaymentFailed,
    OrderPlaced,
    OrderStatusChanged,
    OrderStockCommitFailed,
    OrderStockCommitted,
)
from ordering.order.pricing import price_lines, to_cents


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_RECEIVED_STOCK_ERROR = "payment_received_stock_error"


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    COD = "cod"
    WALLET = "wallet"


class CommitOutcome(Enum):
    COMMITTED = "committed"
    FAILED = "failed"
    NOT_ATTEMPTED = "not_attempted"


class SagaStepName(Enum):
    PRICE_SNAPSHOT = "price_snapshot"
    AWAIT_PAYMENT = "await_payment"
    COMMIT_STOCK = "commit_stock"
    NOTIFY = "notify"


class SagaStepStatus(Enum):
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


# Orders in these states accept no further payment attempts.
_UNPAYABLE_STATES = {
    OrderStatus.CANCELLED.value,
    OrderStatus.PAYMENT_FAILED.value,
    OrderStatus.PAYMENT_RECEIVED_STOCK_ERROR.value,
}

# Payment outcomes arriving for these states are acknowledged and ignored.
_FINAL_STATES = {OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships; captured at checkout and never changed."""

    address = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    postal_code = String(max_length=20)
    country = String(required=True, max_length=100)
    phone = String(required=True, max_length=30)


@ordering.value_object(part_of="Order")
class PaymentResult:
    """Copy of the payment outcome reported by the payments service."""

    id = String(max_length=255)  # gateway transaction id
    status = String(max_length=255)
    update_time = String(max_length=50)
    gateway_order_id = String(max_length=255)
    message = String(max_length=500)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line of the order with its price snapshot and stock-commit outcome."""

    position = Integer(required=True, min_value=0)
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    image = String(max_length=500)
    commit_outcome = String(choices=CommitOutcome, default=CommitOutcome.NOT_ATTEMPTED.value)
    commit_reason = String(max_length=500)
    remaining_stock = Integer()


@ordering.entity(part_of="Order")
class SagaStep:
    sequence = Integer(required=True, min_value=0)
    name = String(choices=SagaStepName, required=True)
    status = String(choices=SagaStepStatus, required=True)
    detail = Text()
    recorded_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    shipping = ValueObject(ShippingAddress)
    payment_method = String(choices=PaymentMethod, required=True)
    items_price = Float(default=0.0)
    shipping_price = Float(default=0.0)
    tax_price = Float(default=0.0)
    total_price = Float(default=0.0)
    is_paid = Boolean(default=False)
    paid_at = DateTime()
    is_delivered = Boolean(default=False)
    delivered_at = DateTime()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_result = ValueObject(PaymentResult)
    saga_steps = HasMany(SagaStep)
    refund_due = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_price_is_sum_of_parts(self):
        parts = to_cents(self.items_price) + to_cents(self.shipping_price) + to_cents(self.tax_price)
        if to_cents(self.total_price) != parts:
            raise ValidationError({"total_price": ["Total price must equal items + shipping + tax"]})

    @invariant.post
    def paid_orders_have_payment_time(self):
        if self.is_paid and self.paid_at is None:
            raise ValidationError({"paid_at": ["Paid orders must record when they were paid"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, customer_id, lines, shipping, payment_method):
        """Create a pending order from resolved lines.

        Args:
            customer_id: Owner of the order.
            lines: Dicts with product_id, name, quantity, unit_price, image,
                in the customer's order.
            shipping: Dict with address, city, postal_code, country, phone.
            payment_method: One of ``PaymentMethod`` values.
        """
        now = datetime.now(UTC)
        pricing = price_lines((line["unit_price"], line["quantity"]) for line in lines)

        order = cls(
            customer_id=customer_id,
            shipping=ShippingAddress(**shipping),
            payment_method=payment_method,
            items_price=float(pricing.items_price),
            shipping_price=float(pricing.shipping_price),
            tax_price=float(pricing.tax_price),
            total_price=float(pricing.total_price),
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        for position, line in enumerate(lines):
            order.add_items(
                OrderItem(
                    position=position,
                    product_id=line["product_id"],
                    name=line["name"],
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    image=line.get("image"),
                )
            )
        order.record_step(SagaStepName.PRICE_SNAPSHOT, SagaStepStatus.COMPLETED, detail=str(pricing.total_price))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                item_count=len(lines),
                total_price=order.total_price,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def ordered_items(self) -> list:
        return sorted(self.items, key=lambda item: item.position)

    @property
    def total_decimal(self) -> Decimal:
        return to_cents(self.total_price)

    def items_to_commit(self) -> list:
        return [item for item in self.ordered_items if item.commit_outcome == CommitOutcome.NOT_ATTEMPTED.value]

    @property
    def has_failed_commit(self) -> bool:
        return any(item.commit_outcome == CommitOutcome.FAILED.value for item in self.items)

    def step_status(self, name: SagaStepName) -> str | None:
        """Latest recorded status of a saga step, or None if never recorded."""
        steps = [step for step in self.saga_steps if step.name == name.value]
        if not steps:
            return None
        return max(steps, key=lambda step: step.sequence).status

    def next_saga_step(self) -> SagaStepName | None:
        """The step a resumed saga must run next, if any.

        A failed commit is never retried here; once an operator has closed the
        stock case, the remaining items are theirs to settle.
        """
        if (
            self.is_paid
            and self.status == OrderStatus.PROCESSING.value
            and self.step_status(SagaStepName.COMMIT_STOCK) != SagaStepStatus.COMPLETED.value
            and not self.has_failed_commit
            and self.items_to_commit()
        ):
            return SagaStepName.COMMIT_STOCK
        payment_settled = self.step_status(SagaStepName.AWAIT_PAYMENT) in (
            SagaStepStatus.COMPLETED.value,
            SagaStepStatus.FAILED.value,
        )
        if payment_settled and self.step_status(SagaStepName.NOTIFY) != SagaStepStatus.COMPLETED.value:
            return SagaStepName.NOTIFY
        return None

    # -------------------------------------------------------------------
    # Saga bookkeeping
    # -------------------------------------------------------------------
    def record_step(self, name: SagaStepName, status: SagaStepStatus, detail: str | None = None) -> None:
        now = datetime.now(UTC)
        self.add_saga_steps(
            SagaStep(
                sequence=len(self.saga_steps),
                name=name.value,
                status=status.value,
                detail=detail,
                recorded_at=now,
            )
        )
        self.updated_at = now

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def assert_payable(self) -> None:
        if self.is_paid:
            raise ValidationError({"order": ["Order is already paid"]})
        if self.status in _UNPAYABLE_STATES:
            raise ValidationError({"status": [f"Cannot initiate payment for order with status: {self.status}"]})

    def record_checkout_started(self, payment_id: str | None) -> None:
        self.record_step(SagaStepName.AWAIT_PAYMENT, SagaStepStatus.STARTED, detail=payment_id)

    def apply_payment_result(self, success: bool, result: dict | None = None) -> bool:
        """Apply a payment outcome. Returns False when it was a no-op.

        Repeated outcomes are expected (at-least-once delivery) and leave the
        order untouched.
        """
        result = result or {}
        if self.is_paid or self.status in _FINAL_STATES:
            return False
        if not success and self.status == OrderStatus.PAYMENT_FAILED.value:
            return False

        now = datetime.now(UTC)
        if success:
            with atomic_change(self):
                self.is_paid = True
                self.paid_at = now
                self.status = OrderStatus.PROCESSING.value
                self.payment_result = PaymentResult(
                    id=_opt_str(result.get("id")),
                    status=result.get("status") or "successful",
                    update_time=_opt_str(result.get("update_time")) or now.isoformat(),
                    gateway_order_id=_opt_str(result.get("gateway_order_id")),
                )
            self.record_step(SagaStepName.AWAIT_PAYMENT, SagaStepStatus.COMPLETED, detail=_opt_str(result.get("id")))
            self.record_step(SagaStepName.COMMIT_STOCK, SagaStepStatus.STARTED)
            self.raise_(
                OrderPaid(
                    order_id=str(self.id),
                    customer_id=str(self.customer_id),
                    transaction_id=_opt_str(result.get("id")),
                    paid_at=now,
                )
            )
        else:
            self.status = OrderStatus.PAYMENT_FAILED.value
            self.payment_result = PaymentResult(
                id=_opt_str(result.get("id")),
                status="failed",
                update_time=_opt_str(result.get("update_time")) or now.isoformat(),
                gateway_order_id=_opt_str(result.get("gateway_order_id")),
                message=result.get("status") or "Payment failed or was cancelled",
            )
            self.record_step(SagaStepName.AWAIT_PAYMENT, SagaStepStatus.FAILED, detail=_opt_str(result.get("status")))
            self.raise_(
                OrderPaymentFailed(
                    order_id=str(self.id),
                    customer_id=str(self.customer_id),
                    reason=self.payment_result.message,
                    failed_at=now,
                )
            )
        self.updated_at = now
        return True

    # -------------------------------------------------------------------
    # Stock commit
    # -------------------------------------------------------------------
    def _item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found"]})
        return item

    def record_item_committed(self, item_id, remaining_stock: int | None = None) -> None:
        item = self._item(item_id)
        item.commit_outcome = CommitOutcome.COMMITTED.value
        item.remaining_stock = remaining_stock
        self.updated_at = datetime.now(UTC)

        if not self.items_to_commit():
            now = datetime.now(UTC)
            self.record_step(SagaStepName.COMMIT_STOCK, SagaStepStatus.COMPLETED)
            self.raise_(OrderStockCommitted(order_id=str(self.id), committed_at=now))

    def record_item_commit_failed(self, item_id, reason: str) -> None:
        """Stop the commit at this item; later items stay not attempted."""
        item = self._item(item_id)
        now = datetime.now(UTC)
        item.commit_outcome = CommitOutcome.FAILED.value
        item.commit_reason = reason[:500]
        self.status = OrderStatus.PAYMENT_RECEIVED_STOCK_ERROR.value
        self.record_step(SagaStepName.COMMIT_STOCK, SagaStepStatus.FAILED, detail=f"{item.product_id}: {reason}")
        self.raise_(
            OrderStockCommitFailed(
                order_id=str(self.id),
                product_id=str(item.product_id),
                reason=reason[:500],
                failed_at=now,
            )
        )

    def commit_outcomes(self) -> list[dict]:
        return [
            {
                "item_id": str(item.id),
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "outcome": item.commit_outcome,
                "reason": item.commit_reason,
            }
            for item in self.ordered_items
        ]

    # -------------------------------------------------------------------
    # Notification
    # -------------------------------------------------------------------
    def record_owner_notified(self, delivered: bool, detail: str | None = None) -> None:
        status = SagaStepStatus.COMPLETED if delivered else SagaStepStatus.FAILED
        self.record_step(SagaStepName.NOTIFY, status, detail=detail)

    def notification_event(self) -> str:
        if self.status == OrderStatus.PAYMENT_FAILED.value:
            return "payment_failed"
        if self.status == OrderStatus.PAYMENT_RECEIVED_STOCK_ERROR.value:
            return "payment_received_stock_error"
        return "payment_succeeded"

    # -------------------------------------------------------------------
    # Operator status changes
    # -------------------------------------------------------------------
    def update_status(self, new_status: str) -> None:
        valid = [status.value for status in OrderStatus]
        if new_status not in valid:
            raise ValidationError({"status": [f"Invalid status. Must be one of: {', '.join(valid)}"]})

        previous = self.status
        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = new_status
            if new_status == OrderStatus.DELIVERED.value and not self.is_delivered:
                self.is_delivered = True
                self.delivered_at = now
            if new_status == OrderStatus.CANCELLED.value and self.is_paid:
                self.refund_due = True
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=new_status,
                refund_due=bool(self.refund_due),
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Representation
    # -------------------------------------------------------------------
    def to_response(self) -> dict:
        shipping = self.shipping
        result = self.payment_result
        return {
            "id": str(self.id),
            "customer_id": str(self.customer_id),
            "items": [
                {
                    "id": str(item.id),
                    "product_id": str(item.product_id),
                    "name": item.name,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "image": item.image,
                    "commit_outcome": item.commit_outcome,
                    "commit_reason": item.commit_reason,
                }
                for item in self.ordered_items
            ],
            "shipping": {
                "address": shipping.address,
                "city": shipping.city,
                "postal_code": shipping.postal_code,
                "country": shipping.country,
                "phone": shipping.phone,
            }
            if shipping
            else None,
            "payment_method": self.payment_method,
            "items_price": self.items_price,
            "shipping_price": self.shipping_price,
            "tax_price": self.tax_price,
            "total_price": self.total_price,
            "is_paid": bool(self.is_paid),
            "paid_at": _iso(self.paid_at),
            "is_delivered": bool(self.is_delivered),
            "delivered_at": _iso(self.delivered_at),
            "status": self.status,
            "payment_result": {
                "id": result.id,
                "status": result.status,
                "update_time": result.update_time,
                "gateway_order_id": result.gateway_order_id,
                "message": result.message,
            }
            if result
            else None,
            "refund_due": bool(self.refund_due),
            "saga_steps": [
                {"name": step.name, "status": step.status, "detail": step.detail, "recorded_at": _iso(step.recorded_at)}
                for step in sorted(self.saga_steps, key=lambda step: step.sequence)
            ],
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


def _opt_str(value) -> str | None:
    return None if value is None else str(value)


def _iso(value) -> str | None:
    return value.isoformat() if value else None
