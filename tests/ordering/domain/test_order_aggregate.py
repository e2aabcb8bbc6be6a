"""Tests for the Order aggregate: placement, payment results, stock commit and status."""

import pytest
from ordering.order.events import (
    OrderPaid,
    OrderPaymentFailed,
    OrderPlaced,
    OrderStatusChanged,
    OrderStockCommitFailed,
    OrderStockCommitted,
)
from ordering.order.order import CommitOutcome, Order, OrderStatus, SagaStepName, SagaStepStatus
from protean.exceptions import ValidationError

SHIPPING = {"address": "12 Nile St", "city": "Cairo", "postal_code": "11511", "country": "EG", "phone": "+20100"}


def _order(lines=None):
    lines = lines or [
        {"product_id": "prod-001", "name": "Desk Lamp", "quantity": 2, "unit_price": 50.0, "image": "lamp.png"},
    ]
    return Order.place(customer_id="cust-001", lines=lines, shipping=SHIPPING, payment_method="credit_card")


def _two_item_order():
    return _order(
        [
            {"product_id": "prod-001", "name": "Desk Lamp", "quantity": 1, "unit_price": 50.0},
            {"product_id": "prod-002", "name": "Notebook", "quantity": 3, "unit_price": 10.0},
        ]
    )


class TestPlacement:
    def test_prices_are_snapshotted(self):
        order = _order()
        assert (order.items_price, order.shipping_price, order.tax_price, order.total_price) == (
            100.0,
            10.0,
            15.0,
            125.0,
        )
        assert order.status == OrderStatus.PENDING.value
        assert order.is_paid is False

    def test_items_keep_customer_order(self):
        order = _two_item_order()
        assert [item.product_id for item in order.ordered_items] == ["prod-001", "prod-002"]
        assert all(item.commit_outcome == CommitOutcome.NOT_ATTEMPTED.value for item in order.items)

    def test_records_price_snapshot_step(self):
        assert _order().step_status(SagaStepName.PRICE_SNAPSHOT) == SagaStepStatus.COMPLETED.value

    def test_raises_order_placed(self):
        event = _order()._events[-1]
        assert isinstance(event, OrderPlaced)
        assert event.total_price == 125.0

    def test_total_must_match_parts(self):
        order = _order()
        with pytest.raises(ValidationError):
            order.total_price = 1.0


class TestPayability:
    def test_pending_order_is_payable(self):
        _order().assert_payable()

    def test_paid_order_is_not_payable(self):
        order = _order()
        order.apply_payment_result(True, {"id": "tx-1"})
        with pytest.raises(ValidationError):
            order.assert_payable()

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.CANCELLED, OrderStatus.PAYMENT_FAILED, OrderStatus.PAYMENT_RECEIVED_STOCK_ERROR],
    )
    def test_terminal_orders_are_not_payable(self, status):
        order = _order()
        order.update_status(status.value)
        with pytest.raises(ValidationError):
            order.assert_payable()


class TestPaymentResult:
    def test_success_marks_paid_and_processing(self):
        order = _order()
        assert order.apply_payment_result(True, {"id": "tx-1", "status": "Approved", "gateway_order_id": "1000"})
        assert order.is_paid is True
        assert order.paid_at is not None
        assert order.status == OrderStatus.PROCESSING.value
        assert order.payment_result.id == "tx-1"
        assert isinstance(order._events[-1], OrderPaid)
        assert order.next_saga_step() == SagaStepName.COMMIT_STOCK

    def test_failure_marks_payment_failed(self):
        order = _order()
        assert order.apply_payment_result(False, {"id": "tx-2", "status": "Declined"})
        assert order.status == OrderStatus.PAYMENT_FAILED.value
        assert order.is_paid is False
        assert order.payment_result.status == "failed"
        assert order.payment_result.message == "Declined"
        assert isinstance(order._events[-1], OrderPaymentFailed)
        assert order.next_saga_step() == SagaStepName.NOTIFY

    def test_repeated_success_is_a_no_op(self):
        order = _order()
        order.apply_payment_result(True, {"id": "tx-1"})
        events = len(order._events)
        assert order.apply_payment_result(True, {"id": "tx-1"}) is False
        assert len(order._events) == events

    def test_failure_after_success_is_ignored(self):
        order = _order()
        order.apply_payment_result(True, {"id": "tx-1"})
        assert order.apply_payment_result(False, {}) is False
        assert order.status == OrderStatus.PROCESSING.value

    def test_repeated_failure_is_a_no_op(self):
        order = _order()
        order.apply_payment_result(False, {})
        assert order.apply_payment_result(False, {}) is False

    @pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_final_orders_ignore_outcomes(self, status):
        order = _order()
        order.update_status(status.value)
        assert order.apply_payment_result(True, {"id": "tx-1"}) is False
        assert order.is_paid is False


class TestStockCommit:
    def test_all_items_committed_completes_step(self):
        order = _two_item_order()
        order.apply_payment_result(True, {"id": "tx-1"})
        first, second = order.ordered_items
        order.record_item_committed(first.id, 19)
        assert order.next_saga_step() == SagaStepName.COMMIT_STOCK
        order.record_item_committed(second.id, 17)

        assert order.step_status(SagaStepName.COMMIT_STOCK) == SagaStepStatus.COMPLETED.value
        assert isinstance(order._events[-1], OrderStockCommitted)
        assert order.next_saga_step() == SagaStepName.NOTIFY

    def test_failure_parks_order_with_per_item_outcomes(self):
        order = _two_item_order()
        order.apply_payment_result(True, {"id": "tx-1"})
        first, second = order.ordered_items
        order.record_item_commit_failed(first.id, "Insufficient stock")

        assert order.status == OrderStatus.PAYMENT_RECEIVED_STOCK_ERROR.value
        assert [o["outcome"] for o in order.commit_outcomes()] == ["failed", "not_attempted"]
        assert isinstance(order._events[-1], OrderStockCommitFailed)
        assert order.notification_event() == "payment_received_stock_error"

    def test_unknown_item(self):
        order = _order()
        with pytest.raises(ValidationError):
            order.record_item_committed("nope")


class TestStatusUpdates:
    def test_vocabulary_is_fixed(self):
        with pytest.raises(ValidationError):
            _order().update_status("teleported")

    def test_delivered_sets_delivery_time_once(self):
        order = _order()
        order.update_status(OrderStatus.DELIVERED.value)
        delivered_at = order.delivered_at
        order.update_status(OrderStatus.DELIVERED.value)
        assert order.is_delivered is True
        assert order.delivered_at == delivered_at

    def test_cancelling_paid_order_flags_refund(self):
        order = _order()
        order.apply_payment_result(True, {"id": "tx-1"})
        order.update_status(OrderStatus.CANCELLED.value)
        assert order.refund_due is True
        event = order._events[-1]
        assert isinstance(event, OrderStatusChanged)
        assert event.refund_due is True

    def test_cancelling_unpaid_order_owes_nothing(self):
        order = _order()
        order.update_status(OrderStatus.CANCELLED.value)
        assert order.refund_due is False


class TestResponse:
    def test_to_response_is_json_ready(self):
        response = _order().to_response()
        assert response["status"] == "pending"
        assert response["shipping"]["city"] == "Cairo"
        assert response["items"][0]["unit_price"] == 50.0
        assert response["saga_steps"][0]["name"] == "price_snapshot"
        assert isinstance(response["created_at"], str)
