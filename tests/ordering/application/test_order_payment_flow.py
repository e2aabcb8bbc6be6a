"""Application tests for checkout initiation, payment results and the saga."""

import json

import pytest
from ordering.checkout.saga import advance, resume_pending_sagas, stock_idempotency_key
from ordering.order.order import CommitOutcome, Order, OrderStatus, SagaStepName, SagaStepStatus
from ordering.order.payment import ApplyPaymentResult, InitiateOrderPayment, billing_data_for
from ordering.reconciliation.case import CaseKind
from ordering.reconciliation.resolution import open_cases
from protean import current_domain
from protean.exceptions import ValidationError
from shared.errors import AuthorizationError, UpstreamUnavailable


def _apply(order_id, status="successful", result=None):
    outcome = current_domain.process(
        ApplyPaymentResult(
            order_id=str(order_id),
            status=status,
            payment_result=json.dumps(result or {"id": "tx-1", "status": "Approved"}),
        ),
        asynchronous=False,
    )
    if outcome["applied"]:
        advance(order_id)
    return outcome


def _reload(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestInitiateOrderPayment:
    def test_owner_gets_checkout_session(self, place_order, collaborators):
        order = place_order()
        session = current_domain.process(
            InitiateOrderPayment(order_id=order.id, customer_id="cust-001", email="mona@example.com", name="Mona Adel"),
            asynchronous=False,
        )
        assert session["payment_token"].startswith("fake-token-")
        call = collaborators.payments.calls[0]
        assert call["amount"] == 125.0
        assert call["billing_data"]["first_name"] == "Mona"
        assert call["billing_data"]["last_name"] == "Adel"
        assert _reload(order.id).step_status(SagaStepName.AWAIT_PAYMENT) == SagaStepStatus.STARTED.value

    def test_non_owner_is_rejected(self, place_order, collaborators):
        order = place_order()
        with pytest.raises(AuthorizationError):
            current_domain.process(
                InitiateOrderPayment(order_id=order.id, customer_id="cust-999"), asynchronous=False
            )
        assert collaborators.payments.calls == []

    def test_paid_order_is_rejected(self, place_order):
        order = place_order()
        _apply(order.id)
        with pytest.raises(ValidationError):
            current_domain.process(
                InitiateOrderPayment(order_id=order.id, customer_id="cust-001"), asynchronous=False
            )

    def test_payment_service_outage(self, place_order, collaborators):
        order = place_order()
        collaborators.payments.available = False
        with pytest.raises(UpstreamUnavailable):
            current_domain.process(
                InitiateOrderPayment(order_id=order.id, customer_id="cust-001"), asynchronous=False
            )

    def test_billing_defaults(self, place_order):
        billing = billing_data_for(place_order(), name=None, email=None)
        assert billing["first_name"] == "N/A"
        assert billing["email"] == "N/A"
        assert billing["street"] == "12 Nile St"


class TestSuccessfulPayment:
    def test_commits_every_item_and_notifies(self, place_order, collaborators):
        order = place_order([{"product_id": "prod-001", "quantity": 2}, {"product_id": "prod-002", "quantity": 5}])

        _apply(order.id)

        stored = _reload(order.id)
        assert stored.status == OrderStatus.PROCESSING.value
        assert stored.is_paid is True
        assert [item.commit_outcome for item in stored.ordered_items] == ["committed", "committed"]
        assert collaborators.stock.stock == {"prod-001": 18, "prod-002": 15, "prod-003": 20}
        assert stored.step_status(SagaStepName.NOTIFY) == SagaStepStatus.COMPLETED.value
        assert collaborators.notifier.sent[0]["event"] == "payment_succeeded"

    def test_decrements_carry_order_item_keys(self, place_order, collaborators):
        order = place_order()
        _apply(order.id)
        item = _reload(order.id).ordered_items[0]
        assert collaborators.stock.calls[0]["idempotency_key"] == stock_idempotency_key(order.id, item.id)

    def test_duplicate_outcomes_commit_and_notify_once(self, place_order, collaborators):
        order = place_order()

        first = _apply(order.id)
        second = _apply(order.id)

        assert first == {"applied": True}
        assert second == {"applied": False}
        assert len(collaborators.stock.calls) == 1
        assert len(collaborators.notifier.sent) == 1
        assert collaborators.stock.stock["prod-001"] == 18


class TestPartialStockFailure:
    def test_failing_item_parks_order_for_reconciliation(self, place_order, collaborators):
        collaborators.stock.set_stock("prod-002", 1)
        order = place_order(
            [
                {"product_id": "prod-001", "quantity": 1},
                {"product_id": "prod-002", "quantity": 3},
                {"product_id": "prod-003", "quantity": 1},
            ]
        )

        _apply(order.id)

        stored = _reload(order.id)
        assert stored.status == OrderStatus.PAYMENT_RECEIVED_STOCK_ERROR.value
        assert stored.is_paid is True
        assert [item.commit_outcome for item in stored.ordered_items] == [
            CommitOutcome.COMMITTED.value,
            CommitOutcome.FAILED.value,
            CommitOutcome.NOT_ATTEMPTED.value,
        ]
        # No automatic rollback of the item that was committed.
        assert collaborators.stock.stock["prod-001"] == 19
        assert collaborators.stock.stock["prod-003"] == 20

        cases = open_cases(order.id)
        assert len(cases) == 1
        assert cases[0].kind == CaseKind.STOCK_COMMIT_FAILED.value
        assert collaborators.notifier.sent[0]["event"] == "payment_received_stock_error"

    def test_unreachable_inventory_counts_as_failure(self, place_order, collaborators):
        collaborators.stock.unreachable.add("prod-001")
        order = place_order()
        _apply(order.id)
        stored = _reload(order.id)
        assert stored.status == OrderStatus.PAYMENT_RECEIVED_STOCK_ERROR.value
        assert stored.ordered_items[0].commit_reason == "Inventory service unavailable"


class TestFailedPayment:
    def test_failure_keeps_stock_and_notifies(self, place_order, collaborators):
        order = place_order()
        _apply(order.id, status="failed", result={"id": "tx-9", "status": "Declined"})

        stored = _reload(order.id)
        assert stored.status == OrderStatus.PAYMENT_FAILED.value
        assert stored.is_paid is False
        assert collaborators.stock.calls == []
        assert collaborators.notifier.sent[0]["event"] == "payment_failed"


class TestResumption:
    def test_commit_resumes_after_interruption(self, place_order, collaborators):
        order = place_order([{"product_id": "prod-001", "quantity": 1}, {"product_id": "prod-002", "quantity": 1}])
        # Payment applied, but the process stopped before the saga ran.
        current_domain.process(
            ApplyPaymentResult(order_id=str(order.id), status="successful", payment_result="{}"),
            asynchronous=False,
        )
        assert _reload(order.id).next_saga_step() == SagaStepName.COMMIT_STOCK

        assert resume_pending_sagas() == 1

        stored = _reload(order.id)
        assert stored.next_saga_step() is None
        assert collaborators.stock.stock["prod-001"] == 19
        assert collaborators.stock.stock["prod-002"] == 19

    def test_replayed_commit_does_not_decrement_twice(self, place_order, collaborators):
        order = place_order()
        current_domain.process(
            ApplyPaymentResult(order_id=str(order.id), status="successful", payment_result="{}"),
            asynchronous=False,
        )
        item = _reload(order.id).ordered_items[0]
        # The decrement reached inventory but its result was never recorded.
        collaborators.stock.decrease("prod-001", 2, stock_idempotency_key(order.id, item.id))

        advance(order.id)

        assert collaborators.stock.stock["prod-001"] == 18
        assert _reload(order.id).ordered_items[0].commit_outcome == CommitOutcome.COMMITTED.value

    def test_failed_notification_is_retried(self, place_order, collaborators):
        collaborators.notifier.available = False
        order = place_order()
        _apply(order.id)
        assert _reload(order.id).step_status(SagaStepName.NOTIFY) == SagaStepStatus.FAILED.value

        collaborators.notifier.available = True
        resume_pending_sagas()

        assert _reload(order.id).step_status(SagaStepName.NOTIFY) == SagaStepStatus.COMPLETED.value
        assert len(collaborators.notifier.sent) == 1

    def test_nothing_to_resume_for_pending_orders(self, place_order):
        place_order()
        assert resume_pending_sagas() == 0
