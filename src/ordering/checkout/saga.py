"""Order payment saga: drives a paid order through stock commit and notification.

The saga state lives on the Order itself (its step log), so the runner holds
nothing between calls and can resume any order after a crash.

Flow:
    1. price_snapshot → recorded when the order is placed
    2. await_payment  → started at checkout, settled by ApplyPaymentResult
    3. commit_stock   → one atomic decrement per item, in order sequence;
                        the first failure parks the order for reconciliation
    4. notify         → tell the owner how it ended

Each item is decremented with the idempotency key ``<order id>:<item id>``,
so a resumed commit never decrements the same item twice.
"""

from protean.utils.globals import current_domain
from shared.errors import InsufficientStock, StockNotFound, UpstreamUnavailable

from ordering.domain import logger
from ordering.order.notification import RecordOwnerNotification
from ordering.order.order import CommitOutcome, Order, SagaStepName
from ordering.order.stock_commit import RecordStockCommit
from ordering.upstream import get_collaborators


def stock_idempotency_key(order_id, item_id) -> str:
    return f"{order_id}:{item_id}"


def _commit_stock(order: Order) -> None:
    stock = get_collaborators().stock
    for item in order.items_to_commit():
        try:
            remaining = stock.decrease(
                str(item.product_id),
                item.quantity,
                stock_idempotency_key(order.id, item.id),
            )
        except (InsufficientStock, StockNotFound, UpstreamUnavailable) as exc:
            current_domain.process(
                RecordStockCommit(
                    order_id=str(order.id),
                    item_id=str(item.id),
                    outcome=CommitOutcome.FAILED.value,
                    reason=exc.message,
                ),
                asynchronous=False,
            )
            return

        current_domain.process(
            RecordStockCommit(
                order_id=str(order.id),
                item_id=str(item.id),
                outcome=CommitOutcome.COMMITTED.value,
                remaining_stock=remaining,
            ),
            asynchronous=False,
        )


def _notify_owner(order: Order) -> None:
    event = order.notification_event()
    details = {
        "status": order.status,
        "total_price": order.total_price,
        "items": order.commit_outcomes(),
    }
    try:
        get_collaborators().notifier.notify(str(order.customer_id), str(order.id), event, details)
    except UpstreamUnavailable as exc:
        logger.warning("order_owner_notification_failed", order_id=str(order.id), error=exc.message)
        current_domain.process(
            RecordOwnerNotification(order_id=str(order.id), delivered=False, detail=exc.message[:500]),
            asynchronous=False,
        )
        return

    current_domain.process(
        RecordOwnerNotification(order_id=str(order.id), delivered=True, detail=event),
        asynchronous=False,
    )
    logger.info("order_owner_notified", order_id=str(order.id), notification=event)


def advance(order_id) -> Order:
    """Run whatever saga steps the order is waiting on and return it reloaded.

    Stock commit runs at most once per call and notification after it, so a
    failed commit is still reported to the owner.
    """
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)

    if order.next_saga_step() == SagaStepName.COMMIT_STOCK:
        _commit_stock(order)
        order = repo.get(order_id)

    if order.next_saga_step() == SagaStepName.NOTIFY:
        _notify_owner(order)
        order = repo.get(order_id)

    return order


def resume_order_saga(order_id) -> Order:
    logger.info("order_saga_resumed", order_id=str(order_id))
    return advance(order_id)


def resume_pending_sagas() -> int:
    """Advance every order whose saga stopped between steps. Returns how many were resumed."""
    orders = current_domain.repository_for(Order)._dao.query.all().items
    stalled = [order for order in orders if order.next_saga_step() is not None]
    for order in stalled:
        resume_order_saga(order.id)
    logger.info("order_saga_sweep_finished", candidates=len(stalled))
    return len(stalled)
