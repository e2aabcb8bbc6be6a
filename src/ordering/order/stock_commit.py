"""Per-item stock commit bookkeeping.

The saga commits one item at a time against inventory and records each result
here as its own unit of work, so a crash between items resumes at the first
item still marked not attempted.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.order import CommitOutcome, Order
from ordering.reconciliation.case import CaseKind, ReconciliationCase


@ordering.command(part_of="Order")
class RecordStockCommit:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    outcome = String(choices=CommitOutcome, required=True)
    reason = String(max_length=500)
    remaining_stock = Integer()


@ordering.command_handler(part_of=Order)
class StockCommitHandler:
    @handle(RecordStockCommit)
    def record_stock_commit(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if command.outcome == CommitOutcome.COMMITTED.value:
            order.record_item_committed(command.item_id, command.remaining_stock)
            repo.add(order)
            logger.info(
                "order_item_stock_committed",
                order_id=str(order.id),
                item_id=str(command.item_id),
                remaining_stock=command.remaining_stock,
            )
            return order

        if command.outcome != CommitOutcome.FAILED.value:
            raise ValidationError({"outcome": ["Only committed or failed outcomes can be recorded"]})

        order.record_item_commit_failed(command.item_id, command.reason or "Stock commit failed")
        repo.add(order)

        case = ReconciliationCase.open(
            order.id,
            CaseKind.STOCK_COMMIT_FAILED,
            {"reason": command.reason, "items": order.commit_outcomes()},
        )
        current_domain.repository_for(ReconciliationCase).add(case)
        logger.warning(
            "order_stock_commit_failed",
            order_id=str(order.id),
            item_id=str(command.item_id),
            reason=command.reason,
            case_id=str(case.id),
        )
        return order
