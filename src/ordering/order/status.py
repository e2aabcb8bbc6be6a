"""Operator status changes.

An order parked in ``payment_received_stock_error`` stays there until its
stock case has been resolved. Cancelling a paid order opens a refund/restock
case; nothing is refunded or restocked automatically.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from shared.errors import ReconciliationRequired

from ordering.domain import logger, ordering
from ordering.order.order import Order, OrderStatus
from ordering.reconciliation.case import CaseKind, ReconciliationCase
from ordering.reconciliation.resolution import open_cases


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)


@ordering.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        leaving_stock_error = (
            order.status == OrderStatus.PAYMENT_RECEIVED_STOCK_ERROR.value and command.status != order.status
        )
        if leaving_stock_error and open_cases(order.id, CaseKind.STOCK_COMMIT_FAILED):
            raise ReconciliationRequired(
                "Resolve the open stock reconciliation case first",
                order_id=str(order.id),
            )

        was_cancelled = order.status == OrderStatus.CANCELLED.value
        order.update_status(command.status)
        repo.add(order)

        if order.refund_due and not was_cancelled and order.status == OrderStatus.CANCELLED.value:
            case = ReconciliationCase.open(
                order.id,
                CaseKind.REFUND_RESTOCK,
                {"total_price": order.total_price, "items": order.commit_outcomes()},
            )
            current_domain.repository_for(ReconciliationCase).add(case)
            logger.info("order_refund_due", order_id=str(order.id), case_id=str(case.id))

        logger.info("order_status_updated", order_id=str(order.id), status=order.status)
        return order
