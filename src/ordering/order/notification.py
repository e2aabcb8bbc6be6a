"""Owner notification step: records whether the owner was told the outcome."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class RecordOwnerNotification:
    order_id = Identifier(required=True)
    delivered = Boolean(default=True)
    detail = String(max_length=500)


@ordering.command_handler(part_of=Order)
class OwnerNotificationHandler:
    @handle(RecordOwnerNotification)
    def record_owner_notification(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_owner_notified(bool(command.delivered), command.detail)
        repo.add(order)
