"""Outcome delivery bookkeeping and the relay itself.

``deliver_outcome`` runs after the settling unit of work has committed, so a
failed relay never undoes the settlement; it is recorded and picked up by
``redeliver_pending_outcomes``.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from shared.errors import UpstreamUnavailable

from payments.domain import logger, payments
from payments.notifier import get_notifier
from payments.payment.payment import Payment


@payments.command(part_of="Payment")
class RecordOutcomeDelivered:
    payment_id = Identifier(required=True)


@payments.command(part_of="Payment")
class RecordOutcomeDeliveryFailed:
    payment_id = Identifier(required=True)
    error = String(max_length=500)


@payments.command_handler(part_of=Payment)
class OutcomeDeliveryHandler:
    @handle(RecordOutcomeDelivered)
    def record_delivered(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        payment.record_outcome_delivered()
        repo.add(payment)

    @handle(RecordOutcomeDeliveryFailed)
    def record_delivery_failed(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        payment.record_outcome_delivery_failed(command.error or "unknown error")
        repo.add(payment)


def deliver_outcome(payment_id: str) -> bool:
    """Relay a settled payment's outcome; returns whether it was accepted."""
    payment = current_domain.repository_for(Payment).get(payment_id)
    try:
        get_notifier().deliver(str(payment.order_id), payment.outcome())
    except UpstreamUnavailable as exc:
        logger.warning(
            "payment_outcome_delivery_failed",
            payment_id=payment_id,
            order_id=str(payment.order_id),
            error=exc.message,
        )
        current_domain.process(
            RecordOutcomeDeliveryFailed(payment_id=payment_id, error=exc.message),
            asynchronous=False,
        )
        return False

    current_domain.process(RecordOutcomeDelivered(payment_id=payment_id), asynchronous=False)
    logger.info("payment_outcome_delivered", payment_id=payment_id, order_id=str(payment.order_id))
    return True


def redeliver_pending_outcomes() -> int:
    """Retry every settled payment whose outcome has not reached the orders service."""
    repo = current_domain.repository_for(Payment)
    undelivered = [p for p in repo._dao.query.filter(outcome_delivered=False).all().items if not p.is_pending]
    delivered = sum(1 for payment in undelivered if deliver_outcome(str(payment.id)))
    logger.info("payment_outcome_redelivery_finished", candidates=len(undelivered), delivered=delivered)
    return delivered
