"""Gateway callback processing: command and handler.

Outcomes, in order of precedence:
    pending_ack  the gateway reports an intermediate state; nothing changes
    unmatched    no payment carries the gateway order id; recorded for review
    duplicate    the payment is already settled, or another callback claimed it
    processed    this callback settled the payment
"""

import json

from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain

from payments.claims import get_claim_store
from payments.domain import logger, payments
from payments.gateway import get_gateway
from payments.payment.payment import Payment
from payments.payment.unmatched import UnmatchedCallback


@payments.command(part_of="Payment")
class ProcessGatewayCallback:
    gateway = String(max_length=50, default="paymob")
    transaction = Text(required=True)  # JSON: the callback's transaction object


@payments.command_handler(part_of=Payment)
class ProcessGatewayCallbackHandler:
    @handle(ProcessGatewayCallback)
    def process_callback(self, command):
        transaction = json.loads(command.transaction) if isinstance(command.transaction, str) else command.transaction
        result = get_gateway().parse_callback(transaction)
        log = logger.bind(gateway_order_id=result.gateway_order_id, transaction_id=result.transaction_id)

        if result.pending:
            log.info("callback_pending_acknowledged")
            return {"status": "pending_ack"}

        repo = current_domain.repository_for(Payment)
        matches = repo._dao.query.filter(gateway_order_id=result.gateway_order_id).all().items
        if not matches:
            current_domain.repository_for(UnmatchedCallback).add(
                UnmatchedCallback.record(result.gateway_order_id, result.transaction_id, result.success, transaction)
            )
            log.warning("callback_unmatched")
            return {"status": "unmatched"}

        payment = matches[0]
        if not payment.is_pending:
            log.info("callback_duplicate", payment_id=str(payment.id), payment_status=payment.status)
            return {"status": "duplicate", "payment_id": str(payment.id)}

        if not get_claim_store().claim(result.gateway_order_id, result.transaction_id):
            log.info("callback_claim_lost", payment_id=str(payment.id))
            return {"status": "duplicate", "payment_id": str(payment.id)}

        try:
            payment.settle(
                success=result.success,
                transaction_id=result.transaction_id,
                message=result.message,
                update_time=result.created_at,
                amount_cents=result.amount_cents,
                currency=result.currency,
            )
            repo.add(payment)
        except Exception:
            get_claim_store().release(result.gateway_order_id)
            log.warning("callback_claim_released", payment_id=str(payment.id))
            raise
        log.info("payment_settled", payment_id=str(payment.id), payment_status=payment.status)
        return {"status": "processed", "payment_id": str(payment.id), "outcome": payment.status}
