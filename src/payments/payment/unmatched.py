"""Callbacks that reference no known payment, kept for investigation."""

import json
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, String, Text

from payments.domain import payments


@payments.aggregate
class UnmatchedCallback:
    gateway_order_id = String(max_length=255, required=True)
    gateway_transaction_id = String(max_length=255)
    success = Boolean(default=False)
    payload = Text()  # JSON: the transaction object as received
    received_at = DateTime()

    @classmethod
    def record(cls, gateway_order_id, transaction_id, success, transaction):
        return cls(
            gateway_order_id=str(gateway_order_id),
            gateway_transaction_id=transaction_id,
            success=success,
            payload=json.dumps(transaction, default=str),
            received_at=datetime.now(UTC),
        )
