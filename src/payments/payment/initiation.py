"""Payment initiation: command and handler.

Runs the gateway handshake for an order and records the pending Payment that
the gateway's callback will later settle.
"""

import json
from decimal import ROUND_HALF_UP, Decimal

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain
from shared.settings import get_settings

from payments.domain import logger, payments
from payments.gateway import SUPPORTED_GATEWAYS, get_gateway
from payments.gateway.port import BillingData
from payments.payment.payment import Payment, PaymentStatus

_REQUIRED_BILLING_FIELDS = ("first_name", "last_name", "email", "phone", "street", "city", "postal_code", "country")


def to_minor_units(amount: float) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@payments.command(part_of="Payment")
class InitiatePayment:
    """Start a gateway checkout for an order."""

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.01)
    currency = String(max_length=3)
    billing_data = Text(required=True)  # JSON: billing details dict
    gateway = String(max_length=50, default="paymob")


def _billing_data(raw) -> BillingData:
    data = json.loads(raw) if isinstance(raw, str) else (raw or {})
    missing = [name for name in _REQUIRED_BILLING_FIELDS if not data.get(name)]
    if missing:
        raise ValidationError({"billing_data": [f"Missing billing fields: {', '.join(missing)}"]})
    return BillingData.from_dict(data)


@payments.command_handler(part_of=Payment)
class InitiatePaymentHandler:
    @handle(InitiatePayment)
    def initiate_payment(self, command):
        if command.gateway not in SUPPORTED_GATEWAYS:
            raise ValidationError({"gateway": [f"Unsupported payment gateway: {command.gateway}"]})

        billing = _billing_data(command.billing_data)
        amount_cents = to_minor_units(command.amount)
        currency = command.currency or get_settings().payment_currency
        order_id = str(command.order_id)

        repo = current_domain.repository_for(Payment)
        existing = repo._dao.query.filter(order_id=order_id).all().items
        if any(p.status == PaymentStatus.SUCCESSFUL.value for p in existing):
            raise ValidationError({"order_id": ["Order has already been paid"]})

        gateway = get_gateway()
        auth_token = gateway.authenticate()

        # A pending checkout for the same amount is reused rather than registered twice.
        payment = next((p for p in existing if p.is_pending and p.amount_cents == amount_cents), None)
        if payment is None:
            gateway_order_id = gateway.register_order(auth_token, order_id, amount_cents, currency)
            payment = Payment.create(
                order_id=order_id,
                customer_id=command.customer_id,
                gateway_name=gateway.name,
                gateway_order_id=gateway_order_id,
                amount_cents=amount_cents,
                currency=currency,
            )
            repo.add(payment)
            logger.info(
                "payment_initiated",
                payment_id=str(payment.id),
                order_id=order_id,
                gateway_order_id=gateway_order_id,
                amount_cents=amount_cents,
            )
        else:
            logger.info("payment_checkout_reused", payment_id=str(payment.id), order_id=order_id)

        payment_token = gateway.request_payment_key(
            auth_token, payment.gateway_order_id, amount_cents, payment.currency, billing
        )
        return {
            "payment_id": str(payment.id),
            "payment_token": payment_token,
            "iframe_url": gateway.checkout_url(payment_token),
        }
