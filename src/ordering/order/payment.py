"""Payment-related order commands.

``InitiateOrderPayment`` asks the payments service for a checkout session.
``ApplyPaymentResult`` is how the payments service reports the outcome; it
may arrive more than once and only the first delivery changes the order.
"""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from shared.errors import AuthorizationError

from ordering.domain import logger, ordering
from ordering.order.order import Order
from ordering.upstream import get_collaborators

SUCCESSFUL_PAYMENT = "successful"


@ordering.command(part_of="Order")
class InitiateOrderPayment:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    email = String(max_length=255)
    name = String(max_length=255)


@ordering.command(part_of="Order")
class ApplyPaymentResult:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    payment_result = Text()  # JSON: gateway detail dict


def billing_data_for(order: Order, name: str | None, email: str | None) -> dict:
    """Gateway billing details from the customer's identity and shipping address."""
    first_name, _, last_name = (name or "").strip().partition(" ")
    shipping = order.shipping
    return {
        "first_name": first_name or "N/A",
        "last_name": last_name or "N/A",
        "email": email or "N/A",
        "phone": shipping.phone if shipping else "N/A",
        "street": shipping.address if shipping else "N/A",
        "city": shipping.city if shipping else "N/A",
        "postal_code": (shipping.postal_code if shipping else None) or "NA",
        "country": shipping.country if shipping else "N/A",
    }


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(InitiateOrderPayment)
    def initiate_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if str(order.customer_id) != str(command.customer_id):
            raise AuthorizationError("Not authorized to pay for this order", order_id=str(order.id))
        order.assert_payable()

        session = get_collaborators().payments.initiate(
            order_id=str(order.id),
            amount=float(order.total_decimal),
            user_id=str(order.customer_id),
            billing_data=billing_data_for(order, command.name, command.email),
        )
        order.record_checkout_started(session.payment_id)
        repo.add(order)

        logger.info("order_payment_initiated", order_id=str(order.id), payment_id=session.payment_id)
        return {"payment_token": session.payment_token, "iframe_url": session.iframe_url}

    @handle(ApplyPaymentResult)
    def apply_payment_result(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        result = json.loads(command.payment_result) if command.payment_result else {}
        applied = order.apply_payment_result(command.status == SUCCESSFUL_PAYMENT, result)
        if applied:
            repo.add(order)
            logger.info("order_payment_result_applied", order_id=str(order.id), status=order.status)
        else:
            logger.info("order_payment_result_ignored", order_id=str(order.id), status=order.status)
        return {"applied": applied}
