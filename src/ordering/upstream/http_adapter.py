"""HTTP adapters for the orders service's collaborators.

All calls go through ``ServiceClient`` (bounded timeout, bounded retry). Every
retried request is idempotent: lookups are reads, payment initiation reuses
a pending checkout, and stock decrements carry an idempotency key.
"""

import structlog
from protean.exceptions import ValidationError
from shared.errors import InsufficientStock, NotFoundError, StockNotFound, UpstreamUnavailable
from shared.http import ServiceClient

from ordering.upstream.port import (
    CheckoutSession,
    CustomerNotifier,
    PaymentService,
    ProductCatalogue,
    ProductSnapshot,
    StockService,
)

logger = structlog.get_logger(__name__)


def _message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or body)
    return str(body)


class HttpProductCatalogue(ProductCatalogue):
    def __init__(self, client: ServiceClient) -> None:
        self.client = client

    def fetch(self, product_id: str) -> ProductSnapshot:
        response = self.client.get(f"/products/{product_id}")
        if response.status_code == 404:
            raise NotFoundError("Product not found", product_id=product_id)
        if response.is_error:
            raise UpstreamUnavailable(f"Product lookup failed: {_message(response)}")
        body = response.json()
        images = body.get("images") or []
        return ProductSnapshot(
            product_id=str(body.get("id", product_id)),
            name=body["name"],
            price=float(body["price"]),
            image=images[0] if images else None,
        )


class HttpPaymentService(PaymentService):
    def __init__(self, client: ServiceClient, gateway: str = "paymob") -> None:
        self.client = client
        self.gateway = gateway

    def initiate(self, order_id: str, amount: float, user_id: str, billing_data: dict) -> CheckoutSession:
        response = self.client.post(
            f"/payments/initiate/{self.gateway}",
            json={"order_id": order_id, "amount": amount, "user_id": user_id, "billing_data": billing_data},
        )
        if response.status_code == 400:
            raise ValidationError({"payment": [_message(response)]})
        if response.is_error:
            raise UpstreamUnavailable(f"Payment initiation failed: {_message(response)}")
        body = response.json()
        return CheckoutSession(
            payment_token=body["payment_token"],
            iframe_url=body["iframe_url"],
            payment_id=body.get("payment_id"),
        )


class HttpStockService(StockService):
    def __init__(self, client: ServiceClient) -> None:
        self.client = client

    def decrease(self, product_id: str, quantity: int, idempotency_key: str) -> int:
        response = self.client.patch(
            f"/products/{product_id}/stock/decrease",
            json={"quantity": quantity, "idempotency_key": idempotency_key},
        )
        if response.status_code == 404:
            raise StockNotFound("Product not found", product_id=product_id)
        if response.status_code == 400:
            raise InsufficientStock(_message(response), product_id=product_id)
        if response.is_error:
            raise UpstreamUnavailable(f"Stock decrease failed: {_message(response)}")
        return int(response.json()["stock_quantity"])


class WebhookCustomerNotifier(CustomerNotifier):
    def __init__(self, client: ServiceClient, path: str = "") -> None:
        self.client = client
        self.path = path

    def notify(self, customer_id: str, order_id: str, event: str, details: dict) -> None:
        response = self.client.post(
            self.path,
            json={"customer_id": customer_id, "order_id": order_id, "event": event, "details": details},
        )
        if response.is_error:
            raise UpstreamUnavailable(f"Notification rejected: {_message(response)}")


class LoggingCustomerNotifier(CustomerNotifier):
    """Used when no notification channel is configured."""

    def notify(self, customer_id: str, order_id: str, event: str, details: dict) -> None:
        logger.info("customer_notification", customer_id=customer_id, order_id=order_id, notification=event)
