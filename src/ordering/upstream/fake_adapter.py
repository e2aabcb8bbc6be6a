"""In-process fakes for the orders service's collaborators.

Used in development when no service URLs are configured, and by tests that
need to script collaborator behaviour and inspect the calls made.
"""

import threading
from uuid import uuid4

from shared.errors import InsufficientStock, NotFoundError, StockNotFound, UpstreamUnavailable

from ordering.upstream.port import (
    CheckoutSession,
    CustomerNotifier,
    PaymentService,
    ProductCatalogue,
    ProductSnapshot,
    StockService,
)


class FakeProductCatalogue(ProductCatalogue):
    def __init__(self) -> None:
        self.products: dict[str, ProductSnapshot] = {}
        self.available = True
        self.calls: list[str] = []

    def add_product(self, product_id: str, name: str, price: float, image: str | None = None) -> ProductSnapshot:
        snapshot = ProductSnapshot(product_id=product_id, name=name, price=price, image=image)
        self.products[product_id] = snapshot
        return snapshot

    def fetch(self, product_id: str) -> ProductSnapshot:
        self.calls.append(product_id)
        if not self.available:
            raise UpstreamUnavailable("Product service unavailable")
        if product_id not in self.products:
            raise NotFoundError("Product not found", product_id=product_id)
        return self.products[product_id]


class FakePaymentService(PaymentService):
    def __init__(self) -> None:
        self.available = True
        self.calls: list[dict] = []

    def initiate(self, order_id: str, amount: float, user_id: str, billing_data: dict) -> CheckoutSession:
        self.calls.append({"order_id": order_id, "amount": amount, "user_id": user_id, "billing_data": billing_data})
        if not self.available:
            raise UpstreamUnavailable("Payment service unavailable")
        token = f"fake-token-{uuid4().hex[:8]}"
        return CheckoutSession(
            payment_token=token,
            iframe_url=f"https://checkout.invalid/iframes/fake?payment_token={token}",
            payment_id=f"pay-{uuid4().hex[:8]}",
        )


class FakeStockService(StockService):
    """Stock counts keyed by product id; ``unreachable`` products simulate outages."""

    def __init__(self) -> None:
        self.stock: dict[str, int] = {}
        self.unreachable: set[str] = set()
        self.calls: list[dict] = []
        self._applied: dict[str, int] = {}
        self._lock = threading.Lock()

    def set_stock(self, product_id: str, quantity: int) -> None:
        self.stock[product_id] = quantity

    def decrease(self, product_id: str, quantity: int, idempotency_key: str) -> int:
        with self._lock:
            self.calls.append({"product_id": product_id, "quantity": quantity, "idempotency_key": idempotency_key})
            if product_id in self.unreachable:
                raise UpstreamUnavailable("Inventory service unavailable")
            if idempotency_key in self._applied:
                return self._applied[idempotency_key]
            if product_id not in self.stock:
                raise StockNotFound("Product not found", product_id=product_id)
            if self.stock[product_id] < quantity:
                raise InsufficientStock("Insufficient stock", product_id=product_id)
            self.stock[product_id] -= quantity
            self._applied[idempotency_key] = self.stock[product_id]
            return self.stock[product_id]


class RecordingCustomerNotifier(CustomerNotifier):
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.available = True

    def notify(self, customer_id: str, order_id: str, event: str, details: dict) -> None:
        if not self.available:
            raise UpstreamUnavailable("Notification channel unavailable")
        self.sent.append({"customer_id": customer_id, "order_id": order_id, "event": event, "details": details})
