"""HTTP adapters for the orders service's collaborators, against httpx.MockTransport."""

import httpx
import pytest
from ordering.upstream.http_adapter import (
    HttpPaymentService,
    HttpProductCatalogue,
    HttpStockService,
    WebhookCustomerNotifier,
)
from protean.exceptions import ValidationError
from shared.errors import InsufficientStock, NotFoundError, StockNotFound, UpstreamUnavailable
from shared.http import ServiceClient


def _client(handler):
    return ServiceClient(
        "http://upstream.test",
        internal_token="test-internal-key",
        max_attempts=2,
        backoff_seconds=0,
        transport=httpx.MockTransport(handler),
    )


class TestProductCatalogue:
    def test_fetch_snapshot(self):
        def handler(request):
            assert request.url.path == "/products/p1"
            return httpx.Response(200, json={"id": "p1", "name": "Lamp", "price": 50, "images": ["a.png", "b.png"]})

        snapshot = HttpProductCatalogue(_client(handler)).fetch("p1")
        assert (snapshot.name, snapshot.price, snapshot.image) == ("Lamp", 50.0, "a.png")

    def test_unknown_product(self):
        with pytest.raises(NotFoundError):
            HttpProductCatalogue(_client(lambda request: httpx.Response(404, json={}))).fetch("p1")

    def test_outage(self):
        with pytest.raises(UpstreamUnavailable):
            HttpProductCatalogue(_client(lambda request: httpx.Response(503))).fetch("p1")


class TestPaymentService:
    def test_initiate(self):
        def handler(request):
            assert request.url.path == "/payments/initiate/paymob"
            assert request.headers["x-internal-token"] == "test-internal-key"
            return httpx.Response(200, json={"payment_id": "pay-1", "payment_token": "tok", "iframe_url": "https://x"})

        session = HttpPaymentService(_client(handler)).initiate("o1", 125.0, "c1", {"email": "a@b.c"})
        assert (session.payment_token, session.iframe_url, session.payment_id) == ("tok", "https://x", "pay-1")

    def test_rejected_initiation_is_validation_error(self):
        handler = lambda request: httpx.Response(400, json={"message": "Order has already been paid"})  # noqa: E731
        with pytest.raises(ValidationError):
            HttpPaymentService(_client(handler)).initiate("o1", 125.0, "c1", {})


class TestStockService:
    def test_decrease_returns_remaining(self):
        def handler(request):
            assert request.method == "PATCH"
            return httpx.Response(200, json={"product_id": "p1", "stock_quantity": 4, "is_low_stock": False})

        assert HttpStockService(_client(handler)).decrease("p1", 1, "o1:i1") == 4

    def test_insufficient(self):
        handler = lambda request: httpx.Response(400, json={"message": "Insufficient stock"})  # noqa: E731
        with pytest.raises(InsufficientStock):
            HttpStockService(_client(handler)).decrease("p1", 5, "o1:i1")

    def test_not_found(self):
        with pytest.raises(StockNotFound):
            HttpStockService(_client(lambda request: httpx.Response(404, json={}))).decrease("p1", 1, "k")


class TestWebhookNotifier:
    def test_posts_event(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(202)

        WebhookCustomerNotifier(_client(handler)).notify("c1", "o1", "payment_succeeded", {})
        assert len(seen) == 1

    def test_rejection_is_unavailable(self):
        with pytest.raises(UpstreamUnavailable):
            WebhookCustomerNotifier(_client(lambda request: httpx.Response(410))).notify("c1", "o1", "x", {})
