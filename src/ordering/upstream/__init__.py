"""Collaborator factory for the orders service.

Provides get_collaborators() / set_collaborators() to swap implementations:
- HTTP adapters for every collaborator whose service URL is configured
- in-process fakes otherwise (development and tests)
"""

from dataclasses import dataclass

from shared.http import ServiceClient
from shared.settings import get_settings

from ordering.upstream.fake_adapter import (
    FakePaymentService,
    FakeProductCatalogue,
    FakeStockService,
    RecordingCustomerNotifier,
)
from ordering.upstream.http_adapter import (
    HttpPaymentService,
    HttpProductCatalogue,
    HttpStockService,
    LoggingCustomerNotifier,
    WebhookCustomerNotifier,
)
from ordering.upstream.port import CustomerNotifier, PaymentService, ProductCatalogue, StockService


@dataclass
class Collaborators:
    catalogue: ProductCatalogue
    payments: PaymentService
    stock: StockService
    notifier: CustomerNotifier


def _default_collaborators() -> Collaborators:
    settings = get_settings()
    token = settings.internal_api_key

    if settings.product_service_url:
        client = ServiceClient(settings.product_service_url, internal_token=token)
        catalogue, stock = HttpProductCatalogue(client), HttpStockService(client)
    else:
        catalogue, stock = FakeProductCatalogue(), FakeStockService()

    if settings.payment_service_url:
        payments = HttpPaymentService(ServiceClient(settings.payment_service_url, internal_token=token))
    else:
        payments = FakePaymentService()

    if settings.notification_webhook_url:
        notifier = WebhookCustomerNotifier(ServiceClient(settings.notification_webhook_url))
    else:
        notifier = LoggingCustomerNotifier()

    return Collaborators(catalogue=catalogue, payments=payments, stock=stock, notifier=notifier)


_current: Collaborators | None = None


def get_collaborators() -> Collaborators:
    global _current
    if _current is None:
        _current = _default_collaborators()
    return _current


def set_collaborators(collaborators: Collaborators) -> None:
    """Override the active collaborators (useful for tests)."""
    global _current
    _current = collaborators


def reset_collaborators() -> None:
    global _current
    _current = None
