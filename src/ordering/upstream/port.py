"""Ports to the services the orders service depends on.

Each collaborator is a small request/response contract. Adapters raise the
shared error taxonomy: ``NotFoundError``/``StockNotFound`` for unknown
records, ``InsufficientStock`` for refused decrements and
``UpstreamUnavailable`` when the collaborator cannot be reached.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ProductSnapshot:
    """Price and display data of a product at the moment it was looked up."""

    product_id: str
    name: str
    price: float
    image: str | None = None


@dataclass(frozen=True)
class CheckoutSession:
    payment_token: str
    iframe_url: str
    payment_id: str | None = None


class ProductCatalogue(ABC):
    @abstractmethod
    def fetch(self, product_id: str) -> ProductSnapshot:
        ...


class PaymentService(ABC):
    @abstractmethod
    def initiate(self, order_id: str, amount: float, user_id: str, billing_data: dict) -> CheckoutSession:
        ...


class StockService(ABC):
    @abstractmethod
    def decrease(self, product_id: str, quantity: int, idempotency_key: str) -> int:
        """Commit stock atomically; returns the remaining quantity."""
        ...


class CustomerNotifier(ABC):
    @abstractmethod
    def notify(self, customer_id: str, order_id: str, event: str, details: dict) -> None:
        ...
