"""Payment gateway port (abstract interface).

The checkout handshake is three calls (authenticate, register the order,
request a payment key) followed by an asynchronous callback. Adapters
implement the calls; callback parsing is shared because every adapter speaks
the same transaction payload.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class BillingData:
    """Customer billing details forwarded to the hosted checkout page."""

    first_name: str
    last_name: str
    email: str
    phone: str
    street: str
    city: str
    postal_code: str
    country: str
    state: str | None = None
    apartment: str | None = None
    floor: str | None = None
    building: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "BillingData":
        fields = cls.__dataclass_fields__
        return cls(**{key: value for key, value in data.items() if key in fields})


@dataclass(frozen=True)
class CallbackResult:
    """The parts of a transaction callback the payments service acts on."""

    gateway_order_id: str
    success: bool
    pending: bool
    transaction_id: str | None = None
    amount_cents: int | None = None
    currency: str | None = None
    created_at: str | None = None
    message: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str = "paymob"

    @abstractmethod
    def authenticate(self) -> str:
        """Exchange the merchant API key for a short-lived auth token."""
        ...

    @abstractmethod
    def register_order(self, auth_token: str, merchant_order_id: str, amount_cents: int, currency: str) -> str:
        """Register an order with the gateway; returns the gateway order id."""
        ...

    @abstractmethod
    def request_payment_key(
        self,
        auth_token: str,
        gateway_order_id: str,
        amount_cents: int,
        currency: str,
        billing_data: BillingData,
    ) -> str:
        """Request the payment token used by the hosted checkout page."""
        ...

    @abstractmethod
    def checkout_url(self, payment_token: str) -> str:
        ...

    @abstractmethod
    def verify_callback_signature(self, transaction: dict, signature: str) -> bool:
        """Verify that a callback payload is authentically from the gateway."""
        ...

    def parse_callback(self, transaction: dict) -> CallbackResult:
        order = transaction.get("order") or {}
        gateway_order_id = order.get("id") if isinstance(order, dict) else order
        data = transaction.get("data") or {}
        transaction_id = transaction.get("id")
        return CallbackResult(
            gateway_order_id=str(gateway_order_id),
            success=_as_bool(transaction.get("success")),
            pending=_as_bool(transaction.get("pending")),
            transaction_id=str(transaction_id) if transaction_id is not None else None,
            amount_cents=transaction.get("amount_cents"),
            currency=transaction.get("currency"),
            created_at=transaction.get("created_at"),
            message=data.get("message") if isinstance(data, dict) else None,
        )


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)
