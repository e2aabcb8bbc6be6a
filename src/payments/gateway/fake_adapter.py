"""Configurable fake payment gateway for development and testing.

Simulates the three-step handshake without any external calls and records
every call it receives. Callbacks are accepted when signed with
``FakeGateway.SIGNATURE``.
"""

from itertools import count

from shared.errors import UpstreamUnavailable

from payments.gateway.port import BillingData, PaymentGateway


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    SIGNATURE = "test-signature"

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway rejected the request"
        self.calls: list[dict] = []
        self._order_ids = count(1000)
        self._tokens = count(1)

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway rejected the request") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _check(self) -> None:
        if not self.should_succeed:
            raise UpstreamUnavailable(self.failure_reason)

    def authenticate(self) -> str:
        self.calls.append({"method": "authenticate"})
        self._check()
        return "fake-auth-token"

    def register_order(self, auth_token: str, merchant_order_id: str, amount_cents: int, currency: str) -> str:
        self.calls.append(
            {
                "method": "register_order",
                "merchant_order_id": merchant_order_id,
                "amount_cents": amount_cents,
                "currency": currency,
            }
        )
        self._check()
        return str(next(self._order_ids))

    def request_payment_key(
        self,
        auth_token: str,
        gateway_order_id: str,
        amount_cents: int,
        currency: str,
        billing_data: BillingData,
    ) -> str:
        self.calls.append(
            {
                "method": "request_payment_key",
                "gateway_order_id": gateway_order_id,
                "amount_cents": amount_cents,
                "currency": currency,
                "billing_email": billing_data.email,
            }
        )
        self._check()
        return f"fake-payment-key-{next(self._tokens)}"

    def checkout_url(self, payment_token: str) -> str:
        return f"https://checkout.invalid/iframes/fake?payment_token={payment_token}"

    def verify_callback_signature(self, transaction: dict, signature: str) -> bool:  # noqa: ARG002
        return signature == self.SIGNATURE
