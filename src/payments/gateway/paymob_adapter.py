"""Paymob Accept gateway adapter.

Handshake:
    POST /api/auth/tokens                 api_key → token
    POST /api/ecommerce/orders            token, amount → gateway order id
    POST /api/acceptance/payment_keys     token, order id, billing → payment key

Transaction callbacks are signed with HMAC-SHA512 over a fixed, ordered list of
transaction fields; the hex digest arrives in the ``hmac`` query parameter.
"""

import hashlib
import hmac

import structlog
from shared.errors import UpstreamUnavailable
from shared.http import ServiceClient

from payments.gateway.port import BillingData, PaymentGateway

logger = structlog.get_logger(__name__)

# Field order is part of the signature contract.
CALLBACK_HMAC_FIELDS = (
    "amount_cents",
    "created_at",
    "currency",
    "error_occured",
    "has_parent_transaction",
    "id",
    "integration_id",
    "is_3d_secure",
    "is_auth",
    "is_capture",
    "is_refunded",
    "is_standalone_payment",
    "is_voided",
    "order.id",
    "owner",
    "pending",
    "source_data.pan",
    "source_data.sub_type",
    "source_data.type",
    "success",
)

NOT_APPLICABLE = "NA"


def _lookup(transaction: dict, dotted: str):
    value = transaction
    for part in dotted.split("."):
        if not isinstance(value, dict):
            return ""
        value = value.get(part, "")
    return value


def _stringify(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def callback_signature(transaction: dict, secret: str) -> str:
    message = "".join(_stringify(_lookup(transaction, field)) for field in CALLBACK_HMAC_FIELDS)
    return hmac.new(secret.encode(), message.encode(), hashlib.sha512).hexdigest()


class PaymobGateway(PaymentGateway):
    name = "paymob"

    def __init__(
        self,
        api_key: str,
        integration_id: str,
        iframe_id: str,
        hmac_secret: str,
        base_url: str,
        iframe_base_url: str,
        key_expiration_seconds: int = 3600,
        client: ServiceClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.integration_id = integration_id
        self.iframe_id = iframe_id
        self.hmac_secret = hmac_secret
        self.iframe_base_url = iframe_base_url.rstrip("/")
        self.key_expiration_seconds = key_expiration_seconds
        self.client = client or ServiceClient(base_url)

    def _post(self, step: str, path: str, payload: dict) -> dict:
        response = self.client.post(path, json=payload)
        if response.is_error:
            logger.error("gateway_request_rejected", step=step, status_code=response.status_code)
            raise UpstreamUnavailable(f"Payment gateway rejected {step}", upstream_status=response.status_code)
        return response.json()

    def authenticate(self) -> str:
        return self._post("authentication", "/api/auth/tokens", {"api_key": self.api_key})["token"]

    def register_order(self, auth_token: str, merchant_order_id: str, amount_cents: int, currency: str) -> str:
        body = self._post(
            "order registration",
            "/api/ecommerce/orders",
            {
                "auth_token": auth_token,
                "delivery_needed": False,
                "amount_cents": amount_cents,
                "currency": currency,
                "merchant_order_id": merchant_order_id,
                "items": [],
            },
        )
        return str(body["id"])

    def request_payment_key(
        self,
        auth_token: str,
        gateway_order_id: str,
        amount_cents: int,
        currency: str,
        billing_data: BillingData,
    ) -> str:
        body = self._post(
            "payment key request",
            "/api/acceptance/payment_keys",
            {
                "auth_token": auth_token,
                "amount_cents": amount_cents,
                "expiration": self.key_expiration_seconds,
                "order_id": gateway_order_id,
                "billing_data": {
                    "apartment": billing_data.apartment or NOT_APPLICABLE,
                    "email": billing_data.email,
                    "floor": billing_data.floor or NOT_APPLICABLE,
                    "first_name": billing_data.first_name,
                    "street": billing_data.street,
                    "building": billing_data.building or NOT_APPLICABLE,
                    "phone_number": billing_data.phone,
                    "shipping_method": NOT_APPLICABLE,
                    "postal_code": billing_data.postal_code,
                    "city": billing_data.city,
                    "country": billing_data.country,
                    "last_name": billing_data.last_name,
                    "state": billing_data.state or NOT_APPLICABLE,
                },
                "currency": currency,
                "integration_id": self.integration_id,
                "lock_order_when_paid": "true",
            },
        )
        return body["token"]

    def checkout_url(self, payment_token: str) -> str:
        return f"{self.iframe_base_url}/{self.iframe_id}?payment_token={payment_token}"

    def verify_callback_signature(self, transaction: dict, signature: str) -> bool:
        if not signature or not self.hmac_secret:
            return False
        expected = callback_signature(transaction, self.hmac_secret)
        return hmac.compare_digest(expected, signature.lower())
