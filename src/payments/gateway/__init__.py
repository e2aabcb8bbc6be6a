"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- PaymobGateway when Paymob credentials are configured
- FakeGateway for development and testing
"""

from shared.settings import get_settings

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.paymob_adapter import PaymobGateway
from payments.gateway.port import PaymentGateway

SUPPORTED_GATEWAYS = ("paymob",)

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway."""
    global _current_gateway
    if _current_gateway is None:
        settings = get_settings()
        if settings.paymob_api_key:
            _current_gateway = PaymobGateway(
                api_key=settings.paymob_api_key,
                integration_id=settings.paymob_integration_id or "",
                iframe_id=settings.paymob_iframe_id or "",
                hmac_secret=settings.paymob_hmac_secret,
                base_url=settings.paymob_base_url,
                iframe_base_url=settings.paymob_iframe_base_url,
                key_expiration_seconds=settings.payment_key_expiration_seconds,
            )
        else:
            _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
