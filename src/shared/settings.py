"""Service settings loaded from the environment (and an optional .env file).

Every service reads the same settings class; a service only uses the keys it
needs. Unset collaborator URLs fall back to in-process fakes, unset storage
URLs fall back to in-memory stores.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service topology
    services: str = Field(default="ordering,payments,inventory", description="Routers mounted by this process")
    order_service_url: str | None = Field(default=None, description="Base URL of the orders service")
    payment_service_url: str | None = Field(default=None, description="Base URL of the payments service")
    product_service_url: str | None = Field(default=None, description="Base URL of the inventory service")
    internal_api_key: str | None = Field(
        default=None, description="Shared secret for service-to-service calls; unset rejects every internal call"
    )

    # Outbound HTTP
    http_timeout_seconds: float = Field(default=5.0, description="Per-request timeout for cross-service calls")
    http_max_attempts: int = Field(default=3, description="Attempts before a call is reported unavailable")
    http_backoff_seconds: float = Field(default=0.5, description="Base delay for exponential backoff")

    # Paymob gateway
    paymob_api_key: str | None = Field(default=None, description="Paymob API key; unset selects the fake gateway")
    paymob_integration_id: str | None = Field(default=None, description="Paymob card integration id")
    paymob_iframe_id: str | None = Field(default=None, description="Paymob hosted iframe id")
    paymob_hmac_secret: str = Field(default="", description="Secret used to sign gateway callbacks")
    paymob_base_url: str = Field(default="https://accept.paymob.com", description="Paymob API base URL")
    paymob_iframe_base_url: str = Field(
        default="https://accept.paymobsolutions.com/api/acceptance/iframes",
        description="Base URL of the hosted checkout iframe",
    )
    payment_currency: str = Field(default="EGP", description="Currency sent to the gateway")
    payment_key_expiration_seconds: int = Field(default=3600, description="Lifetime of a gateway payment key")

    # Storage
    database_url: str | None = Field(default=None, description="SQLAlchemy URL for the stock and claim ledgers")
    redis_url: str | None = Field(default=None, description="Redis URL for the product cache; unset disables it")
    product_cache_ttl_seconds: int = Field(default=300, description="Product detail cache TTL")
    low_stock_threshold: int = Field(default=10, description="Default low-stock threshold for new products")

    # Notifications
    notification_webhook_url: str | None = Field(default=None, description="Where owner notifications are posted")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def enabled_services(self) -> set[str]:
        return {name.strip() for name in self.services.split(",") if name.strip()}


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
