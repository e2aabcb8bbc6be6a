"""Relay of settled payment outcomes to the orders service.

Delivery is at-least-once: the orders service treats a repeated outcome as a
no-op, so a relay that is retried (here, by tenacity, or later by the
redelivery sweep) is always safe.
"""

from abc import ABC, abstractmethod

from shared.errors import UpstreamUnavailable
from shared.http import ServiceClient
from shared.settings import get_settings


class OutcomeNotifier(ABC):
    @abstractmethod
    def deliver(self, order_id: str, outcome: dict) -> None:
        """Hand the outcome to the orders service; raise ``UpstreamUnavailable`` on failure."""
        ...


class HttpOutcomeNotifier(OutcomeNotifier):
    def __init__(self, client: ServiceClient) -> None:
        self.client = client

    def deliver(self, order_id: str, outcome: dict) -> None:
        response = self.client.put(f"/orders/{order_id}/payment-status", json=outcome)
        if response.is_error:
            raise UpstreamUnavailable(
                f"Orders service refused outcome for {order_id}", upstream_status=response.status_code
            )


class RecordingOutcomeNotifier(OutcomeNotifier):
    """Keeps outcomes in memory; used when no orders service URL is configured."""

    def __init__(self) -> None:
        self.delivered: list[tuple[str, dict]] = []
        self.should_fail = False

    def deliver(self, order_id: str, outcome: dict) -> None:
        if self.should_fail:
            raise UpstreamUnavailable("Orders service unavailable")
        self.delivered.append((order_id, outcome))


_current_notifier: OutcomeNotifier | None = None


def get_notifier() -> OutcomeNotifier:
    global _current_notifier
    if _current_notifier is None:
        settings = get_settings()
        if settings.order_service_url:
            _current_notifier = HttpOutcomeNotifier(
                ServiceClient(settings.order_service_url, internal_token=settings.internal_api_key)
            )
        else:
            _current_notifier = RecordingOutcomeNotifier()
    return _current_notifier


def set_notifier(notifier: OutcomeNotifier) -> None:
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    global _current_notifier
    _current_notifier = None
