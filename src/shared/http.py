"""Cross-service HTTP client with bounded timeouts and bounded retries.

Transport errors, 5xx and 429 responses are retried with exponential backoff.
Once attempts are exhausted the call raises ``UpstreamUnavailable``. Other 4xx
responses are returned to the caller, which maps them onto its own domain.
"""

import httpx
import structlog
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from shared.errors import UpstreamUnavailable
from shared.settings import get_settings

logger = structlog.get_logger(__name__)

INTERNAL_TOKEN_HEADER = "X-Internal-Token"

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class RetryableResponse(Exception):
    def __init__(self, response: httpx.Response) -> None:
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


class ServiceClient:
    """Thin wrapper over ``httpx.Client`` used for every service-to-service call."""

    def __init__(
        self,
        base_url: str,
        *,
        internal_token: str | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        headers = {}
        if internal_token:
            headers[INTERNAL_TOKEN_HEADER] = internal_token
        self.base_url = base_url
        self.max_attempts = max_attempts or settings.http_max_attempts
        self.backoff_seconds = settings.http_backoff_seconds if backoff_seconds is None else backoff_seconds
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout or settings.http_timeout_seconds,
            headers=headers,
            transport=transport,
        )

    def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        retryer = Retrying(
            retry=retry_if_exception_type((httpx.TransportError, RetryableResponse)),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=10),
            reraise=True,
        )
        try:
            for attempt in retryer:
                with attempt:
                    response = self._client.request(method, path, **kwargs)
                    if response.status_code in _RETRYABLE_STATUS:
                        raise RetryableResponse(response)
        except RetryableResponse as exc:
            logger.warning(
                "upstream_error_status",
                base_url=self.base_url,
                path=path,
                status_code=exc.response.status_code,
                attempts=self.max_attempts,
            )
            raise UpstreamUnavailable(
                f"{self.base_url} answered {exc.response.status_code}", upstream_status=exc.response.status_code
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("upstream_unreachable", base_url=self.base_url, path=path, error=str(exc))
            raise UpstreamUnavailable(f"{self.base_url} is unreachable") from exc
        return response

    def get(self, path: str, **kwargs) -> httpx.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> httpx.Response:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> httpx.Response:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs) -> httpx.Response:
        return self.request("PATCH", path, **kwargs)

    def close(self) -> None:
        self._client.close()
