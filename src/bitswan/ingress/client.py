"""HTTP control plane for the Caddy admin API."""

import logging
import random
import time
from typing import Any

import httpx

from bitswan.core.types import IngressConfig
from bitswan.ingress.base import ControlPlane
from bitswan.ingress.errors import StatusError, TransportError

logger = logging.getLogger(__name__)

# Failures raised before the request reached the server.
UNSENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


class CaddyControlPlane(ControlPlane):
    """Control plane talking to a Caddy admin endpoint over HTTP.

    Every call carries a bounded timeout. Connection failures and timeouts
    are retried with exponential backoff and full jitter. POST appends to
    a list, so it is retried only when the request was never sent. Status
    errors are returned to the caller immediately.
    """

    def __init__(
        self,
        config: IngressConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the control plane.

        Args:
            config: Ingress configuration. Uses defaults if None.
            http_client: Optional preconfigured httpx client.
        """
        self._config = config or IngressConfig()
        self._base_url = self._config.admin_url.rstrip("/")
        self._client = http_client or httpx.Client()
        self._owns_client = http_client is None

    @property
    def base_url(self) -> str:
        """Get the admin API base URL."""
        return self._base_url

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "CaddyControlPlane":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def send(self, method: str, path: str, payload: Any = None) -> bytes:
        """Send one request to the admin API.

        Args:
            method: HTTP verb.
            path: Path into the config tree.
            payload: Optional JSON-serializable body.

        Returns:
            Response body, verbatim.
        """
        method = method.upper()
        resp = self._request_with_retry(method, path, payload)

        if method == "DELETE" and resp.status_code == 404:
            logger.debug("DELETE %s: already absent", path)
            return b""

        if not 200 <= resp.status_code < 300:
            raise StatusError(resp.status_code, method, path, resp.text)

        return resp.content

    def _request_with_retry(
        self, method: str, path: str, payload: Any
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        attempts = self._config.max_retries + 1

        for attempt in range(attempts):
            try:
                return self._client.request(
                    method,
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                    timeout=self._config.timeout,
                )
            except httpx.TransportError as e:
                retryable = method != "POST" or isinstance(e, UNSENT_ERRORS)
                if not retryable or attempt + 1 >= attempts:
                    message = str(e) or type(e).__name__
                    raise TransportError(method, path, message) from e
                delay = self._backoff_delay(attempt)
                logger.warning(
                    "%s %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    method,
                    path,
                    attempt + 1,
                    attempts,
                    delay,
                    e,
                )
                time.sleep(delay)

        raise TransportError(method, path, "exhausted retries with no response")

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with full jitter."""
        delay = min(
            self._config.backoff_base * (2**attempt), self._config.backoff_max
        )
        return random.uniform(0, delay)

    def ping(self) -> bool:
        """Check whether the admin API answers at all.

        Returns:
            True if any HTTP response was received.
        """
        try:
            self._client.get(f"{self._base_url}/config/", timeout=2.0)
        except httpx.HTTPError:
            return False
        return True
