"""
Async HTTP client wrapper for provider requests.
Includes timeout management and metrics collection. One attempt per call:
the next scheduled cycle is the retry.
"""
from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from shared.config import get_settings
from shared.utils.logging import get_logger
from shared.utils.metrics import PROVIDER_LATENCY, PROVIDER_REQUESTS

logger = get_logger(__name__)


class ProviderFetchError(Exception):
    """A provider request failed (transport, status, or body)."""

    def __init__(self, provider: str, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider}: {reason}")


class ProviderHTTPClient:
    """
    Async HTTP client tailored for live-score provider endpoints.
    Handles timeouts and records metrics per request.
    """

    def __init__(
        self,
        provider_name: str,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._provider = provider_name
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_s or settings.provider_request_timeout_s
        self._default_headers = headers or {}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        """Initialize the underlying httpx client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._default_headers,
            timeout=httpx.Timeout(self._timeout, connect=5.0),
            follow_redirects=True,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        """
        Perform a single GET request with metrics and structured logging.

        Raises:
            ProviderFetchError: On timeout, transport error, or non-2xx status.
        """
        if not self._client:
            raise RuntimeError("ProviderHTTPClient not started. Call start() first.")

        start_time = time.perf_counter()
        status = "unknown"
        try:
            resp = await self._client.get(path, params=params)
            status = str(resp.status_code)
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            status = "timeout"
            logger.warning("provider_timeout", provider=self._provider, path=path)
            raise ProviderFetchError(self._provider, "timeout") from exc
        except httpx.HTTPStatusError as exc:
            logger.error(
                "provider_http_error",
                provider=self._provider,
                path=path,
                status=exc.response.status_code,
            )
            raise ProviderFetchError(self._provider, f"http {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            status = "error"
            logger.error("provider_request_error", provider=self._provider, path=path, error=str(exc))
            raise ProviderFetchError(self._provider, f"{type(exc).__name__}: {exc}") from exc
        finally:
            PROVIDER_REQUESTS.labels(provider=self._provider, status=status).inc()
            PROVIDER_LATENCY.labels(provider=self._provider).observe(time.perf_counter() - start_time)

        logger.debug(
            "provider_request_success",
            provider=self._provider,
            path=path,
            status=resp.status_code,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return resp

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET and decode a JSON body."""
        resp = await self.get(path, params=params)
        try:
            return resp.json()
        except ValueError as exc:
            raise ProviderFetchError(self._provider, f"invalid json: {exc}") from exc
