"""
HTTP infrastructure layer with bounded timeouts and retry logic.

Provides:
- RetryConfig: Exponential backoff configuration
- HTTPClient: Async HTTP client with automatic retry

This layer separates HTTP concerns (timeouts, retries, backoff) from
domain logic (document mapping) in the adapters.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """
    Exponential backoff configuration for HTTP retries.

    Formula: min(max_backoff, base_delay * 2^attempt) * (1 + random(0, jitter_factor))
    """

    max_retries: int = 2
    max_backoff_seconds: float = 30.0
    base_delay: float = 1.0
    jitter_factor: float = 0.1

    def calculate_backoff(self, attempt: int) -> float:
        """
        Calculate backoff duration for a given retry attempt.

        Args:
            attempt: The retry attempt number (0-indexed)

        Returns:
            Backoff duration in seconds with jitter applied
        """
        delay = min(self.base_delay * (2**attempt), self.max_backoff_seconds)
        return delay + delay * self.jitter_factor * random.random()

    def is_retryable_status(self, status_code: int) -> bool:
        """429 and the transient 5xx family are retried."""
        return status_code in {429, 500, 502, 503, 504}


_RETRYABLE_EXCEPTIONS = (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError)


class HTTPClientError(Exception):
    """Raised on non-retryable errors or once retries are exhausted."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class HTTPClient:
    """
    Async HTTP client with retry logic.

    Every request carries the configured timeout, so a hanging endpoint
    costs at most (max_retries + 1) * timeout plus backoff.

    Example:
        async with HTTPClient(RetryConfig(max_retries=2), timeout=15.0) as client:
            response = await client.get(
                "https://intranet.example.com/search/export",
                params={"secret": "token"},
            )
    """

    def __init__(
        self,
        retry_config: RetryConfig | None = None,
        timeout: float = 30.0,
    ):
        """
        Initialize HTTP client.

        Args:
            retry_config: Configuration for retry behavior. Uses defaults if None.
            timeout: Request timeout in seconds.
        """
        self.retry_config = retry_config or RetryConfig()
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Perform GET request with retry logic.

        Returns:
            httpx.Response with a 2xx status

        Raises:
            HTTPClientError: On non-retryable errors or after retries exhausted
        """
        if not self._client:
            raise RuntimeError("HTTPClient must be used as async context manager")

        last_status_code: int | None = None
        last_response_body: str | None = None
        attempts = self.retry_config.max_retries + 1

        for attempt in range(attempts):
            try:
                response = await self._client.get(url, params=params, headers=headers)

                if self.retry_config.is_retryable_status(response.status_code):
                    last_status_code = response.status_code
                    last_response_body = response.text

                    if attempt < self.retry_config.max_retries:
                        backoff = self.retry_config.calculate_backoff(attempt)
                        logger.warning(
                            f"Retryable status {response.status_code} from {url}, "
                            f"attempt {attempt + 1}/{attempts}, "
                            f"backing off {backoff:.2f}s"
                        )
                        await asyncio.sleep(backoff)
                        continue

                    raise HTTPClientError(
                        f"Request failed with status {response.status_code} after {attempt + 1} attempts",
                        status_code=response.status_code,
                        response_body=last_response_body,
                    )

                if response.status_code >= 300:
                    raise HTTPClientError(
                        f"Request failed with status {response.status_code}",
                        status_code=response.status_code,
                        response_body=response.text,
                    )

                return response

            except _RETRYABLE_EXCEPTIONS as e:
                if attempt < self.retry_config.max_retries:
                    backoff = self.retry_config.calculate_backoff(attempt)
                    logger.warning(
                        f"Retryable error {type(e).__name__} for {url}, "
                        f"attempt {attempt + 1}/{attempts}, "
                        f"backing off {backoff:.2f}s"
                    )
                    await asyncio.sleep(backoff)
                    continue

                raise HTTPClientError(
                    f"Request failed after {attempt + 1} attempts: {type(e).__name__}",
                    status_code=last_status_code,
                ) from e

            except httpx.HTTPError as e:
                raise HTTPClientError(f"Request failed: {type(e).__name__}") from e

        raise HTTPClientError(
            f"Request failed after {attempts} attempts",
            status_code=last_status_code,
            response_body=last_response_body,
        )
