"""
Base Rate Provider Interface

A provider fetches rates from exactly one external source and normalizes them
into ``ExchangeRateRecord`` values.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fxsync.models import ExchangeRateRecord

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a provider cannot deliver rates."""

    def __init__(
        self,
        message: str,
        provider: str,
        error_type: str = "UNKNOWN",
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.provider = provider
        self.error_type = error_type
        self.details = details or {}


class BaseRateProvider(ABC):
    """
    Abstract base class for exchange rate providers.

    Configuration is fixed at construction; instances keep no state between
    ``fetch_rates`` calls. ``is_enabled`` must never touch the network.
    """

    PROVIDER_NAME: str = "base"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        retry_attempts: int = 3,
    ):
        self._client = client
        self.timeout = timeout
        self.retry_attempts = retry_attempts

    @property
    def name(self) -> str:
        """Human-readable identifier used in logs and results."""
        return self.PROVIDER_NAME

    @abstractmethod
    def is_enabled(self) -> bool:
        """Whether the provider is configured well enough to be used."""

    @abstractmethod
    async def fetch_rates(self) -> list[ExchangeRateRecord]:
        """
        Fetch and normalize the current rates.

        Returns:
            Records sharing a single ``observed_at``. Empty when disabled.

        Raises:
            FetchError: On network, HTTP status or payload errors
        """

    async def _request(
        self,
        url: str,
        params: dict[str, Any] | None = None
    ) -> httpx.Response:
        """
        GET ``url`` with the configured timeout.

        Transport errors are retried with exponential backoff; HTTP status
        errors are not. Every failure surfaces as ``FetchError``.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._send(url, params)
            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            raise FetchError(
                message=f"HTTP error: {e.response.status_code}",
                provider=self.name,
                error_type=f"HTTP_{e.response.status_code}",
                details={"url": url}
            ) from e

        except httpx.TimeoutException as e:
            raise FetchError(
                message="Request timeout",
                provider=self.name,
                error_type="TIMEOUT",
                details={"timeout_seconds": self.timeout}
            ) from e

        except httpx.RequestError as e:
            raise FetchError(
                message=f"Request failed: {e.__class__.__name__}",
                provider=self.name,
                error_type="REQUEST_ERROR",
                details={"url": url}
            ) from e

    async def _send(
        self,
        url: str,
        params: dict[str, Any] | None
    ) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, params=params, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url, params=params)
