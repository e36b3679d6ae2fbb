"""
Fixer.io Provider

Latest rates from the Fixer.io REST API. Requires an API key; the base
currency is configurable (EUR by default).
API Documentation: https://fixer.io/documentation
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from fxsync.models import ExchangeRateRecord
from fxsync.providers.base import BaseRateProvider, FetchError

logger = logging.getLogger(__name__)


class FixerProvider(BaseRateProvider):
    """
    Client for Fixer.io ``/latest``.

    Response format:
    {"success": true, "base": "EUR", "date": "2024-10-17", "rates": {"USD": 1.0845}}
    {"success": false, "error": {"code": 101, "info": "..."}}
    """

    PROVIDER_NAME = "Fixer.io"
    DEFAULT_URL = "http://data.fixer.io/api/latest"
    DEFAULT_BASE_CURRENCY = "EUR"

    def __init__(
        self,
        api_key: str | None = None,
        base_currency: str | None = DEFAULT_BASE_CURRENCY,
        url: str = DEFAULT_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        retry_attempts: int = 3,
    ):
        super().__init__(client=client, timeout=timeout, retry_attempts=retry_attempts)
        self.api_key = api_key
        self.base_currency = base_currency or self.DEFAULT_BASE_CURRENCY
        self.url = url

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    async def fetch_rates(self) -> list[ExchangeRateRecord]:
        if not self.is_enabled():
            logger.warning("Fixer provider is disabled (no API key configured)")
            return []

        logger.info(f"Fetching exchange rates from Fixer.io (base {self.base_currency})")

        try:
            response = await self._request(
                self.url,
                params={"access_key": self.api_key, "base": self.base_currency}
            )
            try:
                data = response.json()
            except ValueError as e:
                raise FetchError(
                    message=f"Invalid JSON from Fixer API: {e}",
                    provider=self.name,
                    error_type="PARSE_ERROR",
                ) from e
            rates = self.parse(data)
        except FetchError as e:
            logger.error(f"Fixer fetch failed: {e}")
            raise

        logger.info(f"Fixer fetched {len(rates)} exchange rates")
        return rates

    def parse(self, data: Any) -> list[ExchangeRateRecord]:
        """
        Normalize a decoded ``/latest`` payload.

        Raises:
            FetchError: If ``success`` is not true or ``rates`` is missing or
                malformed
        """
        if not isinstance(data, dict):
            raise FetchError(
                message="Invalid response format from Fixer API",
                provider=self.name,
                error_type="PARSE_ERROR",
            )

        if not data.get("success"):
            error = data.get("error")
            info = error.get("info") if isinstance(error, dict) else None
            raise FetchError(
                message=f"Fixer API error: {info or 'Unknown error'}",
                provider=self.name,
                error_type="API_ERROR",
                details=error if isinstance(error, dict) else {}
            )

        rates_data = data.get("rates")
        if not isinstance(rates_data, dict):
            raise FetchError(
                message="Invalid response format from Fixer API",
                provider=self.name,
                error_type="PARSE_ERROR",
            )

        observed_at = self._parse_date(data.get("date"))

        rates: list[ExchangeRateRecord] = []
        for target_currency, value in rates_data.items():
            try:
                ratio = float(value)
            except (TypeError, ValueError) as e:
                raise FetchError(
                    message=f"Invalid rate for {target_currency}: {value!r}",
                    provider=self.name,
                    error_type="PARSE_ERROR",
                ) from e

            rates.append(
                ExchangeRateRecord(
                    source_currency=self.base_currency,
                    target_currency=target_currency,
                    ratio=ratio,
                    observed_at=observed_at,
                )
            )

        return rates

    def _parse_date(self, value: Any) -> datetime:
        if not value:
            return datetime.now(timezone.utc)
        try:
            return datetime.strptime(str(value), "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except ValueError as e:
            raise FetchError(
                message=f"Invalid date in Fixer response: {value}",
                provider=self.name,
                error_type="PARSE_ERROR",
            ) from e
