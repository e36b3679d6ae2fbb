"""
European Central Bank (ECB) Provider

Daily euro foreign exchange reference rates, published as an XML feed.
No API key required.
Feed documentation: https://www.ecb.europa.eu/stats/eurofxref/
"""

import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone

import httpx

from fxsync.models import ExchangeRateRecord
from fxsync.providers.base import BaseRateProvider, FetchError

logger = logging.getLogger(__name__)


class EcbProvider(BaseRateProvider):
    """
    Client for the ECB eurofxref daily feed.

    All rates are quoted against EUR. Response format:
    gesmes:Envelope / Cube / Cube[@time] / Cube[@currency][@rate]
    """

    PROVIDER_NAME = "ECB (European Central Bank)"
    BASE_CURRENCY = "EUR"
    DEFAULT_URL = "https://www.ecb.europa.eu/stats/eurofxref/eurofxref-daily.xml"

    CUBE_TAG = "{http://www.ecb.int/vocabulary/2002-08-01/eurofxref}Cube"

    def __init__(
        self,
        url: str = DEFAULT_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        retry_attempts: int = 3,
    ):
        super().__init__(client=client, timeout=timeout, retry_attempts=retry_attempts)
        self.url = url

    def is_enabled(self) -> bool:
        # Needs no configuration
        return True

    async def fetch_rates(self) -> list[ExchangeRateRecord]:
        logger.info("Fetching exchange rates from ECB")

        try:
            response = await self._request(self.url)
            rates = self.parse(response.content)
        except FetchError as e:
            logger.error(f"ECB fetch failed: {e}")
            raise

        logger.info(f"ECB fetched {len(rates)} exchange rates")
        return rates

    def parse(self, content: bytes | str) -> list[ExchangeRateRecord]:
        """
        Parse an eurofxref document into EUR-based records.

        Raises:
            FetchError: If the document is malformed, has no dated Cube or
                contains no rate Cubes
        """
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise FetchError(
                message=f"XML parse error: {e}",
                provider=self.name,
                error_type="PARSE_ERROR",
            ) from e

        cubes = list(root.iter(self.CUBE_TAG))

        date_cube = next((c for c in cubes if c.get("time") is not None), None)
        if date_cube is None:
            raise FetchError(
                message="Could not extract date from ECB response",
                provider=self.name,
                error_type="MISSING_DATA",
            )

        try:
            observed_at = datetime.strptime(
                date_cube.get("time"), "%Y-%m-%d"
            ).replace(tzinfo=timezone.utc)
        except ValueError as e:
            raise FetchError(
                message=f"Invalid date in ECB response: {date_cube.get('time')}",
                provider=self.name,
                error_type="PARSE_ERROR",
            ) from e

        rate_cubes = [
            c for c in cubes
            if c.get("currency") is not None and c.get("rate") is not None
        ]
        if not rate_cubes:
            raise FetchError(
                message="No exchange rates found in ECB response",
                provider=self.name,
                error_type="MISSING_DATA",
            )

        rates: list[ExchangeRateRecord] = []
        for cube in rate_cubes:
            try:
                ratio = float(cube.get("rate"))
            except ValueError as e:
                raise FetchError(
                    message=f"Invalid rate for {cube.get('currency')}: {cube.get('rate')}",
                    provider=self.name,
                    error_type="PARSE_ERROR",
                ) from e

            rates.append(
                ExchangeRateRecord(
                    source_currency=self.BASE_CURRENCY,
                    target_currency=cube.get("currency"),
                    ratio=ratio,
                    observed_at=observed_at,
                )
            )

        return rates
