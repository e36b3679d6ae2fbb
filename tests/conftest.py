"""
Shared test doubles: in-memory repositories and stub providers.
"""

from datetime import datetime, timezone

import httpx
import pytest

from fxsync.models import Currency, ExchangeRate, ExchangeRateRecord
from fxsync.providers.base import BaseRateProvider


OBSERVED_AT = datetime(2024, 10, 17, tzinfo=timezone.utc)


def make_records(source: str, rates: list[tuple[str, float]]) -> list[ExchangeRateRecord]:
    return [
        ExchangeRateRecord(
            source_currency=source,
            target_currency=target,
            ratio=ratio,
            observed_at=OBSERVED_AT,
        )
        for target, ratio in rates
    ]


def mock_client(handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class InMemoryCurrencyLookup:
    def __init__(self, codes: list[str]):
        self.currencies = {
            code: Currency(id=idx, code=code)
            for idx, code in enumerate(codes, start=1)
        }

    async def find_by_code(self, code: str) -> Currency | None:
        return self.currencies.get(code)


class InMemoryRateStore:
    """Buffers writes until ``flush()`` like the Postgres store."""

    def __init__(self):
        self.rates: dict[tuple[str, str], ExchangeRate] = {}
        self.pending: dict[tuple[str, str], ExchangeRate] = {}
        self.flushed_batches: list[list[tuple[str, str]]] = []
        self.failing_pairs: set[tuple[str, str]] = set()
        self.flush_error: Exception | None = None

    async def find_by_pair(self, source: str, target: str) -> ExchangeRate | None:
        return self.pending.get((source, target)) or self.rates.get((source, target))

    async def create(self, source: Currency, target: Currency, ratio: float) -> ExchangeRate:
        if (source.code, target.code) in self.failing_pairs:
            raise RuntimeError("write failed")
        rate = ExchangeRate(source_currency=source, target_currency=target, ratio=ratio)
        self.pending[rate.pair] = rate
        return rate

    async def update(self, rate: ExchangeRate, ratio: float) -> None:
        if rate.pair in self.failing_pairs:
            raise RuntimeError("write failed")
        rate.ratio = ratio
        self.pending[rate.pair] = rate

    async def flush(self) -> None:
        batch = list(self.pending)
        try:
            if self.flush_error is not None:
                raise self.flush_error
            self.rates.update(self.pending)
            self.flushed_batches.append(batch)
        finally:
            self.pending.clear()


class StubProvider(BaseRateProvider):
    """Provider returning canned records or raising a canned error."""

    def __init__(
        self,
        name: str,
        records: list[ExchangeRateRecord] | None = None,
        error: Exception | None = None,
        enabled: bool = True,
    ):
        super().__init__()
        self._name = name
        self._records = records or []
        self._error = error
        self._enabled = enabled
        self.fetch_calls = 0

    @property
    def name(self) -> str:
        return self._name

    def is_enabled(self) -> bool:
        return self._enabled

    async def fetch_rates(self) -> list[ExchangeRateRecord]:
        self.fetch_calls += 1
        if self._error is not None:
            raise self._error
        return list(self._records)


@pytest.fixture
def currency_lookup():
    return InMemoryCurrencyLookup(["EUR", "USD"])


@pytest.fixture
def rate_store():
    return InMemoryRateStore()
