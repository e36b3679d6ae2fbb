"""
Currency and rate repositories

The synchronizer talks to persistence only through the ``CurrencyLookup`` and
``RateStore`` protocols. The Postgres implementations below buffer writes in
a unit of work that ``flush()`` commits in a single transaction.
"""

import logging
from typing import Protocol

from fxsync.database import get_connection
from fxsync.models import Currency, ExchangeRate

logger = logging.getLogger(__name__)


class CurrencyLookup(Protocol):
    async def find_by_code(self, code: str) -> Currency | None:
        ...


class RateStore(Protocol):
    async def find_by_pair(self, source: str, target: str) -> ExchangeRate | None:
        ...

    async def create(self, source: Currency, target: Currency, ratio: float) -> ExchangeRate:
        ...

    async def update(self, rate: ExchangeRate, ratio: float) -> None:
        ...

    async def flush(self) -> None:
        """Durability barrier: pending writes are persisted when this returns."""
        ...


class PostgresCurrencyRepository:
    """Reads the ``currencies`` table."""

    async def find_by_code(self, code: str) -> Currency | None:
        async with get_connection() as conn:
            row = await conn.fetchrow(
                "SELECT id, code FROM currencies WHERE code = $1",
                code
            )
        if not row:
            return None
        return Currency(id=row["id"], code=row["code"])


class PostgresRateStore:
    """
    ``exchange_rates`` table behind a unit of work.

    ``create`` and ``update`` only record the change. Pending rates are kept
    in an identity map keyed by ordered pair, so ``find_by_pair`` returns a
    rate created earlier in the same batch instead of reading the table.
    """

    UPSERT_SQL = """
        INSERT INTO exchange_rates (
            source_currency_id, target_currency_id, ratio, updated_at
        ) VALUES ($1, $2, $3, NOW())
        ON CONFLICT (source_currency_id, target_currency_id) DO UPDATE SET
            ratio = EXCLUDED.ratio,
            updated_at = NOW()
    """

    def __init__(self):
        self._pending: dict[tuple[str, str], ExchangeRate] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def find_by_pair(self, source: str, target: str) -> ExchangeRate | None:
        pending = self._pending.get((source, target))
        if pending is not None:
            return pending

        async with get_connection() as conn:
            row = await conn.fetchrow(
                """
                SELECT
                    r.id, r.ratio, r.updated_at,
                    s.id AS source_id, s.code AS source_code,
                    t.id AS target_id, t.code AS target_code
                FROM exchange_rates r
                JOIN currencies s ON s.id = r.source_currency_id
                JOIN currencies t ON t.id = r.target_currency_id
                WHERE s.code = $1 AND t.code = $2
                """,
                source,
                target
            )

        if not row:
            return None

        return ExchangeRate(
            id=row["id"],
            source_currency=Currency(id=row["source_id"], code=row["source_code"]),
            target_currency=Currency(id=row["target_id"], code=row["target_code"]),
            ratio=row["ratio"],
            updated_at=row["updated_at"],
        )

    async def create(self, source: Currency, target: Currency, ratio: float) -> ExchangeRate:
        rate = ExchangeRate(source_currency=source, target_currency=target, ratio=ratio)
        self._pending[rate.pair] = rate
        return rate

    async def update(self, rate: ExchangeRate, ratio: float) -> None:
        rate.ratio = ratio
        self._pending[rate.pair] = rate

    async def flush(self) -> None:
        if not self._pending:
            return

        pending = list(self._pending.values())
        try:
            async with get_connection() as conn:
                async with conn.transaction():
                    await conn.executemany(
                        self.UPSERT_SQL,
                        [
                            (r.source_currency.id, r.target_currency.id, r.ratio)
                            for r in pending
                        ]
                    )
        finally:
            # A failed batch is dropped, not retried with the next provider
            self._pending.clear()

        logger.debug(f"Flushed {len(pending)} exchange rates")
