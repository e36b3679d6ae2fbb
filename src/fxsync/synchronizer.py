"""
Exchange Rate Synchronizer

Runs every enabled provider in registry order and reconciles the fetched
rates into the rate store. Provider failures and single-rate failures are
recorded in the result; they never abort the run.
"""

import asyncio
import logging
from typing import Iterable

from fxsync.models import (
    ExchangeRateRecord,
    ProviderStatus,
    ReconciliationOutcome,
    SynchronizationResult,
)
from fxsync.providers.base import BaseRateProvider, FetchError
from fxsync.repository import CurrencyLookup, RateStore

logger = logging.getLogger(__name__)


class ReconciliationError(Exception):
    """Creating or updating one rate failed."""

    def __init__(self, message: str, source_currency: str, target_currency: str):
        super().__init__(message)
        self.source_currency = source_currency
        self.target_currency = target_currency


class ExchangeRateSynchronizer:
    """
    Orchestrates providers and reconciliation.

    Providers are processed one at a time. After each provider's records are
    reconciled the rate store is flushed, so a provider's writes are durable
    before the next provider starts.

    With ``concurrent_fetch`` the HTTP fetches of all enabled providers run in
    parallel up front; reconciliation and flushing stay serial and in order.
    """

    def __init__(
        self,
        providers: Iterable[BaseRateProvider],
        rate_store: RateStore,
        currency_lookup: CurrencyLookup,
        concurrent_fetch: bool = False,
    ):
        self.providers: tuple[BaseRateProvider, ...] = tuple(providers)
        self.rate_store = rate_store
        self.currency_lookup = currency_lookup
        self.concurrent_fetch = concurrent_fetch

    async def synchronize(self) -> SynchronizationResult:
        """
        Synchronize rates from all enabled providers.

        Returns:
            SynchronizationResult. ``success`` is true when there were no
            errors or when at least one rate was created or updated.
        """
        logger.info("🚀 Starting exchange rate synchronization")

        rates_created = 0
        rates_updated = 0
        errors: list[str] = []
        providers_used: list[str] = []

        enabled: list[BaseRateProvider] = []
        for provider in self.providers:
            if not provider.is_enabled():
                logger.info(f"Skipping disabled provider: {provider.name}")
                continue
            enabled.append(provider)

        prefetched = await self._prefetch(enabled) if self.concurrent_fetch else None

        for idx, provider in enumerate(enabled):
            logger.info(f"Using provider: {provider.name}")
            providers_used.append(provider.name)

            created = 0
            updated = 0

            try:
                if prefetched is not None:
                    records = self._unwrap(prefetched[idx])
                else:
                    records = await provider.fetch_rates()

                for record in records:
                    try:
                        outcome = await self.reconcile(
                            record.source_currency,
                            record.target_currency,
                            record.ratio,
                        )
                    except ReconciliationError as e:
                        error_msg = (
                            f"Failed to update rate "
                            f"{record.source_currency}/{record.target_currency}: {e}"
                        )
                        logger.warning(error_msg)
                        errors.append(error_msg)
                        continue

                    if outcome is ReconciliationOutcome.CREATED:
                        created += 1
                    elif outcome is ReconciliationOutcome.UPDATED:
                        updated += 1

                await self.rate_store.flush()

            except FetchError as e:
                error_msg = f"Provider {provider.name} failed: {e}"
                logger.error(f"❌ {error_msg}")
                errors.append(error_msg)
                continue

            except Exception as e:
                error_msg = f"Provider {provider.name} failed: {e}"
                logger.error(f"❌ {provider.name} unexpected error: {e}")
                errors.append(error_msg)
                continue

            # Only flushed writes count
            rates_created += created
            rates_updated += updated
            logger.info(f"✅ {provider.name}: created {created}, updated {updated}")

        logger.info(
            f"Synchronization complete. Created: {rates_created}, "
            f"Updated: {rates_updated}, Errors: {len(errors)}"
        )

        return SynchronizationResult(
            success=not errors or (rates_created + rates_updated) > 0,
            rates_created=rates_created,
            rates_updated=rates_updated,
            errors=errors,
            providers_used=providers_used,
        )

    async def reconcile(
        self,
        source_code: str,
        target_code: str,
        ratio: float,
    ) -> ReconciliationOutcome:
        """
        Update the stored rate for the ordered pair, or create it.

        Pairs involving a currency unknown to the system are skipped.

        Raises:
            ReconciliationError: If a lookup or store call fails
        """
        try:
            source = await self.currency_lookup.find_by_code(source_code)
            target = await self.currency_lookup.find_by_code(target_code)

            if source is None:
                logger.debug(f"Source currency {source_code} not found in system, skipping")
                return ReconciliationOutcome.SKIPPED

            if target is None:
                logger.debug(f"Target currency {target_code} not found in system, skipping")
                return ReconciliationOutcome.SKIPPED

            if ratio <= 0:
                # Persisted as-is
                logger.warning(
                    f"Non-positive ratio {ratio} for {source_code}/{target_code}"
                )

            rate = await self.rate_store.find_by_pair(source_code, target_code)

            if rate is not None:
                await self.rate_store.update(rate, ratio)
                logger.debug(f"Updated rate {source_code}/{target_code} = {ratio}")
                return ReconciliationOutcome.UPDATED

            await self.rate_store.create(source, target, ratio)
            logger.debug(f"Created rate {source_code}/{target_code} = {ratio}")
            return ReconciliationOutcome.CREATED

        except Exception as e:
            raise ReconciliationError(str(e), source_code, target_code) from e

    def get_available_providers(self) -> list[ProviderStatus]:
        """List every registered provider with its enabled flag, in order."""
        return [
            ProviderStatus(name=provider.name, enabled=provider.is_enabled())
            for provider in self.providers
        ]

    async def _prefetch(
        self,
        providers: list[BaseRateProvider],
    ) -> list[list[ExchangeRateRecord] | BaseException]:
        logger.info(f"Fetching {len(providers)} providers concurrently")
        return await asyncio.gather(
            *(provider.fetch_rates() for provider in providers),
            return_exceptions=True,
        )

    @staticmethod
    def _unwrap(
        fetched: list[ExchangeRateRecord] | BaseException,
    ) -> list[ExchangeRateRecord]:
        if isinstance(fetched, BaseException):
            raise fetched
        return fetched
