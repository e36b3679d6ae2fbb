"""
Provider Registry

Ordered, immutable collection of rate providers. Built once at startup;
providers are sorted by descending priority, registration order breaking ties.
"""

import logging
from typing import Iterable, Iterator, NamedTuple

import httpx

from fxsync.config import Settings, get_settings
from fxsync.providers.base import BaseRateProvider
from fxsync.providers.ecb import EcbProvider
from fxsync.providers.fixer import FixerProvider

logger = logging.getLogger(__name__)


class ProviderEntry(NamedTuple):
    priority: int
    provider: BaseRateProvider


class ProviderRegistry:
    """Providers in the order the synchronizer must process them."""

    def __init__(self, entries: Iterable[ProviderEntry | tuple[int, BaseRateProvider]] = ()):
        ordered = sorted(
            (ProviderEntry(*entry) for entry in entries),
            key=lambda entry: -entry.priority,
        )
        self._entries: tuple[ProviderEntry, ...] = tuple(ordered)

    @property
    def providers(self) -> tuple[BaseRateProvider, ...]:
        return tuple(entry.provider for entry in self._entries)

    @property
    def entries(self) -> tuple[ProviderEntry, ...]:
        return self._entries

    def __iter__(self) -> Iterator[BaseRateProvider]:
        return iter(self.providers)

    def __len__(self) -> int:
        return len(self._entries)


def build_default_registry(
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> ProviderRegistry:
    """
    Build the registry of built-in providers from settings.

    Args:
        settings: Defaults to the cached application settings
        client: Optional shared HTTP client handed to every provider
    """
    settings = settings or get_settings()
    http_options = {
        "client": client,
        "timeout": settings.http_timeout_seconds,
        "retry_attempts": settings.http_retry_attempts,
    }

    entries: list[ProviderEntry] = []

    if settings.ecb_enabled:
        entries.append(
            ProviderEntry(settings.ecb_priority, EcbProvider(url=settings.ecb_url, **http_options))
        )

    entries.append(
        ProviderEntry(
            settings.fixer_priority,
            FixerProvider(
                api_key=settings.fixer_api_key,
                base_currency=settings.fixer_base_currency,
                url=settings.fixer_url,
                **http_options,
            ),
        )
    )

    registry = ProviderRegistry(entries)
    logger.info(
        "Provider registry built: "
        + ", ".join(f"{e.provider.name} (priority {e.priority})" for e in registry.entries)
    )
    return registry
