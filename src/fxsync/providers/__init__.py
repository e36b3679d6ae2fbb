"""
fxsync Rate Providers Module

Built-in providers: ECB (XML feed, always on) and Fixer.io (JSON, API key).
"""

from fxsync.providers.base import BaseRateProvider, FetchError
from fxsync.providers.ecb import EcbProvider
from fxsync.providers.fixer import FixerProvider
from fxsync.providers.registry import (
    ProviderEntry,
    ProviderRegistry,
    build_default_registry,
)

__all__ = [
    "BaseRateProvider",
    "FetchError",
    "EcbProvider",
    "FixerProvider",
    "ProviderEntry",
    "ProviderRegistry",
    "build_default_registry",
]
