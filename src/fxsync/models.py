"""
fxsync Data Models

Normalized provider output, the persisted rate entities as seen through the
repositories, and the result of one synchronization run.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, computed_field


# === Enums ===

class ReconciliationOutcome(str, Enum):
    """What reconciling a single rate did to the store."""
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"   # unknown source or target currency


class SynchronizationStatus(str, Enum):
    """Finer-grained reading of a run than the ``success`` flag."""
    CLEAN = "clean"        # no errors
    PARTIAL = "partial"    # errors, but some rates were written
    FAILED = "failed"      # errors and nothing written


# === Provider Output ===

class ExchangeRateRecord(BaseModel):
    """
    One normalized exchange rate as returned by a provider.

    ``ratio`` is the amount of ``target_currency`` for one unit of
    ``source_currency``. All records from one fetch share ``observed_at``.
    """
    source_currency: str
    target_currency: str
    ratio: float
    observed_at: datetime

    model_config = {"frozen": True}

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_currency": self.source_currency,
            "target_currency": self.target_currency,
            "ratio": self.ratio,
            "date": self.observed_at.strftime("%Y-%m-%d %H:%M:%S"),
        }


# === Persisted Entities ===

class Currency(BaseModel):
    """A currency known to the system."""
    id: int | None = None
    code: str


class ExchangeRate(BaseModel):
    """
    Stored rate for an ordered currency pair.

    At most one exists per (source, target) direction.
    """
    id: int | None = None
    source_currency: Currency
    target_currency: Currency
    ratio: float
    updated_at: datetime | None = None

    @property
    def pair(self) -> tuple[str, str]:
        return self.source_currency.code, self.target_currency.code


# === Results ===

class ProviderStatus(BaseModel):
    """Entry of the provider listing."""
    name: str
    enabled: bool


class SynchronizationResult(BaseModel):
    """Outcome of one ``synchronize()`` run. Not persisted."""
    success: bool
    rates_created: int = 0
    rates_updated: int = 0
    errors: list[str] = Field(default_factory=list)
    providers_used: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def status(self) -> SynchronizationStatus:
        if not self.errors:
            return SynchronizationStatus.CLEAN
        if self.rates_created + self.rates_updated > 0:
            return SynchronizationStatus.PARTIAL
        return SynchronizationStatus.FAILED
