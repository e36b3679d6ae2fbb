"""
fxsync Configuration Management

Provider credentials and connection details are read from the environment
(or a local .env file), never from code.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # === ECB Provider ===
    ecb_url: str = Field(
        default="https://www.ecb.europa.eu/stats/eurofxref/eurofxref-daily.xml",
        description="ECB daily reference rates XML feed"
    )
    ecb_priority: int = Field(default=10)
    ecb_enabled: bool = Field(
        default=True,
        description="Register the ECB provider at startup"
    )

    # === Fixer Provider ===
    fixer_api_key: str = Field(
        default="",
        description="Fixer.io API key (provider disabled when empty)"
    )
    fixer_base_currency: str = Field(default="EUR")
    fixer_url: str = Field(default="http://data.fixer.io/api/latest")
    fixer_priority: int = Field(default=5)

    # === HTTP ===
    http_timeout_seconds: float = Field(default=10.0)
    http_retry_attempts: int = Field(default=3, ge=1)

    # === Synchronization ===
    concurrent_fetch: bool = Field(
        default=False,
        description="Fetch providers in parallel, reconcile serially"
    )

    # === Database Configuration ===
    database_host: str = Field(default="localhost")
    database_port: int = Field(default=5432)
    database_name: str = Field(default="fxsync")
    database_user: str = Field(default="fxsync")
    database_password: str = Field(default="")
    database_ssl_mode: str = Field(default="prefer")

    # === Scheduler Configuration ===
    scheduler_cron_hour: int = Field(default=16, description="Daily job hour")
    scheduler_cron_minute: int = Field(default=30, description="Daily job minute")
    scheduler_timezone: str = Field(default="Europe/Berlin")

    # === Logging ===
    log_level: str = Field(default="INFO")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
