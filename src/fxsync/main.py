"""
fxsync Command Line Entry Point

Sub-commands:
  sync        Run one synchronization and exit (exit code 1 on any error)
  providers   List registered providers and whether they are enabled
  schedule    Run once now, then daily at the configured time
  init-db     Create tables and optionally register currency codes
"""

import argparse
import asyncio
import logging
import sys

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from fxsync import __version__
from fxsync.config import Settings, get_settings
from fxsync.database import close_pool, ensure_schema
from fxsync.models import SynchronizationResult
from fxsync.providers import build_default_registry
from fxsync.repository import PostgresCurrencyRepository, PostgresRateStore
from fxsync.synchronizer import ExchangeRateSynchronizer

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def build_synchronizer(
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> ExchangeRateSynchronizer:
    """Wire the default registry to the Postgres repositories."""
    settings = settings or get_settings()
    return ExchangeRateSynchronizer(
        providers=build_default_registry(settings, client=client),
        rate_store=PostgresRateStore(),
        currency_lookup=PostgresCurrencyRepository(),
        concurrent_fetch=settings.concurrent_fetch,
    )


def log_providers(synchronizer: ExchangeRateSynchronizer) -> None:
    logger.info("Available providers:")
    for status in synchronizer.get_available_providers():
        icon = "✓ Enabled" if status.enabled else "✗ Disabled"
        logger.info(f"  {status.name}: {icon}")


async def run_sync(synchronizer: ExchangeRateSynchronizer) -> SynchronizationResult:
    """Run one synchronization and log its outcome."""
    log_providers(synchronizer)

    result = await synchronizer.synchronize()

    if result.success:
        logger.info(f"✅ Synchronization completed ({result.status.value})")
    else:
        logger.warning("⚠️ Synchronization completed with errors")

    logger.info(f"Rates created: {result.rates_created}")
    logger.info(f"Rates updated: {result.rates_updated}")
    logger.info(f"Providers used: {', '.join(result.providers_used)}")
    logger.info(f"Errors: {len(result.errors)}")
    for error in result.errors:
        logger.error(f"  {error}")

    return result


async def _sync_command(settings: Settings) -> int:
    try:
        result = await run_sync(build_synchronizer(settings))
    finally:
        await close_pool()
    return 0 if not result.errors else 1


async def _providers_command(settings: Settings) -> int:
    log_providers(build_synchronizer(settings))
    return 0


async def _schedule_command(settings: Settings) -> int:
    synchronizer = build_synchronizer(settings)

    async def scheduled_job():
        logger.info("⏰ Scheduled synchronization triggered")
        await run_sync(synchronizer)

    scheduler = AsyncIOScheduler(timezone=settings.scheduler_timezone)
    scheduler.add_job(
        scheduled_job,
        CronTrigger(
            hour=settings.scheduler_cron_hour,
            minute=settings.scheduler_cron_minute
        ),
        id="daily_exchange_rate_sync",
        name="Daily Exchange Rate Synchronization",
        replace_existing=True
    )

    await scheduled_job()

    scheduler.start()
    logger.info(
        f"⏰ Scheduler started: Daily job at "
        f"{settings.scheduler_cron_hour:02d}:{settings.scheduler_cron_minute:02d} "
        f"{settings.scheduler_timezone}"
    )

    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown()
        logger.info("⏰ Scheduler stopped")
        await close_pool()
    return 0


async def _init_db_command(currencies: list[str]) -> int:
    try:
        await ensure_schema(currencies)
    finally:
        await close_pool()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fxsync",
        description="Synchronize exchange rates from external providers"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("sync", help="Synchronize exchange rates once")
    sub.add_parser("providers", help="List providers and their status")
    sub.add_parser("schedule", help="Synchronize now and then daily")

    init_db = sub.add_parser("init-db", help="Create database tables")
    init_db.add_argument(
        "--currencies",
        default="",
        help="Comma-separated currency codes to register (e.g. EUR,USD,GBP)"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    if args.command == "sync":
        coro = _sync_command(settings)
    elif args.command == "providers":
        coro = _providers_command(settings)
    elif args.command == "schedule":
        coro = _schedule_command(settings)
    else:
        coro = _init_db_command(args.currencies.split(","))

    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        logger.info("🛑 Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
