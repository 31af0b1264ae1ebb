"""
Process entry point for the weather station collector.

Loads station capabilities, connects to the broker, subscribes to one topic
per station and processes messages until SIGINT/SIGTERM. Startup failures
exit with status 1.

Usage:
    weather-collector [--create-tables]
    python -m weather_collector [--create-tables]
"""

import argparse
import asyncio
import signal
import sys
from typing import List, Optional

from weather_collector import __version__
from weather_collector.config import settings
from weather_collector.core.capabilities import CapabilityRegistry
from weather_collector.database import async_session, create_tables, engine
from weather_collector.ingestion import IngestionDispatcher, IngestionPipeline, MqttTransport
from weather_collector.utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


async def run_collector(create_schema: bool = False) -> None:
    """
    Run the collector until cancelled or signalled.

    Args:
        create_schema: Create missing tables before starting
    """
    logger.info("=" * 60)
    logger.info(f"{settings.SERVICE_NAME} {__version__} - starting up")
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")
    logger.info(f"Database: {settings.SQLALCHEMY_DATABASE_URI.split('://')[0]}")
    logger.info(f"Broker: {settings.MQTT_BROKER_HOST}:{settings.MQTT_BROKER_PORT}")
    logger.info(f"Reference timezone: {settings.REFERENCE_TIMEZONE}")
    logger.info("=" * 60)

    try:
        if create_schema:
            await create_tables()
            logger.info("Database tables created")

        registry = CapabilityRegistry(async_session)
        await registry.load()

        pipeline = IngestionPipeline(registry, async_session)
        dispatcher = IngestionDispatcher(
            MqttTransport.from_settings(settings),
            pipeline,
            registry.station_ids(),
        )

        run_task = asyncio.create_task(dispatcher.run())
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, run_task.cancel)
            except NotImplementedError:
                logger.debug(f"Signal handler for {sig.name} not supported on this platform")

        try:
            await run_task
        except asyncio.CancelledError:
            logger.info("Shutdown requested")
        finally:
            await dispatcher.drain()
    finally:
        await engine.dispose()
        logger.info("=" * 60)
        logger.info(f"{settings.SERVICE_NAME} - shut down")
        logger.info("=" * 60)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line entry point.

    Returns:
        Process exit status
    """
    parser = argparse.ArgumentParser(
        prog="weather-collector",
        description="Ingest weather station telemetry and maintain hourly/daily summaries",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create database tables before starting",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    setup_logging()

    try:
        asyncio.run(run_collector(create_schema=args.create_tables))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as exc:
        logger.exception(f"Application startup failed: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
