"""
Logging configuration for the weather station collector.

The collector and the maintenance scripts share one setup: console output
plus a rotating log file and a rotating errors-only file per process name.
Per-station messages go through station_logger so every line carries the
station id in the same "[Station N]" form.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from weather_collector.config import settings

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUPS = 5


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(process_name: str = "weather_collector"):
    """
    Configure application logging.

    Args:
        process_name: Base name for the log files, so scripts run next to
            the collector do not write into its files

    Returns:
        The configured root logger
    """
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(settings.LOG_LEVEL)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    if settings.DEBUG:
        log_format = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    else:
        log_format = logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    console_handler.setFormatter(log_format)
    logger.addHandler(console_handler)

    logger.addHandler(_rotating_handler(log_dir / f"{process_name}.log", logging.INFO, log_format))
    # Dropped messages and storage faults
    logger.addHandler(_rotating_handler(log_dir / f"{process_name}_errors.log", logging.ERROR, log_format))

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiomqtt").setLevel(logging.WARNING)

    logger.info("=" * 60)
    logger.info(f"{settings.SERVICE_NAME} - Logging initialized ({process_name})")
    logger.info(f"Log Level: {settings.LOG_LEVEL}")
    logger.info(f"Debug Mode: {settings.DEBUG}")
    logger.info("=" * 60)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


class StationLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with the station it concerns."""

    def process(self, msg, kwargs):
        return f"[Station {self.extra['station_id']}] {msg}", kwargs


def station_logger(logger: logging.Logger, station_id: int) -> StationLoggerAdapter:
    """
    Wrap a module logger for messages about one station.

    Args:
        logger: Module logger from get_logger
        station_id: Station the messages concern

    Returns:
        Adapter that also records station_id on each log record
    """
    return StationLoggerAdapter(logger, {"station_id": station_id})
