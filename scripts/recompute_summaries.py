"""
Recompute hourly and daily summaries from stored readings.

Backfill for summaries that are missing or stale, e.g. after readings were
loaded outside the collector. Every hour and reference-timezone day that
contains at least one reading in the range is recomputed with the same
operations the collector runs per message, so rerunning is harmless.

Usage:
    python scripts/recompute_summaries.py --start 2024-03-01 --end 2024-03-31
    python scripts/recompute_summaries.py --start 2024-03-01 --end 2024-03-31 --station-id 7
"""

import asyncio
import sys
import argparse
from pathlib import Path
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from weather_collector.config import settings
from weather_collector.crud.station import station as station_crud
from weather_collector.models.reading import WeatherReading
from weather_collector.utils.aggregation import (
    hour_window,
    local_date,
    recompute_daily,
    recompute_hourly,
)
from weather_collector.utils.logging_config import setup_logging, get_logger

logger = get_logger(__name__)


def _utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every stored instant is UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


async def _reading_instants(
    db: AsyncSession,
    station_id: int,
    start: datetime,
    end: datetime
) -> List[datetime]:
    result = await db.execute(
        select(WeatherReading.date).where(
            and_(
                WeatherReading.station_id == station_id,
                WeatherReading.date >= start,
                WeatherReading.date < end
            )
        ).order_by(WeatherReading.date)
    )
    return [_utc(instant) for instant in result.scalars().all()]


async def recompute_station(
    db: AsyncSession,
    station_id: int,
    start: datetime,
    end: datetime,
    tz: ZoneInfo
) -> Dict[str, int]:
    """
    Recompute every bucket holding a reading of one station in [start, end).

    Args:
        db: Database session
        station_id: Station ID
        start: UTC range start (inclusive)
        end: UTC range end (exclusive)
        tz: Reference timezone for daily buckets

    Returns:
        Dictionary with the number of hourly and daily buckets recomputed
    """
    instants = await _reading_instants(db, station_id, start, end)

    hours: Dict[datetime, datetime] = {}
    days: Dict[date, datetime] = {}
    for instant in instants:
        hours.setdefault(hour_window(instant)[0], instant)
        days.setdefault(local_date(instant, tz), instant)

    for instant in hours.values():
        await recompute_hourly(db, station_id, instant)
    for instant in days.values():
        await recompute_daily(db, station_id, instant, tz)

    return {'readings': len(instants), 'hourly': len(hours), 'daily': len(days)}


async def recompute_range(
    session_factory: async_sessionmaker[AsyncSession],
    start_date: date,
    end_date: date,
    station_id: Optional[int] = None,
    tz: Optional[ZoneInfo] = None
) -> Dict[str, int]:
    """
    Recompute summaries for one or all stations over a UTC date range.

    Args:
        session_factory: Session factory for the target database
        start_date: First UTC date (inclusive)
        end_date: Last UTC date (inclusive)
        station_id: Optional station ID to process only one station
        tz: Reference timezone (defaults to settings.REFERENCE_TIMEZONE)

    Returns:
        Totals of stations, readings, hourly and daily buckets processed
    """
    tz = tz or ZoneInfo(settings.REFERENCE_TIMEZONE)
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)

    totals = {'stations': 0, 'readings': 0, 'hourly': 0, 'daily': 0}

    async with session_factory() as db:
        if station_id is not None:
            station_ids: List[int] = [station_id] if await station_crud.exists(db, station_id) else []
            if not station_ids:
                logger.error(f"Station not found: {station_id}")
                return totals
        else:
            station_ids = await station_crud.get_ids(db)

        for sid in station_ids:
            counts = await recompute_station(db, sid, start, end, tz)
            logger.info(
                f"  Station {sid}: {counts['readings']} reading(s), "
                f"{counts['hourly']} hourly and {counts['daily']} daily bucket(s)"
            )
            for key in ('readings', 'hourly', 'daily'):
                totals[key] += counts[key]

    totals['stations'] = len(station_ids)
    return totals


async def run(start_date: date, end_date: date, station_id: Optional[int] = None):
    """Recompute against the configured database and report totals."""
    from weather_collector.database import async_session, engine

    logger.info("=" * 70)
    logger.info("Weather Collector - Summary Recompute")
    logger.info("=" * 70)
    logger.info(f"UTC date range: {start_date.isoformat()} to {end_date.isoformat()}")
    logger.info(f"Reference timezone: {settings.REFERENCE_TIMEZONE}")
    logger.info("")

    try:
        totals = await recompute_range(async_session, start_date, end_date, station_id)
    finally:
        await engine.dispose()

    logger.info("=" * 70)
    logger.info("RECOMPUTE COMPLETE")
    logger.info("=" * 70)
    logger.info(f"Stations processed: {totals['stations']}")
    logger.info(f"Readings scanned: {totals['readings']}")
    logger.info(f"Hourly summaries: {totals['hourly']}")
    logger.info(f"Daily summaries: {totals['daily']}")
    logger.info("=" * 70)


def main():
    """Command-line entry point."""
    parser = argparse.ArgumentParser(
        description="Recompute hourly and daily summaries from stored readings"
    )
    parser.add_argument(
        '--start',
        type=date.fromisoformat,
        required=True,
        help='First UTC date, YYYY-MM-DD'
    )
    parser.add_argument(
        '--end',
        type=date.fromisoformat,
        required=True,
        help='Last UTC date (inclusive), YYYY-MM-DD'
    )
    parser.add_argument(
        '--station-id',
        type=int,
        help='Recompute one station only'
    )

    args = parser.parse_args()
    if args.end < args.start:
        parser.error("--end must not be before --start")

    setup_logging("recompute_summaries")
    asyncio.run(run(args.start, args.end, args.station_id))


if __name__ == "__main__":
    main()
