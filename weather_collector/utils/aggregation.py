"""
Aggregation utilities for hourly and daily station summaries.

Every recompute is a full scan of the bucket's readings, never a delta
update, so repeated or out-of-order runs converge to the same stored row.

AGGREGATION RULES:
1. RAIN: Always SUM, never average
2. WIND DIRECTION: Circular mean (vector sum of unit sine/cosine components)
3. WIND SPEED: Scalar mean and population standard deviation
4. GUST: Speed and direction of the single strongest gust reading
5. A channel with no samples in the bucket is NULL, never 0

Buckets:
- Hourly: [hour floor, hour floor + 1h) in UTC
- Daily: one calendar date in the reference timezone, whose UTC span is
  23, 24 or 25 hours depending on daylight-saving transitions
"""

import math
import statistics
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from weather_collector.config import settings
from weather_collector.core.exceptions import AggregationError
from weather_collector.crud.readings import reading as reading_crud
from weather_collector.crud.summaries import daily_summary, hourly_summary
from weather_collector.models.reading import WeatherReading
from weather_collector.utils.logging_config import get_logger

logger = get_logger(__name__)


# ============================================================================
# BUCKET DEFINITION UTILITIES
# ============================================================================

def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        raise ValueError(f"Instant must be timezone-aware: {instant!r}")
    return instant.astimezone(timezone.utc)


def hour_window(instant: datetime) -> Tuple[datetime, datetime]:
    """
    Get the UTC hour bucket containing an instant.

    Args:
        instant: Timezone-aware instant

    Returns:
        Tuple of (start, end), start inclusive and end exclusive

    Example:
        >>> hour_window(datetime(2024, 5, 1, 13, 42, 7, tzinfo=timezone.utc))
        (datetime(2024, 5, 1, 13, 0, tzinfo=utc), datetime(2024, 5, 1, 14, 0, tzinfo=utc))
    """
    start = _as_utc(instant).replace(minute=0, second=0, microsecond=0)
    return (start, start + timedelta(hours=1))


def local_date(instant: datetime, tz: Optional[ZoneInfo] = None) -> date:
    """
    Get the calendar date of an instant in the reference timezone.

    Args:
        instant: Timezone-aware instant
        tz: Reference timezone (defaults to settings.REFERENCE_TIMEZONE)

    Returns:
        Local calendar date
    """
    tz = tz or ZoneInfo(settings.REFERENCE_TIMEZONE)
    return _as_utc(instant).astimezone(tz).date()


def day_window(day: date, tz: Optional[ZoneInfo] = None) -> Tuple[datetime, datetime]:
    """
    Get the UTC span of one local calendar day.

    Local midnight is resolved through the timezone's offset on each end's
    own date, so DST transition days come out 23 or 25 hours long.

    Args:
        day: Calendar date in the reference timezone
        tz: Reference timezone (defaults to settings.REFERENCE_TIMEZONE)

    Returns:
        Tuple of (start, end) in UTC, start inclusive and end exclusive

    Example:
        >>> day_window(date(2024, 3, 31), ZoneInfo("Europe/Madrid"))
        (datetime(2024, 3, 30, 23, 0, tzinfo=utc), datetime(2024, 3, 31, 22, 0, tzinfo=utc))
    """
    tz = tz or ZoneInfo(settings.REFERENCE_TIMEZONE)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return (start.astimezone(timezone.utc), end.astimezone(timezone.utc))


# ============================================================================
# STATISTICS
# ============================================================================

def _values(rows: Sequence[WeatherReading], channel: str) -> List[float]:
    """Non-null samples of one channel, in row order."""
    return [getattr(row, channel) for row in rows if getattr(row, channel) is not None]


def mean(values: Sequence[float]) -> Optional[float]:
    """Arithmetic mean, or None when there are no samples."""
    return statistics.fmean(values) if values else None


def population_stdev(values: Sequence[float]) -> Optional[float]:
    """Population standard deviation, or None when there are no samples."""
    return statistics.pstdev(values) if values else None


def total(values: Sequence[float]) -> Optional[float]:
    """Sum, or None when there are no samples."""
    return math.fsum(values) if values else None


def circular_mean(degrees: Sequence[float]) -> Optional[float]:
    """
    Compute the circular mean of compass directions.

    Args:
        degrees: Directions in degrees

    Returns:
        Mean direction normalized into [0, 360), or None when there are no samples

    Examples:
        >>> min(circular_mean([350.0, 10.0]), 360 - circular_mean([350.0, 10.0])) < 1e-9
        True
        >>> round(circular_mean([90.0, 180.0]), 6)
        135.0
    """
    if not degrees:
        return None

    sin_sum = math.fsum(math.sin(math.radians(d)) for d in degrees)
    cos_sum = math.fsum(math.cos(math.radians(d)) for d in degrees)
    result = math.degrees(math.atan2(sin_sum, cos_sum)) % 360.0
    # float modulo of a tiny negative angle rounds up to exactly 360.0
    if result >= 360.0:
        result = 0.0
    return result


def strongest_gust(rows: Sequence[WeatherReading]) -> Optional[WeatherReading]:
    """
    Find the reading with the highest gust speed.

    Ties go to the first row in window order, i.e. the earliest instant and
    then the lowest row id.

    Args:
        rows: Readings ordered by (date, id)

    Returns:
        The strongest-gust reading, or None when no row has a gust speed
    """
    best = None
    for row in rows:
        if row.gust_speed is None:
            continue
        if best is None or row.gust_speed > best.gust_speed:
            best = row
    return best


# ============================================================================
# SUMMARY COMPUTATION
# ============================================================================

def compute_hourly_summary(rows: Sequence[WeatherReading]) -> Dict[str, Optional[float]]:
    """
    Compute hourly aggregates from the readings of one hour.

    Args:
        rows: Readings in the bucket, ordered by (date, id)

    Returns:
        Dictionary of HourlySummary column values (without the key)
    """
    wind_speeds = _values(rows, "wind_speed")
    gust = strongest_gust(rows)

    return {
        'avg_temperature': mean(_values(rows, "temperature")),
        'avg_humidity': mean(_values(rows, "humidity")),
        'avg_pressure': mean(_values(rows, "pressure")),
        'sum_rain': total(_values(rows, "rain")),
        'avg_wind_speed': mean(wind_speeds),
        'standard_deviation_speed': population_stdev(wind_speeds),
        'avg_wind_direction': circular_mean(_values(rows, "wind_direction")),
        'avg_lux': mean(_values(rows, "lux")),
        'avg_uvi': mean(_values(rows, "uvi")),
        'max_gust_speed': gust.gust_speed if gust else None,
        'max_gust_direction': gust.gust_direction if gust else None,
    }


def compute_daily_summary(rows: Sequence[WeatherReading]) -> Dict[str, Optional[float]]:
    """
    Compute daily aggregates from the readings of one local day.

    Args:
        rows: Readings in the bucket, ordered by (date, id)

    Returns:
        Dictionary of DailySummary column values (without the key)
    """
    temperatures = _values(rows, "temperature")
    humidities = _values(rows, "humidity")
    pressures = _values(rows, "pressure")
    lux = _values(rows, "lux")
    uvi = _values(rows, "uvi")
    wind_speeds = _values(rows, "wind_speed")
    gust = strongest_gust(rows)

    return {
        'max_temperature': max(temperatures) if temperatures else None,
        'min_temperature': min(temperatures) if temperatures else None,
        'max_humidity': max(humidities) if humidities else None,
        'min_humidity': min(humidities) if humidities else None,
        'max_pressure': max(pressures) if pressures else None,
        'min_pressure': min(pressures) if pressures else None,
        'max_gust_speed': gust.gust_speed if gust else None,
        'max_gust_direction': gust.gust_direction if gust else None,
        'standard_deviation_speed': population_stdev(wind_speeds),
        'avg_wind_speed': mean(wind_speeds),
        'avg_wind_direction': circular_mean(_values(rows, "wind_direction")),
        'max_uvi': max(uvi) if uvi else None,
        'max_lux': max(lux) if lux else None,
        'min_lux': min(lux) if lux else None,
        'sum_rain': total(_values(rows, "rain")),
    }


# ============================================================================
# RECOMPUTE OPERATIONS
# ============================================================================

async def recompute_hourly(db: AsyncSession, station_id: int, instant: datetime) -> Dict:
    """
    Recompute and upsert the hourly summary for the hour containing an instant.

    Args:
        db: Database session
        station_id: Station ID
        instant: Timezone-aware instant inside the bucket

    Returns:
        Dictionary of the stored row values, key included

    Raises:
        AggregationError: On any storage-layer fault
    """
    start, end = hour_window(instant)
    try:
        rows = await reading_crud.list_in_window(db, station_id=station_id, start=start, end=end)
        values = {'station_id': station_id, 'date': start}
        values.update(compute_hourly_summary(rows))
        await hourly_summary.upsert(db, values=values)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise AggregationError(
            f"Hourly stats calculation failed for {start.isoformat()}: {exc}",
            station_id=station_id,
        ) from exc

    logger.debug(
        f"Hourly stats calculated for station {station_id} at {start.isoformat()} "
        f"from {len(rows)} reading(s)"
    )
    return values


async def recompute_daily(
    db: AsyncSession,
    station_id: int,
    instant: datetime,
    tz: Optional[ZoneInfo] = None
) -> Dict:
    """
    Recompute and upsert the daily summary for the local day containing an instant.

    Args:
        db: Database session
        station_id: Station ID
        instant: Timezone-aware instant inside the bucket
        tz: Reference timezone (defaults to settings.REFERENCE_TIMEZONE)

    Returns:
        Dictionary of the stored row values, key included

    Raises:
        AggregationError: On any storage-layer fault
    """
    tz = tz or ZoneInfo(settings.REFERENCE_TIMEZONE)
    day = local_date(instant, tz)
    start, end = day_window(day, tz)
    try:
        rows = await reading_crud.list_in_window(db, station_id=station_id, start=start, end=end)
        values = {'station_id': station_id, 'date': day}
        values.update(compute_daily_summary(rows))
        await daily_summary.upsert(db, values=values)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise AggregationError(
            f"Daily stats calculation failed for {day.isoformat()}: {exc}",
            station_id=station_id,
        ) from exc

    logger.debug(
        f"Daily stats calculated for station {station_id} for {day.isoformat()} "
        f"({tz.key}) from {len(rows)} reading(s)"
    )
    return values
