"""
Helpers shared by the test modules.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

from weather_collector.crud.station import station as station_crud
from weather_collector.schemas.reading import CHANNELS, CanonicalReading


def utc(*args) -> datetime:
    """Shorthand for a UTC datetime."""
    return datetime(*args, tzinfo=timezone.utc)


def naive(value: datetime) -> datetime:
    """SQLite returns naive datetimes; compare against the UTC wall clock."""
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def make_reading(station_id: int, when: datetime, **values) -> CanonicalReading:
    """Build a canonical reading for a station."""
    return CanonicalReading(station_id=station_id, date=when, **values)


def make_row(**values) -> SimpleNamespace:
    """Stand-in for a WeatherReading row, every channel defaulting to None."""
    row = {channel: None for channel in CHANNELS}
    row.update(values)
    return SimpleNamespace(**row)


async def add_station(db, station_id: int, **flags):
    """Provision a station with the given capability flags."""
    return await station_crud.create(
        db, obj_in={"id": station_id, "name": f"Station {station_id}", **flags}
    )
