# CRUD operations package

from weather_collector.crud.base import CRUDBase
from weather_collector.crud.station import CRUDStation, station
from weather_collector.crud.readings import CRUDReading, reading
from weather_collector.crud.summaries import (
    CRUDHourlySummary, CRUDDailySummary, hourly_summary, daily_summary
)

__all__ = [
    "CRUDBase",
    "CRUDStation", "station",
    "CRUDReading", "reading",
    "CRUDHourlySummary", "CRUDDailySummary",
    "hourly_summary", "daily_summary",
]
