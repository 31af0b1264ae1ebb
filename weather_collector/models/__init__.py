# Database models package

from weather_collector.models.base import BaseModel, StationSeries
from weather_collector.models.station import Station
from weather_collector.models.reading import WeatherReading
from weather_collector.models.hourly_summary import HourlySummary
from weather_collector.models.daily_summary import DailySummary

__all__ = [
    "BaseModel",
    "StationSeries",
    "Station",
    "WeatherReading",
    "HourlySummary",
    "DailySummary",
]

# Configure all mappers after all models are imported
# This resolves bidirectional relationships defined with string references
from sqlalchemy.orm import configure_mappers
configure_mappers()
