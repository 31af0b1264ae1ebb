"""
Weather reading database model.

This module contains the WeatherReading model storing one canonical
observation per station and UTC instant.
"""

from sqlalchemy import Column, Float, DateTime
from sqlalchemy.orm import relationship

from weather_collector.models.base import BaseModel, StationSeries


class WeatherReading(StationSeries, BaseModel):
    """
    Raw weather reading.

    (station_id, date) is the natural key; replaying a message for the same
    key overwrites every channel column instead of adding a row. Channel
    columns mirror weather_collector.schemas.reading.CHANNELS.
    """

    __tablename__ = "weather_data"

    date = Column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="Observation instant (UTC, whole seconds)"
    )

    temperature = Column(Float, nullable=True, comment="Air temperature in °C")
    pressure = Column(Float, nullable=True, comment="Atmospheric pressure in hPa")
    humidity = Column(Float, nullable=True, comment="Relative humidity in %")
    lux = Column(Float, nullable=True, comment="Illuminance in lux")
    uvi = Column(Float, nullable=True, comment="UV index")
    rain = Column(Float, nullable=True, comment="Rain accumulation in mm")
    wind_speed = Column(Float, nullable=True, comment="Wind speed")
    wind_direction = Column(Float, nullable=True, comment="Wind direction in degrees (0-360)")
    gust_speed = Column(Float, nullable=True, comment="Gust speed")
    gust_direction = Column(Float, nullable=True, comment="Gust direction in degrees (0-360)")

    station = relationship("Station", back_populates="readings")
