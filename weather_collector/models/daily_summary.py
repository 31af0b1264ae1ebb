"""
Daily summary database model.

This module contains the DailySummary model for storing aggregated daily weather
statistics calculated from raw readings.

A day is a calendar date in the reference timezone (Europe/Madrid by default),
so one bucket covers 23, 24 or 25 UTC hours depending on daylight saving.
"""

from sqlalchemy import Column, Float, Date
from sqlalchemy.orm import relationship

from weather_collector.models.base import BaseModel, StationSeries


class DailySummary(StationSeries, BaseModel):
    """
    Daily weather summary data.

    Fields include:
    - Maximum and minimum temperature, humidity, pressure and illuminance
    - Maximum UV index
    - Total rainfall
    - Mean, population standard deviation and circular mean direction of wind
    - The day's strongest gust speed and its direction
    """

    __tablename__ = "weather_daily"

    date = Column(
        Date,
        nullable=False,
        index=True,
        comment="Calendar date in the reference timezone"
    )

    max_temperature = Column(Float, nullable=True)
    min_temperature = Column(Float, nullable=True)
    max_humidity = Column(Float, nullable=True)
    min_humidity = Column(Float, nullable=True)
    max_pressure = Column(Float, nullable=True)
    min_pressure = Column(Float, nullable=True)
    max_gust_speed = Column(Float, nullable=True)
    max_gust_direction = Column(Float, nullable=True)
    standard_deviation_speed = Column(Float, nullable=True)
    avg_wind_speed = Column(Float, nullable=True)
    avg_wind_direction = Column(Float, nullable=True)
    max_uvi = Column(Float, nullable=True)
    max_lux = Column(Float, nullable=True)
    min_lux = Column(Float, nullable=True)
    sum_rain = Column(Float, nullable=True)

    station = relationship("Station", back_populates="daily_summaries")
