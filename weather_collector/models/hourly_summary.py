"""
Hourly summary database model.

Hourly buckets are keyed by the hour-truncated UTC instant and fully
recomputed from weather_data every time a reading lands in the hour.
"""

from sqlalchemy import Column, Float, DateTime
from sqlalchemy.orm import relationship

from weather_collector.models.base import BaseModel, StationSeries


class HourlySummary(StationSeries, BaseModel):
    """
    Hourly weather statistics.

    A column is NULL, never 0, when the hour holds no sample for its channel.
    """

    __tablename__ = "weather_hourly"

    date = Column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="Start of the UTC hour"
    )

    avg_temperature = Column(Float, nullable=True)
    avg_humidity = Column(Float, nullable=True)
    avg_pressure = Column(Float, nullable=True)
    sum_rain = Column(Float, nullable=True)
    avg_wind_speed = Column(Float, nullable=True)
    standard_deviation_speed = Column(Float, nullable=True, comment="Population standard deviation of wind speed")
    avg_wind_direction = Column(Float, nullable=True, comment="Circular mean of wind direction in [0, 360)")
    avg_lux = Column(Float, nullable=True)
    avg_uvi = Column(Float, nullable=True)
    max_gust_speed = Column(Float, nullable=True)
    max_gust_direction = Column(Float, nullable=True, comment="Direction of the strongest gust")

    station = relationship("Station", back_populates="hourly_summaries")
