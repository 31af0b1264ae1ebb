"""
Weather station database model.

This module contains the Station model holding each station's sensor
capability profile. Rows are created and updated by an external
provisioning process; the collector only reads them.
"""

from sqlalchemy import Boolean, Column, String, false
from sqlalchemy.orm import relationship

from weather_collector.models.base import BaseModel


class Station(BaseModel):
    """
    Weather station capability profile.

    One boolean per physically fitted sensor. Gust channels are not stored:
    they follow from `anemometer` and `wind_vane` (see CapabilitySet).
    """

    __tablename__ = "weather_stations"

    name = Column(String(200), nullable=True, comment="Station name")

    temperature = Column(Boolean, nullable=False, default=False, server_default=false(), comment="Thermometer fitted")
    pressure = Column(Boolean, nullable=False, default=False, server_default=false(), comment="Barometer fitted")
    humidity = Column(Boolean, nullable=False, default=False, server_default=false(), comment="Hygrometer fitted")
    lux = Column(Boolean, nullable=False, default=False, server_default=false(), comment="Light sensor fitted")
    uvi = Column(Boolean, nullable=False, default=False, server_default=false(), comment="UV sensor fitted")
    rain_gauge = Column(Boolean, nullable=False, default=False, server_default=false(), comment="Rain gauge fitted")
    anemometer = Column(Boolean, nullable=False, default=False, server_default=false(), comment="Anemometer fitted")
    wind_vane = Column(Boolean, nullable=False, default=False, server_default=false(), comment="Wind vane fitted")

    # Relationships
    readings = relationship(
        "WeatherReading",
        back_populates="station",
        cascade="all, delete-orphan"
    )
    hourly_summaries = relationship(
        "HourlySummary",
        back_populates="station",
        cascade="all, delete-orphan"
    )
    daily_summaries = relationship(
        "DailySummary",
        back_populates="station",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Station(id={self.id}, name='{self.name}')>"
