"""
Station capability schemas.

A station's capability profile is eight stored hardware flags. The two gust
channels are never stored: they are derived from the anemometer and wind
vane flags every time they are asked for.
"""

from typing import Dict, List

from pydantic import field_validator

from weather_collector.schemas.base import FrozenSchema
from weather_collector.schemas.reading import CHANNELS


class CapabilitySet(FrozenSchema):
    """Sensor channels a station is expected to report."""

    temperature: bool = False
    pressure: bool = False
    humidity: bool = False
    lux: bool = False
    uvi: bool = False
    rain_gauge: bool = False
    anemometer: bool = False
    wind_vane: bool = False

    @field_validator("*", mode="before")
    @classmethod
    def null_flag_is_absent(cls, v):
        """A NULL flag in the capability source means the sensor is not fitted."""
        return False if v is None else v

    @property
    def gust_speed(self) -> bool:
        return self.anemometer

    @property
    def gust_direction(self) -> bool:
        return self.anemometer and self.wind_vane

    def flags(self) -> Dict[str, bool]:
        """
        Map every reading channel to whether this station reports it.

        Returns:
            Dictionary keyed by the names in CHANNELS
        """
        return {
            "temperature": self.temperature,
            "pressure": self.pressure,
            "humidity": self.humidity,
            "lux": self.lux,
            "uvi": self.uvi,
            "rain": self.rain_gauge,
            "wind_speed": self.anemometer,
            "wind_direction": self.wind_vane,
            "gust_speed": self.gust_speed,
            "gust_direction": self.gust_direction,
        }

    def available_channels(self) -> List[str]:
        """Reported channels in CHANNELS order."""
        flags = self.flags()
        return [channel for channel in CHANNELS if flags[channel]]
