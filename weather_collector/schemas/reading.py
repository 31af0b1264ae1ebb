"""
Canonical reading schema.

CHANNELS is the single declaration of which sensor channels exist. The
record assembler, the persistence gateway and the capability model all
iterate it, so adding a channel means touching this tuple, the
CanonicalReading fields and the WeatherReading columns together.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from weather_collector.schemas.base import FrozenSchema


CHANNELS = (
    "temperature",
    "pressure",
    "humidity",
    "lux",
    "uvi",
    "rain",
    "wind_speed",
    "wind_direction",
    "gust_speed",
    "gust_direction",
)


class CanonicalReading(FrozenSchema):
    """
    One validated observation from one station at one UTC instant.

    Only channels the station is capable of reporting are ever set; the
    rest stay None and are excluded from `model_fields_set`. Channel values
    must be finite numbers: booleans and numeric strings are not coerced.
    """

    station_id: int
    date: datetime = Field(..., description="Observation instant, UTC, whole seconds")

    temperature: Optional[float] = Field(None, strict=True, allow_inf_nan=False, description="Air temperature in °C")
    pressure: Optional[float] = Field(None, strict=True, allow_inf_nan=False, description="Atmospheric pressure in hPa")
    humidity: Optional[float] = Field(None, strict=True, allow_inf_nan=False, description="Relative humidity in %")
    lux: Optional[float] = Field(None, strict=True, allow_inf_nan=False, description="Illuminance in lux")
    uvi: Optional[float] = Field(None, strict=True, allow_inf_nan=False, description="UV index")
    rain: Optional[float] = Field(None, strict=True, allow_inf_nan=False, description="Rain accumulation in mm")
    wind_speed: Optional[float] = Field(None, strict=True, allow_inf_nan=False, description="Wind speed")
    wind_direction: Optional[float] = Field(None, strict=True, allow_inf_nan=False, description="Wind direction in degrees")
    gust_speed: Optional[float] = Field(None, strict=True, allow_inf_nan=False, description="Gust speed")
    gust_direction: Optional[float] = Field(None, strict=True, allow_inf_nan=False, description="Gust direction in degrees")

    @field_validator("date")
    @classmethod
    def normalize_instant(cls, v: datetime) -> datetime:
        """Require a timezone-aware instant and store it as UTC, whole seconds."""
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("Reading instant must be timezone-aware")
        return v.astimezone(timezone.utc).replace(microsecond=0)

    def channel_values(self) -> Dict[str, Optional[float]]:
        """Value of every channel, None where the station does not report it."""
        return {channel: getattr(self, channel) for channel in CHANNELS}

    @property
    def present_channels(self) -> List[str]:
        """Channels carried by this reading, in CHANNELS order."""
        return [channel for channel in CHANNELS if channel in self.model_fields_set]
