# Pydantic schemas package

from weather_collector.schemas.base import BaseSchema, FrozenSchema
from weather_collector.schemas.reading import CHANNELS, CanonicalReading
from weather_collector.schemas.station import CapabilitySet

__all__ = [
    # Base schemas
    "BaseSchema", "FrozenSchema",

    # Reading schemas
    "CHANNELS", "CanonicalReading",

    # Station schemas
    "CapabilitySet",
]
