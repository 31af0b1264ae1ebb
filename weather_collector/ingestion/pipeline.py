"""
Per-message ingestion pipeline: assemble, store, then recompute the
hourly and daily buckets the reading falls in.
"""

from typing import Optional, Union
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from weather_collector.config import settings
from weather_collector.core.assembler import RecordAssembler
from weather_collector.core.capabilities import CapabilityRegistry
from weather_collector.crud.readings import reading as reading_crud
from weather_collector.schemas.reading import CanonicalReading
from weather_collector.utils.aggregation import recompute_daily, recompute_hourly


class IngestionPipeline:
    """Runs one station message through every stage, in order."""

    def __init__(
        self,
        registry: CapabilityRegistry,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        assembler: Optional[RecordAssembler] = None,
        tz: Optional[ZoneInfo] = None,
    ):
        self.registry = registry
        self.session_factory = session_factory
        self.assembler = assembler or RecordAssembler(registry)
        self.tz = tz or ZoneInfo(settings.REFERENCE_TIMEZONE)

    async def handle(self, station_id: int, payload: Union[bytes, str]) -> CanonicalReading:
        """
        Process one message.

        Nothing is written unless assembly succeeds. Any stage failure
        raises and ends processing of this message.

        Args:
            station_id: Station the message was published for
            payload: Raw message body

        Returns:
            The stored CanonicalReading
        """
        reading = await self.assembler.assemble(station_id, payload)

        async with self.session_factory() as db:
            await reading_crud.store(db, reading=reading)
            await recompute_hourly(db, station_id, reading.date)
            await recompute_daily(db, station_id, reading.date, self.tz)

        return reading
