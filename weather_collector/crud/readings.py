"""
Weather reading CRUD operations.

This module is the persistence gateway for canonical readings: every
validated message is written here, idempotently, keyed by
(station_id, date).
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from weather_collector.core.exceptions import PersistenceError
from weather_collector.crud.base import CRUDBase
from weather_collector.models.reading import WeatherReading
from weather_collector.schemas.reading import CanonicalReading
from weather_collector.utils.logging_config import get_logger

logger = get_logger(__name__)


class CRUDReading(CRUDBase[WeatherReading]):
    """
    CRUD operations for WeatherReading model.
    """

    async def store(self, db: AsyncSession, *, reading: CanonicalReading) -> None:
        """
        Upsert a canonical reading and commit.

        A second write for the same (station_id, date) overwrites every
        channel column, including setting to NULL channels the new reading
        does not carry.

        Args:
            db: Database session
            reading: Validated reading

        Raises:
            PersistenceError: On any storage-layer fault
        """
        values = {"station_id": reading.station_id, "date": reading.date}
        values.update(reading.channel_values())
        try:
            await self.upsert(db, values=values)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise PersistenceError(
                f"Failed to store reading at {reading.date.isoformat()}: {exc}",
                station_id=reading.station_id,
            ) from exc

        logger.info(f"Data stored for station {reading.station_id} at {reading.date.isoformat()}")

    async def get_reading(
        self, db: AsyncSession, *, station_id: int, instant: datetime
    ) -> Optional[WeatherReading]:
        """
        Get the reading stored for one station and instant.

        Args:
            db: Database session
            station_id: Station ID
            instant: UTC observation instant

        Returns:
            WeatherReading instance or None
        """
        return await self.get_by_key(db, station_id=station_id, date=instant)

    async def list_in_window(
        self,
        db: AsyncSession,
        *,
        station_id: int,
        start: datetime,
        end: datetime
    ) -> List[WeatherReading]:
        """
        Get readings within a half-open UTC window for a station.

        Rows come back ordered by instant, then insertion id, so every scan of
        the same window sees the same sequence. Rows already in the session
        are refreshed, since upserts bypass the identity map.

        Args:
            db: Database session
            station_id: Station ID
            start: Window start (inclusive)
            end: Window end (exclusive)

        Returns:
            List of WeatherReading instances
        """
        result = await db.execute(
            select(WeatherReading)
            .where(
                and_(
                    WeatherReading.station_id == station_id,
                    WeatherReading.date >= start,
                    WeatherReading.date < end
                )
            )
            .order_by(WeatherReading.date, WeatherReading.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())


reading = CRUDReading(WeatherReading)
