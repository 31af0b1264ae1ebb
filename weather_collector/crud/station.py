"""
Station CRUD operations.

Read access to the capability source. Capability profiles are provisioned
externally; the collector never updates them.
"""

from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from weather_collector.crud.base import CRUDBase
from weather_collector.models.station import Station
from weather_collector.schemas.station import CapabilitySet


class CRUDStation(CRUDBase[Station]):
    """
    CRUD operations for Station model.
    """

    async def get_ids(self, db: AsyncSession) -> List[int]:
        """
        Get every provisioned station id.

        Args:
            db: Database session

        Returns:
            Station ids in ascending order
        """
        result = await db.execute(select(Station.id).order_by(Station.id))
        return list(result.scalars().all())

    async def get_capabilities(self, db: AsyncSession, *, station_id: int) -> Optional[CapabilitySet]:
        """
        Get the capability profile of one station.

        Args:
            db: Database session
            station_id: Station ID

        Returns:
            CapabilitySet or None if the station is not provisioned
        """
        station = await self.get(db, station_id)
        if station is None:
            return None
        return CapabilitySet.model_validate(station)

    async def get_all_capabilities(self, db: AsyncSession) -> Dict[int, CapabilitySet]:
        """
        Get the capability profile of every station.

        Args:
            db: Database session

        Returns:
            Dictionary of station id to CapabilitySet
        """
        result = await db.execute(select(Station).order_by(Station.id))
        return {
            station.id: CapabilitySet.model_validate(station)
            for station in result.scalars().all()
        }


station = CRUDStation(Station, key_columns=("id",))
