"""
Station capability registry.

In-memory cache of every station's capability profile, loaded from the
capability source when the process starts. Profile changes for a running
station are picked up only by an explicit refresh().
"""

from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from weather_collector.core.exceptions import NotFound
from weather_collector.crud.station import station as station_crud
from weather_collector.schemas.station import CapabilitySet
from weather_collector.utils.logging_config import get_logger

logger = get_logger(__name__)


class CapabilityRegistry:
    """Resolves a station id to the channels it is expected to report."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._profiles: Dict[int, CapabilitySet] = {}

    async def load(self) -> int:
        """
        Read every station's profile from the capability source.

        Storage errors propagate: at startup an unreachable capability
        source is fatal.

        Returns:
            Number of stations loaded
        """
        async with self._session_factory() as db:
            profiles = await station_crud.get_all_capabilities(db)
        self._profiles = profiles
        logger.info(f"Capability registry loaded {len(profiles)} station(s)")
        return len(profiles)

    async def refresh(self) -> int:
        """Reload every profile, replacing the cache."""
        return await self.load()

    def station_ids(self) -> List[int]:
        """Ids of every station known to the registry."""
        return sorted(self._profiles)

    async def fields(self, station_id: int) -> CapabilitySet:
        """
        Get the capability set of a station.

        Serves from the cache; on a miss, reads the capability source once
        and caches the result.

        Args:
            station_id: Station ID

        Returns:
            CapabilitySet for the station

        Raises:
            NotFound: If the station is not provisioned
        """
        profile = self._profiles.get(station_id)
        if profile is not None:
            return profile

        async with self._session_factory() as db:
            profile = await station_crud.get_capabilities(db, station_id=station_id)
        if profile is None:
            raise NotFound(f"Station with ID {station_id} not found", station_id=station_id)

        self._profiles[station_id] = profile
        return profile
