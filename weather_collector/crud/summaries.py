"""
Hourly and daily summary CRUD operations.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from weather_collector.crud.base import CRUDBase
from weather_collector.models.daily_summary import DailySummary
from weather_collector.models.hourly_summary import HourlySummary


class CRUDHourlySummary(CRUDBase[HourlySummary]):
    """
    CRUD operations for HourlySummary model.
    """

    async def get_for_hour(
        self, db: AsyncSession, *, station_id: int, hour: datetime
    ) -> Optional[HourlySummary]:
        """Get the summary for the UTC hour starting at `hour`."""
        return await self.get_by_key(db, station_id=station_id, date=hour)


class CRUDDailySummary(CRUDBase[DailySummary]):
    """
    CRUD operations for DailySummary model.
    """

    async def get_for_date(
        self, db: AsyncSession, *, station_id: int, day: date
    ) -> Optional[DailySummary]:
        """Get the summary for a reference-timezone calendar date."""
        return await self.get_by_key(db, station_id=station_id, date=day)


hourly_summary = CRUDHourlySummary(HourlySummary)
daily_summary = CRUDDailySummary(DailySummary)
