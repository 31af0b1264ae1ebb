"""
Base database models.

BaseModel carries the bookkeeping columns every table has. StationSeries
adds the (station_id, date) natural key shared by the reading and summary
tables; each series declares its own `date` column type.
"""

from typing import Any

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func

from weather_collector.database import Base


class BaseModel(Base):
    """
    Base model with id, created_at and updated_at.

    updated_at is also refreshed by upserts, which bypass the ORM.
    """

    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    @declared_attr
    def created_at(cls):
        return Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @declared_attr
    def updated_at(cls):
        return Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"

    def dict(self) -> dict[str, Any]:
        """Column values keyed by column name."""
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}


class StationSeries:
    """
    Mixin for tables holding one row per station and bucket.

    Provides the station foreign key and a unique (station_id, date)
    constraint, which is the conflict target for upserts.
    """

    @declared_attr
    def station_id(cls):
        return Column(
            Integer,
            ForeignKey("weather_stations.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
            comment="Reference to the weather station"
        )

    @declared_attr.directive
    def __table_args__(cls):
        return (
            UniqueConstraint('station_id', 'date', name=f'uq_{cls.__tablename__}_station_date'),
            Index(f'idx_{cls.__tablename__}_station_date', 'station_id', 'date'),
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id}, station_id={self.station_id}, date={self.date})>"
