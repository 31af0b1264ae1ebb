"""
Base CRUD operations.

This module contains base CRUD operations that can be inherited by specific
model CRUD classes, including the idempotent upsert every collector table
is written through.
"""

from typing import Any, Dict, Generic, Optional, Sequence, Type, TypeVar

from sqlalchemy import and_, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from weather_collector.database import Base

ModelType = TypeVar("ModelType", bound=Base)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(db: AsyncSession, model: Type[ModelType]):
    """
    Build an INSERT that supports ON CONFLICT for the session's dialect.

    Args:
        db: Database session
        model: The SQLAlchemy model class

    Returns:
        Dialect-specific Insert construct
    """
    dialect = db.get_bind().dialect.name
    try:
        insert = _DIALECT_INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"Upsert is not supported for dialect '{dialect}'") from None
    return insert(model)


class CRUDBase(Generic[ModelType]):
    """
    Base CRUD operations class.

    Provides generic operations keyed either by surrogate id or by the
    model's natural key.
    """

    def __init__(self, model: Type[ModelType], key_columns: Sequence[str] = ("station_id", "date")):
        """
        Initialize CRUD operations for a specific model.

        Args:
            model: The SQLAlchemy model class
            key_columns: Columns of the model's unique natural key
        """
        self.model = model
        self.key_columns = tuple(key_columns)

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        """
        Get a single record by ID.

        Args:
            db: Database session
            id: Record ID

        Returns:
            Model instance or None if not found
        """
        result = await db.execute(select(self.model).where(self.model.id == id))
        return result.scalars().first()

    async def get_by_key(self, db: AsyncSession, **key: Any) -> Optional[ModelType]:
        """
        Get a single record by its natural key.

        Args:
            db: Database session
            **key: One value per key column

        Returns:
            Model instance or None if not found
        """
        if set(key) != set(self.key_columns):
            raise ValueError(f"Expected key columns {self.key_columns}, got {tuple(key)}")
        conditions = [getattr(self.model, column) == value for column, value in key.items()]
        result = await db.execute(
            select(self.model)
            .where(and_(*conditions))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def create(self, db: AsyncSession, *, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record.

        Args:
            db: Database session
            obj_in: Column values

        Returns:
            Created model instance
        """
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def upsert(self, db: AsyncSession, *, values: Dict[str, Any]) -> None:
        """
        Insert a row, or overwrite every non-key column if the natural key exists.

        The caller owns the transaction: nothing is committed here.

        Args:
            db: Database session
            values: Column values, including every key column
        """
        missing = [column for column in self.key_columns if column not in values]
        if missing:
            raise ValueError(f"Upsert values lack key columns: {missing}")

        stmt = dialect_insert(db, self.model).values(**values)
        update_columns = {
            column: stmt.excluded[column]
            for column in values
            if column not in self.key_columns
        }
        update_columns["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(
            index_elements=list(self.key_columns),
            set_=update_columns,
        )
        await db.execute(stmt)

    async def exists(self, db: AsyncSession, id: Any) -> bool:
        """
        Check if a record exists by ID.

        Args:
            db: Database session
            id: Record ID to check

        Returns:
            True if record exists, False otherwise
        """
        result = await db.execute(
            select(self.model.id).where(self.model.id == id)
        )
        return result.scalars().first() is not None
