"""
Base Repository for Drop Commerce

Generic async repository over a single SQLModel table.
Writes to existing rows go through a version check so that two
concurrent units of work cannot silently overwrite each other.
"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.infrastructure.db.models.base import utcnow
from app.infrastructure.exceptions import ConcurrentModificationError, DuplicateError


ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic async repository with versioned writes.

    Args:
        model: The SQLModel table class to operate on
        session: Async database session (one unit of work)
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self._model = model
        self._session = session

    @property
    def session(self) -> AsyncSession:
        """Get the current session."""
        return self._session

    @property
    def table_name(self) -> str:
        return self._model.__tablename__

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """
        Get a single record by its primary key.

        Args:
            id: UUID primary key

        Returns:
            Model instance or None if not found
        """
        return await self._session.get(self._model, id)

    async def find_one(self, *criteria) -> Optional[ModelType]:
        """Get the first record matching all criteria."""
        stmt = select(self._model).where(*criteria).limit(1)
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def find_all(
        self,
        *criteria,
        order_by=None,
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """
        Get records matching all criteria with pagination.

        Args:
            criteria: SQLAlchemy boolean expressions
            order_by: Optional ordering clause
            skip: Number of records to skip
            limit: Maximum records to return
        """
        stmt = select(self._model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        stmt = stmt.offset(skip).limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def add(self, db_obj: ModelType) -> ModelType:
        """
        Insert a new record.

        Raises:
            DuplicateError: if a unique constraint rejects the row
        """
        self._session.add(db_obj)
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise DuplicateError(
                f"Duplicate {self.table_name} record",
                operation="create",
                table=self.table_name,
                original_error=e,
            ) from e
        await self._session.refresh(db_obj)
        return db_obj

    async def update_versioned(
        self,
        id: UUID,
        expected_version: int,
        values: Dict[str, Any]
    ) -> ModelType:
        """
        Write column values if the row is still at the expected version.

        Args:
            id: UUID primary key
            expected_version: Version the caller read
            values: Column values to write

        Returns:
            Refreshed model instance

        Raises:
            ConcurrentModificationError: if the row changed or disappeared
        """
        stmt = (
            update(self._model)
            .where(self._model.id == id, self._model.version == expected_version)
            .values(**values, version=expected_version + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        if result.rowcount == 0:
            raise ConcurrentModificationError(
                f"{self.table_name} record {id} was modified by another writer",
                operation="update",
                table=self.table_name,
            )

        return await self._session.get(self._model, id, populate_existing=True)
