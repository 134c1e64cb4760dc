"""
Base Repository for the Match Engine

Shared row access for tables keyed by a string id. Writes only flush:
the service that owns the session commits or rolls back.
"""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel


RowType = TypeVar("RowType", bound=SQLModel)


class BaseRepository(Generic[RowType]):
    """
    Lookup, patch and removal of rows by id.

    Inserts are table specific and live in the concrete repositories.
    """

    def __init__(self, model: Type[RowType], session: AsyncSession):
        self._model = model
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def get_by_id(self, id: str) -> Optional[RowType]:
        return await self._session.get(self._model, id)

    async def update(self, id: str, changes: SQLModel) -> Optional[RowType]:
        """
        Copy the fields explicitly set on `changes` onto the stored row.

        Returns:
            The refreshed row, or None when no row has this id
        """
        row = await self.get_by_id(id)
        if row is None:
            return None

        for name, value in changes.model_dump(exclude_unset=True).items():
            setattr(row, name, value)

        await self._store(row)
        return row

    async def delete(self, id: str) -> bool:
        """Remove a row. False when there was nothing to remove."""
        row = await self.get_by_id(id)
        if row is None:
            return False

        await self._session.delete(row)
        await self._session.flush()
        return True

    async def _store(self, row: RowType) -> None:
        self._session.add(row)
        await self._session.flush()
        await self._session.refresh(row)
