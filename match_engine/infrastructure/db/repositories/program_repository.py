"""
Program Repository

Catalog reads for the scorer and writes for administration.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from match_engine.domain.models import ProgramRequirement
from match_engine.infrastructure.db.models.program import Program, ProgramCreate
from match_engine.infrastructure.db.repositories.base_repository import BaseRepository


class ProgramRepository(BaseRepository[Program]):
    """Repository for catalog programs."""

    def __init__(self, session: AsyncSession):
        super().__init__(Program, session)

    async def create(self, data: ProgramCreate) -> Program:
        """Create a program, generating an id when none is given."""
        exclude = {"id"} if data.id is None else set()
        row = Program.model_validate(data.model_dump(exclude=exclude))
        await self._store(row)
        return row

    async def list_active(self) -> List[ProgramRequirement]:
        """All active programs as domain objects, ordered by id."""
        stmt = (
            select(Program)
            .where(Program.is_active == True)  # noqa: E712
            .order_by(Program.id)
        )
        result = await self.session.execute(stmt)
        return [row.to_domain() for row in result.scalars().all()]
