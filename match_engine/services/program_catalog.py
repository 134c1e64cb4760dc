"""
Program Catalog Service

Administrative create, update and delete of catalog programs. Every
successful write is committed before the orchestrator invalidates.
"""

import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from match_engine.domain.changes import ProgramCreated, ProgramDeleted, ProgramUpdated
from match_engine.domain.models import ProgramRequirement
from match_engine.infrastructure.db.models.program import ProgramCreate, ProgramUpdate
from match_engine.infrastructure.db.repositories import ProgramRepository
from match_engine.infrastructure.exceptions import (
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from match_engine.services.orchestrator import Orchestrator

logger = logging.getLogger(__name__)

TABLE = "programs"

T = TypeVar("T")


class ProgramCatalogService:
    """Catalog writes with cache invalidation."""

    def __init__(self, repository: ProgramRepository, orchestrator: Orchestrator):
        self._repo = repository
        self._orchestrator = orchestrator

    async def create_program(self, data: ProgramCreate) -> ProgramRequirement:
        """
        Raises:
            ValidationError: A program with the requested id already exists
        """
        if data.id is not None and await self._repo.get_by_id(data.id) is not None:
            raise ValidationError(
                f"Program {data.id} already exists",
                errors=[{"field": "id", "message": "duplicate program id"}],
            )

        program = await self._write("insert", lambda: self._repo.create(data))
        await self._orchestrator.apply(ProgramCreated(program_id=program.id))
        logger.info(f"[CATALOG] Created program {program.id}")
        return program.to_domain()

    async def update_program(
        self,
        program_id: str,
        data: ProgramUpdate,
    ) -> ProgramRequirement:
        """
        Raises:
            NotFoundError: Unknown program
        """
        current = await self._repo.get_by_id(program_id)
        if current is None:
            raise _not_found(program_id)
        before = current.model_dump()

        program = await self._write("update", lambda: self._repo.update(program_id, data))
        if program is None:
            raise _not_found(program_id)
        after = program.model_dump()
        changed = frozenset(
            name for name in data.model_dump(exclude_unset=True)
            if before.get(name) != after.get(name)
        )

        if changed:
            await self._orchestrator.apply(
                ProgramUpdated(program_id=program_id, changed_fields=changed)
            )
        logger.info(
            f"[CATALOG] Updated program {program_id} "
            f"(changed: {', '.join(sorted(changed)) or 'none'})"
        )
        return program.to_domain()

    async def delete_program(self, program_id: str) -> None:
        """
        Raises:
            NotFoundError: Unknown program
        """
        deleted = await self._write("delete", lambda: self._repo.delete(program_id))
        if not deleted:
            raise _not_found(program_id)

        await self._orchestrator.apply(ProgramDeleted(program_id=program_id))
        logger.info(f"[CATALOG] Deleted program {program_id}")

    async def _write(self, operation: str, action: Callable[[], Awaitable[T]]) -> T:
        try:
            result = await action()
            await self._repo.session.commit()
        except SQLAlchemyError as e:
            await self._repo.session.rollback()
            raise DatabaseError(
                f"Program {operation} failed",
                operation=operation,
                table=TABLE,
                original_error=e,
            )
        return result


def _not_found(program_id: str) -> NotFoundError:
    return NotFoundError(
        f"Program {program_id} not found",
        operation="select",
        table=TABLE,
    )
