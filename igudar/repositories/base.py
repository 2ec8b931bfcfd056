"""
Generic async repository (data-access layer).

Concrete repositories subclass ``BaseRepository[T]`` and add entity-specific
queries. Every database round-trip goes through ``db_circuit_breaker`` via
:meth:`BaseRepository._run`.

``IntegrityError`` is not caught here: each service maps it to its own
domain error. ``OperationalError`` on commit rolls the session back before
re-raising so a broken transaction never leaks into the next call.
"""

import logging
from typing import Any, Awaitable, Callable, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from igudar.core.resilience import db_circuit_breaker

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)
T = TypeVar("T")


class BaseRepository(Generic[ModelType]):
    """
    Generic CRUD repository for SQLModel entities.

    Parameters
    ----------
    model : Type[ModelType]
        The SQLModel class this repository manages.
    db : AsyncSession
        The request-scoped session.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def _run(self, func: Callable[[], Awaitable[T]]) -> T:
        return await db_circuit_breaker.call(func)

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except OperationalError:
            await self.db.rollback()
            logger.error("OperationalError during %s for %s", action, self.model.__name__)
            raise

    async def get(self, id: Any) -> Optional[ModelType]:
        """Fetch a single entity by primary key, or ``None``."""

        async def _get() -> Optional[ModelType]:
            return await self.db.get(self.model, id)

        return await self._run(_get)

    async def create(self, obj_in: ModelType) -> ModelType:
        """Insert a new entity and return it refreshed from the database."""

        async def _create() -> ModelType:
            self.db.add(obj_in)
            await self._commit("create")
            await self.db.refresh(obj_in)
            return obj_in

        return await self._run(_create)

    async def save(self, entity: ModelType) -> ModelType:
        """
        Commit changes to an entity already tracked by this session.

        Related objects reachable through loaded relationships are flushed in
        the same transaction (save-update cascade), so a service can change an
        entity and its parent and persist both atomically.
        """

        async def _save() -> ModelType:
            self.db.add(entity)
            await self._commit("save")
            return entity

        return await self._run(_save)
