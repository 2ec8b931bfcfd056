"""
Investment repository — data-access layer for the ``investments`` table.

Queries that feed the portfolio load the ``property`` relationship eagerly;
async sessions cannot lazy-load it later.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from igudar.models.investment import Investment, InvestmentStatus
from igudar.repositories.base import BaseRepository
from igudar.schemas.investment import InvestmentFilters


class InvestmentRepository(BaseRepository[Investment]):
    """Concrete repository for :class:`Investment` entities."""

    async def get_with_property(self, investment_id: UUID) -> Optional[Investment]:
        """Fetch one investment together with its property snapshot."""

        async def _get() -> Optional[Investment]:
            stmt = (
                select(Investment)
                .options(selectinload(Investment.property))
                .where(Investment.id == investment_id)
            )
            result = await self.db.execute(stmt)
            return result.scalars().first()

        return await self._run(_get)

    async def get_confirmed_by_user(self, user_id: UUID) -> List[Investment]:
        """All confirmed investments of a user, newest first, with properties."""

        async def _get() -> List[Investment]:
            stmt = (
                select(Investment)
                .options(selectinload(Investment.property))
                .where(
                    Investment.user_id == user_id,
                    Investment.status == InvestmentStatus.CONFIRMED,
                )
                .order_by(Investment.created_at.desc())
            )
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

        return await self._run(_get)

    async def get_by_user(
        self,
        user_id: UUID,
        filters: Optional[InvestmentFilters] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Investment]:
        """
        A page of a user's investments in any status.

        Parameters
        ----------
        user_id : UUID
            Owner of the investments.
        filters : InvestmentFilters, optional
            Status set, created-at range, amount range and sort order.
        skip, limit : int
            Offset pagination.
        """
        filters = filters or InvestmentFilters()

        async def _get() -> List[Investment]:
            stmt = (
                select(Investment)
                .options(selectinload(Investment.property))
                .where(Investment.user_id == user_id)
            )
            if filters.status:
                stmt = stmt.where(Investment.status.in_(filters.status))
            if filters.date_from is not None:
                stmt = stmt.where(Investment.created_at >= filters.date_from)
            if filters.date_to is not None:
                stmt = stmt.where(Investment.created_at <= filters.date_to)
            if filters.min_amount is not None:
                stmt = stmt.where(Investment.investment_amount >= filters.min_amount)
            if filters.max_amount is not None:
                stmt = stmt.where(Investment.investment_amount <= filters.max_amount)

            column = getattr(Investment, filters.sort.value)
            order = column.asc() if filters.ascending else column.desc()
            # id as tie-breaker keeps pages stable when timestamps collide
            stmt = stmt.order_by(order, Investment.id).offset(skip).limit(limit)

            result = await self.db.execute(stmt)
            return list(result.scalars().all())

        return await self._run(_get)

    async def count_confirmed_for_user_property(self, user_id: UUID, property_id: UUID) -> int:
        """How many confirmed investments a user holds in one property."""

        async def _count() -> int:
            stmt = select(func.count(Investment.id)).where(
                Investment.user_id == user_id,
                Investment.property_id == property_id,
                Investment.status == InvestmentStatus.CONFIRMED,
            )
            result = await self.db.execute(stmt)
            return result.scalar_one()

        return await self._run(_count)
