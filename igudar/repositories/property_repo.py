"""
Property repository — data-access layer for the ``properties`` table.

Adds filtered listing and the grouped aggregates behind the platform
statistics view.
"""

from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select

from igudar.models.property import INVESTABLE_STATUSES, Property
from igudar.repositories.base import BaseRepository
from igudar.schemas.property import PropertyFilters


class PropertyRepository(BaseRepository[Property]):
    """Concrete repository for :class:`Property` entities."""

    async def list_filtered(
        self, filters: Optional[PropertyFilters] = None, skip: int = 0, limit: int = 100
    ) -> List[Property]:
        """
        A page of properties matching ``filters``, newest first.

        ``search`` is a case-insensitive substring match on title,
        description and location.
        """
        filters = filters or PropertyFilters()

        async def _list() -> List[Property]:
            stmt = select(Property)
            if filters.status:
                stmt = stmt.where(Property.status.in_(filters.status))
            if filters.property_type:
                stmt = stmt.where(Property.property_type.in_(filters.property_type))
            if filters.city:
                stmt = stmt.where(Property.city.in_(filters.city))
            if filters.min_roi is not None:
                stmt = stmt.where(Property.expected_roi >= filters.min_roi)
            if filters.max_roi is not None:
                stmt = stmt.where(Property.expected_roi <= filters.max_roi)
            if filters.search:
                pattern = f"%{escape_like(filters.search.strip())}%"
                stmt = stmt.where(
                    or_(
                        Property.title.ilike(pattern, escape="\\"),
                        Property.description.ilike(pattern, escape="\\"),
                        Property.location.ilike(pattern, escape="\\"),
                    )
                )
            stmt = stmt.order_by(Property.created_at.desc(), Property.id).offset(skip).limit(limit)
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

        return await self._run(_list)

    async def _grouped_counts(self, column) -> Dict[str, int]:
        result = await self.db.execute(select(column, func.count()).group_by(column))
        return {_key(value): count for value, count in result.all()}

    async def get_stats(self) -> Tuple[dict, Dict[str, int], Dict[str, int], Dict[str, int]]:
        """
        Return ``(totals, by_type, by_city, by_status)``.

        ``totals`` holds ``count``, ``active``, ``total_value``,
        ``total_raised`` and ``average_roi``.
        """

        async def _stats():
            row = (
                await self.db.execute(
                    select(
                        func.count(Property.id),
                        func.coalesce(func.sum(Property.price), 0),
                        func.coalesce(func.sum(Property.total_raised), 0),
                        func.coalesce(func.avg(Property.expected_roi), 0.0),
                    )
                )
            ).one()
            active = (
                await self.db.execute(
                    select(func.count(Property.id)).where(
                        Property.status.in_(INVESTABLE_STATUSES)
                    )
                )
            ).scalar_one()
            totals = {
                "count": row[0],
                "total_value": int(row[1]),
                "total_raised": int(row[2]),
                "average_roi": float(row[3]),
                "active": active,
            }
            return (
                totals,
                await self._grouped_counts(Property.property_type),
                await self._grouped_counts(Property.city),
                await self._grouped_counts(Property.status),
            )

        return await self._run(_stats)


def _key(value) -> str:
    return getattr(value, "value", value)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so ``%`` and ``_`` match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
