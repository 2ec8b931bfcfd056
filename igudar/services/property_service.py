"""
Property service — listings, edits and platform statistics.

Raises domain exceptions from ``igudar.core.exceptions`` and never imports
FastAPI.
"""

import logging
from datetime import datetime, timezone
from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from igudar.core.exceptions import BusinessRuleViolation, NotFoundException
from igudar.models.property import Property
from igudar.repositories.property_repo import PropertyRepository
from igudar.schemas.property import PropertyCreate, PropertyFilters, PropertyStats, PropertyUpdate

logger = logging.getLogger(__name__)


class PropertyService:
    """Encapsulates listing queries, creation and update rules for :class:`Property`."""

    def __init__(self, property_repo: PropertyRepository):
        self._repo = property_repo

    async def list_properties(
        self, filters: PropertyFilters, skip: int = 0, limit: int = 100
    ) -> List[Property]:
        return await self._repo.list_filtered(filters, skip=skip, limit=limit)

    async def get_property(self, property_id: UUID) -> Property:
        """Raises :class:`NotFoundException` if the property does not exist."""
        prop = await self._repo.get(property_id)
        if not prop:
            raise NotFoundException("Property", property_id)
        return prop

    async def create_property(self, property_in: PropertyCreate) -> Property:
        prop = Property(**property_in.model_dump())
        try:
            created = await self._repo.create(prop)
        except IntegrityError as exc:
            await self._repo.db.rollback()
            logger.warning("IntegrityError creating property: %s", exc)
            raise BusinessRuleViolation(
                "Property data violates a database constraint. Check all fields."
            )
        logger.info("Created property %s (%s, %s)", created.id, created.title, created.city)
        return created

    async def update_property(self, property_id: UUID, update: PropertyUpdate) -> Property:
        """
        Apply the fields sent in ``update`` to an existing property.

        Raises
        ------
        BusinessRuleViolation
            If nothing was sent, or the result would have a minimum
            investment above a non-zero target.
        NotFoundException
            If the property does not exist.
        """
        changes = update.model_dump(exclude_unset=True)
        if not changes:
            raise BusinessRuleViolation("At least one field must be updated")

        prop = await self.get_property(property_id)
        target = changes.get("target_amount", prop.target_amount)
        minimum = changes.get("min_investment", prop.min_investment)
        if target > 0 and minimum > target:
            raise BusinessRuleViolation(
                "min_investment cannot exceed target_amount",
                details={"min_investment": minimum, "target_amount": target},
            )

        for field, value in changes.items():
            setattr(prop, field, value)
        prop.updated_at = datetime.now(timezone.utc)
        try:
            saved = await self._repo.save(prop)
        except IntegrityError as exc:
            await self._repo.db.rollback()
            logger.warning("IntegrityError updating property %s: %s", property_id, exc)
            raise BusinessRuleViolation(
                "Property data violates a database constraint. Check all fields."
            )
        logger.info("Updated property %s: %s", property_id, ", ".join(sorted(changes)))
        return saved

    async def get_property_stats(self) -> PropertyStats:
        totals, by_type, by_city, by_status = await self._repo.get_stats()
        return PropertyStats(
            total_properties=totals["count"],
            active_properties=totals["active"],
            total_value=totals["total_value"],
            total_raised=totals["total_raised"],
            average_roi=round(totals["average_roi"], 2),
            properties_by_type=by_type,
            properties_by_city=by_city,
            properties_by_status=by_status,
        )
