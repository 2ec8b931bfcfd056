"""
Portfolio service — fetches a user's confirmed investments and hands them to
the pure aggregator. No caching: every call reflects the current rows.
"""

import logging
from typing import List
from uuid import UUID

from igudar.repositories.investment_repo import InvestmentRepository
from igudar.schemas.portfolio import (
    InvestmentPerformance,
    PortfolioBreakdown,
    PortfolioSummary,
    PropertyOwnership,
)
from igudar.services import portfolio_aggregator

logger = logging.getLogger(__name__)


class PortfolioService:
    """Read-only portfolio views for one user."""

    def __init__(self, invest_repo: InvestmentRepository):
        self._repo = invest_repo

    async def get_summary(self, user_id: UUID) -> PortfolioSummary:
        investments = await self._repo.get_confirmed_by_user(user_id)
        return portfolio_aggregator.compute_summary(user_id, investments)

    async def get_performance(self, user_id: UUID) -> List[InvestmentPerformance]:
        investments = await self._repo.get_confirmed_by_user(user_id)
        return portfolio_aggregator.compute_performances(investments)

    async def get_breakdown(self, user_id: UUID) -> List[PortfolioBreakdown]:
        investments = await self._repo.get_confirmed_by_user(user_id)
        return portfolio_aggregator.compute_breakdown(investments)

    async def get_property_ownership(self, user_id: UUID, property_id: UUID) -> PropertyOwnership:
        investments = await self._repo.get_confirmed_by_user(user_id)
        return portfolio_aggregator.compute_property_ownership(user_id, property_id, investments)
