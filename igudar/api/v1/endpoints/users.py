"""
User-scoped endpoints: a user's investments and portfolio views.

- GET  /users/{user_id}/investments            — List the user's investments
- GET  /users/{user_id}/portfolio/summary      — Portfolio summary
- GET  /users/{user_id}/portfolio/performance  — Per-investment performance
- GET  /users/{user_id}/portfolio/breakdown    — Breakdown by property type
- GET  /users/{user_id}/properties/{property_id}/ownership — Share held in one property

Portfolio views are recomputed from the confirmed investments on every call.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from igudar.api.v1.endpoints.investments import get_investment_service
from igudar.core.exceptions import BusinessRuleViolation
from igudar.db.session import get_db
from igudar.models.investment import Investment, InvestmentStatus
from igudar.repositories.investment_repo import InvestmentRepository
from igudar.schemas.common import ValidationErrorResponse
from igudar.schemas.investment import InvestmentDetailResponse, InvestmentFilters, InvestmentSortField
from igudar.schemas.portfolio import (
    InvestmentPerformance,
    PortfolioBreakdown,
    PortfolioSummary,
    PropertyOwnership,
)
from igudar.services.investment_service import InvestmentService
from igudar.services.portfolio_service import PortfolioService

router = APIRouter()


def _get_portfolio_service(db: AsyncSession = Depends(get_db)) -> PortfolioService:
    return PortfolioService(InvestmentRepository(Investment, db))


def _investment_filters(
    status: List[InvestmentStatus] = Query(default=[]),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    min_amount: Optional[int] = Query(None, ge=0, description="Subunits"),
    max_amount: Optional[int] = Query(None, ge=0, description="Subunits"),
    sort: InvestmentSortField = Query(InvestmentSortField.CREATED_AT),
    ascending: bool = Query(False),
) -> InvestmentFilters:
    try:
        return InvestmentFilters(
            status=status,
            date_from=date_from,
            date_to=date_to,
            min_amount=min_amount,
            max_amount=max_amount,
            sort=sort,
            ascending=ascending,
        )
    except ValidationError as exc:
        details = [{"field": "query", "message": err["msg"]} for err in exc.errors()]
        raise BusinessRuleViolation("Invalid investment filters", details=details)


@router.get(
    "/{user_id}/investments",
    response_model=List[InvestmentDetailResponse],
    summary="List a user's investments",
    description="Investments in every status, newest first by default.",
    responses={422: {"model": ValidationErrorResponse, "description": "Invalid filters"}},
)
async def list_user_investments(
    user_id: UUID,
    filters: InvestmentFilters = Depends(_investment_filters),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Max records to return"),
    service: InvestmentService = Depends(get_investment_service),
) -> List[InvestmentDetailResponse]:
    return await service.get_user_investments(user_id, filters, skip=skip, limit=limit)


@router.get(
    "/{user_id}/portfolio/summary",
    response_model=PortfolioSummary,
    summary="Portfolio summary",
)
async def get_portfolio_summary(
    user_id: UUID,
    service: PortfolioService = Depends(_get_portfolio_service),
) -> PortfolioSummary:
    return await service.get_summary(user_id)


@router.get(
    "/{user_id}/portfolio/performance",
    response_model=List[InvestmentPerformance],
    summary="Per-investment performance",
)
async def get_portfolio_performance(
    user_id: UUID,
    service: PortfolioService = Depends(_get_portfolio_service),
) -> List[InvestmentPerformance]:
    return await service.get_performance(user_id)


@router.get(
    "/{user_id}/portfolio/breakdown",
    response_model=List[PortfolioBreakdown],
    summary="Portfolio breakdown by property type",
)
async def get_portfolio_breakdown(
    user_id: UUID,
    service: PortfolioService = Depends(_get_portfolio_service),
) -> List[PortfolioBreakdown]:
    return await service.get_breakdown(user_id)


@router.get(
    "/{user_id}/properties/{property_id}/ownership",
    response_model=PropertyOwnership,
    summary="User's ownership of one property",
    description="Sum of the user's confirmed ownership percentages in the property; 0 if none.",
)
async def get_property_ownership(
    user_id: UUID,
    property_id: UUID,
    service: PortfolioService = Depends(_get_portfolio_service),
) -> PropertyOwnership:
    return await service.get_property_ownership(user_id, property_id)
