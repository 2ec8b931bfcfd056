"""
Investment API endpoints.

- POST   /investments                         — Create a pending investment
- GET    /investments/{investment_id}         — Retrieve an investment
- PATCH  /investments/{investment_id}/status  — Confirm, cancel or refund
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from igudar.db.session import get_db
from igudar.models.investment import Investment
from igudar.models.property import Property
from igudar.repositories.investment_repo import InvestmentRepository
from igudar.repositories.property_repo import PropertyRepository
from igudar.schemas.common import ErrorResponse, ValidationErrorResponse
from igudar.schemas.investment import (
    InvestmentCreate,
    InvestmentDetailResponse,
    InvestmentResponse,
    InvestmentStatusUpdate,
)
from igudar.services.investment_service import InvestmentService

router = APIRouter()


def get_investment_service(db: AsyncSession = Depends(get_db)) -> InvestmentService:
    """Build an InvestmentService wired to the current request's DB session."""
    return InvestmentService(
        invest_repo=InvestmentRepository(Investment, db),
        property_repo=PropertyRepository(Property, db),
    )


@router.post(
    "",
    response_model=InvestmentResponse,
    status_code=201,
    summary="Create an investment",
    description=(
        "Records a pending investment. The property must be active or funding, "
        "and the amount must respect both the platform limits and the "
        "property's minimum ticket and remaining funding."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Property not found"},
        422: {
            "model": ValidationErrorResponse,
            "description": "Validation error or business rule violation",
        },
    },
)
async def create_investment(
    investment: InvestmentCreate,
    service: InvestmentService = Depends(get_investment_service),
) -> InvestmentResponse:
    return await service.create_investment(investment)


@router.get(
    "/{investment_id}",
    response_model=InvestmentDetailResponse,
    summary="Get an investment by ID",
    responses={404: {"model": ErrorResponse, "description": "Investment not found"}},
)
async def get_investment(
    investment_id: UUID,
    service: InvestmentService = Depends(get_investment_service),
) -> InvestmentDetailResponse:
    return await service.get_investment(investment_id)


@router.patch(
    "/{investment_id}/status",
    response_model=InvestmentDetailResponse,
    summary="Change an investment's status",
    description="Allowed moves: pending → confirmed | cancelled, confirmed → refunded.",
    responses={
        404: {"model": ErrorResponse, "description": "Investment not found"},
        409: {"model": ErrorResponse, "description": "Already in the requested status"},
        422: {"model": ErrorResponse, "description": "Transition not allowed"},
    },
)
async def update_investment_status(
    investment_id: UUID,
    update: InvestmentStatusUpdate,
    service: InvestmentService = Depends(get_investment_service),
) -> InvestmentDetailResponse:
    return await service.update_status(investment_id, update)
