"""
Property API endpoints.

- GET    /properties                — List properties (filterable)
- POST   /properties                — Create a property
- GET    /properties/stats          — Platform statistics
- GET    /properties/{property_id}  — Retrieve a property
- PATCH  /properties/{property_id}  — Update a property
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from igudar.db.session import get_db
from igudar.models.property import Property, PropertyStatus, PropertyType
from igudar.repositories.property_repo import PropertyRepository
from igudar.schemas.common import ErrorResponse, ValidationErrorResponse
from igudar.schemas.property import (
    PropertyCreate,
    PropertyFilters,
    PropertyResponse,
    PropertyStats,
    PropertyUpdate,
)
from igudar.services.property_service import PropertyService

router = APIRouter()


def _get_property_service(db: AsyncSession = Depends(get_db)) -> PropertyService:
    """Build a PropertyService wired to the current request's DB session."""
    return PropertyService(PropertyRepository(Property, db))


@router.get(
    "",
    response_model=List[PropertyResponse],
    summary="List properties",
    description=(
        "Returns properties newest first. Filters may be repeated, e.g. "
        "``?status=active&status=funding``."
    ),
)
async def list_properties(
    status: List[PropertyStatus] = Query(default=[]),
    property_type: List[PropertyType] = Query(default=[]),
    city: List[str] = Query(default=[]),
    min_roi: Optional[float] = Query(None),
    max_roi: Optional[float] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Max records to return"),
    service: PropertyService = Depends(_get_property_service),
) -> List[PropertyResponse]:
    filters = PropertyFilters(
        status=status,
        property_type=property_type,
        city=city,
        min_roi=min_roi,
        max_roi=max_roi,
        search=search,
    )
    return await service.list_properties(filters, skip=skip, limit=limit)


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=201,
    summary="Create a property",
    responses={422: {"model": ValidationErrorResponse, "description": "Validation error"}},
)
async def create_property(
    prop: PropertyCreate,
    service: PropertyService = Depends(_get_property_service),
) -> PropertyResponse:
    return await service.create_property(prop)


# Declared before /{property_id} so "stats" is not parsed as a UUID.
@router.get("/stats", response_model=PropertyStats, summary="Platform statistics")
async def get_property_stats(
    service: PropertyService = Depends(_get_property_service),
) -> PropertyStats:
    return await service.get_property_stats()


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get a property by ID",
    responses={404: {"model": ErrorResponse, "description": "Property not found"}},
)
async def get_property(
    property_id: UUID,
    service: PropertyService = Depends(_get_property_service),
) -> PropertyResponse:
    return await service.get_property(property_id)


@router.patch(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update a property",
    description=(
        "Changes only the fields sent. Funding progress and remaining funding "
        "in the response reflect the new target."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Property not found"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
    },
)
async def update_property(
    property_id: UUID,
    update: PropertyUpdate,
    service: PropertyService = Depends(_get_property_service),
) -> PropertyResponse:
    return await service.update_property(property_id, update)
