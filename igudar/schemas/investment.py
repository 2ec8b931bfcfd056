"""
Pydantic schemas for Investment API request / response serialisation.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from igudar.core.config import settings
from igudar.models.investment import InvestmentStatus
from igudar.schemas.property import PropertySnapshot


class InvestmentCreate(BaseModel):
    """
    Schema for ``POST /investments``.

    ``investment_amount`` is in MAD subunits and must fall inside the
    platform limits configured by ``MIN_INVESTMENT_AMOUNT`` and
    ``MAX_INVESTMENT_AMOUNT``.
    """

    user_id: UUID
    property_id: UUID
    investment_amount: int = Field(..., gt=0, examples=[500_000])
    payment_method: Optional[str] = Field(default=None, max_length=50, examples=["card"])
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("investment_amount")
    @classmethod
    def validate_platform_limits(cls, v: int) -> int:
        if not settings.MIN_INVESTMENT_AMOUNT <= v <= settings.MAX_INVESTMENT_AMOUNT:
            raise ValueError(
                f"investment_amount must be between {settings.MIN_INVESTMENT_AMOUNT // 100:,} "
                f"and {settings.MAX_INVESTMENT_AMOUNT // 100:,} MAD"
            )
        return v


class InvestmentStatusUpdate(BaseModel):
    """Schema for ``PATCH /investments/{id}/status``."""

    status: InvestmentStatus
    transaction_id: Optional[str] = Field(default=None, max_length=255)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    notes: Optional[str] = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def _pending_is_not_a_target(self) -> "InvestmentStatusUpdate":
        if self.status == InvestmentStatus.PENDING:
            raise ValueError("an investment cannot be moved back to 'pending'")
        return self


class InvestmentResponse(BaseModel):
    """Investment as returned right after creation."""

    id: UUID
    user_id: UUID
    property_id: UUID
    investment_amount: int
    investment_percentage: Optional[float] = None
    status: InvestmentStatus
    transaction_id: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InvestmentDetailResponse(InvestmentResponse):
    """Investment with its property snapshot (list / detail / status endpoints)."""

    property: Optional[PropertySnapshot] = None


class InvestmentSortField(str, Enum):
    CREATED_AT = "created_at"
    CONFIRMED_AT = "confirmed_at"
    INVESTMENT_AMOUNT = "investment_amount"


class InvestmentFilters(BaseModel):
    """Query filters for ``GET /users/{user_id}/investments``."""

    status: List[InvestmentStatus] = Field(default_factory=list)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_amount: Optional[int] = Field(default=None, ge=0)
    max_amount: Optional[int] = Field(default=None, ge=0)
    sort: InvestmentSortField = InvestmentSortField.CREATED_AT
    ascending: bool = False

    @model_validator(mode="after")
    def _ranges_are_ordered(self) -> "InvestmentFilters":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        ):
            raise ValueError("min_amount must not exceed max_amount")
        return self
