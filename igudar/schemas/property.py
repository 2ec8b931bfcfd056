"""
Pydantic schemas for Property API request / response serialisation.

Amounts are integer MAD subunits throughout. ``funding_progress`` and
``remaining_funding`` are derived on output and never stored.
"""

from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from igudar.models.property import PropertyStatus, PropertyType


def compute_funding_progress(total_raised: int, target_amount: int) -> int:
    """Percentage of the target raised, rounded; 0 for a zero target."""
    if target_amount <= 0:
        return 0
    return round(total_raised / target_amount * 100)


NULLABLE_PROPERTY_FIELDS = frozenset({"funding_deadline", "bedrooms", "bathrooms"})


class PropertyBase(BaseModel):
    """Fields common to property creation and responses."""

    title: str = Field(..., min_length=1, max_length=255, examples=["Résidence Anfa Park"])
    description: str = Field(default="", description="Long-form listing description")
    location: str = Field(default="", max_length=255, examples=["Boulevard d'Anfa"])
    city: str = Field(..., min_length=1, max_length=100, examples=["Casablanca"])
    region: str = Field(default="", max_length=100, examples=["Casablanca-Settat"])
    price: int = Field(default=0, ge=0, description="Total property value (subunits)")
    image_url: str = ""
    min_investment: int = Field(default=0, ge=0, description="Smallest ticket (subunits)")
    target_amount: int = Field(..., ge=0, description="Funding target (subunits)")
    expected_roi: float = Field(default=0.0, ge=-100, le=1000, description="Annual ROI, %")
    rental_yield: float = Field(default=0.0, ge=0, le=100, description="Annual yield, %")
    investment_period: int = Field(default=12, ge=1, description="Holding period in months")
    status: PropertyStatus = PropertyStatus.DRAFT
    funding_deadline: Optional[date] = None
    property_type: PropertyType
    size_sqm: float = Field(default=0.0, ge=0)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)

    @field_validator("title", "city")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class PropertyCreate(PropertyBase):
    """Schema for ``POST /properties``."""

    @model_validator(mode="after")
    def _min_investment_within_target(self) -> "PropertyCreate":
        if self.target_amount and self.min_investment > self.target_amount:
            raise ValueError("min_investment cannot exceed target_amount")
        return self


class PropertyUpdate(BaseModel):
    """
    Schema for ``PATCH /properties/{id}``. Only the fields sent are changed.

    ``total_raised`` and ``total_investors`` are not editable; they follow
    investment confirmations and refunds.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
    region: Optional[str] = Field(default=None, max_length=100)
    price: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    min_investment: Optional[int] = Field(default=None, ge=0)
    target_amount: Optional[int] = Field(default=None, ge=0)
    expected_roi: Optional[float] = Field(default=None, ge=-100, le=1000)
    rental_yield: Optional[float] = Field(default=None, ge=0, le=100)
    investment_period: Optional[int] = Field(default=None, ge=1)
    status: Optional[PropertyStatus] = None
    funding_deadline: Optional[date] = None
    property_type: Optional[PropertyType] = None
    size_sqm: Optional[float] = Field(default=None, ge=0)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)

    @field_validator("title", "city")
    @classmethod
    def validate_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("must not be blank")
        return v.strip() if v is not None else v

    @model_validator(mode="after")
    def _required_columns_not_nulled(self) -> "PropertyUpdate":
        nulled = sorted(
            name
            for name in self.model_fields_set - NULLABLE_PROPERTY_FIELDS
            if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"cannot be null: {', '.join(nulled)}")
        return self


class PropertyResponse(PropertyBase):
    """Schema returned by property endpoints."""

    id: UUID
    total_raised: int
    total_investors: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def funding_progress(self) -> int:
        return compute_funding_progress(self.total_raised, self.target_amount)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_funding(self) -> int:
        return max(self.target_amount - self.total_raised, 0)

    model_config = ConfigDict(from_attributes=True)


class PropertySnapshot(BaseModel):
    """Property fields embedded in investment responses."""

    id: UUID
    title: str
    city: str
    region: str
    property_type: PropertyType
    status: PropertyStatus
    target_amount: int
    expected_roi: float
    rental_yield: float
    image_url: str

    model_config = ConfigDict(from_attributes=True)


class PropertyFilters(BaseModel):
    """Query filters for ``GET /properties``."""

    status: List[PropertyStatus] = Field(default_factory=list)
    property_type: List[PropertyType] = Field(default_factory=list)
    city: List[str] = Field(default_factory=list)
    min_roi: Optional[float] = None
    max_roi: Optional[float] = None
    search: Optional[str] = Field(default=None, max_length=100)


class PropertyStats(BaseModel):
    """Platform-wide listing statistics."""

    total_properties: int
    active_properties: int
    total_value: int
    total_raised: int
    average_roi: float
    properties_by_type: Dict[str, int]
    properties_by_city: Dict[str, int]
    properties_by_status: Dict[str, int]
