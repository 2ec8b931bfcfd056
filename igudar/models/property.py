"""
Property domain model.

A real-estate asset listed for fractional investment, persisted in the
``properties`` table. Monetary columns hold integer MAD subunits.
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from igudar.models.investment import Investment


class PropertyStatus(str, Enum):
    """Listing lifecycle states."""

    DRAFT = "draft"
    ACTIVE = "active"
    FUNDING = "funding"
    FUNDED = "funded"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    SOLD = "sold"


# Listings in these states accept new investments.
INVESTABLE_STATUSES = frozenset({PropertyStatus.ACTIVE, PropertyStatus.FUNDING})


class PropertyType(str, Enum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    MIXED_USE = "mixed_use"
    LAND = "land"
    INDUSTRIAL = "industrial"
    HOSPITALITY = "hospitality"

    @property
    def label(self) -> str:
        """Display label, e.g. ``mixed_use`` → ``Mixed Use``."""
        return self.value.replace("_", " ").title()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Property(SQLModel, table=True):
    """
    SQLModel table definition for properties.

    ``total_raised`` and ``total_investors`` are maintained by the
    investment service when investments are confirmed or refunded.
    """

    __tablename__ = "properties"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("target_amount >= 0", name="ck_properties_target_non_negative"),
        CheckConstraint("total_raised >= 0", name="ck_properties_raised_non_negative"),
        CheckConstraint("min_investment >= 0", name="ck_properties_min_investment"),
        CheckConstraint("length(title) > 0", name="ck_properties_title_not_empty"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(index=True, max_length=255)
    description: str = ""
    location: str = Field(default="", max_length=255)
    city: str = Field(index=True, max_length=100)
    region: str = Field(default="", max_length=100)
    price: int = Field(default=0, ge=0)
    image_url: str = ""

    min_investment: int = Field(default=0, ge=0)
    target_amount: int = Field(ge=0)
    total_raised: int = Field(default=0, ge=0)
    expected_roi: float = 0.0
    rental_yield: float = 0.0
    investment_period: int = 12  # months

    status: PropertyStatus = Field(default=PropertyStatus.DRAFT, index=True)
    funding_deadline: Optional[date] = None
    property_type: PropertyType = Field(index=True)
    size_sqm: float = 0.0
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    total_investors: int = 0

    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
        index=True,
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    investments: List["Investment"] = Relationship(back_populates="property")

    def __repr__(self) -> str:
        return f"<Property id={self.id} title='{self.title}' status={self.status.value}>"
