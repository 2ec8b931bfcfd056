"""
Portfolio read models.

These are computed on every request by
:mod:`igudar.services.portfolio_aggregator` and never persisted. Monetary
values are MAD subunits; percentages are plain numbers (``8.0`` means 8 %).
"""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class PerformanceTrend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class PortfolioSummary(BaseModel):
    """Aggregate view of a user's confirmed investments."""

    total_invested: int = Field(0, ge=0, description="Sum of confirmed amounts")
    current_value: float = Field(0.0, description="Invested amount plus projected annual return")
    total_return: float = Field(0.0, description="current_value - total_invested")
    roi_percentage: float = Field(0.0, description="total_return / total_invested * 100")
    total_properties: int = Field(0, ge=0, description="Distinct properties invested in")
    total_percentage: float = Field(
        0.0, ge=0, description="Sum of per-investment ownership percentages"
    )
    active_investments: int = Field(0, ge=0, description="Number of confirmed investments")
    monthly_return: float = Field(0.0, description="annual_return / 12")
    annual_return: float = Field(0.0, description="Projected annual return")


class InvestmentPerformance(BaseModel):
    """Projected performance of a single confirmed investment."""

    investment_id: UUID
    property_title: str
    initial_value: int
    current_value: float
    return_amount: float
    roi_percentage: float
    months_held: int
    investment_percentage: float
    performance_trend: PerformanceTrend


class PortfolioBreakdown(BaseModel):
    """Share of a portfolio held in one property type."""

    property_type: str = Field(..., examples=["Mixed Use"])
    total_invested: int
    current_value: float
    percentage_of_portfolio: int
    number_of_properties: int
    average_roi: float


class PropertyOwnership(BaseModel):
    """A user's combined confirmed stake in one property."""

    user_id: UUID
    property_id: UUID
    ownership_percentage: float = Field(
        0.0, ge=0, description="Sum of confirmed ownership percentages in this property"
    )
    total_invested: int = Field(0, ge=0)
    investment_count: int = Field(0, ge=0)
