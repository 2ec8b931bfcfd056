"""
Investment domain model.

One user's purchase of a fractional share in a property. Rows are created
``pending`` and then moved through the status lifecycle by
:class:`igudar.services.investment_service.InvestmentService`; they are never
deleted.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, Index
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from igudar.models.property import Property


class InvestmentStatus(str, Enum):
    """
    Investment lifecycle.

    pending → confirmed | cancelled, confirmed → refunded.
    Only ``confirmed`` investments count toward a portfolio.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class Investment(SQLModel, table=True):
    """
    SQLModel table definition for investments.

    ``ix_investments_user_status_created`` covers the portfolio query
    (``WHERE user_id = ? AND status = ? ORDER BY created_at DESC``).
    """

    __tablename__ = "investments"  # type: ignore[assignment]

    __table_args__ = (
        Index("ix_investments_user_status_created", "user_id", "status", "created_at"),
        CheckConstraint("investment_amount >= 0", name="ck_investments_amount_non_negative"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(index=True)
    property_id: uuid.UUID = Field(
        foreign_key="properties.id",
        index=True,
        ondelete="RESTRICT",
    )

    investment_amount: int = Field(ge=0)  # MAD subunits
    investment_percentage: Optional[float] = None  # share of property target at creation

    status: InvestmentStatus = Field(default=InvestmentStatus.PENDING)
    transaction_id: Optional[str] = Field(default=None, max_length=255)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    notes: Optional[str] = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )
    confirmed_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore[arg-type]
    )
    cancelled_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore[arg-type]
    )
    refunded_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore[arg-type]
    )

    property: Optional["Property"] = Relationship(back_populates="investments")

    def __repr__(self) -> str:
        return (
            f"<Investment id={self.id} user={self.user_id} "
            f"property={self.property_id} amount={self.investment_amount} "
            f"status={self.status.value}>"
        )
