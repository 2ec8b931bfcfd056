"""
Shared pytest fixtures and factories.

Tests run with ``USE_SQLITE=true`` and mocked repositories, so no real
database or network I/O is needed.
"""

import os

os.environ.setdefault("USE_SQLITE", "true")

import uuid  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from typing import Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from igudar.core.resilience import db_circuit_breaker  # noqa: E402
from igudar.models.investment import Investment, InvestmentStatus  # noqa: E402
from igudar.models.property import Property, PropertyStatus, PropertyType  # noqa: E402

# ────────────────────────────────────────────────────────────────────────────
# Factory helpers
# ────────────────────────────────────────────────────────────────────────────

USER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
PROPERTY_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
INVESTMENT_ID = uuid.UUID("33333333-3333-3333-3333-333333333333")
PROPERTY_ID_2 = uuid.UUID("44444444-4444-4444-4444-444444444444")
USER_ID_2 = uuid.UUID("55555555-5555-5555-5555-555555555555")

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def make_property(
    *,
    id: uuid.UUID = PROPERTY_ID,
    title: str = "Résidence Test",
    city: str = "Casablanca",
    target_amount: int = 1_000_000,
    total_raised: int = 0,
    min_investment: int = 0,
    expected_roi: float = 8.0,
    rental_yield: float = 6.0,
    status: PropertyStatus = PropertyStatus.FUNDING,
    property_type: PropertyType = PropertyType.RESIDENTIAL,
    total_investors: int = 0,
) -> Property:
    """Create a Property domain object with sensible test defaults."""
    return Property(
        id=id,
        title=title,
        city=city,
        region="Casablanca-Settat",
        target_amount=target_amount,
        total_raised=total_raised,
        min_investment=min_investment,
        expected_roi=expected_roi,
        rental_yield=rental_yield,
        status=status,
        property_type=property_type,
        total_investors=total_investors,
        created_at=NOW,
    )


def make_investment(
    *,
    id: Optional[uuid.UUID] = None,
    user_id: uuid.UUID = USER_ID,
    property_id: uuid.UUID = PROPERTY_ID,
    amount: int = 100_000,
    status: InvestmentStatus = InvestmentStatus.CONFIRMED,
    prop: Optional[Property] = None,
    with_property: bool = True,
    created_at: datetime = NOW,
    confirmed_at: Optional[datetime] = None,
) -> Investment:
    """
    Create an Investment with its property snapshot attached.

    A default property is built from ``property_id`` unless ``prop`` is given
    or ``with_property`` is False.
    """
    investment = Investment(
        id=id or uuid.uuid4(),
        user_id=user_id,
        property_id=property_id,
        investment_amount=amount,
        status=status,
        created_at=created_at,
        confirmed_at=confirmed_at,
    )
    if with_property:
        investment.property = prop if prop is not None else make_property(id=property_id)
    return investment


# ────────────────────────────────────────────────────────────────────────────
# Pytest fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def mock_db():
    """A mocked AsyncSession that tracks add/commit/refresh/rollback calls."""
    session = AsyncMock()
    session.add = MagicMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    return session


@pytest.fixture(autouse=True)
def _reset_db_circuit_breaker():
    """Keep the global circuit breaker closed between tests."""
    db_circuit_breaker.reset()
    yield
    db_circuit_breaker.reset()
