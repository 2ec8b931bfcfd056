"""
Development seed data: a handful of Moroccan listings and one demo user's
investments in every lifecycle state.

Usage::

    USE_SQLITE=false python -m igudar.seed

Idempotent: does nothing if any property already exists. Not for production.
"""

import asyncio
import logging
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import select

from igudar.core.logging import setup_logging
from igudar.db.session import AsyncSessionLocal, create_tables
from igudar.models.investment import Investment, InvestmentStatus
from igudar.models.property import Property, PropertyStatus, PropertyType

logger = logging.getLogger(__name__)

DEMO_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")


def _mad(amount: int) -> int:
    return amount * 100


PROPERTIES = [
    Property(
        id=uuid.UUID("a1000000-0000-4000-8000-000000000001"),
        title="Résidence Anfa Park",
        description="Modern apartments next to the Anfa Park redevelopment.",
        location="Boulevard d'Anfa",
        city="Casablanca",
        region="Casablanca-Settat",
        price=_mad(12_000_000),
        min_investment=_mad(2_000),
        target_amount=_mad(10_000_000),
        total_raised=_mad(150_000),
        expected_roi=8.5,
        rental_yield=6.2,
        investment_period=60,
        status=PropertyStatus.FUNDING,
        funding_deadline=date(2027, 6, 30),
        property_type=PropertyType.RESIDENTIAL,
        size_sqm=4200,
        bedrooms=3,
        bathrooms=2,
        total_investors=1,
        created_at=datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc),
    ),
    Property(
        id=uuid.UUID("a1000000-0000-4000-8000-000000000002"),
        title="Riad Al Medina",
        description="Restored riad operated as a boutique guesthouse.",
        location="Medina, Derb Sidi Bouloukat",
        city="Marrakech",
        region="Marrakech-Safi",
        price=_mad(4_500_000),
        min_investment=_mad(1_000),
        target_amount=_mad(4_000_000),
        total_raised=_mad(50_000),
        expected_roi=11.0,
        rental_yield=8.0,
        investment_period=48,
        status=PropertyStatus.ACTIVE,
        funding_deadline=date(2027, 3, 31),
        property_type=PropertyType.HOSPITALITY,
        size_sqm=380,
        total_investors=1,
        created_at=datetime(2026, 2, 3, 14, 30, tzinfo=timezone.utc),
    ),
    Property(
        id=uuid.UUID("a1000000-0000-4000-8000-000000000003"),
        title="Hay Riad Business Center",
        description="Grade-A office space in Rabat's business district.",
        location="Hay Riad",
        city="Rabat",
        region="Rabat-Salé-Kénitra",
        price=_mad(20_000_000),
        min_investment=_mad(5_000),
        target_amount=_mad(18_000_000),
        expected_roi=7.0,
        rental_yield=7.5,
        investment_period=84,
        status=PropertyStatus.ACTIVE,
        funding_deadline=date(2027, 12, 31),
        property_type=PropertyType.COMMERCIAL,
        size_sqm=6500,
        created_at=datetime(2026, 3, 15, 8, 0, tzinfo=timezone.utc),
    ),
    Property(
        id=uuid.UUID("a1000000-0000-4000-8000-000000000004"),
        title="Marina Tanger Lofts",
        description="Mixed-use building with retail on the ground floor.",
        location="Tanja Marina Bay",
        city="Tangier",
        region="Tanger-Tétouan-Al Hoceïma",
        price=_mad(9_000_000),
        min_investment=_mad(2_500),
        target_amount=_mad(8_000_000),
        expected_roi=9.2,
        rental_yield=6.8,
        investment_period=60,
        status=PropertyStatus.DRAFT,
        property_type=PropertyType.MIXED_USE,
        size_sqm=3100,
        created_at=datetime(2026, 4, 1, 10, 0, tzinfo=timezone.utc),
    ),
]

INVESTMENTS = [
    Investment(
        id=uuid.UUID("b1000000-0000-4000-8000-000000000001"),
        user_id=DEMO_USER_ID,
        property_id=PROPERTIES[0].id,
        investment_amount=_mad(100_000),
        investment_percentage=1.0,
        status=InvestmentStatus.CONFIRMED,
        payment_method="bank_transfer",
        created_at=datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc),
        confirmed_at=datetime(2026, 2, 2, 9, 0, tzinfo=timezone.utc),
    ),
    Investment(
        id=uuid.UUID("b1000000-0000-4000-8000-000000000002"),
        user_id=DEMO_USER_ID,
        property_id=PROPERTIES[0].id,
        investment_amount=_mad(50_000),
        investment_percentage=0.5,
        status=InvestmentStatus.CONFIRMED,
        payment_method="card",
        created_at=datetime(2026, 5, 20, 16, 0, tzinfo=timezone.utc),
        confirmed_at=datetime(2026, 5, 20, 16, 5, tzinfo=timezone.utc),
    ),
    Investment(
        id=uuid.UUID("b1000000-0000-4000-8000-000000000003"),
        user_id=DEMO_USER_ID,
        property_id=PROPERTIES[1].id,
        investment_amount=_mad(50_000),
        investment_percentage=1.25,
        status=InvestmentStatus.CONFIRMED,
        payment_method="card",
        created_at=datetime(2026, 3, 8, 11, 0, tzinfo=timezone.utc),
        confirmed_at=datetime(2026, 3, 8, 11, 2, tzinfo=timezone.utc),
    ),
    Investment(
        id=uuid.UUID("b1000000-0000-4000-8000-000000000004"),
        user_id=DEMO_USER_ID,
        property_id=PROPERTIES[2].id,
        investment_amount=_mad(25_000),
        investment_percentage=25_000 / 18_000_000 * 100,
        status=InvestmentStatus.PENDING,
        created_at=datetime(2026, 9, 1, 10, 0, tzinfo=timezone.utc),
    ),
    Investment(
        id=uuid.UUID("b1000000-0000-4000-8000-000000000005"),
        user_id=DEMO_USER_ID,
        property_id=PROPERTIES[2].id,
        investment_amount=_mad(10_000),
        investment_percentage=10_000 / 18_000_000 * 100,
        status=InvestmentStatus.CANCELLED,
        created_at=datetime(2026, 6, 12, 10, 0, tzinfo=timezone.utc),
        cancelled_at=datetime(2026, 6, 13, 10, 0, tzinfo=timezone.utc),
    ),
    Investment(
        id=uuid.UUID("b1000000-0000-4000-8000-000000000006"),
        user_id=DEMO_USER_ID,
        property_id=PROPERTIES[1].id,
        investment_amount=_mad(20_000),
        investment_percentage=0.5,
        status=InvestmentStatus.REFUNDED,
        payment_method="bank_transfer",
        created_at=datetime(2026, 4, 2, 9, 0, tzinfo=timezone.utc),
        confirmed_at=datetime(2026, 4, 2, 9, 30, tzinfo=timezone.utc),
        refunded_at=datetime(2026, 7, 1, 14, 0, tzinfo=timezone.utc),
    ),
]


async def seed() -> None:
    """Create tables and insert the sample data if no property exists yet."""
    await create_tables()

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(Property).limit(1))
        if result.scalars().first() is not None:
            logger.info("Database already contains properties; skipping seed")
            return

        session.add_all(PROPERTIES)
        await session.commit()

        session.add_all(INVESTMENTS)
        await session.commit()

        logger.info(
            "Seeded %d properties and %d investments for demo user %s",
            len(PROPERTIES),
            len(INVESTMENTS),
            DEMO_USER_ID,
        )


if __name__ == "__main__":
    setup_logging()
    asyncio.run(seed())
