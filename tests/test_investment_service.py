"""
Unit tests for InvestmentService — business logic layer.

All repository calls are mocked.  Tests cover:
- get_investment / get_user_investments
- create_investment: success, property not found, property not open,
  below minimum, over remaining funding, IntegrityError
- update_status: confirm, cancel, refund, same-status conflict, forbidden
  transitions, property bookkeeping
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from igudar.core.exceptions import BusinessRuleViolation, ConflictException, NotFoundException
from igudar.models.investment import InvestmentStatus
from igudar.models.property import PropertyStatus
from igudar.schemas.investment import InvestmentCreate, InvestmentFilters, InvestmentStatusUpdate
from igudar.services.investment_service import InvestmentService

from .conftest import INVESTMENT_ID, PROPERTY_ID, USER_ID, make_investment, make_property

# ────────────────────────────────────────────────────────────────────────────
# Fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def invest_repo():
    repo = AsyncMock()
    repo.db = AsyncMock()
    repo.create.side_effect = lambda investment: investment
    repo.save.side_effect = lambda investment: investment
    repo.count_confirmed_for_user_property.return_value = 0
    return repo


@pytest.fixture()
def property_repo():
    return AsyncMock()


@pytest.fixture()
def service(invest_repo, property_repo):
    return InvestmentService(invest_repo, property_repo)


def _create_payload(amount: int = 200_000, **overrides) -> InvestmentCreate:
    data = {"user_id": USER_ID, "property_id": PROPERTY_ID, "investment_amount": amount}
    data.update(overrides)
    return InvestmentCreate(**data)


# ────────────────────────────────────────────────────────────────────────────
# Queries
# ────────────────────────────────────────────────────────────────────────────


class TestQueries:
    """Tests for get_investment and get_user_investments."""

    @pytest.mark.asyncio
    async def test_get_investment_found(self, service, invest_repo):
        investment = make_investment(id=INVESTMENT_ID)
        invest_repo.get_with_property.return_value = investment

        result = await service.get_investment(INVESTMENT_ID)

        assert result is investment
        invest_repo.get_with_property.assert_awaited_once_with(INVESTMENT_ID)

    @pytest.mark.asyncio
    async def test_get_investment_not_found(self, service, invest_repo):
        invest_repo.get_with_property.return_value = None

        with pytest.raises(NotFoundException) as exc_info:
            await service.get_investment(INVESTMENT_ID)
        assert exc_info.value.status_code == 404
        assert "Investment" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_get_user_investments_passes_filters(self, service, invest_repo):
        filters = InvestmentFilters(status=[InvestmentStatus.PENDING])
        invest_repo.get_by_user.return_value = [make_investment()]

        result = await service.get_user_investments(USER_ID, filters, skip=5, limit=10)

        assert len(result) == 1
        invest_repo.get_by_user.assert_awaited_once_with(USER_ID, filters, skip=5, limit=10)


# ────────────────────────────────────────────────────────────────────────────
# create_investment
# ────────────────────────────────────────────────────────────────────────────


class TestCreateInvestment:
    """Tests for InvestmentService.create_investment."""

    @pytest.mark.asyncio
    async def test_creates_pending_investment(self, service, property_repo, invest_repo):
        property_repo.get.return_value = make_property(target_amount=1_000_000)

        result = await service.create_investment(
            _create_payload(250_000, payment_method="card", notes="first ticket")
        )

        assert result.status == InvestmentStatus.PENDING
        assert result.user_id == USER_ID
        assert result.property_id == PROPERTY_ID
        assert result.investment_amount == 250_000
        assert result.investment_percentage == pytest.approx(25)
        assert result.payment_method == "card"
        assert result.notes == "first ticket"
        assert result.confirmed_at is None
        invest_repo.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_zero_target_gives_zero_percentage(self, service, property_repo):
        property_repo.get.return_value = make_property(target_amount=0)

        result = await service.create_investment(_create_payload())

        assert result.investment_percentage == 0

    @pytest.mark.asyncio
    async def test_property_not_found(self, service, property_repo, invest_repo):
        property_repo.get.return_value = None

        with pytest.raises(NotFoundException) as exc_info:
            await service.create_investment(_create_payload())
        assert "Property" in exc_info.value.message
        invest_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [
            PropertyStatus.DRAFT,
            PropertyStatus.FUNDED,
            PropertyStatus.COMPLETED,
            PropertyStatus.CANCELLED,
            PropertyStatus.SOLD,
        ],
    )
    async def test_property_not_open(self, service, property_repo, invest_repo, status):
        property_repo.get.return_value = make_property(status=status)

        with pytest.raises(BusinessRuleViolation) as exc_info:
            await service.create_investment(_create_payload())
        assert exc_info.value.status_code == 422
        assert status.value in exc_info.value.message
        invest_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_active_property_accepts_investment(self, service, property_repo):
        property_repo.get.return_value = make_property(status=PropertyStatus.ACTIVE)

        result = await service.create_investment(_create_payload())

        assert result.status == InvestmentStatus.PENDING

    @pytest.mark.asyncio
    async def test_below_property_minimum(self, service, property_repo):
        property_repo.get.return_value = make_property(min_investment=500_000)

        with pytest.raises(BusinessRuleViolation) as exc_info:
            await service.create_investment(_create_payload(200_000))
        assert "Minimum investment" in exc_info.value.message
        assert "5,000.00 MAD" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_exceeds_remaining_funding(self, service, property_repo):
        property_repo.get.return_value = make_property(
            target_amount=1_000_000, total_raised=900_000
        )

        with pytest.raises(BusinessRuleViolation) as exc_info:
            await service.create_investment(_create_payload(200_000))
        assert "1,000.00 MAD" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_exactly_remaining_funding_is_allowed(self, service, property_repo):
        property_repo.get.return_value = make_property(
            target_amount=1_000_000, total_raised=800_000
        )

        result = await service.create_investment(_create_payload(200_000))

        assert result.investment_amount == 200_000

    @pytest.mark.asyncio
    async def test_integrity_error_rolls_back(self, service, property_repo, invest_repo):
        property_repo.get.return_value = make_property()
        invest_repo.create.side_effect = IntegrityError("INSERT", {}, Exception("fk"))

        with pytest.raises(BusinessRuleViolation):
            await service.create_investment(_create_payload())
        invest_repo.db.rollback.assert_awaited_once()


# ────────────────────────────────────────────────────────────────────────────
# update_status
# ────────────────────────────────────────────────────────────────────────────


class TestUpdateStatus:
    """Tests for the investment status lifecycle."""

    @pytest.mark.asyncio
    async def test_confirm_updates_property_totals(self, service, invest_repo):
        prop = make_property(total_raised=100_000, total_investors=2)
        investment = make_investment(
            id=INVESTMENT_ID, amount=200_000, status=InvestmentStatus.PENDING, prop=prop
        )
        invest_repo.get_with_property.return_value = investment

        result = await service.update_status(
            INVESTMENT_ID,
            InvestmentStatusUpdate(status=InvestmentStatus.CONFIRMED, transaction_id="tx-42"),
        )

        assert result.status == InvestmentStatus.CONFIRMED
        assert result.confirmed_at is not None
        assert result.transaction_id == "tx-42"
        assert prop.total_raised == 300_000
        assert prop.total_investors == 3
        assert prop.updated_at is not None
        invest_repo.save.assert_awaited_once_with(investment)

    @pytest.mark.asyncio
    async def test_confirm_for_existing_investor_keeps_investor_count(
        self, service, invest_repo
    ):
        prop = make_property(total_raised=100_000, total_investors=1)
        investment = make_investment(status=InvestmentStatus.PENDING, prop=prop)
        invest_repo.get_with_property.return_value = investment
        invest_repo.count_confirmed_for_user_property.return_value = 1

        await service.update_status(
            investment.id, InvestmentStatusUpdate(status=InvestmentStatus.CONFIRMED)
        )

        assert prop.total_investors == 1
        assert prop.total_raised == 200_000

    @pytest.mark.asyncio
    async def test_cancel_pending(self, service, invest_repo):
        prop = make_property(total_raised=50_000)
        investment = make_investment(status=InvestmentStatus.PENDING, prop=prop)
        invest_repo.get_with_property.return_value = investment

        result = await service.update_status(
            investment.id,
            InvestmentStatusUpdate(status=InvestmentStatus.CANCELLED, notes="changed mind"),
        )

        assert result.status == InvestmentStatus.CANCELLED
        assert result.cancelled_at is not None
        assert result.notes == "changed mind"
        assert prop.total_raised == 50_000

    @pytest.mark.asyncio
    async def test_refund_confirmed(self, service, invest_repo):
        prop = make_property(total_raised=300_000, total_investors=2)
        investment = make_investment(amount=100_000, prop=prop)
        invest_repo.get_with_property.return_value = investment
        invest_repo.count_confirmed_for_user_property.return_value = 1

        result = await service.update_status(
            investment.id, InvestmentStatusUpdate(status=InvestmentStatus.REFUNDED)
        )

        assert result.status == InvestmentStatus.REFUNDED
        assert result.refunded_at is not None
        assert prop.total_raised == 200_000
        assert prop.total_investors == 1

    @pytest.mark.asyncio
    async def test_refund_keeps_investor_with_other_confirmed_rows(self, service, invest_repo):
        prop = make_property(total_raised=300_000, total_investors=2)
        investment = make_investment(amount=100_000, prop=prop)
        invest_repo.get_with_property.return_value = investment
        invest_repo.count_confirmed_for_user_property.return_value = 2

        await service.update_status(
            investment.id, InvestmentStatusUpdate(status=InvestmentStatus.REFUNDED)
        )

        assert prop.total_investors == 2

    @pytest.mark.asyncio
    async def test_refund_never_drives_totals_negative(self, service, invest_repo):
        prop = make_property(total_raised=10_000, total_investors=0)
        investment = make_investment(amount=100_000, prop=prop)
        invest_repo.get_with_property.return_value = investment

        await service.update_status(
            investment.id, InvestmentStatusUpdate(status=InvestmentStatus.REFUNDED)
        )

        assert prop.total_raised == 0
        assert prop.total_investors == 0

    @pytest.mark.asyncio
    async def test_same_status_is_conflict(self, service, invest_repo):
        invest_repo.get_with_property.return_value = make_investment()

        with pytest.raises(ConflictException) as exc_info:
            await service.update_status(
                INVESTMENT_ID, InvestmentStatusUpdate(status=InvestmentStatus.CONFIRMED)
            )
        assert exc_info.value.status_code == 409
        invest_repo.save.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "current, requested",
        [
            (InvestmentStatus.PENDING, InvestmentStatus.REFUNDED),
            (InvestmentStatus.CONFIRMED, InvestmentStatus.CANCELLED),
            (InvestmentStatus.CANCELLED, InvestmentStatus.CONFIRMED),
            (InvestmentStatus.REFUNDED, InvestmentStatus.CONFIRMED),
        ],
    )
    async def test_forbidden_transitions(self, service, invest_repo, current, requested):
        prop = make_property(total_raised=100_000)
        invest_repo.get_with_property.return_value = make_investment(status=current, prop=prop)

        with pytest.raises(BusinessRuleViolation) as exc_info:
            await service.update_status(INVESTMENT_ID, InvestmentStatusUpdate(status=requested))
        assert "Invalid status transition" in exc_info.value.message
        assert prop.total_raised == 100_000
        invest_repo.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_found(self, service, invest_repo):
        invest_repo.get_with_property.return_value = None

        with pytest.raises(NotFoundException):
            await service.update_status(
                uuid4(), InvestmentStatusUpdate(status=InvestmentStatus.CONFIRMED)
            )

    @pytest.mark.asyncio
    async def test_confirm_without_property_snapshot(self, service, invest_repo):
        investment = make_investment(status=InvestmentStatus.PENDING, with_property=False)
        invest_repo.get_with_property.return_value = investment

        result = await service.update_status(
            investment.id, InvestmentStatusUpdate(status=InvestmentStatus.CONFIRMED)
        )

        assert result.status == InvestmentStatus.CONFIRMED
        invest_repo.count_confirmed_for_user_property.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_integrity_error_on_save(self, service, invest_repo):
        invest_repo.get_with_property.return_value = make_investment(
            status=InvestmentStatus.PENDING
        )
        invest_repo.save.side_effect = IntegrityError("UPDATE", {}, Exception("constraint"))

        with pytest.raises(BusinessRuleViolation):
            await service.update_status(
                INVESTMENT_ID, InvestmentStatusUpdate(status=InvestmentStatus.CANCELLED)
            )
        invest_repo.db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_confirming_pending_tickets_cannot_overfund_property(
        self, service, invest_repo
    ):
        prop = make_property(target_amount=1_000_000, total_raised=0)
        first = make_investment(amount=800_000, status=InvestmentStatus.PENDING, prop=prop)
        second = make_investment(amount=800_000, status=InvestmentStatus.PENDING, prop=prop)
        confirm = InvestmentStatusUpdate(status=InvestmentStatus.CONFIRMED)

        invest_repo.get_with_property.return_value = first
        await service.update_status(first.id, confirm)

        invest_repo.get_with_property.return_value = second
        with pytest.raises(BusinessRuleViolation) as exc_info:
            await service.update_status(second.id, confirm)

        assert "2,000.00 MAD" in exc_info.value.message
        assert prop.total_raised == 800_000
        assert second.status == InvestmentStatus.PENDING
        assert second.confirmed_at is None
        invest_repo.save.assert_awaited_once_with(first)

    @pytest.mark.asyncio
    async def test_confirming_exactly_the_remaining_funding(self, service, invest_repo):
        prop = make_property(target_amount=1_000_000, total_raised=700_000)
        investment = make_investment(amount=300_000, status=InvestmentStatus.PENDING, prop=prop)
        invest_repo.get_with_property.return_value = investment

        await service.update_status(
            investment.id, InvestmentStatusUpdate(status=InvestmentStatus.CONFIRMED)
        )

        assert prop.total_raised == 1_000_000

    @pytest.mark.asyncio
    async def test_confirming_against_zero_target_is_unbounded(self, service, invest_repo):
        prop = make_property(target_amount=0, total_raised=5_000_000)
        investment = make_investment(amount=300_000, status=InvestmentStatus.PENDING, prop=prop)
        invest_repo.get_with_property.return_value = investment

        await service.update_status(
            investment.id, InvestmentStatusUpdate(status=InvestmentStatus.CONFIRMED)
        )

        assert prop.total_raised == 5_300_000
