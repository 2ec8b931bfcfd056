"""
Investment service — creation rules and the status lifecycle.

Lifecycle::

    pending ──► confirmed ──► refunded
       │
       └──────► cancelled

``cancelled`` and ``refunded`` are terminal. Confirming adds the amount to
the property's ``total_raised``; refunding takes it back out. Both changes
are committed in the same transaction as the status change.
"""

import logging
from datetime import datetime, timezone
from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from igudar.core.exceptions import BusinessRuleViolation, ConflictException, NotFoundException
from igudar.models.investment import Investment, InvestmentStatus
from igudar.models.property import INVESTABLE_STATUSES, Property
from igudar.repositories.investment_repo import InvestmentRepository
from igudar.repositories.property_repo import PropertyRepository
from igudar.schemas.investment import InvestmentCreate, InvestmentFilters, InvestmentStatusUpdate

logger = logging.getLogger(__name__)


class InvestmentService:
    """
    Encapsulates CRUD + business rules for :class:`Investment`.

    Needs the property repository because a new investment is validated
    against the property it targets.
    """

    def __init__(self, invest_repo: InvestmentRepository, property_repo: PropertyRepository):
        self._invest_repo = invest_repo
        self._property_repo = property_repo

    # ── Queries ──

    async def get_investment(self, investment_id: UUID) -> Investment:
        investment = await self._invest_repo.get_with_property(investment_id)
        if not investment:
            raise NotFoundException("Investment", investment_id)
        return investment

    async def get_user_investments(
        self,
        user_id: UUID,
        filters: InvestmentFilters,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Investment]:
        """A user's investments in every status, newest first unless sorted otherwise."""
        return await self._invest_repo.get_by_user(user_id, filters, skip=skip, limit=limit)

    # ── Commands ──

    async def create_investment(self, invest_in: InvestmentCreate) -> Investment:
        """
        Record a new ``pending`` investment.

        Validation sequence:
        1. The property must exist (404).
        2. It must be open for investment, i.e. ``active`` or ``funding`` (422).
        3. The amount must reach the property's ``min_investment`` (422).
        4. The amount must fit in the funding still needed (422).
        """
        prop = await self._property_repo.get(invest_in.property_id)
        if not prop:
            raise NotFoundException("Property", invest_in.property_id)

        if prop.status not in INVESTABLE_STATUSES:
            raise BusinessRuleViolation(
                f"Property '{prop.title}' is {prop.status.value} and does not accept investments"
            )

        amount = invest_in.investment_amount
        if amount < prop.min_investment:
            raise BusinessRuleViolation(
                f"Minimum investment for '{prop.title}' is {prop.min_investment / 100:,.2f} MAD"
            )

        _check_remaining_funding(prop, amount)

        investment = Investment(
            user_id=invest_in.user_id,
            property_id=prop.id,
            investment_amount=amount,
            investment_percentage=(
                amount / prop.target_amount * 100 if prop.target_amount > 0 else 0.0
            ),
            status=InvestmentStatus.PENDING,
            payment_method=invest_in.payment_method,
            notes=invest_in.notes,
        )
        try:
            created = await self._invest_repo.create(investment)
        except IntegrityError as exc:
            await self._invest_repo.db.rollback()
            logger.warning(
                "IntegrityError creating investment (user=%s, property=%s): %s",
                invest_in.user_id,
                invest_in.property_id,
                exc,
            )
            raise BusinessRuleViolation(
                "Investment could not be created; the property may have been removed "
                "or a database constraint was violated."
            )
        logger.info(
            "Created investment %s: user %s → property %s (%d subunits)",
            created.id,
            created.user_id,
            created.property_id,
            created.investment_amount,
        )
        return created

    async def update_status(self, investment_id: UUID, update: InvestmentStatusUpdate) -> Investment:
        """
        Move an investment to a new status.

        Raises :class:`ConflictException` if it is already in that status and
        :class:`BusinessRuleViolation` for transitions the lifecycle forbids or
        when confirming would push the property past its funding target.
        """
        investment = await self.get_investment(investment_id)
        current, requested = investment.status, update.status

        if current == requested:
            raise ConflictException(f"Investment {investment_id} is already {current.value}")
        _validate_status_transition(current, requested)

        now = datetime.now(timezone.utc)
        prop = investment.property

        if requested == InvestmentStatus.CONFIRMED:
            if prop is not None:
                await self._add_to_property(investment, prop, now)
            investment.confirmed_at = now
        elif requested == InvestmentStatus.CANCELLED:
            investment.cancelled_at = now
        elif requested == InvestmentStatus.REFUNDED:
            if prop is not None:
                await self._remove_from_property(investment, prop, now)
            investment.refunded_at = now

        investment.status = requested
        for field in ("transaction_id", "payment_method", "notes"):
            value = getattr(update, field)
            if value is not None:
                setattr(investment, field, value)

        try:
            saved = await self._invest_repo.save(investment)
        except IntegrityError as exc:
            await self._invest_repo.db.rollback()
            logger.warning("IntegrityError updating investment %s: %s", investment_id, exc)
            raise BusinessRuleViolation("Investment update violates a database constraint.")

        logger.info(
            "Investment %s: %s → %s", saved.id, current.value, requested.value
        )
        return saved

    # ── Property bookkeeping ──

    async def _add_to_property(self, investment: Investment, prop: Property, now: datetime) -> None:
        _check_remaining_funding(prop, investment.investment_amount)
        held = await self._invest_repo.count_confirmed_for_user_property(
            investment.user_id, investment.property_id
        )
        prop.total_raised += investment.investment_amount
        if held == 0:
            prop.total_investors += 1
        prop.updated_at = now

    async def _remove_from_property(
        self, investment: Investment, prop: Property, now: datetime
    ) -> None:
        held = await self._invest_repo.count_confirmed_for_user_property(
            investment.user_id, investment.property_id
        )
        prop.total_raised = max(prop.total_raised - investment.investment_amount, 0)
        # ``held`` still includes this investment
        if held <= 1:
            prop.total_investors = max(prop.total_investors - 1, 0)
        prop.updated_at = now


# ── Status transition rules ──


def _check_remaining_funding(prop: Property, amount: int) -> None:
    # total_raised counts confirmed rows only
    remaining = max(prop.target_amount - prop.total_raised, 0)
    if prop.target_amount > 0 and amount > remaining:
        raise BusinessRuleViolation(
            f"Only {remaining / 100:,.2f} MAD of funding remains for '{prop.title}'"
        )


_ALLOWED_TRANSITIONS: dict[InvestmentStatus, set[InvestmentStatus]] = {
    InvestmentStatus.PENDING: {InvestmentStatus.CONFIRMED, InvestmentStatus.CANCELLED},
    InvestmentStatus.CONFIRMED: {InvestmentStatus.REFUNDED},
    InvestmentStatus.CANCELLED: set(),
    InvestmentStatus.REFUNDED: set(),
}


def _validate_status_transition(current: InvestmentStatus, requested: InvestmentStatus) -> None:
    if requested not in _ALLOWED_TRANSITIONS.get(current, set()):
        raise BusinessRuleViolation(
            f"Invalid status transition: '{current.value}' → '{requested.value}'. "
            f"Allowed: pending → confirmed | cancelled, confirmed → refunded."
        )
