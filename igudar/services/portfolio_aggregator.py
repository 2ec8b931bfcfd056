"""
Portfolio aggregation — pure computations over already-fetched investments.

Nothing in this module touches the database, the clock (unless no ``now``
is passed) or any shared state; the same input always yields the same
output, so callers may recompute on every request.

Valuation model
---------------
For a confirmed investment of amount ``A`` in a property whose current
snapshot has ``expected_roi`` ``r`` (percent)::

    annual_return  = A * r / 100
    current_value  = A + annual_return
    monthly_return = annual_return / 12

The ROI is read from the property as it is now, not as it was when the
investment was made. Degenerate input (no confirmed rows, a missing property
snapshot, a zero ``target_amount``, a non-finite ROI) degrades to zero terms
instead of raising.
"""

import logging
import math
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID

from igudar.models.investment import Investment, InvestmentStatus
from igudar.models.property import Property, PropertyType
from igudar.schemas.portfolio import (
    InvestmentPerformance,
    PerformanceTrend,
    PortfolioBreakdown,
    PortfolioSummary,
    PropertyOwnership,
)

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12
DAYS_PER_MONTH = 30
UNKNOWN_PROPERTY_TITLE = "Unknown Property"


# ── Per-record helpers ──


def _confirmed(investments: Iterable[Investment]) -> List[Investment]:
    return [inv for inv in investments if inv.status == InvestmentStatus.CONFIRMED]


def _expected_roi(prop: Optional[Property]) -> float:
    if prop is None or prop.expected_roi is None or not math.isfinite(prop.expected_roi):
        return 0.0
    return float(prop.expected_roi)


def annual_return_of(investment: Investment) -> float:
    """Projected first-year return of one investment, in subunits."""
    return investment.investment_amount * (_expected_roi(investment.property) / 100)


def ownership_percentage(investment: Investment) -> float:
    """Share of the property's funding target this investment represents."""
    prop = investment.property
    if prop is None or not prop.target_amount or prop.target_amount <= 0:
        return 0.0
    return investment.investment_amount / prop.target_amount * 100


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def months_held(investment: Investment, now: Optional[datetime] = None) -> int:
    """
    Whole 30-day months since the investment was confirmed (or created, if
    it has no confirmation timestamp). Never less than 1.
    """
    start = investment.confirmed_at or investment.created_at
    if start is None:
        return 1
    now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    days = (now - _as_utc(start)).days
    return max(1, days // DAYS_PER_MONTH)


def _trend(roi_percentage: float) -> PerformanceTrend:
    if roi_percentage > 0:
        return PerformanceTrend.UP
    if roi_percentage < 0:
        return PerformanceTrend.DOWN
    return PerformanceTrend.STABLE


def _property_type_label(value) -> str:
    try:
        return PropertyType(value).label
    except ValueError:
        return str(value).replace("_", " ").title()


# ── Public API ──


def compute_summary(user_id: Optional[UUID], investments: Iterable[Investment]) -> PortfolioSummary:
    """
    Reduce a user's investments into a :class:`PortfolioSummary`.

    Parameters
    ----------
    user_id : UUID, optional
        Owner of the rows. Only used for logging; the caller has already
        scoped the fetch to this user.
    investments : iterable of Investment
        Rows in any order and any status. Only ``confirmed`` rows count;
        pending, cancelled and refunded rows are ignored.

    Returns an all-zero summary when there is nothing to aggregate.
    """
    included = _confirmed(investments)
    if not included:
        logger.debug("Empty portfolio for user %s", user_id)
        return PortfolioSummary()

    total_invested = sum(inv.investment_amount for inv in included)
    annual_return = sum(annual_return_of(inv) for inv in included)
    current_value = total_invested + annual_return
    total_return = current_value - total_invested
    roi_percentage = total_return / total_invested * 100 if total_invested else 0.0

    summary = PortfolioSummary(
        total_invested=total_invested,
        current_value=current_value,
        total_return=total_return,
        roi_percentage=roi_percentage,
        total_properties=len({inv.property_id for inv in included}),
        total_percentage=sum(ownership_percentage(inv) for inv in included),
        active_investments=len(included),
        monthly_return=annual_return / MONTHS_PER_YEAR,
        annual_return=annual_return,
    )
    logger.debug(
        "Portfolio for user %s: %d investments, %d invested, roi=%.2f%%",
        user_id,
        summary.active_investments,
        summary.total_invested,
        summary.roi_percentage,
    )
    return summary


def compute_performance(
    investment: Investment, now: Optional[datetime] = None
) -> InvestmentPerformance:
    """Apply the summary arithmetic to a single investment."""
    initial_value = investment.investment_amount
    return_amount = annual_return_of(investment)
    current_value = initial_value + return_amount
    roi_percentage = return_amount / initial_value * 100 if initial_value else 0.0
    prop = investment.property

    return InvestmentPerformance(
        investment_id=investment.id,
        property_title=prop.title if prop is not None else UNKNOWN_PROPERTY_TITLE,
        initial_value=initial_value,
        current_value=current_value,
        return_amount=return_amount,
        roi_percentage=roi_percentage,
        months_held=months_held(investment, now),
        investment_percentage=ownership_percentage(investment),
        performance_trend=_trend(roi_percentage),
    )


def compute_performances(
    investments: Iterable[Investment], now: Optional[datetime] = None
) -> List[InvestmentPerformance]:
    """Performance rows for every confirmed investment, in input order."""
    now = now or datetime.now(timezone.utc)
    return [compute_performance(inv, now) for inv in _confirmed(investments)]


def compute_breakdown(investments: Iterable[Investment]) -> List[PortfolioBreakdown]:
    """
    Group confirmed investments by property type.

    Rows without a property snapshot have no type and are left out, so the
    percentages are shares of the typed part of the portfolio. Groups are
    returned largest first.
    """
    invested: Dict[str, int] = defaultdict(int)
    value: Dict[str, float] = defaultdict(float)
    properties: Dict[str, Set[UUID]] = defaultdict(set)
    rois: Dict[str, List[float]] = defaultdict(list)

    for inv in _confirmed(investments):
        if inv.property is None:
            continue
        label = _property_type_label(inv.property.property_type)
        invested[label] += inv.investment_amount
        value[label] += inv.investment_amount + annual_return_of(inv)
        properties[label].add(inv.property_id)
        rois[label].append(_expected_roi(inv.property))

    grand_total = sum(invested.values())
    breakdown = [
        PortfolioBreakdown(
            property_type=label,
            total_invested=invested[label],
            current_value=value[label],
            percentage_of_portfolio=(
                round(invested[label] / grand_total * 100) if grand_total else 0
            ),
            number_of_properties=len(properties[label]),
            average_roi=sum(rois[label]) / len(rois[label]),
        )
        for label in invested
    ]
    breakdown.sort(key=lambda row: row.total_invested, reverse=True)
    return breakdown


def compute_property_ownership(
    user_id: UUID, property_id: UUID, investments: Iterable[Investment]
) -> PropertyOwnership:
    """
    Total share of ``property_id`` held by the user across confirmed
    investments. Zero when the user holds nothing there.
    """
    held = [inv for inv in _confirmed(investments) if inv.property_id == property_id]
    return PropertyOwnership(
        user_id=user_id,
        property_id=property_id,
        ownership_percentage=sum(ownership_percentage(inv) for inv in held),
        total_invested=sum(inv.investment_amount for inv in held),
        investment_count=len(held),
    )
