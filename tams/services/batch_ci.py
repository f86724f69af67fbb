"""Weighted-multiplicative Condition Index used for bulk recalculation.

This engine predates the decision-tree scorer in :mod:`tams.services.scoring`
and is kept for compatibility with stored batch results. It scores every
component as the product ``D * E * R``, weights it by relevancy and compares
the weighted sum with the worst possible product (4 x 4 x 4). The numbers it
produces differ from the decision-tree CI for the same ratings; the two are
never mixed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

from tams.choices import CIBand, Degree, Relevancy, Urgency
from tams.services.aggregation import ComponentRating
from tams.services.costing import DEFAULT_RATE_TABLE, RateTable, money
from tams.services.scoring import parse_rating, parse_ratings

MAX_COMPONENT_SCORE = 64

RELEVANCY_WEIGHTS: Mapping[str, Decimal] = MappingProxyType(
    {
        Relevancy.CRITICAL: Decimal("2.0"),
        Relevancy.HIGH: Decimal("1.5"),
        Relevancy.MEDIUM: Decimal("1.0"),
        Relevancy.LOW: Decimal("0.5"),
    }
)
DEFAULT_RELEVANCY_WEIGHT = Decimal("1.0")

# Lower bound (inclusive) of each band, checked from the top.
CI_BANDS: Tuple[Tuple[Decimal, CIBand], ...] = (
    (Decimal("80"), CIBand.EXCELLENT),
    (Decimal("60"), CIBand.GOOD),
    (Decimal("40"), CIBand.FAIR),
)

# Upper bound (exclusive) of CI for each DERU multiplier / urgency step.
DERU_MULTIPLIERS: Tuple[Tuple[Decimal, Decimal], ...] = (
    (Decimal("40"), Decimal("2.0")),
    (Decimal("60"), Decimal("1.5")),
    (Decimal("80"), Decimal("1.0")),
)
DERU_BASE_MULTIPLIER = Decimal("0.5")

CI_URGENCY_STEPS: Tuple[Tuple[Decimal, Urgency], ...] = (
    (Decimal("40"), Urgency.CRITICAL),
    (Decimal("60"), Urgency.HIGH),
    (Decimal("80"), Urgency.MEDIUM),
)

COSTING_FALLBACK_BAND = CIBand.FAIR
DEFAULT_QUANTITY = Decimal("1")
DEFAULT_UNIT = "each"

_TWO_PLACES = Decimal("0.01")


def _two_places(value: Decimal) -> Decimal:
    return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def _as_rating(rating) -> ComponentRating:
    return rating if isinstance(rating, ComponentRating) else ComponentRating.from_mapping(rating)


def calculate_component_score(degree, extent, relevancy) -> Optional[int]:
    """``D * E * R`` or ``None`` when the component cannot be scored.

    Degrees ``X`` and ``U`` exclude the component outright, as does any field
    that is blank, ``U`` or not a recognised token.
    """

    parsed = parse_ratings(degree, extent, relevancy)
    if parsed.degree in (None, Degree.NOT_APPLICABLE, Degree.UNABLE):
        return None
    numbers = (parsed.degree.numeric, getattr(parsed.extent, "numeric", None), getattr(parsed.relevancy, "numeric", None))
    if None in numbers:
        return None
    d, e, r = numbers
    return d * e * r


def relevancy_weight(relevancy) -> Decimal:
    parsed, _ = parse_rating(Relevancy, relevancy, "relevancy")
    return RELEVANCY_WEIGHTS.get(parsed, DEFAULT_RELEVANCY_WEIGHT)


def calculate_conditional_index(ratings: Iterable) -> Optional[Decimal]:
    """Weighted CI on a 0-100 scale, higher is better, two decimals."""

    weighted_sum = Decimal("0")
    max_weighted = Decimal("0")
    for rating in map(_as_rating, ratings):
        score = calculate_component_score(rating.degree, rating.extent, rating.relevancy)
        if score is None:
            continue
        weight = relevancy_weight(rating.relevancy)
        weighted_sum += score * weight
        max_weighted += MAX_COMPONENT_SCORE * weight

    if max_weighted == 0:
        return None
    return _two_places(100 - (weighted_sum / max_weighted) * 100)


def get_ci_band(ci: Optional[Decimal]) -> Optional[CIBand]:
    if ci is None:
        return None
    for lower, band in CI_BANDS:
        if ci >= lower:
            return band
    return CIBand.POOR


def calculate_deru(ci: Optional[Decimal]) -> Optional[Decimal]:
    """Deterioration/urgency value: ``(100 - CI)`` scaled up for worse bands."""

    if ci is None:
        return None
    multiplier = DERU_BASE_MULTIPLIER
    for upper, step_multiplier in DERU_MULTIPLIERS:
        if ci < upper:
            multiplier = step_multiplier
            break
    return _two_places((100 - Decimal(ci)) * multiplier)


def urgency_from_ci(ci: Optional[Decimal]) -> Optional[Urgency]:
    if ci is None:
        return None
    for upper, urgency in CI_URGENCY_STEPS:
        if ci < upper:
            return urgency
    return Urgency.LOW


def get_remedial_rate(
    band: Optional[str],
    asset_type: Optional[str],
    unit: Optional[str],
    rate_table: RateTable = DEFAULT_RATE_TABLE,
) -> Decimal:
    return rate_table.remedial_rate(band, asset_type, unit)


def calculate_component_remedial_cost(
    rating,
    band: Optional[str],
    asset_type: Optional[str],
    rate_table: RateTable = DEFAULT_RATE_TABLE,
) -> Tuple[Decimal, Decimal]:
    """Return ``(rate, cost)``; quantity defaults to 1 and unit to ``each``."""

    rating = _as_rating(rating)
    quantity = rating.quantity if rating.quantity else DEFAULT_QUANTITY
    unit = rating.unit or DEFAULT_UNIT
    rate = get_remedial_rate(band, asset_type, unit, rate_table)
    return rate, quantity * rate


@dataclass(frozen=True)
class BatchComponentBreakdown:
    component_name: str
    degree: str
    extent: str
    relevancy: str
    component_score: Optional[int]
    quantity: Optional[Decimal]
    unit: str
    rate: Decimal
    component_cost: Decimal


@dataclass(frozen=True)
class BatchCalculation:
    conditional_index: Optional[Decimal]
    ci_band: Optional[CIBand]
    deru_value: Optional[Decimal]
    calculated_urgency: Optional[Urgency]
    total_remedial_cost: Decimal
    component_breakdown: List[BatchComponentBreakdown] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return asdict(self)


def perform_full_calculation(
    ratings: Iterable,
    asset_type: Optional[str],
    rate_table: RateTable = DEFAULT_RATE_TABLE,
    calculated_at: Optional[datetime] = None,
) -> BatchCalculation:
    """Run the batch engine over one inspection's component ratings.

    Components are costed at the band of the asset's CI; when no CI can be
    computed the ``Fair`` band is used for costing while the CI, band, DERU
    and urgency themselves stay ``None``.
    """

    ratings = [_as_rating(rating) for rating in ratings]
    ci = calculate_conditional_index(ratings)
    band = get_ci_band(ci)
    costing_band = band or COSTING_FALLBACK_BAND

    breakdown = []
    for rating in ratings:
        rate, cost = calculate_component_remedial_cost(rating, costing_band, asset_type, rate_table)
        breakdown.append(
            BatchComponentBreakdown(
                component_name=rating.component_name,
                degree=str(rating.degree or "").strip().upper(),
                extent=str(rating.extent or "").strip().upper(),
                relevancy=str(rating.relevancy or "").strip().upper(),
                component_score=calculate_component_score(rating.degree, rating.extent, rating.relevancy),
                quantity=rating.quantity,
                unit=rating.unit,
                rate=rate,
                component_cost=cost,
            )
        )

    excluded = sum(1 for item in breakdown if item.degree in (Degree.NOT_APPLICABLE, Degree.UNABLE))
    calculated_at = calculated_at or datetime.now(timezone.utc)

    return BatchCalculation(
        conditional_index=ci,
        ci_band=band,
        deru_value=calculate_deru(ci),
        calculated_urgency=urgency_from_ci(ci),
        total_remedial_cost=money(sum((item.component_cost for item in breakdown), Decimal("0"))),
        component_breakdown=breakdown,
        metadata={
            "total_components": len(breakdown),
            "scored_components": len(breakdown) - excluded,
            "excluded_components": excluded,
            "calculation_date": calculated_at.isoformat(),
        },
    )
