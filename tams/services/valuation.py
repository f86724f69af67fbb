"""Asset valuation helpers: straight-line depreciation and replacement priority."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from tams.choices import PriorityCategory

DAYS_PER_YEAR = Decimal("365.25")

CONDITION_WEIGHT = Decimal("0.4")
AGE_WEIGHT = Decimal("0.3")
MAINTENANCE_COST_WEIGHT = Decimal("0.3")

PRIORITY_CATEGORIES: Tuple[Tuple[int, PriorityCategory, str], ...] = (
    (80, PriorityCategory.CRITICAL, "Poor condition, near end of life, high maintenance costs"),
    (60, PriorityCategory.HIGH, "Deteriorating condition or high maintenance costs"),
    (40, PriorityCategory.MEDIUM, "Aging asset requiring monitoring"),
)
LOW_PRIORITY_REASON = "Good condition, within expected lifecycle"


def _decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def _quantize(value: Decimal, places: str) -> Decimal:
    return value.quantize(Decimal(places), rounding=ROUND_HALF_UP)


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def asset_age_years(purchase_date, as_of=None) -> Decimal:
    """Age in years (days / 365.25); dates in the future count as zero."""

    as_of = _as_date(as_of) if as_of is not None else date.today()
    days = (as_of - _as_date(purchase_date)).days
    return max(Decimal(days), Decimal("0")) / DAYS_PER_YEAR


@dataclass(frozen=True)
class Depreciation:
    current_value: Decimal
    accumulated_depreciation: Decimal
    annual_depreciation: Decimal
    remaining_life: Decimal

    def as_dict(self) -> dict:
        return asdict(self)


def calculate_asset_depreciation(
    purchase_price,
    purchase_date,
    useful_life_years,
    salvage_value=0,
    as_of=None,
) -> Optional[Depreciation]:
    """Straight-line depreciation of ``purchase_price`` down to ``salvage_value``.

    Returns ``None`` when the purchase price, purchase date or a positive
    useful life is missing.
    """

    if purchase_price is None or purchase_date is None:
        return None
    useful_life = _decimal(useful_life_years)
    if useful_life <= 0:
        return None

    price = _decimal(purchase_price)
    salvage = _decimal(salvage_value)
    depreciable = price - salvage
    age = asset_age_years(purchase_date, as_of)

    annual = depreciable / useful_life
    accumulated = min(annual * age, depreciable)
    current = max(price - accumulated, salvage)
    remaining = max(useful_life - age, Decimal("0"))

    return Depreciation(
        current_value=_quantize(current, "0.01"),
        accumulated_depreciation=_quantize(accumulated, "0.01"),
        annual_depreciation=_quantize(annual, "0.01"),
        remaining_life=_quantize(remaining, "0.1"),
    )


@dataclass(frozen=True)
class ReplacementPriority:
    priority_score: int
    priority_category: PriorityCategory
    reason: str

    def as_dict(self) -> dict:
        return asdict(self)


def categorise_priority(score: int) -> Tuple[PriorityCategory, str]:
    for lower, category, reason in PRIORITY_CATEGORIES:
        if score >= lower:
            return category, reason
    return PriorityCategory.LOW, LOW_PRIORITY_REASON


def calculate_replacement_priority(
    ci,
    age_years,
    useful_life_years,
    maintenance_cost_last_12_months,
    replacement_cost,
) -> Optional[ReplacementPriority]:
    """Blend condition (40%), age (30%) and maintenance spend (30%) into 0-100.

    Age is measured against the useful life and maintenance spend over the
    last twelve months against the replacement cost; both ratios saturate at
    one. Returns ``None`` without a CI, a positive useful life or a positive
    replacement cost.
    """

    useful_life = _decimal(useful_life_years)
    replacement = _decimal(replacement_cost)
    if ci is None or useful_life <= 0 or replacement <= 0:
        return None

    condition_score = (100 - _decimal(ci)) * CONDITION_WEIGHT
    age_ratio = min(_decimal(age_years) / useful_life, Decimal("1"))
    age_score = age_ratio * 100 * AGE_WEIGHT
    cost_ratio = _decimal(maintenance_cost_last_12_months) / replacement
    cost_score = min(cost_ratio * 100, Decimal("100")) * MAINTENANCE_COST_WEIGHT

    score = int(_quantize(condition_score + age_score + cost_score, "1"))
    category, reason = categorise_priority(score)
    return ReplacementPriority(priority_score=score, priority_category=category, reason=reason)
