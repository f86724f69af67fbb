"""Asset-level aggregation of decision-tree component scores.

``score_inspection`` is the entry point used by the API and the persistence
layer: it scores every component rating, costs the components that fall at or
below the repair threshold and rolls the results up into an
:class:`AssetAggregate`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence

from tams.choices import Urgency
from tams.services.costing import DEFAULT_REPAIR_THRESHOLD, estimate_remedial_cost
from tams.services.scoring import ScoringInputError, score_component

SAFETY_SCORES: Mapping[str, int] = MappingProxyType(
    {
        Urgency.RECORD_ONLY: 100,
        Urgency.ROUTINE: 90,
        Urgency.LOW: 75,
        Urgency.MEDIUM: 50,
        Urgency.HIGH: 25,
        Urgency.CRITICAL: 0,
    }
)

URGENCY_RANK: Mapping[str, int] = MappingProxyType(
    {
        Urgency.CRITICAL: 4,
        Urgency.HIGH: 3,
        Urgency.MEDIUM: 2,
        Urgency.LOW: 1,
        Urgency.ROUTINE: 0,
        Urgency.RECORD_ONLY: -1,
        Urgency.UNABLE: -2,
    }
)

SEVERITY_ORDER = (Urgency.CRITICAL, Urgency.HIGH, Urgency.MEDIUM, Urgency.LOW, Urgency.ROUTINE)

# Accepted spellings for rating payload keys.
_FIELD_ALIASES = {
    "component_name": ("component_name", "componentName"),
    "degree": ("degree", "degreeValue", "degree_value"),
    "extent": ("extent", "extentValue", "extent_value"),
    "relevancy": ("relevancy", "relevancyValue", "relevancy_value"),
    "quantity": ("quantity",),
    "unit": ("unit", "quantityUnit", "quantity_unit"),
    "rate": ("rate",),
    "remedial_work": ("remedial_work", "remedialWork"),
}


def _optional_decimal(value) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(str(value))


@dataclass(frozen=True)
class ComponentRating:
    component_name: str
    degree: Optional[str] = None
    extent: Optional[str] = None
    relevancy: Optional[str] = None
    quantity: Optional[Decimal] = None
    unit: str = ""
    rate: Optional[Decimal] = None
    remedial_work: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping) -> "ComponentRating":
        if not isinstance(data, Mapping):
            raise ScoringInputError(f"component rating must be a mapping, not {type(data).__name__}")

        values = {}
        for name, aliases in _FIELD_ALIASES.items():
            for alias in aliases:
                if alias in data:
                    values[name] = data[alias]
                    break

        if not values.get("component_name"):
            raise ScoringInputError("component rating is missing component_name")

        try:
            quantity = _optional_decimal(values.get("quantity"))
            rate = _optional_decimal(values.get("rate"))
        except ArithmeticError as exc:
            raise ScoringInputError(f"quantity and rate must be numeric: {exc}") from exc

        return cls(
            component_name=str(values["component_name"]),
            degree=values.get("degree"),
            extent=values.get("extent"),
            relevancy=values.get("relevancy"),
            quantity=quantity,
            unit=values.get("unit") or "",
            rate=rate,
            remedial_work=values.get("remedial_work") or "",
        )


@dataclass(frozen=True)
class ComponentResult:
    component_name: str
    degree: str
    extent: str
    relevancy: str
    ci: Optional[int]
    urgency: Urgency
    status: str
    cost: Optional[Decimal]
    quantity: Optional[Decimal] = None
    unit: str = ""
    rate: Optional[Decimal] = None
    remedial_work: str = ""
    rule: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AssetAggregate:
    ci_health: Optional[int]
    ci_safety: Optional[int]
    ci_final: Optional[int]
    worst_urgency: Urgency
    total_cost: Decimal
    overall_degree: str = ""
    overall_extent: str = ""
    overall_relevancy: str = ""
    overall_remedial: str = ""

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class InspectionScoreResult:
    asset_type: Optional[str]
    repair_threshold: int
    components: List[ComponentResult] = field(default_factory=list)
    aggregate: Optional[AssetAggregate] = None

    def as_dict(self) -> dict:
        return {
            "asset_type": self.asset_type,
            "repair_threshold": self.repair_threshold,
            "components": [component.as_dict() for component in self.components],
            "aggregate": self.aggregate.as_dict() if self.aggregate else None,
        }


def _token(value) -> str:
    return str(value).strip().upper() if value is not None else ""


def safety_score(urgency: Optional[str]) -> Optional[int]:
    return SAFETY_SCORES.get(urgency)


def find_worst_urgency(urgencies: Iterable[Optional[str]]) -> Urgency:
    """Most severe of 4..0 present, ignoring R and U; ``R`` when none is."""

    present = {urgency for urgency in urgencies if urgency}
    for urgency in SEVERITY_ORDER:
        if urgency in present:
            return urgency
    return Urgency.RECORD_ONLY


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _worst_component(components: Sequence[ComponentResult]) -> Optional[ComponentResult]:
    worst = None
    for component in components:
        if worst is None or URGENCY_RANK.get(component.urgency, -3) > URGENCY_RANK.get(worst.urgency, -3):
            worst = component
    return worst


def aggregate(components: Sequence[ComponentResult]) -> AssetAggregate:
    """Roll component results up into the asset-level condition indices.

    ``ci_health`` is the rounded mean of the component CIs, ``ci_safety``
    reflects the worst urgency found and ``ci_final`` is the lower of the two.
    """

    scored = [component.ci for component in components if component.ci is not None]
    ci_health = _round_half_up(Decimal(sum(scored)) / len(scored)) if scored else None

    worst_urgency = find_worst_urgency(component.urgency for component in components)
    ci_safety = safety_score(worst_urgency)
    ci_final = min(ci_health, ci_safety) if ci_health is not None and ci_safety is not None else None

    total_cost = sum((component.cost for component in components if component.cost is not None), Decimal("0"))
    overall_remedial = "; ".join(component.remedial_work for component in components if component.remedial_work)

    worst = _worst_component(components)
    return AssetAggregate(
        ci_health=ci_health,
        ci_safety=ci_safety,
        ci_final=ci_final,
        worst_urgency=worst_urgency,
        total_cost=total_cost,
        overall_degree=worst.degree if worst else "",
        overall_extent=worst.extent if worst else "",
        overall_relevancy=worst.relevancy if worst else "",
        overall_remedial=overall_remedial,
    )


def with_template_defaults(
    ratings: Iterable,
    default_quantities: Optional[Mapping[str, Decimal]] = None,
    default_units: Optional[Mapping[str, str]] = None,
) -> List[ComponentRating]:
    """Fill a missing quantity or unit from the asset type's component templates."""

    if isinstance(ratings, (str, bytes, Mapping)):
        raise ScoringInputError("ratings must be a sequence of component ratings")

    quantities = default_quantities or {}
    units = default_units or {}
    resolved = []
    for rating in ratings:
        if not isinstance(rating, ComponentRating):
            rating = ComponentRating.from_mapping(rating)
        changes = {}
        if rating.quantity is None and quantities.get(rating.component_name) is not None:
            changes["quantity"] = quantities[rating.component_name]
        if not rating.unit and units.get(rating.component_name):
            changes["unit"] = units[rating.component_name]
        resolved.append(replace(rating, **changes) if changes else rating)
    return resolved


def score_rating(rating: ComponentRating, repair_threshold=DEFAULT_REPAIR_THRESHOLD) -> ComponentResult:
    score = score_component(rating.degree, rating.extent, rating.relevancy)
    return ComponentResult(
        component_name=rating.component_name,
        degree=_token(rating.degree),
        extent=_token(rating.extent),
        relevancy=_token(rating.relevancy),
        ci=score.ci,
        urgency=score.urgency,
        status=score.status,
        cost=estimate_remedial_cost(score.ci, rating.quantity, rating.rate, repair_threshold),
        quantity=rating.quantity,
        unit=rating.unit,
        rate=rating.rate,
        remedial_work=rating.remedial_work,
        rule=score.rule,
    )


def score_inspection(
    ratings: Iterable,
    asset_type: Optional[str] = None,
    repair_threshold: Optional[int] = None,
    default_quantities: Optional[Mapping[str, Decimal]] = None,
    default_units: Optional[Mapping[str, str]] = None,
) -> InspectionScoreResult:
    """Score and aggregate one inspection's component ratings.

    Args:
        ratings: :class:`ComponentRating` objects or mappings with the rating
            fields (``component_name``, ``degree``, ``extent``, ...).
        asset_type: Asset type name, echoed in the result.
        repair_threshold: CI at or below which components are costed; falls
            back to ``DEFAULT_REPAIR_THRESHOLD``.
        default_quantities: Template quantities keyed by component name, used
            when a rating carries no quantity.
        default_units: Template units keyed by component name, used when a
            rating carries no unit.
    """

    threshold = DEFAULT_REPAIR_THRESHOLD if repair_threshold is None else repair_threshold
    results = [
        score_rating(rating, threshold)
        for rating in with_template_defaults(ratings, default_quantities, default_units)
    ]

    return InspectionScoreResult(
        asset_type=asset_type,
        repair_threshold=threshold,
        components=results,
        aggregate=aggregate(results),
    )
