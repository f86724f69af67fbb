from __future__ import annotations

import logging
from typing import Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from tams.models import Inspection, InspectionComponentScore, RemedialRate
from tams.services.aggregation import ComponentRating, score_inspection, with_template_defaults
from tams.services.batch_ci import perform_full_calculation
from tams.services.costing import RateTable

logger = logging.getLogger(__name__)


def _log_missing(message: str, *args):
    if settings.DEBUG:
        logger.warning(message, *args)


COMPONENT_SCORE_FIELDS = [
    "ci",
    "urgency",
    "rating_status",
    "urgency_rule",
    "cost",
    "component_score",
    "batch_rate",
    "batch_cost",
]

INSPECTION_SCORE_FIELDS = [
    "ci_health",
    "ci_safety",
    "ci_final",
    "worst_urgency",
    "total_remedial_cost",
    "overall_degree",
    "overall_extent",
    "overall_relevancy",
    "overall_remedial",
    "conditional_index",
    "ci_band",
    "deru_value",
    "calculated_urgency",
    "batch_remedial_cost",
    "calculation_metadata",
    "scored_at",
    "modified_at",
]


def _load_inspection(inspection: Inspection) -> Inspection:
    return Inspection.objects.select_related("asset__asset_type", "asset__organisation").get(pk=inspection.pk)


@transaction.atomic
def recompute_inspection_scores(
    inspection: Inspection,
    rate_table: Optional[RateTable] = None,
) -> int:
    """Rescore every component of ``inspection`` and store both aggregates.

    Returns the number of components holding a decision-tree CI. Components
    and the inspection are written with ``bulk_update``/``update_fields`` so
    no save signals fire while recomputing.
    """

    inspection = _load_inspection(inspection)
    asset_type = inspection.asset.asset_type
    if rate_table is None:
        rate_table = RemedialRate.objects.rate_table_for(inspection.asset.organisation)

    components = list(inspection.component_scores.order_by("display_order", "component_name", "id"))
    # Template defaults are resolved here, never written back to the rows
    ratings = with_template_defaults(
        [component.as_rating() for component in components],
        asset_type.default_quantities(),
        asset_type.default_units(),
    )

    result = score_inspection(
        ratings,
        asset_type=asset_type.name,
        repair_threshold=inspection.effective_repair_threshold,
    )
    batch = perform_full_calculation(ratings, asset_type.name, rate_table)

    for component, scored, breakdown in zip(components, result.components, batch.component_breakdown):
        component.ci = scored.ci
        component.urgency = scored.urgency
        component.rating_status = scored.status
        component.urgency_rule = scored.rule or ""
        component.cost = scored.cost
        component.component_score = breakdown.component_score
        component.batch_rate = breakdown.rate
        component.batch_cost = breakdown.component_cost

    if components:
        InspectionComponentScore.objects.bulk_update(components, COMPONENT_SCORE_FIELDS)

    summary = result.aggregate
    inspection.ci_health = summary.ci_health
    inspection.ci_safety = summary.ci_safety
    inspection.ci_final = summary.ci_final
    inspection.worst_urgency = summary.worst_urgency
    inspection.total_remedial_cost = summary.total_cost
    inspection.overall_degree = summary.overall_degree
    inspection.overall_extent = summary.overall_extent
    inspection.overall_relevancy = summary.overall_relevancy
    inspection.overall_remedial = summary.overall_remedial

    inspection.conditional_index = batch.conditional_index
    inspection.ci_band = batch.ci_band or ""
    inspection.deru_value = batch.deru_value
    inspection.calculated_urgency = batch.calculated_urgency or ""
    inspection.batch_remedial_cost = batch.total_remedial_cost
    inspection.calculation_metadata = batch.metadata
    inspection.scored_at = timezone.now()
    inspection.save(update_fields=INSPECTION_SCORE_FIELDS)

    if components and summary.ci_health is None:
        _log_missing(
            "Inspection %s has %s component(s) but none could be scored; CI left empty.",
            inspection.pk,
            len(components),
        )

    return sum(1 for component in result.components if component.ci is not None)


@transaction.atomic
def replace_component_scores(inspection: Inspection, ratings: Iterable) -> int:
    """Replace the stored component ratings of ``inspection`` and rescore it.

    ``ratings`` are :class:`ComponentRating` objects or rating mappings.
    Duplicate component names keep the last rating given.
    """

    by_name = {}
    for rating in ratings:
        if not isinstance(rating, ComponentRating):
            rating = ComponentRating.from_mapping(rating)
        by_name[rating.component_name] = rating

    inspection.component_scores.all().delete()
    InspectionComponentScore.objects.bulk_create(
        [
            InspectionComponentScore(
                inspection=inspection,
                component_name=rating.component_name,
                display_order=position,
                degree=str(rating.degree or "").strip().upper(),
                extent=str(rating.extent or "").strip().upper(),
                relevancy=str(rating.relevancy or "").strip().upper(),
                quantity=rating.quantity,
                unit=rating.unit,
                rate=rating.rate,
                remedial_work=rating.remedial_work,
            )
            for position, rating in enumerate(by_name.values(), start=1)
        ]
    )
    return recompute_inspection_scores(inspection)


def recompute_inspections(inspections: Iterable[Inspection]) -> tuple[int, int]:
    processed_inspections = 0
    scored_components = 0
    rate_tables = {}

    for inspection in inspections:
        organisation_id = inspection.asset.organisation_id
        if organisation_id not in rate_tables:
            rate_tables[organisation_id] = RemedialRate.objects.rate_table_for(inspection.asset.organisation)
        processed_inspections += 1
        scored_components += recompute_inspection_scores(inspection, rate_tables[organisation_id])

    return processed_inspections, scored_components


def recompute_all_inspection_scores(year: Optional[int] = None, asset_type: Optional[str] = None) -> tuple[int, int]:
    inspections = Inspection.objects.select_related("asset__organisation")
    if year is not None:
        inspections = inspections.filter(inspection_date__year=year)
    if asset_type:
        inspections = inspections.filter(asset__asset_type__name__iexact=asset_type)
    return recompute_inspections(inspections.iterator())
