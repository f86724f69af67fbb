"""Portfolio-level metrics built on the latest inspection of each asset.

The decision-tree ``ci_final`` is the condition figure used throughout; the
batch-engine values stored on an inspection are not consulted here.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Tuple

from django.conf import settings
from django.db import transaction
from django.db.models import OuterRef, Subquery

from tams.choices import Urgency
from tams.models import Asset, AssetPriorityResult, Inspection, Organisation
from tams.services.valuation import (
    ReplacementPriority,
    asset_age_years,
    calculate_asset_depreciation,
    calculate_replacement_priority,
)

logger = logging.getLogger(__name__)

CRITICAL_URGENCIES = (Urgency.HIGH, Urgency.CRITICAL)
ALERT_SAMPLE_SIZE = 3
TREND_MONTHS = 12


def _log_missing(message: str, *args):
    if settings.DEBUG:
        logger.warning(message, *args)


def _round(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def critical_ci_threshold() -> int:
    return getattr(settings, "TAMS_CRITICAL_CI_THRESHOLD", 30)


def high_cost_threshold() -> Decimal:
    return Decimal(str(getattr(settings, "TAMS_HIGH_COST_THRESHOLD", 100000)))


def _assets(organisation: Optional[Organisation] = None):
    assets = Asset.objects.filter(is_active=True)
    if organisation is not None:
        assets = assets.filter(organisation=organisation)
    return assets


def latest_inspections(organisation: Optional[Organisation] = None) -> List[Inspection]:
    """The most recent inspection of every active asset that has one."""

    newest = Inspection.objects.filter(asset=OuterRef("pk")).order_by("-inspection_date", "-id").values("pk")[:1]
    latest_ids = (
        _assets(organisation)
        .annotate(latest_inspection_id=Subquery(newest))
        .exclude(latest_inspection_id__isnull=True)
        .values_list("latest_inspection_id", flat=True)
    )
    return list(
        Inspection.objects.filter(pk__in=list(latest_ids))
        .select_related("asset__asset_type")
        .order_by("asset__asset_ref")
    )


def asset_type_summary(organisation: Optional[Organisation] = None) -> List[Dict[str, object]]:
    """Asset count, average CI, critical count and remedial cost per asset type.

    Every asset type with active assets is listed, whether inspected or not.
    Rows are ordered by asset count, largest first.
    """

    rows: Dict[str, Dict[str, object]] = {}
    for asset in _assets(organisation).select_related("asset_type"):
        name = asset.asset_type.name
        row = rows.setdefault(
            name,
            {
                "asset_type_name": name,
                "total_assets": 0,
                "inspected_assets": 0,
                "avg_ci": None,
                "critical_count": 0,
                "total_remedial_cost": Decimal("0"),
            },
        )
        row["total_assets"] += 1

    ci_totals: Dict[str, List[int]] = defaultdict(list)
    for inspection in latest_inspections(organisation):
        row = rows[inspection.asset.asset_type.name]
        row["inspected_assets"] += 1
        if inspection.ci_final is not None:
            ci_totals[row["asset_type_name"]].append(inspection.ci_final)
        if inspection.worst_urgency in CRITICAL_URGENCIES:
            row["critical_count"] += 1
        row["total_remedial_cost"] += inspection.total_remedial_cost or Decimal("0")

    for name, values in ci_totals.items():
        rows[name]["avg_ci"] = _round(Decimal(sum(values)) / len(values))

    return sorted(rows.values(), key=lambda row: (-row["total_assets"], row["asset_type_name"]))


def critical_alerts(organisation: Optional[Organisation] = None) -> List[Dict[str, object]]:
    """Alerts for critical urgency, very poor condition and high remedial cost."""

    inspections = latest_inspections(organisation)
    ci_threshold = critical_ci_threshold()
    cost_threshold = high_cost_threshold()

    immediate = [i for i in inspections if i.worst_urgency == Urgency.CRITICAL]
    poor = [i for i in inspections if i.ci_final is not None and i.ci_final < ci_threshold]
    costly = [i for i in inspections if (i.total_remedial_cost or Decimal("0")) > cost_threshold]

    alerts = []
    if immediate:
        alerts.append(
            {
                "key": "critical_urgency",
                "title": "Critical Urgency Assets",
                "description": f"{len(immediate)} asset(s) require immediate attention",
                "count": len(immediate),
                "asset_refs": [i.asset.asset_ref for i in immediate[:ALERT_SAMPLE_SIZE]],
            }
        )
    if poor:
        alerts.append(
            {
                "key": "critical_condition",
                "title": "Critical Condition Assets",
                "description": f"{len(poor)} asset(s) with CI below {ci_threshold}",
                "count": len(poor),
                "asset_refs": [i.asset.asset_ref for i in poor[:ALERT_SAMPLE_SIZE]],
            }
        )
    if costly:
        total = sum((i.total_remedial_cost for i in costly), Decimal("0"))
        alerts.append(
            {
                "key": "high_remedial_cost",
                "title": "High Remedial Costs",
                "description": f"{total} required for {len(costly)} asset(s)",
                "count": len(costly),
                "total_cost": total,
                "asset_refs": [i.asset.asset_ref for i in costly[:ALERT_SAMPLE_SIZE]],
            }
        )
    return alerts


def ci_trend(organisation: Optional[Organisation] = None, months: int = TREND_MONTHS) -> List[Dict[str, object]]:
    """Average ``ci_final`` per inspection month, oldest first, last ``months`` months with data."""

    if months < 1:
        raise ValueError(f"months must be at least 1, got {months}")

    inspections = Inspection.objects.filter(asset__is_active=True, ci_final__isnull=False)
    if organisation is not None:
        inspections = inspections.filter(asset__organisation=organisation)

    monthly: Dict[str, List[int]] = defaultdict(list)
    for inspection_date, ci_final in inspections.values_list("inspection_date", "ci_final"):
        monthly[inspection_date.strftime("%Y-%m")].append(ci_final)

    trend = [
        {"month": month, "avg_ci": _round(Decimal(sum(values)) / len(values)), "inspections": len(values)}
        for month, values in sorted(monthly.items())
    ]
    return trend[-months:]


def asset_valuation(asset: Asset, as_of: Optional[date] = None) -> Dict[str, object]:
    as_of = as_of or date.today()
    latest = asset.latest_inspection()
    ci = latest.ci_final if latest is not None else None
    age = asset_age_years(asset.purchase_date, as_of) if asset.purchase_date else None
    maintenance = asset.maintenance_cost_last_12_months(as_of)

    depreciation = calculate_asset_depreciation(
        asset.purchase_price,
        asset.purchase_date,
        asset.effective_useful_life,
        asset.salvage_value,
        as_of,
    )
    priority = (
        calculate_replacement_priority(
            ci, age, asset.effective_useful_life, maintenance, asset.effective_replacement_cost
        )
        if age is not None
        else None
    )
    return {
        "asset": asset.pk,
        "as_of": as_of,
        "ci_final": ci,
        "age_years": age.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) if age is not None else None,
        "maintenance_cost_12m": maintenance,
        "depreciation": depreciation.as_dict() if depreciation else None,
        "replacement_priority": priority.as_dict() if priority else None,
    }


@dataclass
class _PriorityRow:
    asset: Asset
    ci: int
    age_years: Decimal
    maintenance_cost: Decimal
    replacement_cost: Decimal
    priority: ReplacementPriority


def compute_asset_priorities(
    as_of: Optional[date] = None,
    organisation: Optional[Organisation] = None,
) -> Dict[str, object]:
    """Rank assets for replacement and store the results for ``as_of``.

    Assets lacking a scored inspection, a purchase date, a useful life or a
    replacement cost are skipped. Existing results for the same date (and
    organisation, when given) are replaced.
    """

    as_of = as_of or date.today()
    latest = {inspection.asset_id: inspection for inspection in latest_inspections(organisation)}

    rows: List[_PriorityRow] = []
    skipped = 0
    for asset in _assets(organisation).select_related("asset_type"):
        inspection = latest.get(asset.pk)
        if inspection is None or inspection.ci_final is None or asset.purchase_date is None:
            skipped += 1
            _log_missing("No scored inspection or purchase date for asset %s; priority skipped", asset)
            continue

        age = asset_age_years(asset.purchase_date, as_of)
        maintenance = asset.maintenance_cost_last_12_months(as_of)
        replacement_cost = asset.effective_replacement_cost
        priority = calculate_replacement_priority(
            inspection.ci_final, age, asset.effective_useful_life, maintenance, replacement_cost
        )
        if priority is None:
            skipped += 1
            _log_missing("Useful life or replacement cost missing for asset %s; priority skipped", asset)
            continue

        rows.append(
            _PriorityRow(
                asset=asset,
                ci=inspection.ci_final,
                age_years=age.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
                maintenance_cost=maintenance,
                replacement_cost=Decimal(str(replacement_cost)),
                priority=priority,
            )
        )

    rows.sort(key=lambda row: (-row.priority.priority_score, row.asset.asset_ref))

    top: List[Tuple[int, _PriorityRow]] = []
    with transaction.atomic():
        existing = AssetPriorityResult.objects.filter(computed_on=as_of)
        if organisation is not None:
            existing = existing.filter(asset__organisation=organisation)
        existing.delete()

        results = []
        for rank, row in enumerate(rows, start=1):
            results.append(
                AssetPriorityResult(
                    asset=row.asset,
                    computed_on=as_of,
                    ci_used=row.ci,
                    age_years=row.age_years,
                    maintenance_cost_12m=row.maintenance_cost,
                    replacement_cost=row.replacement_cost,
                    priority_score=row.priority.priority_score,
                    priority_category=row.priority.priority_category,
                    reason=row.priority.reason,
                    rank=rank,
                )
            )
            if rank <= 10:
                top.append((rank, row))

        if results:
            AssetPriorityResult.objects.bulk_create(results)

    return {"processed": len(rows), "skipped": skipped, "top": top}
