"""Data models for the TAMS backend.

Inventory (asset types, component templates, assets), inspections with their
component scores, costing lookups and maintenance history. Scores are always
derived from the stored ratings by :mod:`tams.services`; the model fields only
hold the latest computed values for listing and reporting.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Sum

from .choices import CIBand, Degree, Extent, PriorityCategory, RatingStatus, Relevancy, Urgency
from .services.aggregation import ComponentRating, score_rating
from .services.costing import DEFAULT_RATE_TABLE, RateTable


def default_repair_threshold() -> int:
    return getattr(settings, "TAMS_REPAIR_THRESHOLD", 60)


PERCENT_VALIDATORS = [MinValueValidator(0), MaxValueValidator(100)]

# ---------------------------------------------------------------------------
# Tenancy and lookups
# ---------------------------------------------------------------------------


class Organisation(models.Model):
    name = models.CharField(max_length=150, unique=True)
    code = models.SlugField(max_length=50, unique=True)
    repair_threshold = models.PositiveSmallIntegerField(
        default=default_repair_threshold,
        validators=PERCENT_VALIDATORS,
        help_text="Component CI at or below which remedial work is costed",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return self.name


class AssetType(models.Model):
    name = models.CharField(max_length=100, unique=True)
    code = models.CharField(max_length=20, unique=True)
    description = models.TextField(blank=True)
    default_useful_life_years = models.PositiveSmallIntegerField(null=True, blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return self.name

    def default_quantities(self) -> dict:
        return {
            template.component_name: template.default_quantity
            for template in self.component_templates.all()
            if template.default_quantity is not None
        }

    def default_units(self) -> dict:
        return {
            template.component_name: template.quantity_unit
            for template in self.component_templates.all()
            if template.quantity_unit
        }


class ComponentTemplate(models.Model):
    asset_type = models.ForeignKey(AssetType, on_delete=models.CASCADE, related_name="component_templates")
    component_name = models.CharField(max_length=150)
    what_to_inspect = models.TextField(blank=True)
    display_order = models.PositiveSmallIntegerField(default=1)
    default_quantity = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    quantity_unit = models.CharField(max_length=20, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["asset_type", "display_order", "component_name"]
        unique_together = ("asset_type", "component_name")

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"{self.asset_type}: {self.component_name}"


class RemedialRateQuerySet(models.QuerySet):
    def rate_table_for(self, organisation: Optional["Organisation"] = None) -> RateTable:
        """Built-in rates, then global rows, then the organisation's own rows."""

        rows = self.select_related("asset_type").filter(
            models.Q(organisation__isnull=True) | models.Q(organisation=organisation)
            if organisation is not None
            else models.Q(organisation__isnull=True)
        )
        ordered = sorted(rows, key=lambda row: row.organisation_id is not None)
        return DEFAULT_RATE_TABLE.with_overrides(
            (row.asset_type.name, row.unit, row.base_rate) for row in ordered
        )


class RemedialRate(models.Model):
    organisation = models.ForeignKey(
        Organisation,
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="remedial_rates",
        help_text="Leave empty for a rate shared by all organisations",
    )
    asset_type = models.ForeignKey(AssetType, on_delete=models.CASCADE, related_name="remedial_rates")
    unit = models.CharField(max_length=20)
    base_rate = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])

    objects = RemedialRateQuerySet.as_manager()

    class Meta:
        ordering = ["asset_type", "unit"]
        unique_together = ("organisation", "asset_type", "unit")

    def __str__(self) -> str:  # pragma: no cover - simple repr
        return f"{self.asset_type} / {self.unit}: {self.base_rate}"


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


class Asset(models.Model):
    organisation = models.ForeignKey(Organisation, on_delete=models.CASCADE, related_name="assets")
    asset_type = models.ForeignKey(AssetType, on_delete=models.PROTECT, related_name="assets")
    asset_ref = models.CharField(max_length=50, help_text="Reference painted or tagged on the asset")
    description = models.CharField(max_length=255, blank=True)
    road_name = models.CharField(max_length=150, blank=True)
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    purchase_date = models.DateField(null=True, blank=True)
    purchase_price = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    useful_life_years = models.PositiveSmallIntegerField(
        null=True, blank=True, help_text="Falls back to the asset type's default when empty"
    )
    salvage_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    replacement_cost = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    modified_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["organisation", "asset_ref"]
        unique_together = ("organisation", "asset_ref")

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.asset_ref} ({self.asset_type})"

    def clean(self):
        errors = {}
        if self.latitude is not None and not (-90 <= self.latitude <= 90):
            errors["latitude"] = "Latitude must be between -90 and 90."
        if self.longitude is not None and not (-180 <= self.longitude <= 180):
            errors["longitude"] = "Longitude must be between -180 and 180."
        if (
            self.purchase_price is not None
            and self.salvage_value is not None
            and self.salvage_value > self.purchase_price
        ):
            errors["salvage_value"] = "Salvage value cannot exceed the purchase price."
        if errors:
            raise ValidationError(errors)

    @property
    def effective_useful_life(self) -> Optional[int]:
        if self.useful_life_years:
            return self.useful_life_years
        return self.asset_type.default_useful_life_years if self.asset_type_id else None

    @property
    def effective_replacement_cost(self) -> Optional[Decimal]:
        return self.replacement_cost if self.replacement_cost is not None else self.purchase_price

    def latest_inspection(self) -> Optional["Inspection"]:
        return self.inspections.order_by("-inspection_date", "-id").first()

    def maintenance_cost_last_12_months(self, as_of) -> Decimal:
        total = self.maintenance_records.filter(
            completed_date__gt=as_of - timedelta(days=365),
            completed_date__lte=as_of,
        ).aggregate(total=Sum("cost"))["total"]
        return total or Decimal("0")


# ---------------------------------------------------------------------------
# Inspections
# ---------------------------------------------------------------------------


class Inspection(models.Model):
    asset = models.ForeignKey(Asset, on_delete=models.CASCADE, related_name="inspections")
    inspection_date = models.DateField()
    inspector_name = models.CharField(max_length=150, blank=True)
    weather = models.CharField(max_length=50, blank=True)
    comments = models.TextField(blank=True)
    repair_threshold = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=PERCENT_VALIDATORS,
        help_text="Overrides the organisation's repair threshold for this inspection",
    )

    # Decision-tree aggregate
    ci_health = models.PositiveSmallIntegerField(null=True, blank=True)
    ci_safety = models.PositiveSmallIntegerField(null=True, blank=True)
    ci_final = models.PositiveSmallIntegerField(null=True, blank=True)
    worst_urgency = models.CharField(max_length=1, choices=Urgency.choices, blank=True)
    total_remedial_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    overall_degree = models.CharField(max_length=1, blank=True)
    overall_extent = models.CharField(max_length=1, blank=True)
    overall_relevancy = models.CharField(max_length=1, blank=True)
    overall_remedial = models.TextField(blank=True)

    # Weighted-multiplicative batch engine
    conditional_index = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    ci_band = models.CharField(max_length=10, choices=CIBand.choices, blank=True)
    deru_value = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    calculated_urgency = models.CharField(max_length=1, choices=Urgency.choices, blank=True)
    batch_remedial_cost = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    calculation_metadata = models.JSONField(default=dict, blank=True)

    scored_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    modified_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-inspection_date", "asset"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.asset} @ {self.inspection_date}"

    @property
    def effective_repair_threshold(self) -> int:
        if self.repair_threshold is not None:
            return self.repair_threshold
        organisation = getattr(self.asset, "organisation", None)
        if organisation is not None:
            return organisation.repair_threshold
        return default_repair_threshold()


class InspectionComponentScore(models.Model):
    inspection = models.ForeignKey(Inspection, on_delete=models.CASCADE, related_name="component_scores")
    component_name = models.CharField(max_length=150)
    display_order = models.PositiveSmallIntegerField(default=1)

    # Wide enough to keep unrecognised tokens, which score as malformed
    degree = models.CharField(max_length=5, choices=Degree.choices, blank=True)
    extent = models.CharField(max_length=5, choices=Extent.choices, blank=True)
    relevancy = models.CharField(max_length=5, choices=Relevancy.choices, blank=True)
    quantity = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    unit = models.CharField(max_length=20, blank=True)
    rate = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    remedial_work = models.TextField(blank=True)
    comments = models.TextField(blank=True)

    # Derived on save from the ratings above
    ci = models.PositiveSmallIntegerField(null=True, blank=True)
    urgency = models.CharField(max_length=1, choices=Urgency.choices, blank=True)
    rating_status = models.CharField(max_length=12, choices=RatingStatus.choices, blank=True)
    urgency_rule = models.CharField(max_length=8, blank=True)
    cost = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    # Batch engine breakdown
    component_score = models.PositiveSmallIntegerField(null=True, blank=True)
    batch_rate = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    batch_cost = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    class Meta:
        ordering = ["inspection", "display_order", "component_name"]
        unique_together = ("inspection", "component_name")

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.component_name}: D{self.degree or '-'} E{self.extent or '-'} R{self.relevancy or '-'}"

    def as_rating(self) -> ComponentRating:
        return ComponentRating(
            component_name=self.component_name,
            degree=self.degree or None,
            extent=self.extent or None,
            relevancy=self.relevancy or None,
            quantity=self.quantity,
            unit=self.unit,
            rate=self.rate,
            remedial_work=self.remedial_work,
        )

    def apply_score(self, repair_threshold: int) -> None:
        result = score_rating(self.as_rating(), repair_threshold)
        self.ci = result.ci
        self.urgency = result.urgency
        self.rating_status = result.status
        self.urgency_rule = result.rule or ""
        self.cost = result.cost

    def save(self, *args, **kwargs):
        self.apply_score(self.inspection.effective_repair_threshold)
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Maintenance and prioritisation
# ---------------------------------------------------------------------------


class MaintenanceRecord(models.Model):
    asset = models.ForeignKey(Asset, on_delete=models.CASCADE, related_name="maintenance_records")
    inspection = models.ForeignKey(
        Inspection, null=True, blank=True, on_delete=models.SET_NULL, related_name="maintenance_records"
    )
    completed_date = models.DateField()
    description = models.TextField(blank=True)
    cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"), validators=[MinValueValidator(0)])

    class Meta:
        ordering = ["-completed_date"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.asset} maintenance {self.completed_date}"


class AssetPriorityResult(models.Model):
    asset = models.ForeignKey(Asset, on_delete=models.CASCADE, related_name="priority_results")
    computed_on = models.DateField()
    ci_used = models.PositiveSmallIntegerField()
    age_years = models.DecimalField(max_digits=6, decimal_places=2)
    maintenance_cost_12m = models.DecimalField(max_digits=14, decimal_places=2)
    replacement_cost = models.DecimalField(max_digits=14, decimal_places=2)
    priority_score = models.PositiveSmallIntegerField()
    priority_category = models.CharField(max_length=10, choices=PriorityCategory.choices)
    reason = models.CharField(max_length=255, blank=True)
    rank = models.PositiveIntegerField(help_text="Rank order (1 = highest priority)")

    class Meta:
        ordering = ["-computed_on", "rank"]
        unique_together = ("asset", "computed_on")
        verbose_name = "Asset priority result"
        verbose_name_plural = "Asset priority results"

    def __str__(self) -> str:  # pragma: no cover
        return f"#{self.rank} {self.asset} ({self.priority_category})"
