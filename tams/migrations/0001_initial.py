from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models

import tams.models


PERCENT_VALIDATORS = [
    django.core.validators.MinValueValidator(0),
    django.core.validators.MaxValueValidator(100),
]

URGENCY_CHOICES = [
    ("R", "Record Only"),
    ("U", "Unable to Inspect"),
    ("0", "Routine"),
    ("1", "Low"),
    ("2", "Medium"),
    ("3", "High"),
    ("4", "Critical"),
]

CI_BAND_CHOICES = [("Excellent", "Excellent"), ("Good", "Good"), ("Fair", "Fair"), ("Poor", "Poor")]


def _id():
    return ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID"))


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Organisation",
            fields=[
                _id(),
                ("name", models.CharField(max_length=150, unique=True)),
                ("code", models.SlugField(max_length=50, unique=True)),
                (
                    "repair_threshold",
                    models.PositiveSmallIntegerField(
                        default=tams.models.default_repair_threshold,
                        help_text="Component CI at or below which remedial work is costed",
                        validators=PERCENT_VALIDATORS,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="AssetType",
            fields=[
                _id(),
                ("name", models.CharField(max_length=100, unique=True)),
                ("code", models.CharField(max_length=20, unique=True)),
                ("description", models.TextField(blank=True)),
                ("default_useful_life_years", models.PositiveSmallIntegerField(blank=True, null=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="ComponentTemplate",
            fields=[
                _id(),
                ("component_name", models.CharField(max_length=150)),
                ("what_to_inspect", models.TextField(blank=True)),
                ("display_order", models.PositiveSmallIntegerField(default=1)),
                ("default_quantity", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("quantity_unit", models.CharField(blank=True, max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "asset_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="component_templates",
                        to="tams.assettype",
                    ),
                ),
            ],
            options={
                "ordering": ["asset_type", "display_order", "component_name"],
                "unique_together": {("asset_type", "component_name")},
            },
        ),
        migrations.CreateModel(
            name="RemedialRate",
            fields=[
                _id(),
                ("unit", models.CharField(max_length=20)),
                (
                    "base_rate",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "asset_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="remedial_rates",
                        to="tams.assettype",
                    ),
                ),
                (
                    "organisation",
                    models.ForeignKey(
                        blank=True,
                        help_text="Leave empty for a rate shared by all organisations",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="remedial_rates",
                        to="tams.organisation",
                    ),
                ),
            ],
            options={
                "ordering": ["asset_type", "unit"],
                "unique_together": {("organisation", "asset_type", "unit")},
            },
        ),
        migrations.CreateModel(
            name="Asset",
            fields=[
                _id(),
                ("asset_ref", models.CharField(help_text="Reference painted or tagged on the asset", max_length=50)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("road_name", models.CharField(blank=True, max_length=150)),
                ("latitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("longitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("purchase_date", models.DateField(blank=True, null=True)),
                ("purchase_price", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                (
                    "useful_life_years",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        help_text="Falls back to the asset type's default when empty",
                        null=True,
                    ),
                ),
                ("salvage_value", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("replacement_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("modified_at", models.DateTimeField(auto_now=True)),
                (
                    "asset_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assets",
                        to="tams.assettype",
                    ),
                ),
                (
                    "organisation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assets",
                        to="tams.organisation",
                    ),
                ),
            ],
            options={
                "ordering": ["organisation", "asset_ref"],
                "unique_together": {("organisation", "asset_ref")},
            },
        ),
        migrations.CreateModel(
            name="Inspection",
            fields=[
                _id(),
                ("inspection_date", models.DateField()),
                ("inspector_name", models.CharField(blank=True, max_length=150)),
                ("weather", models.CharField(blank=True, max_length=50)),
                ("comments", models.TextField(blank=True)),
                (
                    "repair_threshold",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        help_text="Overrides the organisation's repair threshold for this inspection",
                        null=True,
                        validators=PERCENT_VALIDATORS,
                    ),
                ),
                ("ci_health", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("ci_safety", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("ci_final", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("worst_urgency", models.CharField(blank=True, choices=URGENCY_CHOICES, max_length=1)),
                (
                    "total_remedial_cost",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14),
                ),
                ("overall_degree", models.CharField(blank=True, max_length=1)),
                ("overall_extent", models.CharField(blank=True, max_length=1)),
                ("overall_relevancy", models.CharField(blank=True, max_length=1)),
                ("overall_remedial", models.TextField(blank=True)),
                ("conditional_index", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("ci_band", models.CharField(blank=True, choices=CI_BAND_CHOICES, max_length=10)),
                ("deru_value", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("calculated_urgency", models.CharField(blank=True, choices=URGENCY_CHOICES, max_length=1)),
                (
                    "batch_remedial_cost",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True),
                ),
                ("calculation_metadata", models.JSONField(blank=True, default=dict)),
                ("scored_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("modified_at", models.DateTimeField(auto_now=True)),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inspections",
                        to="tams.asset",
                    ),
                ),
            ],
            options={"ordering": ["-inspection_date", "asset"]},
        ),
        migrations.CreateModel(
            name="InspectionComponentScore",
            fields=[
                _id(),
                ("component_name", models.CharField(max_length=150)),
                ("display_order", models.PositiveSmallIntegerField(default=1)),
                (
                    "degree",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("0", "0 - No defect"),
                            ("1", "1 - Minor"),
                            ("2", "2 - Moderate"),
                            ("3", "3 - Severe"),
                            ("X", "X - Not present / record only"),
                            ("U", "U - Unable to inspect"),
                        ],
                        max_length=1,
                    ),
                ),
                (
                    "extent",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("1", "1 - Less than 10%"),
                            ("2", "2 - 10 to 30%"),
                            ("3", "3 - 30 to 60%"),
                            ("4", "4 - More than 60%"),
                            ("U", "U - Unable to inspect"),
                        ],
                        max_length=1,
                    ),
                ),
                (
                    "relevancy",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("1", "1 - Low"),
                            ("2", "2 - Medium"),
                            ("3", "3 - High"),
                            ("4", "4 - Critical"),
                            ("U", "U - Unable to inspect"),
                        ],
                        max_length=1,
                    ),
                ),
                ("quantity", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("unit", models.CharField(blank=True, max_length=20)),
                ("rate", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("remedial_work", models.TextField(blank=True)),
                ("comments", models.TextField(blank=True)),
                ("ci", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("urgency", models.CharField(blank=True, choices=URGENCY_CHOICES, max_length=1)),
                (
                    "rating_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("complete", "Scored"),
                            ("record_only", "Record only / no defect"),
                            ("unable", "Unable to inspect"),
                            ("incomplete", "Rating incomplete"),
                            ("malformed", "Rating not recognised"),
                        ],
                        max_length=12,
                    ),
                ),
                ("urgency_rule", models.CharField(blank=True, max_length=8)),
                ("cost", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("component_score", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("batch_rate", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("batch_cost", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                (
                    "inspection",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="component_scores",
                        to="tams.inspection",
                    ),
                ),
            ],
            options={
                "ordering": ["inspection", "display_order", "component_name"],
                "unique_together": {("inspection", "component_name")},
            },
        ),
        migrations.CreateModel(
            name="MaintenanceRecord",
            fields=[
                _id(),
                ("completed_date", models.DateField()),
                ("description", models.TextField(blank=True)),
                (
                    "cost",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="maintenance_records",
                        to="tams.asset",
                    ),
                ),
                (
                    "inspection",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="maintenance_records",
                        to="tams.inspection",
                    ),
                ),
            ],
            options={"ordering": ["-completed_date"]},
        ),
        migrations.CreateModel(
            name="AssetPriorityResult",
            fields=[
                _id(),
                ("computed_on", models.DateField()),
                ("ci_used", models.PositiveSmallIntegerField()),
                ("age_years", models.DecimalField(decimal_places=2, max_digits=6)),
                ("maintenance_cost_12m", models.DecimalField(decimal_places=2, max_digits=14)),
                ("replacement_cost", models.DecimalField(decimal_places=2, max_digits=14)),
                ("priority_score", models.PositiveSmallIntegerField()),
                (
                    "priority_category",
                    models.CharField(
                        choices=[("Critical", "Critical"), ("High", "High"), ("Medium", "Medium"), ("Low", "Low")],
                        max_length=10,
                    ),
                ),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("rank", models.PositiveIntegerField(help_text="Rank order (1 = highest priority)")),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="priority_results",
                        to="tams.asset",
                    ),
                ),
            ],
            options={
                "verbose_name": "Asset priority result",
                "verbose_name_plural": "Asset priority results",
                "ordering": ["-computed_on", "rank"],
                "unique_together": {("asset", "computed_on")},
            },
        ),
    ]
