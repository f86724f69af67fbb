"""Serializers for the TAMS REST API."""

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from . import models

SCORE_FIELDS = (
    "ci",
    "urgency",
    "rating_status",
    "urgency_rule",
    "cost",
    "component_score",
    "batch_rate",
    "batch_cost",
)

INSPECTION_RESULT_FIELDS = (
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
)


class OrganisationSerializer(serializers.ModelSerializer):
    class Meta:
        model = models.Organisation
        fields = ["id", "name", "code", "repair_threshold", "is_active", "created_at"]
        read_only_fields = ("created_at",)


class ComponentTemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = models.ComponentTemplate
        fields = "__all__"


class AssetTypeSerializer(serializers.ModelSerializer):
    component_templates = ComponentTemplateSerializer(many=True, read_only=True)

    class Meta:
        model = models.AssetType
        fields = ["id", "name", "code", "description", "default_useful_life_years", "component_templates"]


class AssetSerializer(serializers.ModelSerializer):
    asset_type_name = serializers.CharField(source="asset_type.name", read_only=True)

    class Meta:
        model = models.Asset
        fields = "__all__"

    def validate(self, attrs):
        instance = models.Asset(**{**self._current_values(), **attrs})
        try:
            instance.clean()
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.message_dict) from exc
        return attrs

    def _current_values(self):
        if self.instance is None:
            return {}
        return {
            field: getattr(self.instance, field)
            for field in ("latitude", "longitude", "purchase_price", "salvage_value")
        }


class RemedialRateSerializer(serializers.ModelSerializer):
    asset_type_name = serializers.CharField(source="asset_type.name", read_only=True)

    class Meta:
        model = models.RemedialRate
        fields = ["id", "organisation", "asset_type", "asset_type_name", "unit", "base_rate"]


class MaintenanceRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = models.MaintenanceRecord
        fields = "__all__"


class InspectionComponentScoreSerializer(serializers.ModelSerializer):
    urgency_label = serializers.CharField(source="get_urgency_display", read_only=True)

    class Meta:
        model = models.InspectionComponentScore
        fields = [
            "id",
            "component_name",
            "display_order",
            "degree",
            "extent",
            "relevancy",
            "quantity",
            "unit",
            "rate",
            "remedial_work",
            "comments",
            *SCORE_FIELDS,
            "urgency_label",
        ]
        read_only_fields = SCORE_FIELDS


class InspectionSerializer(serializers.ModelSerializer):
    asset_ref = serializers.CharField(source="asset.asset_ref", read_only=True)
    component_scores = InspectionComponentScoreSerializer(many=True, read_only=True)

    class Meta:
        model = models.Inspection
        fields = [
            "id",
            "asset",
            "asset_ref",
            "inspection_date",
            "inspector_name",
            "weather",
            "comments",
            "repair_threshold",
            *INSPECTION_RESULT_FIELDS,
            "component_scores",
        ]
        read_only_fields = INSPECTION_RESULT_FIELDS


class AssetPriorityResultSerializer(serializers.ModelSerializer):
    asset_ref = serializers.CharField(source="asset.asset_ref", read_only=True)

    class Meta:
        model = models.AssetPriorityResult
        fields = "__all__"


class ComponentRatingInputSerializer(serializers.Serializer):
    """One component rating as captured in the field.

    Rating tokens are not restricted here: unknown tokens are scored as
    malformed rather than rejected.
    """

    component_name = serializers.CharField(max_length=150)
    degree = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=5)
    extent = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=5)
    relevancy = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=5)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    unit = serializers.CharField(required=False, allow_blank=True, max_length=20)
    rate = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    remedial_work = serializers.CharField(required=False, allow_blank=True)


class ComponentScoresSubmissionSerializer(serializers.Serializer):
    components = ComponentRatingInputSerializer(many=True)


class CalculationPreviewSerializer(ComponentScoresSubmissionSerializer):
    asset_type = serializers.CharField(required=False, allow_blank=True)
    repair_threshold = serializers.IntegerField(required=False, min_value=0, max_value=100)
    organisation = serializers.PrimaryKeyRelatedField(
        queryset=models.Organisation.objects.all(), required=False, allow_null=True
    )


class PriorityComputeSerializer(serializers.Serializer):
    as_of = serializers.DateField(required=False)
    organisation = serializers.PrimaryKeyRelatedField(
        queryset=models.Organisation.objects.all(), required=False, allow_null=True
    )
