"""REST API views for the TAMS backend."""

from __future__ import annotations

from datetime import date
from typing import Optional

from django.db.models import QuerySet
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.request import Request
from rest_framework.response import Response

from . import models, serializers
from .services import portfolio
from .services.aggregation import score_inspection, with_template_defaults
from .services.batch_ci import perform_full_calculation
from .services.inspection_scores import recompute_inspection_scores, replace_component_scores
from .services.scoring import ScoringInputError


def _organisation_param(request: Request) -> Optional[models.Organisation]:
    organisation_id = request.query_params.get("organisation")
    if not organisation_id:
        return None
    return get_object_or_404(models.Organisation, pk=organisation_id)


def _date_param(request: Request, name: str) -> Optional[date]:
    raw = request.query_params.get(name)
    if not raw:
        return None
    parsed = parse_date(raw)
    if parsed is None:
        raise ValidationError({name: "Use the YYYY-MM-DD format."})
    return parsed


class OrganisationViewSet(viewsets.ModelViewSet):
    queryset: QuerySet[models.Organisation] = models.Organisation.objects.all()
    serializer_class = serializers.OrganisationSerializer


class AssetTypeViewSet(viewsets.ModelViewSet):
    queryset = models.AssetType.objects.prefetch_related("component_templates").all()
    serializer_class = serializers.AssetTypeSerializer


class ComponentTemplateViewSet(viewsets.ModelViewSet):
    queryset = models.ComponentTemplate.objects.select_related("asset_type").all()
    serializer_class = serializers.ComponentTemplateSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        asset_type = self.request.query_params.get("asset_type")
        if asset_type:
            queryset = queryset.filter(asset_type_id=asset_type)
        return queryset


class AssetViewSet(viewsets.ModelViewSet):
    queryset = models.Asset.objects.select_related("asset_type", "organisation").all()
    serializer_class = serializers.AssetSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        organisation = self.request.query_params.get("organisation")
        if organisation:
            queryset = queryset.filter(organisation_id=organisation)
        asset_type = self.request.query_params.get("asset_type")
        if asset_type:
            queryset = queryset.filter(asset_type_id=asset_type)
        return queryset

    @action(detail=True, methods=["get"])
    def valuation(self, request: Request, pk=None) -> Response:
        asset = self.get_object()
        return Response(portfolio.asset_valuation(asset, _date_param(request, "as_of")))


class InspectionViewSet(viewsets.ModelViewSet):
    queryset = models.Inspection.objects.select_related("asset").prefetch_related("component_scores")
    serializer_class = serializers.InspectionSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        asset = self.request.query_params.get("asset")
        if asset:
            queryset = queryset.filter(asset_id=asset)
        return queryset

    def perform_create(self, serializer):
        recompute_inspection_scores(serializer.save())
        serializer.instance.refresh_from_db()

    def perform_update(self, serializer):
        recompute_inspection_scores(serializer.save())
        serializer.instance.refresh_from_db()

    @action(detail=True, methods=["get", "post"], url_path="component-scores")
    def component_scores(self, request: Request, pk=None) -> Response:
        inspection = self.get_object()

        if request.method == "POST":
            payload = serializers.ComponentScoresSubmissionSerializer(data=request.data)
            payload.is_valid(raise_exception=True)
            replace_component_scores(inspection, payload.validated_data["components"])
            inspection.refresh_from_db()

        scores = inspection.component_scores.order_by("display_order", "component_name")
        return Response(
            {
                "inspection": serializers.InspectionSerializer(inspection).data,
                "components": serializers.InspectionComponentScoreSerializer(scores, many=True).data,
            },
            status=status.HTTP_201_CREATED if request.method == "POST" else status.HTTP_200_OK,
        )


class RemedialRateViewSet(viewsets.ModelViewSet):
    queryset = models.RemedialRate.objects.select_related("asset_type", "organisation").all()
    serializer_class = serializers.RemedialRateSerializer


class MaintenanceRecordViewSet(viewsets.ModelViewSet):
    queryset = models.MaintenanceRecord.objects.select_related("asset").all()
    serializer_class = serializers.MaintenanceRecordSerializer


class AssetPriorityResultViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = models.AssetPriorityResult.objects.select_related("asset").all()
    serializer_class = serializers.AssetPriorityResultSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        computed_on = self.request.query_params.get("computed_on")
        if computed_on:
            queryset = queryset.filter(computed_on=computed_on)
        return queryset


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated])
def calculation_preview(request: Request) -> Response:
    """Score component ratings with both engines without saving anything."""

    payload = serializers.CalculationPreviewSerializer(data=request.data)
    payload.is_valid(raise_exception=True)
    data = payload.validated_data

    organisation = data.get("organisation")
    asset_type_name = data.get("asset_type") or None
    asset_type = models.AssetType.objects.filter(name__iexact=asset_type_name).first() if asset_type_name else None
    repair_threshold = data.get("repair_threshold")
    if repair_threshold is None and organisation is not None:
        repair_threshold = organisation.repair_threshold

    try:
        ratings = with_template_defaults(
            data["components"],
            asset_type.default_quantities() if asset_type else None,
            asset_type.default_units() if asset_type else None,
        )
        result = score_inspection(
            ratings,
            asset_type=asset_type.name if asset_type else asset_type_name,
            repair_threshold=repair_threshold,
        )
        batch = perform_full_calculation(
            ratings,
            asset_type.name if asset_type else asset_type_name,
            models.RemedialRate.objects.rate_table_for(organisation),
        )
    except ScoringInputError as exc:
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({"decision_tree": result.as_dict(), "batch": batch.as_dict()})


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def asset_type_summary(request: Request) -> Response:
    return Response({"summary": portfolio.asset_type_summary(_organisation_param(request))})


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def critical_alerts(request: Request) -> Response:
    return Response({"alerts": portfolio.critical_alerts(_organisation_param(request))})


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def ci_trend(request: Request) -> Response:
    months = request.query_params.get("months")
    try:
        months = int(months) if months else portfolio.TREND_MONTHS
    except ValueError:
        raise ValidationError({"months": "Must be an integer."})
    if months < 1:
        raise ValidationError({"months": "Must be at least 1."})
    return Response({"trend": portfolio.ci_trend(_organisation_param(request), months=months)})


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated])
def compute_priorities(request: Request) -> Response:
    """Compute, store and return ranked replacement priorities."""

    payload = serializers.PriorityComputeSerializer(data=request.data)
    payload.is_valid(raise_exception=True)
    as_of = payload.validated_data.get("as_of") or date.today()
    organisation = payload.validated_data.get("organisation")

    summary = portfolio.compute_asset_priorities(as_of, organisation)

    results = models.AssetPriorityResult.objects.select_related("asset").filter(computed_on=as_of)
    if organisation is not None:
        results = results.filter(asset__organisation=organisation)
    return Response(
        {
            "computed_on": as_of,
            "processed": summary["processed"],
            "skipped": summary["skipped"],
            "results": serializers.AssetPriorityResultSerializer(results.order_by("rank"), many=True).data,
        },
        status=status.HTTP_201_CREATED,
    )
