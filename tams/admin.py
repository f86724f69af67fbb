from __future__ import annotations

from django.contrib import admin, messages
from django.contrib.admin import AdminSite
from django.contrib.auth.admin import GroupAdmin, UserAdmin
from django.contrib.auth.models import Group, User

from . import models
from .services import inspection_scores


class TAMSAdminSite(AdminSite):
    site_header = "TAMS Administration"
    site_title = "TAMS Admin"
    index_title = "Traffic Asset Management System"
    site_url = "/"


tams_admin_site = TAMSAdminSite(name="admin")

tams_admin_site.register(User, UserAdmin)
tams_admin_site.register(Group, GroupAdmin)


class ComponentTemplateInline(admin.TabularInline):
    model = models.ComponentTemplate
    extra = 0
    fields = ("display_order", "component_name", "what_to_inspect", "default_quantity", "quantity_unit", "is_active")


class InspectionComponentScoreInline(admin.TabularInline):
    model = models.InspectionComponentScore
    extra = 0
    fields = (
        "display_order",
        "component_name",
        "degree",
        "extent",
        "relevancy",
        "quantity",
        "unit",
        "rate",
        "remedial_work",
        "ci",
        "urgency",
        "rating_status",
        "cost",
    )
    readonly_fields = ("ci", "urgency", "rating_status", "cost")


@admin.register(models.Organisation, site=tams_admin_site)
class OrganisationAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "repair_threshold", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "code")
    prepopulated_fields = {"code": ("name",)}


@admin.register(models.AssetType, site=tams_admin_site)
class AssetTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "default_useful_life_years")
    search_fields = ("name", "code")
    inlines = [ComponentTemplateInline]


@admin.register(models.RemedialRate, site=tams_admin_site)
class RemedialRateAdmin(admin.ModelAdmin):
    list_display = ("asset_type", "unit", "base_rate", "organisation")
    list_filter = ("asset_type", "organisation")
    search_fields = ("asset_type__name", "unit")


@admin.register(models.Asset, site=tams_admin_site)
class AssetAdmin(admin.ModelAdmin):
    list_display = ("asset_ref", "asset_type", "organisation", "road_name", "purchase_date", "is_active")
    list_filter = ("organisation", "asset_type", "is_active")
    search_fields = ("asset_ref", "description", "road_name")
    fieldsets = (
        ("Asset", {"fields": ("organisation", "asset_type", "asset_ref", "description", "is_active")}),
        ("Location", {"fields": ("road_name", ("latitude", "longitude"))}),
        (
            "Valuation",
            {
                "fields": (
                    ("purchase_date", "purchase_price"),
                    ("useful_life_years", "salvage_value"),
                    "replacement_cost",
                )
            },
        ),
    )


@admin.register(models.Inspection, site=tams_admin_site)
class InspectionAdmin(admin.ModelAdmin):
    list_display = (
        "asset",
        "inspection_date",
        "inspector_name",
        "ci_final",
        "worst_urgency",
        "total_remedial_cost",
        "conditional_index",
        "ci_band",
    )
    list_filter = ("worst_urgency", "ci_band", "asset__asset_type")
    search_fields = ("asset__asset_ref", "inspector_name")
    date_hierarchy = "inspection_date"
    inlines = [InspectionComponentScoreInline]
    actions = ["recompute_scores"]
    readonly_fields = (
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
    fieldsets = (
        (
            "Inspection",
            {"fields": ("asset", "inspection_date", "inspector_name", "weather", "repair_threshold", "comments")},
        ),
        (
            "Condition",
            {
                "fields": (
                    ("ci_health", "ci_safety", "ci_final"),
                    ("worst_urgency", "total_remedial_cost"),
                    ("overall_degree", "overall_extent", "overall_relevancy"),
                    "overall_remedial",
                )
            },
        ),
        (
            "Batch CI",
            {
                "classes": ("collapse",),
                "fields": (
                    ("conditional_index", "ci_band"),
                    ("deru_value", "calculated_urgency"),
                    "batch_remedial_cost",
                    "calculation_metadata",
                    "scored_at",
                ),
            },
        ),
    )

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        inspection_scores.recompute_inspection_scores(form.instance)

    @admin.action(description="Recompute scores")
    def recompute_scores(self, request, queryset):
        processed, scored = inspection_scores.recompute_inspections(queryset.select_related("asset__organisation"))
        self.message_user(
            request,
            f"Recomputed {processed} inspection(s); {scored} component(s) scored.",
            level=messages.SUCCESS,
        )


@admin.register(models.MaintenanceRecord, site=tams_admin_site)
class MaintenanceRecordAdmin(admin.ModelAdmin):
    list_display = ("asset", "completed_date", "cost")
    list_filter = ("completed_date",)
    search_fields = ("asset__asset_ref", "description")


@admin.register(models.AssetPriorityResult, site=tams_admin_site)
class AssetPriorityResultAdmin(admin.ModelAdmin):
    list_display = ("rank", "asset", "computed_on", "priority_score", "priority_category", "ci_used")
    list_filter = ("computed_on", "priority_category")
    search_fields = ("asset__asset_ref",)
    ordering = ("-computed_on", "rank")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
