"""URL configuration for the TAMS API."""

from django.urls import include, path
from rest_framework import routers
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from . import views


router = routers.DefaultRouter()
router.register(r"organisations", views.OrganisationViewSet)
router.register(r"asset-types", views.AssetTypeViewSet)
router.register(r"component-templates", views.ComponentTemplateViewSet)
router.register(r"assets", views.AssetViewSet)
router.register(r"inspections", views.InspectionViewSet)
router.register(r"remedial-rates", views.RemedialRateViewSet)
router.register(r"maintenance-records", views.MaintenanceRecordViewSet)
router.register(r"priority-results", views.AssetPriorityResultViewSet)


urlpatterns = [
    path("api/", include(router.urls)),
    path("api/auth/login/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/calculations/preview/", views.calculation_preview, name="calculation_preview"),
    path("api/dashboard/asset-type-summary/", views.asset_type_summary, name="dashboard_asset_type_summary"),
    path("api/dashboard/critical-alerts/", views.critical_alerts, name="dashboard_critical_alerts"),
    path("api/dashboard/ci-trend/", views.ci_trend, name="dashboard_ci_trend"),
    path("api/priorities/compute/", views.compute_priorities, name="compute_priorities"),
]
