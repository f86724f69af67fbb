"""API tests for scoring, inspections and dashboards."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from tams import models


class TamsAPITestCase(APITestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="inspector", password="pass1234")
        self.client = APIClient()
        self.client.force_authenticate(self.user)
        self.organisation = models.Organisation.objects.create(name="Metro Roads", code="metro")
        self.signage = models.AssetType.objects.create(name="Signage", code="SIG", default_useful_life_years=10)
        self.asset = models.Asset.objects.create(
            organisation=self.organisation,
            asset_type=self.signage,
            asset_ref="SIG-001",
            purchase_date=date(2015, 1, 1),
            purchase_price=Decimal("10000"),
            replacement_cost=Decimal("10000"),
        )
        self.inspection = models.Inspection.objects.create(asset=self.asset, inspection_date=date(2024, 6, 1))

    def submit_components(self, components):
        url = f"/api/inspections/{self.inspection.pk}/component-scores/"
        return self.client.post(url, {"components": components}, format="json")


class CalculationPreviewTests(TamsAPITestCase):
    url = "/api/calculations/preview/"

    def test_preview_scores_without_saving(self):
        response = self.client.post(
            self.url,
            {
                "asset_type": "Signage",
                "components": [
                    {"component_name": "Post", "degree": "3", "extent": "4", "relevancy": "4", "quantity": 2, "rate": 50},
                    {"component_name": "Face", "degree": "1", "extent": "1", "relevancy": "1"},
                ],
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        tree = response.data["decision_tree"]
        self.assertEqual([c["ci"] for c in tree["components"]], [0, 83])
        self.assertEqual([c["urgency"] for c in tree["components"]], ["4", "0"])
        self.assertEqual(tree["aggregate"]["ci_final"], 0)
        self.assertEqual(Decimal(str(tree["aggregate"]["total_cost"])), Decimal("100"))
        batch = response.data["batch"]
        self.assertEqual(Decimal(str(batch["conditional_index"])), Decimal("39.69"))
        self.assertEqual(batch["ci_band"], "Poor")
        self.assertFalse(models.InspectionComponentScore.objects.exists())

    def test_preview_reports_unable_and_malformed(self):
        response = self.client.post(
            self.url,
            {
                "components": [
                    {"component_name": "Post", "degree": "U", "extent": "1", "relevancy": "1"},
                    {"component_name": "Face", "degree": "9", "extent": "1", "relevancy": "1"},
                ]
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        tree = response.data["decision_tree"]
        self.assertEqual([c["status"] for c in tree["components"]], ["unable", "malformed"])
        self.assertIsNone(tree["aggregate"]["ci_final"])
        self.assertEqual(tree["aggregate"]["ci_safety"], 100)

    def test_preview_uses_organisation_threshold(self):
        self.organisation.repair_threshold = 90
        self.organisation.save()

        response = self.client.post(
            self.url,
            {
                "organisation": self.organisation.pk,
                "components": [
                    {"component_name": "Face", "degree": "1", "extent": "1", "relevancy": "1", "quantity": 1, "rate": 10}
                ],
            },
            format="json",
        )

        self.assertEqual(response.data["decision_tree"]["repair_threshold"], 90)
        self.assertEqual(Decimal(str(response.data["decision_tree"]["components"][0]["cost"])), Decimal("10"))

    def test_preview_fills_template_quantity_and_unit(self):
        guardrail = models.AssetType.objects.create(name="Guardrail", code="GR")
        models.ComponentTemplate.objects.create(
            asset_type=guardrail, component_name="Rail", default_quantity=Decimal("10"), quantity_unit="m"
        )

        response = self.client.post(
            self.url,
            {
                "asset_type": "Guardrail",
                "components": [{"component_name": "Rail", "degree": "3", "extent": "4", "relevancy": "4", "rate": 20}],
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(str(response.data["decision_tree"]["components"][0]["cost"])), Decimal("200"))
        rail = response.data["batch"]["component_breakdown"][0]
        self.assertEqual(rail["unit"], "m")
        self.assertEqual(Decimal(str(rail["rate"])), Decimal("300"))
        self.assertEqual(Decimal(str(response.data["batch"]["total_remedial_cost"])), Decimal("3000.00"))

    def test_preview_validates_payload(self):
        response = self.client.post(self.url, {"components": [{"degree": "1"}]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("components", response.data)

    def test_preview_requires_authentication(self):
        response = APIClient().post(self.url, {"components": []}, format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ComponentScoreSubmissionTests(TamsAPITestCase):
    def test_submission_persists_and_recomputes(self):
        response = self.submit_components(
            [
                {"component_name": "Post", "degree": "3", "extent": "4", "relevancy": "4", "quantity": "2", "rate": "50"},
                {"component_name": "Face", "degree": "1", "extent": "1", "relevancy": "1"},
            ]
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["inspection"]["ci_final"], 0)
        self.assertEqual(response.data["inspection"]["worst_urgency"], "4")
        self.assertEqual([c["component_name"] for c in response.data["components"]], ["Post", "Face"])
        self.assertEqual(response.data["components"][0]["urgency_label"], "Critical")

        self.inspection.refresh_from_db()
        self.assertEqual(self.inspection.ci_health, 42)
        self.assertEqual(self.inspection.total_remedial_cost, Decimal("100.00"))

    def test_resubmission_replaces_components(self):
        self.submit_components([{"component_name": "Post", "degree": "3", "extent": "4", "relevancy": "4"}])
        self.submit_components([{"component_name": "Face", "degree": "1", "extent": "1", "relevancy": "1"}])

        response = self.client.get(f"/api/inspections/{self.inspection.pk}/component-scores/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c["component_name"] for c in response.data["components"]], ["Face"])
        self.assertEqual(response.data["inspection"]["ci_final"], 83)

    def test_unrecognised_tokens_are_stored_as_malformed(self):
        response = self.submit_components(
            [
                {"component_name": "Post", "degree": "10", "extent": "AB", "relevancy": "4"},
                {"component_name": "Face", "degree": "1", "extent": "1", "relevancy": "1"},
            ]
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        post = models.InspectionComponentScore.objects.get(inspection=self.inspection, component_name="Post")
        self.assertEqual((post.degree, post.extent), ("10", "AB"))
        self.assertEqual(post.rating_status, "malformed")
        self.assertIsNone(post.ci)
        self.assertEqual(response.data["inspection"]["ci_final"], 83)

    def test_unknown_inspection_is_404(self):
        response = self.client.post("/api/inspections/99999/component-scores/", {"components": []}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_updating_threshold_rescores(self):
        self.submit_components(
            [{"component_name": "Face", "degree": "1", "extent": "1", "relevancy": "1", "quantity": "1", "rate": "10"}]
        )

        response = self.client.patch(
            f"/api/inspections/{self.inspection.pk}/", {"repair_threshold": 90}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.inspection.refresh_from_db()
        self.assertEqual(self.inspection.total_remedial_cost, Decimal("10.00"))

    def test_derived_fields_are_read_only(self):
        response = self.client.patch(f"/api/inspections/{self.inspection.pk}/", {"ci_final": 99}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.inspection.refresh_from_db()
        self.assertIsNone(self.inspection.ci_final)


class InventoryAPITests(TamsAPITestCase):
    def test_asset_validation_errors_are_400(self):
        response = self.client.post(
            "/api/assets/",
            {
                "organisation": self.organisation.pk,
                "asset_type": self.signage.pk,
                "asset_ref": "SIG-002",
                "latitude": "95.000000",
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("latitude", response.data)

    def test_asset_type_lists_component_templates(self):
        models.ComponentTemplate.objects.create(asset_type=self.signage, component_name="Post", display_order=1)

        response = self.client.get(f"/api/asset-types/{self.signage.pk}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t["component_name"] for t in response.data["component_templates"]], ["Post"])

    def test_asset_valuation(self):
        self.submit_components([{"component_name": "Post", "degree": "3", "extent": "4", "relevancy": "4"}])

        response = self.client.get(f"/api/assets/{self.asset.pk}/valuation/", {"as_of": "2025-01-01"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["ci_final"], 0)
        self.assertEqual(response.data["replacement_priority"]["priority_score"], 70)

    def test_asset_valuation_rejects_bad_date(self):
        response = self.client.get(f"/api/assets/{self.asset.pk}/valuation/", {"as_of": "01/01/2025"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DashboardAPITests(TamsAPITestCase):
    def setUp(self):
        super().setUp()
        self.submit_components([{"component_name": "Post", "degree": "3", "extent": "4", "relevancy": "4"}])

    def test_asset_type_summary(self):
        response = self.client.get(reverse("dashboard_asset_type_summary"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["summary"][0]["asset_type_name"], "Signage")
        self.assertEqual(response.data["summary"][0]["critical_count"], 1)

    def test_critical_alerts(self):
        response = self.client.get(reverse("dashboard_critical_alerts"), {"organisation": self.organisation.pk})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        keys = [alert["key"] for alert in response.data["alerts"]]
        self.assertEqual(keys, ["critical_urgency", "critical_condition"])

    def test_ci_trend(self):
        response = self.client.get(reverse("dashboard_ci_trend"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["trend"], [{"month": "2024-06", "avg_ci": 0, "inspections": 1}])

    def test_ci_trend_rejects_non_positive_months(self):
        for months in ("0", "-1", "twelve"):
            response = self.client.get(reverse("dashboard_ci_trend"), {"months": months})

            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn("months", response.data)

    def test_unknown_organisation_is_404(self):
        response = self.client.get(reverse("dashboard_ci_trend"), {"organisation": 99999})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_compute_priorities(self):
        response = self.client.post(reverse("compute_priorities"), {"as_of": "2025-01-01"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["processed"], 1)
        self.assertEqual(response.data["results"][0]["rank"], 1)
        self.assertEqual(response.data["results"][0]["priority_category"], "High")

        listing = self.client.get("/api/priority-results/", {"computed_on": "2025-01-01"})
        self.assertEqual(len(listing.data), 1)


class TokenAuthTests(APITestCase):
    def test_login_returns_token_pair(self):
        get_user_model().objects.create_user(username="inspector", password="pass1234")

        response = self.client.post(
            "/api/auth/login/", {"username": "inspector", "password": "pass1234"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)
