from datetime import date
from decimal import Decimal

import pytest

from tams import models


@pytest.fixture
def organisation(db):
    return models.Organisation.objects.create(name="Metro Roads", code="metro", repair_threshold=60)


@pytest.fixture
def signage(db):
    return models.AssetType.objects.create(name="Signage", code="SIG", default_useful_life_years=10)


@pytest.fixture
def guardrail(db):
    return models.AssetType.objects.create(name="Guardrail", code="GR", default_useful_life_years=25)


@pytest.fixture
def make_asset(organisation, signage):
    def _make(asset_ref="SIG-001", asset_type=None, **kwargs):
        defaults = {
            "purchase_date": date(2015, 1, 1),
            "purchase_price": Decimal("10000"),
            "replacement_cost": Decimal("10000"),
        }
        defaults.update(kwargs)
        return models.Asset.objects.create(
            organisation=organisation,
            asset_type=asset_type or signage,
            asset_ref=asset_ref,
            **defaults,
        )

    return _make


@pytest.fixture
def make_inspection():
    from tams.services.inspection_scores import replace_component_scores

    def _make(asset, inspection_date=date(2024, 6, 1), components=(), **kwargs):
        inspection = models.Inspection.objects.create(asset=asset, inspection_date=inspection_date, **kwargs)
        replace_component_scores(inspection, components)
        inspection.refresh_from_db()
        return inspection

    return _make
