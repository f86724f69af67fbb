from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tams.choices import CIBand, Urgency
from tams.services.batch_ci import (
    calculate_component_remedial_cost,
    calculate_component_score,
    calculate_conditional_index,
    calculate_deru,
    get_ci_band,
    get_remedial_rate,
    perform_full_calculation,
    relevancy_weight,
    urgency_from_ci,
)
from tams.services.costing import DEFAULT_RATE_TABLE


def _rating(name, degree, extent, relevancy, **extra):
    return {"component_name": name, "degree": degree, "extent": extent, "relevancy": relevancy, **extra}


def test_component_score_is_product_of_ratings():
    assert calculate_component_score("2", "3", "4") == 24
    assert calculate_component_score("0", "4", "4") == 0


@pytest.mark.parametrize("ratings", [("X", "1", "1"), ("U", "1", "1"), ("2", "U", "1"), ("4", "1", "1"), ("", "1", "1")])
def test_excluded_or_unparsable_components_have_no_score(ratings):
    assert calculate_component_score(*ratings) is None


def test_relevancy_weights():
    assert [relevancy_weight(r) for r in ["4", "3", "2", "1", "U", None]] == [
        Decimal("2.0"),
        Decimal("1.5"),
        Decimal("1.0"),
        Decimal("0.5"),
        Decimal("1.0"),
        Decimal("1.0"),
    ]


def test_conditional_index_single_component():
    assert calculate_conditional_index([_rating("Post", "3", "4", "4")]) == Decimal("25.00")


def test_conditional_index_is_weighted_by_relevancy():
    ci = calculate_conditional_index([_rating("A", "1", "1", "1"), _rating("B", "2", "2", "2")])

    assert ci == Decimal("91.15")


def test_conditional_index_without_valid_components_is_none():
    assert calculate_conditional_index([_rating("A", "X", "1", "1"), _rating("B", "U", "1", "1")]) is None
    assert calculate_conditional_index([]) is None


@pytest.mark.parametrize(
    "ci, band",
    [
        (Decimal("100"), CIBand.EXCELLENT),
        (Decimal("80"), CIBand.EXCELLENT),
        (Decimal("79.99"), CIBand.GOOD),
        (Decimal("60"), CIBand.GOOD),
        (Decimal("40"), CIBand.FAIR),
        (Decimal("39.99"), CIBand.POOR),
        (None, None),
    ],
)
def test_ci_bands(ci, band):
    assert get_ci_band(ci) == band


@pytest.mark.parametrize(
    "ci, deru",
    [
        (Decimal("25"), Decimal("150.00")),
        (Decimal("50"), Decimal("75.00")),
        (Decimal("70"), Decimal("30.00")),
        (Decimal("90"), Decimal("5.00")),
        (None, None),
    ],
)
def test_deru(ci, deru):
    assert calculate_deru(ci) == deru


def test_urgency_from_ci_steps():
    assert urgency_from_ci(Decimal("25")) == Urgency.CRITICAL
    assert urgency_from_ci(Decimal("50")) == Urgency.HIGH
    assert urgency_from_ci(Decimal("70")) == Urgency.MEDIUM
    assert urgency_from_ci(Decimal("80")) == Urgency.LOW
    assert urgency_from_ci(None) is None


def test_rate_lookup_and_component_cost_defaults():
    assert get_remedial_rate(CIBand.POOR, "Signage", "each") == Decimal("100")

    rate, cost = calculate_component_remedial_cost(_rating("Post", "3", "4", "4"), CIBand.POOR, "Signage")
    assert (rate, cost) == (Decimal("100"), Decimal("100"))

    rate, cost = calculate_component_remedial_cost(
        _rating("Rail", "3", "4", "4", quantity="12", unit="m"), CIBand.GOOD, "Guardrail"
    )
    assert (rate, cost) == (Decimal("150"), Decimal("1800"))


def test_full_calculation():
    calculated_at = datetime(2025, 3, 1, 8, 30, tzinfo=timezone.utc)
    result = perform_full_calculation(
        [
            _rating("Post", "3", "4", "4", quantity="2", unit="each"),
            _rating("Face", "X", "1", "1"),
        ],
        "Signage",
        calculated_at=calculated_at,
    )

    assert result.conditional_index == Decimal("25.00")
    assert result.ci_band == CIBand.POOR
    assert result.deru_value == Decimal("150.00")
    assert result.calculated_urgency == Urgency.CRITICAL
    assert [c.component_score for c in result.component_breakdown] == [48, None]
    assert [c.component_cost for c in result.component_breakdown] == [Decimal("200"), Decimal("100")]
    assert result.total_remedial_cost == Decimal("300.00")
    assert result.metadata == {
        "total_components": 2,
        "scored_components": 1,
        "excluded_components": 1,
        "calculation_date": "2025-03-01T08:30:00+00:00",
    }


def test_full_calculation_without_ci_costs_at_fair_band():
    result = perform_full_calculation([_rating("Post", "U", "1", "1"), _rating("Face", "", "1", "1")], "Signage")

    assert result.conditional_index is None
    assert result.ci_band is None
    assert result.deru_value is None
    assert result.calculated_urgency is None
    assert [c.rate for c in result.component_breakdown] == [Decimal("75"), Decimal("75")]
    assert result.total_remedial_cost == Decimal("150.00")
    assert result.metadata["excluded_components"] == 1


def test_full_calculation_uses_injected_rates():
    table = DEFAULT_RATE_TABLE.with_overrides([("Signage", "each", 80)])
    result = perform_full_calculation([_rating("Post", "3", "4", "4")], "Signage", rate_table=table)

    assert result.component_breakdown[0].rate == Decimal("160")


def test_batch_and_decision_tree_differ_for_same_ratings():
    from tams.services.aggregation import score_inspection

    ratings = [_rating("A", "2", "2", "2")]

    assert score_inspection(ratings).aggregate.ci_health == 50
    assert perform_full_calculation(ratings, "Signage").conditional_index == Decimal("87.50")
