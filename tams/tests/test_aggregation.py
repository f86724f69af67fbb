from decimal import Decimal

import pytest

from tams.choices import RatingStatus, Urgency
from tams.services.aggregation import (
    ComponentRating,
    ComponentResult,
    aggregate,
    find_worst_urgency,
    safety_score,
    score_inspection,
    with_template_defaults,
)
from tams.services.scoring import ScoringInputError


def _result(name, ci, urgency, cost=None, remedial_work="", degree="1", extent="1", relevancy="1"):
    return ComponentResult(
        component_name=name,
        degree=degree,
        extent=extent,
        relevancy=relevancy,
        ci=ci,
        urgency=urgency,
        status=RatingStatus.COMPLETE,
        cost=cost,
        remedial_work=remedial_work,
    )


def test_critical_urgency_caps_final_ci_at_zero():
    summary = aggregate([_result("Post", 80, Urgency.LOW), _result("Face", 60, Urgency.CRITICAL)])

    assert summary.ci_health == 70
    assert summary.worst_urgency == Urgency.CRITICAL
    assert summary.ci_safety == 0
    assert summary.ci_final == 0


def test_all_unable_to_inspect_leaves_ci_empty():
    result = score_inspection(
        [
            {"component_name": "Post", "degree": "U", "extent": "1", "relevancy": "1"},
            {"component_name": "Face", "degree": "U", "extent": "2", "relevancy": "2"},
        ]
    )
    summary = result.aggregate

    assert summary.ci_health is None
    assert summary.worst_urgency == Urgency.RECORD_ONLY
    assert summary.ci_safety == 100
    assert summary.ci_final is None
    assert summary.total_cost == Decimal("0")


def test_final_ci_never_exceeds_health_or_safety():
    summary = aggregate([_result("Post", 95, Urgency.MEDIUM), _result("Face", 90, Urgency.ROUTINE)])

    assert summary.ci_health == 93
    assert summary.ci_safety == 50
    assert summary.ci_final == 50


def test_health_is_rounded_half_up():
    assert aggregate([_result("A", 83, "0"), _result("B", 0, "4")]).ci_health == 42


def test_worst_urgency_ignores_record_only_and_unable():
    assert find_worst_urgency(["R", "U", "0", "2", "1"]) == Urgency.MEDIUM
    assert find_worst_urgency(["R", "U"]) == Urgency.RECORD_ONLY
    assert find_worst_urgency([]) == Urgency.RECORD_ONLY


def test_safety_lookup():
    assert [safety_score(u) for u in ["R", "0", "1", "2", "3", "4"]] == [100, 90, 75, 50, 25, 0]
    assert safety_score("U") is None


def test_overall_ratings_come_from_earliest_worst_component():
    summary = aggregate(
        [
            _result("A", 90, "0", degree="1", extent="2", relevancy="1"),
            _result("B", 30, "3", degree="3", extent="3", relevancy="3"),
            _result("C", 40, "3", degree="2", extent="4", relevancy="3"),
        ]
    )

    assert (summary.overall_degree, summary.overall_extent, summary.overall_relevancy) == ("3", "3", "3")


def test_total_cost_and_remedial_text():
    summary = aggregate(
        [
            _result("A", 10, "4", cost=Decimal("100"), remedial_work="Replace post"),
            _result("B", 90, "0", cost=None),
            _result("C", 20, "3", cost=Decimal("25.50"), remedial_work="Clean face"),
        ]
    )

    assert summary.total_cost == Decimal("125.50")
    assert summary.overall_remedial == "Replace post; Clean face"


def test_score_inspection_costs_only_components_at_or_below_threshold():
    result = score_inspection(
        [
            {"component_name": "Post", "degree": "3", "extent": "4", "relevancy": "4", "quantity": "2", "rate": "50"},
            {"component_name": "Face", "degree": "1", "extent": "1", "relevancy": "1", "quantity": 1, "rate": 10},
        ],
        asset_type="Signage",
    )
    post, face = result.components

    assert result.asset_type == "Signage"
    assert result.repair_threshold == 60
    assert (post.ci, post.urgency, post.cost) == (0, Urgency.CRITICAL, Decimal("100"))
    assert (face.ci, face.urgency, face.cost) == (83, Urgency.ROUTINE, None)
    assert result.aggregate.total_cost == Decimal("100")
    assert result.aggregate.ci_health == 42
    assert result.aggregate.ci_final == 0


def test_repair_threshold_override_changes_costing():
    result = score_inspection(
        [{"component_name": "Face", "degree": "1", "extent": "1", "relevancy": "1", "quantity": 1, "rate": 10}],
        repair_threshold=90,
    )

    assert result.components[0].cost == Decimal("10")


def test_template_quantity_fills_missing_quantity():
    result = score_inspection(
        [{"component_name": "Post", "degree": "3", "extent": "4", "relevancy": "4", "rate": "20"}],
        default_quantities={"Post": Decimal("3")},
    )

    assert result.components[0].quantity == Decimal("3")
    assert result.components[0].cost == Decimal("60")


def test_template_defaults_only_fill_missing_values():
    resolved = with_template_defaults(
        [
            {"component_name": "Rail", "degree": "2", "extent": "2", "relevancy": "2"},
            {"component_name": "Rail End", "quantity": "4", "unit": "each"},
            {"component_name": "Post"},
        ],
        default_quantities={"Rail": Decimal("12"), "Rail End": Decimal("2")},
        default_units={"Rail": "m", "Rail End": "m"},
    )

    assert [(r.quantity, r.unit) for r in resolved] == [
        (Decimal("12"), "m"),
        (Decimal("4"), "each"),
        (None, ""),
    ]
    assert all(isinstance(r, ComponentRating) for r in resolved)


def test_camel_case_keys_are_accepted():
    rating = ComponentRating.from_mapping(
        {"componentName": "Post", "degreeValue": "2", "extentValue": "2", "relevancyValue": "2", "quantityUnit": "m"}
    )

    assert rating.component_name == "Post"
    assert (rating.degree, rating.extent, rating.relevancy, rating.unit) == ("2", "2", "2", "m")


def test_incomplete_and_malformed_components_are_reported():
    result = score_inspection(
        [
            {"component_name": "Post", "degree": "", "extent": "1", "relevancy": "1"},
            {"component_name": "Face", "degree": "7", "extent": "1", "relevancy": "1"},
            {"component_name": "Bolts", "degree": "1", "extent": "1", "relevancy": "1"},
        ]
    )

    assert [c.status for c in result.components] == [
        RatingStatus.INCOMPLETE,
        RatingStatus.MALFORMED,
        RatingStatus.COMPLETE,
    ]
    assert result.aggregate.ci_health == 83


def test_result_serialises_to_plain_dict():
    data = score_inspection([{"component_name": "Post", "degree": "1", "extent": "1", "relevancy": "1"}]).as_dict()

    assert data["components"][0]["ci"] == 83
    assert data["aggregate"]["ci_final"] == 83


@pytest.mark.parametrize(
    "ratings",
    [
        "1,1,1",
        {"component_name": "Post"},
        [42],
        [{"degree": "1", "extent": "1", "relevancy": "1"}],
        [{"component_name": "Post", "quantity": "lots"}],
        [{"component_name": "Post", "degree": 2.5}],
    ],
)
def test_wrong_input_shapes_raise(ratings):
    with pytest.raises(ScoringInputError):
        score_inspection(ratings)
