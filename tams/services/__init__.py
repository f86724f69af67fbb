from . import aggregation, batch_ci, costing, scoring, valuation
from .aggregation import aggregate, find_worst_urgency, score_inspection
from .batch_ci import perform_full_calculation
from .costing import DEFAULT_RATE_TABLE, RateTable, estimate_remedial_cost
from .scoring import (
    ScoringInputError,
    calculate_component_ci,
    determine_urgency,
    score_component,
)
from .valuation import calculate_asset_depreciation, calculate_replacement_priority

__all__ = [
    "aggregation",
    "batch_ci",
    "costing",
    "scoring",
    "valuation",
    "aggregate",
    "find_worst_urgency",
    "score_inspection",
    "perform_full_calculation",
    "DEFAULT_RATE_TABLE",
    "RateTable",
    "estimate_remedial_cost",
    "ScoringInputError",
    "calculate_component_ci",
    "determine_urgency",
    "score_component",
    "calculate_asset_depreciation",
    "calculate_replacement_priority",
]
