from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from tams.choices import CIBand
from tams.services.costing import (
    DEFAULT_RATE_TABLE,
    RateTable,
    estimate_remedial_cost,
    money,
    requires_remedial_action,
)


def test_cost_is_quantity_times_rate_at_threshold():
    assert estimate_remedial_cost(60, Decimal("2"), Decimal("50")) == Decimal("100")


def test_no_cost_above_threshold_or_without_ci():
    assert estimate_remedial_cost(61, 2, 50) is None
    assert estimate_remedial_cost(None, 2, 50) is None


def test_missing_quantity_or_rate_counts_as_zero():
    assert estimate_remedial_cost(10, None, 50) == Decimal("0")
    assert estimate_remedial_cost(10, 3, None) == Decimal("0")


def test_threshold_is_configurable():
    assert estimate_remedial_cost(50, 1, 10, repair_threshold=40) is None
    assert estimate_remedial_cost(83, 1, 10, repair_threshold=90) == Decimal("10")
    assert requires_remedial_action(40, 40)
    assert not requires_remedial_action(41, 40)


def test_money_rounds_half_up():
    assert money(Decimal("2.345")) == Decimal("2.35")
    assert money(None) == Decimal("0.00")


def test_default_rates_apply_band_multiplier():
    assert DEFAULT_RATE_TABLE.remedial_rate(CIBand.POOR, "Signage", "each") == Decimal("100")
    assert DEFAULT_RATE_TABLE.remedial_rate(CIBand.EXCELLENT, "Traffic Signal", "each") == Decimal("250")
    assert DEFAULT_RATE_TABLE.remedial_rate(CIBand.FAIR, "Guardrail", "m") == Decimal("225")


def test_unknown_unit_or_asset_type_uses_default_base_rate():
    assert DEFAULT_RATE_TABLE.base_rate("Signage", "km") == Decimal("100")
    assert DEFAULT_RATE_TABLE.base_rate("Gantry", "each") == Decimal("100")


def test_missing_band_has_neutral_multiplier():
    assert DEFAULT_RATE_TABLE.remedial_rate(None, "Signage", "m") == Decimal("30")


def test_rate_table_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_RATE_TABLE.base_rates["Signage"]["each"] = Decimal("1")
    with pytest.raises(TypeError):
        DEFAULT_RATE_TABLE.band_multipliers[CIBand.POOR] = Decimal("9")
    with pytest.raises(FrozenInstanceError):
        DEFAULT_RATE_TABLE.default_base_rate = Decimal("1")


def test_overrides_build_a_new_table():
    custom = DEFAULT_RATE_TABLE.with_overrides([("Signage", "each", "80"), ("Gantry", "each", 900)])

    assert custom.base_rate("Signage", "each") == Decimal("80")
    assert custom.base_rate("Gantry", "each") == Decimal("900")
    assert custom.base_rate("Signage", "m") == Decimal("30")
    assert DEFAULT_RATE_TABLE.base_rate("Signage", "each") == Decimal("50")


def test_custom_multipliers_are_injected():
    table = RateTable(base_rates={"Fence": {"m": 10}}, band_multipliers={CIBand.POOR: 3})

    assert table.remedial_rate(CIBand.POOR, "Fence", "m") == Decimal("30")
    assert table.remedial_rate(CIBand.GOOD, "Fence", "m") == Decimal("10")
