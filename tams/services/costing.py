"""Costing helpers shared by the inspection scoring engines."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from tams.choices import CIBand

DEFAULT_REPAIR_THRESHOLD = 60
DEFAULT_BASE_RATE = Decimal("100")

BAND_MULTIPLIERS: Mapping[str, Decimal] = MappingProxyType(
    {
        CIBand.POOR: Decimal("2.0"),
        CIBand.FAIR: Decimal("1.5"),
        CIBand.GOOD: Decimal("1.0"),
        CIBand.EXCELLENT: Decimal("0.5"),
    }
)


def _decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def money(value) -> Decimal:
    return _decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def requires_remedial_action(ci: Optional[int], repair_threshold=DEFAULT_REPAIR_THRESHOLD) -> bool:
    return ci is not None and ci <= repair_threshold


def estimate_remedial_cost(
    ci: Optional[int],
    quantity=None,
    rate=None,
    repair_threshold=DEFAULT_REPAIR_THRESHOLD,
) -> Optional[Decimal]:
    """Return ``quantity * rate`` for components at or below the repair threshold.

    Components above the threshold, or without a CI, carry no remedial cost
    and yield ``None``. A missing quantity or rate counts as zero.
    """

    if not requires_remedial_action(ci, repair_threshold):
        return None
    return _decimal(quantity) * _decimal(rate)


def _freeze(rates: Mapping[str, Mapping[str, object]]) -> Mapping[str, Mapping[str, Decimal]]:
    return MappingProxyType(
        {
            asset_type: MappingProxyType({unit: _decimal(rate) for unit, rate in units.items()})
            for asset_type, units in rates.items()
        }
    )


@dataclass(frozen=True)
class RateTable:
    """Read-only remedial base rates per (asset type, unit) and band multipliers."""

    base_rates: Mapping[str, Mapping[str, Decimal]]
    band_multipliers: Mapping[str, Decimal] = field(default_factory=lambda: BAND_MULTIPLIERS)
    default_base_rate: Decimal = DEFAULT_BASE_RATE

    def __post_init__(self):
        object.__setattr__(self, "base_rates", _freeze(self.base_rates))
        object.__setattr__(
            self,
            "band_multipliers",
            MappingProxyType({band: _decimal(value) for band, value in self.band_multipliers.items()}),
        )

    def base_rate(self, asset_type: Optional[str], unit: Optional[str]) -> Decimal:
        units = self.base_rates.get((asset_type or "").strip(), {})
        return units.get((unit or "").strip(), self.default_base_rate)

    def multiplier(self, band: Optional[str]) -> Decimal:
        if band is None:
            return Decimal("1.0")
        return self.band_multipliers.get(band, Decimal("1.0"))

    def remedial_rate(self, band: Optional[str], asset_type: Optional[str], unit: Optional[str]) -> Decimal:
        return self.base_rate(asset_type, unit) * self.multiplier(band)

    def with_overrides(self, overrides: Iterable[Tuple[str, str, object]]) -> "RateTable":
        """Return a new table where ``(asset_type, unit, base_rate)`` rows win."""

        merged = {asset_type: dict(units) for asset_type, units in self.base_rates.items()}
        for asset_type, unit, rate in overrides:
            merged.setdefault(asset_type, {})[unit] = _decimal(rate)
        return replace(self, base_rates=merged)


DEFAULT_RATE_TABLE = RateTable(
    base_rates={
        "Signage": {"each": 50, "m²": 100, "m": 30},
        "Guardrail": {"each": 200, "m": 150, "m²": 250},
        "Traffic Signal": {"each": 500, "m": 300, "m²": 400},
    }
)
