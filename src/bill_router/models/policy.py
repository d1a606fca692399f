"""Tunable thresholds for validation and classification.

Every call site takes a :class:`RoutingPolicy` so thresholds and supplier
lists can be tuned from configuration without touching the rules themselves.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from bill_router.config import Settings


class RoutingPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    # A utility is classified present at or above this many billing indicators.
    indicator_threshold: int = Field(default=3, ge=1, le=6)
    # Asymmetric-strength rule: a branch this strong ...
    strong_indicator_min: int = Field(default=4, ge=1, le=6)
    # ... clears an opposite branch with at most this many (but more than zero).
    weak_indicator_max: int = Field(default=2, ge=0, le=6)
    # Identifier-only branches at or below this count are treated as meter photos.
    meter_photo_indicator_max: int = Field(default=1, ge=0, le=6)
    electricity_only_suppliers: tuple[str, ...] = (
        "electric ireland",
        "esb networks",
        "esb energy",
        "energia",
    )
    gas_only_suppliers: tuple[str, ...] = ("flogas", "natural gas")

    @classmethod
    def from_settings(cls, settings: Settings) -> RoutingPolicy:
        return cls(
            indicator_threshold=settings.indicator_threshold,
            strong_indicator_min=settings.strong_indicator_min,
            weak_indicator_max=settings.weak_indicator_max,
            meter_photo_indicator_max=settings.meter_photo_indicator_max,
            electricity_only_suppliers=tuple(s.lower() for s in settings.electricity_only_suppliers),
            gas_only_suppliers=tuple(s.lower() for s in settings.gas_only_suppliers),
        )

    def is_electricity_only_supplier(self, supplier_name: str) -> bool:
        name = supplier_name.lower()
        return bool(name) and any(s in name for s in self.electricity_only_suppliers)

    def is_gas_only_supplier(self, supplier_name: str) -> bool:
        name = supplier_name.lower()
        return bool(name) and any(s in name for s in self.gas_only_suppliers)


DEFAULT_POLICY = RoutingPolicy()
