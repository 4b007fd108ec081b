"""
Master configuration for the Mercator economy core.

ALL tunable parameters live here. Formulas, thresholds, prices and
merchant defaults are read from this object, never hardcoded.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class EconomyConfig:
    """
    Master configuration for one simulated economy.

    Use ``to_dict()`` / ``from_dict()`` for serialization and comparison.
    """

    # === Identity ===
    scenario_name: str = "default"

    # === Ledger ===
    # A shrinking reserve below this level raises a "reserves low" warning.
    low_reserve_threshold: float = 20.0
    default_resources: dict[str, float] = field(default_factory=lambda: {
        "treasury": 100.0,
        "manpower": 50.0,
        "food": 100.0,
        "iron": 30.0,
        "coal": 20.0,
        "textiles": 40.0,
        "luxuries": 10.0,
    })

    # === Production formulas ===
    # resource -> {"base": float, "modifiers": [(source, stat, weight, floor)]}
    # stat is a NationStats field; floor=True applies math.floor to stat*weight.
    production_formulas: dict[str, dict[str, Any]] = field(default_factory=lambda: {
        "treasury": {"base": 10.0, "modifiers": [
            ("Economy", "economy", 5.0, False),
            ("Trade", "territory_count", 2.0, False),
            ("Innovation", "innovation", 2.0, True),
        ]},
        "manpower": {"base": 5.0, "modifiers": [
            ("Stability", "stability", 2.0, True),
            ("Territories", "territory_count", 3.0, False),
        ]},
        "food": {"base": 20.0, "modifiers": [
            ("Territories", "territory_count", 5.0, False),
            ("Economy", "economy", 3.0, True),
        ]},
        "iron": {"base": 5.0, "modifiers": [
            ("Territories", "territory_count", 1.0, False),
            ("Innovation", "innovation", 1.0, True),
        ]},
        "coal": {"base": 5.0, "modifiers": [
            ("Innovation", "innovation", 2.0, True),
            ("Territories", "territory_count", 1.0, False),
        ]},
        "textiles": {"base": 10.0, "modifiers": [
            ("Economy", "economy", 2.0, True),
            ("Territories", "territory_count", 1.0, False),
        ]},
        "luxuries": {"base": 2.0, "modifiers": [
            ("Prestige", "prestige", 1.0, True),
            ("Economy", "economy", 1.0, True),
        ]},
    })

    # === Consumption formulas ===
    # resource -> per-category coefficients:
    #   military   = army_size * army
    #   court      = court_size * court + court_flat
    #   population = population (flat upkeep)
    # floor=True rounds the military and court terms down.
    consumption_formulas: dict[str, dict[str, Any]] = field(default_factory=lambda: {
        "treasury": {"army": 2.0, "court": 3.0, "court_flat": 0.0, "population": 5.0, "floor": False},
        "manpower": {"army": 0.5, "court": 0.0, "court_flat": 0.0, "population": 0.0, "floor": True},
        "food": {"army": 2.0, "court": 1.0, "court_flat": 0.0, "population": 10.0, "floor": False},
        "iron": {"army": 0.3, "court": 0.0, "court_flat": 0.0, "population": 1.0, "floor": True},
        "coal": {"army": 0.2, "court": 0.0, "court_flat": 1.0, "population": 2.0, "floor": True},
        "textiles": {"army": 0.1, "court": 1.0, "court_flat": 0.0, "population": 3.0, "floor": True},
        "luxuries": {"army": 0.0, "court": 0.5, "court_flat": 0.0, "population": 1.0, "floor": True},
    })

    # === Market ===
    base_prices: dict[str, float] = field(default_factory=lambda: {
        "treasury": 1.0,
        "manpower": 5.0,
        "food": 2.0,
        "iron": 8.0,
        "coal": 6.0,
        "textiles": 4.0,
        "luxuries": 15.0,
    })

    # === Trade ===
    default_merchant_count: int = 2
    default_steering_bonus: float = 0.0
    # Percent of a collected share that reaches the treasury.
    default_trade_efficiency: float = 100.0
    # Trade power per province, merchant, trade building and light ship.
    trade_power_weights: dict[str, float] = field(default_factory=lambda: {
        "provinces": 2.0,
        "merchants": 10.0,
        "buildings": 5.0,
        "light_ships": 2.0,
    })
    route_control_limit: int = 5
    # Label prefix for treasury production sources created from trade income.
    trade_income_label: str = "Trade"

    def __post_init__(self) -> None:
        from mercator.core.resources import RESOURCE_TYPES

        for name in ("production_formulas", "consumption_formulas", "base_prices"):
            missing = [r for r in RESOURCE_TYPES if r not in getattr(self, name)]
            if missing:
                raise ValueError(f"{name} is missing resources: {', '.join(missing)}")
        missing = [k for k in ("provinces", "merchants", "buildings", "light_ships")
                   if k not in self.trade_power_weights]
        if missing:
            raise ValueError(f"trade_power_weights is missing: {', '.join(missing)}")
        if self.default_trade_efficiency < 0:
            raise ValueError(
                f"default_trade_efficiency must be non-negative, got {self.default_trade_efficiency}"
            )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: dict[str, Any] = {}
        for k, v in self.__dict__.items():
            if k.startswith("_"):
                continue
            d[k] = v
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> EconomyConfig:
        """Deserialize from a dict."""
        return cls(**{k: v for k, v in d.items() if not k.startswith("_")})

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, s: str) -> EconomyConfig:
        return cls.from_dict(json.loads(s))

    def diff(self, other: EconomyConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs
