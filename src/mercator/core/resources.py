"""
Resource Ledger: per-nation stocks of seven resources.

Production and consumption are pure functions of the nation's stat
context. ``apply_turn`` folds one turn of net change into the reserves,
clamping at zero and reporting depletion warnings. Shortages are never
errors: they surface as warnings here and as stat penalties through
``get_resource_effects``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum

from mercator.core.config import EconomyConfig
from mercator.core.effects import EffectKind, StatDeltas

logger = logging.getLogger(__name__)


class Resource(Enum):
    """The seven stockpiled resources, in display order."""
    TREASURY = "treasury"
    MANPOWER = "manpower"
    FOOD = "food"
    IRON = "iron"
    COAL = "coal"
    TEXTILES = "textiles"
    LUXURIES = "luxuries"


RESOURCE_TYPES = [r.value for r in Resource]

RESOURCE_DESCRIPTIONS: dict[str, str] = {
    "treasury": "Gold for expenses and investments",
    "manpower": "Available population for military and labor",
    "food": "Agricultural output to sustain population",
    "iron": "Metal for weapons and tools",
    "coal": "Fuel for industry and innovation",
    "textiles": "Cloth for trade and uniforms",
    "luxuries": "Fine goods for prestige and diplomacy",
}


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class NationStats:
    """Stat and size context supplied by the surrounding game."""
    economy: float = 0.0
    stability: float = 0.0
    military: float = 0.0
    innovation: float = 0.0
    prestige: float = 0.0
    territory_count: int = 0
    army_size: int = 0
    court_size: int = 0


@dataclass
class ResourceProduction:
    """Per-turn production of one resource with labelled sources."""
    base: float
    modifiers: list[tuple[str, float]] = field(default_factory=list)

    @property
    def total(self) -> float:
        return self.base + sum(amount for _, amount in self.modifiers)


@dataclass
class ResourceConsumption:
    """Per-turn upkeep of one resource split by category."""
    military: float = 0.0
    court: float = 0.0
    population: float = 0.0

    @property
    def total(self) -> float:
        return self.military + self.court + self.population


@dataclass
class ResourceBalance:
    """Display projection of one resource after a turn."""
    resource: str
    production: float
    consumption: float
    net: float
    reserves: float
    turns_until_depletion: int | None = None

    def to_dict(self) -> dict[str, float | int | str]:
        d = {
            "resource": self.resource,
            "production": self.production,
            "consumption": self.consumption,
            "net": self.net,
            "reserves": self.reserves,
        }
        if self.turns_until_depletion is not None:
            d["turns_until_depletion"] = self.turns_until_depletion
        return d


@dataclass
class TurnOutcome:
    """Result of ``apply_turn``: new reserves plus informational warnings."""
    new_resources: dict[str, float]
    warnings: list[str] = field(default_factory=list)


Production = dict[str, ResourceProduction]
Consumption = dict[str, ResourceConsumption]


def default_resources(config: EconomyConfig | None = None) -> dict[str, float]:
    """Starting reserves for a new nation."""
    config = _config(config)
    return {r: float(config.default_resources.get(r, 0.0)) for r in RESOURCE_TYPES}


def _config(config: EconomyConfig | None) -> EconomyConfig:
    return config if config is not None else EconomyConfig()


# ---------------------------------------------------------------------------
# Production / consumption
# ---------------------------------------------------------------------------

def compute_production(
    stats: NationStats, config: EconomyConfig | None = None,
) -> Production:
    """Base production of every resource from the nation's stats.

    Trade income is not included; the integration layer adds it as an
    extra treasury source.
    """
    formulas = _config(config).production_formulas
    production: Production = {}
    for rtype in RESOURCE_TYPES:
        formula = formulas[rtype]
        modifiers: list[tuple[str, float]] = []
        for label, stat, weight, floor in formula["modifiers"]:
            amount = float(getattr(stats, stat)) * weight
            if floor:
                amount = float(math.floor(amount))
            modifiers.append((label, amount))
        production[rtype] = ResourceProduction(
            base=float(formula["base"]), modifiers=modifiers,
        )
    return production


def compute_consumption(
    stats: NationStats, config: EconomyConfig | None = None,
) -> Consumption:
    """Upkeep of every resource from army, court and population."""
    formulas = _config(config).consumption_formulas
    consumption: Consumption = {}
    for rtype in RESOURCE_TYPES:
        f = formulas[rtype]
        military = stats.army_size * f["army"]
        court = stats.court_size * f["court"]
        if f.get("floor", False):
            military = math.floor(military)
            court = math.floor(court)
        consumption[rtype] = ResourceConsumption(
            military=float(military),
            court=float(court) + f.get("court_flat", 0.0),
            population=float(f["population"]),
        )
    return consumption


def add_production_source(
    production: Production, resource: str, source: str, amount: float,
) -> Production:
    """Return a copy of *production* with one more labelled source."""
    Resource(resource)
    updated = dict(production)
    current = updated[resource]
    updated[resource] = replace(
        current, modifiers=[*current.modifiers, (source, float(amount))],
    )
    return updated


# ---------------------------------------------------------------------------
# Turn application
# ---------------------------------------------------------------------------

def apply_turn(
    resources: dict[str, float],
    production: Production,
    consumption: Consumption,
    config: EconomyConfig | None = None,
) -> TurnOutcome:
    """Apply one turn of net production to the reserves.

    Never raises on shortages: a reserve that would go negative is
    clamped to zero and reported as depleted.
    """
    threshold = _config(config).low_reserve_threshold
    new_resources = dict(resources)
    warnings: list[str] = []

    for rtype in RESOURCE_TYPES:
        prod = production[rtype].total if rtype in production else 0.0
        cons = consumption[rtype].total if rtype in consumption else 0.0
        net = prod - cons
        before = resources.get(rtype, 0.0)
        after = max(0.0, before + net)
        new_resources[rtype] = after

        if after <= 0 and before > 0:
            warnings.append(f"{rtype} depleted")
        elif after < threshold and net < 0:
            warnings.append(f"{rtype} reserves low")

    if warnings:
        logger.debug("Resource warnings: %s", ", ".join(warnings))
    return TurnOutcome(new_resources=new_resources, warnings=warnings)


def get_resource_balance(
    resources: dict[str, float],
    production: Production,
    consumption: Consumption,
) -> list[ResourceBalance]:
    """Per-resource production, consumption, net and depletion forecast."""
    balances: list[ResourceBalance] = []
    for rtype in RESOURCE_TYPES:
        prod = production[rtype].total
        cons = consumption[rtype].total
        net = prod - cons
        reserves = resources.get(rtype, 0.0)
        balance = ResourceBalance(
            resource=rtype,
            production=prod,
            consumption=cons,
            net=net,
            reserves=reserves,
        )
        if net < 0 and reserves > 0:
            balance.turns_until_depletion = math.ceil(reserves / abs(net))
        balances.append(balance)
    return balances


# ---------------------------------------------------------------------------
# Shortage effects
# ---------------------------------------------------------------------------

def get_resource_effects(resources: dict[str, float]) -> StatDeltas:
    """Stat penalties for every exhausted resource.

    Re-evaluated every turn from the current reserves; a penalty lasts
    exactly as long as the shortage.
    """
    effects = StatDeltas()

    if resources.get("treasury", 0.0) <= 0:
        effects.set(EffectKind.ECONOMY, -1.0)
        effects.set(EffectKind.STABILITY, -0.5)

    if resources.get("manpower", 0.0) <= 0:
        effects.set(EffectKind.MILITARY, -1.0)

    # Famine replaces the bankruptcy stability hit and the manpower penalty.
    if resources.get("food", 0.0) <= 0:
        effects.set(EffectKind.STABILITY, -2.0)
        effects.set(EffectKind.MILITARY, -0.5)

    if resources.get("iron", 0.0) <= 0:
        effects.add(EffectKind.MILITARY, -0.5)

    if resources.get("coal", 0.0) <= 0:
        effects.set(EffectKind.INNOVATION, -0.5)

    if resources.get("luxuries", 0.0) <= 0:
        effects.set(EffectKind.PRESTIGE, -0.5)

    return effects


def calculate_trade_value(
    resource: str,
    amount: float,
    market_prices: dict[str, float] | None = None,
    config: EconomyConfig | None = None,
) -> float:
    """Treasury value of *amount* units of *resource* at market price."""
    Resource(resource)
    if market_prices and resource in market_prices:
        price = market_prices[resource]
    else:
        price = _config(config).base_prices[resource]
    return amount * price
