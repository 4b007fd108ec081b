"""
Tests for the resource ledger: production, consumption, turn application,
depletion forecasts and shortage effects.
"""

from __future__ import annotations

import numpy as np
import pytest

from mercator.core.config import EconomyConfig
from mercator.core.effects import EffectKind, StatDeltas
from mercator.core.resources import (
    RESOURCE_TYPES,
    NationStats,
    ResourceConsumption,
    ResourceProduction,
    add_production_source,
    apply_turn,
    calculate_trade_value,
    compute_consumption,
    compute_production,
    default_resources,
    get_resource_balance,
    get_resource_effects,
)


def _flat_production(**totals) -> dict[str, ResourceProduction]:
    return {r: ResourceProduction(base=float(totals.get(r, 0.0))) for r in RESOURCE_TYPES}


def _flat_consumption(**totals) -> dict[str, ResourceConsumption]:
    return {
        r: ResourceConsumption(population=float(totals.get(r, 0.0)))
        for r in RESOURCE_TYPES
    }


def _reserves(**overrides) -> dict[str, float]:
    res = {r: 100.0 for r in RESOURCE_TYPES}
    res.update({k: float(v) for k, v in overrides.items()})
    return res


# =====================================================================
# Production / consumption
# =====================================================================
class TestProduction:
    def test_formulas(self):
        stats = NationStats(
            economy=3, stability=2.5, innovation=1.5, prestige=2.7,
            territory_count=4,
        )
        prod = compute_production(stats)
        assert prod["treasury"].total == 36.0
        assert prod["manpower"].total == 22.0
        assert prod["food"].total == 49.0
        assert prod["iron"].total == 10.0
        assert prod["coal"].total == 12.0
        assert prod["textiles"].total == 20.0
        assert prod["luxuries"].total == 7.0

    def test_modifiers_are_labelled(self):
        prod = compute_production(NationStats(economy=1, territory_count=2))
        labels = [label for label, _ in prod["treasury"].modifiers]
        assert labels == ["Economy", "Trade", "Innovation"]
        assert prod["treasury"].base == 10.0

    def test_zero_stats_give_base_only(self):
        prod = compute_production(NationStats())
        assert prod["food"].total == 20.0
        assert prod["luxuries"].total == 2.0

    def test_custom_formula_from_config(self):
        config = EconomyConfig()
        config.production_formulas["iron"] = {"base": 50.0, "modifiers": []}
        prod = compute_production(NationStats(territory_count=10), config)
        assert prod["iron"].total == 50.0

    def test_add_production_source_returns_copy(self):
        prod = compute_production(NationStats())
        updated = add_production_source(prod, "treasury", "Trade: Genoa", 12.5)
        assert updated["treasury"].total == prod["treasury"].total + 12.5
        assert ("Trade: Genoa", 12.5) in updated["treasury"].modifiers
        assert ("Trade: Genoa", 12.5) not in prod["treasury"].modifiers

    def test_add_production_source_unknown_resource(self):
        prod = compute_production(NationStats())
        with pytest.raises(ValueError):
            add_production_source(prod, "spice", "Trade", 1.0)


class TestConsumption:
    def test_formulas(self):
        cons = compute_consumption(NationStats(army_size=7, court_size=2))
        assert cons["treasury"].total == 25.0
        assert cons["manpower"].total == 3.0
        assert cons["food"].total == 26.0
        assert cons["iron"].total == 3.0
        assert cons["coal"].total == 4.0
        assert cons["textiles"].total == 5.0
        assert cons["luxuries"].total == 2.0

    def test_categories(self):
        cons = compute_consumption(NationStats(army_size=7, court_size=2))
        assert cons["treasury"].military == 14.0
        assert cons["treasury"].court == 6.0
        assert cons["treasury"].population == 5.0

    def test_peacetime_upkeep(self):
        cons = compute_consumption(NationStats())
        assert cons["food"].total == 10.0
        assert cons["manpower"].total == 0.0


# =====================================================================
# apply_turn
# =====================================================================
class TestApplyTurn:
    def test_net_applied(self):
        outcome = apply_turn(
            _reserves(), _flat_production(food=30), _flat_consumption(food=10),
        )
        assert outcome.new_resources["food"] == 120.0
        assert outcome.new_resources["iron"] == 100.0
        assert outcome.warnings == []

    def test_input_not_mutated(self):
        reserves = _reserves()
        apply_turn(reserves, _flat_production(), _flat_consumption(food=50))
        assert reserves["food"] == 100.0

    def test_clamps_to_zero_and_warns_depleted(self):
        outcome = apply_turn(
            _reserves(coal=5), _flat_production(), _flat_consumption(coal=12),
        )
        assert outcome.new_resources["coal"] == 0.0
        assert "coal depleted" in outcome.warnings

    def test_already_empty_is_not_depleted_again(self):
        outcome = apply_turn(
            _reserves(coal=0), _flat_production(), _flat_consumption(coal=3),
        )
        assert outcome.new_resources["coal"] == 0.0
        assert "coal depleted" not in outcome.warnings
        assert "coal reserves low" in outcome.warnings

    def test_low_reserves_warning(self):
        outcome = apply_turn(
            _reserves(iron=25), _flat_production(), _flat_consumption(iron=10),
        )
        assert outcome.new_resources["iron"] == 15.0
        assert outcome.warnings == ["iron reserves low"]

    def test_low_but_growing_is_silent(self):
        outcome = apply_turn(
            _reserves(iron=5), _flat_production(iron=3), _flat_consumption(),
        )
        assert outcome.warnings == []

    def test_threshold_from_config(self):
        config = EconomyConfig(low_reserve_threshold=60.0)
        outcome = apply_turn(
            _reserves(food=70), _flat_production(), _flat_consumption(food=15),
            config,
        )
        assert outcome.warnings == ["food reserves low"]

    def test_never_negative(self):
        rng = np.random.default_rng(42)
        for _ in range(200):
            reserves = {r: float(rng.uniform(0, 50)) for r in RESOURCE_TYPES}
            prod = _flat_production(**{r: rng.uniform(0, 30) for r in RESOURCE_TYPES})
            cons = _flat_consumption(**{r: rng.uniform(0, 120) for r in RESOURCE_TYPES})
            outcome = apply_turn(reserves, prod, cons)
            assert all(v >= 0 for v in outcome.new_resources.values())

    def test_missing_entries_do_not_raise(self):
        outcome = apply_turn(_reserves(), {}, {})
        assert outcome.new_resources == _reserves()


# =====================================================================
# Balances
# =====================================================================
class TestResourceBalance:
    def test_turns_until_depletion(self):
        balances = get_resource_balance(
            _reserves(treasury=50), _flat_production(), _flat_consumption(treasury=10),
        )
        treasury = next(b for b in balances if b.resource == "treasury")
        assert treasury.net == -10.0
        assert treasury.turns_until_depletion == 5

    def test_depletion_rounds_up(self):
        balances = get_resource_balance(
            _reserves(food=51), _flat_production(), _flat_consumption(food=10),
        )
        food = next(b for b in balances if b.resource == "food")
        assert food.turns_until_depletion == 6

    def test_absent_when_net_non_negative(self):
        balances = get_resource_balance(
            _reserves(), _flat_production(iron=5), _flat_consumption(iron=5),
        )
        iron = next(b for b in balances if b.resource == "iron")
        assert iron.turns_until_depletion is None
        assert "turns_until_depletion" not in iron.to_dict()

    def test_absent_when_reserves_empty(self):
        balances = get_resource_balance(
            _reserves(coal=0), _flat_production(), _flat_consumption(coal=4),
        )
        coal = next(b for b in balances if b.resource == "coal")
        assert coal.turns_until_depletion is None

    def test_one_balance_per_resource_in_order(self):
        balances = get_resource_balance(
            _reserves(), _flat_production(), _flat_consumption(),
        )
        assert [b.resource for b in balances] == RESOURCE_TYPES


# =====================================================================
# Shortage effects
# =====================================================================
class TestResourceEffects:
    def test_no_shortage_no_effects(self):
        assert len(get_resource_effects(_reserves())) == 0

    def test_empty_treasury(self):
        effects = get_resource_effects(_reserves(treasury=0))
        assert effects[EffectKind.ECONOMY] == -1.0
        assert effects[EffectKind.STABILITY] == -0.5

    def test_treasury_depleted_by_turn_then_penalized(self):
        outcome = apply_turn(
            _reserves(treasury=8), _flat_production(), _flat_consumption(treasury=20),
        )
        effects = get_resource_effects(outcome.new_resources)
        assert effects == {"economy": -1.0, "stability": -0.5}

    def test_manpower(self):
        effects = get_resource_effects(_reserves(manpower=0))
        assert effects.as_dict() == {"military": -1.0}

    def test_famine(self):
        effects = get_resource_effects(_reserves(food=0))
        assert effects["stability"] == -2.0
        assert effects["military"] == -0.5

    def test_iron_adds_to_famine_penalty(self):
        effects = get_resource_effects(_reserves(food=0, iron=0))
        assert effects["military"] == pytest.approx(-1.0)

    def test_iron_alone(self):
        effects = get_resource_effects(_reserves(iron=0))
        assert effects.as_dict() == {"military": -0.5}

    def test_coal_and_luxuries(self):
        effects = get_resource_effects(_reserves(coal=0, luxuries=0))
        assert effects["innovation"] == -0.5
        assert effects["prestige"] == -0.5

    def test_recovery_clears_penalty(self):
        assert EffectKind.ECONOMY in get_resource_effects(_reserves(treasury=0))
        assert EffectKind.ECONOMY not in get_resource_effects(_reserves(treasury=1))


class TestStatDeltas:
    def test_unknown_kind_rejected(self):
        deltas = StatDeltas()
        with pytest.raises(ValueError):
            deltas.set("charisma", 1.0)

    def test_add_accumulates(self):
        deltas = StatDeltas({"military": -1.0})
        deltas.add(EffectKind.MILITARY, -0.5)
        assert deltas["military"] == -1.5

    def test_missing_reads_zero(self):
        assert StatDeltas()[EffectKind.PRESTIGE] == 0.0


# =====================================================================
# Misc
# =====================================================================
class TestTradeValue:
    def test_base_price(self):
        assert calculate_trade_value("iron", 10) == 80.0

    def test_market_price_override(self):
        assert calculate_trade_value("iron", 10, {"iron": 2.0}) == 20.0

    def test_unknown_resource(self):
        with pytest.raises(ValueError):
            calculate_trade_value("spice", 1)


class TestDefaultResources:
    def test_defaults(self):
        res = default_resources()
        assert res["treasury"] == 100.0
        assert res["manpower"] == 50.0
        assert set(res) == set(RESOURCE_TYPES)
