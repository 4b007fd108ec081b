"""Tests for EconomyConfig."""

import pytest

from mercator.core.config import EconomyConfig
from mercator.core.resources import RESOURCE_TYPES


class TestConfigDefaults:
    def test_default_scenario_name(self):
        c = EconomyConfig()
        assert c.scenario_name == "default"

    def test_default_low_reserve_threshold(self):
        c = EconomyConfig()
        assert c.low_reserve_threshold == 20.0

    def test_default_resources_cover_all_types(self):
        c = EconomyConfig()
        assert set(c.default_resources) == set(RESOURCE_TYPES)
        assert c.default_resources["treasury"] == 100.0
        assert c.default_resources["luxuries"] == 10.0

    def test_formulas_cover_all_types(self):
        c = EconomyConfig()
        assert set(c.production_formulas) == set(RESOURCE_TYPES)
        assert set(c.consumption_formulas) == set(RESOURCE_TYPES)
        assert set(c.base_prices) == set(RESOURCE_TYPES)

    def test_default_steering_bonus_is_zero(self):
        assert EconomyConfig().default_steering_bonus == 0.0


class TestSerialization:
    def test_to_dict_roundtrip(self):
        c = EconomyConfig(scenario_name="test", low_reserve_threshold=35.0)
        c2 = EconomyConfig.from_dict(c.to_dict())
        assert c2.scenario_name == "test"
        assert c2.low_reserve_threshold == 35.0

    def test_to_json_roundtrip(self):
        c = EconomyConfig(scenario_name="json_test", default_merchant_count=4)
        c2 = EconomyConfig.from_json(c.to_json())
        assert c2.scenario_name == "json_test"
        assert c2.default_merchant_count == 4

    def test_json_roundtrip_keeps_formulas_usable(self):
        from mercator.core.resources import NationStats, compute_production

        c = EconomyConfig.from_json(EconomyConfig().to_json())
        production = compute_production(NationStats(economy=2), c)
        assert production["treasury"].total == 20.0

    def test_diff(self):
        c1 = EconomyConfig()
        c2 = EconomyConfig(low_reserve_threshold=5.0, route_control_limit=3)
        diffs = c1.diff(c2)
        assert diffs["low_reserve_threshold"] == (20.0, 5.0)
        assert diffs["route_control_limit"] == (5, 3)
        assert "scenario_name" not in diffs

    def test_no_random_seed(self):
        assert "random_seed" not in EconomyConfig().to_dict()


class TestValidation:
    def test_partial_production_formulas(self):
        with pytest.raises(ValueError, match="production_formulas"):
            EconomyConfig(production_formulas={
                "treasury": {"base": 10, "modifiers": []},
            })

    def test_partial_consumption_formulas_from_dict(self):
        d = EconomyConfig().to_dict()
        del d["consumption_formulas"]["food"]
        with pytest.raises(ValueError, match="food"):
            EconomyConfig.from_dict(d)

    def test_partial_base_prices(self):
        with pytest.raises(ValueError, match="base_prices"):
            EconomyConfig(base_prices={"treasury": 1.0})

    def test_extra_resources_allowed(self):
        prices = dict(EconomyConfig().base_prices, spices=9.0)
        assert EconomyConfig(base_prices=prices).base_prices["spices"] == 9.0

    def test_incomplete_trade_power_weights(self):
        with pytest.raises(ValueError, match="light_ships"):
            EconomyConfig(trade_power_weights={"provinces": 1.0, "merchants": 1.0, "buildings": 1.0})

    def test_negative_default_efficiency(self):
        with pytest.raises(ValueError):
            EconomyConfig(default_trade_efficiency=-5.0)
