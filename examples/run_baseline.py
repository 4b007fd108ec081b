#!/usr/bin/env python3
"""Run a baseline Mercator economy on the default world and print results."""

from mercator.core.config import EconomyConfig
from mercator.core.engine import EconomyEngine
from mercator.core.resources import NationStats
from mercator.metrics.collector import MetricsCollector
from mercator.trade.catalog import load_default_nodes
from mercator.trade.graph import TradeNodeGraph

LOCAL_VALUES = {
    "hormuz": 12.0,
    "aden": 10.0,
    "alexandria": 14.0,
    "constantinople": 18.0,
    "venice": 16.0,
    "genoa": 12.0,
    "valencia": 8.0,
    "seville": 11.0,
    "caribbean": 9.0,
    "mexico": 7.0,
}


def main():
    config = EconomyConfig(scenario_name="baseline")
    engine = EconomyEngine(config, graph=TradeNodeGraph(load_default_nodes(LOCAL_VALUES)))
    collector = MetricsCollector()

    engine.add_nation("VEN", "Venice", NationStats(economy=3, territory_count=3, court_size=2),
                      steering_bonus=0.1)
    engine.add_nation("GEN", "Genoa", NationStats(economy=2, territory_count=2, court_size=1))
    engine.add_nation("TUR", "Ottomans", NationStats(economy=2, territory_count=8, army_size=12),
                      merchant_count=3)

    reg = engine.registry
    reg.set_trade_power("VEN", "alexandria", 30)
    reg.set_trade_power("VEN", "venice", 60)
    reg.set_trade_power("TUR", "alexandria", 45)
    reg.set_trade_power("TUR", "constantinople", 80)
    reg.set_trade_power("TUR", "aden", 20)
    reg.set_trade_power("GEN", "genoa", 50)
    reg.set_trade_power("GEN", "valencia", 25)
    reg.set_trade_power("VEN", "genoa", 20)

    reg.assign_merchant("VEN", "alexandria", "transfer")
    reg.assign_merchant("VEN", "venice", "collect")
    reg.assign_merchant("TUR", "constantinople", "transfer")
    reg.assign_merchant("TUR", "alexandria", "collect")
    reg.assign_merchant("TUR", "aden", "collect")
    reg.assign_merchant("GEN", "valencia", "transfer", "genoa")
    reg.assign_merchant("GEN", "genoa", "collect")

    turns = 10
    print(f"=== Mercator: {config.scenario_name} ===")
    print(f"Trade nodes: {len(engine.graph)}")
    print(f"Nations: {', '.join(n.name for n in engine.nations.values())}")
    print(f"Turns: {turns}")
    print()

    print(f"{'Turn':>4} {'EndVal':>7} {'Coll':>7} {'Xfer':>7} {'Lost':>7} "
          f"{'VEN':>8} {'GEN':>8} {'TUR':>8} {'Gini':>6} {'Warn':>4}")
    print("-" * 76)

    for _ in range(turns):
        m = collector.collect(engine.run_turn())
        t = m.treasury_by_nation
        print(
            f"{m.turn:4d} {m.total_trade_value:7.1f} {m.total_collected:7.1f} "
            f"{m.total_transferred:7.1f} {m.total_unclaimed:7.1f} "
            f"{t['VEN']:8.1f} {t['GEN']:8.1f} {t['TUR']:8.1f} "
            f"{m.treasury_gini:6.3f} {m.warning_count:4d}"
        )

    report = engine.last_report
    print()
    print(f"=== Final State (Turn {report.turn}) ===")
    for nid, nr in report.nations.items():
        name = engine.nations[nid].name
        print(f"\n{name}: trade income {nr.trade_income.total:.1f}")
        for node_id, value in sorted(nr.trade_income.by_node.items()):
            print(f"  {engine.graph.get(node_id).name:16s}: {value:7.1f}")
        if nr.warnings:
            print(f"  Warnings: {', '.join(nr.warnings)}")
        if len(nr.effects):
            print(f"  Effects: {nr.effects.as_dict()}")

    # Route control at the busiest end node
    busiest = max(
        (n for n in report.nodes.values() if n.is_end_node),
        key=lambda n: n.total_value,
    )
    print(f"\nRoute control at {engine.graph.get(busiest.node_id).name}:")
    for entry in engine.node_view(busiest.node_id)["route_control"]:
        print(f"  {entry['nation_id']:4s}: {entry['share_percent']:5.1f}%")


if __name__ == "__main__":
    main()
