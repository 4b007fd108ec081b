"""
Economic Integration Layer.

The only bridge between the trade subsystem and the resource ledger:
collected trade income becomes labelled treasury production. It runs
after every node has been steered and before ``apply_turn``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from mercator.core.resources import Production, add_production_source
from mercator.trade.merchants import SteeringResult


@dataclass
class TradeIncome:
    """A nation's realized trade income for one turn."""
    nation_id: str
    total: float = 0.0
    by_node: dict[str, float] = field(default_factory=dict)


def integrate_trade_income(
    nation_id: str, collected: dict[str, float],
) -> TradeIncome:
    """Sum a nation's collected value across every node of the turn.

    *collected* maps node id to the value the nation collected there.
    """
    income = TradeIncome(nation_id=nation_id)
    for node_id, value in collected.items():
        if value <= 0:
            continue
        income.by_node[node_id] = income.by_node.get(node_id, 0.0) + value
        income.total += value
    return income


def collected_by_nation(
    results: Iterable[SteeringResult],
) -> dict[str, dict[str, float]]:
    """Regroup per-node steering results as nation -> node -> value."""
    grouped: dict[str, dict[str, float]] = {}
    for result in results:
        for nation_id, value in result.collected.items():
            grouped.setdefault(nation_id, {})[result.node_id] = value
    return grouped


def apply_trade_income(
    production: Production,
    income: TradeIncome,
    node_names: dict[str, str] | None = None,
    label: str = "Trade",
) -> Production:
    """Add one treasury source per node the income was collected at."""
    node_names = node_names or {}
    for node_id, value in income.by_node.items():
        name = node_names.get(node_id, node_id)
        production = add_production_source(
            production, "treasury", f"{label}: {name}", value,
        )
    return production
