"""
Turn engine for the economy core.

Runs one turn in four phases:
1. Walk trade nodes in topological order, resolving shares and merchant
   actions at each node before its downstream neighbours are read
2. Integrate every nation's collected income into treasury production
3. Apply production and consumption to each nation's reserves
4. Evaluate shortage effects and build display projections
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from mercator.core.config import EconomyConfig
from mercator.core.effects import StatDeltas
from mercator.core.errors import CycleDetected, InvalidSteering
from mercator.core.integration import (
    TradeIncome,
    apply_trade_income,
    collected_by_nation,
    integrate_trade_income,
)
from mercator.core.resources import (
    NationStats,
    ResourceBalance,
    apply_turn,
    compute_consumption,
    compute_production,
    default_resources,
    get_resource_balance,
    get_resource_effects,
)
from mercator.trade.catalog import load_default_nodes
from mercator.trade.graph import TradeNodeGraph
from mercator.trade.merchants import MerchantRegistry, SteeringResult, resolve_merchant_actions
from mercator.trade.shares import NodeShare, compute_shares, get_route_control

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State and reports
# ---------------------------------------------------------------------------

@dataclass
class NationState:
    """Everything the core tracks for one nation."""
    id: str
    name: str
    resources: dict[str, float]
    stats: NationStats = field(default_factory=NationStats)
    steering_bonus: float = 0.0
    trade_efficiency: float = 100.0  # percent of collected shares kept


@dataclass
class NodeReport:
    """What happened at one trade node this turn."""
    node_id: str
    is_end_node: bool
    total_value: float
    inbound: float
    shares: list[NodeShare]
    steering: SteeringResult


@dataclass
class NationReport:
    """Ledger outcome for one nation this turn."""
    nation_id: str
    trade_income: TradeIncome
    balances: list[ResourceBalance]
    warnings: list[str]
    effects: StatDeltas
    resources: dict[str, float]


@dataclass
class TurnReport:
    """Full result of one ``run_turn`` call."""
    turn: int
    nodes: dict[str, NodeReport] = field(default_factory=dict)
    nations: dict[str, NationReport] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class EconomyEngine:
    """
    Per-turn economic simulation over a trade graph and nation ledgers.

    The graph and registry are injected so tests can run on synthetic
    topologies; by default the built-in world topology is loaded.
    """

    def __init__(
        self,
        config: EconomyConfig | None = None,
        graph: TradeNodeGraph | None = None,
        registry: MerchantRegistry | None = None,
    ):
        self.config = config or EconomyConfig()
        self.graph = graph if graph is not None else TradeNodeGraph(load_default_nodes())
        self.registry = registry if registry is not None else MerchantRegistry(
            self.graph, default_merchant_count=self.config.default_merchant_count,
        )
        self.nations: dict[str, NationState] = {}
        self.turn = 0
        self.history: list[TurnReport] = []

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def add_nation(
        self,
        nation_id: str,
        name: str | None = None,
        stats: NationStats | None = None,
        resources: dict[str, float] | None = None,
        merchant_count: int | None = None,
        steering_bonus: float | None = None,
        trade_efficiency: float | None = None,
    ) -> NationState:
        """Register a nation with starting reserves and merchant pool."""
        if nation_id in self.nations:
            raise ValueError(f"Nation '{nation_id}' already exists")
        if trade_efficiency is None:
            trade_efficiency = self.config.default_trade_efficiency
        if trade_efficiency < 0:
            raise ValueError(f"Trade efficiency must be non-negative, got {trade_efficiency}")
        # Validates against merchants already placed under the registry default.
        self.registry.set_merchant_count(
            nation_id,
            self.config.default_merchant_count if merchant_count is None else merchant_count,
        )
        start = default_resources(self.config)
        if resources:
            start.update({k: float(v) for k, v in resources.items()})
        nation = NationState(
            id=nation_id,
            name=name or nation_id,
            resources=start,
            stats=stats or NationStats(),
            steering_bonus=(
                self.config.default_steering_bonus
                if steering_bonus is None else steering_bonus
            ),
            trade_efficiency=trade_efficiency,
        )
        self.nations[nation_id] = nation
        return nation

    def get_nation(self, nation_id: str) -> NationState:
        try:
            return self.nations[nation_id]
        except KeyError:
            raise KeyError(f"Nation '{nation_id}' not found") from None

    # ------------------------------------------------------------------
    # Turn
    # ------------------------------------------------------------------
    def run_turn(self) -> TurnReport:
        """Advance the economy by one turn.

        Topology and steering are validated before anything is mutated,
        so ``CycleDetected`` or ``InvalidSteering`` leave every node and
        ledger untouched.
        """
        try:
            self.graph.order  # raises CycleDetected
            self.registry.validate()
        except (CycleDetected, InvalidSteering) as exc:
            logger.warning("Turn %d rejected: %s", self.turn, exc)
            raise

        report = TurnReport(turn=self.turn)
        bonuses = {nid: n.steering_bonus for nid, n in self.nations.items()}
        efficiency = {nid: n.trade_efficiency for nid, n in self.nations.items()}

        # Phase 1: trade propagation, interleaved with steering
        with self.registry.frozen():
            self.graph.reset_turn()
            pending: dict[str, float] = {}
            for node in self.graph.walk(pending):
                presences = self.registry.presences_at(node.id)
                shares = compute_shares(node, presences)
                steering = resolve_merchant_actions(
                    node, shares, presences, bonuses,
                    self.config.default_steering_bonus,
                    efficiency, self.config.default_trade_efficiency,
                )
                for target, value in steering.transferred.items():
                    pending[target] = pending.get(target, 0.0) + value
                report.nodes[node.id] = NodeReport(
                    node_id=node.id,
                    is_end_node=node.is_end_node,
                    total_value=node.total_value,
                    inbound=self.graph.downstream_value(node.id),
                    shares=shares,
                    steering=steering,
                )

        # Phase 2: integration
        grouped = collected_by_nation(r.steering for r in report.nodes.values())
        for nation_id in grouped:
            if nation_id not in self.nations:
                logger.warning(
                    "Trade income collected by unknown nation %s is discarded",
                    nation_id,
                )
        node_names = {n.id: n.name for n in self.graph.nodes}

        # Phases 3-4: ledgers
        for nation in self.nations.values():
            income = integrate_trade_income(nation.id, grouped.get(nation.id, {}))
            production = compute_production(nation.stats, self.config)
            production = apply_trade_income(
                production, income, node_names, self.config.trade_income_label,
            )
            consumption = compute_consumption(nation.stats, self.config)
            outcome = apply_turn(nation.resources, production, consumption, self.config)
            nation.resources = outcome.new_resources
            for warning in outcome.warnings:
                if warning.endswith("depleted"):
                    logger.warning("%s: %s", nation.id, warning)
                else:
                    logger.info("%s: %s", nation.id, warning)

            report.nations[nation.id] = NationReport(
                nation_id=nation.id,
                trade_income=income,
                balances=get_resource_balance(nation.resources, production, consumption),
                warnings=outcome.warnings,
                effects=get_resource_effects(nation.resources),
                resources=dict(nation.resources),
            )

        logger.debug(
            "Turn %d resolved: %d nodes, %d nations",
            self.turn, len(report.nodes), len(report.nations),
        )
        self.history.append(report)
        self.turn += 1
        return report

    # ------------------------------------------------------------------
    # Display projections
    # ------------------------------------------------------------------
    @property
    def last_report(self) -> TurnReport | None:
        return self.history[-1] if self.history else None

    def node_view(self, node_id: str) -> dict[str, Any]:
        """Read-only projection of one node for the display layer."""
        node = self.graph.get(node_id)
        view: dict[str, Any] = {
            **node.to_dict(),
            "routes": self.graph.route_names(node_id),
            "downstream_value": self.graph.downstream_value(node_id),
            "presences": [p.to_dict() for p in self.registry.presences_at(node_id)],
            "shares": [],
            "income": {},
            "route_control": [],
        }
        report = self.last_report
        if report is not None and node_id in report.nodes:
            nr = report.nodes[node_id]
            view["shares"] = [s.to_dict() for s in nr.shares]
            view["income"] = dict(nr.steering.collected)
            view["transferred"] = dict(nr.steering.transferred)
            view["unclaimed"] = nr.steering.unclaimed
            view["route_control"] = get_route_control(
                nr.shares, self.config.route_control_limit,
            )
        return view

    def nation_view(self, nation_id: str) -> dict[str, Any]:
        """Read-only projection of one nation's ledger for the display layer."""
        nation = self.get_nation(nation_id)
        view: dict[str, Any] = {
            "id": nation.id,
            "name": nation.name,
            "resources": dict(nation.resources),
            "trade_efficiency": nation.trade_efficiency,
            "merchants": {
                "total": self.registry.merchant_count(nation_id),
                "used": self.registry.used_merchants(nation_id),
                "free": self.registry.free_merchants(nation_id),
            },
            "balances": [],
            "warnings": [],
            "effects": get_resource_effects(nation.resources).as_dict(),
            "trade_income": {"total": 0.0, "by_node": {}},
        }
        report = self.last_report
        if report is not None and nation_id in report.nations:
            nr = report.nations[nation_id]
            view["balances"] = [b.to_dict() for b in nr.balances]
            view["warnings"] = list(nr.warnings)
            view["trade_income"] = {
                "total": nr.trade_income.total,
                "by_node": dict(nr.trade_income.by_node),
            }
        return view
