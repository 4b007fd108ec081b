"""
Metrics Collector: per-turn economy statistics.

Aggregates each ``TurnReport`` into trade-flow totals, treasury
inequality and warning counts. Provides time series extraction and
export for visualization.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from mercator.core.engine import TurnReport


@dataclass
class TurnMetrics:
    """Aggregated metrics for a single turn."""

    turn: int

    # Trade flow
    total_trade_value: float  # sum of end-node total values
    total_collected: float
    total_transferred: float  # after steering bonus
    total_unclaimed: float
    total_efficiency_loss: float

    # Ledger
    treasury_by_nation: dict[str, float]
    trade_income_by_nation: dict[str, float]
    treasury_gini: float
    warning_count: int

    # Nations currently suffering at least one shortage penalty
    nations_in_shortage: list[str] = field(default_factory=list)


class MetricsCollector:
    """Collects and aggregates metrics across turns."""

    def __init__(self) -> None:
        self.metrics_history: list[TurnMetrics] = []

    def collect(self, report: TurnReport) -> TurnMetrics:
        """Collect metrics for one turn."""
        end_value = sum(
            nr.total_value for nr in report.nodes.values() if nr.is_end_node
        )
        collected = sum(
            sum(nr.steering.collected.values()) for nr in report.nodes.values()
        )
        transferred = sum(
            sum(nr.steering.transferred.values()) for nr in report.nodes.values()
        )
        unclaimed = sum(nr.steering.unclaimed for nr in report.nodes.values())
        efficiency_loss = sum(nr.steering.efficiency_loss for nr in report.nodes.values())

        treasury = {
            nid: nr.resources.get("treasury", 0.0)
            for nid, nr in report.nations.items()
        }
        income = {
            nid: nr.trade_income.total for nid, nr in report.nations.items()
        }

        metrics = TurnMetrics(
            turn=report.turn,
            total_trade_value=end_value,
            total_collected=collected,
            total_transferred=transferred,
            total_unclaimed=unclaimed,
            total_efficiency_loss=efficiency_loss,
            treasury_by_nation=treasury,
            trade_income_by_nation=income,
            treasury_gini=self._compute_gini(list(treasury.values())),
            warning_count=sum(len(nr.warnings) for nr in report.nations.values()),
            nations_in_shortage=[
                nid for nid, nr in report.nations.items() if len(nr.effects) > 0
            ],
        )
        self.metrics_history.append(metrics)
        return metrics

    def get_time_series(self, field_name: str) -> list[Any]:
        """Extract a time series for a specific metric field."""
        return [getattr(m, field_name) for m in self.metrics_history]

    def export_for_visualization(self) -> list[dict[str, Any]]:
        """Export all metrics as a list of JSON-serializable dicts."""
        return [
            {
                "turn": m.turn,
                "total_trade_value": m.total_trade_value,
                "total_collected": m.total_collected,
                "total_transferred": m.total_transferred,
                "total_unclaimed": m.total_unclaimed,
                "total_efficiency_loss": m.total_efficiency_loss,
                "treasury_by_nation": dict(m.treasury_by_nation),
                "trade_income_by_nation": dict(m.trade_income_by_nation),
                "treasury_gini": m.treasury_gini,
                "warning_count": m.warning_count,
                "nations_in_shortage": list(m.nations_in_shortage),
            }
            for m in self.metrics_history
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _compute_gini(values: list[float]) -> float:
        """Gini coefficient of treasury holdings across nations."""
        if not values or max(values) == 0:
            return 0.0
        arr = np.array(sorted(values), dtype=float)
        n = len(arr)
        index = np.arange(1, n + 1)
        return float(
            (2.0 * np.sum(index * arr) - (n + 1) * np.sum(arr))
            / (n * np.sum(arr))
        )
