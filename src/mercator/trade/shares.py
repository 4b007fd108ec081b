"""
Trade Power & Share Resolver.

A nation's share of a node is its raw trade power over the node's total
power. Shares are recomputed from scratch each turn. With no power at a
node every share is zero and the whole value goes unclaimed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from mercator.core.config import EconomyConfig

if TYPE_CHECKING:
    from mercator.trade.graph import TradeNode
    from mercator.trade.merchants import TradePresence


@dataclass
class NodeShare:
    """One nation's derived share of one node for the current turn."""
    nation_id: str
    node_id: str
    share_percent: float
    share_value: float

    def to_dict(self) -> dict:
        return {
            "nation_id": self.nation_id,
            "node_id": self.node_id,
            "share_percent": self.share_percent,
            "share_value": self.share_value,
        }


def compute_shares(
    node: TradeNode, presences: Iterable[TradePresence],
) -> list[NodeShare]:
    """Share of *node*'s total value for every present nation.

    Output follows the order of *presences*.
    """
    present = [p for p in presences if p.node_id == node.id]
    total_power = sum(p.power for p in present)

    shares: list[NodeShare] = []
    for p in present:
        if total_power > 0:
            percent = 100.0 * p.power / total_power
        else:
            percent = 0.0
        shares.append(NodeShare(
            nation_id=p.nation_id,
            node_id=node.id,
            share_percent=percent,
            share_value=node.total_value * percent / 100.0,
        ))
    return shares


def calculate_trade_power_modifiers(
    base_power: float, modifiers: Iterable[tuple[str, float]],
) -> float:
    """Apply percentage modifiers, e.g. ``[("Navy", 25)]`` -> +25%."""
    multiplier = 1.0
    for _, value in modifiers:
        multiplier += value / 100.0
    return base_power * multiplier


def calculate_trade_power(
    provinces: int = 0,
    merchants: int = 0,
    buildings: int = 0,
    light_ships: int = 0,
    modifiers: Iterable[tuple[str, float]] = (),
    config: EconomyConfig | None = None,
) -> float:
    """Raw trade power from a nation's holdings at a node.

    Each holding is weighted by ``config.trade_power_weights``, then the
    percentage *modifiers* apply. Rounded half up to a whole number.
    """
    weights = (config or EconomyConfig()).trade_power_weights
    base = (
        provinces * weights["provinces"]
        + merchants * weights["merchants"]
        + buildings * weights["buildings"]
        + light_ships * weights["light_ships"]
    )
    return float(math.floor(calculate_trade_power_modifiers(base, modifiers) + 0.5))


def get_route_control(
    shares: Iterable[NodeShare], limit: int = 5,
) -> list[dict[str, float | str]]:
    """Top nations by share at a node; equal shares keep input order."""
    ranked = sorted(shares, key=lambda s: -s.share_percent)
    return [
        {"nation_id": s.nation_id, "share_percent": s.share_percent}
        for s in ranked[:limit]
    ]
