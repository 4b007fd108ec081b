"""
Merchant assignment and the Merchant Steering Engine.

Each nation holds a limited pool of merchants. A merchant at a node
either collects the nation's share there as income or transfers it one
route downstream, boosted by the nation's steering bonus. Trade power
without a merchant yields nothing.

Presences are mutable between turns and frozen while a turn resolves.
Every mutation validates fully before touching state, so a rejected
call leaves the registry exactly as it was.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Iterator

from mercator.core.errors import (
    AlreadyAssigned,
    InvalidSteering,
    NoFreeMerchants,
    NotAssigned,
    TurnInProgress,
)

if TYPE_CHECKING:
    from mercator.trade.graph import TradeNode, TradeNodeGraph
    from mercator.trade.shares import NodeShare

logger = logging.getLogger(__name__)


class MerchantAction(Enum):
    """What a merchant does with its nation's share at a node."""
    COLLECT = "collect"
    TRANSFER = "transfer"


@dataclass
class TradePresence:
    """One nation's standing at one node."""
    nation_id: str
    node_id: str
    power: float = 0.0
    merchant_assigned: bool = False
    action: MerchantAction | None = None
    steer_target: str | None = None

    def to_dict(self) -> dict:
        return {
            "nation_id": self.nation_id,
            "node_id": self.node_id,
            "power": self.power,
            "merchant_assigned": self.merchant_assigned,
            "action": self.action.value if self.action else None,
            "steer_target": self.steer_target,
        }


@dataclass
class SteeringResult:
    """Outcome of resolving every merchant at one node."""
    node_id: str
    collected: dict[str, float] = field(default_factory=dict)
    transferred: dict[str, float] = field(default_factory=dict)
    # Share value (before steering bonus) that left the node via transfers.
    transferred_base: float = 0.0
    unclaimed: float = 0.0
    # Collected share value withheld by trade efficiency below 100%.
    efficiency_loss: float = 0.0


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _parse_action(action: MerchantAction | str) -> MerchantAction:
    try:
        return MerchantAction(action)
    except ValueError:
        raise InvalidSteering(f"Unknown merchant action {action!r}") from None


def resolve_steer_target(
    node: TradeNode, action: MerchantAction, target: str | None = None,
) -> str | None:
    """Downstream node a merchant steers toward, or ``None`` for collect.

    A node with a single outgoing route steers there by default; a node
    with several needs an explicit *target*.
    """
    if action is MerchantAction.COLLECT:
        if target is not None:
            raise InvalidSteering(
                f"Collecting merchant at '{node.id}' cannot steer to '{target}'"
            )
        return None

    if node.is_end_node:
        raise InvalidSteering(f"'{node.id}' is an end node and cannot transfer trade")
    if target is None:
        if len(node.outgoing_routes) == 1:
            return node.outgoing_routes[0]
        raise InvalidSteering(
            f"'{node.id}' has {len(node.outgoing_routes)} outgoing routes; "
            "choose a steering target"
        )
    if target not in node.outgoing_routes:
        raise InvalidSteering(f"No route from '{node.id}' to '{target}'")
    return target


# ---------------------------------------------------------------------------
# Steering engine
# ---------------------------------------------------------------------------

def resolve_merchant_actions(
    node: TradeNode,
    shares: Iterable[NodeShare],
    presences: Iterable[TradePresence],
    steering_bonus: dict[str, float] | None = None,
    default_bonus: float = 0.0,
    efficiency: dict[str, float] | None = None,
    default_efficiency: float = 100.0,
) -> SteeringResult:
    """Split a node's shares into collected income and downstream transfers.

    Nations without a merchant, and any value no nation holds a share of,
    are unclaimed and lost for the turn. Collected income is scaled by
    the nation's trade *efficiency* (percent).
    """
    steering_bonus = steering_bonus or {}
    efficiency = efficiency or {}
    by_nation = {p.nation_id: p for p in presences if p.node_id == node.id}
    result = SteeringResult(node_id=node.id)
    claimed = 0.0

    for share in shares:
        presence = by_nation.get(share.nation_id)
        if presence is None or not presence.merchant_assigned or presence.action is None:
            continue

        if presence.action is MerchantAction.COLLECT:
            income = share.share_value * efficiency.get(share.nation_id, default_efficiency) / 100.0
            result.collected[share.nation_id] = (
                result.collected.get(share.nation_id, 0.0) + income
            )
            result.efficiency_loss += max(0.0, share.share_value - income)
        else:
            target = presence.steer_target
            if target is None or target not in node.outgoing_routes:
                target = resolve_steer_target(node, presence.action)
            bonus = steering_bonus.get(share.nation_id, default_bonus)
            result.transferred[target] = (
                result.transferred.get(target, 0.0) + share.share_value * (1.0 + bonus)
            )
            result.transferred_base += share.share_value
        claimed += share.share_value

    result.unclaimed = max(0.0, node.total_value - claimed)
    return result


# ---------------------------------------------------------------------------
# Merchant registry
# ---------------------------------------------------------------------------

class MerchantRegistry:
    """
    Per-nation merchant pools and trade presences.

    Usage::

        registry = MerchantRegistry(graph, merchant_counts={"FRA": 2})
        registry.set_trade_power("FRA", "champagne", 40.0)
        registry.assign_merchant("FRA", "champagne", "transfer")
        registry.remove_merchant("FRA", "champagne")
    """

    def __init__(
        self,
        graph: TradeNodeGraph,
        merchant_counts: dict[str, int] | None = None,
        default_merchant_count: int = 0,
    ) -> None:
        self.graph = graph
        self.merchant_counts: dict[str, int] = dict(merchant_counts or {})
        self.default_merchant_count = default_merchant_count
        self._presences: dict[tuple[str, str], TradePresence] = {}
        self._frozen = False

    # --- Queries ---

    @property
    def presences(self) -> list[TradePresence]:
        return list(self._presences.values())

    def presences_at(self, node_id: str) -> list[TradePresence]:
        return [p for p in self._presences.values() if p.node_id == node_id]

    def get_presence(self, nation_id: str, node_id: str) -> TradePresence | None:
        return self._presences.get((nation_id, node_id))

    def merchant_count(self, nation_id: str) -> int:
        return self.merchant_counts.get(nation_id, self.default_merchant_count)

    def used_merchants(self, nation_id: str) -> int:
        return sum(
            1 for p in self._presences.values()
            if p.nation_id == nation_id and p.merchant_assigned
        )

    def free_merchants(self, nation_id: str) -> int:
        return max(0, self.merchant_count(nation_id) - self.used_merchants(nation_id))

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    # --- Mutations ---

    def set_merchant_count(self, nation_id: str, count: int) -> None:
        self._check_not_frozen()
        if count < 0:
            raise ValueError(f"Merchant count must be non-negative, got {count}")
        used = self.used_merchants(nation_id)
        if count < used:
            raise ValueError(
                f"'{nation_id}' has {used} merchants assigned; cannot reduce pool to {count}"
            )
        self.merchant_counts[nation_id] = count

    def set_trade_power(self, nation_id: str, node_id: str, power: float) -> None:
        """Record the raw trade power a nation holds at a node."""
        self._check_not_frozen()
        self.graph.get(node_id)
        if power < 0:
            raise ValueError(f"Trade power must be non-negative, got {power}")
        presence = self._presences.get((nation_id, node_id))
        if presence is None:
            presence = TradePresence(nation_id=nation_id, node_id=node_id)
            self._presences[(nation_id, node_id)] = presence
        presence.power = float(power)

    def assign_merchant(
        self,
        nation_id: str,
        node_id: str,
        action: MerchantAction | str,
        target: str | None = None,
    ) -> TradePresence:
        """Send a free merchant to a node to collect or transfer."""
        self._check_not_frozen()
        node = self.graph.get(node_id)
        if self.used_merchants(nation_id) >= self.merchant_count(nation_id):
            raise NoFreeMerchants(
                f"'{nation_id}' has no free merchants "
                f"({self.merchant_count(nation_id)} in use)"
            )
        existing = self._presences.get((nation_id, node_id))
        if existing is not None and existing.merchant_assigned:
            raise AlreadyAssigned(
                f"'{nation_id}' already has a merchant at '{node_id}'"
            )
        parsed = _parse_action(action)
        steer_target = resolve_steer_target(node, parsed, target)

        presence = existing or TradePresence(nation_id=nation_id, node_id=node_id)
        presence.merchant_assigned = True
        presence.action = parsed
        presence.steer_target = steer_target
        self._presences[(nation_id, node_id)] = presence
        logger.debug(
            "Merchant of %s assigned to %s (%s)", nation_id, node_id, parsed.value,
        )
        return presence

    def remove_merchant(self, nation_id: str, node_id: str) -> None:
        """Recall a merchant; removing an absent merchant is an error."""
        self._check_not_frozen()
        presence = self._presences.get((nation_id, node_id))
        if presence is None or not presence.merchant_assigned:
            raise NotAssigned(f"'{nation_id}' has no merchant at '{node_id}'")
        presence.merchant_assigned = False
        presence.action = None
        presence.steer_target = None

    def set_merchant_action(
        self,
        nation_id: str,
        node_id: str,
        action: MerchantAction | str,
        target: str | None = None,
    ) -> TradePresence:
        """Switch an assigned merchant between collecting and transferring."""
        self._check_not_frozen()
        presence = self._presences.get((nation_id, node_id))
        if presence is None or not presence.merchant_assigned:
            raise NotAssigned(f"'{nation_id}' has no merchant at '{node_id}'")
        parsed = _parse_action(action)
        steer_target = resolve_steer_target(self.graph.get(node_id), parsed, target)
        presence.action = parsed
        presence.steer_target = steer_target
        return presence

    # --- Turn support ---

    @contextmanager
    def frozen(self) -> Iterator[MerchantRegistry]:
        """Reject every mutation for the duration of the block."""
        if self._frozen:
            raise TurnInProgress("A turn is already being resolved")
        self._frozen = True
        try:
            yield self
        finally:
            self._frozen = False

    def validate(self) -> None:
        """Check every transfer merchant can still steer after route edits."""
        for p in self._presences.values():
            if p.merchant_assigned and p.action is MerchantAction.TRANSFER:
                node = self.graph.get(p.node_id)
                if p.steer_target not in node.outgoing_routes:
                    resolve_steer_target(node, p.action)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            raise TurnInProgress(
                "Merchant presences are frozen until the turn completes"
            )
