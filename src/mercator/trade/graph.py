"""
Trade Node Graph: static topology of trade nodes and directed routes.

Routes point downstream toward end nodes (nodes with no outgoing route).
Value is walked in topological order so that every node has received all
upstream transfers before its own shares are resolved. The order is
cached per topology and only re-derived after a route edit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

import networkx as nx

from mercator.core.errors import CycleDetected

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class TradeNode:
    """A point in the trade-route graph aggregating regional trade value."""
    id: str
    name: str
    region: str = ""
    local_value: float = 0.0
    outgoing_routes: list[str] = field(default_factory=list)
    incoming_routes: list[str] = field(default_factory=list)
    # Ephemeral: local_value plus this turn's inbound transfers.
    total_value: float = 0.0

    def __post_init__(self) -> None:
        if self.local_value < 0:
            raise ValueError(
                f"Trade node '{self.id}' has negative local value {self.local_value}"
            )

    @property
    def is_end_node(self) -> bool:
        return not self.outgoing_routes

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "region": self.region,
            "is_end_node": self.is_end_node,
            "local_value": self.local_value,
            "total_value": self.total_value,
            "outgoing_routes": list(self.outgoing_routes),
            "incoming_routes": list(self.incoming_routes),
        }


# ---------------------------------------------------------------------------
# Pure topology helpers
# ---------------------------------------------------------------------------

def _build_digraph(nodes: Iterable[TradeNode]) -> nx.DiGraph:
    graph = nx.DiGraph()
    node_list = list(nodes)
    for node in node_list:
        graph.add_node(node.id)
    for node in node_list:
        for target in node.outgoing_routes:
            if target not in graph:
                raise ValueError(
                    f"Trade node '{node.id}' routes to unknown node '{target}'"
                )
            graph.add_edge(node.id, target)
    return graph


def _ordered_ids(graph: nx.DiGraph) -> list[str]:
    """Topological order, earliest-inserted node first among ready nodes."""
    index = {node_id: i for i, node_id in enumerate(graph.nodes)}
    try:
        return list(nx.lexicographical_topological_sort(graph, key=index.__getitem__))
    except nx.NetworkXUnfeasible:
        edges = nx.find_cycle(graph)
        cycle = [edges[0][0]] + [v for _, v in edges]
        raise CycleDetected(cycle) from None


def compute_node_order(nodes: Iterable[TradeNode]) -> list[TradeNode]:
    """Order *nodes* so every node follows all of its upstream sources.

    Raises ``CycleDetected`` if the routes do not form a DAG.
    """
    node_list = list(nodes)
    by_id = {n.id: n for n in node_list}
    return [by_id[nid] for nid in _ordered_ids(_build_digraph(node_list))]


def reset_turn(nodes: Iterable[TradeNode]) -> None:
    """Reset every node's total value to its local value."""
    for node in nodes:
        node.total_value = node.local_value


def propagate(
    nodes: Iterable[TradeNode], transferred: dict[str, float],
) -> None:
    """Credit each node with the value transferred into it, in order."""
    for node in compute_node_order(nodes):
        node.total_value += transferred.get(node.id, 0.0)


# ---------------------------------------------------------------------------
# Graph with cached order
# ---------------------------------------------------------------------------

class TradeNodeGraph:
    """
    Trade topology with a cached topological order.

    Outgoing routes are authoritative; incoming route lists are rebuilt
    from them on load and after every route edit. Construction fails
    with ``CycleDetected`` on a cyclic topology.

    Usage::

        graph = TradeNodeGraph(load_default_nodes())
        graph.reset_turn()
        pending: dict[str, float] = {}
        for node in graph.walk(pending):
            ...  # resolve node, add downstream transfers to pending
    """

    def __init__(self, nodes: Iterable[TradeNode]):
        self._nodes: dict[str, TradeNode] = {}
        for node in nodes:
            if node.id in self._nodes:
                raise ValueError(f"Duplicate trade node id '{node.id}'")
            self._nodes[node.id] = node
        self._order: list[str] | None = None
        # Value transferred into each node during the last walk.
        self._inbound: dict[str, float] = {}
        self._sync_incoming()
        # Fail at load time, not on the first turn.
        self._order = _ordered_ids(_build_digraph(self._nodes.values()))

    # --- Queries ---

    @property
    def nodes(self) -> list[TradeNode]:
        return list(self._nodes.values())

    def get(self, node_id: str) -> TradeNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise KeyError(f"Trade node '{node_id}' not found") from None

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def order(self) -> list[TradeNode]:
        """Nodes in topological order (cached until the topology changes)."""
        if self._order is None:
            logger.debug("Recomputing trade node order for %d nodes", len(self._nodes))
            self._order = _ordered_ids(_build_digraph(self._nodes.values()))
        return [self._nodes[nid] for nid in self._order]

    def downstream_value(self, node_id: str) -> float:
        """Value routed into *node_id* from upstream during the last walk."""
        self.get(node_id)
        return self._inbound.get(node_id, 0.0)

    def route_names(self, node_id: str) -> dict[str, list[str]]:
        """Display names of a node's incoming and outgoing neighbours."""
        node = self.get(node_id)
        return {
            "incoming": [self._nodes[n].name for n in node.incoming_routes],
            "outgoing": [self._nodes[n].name for n in node.outgoing_routes],
        }

    # --- Topology edits ---

    def add_route(self, source: str, target: str) -> None:
        """Add a directed route; rejects edits that would form a cycle."""
        src = self.get(source)
        self.get(target)
        if target in src.outgoing_routes:
            return
        src.outgoing_routes.append(target)
        try:
            order = _ordered_ids(_build_digraph(self._nodes.values()))
        except CycleDetected:
            src.outgoing_routes.remove(target)
            raise
        self._order = order
        self._sync_incoming()

    def remove_route(self, source: str, target: str) -> None:
        src = self.get(source)
        if target not in src.outgoing_routes:
            raise KeyError(f"No route from '{source}' to '{target}'")
        src.outgoing_routes.remove(target)
        self._order = None
        self._sync_incoming()

    def reroute(self, source: str, old_target: str, new_target: str) -> None:
        """Replace one outgoing route, keeping the topology acyclic."""
        self.remove_route(source, old_target)
        try:
            self.add_route(source, new_target)
        except (CycleDetected, KeyError):
            self.add_route(source, old_target)
            raise

    # --- Per-turn value ---

    def reset_turn(self) -> None:
        self._inbound = {}
        reset_turn(self._nodes.values())

    def walk(self, transferred: dict[str, float]) -> Iterator[TradeNode]:
        """Yield nodes in order, crediting inbound transfers first.

        The caller may add amounts to *transferred* for downstream nodes
        while iterating; they are picked up when that node is reached.
        """
        for node in self.order:
            inbound = transferred.get(node.id, 0.0)
            self._inbound[node.id] = inbound
            node.total_value += inbound
            yield node

    def propagate(self, transferred: dict[str, float]) -> None:
        for _ in self.walk(transferred):
            pass

    # --- Helpers ---

    def _sync_incoming(self) -> None:
        incoming: dict[str, list[str]] = {nid: [] for nid in self._nodes}
        for node in self._nodes.values():
            for target in node.outgoing_routes:
                if target not in incoming:
                    raise ValueError(
                        f"Trade node '{node.id}' routes to unknown node '{target}'"
                    )
                incoming[target].append(node.id)
        for nid, sources in incoming.items():
            self._nodes[nid].incoming_routes = sources
