"""Trade node graph, share resolution and merchant steering."""

from mercator.trade.graph import (
    TradeNode,
    TradeNodeGraph,
    compute_node_order,
    propagate,
    reset_turn,
)
from mercator.trade.catalog import TRADE_NODES, load_default_nodes, load_nodes
from mercator.trade.shares import (
    NodeShare,
    calculate_trade_power,
    calculate_trade_power_modifiers,
    compute_shares,
    get_route_control,
)
from mercator.trade.merchants import (
    MerchantAction,
    MerchantRegistry,
    SteeringResult,
    TradePresence,
    resolve_merchant_actions,
)

__all__ = [
    "TradeNode",
    "TradeNodeGraph",
    "compute_node_order",
    "propagate",
    "reset_turn",
    "TRADE_NODES",
    "load_default_nodes",
    "load_nodes",
    "NodeShare",
    "calculate_trade_power",
    "calculate_trade_power_modifiers",
    "compute_shares",
    "get_route_control",
    "MerchantAction",
    "MerchantRegistry",
    "SteeringResult",
    "TradePresence",
    "resolve_merchant_actions",
]
