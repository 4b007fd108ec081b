"""
Default trade topology.

The content catalog is plain data; ``load_nodes`` turns any list of node
records into fresh ``TradeNode`` objects, so callers can inject their own
synthetic topology instead of this one.
"""

from __future__ import annotations

from typing import Any, Iterable

from mercator.trade.graph import TradeNode

# id, name, region, local value, outgoing routes
# Routes only point at nodes present here, and always downstream.
TRADE_NODES: list[dict[str, Any]] = [
    {"id": "english_channel", "name": "English Channel", "region": "Western Europe",
     "local_value": 20.0, "outgoing_routes": []},
    {"id": "north_sea", "name": "North Sea", "region": "Northern Europe",
     "local_value": 15.0, "outgoing_routes": ["english_channel"]},
    {"id": "lubeck", "name": "Lübeck", "region": "Northern Europe",
     "local_value": 12.0, "outgoing_routes": ["north_sea", "champagne"]},
    {"id": "baltic_sea", "name": "Baltic Sea", "region": "Eastern Europe",
     "local_value": 10.0, "outgoing_routes": ["lubeck", "north_sea"]},
    {"id": "champagne", "name": "Champagne", "region": "Western Europe",
     "local_value": 10.0, "outgoing_routes": ["english_channel"]},
    {"id": "bordeaux", "name": "Bordeaux", "region": "Western Europe",
     "local_value": 14.0, "outgoing_routes": ["english_channel"]},
    {"id": "genoa", "name": "Genoa", "region": "Mediterranean",
     "local_value": 16.0, "outgoing_routes": []},
    {"id": "venice", "name": "Venice", "region": "Mediterranean",
     "local_value": 18.0, "outgoing_routes": []},
    {"id": "seville", "name": "Seville", "region": "Iberia",
     "local_value": 18.0, "outgoing_routes": ["genoa", "bordeaux"]},
    {"id": "valencia", "name": "Valencia", "region": "Iberia",
     "outgoing_routes": ["seville", "genoa"]},
    {"id": "constantinople", "name": "Constantinople", "region": "Anatolia",
     "outgoing_routes": ["alexandria"]},
    {"id": "alexandria", "name": "Alexandria", "region": "Egypt",
     "outgoing_routes": ["venice"]},
    {"id": "novgorod", "name": "Novgorod", "region": "Russia",
     "outgoing_routes": ["baltic_sea"]},
    {"id": "aden", "name": "Aden", "region": "Arabia",
     "outgoing_routes": ["alexandria"]},
    {"id": "hormuz", "name": "Hormuz", "region": "Persia",
     "outgoing_routes": ["aden"]},
    {"id": "malacca", "name": "Malacca", "region": "Southeast Asia",
     "outgoing_routes": []},
    {"id": "canton", "name": "Canton", "region": "China",
     "outgoing_routes": ["malacca"]},
    {"id": "nippon", "name": "Nippon", "region": "Japan",
     "outgoing_routes": ["canton"]},
    {"id": "caribbean", "name": "Caribbean", "region": "Americas",
     "local_value": 12.0, "outgoing_routes": ["seville", "bordeaux"]},
    {"id": "mexico", "name": "Mexico", "region": "Americas",
     "outgoing_routes": ["caribbean"]},
]


def load_nodes(
    records: Iterable[dict[str, Any]],
    local_values: dict[str, float] | None = None,
) -> list[TradeNode]:
    """Build fresh ``TradeNode`` objects from plain records.

    *local_values* overrides each record's ``local_value`` by node id.
    """
    local_values = local_values or {}
    nodes: list[TradeNode] = []
    for rec in records:
        nodes.append(TradeNode(
            id=rec["id"],
            name=rec.get("name", rec["id"]),
            region=rec.get("region", ""),
            local_value=float(local_values.get(rec["id"], rec.get("local_value", 0.0))),
            outgoing_routes=list(rec.get("outgoing_routes", [])),
        ))
    return nodes


def load_default_nodes(
    local_values: dict[str, float] | None = None,
) -> list[TradeNode]:
    """The built-in world topology."""
    return load_nodes(TRADE_NODES, local_values)
