"""
Session manager for economy simulations.

Each session wraps an EconomyEngine + MetricsCollector. Sessions live
in memory only. Turn advancement holds a per-session lock, so merchant
mutations from the display layer cannot interleave with a running turn.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any

from mercator.core.config import EconomyConfig
from mercator.core.engine import EconomyEngine, TurnReport
from mercator.core.errors import CycleDetected, InvalidSteering
from mercator.core.resources import NationStats
from mercator.metrics.collector import MetricsCollector
from mercator.trade.catalog import load_default_nodes, load_nodes
from mercator.trade.graph import TradeNodeGraph
from mercator.trade.shares import calculate_trade_power

logger = logging.getLogger(__name__)


@dataclass
class EconomySession:
    """A running economy simulation."""

    id: str
    name: str
    config: EconomyConfig
    engine: EconomyEngine
    collector: MetricsCollector
    status: str = "created"  # created | idle | running | error
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def current_turn(self) -> int:
        return self.engine.turn


class SessionManager:
    """Manages multiple in-memory economy sessions."""

    def __init__(self, default_merchant_count: int | None = None):
        self.sessions: dict[str, EconomySession] = {}
        self.default_merchant_count = default_merchant_count

    def create_session(
        self,
        config: EconomyConfig | None = None,
        name: str | None = None,
        nations: list[dict[str, Any]] | None = None,
        nodes: list[dict[str, Any]] | None = None,
        local_values: dict[str, float] | None = None,
        trade_power: list[dict[str, Any]] | None = None,
    ) -> EconomySession:
        """Create a session from a config, nation list and topology.

        Raises ``CycleDetected`` for a cyclic custom topology and
        ``ValueError``/``KeyError`` for malformed records.
        """
        if config is None:
            config = EconomyConfig()
            if self.default_merchant_count is not None:
                config.default_merchant_count = self.default_merchant_count

        node_list = (
            load_nodes(nodes, local_values) if nodes
            else load_default_nodes(local_values)
        )
        engine = EconomyEngine(config, graph=TradeNodeGraph(node_list))

        for rec in nations or []:
            engine.add_nation(
                rec["id"],
                name=rec.get("name"),
                stats=NationStats(**rec.get("stats", {})),
                resources=rec.get("resources"),
                merchant_count=rec.get("merchant_count"),
                steering_bonus=rec.get("steering_bonus"),
                trade_efficiency=rec.get("trade_efficiency"),
            )
        for rec in trade_power or []:
            engine.registry.set_trade_power(
                rec["nation_id"], rec["node_id"], power_from_record(rec, config),
            )

        session_id = uuid.uuid4().hex[:8]
        session = EconomySession(
            id=session_id,
            name=name or config.scenario_name,
            config=config,
            engine=engine,
            collector=MetricsCollector(),
        )
        self.sessions[session_id] = session
        logger.info(
            "Created session %s with %d nodes and %d nations",
            session_id, len(engine.graph), len(engine.nations),
        )
        return session

    def get_session(self, session_id: str) -> EconomySession:
        """Get a session by ID. Raises KeyError if not found."""
        try:
            return self.sessions[session_id]
        except KeyError:
            raise KeyError(f"Session '{session_id}' not found") from None

    def list_sessions(self) -> list[dict[str, Any]]:
        return [
            {
                "id": s.id,
                "name": s.name,
                "status": s.status,
                "current_turn": s.current_turn,
                "nation_count": len(s.engine.nations),
            }
            for s in self.sessions.values()
        ]

    def advance(self, session_id: str, n: int = 1) -> list[TurnReport]:
        """Run N turns, collecting metrics after each one."""
        session = self.get_session(session_id)
        reports: list[TurnReport] = []
        with session.lock:
            session.status = "running"
            try:
                for _ in range(n):
                    report = session.engine.run_turn()
                    session.collector.collect(report)
                    reports.append(report)
            except (CycleDetected, InvalidSteering) as exc:
                # Rejected before any mutation; the session is still usable.
                logger.warning("Turn rejected for session %s: %s", session_id, exc)
                session.status = "idle"
                raise
            except Exception:
                logger.exception("Turn failed for session %s", session_id)
                session.status = "error"
                raise
            session.status = "idle"
        return reports

    def delete_session(self, session_id: str) -> None:
        if session_id not in self.sessions:
            raise KeyError(f"Session '{session_id}' not found")
        del self.sessions[session_id]


def power_from_record(rec: dict[str, Any], config: EconomyConfig) -> float:
    """Trade power from a record holding either ``power`` or ``sources``."""
    if rec.get("power") is not None:
        return rec["power"]
    src = rec["sources"]
    return calculate_trade_power(
        provinces=src.get("provinces", 0),
        merchants=src.get("merchants", 0),
        buildings=src.get("buildings", 0),
        light_ships=src.get("light_ships", 0),
        modifiers=[(m["label"], m["value"]) for m in src.get("modifiers", [])],
        config=config,
    )
