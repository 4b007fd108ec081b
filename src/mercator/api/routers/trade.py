"""
Trade API router: node projections and merchant actions.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from mercator.api.schemas import MerchantRequest, TradePowerRequest
from mercator.api.sessions import power_from_record
from mercator.core.errors import (
    AlreadyAssigned,
    InvalidSteering,
    NoFreeMerchants,
    NotAssigned,
    TurnInProgress,
)

router = APIRouter()


def _get_session(request: Request, session_id: str):
    sm = request.app.state.session_manager
    try:
        return sm.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


def _check_nation(session, nation_id: str) -> None:
    if nation_id not in session.engine.nations:
        raise HTTPException(status_code=404, detail=f"Nation '{nation_id}' not found")


def _mutate(session, fn, *args):
    """Run a registry mutation under the session lock, mapping errors."""
    with session.lock:
        try:
            return fn(*args)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc.args[0]))
        except (NoFreeMerchants, AlreadyAssigned, NotAssigned, TurnInProgress) as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        except (InvalidSteering, ValueError) as exc:
            raise HTTPException(status_code=422, detail=str(exc))


@router.get("/{session_id}/nodes")
def list_nodes(request: Request, session_id: str):
    """Every node in topological order with its current projection."""
    session = _get_session(request, session_id)
    engine = session.engine
    return {
        "turn": engine.turn,
        "nodes": [engine.node_view(n.id) for n in engine.graph.order],
    }


@router.get("/{session_id}/nodes/{node_id}")
def get_node(request: Request, session_id: str, node_id: str):
    """Total value, shares, income and routes for one node."""
    session = _get_session(request, session_id)
    try:
        return session.engine.node_view(node_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Trade node '{node_id}' not found")


@router.post("/{session_id}/merchants")
def assign_merchant(request: Request, session_id: str, req: MerchantRequest):
    session = _get_session(request, session_id)
    _check_nation(session, req.nation_id)
    presence = _mutate(
        session, session.engine.registry.assign_merchant,
        req.nation_id, req.node_id, req.action, req.target,
    )
    return presence.to_dict()


@router.patch("/{session_id}/merchants")
def set_merchant_action(request: Request, session_id: str, req: MerchantRequest):
    session = _get_session(request, session_id)
    _check_nation(session, req.nation_id)
    presence = _mutate(
        session, session.engine.registry.set_merchant_action,
        req.nation_id, req.node_id, req.action, req.target,
    )
    return presence.to_dict()


@router.delete("/{session_id}/merchants/{nation_id}/{node_id}")
def remove_merchant(request: Request, session_id: str, nation_id: str, node_id: str):
    session = _get_session(request, session_id)
    _check_nation(session, nation_id)
    _mutate(session, session.engine.registry.remove_merchant, nation_id, node_id)
    return {"removed": True}


@router.put("/{session_id}/trade-power")
def set_trade_power(request: Request, session_id: str, req: TradePowerRequest):
    """Record raw power, or derive it from a holdings breakdown."""
    session = _get_session(request, session_id)
    _check_nation(session, req.nation_id)
    power = power_from_record(req.model_dump(), session.config)
    _mutate(
        session, session.engine.registry.set_trade_power,
        req.nation_id, req.node_id, power,
    )
    return session.engine.registry.get_presence(req.nation_id, req.node_id).to_dict()
