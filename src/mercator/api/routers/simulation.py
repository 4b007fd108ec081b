"""Economy session management endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from mercator.api.schemas import (
    CreateSessionRequest,
    SessionResponse,
    SessionSummary,
    TurnRequest,
)
from mercator.core.config import EconomyConfig
from mercator.core.errors import CycleDetected, InvalidSteering

router = APIRouter()


def _get_session(request: Request, session_id: str):
    try:
        return request.app.state.session_manager.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


def _describe(session) -> dict:
    engine = session.engine
    return {
        "id": session.id,
        "name": session.name,
        "status": session.status,
        "current_turn": session.current_turn,
        "nations": list(engine.nations),
        "nodes": [n.id for n in engine.graph.nodes],
        "config": session.config.to_dict(),
    }


@router.post("/sessions", response_model=SessionResponse)
def create_session(req: CreateSessionRequest, request: Request):
    """Build a session; a malformed or cyclic topology is a 422."""
    try:
        config = EconomyConfig.from_dict(req.config) if req.config else None
        session = request.app.state.session_manager.create_session(
            config=config,
            name=req.name,
            nations=[n.model_dump() for n in req.nations],
            nodes=req.nodes,
            local_values=req.local_values,
            trade_power=[t.model_dump() for t in req.trade_power],
        )
    except (CycleDetected, KeyError, ValueError, TypeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _describe(session)


@router.get("/sessions", response_model=list[SessionSummary])
def list_sessions(request: Request):
    return request.app.state.session_manager.list_sessions()


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, request: Request):
    return _describe(_get_session(request, session_id))


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str, request: Request):
    session = _get_session(request, session_id)
    request.app.state.session_manager.delete_session(session.id)
    return {"deleted": True}


@router.post("/sessions/{session_id}/turn", response_model=SessionResponse)
def advance_session(session_id: str, req: TurnRequest, request: Request):
    """Resolve N turns. A turn rejected by validation leaves state as it was."""
    session = _get_session(request, session_id)
    try:
        request.app.state.session_manager.advance(session.id, req.n)
    except (CycleDetected, InvalidSteering) as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _describe(session)


@router.get("/sessions/{session_id}/metrics")
def get_metrics(session_id: str, request: Request):
    session = _get_session(request, session_id)
    return {"turns": session.collector.export_for_visualization()}
