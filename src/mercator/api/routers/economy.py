"""
Economy API router: per-nation ledgers, balances and shortage effects.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from mercator.core.resources import RESOURCE_DESCRIPTIONS, calculate_trade_value

router = APIRouter()


def _get_session(request: Request, session_id: str):
    sm = request.app.state.session_manager
    try:
        return sm.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


@router.get("/{session_id}/nations")
def list_nations(request: Request, session_id: str):
    """Reserves and last-turn warnings for every nation."""
    session = _get_session(request, session_id)
    engine = session.engine
    return {"nations": [engine.nation_view(nid) for nid in engine.nations]}


@router.get("/{session_id}/nations/{nation_id}")
def get_nation(request: Request, session_id: str, nation_id: str):
    """Resource balances, warnings, effects and trade income for one nation."""
    session = _get_session(request, session_id)
    try:
        return session.engine.nation_view(nation_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Nation '{nation_id}' not found")


@router.get("/resources")
def list_resources(request: Request):
    """Resource catalog with base market prices."""
    return {
        "resources": [
            {
                "id": rtype,
                "description": desc,
                "base_price": calculate_trade_value(rtype, 1.0),
            }
            for rtype, desc in RESOURCE_DESCRIPTIONS.items()
        ],
    }
