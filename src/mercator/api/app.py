"""
FastAPI application factory for the Mercator economy API.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mercator.api.sessions import SessionManager
from mercator.api.routers import economy, simulation, trade

# .env from the project root, then the working directory
_project_root = Path(__file__).resolve().parents[3]
load_dotenv(_project_root / ".env")
load_dotenv(Path.cwd() / ".env")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Mercator Economy API",
        description="Read-only economy projections and merchant actions",
        version="0.1.0",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logging.basicConfig(level=os.environ.get("MERCATOR_LOG_LEVEL", "WARNING"))

    merchants = os.environ.get("MERCATOR_DEFAULT_MERCHANTS")
    application.state.session_manager = SessionManager(
        default_merchant_count=int(merchants) if merchants else None,
    )

    application.include_router(simulation.router, prefix="/api/simulation", tags=["simulation"])
    application.include_router(trade.router, prefix="/api/trade", tags=["trade"])
    application.include_router(economy.router, prefix="/api/economy", tags=["economy"])

    @application.get("/api/health")
    def health_check():
        return {"status": "ok"}

    return application


app = create_app()
