"""FastAPI dashboard application factory."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from vaultwatch.dashboard.routes import api


def create_dashboard_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI dashboard application.

    Route handlers read their services from app.state: ``portfolio``
    (PortfolioService), ``metadata`` (TokenMetadataService) and
    ``reconciler`` (TransferReconciler). main.py wires them in its lifespan;
    tests assign them directly.

    Args:
        lifespan: Optional async context manager for application lifespan events.

    Returns:
        Configured FastAPI application with the JSON API mounted at /api/solana.
    """
    app = FastAPI(
        title="Vaultwatch Portfolio Dashboard",
        lifespan=lifespan,
    )

    app.state.portfolio = None
    app.state.metadata = None
    app.state.reconciler = None

    app.include_router(api.router, prefix="/api/solana")

    return app
