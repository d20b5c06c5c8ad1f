"""Entry point for the vaultwatch dashboard backend.

Wires all components together and serves the FastAPI app through uvicorn's
programmatic API. The lifespan context manager opens the shared HTTP
clients on startup and closes them on shutdown.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. SolanaRpcClient (ledger data source)
4. TokenMetadataService (metadata/price enrichment)
5. PortfolioService (balances and holdings)
6. TransferReconciler (wallet/vault transfer ledger)
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from vaultwatch.config import AppSettings
from vaultwatch.dashboard.app import create_dashboard_app
from vaultwatch.ledger.solana_client import SolanaRpcClient
from vaultwatch.logging import get_logger, setup_logging
from vaultwatch.portfolio.holdings import PortfolioService
from vaultwatch.portfolio.metadata import TokenMetadataService
from vaultwatch.reconcile.reconciler import TransferReconciler


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Does NOT open any connection -- that happens in the lifespan.

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    ledger = SolanaRpcClient(settings.ledger)
    metadata = TokenMetadataService(settings.metadata)
    portfolio = PortfolioService(
        ledger,
        metadata,
        program_id=settings.reconcile.token_program_id,
    )
    reconciler = TransferReconciler(ledger, settings.reconcile)

    return {
        "ledger": ledger,
        "metadata": metadata,
        "portfolio": portfolio,
        "reconciler": reconciler,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open HTTP clients on startup, close them on shutdown."""
    logger = get_logger("vaultwatch.main")
    components = app.state.components

    app.state.portfolio = components["portfolio"]
    app.state.metadata = components["metadata"]
    app.state.reconciler = components["reconciler"]

    await components["ledger"].connect()
    await components["metadata"].connect()
    logger.info("lifespan_started")

    try:
        yield
    finally:
        await components["metadata"].close()
        await components["ledger"].close()
        logger.info("vaultwatch_stopped")


async def run() -> None:
    """Run the dashboard backend until the server is stopped."""
    settings = AppSettings()

    setup_logging(settings.log_level)
    logger = get_logger("vaultwatch.main")

    app = create_dashboard_app(lifespan=lifespan)
    app.state.settings = settings
    app.state.components = _build_components(settings)

    logger.info(
        "starting_dashboard",
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        asset_mint=settings.reconcile.asset_mint,
        page_size=settings.reconcile.signature_page_size,
    )

    config = uvicorn.Config(
        app,
        host=settings.dashboard.host,
        port=settings.dashboard.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
