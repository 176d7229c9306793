"""REST API module for the marketplace.

This module provides HTTP endpoints for:
- Registering and looking up artisans
- Listing, updating and removing products
- Buying products through the configured wallet
- Reading provenance, collectibles and notifications
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from market import Market
from store.exceptions import SnapshotError

logger = logging.getLogger(__name__)

# Lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    market: Market = app.state.market
    persist: bool = app.state.persist
    snapshot_path = Path(market.settings['snapshot_path'])

    # Startup
    logger.info("Initializing API...")
    if persist and snapshot_path.exists():
        try:
            await market.load_snapshot(snapshot_path)
        except SnapshotError as e:
            logger.error(f"Ignoring unreadable snapshot: {e}")

    if market.state.is_empty() and market.settings['seed_demo_data']:
        market.seed_demo_data()

    yield

    # Shutdown
    logger.info("Shutting down API...")
    if persist:
        try:
            await market.save_snapshot(snapshot_path)
        except SnapshotError as e:
            logger.error(f"Failed to save snapshot on shutdown: {e}")

def create_app(market: Optional[Market] = None, persist: bool = True) -> FastAPI:
    """Create the API application.

    Args:
        market: Market to serve. If not provided, one is built from settings.
        persist: Load the snapshot on start-up and save it on shutdown
    """
    app = FastAPI(
        title="Artisan Market API",
        description="REST API for the artisan marketplace",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.market = market or Market.new()
    app.state.persist = persist

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, replace with specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Import and include all routers
    from .artisans import router as artisans_router
    from .collectibles import router as collectibles_router
    from .notifications import router as notifications_router
    from .products import router as products_router

    app.include_router(artisans_router)
    app.include_router(products_router)
    app.include_router(collectibles_router)
    app.include_router(notifications_router)

    return app

app = create_app()
