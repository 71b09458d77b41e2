"""FastAPI application factory."""

from typing import Optional

from fastapi import FastAPI
from structlog import get_logger

from hotel_ledger.api.errors import ledger_error_handler
from hotel_ledger.api.routes import router
from hotel_ledger.config import settings
from hotel_ledger.errors import LedgerError
from hotel_ledger.services import OccupancyRevenueAggregator, ReservationLedger
from hotel_ledger.store import InventoryStore, load_catalog

logger = get_logger(__name__)


def build_store() -> InventoryStore:
    """Create a store, seeded from the configured catalog file when one is set."""
    store = InventoryStore()
    if settings.api.catalog_path:
        load_catalog(store, settings.api.catalog_path)
    return store


def create_app(
    store: Optional[InventoryStore] = None,
    ledger: Optional[ReservationLedger] = None,
) -> FastAPI:
    """Build the HTTP application around one store.

    Args:
        store: Store to serve; built from settings when omitted
        ledger: Ledger to serve; built over ``store`` when omitted

    Returns:
        Configured FastAPI application
    """
    if ledger is not None:
        store = ledger.store
    elif store is None:
        store = build_store()

    app = FastAPI(title="Hotel Inventory & Reservation Ledger", debug=settings.debug)
    app.state.store = store
    app.state.ledger = ledger or ReservationLedger(store)
    app.state.aggregator = OccupancyRevenueAggregator(store)

    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.include_router(router)

    logger.info("Application created", environment=settings.environment)
    return app
