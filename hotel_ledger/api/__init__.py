"""HTTP API package."""

from hotel_ledger.api.app import build_store, create_app

__all__ = ["create_app", "build_store"]
