"""Storage package."""

from hotel_ledger.store.catalog import load_catalog, load_catalog_data
from hotel_ledger.store.locks import RoomLocks
from hotel_ledger.store.memory_store import InventoryStore, StoreSnapshot, StoreTransaction

__all__ = [
    "InventoryStore",
    "StoreSnapshot",
    "StoreTransaction",
    "RoomLocks",
    "load_catalog",
    "load_catalog_data",
]
