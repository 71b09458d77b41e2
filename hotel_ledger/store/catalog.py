"""Seed the store with properties, rooms and rate plans from a JSON catalog."""

import json
from pathlib import Path
from typing import Any

from structlog import get_logger

from hotel_ledger.models import Property, RatePlan, Room
from hotel_ledger.store.memory_store import InventoryStore

logger = get_logger(__name__)


def load_catalog_data(store: InventoryStore, data: dict[str, Any]) -> dict[str, int]:
    """Register every property, room and rate plan in ``data``.

    The document uses camelCase keys::

        {"properties": [...], "rooms": [...], "ratePlans": [...]}

    Properties are registered first, then rooms, then rate plans, so a plan
    may reference a room from the same document.

    Args:
        store: Store to seed
        data: Parsed catalog document

    Returns:
        Count of records loaded per kind
    """
    properties = [Property(**item) for item in data.get("properties", [])]
    rooms = [Room(**item) for item in data.get("rooms", [])]
    rate_plans = [RatePlan(**item) for item in data.get("ratePlans", [])]

    for prop in properties:
        store.add_property(prop)
    for room in rooms:
        store.add_room(room)
    for plan in rate_plans:
        store.add_rate_plan(plan)

    counts = {
        "properties": len(properties),
        "rooms": len(rooms),
        "rate_plans": len(rate_plans),
    }
    logger.info("Catalog loaded", **counts)
    return counts


def load_catalog(store: InventoryStore, path: str | Path) -> dict[str, int]:
    """Load a catalog JSON file into ``store``.

    Args:
        store: Store to seed
        path: Path of the JSON catalog

    Returns:
        Count of records loaded per kind
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    logger.info("Loading catalog", path=str(path))
    return load_catalog_data(store, data)
