import json
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from hotel_ledger.models import DayStatus, GuestInfo
from hotel_ledger.models.dates import iter_dates
from hotel_ledger.services import OccupancyRevenueAggregator, ReservationLedger
from hotel_ledger.store import InventoryStore, load_catalog_data


FIXTURES_DIR = Path(__file__).parent / "fixtures"


class FixedClock:
    """Controllable clock for lead-time and refund arithmetic."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def catalog_data():
    """Load the property/room/rate plan catalog from fixture."""
    with open(FIXTURES_DIR / "catalog.json") as f:
        return json.load(f)


@pytest.fixture
def store(catalog_data):
    """Fresh store seeded with the catalog fixture."""
    store = InventoryStore(lock_timeout_seconds=0.2)
    load_catalog_data(store, catalog_data)
    return store


@pytest.fixture
def clock():
    """Clock frozen at 2024-05-01 12:00 UTC."""
    return FixedClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def ledger(store, clock):
    return ReservationLedger(store, clock=clock)


@pytest.fixture
def aggregator(store):
    return OccupancyRevenueAggregator(store)


@pytest.fixture
def guest():
    return GuestInfo(name="Ada Lovelace", email="ada@example.com", phone="+44 20 0000 0000")


@pytest.fixture
def guest2():
    return GuestInfo(name="Alan Turing", email="alan@example.com")


@pytest.fixture
def calendar_invariant(store):
    """Return a checker: each day is BOOKED iff exactly one live reservation covers it."""

    def check(room_ids, start: date, end: date) -> None:
        reservations = list(store.snapshot().all_reservations())
        for room_id in room_ids:
            for day in iter_dates(start, end):
                covering = [
                    r for r in reservations
                    if r.room_id == room_id and r.is_active and r.covers(day)
                ]
                entry = store.get_day(room_id, day)
                assert len(covering) <= 1, f"{room_id} double-booked on {day}"
                if covering:
                    assert entry.status is DayStatus.BOOKED, f"{room_id} {day} should be BOOKED"
                    assert entry.reservation_id == covering[0].reservation_id
                else:
                    assert entry.status is not DayStatus.BOOKED, f"{room_id} {day} should not be BOOKED"

    return check
