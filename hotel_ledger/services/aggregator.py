"""Occupancy and revenue metrics derived from the ledger."""

from collections import defaultdict
from typing import Iterable, Optional

from structlog import get_logger

from hotel_ledger.models import (
    REVENUE_STATUSES,
    DateRange,
    DayStatus,
    OccupancyReport,
    Reservation,
    ReservationStatus,
    RevenueReport,
    SourceBreakdown,
    SourceRevenue,
)
from hotel_ledger.models.money import divide_cents, from_cents, to_cents
from hotel_ledger.store import InventoryStore, StoreSnapshot

logger = get_logger(__name__)


class OccupancyRevenueAggregator:
    """Read-only reporting over one store snapshot per call."""

    def __init__(self, store: InventoryStore):
        self.store = store

    def occupancy(self, property_id: str, date_range: DateRange) -> OccupancyReport:
        """Share of room-nights BOOKED over ``date_range``.

        Args:
            property_id: Property to report on
            date_range: Half-open range of nights

        Returns:
            Total and booked room-nights and their ratio

        Raises:
            NotFoundError: Unknown property
        """
        self.store.get_property(property_id)
        rooms = self.store.rooms_for_property(property_id)
        snapshot = self.store.snapshot()

        booked = sum(
            1
            for room in rooms
            for day in date_range.dates()
            if snapshot.day(room.room_id, day).status is DayStatus.BOOKED
        )
        total = len(rooms) * date_range.days

        logger.debug(
            "Occupancy computed",
            property_id=property_id,
            booked_room_nights=booked,
            total_room_nights=total,
        )
        return OccupancyReport(
            property_id=property_id,
            date_range=date_range,
            room_count=len(rooms),
            total_room_nights=total,
            booked_room_nights=booked,
            rate=booked / total if total else 0.0,
        )

    def revenue(
        self,
        property_id: str,
        date_range: DateRange,
        status_filter: Optional[Iterable[ReservationStatus]] = None,
    ) -> RevenueReport:
        """Revenue earned on nights inside ``date_range``.

        A stay that only partly overlaps the range contributes its total
        pro-rated by the share of its nights inside the range.

        Args:
            property_id: Property to report on
            date_range: Half-open range of nights
            status_filter: Statuses to count; defaults to confirmed,
                checked-in and checked-out

        Raises:
            NotFoundError: Unknown property
        """
        self.store.get_property(property_id)
        statuses = frozenset(status_filter) if status_filter is not None else REVENUE_STATUSES
        room_count = len(self.store.rooms_for_property(property_id))
        snapshot = self.store.snapshot()

        revenue_cents = 0
        booked_nights = 0
        booking_count = 0
        for reservation, nights, cents in self._in_range(snapshot, property_id, date_range, statuses):
            revenue_cents += cents
            booked_nights += nights
            booking_count += 1

        total_room_nights = room_count * date_range.days
        return RevenueReport(
            property_id=property_id,
            date_range=date_range,
            total_revenue=from_cents(revenue_cents),
            average_daily_rate=from_cents(divide_cents(revenue_cents, 1, booked_nights)),
            rev_par=from_cents(divide_cents(revenue_cents, 1, total_room_nights)),
            booking_count=booking_count,
            booked_room_nights=booked_nights,
        )

    def revenue_by_source(
        self,
        property_id: str,
        date_range: DateRange,
        status_filter: Optional[Iterable[ReservationStatus]] = None,
    ) -> SourceBreakdown:
        """Revenue inside ``date_range`` grouped by booking source, largest first."""
        self.store.get_property(property_id)
        statuses = frozenset(status_filter) if status_filter is not None else REVENUE_STATUSES
        snapshot = self.store.snapshot()

        counts: dict[str, int] = defaultdict(int)
        nights_by_source: dict[str, int] = defaultdict(int)
        cents_by_source: dict[str, int] = defaultdict(int)
        for reservation, nights, cents in self._in_range(snapshot, property_id, date_range, statuses):
            source = reservation.source.value
            counts[source] += 1
            nights_by_source[source] += nights
            cents_by_source[source] += cents

        sources = [
            SourceRevenue(
                source=source,
                booking_count=counts[source],
                room_nights=nights_by_source[source],
                revenue=from_cents(cents_by_source[source]),
            )
            for source in sorted(counts, key=lambda s: (-cents_by_source[s], s))
        ]
        return SourceBreakdown(property_id=property_id, date_range=date_range, sources=sources)

    @staticmethod
    def _in_range(
        snapshot: StoreSnapshot,
        property_id: str,
        date_range: DateRange,
        statuses: frozenset[ReservationStatus],
    ) -> Iterable[tuple[Reservation, int, int]]:
        """Yield (reservation, nights in range, pro-rated cents) for counted stays."""
        for reservation in snapshot.reservations_for_property(property_id):
            if reservation.status not in statuses:
                continue
            nights = date_range.overlap_nights(reservation.check_in, reservation.check_out)
            if nights == 0:
                continue
            cents = divide_cents(to_cents(reservation.total_amount), nights, reservation.nights)
            yield reservation, nights, cents
