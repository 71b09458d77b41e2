"""Tests for occupancy and revenue reporting."""

from datetime import date
from decimal import Decimal

import pytest

from hotel_ledger.errors import InvalidRangeError, NotFoundError
from hotel_ledger.models import DateRange, Property, ReservationSource, ReservationStatus


def june(start_day: int, end_day: int) -> DateRange:
    return DateRange(start=date(2024, 6, start_day), end=date(2024, 6, end_day))


class TestOccupancy:
    """Tests for occupancy()."""

    def test_occupancy_scenario(self, ledger, aggregator, guest):
        """Test 3 booked nights on one of two rooms over 5 days gives 0.3."""
        ledger.create_reservation("P1", "R1", date(2024, 6, 2), date(2024, 6, 5), guest, 2)

        report = aggregator.occupancy("P1", june(1, 6))

        assert report.room_count == 2
        assert report.total_room_nights == 10
        assert report.booked_room_nights == 3
        assert report.rate == pytest.approx(0.3)

    def test_cancelled_and_blocked_nights_are_not_booked(self, ledger, aggregator, guest):
        reservation = ledger.create_reservation(
            "P1", "R1", date(2024, 6, 2), date(2024, 6, 5), guest, 2
        )
        ledger.cancel_reservation(reservation.reservation_id)
        ledger.block_dates("R2", date(2024, 6, 1), date(2024, 6, 3))

        report = aggregator.occupancy("P1", june(1, 6))

        assert report.booked_room_nights == 0
        assert report.rate == 0.0

    def test_pending_stays_count_towards_occupancy(self, ledger, aggregator, guest):
        ledger.create_reservation(
            "P1", "R2", date(2024, 6, 1), date(2024, 6, 3), guest, 1, confirm=False
        )

        assert aggregator.occupancy("P1", june(1, 6)).booked_room_nights == 2

    def test_property_without_rooms(self, store, aggregator):
        store.add_property(Property(property_id="P3", name="Empty Annex"))

        report = aggregator.occupancy("P3", june(1, 6))

        assert report.total_room_nights == 0
        assert report.rate == 0.0

    def test_unknown_property(self, aggregator):
        with pytest.raises(NotFoundError):
            aggregator.occupancy("P9", june(1, 6))

    def test_empty_range_is_rejected(self):
        with pytest.raises(InvalidRangeError):
            june(5, 5)

    def test_report_api_shape(self, ledger, aggregator, guest):
        ledger.create_reservation("P1", "R1", date(2024, 6, 2), date(2024, 6, 5), guest, 2)

        data = aggregator.occupancy("P1", june(1, 6)).model_dump(by_alias=True, mode="json")

        assert data["totalRoomNights"] == 10
        assert data["bookedRoomNights"] == 3
        assert data["dateRange"] == {"start": "2024-06-01", "end": "2024-06-06"}


class TestRevenue:
    """Tests for revenue() and revenue_by_source()."""

    def test_partial_overlap_is_pro_rated(self, ledger, aggregator, guest):
        """Test a 300 stay with 2 of its 3 nights in range contributes 200."""
        ledger.create_reservation("P1", "R1", date(2024, 6, 1), date(2024, 6, 4), guest, 2)

        report = aggregator.revenue("P1", june(2, 10))

        assert report.total_revenue == Decimal("200.00")
        assert report.booked_room_nights == 2
        assert report.booking_count == 1
        assert report.average_daily_rate == Decimal("100.00")
        # 2 rooms x 8 nights
        assert report.rev_par == Decimal("12.50")

    def test_stays_outside_range_are_ignored(self, ledger, aggregator, guest):
        ledger.create_reservation("P1", "R1", date(2024, 6, 1), date(2024, 6, 4), guest, 2)

        report = aggregator.revenue("P1", june(4, 10))

        assert report.total_revenue == Decimal("0.00")
        assert report.average_daily_rate == Decimal("0.00")
        assert report.booking_count == 0

    def test_default_statuses_exclude_pending_and_cancelled(self, ledger, aggregator, guest):
        ledger.create_reservation(
            "P1", "R1", date(2024, 6, 1), date(2024, 6, 3), guest, 1, confirm=False
        )
        cancelled = ledger.create_reservation(
            "P1", "R2", date(2024, 6, 1), date(2024, 6, 3), guest, 1
        )
        ledger.cancel_reservation(cancelled.reservation_id)
        checked_out = ledger.create_reservation(
            "P1", "R2", date(2024, 6, 5), date(2024, 6, 6), guest, 1
        )
        ledger.check_in(checked_out.reservation_id)
        ledger.check_out(checked_out.reservation_id)

        report = aggregator.revenue("P1", june(1, 10))

        assert report.total_revenue == Decimal("180.00")
        assert report.booking_count == 1

    def test_status_filter(self, ledger, aggregator, guest):
        ledger.create_reservation(
            "P1", "R1", date(2024, 6, 1), date(2024, 6, 3), guest, 1, confirm=False
        )
        ledger.create_reservation("P1", "R2", date(2024, 6, 1), date(2024, 6, 2), guest, 1)

        pending_only = aggregator.revenue("P1", june(1, 10), [ReservationStatus.PENDING])

        assert pending_only.total_revenue == Decimal("200.00")
        assert pending_only.booking_count == 1

    def test_revenue_for_property_without_rooms(self, store, aggregator):
        store.add_property(Property(property_id="P3"))

        report = aggregator.revenue("P3", june(1, 6))

        assert report.total_revenue == Decimal("0.00")
        assert report.rev_par == Decimal("0.00")

    def test_revenue_unknown_property(self, aggregator):
        with pytest.raises(NotFoundError):
            aggregator.revenue("P9", june(1, 6))

    def test_revenue_by_source(self, ledger, aggregator, guest, guest2):
        ledger.create_reservation("P1", "R1", date(2024, 6, 1), date(2024, 6, 4), guest, 2)
        ledger.create_reservation(
            "P1",
            "R2",
            date(2024, 6, 1),
            date(2024, 6, 3),
            guest2,
            2,
            source=ReservationSource.BOOKING_COM,
        )

        breakdown = aggregator.revenue_by_source("P1", june(1, 10))

        assert [entry.source for entry in breakdown.sources] == ["booking.com", "direct"]
        assert breakdown.sources[0].revenue == Decimal("360.00")
        assert breakdown.sources[0].room_nights == 2
        assert breakdown.sources[1].revenue == Decimal("300.00")
        assert breakdown.sources[1].booking_count == 1
