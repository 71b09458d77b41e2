"""Business services package."""

from hotel_ledger.services.aggregator import OccupancyRevenueAggregator
from hotel_ledger.services.calendar_index import CalendarIndex
from hotel_ledger.services.rate_resolver import (
    PricingPolicy,
    RateResolver,
    check_in_instant,
    refund_percent,
)
from hotel_ledger.services.reservation_ledger import (
    ReservationLedger,
    ReservationQuery,
    RoomOffer,
)

__all__ = [
    "CalendarIndex",
    "RateResolver",
    "PricingPolicy",
    "refund_percent",
    "check_in_instant",
    "ReservationLedger",
    "ReservationQuery",
    "RoomOffer",
    "OccupancyRevenueAggregator",
]
