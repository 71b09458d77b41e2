"""Domain models for the inventory and reservation ledger."""

from hotel_ledger.models.calendar import HOLD_TAGS, CalendarDay, DayStatus
from hotel_ledger.models.dates import DateRange
from hotel_ledger.models.property import Property, Room, RoomType
from hotel_ledger.models.rate_plan import (
    CancellationPolicy,
    Discounts,
    NightlyCharge,
    PriceBreakdown,
    RatePlan,
    RateType,
    SeasonType,
    StayRestrictions,
)
from hotel_ledger.models.reports import (
    OccupancyReport,
    RevenueReport,
    SourceBreakdown,
    SourceRevenue,
)
from hotel_ledger.models.reservation import (
    GroupStay,
    GuestInfo,
    Reservation,
    ReservationFilters,
    ReservationPatch,
    ReservationSource,
)
from hotel_ledger.models.reservation_status import (
    REVENUE_STATUSES,
    PaymentStatus,
    ReservationStatus,
    ReservationStatusMachine,
)

__all__ = [
    "CalendarDay",
    "DayStatus",
    "HOLD_TAGS",
    "DateRange",
    "Property",
    "Room",
    "RoomType",
    "CancellationPolicy",
    "Discounts",
    "NightlyCharge",
    "PriceBreakdown",
    "RatePlan",
    "RateType",
    "SeasonType",
    "StayRestrictions",
    "OccupancyReport",
    "RevenueReport",
    "SourceBreakdown",
    "SourceRevenue",
    "GroupStay",
    "GuestInfo",
    "Reservation",
    "ReservationFilters",
    "ReservationPatch",
    "ReservationSource",
    "REVENUE_STATUSES",
    "PaymentStatus",
    "ReservationStatus",
    "ReservationStatusMachine",
]
