"""Pydantic models for reservations."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hotel_ledger.models.dates import DateRange
from hotel_ledger.models.rate_plan import CancellationPolicy
from hotel_ledger.models.reservation_status import PaymentStatus, ReservationStatus


class ReservationSource(str, Enum):
    """Where a booking came from."""

    DIRECT = "direct"
    BOOKING_COM = "booking.com"
    EXPEDIA = "expedia"
    AGODA = "agoda"
    PHONE = "phone"
    WALK_IN = "walk-in"


class GuestInfo(BaseModel):
    """Guest contact details."""

    name: str = Field(alias="guestName")
    email: str = Field(alias="guestEmail")
    phone: str = Field(default="", alias="guestPhone")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Reservation(BaseModel):
    """A reservation of one room over a half-open ``[check_in, check_out)`` stay.

    Reservations are never deleted; cancelling is a status change.
    """

    reservation_id: str = Field(alias="reservationId")
    property_id: str = Field(alias="propertyId")
    room_id: str = Field(alias="roomId")
    rate_plan_id: Optional[str] = Field(None, alias="ratePlanId")
    group_id: Optional[str] = Field(None, alias="groupId")
    guest: GuestInfo
    check_in: date = Field(alias="checkIn")
    check_out: date = Field(alias="checkOut")  # Exclusive
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    total_amount: Decimal = Field(alias="totalAmount")
    currency: str = "USD"
    status: ReservationStatus = ReservationStatus.CONFIRMED
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING, alias="paymentStatus")
    cancellation_policy: CancellationPolicy = Field(
        default=CancellationPolicy.FLEXIBLE, alias="cancellationPolicy"
    )
    refund_amount: Decimal = Field(default=Decimal("0.00"), alias="refundAmount")
    source: ReservationSource = ReservationSource.DIRECT
    special_requests: str = Field(default="", alias="specialRequests")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    cancelled_at: Optional[datetime] = Field(None, alias="cancelledAt")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def occupancy(self) -> int:
        return self.adults + self.children

    @property
    def is_active(self) -> bool:
        """True while the reservation holds its calendar dates."""
        return self.status.holds_inventory

    def covers(self, day: date) -> bool:
        return self.check_in <= day < self.check_out

    def to_api_dict(self) -> dict:
        """Serialize with camelCase keys for the HTTP API."""
        data = self.model_dump(by_alias=True, mode="json", exclude={"guest"})
        data.update(self.guest.model_dump(by_alias=True))
        return data


class ReservationPatch(BaseModel):
    """Fields that may change on an existing reservation."""

    check_in: Optional[date] = Field(None, alias="checkIn")
    check_out: Optional[date] = Field(None, alias="checkOut")
    guest_name: Optional[str] = Field(None, alias="guestName")
    guest_email: Optional[str] = Field(None, alias="guestEmail")
    guest_phone: Optional[str] = Field(None, alias="guestPhone")
    adults: Optional[int] = Field(None, ge=1)
    children: Optional[int] = Field(None, ge=0)
    special_requests: Optional[str] = Field(None, alias="specialRequests")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def changes_guest(self) -> bool:
        return any(
            value is not None
            for value in (self.guest_name, self.guest_email, self.guest_phone)
        )


class ReservationFilters(BaseModel):
    """Filters for listing reservations."""

    status: Optional[ReservationStatus] = None
    room_id: Optional[str] = Field(None, alias="roomId")
    date_range: Optional[DateRange] = Field(None, alias="dateRange")  # Stays overlapping this range

    model_config = ConfigDict(populate_by_name=True)

    def matches(self, reservation: Reservation) -> bool:
        if self.status is not None and reservation.status != self.status:
            return False
        if self.room_id is not None and reservation.room_id != self.room_id:
            return False
        if self.date_range is not None and not self.date_range.overlaps(
            reservation.check_in, reservation.check_out
        ):
            return False
        return True


class GroupStay(BaseModel):
    """One room line of a group booking."""

    room_id: str = Field(alias="roomId")
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)

    model_config = ConfigDict(populate_by_name=True, frozen=True)
