"""Request bodies accepted by the HTTP API."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from hotel_ledger.models import DayStatus, GroupStay, GuestInfo, ReservationSource


class GuestFields(BaseModel):
    guest_name: str = Field(alias="guestName", min_length=1)
    guest_email: str = Field(alias="guestEmail", min_length=3)
    guest_phone: str = Field(default="", alias="guestPhone")

    model_config = ConfigDict(populate_by_name=True)

    def to_guest(self) -> GuestInfo:
        return GuestInfo(name=self.guest_name, email=self.guest_email, phone=self.guest_phone)


class CreateReservationRequest(GuestFields):
    """Body of POST /reservations."""

    property_id: str = Field(alias="propertyId")
    room_id: str = Field(alias="roomId")
    check_in: date = Field(alias="checkIn")
    check_out: date = Field(alias="checkOut")
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    source: ReservationSource = ReservationSource.DIRECT
    special_requests: str = Field(default="", alias="specialRequests")
    confirm: bool = True


class GroupReservationRequest(GuestFields):
    """Body of POST /reservations/group."""

    property_id: str = Field(alias="propertyId")
    check_in: date = Field(alias="checkIn")
    check_out: date = Field(alias="checkOut")
    rooms: list[GroupStay] = Field(min_length=1)
    source: ReservationSource = ReservationSource.DIRECT
    special_requests: str = Field(default="", alias="specialRequests")
    confirm: bool = True


class BlockDatesRequest(BaseModel):
    """Body of POST /rooms/{room_id}/blocks."""

    start: date
    end: date
    tag: DayStatus = DayStatus.BLOCKED
    note: str = ""
