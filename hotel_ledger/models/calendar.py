"""Pydantic models for the per-room availability calendar."""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DayStatus(str, Enum):
    """Availability tag of a room on one date."""

    OPEN = "OPEN"
    BOOKED = "BOOKED"
    BLOCKED = "BLOCKED"
    MAINTENANCE = "MAINTENANCE"


# Tags an operator may place on a date by hand
HOLD_TAGS = frozenset({DayStatus.BLOCKED, DayStatus.MAINTENANCE})


class CalendarDay(BaseModel):
    """State of ``(room_id, date)``.

    ``reservation_id`` is set exactly when the day is BOOKED. ``rate`` is only
    filled in for OPEN days when a price could be resolved.
    """

    room_id: str = Field(alias="roomId")
    day: date = Field(alias="date")
    status: DayStatus = DayStatus.OPEN
    reservation_id: Optional[str] = Field(None, alias="reservationId")
    rate: Optional[Decimal] = None
    note: str = ""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def is_open(self) -> bool:
        return self.status is DayStatus.OPEN

    @classmethod
    def open(cls, room_id: str, day: date) -> "CalendarDay":
        return cls(room_id=room_id, day=day)
