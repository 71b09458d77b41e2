"""Pydantic models for properties and rooms.

These records are owned by property management; the ledger only reads them.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RoomType(str, Enum):
    """Room categories offered by a property."""

    SINGLE = "single"
    DOUBLE = "double"
    SUITE = "suite"
    DELUXE = "deluxe"
    PRESIDENTIAL = "presidential"


class Property(BaseModel):
    """A hotel property and its pricing policy overrides.

    Policy fields left as None fall back to the PricingSettings defaults.
    """

    property_id: str = Field(alias="propertyId")
    name: str = ""
    currency: Optional[str] = None
    weekend_days: Optional[list[int]] = Field(None, alias="weekendDays")  # date.weekday() of weekend nights
    early_bird_days: Optional[int] = Field(None, alias="earlyBirdDays")
    last_minute_days: Optional[int] = Field(None, alias="lastMinuteDays")
    extended_stay_nights: Optional[int] = Field(None, alias="extendedStayNights")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Room(BaseModel):
    """A bookable room."""

    room_id: str = Field(alias="roomId")
    property_id: str = Field(alias="propertyId")
    room_number: str = Field(default="", alias="roomNumber")
    room_type: RoomType = Field(default=RoomType.DOUBLE, alias="roomType")
    capacity: int = Field(default=2, ge=1)
    base_rate: Decimal = Field(alias="baseRate", ge=0)
    floor: int = 0
    size: int = 0  # Square feet
    description: str = ""
    amenities: list[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, frozen=True)
