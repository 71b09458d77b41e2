"""Pydantic models for occupancy and revenue reports."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from hotel_ledger.models.dates import DateRange


class OccupancyReport(BaseModel):
    """Room-night occupancy of a property over a date range."""

    property_id: str = Field(alias="propertyId")
    date_range: DateRange = Field(alias="dateRange")
    room_count: int = Field(alias="roomCount")
    total_room_nights: int = Field(alias="totalRoomNights")
    booked_room_nights: int = Field(alias="bookedRoomNights")
    rate: float  # booked / total, 0 when the property has no rooms

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class RevenueReport(BaseModel):
    """Revenue, ADR and RevPAR of a property over a date range."""

    property_id: str = Field(alias="propertyId")
    date_range: DateRange = Field(alias="dateRange")
    total_revenue: Decimal = Field(alias="totalRevenue")
    average_daily_rate: Decimal = Field(alias="averageDailyRate")
    rev_par: Decimal = Field(alias="revPar")
    booking_count: int = Field(alias="bookingCount")
    booked_room_nights: int = Field(alias="bookedRoomNights")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class SourceRevenue(BaseModel):
    """Revenue attributed to one booking source."""

    source: str
    booking_count: int = Field(alias="bookingCount")
    room_nights: int = Field(alias="roomNights")
    revenue: Decimal

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class SourceBreakdown(BaseModel):
    """Revenue split by booking source."""

    property_id: str = Field(alias="propertyId")
    date_range: DateRange = Field(alias="dateRange")
    sources: list[SourceRevenue] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, frozen=True)
