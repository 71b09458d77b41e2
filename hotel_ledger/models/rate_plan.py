"""Pydantic models for rate plans and price quotes."""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from hotel_ledger.models.money import format_amount, from_cents


class RateType(str, Enum):
    """How a plan's base rate is quoted."""

    NIGHTLY = "nightly"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def nights(self) -> int:
        """Number of nights the base rate covers."""
        return {RateType.NIGHTLY: 1, RateType.WEEKLY: 7, RateType.MONTHLY: 30}[self]


class SeasonType(str, Enum):
    STANDARD = "standard"
    PEAK = "peak"
    OFF_PEAK = "off-peak"
    HOLIDAY = "holiday"


class CancellationPolicy(str, Enum):
    """Refund schedules; see RateResolver.refund_percent."""

    FLEXIBLE = "flexible"
    MODERATE = "moderate"
    STRICT = "strict"


class StayRestrictions(BaseModel):
    """Restrictions attached to a rate plan."""

    weekend_surcharge: Decimal = Field(default=Decimal("0"), alias="weekendSurcharge", ge=0)
    minimum_occupancy: Optional[int] = Field(None, alias="minimumOccupancy", ge=1)
    maximum_occupancy: Optional[int] = Field(None, alias="maximumOccupancy", ge=1)
    blackout_dates: frozenset[date] = Field(default_factory=frozenset, alias="blackoutDates")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Discounts(BaseModel):
    """Percentage discounts; they stack additively and cap at 100%."""

    early_bird: Decimal = Field(default=Decimal("0"), alias="earlyBird", ge=0, le=100)
    last_minute: Decimal = Field(default=Decimal("0"), alias="lastMinute", ge=0, le=100)
    extended_stay: Decimal = Field(default=Decimal("0"), alias="extendedStay", ge=0, le=100)

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class RatePlan(BaseModel):
    """A pricing rule for one room, or for every room of a property when room_id is None."""

    rate_plan_id: str = Field(alias="ratePlanId")
    property_id: str = Field(alias="propertyId")
    room_id: Optional[str] = Field(None, alias="roomId")
    name: str = ""
    base_rate: Decimal = Field(alias="baseRate", ge=0)
    currency: str = "USD"
    rate_type: RateType = Field(default=RateType.NIGHTLY, alias="rateType")
    season_type: SeasonType = Field(default=SeasonType.STANDARD, alias="seasonType")
    valid_from: date = Field(alias="validFrom")
    valid_to: date = Field(alias="validTo")  # Inclusive
    minimum_stay: int = Field(default=1, alias="minimumStay", ge=1)
    maximum_stay: Optional[int] = Field(None, alias="maximumStay", ge=1)
    advance_booking_days: int = Field(default=0, alias="advanceBookingDays", ge=0)
    cancellation_policy: CancellationPolicy = Field(
        default=CancellationPolicy.FLEXIBLE, alias="cancellationPolicy"
    )
    restrictions: StayRestrictions = Field(default_factory=StayRestrictions)
    discounts: Discounts = Field(default_factory=Discounts)
    is_active: bool = Field(default=True, alias="isActive")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def is_property_wide(self) -> bool:
        return self.room_id is None

    def covers_stay(self, check_in: date, last_night: date) -> bool:
        """True if every night from check_in to last_night is inside the validity window."""
        return self.valid_from <= check_in and last_night <= self.valid_to

    def allows_length(self, nights: int) -> bool:
        if nights < self.minimum_stay:
            return False
        return self.maximum_stay is None or nights <= self.maximum_stay


class NightlyCharge(BaseModel):
    """Price of a single night, in cents."""

    date: date
    base_cents: int
    surcharge_cents: int = 0
    discount_cents: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def subtotal_cents(self) -> int:
        return self.base_cents + self.surcharge_cents

    @property
    def total_cents(self) -> int:
        return self.subtotal_cents - self.discount_cents


class PriceBreakdown(BaseModel):
    """Result of resolving a stay's price."""

    room_id: str
    rate_plan_id: Optional[str] = None  # None when priced from the room's base rate
    currency: str
    cancellation_policy: CancellationPolicy
    discount_percent: Decimal = Decimal("0")
    nightly: list[NightlyCharge]

    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def nights(self) -> int:
        return len(self.nightly)

    @property
    def subtotal_cents(self) -> int:
        return sum(night.subtotal_cents for night in self.nightly)

    @property
    def discount_cents(self) -> int:
        return sum(night.discount_cents for night in self.nightly)

    @property
    def total_cents(self) -> int:
        return sum(night.total_cents for night in self.nightly)

    @computed_field
    @property
    def total_amount(self) -> Decimal:
        return from_cents(self.total_cents)

    def display_total(self) -> str:
        return f"{format_amount(self.total_cents)} {self.currency}"

    def to_api_dict(self) -> dict:
        """Convert to the JSON shape served by the HTTP API."""
        return {
            "roomId": self.room_id,
            "ratePlanId": self.rate_plan_id,
            "currency": self.currency,
            "cancellationPolicy": self.cancellation_policy.value,
            "nights": self.nights,
            "subtotal": format_amount(self.subtotal_cents),
            "discountPercent": str(self.discount_percent),
            "discount": format_amount(self.discount_cents),
            "totalAmount": format_amount(self.total_cents),
            "nightly": [
                {
                    "date": night.date.isoformat(),
                    "base": format_amount(night.base_cents),
                    "surcharge": format_amount(night.surcharge_cents),
                    "discount": format_amount(night.discount_cents),
                    "total": format_amount(night.total_cents),
                }
                for night in self.nightly
            ],
        }
