"""Rate plan selection, stay pricing and cancellation refund schedules."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional, Union

from structlog import get_logger

from hotel_ledger.config import settings
from hotel_ledger.errors import RateUnavailableError, ValidationError
from hotel_ledger.models import (
    CancellationPolicy,
    NightlyCharge,
    PriceBreakdown,
    Property,
    RatePlan,
    Room,
)
from hotel_ledger.models.dates import ensure_range, iter_dates
from hotel_ledger.models.money import (
    divide_cents,
    from_cents,
    percent_of,
    spread_cents,
    to_cents,
)
from hotel_ledger.store import InventoryStore

logger = get_logger(__name__)

Clock = Callable[[], datetime]

# (minimum notice before check-in, refund percent) checked in order; last value is the fallback
REFUND_SCHEDULE: dict[CancellationPolicy, tuple[tuple[tuple[timedelta, int], ...], int]] = {
    CancellationPolicy.FLEXIBLE: (((timedelta(hours=24), 100),), 0),
    CancellationPolicy.MODERATE: (((timedelta(days=5), 100),), 50),
    CancellationPolicy.STRICT: (((timedelta(days=14), 100),), 0),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def check_in_instant(check_in: date) -> datetime:
    """Moment a stay starts, for refund-window arithmetic."""
    return datetime.combine(
        check_in, time(hour=settings.ledger.check_in_hour), tzinfo=timezone.utc
    )


def refund_percent(
    policy: CancellationPolicy,
    check_in: date,
    cancelled_at: datetime,
) -> int:
    """Refund percentage owed when cancelling at ``cancelled_at``.

    - flexible: full refund at least 24 hours before check-in, none after
    - moderate: full refund at least 5 days before check-in, 50% after
    - strict: full refund at least 14 days before check-in, none after
    """
    thresholds, fallback = REFUND_SCHEDULE[policy]
    notice = check_in_instant(check_in) - cancelled_at
    for minimum_notice, percent in thresholds:
        if notice >= minimum_notice:
            return percent
    return fallback


@dataclass(frozen=True)
class PricingPolicy:
    """Property pricing policy with settings defaults filled in."""

    weekend_days: frozenset[int]
    early_bird_days: int
    last_minute_days: int
    extended_stay_nights: int

    @classmethod
    def for_property(cls, prop: Property) -> "PricingPolicy":
        defaults = settings.pricing
        return cls(
            weekend_days=frozenset(
                prop.weekend_days if prop.weekend_days is not None else defaults.weekend_days
            ),
            early_bird_days=(
                prop.early_bird_days
                if prop.early_bird_days is not None
                else defaults.early_bird_days
            ),
            last_minute_days=(
                prop.last_minute_days
                if prop.last_minute_days is not None
                else defaults.last_minute_days
            ),
            extended_stay_nights=(
                prop.extended_stay_nights
                if prop.extended_stay_nights is not None
                else defaults.extended_stay_nights
            ),
        )


class RateResolver:
    """Prices a stay from the rate plans of a room."""

    def __init__(self, store: InventoryStore, clock: Clock = utc_now):
        """Initialize the resolver.

        Args:
            store: Store holding rooms, properties and rate plans
            clock: Source of "now" for booking lead-time discounts
        """
        self.store = store
        self.clock = clock

    def resolve(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        occupancy: int,
        booked_at: Optional[Union[datetime, date]] = None,
    ) -> PriceBreakdown:
        """Price a stay of ``[check_in, check_out)`` for ``occupancy`` guests.

        Args:
            room_id: Room to price
            check_in: First night
            check_out: Departure date (not charged)
            occupancy: Total guests
            booked_at: When the booking is made; defaults to now

        Returns:
            Per-night price breakdown

        Raises:
            InvalidRangeError: If check_in is not before check_out
            NotFoundError: If the room or its property is unknown
            RateUnavailableError: If no rate plan qualifies, a night is
                blacked out, or occupancy is outside the plan's limits
        """
        ensure_range(check_in, check_out)
        if occupancy < 1:
            raise ValidationError("Occupancy must be at least 1")

        room = self.store.get_room(room_id)
        prop = self.store.get_property(room.property_id)
        nights = (check_out - check_in).days
        lead_days = (check_in - self._booking_day(booked_at)).days

        in_scope = [plan for plan in self.store.rate_plans_for_room(room) if plan.is_active]
        if not in_scope:
            if settings.ledger.fallback_to_room_rate:
                return self._price_from_room(room, prop, check_in, check_out)
            raise RateUnavailableError(f"No active rate plan for room {room_id}")

        last_night = check_out - timedelta(days=1)
        candidates = [
            plan
            for plan in in_scope
            if plan.covers_stay(check_in, last_night)
            and plan.allows_length(nights)
            and lead_days >= plan.advance_booking_days
        ]
        if not candidates:
            raise RateUnavailableError(
                f"No rate plan for room {room_id} qualifies for "
                f"{check_in.isoformat()}..{check_out.isoformat()} ({nights} nights)"
            )

        plan = self.select_plan(candidates)
        self._check_restrictions(plan, check_in, check_out, occupancy)

        breakdown = self._price_from_plan(room, prop, plan, check_in, check_out, lead_days)
        logger.debug(
            "Stay priced",
            property_id=room.property_id,
            room_id=room_id,
            rate_plan_id=plan.rate_plan_id,
            nights=nights,
            total_cents=breakdown.total_cents,
        )
        return breakdown

    @staticmethod
    def select_plan(candidates: list[RatePlan]) -> RatePlan:
        """Pick the most specific plan, then the cheapest per night, then by id."""
        return min(
            candidates,
            key=lambda plan: (
                plan.is_property_wide,
                plan.base_rate / plan.rate_type.nights,
                plan.rate_plan_id,
            ),
        )

    def nightly_rate(self, room_id: str, day: date) -> Optional[Decimal]:
        """Undiscounted price of one night, or None if no plan prices it."""
        room = self.store.get_room(room_id)
        prop = self.store.get_property(room.property_id)
        in_scope = [plan for plan in self.store.rate_plans_for_room(room) if plan.is_active]
        if not in_scope:
            if settings.ledger.fallback_to_room_rate:
                return room.base_rate
            return None

        candidates = [
            plan
            for plan in in_scope
            if plan.covers_stay(day, day) and day not in plan.restrictions.blackout_dates
        ]
        if not candidates:
            return None

        plan = self.select_plan(candidates)
        base_cents = divide_cents(to_cents(plan.base_rate), 1, plan.rate_type.nights)
        night = self._night_charge(
            plan, PricingPolicy.for_property(prop), day, base_cents, Decimal("0")
        )
        return from_cents(night.total_cents)

    def _booking_day(self, booked_at: Optional[Union[datetime, date]]) -> date:
        moment = booked_at if booked_at is not None else self.clock()
        return moment.date() if isinstance(moment, datetime) else moment

    @staticmethod
    def _check_restrictions(
        plan: RatePlan,
        check_in: date,
        check_out: date,
        occupancy: int,
    ) -> None:
        restrictions = plan.restrictions
        blacked_out = [
            day for day in iter_dates(check_in, check_out)
            if day in restrictions.blackout_dates
        ]
        if blacked_out:
            raise RateUnavailableError(
                f"Rate plan {plan.rate_plan_id} is not bookable on "
                f"{', '.join(day.isoformat() for day in blacked_out)}"
            )
        if restrictions.minimum_occupancy is not None and occupancy < restrictions.minimum_occupancy:
            raise RateUnavailableError(
                f"Rate plan {plan.rate_plan_id} requires at least "
                f"{restrictions.minimum_occupancy} guests"
            )
        if restrictions.maximum_occupancy is not None and occupancy > restrictions.maximum_occupancy:
            raise RateUnavailableError(
                f"Rate plan {plan.rate_plan_id} allows at most "
                f"{restrictions.maximum_occupancy} guests"
            )

    @staticmethod
    def discount_percent(
        plan: RatePlan,
        policy: PricingPolicy,
        nights: int,
        lead_days: int,
    ) -> Decimal:
        """Combined early-bird, last-minute and extended-stay percentage, capped at 100."""
        discounts = plan.discounts
        total = Decimal("0")
        if lead_days >= policy.early_bird_days:
            total += discounts.early_bird
        if 0 <= lead_days <= policy.last_minute_days:
            total += discounts.last_minute
        if nights > policy.extended_stay_nights:
            total += discounts.extended_stay
        return min(total, Decimal("100"))

    @staticmethod
    def _night_charge(
        plan: RatePlan,
        policy: PricingPolicy,
        day: date,
        base_cents: int,
        discount: Decimal,
    ) -> NightlyCharge:
        surcharge_cents = 0
        if day.weekday() in policy.weekend_days:
            surcharge_cents = to_cents(plan.restrictions.weekend_surcharge)
        return NightlyCharge(
            date=day,
            base_cents=base_cents,
            surcharge_cents=surcharge_cents,
            discount_cents=percent_of(base_cents + surcharge_cents, discount),
        )

    def _price_from_plan(
        self,
        room: Room,
        prop: Property,
        plan: RatePlan,
        check_in: date,
        check_out: date,
        lead_days: int,
    ) -> PriceBreakdown:
        policy = PricingPolicy.for_property(prop)
        nights = (check_out - check_in).days
        discount = self.discount_percent(plan, policy, nights, lead_days)
        # Weekly and monthly rates are spread so every whole period costs exactly the rate
        base_cents = spread_cents(to_cents(plan.base_rate), plan.rate_type.nights, nights)
        return PriceBreakdown(
            room_id=room.room_id,
            rate_plan_id=plan.rate_plan_id,
            currency=plan.currency,
            cancellation_policy=plan.cancellation_policy,
            discount_percent=discount,
            nightly=[
                self._night_charge(plan, policy, day, night_base, discount)
                for day, night_base in zip(iter_dates(check_in, check_out), base_cents)
            ],
        )

    @staticmethod
    def _price_from_room(
        room: Room,
        prop: Property,
        check_in: date,
        check_out: date,
    ) -> PriceBreakdown:
        base_cents = to_cents(room.base_rate)
        return PriceBreakdown(
            room_id=room.room_id,
            rate_plan_id=None,
            currency=prop.currency or settings.ledger.default_currency,
            cancellation_policy=CancellationPolicy.FLEXIBLE,
            nightly=[
                NightlyCharge(date=day, base_cents=base_cents)
                for day in iter_dates(check_in, check_out)
            ],
        )
