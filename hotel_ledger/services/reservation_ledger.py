"""Reservation ledger: the only writer of reservations and calendar days."""

import uuid
from datetime import date, datetime
from typing import Iterator, NamedTuple, Optional

from structlog import get_logger

from hotel_ledger.errors import (
    ConflictError,
    InvalidStateError,
    LedgerError,
    ValidationError,
)
from hotel_ledger.models import (
    HOLD_TAGS,
    CalendarDay,
    DayStatus,
    GroupStay,
    GuestInfo,
    PaymentStatus,
    PriceBreakdown,
    Reservation,
    ReservationFilters,
    ReservationPatch,
    ReservationSource,
    ReservationStatus,
    ReservationStatusMachine,
    Room,
)
from hotel_ledger.models.dates import ensure_range
from hotel_ledger.models.money import from_cents, percent_of, to_cents
from hotel_ledger.services.calendar_index import CalendarIndex
from hotel_ledger.services.rate_resolver import Clock, RateResolver, refund_percent, utc_now
from hotel_ledger.store import InventoryStore, StoreTransaction

logger = get_logger(__name__)

# Date and occupancy changes are only accepted before the guest arrives
AMENDABLE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


class RoomOffer(NamedTuple):
    """A room free for a requested stay, with its price."""

    room: Room
    quote: PriceBreakdown


class ReservationQuery:
    """Re-iterable listing of a property's reservations.

    Each iteration reads a fresh store snapshot, so it is restartable and
    never a live cursor over changing state.
    """

    def __init__(
        self,
        store: InventoryStore,
        property_id: str,
        filters: ReservationFilters,
    ):
        self.store = store
        self.property_id = property_id
        self.filters = filters

    def __iter__(self) -> Iterator[Reservation]:
        snapshot = self.store.snapshot()
        for reservation in snapshot.reservations_for_property(self.property_id):
            if self.filters.matches(reservation):
                yield reservation


class ReservationLedger:
    """Owns reservations and keeps the calendar consistent with them.

    Each mutation holds the lock of every room it touches across the whole
    check, price and write sequence, and stages its reservation and calendar
    writes in one store transaction: either all of them commit or none do.
    For every room and date, the day is BOOKED exactly when one
    non-cancelled reservation covers it.
    """

    def __init__(
        self,
        store: InventoryStore,
        calendar: Optional[CalendarIndex] = None,
        resolver: Optional[RateResolver] = None,
        clock: Clock = utc_now,
    ):
        """Initialize the ledger.

        Args:
            store: Store holding reservations, calendar and reference data
            calendar: Calendar index; built over ``store`` when omitted
            resolver: Rate resolver; built over ``store`` when omitted
            clock: Source of "now" for timestamps, lead times and refunds
        """
        self.store = store
        self.clock = clock
        self.calendar = calendar or CalendarIndex(store)
        self.resolver = resolver or RateResolver(store, clock=clock)

    # Booking

    def create_reservation(
        self,
        property_id: str,
        room_id: str,
        check_in: date,
        check_out: date,
        guest: GuestInfo,
        occupancy: int,
        *,
        children: int = 0,
        source: ReservationSource = ReservationSource.DIRECT,
        special_requests: str = "",
        confirm: bool = True,
    ) -> Reservation:
        """Book ``room_id`` over ``[check_in, check_out)``.

        Args:
            property_id: Property the room belongs to
            room_id: Room to book
            check_in: Arrival date
            check_out: Departure date, left free for the next arrival
            guest: Guest contact details
            occupancy: Total guests, children included
            children: How many of the guests are children
            source: Booking channel
            special_requests: Free text from the guest
            confirm: Book as confirmed; False holds it as pending

        Returns:
            The new reservation

        Raises:
            ValidationError: Bad guest details, dates or occupancy
            NotFoundError: Unknown property or room
            ConflictError: A date in the stay is not free
            RateUnavailableError: No rate plan prices the stay
            BusyError: The room lock could not be taken in time
        """
        room = self._validate_booking(
            property_id, room_id, check_in, check_out, guest, occupancy, children
        )
        status = ReservationStatus.CONFIRMED if confirm else ReservationStatus.PENDING

        try:
            with self.store.room_locks.hold([room_id]):
                with self.store.transaction() as txn:
                    reservation = self._book(
                        txn,
                        room,
                        check_in,
                        check_out,
                        guest,
                        occupancy,
                        children,
                        source,
                        special_requests,
                        status,
                        group_id=None,
                    )
        except LedgerError as e:
            logger.warning(
                "Reservation rejected",
                property_id=property_id,
                room_id=room_id,
                check_in=check_in.isoformat(),
                check_out=check_out.isoformat(),
                error=e.code,
                reason=e.message,
            )
            raise

        logger.info(
            "Reservation created",
            property_id=property_id,
            room_id=room_id,
            reservation_id=reservation.reservation_id,
            nights=reservation.nights,
            total_amount=str(reservation.total_amount),
        )
        return reservation

    def create_group_reservation(
        self,
        property_id: str,
        stays: list[GroupStay],
        check_in: date,
        check_out: date,
        guest: GuestInfo,
        *,
        source: ReservationSource = ReservationSource.DIRECT,
        special_requests: str = "",
        confirm: bool = True,
    ) -> list[Reservation]:
        """Book several rooms for the same dates, all or nothing.

        Every room is locked (in sorted order) before any is checked; if one
        room conflicts or cannot be priced, nothing is booked.

        Returns:
            One reservation per stay, sharing a group id
        """
        if not stays:
            raise ValidationError("A group booking needs at least one room")
        room_ids = [stay.room_id for stay in stays]
        if len(set(room_ids)) != len(room_ids):
            raise ValidationError("A room may appear only once in a group booking")

        rooms = [
            self._validate_booking(
                property_id,
                stay.room_id,
                check_in,
                check_out,
                guest,
                stay.adults + stay.children,
                stay.children,
            )
            for stay in stays
        ]
        status = ReservationStatus.CONFIRMED if confirm else ReservationStatus.PENDING
        group_id = str(uuid.uuid4())

        try:
            with self.store.room_locks.hold(room_ids):
                with self.store.transaction() as txn:
                    reservations = [
                        self._book(
                            txn,
                            room,
                            check_in,
                            check_out,
                            guest,
                            stay.adults + stay.children,
                            stay.children,
                            source,
                            special_requests,
                            status,
                            group_id=group_id,
                        )
                        for room, stay in zip(rooms, stays)
                    ]
        except LedgerError as e:
            logger.warning(
                "Group reservation rejected",
                property_id=property_id,
                room_ids=room_ids,
                error=e.code,
                reason=e.message,
            )
            raise

        logger.info(
            "Group reservation created",
            property_id=property_id,
            group_id=group_id,
            room_count=len(reservations),
        )
        return reservations

    def _book(
        self,
        txn: StoreTransaction,
        room: Room,
        check_in: date,
        check_out: date,
        guest: GuestInfo,
        occupancy: int,
        children: int,
        source: ReservationSource,
        special_requests: str,
        status: ReservationStatus,
        group_id: Optional[str],
    ) -> Reservation:
        blocking = self.calendar.blocking_days(room.room_id, check_in, check_out, txn=txn)
        if blocking:
            raise ConflictError(
                f"Room {room.room_id} is already taken on "
                f"{', '.join(entry.day.isoformat() for entry in blocking)}"
            )

        now = self.clock()
        quote = self.resolver.resolve(
            room.room_id, check_in, check_out, occupancy, booked_at=now
        )
        reservation = Reservation(
            reservation_id=str(uuid.uuid4()),
            property_id=room.property_id,
            room_id=room.room_id,
            rate_plan_id=quote.rate_plan_id,
            group_id=group_id,
            guest=guest,
            check_in=check_in,
            check_out=check_out,
            adults=occupancy - children,
            children=children,
            total_amount=quote.total_amount,
            currency=quote.currency,
            status=status,
            payment_status=PaymentStatus.PENDING,
            cancellation_policy=quote.cancellation_policy,
            source=source,
            special_requests=special_requests,
            created_at=now,
            updated_at=now,
        )
        txn.put_reservation(reservation)
        self.calendar.mark_range(
            room.room_id,
            check_in,
            check_out,
            DayStatus.BOOKED,
            reservation_id=reservation.reservation_id,
            txn=txn,
        )
        return reservation

    def quote(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        occupancy: int,
    ) -> PriceBreakdown:
        """Price a stay without booking it."""
        room = self.store.get_room(room_id)
        self._validate_occupancy(room, occupancy, 0)
        return self.resolver.resolve(room_id, check_in, check_out, occupancy)

    # Amendments

    def update_reservation(self, reservation_id: str, patch: ReservationPatch) -> Reservation:
        """Apply ``patch`` to a reservation.

        A date change is checked against the calendar ignoring the
        reservation's own days, then the old days are released and the new
        ones marked in the same transaction; on any failure the reservation
        keeps its original dates. Re-saving identical dates never touches
        the calendar.

        Raises:
            NotFoundError: Unknown reservation
            InvalidStateError: Reservation is cancelled or checked out, or
                dates/occupancy change after check-in
            ConflictError: New dates are taken
            RateUnavailableError: New stay cannot be priced
        """
        room_id = self.store.get_reservation(reservation_id).room_id

        try:
            with self.store.room_locks.hold([room_id]):
                current = self.store.get_reservation(reservation_id)
                updated = self._amend(current, patch)
        except LedgerError as e:
            logger.warning(
                "Reservation update rejected",
                reservation_id=reservation_id,
                room_id=room_id,
                error=e.code,
                reason=e.message,
            )
            raise

        logger.info(
            "Reservation updated",
            property_id=updated.property_id,
            reservation_id=reservation_id,
            check_in=updated.check_in.isoformat(),
            check_out=updated.check_out.isoformat(),
        )
        return updated

    def _amend(self, current: Reservation, patch: ReservationPatch) -> Reservation:
        if current.status.is_terminal:
            raise InvalidStateError(
                f"Reservation {current.reservation_id} is {current.status.value} and cannot be changed"
            )

        check_in = patch.check_in or current.check_in
        check_out = patch.check_out or current.check_out
        adults = patch.adults if patch.adults is not None else current.adults
        children = patch.children if patch.children is not None else current.children

        dates_changed = (check_in, check_out) != (current.check_in, current.check_out)
        occupancy_changed = (adults, children) != (current.adults, current.children)

        if (dates_changed or occupancy_changed) and current.status not in AMENDABLE_STATUSES:
            raise InvalidStateError(
                f"Reservation {current.reservation_id} is {current.status.value}; "
                "dates and occupancy can no longer change"
            )
        ensure_range(check_in, check_out)
        room = self.store.get_room(current.room_id)
        self._validate_occupancy(room, adults + children, children)

        guest = current.guest
        if patch.changes_guest:
            guest = GuestInfo(
                name=patch.guest_name if patch.guest_name is not None else guest.name,
                email=patch.guest_email if patch.guest_email is not None else guest.email,
                phone=patch.guest_phone if patch.guest_phone is not None else guest.phone,
            )
            self._validate_guest(guest)

        changes: dict = {
            "guest": guest,
            "check_in": check_in,
            "check_out": check_out,
            "adults": adults,
            "children": children,
            "updated_at": self.clock(),
        }
        if patch.special_requests is not None:
            changes["special_requests"] = patch.special_requests

        with self.store.transaction() as txn:
            if dates_changed:
                blocking = self.calendar.blocking_days(
                    room.room_id,
                    check_in,
                    check_out,
                    ignore_reservation_id=current.reservation_id,
                    txn=txn,
                )
                if blocking:
                    raise ConflictError(
                        f"Room {room.room_id} is already taken on "
                        f"{', '.join(entry.day.isoformat() for entry in blocking)}"
                    )

            if dates_changed or occupancy_changed:
                quote = self.resolver.resolve(
                    room.room_id, check_in, check_out, adults + children
                )
                changes.update(
                    rate_plan_id=quote.rate_plan_id,
                    total_amount=quote.total_amount,
                    currency=quote.currency,
                    cancellation_policy=quote.cancellation_policy,
                )

            if dates_changed:
                self.calendar.release_range(
                    room.room_id,
                    current.check_in,
                    current.check_out,
                    reservation_id=current.reservation_id,
                    txn=txn,
                )
                self.calendar.mark_range(
                    room.room_id,
                    check_in,
                    check_out,
                    DayStatus.BOOKED,
                    reservation_id=current.reservation_id,
                    txn=txn,
                )

            updated = current.model_copy(update=changes)
            txn.put_reservation(updated)

        return updated

    # Lifecycle

    def cancel_reservation(self, reservation_id: str) -> Reservation:
        """Cancel a reservation, release its dates and settle the refund.

        The refund follows the cancellation policy captured at booking; any
        refund above zero marks the payment refunded.

        Raises:
            NotFoundError: Unknown reservation
            InvalidStateError: Already cancelled or checked out
        """
        room_id = self.store.get_reservation(reservation_id).room_id

        try:
            with self.store.room_locks.hold([room_id]):
                current = self.store.get_reservation(reservation_id)
                ReservationStatusMachine.ensure_transition(
                    reservation_id, current.status, ReservationStatus.CANCELLED
                )

                now = self.clock()
                percent = refund_percent(current.cancellation_policy, current.check_in, now)
                refund_cents = percent_of(to_cents(current.total_amount), percent)

                with self.store.transaction() as txn:
                    self.calendar.release_range(
                        room_id,
                        current.check_in,
                        current.check_out,
                        reservation_id=reservation_id,
                        txn=txn,
                    )
                    cancelled = current.model_copy(
                        update={
                            "status": ReservationStatus.CANCELLED,
                            "payment_status": (
                                PaymentStatus.REFUNDED if percent > 0 else current.payment_status
                            ),
                            "refund_amount": from_cents(refund_cents),
                            "cancelled_at": now,
                            "updated_at": now,
                        }
                    )
                    txn.put_reservation(cancelled)
        except LedgerError as e:
            logger.warning(
                "Reservation cancellation rejected",
                reservation_id=reservation_id,
                room_id=room_id,
                error=e.code,
                reason=e.message,
            )
            raise

        logger.info(
            "Reservation cancelled",
            property_id=cancelled.property_id,
            reservation_id=reservation_id,
            refund_percent=percent,
            refund_amount=str(cancelled.refund_amount),
        )
        return cancelled

    def confirm_reservation(self, reservation_id: str) -> Reservation:
        return self._transition(reservation_id, ReservationStatus.CONFIRMED)

    def check_in(self, reservation_id: str) -> Reservation:
        return self._transition(reservation_id, ReservationStatus.CHECKED_IN)

    def check_out(self, reservation_id: str) -> Reservation:
        return self._transition(reservation_id, ReservationStatus.CHECKED_OUT)

    def _transition(self, reservation_id: str, target: ReservationStatus) -> Reservation:
        room_id = self.store.get_reservation(reservation_id).room_id

        try:
            with self.store.room_locks.hold([room_id]):
                current = self.store.get_reservation(reservation_id)
                ReservationStatusMachine.ensure_transition(reservation_id, current.status, target)
                updated = current.model_copy(update={"status": target, "updated_at": self.clock()})
                with self.store.transaction() as txn:
                    txn.put_reservation(updated)
        except LedgerError as e:
            logger.warning(
                "Reservation status change rejected",
                reservation_id=reservation_id,
                room_id=room_id,
                to_status=target.value,
                error=e.code,
                reason=e.message,
            )
            raise

        logger.info(
            "Reservation status changed",
            property_id=updated.property_id,
            reservation_id=reservation_id,
            from_status=current.status.value,
            to_status=target.value,
        )
        return updated

    def record_payment(self, reservation_id: str) -> Reservation:
        """Mark a reservation's payment as received.

        Raises:
            InvalidStateError: Payment is not pending, or the reservation is cancelled
        """
        room_id = self.store.get_reservation(reservation_id).room_id

        try:
            with self.store.room_locks.hold([room_id]):
                current = self.store.get_reservation(reservation_id)
                if current.status is ReservationStatus.CANCELLED:
                    raise InvalidStateError(f"Reservation {reservation_id} is cancelled")
                if current.payment_status is not PaymentStatus.PENDING:
                    raise InvalidStateError(
                        f"Reservation {reservation_id} payment is already {current.payment_status.value}"
                    )
                updated = current.model_copy(
                    update={"payment_status": PaymentStatus.PAID, "updated_at": self.clock()}
                )
                with self.store.transaction() as txn:
                    txn.put_reservation(updated)
        except LedgerError as e:
            logger.warning(
                "Payment rejected",
                reservation_id=reservation_id,
                room_id=room_id,
                error=e.code,
                reason=e.message,
            )
            raise

        logger.info(
            "Payment recorded",
            property_id=updated.property_id,
            reservation_id=reservation_id,
        )
        return updated

    # Reads

    def get_reservation(self, reservation_id: str) -> Reservation:
        return self.store.get_reservation(reservation_id)

    def list_reservations(
        self,
        property_id: str,
        filters: Optional[ReservationFilters] = None,
    ) -> ReservationQuery:
        """Reservations of a property matching ``filters``.

        Returns:
            A lazy, re-iterable query; each pass reads a fresh snapshot

        Raises:
            NotFoundError: Unknown property
        """
        self.store.get_property(property_id)
        return ReservationQuery(self.store, property_id, filters or ReservationFilters())

    def search_available_rooms(
        self,
        property_id: str,
        check_in: date,
        check_out: date,
        occupancy: int,
    ) -> list[RoomOffer]:
        """Rooms of a property that can take ``occupancy`` guests over the stay, with prices.

        Rooms that are taken or cannot be priced for the stay are left out.
        """
        ensure_range(check_in, check_out)
        if occupancy < 1:
            raise ValidationError("Occupancy must be at least 1")
        self.store.get_property(property_id)

        offers = []
        for room in self.store.rooms_for_property(property_id):
            if room.capacity < occupancy:
                continue
            if not self.calendar.is_range_free(room.room_id, check_in, check_out):
                continue
            try:
                quote = self.resolver.resolve(room.room_id, check_in, check_out, occupancy)
            except LedgerError as e:
                logger.debug(
                    "Room skipped in availability search",
                    property_id=property_id,
                    room_id=room.room_id,
                    reason=e.message,
                )
                continue
            offers.append(RoomOffer(room=room, quote=quote))
        return offers

    def room_calendar(self, room_id: str, start: date, end: date) -> list[CalendarDay]:
        """Calendar days of a room over ``[start, end)`` with OPEN days priced."""
        self.store.get_room(room_id)
        days = []
        for entry in self.calendar.days(room_id, start, end):
            if entry.is_open:
                entry = entry.model_copy(
                    update={"rate": self.resolver.nightly_rate(room_id, entry.day)}
                )
            days.append(entry)
        return days

    # Inventory holds

    def block_dates(
        self,
        room_id: str,
        start: date,
        end: date,
        tag: DayStatus = DayStatus.BLOCKED,
        note: str = "",
    ) -> list[CalendarDay]:
        """Take a room out of sale over ``[start, end)``.

        Raises:
            ValidationError: ``tag`` is not BLOCKED or MAINTENANCE
            ConflictError: A date is already BOOKED
        """
        try:
            if tag not in HOLD_TAGS:
                raise ValidationError(
                    f"Dates can only be held as {', '.join(t.value for t in HOLD_TAGS)}"
                )
            room = self.store.get_room(room_id)

            with self.store.room_locks.hold([room_id]):
                days = self.calendar.mark_range(room_id, start, end, tag, note=note)
        except LedgerError as e:
            logger.warning(
                "Room hold rejected",
                room_id=room_id,
                start=start.isoformat(),
                end=end.isoformat(),
                tag=tag.value,
                error=e.code,
                reason=e.message,
            )
            raise

        logger.info(
            "Room dates held",
            property_id=room.property_id,
            room_id=room_id,
            start=start.isoformat(),
            end=end.isoformat(),
            tag=tag.value,
        )
        return days

    def unblock_dates(self, room_id: str, start: date, end: date) -> int:
        """Put BLOCKED/MAINTENANCE dates back on sale. Returns the count reopened."""
        room = self.store.get_room(room_id)

        try:
            with self.store.room_locks.hold([room_id]):
                reopened = self.calendar.unblock_range(room_id, start, end)
        except LedgerError as e:
            logger.warning(
                "Room release rejected",
                property_id=room.property_id,
                room_id=room_id,
                error=e.code,
                reason=e.message,
            )
            raise

        logger.info(
            "Room dates released",
            property_id=room.property_id,
            room_id=room_id,
            reopened=reopened,
        )
        return reopened

    def remove_room(self, room_id: str) -> None:
        """Delete a room and its calendar.

        Raises:
            InvalidStateError: The room still has reservations that are not
                cancelled or checked out
        """
        room = self.store.get_room(room_id)

        try:
            with self.store.room_locks.hold([room_id]):
                active = [
                    reservation.reservation_id
                    for reservation in self.store.snapshot().reservations_for_property(
                        room.property_id
                    )
                    if reservation.room_id == room_id and not reservation.status.is_terminal
                ]
                if active:
                    raise InvalidStateError(
                        f"Room {room_id} has {len(active)} active reservation(s) and cannot be removed"
                    )
                self.store.remove_room(room_id)
        except LedgerError as e:
            logger.warning(
                "Room removal rejected",
                property_id=room.property_id,
                room_id=room_id,
                error=e.code,
                reason=e.message,
            )
            raise
        self.store.room_locks.discard(room_id)

        logger.info("Room removed", property_id=room.property_id, room_id=room_id)

    # Validation

    def _validate_booking(
        self,
        property_id: str,
        room_id: str,
        check_in: date,
        check_out: date,
        guest: GuestInfo,
        occupancy: int,
        children: int,
    ) -> Room:
        self._validate_guest(guest)
        ensure_range(check_in, check_out)
        self.store.get_property(property_id)
        room = self.store.get_room(room_id)
        if room.property_id != property_id:
            raise ValidationError(f"Room {room_id} does not belong to property {property_id}")
        self._validate_occupancy(room, occupancy, children)
        return room

    @staticmethod
    def _validate_guest(guest: GuestInfo) -> None:
        if not guest.name.strip():
            raise ValidationError("Guest name is required")
        if not guest.email.strip():
            raise ValidationError("Guest email is required")
        if "@" not in guest.email:
            raise ValidationError(f"Guest email '{guest.email}' is not valid")

    @staticmethod
    def _validate_occupancy(room: Room, occupancy: int, children: int) -> None:
        if occupancy < 1:
            raise ValidationError("Occupancy must be at least 1")
        if children < 0 or occupancy - children < 1:
            raise ValidationError("At least one adult is required")
        if occupancy > room.capacity:
            raise ValidationError(
                f"Room {room.room_id} sleeps {room.capacity}; {occupancy} guests requested"
            )
