"""Per-room, per-date availability index."""

from contextlib import contextmanager
from datetime import date
from typing import Iterator, Optional

from structlog import get_logger

from hotel_ledger.errors import ConflictError, ValidationError
from hotel_ledger.models import HOLD_TAGS, CalendarDay, DayStatus
from hotel_ledger.models.dates import ensure_range, iter_dates
from hotel_ledger.store import InventoryStore, StoreTransaction

logger = get_logger(__name__)


class CalendarIndex:
    """Answers "is room R free over [a, b)?" and keeps each day's tag.

    Every method accepts an open StoreTransaction so several calendar and
    reservation writes can commit together; without one the method commits
    on its own. Callers that write are expected to hold the room's lock.
    """

    def __init__(self, store: InventoryStore):
        self.store = store

    @contextmanager
    def _transaction(self, txn: Optional[StoreTransaction]) -> Iterator[StoreTransaction]:
        if txn is not None:
            yield txn
        else:
            with self.store.transaction() as own:
                yield own

    def _reader(self, txn: Optional[StoreTransaction]):
        return txn.get_day if txn is not None else self.store.get_day

    def blocking_days(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        ignore_reservation_id: Optional[str] = None,
        txn: Optional[StoreTransaction] = None,
    ) -> list[CalendarDay]:
        """Return the days in ``[check_in, check_out)`` that are not free.

        Days BOOKED by ``ignore_reservation_id`` count as free.
        """
        ensure_range(check_in, check_out)
        read = self._reader(txn)
        blocking = []
        for day in iter_dates(check_in, check_out):
            entry = read(room_id, day)
            if entry.is_open:
                continue
            if (
                entry.status is DayStatus.BOOKED
                and ignore_reservation_id is not None
                and entry.reservation_id == ignore_reservation_id
            ):
                continue
            blocking.append(entry)
        return blocking

    def is_range_free(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        ignore_reservation_id: Optional[str] = None,
        txn: Optional[StoreTransaction] = None,
    ) -> bool:
        """True iff every date in ``[check_in, check_out)`` is OPEN for the room.

        Raises:
            InvalidRangeError: If check_in is not before check_out
        """
        return not self.blocking_days(
            room_id, check_in, check_out, ignore_reservation_id, txn
        )

    def mark_range(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        tag: DayStatus,
        reservation_id: Optional[str] = None,
        note: str = "",
        txn: Optional[StoreTransaction] = None,
    ) -> list[CalendarDay]:
        """Tag every date in ``[check_in, check_out)``.

        Re-marking days already BOOKED by the same reservation is a no-op
        change, so re-saving a reservation never conflicts with itself.

        Args:
            room_id: Room to tag
            check_in: First date
            check_out: Exclusive end date
            tag: BOOKED, BLOCKED or MAINTENANCE
            reservation_id: Owning reservation; required for BOOKED
            note: Free text kept on BLOCKED/MAINTENANCE days
            txn: Open transaction to stage the writes in

        Returns:
            The tagged days

        Raises:
            ConflictError: If a date is BOOKED by another reservation, or a
                BOOKED request meets a BLOCKED/MAINTENANCE day
        """
        ensure_range(check_in, check_out)
        if tag is DayStatus.OPEN:
            raise ValidationError("Use release_range or unblock_range to reopen dates")
        if tag is DayStatus.BOOKED and not reservation_id:
            raise ValidationError("A reservation id is required to mark dates BOOKED")
        owner = reservation_id if tag is DayStatus.BOOKED else None

        with self._transaction(txn) as t:
            conflicts = []
            for day in iter_dates(check_in, check_out):
                entry = t.get_day(room_id, day)
                if entry.status is DayStatus.BOOKED and entry.reservation_id != owner:
                    conflicts.append(entry)
                elif tag is DayStatus.BOOKED and entry.status in HOLD_TAGS:
                    conflicts.append(entry)

            if conflicts:
                raise ConflictError(
                    f"Room {room_id} is not available on "
                    f"{', '.join(entry.day.isoformat() for entry in conflicts)}"
                )

            marked = []
            for day in iter_dates(check_in, check_out):
                entry = CalendarDay(
                    room_id=room_id,
                    day=day,
                    status=tag,
                    reservation_id=owner,
                    note=note if tag in HOLD_TAGS else "",
                )
                t.put_day(entry)
                marked.append(entry)

        logger.debug(
            "Calendar range marked",
            room_id=room_id,
            check_in=check_in.isoformat(),
            check_out=check_out.isoformat(),
            tag=tag.value,
            reservation_id=owner,
        )
        return marked

    def release_range(
        self,
        room_id: str,
        check_in: date,
        check_out: date,
        reservation_id: Optional[str] = None,
        txn: Optional[StoreTransaction] = None,
    ) -> int:
        """Move BOOKED days back to OPEN.

        When ``reservation_id`` is given only days it owns are released.

        Returns:
            Number of days released
        """
        ensure_range(check_in, check_out)
        released = 0
        with self._transaction(txn) as t:
            for day in iter_dates(check_in, check_out):
                entry = t.get_day(room_id, day)
                if entry.status is not DayStatus.BOOKED:
                    continue
                if reservation_id is not None and entry.reservation_id != reservation_id:
                    continue
                t.put_day(CalendarDay.open(room_id, day))
                released += 1
        return released

    def unblock_range(
        self,
        room_id: str,
        start: date,
        end: date,
        txn: Optional[StoreTransaction] = None,
    ) -> int:
        """Move BLOCKED and MAINTENANCE days back to OPEN.

        Returns:
            Number of days reopened
        """
        ensure_range(start, end)
        reopened = 0
        with self._transaction(txn) as t:
            for day in iter_dates(start, end):
                if t.get_day(room_id, day).status in HOLD_TAGS:
                    t.put_day(CalendarDay.open(room_id, day))
                    reopened += 1
        return reopened

    def get_day(self, room_id: str, day: date) -> CalendarDay:
        return self.store.get_day(room_id, day)

    def days(self, room_id: str, start: date, end: date) -> list[CalendarDay]:
        """Committed state of every date in ``[start, end)``."""
        ensure_range(start, end)
        return [self.store.get_day(room_id, day) for day in iter_dates(start, end)]

    def booked_dates(self, room_id: str, start: date, end: date) -> list[date]:
        return [
            entry.day for entry in self.days(room_id, start, end)
            if entry.status is DayStatus.BOOKED
        ]
