"""In-process transactional store for reference data, reservations and calendar days."""

import threading
from contextlib import contextmanager
from datetime import date
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from structlog import get_logger

from hotel_ledger.config import settings
from hotel_ledger.errors import NotFoundError, ValidationError
from hotel_ledger.models import (
    CalendarDay,
    DayStatus,
    Property,
    RatePlan,
    Reservation,
    Room,
)
from hotel_ledger.store.locks import RoomLocks

logger = get_logger(__name__)

DayKey = tuple[str, date]


def _is_default_day(day: CalendarDay) -> bool:
    """OPEN days without a note are not stored; a missing key means OPEN."""
    return day.status is DayStatus.OPEN and not day.note


class StoreSnapshot:
    """Read-only view of reservations and calendar at a single instant."""

    def __init__(
        self,
        reservations: Mapping[str, Reservation],
        property_index: Mapping[str, tuple[str, ...]],
        calendar: Mapping[DayKey, CalendarDay],
    ):
        self._reservations = reservations
        self._property_index = property_index
        self._calendar = calendar

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        return self._reservations.get(reservation_id)

    def reservations_for_property(self, property_id: str) -> Iterator[Reservation]:
        for reservation_id in self._property_index.get(property_id, ()):
            yield self._reservations[reservation_id]

    def all_reservations(self) -> Iterator[Reservation]:
        return iter(self._reservations.values())

    def day(self, room_id: str, day: date) -> CalendarDay:
        return self._calendar.get((room_id, day)) or CalendarDay.open(room_id, day)


class StoreTransaction:
    """Staged reservation and calendar writes.

    Reads see the transaction's own staged writes on top of committed state.
    Nothing becomes visible to other callers until the store commits it.
    """

    def __init__(self, store: "InventoryStore"):
        self._store = store
        self.reservations: dict[str, Reservation] = {}
        self.days: dict[DayKey, Optional[CalendarDay]] = {}  # None stages a reset to OPEN

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        if reservation_id in self.reservations:
            return self.reservations[reservation_id]
        return self._store._reservations.get(reservation_id)

    def put_reservation(self, reservation: Reservation) -> None:
        self.reservations[reservation.reservation_id] = reservation

    def get_day(self, room_id: str, day: date) -> CalendarDay:
        key = (room_id, day)
        if key in self.days:
            staged = self.days[key]
            return staged or CalendarDay.open(room_id, day)
        return self._store._calendar.get(key) or CalendarDay.open(room_id, day)

    def put_day(self, day: CalendarDay) -> None:
        key = (day.room_id, day.day)
        self.days[key] = None if _is_default_day(day) else day

    @property
    def has_changes(self) -> bool:
        return bool(self.reservations or self.days)


class InventoryStore:
    """Keyed in-memory store with per-room locks and all-or-nothing commits.

    Properties, rooms and rate plans are reference data written by property
    management. Reservations and calendar days are written only through
    ``transaction()``, which the reservation ledger drives.
    """

    def __init__(self, lock_timeout_seconds: float | None = None):
        """Initialize an empty store.

        Args:
            lock_timeout_seconds: Bounded wait for room locks; defaults to settings
        """
        timeout = (
            settings.ledger.lock_timeout_seconds
            if lock_timeout_seconds is None
            else lock_timeout_seconds
        )
        self.room_locks = RoomLocks(timeout)

        self._properties: dict[str, Property] = {}
        self._rooms: dict[str, Room] = {}
        self._rate_plans: dict[str, RatePlan] = {}

        self._reservations: dict[str, Reservation] = {}
        self._property_index: dict[str, list[str]] = {}
        self._calendar: dict[DayKey, CalendarDay] = {}

        self._commit_lock = threading.Lock()
        self._reference_lock = threading.Lock()

    # Reference data

    def add_property(self, prop: Property) -> Property:
        with self._reference_lock:
            self._properties[prop.property_id] = prop
        logger.debug("Property registered", property_id=prop.property_id)
        return prop

    def add_room(self, room: Room) -> Room:
        with self._reference_lock:
            if room.property_id not in self._properties:
                raise NotFoundError(f"Property {room.property_id} not found")
            self._rooms[room.room_id] = room
        logger.debug("Room registered", property_id=room.property_id, room_id=room.room_id)
        return room

    def add_rate_plan(self, plan: RatePlan) -> RatePlan:
        with self._reference_lock:
            if plan.property_id not in self._properties:
                raise NotFoundError(f"Property {plan.property_id} not found")
            if plan.room_id is not None:
                room = self._rooms.get(plan.room_id)
                if room is None:
                    raise NotFoundError(f"Room {plan.room_id} not found")
                if room.property_id != plan.property_id:
                    raise ValidationError(
                        f"Room {plan.room_id} does not belong to property {plan.property_id}"
                    )
            if plan.valid_to < plan.valid_from:
                raise ValidationError(
                    f"Rate plan {plan.rate_plan_id} ends before it starts"
                )
            self._rate_plans[plan.rate_plan_id] = plan
        logger.debug(
            "Rate plan registered",
            property_id=plan.property_id,
            rate_plan_id=plan.rate_plan_id,
            room_id=plan.room_id,
        )
        return plan

    def get_property(self, property_id: str) -> Property:
        prop = self._properties.get(property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        return prop

    def has_property(self, property_id: str) -> bool:
        return property_id in self._properties

    def get_room(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise NotFoundError(f"Room {room_id} not found")
        return room

    def get_rate_plan(self, rate_plan_id: str) -> RatePlan:
        plan = self._rate_plans.get(rate_plan_id)
        if plan is None:
            raise NotFoundError(f"Rate plan {rate_plan_id} not found")
        return plan

    def rooms_for_property(self, property_id: str) -> list[Room]:
        rooms = [room for room in list(self._rooms.values()) if room.property_id == property_id]
        return sorted(rooms, key=lambda room: (room.room_number, room.room_id))

    def rate_plans_for_room(self, room: Room) -> list[RatePlan]:
        """Rate plans scoped to ``room`` or property-wide for its property."""
        return [
            plan
            for plan in list(self._rate_plans.values())
            if plan.property_id == room.property_id
            and (plan.room_id is None or plan.room_id == room.room_id)
        ]

    # Reservations and calendar

    def get_reservation(self, reservation_id: str) -> Reservation:
        reservation = self._reservations.get(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return reservation

    def get_day(self, room_id: str, day: date) -> CalendarDay:
        return self._calendar.get((room_id, day)) or CalendarDay.open(room_id, day)

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """Stage writes and commit them together when the block exits cleanly.

        An exception inside the block discards every staged write.
        """
        txn = StoreTransaction(self)
        yield txn
        if txn.has_changes:
            self._commit(txn)

    def _commit(self, txn: StoreTransaction) -> None:
        with self._commit_lock:
            for reservation_id, reservation in txn.reservations.items():
                if reservation_id not in self._reservations:
                    self._property_index.setdefault(reservation.property_id, []).append(
                        reservation_id
                    )
                self._reservations[reservation_id] = reservation
            for key, day in txn.days.items():
                if day is None:
                    self._calendar.pop(key, None)
                else:
                    self._calendar[key] = day

    def snapshot(self) -> StoreSnapshot:
        """Copy reservations and calendar at one instant."""
        with self._commit_lock:
            reservations = dict(self._reservations)
            property_index = {
                property_id: tuple(ids) for property_id, ids in self._property_index.items()
            }
            calendar = dict(self._calendar)
        return StoreSnapshot(
            MappingProxyType(reservations),
            MappingProxyType(property_index),
            MappingProxyType(calendar),
        )

    def remove_room(self, room_id: str) -> None:
        """Drop a room, its room-scoped rate plans and its calendar days.

        Callers must hold the room's lock and have checked for active reservations.
        """
        with self._reference_lock, self._commit_lock:
            self._rooms.pop(room_id, None)
            for plan_id in [
                plan.rate_plan_id
                for plan in self._rate_plans.values()
                if plan.room_id == room_id
            ]:
                del self._rate_plans[plan_id]
            for key in [key for key in self._calendar if key[0] == room_id]:
                del self._calendar[key]
