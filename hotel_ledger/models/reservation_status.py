"""Reservation lifecycle and payment status."""

from enum import Enum

from hotel_ledger.errors import InvalidStateError


class ReservationStatus(str, Enum):
    """Reservation lifecycle states.

    - pending: held, awaiting confirmation (still occupies the calendar)
    - confirmed: booked
    - checked-in: guest in house
    - checked-out: stay finished (terminal)
    - cancelled: released (terminal)
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED)

    @property
    def holds_inventory(self) -> bool:
        """True if a reservation in this state keeps its dates BOOKED."""
        return self is not ReservationStatus.CANCELLED


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


# Revenue counts these by default; pending and cancelled are excluded
REVENUE_STATUSES = frozenset(
    {
        ReservationStatus.CONFIRMED,
        ReservationStatus.CHECKED_IN,
        ReservationStatus.CHECKED_OUT,
    }
)


class ReservationStatusMachine:
    """Allowed reservation status transitions."""

    TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
        ReservationStatus.PENDING: frozenset(
            {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}
        ),
        ReservationStatus.CONFIRMED: frozenset(
            {ReservationStatus.CHECKED_IN, ReservationStatus.CANCELLED}
        ),
        ReservationStatus.CHECKED_IN: frozenset(
            {ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED}
        ),
        ReservationStatus.CHECKED_OUT: frozenset(),
        ReservationStatus.CANCELLED: frozenset(),
    }

    @staticmethod
    def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
        """Check whether ``current`` may move to ``target``.

        Args:
            current: Status the reservation is in now
            target: Requested status

        Returns:
            True if the transition is allowed
        """
        return target in ReservationStatusMachine.TRANSITIONS[current]

    @staticmethod
    def ensure_transition(
        reservation_id: str,
        current: ReservationStatus,
        target: ReservationStatus,
    ) -> None:
        """Raise InvalidStateError unless ``current`` may move to ``target``."""
        if not ReservationStatusMachine.can_transition(current, target):
            raise InvalidStateError(
                f"Reservation {reservation_id} cannot move from "
                f"'{current.value}' to '{target.value}'"
            )
