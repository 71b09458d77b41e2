"""Error taxonomy for the reservation ledger.

Every error carries a stable ``code`` so the HTTP layer (and any other
caller) can tell a double-booking apart from a bad request without parsing
messages.
"""


class LedgerError(Exception):
    """Base exception for ledger errors."""

    code = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Raised when input is malformed (bad dates, empty required fields)."""

    code = "validation_error"


class InvalidRangeError(ValidationError):
    """Raised when a date range is empty or inverted."""

    code = "invalid_range"


class NotFoundError(LedgerError):
    """Raised when a property, room, rate plan or reservation id is unknown."""

    code = "not_found"


class ConflictError(LedgerError):
    """Raised when dates are already taken on the room."""

    code = "conflict"


class RateUnavailableError(LedgerError):
    """Raised when no rate plan qualifies for the requested stay."""

    code = "rate_unavailable"


class InvalidStateError(LedgerError):
    """Raised on an illegal reservation status transition."""

    code = "invalid_state"


class BusyError(LedgerError):
    """Raised when a room lock could not be acquired in time. Safe to retry."""

    code = "busy"
