"""Half-open date ranges."""

from datetime import date, timedelta
from typing import Iterator

from pydantic import BaseModel, ConfigDict, model_validator

from hotel_ledger.errors import InvalidRangeError


def ensure_range(start: date, end: date) -> None:
    """Raise InvalidRangeError unless ``start < end``."""
    if start >= end:
        raise InvalidRangeError(
            f"Invalid date range [{start.isoformat()}, {end.isoformat()}): start must be before end"
        )


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date in ``[start, end)``."""
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)


def overlap_nights(start: date, end: date, other_start: date, other_end: date) -> int:
    """Number of nights shared by ``[start, end)`` and ``[other_start, other_end)``."""
    latest_start = max(start, other_start)
    earliest_end = min(end, other_end)
    return max((earliest_end - latest_start).days, 0)


class DateRange(BaseModel):
    """A half-open ``[start, end)`` date range; ``end`` is not included."""

    start: date
    end: date

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        ensure_range(self.start, self.end)
        return self

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    def dates(self) -> Iterator[date]:
        return iter_dates(self.start, self.end)

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def overlaps(self, start: date, end: date) -> bool:
        return overlap_nights(self.start, self.end, start, end) > 0

    def overlap_nights(self, start: date, end: date) -> int:
        return overlap_nights(self.start, self.end, start, end)
