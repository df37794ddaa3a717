#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""A light wrapper around the `datetime` library, containing the booking interval
value type, timestamp parsing and scheduling helpers."""

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple, Self

from dateutil.parser import isoparse

from roombooking.exceptions import BookingError

TimeUnits = Enum("TimeUnits", ["Hours", "Minutes", "Days"])
"""Enumerations used for parsing durations to specific time units"""

WORK_DAY_START = datetime.time(hour=9, minute=0)
WORK_DAY_END = datetime.time(hour=17, minute=0)

Timestamp = datetime.datetime | str


class Duration(NamedTuple):
    """A length of time, eg the minimum length of a free slot.

    Parameters
    ----------
    number
        A float or integer representing the length of time.
    unit
        The unit of time used to measure the duration.
    """

    number: int | float
    unit: TimeUnits

    def to_minutes(self) -> float:
        """Convert the Duration to minutes."""
        if self.unit == TimeUnits.Hours:
            return float(self.number * 60)
        elif self.unit == TimeUnits.Minutes:
            return float(self.number)
        elif self.unit == TimeUnits.Days:
            return float(self.number * 24 * 60)
        else:
            raise ValueError(f"Unsupported time unit: {self.unit}")

    def to_timedelta(self) -> datetime.timedelta:
        return datetime.timedelta(minutes=self.to_minutes())

    def __le__(self, other: Self) -> bool:
        return self.to_minutes() <= other.to_minutes()

    def __lt__(self, other: Self) -> bool:
        return self.to_minutes() < other.to_minutes()

    def __ge__(self, other: Self) -> bool:
        return self.to_minutes() >= other.to_minutes()

    def __gt__(self, other: Self) -> bool:
        return self.to_minutes() > other.to_minutes()

    def __eq__(self, other: Self) -> bool:
        return self.to_minutes() == other.to_minutes()


def is_aware(dt: datetime.datetime) -> bool:
    return dt.tzinfo is not None and dt.utcoffset() is not None


def parse_timestamp(value: Timestamp) -> datetime.datetime:
    """Resolve an ISO-8601 string (or a `datetime`) to a timezone-aware `datetime`.

    Raises
    ------
    BookingError
        With kind `INVALID_INTERVAL` if the string cannot be parsed or
        the timestamp carries no UTC offset.
    """
    if isinstance(value, datetime.datetime):
        dt = value
    elif isinstance(value, str):
        try:
            dt = isoparse(value)
        except ValueError as e:
            raise BookingError.invalid_interval(
                value, value, f"cannot parse timestamp '{value}' ({e})"
            ) from e
    else:
        raise BookingError.invalid_interval(
            value, value, f"unsupported timestamp type {type(value).__name__}"
        )
    if not is_aware(dt):
        raise BookingError.invalid_interval(
            value, value, f"timestamp '{value}' has no timezone"
        )
    return dt


@dataclass(frozen=True)
class BookingInterval:
    """The half-open time range `[start, end)` during which a room is reserved.

    Both endpoints must be timezone-aware and `start` must be strictly earlier
    than `end`. Equality is structural: two intervals denoting the same instants
    are equal even if expressed in different time zones.
    """

    start: datetime.datetime
    end: datetime.datetime

    def __post_init__(self):
        for endpoint in (self.start, self.end):
            if not isinstance(endpoint, datetime.datetime):
                raise BookingError.invalid_interval(
                    self.start, self.end, f"{endpoint!r} is not a datetime"
                )
            if not is_aware(endpoint):
                raise BookingError.invalid_interval(
                    self.start, self.end, "timestamps must be timezone-aware"
                )
        if self.start >= self.end:
            raise BookingError.invalid_interval(
                self.start, self.end, "start time must be before end time"
            )

    @classmethod
    def create(cls, start: Timestamp, end: Timestamp) -> Self:
        """Build an interval from datetimes or ISO-8601 strings.

        An endpoint which cannot be parsed is reported together with the
        other endpoint, exactly as received.
        """
        try:
            start_dt, end_dt = parse_timestamp(start), parse_timestamp(end)
        except BookingError as e:
            raise BookingError.invalid_interval(start, end, e.reason) from e
        return cls(start=start_dt, end=end_dt)

    def overlaps(self, other: Self) -> bool:
        """Check if the two intervals share at least one instant.

        Intervals which only touch (one ends exactly when the other starts)
        do not overlap.
        """
        return self.start < other.end and other.start < self.end

    def contains(self, dt: datetime.datetime) -> bool:
        """Check if a given datetime falls within this interval."""
        return self.start <= dt < self.end

    def includes(self, other: Self) -> bool:
        """Check if `other` is included in this time interval."""
        return self.start <= other.start and self.end >= other.end

    @property
    def duration(self) -> Duration:
        minutes = (self.end - self.start).total_seconds() / 60
        return Duration(number=minutes, unit=TimeUnits.Minutes)

    def to_utc(self) -> Self:
        return type(self)(
            start=self.start.astimezone(datetime.timezone.utc),
            end=self.end.astimezone(datetime.timezone.utc),
        )

    def __str__(self) -> str:
        return (
            f"[{self.start.strftime('%Y-%m-%d %H:%M %Z')}, "
            f"{self.end.strftime('%Y-%m-%d %H:%M %Z')})"
        )


def work_day(
    date: datetime.date, tz: datetime.tzinfo = datetime.timezone.utc
) -> BookingInterval:
    """The working hours of `date` in the time zone `tz`."""
    return BookingInterval(
        start=datetime.datetime.combine(date, WORK_DAY_START, tzinfo=tz),
        end=datetime.datetime.combine(date, WORK_DAY_END, tzinfo=tz),
    )


def as_windows(
    time_window: Any,
    tz: datetime.tzinfo = datetime.timezone.utc,
) -> list[BookingInterval]:
    """Normalise a search window to a list of intervals.

    `time_window` may be a single interval, a date, or a list mixing the two.
    Dates are expanded to the working day.
    """
    if isinstance(time_window, (BookingInterval, datetime.date)):
        time_window = [time_window]
    windows = []
    for item in time_window:
        # nb: datetime is a subclass of date, so it has to be rejected explicitly
        if isinstance(item, datetime.datetime):
            raise TypeError(
                "Search windows are intervals or dates, got a single datetime"
            )
        if isinstance(item, datetime.date):
            windows.append(work_day(item, tz))
        else:
            windows.append(item)
    return windows
