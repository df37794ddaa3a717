#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Errors raised by the booking engine.

All failures are reported through a single exception type, `BookingError`,
whose `kind` is drawn from the closed `ErrorKind` enumeration. Callers should
dispatch on the kind rather than on exception subclasses::

    try:
        service.book("Huddle A", start, end)
    except BookingError as e:
        match e.kind:
            case ErrorKind.BOOKING_OVERLAP:
                ...
            case ErrorKind.ROOM_NOT_FOUND:
                ...
"""

import datetime
from enum import StrEnum, auto
from typing import TYPE_CHECKING, Any, Self

if TYPE_CHECKING:
    from roombooking.models import ConfirmedBooking


class ErrorKind(StrEnum):
    """Every way in which an engine operation can be rejected."""

    ROOM_NOT_FOUND = auto()
    INVALID_INTERVAL = auto()
    BOOKING_OVERLAP = auto()
    DUPLICATE_ROOM = auto()
    BOOKING_NOT_FOUND = auto()
    INVALID_ROOM = auto()
    CAPACITY_EXCEEDED = auto()


class BookingError(Exception):
    """A rejected engine operation.

    Parameters
    ----------
    kind
        What went wrong.
    message
        Human-readable description.
    identifier
        The room name the error refers to, if any.
    booking_id
        The booking the error refers to, if any.
    conflicts
        For `BOOKING_OVERLAP`, the confirmed bookings the request collides with,
        ordered by start time.
    suggestions
        For `ROOM_NOT_FOUND`, registered room names close to `identifier`.
    start, end
        For `INVALID_INTERVAL`, the offending endpoints as received.
    attendees, capacity
        For `CAPACITY_EXCEEDED`, the requested head-count and the room capacity.
    reason
        Free-form detail for `INVALID_INTERVAL` and `INVALID_ROOM`.

    Notes
    -----
    None of the errors is retryable as-is: the same request fails again
    until the caller corrects it (eg picks another interval or room).
    """

    retryable = False

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        identifier: str | None = None,
        booking_id: str | None = None,
        conflicts: "tuple[ConfirmedBooking, ...]" = (),
        suggestions: tuple[str, ...] = (),
        start: Any = None,
        end: Any = None,
        attendees: int | None = None,
        capacity: int | None = None,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.identifier = identifier
        self.booking_id = booking_id
        self.conflicts = tuple(conflicts)
        self.suggestions = tuple(suggestions)
        self.start = start
        self.end = end
        self.attendees = attendees
        self.capacity = capacity
        self.reason = reason

    def __repr__(self) -> str:
        return f"BookingError(kind={self.kind!s}, message={self.message!r})"

    @classmethod
    def room_not_found(cls, identifier: str, suggestions: tuple[str, ...] = ()) -> Self:
        message = f"Room '{identifier}' not found"
        if suggestions:
            message += f". Did you mean: {', '.join(suggestions)}?"
        return cls(
            ErrorKind.ROOM_NOT_FOUND,
            message,
            identifier=identifier,
            suggestions=suggestions,
        )

    @classmethod
    def invalid_interval(cls, start: Any, end: Any, reason: str) -> Self:
        return cls(
            ErrorKind.INVALID_INTERVAL,
            f"Invalid booking interval [{start}, {end}): {reason}",
            start=start,
            end=end,
            reason=reason,
        )

    @classmethod
    def booking_overlap(
        cls, identifier: str, conflicts: "list[ConfirmedBooking]"
    ) -> Self:
        ids = ", ".join(b.booking_id for b in conflicts)
        return cls(
            ErrorKind.BOOKING_OVERLAP,
            f"Room '{identifier}' is already booked for the requested time slot "
            f"(conflicting bookings: {ids})",
            identifier=identifier,
            conflicts=tuple(conflicts),
        )

    @classmethod
    def duplicate_room(cls, identifier: str) -> Self:
        return cls(
            ErrorKind.DUPLICATE_ROOM,
            f"Room '{identifier}' already exists",
            identifier=identifier,
        )

    @classmethod
    def booking_not_found(cls, booking_id: str) -> Self:
        return cls(
            ErrorKind.BOOKING_NOT_FOUND,
            f"Booking with ID {booking_id} was not found",
            booking_id=booking_id,
        )

    @classmethod
    def invalid_room(cls, identifier: str | None, reason: str) -> Self:
        return cls(
            ErrorKind.INVALID_ROOM,
            f"Room '{identifier}' cannot be registered: {reason}",
            identifier=identifier,
            reason=reason,
        )

    @classmethod
    def capacity_exceeded(cls, identifier: str, attendees: int, capacity: int) -> Self:
        return cls(
            ErrorKind.CAPACITY_EXCEEDED,
            f"Room '{identifier}' seats 1 to {capacity} people, {attendees} requested",
            identifier=identifier,
            attendees=attendees,
            capacity=capacity,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error for collaborators that report it over the wire."""

        def _maybe_isoformat(value: Any) -> Any:
            if isinstance(value, datetime.datetime):
                return value.isoformat()
            return value

        return {
            "kind": str(self.kind),
            "message": self.message,
            "identifier": self.identifier,
            "booking_id": self.booking_id,
            "conflicts": [b.booking_id for b in self.conflicts],
            "suggestions": list(self.suggestions),
            "start": _maybe_isoformat(self.start),
            "end": _maybe_isoformat(self.end),
            "attendees": self.attendees,
            "capacity": self.capacity,
            "reason": self.reason,
            "retryable": self.retryable,
        }
