#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Entry point of the booking engine used by HTTP handlers, the CLI and UI backends."""

import datetime
import logging
from typing import Callable, Iterable

from pydantic import ValidationError

from roombooking.availability import AvailabilityIndex
from roombooking.exceptions import BookingError
from roombooking.models import (
    BookingId,
    BookingRequest,
    BookingStatus,
    ConfirmedBooking,
    Room,
    RoomAvailability,
    RoomName,
    RoomType,
)
from roombooking.registry import RoomRegistry
from roombooking.time_utils import (
    BookingInterval,
    Duration,
    TimeUnits,
    Timestamp,
    as_windows,
)

logger = logging.getLogger(__name__)

DEFAULT_PAST_START_GRACE = Duration(5, TimeUnits.Minutes)


class BookingService:
    """Decides whether booking requests are accepted.

    Parameters
    ----------
    registry
        The rooms that can be booked. A new, empty registry is created if
        not specified.
    index
        The confirmed bookings. A new, empty index is created if not specified.
    clock
        If specified, a callable returning the current timezone-aware time.
        Bookings starting earlier than `clock() - past_start_grace` are then
        rejected. No check is made if not specified.
    past_start_grace
        How far in the past a booking may start, eg to allow a meeting that
        has just begun to be recorded.
    """

    def __init__(
        self,
        registry: RoomRegistry | None = None,
        index: AvailabilityIndex | None = None,
        clock: Callable[[], datetime.datetime] | None = None,
        past_start_grace: Duration = DEFAULT_PAST_START_GRACE,
    ):
        self.registry = registry if registry is not None else RoomRegistry()
        self.index = index if index is not None else AvailabilityIndex()
        self.clock = clock
        self.past_start_grace = past_start_grace

    def register_room(
        self,
        name: RoomName,
        room_type: RoomType | str,
        capacity: int,
        features: Iterable[str] | None = None,
    ) -> Room:
        """Add a conference room.

        Raises
        ------
        BookingError
            `INVALID_ROOM` if the name is blank, the type unknown or the capacity
            outside the range admitted by the room type; `DUPLICATE_ROOM` if
            a room called `name` already exists.
        """
        try:
            room = Room(
                name=name,
                room_type=room_type,
                capacity=capacity,
                features=tuple(features or ()),
            )
        except ValidationError as e:
            reason = "; ".join(err["msg"] for err in e.errors())
            logger.warning(f"Rejected registration of room {name}: {reason}")
            raise BookingError.invalid_room(name, reason) from e
        return self.registry.register(room)

    def book(
        self,
        room_name: RoomName,
        start: Timestamp,
        end: Timestamp,
        *,
        organiser: str | None = None,
        attendees: int | None = None,
        notes: str | None = None,
    ) -> ConfirmedBooking:
        """Reserve `room_name` for `[start, end)`.

        Parameters
        ----------
        room_name
            The name of the room.
        start, end
            Timezone-aware datetimes or ISO-8601 strings with a UTC offset.
        organiser
            Who made the booking.
        attendees
            If specified, how many people will attend. Must not exceed the
            room capacity.
        notes
            Optional notes for the booking.

        Returns
        -------
        The confirmed booking. Nothing is recorded if an error is raised.

        Raises
        ------
        BookingError
            `ROOM_NOT_FOUND`, `INVALID_INTERVAL` (also when a clock is set and
            the booking starts in the past), `CAPACITY_EXCEEDED` or
            `BOOKING_OVERLAP` (carrying the conflicting bookings).
        """
        try:
            room = self.registry.resolve(room_name)
            interval = BookingInterval.create(start, end)
            self._check_start_not_past(interval, start, end)
            if attendees is not None:
                self._check_attendees(room, attendees)
            booking = self.index.insert(
                room,
                interval,
                organiser=organiser,
                attendees=attendees,
                notes=notes,
            )
        except BookingError as e:
            logger.warning(f"Rejected booking of {room_name} [{start}, {end}): {e}")
            raise
        logger.info(f"Confirmed booking {booking}")
        return booking

    def book_request(self, request: BookingRequest) -> ConfirmedBooking:
        return self.book(
            request.room_name,
            request.start,
            request.end,
            organiser=request.organiser,
            attendees=request.attendees,
            notes=request.notes,
        )

    def cancel(self, booking_id: BookingId) -> ConfirmedBooking:
        """Release the room held by a booking.

        Returns
        -------
        The booking, with status `Cancelled`.

        Raises
        ------
        BookingError
            `BOOKING_NOT_FOUND` if there is no confirmed booking with this ID
            (including when it was already cancelled).
        """
        booking = self.index.get(booking_id)
        if booking is None:
            logger.warning(f"Cannot cancel unknown booking {booking_id}")
            raise BookingError.booking_not_found(booking_id)
        room = self.registry.resolve(booking.room_name)
        removed = self.index.remove(room, booking_id)
        logger.info(f"Cancelled booking {removed}")
        return removed.model_copy(update={"status": BookingStatus.Cancelled})

    def get_booking(self, booking_id: BookingId) -> ConfirmedBooking:
        booking = self.index.get(booking_id)
        if booking is None:
            raise BookingError.booking_not_found(booking_id)
        return booking

    def list_bookings(self, room_name: RoomName | None = None) -> list[ConfirmedBooking]:
        """Confirmed bookings ordered by start time, optionally for a single room."""
        if room_name is None:
            return self.index.bookings()
        return self.index.bookings(self.registry.resolve(room_name))

    def list_rooms(
        self, capacity: int | None = None, room_type: RoomType | None = None
    ) -> list[Room]:
        return self.registry.rooms(capacity=capacity, room_type=room_type)

    def available_rooms(
        self, start: Timestamp, end: Timestamp, capacity: int | None = None
    ) -> list[Room]:
        """Rooms free for the whole of `[start, end)`, optionally seating at
        least `capacity` people."""
        interval = BookingInterval.create(start, end)
        return [
            room
            for room in self.registry.rooms(capacity=capacity)
            if not self.index.find_conflicts(room, interval)
        ]

    def find_available_time_slots(
        self,
        room_name: RoomName,
        time_window: BookingInterval | datetime.date | list,
        min_duration: Duration | None = None,
        tz: datetime.tzinfo = datetime.timezone.utc,
    ) -> list[BookingInterval]:
        """Check the availability of a certain room on certain dates or
        specific time intervals.

        Parameters
        ----------
        room_name
            The name of the room.
        time_window
            The dates or time intervals for which availability will be checked.
            Dates are expanded to the working day in the time zone `tz`.
        min_duration
            If specified, only free slots at least this long are returned.

        Returns
        -------
        A list of time intervals indicating the room availability. If the room
        is not available for the duration of the entire time window, the intervals
        when the room is available, if any, are returned. An empty list is returned
        if there are no available time slots for the given time window.
        """
        room = self.registry.resolve(room_name)
        available = []
        for window in as_windows(time_window, tz):
            available.extend(self.index.free_slots(room, window, min_duration))
        return available

    def search_availability(
        self,
        time_window: BookingInterval | datetime.date | list,
        capacity: int | None = None,
        min_duration: Duration | None = None,
        tz: datetime.tzinfo = datetime.timezone.utc,
    ) -> list[RoomAvailability]:
        """Search for conference rooms given time and room size constraints.

        Parameters
        ----------
        time_window
            When to search for the room. If dates are specified, availability will be
            checked between the start and end of the working day.
        capacity
            How many people should fit in the conference room. Rooms with capacity greater
            than or equal to `capacity` will be returned if `capacity` is specified.

        Returns
        -------
        availability
           The free slots of each room satisfying the capacity constraint. Note that
           a room unavailable for the queried duration is still included in the
           search results, with no free slots.
        """
        windows = as_windows(time_window, tz)
        availability = []
        for room in self.registry.rooms(capacity=capacity):
            free_slots = []
            for window in windows:
                free_slots.extend(self.index.free_slots(room, window, min_duration))
            availability.append(RoomAvailability(room=room, free_slots=free_slots))
        return availability

    def _check_start_not_past(
        self, interval: BookingInterval, start: Timestamp, end: Timestamp
    ):
        if self.clock is None:
            return
        earliest = self.clock() - self.past_start_grace.to_timedelta()
        if interval.start < earliest:
            raise BookingError.invalid_interval(start, end, "start time is in the past")

    @staticmethod
    def _check_attendees(room: Room, attendees: int):
        if not 1 <= attendees <= room.capacity:
            raise BookingError.capacity_exceeded(room.name, attendees, room.capacity)
