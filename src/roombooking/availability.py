#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Per-room index of confirmed bookings.

Each room owns a table of its confirmed bookings, sorted by start time, and a
lock. The conflict check and the insertion of a new booking happen under the
room's lock, so two concurrent requests for the same room cannot both observe
a free slot. Requests for different rooms never contend.
"""

import logging
import threading
import uuid

import polars as pl

from roombooking.exceptions import BookingError
from roombooking.models import BookingId, ConfirmedBooking, Room, RoomName
from roombooking.storage.schemas import TableNamespace, empty_table, to_table
from roombooking.time_utils import BookingInterval, Duration

logger = logging.getLogger(__name__)


def _overlap_predicate(interval: BookingInterval) -> pl.Expr:
    """Matches bookings sharing at least one instant with `interval`.

    Touching bookings (ending exactly at `interval.start` or starting
    exactly at `interval.end`) do not match.
    """
    interval = interval.to_utc()
    return (pl.col("start") < interval.end) & (pl.col("end") > interval.start)


def _id_predicate(booking_id: BookingId) -> pl.Expr:
    # non-string ids (eg 42) never match
    return pl.col("booking_id") == str(booking_id)


def _to_bookings(table: pl.DataFrame) -> list[ConfirmedBooking]:
    return [ConfirmedBooking.from_row(row) for row in table.iter_rows(named=True)]


class AvailabilityIndex:
    def __init__(self):
        self._tables: dict[RoomName, pl.DataFrame] = {}
        self._locks: dict[RoomName, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, room_name: RoomName) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(room_name, threading.Lock())

    def _table(self, room_name: RoomName) -> pl.DataFrame:
        table = self._tables.get(room_name)
        if table is None:
            return empty_table(TableNamespace.ROOM_BOOKINGS)
        return table

    def find_conflicts(
        self, room: Room, interval: BookingInterval
    ) -> list[ConfirmedBooking]:
        """Return every confirmed booking of `room` overlapping `interval`,
        ordered by start time. The list is empty if the room is free."""
        table = self._table(room.name)
        return _to_bookings(table.filter(_overlap_predicate(interval)))

    def insert(
        self,
        room: Room,
        interval: BookingInterval,
        *,
        organiser: str | None = None,
        attendees: int | None = None,
        notes: str | None = None,
    ) -> ConfirmedBooking:
        """Record a booking of `room` for `interval` if the room is free.

        Raises
        ------
        BookingError
            With kind `BOOKING_OVERLAP`, carrying the conflicting bookings,
            if `interval` overlaps an existing booking of the room.
        """
        with self._lock_for(room.name):
            table = self._table(room.name)
            conflicts = _to_bookings(table.filter(_overlap_predicate(interval)))
            if conflicts:
                raise BookingError.booking_overlap(room.name, conflicts)
            booking = ConfirmedBooking(
                booking_id=str(uuid.uuid4()),
                room_name=room.name,
                interval=interval.to_utc(),
                organiser=organiser,
                attendees=attendees,
                notes=notes,
            )
            row = to_table(TableNamespace.ROOM_BOOKINGS, [booking.to_row()])
            self._tables[room.name] = table.vstack(row).sort("start")
        logger.debug(f"Inserted booking {booking.booking_id} for {room.name}")
        return booking

    def remove(self, room: Room, booking_id: BookingId) -> ConfirmedBooking:
        """Delete a booking of `room`, returning it as it was stored.

        Raises
        ------
        BookingError
            With kind `BOOKING_NOT_FOUND` if the room holds no such booking.
        """
        with self._lock_for(room.name):
            table = self._table(room.name)
            predicate = _id_predicate(booking_id)
            if table.filter(predicate).is_empty():
                raise BookingError.booking_not_found(booking_id)
            removed = _to_bookings(table.filter(predicate))[0]
            self._tables[room.name] = table.filter(~predicate)
        return removed

    def get(self, booking_id: BookingId) -> ConfirmedBooking | None:
        for table in list(self._tables.values()):
            match = table.filter(_id_predicate(booking_id))
            if not match.is_empty():
                return _to_bookings(match)[0]
        return None

    def bookings(self, room: Room | None = None) -> list[ConfirmedBooking]:
        """Confirmed bookings ordered by start time, optionally for
        a single room. Bookings starting together are ordered by room name."""
        if room is not None:
            return _to_bookings(self._table(room.name))
        tables = [t for t in list(self._tables.values()) if not t.is_empty()]
        if not tables:
            return []
        return _to_bookings(pl.concat(tables).sort(["start", "room_name"]))

    def free_slots(
        self,
        room: Room,
        window: BookingInterval,
        min_duration: Duration | None = None,
    ) -> list[BookingInterval]:
        """The parts of `window` during which `room` is not booked.

        Parameters
        ----------
        room
            The room to check.
        window
            The time interval in which availability is checked.
        min_duration
            If specified, free slots shorter than this are discarded.

        Returns
        -------
        A list of time intervals, in the time zone of `window.start`, ordered
        by start time. The list is empty if the room is booked for the entire
        window.
        """
        tz = window.start.tzinfo
        overlapping = self.find_conflicts(room, window)
        free: list[BookingInterval] = []
        current_start = window.start
        for booking in overlapping:
            booking_start = booking.start.astimezone(tz)
            booking_end = booking.end.astimezone(tz)
            if current_start < booking_start:
                free.append(BookingInterval(current_start, booking_start))
            current_start = max(current_start, booking_end)
        if current_start < window.end:
            free.append(BookingInterval(current_start, window.end))
        if min_duration is not None:
            shortest = min_duration.to_timedelta()
            free = [slot for slot in free if slot.end - slot.start >= shortest]
        return free

