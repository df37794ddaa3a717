#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""The set of rooms known to the engine."""

import logging
import threading

import polars as pl
from rapidfuzz import fuzz, process, utils

from roombooking.exceptions import BookingError
from roombooking.models import Room, RoomName, RoomType
from roombooking.storage.schemas import TableNamespace, empty_table, to_table

logger = logging.getLogger(__name__)

SUGGESTION_THRESHOLD = 80
MAX_SUGGESTIONS = 3


class RoomRegistry:
    """Holds the registered rooms.

    Rooms are read far more often than they are registered, so lookups
    do not take a lock: registration builds a new table and swaps the
    reference, which readers observe atomically.
    """

    def __init__(self):
        self._rooms: pl.DataFrame = empty_table(TableNamespace.ROOMS)
        self._register_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, name: RoomName) -> bool:
        return not self._rooms.filter(pl.col("name") == name).is_empty()

    def register(self, room: Room) -> Room:
        """Add a room to the registry.

        Raises
        ------
        BookingError
            With kind `DUPLICATE_ROOM` if a room with the same name exists.
        """
        with self._register_lock:
            if room.name in self:
                logger.warning(f"Rejected registration of duplicate room {room.name}")
                raise BookingError.duplicate_room(room.name)
            row = to_table(
                TableNamespace.ROOMS,
                [
                    {
                        "name": room.name,
                        "room_type": str(room.room_type),
                        "capacity": room.capacity,
                        "features": list(room.features),
                    }
                ],
            )
            self._rooms = self._rooms.vstack(row)
        logger.info(
            f"Registered room {room.name} ({room.room_type}, capacity {room.capacity})"
        )
        return room

    def resolve(self, name: RoomName) -> Room:
        """Return the room called `name`.

        Surrounding whitespace is ignored, as it is when a room is registered.
        Otherwise names must match exactly, including case.

        Raises
        ------
        BookingError
            With kind `ROOM_NOT_FOUND` carrying `name`, and the closest
            registered names, if no such room exists.
        """
        if not isinstance(name, str):
            raise BookingError.room_not_found(name)
        name = name.strip()
        rooms = self._rooms
        match = rooms.filter(pl.col("name") == name)
        if match.is_empty():
            suggestions = self._suggest(rooms, name)
            logger.debug(f"Room {name} not found, suggestions: {suggestions}")
            raise BookingError.room_not_found(name, suggestions)
        return Room(**match.row(0, named=True))

    def rooms(
        self, capacity: int | None = None, room_type: RoomType | None = None
    ) -> list[Room]:
        """Registered rooms in registration order.

        Parameters
        ----------
        capacity
            If specified, only rooms seating at least `capacity` people are returned.
        room_type
            If specified, only rooms of this type are returned.
        """
        rooms = self._rooms
        if capacity is not None:
            rooms = rooms.filter(pl.col("capacity") >= capacity)
        if room_type is not None:
            rooms = rooms.filter(pl.col("room_type") == str(room_type))
        return [Room(**row) for row in rooms.iter_rows(named=True)]

    @staticmethod
    def _suggest(rooms: pl.DataFrame, name: str) -> tuple[str, ...]:
        if rooms.is_empty() or not name:
            return ()
        # process.extract returns a tuple of (string, score, index)
        matches = process.extract(
            query=name,
            choices=rooms.get_column("name").to_list(),
            processor=utils.default_process,
            scorer=fuzz.WRatio,
            score_cutoff=SUGGESTION_THRESHOLD,
            limit=MAX_SUGGESTIONS,
        )
        return tuple(m[0] for m in matches)
