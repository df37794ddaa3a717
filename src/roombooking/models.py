#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Rooms and bookings managed by the engine."""

import datetime
from enum import StrEnum, auto
from typing import Any, NamedTuple, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from roombooking.time_utils import BookingInterval

BookingId = str
RoomName = str


class RoomType(StrEnum):
    Small = auto()
    Medium = auto()
    Large = auto()
    Conference = auto()
    Boardroom = auto()


class CapacityBounds(NamedTuple):
    """Inclusive range of seats a room of a given type may have."""

    min: int
    max: int

    def admits(self, capacity: int) -> bool:
        return self.min <= capacity <= self.max


CAPACITY_BOUNDS: dict[RoomType, CapacityBounds] = {
    RoomType.Small: CapacityBounds(2, 8),  # huddle rooms
    RoomType.Medium: CapacityBounds(9, 20),  # team meetings
    RoomType.Large: CapacityBounds(21, 50),
    RoomType.Conference: CapacityBounds(51, 200),
    RoomType.Boardroom: CapacityBounds(8, 15),
}


class BookingStatus(StrEnum):
    Confirmed = auto()
    Cancelled = auto()


class Room(BaseModel):
    """A bookable conference room.

    Parameters
    ----------
    name
        Unique name of the room, used to address it in booking requests.
    room_type
        The room category. Determines the admissible capacity range
        (see `CAPACITY_BOUNDS`).
    capacity
        The maximum number of people the room can host.
    features
        Equipment available in the room (eg "Projector", "Whiteboard").
    """

    model_config = ConfigDict(frozen=True)

    name: RoomName
    room_type: RoomType
    capacity: int
    features: tuple[str, ...] = ()

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, name: str) -> str:
        name = name.strip()
        if not name:
            raise ValueError("room name is required")
        return name

    @field_validator("room_type", mode="before")
    @classmethod
    def _case_insensitive_type(cls, room_type: Any) -> Any:
        if isinstance(room_type, str):
            return room_type.strip().lower()
        return room_type

    @model_validator(mode="after")
    def _capacity_matches_type(self) -> Self:
        bounds = CAPACITY_BOUNDS[self.room_type]
        if not bounds.admits(self.capacity):
            raise ValueError(
                f"a {self.room_type} room seats between {bounds.min} and "
                f"{bounds.max} people, got capacity {self.capacity}"
            )
        return self


class BookingRequest(BaseModel):
    """A request to reserve a room. Timestamps may be ISO-8601 strings."""

    model_config = ConfigDict(frozen=True)

    room_name: RoomName
    start: datetime.datetime | str
    end: datetime.datetime | str
    organiser: str | None = None
    attendees: int | None = None
    notes: str | None = None


class ConfirmedBooking(BaseModel):
    """An accepted reservation.

    Parameters
    ----------
    booking_id
        The unique ID of the booking, assigned on confirmation.
    room_name
        The room booked.
    interval
        When the room is reserved, in UTC.
    status
        `Confirmed` while the booking holds the room, `Cancelled` once
        it has been released.
    """

    model_config = ConfigDict(frozen=True)

    booking_id: BookingId
    room_name: RoomName
    interval: BookingInterval
    status: BookingStatus = BookingStatus.Confirmed
    organiser: str | None = None
    attendees: int | None = None
    notes: str | None = None
    created_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    @property
    def start(self) -> datetime.datetime:
        return self.interval.start

    @property
    def end(self) -> datetime.datetime:
        return self.interval.end

    def to_row(self) -> dict[str, Any]:
        return {
            "booking_id": self.booking_id,
            "room_name": self.room_name,
            "start": self.interval.start,
            "end": self.interval.end,
            "organiser": self.organiser,
            "attendees": self.attendees,
            "notes": self.notes,
            "created_at": self.created_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Self:
        row = dict(row)
        interval = BookingInterval(start=row.pop("start"), end=row.pop("end"))
        return cls(interval=interval, **row)

    def __str__(self) -> str:
        display = f"#{self.booking_id} {self.room_name} {self.interval}"
        if self.organiser:
            display += f" by {self.organiser}"
        return display


class RoomAvailability(BaseModel):
    """One room in the result of an availability search.

    `free_slots` lists the unbooked parts of the searched windows in start
    order. Rooms booked for the whole search are still returned, with no
    free slots.
    """

    room: Room
    free_slots: list[BookingInterval]
