#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
from typing import Callable

import pytest

from roombooking.models import Room
from roombooking.service import BookingService

UTC = datetime.timezone.utc
MONDAY = datetime.date(2025, 3, 3)

SEED_ROOMS = [
    {
        "name": "Huddle A",
        "room_type": "small",
        "capacity": 6,
        "features": ["TV", "Whiteboard"],
    },
    {
        "name": "Team Room",
        "room_type": "medium",
        "capacity": 15,
        "features": ["Projector", "Whiteboard"],
    },
    {
        "name": "Main Conference",
        "room_type": "conference",
        "capacity": 80,
        "features": ["Stage", "Sound", "Recording"],
    },
]


def _at(
    hour: int,
    minute: int = 0,
    day: datetime.date = MONDAY,
    tz: datetime.tzinfo = UTC,
) -> datetime.datetime:
    return datetime.datetime.combine(day, datetime.time(hour, minute), tzinfo=tz)


@pytest.fixture
def at() -> Callable[..., datetime.datetime]:
    """Build timezone-aware datetimes on a fixed Monday, eg `at(9, 30)`."""
    return _at


@pytest.fixture
def huddle() -> Room:
    return Room(**SEED_ROOMS[0])


@pytest.fixture
def team_room() -> Room:
    return Room(**SEED_ROOMS[1])


@pytest.fixture
def service() -> BookingService:
    """A service with the seed rooms registered and no bookings."""
    booking_service = BookingService()
    for room in SEED_ROOMS:
        booking_service.register_room(**room)
    return booking_service
