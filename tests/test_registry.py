#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import pytest
from pydantic import ValidationError

from roombooking.exceptions import BookingError, ErrorKind
from roombooking.models import CAPACITY_BOUNDS, Room, RoomType
from roombooking.registry import RoomRegistry


@pytest.fixture
def registry(huddle: Room, team_room: Room) -> RoomRegistry:
    registry = RoomRegistry()
    registry.register(huddle)
    registry.register(team_room)
    return registry


def test_register_and_resolve(registry, huddle):
    assert len(registry) == 2
    assert "Huddle A" in registry
    assert registry.resolve("Huddle A") == huddle
    assert registry.resolve("Huddle A").features == ("TV", "Whiteboard")


def test_register_duplicate(registry, huddle):
    with pytest.raises(BookingError) as excinfo:
        registry.register(huddle)
    assert excinfo.value.kind == ErrorKind.DUPLICATE_ROOM
    assert excinfo.value.identifier == "Huddle A"
    assert len(registry) == 2


def test_names_are_case_sensitive(registry):
    with pytest.raises(BookingError) as excinfo:
        registry.resolve("huddle a")
    assert excinfo.value.kind == ErrorKind.ROOM_NOT_FOUND


def test_resolve_unknown_room_suggests_close_names(registry):
    with pytest.raises(BookingError) as excinfo:
        registry.resolve("Hudle A")
    error = excinfo.value
    assert error.kind == ErrorKind.ROOM_NOT_FOUND
    assert error.identifier == "Hudle A"
    assert "Huddle A" in error.suggestions
    assert "Did you mean" in str(error)


def test_resolve_unknown_room_without_close_names(registry):
    with pytest.raises(BookingError) as excinfo:
        registry.resolve("Atrium")
    assert excinfo.value.suggestions == ()


def test_resolve_on_empty_registry():
    with pytest.raises(BookingError) as excinfo:
        RoomRegistry().resolve("Huddle A")
    assert excinfo.value.kind == ErrorKind.ROOM_NOT_FOUND


def test_rooms_filters(registry):
    assert [r.name for r in registry.rooms()] == ["Huddle A", "Team Room"]
    assert [r.name for r in registry.rooms(capacity=10)] == ["Team Room"]
    assert [r.name for r in registry.rooms(room_type=RoomType.Small)] == ["Huddle A"]
    assert registry.rooms(capacity=100) == []


@pytest.mark.parametrize("room_type", list(RoomType))
def test_capacity_bounds(room_type):
    bounds = CAPACITY_BOUNDS[room_type]
    for capacity in (bounds.min, bounds.max):
        assert Room(name="R", room_type=room_type, capacity=capacity).capacity == (
            capacity
        )
    for capacity in (bounds.min - 1, bounds.max + 1):
        with pytest.raises(ValidationError):
            Room(name="R", room_type=room_type, capacity=capacity)


def test_room_validation():
    assert Room(name="  Atrium ", room_type="Large", capacity=30).name == "Atrium"
    assert Room(name="Atrium", room_type="LARGE", capacity=30).room_type == (
        RoomType.Large
    )
    with pytest.raises(ValidationError):
        Room(name="   ", room_type="large", capacity=30)
    with pytest.raises(ValidationError):
        Room(name="Atrium", room_type="ballroom", capacity=30)
