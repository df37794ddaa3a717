#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from rich.console import Console
from rich.table import Table

from roombooking.models import ConfirmedBooking, Room, RoomAvailability
from roombooking.time_utils import BookingInterval

TIME_FORMAT = "%Y-%m-%d %H:%M"


def display_rooms(rooms: list[Room], console: Console | None = None):
    """Display the registered rooms as a rich table with the following format

    ┏━━━━━━━━━━━━━━━━━┳━━━━━━━━━━━━┳━━━━━━━━━━┳━━━━━━━━━━━━━━━━━━━━━━━┓
    ┃ Room            ┃ Type       ┃ Capacity ┃ Features              ┃
    ┡━━━━━━━━━━━━━━━━━╇━━━━━━━━━━━━╇━━━━━━━━━━╇━━━━━━━━━━━━━━━━━━━━━━━┩
    """  # noqa

    console = console or Console()
    table = Table(show_header=True, header_style="bold magenta", title="Rooms")
    table.add_column("Room", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Capacity", justify="right")
    table.add_column("Features", style="dim")
    for room in rooms:
        table.add_row(
            room.name,
            str(room.room_type).capitalize(),
            str(room.capacity),
            ", ".join(room.features),
        )
    console.print(table)


def display_bookings(bookings: list[ConfirmedBooking], console: Console | None = None):
    """Display confirmed bookings as a `rich` table, in the order given."""
    console = console or Console()
    table = Table(show_header=True, header_style="bold magenta", title="Bookings")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Room", style="cyan")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Organiser")
    table.add_column("Attendees", justify="right")
    for booking in bookings:
        table.add_row(
            booking.booking_id,
            booking.room_name,
            booking.start.strftime(TIME_FORMAT),
            booking.end.strftime(TIME_FORMAT),
            booking.organiser or "",
            "" if booking.attendees is None else str(booking.attendees),
        )
    console.print(table)


def _describe_slot(slot: BookingInterval) -> str:
    minutes = int(slot.duration.to_minutes())
    return (
        f"  free {slot.start.strftime(TIME_FORMAT)} to "
        f"{slot.end.strftime(TIME_FORMAT)} ({minutes} min)"
    )


def summarise_availability(
    schedule: list[RoomAvailability],
    room_name: str | None = None,
) -> str:
    """Render search results as plain text, one block per room.

    Each block opens with the room name, type and capacity, followed by one
    line per free slot. Rooms are rendered in the order of `schedule`; only
    `room_name` is rendered if specified.
    """
    entries = [
        entry
        for entry in schedule
        if room_name is None or entry.room.name == room_name
    ]
    if not entries:
        return "No matching rooms."
    blocks = []
    for entry in entries:
        room = entry.room
        lines = [f"{room.name} ({room.room_type}, seats {room.capacity})"]
        lines.extend(_describe_slot(slot) for slot in entry.free_slots)
        if not entry.free_slots:
            lines.append("  no free slots")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
