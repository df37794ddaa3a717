#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
from io import StringIO

from rich.console import Console

from roombooking.display import display_bookings, display_rooms, summarise_availability


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, width=200, color_system=None), buffer


def test_display_rooms(service):
    console, buffer = _console()
    display_rooms(service.list_rooms(), console=console)
    output = buffer.getvalue()
    assert "Huddle A" in output
    assert "Conference" in output
    assert "TV, Whiteboard" in output


def test_display_bookings(service, at):
    service.book("Team Room", at(9), at(10), organiser="Alex", attendees=9)
    console, buffer = _console()
    display_bookings(service.list_bookings(), console=console)
    output = buffer.getvalue()
    assert "2025-03-03 09:00" in output
    assert "Alex" in output


def test_summarise_availability(service, at):
    service.book("Main Conference", at(9), at(17))
    service.book("Team Room", at(9), at(12))
    schedule = service.search_availability(datetime.date(2025, 3, 3), capacity=10)
    summary = summarise_availability(schedule)
    assert summary == (
        "Team Room (medium, seats 15)\n"
        "  free 2025-03-03 12:00 to 2025-03-03 17:00 (300 min)\n"
        "\n"
        "Main Conference (conference, seats 80)\n"
        "  no free slots"
    )
    assert summarise_availability(schedule, room_name="Team Room") == (
        summary.split("\n\n")[0]
    )
    assert summarise_availability(schedule, room_name="Atrium") == "No matching rooms."
