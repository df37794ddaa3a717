#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import json

import pytest
from hydra import compose, initialize_config_module
from omegaconf import OmegaConf

from roombooking.constants import (
    DEFAULT_CONFIG_NAME,
    MALFORMED_REQUEST,
    PACKAGE_NAME,
    RESULTS_FILE_NAME,
    SUMMARY_FILE_NAME,
)
from roombooking.endpoints.book_rooms import (
    load_requests,
    replay_requests,
    run_bookings,
    seed_rooms,
    summarise_outcomes,
)
from roombooking.service import BookingService

REQUESTS = [
    {
        "ref": "standup",
        "room_name": "Huddle A",
        "start": "2025-03-03T09:00:00+01:00",
        "end": "2025-03-03T09:30:00+01:00",
        "organiser": "Alex",
    },
    {
        "room_name": "Huddle A",
        "start": "2025-03-03T08:15:00Z",
        "end": "2025-03-03T09:00:00Z",
    },
    {"action": "cancel", "ref": "standup"},
    {
        "room_name": "Huddle A",
        "start": "2025-03-03T08:15:00Z",
        "end": "2025-03-03T09:00:00Z",
    },
    {
        "room_name": "Team Room",
        "start": "2025-03-03T10:00:00Z",
        "end": "2025-03-03T11:00:00Z",
        "attendees": 40,
    },
    {"action": "cancel", "ref": "never-booked"},
    {"room_name": "Huddle A", "start": "2025-03-03T10:00:00Z"},
    {"action": "move", "room_name": "Huddle A"},
]


@pytest.fixture
def requests_file(tmp_path):
    path = tmp_path / "requests.jsonl"
    with open(path, "w") as f:
        for request in REQUESTS:
            f.write(f"{json.dumps(request)}\n")
        f.write("\n")
        f.write("{oops\n")
    return path


def test_seed_rooms_from_config():
    rooms = OmegaConf.create(
        [
            {"name": "Huddle A", "room_type": "small", "capacity": 6},
            {"name": "Atrium", "room_type": "large", "capacity": 40},
        ]
    )
    service = BookingService()
    seeded = seed_rooms(service, rooms)
    assert [r.name for r in seeded] == ["Huddle A", "Atrium"]
    assert len(service.list_rooms()) == 2


def test_load_requests_skips_blank_lines(requests_file):
    *lines, broken = load_requests(requests_file)
    assert [json.loads(line) for line in lines] == REQUESTS
    assert broken == "{oops"


@pytest.mark.parametrize(
    "record, message",
    [
        ("{oops", "invalid JSON"),
        ('["not", "an", "object"]', "expected a JSON object"),
        (["not", "an", "object"], "expected a JSON object"),
        ({"action": "cancel", "booking_id": 42}, "booking_id"),
        ({"ref": 7, "room_name": "Huddle A"}, "ref must be a string"),
    ],
)
def test_unreadable_records_are_malformed(service, record, message):
    [outcome] = replay_requests(service, [record])
    assert outcome.error["kind"] == MALFORMED_REQUEST
    assert message in outcome.error["message"]
    assert service.list_bookings() == []


def test_malformed_lines_do_not_stop_the_replay(service):
    lines = [json.dumps(REQUESTS[0]), "{oops", "42", json.dumps(REQUESTS[2])]
    outcomes = replay_requests(service, lines)
    assert [o.accepted for o in outcomes] == [True, False, False, True]
    assert outcomes[3].booking.status == "cancelled"


def test_replay_requests(service):
    outcomes = replay_requests(service, REQUESTS)
    assert [o.line for o in outcomes] == list(range(1, len(REQUESTS) + 1))
    assert [o.accepted for o in outcomes] == [
        True,
        False,
        True,
        True,
        False,
        False,
        False,
        False,
    ]
    standup, overlap, cancel, rebooked, too_many, unknown, incomplete, move = outcomes
    assert standup.ref == "standup"
    assert overlap.error["kind"] == "booking_overlap"
    assert overlap.error["conflicts"] == [standup.booking.booking_id]
    assert cancel.action == "cancel"
    assert cancel.booking.booking_id == standup.booking.booking_id
    assert cancel.booking.status == "cancelled"
    assert rebooked.booking.room_name == "Huddle A"
    assert too_many.error["kind"] == "capacity_exceeded"
    assert too_many.error["capacity"] == 15
    assert unknown.error["kind"] == MALFORMED_REQUEST
    assert incomplete.error["kind"] == MALFORMED_REQUEST
    assert move.error["kind"] == MALFORMED_REQUEST
    assert [b.booking_id for b in service.list_bookings()] == [
        rebooked.booking.booking_id
    ]


def test_cancel_by_booking_id(service):
    [booked] = replay_requests(service, REQUESTS[:1])
    [cancelled] = replay_requests(
        service, [{"action": "cancel", "booking_id": booked.booking.booking_id}]
    )
    assert cancelled.accepted
    [again] = replay_requests(
        service, [{"action": "cancel", "booking_id": booked.booking.booking_id}]
    )
    assert again.error["kind"] == "booking_not_found"


def test_summarise_outcomes(service):
    summary = summarise_outcomes(replay_requests(service, REQUESTS))
    assert summary == {
        "total": 8,
        "accepted": 3,
        "rejected": 5,
        "rejected_by_kind": {
            "booking_overlap": 1,
            "capacity_exceeded": 1,
            MALFORMED_REQUEST: 3,
        },
    }


def test_run_bookings(requests_file, tmp_path):
    out_dir = tmp_path / "outputs"
    with initialize_config_module(
        config_module=f"{PACKAGE_NAME}.configs", version_base=None
    ):
        cfg = compose(
            config_name=DEFAULT_CONFIG_NAME,
            overrides=[
                f"requests_path={requests_file}",
                f"out_dir={out_dir}",
                "show_bookings=false",
            ],
        )
    run_bookings(cfg)
    assert (out_dir / "config.yaml").exists()
    with open(out_dir / RESULTS_FILE_NAME) as f:
        results = [json.loads(line) for line in f]
    assert len(results) == len(REQUESTS) + 1
    assert results[-1]["error"]["kind"] == MALFORMED_REQUEST
    assert results[0]["booking"]["room_name"] == "Huddle A"
    assert results[1]["error"]["kind"] == "booking_overlap"
    with open(out_dir / SUMMARY_FILE_NAME) as f:
        summary = json.load(f)
    assert summary["accepted"] == 3
