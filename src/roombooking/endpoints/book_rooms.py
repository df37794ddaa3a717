#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Replay a batch of booking requests against a freshly seeded engine.

Usage::

    roombooking-book requests_path=requests.jsonl out_dir=outputs/monday
"""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Iterable, Literal

import hydra
from hydra.utils import instantiate
from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel, ValidationError

from roombooking.constants import (
    CONFIG_PATH,
    DEFAULT_CONFIG_NAME,
    MALFORMED_REQUEST,
    RESULTS_FILE_NAME,
    SUMMARY_FILE_NAME,
)
from roombooking.display import display_bookings, display_rooms
from roombooking.exceptions import BookingError
from roombooking.models import BookingId, BookingRequest, ConfirmedBooking, Room
from roombooking.service import BookingService

logger = logging.getLogger(__name__)


class BookingOutcome(BaseModel):
    """What happened to one line of the requests file."""

    line: int
    action: Literal["book", "cancel"]
    ref: str | None = None
    booking: ConfirmedBooking | None = None
    error: dict[str, Any] | None = None

    @property
    def accepted(self) -> bool:
        return self.error is None


class CancelRequest(BaseModel):
    """A request to release a booking, named by its ID."""

    booking_id: BookingId | None = None


def seed_rooms(service: BookingService, rooms: Iterable[Any]) -> list[Room]:
    """Register the rooms listed in the config."""
    registered = []
    for room_cfg in rooms:
        if isinstance(room_cfg, DictConfig):
            room_cfg = OmegaConf.to_container(room_cfg, resolve=True)
        registered.append(service.register_room(**room_cfg))
    return registered


def load_requests(path: str | Path) -> list[str]:
    """Read the non-blank lines of a JSONL requests file.

    Lines are decoded one at a time by `replay_requests`, so that a line
    which is not valid JSON is reported without aborting the run.
    """
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


def _malformed(line: int, action: Any, ref: Any, message: str) -> BookingOutcome:
    logger.warning(f"Line {line}: {message}")
    return BookingOutcome(
        line=line,
        action=action if action in ("book", "cancel") else "book",
        ref=ref if isinstance(ref, str) else None,
        error={"kind": MALFORMED_REQUEST, "message": message},
    )


def _decode(record: Any) -> dict[str, Any]:
    """Return `record` as a mutable dict, decoding it first if it is a JSON line.

    Raises
    ------
    ValueError
        If `record` is not valid JSON or does not hold a JSON object.
    """
    if isinstance(record, str):
        try:
            record = json.loads(record)
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid JSON ({e})") from e
    if not isinstance(record, dict):
        raise ValueError(f"expected a JSON object, got {type(record).__name__}")
    return dict(record)


def replay_requests(
    service: BookingService, records: list[Any]
) -> list[BookingOutcome]:
    """Submit each record to `service` in order.

    A record is a `BookingRequest`, either as a dict or as a line of JSON,
    with two optional extra keys: `action` ("book", the default, or "cancel")
    and `ref`, a caller-chosen label. A cancellation names the booking either
    by `booking_id` or by the `ref` of the request which created it. Records
    which cannot be interpreted are reported as malformed and skipped.
    """
    refs: dict[str, str] = {}
    outcomes = []
    for line, record in enumerate(records, start=1):
        try:
            record = _decode(record)
        except ValueError as e:
            outcomes.append(_malformed(line, "book", None, str(e)))
            continue
        action = record.pop("action", "book")
        ref = record.pop("ref", None)
        if ref is not None and not isinstance(ref, str):
            outcomes.append(
                _malformed(line, action, None, f"ref must be a string, got {ref!r}")
            )
            continue
        if action == "cancel":
            try:
                request = CancelRequest.model_validate(record)
            except ValidationError as e:
                outcomes.append(_malformed(line, action, ref, str(e)))
                continue
            booking_id = request.booking_id or refs.get(ref)
            if booking_id is None:
                outcomes.append(
                    _malformed(line, action, ref, "cancellation names no known booking")
                )
                continue
            try:
                booking = service.cancel(booking_id)
            except BookingError as e:
                outcomes.append(
                    BookingOutcome(line=line, action=action, ref=ref, error=e.to_dict())
                )
                continue
            outcomes.append(
                BookingOutcome(line=line, action=action, ref=ref, booking=booking)
            )
        elif action == "book":
            try:
                request = BookingRequest.model_validate(record)
            except ValidationError as e:
                outcomes.append(_malformed(line, action, ref, str(e)))
                continue
            try:
                booking = service.book_request(request)
            except BookingError as e:
                outcomes.append(
                    BookingOutcome(line=line, action=action, ref=ref, error=e.to_dict())
                )
                continue
            if ref is not None:
                refs[ref] = booking.booking_id
            outcomes.append(
                BookingOutcome(line=line, action=action, ref=ref, booking=booking)
            )
        else:
            outcomes.append(_malformed(line, action, ref, f"unknown action {action!r}"))
    return outcomes


def summarise_outcomes(outcomes: list[BookingOutcome]) -> dict[str, Any]:
    rejected = Counter(o.error["kind"] for o in outcomes if not o.accepted)
    return {
        "total": len(outcomes),
        "accepted": sum(o.accepted for o in outcomes),
        "rejected": sum(rejected.values()),
        "rejected_by_kind": dict(sorted(rejected.items())),
    }


@hydra.main(
    config_name=DEFAULT_CONFIG_NAME,
    config_path=CONFIG_PATH,
    version_base=None,
)
def run_bookings(cfg: DictConfig):
    output_dir = Path(cfg.out_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    OmegaConf.save(config=cfg, f=output_dir / "config.yaml")
    if cfg.debug:
        logger.info(OmegaConf.to_yaml(cfg, resolve=True))

    service: BookingService = instantiate(cfg.service)
    rooms = seed_rooms(service, cfg.rooms)
    logger.info(f"Seeded {len(rooms)} rooms")

    records = load_requests(cfg.requests_path) if cfg.requests_path else []
    outcomes = replay_requests(service, records)

    results_path = output_dir / RESULTS_FILE_NAME
    with open(results_path, "w") as f_out_results:
        for outcome in outcomes:
            f_out_results.write(f"{outcome.model_dump_json()}\n")
    summary = summarise_outcomes(outcomes)
    with open(output_dir / SUMMARY_FILE_NAME, "w") as f_out_summary:
        json.dump(summary, f_out_summary, indent=4)

    if cfg.show_bookings:
        display_rooms(rooms)
        display_bookings(service.list_bookings())
    logger.info(
        f"{summary['accepted']} of {summary['total']} requests accepted, "
        f"{summary['rejected']} rejected"
    )
    logger.info(f"Results written to {results_path}")


if __name__ == "__main__":
    run_bookings()
