#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from enum import StrEnum, auto
from typing import Any

import polars as pl

from roombooking.models import RoomType

UTC_DATETIME = pl.Datetime(time_unit="us", time_zone="UTC")


class TableNamespace(StrEnum):
    """Namespace for each in-memory table"""

    ROOMS = auto()
    ROOM_BOOKINGS = auto()


TABLE_SCHEMAS: dict[TableNamespace, dict[str, Any]] = {
    TableNamespace.ROOMS: {
        "name": pl.String,
        "room_type": pl.Enum([str(x) for x in RoomType]),
        "capacity": pl.UInt16,
        "features": pl.List(pl.String),
    },
    TableNamespace.ROOM_BOOKINGS: {
        "booking_id": pl.String,
        "room_name": pl.String,
        "start": UTC_DATETIME,
        "end": UTC_DATETIME,
        "organiser": pl.String,
        "attendees": pl.UInt16,
        "notes": pl.String,
        "created_at": UTC_DATETIME,
    },
}


def empty_table(namespace: TableNamespace) -> pl.DataFrame:
    return pl.DataFrame(schema=TABLE_SCHEMAS[namespace])


def to_table(namespace: TableNamespace, rows: list[dict[str, Any]]) -> pl.DataFrame:
    """Build a table from rows, rejecting columns the schema does not know.

    Raises
    ------
    KeyError:   When provided column names in rows does not match given schema
    """
    schema = TABLE_SCHEMAS[namespace]
    rows_column_names = {x for row in rows for x in row.keys()}
    if unknown := rows_column_names - set(schema):
        raise KeyError(
            f"Only column names {set(schema)} are allowed for namespace {namespace}. "
            f"Found unknown column name {unknown}"
        )
    return pl.DataFrame(rows, schema=schema)
