"""
CDC Mutation Parser
Parses one framed commit log entry (JSON-encoded mutation) into PartitionViews

Entry layout::

    {"partitions": [
        {"keyspace": "shop", "table": "orders",
         "partitionKeyType": "text", "clusteringTypes": ["date"],
         "partitionKey": "<base64>", "deletionTime": null,
         "entries": [
            {"type": "row", "clustering": ["<base64>"], "deletionTime": null,
             "cells": [{"name": "amount", "type": "int", "value": "<base64>"},
                       {"name": "note", "type": "text", "tombstone": true}]},
            {"type": "bound", "kind": "INCL_START_BOUND", "values": ["<base64>"]}
         ]}
    ]}
"""

import base64
import binascii
import json
from typing import Any, Dict, List, Optional

from cassandra_cdc.models.views import (
    LIVE,
    BoundKind,
    BoundView,
    CellView,
    ColumnDefinition,
    PartitionView,
    RowView,
    TableMetadata,
    Unfiltered,
)


class ParseError(Exception):
    """Exception raised when a commit log entry cannot be parsed"""

    pass


def parse_commitlog_entry(commitlog_data: bytes) -> List[PartitionView]:
    """
    Parse a framed commit log entry into partition updates

    Args:
        commitlog_data: Entry payload (without the length prefix)

    Returns:
        Partition updates in mutation order

    Raises:
        ParseError: If entry cannot be parsed
    """
    try:
        document = json.loads(commitlog_data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseError(f"Invalid commitlog entry: {e}") from e

    if not isinstance(document, dict) or not isinstance(document.get("partitions"), list):
        raise ParseError("Invalid commitlog entry: missing 'partitions' list")

    try:
        return [parse_partition(p) for p in document["partitions"]]
    except ParseError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise ParseError(f"Failed to parse commitlog entry: {e!r}") from e


def parse_partition(data: Dict[str, Any]) -> PartitionView:
    """Parse one partition update"""
    metadata = TableMetadata(
        keyspace=data["keyspace"],
        table=data["table"],
        partition_key_type=data["partitionKeyType"],
        clustering_types=list(data.get("clusteringTypes", [])),
    )

    entries: List[Unfiltered] = []
    for entry in data.get("entries", []):
        entry_type = entry.get("type")
        if entry_type == "row":
            entries.append(parse_row(entry))
        elif entry_type == "bound":
            entries.append(parse_bound(entry))
        else:
            raise ParseError(f"Unknown entry type: {entry_type!r}")

    return PartitionView(
        metadata=metadata,
        partition_key=_partition_key(data.get("partitionKey")),
        deletion_time=_deletion_time(data.get("deletionTime")),
        entries=entries,
    )


def parse_row(data: Dict[str, Any]) -> RowView:
    """Parse a row entry; cells carry their own column name and type"""
    columns = []
    cells = []
    for cell in data.get("cells", []):
        columns.append(ColumnDefinition(name=cell["name"], cql_type=cell["type"]))
        if cell.get("tombstone", False):
            cells.append(CellView(tombstone=True))
        else:
            cells.append(CellView(value=_b64(cell.get("value"))))

    return RowView(
        clustering=[_b64(v) for v in data.get("clustering", [])],
        deletion_time=_deletion_time(data.get("deletionTime")),
        columns=columns,
        cells=cells,
    )


def parse_bound(data: Dict[str, Any]) -> BoundView:
    """Parse a range-tombstone marker entry"""
    try:
        kind = BoundKind(data["kind"])
    except ValueError as e:
        raise ParseError(f"Unknown bound kind: {data['kind']!r}") from e

    return BoundView(kind=kind, values=[_b64(v) for v in data.get("values", [])])


def _b64(value: Optional[str]) -> Optional[bytes]:
    if value is None:
        return None
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, TypeError) as e:
        raise ParseError(f"Invalid base64 value: {value!r}") from e


def _partition_key(value: Optional[str]) -> bytes:
    key = _b64(value)
    if not key:
        raise ParseError("Partition key is missing or empty")
    return key


def _deletion_time(value: Optional[int]) -> int:
    if value is None:
        return LIVE
    if not isinstance(value, int) or isinstance(value, bool):
        raise ParseError(f"Invalid deletion time: {value!r}")
    return value
