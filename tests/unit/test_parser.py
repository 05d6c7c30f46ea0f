"""
Unit tests for commit log entry parsing
Tests JSON entry parsing into partition views
"""

import base64
import json

import pytest

from cassandra_cdc.cdc.parser import ParseError, parse_commitlog_entry
from cassandra_cdc.models.views import LIVE, BoundKind, BoundView, RowView


def b64(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def entry(*partitions) -> bytes:
    return json.dumps({"partitions": list(partitions)}).encode("utf-8")


def partition(**overrides) -> dict:
    data = {
        "keyspace": "shop",
        "table": "orders",
        "partitionKeyType": "text",
        "clusteringTypes": ["text"],
        "partitionKey": b64(b"user1"),
        "deletionTime": None,
        "entries": [],
    }
    data.update(overrides)
    return data


class TestEventParsing:
    """Test parsing of well-formed entries"""

    def test_parse_row_entry(self):
        """Test parsing a partition with one live row and a tombstone cell"""
        row = {
            "type": "row",
            "clustering": [b64(b"2021-01-01")],
            "deletionTime": None,
            "cells": [
                {"name": "status", "type": "text", "value": b64(b"ok")},
                {"name": "note", "type": "text", "tombstone": True},
            ],
        }

        (view,) = parse_commitlog_entry(entry(partition(entries=[row])))

        assert view.metadata.keyspace == "shop"
        assert view.partition_key == b"user1"
        assert view.deletion_time == LIVE
        assert not view.is_deleted

        (parsed_row,) = view.entries
        assert isinstance(parsed_row, RowView)
        assert parsed_row.clustering == [b"2021-01-01"]
        assert [c.name for c in parsed_row.columns] == ["status", "note"]
        assert parsed_row.cells[0].value == b"ok"
        assert parsed_row.cells[1].tombstone

    def test_parse_bound_entry(self):
        """Test parsing a range-tombstone marker"""
        bound = {"type": "bound", "kind": "EXCL_END_BOUND", "values": [b64(b"z")]}

        (view,) = parse_commitlog_entry(entry(partition(entries=[bound])))

        assert view.entries == [BoundView(kind=BoundKind.EXCL_END_BOUND, values=[b"z"])]

    def test_parse_partition_deletion(self):
        """Test that a deletion time marks the partition deleted"""
        (view,) = parse_commitlog_entry(entry(partition(deletionTime=1700000000)))

        assert view.is_deleted

    def test_parse_multiple_partitions(self):
        """Test that partitions keep mutation order"""
        views = parse_commitlog_entry(
            entry(partition(partitionKey=b64(b"a")), partition(partitionKey=b64(b"b")))
        )

        assert [v.partition_key for v in views] == [b"a", b"b"]


class TestParseErrors:
    """Test that malformed entries raise ParseError"""

    @pytest.mark.parametrize(
        "payload",
        [
            b"not json",
            b"\xff\xfe",
            b"[]",
            b'{"partitions": 5}',
        ],
    )
    def test_invalid_document(self, payload):
        """Test that non-entry payloads are rejected"""
        with pytest.raises(ParseError):
            parse_commitlog_entry(payload)

    def test_missing_required_field(self):
        """Test that a partition without a keyspace is rejected"""
        data = partition()
        del data["keyspace"]

        with pytest.raises(ParseError):
            parse_commitlog_entry(entry(data))

    def test_unknown_entry_type(self):
        """Test that unknown entry types are rejected"""
        with pytest.raises(ParseError, match="Unknown entry type"):
            parse_commitlog_entry(entry(partition(entries=[{"type": "static"}])))

    def test_unknown_bound_kind(self):
        """Test that unknown bound kinds are rejected"""
        bound = {"type": "bound", "kind": "SOMEWHERE_BOUND", "values": []}

        with pytest.raises(ParseError, match="Unknown bound kind"):
            parse_commitlog_entry(entry(partition(entries=[bound])))

    def test_invalid_base64(self):
        """Test that a corrupt key is rejected"""
        with pytest.raises(ParseError, match="base64"):
            parse_commitlog_entry(entry(partition(partitionKey="***")))

    def test_invalid_deletion_time(self):
        """Test that a non-integer deletion time is rejected"""
        with pytest.raises(ParseError, match="deletion time"):
            parse_commitlog_entry(entry(partition(deletionTime="yesterday")))

    @pytest.mark.parametrize("key", [None, ""])
    def test_missing_partition_key(self, key):
        """Test that a partition without a usable key is rejected"""
        with pytest.raises(ParseError, match="Partition key"):
            parse_commitlog_entry(entry(partition(partitionKey=key)))

    def test_absent_partition_key(self):
        """Test that a partition with no key field is rejected"""
        data = partition()
        del data["partitionKey"]

        with pytest.raises(ParseError, match="Partition key"):
            parse_commitlog_entry(entry(data))
