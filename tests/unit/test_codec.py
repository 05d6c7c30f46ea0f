"""
Unit tests for ColumnCodec
Tests rendering of serialized Cassandra values as strings
"""

import uuid
from datetime import datetime

import pytest

from cassandra_cdc.cdc.codec import CodecError, ColumnCodec, lookup_type, render_value


class TestColumnCodec:
    """Test decoding of typed cell bytes"""

    @pytest.mark.parametrize(
        "type_name,value,expected",
        [
            ("int", 42, "42"),
            ("bigint", -7, "-7"),
            ("boolean", True, "true"),
            ("boolean", False, "false"),
            ("text", "ok", "ok"),
            ("ascii", "plain", "plain"),
            ("blob", b"\x01\xff", "01ff"),
        ],
    )
    def test_decode_cql_types(self, type_name, value, expected):
        """Test that common CQL types render as expected"""
        codec = ColumnCodec()

        raw = codec.encode(type_name, value)

        assert codec.decode(type_name, raw) == expected

    def test_decode_marshal_class_name(self):
        """Test that fully qualified marshal names resolve like CQL names"""
        codec = ColumnCodec()

        assert codec.decode("org.apache.cassandra.db.marshal.UTF8Type", b"user1") == "user1"

    def test_decode_uuid(self):
        """Test that uuids render in canonical form"""
        codec = ColumnCodec()
        value = uuid.UUID("6ba7b810-9dad-11d1-80b4-00c04fd430c8")

        assert codec.decode("uuid", value.bytes) == str(value)

    def test_decode_timestamp(self):
        """Test that timestamps render as ISO-8601"""
        codec = ColumnCodec()
        raw = codec.encode("timestamp", datetime(2021, 1, 1, 12, 30))

        assert codec.decode("timestamp", raw).startswith("2021-01-01T12:30:00")

    def test_decode_collection_type(self):
        """Test that parameterized marshal types are supported"""
        codec = ColumnCodec()
        list_type = "org.apache.cassandra.db.marshal.ListType(org.apache.cassandra.db.marshal.Int32Type)"

        raw = codec.encode(list_type, [1, 2, 3])

        assert codec.decode(list_type, raw) == "[1, 2, 3]"

    def test_unsupported_type_raises(self):
        """Test that an unknown type name raises CodecError"""
        with pytest.raises(CodecError):
            ColumnCodec().decode("FrobnicatorType", b"\x00")

    def test_malformed_bytes_raise(self):
        """Test that bytes of the wrong width raise CodecError"""
        with pytest.raises(CodecError):
            ColumnCodec().decode("int", b"\x00\x01")

    def test_lookup_is_case_insensitive_for_cql_names(self):
        """Test that CQL names resolve regardless of case"""
        assert lookup_type("INT") is lookup_type("int")


class TestRenderValue:
    """Test string rendering of deserialized values"""

    def test_none_renders_empty(self):
        """Test that a missing value renders as an empty string"""
        assert render_value(None) == ""

    def test_map_rendering(self):
        """Test that maps render CQL style"""
        assert render_value({"a": 1, "b": 2}) == "{a: 1, b: 2}"

    def test_nested_collection_rendering(self):
        """Test that nested collections render recursively"""
        assert render_value([[1, 2], [True]]) == "[[1, 2], [true]]"
