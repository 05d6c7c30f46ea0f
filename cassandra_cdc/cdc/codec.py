"""
Column Codec
Renders raw Cassandra cell bytes as strings using cassandra-driver's type system
"""

from datetime import date, datetime, time
from functools import lru_cache
from typing import Any, Optional

import structlog
from cassandra import cqltypes

logger = structlog.get_logger(__name__)

# CQL type names -> marshal class short names understood by cqltypes
CQL_TO_MARSHAL = {
    "ascii": "AsciiType",
    "bigint": "LongType",
    "blob": "BytesType",
    "boolean": "BooleanType",
    "counter": "CounterColumnType",
    "date": "SimpleDateType",
    "decimal": "DecimalType",
    "double": "DoubleType",
    "duration": "DurationType",
    "float": "FloatType",
    "inet": "InetAddressType",
    "int": "Int32Type",
    "smallint": "ShortType",
    "text": "UTF8Type",
    "time": "TimeType",
    "timestamp": "DateType",
    "timeuuid": "TimeUUIDType",
    "tinyint": "ByteType",
    "uuid": "UUIDType",
    "varchar": "UTF8Type",
    "varint": "IntegerType",
}


class CodecError(Exception):
    """Raised when a column type is unsupported or a value cannot be decoded"""

    pass


@lru_cache(maxsize=256)
def lookup_type(type_name: str) -> type:
    """
    Resolve a CQL name ("int") or marshal class name
    ("org.apache.cassandra.db.marshal.Int32Type") to a cqltypes class

    Raises:
        CodecError: If the type is unknown or cannot be parsed
    """
    marshal_name = CQL_TO_MARSHAL.get(type_name.strip().lower(), type_name)

    try:
        type_class = cqltypes.lookup_casstype(marshal_name)
    except ValueError as e:
        raise CodecError(f"Unparseable column type: {type_name}") from e

    if not isinstance(type_class, type) or issubclass(type_class, cqltypes._UnrecognizedType):
        raise CodecError(f"Unsupported column type: {type_name}")

    return type_class


def render_value(value: Any) -> str:
    """Render a deserialized Python value the way CQL tooling prints it"""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, dict):
        items = ", ".join(f"{render_value(k)}: {render_value(v)}" for k, v in value.items())
        return "{" + items + "}"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "[" + ", ".join(render_value(v) for v in value) + "]"
    return str(value)


class ColumnCodec:
    """
    Decodes typed cell bytes to strings

    Wraps cassandra-driver's cqltypes deserializers so the event builder
    never touches the driver directly.
    """

    def __init__(self, protocol_version: int = 4):
        """
        Initialize codec

        Args:
            protocol_version: Native protocol version used for deserialization
        """
        self.protocol_version = protocol_version

    def decode(self, type_name: str, raw: Optional[bytes]) -> str:
        """
        Decode raw bytes of the given type to a string

        Args:
            type_name: CQL or marshal type name
            raw: Serialized value

        Returns:
            String rendering of the value

        Raises:
            CodecError: If the type is unsupported or the bytes are malformed
        """
        type_class = lookup_type(type_name)

        try:
            value = type_class.from_binary(raw, self.protocol_version)
        except Exception as e:
            raise CodecError(f"Failed to decode {type_name} value: {e}") from e

        return render_value(value)

    def encode(self, type_name: str, value: Any) -> bytes:
        """Serialize a Python value of the given type (used by decoders and fixtures)"""
        type_class = lookup_type(type_name)

        try:
            return type_class.to_binary(value, self.protocol_version)
        except Exception as e:
            raise CodecError(f"Failed to encode {type_name} value: {e}") from e
