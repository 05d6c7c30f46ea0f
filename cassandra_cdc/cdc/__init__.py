"""
CDC (Change Data Capture) module for decoding Cassandra commit log segments
and turning partition updates into change events
"""

from cassandra_cdc.cdc.builder import EventBuilder
from cassandra_cdc.cdc.codec import CodecError, ColumnCodec
from cassandra_cdc.cdc.decoder import (
    FramedJsonSegmentDecoder,
    MutationDecoder,
    SegmentDecodeError,
    SegmentReadError,
    SegmentReadHandler,
)
from cassandra_cdc.cdc.parser import ParseError, parse_commitlog_entry
from cassandra_cdc.cdc.watcher import PublishingSegmentHandler, SegmentWatcher

__all__ = [
    "EventBuilder",
    "ColumnCodec",
    "CodecError",
    "MutationDecoder",
    "FramedJsonSegmentDecoder",
    "SegmentReadHandler",
    "SegmentReadError",
    "SegmentDecodeError",
    "parse_commitlog_entry",
    "ParseError",
    "SegmentWatcher",
    "PublishingSegmentHandler",
]
