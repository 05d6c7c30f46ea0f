"""
Commit Log Segment Decoding
Decoder interface plus a decoder for length-prefixed JSON segments
"""

import base64
import importlib
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import structlog

from cassandra_cdc.cdc.parser import ParseError, parse_commitlog_entry
from cassandra_cdc.models.views import LIVE, BoundView, PartitionView, RowView

logger = structlog.get_logger(__name__)

MAX_ENTRY_SIZE = 100_000_000


class SegmentReadError(Exception):
    """Error reported by a decoder while reading a segment"""

    def __init__(
        self,
        message: str,
        recoverable: bool = True,
        segment: Optional[str] = None,
        position: Optional[int] = None,
    ):
        super().__init__(message)
        self.recoverable = recoverable
        self.segment = segment
        self.position = position


class SegmentDecodeError(Exception):
    """Unrecoverable segment error; fatal for the commit log watcher"""

    pass


class SegmentReadHandler(ABC):
    """Receives decoded mutations and decode errors from a MutationDecoder"""

    @abstractmethod
    def handle_mutation(self, partitions: List[PartitionView], segment: Path, position: int) -> None:
        """
        Handle one decoded mutation

        Args:
            partitions: Partition updates of the mutation
            segment: Segment being read
            position: Byte offset of the entry in the segment
        """
        pass

    @abstractmethod
    def handle_unrecoverable_error(self, error: SegmentReadError) -> None:
        """
        Handle an error after which the segment cannot be read further

        Implementations are expected to raise.
        """
        pass

    @abstractmethod
    def should_skip_segment_on_error(self, error: SegmentReadError) -> bool:
        """
        Decide what to do on a recoverable error

        Returns:
            True to skip the rest of the segment, False to treat the error as unrecoverable
        """
        pass


class MutationDecoder(ABC):
    """Decodes a commit log segment into partition updates"""

    @abstractmethod
    def read_segment(self, path: Path, handler: SegmentReadHandler) -> None:
        """
        Read a whole segment, feeding every mutation to the handler

        Args:
            path: Segment file
            handler: Receives mutations and errors
        """
        pass


class FramedJsonSegmentDecoder(MutationDecoder):
    """
    Reads segments made of length-prefixed entries

    Each entry is a 4-byte big-endian size followed by a JSON mutation (see
    cassandra_cdc.cdc.parser). A zero size marks the end of written data in
    a preallocated segment; segments are complete when they are
    handed over, so a truncated entry at the tail is reported and dropped.
    """

    def __init__(self, max_entry_size: int = MAX_ENTRY_SIZE):
        self.max_entry_size = max_entry_size

    def read_segment(self, path: Path, handler: SegmentReadHandler) -> None:
        path = Path(path)
        logger.debug("Processing commitlog segment", segment=path.name)

        with open(path, "rb") as f:
            while True:
                position = f.tell()

                # Read entry size (4 bytes)
                size_bytes = f.read(4)
                if len(size_bytes) < 4:
                    break

                entry_size = int.from_bytes(size_bytes, byteorder="big")
                if entry_size == 0:
                    break

                if entry_size > self.max_entry_size:
                    handler.handle_unrecoverable_error(
                        SegmentReadError(
                            f"Invalid entry size {entry_size}",
                            recoverable=False,
                            segment=path.name,
                            position=position,
                        )
                    )
                    return

                entry_data = f.read(entry_size)
                if len(entry_data) < entry_size:
                    logger.warning(
                        "Truncated entry at end of segment dropped",
                        segment=path.name,
                        position=position,
                        expected_size=entry_size,
                        actual_size=len(entry_data),
                    )
                    break

                try:
                    partitions = parse_commitlog_entry(entry_data)
                except ParseError as e:
                    error = SegmentReadError(
                        str(e), recoverable=True, segment=path.name, position=position
                    )
                    if handler.should_skip_segment_on_error(error):
                        return
                    handler.handle_unrecoverable_error(error)
                    return

                handler.handle_mutation(partitions, path, position)

        logger.debug("Commitlog segment processed", segment=path.name)


def load_decoder(import_path: str) -> MutationDecoder:
    """
    Instantiate a decoder from a "package.module:Class" path

    Raises:
        ImportError: If the module or class cannot be found
        TypeError: If the class is not a MutationDecoder
    """
    module_name, _, class_name = import_path.partition(":")
    module = importlib.import_module(module_name)

    try:
        decoder_class = getattr(module, class_name)
    except AttributeError as e:
        raise ImportError(f"{module_name} has no attribute {class_name}") from e

    if not (isinstance(decoder_class, type) and issubclass(decoder_class, MutationDecoder)):
        raise TypeError(f"{import_path} is not a MutationDecoder")

    return decoder_class()


def _b64(value: Optional[bytes]) -> Optional[str]:
    return None if value is None else base64.b64encode(value).decode("ascii")


def _deletion(value: int) -> Optional[int]:
    return None if value == LIVE else value


def partition_to_dict(partition: PartitionView) -> Dict[str, Any]:
    """Inverse of parser.parse_partition"""
    entries: List[Dict[str, Any]] = []
    for entry in partition.entries:
        if isinstance(entry, RowView):
            cells = []
            for column, cell in zip(entry.columns, entry.cells):
                data: Dict[str, Any] = {"name": column.name, "type": column.cql_type}
                if cell.tombstone:
                    data["tombstone"] = True
                else:
                    data["value"] = _b64(cell.value)
                cells.append(data)
            entries.append(
                {
                    "type": "row",
                    "clustering": [_b64(v) for v in entry.clustering],
                    "deletionTime": _deletion(entry.deletion_time),
                    "cells": cells,
                }
            )
        elif isinstance(entry, BoundView):
            entries.append(
                {
                    "type": "bound",
                    "kind": entry.kind.value,
                    "values": [_b64(v) for v in entry.values],
                }
            )

    metadata = partition.metadata
    return {
        "keyspace": metadata.keyspace,
        "table": metadata.table,
        "partitionKeyType": metadata.partition_key_type,
        "clusteringTypes": list(metadata.clustering_types),
        "partitionKey": _b64(partition.partition_key),
        "deletionTime": _deletion(partition.deletion_time),
        "entries": entries,
    }


def encode_entry(partitions: Iterable[PartitionView]) -> bytes:
    """Frame one mutation as a length-prefixed JSON entry"""
    payload = json.dumps({"partitions": [partition_to_dict(p) for p in partitions]}).encode(
        "utf-8"
    )
    return len(payload).to_bytes(4, byteorder="big") + payload


def write_segment(path: Path, mutations: Iterable[Iterable[PartitionView]]) -> Path:
    """
    Write a segment file readable by FramedJsonSegmentDecoder

    Args:
        path: Destination file
        mutations: One iterable of partitions per mutation

    Returns:
        The written path
    """
    path = Path(path)
    with open(path, "wb") as f:
        for partitions in mutations:
            f.write(encode_entry(partitions))
    return path
