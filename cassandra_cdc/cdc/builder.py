"""
Change Event Builder
Converts one decoded partition update into a PartitionChangeEvent and its JSON body
"""

from typing import List, Optional, Tuple

import structlog

from cassandra_cdc.cdc.codec import CodecError, ColumnCodec
from cassandra_cdc.models.event import (
    BoundComponent,
    CellChange,
    PartitionChangeEvent,
    RowChange,
)
from cassandra_cdc.models.views import BoundView, PartitionView, RowView, TableMetadata
from cassandra_cdc.observability.metrics import increment_partitions_filtered

logger = structlog.get_logger(__name__)


class EventBuilder:
    """
    Builds CDC events from decoded partition updates

    Pure transformation: no I/O and no state shared between calls, so one
    instance can be used concurrently from any number of worker threads.
    """

    def __init__(
        self,
        keyspace: Optional[str] = None,
        table: Optional[str] = None,
        codec: Optional[ColumnCodec] = None,
    ):
        """
        Initialize builder

        Args:
            keyspace: Only partitions of this keyspace produce events (None disables the filter)
            table: Only partitions of this table produce events (None disables the filter)
            codec: Column codec (defaults to protocol v4 codec)
        """
        self.keyspace = keyspace
        self.table = table
        self.codec = codec or ColumnCodec()

    def accepts(self, metadata: TableMetadata) -> bool:
        """Check whether a partition's table passes the keyspace/table filter"""
        if self.keyspace is not None and metadata.keyspace != self.keyspace:
            logger.debug(
                "Keyspace mismatch, skipping partition",
                expected=self.keyspace,
                actual=metadata.keyspace,
            )
            return False

        if self.table is not None and metadata.table != self.table:
            logger.debug(
                "Table mismatch, skipping partition",
                expected=self.table,
                actual=metadata.table,
            )
            return False

        return True

    def build(self, partition: PartitionView) -> Optional[Tuple[str, str]]:
        """
        Build the Kafka message for a partition update

        Args:
            partition: Decoded partition update

        Returns:
            (key, json_body), or None when the partition is filtered out

        Raises:
            CodecError: If a key or cell value cannot be decoded
        """
        event = self.build_event(partition)
        if event is None:
            return None

        body = event.to_json()
        logger.debug("Created json value", key=event.key, value=body)
        return event.key, body

    def build_event(self, partition: PartitionView) -> Optional[PartitionChangeEvent]:
        """
        Build the PartitionChangeEvent for a partition update

        Returns:
            Event, or None when the partition is filtered out
        """
        metadata = partition.metadata
        if not self.accepts(metadata):
            increment_partitions_filtered(keyspace=metadata.keyspace, table=metadata.table)
            return None

        key = self.codec.decode(metadata.partition_key_type, partition.partition_key)

        if partition.is_deleted:
            return PartitionChangeEvent(key=key, partition_deleted=True)

        event = PartitionChangeEvent(key=key)

        for entry in partition.entries:
            if isinstance(entry, RowView):
                event.rows.append(self._build_row(event, metadata, entry))
            elif isinstance(entry, BoundView):
                bounds = self._build_bound(metadata, entry)
                if entry.kind.is_start:
                    event.range_deletions.start.extend(bounds)
                else:
                    event.range_deletions.end.extend(bounds)

        return event

    def clustering_string(self, metadata: TableMetadata, values: List[bytes]) -> str:
        """
        Render clustering values as a CQL-style string ("a, b")

        Raises:
            CodecError: If there are more values than clustering columns
        """
        if len(values) > len(metadata.clustering_types):
            raise CodecError(
                f"Row has {len(values)} clustering values but table "
                f"{metadata.keyspace}.{metadata.table} has "
                f"{len(metadata.clustering_types)} clustering columns"
            )

        return ", ".join(
            self.codec.decode(type_name, value)
            for type_name, value in zip(metadata.clustering_types, values)
        )

    def _build_row(
        self,
        event: PartitionChangeEvent,
        metadata: TableMetadata,
        row: RowView,
    ) -> RowChange:
        change = RowChange(clustering_key=self.clustering_string(metadata, row.clustering))

        # Deleted rows flag the whole event, not the row itself
        if row.is_deleted:
            event.row_deleted = True
            return change

        change.cells = []
        for column, cell in zip(row.columns, row.cells):
            if cell.tombstone:
                change.cells.append(CellChange(name=column.name, deleted=True))
            else:
                value = self.codec.decode(column.cql_type, cell.value)
                change.cells.append(CellChange(name=column.name, value=value))

        return change

    def _build_bound(self, metadata: TableMetadata, bound: BoundView) -> List[BoundComponent]:
        components = []
        last = len(bound.values) - 1

        for i, raw in enumerate(bound.values):
            if i >= len(metadata.clustering_types):
                raise CodecError(
                    f"Bound has {len(bound.values)} components but table "
                    f"{metadata.keyspace}.{metadata.table} has "
                    f"{len(metadata.clustering_types)} clustering columns"
                )

            component = BoundComponent(
                clustering_key=self.codec.decode(metadata.clustering_types[i], raw)
            )
            if i == last:
                component.inclusive = bound.kind.is_inclusive
            components.append(component)

        return components
