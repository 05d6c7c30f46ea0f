"""
Decoded Mutation Views
Narrow read-only model that a commit-log decoder populates for the event builder
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

# Cassandra's "not deleted" marker (Long.MIN_VALUE for markedForDeleteAt)
LIVE = -(2**63)


class BoundKind(str, Enum):
    """Kind of a clustering bound carried by a range-tombstone marker"""

    INCL_START_BOUND = "INCL_START_BOUND"
    EXCL_START_BOUND = "EXCL_START_BOUND"
    INCL_END_BOUND = "INCL_END_BOUND"
    EXCL_END_BOUND = "EXCL_END_BOUND"

    @property
    def is_start(self) -> bool:
        return self in (BoundKind.INCL_START_BOUND, BoundKind.EXCL_START_BOUND)

    @property
    def is_end(self) -> bool:
        return not self.is_start

    @property
    def is_inclusive(self) -> bool:
        return self in (BoundKind.INCL_START_BOUND, BoundKind.INCL_END_BOUND)


@dataclass(frozen=True)
class TableMetadata:
    """
    Table-level metadata needed to render keys

    Attributes:
        keyspace: Cassandra keyspace name
        table: Cassandra table name
        partition_key_type: CQL or marshal type of the partition key
        clustering_types: Types of the clustering columns, in clustering order
    """

    keyspace: str
    table: str
    partition_key_type: str
    clustering_types: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ColumnDefinition:
    """Regular column of a row: name plus its CQL or marshal type"""

    name: str
    cql_type: str


@dataclass(frozen=True)
class CellView:
    """Single cell value; value is None for tombstones"""

    value: Optional[bytes] = None
    tombstone: bool = False


@dataclass(frozen=True)
class RowView:
    """
    Row entry of a partition

    Attributes:
        clustering: Raw clustering values, one per clustering column
        deletion_time: Row deletion timestamp (LIVE when not deleted)
        columns: Column definitions, co-iterated with cells
        cells: Cell values, co-iterated with columns
    """

    clustering: List[bytes] = field(default_factory=list)
    deletion_time: int = LIVE
    columns: List[ColumnDefinition] = field(default_factory=list)
    cells: List[CellView] = field(default_factory=list)

    @property
    def is_deleted(self) -> bool:
        return self.deletion_time > LIVE


@dataclass(frozen=True)
class BoundView:
    """Range-tombstone marker: bound kind plus raw clustering component values"""

    kind: BoundKind
    values: List[bytes] = field(default_factory=list)


Unfiltered = Union[RowView, BoundView]


@dataclass(frozen=True)
class PartitionView:
    """
    One partition update as produced by the decoder

    Attributes:
        metadata: Table the update belongs to
        partition_key: Raw partition key bytes
        deletion_time: Partition-level deletion timestamp (LIVE when not deleted)
        entries: Rows and range-tombstone markers in decoder iteration order
    """

    metadata: TableMetadata
    partition_key: bytes
    deletion_time: int = LIVE
    entries: List[Unfiltered] = field(default_factory=list)

    @property
    def is_deleted(self) -> bool:
        return self.deletion_time > LIVE
