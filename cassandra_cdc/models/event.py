"""
PartitionChangeEvent Data Model - CDC event representation published to Kafka
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class CellChange:
    """
    Change to a single cell

    Attributes:
        name: Column name
        deleted: True when the cell is a tombstone
        value: Decoded value (None when deleted)
    """

    name: str
    deleted: bool = False
    value: Optional[str] = None

    def __post_init__(self) -> None:
        if self.deleted and self.value is not None:
            raise ValueError("deleted cells cannot carry a value")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.deleted:
            data["deleted"] = True
        else:
            data["value"] = self.value
        return data


@dataclass
class RowChange:
    """
    Change to a single row; cells is None for a plain row deletion
    """

    clustering_key: str
    cells: Optional[List[CellChange]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"clusteringKey": self.clustering_key}
        if self.cells is not None:
            data["cells"] = [cell.to_dict() for cell in self.cells]
        return data


@dataclass
class BoundComponent:
    """One clustering component of a range-deletion bound"""

    clustering_key: str
    inclusive: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"clusteringKey": self.clustering_key}
        if self.inclusive is not None:
            data["inclusive"] = self.inclusive
        return data


@dataclass
class RangeDeletions:
    """Start and end bound components collected from range-tombstone markers"""

    start: List[BoundComponent] = field(default_factory=list)
    end: List[BoundComponent] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.start or self.end)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.start:
            data["start"] = [component.to_dict() for component in self.start]
        if self.end:
            data["end"] = [component.to_dict() for component in self.end]
        return data


@dataclass
class PartitionChangeEvent:
    """
    Represents all changes applied to one Cassandra partition by one mutation

    Attributes:
        key: Partition key rendered as a string (also the Kafka message key)
        partition_deleted: Whole partition was deleted; rows are not inspected
        row_deleted: At least one row in the partition was deleted
        rows: Row changes in decoder iteration order
        range_deletions: Range-tombstone bounds in decoder iteration order
    """

    key: str
    partition_deleted: bool = False
    row_deleted: bool = False
    rows: List[RowChange] = field(default_factory=list)
    range_deletions: RangeDeletions = field(default_factory=RangeDeletions)

    def __post_init__(self) -> None:
        """Validate PartitionChangeEvent after initialization"""
        if not self.key:
            raise ValueError("key must be non-empty")

        if self.partition_deleted and (self.rows or self.range_deletions):
            raise ValueError("partition deletion cannot carry rows or range deletions")

    def to_dict(self) -> Dict[str, Any]:
        """Convert PartitionChangeEvent to dictionary (absent fields omitted)"""
        data: Dict[str, Any] = {"key": self.key}

        if self.partition_deleted:
            data["partitionDeleted"] = True
            return data

        if self.row_deleted:
            data["rowDeleted"] = True

        data["rows"] = [row.to_dict() for row in self.rows]

        if self.range_deletions:
            data["rangeDeletions"] = self.range_deletions.to_dict()

        return data

    def to_json(self) -> str:
        """Serialize to compact JSON text with a stable field order"""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)
