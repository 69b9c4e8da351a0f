"""Data classes shared by the duplicate-detection components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from dupscan.errors import InputShapeError

Row = Dict[str, Optional[Any]]


# ---------------------------------------------------------------------------
# Tabular input
# ---------------------------------------------------------------------------


@dataclass
class Table:
    """Ordered headers plus ordered rows keyed by header name.

    Attributes:
        headers: Column names, unique and order-significant.
        rows: One mapping per record.  A row's position is its identity
            throughout clustering.
    """

    headers: List[str]
    rows: List[Row] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.headers, (list, tuple)):
            raise InputShapeError("Table headers must be an ordered sequence of names")
        if len(set(self.headers)) != len(self.headers):
            raise InputShapeError("Table headers must be unique")
        if not isinstance(self.rows, (list, tuple)):
            raise InputShapeError("Table rows must be an ordered sequence")
        for position, row in enumerate(self.rows):
            if not isinstance(row, Mapping):
                raise InputShapeError(
                    f"Row {position} is {type(row).__name__}, expected a field mapping"
                )
        self.headers = list(self.headers)
        self.rows = [dict(row) for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)

    @classmethod
    def from_records(cls, records: Sequence[Mapping[str, Any]]) -> "Table":
        """Build a table from plain mappings; headers follow first-seen key order."""
        if not isinstance(records, (list, tuple)):
            raise InputShapeError("Records must be an ordered sequence of mappings")
        headers: List[str] = []
        seen = set()
        for position, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise InputShapeError(
                    f"Row {position} is {type(record).__name__}, expected a field mapping"
                )
            for key in record:
                if key not in seen:
                    seen.add(key)
                    headers.append(key)
        return cls(headers=headers, rows=list(records))


# ---------------------------------------------------------------------------
# Whole-file records
# ---------------------------------------------------------------------------


def _parse_instant(value: Any) -> Any:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


@dataclass
class Period:
    """Temporal coverage of a dataset."""

    start: Any
    end: Any

    def overlaps(self, other: "Period") -> bool:
        return self.start <= other.end and other.start <= self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat() if hasattr(self.start, "isoformat") else self.start,
            "end": self.end.isoformat() if hasattr(self.end, "isoformat") else self.end,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Period":
        return cls(start=_parse_instant(data["start"]), end=_parse_instant(data["end"]))


@dataclass
class FileMetadata:
    """Optional descriptive metadata compared by the metadata scorer."""

    size: Optional[int] = None
    type: Optional[str] = None
    period: Optional[Period] = None
    spatial_domain: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "type": self.type,
            "period": self.period.to_dict() if self.period else None,
            "spatialDomain": self.spatial_domain,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileMetadata":
        period = data.get("period")
        return cls(
            size=data.get("size"),
            type=data.get("type"),
            period=Period.from_dict(period) if period else None,
            spatial_domain=data.get("spatialDomain", data.get("spatial_domain")),
        )


@dataclass
class FileRecord:
    """A stored file as seen by the proximity search.

    Attributes:
        id: Opaque identity assigned by the storage layer.
        size: Byte size of the file.
        digest: Hex content digest.
        media_type: Declared media type (e.g. ``text/csv``).
        metadata: Optional descriptive metadata.
        is_deleted: Soft-delete flag; deleted records never match.
        filename: Original file name, informational only.
    """

    id: str
    size: int
    digest: str
    media_type: str = "application/octet-stream"
    metadata: Optional[FileMetadata] = None
    is_deleted: bool = False
    filename: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "size": self.size,
            "digest": self.digest,
            "mediaType": self.media_type,
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "isDeleted": self.is_deleted,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileRecord":
        metadata = data.get("metadata")
        return cls(
            id=str(data["id"]),
            size=int(data["size"]),
            digest=data["digest"],
            media_type=data.get("mediaType", "application/octet-stream"),
            metadata=FileMetadata.from_dict(metadata) if metadata else None,
            is_deleted=bool(data.get("isDeleted", False)),
            filename=data.get("filename"),
        )


@dataclass
class DuplicateCandidateSet:
    """Result of a hash/size lookup.  ``exact`` and ``similar_by_size`` are disjoint."""

    exact: List[FileRecord] = field(default_factory=list)
    similar_by_size: List[FileRecord] = field(default_factory=list)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.exact or self.similar_by_size)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exact": [r.to_dict() for r in self.exact],
            "similarBySize": [r.to_dict() for r in self.similar_by_size],
        }


@dataclass
class SimilarFile:
    """A size-proximate file together with its metadata similarity."""

    record: FileRecord
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.record.to_dict(), "similarity": self.similarity}


# ---------------------------------------------------------------------------
# Row clustering output
# ---------------------------------------------------------------------------


@dataclass
class FieldMatch:
    """A field whose similarity met the threshold for an accepted pair."""

    field_name: str
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return {"fieldName": self.field_name, "similarity": self.similarity}


@dataclass
class GroupMember:
    """A row inside a duplicate group, carrying a copy of its fields."""

    index: int
    fields: Row

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "fields": dict(self.fields)}


@dataclass
class DuplicateGroup:
    """A cluster of rows grown around ``anchor_index``.

    ``matched_fields`` and ``confidence`` describe the most recently accepted
    pair unless the clusterer runs with the ``union`` attribution policy.
    """

    anchor_index: int
    members: List[GroupMember] = field(default_factory=list)
    matched_fields: List[FieldMatch] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def member_indices(self) -> List[int]:
        return [m.index for m in self.members]

    def __len__(self) -> int:
        return len(self.members)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "anchorIndex": self.anchor_index,
            "memberIndices": self.member_indices,
            "members": [m.to_dict() for m in self.members],
            "matchedFields": [m.to_dict() for m in self.matched_fields],
            "confidence": self.confidence,
        }


def indices_of(groups: Iterable[DuplicateGroup]) -> List[int]:
    """Flatten the member indices of ``groups`` in emission order."""
    return [index for group in groups for index in group.member_indices]
