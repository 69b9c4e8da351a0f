"""Dataset-level duplicate scan.

Where the row clusterer looks for duplicate records inside one table, this
scan looks for whole tables that duplicate each other.  Two tables are
compared column by column on the headers they share: a column's similarity
is the Jaccard index of its distinct trimmed, lower-cased values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from dupscan.dedup.clusterer import DEFAULT_THRESHOLD, validate_threshold
from dupscan.dedup.models import FieldMatch, Table
from dupscan.errors import InputShapeError
from dupscan.utils.logger import log_debug, log_info


def _column_values(rows: Sequence[Mapping[str, Any]], field_name: str) -> Set[str]:
    values = set()
    for row in rows:
        value = row.get(field_name)
        if value is None:
            continue
        text = str(value).lower().strip()
        if text:
            values.add(text)
    return values


def column_similarity(
    rows1: Sequence[Mapping[str, Any]],
    rows2: Sequence[Mapping[str, Any]],
    field_name: str,
) -> float:
    """Jaccard similarity of the distinct values of ``field_name`` in two tables.

    Blank values are ignored.  Two columns with no values at all score 0.
    """
    first = _column_values(rows1, field_name)
    second = _column_values(rows2, field_name)
    union = first | second
    if not union:
        return 0.0
    return len(first & second) / len(union)


@dataclass
class DatasetMember:
    """A table inside a duplicate dataset group.

    ``matched_fields`` holds the columns that matched the group's first
    table; it is empty for that first table itself.
    """

    index: int
    name: str
    matched_fields: List[FieldMatch] = field(default_factory=list)

    @property
    def field_mean(self) -> float:
        if not self.matched_fields:
            return 0.0
        return sum(m.similarity for m in self.matched_fields) / len(self.matched_fields)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "name": self.name,
            "matchedFields": [m.to_dict() for m in self.matched_fields],
        }


@dataclass
class DatasetGroup:
    """Tables found to duplicate the group's first table."""

    group_id: int
    members: List[DatasetMember] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def member_indices(self) -> List[int]:
        return [m.index for m in self.members]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.group_id,
            "confidence": self.confidence,
            "files": [m.to_dict() for m in self.members],
        }


def _match_tables(first: Table, second: Table, threshold: float) -> List[FieldMatch]:
    matches = []
    for header in first.headers:
        if header not in second.headers:
            continue
        similarity = column_similarity(first.rows, second.rows, header)
        if similarity >= threshold:
            matches.append(FieldMatch(field_name=header, similarity=similarity))
    return matches


def find_duplicate_datasets(
    tables: Sequence[Table],
    threshold: float = DEFAULT_THRESHOLD,
    names: Optional[Sequence[str]] = None,
) -> List[DatasetGroup]:
    """Group tables whose shared columns hold the same values.

    Each unclaimed table in turn is compared with every other unclaimed
    table.  A table joins when at least one shared column reaches
    ``threshold`` and the mean of those columns does too.  Group confidence
    is the mean of the members' matched-field means, the first table
    counting as 0.

    Args:
        tables: Tables to compare.
        threshold: Column similarity threshold in (0, 1].
        names: Display names, one per table. Defaults to ``table-<n>``.

    Returns:
        Groups sorted by confidence, highest first.  Ids follow discovery
        order.

    Raises:
        InputShapeError: ``tables`` is not a sequence of ``Table`` or
            ``names`` has the wrong length.
    """
    threshold = validate_threshold(threshold)
    if not isinstance(tables, (list, tuple)) or not all(isinstance(t, Table) for t in tables):
        raise InputShapeError("tables must be an ordered sequence of Table objects")
    if names is None:
        names = [f"table-{i}" for i in range(len(tables))]
    elif len(names) != len(tables):
        raise InputShapeError(f"Expected {len(tables)} names, got {len(names)}")

    processed = [False] * len(tables)
    groups: List[DatasetGroup] = []

    for i, table in enumerate(tables):
        if processed[i]:
            continue

        members = []
        for j, other in enumerate(tables):
            if i == j or processed[j]:
                continue
            matches = _match_tables(table, other, threshold)
            if not matches:
                continue
            mean = sum(m.similarity for m in matches) / len(matches)
            log_debug("Dataset comparison", first=names[i], second=names[j], matched=len(matches), mean=round(mean, 4))
            if mean >= threshold:
                processed[j] = True
                members.append(DatasetMember(index=j, name=names[j], matched_fields=matches))

        if members:
            processed[i] = True
            members.insert(0, DatasetMember(index=i, name=names[i]))
            group = DatasetGroup(group_id=len(groups) + 1, members=members)
            group.confidence = sum(m.field_mean for m in members) / len(members)
            groups.append(group)

    groups.sort(key=lambda g: g.confidence, reverse=True)
    log_info("Dataset scan completed", tables=len(tables), groups=len(groups))
    return groups
